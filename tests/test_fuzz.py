from __future__ import annotations

import io
import os

import pytest
from ini_inplace.config import ParserConfig
from ini_inplace.parser import IniParser
from ini_inplace.writer import plan_substitution

atheris = pytest.importorskip("atheris")


def _fuzzed_document(provider) -> bytes:
    fragments = [b"[", b"]", b"=", b";", b"#", b"\\", b"\n", b"\r\n", b" ", b"\"", b"k", b"s"]
    document = bytearray()
    while provider.remaining_bytes() > 0 and len(document) < 512:
        if provider.ConsumeBool():
            document += fragments[provider.ConsumeIntInRange(0, len(fragments) - 1)]
        else:
            document += provider.ConsumeBytes(provider.ConsumeIntInRange(1, 8))
    return bytes(document)


def test_write_with_fuzzed_documents():
    data = os.urandom(8192)
    provider = atheris.FuzzedDataProvider(data)
    small = IniParser(ParserConfig(copy_buffer_size=1))
    large = IniParser()
    checked = 0

    for _ in range(32):
        if provider.remaining_bytes() == 0:
            break
        document = _fuzzed_document(provider)
        section = "s" if provider.ConsumeBool() else None
        value = provider.ConsumeBytes(provider.ConsumeIntInRange(0, 16))

        outputs = []
        for parser in (small, large):
            destination = io.BytesIO()
            parser.write(io.BytesIO(document), destination, section, "k", value)
            outputs.append(destination.getvalue())

        scan_result = large.scan(io.BytesIO(document), section, "k")
        if scan_result.value_range is not None:
            start, end = scan_result.value_range
            assert outputs[1] == document[:start] + value + document[end:]
        else:
            assert len(outputs[1]) > len(document)
            assert plan_substitution(scan_result, section, "k", value).is_insertion
        assert outputs[0] == outputs[1]
        checked += 1

    assert checked  # ensure we exercised the loop


def test_read_with_fuzzed_documents():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    parser = IniParser()

    while provider.remaining_bytes() > 0:
        document = _fuzzed_document(provider)
        try:
            value = parser.read_raw(io.BytesIO(document), None, "k")
        except UnicodeDecodeError:
            continue
        assert value is None or value.encode("utf-8") in document
