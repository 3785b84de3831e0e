"""Streaming scanner that locates a value inside an INI source."""

from __future__ import annotations

import logging
from typing import BinaryIO

from .config import ParserConfig
from .exceptions import DuplicateKeyError, TooLargeError
from .lexer import continues, is_blank, last_physical_line, section_of, value_span_of
from .models import DuplicatePolicy, ScanResult

log = logging.getLogger(__name__)


def _read_physical_line(source: BinaryIO, config: ParserConfig, consumed_so_far: int) -> bytes:
    if config.size_limit is None:
        return source.readline()

    # Never pull more than one byte past the limit, even from a line with no newline.
    remaining = config.size_limit - consumed_so_far
    line = source.readline(remaining + 1)
    if len(line) > remaining:
        raise TooLargeError(config.size_limit, consumed_so_far + len(line))
    return line


def read_logical_line(
    source: BinaryIO, config: ParserConfig, consumed_so_far: int = 0
) -> tuple[bytes, int]:
    r"""Read one logical line, joining continued physical lines.

    Physical lines keep their newline. When `config.line_continuation` is set,
    a physical line whose trimmed form ends with ``\`` pulls in the next one,
    until a line that does not continue or EOF.

    Args:
        source: Binary stream positioned at the start of a physical line.
        config: Parser configuration.
        consumed_so_far: Bytes already consumed from `source`, used to enforce
            `config.size_limit`.

    Returns:
        tuple[bytes, int]: The logical line and the number of physical bytes it
        consumed. An empty line with a count of zero signals EOF.

    Raises:
        TooLargeError: If reading would cross `config.size_limit`.

    Examples:
        read_logical_line(io.BytesIO(b"a=1 \\\n2\nb=3\n"), ParserConfig())  # (b"a=1 \\\n2\n", 8)
    """
    physical = _read_physical_line(source, config, consumed_so_far)
    parts = [physical]
    consumed = len(physical)

    if config.line_continuation:
        while physical and continues(physical):
            physical = _read_physical_line(source, config, consumed_so_far + consumed)
            if not physical:
                break
            parts.append(physical)
            consumed += len(physical)

    return b"".join(parts), consumed


def scan(
    source: BinaryIO,
    section: str | None,
    key: str,
    config: ParserConfig | None = None,
) -> ScanResult:
    """Scan a source once, recording where `key` lives under `section`.

    Offsets are relative to the stream position at call time; callers that
    need absolute positions rewind first. Header lines toggle section
    membership by trimmed equality with `section`; None targets the global
    namespace before the first header. Blank lines never extend
    `last_content_byte_in_section`, so insertions land above trailing blanks.

    Args:
        source: Readable binary stream.
        section: Target section name, or None for the global namespace.
        key: Key to locate.
        config: Parser configuration; defaults to `ParserConfig()`.

    Returns:
        ScanResult: Total bytes consumed, end of the section's last content
        line, and the value range with its bytes when found.

    Raises:
        DuplicateKeyError: If the policy is ``ERROR`` and the key repeats.
        TooLargeError: If the source exceeds `config.size_limit`.
        OSError: If reading from `source` fails.

    Examples:
        scan(io.BytesIO(b"[c]\\nname=tom\\n"), "c", "name").value_range  # (9, 12)
    """
    config = config or ParserConfig()
    target = section.strip() if section is not None else None

    in_section = target is None
    bytes_processed = 0
    last_content = 0 if in_section else None
    value_range: tuple[int, int] | None = None
    value_bytes: bytes | None = None
    previous_line = b""

    while True:
        line, consumed = read_logical_line(source, config, bytes_processed)
        if consumed == 0:
            break
        previous_line = line

        header = section_of(line)
        if header is not None:
            in_section = target is not None and header == target
            # An empty target section still receives new keys under its header.
            if in_section and last_content is None:
                last_content = bytes_processed + consumed
        elif in_section:
            span = value_span_of(line, key, config)
            if span is not None:
                start, end = span
                if config.duplicate_policy is DuplicatePolicy.ERROR and value_range is not None:
                    raise DuplicateKeyError(section, key)
                value_range = (bytes_processed + start, bytes_processed + end)
                value_bytes = line[start:end]

                if config.duplicate_policy is DuplicatePolicy.USE_FIRST:
                    bytes_processed += consumed
                    log.debug("First match for %r at %s, stopping early", key, value_range)
                    return ScanResult(
                        total_bytes=bytes_processed,
                        last_content_byte_in_section=bytes_processed,
                        value_range=value_range,
                        value_bytes=value_bytes,
                    )

            if not is_blank(line):
                last_content = bytes_processed + consumed

        bytes_processed += consumed

    # Only the final logical line can end on a continuing physical line.
    ends_in_continuation = config.line_continuation and continues(
        last_physical_line(previous_line)
    )

    log.debug(
        "Scanned %d bytes for [%s] %r: value_range=%s last_content=%s",
        bytes_processed,
        target if target is not None else "",
        key,
        value_range,
        last_content,
    )
    return ScanResult(
        total_bytes=bytes_processed,
        last_content_byte_in_section=last_content,
        value_range=value_range,
        value_bytes=value_bytes,
        ends_in_continuation=ends_in_continuation,
    )
