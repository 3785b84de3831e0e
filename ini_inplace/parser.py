"""Reading and writing single INI values without disturbing the rest of the file."""

from __future__ import annotations

import logging
from typing import Any, BinaryIO

from .config import ParserConfig, normalize_config, validate_config
from .models import ScanResult
from .scanner import scan
from .values import parse_value, unquote
from .writer import copy_with_substitution, insertion_point, plan_substitution

log = logging.getLogger(__name__)


class IniParser:
    """Get and set values in INI sources while preserving their formatting.

    A parser holds only its immutable configuration, so one instance can be
    shared freely between threads and calls.

    Args:
        config: Parsing rules; defaults to `ParserConfig()`.

    Raises:
        ConfigError: If the configuration fails validation.

    Examples:
        parser = IniParser()
        with open("game.ini", "rb") as source:
            players = parser.read_typed(source, "Server", "MaxPlayers", int)
    """

    def __init__(self, config: ParserConfig | None = None):
        config = normalize_config(config or ParserConfig())
        validate_config(config)
        self.config = config

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config!r})"

    def scan(self, source: BinaryIO, section: str | None, key: str) -> ScanResult:
        """Scan `source` from its current position; see `scanner.scan`."""
        return scan(source, section, key, self.config)

    def read_raw(self, source: BinaryIO, section: str | None, key: str) -> str | None:
        """Read the text of a value.

        The source is read once from its current position and does not need
        to be seekable. Whitespace and one matched pair of outer double quotes
        are removed.

        Args:
            source: Readable binary stream.
            section: Section holding the key, or None for the global namespace.
            key: Key to read.

        Returns:
            str | None: The value, or None when the key is absent.

        Raises:
            DuplicateKeyError: If the key repeats under the ``ERROR`` policy.
            TooLargeError: If the source exceeds the configured size limit.
            UnicodeDecodeError: If the value is not valid UTF-8.
            OSError: If reading fails.
        """
        result = self.scan(source, section, key)
        if result.value_bytes is None:
            return None
        return unquote(result.value_bytes.decode("utf-8"))

    def read_typed(
        self, source: BinaryIO, section: str | None, key: str, kind: object = str
    ) -> Any:
        """Read a value and convert it with `values.parse_value`.

        Args:
            source: Readable binary stream.
            section: Section holding the key, or None for the global namespace.
            key: Key to read.
            kind: Target type or converter, e.g. ``int``, ``bool`` or ``Path``.

        Returns:
            Any: Converted value, or None when the key is absent.

        Raises:
            ValueParseError: If the raw text cannot be converted.

        Examples:
            parser.read_typed(source, "display", "fullscreen", bool)
        """
        raw = self.read_raw(source, section, key)
        if raw is None:
            return None
        return parse_value(raw, kind)

    def write(
        self,
        source: BinaryIO,
        destination: BinaryIO,
        section: str | None,
        key: str,
        value: str | bytes,
    ) -> None:
        """Write `source` to `destination` with one value set.

        The source is scanned once to find the value, then rewound and copied
        window by window. Only the value bytes change; when the key is missing
        a ``key=value`` line is added after the section's last content line,
        or a new section is appended at EOF.

        Args:
            source: Readable, seekable binary stream.
            destination: Writable binary stream.
            section: Section holding the key, or None for the global namespace.
            key: Key to set.
            value: New value, written verbatim.

        Returns:
            None.

        Raises:
            DuplicateKeyError: If the key repeats under the ``ERROR`` policy;
                nothing is written in that case.
            TooLargeError: If the source exceeds the configured size limit.
            OSError: If reading, seeking or writing fails.

        Examples:
            with open("app.ini", "rb") as source, open("app.ini.new", "wb") as destination:
                parser.write(source, destination, "contact", "name", "bill")
        """
        if isinstance(value, str):
            value = value.encode("utf-8")

        source.seek(0)
        result = self.scan(source, section, key)

        preceding_byte = None
        position = insertion_point(result)
        if position:
            source.seek(position - 1)
            preceding_byte = source.read(1)

        substitution = plan_substitution(result, section, key, value, preceding_byte)
        log.debug(
            "%s [%d, %d) with %d bytes",
            "Inserting at" if substitution.is_insertion else "Replacing",
            substitution.start,
            substitution.end,
            len(substitution.replacement),
        )

        source.seek(0)
        copy_with_substitution(source, destination, substitution, self.config.copy_buffer_size)
