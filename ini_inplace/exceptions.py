"""Package-specific exception types."""

from __future__ import annotations


class IniError(Exception):
    """Base class for errors raised while reading or writing INI values."""


class DuplicateKeyError(IniError):
    """Raised when a key appears more than once under the duplicate ``ERROR`` policy.

    Args:
        section: Target section, or None for the global namespace.
        key: Key that was defined more than once.
    """

    def __init__(self, section: str | None, key: str):
        self.section = section
        self.key = key
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        prefix = f"[{self.section}]." if self.section is not None else ""
        return f"duplicate key {prefix}{self.key} found in ini file"


class TooLargeError(IniError):
    """Raised when a source exceeds the configured size limit.

    Args:
        limit: Maximum number of bytes allowed.
        observed: Number of bytes seen when the limit was crossed.
    """

    def __init__(self, limit: int, observed: int):
        self.limit = limit
        self.observed = observed
        super().__init__(
            f"Input exceeds the maximum allowed size of {limit} bytes "
            f"(read at least {observed} bytes)"
        )


class ValueParseError(IniError, ValueError):
    """Raised when a raw value cannot be converted to the requested type.

    Args:
        value: Raw text that failed to convert.
        kind: Name of the requested type.
    """

    def __init__(self, value: str, kind: str):
        self.value = value
        self.kind = kind
        super().__init__(f"Cannot parse {value!r} as {kind}")
