"""Data models for ini-inplace."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DuplicatePolicy(Enum):
    """How repeated keys inside the target section are resolved.

    Attributes:
        USE_FIRST: The first occurrence wins; scanning stops at the first match.
        USE_LAST: The last occurrence wins. Most INI readers behave this way.
        ERROR: A second occurrence is an error.
    """

    USE_FIRST = "use_first"
    USE_LAST = "use_last"
    ERROR = "error"


@dataclass(frozen=True)
class ScanResult:
    """Outcome of a single streaming pass over an INI source.

    Attributes:
        total_bytes: Number of source bytes consumed by the scan.
        last_content_byte_in_section: Offset just past the last non-blank line
            of the target section, or None when the section never appeared.
        value_range: Half-open ``(start, end)`` byte range of the matched
            value, or None when the key was not found.
        value_bytes: Raw bytes covered by `value_range`.
        ends_in_continuation: True when the source ends on a physical line
            asking to be joined with the next, so text appended at EOF would
            be glued onto it.
    """

    total_bytes: int
    last_content_byte_in_section: int | None = None
    value_range: tuple[int, int] | None = None
    value_bytes: bytes | None = None
    ends_in_continuation: bool = False


@dataclass(frozen=True)
class Substitution:
    """Byte range of the source to replace and the bytes written in its place.

    Attributes:
        start: First replaced byte (inclusive).
        end: End of the replaced range (exclusive); equal to `start` for an insertion.
        replacement: Bytes emitted instead of ``source[start:end]``.
    """

    start: int
    end: int
    replacement: bytes

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end
