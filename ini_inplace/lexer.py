"""Lexical predicates over a single logical INI line.

Lines arrive as raw bytes. They are decoded as UTF-8 with ``surrogateescape``
so that invalid bytes survive one-to-one, whitespace is classified per code
point, and every offset handed back is a byte offset into the original line.
"""

from __future__ import annotations

from .config import ParserConfig
from .constants import CONTINUATION_MARKER, SECTION_CLOSE, SECTION_OPEN

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def decode_line(line: bytes) -> str:
    """Decode a raw line without losing undecodable bytes."""
    return line.decode(_ENCODING, _ERRORS)


def _byte_length(text: str) -> int:
    return len(text.encode(_ENCODING, _ERRORS))


def is_blank(line: bytes) -> bool:
    """Return True when the line holds nothing but whitespace."""
    return not decode_line(line).strip()


def continues(physical_line: bytes) -> bool:
    r"""Determine whether a physical line asks to be joined with the next one.

    Args:
        physical_line: One physical line, newline included.

    Returns:
        bool: True when the line, stripped of trailing whitespace, ends with a
        backslash.

    Examples:
        continues(b"desc=first \\\n")  # True
        continues(b"desc=first\n")  # False
    """
    return decode_line(physical_line).rstrip().endswith(CONTINUATION_MARKER)


def last_physical_line(line: bytes) -> bytes:
    """Return the final physical line of a logical line, newline included."""
    cut = line.rfind(b"\n", 0, len(line) - 1)
    return line[cut + 1 :]


def section_of(line: bytes) -> str | None:
    """Extract the section name from a header line.

    The line is trimmed; when it starts with ``[`` the name is the text up to
    the first ``]``, trimmed again. Anything after the closing bracket,
    including a comment, is ignored. Comment markers inside the brackets are
    part of the name.

    Args:
        line: Logical line to inspect.

    Returns:
        str | None: Section name, or None when the line is not a header.

    Examples:
        section_of(b"[ contact ] ; people\\n")  # "contact"
        section_of(b"[broken\\n")  # None
    """
    trimmed = decode_line(line).strip()
    if not trimmed.startswith(SECTION_OPEN):
        return None
    end = trimmed.find(SECTION_CLOSE)
    if end == -1:
        return None
    return trimmed[1:end].strip()


def _first_of(text: str, characters: frozenset[str]) -> int:
    for index, char in enumerate(text):
        if char in characters:
            return index
    return -1


def value_span_of(line: bytes, key: str, config: ParserConfig) -> tuple[int, int] | None:
    """Locate the value of `key` within a logical line.

    The comment is cut at the first comment marker, then the key is the text
    before the first value delimiter. Keys compare exactly after trimming, so
    matching is case-sensitive. The value span excludes surrounding whitespace
    and the comment; an empty value yields an empty span right after the
    delimiter.

    Args:
        line: Logical line, newline included.
        key: Key to look for.
        config: Supplies comment markers and value delimiters.

    Returns:
        tuple[int, int] | None: Half-open byte range of the value within `line`,
        or None when the line does not assign `key`.

    Examples:
        value_span_of(b"name = tom # note\\n", "name", ParserConfig())  # (7, 10)
        value_span_of(b"Name=tom\\n", "name", ParserConfig())  # None
    """
    text = decode_line(line)

    comment_start = _first_of(text, config.comment_markers)
    if comment_start != -1:
        text = text[:comment_start]

    delimiter = _first_of(text, config.value_delimiters)
    if delimiter == -1:
        return None

    if text[:delimiter].strip() != key.strip():
        return None

    value_start = delimiter + 1
    while value_start < len(text) and text[value_start].isspace():
        value_start += 1
    if value_start == len(text):
        empty = _byte_length(text[: delimiter + 1])
        return empty, empty

    value_end = len(text.rstrip())

    start = _byte_length(text[:value_start])
    return start, start + _byte_length(text[value_start:value_end])
