"""Write path: plan a substitution and stream the edited copy."""

from __future__ import annotations

import logging
from typing import BinaryIO

from .constants import COPY_BUFFER_SIZE, SECTION_CLOSE, SECTION_OPEN
from .models import ScanResult, Substitution

log = logging.getLogger(__name__)

NEWLINE = b"\n"


def render_assignment(key: str, value: bytes) -> bytes:
    """Render a new ``key=value`` line."""
    return key.encode("utf-8") + b"=" + value + NEWLINE


def render_section_header(section: str) -> bytes:
    """Render a new ``[section]`` header line."""
    return f"{SECTION_OPEN}{section}{SECTION_CLOSE}".encode("utf-8") + NEWLINE


def insertion_point(scan_result: ScanResult) -> int | None:
    """Return where a new line would be inserted, or None for a replacement.

    A missing key lands right after its section's last content line; a
    missing section is appended at EOF.
    """
    if scan_result.value_range is not None:
        return None
    if scan_result.last_content_byte_in_section is not None:
        return scan_result.last_content_byte_in_section
    return scan_result.total_bytes


def plan_substitution(
    scan_result: ScanResult,
    section: str | None,
    key: str,
    value: bytes,
    preceding_byte: bytes | None = None,
) -> Substitution:
    """Decide which bytes of the source are replaced and by what.

    An existing value is replaced verbatim. Otherwise a new ``key=value``
    line goes to `insertion_point`, preceded by a header when the requested
    section does not exist yet.

    Args:
        scan_result: Result of scanning the source for `section` and `key`.
        section: Target section, or None for the global namespace.
        key: Key being written.
        value: Encoded value.
        preceding_byte: Source byte just before the insertion point, used to
            avoid fusing the new line with an unterminated last line; None
            when unknown or at offset zero.

    Returns:
        Substitution: Range to replace and the replacement bytes.

    Examples:
        plan_substitution(ScanResult(total_bytes=0, last_content_byte_in_section=0), None, "a", b"1")
    """
    position = insertion_point(scan_result)
    if position is None:
        start, end = scan_result.value_range
        return Substitution(start, end, value)

    replacement = render_assignment(key, value)
    if scan_result.last_content_byte_in_section is None and section is not None:
        replacement = render_section_header(section) + replacement

    # A blank line ends a trailing continuation before the new line starts.
    if position == scan_result.total_bytes and scan_result.ends_in_continuation:
        replacement = NEWLINE + replacement
    if position > 0 and preceding_byte not in (None, NEWLINE):
        replacement = NEWLINE + replacement

    return Substitution(position, position, replacement)


def copy_with_substitution(
    source: BinaryIO,
    destination: BinaryIO,
    substitution: Substitution,
    buffer_size: int = COPY_BUFFER_SIZE,
) -> int:
    """Copy `source` to `destination`, swapping one byte range.

    The source is read in windows of `buffer_size` bytes. The replaced range
    may start and end in different windows; windows falling entirely inside
    it are dropped. When the range starts at EOF the replacement is appended
    after the loop.

    Args:
        source: Binary stream positioned at byte zero.
        destination: Writable binary stream.
        substitution: Range to replace and its replacement.
        buffer_size: Window size in bytes; any value >= 1 yields the same output.

    Returns:
        int: Number of bytes written to `destination`.

    Raises:
        ValueError: If `buffer_size` is not positive.
        OSError: If reading or writing fails.
    """
    if buffer_size < 1:
        raise ValueError("`buffer_size` must be a positive integer")

    start, end = substitution.start, substitution.end
    window_start = 0
    inside = False
    emitted = False
    written = 0

    while True:
        chunk = source.read(buffer_size)
        if not chunk:
            break
        window_end = window_start + len(chunk)
        start_hits = window_start <= start < window_end
        end_hits = window_start <= end < window_end

        if start_hits:
            pieces = [chunk[: start - window_start], substitution.replacement]
            emitted = True
            inside = True
            if end_hits:
                pieces.append(chunk[end - window_start :])
                inside = False
        elif end_hits and inside:
            pieces = [chunk[end - window_start :]]
            inside = False
        elif inside:
            pieces = []
        else:
            pieces = [chunk]

        for piece in pieces:
            if piece:
                destination.write(piece)
                written += len(piece)
        window_start = window_end

    if not emitted:
        destination.write(substitution.replacement)
        written += len(substitution.replacement)

    return written
