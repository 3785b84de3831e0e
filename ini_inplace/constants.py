"""Constants used across the ini-inplace package."""

from __future__ import annotations

# Lexical defaults
DEFAULT_COMMENT_MARKERS = frozenset({"#", ";"})
DEFAULT_VALUE_DELIMITERS = frozenset({"="})
SECTION_OPEN = "["
SECTION_CLOSE = "]"
CONTINUATION_MARKER = "\\"
QUOTE = '"'

# Write path window size
COPY_BUFFER_SIZE = 8 * 1024

# Recommended cap for untrusted input
DEFAULT_SIZE_LIMIT = 20 * 1024 * 1024

# Typed value tokens, compared case-insensitively after trimming
TRUE_TOKENS = frozenset({"1", "yes", "on", "true"})
FALSE_TOKENS = frozenset({"0", "no", "off", "false"})
