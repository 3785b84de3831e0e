"""Conversion of raw INI values into Python types."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from .constants import FALSE_TOKENS, QUOTE, TRUE_TOKENS
from .exceptions import ValueParseError


def unquote(text: str) -> str:
    """Trim whitespace and drop one matched pair of outer double quotes.

    Examples:
        unquote('  "hello world" ')  # 'hello world'
        unquote('"half')  # '"half'
    """
    text = text.strip()
    if len(text) >= 2 and text.startswith(QUOTE) and text.endswith(QUOTE):
        return text[1:-1]
    return text


def parse_bool(text: str) -> bool:
    """Interpret ``1/yes/on/true`` and ``0/no/off/false``, ignoring case."""
    token = text.strip().lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise ValueError(f"not a boolean token: {text!r}")


def char(text: str) -> str:
    """Parse a value holding exactly one character."""
    if len(text) != 1:
        raise ValueError(f"expected a single character, got {len(text)}")
    return text


_BUILTIN_PARSERS: dict[object, Callable[[str], Any]] = {
    bool: parse_bool,
    int: lambda text: int(text.strip()),
    float: lambda text: float(text.strip()),
    str: str,
    Path: Path,
    char: char,
}


def _converter_for(kind: object) -> Callable[[str], Any]:
    if kind in _BUILTIN_PARSERS:
        return _BUILTIN_PARSERS[kind]
    from_ini_str = getattr(kind, "from_ini_str", None)
    if callable(from_ini_str):
        return from_ini_str
    if callable(kind):
        return kind
    raise TypeError(f"{kind!r} cannot parse INI values")


def parse_value(text: str, kind: object = str) -> Any:
    """Convert raw value text to `kind`.

    `kind` may be one of the built-in targets (``bool``, ``int``, ``float``,
    ``str``, ``pathlib.Path``, `char`), a class exposing a ``from_ini_str``
    classmethod, or any callable taking the text.

    Args:
        text: Raw value, already trimmed and unquoted by the read path.
        kind: Target type or converter.

    Returns:
        Any: Converted value.

    Raises:
        ValueParseError: If the converter rejects the text; the original
            exception is chained.
        TypeError: If `kind` cannot act as a converter.

    Examples:
        parse_value("On", bool)  # True
        parse_value("40", int)  # 40
    """
    converter = _converter_for(kind)
    try:
        return converter(text)
    except (ValueError, TypeError, ArithmeticError) as error:
        raise ValueParseError(text, getattr(kind, "__name__", repr(kind))) from error
