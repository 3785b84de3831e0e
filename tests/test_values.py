from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from ini_inplace.exceptions import ValueParseError
from ini_inplace.values import char, parse_bool, parse_value, unquote


@pytest.mark.parametrize("token", ["1", "yes", "on", "true", "TRUE", " Yes ", "On"])
def test_true_tokens(token: str):
    assert parse_value(token, bool) is True


@pytest.mark.parametrize("token", ["0", "no", "off", "false", "FALSE", " No ", "Off"])
def test_false_tokens(token: str):
    assert parse_value(token, bool) is False


@pytest.mark.parametrize("token", ["", "2", "y", "enabled", "truthy"])
def test_invalid_boolean(token: str):
    with pytest.raises(ValueParseError):
        parse_value(token, bool)


def test_parse_bool_raises_value_error():
    with pytest.raises(ValueError):
        parse_bool("maybe")


def test_numbers():
    assert parse_value("40", int) == 40
    assert parse_value(" -7 ", int) == -7
    assert parse_value("2.5", float) == 2.5
    with pytest.raises(ValueParseError):
        parse_value("4.0", int)


def test_strings_and_paths():
    assert parse_value('"quoted"', str) == '"quoted"'
    assert parse_value("plain", str) == "plain"
    assert parse_value("/etc/app.ini", Path) == Path("/etc/app.ini")


def test_char():
    assert parse_value("x", char) == "x"
    assert parse_value("é", char) == "é"
    with pytest.raises(ValueParseError):
        parse_value("xy", char)
    with pytest.raises(ValueParseError):
        parse_value("", char)


def test_default_kind_is_str():
    assert parse_value('"x"') == '"x"'


@dataclass
class Resolution:
    width: int
    height: int

    @classmethod
    def from_ini_str(cls, text: str) -> "Resolution":
        width, height = text.lower().split("x")
        return cls(int(width), int(height))


def test_user_type_with_from_ini_str():
    assert parse_value("1920x1080", Resolution) == Resolution(1920, 1080)


def test_user_type_failure_is_wrapped():
    with pytest.raises(ValueParseError) as excinfo:
        parse_value("wide", Resolution)
    assert excinfo.value.kind == "Resolution"
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_plain_callable():
    assert parse_value("a,b,c", lambda text: text.split(",")) == ["a", "b", "c"]


def test_non_callable_kind_rejected():
    with pytest.raises(TypeError):
        parse_value("1", 42)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [('"x"', "x"), ('  "x"  ', "x"), ('"x', '"x'), ('x"', 'x"'), ('"', '"'), ("", "")],
)
def test_unquote(raw: str, expected: str):
    assert unquote(raw) == expected
