from __future__ import annotations

import textwrap
import pytest
from pathlib import Path

from ini_inplace.config import (
    CLI_DEFAULT_CONFIG,
    ConfigError,
    ParserConfig,
    apply_overrides,
    build_config,
    load_config,
    normalize_config,
    validate_config,
)
from ini_inplace.models import DuplicatePolicy


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def _write_dotfile(base: Path, body: str) -> Path:
    path = base / ".ini-inplace.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_defaults():
    config = ParserConfig()

    assert config.comment_markers == frozenset({"#", ";"})
    assert config.value_delimiters == frozenset({"="})
    assert config.trailing_comments is True
    assert config.line_continuation is True
    assert config.duplicate_policy is DuplicatePolicy.USE_LAST
    assert config.size_limit is None
    assert config.copy_buffer_size == 8192
    assert CLI_DEFAULT_CONFIG.size_limit == 20 * 1024 * 1024


def test_config_is_immutable():
    config = ParserConfig()
    with pytest.raises(AttributeError):
        config.line_continuation = False  # type: ignore[misc]


def test_loads_config_from_pyproject(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.ini-inplace]
        comment_markers = ";"
        value_delimiters = ["=", ":"]
        trailing_comments = false
        line_continuation = false
        duplicate_policy = "error"
        size_limit = 4096
        copy_buffer_size = 512
        """,
    )

    config = load_config(tmp_path)

    assert config == ParserConfig(
        comment_markers=frozenset({";"}),
        value_delimiters=frozenset({"=", ":"}),
        trailing_comments=False,
        line_continuation=False,
        duplicate_policy=DuplicatePolicy.ERROR,
        size_limit=4096,
        copy_buffer_size=512,
    )


def test_loads_config_from_dotfile(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [ini-inplace]
        duplicate_policy = "first"
        """,
    )
    nested = tmp_path / "child"
    nested.mkdir()

    config = load_config(nested)

    assert config.duplicate_policy is DuplicatePolicy.USE_FIRST


def test_dotfile_accepts_tool_table(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [tool.ini-inplace]
        comment_markers = "!"
        """,
    )

    assert load_config(tmp_path).comment_markers == frozenset({"!"})


def test_load_config_walks_up_directories(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.ini-inplace]
        duplicate_policy = "use_first"
        """,
    )
    nested = tmp_path / "a" / "b" / "c"
    nested.mkdir(parents=True)

    config = load_config(nested)

    assert config.duplicate_policy is DuplicatePolicy.USE_FIRST


def test_empty_config_table_stops_inheritance(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.ini-inplace]
        duplicate_policy = "error"
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [tool.ini-inplace]
        """,
    )

    config = load_config(child)

    assert config.duplicate_policy is ParserConfig().duplicate_policy


def test_load_config_returns_base_when_missing(tmp_path: Path):
    assert load_config(tmp_path) == ParserConfig()
    assert load_config(tmp_path, base=CLI_DEFAULT_CONFIG) == CLI_DEFAULT_CONFIG


def test_file_values_override_base(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.ini-inplace]
        size_limit = 0
        """,
    )

    config = load_config(tmp_path, base=CLI_DEFAULT_CONFIG)

    assert config.size_limit is None


def test_load_config_skips_invalid_toml(tmp_path: Path):
    invalid_dir = tmp_path / "invalid"
    invalid_dir.mkdir()
    _write_pyproject(invalid_dir, "not = {valid")
    _write_pyproject(
        tmp_path,
        """
        [tool.ini-inplace]
        comment_markers = ";"
        """,
    )

    nested = invalid_dir / "child"
    nested.mkdir()
    config = load_config(nested)

    assert config.comment_markers == frozenset({";"})


def test_load_config_errors_on_unknown_keys(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.ini-inplace]
        comment_markers = ";"
        unexpected = true
        """,
    )

    with pytest.raises(ConfigError, match="unexpected"):
        load_config(tmp_path)


def test_load_config_errors_on_non_table(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool]
        ini-inplace = "yes"
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


@pytest.mark.parametrize(
    ("alias", "expected"),
    [
        ("first", DuplicatePolicy.USE_FIRST),
        ("USE_FIRST", DuplicatePolicy.USE_FIRST),
        ("last", DuplicatePolicy.USE_LAST),
        ("use_last", DuplicatePolicy.USE_LAST),
        ("error", DuplicatePolicy.ERROR),
    ],
)
def test_policy_aliases(alias: str, expected: DuplicatePolicy):
    config = normalize_config(ParserConfig(duplicate_policy=alias))  # type: ignore[arg-type]
    assert config.duplicate_policy is expected


def test_unknown_policy_rejected():
    with pytest.raises(ConfigError):
        normalize_config(ParserConfig(duplicate_policy="sometimes"))  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "config",
    [
        ParserConfig(value_delimiters=frozenset()),
        ParserConfig(value_delimiters=frozenset({"=="})),
        ParserConfig(comment_markers=frozenset({"//"})),
        ParserConfig(comment_markers=frozenset({" "})),
        ParserConfig(comment_markers=frozenset({"#", "="})),
        ParserConfig(trailing_comments="yes"),  # type: ignore[arg-type]
        ParserConfig(line_continuation=1),  # type: ignore[arg-type]
        ParserConfig(size_limit=-1),
        ParserConfig(size_limit="big"),  # type: ignore[arg-type]
        ParserConfig(copy_buffer_size=0),
        ParserConfig(copy_buffer_size=True),  # type: ignore[arg-type]
        ParserConfig(comment_markers=3),  # type: ignore[arg-type]
    ],
)
def test_validate_config_rejects_invalid_values(config: ParserConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_validate_config_accepts_no_comment_markers():
    validate_config(ParserConfig(comment_markers=frozenset()))


def test_apply_overrides_ignores_none():
    config = ParserConfig()
    assert apply_overrides(config, comment_markers=None, size_limit=None) is config
    assert apply_overrides(config, line_continuation=False).line_continuation is False


def test_apply_overrides_rejects_unknown_field():
    with pytest.raises(TypeError):
        apply_overrides(ParserConfig(), unknown=1)


def test_build_config_applies_overrides_after_files(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.ini-inplace]
        duplicate_policy = "error"
        comment_markers = ";"
        """,
    )

    config = build_config(tmp_path, duplicate_policy="first", value_delimiters=":=")

    assert config.duplicate_policy is DuplicatePolicy.USE_FIRST
    assert config.comment_markers == frozenset({";"})
    assert config.value_delimiters == frozenset({":", "="})


def test_build_config_validates(tmp_path: Path):
    with pytest.raises(ConfigError):
        build_config(tmp_path, value_delimiters="#")
