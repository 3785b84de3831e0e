"""Configuration loading and management."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, fields, replace
from pathlib import Path
import tomllib

from .constants import (
    COPY_BUFFER_SIZE,
    DEFAULT_COMMENT_MARKERS,
    DEFAULT_SIZE_LIMIT,
    DEFAULT_VALUE_DELIMITERS,
)
from .models import DuplicatePolicy


@dataclass(frozen=True)
class ParserConfig:
    """Configuration consulted by every scan.

    Attributes:
        comment_markers: Characters that begin an end-of-line comment.
        value_delimiters: Characters that separate a key from its value.
        trailing_comments: Whether comments after a key/value pair are
            recognised and preserved.
        line_continuation: Whether a line ending with ``\\`` joins the next
            physical line into one logical line.
        duplicate_policy: Resolution of keys repeated in the target section.
        size_limit: Maximum bytes a scan may consume, or None for no limit.
        copy_buffer_size: Window size in bytes used by the write path.

    Examples:
        ParserConfig(comment_markers=frozenset(";"), duplicate_policy=DuplicatePolicy.ERROR)
    """

    # Lexical rules
    comment_markers: frozenset[str] = DEFAULT_COMMENT_MARKERS
    value_delimiters: frozenset[str] = DEFAULT_VALUE_DELIMITERS
    trailing_comments: bool = True
    line_continuation: bool = True

    # Duplicates
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.USE_LAST

    # Limits
    size_limit: int | None = None
    copy_buffer_size: int = COPY_BUFFER_SIZE


# Base used by the command line, which reads untrusted files.
CLI_DEFAULT_CONFIG = ParserConfig(size_limit=DEFAULT_SIZE_LIMIT)

_POLICY_ALIASES = {
    "first": DuplicatePolicy.USE_FIRST,
    "use_first": DuplicatePolicy.USE_FIRST,
    "last": DuplicatePolicy.USE_LAST,
    "use_last": DuplicatePolicy.USE_LAST,
    "error": DuplicatePolicy.ERROR,
}


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`value_delimiters` must not be empty")
    """


def load_config(search_path: Path, base: ParserConfig | None = None) -> ParserConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.ini-inplace]`` table from `pyproject.toml` and the
    ``[ini-inplace]`` or ``[tool.ini-inplace]`` table from `.ini-inplace.toml`
    when present. Values found override `base`. TOML files that cannot be read
    or decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.
        base: Configuration supplying values the file leaves unset; defaults to
            `ParserConfig()`.

    Returns:
        ParserConfig: Loaded configuration, normalized.

    Raises:
        ConfigError: If a table is present but is not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("conf"), base=CLI_DEFAULT_CONFIG)
    """
    base = base or ParserConfig()
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", base, table_paths=[("tool", "ini-inplace")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".ini-inplace.toml",
            base,
            table_paths=[("ini-inplace",), ("tool", "ini-inplace")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return base


_MISSING = object()


def _load_from_file(
    config_file: Path, base: ParserConfig, table_paths: list[tuple[str, ...]]
) -> ParserConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, base, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, base: ParserConfig, config_file: Path, table_path: tuple[str, ...]
) -> ParserConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return base

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return base

    known = {field.name for field in fields(ParserConfig)}
    unknown = sorted(set(raw_config) - known)
    if unknown:
        raise ConfigError(
            f"Invalid `[{table_display}]` settings in {config_file}: "
            f"unknown keys {', '.join(unknown)}"
        )

    try:
        return replace(base, **raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def _as_charset(value: object, name: str) -> frozenset[str]:
    if isinstance(value, frozenset):
        return value
    if isinstance(value, str):
        return frozenset(value)
    if isinstance(value, Iterable):
        return frozenset(value)
    raise ConfigError(f"`{name}` must be a string or a list of characters")


def normalize_config(config: ParserConfig) -> ParserConfig:
    """Coerce loosely typed values (strings, lists, aliases) into canonical form.

    Args:
        config: Configuration possibly holding raw TOML or CLI values.

    Returns:
        ParserConfig: Configuration with frozensets, a `DuplicatePolicy` member
        and ``size_limit=0`` mapped to None.

    Raises:
        ConfigError: If a value cannot be coerced.
    """
    policy = config.duplicate_policy
    if isinstance(policy, str):
        try:
            policy = _POLICY_ALIASES[policy.strip().lower()]
        except KeyError as error:
            raise ConfigError(
                "`duplicate_policy` must be one of: " + ", ".join(sorted(_POLICY_ALIASES))
            ) from error

    size_limit = config.size_limit
    if size_limit == 0 and not isinstance(size_limit, bool):
        size_limit = None

    return replace(
        config,
        comment_markers=_as_charset(config.comment_markers, "comment_markers"),
        value_delimiters=_as_charset(config.value_delimiters, "value_delimiters"),
        duplicate_policy=policy,
        size_limit=size_limit,
    )


def validate_config(config: ParserConfig) -> None:
    """Validate a `ParserConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If markers or delimiters are not single characters,
            delimiters are empty or overlap comment markers, flags are not
            booleans, the policy is unknown, or numeric limits are non-positive.

    Examples:
        validate_config(ParserConfig(value_delimiters=frozenset("=:")))
    """
    config = normalize_config(config)

    for name, charset in (
        ("comment_markers", config.comment_markers),
        ("value_delimiters", config.value_delimiters),
    ):
        for char in charset:
            if not isinstance(char, str) or len(char) != 1:
                raise ConfigError(f"`{name}` entries must be single characters, got {char!r}")
            if char.isspace():
                raise ConfigError(f"`{name}` must not contain whitespace")

    if not config.value_delimiters:
        raise ConfigError("`value_delimiters` must not be empty")
    overlap = config.comment_markers & config.value_delimiters
    if overlap:
        raise ConfigError(
            "`comment_markers` and `value_delimiters` overlap: " + "".join(sorted(overlap))
        )

    if not isinstance(config.trailing_comments, bool):
        raise ConfigError("`trailing_comments` must be a boolean")
    if not isinstance(config.line_continuation, bool):
        raise ConfigError("`line_continuation` must be a boolean")
    if not isinstance(config.duplicate_policy, DuplicatePolicy):
        raise ConfigError("`duplicate_policy` must be a DuplicatePolicy")

    limits: dict[str, object] = {"copy_buffer_size": config.copy_buffer_size}
    if config.size_limit is not None:
        limits["size_limit"] = config.size_limit
    _ensure_integers(limits)
    _ensure_positive(limits)


def apply_overrides(config: ParserConfig, **overrides: object) -> ParserConfig:
    """Apply override values to a `ParserConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        ParserConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `ParserConfig`.

    Examples:
        updated = apply_overrides(config, duplicate_policy="first", size_limit=None)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(
    search_path: Path, base: ParserConfig | None = None, **overrides: object
) -> ParserConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        base: Defaults applied before configuration files.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        ParserConfig: Validated configuration ready for scanning.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), duplicate_policy="error")
    """
    config = load_config(search_path, base=base)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, object]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
