"""
Gets or sets a single value in an INI file.
`set` rewrites the file atomically, leaving comments and formatting untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

import click
from .config import CLI_DEFAULT_CONFIG, ConfigError, build_config
from .exceptions import IniError
from .filesystem import (
    collect_file_stat,
    get_size_limit,
    normalize_filepath,
    replace_file,
    safe_open,
)
from .parser import IniParser

__all__ = ["cli"]

POLICY_CHOICES = {"first": "use_first", "last": "use_last", "error": "error"}


def parser_options(command):
    """Attach the options that override parser configuration."""
    options = [
        click.option("--comment-markers", help="Characters starting a comment (default: #;)"),
        click.option("--delimiters", help="Characters separating key and value (default: =)"),
        click.option(
            "--duplicates",
            type=click.Choice(sorted(POLICY_CHOICES)),
            help="Which occurrence of a repeated key to use",
        ),
        click.option(
            "--continuation/--no-continuation",
            default=None,
            help="Join lines ending with a backslash",
        ),
        click.option("--size-limit", type=int, help="Maximum bytes to read (0 disables)"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def split_arguments(arguments: tuple[str, ...], required: int) -> tuple[str | None, list[str]]:
    """Separate the optional leading section from the required arguments.

    An empty section argument selects the global namespace.

    Raises:
        click.UsageError: If the argument count is neither `required` nor
            `required` + 1.
    """
    if len(arguments) == required:
        return None, list(arguments)
    if len(arguments) == required + 1:
        section = arguments[0]
        return (section if section.strip() else None), list(arguments[1:])
    raise click.UsageError(
        f"expected {required} or {required + 1} arguments, received {len(arguments)}"
    )


def resolve_parser(
    filepath: Path,
    comment_markers: str | None,
    delimiters: str | None,
    duplicates: str | None,
    continuation: bool | None,
    size_limit: int | None,
) -> IniParser:
    """Build an `IniParser` from configuration files, environment and CLI overrides.

    Raises:
        click.BadParameter: If the configuration is invalid.
        click.ClickException: If the size limit environment variable is invalid.
    """
    try:
        config = build_config(
            filepath.parent,
            base=CLI_DEFAULT_CONFIG,
            comment_markers=comment_markers,
            value_delimiters=delimiters,
            duplicate_policy=POLICY_CHOICES.get(duplicates) if duplicates else None,
            line_continuation=continuation,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        env_size_limit = get_size_limit(default=config.size_limit)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    if size_limit is None:
        size_limit = env_size_limit
    try:
        return IniParser(replace(config, size_limit=size_limit or None))
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error


def _resolve_filepath(raw_path: str) -> Path:
    try:
        return normalize_filepath(raw_path)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error


@click.group()
@click.version_option()
@click.option("-v", "--verbose", is_flag=True, help="Log debugging details to stderr")
def cli(verbose: bool = False):
    """Get or set values in INI files while preserving formatting and comments."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@cli.command()
@parser_options
@click.argument("arguments", nargs=-1, required=True, metavar="[SECTION] KEY PATH")
def get(arguments: tuple[str, ...], **overrides):
    """
    Print the value of KEY, or nothing when it is absent.

    SECTION is the section name without brackets; omit it or pass "" for the
    global namespace.

    Raises:
        click.ClickException: If the file cannot be read or the key is
            ambiguous under the ``error`` duplicate policy.

    Examples:
        ini-inplace get server port app.ini
    """
    section, (key, raw_path) = split_arguments(arguments, 2)
    filepath = _resolve_filepath(raw_path)
    parser = resolve_parser(filepath, **overrides)

    try:
        with safe_open(filepath) as source:
            value = parser.read_raw(source, section, key)
    except (IniError, IOError, UnicodeDecodeError) as error:
        raise click.ClickException(str(error)) from error

    if value is not None:
        click.echo(value)


@cli.command(name="set")
@parser_options
@click.argument("arguments", nargs=-1, required=True, metavar="[SECTION] KEY VALUE PATH")
def set_value(arguments: tuple[str, ...], **overrides):
    """
    Set KEY to VALUE, rewriting PATH in place.

    SECTION is the section name without brackets; omit it or pass "" for the
    global namespace. A missing key is added to the end of its section, and a
    missing section is appended to the file.

    Raises:
        click.ClickException: If the file cannot be read or replaced, or the key
            is ambiguous under the ``error`` duplicate policy.

    Examples:
        ini-inplace set server port 8080 app.ini
    """
    section, (key, value, raw_path) = split_arguments(arguments, 3)
    filepath = _resolve_filepath(raw_path)
    parser = resolve_parser(filepath, **overrides)

    def render(destination):
        with safe_open(filepath) as source:
            parser.write(source, destination, section, key, value)

    try:
        initial_stat = collect_file_stat(filepath)
        replace_file(
            filepath,
            render,
            initial_stat,
            initial_stat,
            warn=lambda message: click.echo(message, err=True),
        )
    except (IniError, IOError) as error:
        raise click.ClickException(str(error)) from error


if __name__ == "__main__":
    cli()
