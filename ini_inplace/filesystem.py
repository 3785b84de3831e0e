"""Filesystem helpers for ini-inplace."""

from __future__ import annotations

import errno
import logging
import os
import shutil
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

from .constants import DEFAULT_SIZE_LIMIT

log = logging.getLogger(__name__)

SIZE_LIMIT_ENV_VAR = "INI_INPLACE_SIZE_LIMIT"
CACHE_DIR_ENV_VAR = "XDG_CACHE_HOME"
TEMP_PREFIX = ".ini-inplace-"


def get_size_limit(default: int | None = DEFAULT_SIZE_LIMIT) -> int | None:
    """Resolve the maximum number of bytes read from an INI file.

    Args:
        default: Fallback value in bytes when the environment variable is unset.

    Returns:
        int | None: Limit in bytes, or None when disabled with ``0``.

    Raises:
        ValueError: If the environment value is not a non-negative integer.

    Examples:
        os.environ["INI_INPLACE_SIZE_LIMIT"] = "1048576"
        limit = get_size_limit()
    """
    env_value = os.environ.get(SIZE_LIMIT_ENV_VAR)
    if env_value is None:
        return default

    try:
        limit = int(env_value)
    except ValueError as error:
        error_message = (
            f"Invalid value for {SIZE_LIMIT_ENV_VAR}: {env_value} (expected non-negative integer)"
        )
        raise ValueError(error_message) from error

    if limit < 0:
        error_message = f"{SIZE_LIMIT_ENV_VAR} must be a non-negative integer, got {limit}."
        raise ValueError(error_message)

    return limit or None


def contains_symlink(path: Path) -> bool:
    """Check whether a path or any parent directory is a symlink.

    Args:
        path: Path to inspect.

    Returns:
        bool: True when a symlink is encountered, otherwise False.
    """
    for candidate in (path, *path.parents):
        try:
            if candidate.is_symlink():
                return True
        except OSError:
            continue
    return False


def normalize_filepath(raw_path: str) -> Path:
    """Resolve and validate the path of an INI file.

    Args:
        raw_path: User-supplied path (absolute, relative or ``~``-prefixed).

    Returns:
        Path: Absolute path to the file.

    Raises:
        ValueError: If the path does not exist, is not a regular file, or
            traverses a symlink.

    Examples:
        normalize_filepath("conf/app.ini")
    """
    path = Path(raw_path).expanduser()

    if contains_symlink(path):
        error_message = f"Symlinks are not supported for security reasons: {path}"
        raise ValueError(error_message)

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        error_message = f"{path} does not exist."
        raise ValueError(error_message) from error
    except OSError as error:
        error_message = f"Error resolving {path}: {error}"
        raise ValueError(error_message) from error

    if not resolved.is_file():
        error_message = f"{resolved} is not a regular file."
        raise ValueError(error_message)

    return resolved


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Return stat information for a file while disallowing symlinks.

    Raises:
        IOError: If the path is inaccessible, a symlink, or not a regular file.
    """
    try:
        stat_result = os.stat(filepath, follow_symlinks=False)
    except OSError as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error

    if stat.S_ISLNK(stat_result.st_mode):
        error_message = f"Symlinks are not supported: {filepath}."
        raise IOError(error_message)

    if not stat.S_ISREG(stat_result.st_mode):
        error_message = f"{filepath} is not a regular file."
        raise IOError(error_message)

    return stat_result


def ensure_file_unchanged(
    expected_stat: os.stat_result, current_stat: os.stat_result, filepath: Path
):
    """Detect changes between two filesystem snapshots.

    Raises:
        IOError: If inode, device, size, or modification time differ.
    """
    fingerprint_before = (
        getattr(expected_stat, "st_ino", None),
        getattr(expected_stat, "st_dev", None),
        expected_stat.st_size,
        expected_stat.st_mtime_ns,
    )
    fingerprint_after = (
        getattr(current_stat, "st_ino", None),
        getattr(current_stat, "st_dev", None),
        current_stat.st_size,
        current_stat.st_mtime_ns,
    )

    if fingerprint_before != fingerprint_after:
        error_message = f"{filepath} changed during processing; refusing to overwrite."
        raise IOError(error_message)


def safe_open(filepath: Path) -> BinaryIO:
    """Open a file for binary reading with consistent error handling.

    Raises:
        IOError: If the path is missing, inaccessible, or not a file.

    Examples:
        with safe_open(Path("app.ini")) as handle:
            first_line = handle.readline()
    """
    try:
        return open(filepath, "rb")
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    ) as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error


def cache_directory() -> Path:
    """Return the per-user cache directory (``$XDG_CACHE_HOME`` or ``~/.cache``)."""
    env_value = os.environ.get(CACHE_DIR_ENV_VAR)
    if env_value:
        return Path(env_value)
    return Path.home() / ".cache"


def scratch_directories(filepath: Path) -> list[Path | None]:
    """List candidate directories for the scratch file, best first.

    The target's own directory keeps the final rename on one device. None
    stands for the system temporary directory.
    """
    return [filepath.parent, cache_directory(), None]


def _open_scratch(filepath: Path) -> BinaryIO:
    last_error: OSError | None = None
    for directory in scratch_directories(filepath):
        try:
            return tempfile.NamedTemporaryFile(
                mode="wb", prefix=TEMP_PREFIX, delete=False, dir=directory
            )
        except OSError as error:
            log.debug("Cannot create scratch file in %s: %s", directory or "system temp", error)
            last_error = error
    raise IOError(f"Unable to create a temporary file for {filepath}: {last_error}")


def _move_into_place(temp_path: Path, filepath: Path) -> None:
    try:
        os.replace(temp_path, filepath)
    except OSError as error:
        if error.errno != errno.EXDEV:
            raise
        # Scratch file lives on another device: overwrite the target in place.
        log.warning("Copying %s over %s (cross-device rename)", temp_path, filepath)
        shutil.copyfile(temp_path, filepath)


def replace_file(
    filepath: Path,
    render: Callable[[BinaryIO], None],
    expected_stat: os.stat_result,
    initial_stat: os.stat_result,
    warn: Callable[[str], None] | None = None,
):
    """Atomically rewrite a file with content produced by `render`.

    `render` receives a binary scratch file and writes the new content. The
    scratch file is created next to `filepath` when possible, falling back to
    the user cache directory and then the system temporary directory, and is
    renamed over `filepath` once complete.

    Args:
        filepath: File to replace.
        render: Callback writing the new content.
        expected_stat: File stat captured after scanning, used to detect races.
        initial_stat: File stat captured before scanning, used to preserve access time.
        warn: Optional callback for emitting non-fatal warnings (e.g., ownership preservation).

    Returns:
        None.

    Raises:
        IOError: If the file changes between scanning and writing or cannot be
            replaced.

    Examples:
        replace_file(path, lambda out: parser.write(src, out, None, "k", "v"), post, pre)
    """
    current_stat = collect_file_stat(filepath)
    ensure_file_unchanged(expected_stat, current_stat, filepath)

    # Capture all metadata for preservation
    permissions = stat.S_IMODE(expected_stat.st_mode)
    uid = getattr(expected_stat, "st_uid", None)
    gid = getattr(expected_stat, "st_gid", None)
    atime_ns = initial_stat.st_atime_ns

    temp_path: Path | None = None
    try:
        with _open_scratch(filepath) as tmp_file:
            temp_path = Path(tmp_file.name)
            render(tmp_file)
            ensure_file_unchanged(expected_stat, collect_file_stat(filepath), filepath)

            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            os.chmod(tmp_file.name, permissions)

            # Attempt to preserve ownership (requires privileges and platform support)
            if uid is not None and gid is not None and hasattr(os, "chown"):
                try:
                    os.chown(tmp_file.name, uid, gid)
                except PermissionError:
                    message = (
                        f"Warning: Could not preserve file ownership for {filepath.name} "
                        "(requires elevated privileges)"
                    )
                    if warn is not None:
                        warn(message)
                    else:
                        log.warning(message)

        _move_into_place(temp_path, filepath)
        log.debug("Replaced %s", filepath)

        # mtime reflects the edit; only the original atime is restored
        current_stat = filepath.stat()
        os.utime(filepath, ns=(atime_ns, current_stat.st_mtime_ns))
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass
