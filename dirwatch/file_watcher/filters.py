"""Predicates deciding which filesystem entries are worth watching."""

import os
import stat
from collections.abc import Collection
from pathlib import Path

from dirwatch.file_watcher.metadata import WILDCARD_EXTENSION
from dirwatch.utils import get_filename_extension

SVN_DIR_NAME = ".svn"


def is_hidden(entry: str | os.PathLike[str]) -> bool:
    """Check the dot-file convention and, on Windows, the hidden attribute."""
    path = Path(entry)
    if path.name.startswith("."):
        return True

    try:
        attributes = getattr(path.stat(), "st_file_attributes", 0)
    except OSError:
        return False
    return bool(attributes & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0))


def is_valid_directory_to_monitor(entry: str | os.PathLike[str]) -> bool:
    path = Path(entry)
    return path.is_dir() and not is_hidden(path) and path.name != SVN_DIR_NAME


def is_valid_file_to_monitor(
    entry: str | os.PathLike[str], extensions: Collection[str]
) -> bool:
    """Check whether a file qualifies for observation.

    Args:
        entry: File to check, relative paths are resolved against the cwd
        extensions: Accepted extensions without a leading dot, or ``"*"``

    Returns:
        True if the entry is a visible regular file outside any ``.svn``
        directory and its extension is accepted
    """
    path = Path(entry).absolute()
    if SVN_DIR_NAME in path.parts[:-1]:
        return False
    if path.is_dir() or is_hidden(path) or path.name.startswith("."):
        return False
    return (
        WILDCARD_EXTENSION in extensions
        or get_filename_extension(path.name) in extensions
    )
