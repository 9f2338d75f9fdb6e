"""File watcher backends and listener interfaces."""

from .base import AbstractDirectoryWatcher
from .filters import (
    SVN_DIR_NAME,
    is_hidden,
    is_valid_directory_to_monitor,
    is_valid_file_to_monitor,
)
from .listeners import FileChangeListener, FileExtensionFileChangeListener
from .metadata import ChangeKind, FileMarker, WatchedDirectory
from .native import WatchServiceDirectoryWatcher
from .polling import PollingDirectoryWatcher

__all__ = [
    "AbstractDirectoryWatcher",
    "ChangeKind",
    "FileChangeListener",
    "FileExtensionFileChangeListener",
    "FileMarker",
    "PollingDirectoryWatcher",
    "SVN_DIR_NAME",
    "WatchServiceDirectoryWatcher",
    "WatchedDirectory",
    "is_hidden",
    "is_valid_directory_to_monitor",
    "is_valid_file_to_monitor",
]
