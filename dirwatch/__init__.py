"""In-process file and directory change detection."""

from .directory_watcher import DirectoryWatcher
from .file_watcher import FileChangeListener, FileExtensionFileChangeListener
from .models import WatcherSettings

__all__ = [
    "DirectoryWatcher",
    "FileChangeListener",
    "FileExtensionFileChangeListener",
    "WatcherSettings",
]
