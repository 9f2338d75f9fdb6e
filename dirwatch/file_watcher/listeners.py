"""Listener interfaces notified by the directory watchers."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from dirwatch.utils import get_filename_extension


class FileChangeListener(ABC):
    """Receives notifications about new and changed files.

    Callbacks run on the watcher's background thread and should return
    promptly, since the detection loop waits for them.
    """

    @abstractmethod
    def on_new(self, path: Path) -> None:
        """Called when a file is observed for the first time.

        Args:
            path: Absolute path of the new file
        """
        pass

    @abstractmethod
    def on_change(self, path: Path) -> None:
        """Called when a previously observed file was modified.

        Args:
            path: Absolute path of the changed file
        """
        pass


class FileExtensionFileChangeListener(FileChangeListener):
    """Listener that only reacts to files with one of the given extensions."""

    def __init__(self, extensions: Iterable[str]) -> None:
        self.extensions = list(extensions)

    def _matches(self, path: Path) -> bool:
        return get_filename_extension(path.name) in self.extensions

    def on_new(self, path: Path) -> None:
        if self._matches(path):
            self.on_new_with_extensions(path, self.extensions)

    def on_change(self, path: Path) -> None:
        if self._matches(path):
            self.on_change_with_extensions(path, self.extensions)

    @abstractmethod
    def on_new_with_extensions(self, path: Path, extensions: list[str]) -> None:
        pass

    @abstractmethod
    def on_change_with_extensions(self, path: Path, extensions: list[str]) -> None:
        pass
