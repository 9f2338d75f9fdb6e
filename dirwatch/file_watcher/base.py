"""Base directory watcher backend shared by the polling and native variants."""

import os
import stat
from abc import ABC, abstractmethod
from collections.abc import Collection
from pathlib import Path
from threading import Event, RLock
from typing import Optional

from dirwatch.file_watcher.filters import (
    is_valid_directory_to_monitor,
    is_valid_file_to_monitor,
)
from dirwatch.file_watcher.listeners import FileChangeListener
from dirwatch.file_watcher.metadata import ChangeKind, FileMarker, WatchedDirectory
from dirwatch.utils import logger

DEFAULT_SLEEP_TIME = 3000


class AbstractDirectoryWatcher(ABC):
    """Backend for DirectoryWatcher.

    Holds the state both variants share: the listeners, the watched targets,
    the last observed marker of every file and the stop flag. Subclasses
    implement registration and the detection loop in ``run``.

    The stop flag is a ``threading.Event`` so that a request made on any
    thread is seen by the loop thread immediately and also cuts its sleep
    short. Once stopped, a backend cannot be reactivated.
    """

    def __init__(self, sleep_time: int = DEFAULT_SLEEP_TIME, recursive: bool = False) -> None:
        self.set_sleep_time(sleep_time)
        self.recursive = recursive
        self._listeners: list[FileChangeListener] = []
        self._watched_files: dict[Path, None] = {}
        self._watched_directories: list[WatchedDirectory] = []
        self._last_seen: dict[Path, Optional[FileMarker]] = {}
        self._stop_requested = Event()
        self._lock = RLock()

    @property
    def is_active(self) -> bool:
        return not self._stop_requested.is_set()

    def set_active(self, active: bool) -> None:
        """Sets whether the watcher keeps running.

        Args:
            active: False to stop watching. True is only meaningful before a
                stop; a stopped watcher stays stopped.
        """
        if active:
            if not self.is_active:
                logger.warning("Ignoring reactivation of a stopped directory watcher")
            return

        if self.is_active:
            self._stop_requested.set()
            self._wake()
            logger.debug("Stop requested for {}", type(self).__name__)

    def set_sleep_time(self, sleep_time: int) -> None:
        """Sets the time in milliseconds to wait between checks.

        Raises:
            ValueError: If ``sleep_time`` is below one millisecond.
        """
        if sleep_time < 1:
            raise ValueError(f"sleep_time must be at least 1 millisecond, got {sleep_time}")
        self.sleep_time = sleep_time

    def add_listener(self, listener: FileChangeListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    @abstractmethod
    def add_watch_file(self, path: str | os.PathLike[str]) -> None:
        """Adds a single file to the watch list.

        Args:
            path: The file to watch
        """
        pass

    @abstractmethod
    def add_watch_directory(
        self, path: str | os.PathLike[str], extensions: Collection[str]
    ) -> None:
        """Adds a directory whose files with the given extensions are watched.

        No extension may start with a dot; DirectoryWatcher checks that
        before delegating here.

        Args:
            path: The directory to watch
            extensions: Accepted extensions, ``"*"`` for any
        """
        pass

    @abstractmethod
    def run(self) -> None:
        """Runs the detection loop until the watcher is deactivated."""
        pass

    def fire_on_new(self, path: Path) -> None:
        self._fire(ChangeKind.NEW, path)

    def fire_on_change(self, path: Path) -> None:
        self._fire(ChangeKind.CHANGED, path)

    def _fire(self, kind: ChangeKind, path: Path) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            if not self.is_active:
                return
            try:
                if kind is ChangeKind.NEW:
                    listener.on_new(path)
                else:
                    listener.on_change(path)
            except Exception:
                logger.exception(
                    "Listener {!r} failed handling {} event for {}",
                    listener,
                    kind.value,
                    path,
                )

    def _wake(self) -> None:
        """Hook for variants whose loop blocks on something other than the stop flag."""

    def _wait(self, milliseconds: int) -> bool:
        """Sleep up to ``milliseconds``; returns True when a stop was requested."""
        return self._stop_requested.wait(milliseconds / 1000.0)

    def _register_file(self, path: str | os.PathLike[str]) -> Path:
        """Add a file target and record its current state without notifying."""
        resolved = Path(path).absolute()
        marker = self._read_marker(resolved)
        with self._lock:
            self._watched_files.setdefault(resolved, None)
            self._last_seen.setdefault(resolved, marker)
        return resolved

    def _register_directory(self, target: WatchedDirectory) -> None:
        """Add a directory target and record the files already in it."""
        with self._lock:
            self._watched_directories.append(target)
        self._cache_directory(target.path, target.extensions)

    def _cache_directory(self, directory: Path, extensions: Collection[str]) -> None:
        for child in self._list_directory(directory):
            if is_valid_file_to_monitor(child, extensions):
                marker = self._read_marker(child)
                if marker is not None:
                    with self._lock:
                        self._last_seen.setdefault(child, marker)
            elif self.recursive and is_valid_directory_to_monitor(child):
                self._cache_directory(child, extensions)

    def _snapshot_targets(self) -> tuple[list[Path], list[WatchedDirectory]]:
        with self._lock:
            return list(self._watched_files), list(self._watched_directories)

    def _check_file(self, path: Path) -> None:
        """Compare a file against its last marker and notify the listeners."""
        kind = self._classify(path)
        if kind is ChangeKind.NEW:
            logger.debug("New file detected: {}", path)
            self.fire_on_new(path)
        elif kind is ChangeKind.CHANGED:
            logger.debug("File change detected: {}", path)
            self.fire_on_change(path)

    def _classify(self, path: Path) -> Optional[ChangeKind]:
        marker = self._read_marker(path)
        if marker is None:
            return None

        with self._lock:
            previous = self._last_seen.get(path)
            if previous == marker:
                return None
            self._last_seen[path] = marker

        return ChangeKind.NEW if previous is None else ChangeKind.CHANGED

    @staticmethod
    def _read_marker(path: Path) -> Optional[FileMarker]:
        try:
            st = os.stat(path)
        except OSError as e:
            logger.debug("Cannot stat {}: {}", path, e)
            return None
        if stat.S_ISDIR(st.st_mode):
            return None
        return FileMarker(st.st_mtime_ns, st.st_size)

    @staticmethod
    def _list_directory(directory: Path) -> list[Path]:
        try:
            return list(directory.iterdir())
        except OSError as e:
            logger.debug("Cannot list {}: {}", directory, e)
            return []
