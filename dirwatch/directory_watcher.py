"""Public entry point for watching files and directories for changes."""

import os
from collections.abc import Iterable
from threading import Thread
from typing import Optional

from dirwatch.containers import WatcherContainer
from dirwatch.file_watcher.base import AbstractDirectoryWatcher
from dirwatch.file_watcher.filters import SVN_DIR_NAME
from dirwatch.file_watcher.listeners import FileChangeListener
from dirwatch.file_watcher.metadata import WILDCARD_EXTENSION
from dirwatch.models import WatcherSettings
from dirwatch.utils import logger


class DirectoryWatcher(Thread):
    """Watches files and directories and notifies listeners of changes.

    The detection loop runs on this daemon thread; listeners are called from
    it. Targets and listeners may be added from any thread, before or after
    ``start()``. A watcher runs once: after ``set_active(False)`` a new
    instance is needed.

    Example:
        watcher = DirectoryWatcher(WatcherSettings(mode="polling", sleep_time=500))
        watcher.add_watch_directory("grails-app/conf", ["groovy", "yml"])
        watcher.add_listener(reload_listener)
        watcher.start()
        ...
        watcher.set_active(False)
    """

    SVN_DIR_NAME = SVN_DIR_NAME

    def __init__(
        self,
        settings: Optional[WatcherSettings] = None,
        backend: Optional[AbstractDirectoryWatcher] = None,
    ) -> None:
        """Initialize the directory watcher.

        Args:
            settings: Backend mode, sleep time and recursion; defaults apply when omitted
            backend: Explicit backend, bypassing the selection from settings
        """
        super().__init__(name="DirectoryWatcher", daemon=True)
        self.settings = settings or WatcherSettings()

        if backend is None:
            container = WatcherContainer()
            container.config.from_dict(self.settings.model_dump())
            backend = container.backend()
        self._backend = backend

    @property
    def backend(self) -> AbstractDirectoryWatcher:
        return self._backend

    @property
    def is_active(self) -> bool:
        return self._backend.is_active

    def set_active(self, active: bool) -> None:
        """Sets whether to keep watching; False stops the watcher for good."""
        self._backend.set_active(active)

    def set_sleep_time(self, sleep_time: int) -> None:
        """Sets the time in milliseconds between checks."""
        self._backend.set_sleep_time(sleep_time)

    def add_listener(self, listener: FileChangeListener) -> None:
        self._backend.add_listener(listener)

    def add_watch_file(self, path: str | os.PathLike[str]) -> None:
        self._backend.add_watch_file(path)

    def add_watch_directory(
        self,
        path: str | os.PathLike[str],
        extensions: str | Iterable[str] = WILDCARD_EXTENSION,
    ) -> None:
        """Adds a directory to watch for files with the given extensions.

        Args:
            path: The directory to watch
            extensions: One extension or several, without the leading dot;
                ``"*"`` (the default) accepts any file

        Raises:
            ValueError: If an extension starts with a dot or a path separator
        """
        if isinstance(extensions, str):
            extensions = [extensions]
        accepted = frozenset(extensions)

        separators = tuple(sep for sep in (".", os.sep, os.altsep) if sep)
        for extension in accepted:
            if extension.startswith(separators):
                raise ValueError(
                    f"Extension must not start with a separator: {extension!r}"
                )

        self._backend.add_watch_directory(path, accepted)

    def run(self) -> None:
        try:
            self._backend.run()
        except Exception:
            logger.exception("Directory watcher stopped after an unexpected error")
        finally:
            self._backend.set_active(False)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Request a stop and wait for the loop thread to finish."""
        self.set_active(False)
        if self.is_alive():
            self.join(timeout)
