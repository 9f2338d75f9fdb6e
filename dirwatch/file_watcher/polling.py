"""Directory watcher backend that polls modification times."""

import os
from collections.abc import Collection
from pathlib import Path

from dirwatch.file_watcher.base import AbstractDirectoryWatcher
from dirwatch.file_watcher.filters import (
    is_valid_directory_to_monitor,
    is_valid_file_to_monitor,
)
from dirwatch.file_watcher.metadata import WatchedDirectory
from dirwatch.utils import logger


class PollingDirectoryWatcher(AbstractDirectoryWatcher):
    """Scans every target, then sleeps ``sleep_time`` milliseconds.

    Works on any filesystem. A file registered before it exists is kept on
    the watch list and reported through ``on_new`` once it shows up.
    """

    def add_watch_file(self, path: str | os.PathLike[str]) -> None:
        resolved = self._register_file(path)
        if not resolved.exists():
            logger.debug("Watching {} before it exists", resolved)

    def add_watch_directory(
        self, path: str | os.PathLike[str], extensions: Collection[str]
    ) -> None:
        self._register_directory(WatchedDirectory(Path(path), frozenset(extensions)))

    def run(self) -> None:
        logger.info(
            "Polling directory watcher started (interval: {}ms)", self.sleep_time
        )
        self.poll_until_stopped()
        logger.info("Polling directory watcher stopped")

    def poll_until_stopped(self) -> None:
        while self.is_active:
            self.scan_targets()
            if self._wait(self.sleep_time):
                break

    def scan_targets(self) -> None:
        """Run one detection pass over every watched file and directory."""
        files, directories = self._snapshot_targets()

        for path in files:
            if not self.is_active:
                return
            self._check_file(path)

        for target in directories:
            if not self.is_active:
                return
            self._scan_directory(target.path, target.extensions)

    def _scan_directory(self, directory: Path, extensions: Collection[str]) -> None:
        for child in self._list_directory(directory):
            if not self.is_active:
                return
            if is_valid_file_to_monitor(child, extensions):
                self._check_file(child)
            elif self.recursive and is_valid_directory_to_monitor(child):
                self._scan_directory(child, extensions)
