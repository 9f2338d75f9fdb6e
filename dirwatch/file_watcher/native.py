"""Directory watcher backend driven by OS change notifications via watchdog."""

import os
import stat
import time
from collections.abc import Callable, Collection
from pathlib import Path
from queue import Empty, Queue
from typing import Any, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch

from dirwatch.file_watcher.base import DEFAULT_SLEEP_TIME
from dirwatch.file_watcher.filters import (
    is_valid_directory_to_monitor,
    is_valid_file_to_monitor,
)
from dirwatch.file_watcher.metadata import WatchedDirectory
from dirwatch.file_watcher.polling import PollingDirectoryWatcher
from dirwatch.utils import logger

_STOP = object()


def _decode_path(raw_path: str | bytes) -> str:
    # Handle both string and bytes paths
    if isinstance(raw_path, bytes):
        return raw_path.decode("utf-8", errors="replace")
    return raw_path


def _directory_identity(directory: Path) -> Optional[tuple[int, int]]:
    try:
        st = os.stat(directory)
    except OSError:
        return None
    if not stat.S_ISDIR(st.st_mode):
        return None
    return st.st_dev, st.st_ino


class QueueingEventHandler(FileSystemEventHandler):
    """Forwards file paths from watchdog's threads to the watcher loop."""

    def __init__(self, events: "Queue[Any]") -> None:
        super().__init__()
        self.events = events

    def _enqueue(self, raw_path: str | bytes) -> None:
        if raw_path:
            self.events.put(Path(_decode_path(raw_path)))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._enqueue(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._enqueue(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._enqueue(getattr(event, "dest_path", ""))


class WatchServiceDirectoryWatcher(PollingDirectoryWatcher):
    """Waits for OS notifications instead of sleeping between scans.

    Notifications only name candidate paths. Each one is checked against the
    watched targets with the same filters as a polling scan and compared with
    the last recorded marker, so repeated notifications for one write
    coalesce and "new" versus "changed" never depends on the event type.

    The queue wait is bounded by ``sleep_time`` and a stop request pushes a
    sentinel, so the loop never blocks past a stop. If the observer cannot be
    started or its thread dies, the watcher degrades to polling.
    """

    def __init__(
        self,
        sleep_time: int = DEFAULT_SLEEP_TIME,
        recursive: bool = False,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        super().__init__(sleep_time=sleep_time, recursive=recursive)
        self._events: "Queue[Any]" = Queue()
        self._event_handler = QueueingEventHandler(self._events)
        self._observer = observer_factory()
        self._wanted: dict[tuple[Path, bool], None] = {}
        self._watches: dict[tuple[Path, bool], tuple[ObservedWatch, tuple[int, int]]] = {}

    def add_watch_file(self, path: str | os.PathLike[str]) -> None:
        resolved = self._register_file(path)
        if not resolved.exists():
            logger.warning("Watched file does not exist yet: {}", resolved)
        self._schedule(resolved.parent, recursive=False)

    def add_watch_directory(
        self, path: str | os.PathLike[str], extensions: Collection[str]
    ) -> None:
        target = WatchedDirectory(Path(path), frozenset(extensions))
        self._register_directory(target)
        self._schedule(target.path, recursive=self.recursive)

    def _schedule(self, directory: Path, recursive: bool, retry: bool = False) -> bool:
        """Start a native watch on ``directory``; returns True if one was added.

        Directories that cannot be watched yet stay wanted and are retried by
        ``_refresh_watches``.
        """
        log = logger.debug if retry else logger.warning
        with self._lock:
            key = (directory, recursive)
            self._wanted.setdefault(key, None)
            if key in self._watches:
                return False
            identity = _directory_identity(directory)
            if identity is None:
                log("Watcher directory does not exist: {}", directory)
                return False
            try:
                watch = self._observer.schedule(
                    self._event_handler, str(directory), recursive=recursive
                )
            except OSError as e:
                log("Cannot watch {} natively: {}", directory, e)
                return False
            self._watches[key] = (watch, identity)
            logger.debug("Scheduled native watch on {} (recursive: {})", directory, recursive)
            return True

    def _refresh_watches(self) -> bool:
        """Drop watches that ended and retry every wanted directory.

        A watch ends when its directory is removed or replaced, which also
        stops its emitter. Returns True if any watch was (re)established.
        """
        stopped = {
            emitter.watch for emitter in list(self._observer.emitters) if not emitter.is_alive()
        }
        with self._lock:
            for key, (watch, identity) in list(self._watches.items()):
                if watch in stopped or _directory_identity(key[0]) != identity:
                    logger.info("Native watch on {} ended", key[0])
                    del self._watches[key]
                    try:
                        self._observer.unschedule(watch)
                    except (KeyError, OSError) as e:
                        logger.debug("Cannot unschedule watch on {}: {}", key[0], e)

            added = False
            for directory, recursive in list(self._wanted):
                if self._schedule(directory, recursive, retry=True):
                    added = True
        return added

    def _wake(self) -> None:
        self._events.put(_STOP)

    def run(self) -> None:
        try:
            self._observer.start()
        except OSError as e:
            logger.error("Native file watching unavailable, falling back to polling: {}", e)
            self.poll_until_stopped()
            return

        logger.info("Native directory watcher started")
        try:
            # Files written between registration and start produced no events
            self.scan_targets()
            self._wait_for_events()
        finally:
            self._stop_observer()
            logger.info("Native directory watcher stopped")

    def _wait_for_events(self) -> None:
        next_refresh = time.monotonic() + self.sleep_time / 1000.0
        while self.is_active:
            try:
                item = self._events.get(timeout=self.sleep_time / 1000.0)
            except Empty:
                if not self._observer.is_alive():
                    logger.error("Native observer stopped unexpectedly, falling back to polling")
                    self.poll_until_stopped()
                    return
            else:
                for path in self._drain(item):
                    if not self.is_active:
                        return
                    self.dispatch(path)

            if self.is_active and time.monotonic() >= next_refresh:
                # Catch up on files created while a directory was unwatched
                if self._refresh_watches():
                    self.scan_targets()
                next_refresh = time.monotonic() + self.sleep_time / 1000.0

    def _drain(self, first: Any) -> list[Path]:
        """Collect every queued path, dropping duplicates and the stop sentinel."""
        batch: dict[Path, None] = {}
        item = first
        while True:
            if item is not _STOP:
                batch.setdefault(item, None)
            try:
                item = self._events.get_nowait()
            except Empty:
                return list(batch)

    def dispatch(self, path: Path) -> None:
        """Notify listeners about ``path`` if it belongs to a watched target."""
        if self._is_watched(path):
            self._check_file(path)

    def _is_watched(self, path: Path) -> bool:
        with self._lock:
            if path in self._watched_files:
                return True
        _, directories = self._snapshot_targets()
        return any(
            self._is_inside(target.path, path)
            and is_valid_file_to_monitor(path, target.extensions)
            for target in directories
        )

    def _is_inside(self, directory: Path, path: Path) -> bool:
        parent = path.parent
        if parent == directory:
            return True
        if not self.recursive or directory not in parent.parents:
            return False

        # Every directory between the target and the file must qualify too
        while parent != directory:
            if not is_valid_directory_to_monitor(parent):
                return False
            parent = parent.parent
        return True

    def _stop_observer(self) -> None:
        try:
            self._observer.stop()
            if self._observer.is_alive():
                self._observer.join(timeout=5.0)
        except Exception:
            logger.exception("Error while stopping the native observer")
