"""Pytest configuration and shared fixtures for dirwatch tests."""

import os
import time
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Generator

import pytest
from loguru import logger

from dirwatch.file_watcher.listeners import FileChangeListener


class RecordingListener(FileChangeListener):
    """Listener that remembers every notification it receives."""

    def __init__(self, name: str = "listener", journal: list[tuple[str, str, Path]] | None = None) -> None:
        self.name = name
        self.events: list[tuple[str, Path]] = []
        self.journal = journal
        self._lock = Lock()

    def _record(self, kind: str, path: Path) -> None:
        with self._lock:
            self.events.append((kind, path))
            if self.journal is not None:
                self.journal.append((self.name, kind, path))

    def on_new(self, path: Path) -> None:
        self._record("new", path)

    def on_change(self, path: Path) -> None:
        self._record("change", path)

    def new_paths(self) -> list[Path]:
        with self._lock:
            return [path for kind, path in self.events if kind == "new"]

    def changed_paths(self) -> list[Path]:
        with self._lock:
            return [path for kind, path in self.events if kind == "change"]


def touch_later(path: Path, content: str, seconds: int = 5) -> None:
    """Rewrite a file and push its mtime forward so the change is always visible."""
    path.write_text(content)
    stat_result = path.stat()
    bumped = stat_result.st_mtime_ns + seconds * 1_000_000_000
    os.utime(path, ns=(stat_result.st_atime_ns, bumped))


@pytest.fixture
def recorder() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def watched_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "watched"
    directory.mkdir()
    return directory


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Poll a predicate until it holds or the timeout expires."""

    def _wait_for(predicate: Callable[[], Any], timeout: float = 5.0, interval: float = 0.02) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return bool(predicate())

    return _wait_for


@pytest.fixture
def log_messages() -> Generator[list[str], None, None]:
    """Capture loguru output emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG", format="{level} {message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def touch() -> Callable[..., None]:
    return touch_later


@pytest.fixture
def make_listener() -> type[RecordingListener]:
    return RecordingListener
