import os
from pathlib import Path
from typing import Any, Callable
from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from dirwatch import DirectoryWatcher, WatcherSettings
from dirwatch.file_watcher.base import AbstractDirectoryWatcher
from dirwatch.file_watcher.native import WatchServiceDirectoryWatcher
from dirwatch.file_watcher.polling import PollingDirectoryWatcher


class TestBackendSelection:
    """Choosing the backend from the watcher settings."""

    def test_default_is_native_with_three_second_interval(self) -> None:
        watcher = DirectoryWatcher()

        assert isinstance(watcher.backend, WatchServiceDirectoryWatcher)
        assert watcher.backend.sleep_time == 3000
        assert watcher.daemon

    def test_polling_mode(self) -> None:
        watcher = DirectoryWatcher(WatcherSettings(mode="polling", sleep_time=250, recursive=True))

        assert type(watcher.backend) is PollingDirectoryWatcher
        assert watcher.backend.sleep_time == 250
        assert watcher.backend.recursive

    def test_each_watcher_gets_its_own_backend(self) -> None:
        first = DirectoryWatcher(WatcherSettings(mode="polling"))
        second = DirectoryWatcher(WatcherSettings(mode="polling"))

        assert first.backend is not second.backend

    def test_explicit_backend_wins(self) -> None:
        backend = PollingDirectoryWatcher(sleep_time=10)

        watcher = DirectoryWatcher(backend=backend)

        assert watcher.backend is backend

    @pytest.mark.parametrize("settings", [{"mode": "inotify"}, {"sleep_time": 0}, {"sleep_time": -5}])
    def test_invalid_settings_are_rejected(self, settings: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            WatcherSettings(**settings)


class TestRegistration:
    """Delegation and validation of registration calls."""

    @pytest.fixture
    def backend(self) -> Mock:
        return Mock(spec=AbstractDirectoryWatcher)

    def test_leading_dot_extension_is_rejected(self, backend: Mock, watched_dir: Path) -> None:
        watcher = DirectoryWatcher(backend=backend)

        with pytest.raises(ValueError, match=r"\.groovy"):
            watcher.add_watch_directory(watched_dir, ["java", ".groovy"])

        backend.add_watch_directory.assert_not_called()

    def test_leading_separator_extension_is_rejected(self, backend: Mock, watched_dir: Path) -> None:
        watcher = DirectoryWatcher(backend=backend)

        with pytest.raises(ValueError):
            watcher.add_watch_directory(watched_dir, f"{os.sep}txt")

    def test_single_extension_string(self, backend: Mock, watched_dir: Path) -> None:
        watcher = DirectoryWatcher(backend=backend)

        watcher.add_watch_directory(watched_dir, "groovy")

        backend.add_watch_directory.assert_called_once_with(watched_dir, frozenset({"groovy"}))

    def test_default_extension_is_wildcard(self, backend: Mock, watched_dir: Path) -> None:
        watcher = DirectoryWatcher(backend=backend)

        watcher.add_watch_directory(watched_dir)

        backend.add_watch_directory.assert_called_once_with(watched_dir, frozenset({"*"}))

    def test_other_calls_are_delegated(self, backend: Mock, tmp_path: Path) -> None:
        # Given:
        watcher = DirectoryWatcher(backend=backend)
        listener = Mock()

        # When:
        watcher.add_watch_file(tmp_path / "Config.groovy")
        watcher.add_listener(listener)
        watcher.set_sleep_time(100)
        watcher.set_active(False)

        # Then:
        backend.add_watch_file.assert_called_once_with(tmp_path / "Config.groovy")
        backend.add_listener.assert_called_once_with(listener)
        backend.set_sleep_time.assert_called_once_with(100)
        backend.set_active.assert_called_once_with(False)


class TestLifecycle:
    """Running the watcher on its own thread."""

    def test_end_to_end_polling(self, watched_dir: Path, recorder: Any, wait_for: Callable[..., bool], touch: Callable[..., None]) -> None:
        # Given:
        watcher = DirectoryWatcher(WatcherSettings(mode="polling", sleep_time=20))
        watcher.add_listener(recorder)
        watcher.add_watch_directory(watched_dir, ["txt"])
        watcher.start()

        try:
            # When:
            new_file = watched_dir / "a.txt"
            new_file.write_text("hello")
            assert wait_for(lambda: recorder.new_paths() == [new_file])
            touch(new_file, "hello again")

            # Then:
            assert wait_for(lambda: recorder.changed_paths() == [new_file])
            assert recorder.new_paths() == [new_file]
        finally:
            watcher.stop(timeout=2)

        assert not watcher.is_alive()
        assert not watcher.is_active

    def test_registration_while_running(self, watched_dir: Path, recorder: Any, wait_for: Callable[..., bool]) -> None:
        watcher = DirectoryWatcher(WatcherSettings(mode="polling", sleep_time=20))
        watcher.start()

        try:
            watcher.add_listener(recorder)
            watcher.add_watch_directory(watched_dir, "txt")
            (watched_dir / "late.txt").write_text("x")
            assert wait_for(lambda: recorder.new_paths() == [watched_dir / "late.txt"])
        finally:
            watcher.stop(timeout=2)

    def test_backend_error_does_not_escape_thread(self, log_messages: list[str]) -> None:
        # Given: a backend whose loop blows up
        backend = PollingDirectoryWatcher()
        backend.run = Mock(side_effect=RuntimeError("disk on fire"))  # type: ignore[method-assign]
        watcher = DirectoryWatcher(backend=backend)

        # When:
        watcher.start()
        watcher.join(timeout=2)

        # Then: the error is logged and the watcher is inactive
        assert not watcher.is_alive()
        assert not watcher.is_active
        assert any("unexpected error" in message for message in log_messages)

    def test_watcher_cannot_be_restarted(self) -> None:
        watcher = DirectoryWatcher(WatcherSettings(mode="polling", sleep_time=20))
        watcher.start()
        watcher.stop(timeout=2)

        with pytest.raises(RuntimeError):
            watcher.start()

    def test_stop_before_start_is_safe(self) -> None:
        watcher = DirectoryWatcher(WatcherSettings(mode="polling"))

        watcher.stop(timeout=1)

        assert not watcher.is_active
        assert DirectoryWatcher.SVN_DIR_NAME == ".svn"
