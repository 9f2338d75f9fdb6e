from dependency_injector import containers, providers

from dirwatch.file_watcher.native import WatchServiceDirectoryWatcher
from dirwatch.file_watcher.polling import PollingDirectoryWatcher


class WatcherContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    polling_backend = providers.Factory(
        PollingDirectoryWatcher,
        sleep_time=config.sleep_time,
        recursive=config.recursive,
    )

    native_backend = providers.Factory(
        WatchServiceDirectoryWatcher,
        sleep_time=config.sleep_time,
        recursive=config.recursive,
    )

    backend = providers.Selector(
        config.mode,
        polling=polling_backend,
        native=native_backend,
    )
