import os
from pathlib import Path
from typing import Optional

from loguru import logger

__all__ = [
    "logger",
    "configure_logging",
    "get_filename_extension",
]

log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS zz}</green> | <level>{level: <8}</level> | <yellow>Line {line: >4} ({file}):</yellow> <b>{message}</b>"


def configure_logging(log_dir: str | Path = ".dirwatch", level: str = "DEBUG") -> list[int]:
    """Send watcher logs to ``debug.log`` and ``info.log`` under ``log_dir``.

    The library never adds sinks on import; hosts that want file logs call
    this once at startup.

    Args:
        log_dir: Directory that receives the log files, created if missing.
        level: Minimum level for the debug sink.

    Returns:
        The loguru handler ids, for ``logger.remove``.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    debug_handler = logger.add(
        log_path / "debug.log",
        level=level,
        format=log_format,
        colorize=False,
        backtrace=True,
        diagnose=True,
    )
    info_handler = logger.add(
        log_path / "info.log",
        level="INFO",
        format=log_format,
        colorize=False,
        backtrace=True,
        diagnose=True,
    )
    return [debug_handler, info_handler]


def get_filename_extension(path: str | os.PathLike[str]) -> Optional[str]:
    """Extract the extension from a file name, e.g. ``"conf/app.groovy"`` -> ``"groovy"``.

    Returns:
        The text after the last dot of the base name, or None when the
        base name has no dot.
    """
    name = os.path.basename(os.fspath(path))
    dot_index = name.rfind(".")
    if dot_index == -1:
        return None
    return name[dot_index + 1 :]
