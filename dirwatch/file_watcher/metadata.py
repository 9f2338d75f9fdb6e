"""Watch target models for the file watcher system."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import NamedTuple

WILDCARD_EXTENSION = "*"


class ChangeKind(Enum):
    """Kinds of notifications delivered to listeners."""

    NEW = "new"  # File observed for the first time
    CHANGED = "changed"  # Known file with a different marker


class FileMarker(NamedTuple):
    """Last observed state of a file, compared between scans."""

    mtime_ns: int
    size: int


@dataclass(frozen=True)
class WatchedDirectory:
    """A directory under observation together with its accepted extensions."""

    path: Path
    extensions: frozenset[str] = field(
        default_factory=lambda: frozenset({WILDCARD_EXTENSION})
    )

    def __post_init__(self) -> None:
        """Normalise the path and freeze the extension set."""
        object.__setattr__(self, "path", Path(self.path).absolute())
        object.__setattr__(self, "extensions", frozenset(self.extensions))
