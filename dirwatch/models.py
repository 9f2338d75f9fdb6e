from typing import Literal

from pydantic import BaseModel, Field

from dirwatch.file_watcher.base import DEFAULT_SLEEP_TIME


class WatcherSettings(BaseModel):
    mode: Literal["native", "polling"] = Field(default="native")
    sleep_time: int = Field(default=DEFAULT_SLEEP_TIME, ge=1)
    recursive: bool = Field(default=False)
