from __future__ import annotations
from pydantic import BaseModel, Field
from pathlib import Path
from typing import Optional
import os

from chronotrack.config.paths import Paths

DEFAULT_PLUGINS = {
    "store": "chronotrack.plugins.stores.json_file.impl:JsonFileStore",
    "store.memory": "chronotrack.plugins.stores.memory.impl:MemoryStore",
    "notifier.journal": "chronotrack.plugins.notifiers.jsonl.impl:JsonlEventWriter",
}

def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

class AppConfig(BaseModel):
    paths: Paths = Field(default_factory=Paths.from_env)
    tick_interval_ms: int = Field(default=10, ge=1)
    autosave_interval_ms: int = Field(default=1000, ge=0)
    date_format: str = "%Y-%m-%d %H:%M:%S"
    wipe_all_on_corrupt_state: bool = False
    count_downtime: bool = False
    journal: bool = True
    plugins: dict = Field(default_factory=lambda: dict(DEFAULT_PLUGINS))

    @classmethod
    def from_env(cls, data_root: Optional[Path] = None) -> "AppConfig":
        plugins = dict(DEFAULT_PLUGINS)
        if os.getenv("CHRONOTRACK_STORE"):
            plugins["store"] = os.environ["CHRONOTRACK_STORE"]
        return cls(
            paths=Paths.from_env(data_root),
            tick_interval_ms=int(os.getenv("CHRONOTRACK_TICK_INTERVAL_MS", "10")),
            autosave_interval_ms=int(os.getenv("CHRONOTRACK_AUTOSAVE_INTERVAL_MS", "1000")),
            date_format=os.getenv("CHRONOTRACK_DATE_FORMAT", "%Y-%m-%d %H:%M:%S"),
            wipe_all_on_corrupt_state=_env_flag("CHRONOTRACK_WIPE_ALL_ON_CORRUPT_STATE"),
            count_downtime=_env_flag("CHRONOTRACK_COUNT_DOWNTIME"),
            journal=_env_flag("CHRONOTRACK_JOURNAL", True),
            plugins=plugins,
        )

SDK_CONFIG = AppConfig.from_env()
