from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class JsonFileStore:
    """
    Key/value store kept as one JSON object on disk.
    Every write replaces the file atomically (write to a sibling, then rename).
    A file that is not a JSON object of strings is moved aside to ``*.corrupt``
    and the store starts empty.
    """
    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = Lock()
        self._data: Dict[str, str] = self._read()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            reason = str(exc)
        else:
            if isinstance(raw, dict) and all(isinstance(v, str) for v in raw.values()):
                return {str(k): v for k, v in raw.items()}
            reason = "not a JSON object of strings"
        aside = self.path.with_name(self.path.name + ".corrupt")
        logger.warning("store file %s is unreadable (%s); moving it to %s", self.path, reason, aside)
        os.replace(self.path, aside)
        return {}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(self._data, fh, indent=2, sort_keys=True)
        os.replace(tmp, self.path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()
