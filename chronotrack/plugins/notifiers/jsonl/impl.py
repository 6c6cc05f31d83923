from __future__ import annotations
from pathlib import Path
from threading import Lock
from typing import IO, Optional
class JsonlEventWriter:
    """Append every notification to a JSONL journal, one event per line."""
    def __init__(self, path: Optional[Path] = None):
        self.f: Optional[IO[str]] = None; self._lock = Lock()
        if path is not None: self.open(path)
    def open(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True); self.f = open(path, "a", encoding="utf-8")
    def write(self, event) -> None:
        with self._lock:
            if self.f is None: return
            self.f.write(event.model_dump_json(by_alias=True)); self.f.write("\n"); self.f.flush()
    def close(self) -> None:
        with self._lock:
            if self.f: self.f.close(); self.f=None
