from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional
class MemoryStore:
    """Dict-backed store for tests and embedding; nothing survives the process."""
    def __init__(self, path: Optional[Path] = None, initial: Optional[Dict[str, str]] = None):
        self.path = path; self.data: Dict[str, str] = dict(initial or {})
    def get(self, key: str) -> Optional[str]: return self.data.get(key)
    def set(self, key: str, value: str) -> None: self.data[key] = value
    def remove(self, key: str) -> None: self.data.pop(key, None)
