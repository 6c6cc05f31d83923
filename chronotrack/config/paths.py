# config/paths.py
"""
Centralized, cross-platform path management for ChronoTrack.

Design goals
- Single source of truth for the state file, event journal and log file
- Honors these env vars (matching the SDK config):
    CHRONOTRACK_DATA_ROOT, CHRONOTRACK_LOGS_ROOT
- Sensible OS defaults when env vars are not provided
- Safe directory creation with writeability checks
"""

from __future__ import annotations

import errno
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# ---------- OS defaults (used only if env vars not set) ----------

def _platform_default_base() -> Path:
    """
    Returns an OS-specific base directory for user data, following conventions:
    - Windows: %LOCALAPPDATA%/ChronoTrack
    - macOS:   ~/Library/Application Support/ChronoTrack
    - Linux:   ~/.local/share/chronotrack
    """
    if sys.platform.startswith("win"):
        base = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(base) / "ChronoTrack"
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "ChronoTrack"
    else:
        # Linux / other POSIX
        return Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share")) / "chronotrack"


# ---------- Environment overrides ----------

def _env_or_default_data_root() -> Path:
    return Path(os.getenv("CHRONOTRACK_DATA_ROOT", _platform_default_base() / "data"))


def _env_or_default_logs_root() -> Path:
    return Path(os.getenv("CHRONOTRACK_LOGS_ROOT", _platform_default_base() / "logs"))


# ---------- Core dataclass ----------

@dataclass(frozen=True)
class Paths:
    """
    Canonical path container for ChronoTrack.

    Usually built through AppConfig.from_env() rather than directly.
    """
    data_root: Path
    logs_root: Path

    @staticmethod
    def from_env(data_root: Optional[Path] = None) -> "Paths":
        data = Path(data_root) if data_root is not None else _env_or_default_data_root()
        return Paths(data, _env_or_default_logs_root())

    # ----- standard layout helpers -----

    @property
    def state_file(self) -> Path:
        """JSON file backing the key/value store (state, sessions, goal)."""
        return self.data_root / "stopwatch.json"

    @property
    def journal_file(self) -> Path:
        """JSONL journal of goal / archive / clear notifications."""
        return self.data_root / "events.jsonl"

    @property
    def log_file(self) -> Path:
        return self.logs_root / "chronotrack.log"

    # ----- setup / validation -----

    def ensure_all(self) -> None:
        for p in [self.data_root, self.logs_root]:
            p.mkdir(parents=True, exist_ok=True)

    def verify_writeable(self) -> None:
        """
        Raise OSError if the data or logs root is not writeable.
        """
        for p in [self.data_root, self.logs_root]:
            try:
                p.mkdir(parents=True, exist_ok=True)
                test = p / ".write_test"
                test.write_text("ok", encoding="utf-8")
                test.unlink(missing_ok=True)
            except Exception as e:
                raise OSError(errno.EACCES, f"Not writeable: {p}", e)

