from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
def configure_logging(level: int = logging.WARNING, log_file: Optional[Path] = None) -> logging.Logger:
    """Attach stream (and optional file) handlers to the ``chronotrack`` logger."""
    root = logging.getLogger("chronotrack")
    root.setLevel(min(level, logging.INFO) if log_file else level)
    for h in list(root.handlers):
        root.removeHandler(h); h.close()
    stream = logging.StreamHandler(); stream.setLevel(level); stream.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(stream)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8"); fh.setLevel(logging.INFO); fh.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(fh)
    return root
