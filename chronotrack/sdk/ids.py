from __future__ import annotations
import time, ulid
from typing import Callable
NS_PER_MS = 1_000_000
Clock = Callable[[], int]
def now_monotonic_ms() -> int: return time.monotonic_ns() // NS_PER_MS
def now_utc_ns() -> int: return time.time_ns()
def now_utc_ms() -> int: return time.time_ns() // NS_PER_MS
def new_ulid() -> str: return str(ulid.new())
