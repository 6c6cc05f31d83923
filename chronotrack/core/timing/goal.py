"""One-shot "goal reached" detection against a standing time threshold."""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MS_PER_SECOND = 1000

GoalCallback = Callable[[int, int], None]


def parse_goal_seconds(text: object) -> Optional[int]:
    """Convert user text such as ``"60"`` or ``"1.5"`` into milliseconds.

    Anything that is not a finite positive number yields ``None`` (no goal).
    """

    try:
        seconds = float(str(text).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    scaled = seconds * MS_PER_SECOND
    if not math.isfinite(scaled):
        return None
    threshold_ms = int(scaled)
    return threshold_ms if threshold_ms > 0 else None


class GoalTracker:
    """Track an optional elapsed-time goal and fire once when it is reached.

    ``on_reached(threshold_ms, elapsed_ms)`` is called the first time
    :meth:`check` sees ``elapsed_ms >= threshold_ms``. The flag is re-armed by
    :meth:`clear_flag` (reset), by :meth:`on_start` when a run restarts past
    the goal, and by changing the goal.
    """

    def __init__(self, on_reached: Optional[GoalCallback] = None) -> None:
        self._on_reached = on_reached
        self.threshold_ms: Optional[int] = None
        self.reached = False

    @property
    def is_set(self) -> bool:
        return self.threshold_ms is not None

    def set_goal(self, threshold_ms: Optional[int]) -> Optional[int]:
        if threshold_ms is None or threshold_ms <= 0:
            self.threshold_ms = None
        else:
            self.threshold_ms = int(threshold_ms)
        self.reached = False
        return self.threshold_ms

    def set_goal_seconds(self, text: object) -> Optional[int]:
        return self.set_goal(parse_goal_seconds(text))

    def check(self, elapsed_ms: int) -> bool:
        if self.threshold_ms is None or self.reached:
            return False
        if elapsed_ms < self.threshold_ms:
            return False
        self.reached = True
        logger.info("goal of %d ms reached at %d ms", self.threshold_ms, elapsed_ms)
        if self._on_reached is not None:
            self._on_reached(self.threshold_ms, elapsed_ms)
        return True

    def on_start(self, elapsed_ms: int) -> None:
        if self.reached and self.threshold_ms is not None and elapsed_ms >= self.threshold_ms:
            self.reached = False

    def clear_flag(self) -> None:
        self.reached = False

    def progress(self, elapsed_ms: int) -> float:
        if self.threshold_ms is None:
            return 0.0
        return min(max(elapsed_ms, 0) / self.threshold_ms, 1.0)


__all__ = ["GoalTracker", "parse_goal_seconds"]
