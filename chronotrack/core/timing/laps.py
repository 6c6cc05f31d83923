"""Lap splits derived from the timer's elapsed time."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from chronotrack.core.models import Lap, LapMark, check_lap_sequence
from chronotrack.core.timing.timer_engine import TimerEngine


class LapRecorder:
    """Record laps for the current run of ``timer``.

    Laps are kept in chronological order (ascending ``number``); the
    presentation layer gets them most-recent-first via :meth:`recent_first`.
    """

    def __init__(self, timer: TimerEngine) -> None:
        self._timer = timer
        self._laps: List[Lap] = []

    @property
    def laps(self) -> Tuple[Lap, ...]:
        return tuple(self._laps)

    def __len__(self) -> int:
        return len(self._laps)

    def recent_first(self) -> List[Lap]:
        return list(reversed(self._laps))

    def record(self) -> Optional[Lap]:
        """Append a lap at the current elapsed time.

        Returns ``None`` without touching the list when the timer is stopped,
        or when no time has passed since the previous lap.
        """

        if not self._timer.running:
            return None
        total = self._timer.sample()
        previous = self._laps[-1].total_time if self._laps else 0
        if total <= previous:
            return None
        lap = Lap(number=len(self._laps) + 1, lap_time=total - previous, total_time=total)
        self._laps.append(lap)
        return lap

    def fastest(self) -> Optional[Lap]:
        if len(self._laps) < 2:
            return None
        return min(self._laps, key=lambda lap: lap.lap_time)

    def slowest(self) -> Optional[Lap]:
        if len(self._laps) < 2:
            return None
        return max(self._laps, key=lambda lap: lap.lap_time)

    def classify(self, lap: Lap) -> Optional[LapMark]:
        # ties are all marked; fastest wins when every lap is equal
        fastest, slowest = self.fastest(), self.slowest()
        if fastest is None or slowest is None:
            return None
        if lap.lap_time == fastest.lap_time:
            return "fastest"
        if lap.lap_time == slowest.lap_time:
            return "slowest"
        return None

    def clear(self) -> None:
        self._laps.clear()

    def restore(self, laps: Sequence[Lap]) -> None:
        ordered = sorted(laps, key=lambda lap: lap.number)
        check_lap_sequence(ordered)
        self._laps = list(ordered)


__all__ = ["LapRecorder"]
