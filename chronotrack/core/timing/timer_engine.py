from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List

from chronotrack.sdk.ids import Clock, now_monotonic_ms


@dataclass(frozen=True)
class TimerSnapshot:
    elapsed_ms: int
    running: bool


@dataclass
class TimerEngine:
    """Run/pause state and elapsed time derived from a clock.

    Elapsed time is always ``clock() - start_ref`` while running, never an
    accumulation of ticks, so irregular tick delivery cannot drift it.
    """

    clock: Clock = now_monotonic_ms
    running: bool = False
    _paused_ms: int = 0
    _start_ref: int = 0
    _reset_listeners: List[Callable[[], None]] = field(default_factory=list, repr=False)

    def add_reset_listener(self, fn: Callable[[], None]) -> None:
        self._reset_listeners.append(fn)

    def start(self) -> bool:
        if self.running:
            return False
        self._start_ref = self.clock() - self._paused_ms
        self.running = True
        return True

    def stop(self) -> bool:
        if not self.running:
            return False
        self._paused_ms = self.sample()
        self.running = False
        return True

    def sample(self) -> int:
        if not self.running:
            return self._paused_ms
        return max(0, self.clock() - self._start_ref)

    @property
    def elapsed_ms(self) -> int:
        return self.sample()

    def reset(self) -> None:
        self._paused_ms = 0
        self._start_ref = 0
        self.running = False
        for fn in self._reset_listeners:
            fn()

    def restore(self, elapsed_ms: int, running: bool) -> None:
        # a restored running timer continues from where it was saved
        self._paused_ms = max(0, int(elapsed_ms))
        self.running = False
        if running:
            self.start()

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(elapsed_ms=self.sample(), running=self.running)


__all__ = ["TimerEngine", "TimerSnapshot"]
