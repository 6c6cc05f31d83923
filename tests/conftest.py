from __future__ import annotations

from datetime import datetime
from typing import List

import pytest

from chronotrack.config.paths import Paths
from chronotrack.plugins.stores.memory.impl import MemoryStore
from chronotrack.sdk.config import AppConfig
from chronotrack.sdk.runtime import StopwatchEngine


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class ManualSubscription:
    def __init__(self, interval_s: float, callback) -> None:
        self.interval_s = interval_s
        self.callback = callback
        self.cancelled = False

    @property
    def active(self) -> bool:
        return not self.cancelled

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose ticks are fired explicitly by the test."""

    def __init__(self) -> None:
        self.subscriptions: List[ManualSubscription] = []

    def __call__(self, interval_s: float, callback) -> ManualSubscription:
        sub = ManualSubscription(interval_s, callback)
        self.subscriptions.append(sub)
        return sub

    @property
    def active(self) -> List[ManualSubscription]:
        return [s for s in self.subscriptions if s.active]

    def fire(self) -> None:
        for sub in self.active:
            sub.callback()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> FakeClock:
    return FakeClock(start=1_714_555_800_000)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(
        paths=Paths(tmp_path / "data", tmp_path / "logs"),
        autosave_interval_ms=1000,
        journal=False,
    )


@pytest.fixture
def make_engine(store, clock, wall_clock, scheduler, config):
    """Factory so a test can build a second engine over the same store."""

    def _make(backing=None, **overrides) -> StopwatchEngine:
        kwargs = dict(
            config=config,
            clock=clock,
            scheduler=scheduler,
            now=lambda: datetime(2024, 5, 1, 9, 30, 0),
            wall_clock=wall_clock,
        )
        kwargs.update(overrides)
        return StopwatchEngine(backing if backing is not None else store, **kwargs)

    return _make


@pytest.fixture
def engine(make_engine):
    eng = make_engine()
    eng.load()
    yield eng
    eng.close()
