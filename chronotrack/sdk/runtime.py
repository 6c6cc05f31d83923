"""The stopwatch context object handed to presentation layers.

:class:`StopwatchEngine` owns the timer, the laps of the current run, the
goal, the session history and the persistence coordinator, and is the only
place those are mutated. Every mutating operation persists afterwards. While
running it holds one tick subscription that samples the timer, checks the
goal and periodically autosaves; the subscription is released on stop, reset
and close, and the engine is a context manager so ``close`` always runs.

Ticks arrive from a scheduler thread, so all operations are serialised with a
re-entrant lock. Subscriptions are cancelled only after the lock is released,
otherwise a tick waiting for the lock would block the join.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Callable, Deque, List, Optional, Tuple

from chronotrack.core.archive import SessionArchive
from chronotrack.core.models import EngineSnapshot, Lap, LapView, Session, StoredState
from chronotrack.core.persistence import KeyValueStore, RestoredState, StatePersistenceCoordinator
from chronotrack.core.timing.formatting import format_time
from chronotrack.core.timing.goal import GoalTracker
from chronotrack.core.timing.laps import LapRecorder
from chronotrack.core.timing.ticker import Scheduler, TickSubscription, thread_scheduler
from chronotrack.core.timing.timer_engine import TimerEngine

from .config import SDK_CONFIG, AppConfig
from .events import GoalReached, HistoryCleared, Notification, SessionArchived
from .ids import Clock, now_monotonic_ms, now_utc_ms
from .registry import Registry

logger = logging.getLogger(__name__)

Listener = Callable[[Notification], None]

RECENT_EVENTS = 50


class StopwatchEngine:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        config: Optional[AppConfig] = None,
        clock: Optional[Clock] = None,
        scheduler: Scheduler = thread_scheduler,
        now: Callable[[], datetime] = datetime.now,
        wall_clock: Clock = now_utc_ms,
    ) -> None:
        self.config = config or SDK_CONFIG
        self._lock = threading.RLock()
        self._scheduler = scheduler
        self._wall_clock = wall_clock
        self._tick_sub: Optional[TickSubscription] = None
        self._listeners: List[Listener] = []
        self._closers: List[Callable[[], None]] = []
        self._closed = False
        self._last_save_elapsed = 0
        self.recent_events: Deque[Notification] = deque(maxlen=RECENT_EVENTS)

        self.timer = TimerEngine(clock=clock or now_monotonic_ms)
        self.laps = LapRecorder(self.timer)
        self.goal = GoalTracker(on_reached=self._on_goal_reached)
        self.archive = SessionArchive(
            date_format=self.config.date_format,
            now=now,
            on_archived=self._on_archived,
            on_cleared=self._on_cleared,
        )
        self.persistence = StatePersistenceCoordinator(
            store, wipe_all_on_corrupt_state=self.config.wipe_all_on_corrupt_state
        )
        self.timer.add_reset_listener(self.laps.clear)
        self.timer.add_reset_listener(self.goal.clear_flag)

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None, **kwargs) -> "StopwatchEngine":
        """Build an engine whose store and journal come from the plugin registry."""

        cfg = config or SDK_CONFIG
        cfg.paths.ensure_all()
        registry = Registry(cfg.plugins)
        engine = cls(registry.create("store", cfg.paths.state_file), config=cfg, **kwargs)
        if cfg.journal:
            journal = registry.create("notifier.journal", cfg.paths.journal_file)
            engine.subscribe(journal.write)
            engine._closers.append(journal.close)
        return engine

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: Notification) -> None:
        self.recent_events.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("notification listener failed for %s", event.type)

    def _on_goal_reached(self, threshold_ms: int, elapsed_ms: int) -> None:
        self._emit(GoalReached(threshold_ms=threshold_ms, elapsed_ms=elapsed_ms))

    def _on_archived(self, session: Session) -> None:
        self._emit(SessionArchived(session=session))

    def _on_cleared(self, removed: int) -> None:
        self._emit(HistoryCleared(removed=removed))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self) -> RestoredState:
        """Restore persisted state; call once at startup."""

        with self._lock:
            restored = self.persistence.load()
            stored = restored.state.value
            self.goal.set_goal(restored.goal.value)
            self.archive.restore(restored.sessions.value)
            saved_elapsed = 0
            if stored is None:
                self.laps.clear()
                self.timer.restore(0, running=False)
            else:
                saved_elapsed = stored.time
                self.laps.restore(stored.laps)
                self.timer.restore(self._restored_elapsed(stored), running=stored.is_running)

            elapsed = self.timer.sample()
            # a goal already passed before the restart is not announced again
            if self.goal.threshold_ms is not None and saved_elapsed >= self.goal.threshold_ms:
                self.goal.reached = True
            self._last_save_elapsed = elapsed
            if self.timer.running:
                self.goal.check(elapsed)
                self._acquire_tick()
            if restored.recovered_keys:
                logger.warning("recovered defaults for %s", ", ".join(restored.recovered_keys))
                self._save_all()
        return restored

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            sub = self._detach_tick()
            self._save_all()
        self._cancel(sub)
        for close in self._closers:
            close()

    def __enter__(self) -> "StopwatchEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def start(self) -> bool:
        with self._lock:
            return self._start_locked()

    def stop(self) -> bool:
        with self._lock:
            stopped, sub = self._stop_locked()
        self._cancel(sub)
        return stopped

    def start_or_stop(self) -> bool:
        """Toggle the timer; returns whether it is running afterwards."""

        sub = None
        with self._lock:
            if self.timer.running:
                _, sub = self._stop_locked()
            else:
                self._start_locked()
            running = self.timer.running
        self._cancel(sub)
        return running

    def record_lap(self) -> Optional[Lap]:
        with self._lock:
            lap = self.laps.record()
            if lap is not None:
                self._save_state()
            return lap

    def reset_and_archive(self) -> Optional[Session]:
        """Archive the run when it had activity, then reset to zero."""

        with self._lock:
            session = self.archive.archive(self.timer.sample(), self.laps.laps)
            self.timer.reset()
            sub = self._detach_tick()
            self._save_state()
            if session is not None:
                self._save_sessions()
        self._cancel(sub)
        return session

    def set_goal(self, seconds_text: str) -> Optional[int]:
        """Set the goal from user text in seconds; bad input clears it."""

        with self._lock:
            threshold_ms = self.goal.set_goal_seconds(seconds_text)
            self.persistence.save_goal(threshold_ms)
            return threshold_ms

    def set_goal_ms(self, threshold_ms: Optional[int]) -> Optional[int]:
        with self._lock:
            threshold_ms = self.goal.set_goal(threshold_ms)
            self.persistence.save_goal(threshold_ms)
            return threshold_ms

    def clear_goal(self) -> None:
        self.set_goal_ms(None)

    def clear_history(self) -> int:
        with self._lock:
            removed = self.archive.clear_all()
            self._save_sessions()
            return removed

    def tick(self) -> int:
        """Sample the timer, check the goal and autosave; driven by the scheduler."""

        with self._lock:
            elapsed = self.timer.sample()
            if not self.timer.running:
                return elapsed
            self.goal.check(elapsed)
            interval = self.config.autosave_interval_ms
            if interval and elapsed - self._last_save_elapsed >= interval:
                self._save_state()
            return elapsed

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------
    @property
    def elapsed_ms(self) -> int:
        return self.timer.sample()

    @property
    def running(self) -> bool:
        return self.timer.running

    @property
    def lap_list(self) -> Tuple[Lap, ...]:
        return self.laps.laps

    @property
    def laps_recent_first(self) -> List[Lap]:
        return self.laps.recent_first()

    @property
    def sessions(self) -> Tuple[Session, ...]:
        return self.archive.sessions

    @property
    def goal_ms(self) -> Optional[int]:
        return self.goal.threshold_ms

    @property
    def goal_reached(self) -> bool:
        return self.goal.reached

    @property
    def goal_progress(self) -> float:
        return self.goal.progress(self.timer.sample())

    def snapshot(self) -> EngineSnapshot:
        with self._lock:
            elapsed = self.timer.sample()
            laps = [
                LapView(
                    number=lap.number,
                    lap_time=lap.lap_time,
                    total_time=lap.total_time,
                    lap_time_text=format_time(lap.lap_time),
                    total_time_text=format_time(lap.total_time),
                    mark=self.laps.classify(lap),
                )
                for lap in self.laps.recent_first()
            ]
            return EngineSnapshot(
                elapsed_ms=elapsed,
                elapsed_text=format_time(elapsed),
                running=self.timer.running,
                laps=laps,
                goal_ms=self.goal.threshold_ms,
                goal_progress=self.goal.progress(elapsed),
                goal_reached=self.goal.reached,
                session_count=len(self.archive),
            )

    # ------------------------------------------------------------------
    # Internals (call with the lock held)
    # ------------------------------------------------------------------
    def _start_locked(self) -> bool:
        if not self.timer.start():
            return False
        self.goal.on_start(self.timer.sample())
        self._acquire_tick()
        self._save_state()
        return True

    def _stop_locked(self) -> Tuple[bool, Optional[TickSubscription]]:
        if not self.timer.stop():
            return False, None
        self.goal.check(self.timer.sample())
        sub = self._detach_tick()
        self._save_state()
        return True, sub

    def _acquire_tick(self) -> None:
        if self._closed or (self._tick_sub is not None and self._tick_sub.active):
            return
        self._tick_sub = self._scheduler(self.config.tick_interval_ms / 1000.0, self.tick)

    def _detach_tick(self) -> Optional[TickSubscription]:
        sub, self._tick_sub = self._tick_sub, None
        return sub

    @staticmethod
    def _cancel(sub: Optional[TickSubscription]) -> None:
        if sub is not None:
            sub.cancel()

    def _restored_elapsed(self, stored: StoredState) -> int:
        if not (stored.is_running and self.config.count_downtime and stored.saved_at is not None):
            return stored.time
        # wall time since the last running save; a clock set backwards adds nothing
        return stored.time + max(0, self._wall_clock() - stored.saved_at)

    def _save_state(self) -> bool:
        elapsed = self.timer.sample()
        self._last_save_elapsed = elapsed
        return self.persistence.save_state(elapsed, self.timer.running, self.laps.laps, self._wall_clock())

    def _save_sessions(self) -> bool:
        return self.persistence.save_sessions(self.archive.sessions)

    def _save_all(self) -> bool:
        elapsed = self.timer.sample()
        self._last_save_elapsed = elapsed
        return self.persistence.save(
            elapsed,
            self.timer.running,
            self.laps.laps,
            self.archive.sessions,
            self.goal.threshold_ms,
            self._wall_clock(),
        )


__all__ = ["Listener", "StopwatchEngine"]
