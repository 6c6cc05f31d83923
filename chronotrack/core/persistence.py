"""Mirror stopwatch state into a string-keyed store and recover it at startup.

Three independent keys are used::

    stopwatchState     {"time": int, "laps": [Lap], "isRunning": bool, "savedAt"?: int}
    stopwatchSessions  [Session], most recent first, absent when empty
    stopwatchGoal      threshold in milliseconds as a decimal string

Writes are best-effort: a failing store call is logged and reported through
the return value but never raised to the caller, and a failure on one key
does not stop the others from being written. Reads never raise either;
each key decodes into a tagged :class:`Loaded` or :class:`Recovered` result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Protocol, Sequence, Tuple, TypeVar, Union

from pydantic import TypeAdapter

from chronotrack.core.models import Lap, Session, StoredState

logger = logging.getLogger(__name__)

STATE_KEY = "stopwatchState"
SESSIONS_KEY = "stopwatchSessions"
GOAL_KEY = "stopwatchGoal"

T = TypeVar("T")


class KeyValueStore(Protocol):
    """Opaque persistence: named string blobs. Any call may raise."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# Tagged decode results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Loaded(Generic[T]):
    value: T


@dataclass(frozen=True)
class Recovered(Generic[T]):
    """Stored data was unusable; ``value`` is the default that replaced it."""

    value: T
    reason: str


LoadResult = Union[Loaded[T], Recovered[T]]

_SESSIONS = TypeAdapter(List[Session])


def decode_state(raw: Optional[str]) -> LoadResult[Optional[StoredState]]:
    if raw is None:
        return Loaded(None)
    try:
        return Loaded(StoredState.model_validate_json(raw))
    except ValueError as exc:
        return Recovered(None, f"unparsable state: {exc}")


def decode_sessions(raw: Optional[str]) -> LoadResult[Tuple[Session, ...]]:
    if raw is None:
        return Loaded(())
    try:
        return Loaded(tuple(_SESSIONS.validate_json(raw)))
    except ValueError as exc:
        return Recovered((), f"unparsable sessions: {exc}")


def decode_goal(raw: Optional[str]) -> LoadResult[Optional[int]]:
    if raw is None:
        return Loaded(None)
    try:
        threshold_ms = int(raw.strip())
    except (AttributeError, ValueError):
        return Recovered(None, f"goal is not an integer: {raw!r}")
    if threshold_ms <= 0:
        return Recovered(None, f"goal must be positive, got {threshold_ms}")
    return Loaded(threshold_ms)


@dataclass(frozen=True)
class RestoredState:
    state: LoadResult[Optional[StoredState]]
    sessions: LoadResult[Tuple[Session, ...]]
    goal: LoadResult[Optional[int]]

    @property
    def recovered_keys(self) -> List[str]:
        pairs = ((STATE_KEY, self.state), (SESSIONS_KEY, self.sessions), (GOAL_KEY, self.goal))
        return [key for key, result in pairs if isinstance(result, Recovered)]


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------


class StatePersistenceCoordinator:
    def __init__(self, store: KeyValueStore, *, wipe_all_on_corrupt_state: bool = False) -> None:
        self.store = store
        self.wipe_all_on_corrupt_state = wipe_all_on_corrupt_state

    # ----- save -----
    def save_state(
        self, elapsed_ms: int, running: bool, laps: Sequence[Lap], saved_at_ms: Optional[int] = None
    ) -> bool:
        payload = StoredState(
            time=max(0, int(elapsed_ms)),
            laps=list(laps),
            is_running=running,
            saved_at=saved_at_ms if running else None,
        )
        return self._write(STATE_KEY, payload.model_dump_json(by_alias=True, exclude_none=True))

    def save_sessions(self, sessions: Sequence[Session]) -> bool:
        if not sessions:
            return self._remove(SESSIONS_KEY)
        blob = _SESSIONS.dump_json(list(sessions), by_alias=True).decode("utf-8")
        return self._write(SESSIONS_KEY, blob)

    def save_goal(self, threshold_ms: Optional[int]) -> bool:
        if threshold_ms is None:
            return self._remove(GOAL_KEY)
        return self._write(GOAL_KEY, str(int(threshold_ms)))

    def save(
        self,
        elapsed_ms: int,
        running: bool,
        laps: Sequence[Lap],
        sessions: Sequence[Session],
        threshold_ms: Optional[int],
        saved_at_ms: Optional[int] = None,
    ) -> bool:
        # every key is attempted even when an earlier one fails
        results = [
            self.save_state(elapsed_ms, running, laps, saved_at_ms),
            self.save_sessions(sessions),
            self.save_goal(threshold_ms),
        ]
        return all(results)

    # ----- load -----
    def load(self) -> RestoredState:
        state = self._load_key(STATE_KEY, decode_state, None)
        sessions = self._load_key(SESSIONS_KEY, decode_sessions, ())
        goal = self._load_key(GOAL_KEY, decode_goal, None)

        if self.wipe_all_on_corrupt_state and isinstance(state, Recovered):
            logger.warning("stored state is corrupt; wiping sessions and goal as well")
            self._remove(SESSIONS_KEY)
            self._remove(GOAL_KEY)
            sessions = Recovered((), f"wiped with {STATE_KEY}")
            goal = Recovered(None, f"wiped with {STATE_KEY}")

        return RestoredState(state=state, sessions=sessions, goal=goal)

    # ----- internals -----
    def _load_key(self, key: str, decode: Callable[[Optional[str]], LoadResult[T]], default: T) -> LoadResult[T]:
        try:
            raw = self.store.get(key)
        except Exception as exc:
            logger.warning("reading %s failed: %s", key, exc)
            return Recovered(default, f"read failed: {exc}")
        result = decode(raw)
        if isinstance(result, Recovered):
            logger.warning("discarding %s: %s", key, result.reason)
            self._remove(key)
        return result

    def _write(self, key: str, value: str) -> bool:
        try:
            self.store.set(key, value)
        except Exception as exc:
            logger.warning("persisting %s failed: %s", key, exc)
            return False
        return True

    def _remove(self, key: str) -> bool:
        try:
            self.store.remove(key)
        except Exception as exc:
            logger.warning("removing %s failed: %s", key, exc)
            return False
        return True


__all__ = [
    "GOAL_KEY",
    "KeyValueStore",
    "LoadResult",
    "Loaded",
    "Recovered",
    "RestoredState",
    "SESSIONS_KEY",
    "STATE_KEY",
    "StatePersistenceCoordinator",
    "decode_goal",
    "decode_sessions",
    "decode_state",
]
