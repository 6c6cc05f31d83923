"""Session history: finished runs frozen into immutable records."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from chronotrack.core.models import Lap, Session
from chronotrack.sdk.ids import new_ulid

logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SessionArchive:
    """Own the session list, most recent first.

    Consumers get tuples; the list itself is only changed through
    :meth:`archive`, :meth:`clear_all` and :meth:`restore`.
    """

    def __init__(
        self,
        *,
        date_format: str = DEFAULT_DATE_FORMAT,
        now: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = new_ulid,
        on_archived: Optional[Callable[[Session], None]] = None,
        on_cleared: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.date_format = date_format
        self._now = now
        self._id_factory = id_factory
        self._on_archived = on_archived
        self._on_cleared = on_cleared
        self._sessions: List[Session] = []

    @property
    def sessions(self) -> Tuple[Session, ...]:
        return tuple(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Optional[Session]:
        return next((s for s in self._sessions if s.id == session_id), None)

    def archive(self, final_elapsed_ms: int, laps: Sequence[Lap]) -> Optional[Session]:
        """Freeze a finished run; returns ``None`` when the run had no activity."""

        if final_elapsed_ms <= 0 and not laps:
            return None
        session = Session(
            id=self._id_factory(),
            date=self._now().strftime(self.date_format),
            total_time=max(0, int(final_elapsed_ms)),
            laps=tuple(sorted(laps, key=lambda lap: lap.number)),
        )
        self._sessions.insert(0, session)
        logger.info(
            "archived session %s: %d ms, %d laps", session.id, session.total_time, len(session.laps)
        )
        if self._on_archived is not None:
            self._on_archived(session)
        return session

    def clear_all(self) -> int:
        removed = len(self._sessions)
        self._sessions.clear()
        logger.info("cleared %d archived sessions", removed)
        if self._on_cleared is not None:
            self._on_cleared(removed)
        return removed

    def restore(self, sessions: Sequence[Session]) -> None:
        self._sessions = list(sessions)


__all__ = ["DEFAULT_DATE_FORMAT", "SessionArchive"]
