"""Periodic tick subscriptions.

A *scheduler* is any callable ``(interval_s, callback) -> TickSubscription``.
The engine acquires one subscription per run and cancels it on stop, reset
and close. The default :func:`thread_scheduler` drives the callback from a
daemon thread that sleeps on a :class:`threading.Event`, so
cancellation wakes it at once.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TickSubscription(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


Scheduler = Callable[[float, TickCallback], TickSubscription]


class ThreadTicker:
    """Invoke ``callback`` every ``interval_s`` seconds until cancelled."""

    def __init__(self, interval_s: float, callback: TickCallback, *, name: str = "chronotrack-tick") -> None:
        self._interval = max(0.001, float(interval_s))
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> "ThreadTicker":
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._stop_event.set()
        # a callback may cancel its own subscription from the tick thread
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=max(1.0, self._interval * 10))

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("tick callback failed; cancelling tick subscription")
                self._stop_event.set()


def thread_scheduler(interval_s: float, callback: TickCallback) -> ThreadTicker:
    return ThreadTicker(interval_s, callback).start()


__all__ = [
    "Scheduler",
    "ThreadTicker",
    "TickCallback",
    "TickSubscription",
    "thread_scheduler",
]
