from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Literal, Union
from chronotrack.core.models import Session
from .ids import new_ulid, now_utc_ns
EventVersion = Literal["v1"]
class BaseEvent(BaseModel):
    v: EventVersion = "v1"
    event_id: str = Field(default_factory=new_ulid)
    wall_time_utc_ns: int = Field(default_factory=now_utc_ns)
    type: str
class GoalReached(BaseEvent):
    type: Literal["goal.reached"] = "goal.reached"
    threshold_ms: int
    elapsed_ms: int
class SessionArchived(BaseEvent):
    type: Literal["session.archived"] = "session.archived"
    session: Session
class HistoryCleared(BaseEvent):
    type: Literal["history.cleared"] = "history.cleared"
    removed: int
Notification = Union[GoalReached, SessionArchived, HistoryCleared]
