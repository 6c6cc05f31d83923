"""Stopwatch data models shared across the project.

Every model is a frozen pydantic model serialised with camelCase aliases, so
``model_dump(by_alias=True)`` yields exactly the layout stored under the
``stopwatchState`` and ``stopwatchSessions`` keys.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class Lap(_Model):
    """A single split: time since the previous lap and cumulative total."""

    number: int = Field(ge=1)
    lap_time: int = Field(ge=0)
    total_time: int = Field(ge=0)


def check_lap_sequence(laps: Sequence[Lap]) -> None:
    """Raise ``ValueError`` unless ``laps`` is a consistent chronological run.

    Numbers must count up from 1, ``total_time`` must strictly increase and
    equal the running sum of ``lap_time``.
    """

    running_total = 0
    for expected, lap in enumerate(laps, start=1):
        if lap.number != expected:
            raise ValueError(f"lap #{lap.number} found where #{expected} expected")
        running_total += lap.lap_time
        if lap.total_time != running_total:
            raise ValueError(
                f"lap #{lap.number} total {lap.total_time} != sum of splits {running_total}"
            )
        if expected > 1 and lap.lap_time == 0:
            raise ValueError(f"lap #{lap.number} does not advance the total")


class Session(_Model):
    """Archived, immutable record of one completed run."""

    id: str
    date: str
    total_time: int = Field(ge=0)
    laps: Tuple[Lap, ...] = ()

    @model_validator(mode="after")
    def _laps_consistent(self) -> "Session":
        check_lap_sequence(self.laps)
        return self


class StoredState(_Model):
    """Payload persisted under ``stopwatchState``.

    ``saved_at`` is the wall-clock time (epoch ms) of a running save. It is
    omitted for a stopped timer.
    """

    time: int = Field(ge=0)
    laps: List[Lap] = Field(default_factory=list)
    is_running: bool = False
    saved_at: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _laps_consistent(self) -> "StoredState":
        check_lap_sequence(self.laps)
        if self.laps and self.laps[-1].total_time > self.time:
            raise ValueError("last lap is ahead of the stored elapsed time")
        return self


LapMark = Literal["fastest", "slowest"]


class LapView(_Model):
    """A lap as shown to the presentation layer."""

    number: int
    lap_time: int
    total_time: int
    lap_time_text: str
    total_time_text: str
    mark: Optional[LapMark] = None


class EngineSnapshot(_Model):
    """Read-only view of everything the presentation layer displays."""

    elapsed_ms: int
    elapsed_text: str
    running: bool
    laps: List[LapView] = Field(default_factory=list)
    goal_ms: Optional[int] = None
    goal_progress: float = 0.0
    goal_reached: bool = False
    session_count: int = 0


__all__ = [
    "EngineSnapshot",
    "Lap",
    "LapMark",
    "LapView",
    "Session",
    "StoredState",
    "check_lap_sequence",
]
