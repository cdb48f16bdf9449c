"""Domain models for recorded input activity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class PointerMoved:
    """The pointer was observed at a new position."""

    timestamp: datetime
    x: int
    y: int


@dataclass(frozen=True, slots=True)
class KeysPressed:
    """A new non-empty combination of keys is held down."""

    timestamp: datetime
    keys: tuple[str, ...]

    @property
    def combo(self) -> str:
        return "+".join(self.keys)


ActivityEvent = Union[PointerMoved, KeysPressed]


@dataclass(slots=True)
class Session:
    """A single bounded recording run and its action timeline."""

    session_id: str
    start_time: datetime
    task_name: str = ""
    end_time: Optional[datetime] = None
    actions: list[ActivityEvent] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()


class MonitoringState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"


@dataclass(frozen=True, slots=True)
class RecorderStatus:
    """Read-only snapshot of the recorder for control surfaces."""

    state: MonitoringState
    status_text: str
    session_id: Optional[str] = None
    task_name: Optional[str] = None
    start_time: Optional[datetime] = None
    action_count: int = 0
    unsaved_sessions: int = 0

    @property
    def is_recording(self) -> bool:
        return self.state is MonitoringState.RECORDING


def make_session_id(start_time: datetime) -> str:
    return start_time.strftime("%Y%m%d_%H%M%S")
