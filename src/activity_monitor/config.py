"""Configuration models and helpers for the activity monitor."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(slots=True)
class MonitorSettings:
    """Runtime configuration for the sampler and recorder."""

    poll_interval: timedelta = timedelta(milliseconds=50)
    require_task_name: bool = True
    include_task_name: bool = True
    notice_limit: int = 100

    @classmethod
    def from_intervals(
        cls,
        poll_ms: float,
        require_task_name: bool = True,
        include_task_name: bool = True,
    ) -> "MonitorSettings":
        if poll_ms <= 0:
            raise ValueError("poll interval must be positive")
        return cls(
            poll_interval=timedelta(milliseconds=poll_ms),
            require_task_name=require_task_name,
            include_task_name=include_task_name,
        )
