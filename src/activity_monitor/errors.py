"""Exceptions raised by the monitoring engine."""

from __future__ import annotations


class MonitorError(Exception):
    """Base exception for activity monitor errors."""


class AlreadyRecording(MonitorError):
    """Raised when a session is started while another one is open."""


class NotRecording(MonitorError):
    """Raised when stop is requested with no open session."""


class MissingTaskName(MonitorError):
    """Raised when a task name is required but none was given."""


class StoreWriteError(MonitorError):
    """Raised when a durable store could not be written."""

    def __init__(self, path, reason: str) -> None:
        super().__init__(f"Could not write {path}: {reason}")
        self.path = path
        self.reason = reason


class SourceQueryError(MonitorError):
    """Raised when the input event source cannot be queried."""
