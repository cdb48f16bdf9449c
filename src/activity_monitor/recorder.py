"""Session recorder: the start/stop state machine around the action timeline."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from .config import MonitorSettings
from .errors import AlreadyRecording, MissingTaskName, NotRecording, StoreWriteError
from .models import (
    ActivityEvent,
    MonitoringState,
    RecorderStatus,
    Session,
    make_session_id,
    utc_now,
)
from .writer import StoreWriter, WriteJob

logger = logging.getLogger(__name__)


class SessionRecorder:
    """Owns the single open session and every transition that touches it.

    All state lives behind one lock: ``start``, ``stop`` and ``record`` run
    as critical sections, and store I/O is handed to the writer queue while
    the lock is held so the detail mirror sees events in session order.
    """

    def __init__(
        self,
        writer: StoreWriter,
        settings: Optional[MonitorSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings or MonitorSettings()
        self._writer = writer
        self._writer.on_result = self._on_write_result
        self._clock = clock
        self._lock = threading.Lock()
        self._session: Optional[Session] = None
        self._unsaved: list[Session] = []
        self._notices: deque[str] = deque(maxlen=self.settings.notice_limit)
        self._status_text = (
            "Enter a task name to start monitoring"
            if self.settings.require_task_name
            else "Idle"
        )

    def start(self, task_name: Optional[str] = None) -> str:
        task = (task_name or "").strip()
        with self._lock:
            if self._session is not None:
                self._notify_locked("Already monitoring!")
                raise AlreadyRecording(
                    f"Session {self._session.session_id} is already recording"
                )
            if self.settings.require_task_name and not task:
                self._notify_locked("Please enter a task name first")
                raise MissingTaskName("A task name is required to start monitoring")

            now = self._clock()
            session = Session(
                session_id=make_session_id(now),
                task_name=task,
                start_time=now,
            )
            self._session = session
            self._writer.put(WriteJob("detail_reset", list(session.actions)))
            label = f"task: {task}" if task else f"session {session.session_id}"
            self._notify_locked(f"Started monitoring {label}")
        logger.info("Recording started: %s (task=%r)", session.session_id, task)
        return session.session_id

    def record(self, event: ActivityEvent) -> None:
        with self._lock:
            session = self._session
            if session is None:
                logger.debug("Ignoring %s while idle", type(event).__name__)
                return
            floor = session.actions[-1].timestamp if session.actions else session.start_time
            if event.timestamp < floor:
                event = replace(event, timestamp=floor)
            session.actions.append(event)
            self._writer.put(WriteJob("detail", event))

    def stop(self) -> Session:
        with self._lock:
            session = self._session
            if session is None:
                self._notify_locked("Monitoring is not running")
                raise NotRecording("No session is recording")
            session.end_time = max(self._clock(), session.start_time)
            self._session = None
            retries = list(self._unsaved)
            self._unsaved.clear()
            for pending in [*retries, session]:
                self._writer.put(WriteJob("session", pending))
            outcome = "Activities were recorded." if session.actions else "No activities were recorded."
            label = f"task: {session.task_name}" if session.task_name else f"session {session.session_id}"
            self._notify_locked(f"Stopped monitoring {label}. {outcome}")
        logger.info(
            "Recording stopped: %s after %.1fs with %d actions",
            session.session_id,
            session.duration_seconds,
            len(session.actions),
        )
        return session

    def flush(self) -> int:
        """Queue another append for every session whose save failed."""
        with self._lock:
            retries = list(self._unsaved)
            self._unsaved.clear()
            for pending in retries:
                self._writer.put(WriteJob("session", pending))
        if retries:
            logger.info("Retrying %d unsaved session(s)", len(retries))
        return len(retries)

    def status(self) -> RecorderStatus:
        with self._lock:
            session = self._session
            if session is None:
                return RecorderStatus(
                    state=MonitoringState.IDLE,
                    status_text=self._status_text,
                    unsaved_sessions=len(self._unsaved),
                )
            count = len(session.actions)
            return RecorderStatus(
                state=MonitoringState.RECORDING,
                status_text=f"Recording: {count} actions",
                session_id=session.session_id,
                task_name=session.task_name,
                start_time=session.start_time,
                action_count=count,
                unsaved_sessions=len(self._unsaved),
            )

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._session is not None

    def drain_notices(self) -> list[str]:
        with self._lock:
            notices = list(self._notices)
            self._notices.clear()
        return notices

    def _notify_locked(self, message: str) -> None:
        self._status_text = message
        self._notices.append(message)

    def _on_write_result(self, job: WriteJob, error: Optional[StoreWriteError]) -> None:
        if job.kind != "session":
            if error is not None:
                with self._lock:
                    self._notices.append(f"Could not update session details: {error.reason}")
            return
        session: Session = job.payload
        with self._lock:
            if error is None:
                self._notices.append(f"Saved session {session.session_id}")
                return
            self._unsaved.append(session)
            self._notify_locked(
                f"Error saving session {session.session_id}: {error.reason}. "
                "It will be retried on the next stop or flush."
            )
