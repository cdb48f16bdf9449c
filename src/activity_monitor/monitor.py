"""Activity monitor: wires the sampler loop, recorder and store writer."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .config import MonitorSettings
from .errors import NotRecording
from .models import RecorderStatus, Session, utc_now
from .recorder import SessionRecorder
from .sampler import EventSampler
from .sources import EventSource, PynputEventSource
from .store import DetailStore, SessionStore
from .writer import StoreWriter

logger = logging.getLogger(__name__)


class ActivityMonitor:
    """Samples input at a fixed interval and feeds changes to the recorder."""

    def __init__(
        self,
        source: EventSource,
        sessions_path: Path,
        details_path: Path,
        settings: Optional[MonitorSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings or MonitorSettings()
        self.source = source
        self.sessions = SessionStore(
            sessions_path, include_task_name=self.settings.include_task_name
        )
        self.details = DetailStore(details_path)
        self.writer = StoreWriter(self.sessions, self.details)
        self.recorder = SessionRecorder(self.writer, self.settings, clock=clock)
        self.sampler = EventSampler(source, clock=clock)
        self._stop_event: Optional[threading.Event] = None

    # --- control API ---
    def start(self, task_name: Optional[str] = None) -> str:
        return self.recorder.start(task_name)

    def stop(self) -> Session:
        return self.recorder.stop()

    def status(self) -> RecorderStatus:
        return self.recorder.status()

    def flush(self) -> int:
        return self.recorder.flush()

    # --- sampling ---
    def sample_once(self) -> int:
        events = self.sampler.poll()
        for event in events:
            self.recorder.record(event)
        return len(events)

    def run_forever(self) -> None:
        stop_event = threading.Event()
        try:
            self.run_until_stopped(stop_event)
        except KeyboardInterrupt:
            logger.info("Monitor interrupted; saving the open session.")

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Run the sampling loop until the provided event is set."""
        self._stop_event = stop_event
        self.writer.start()
        try:
            self._run_loop(stop_event)
        finally:
            self._shutdown()

    def request_stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()

    def _run_loop(self, stop_event: threading.Event) -> None:
        logger.info(
            "Starting monitor; sessions -> %s, details -> %s",
            self.sessions.path,
            self.details.path,
        )
        interval = self.settings.poll_interval.total_seconds()
        while not stop_event.is_set():
            self.sample_once()
            # Sleep in an interruptible manner.
            stop_event.wait(interval)

    def _shutdown(self) -> None:
        try:
            if self.recorder.is_recording:
                self.recorder.stop()
        except NotRecording:
            logger.debug("Session was stopped concurrently with shutdown.")
        finally:
            self.writer.stop()
            stop_source = getattr(self.source, "stop", None)
            if callable(stop_source):
                stop_source()
            logger.info("Monitor stopped.")


def create_monitor(
    sessions_path: Path,
    details_path: Path,
    settings: Optional[MonitorSettings] = None,
) -> ActivityMonitor:
    """Build a monitor backed by the live keyboard and pointer."""
    source = PynputEventSource()
    source.start()
    return ActivityMonitor(
        source=source,
        sessions_path=sessions_path,
        details_path=details_path,
        settings=settings,
    )
