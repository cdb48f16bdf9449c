"""Background writer that keeps store I/O off the sampling thread."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import StoreWriteError
from .store import DetailStore, SessionStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WriteJob:
    kind: str  # 'session', 'detail_reset' or 'detail'
    payload: Any


ResultCallback = Callable[[WriteJob, Optional[StoreWriteError]], None]


class StoreWriter:
    """Applies write jobs to the stores in FIFO order on its own thread."""

    def __init__(
        self,
        sessions: SessionStore,
        details: DetailStore,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        self.sessions = sessions
        self.details = details
        self.on_result = on_result
        self._queue: "queue.Queue[WriteJob]" = queue.Queue()
        self._running = False
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._running = True
        self._thread = threading.Thread(target=self._run, name="store-writer", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._running = False
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

    def put(self, job: WriteJob) -> None:
        self._queue.put(job)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued job has been applied."""
        with self._queue.all_tasks_done:
            return self._queue.all_tasks_done.wait_for(
                lambda: self._queue.unfinished_tasks == 0, timeout
            )

    def _run(self) -> None:
        while self._running or not self._queue.empty():
            try:
                job = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            try:
                self._apply(job)
            finally:
                self._queue.task_done()

    def _apply(self, job: WriteJob) -> None:
        error: Optional[StoreWriteError] = None
        try:
            if job.kind == "session":
                self.sessions.append(job.payload)
            elif job.kind == "detail_reset":
                self.details.reset(job.payload)
            elif job.kind == "detail":
                self.details.append(job.payload)
            else:
                raise ValueError(f"Unknown write job kind: {job.kind}")
        except StoreWriteError as exc:
            logger.exception("Store write failed for %s job", job.kind)
            error = exc
        except Exception as exc:
            # Any failure is reported; the thread keeps draining the queue.
            logger.exception("Unexpected error applying %s job", job.kind)
            path = self.sessions.path if job.kind == "session" else self.details.path
            error = StoreWriteError(path, f"{type(exc).__name__}: {exc}")
        if self.on_result is not None:
            try:
                self.on_result(job, error)
            except Exception:
                logger.exception("Write result callback failed for %s job", job.kind)
