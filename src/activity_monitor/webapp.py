"""FastAPI application that exposes a local control API for the activity monitor."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from .config import MonitorSettings
from .errors import AlreadyRecording, MissingTaskName, NotRecording
from .models import ActivityEvent, KeysPressed, PointerMoved, Session
from .monitor import ActivityMonitor, create_monitor
from .paths import get_details_path, get_sessions_path
from .store import format_timestamp

logger = logging.getLogger(__name__)

MonitorFactory = Callable[[Path, Path, MonitorSettings], ActivityMonitor]


class MonitorRunner:
    """Manage the sampling loop in a background thread."""

    def __init__(self, monitor: ActivityMonitor) -> None:
        self.monitor = monitor
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self.monitor.run_until_stopped,
                args=(stop_event,),
                name="activity-sampler",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.info("Monitor background thread started.")

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread:
            thread.join(timeout=10)
            logger.info("Monitor background thread stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())


class StartPayload(BaseModel):
    task_name: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


def _default_factory(
    sessions_path: Path, details_path: Path, settings: MonitorSettings
) -> ActivityMonitor:
    return create_monitor(sessions_path, details_path, settings)


def create_app(
    *,
    sessions_path: Optional[Path] = None,
    details_path: Optional[Path] = None,
    settings: Optional[MonitorSettings] = None,
    monitor_factory: Optional[MonitorFactory] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_sessions = Path(sessions_path or get_sessions_path())
    resolved_details = Path(details_path or get_details_path())
    resolved_settings = settings or MonitorSettings()
    factory = monitor_factory or _default_factory
    monitor = factory(resolved_sessions, resolved_details, resolved_settings)
    runner = MonitorRunner(monitor)

    app = FastAPI(title="Activity Monitor", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.monitor = monitor
    app.state.monitor_runner = runner

    @app.on_event("startup")
    async def _startup() -> None:
        runner.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        runner.stop()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        snapshot = request.app.state.monitor.status()
        return {
            "monitor_running": request.app.state.monitor_runner.is_running(),
            "state": snapshot.state.value,
            "status_text": snapshot.status_text,
            "session_id": snapshot.session_id,
            "task_name": snapshot.task_name,
            "start_time": format_timestamp(snapshot.start_time) if snapshot.start_time else None,
            "action_count": snapshot.action_count,
            "unsaved_sessions": snapshot.unsaved_sessions,
            "sessions_path": str(resolved_sessions),
            "details_path": str(resolved_details),
            "poll_ms": resolved_settings.poll_interval.total_seconds() * 1000.0,
        }

    @app.post("/api/sessions/start", status_code=201)
    def start_session(payload: StartPayload, request: Request) -> Dict[str, Any]:
        try:
            session_id = request.app.state.monitor.start(payload.task_name)
        except AlreadyRecording as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except MissingTaskName as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"session_id": session_id, "task_name": (payload.task_name or "").strip()}

    @app.post("/api/sessions/stop")
    def stop_session(request: Request) -> Dict[str, Any]:
        try:
            session = request.app.state.monitor.stop()
        except NotRecording as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _session_payload(session)

    @app.post("/api/sessions/flush")
    def flush_sessions(request: Request) -> Dict[str, Any]:
        return {"queued": request.app.state.monitor.flush()}

    @app.get("/api/notices")
    def notices(request: Request) -> Dict[str, Any]:
        return {"notices": request.app.state.monitor.recorder.drain_notices()}

    @app.get("/api/sessions")
    def list_sessions(request: Request) -> Dict[str, Any]:
        sessions = request.app.state.monitor.sessions.read_sessions()
        return {"sessions": [_session_payload(session) for session in sessions]}

    @app.get("/api/sessions/latest/details")
    def latest_details(request: Request) -> Dict[str, Any]:
        return {"events": request.app.state.monitor.details.read_rows()}

    @app.get("/api/sessions/{session_id}")
    def get_session(session_id: str, request: Request) -> Dict[str, Any]:
        session = request.app.state.monitor.sessions.find(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"No session {session_id}")
        payload = _session_payload(session)
        payload["actions"] = [_action_payload(action) for action in session.actions]
        return payload

    return app


def _session_payload(session: Session) -> Dict[str, Any]:
    return {
        "session_id": session.session_id,
        "task_name": session.task_name,
        "start_time": format_timestamp(session.start_time),
        "end_time": format_timestamp(session.end_time) if session.end_time else None,
        "duration_seconds": session.duration_seconds,
        "action_count": len(session.actions),
    }


def _action_payload(action: ActivityEvent) -> Dict[str, Any]:
    if isinstance(action, PointerMoved):
        return {
            "type": "mouse",
            "timestamp": format_timestamp(action.timestamp),
            "x": action.x,
            "y": action.y,
        }
    if isinstance(action, KeysPressed):
        return {
            "type": "key",
            "timestamp": format_timestamp(action.timestamp),
            "keys": list(action.keys),
        }
    raise TypeError(f"Unsupported activity event: {action!r}")
