"""Tests for the FastAPI control API.

Covers: status, start/stop with their conflict responses, notices, and
reading stored sessions back.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from activity_monitor.config import MonitorSettings
from activity_monitor.models import KeysPressed, PointerMoved
from activity_monitor.monitor import ActivityMonitor
from activity_monitor.webapp import create_app

from conftest import FakeClock, FakeSource


@pytest.fixture()
def client(tmp_path: Path, source: FakeSource, clock: FakeClock) -> Iterator[TestClient]:
    def factory(sessions_path: Path, details_path: Path, settings: MonitorSettings) -> ActivityMonitor:
        return ActivityMonitor(source, sessions_path, details_path, settings, clock=clock)

    app = create_app(
        sessions_path=tmp_path / "sessions.csv",
        details_path=tmp_path / "details.csv",
        settings=MonitorSettings(require_task_name=True),
        monitor_factory=factory,
    )
    with TestClient(app) as test_client:
        yield test_client


def _wait_for_writes(client: TestClient) -> None:
    assert client.app.state.monitor.writer.wait_idle(timeout=5)


class TestStatus:
    def test_idle_status(self, client: TestClient) -> None:
        resp = client.get("/api/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["monitor_running"] is True
        assert data["state"] == "idle"
        assert data["session_id"] is None
        assert data["poll_ms"] == pytest.approx(50.0)


class TestSessionControl:
    def test_start_and_stop(self, client: TestClient, clock: FakeClock) -> None:
        resp = client.post("/api/sessions/start", json={"task_name": "fill form"})
        assert resp.status_code == 201
        assert resp.json() == {"session_id": "20240120_123456", "task_name": "fill form"}

        status = client.get("/api/status").json()
        assert status["state"] == "recording"
        assert status["start_time"] == "2024-01-20T12:34:56Z"

        clock.advance(60)
        resp = client.post("/api/sessions/stop")
        assert resp.status_code == 200
        data = resp.json()
        assert data["end_time"] == "2024-01-20T12:35:56Z"
        assert data["duration_seconds"] == pytest.approx(60.0)

    def test_start_twice_conflicts(self, client: TestClient) -> None:
        client.post("/api/sessions/start", json={"task_name": "one"})
        resp = client.post("/api/sessions/start", json={"task_name": "two"})
        assert resp.status_code == 409
        assert client.get("/api/status").json()["task_name"] == "one"

    def test_start_without_task_is_rejected(self, client: TestClient) -> None:
        resp = client.post("/api/sessions/start", json={})
        assert resp.status_code == 400

    def test_stop_when_idle_conflicts(self, client: TestClient) -> None:
        resp = client.post("/api/sessions/stop")
        assert resp.status_code == 409

    def test_unknown_fields_rejected(self, client: TestClient) -> None:
        resp = client.post("/api/sessions/start", json={"task_name": "x", "extra": 1})
        assert resp.status_code == 422

    def test_flush_with_nothing_pending(self, client: TestClient) -> None:
        assert client.post("/api/sessions/flush").json() == {"queued": 0}


class TestNotices:
    def test_notices_are_drained(self, client: TestClient) -> None:
        client.post("/api/sessions/stop")
        first = client.get("/api/notices").json()["notices"]
        assert first == ["Monitoring is not running"]
        assert client.get("/api/notices").json()["notices"] == []


class TestStoredSessions:
    def _record(self, client: TestClient, clock: FakeClock) -> None:
        client.post("/api/sessions/start", json={"task_name": "demo"})
        recorder = client.app.state.monitor.recorder
        recorder.record(PointerMoved(timestamp=clock.advance(1), x=100, y=200))
        recorder.record(KeysPressed(timestamp=clock.advance(1), keys=("A", "B")))
        clock.advance(1)
        client.post("/api/sessions/stop")
        _wait_for_writes(client)

    def test_list_sessions(self, client: TestClient, clock: FakeClock) -> None:
        self._record(client, clock)
        sessions = client.get("/api/sessions").json()["sessions"]
        assert len(sessions) == 1
        assert sessions[0]["session_id"] == "20240120_123456"
        assert sessions[0]["action_count"] == 2

    def test_get_session_actions(self, client: TestClient, clock: FakeClock) -> None:
        self._record(client, clock)
        data = client.get("/api/sessions/20240120_123456").json()
        assert data["actions"] == [
            {"type": "mouse", "timestamp": "2024-01-20T12:34:57Z", "x": 100, "y": 200},
            {"type": "key", "timestamp": "2024-01-20T12:34:58Z", "keys": ["A", "B"]},
        ]

    def test_missing_session(self, client: TestClient) -> None:
        assert client.get("/api/sessions/19990101_000000").status_code == 404

    def test_latest_details(self, client: TestClient, clock: FakeClock) -> None:
        self._record(client, clock)
        events = client.get("/api/sessions/latest/details").json()["events"]
        assert [e["event_type"] for e in events] == ["mouse_move", "keyboard"]
