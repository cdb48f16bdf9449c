"""Shared fixtures for the activity monitor test suite."""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Iterator

import pytest

from activity_monitor.config import MonitorSettings
from activity_monitor.errors import SourceQueryError
from activity_monitor.recorder import SessionRecorder
from activity_monitor.store import DetailStore, SessionStore
from activity_monitor.writer import StoreWriter


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: dt.datetime) -> None:
        self.now = start

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, seconds: float) -> dt.datetime:
        self.now = self.now + dt.timedelta(seconds=seconds)
        return self.now

    def set(self, value: dt.datetime) -> None:
        self.now = value


class FakeSource:
    """Event source whose pointer and held keys are set by the test."""

    def __init__(self) -> None:
        self.pointer: tuple[int, int] = (0, 0)
        self.keys: tuple[str, ...] = ()
        self.fail = False
        self.stopped = False

    def get_keys(self) -> tuple[str, ...]:
        if self.fail:
            raise SourceQueryError("keyboard unavailable")
        return self.keys

    def get_pointer(self) -> tuple[int, int]:
        if self.fail:
            raise SourceQueryError("pointer unavailable")
        return self.pointer

    def stop(self) -> None:
        self.stopped = True


def utc(*args: int) -> dt.datetime:
    return dt.datetime(*args, tzinfo=dt.timezone.utc)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(utc(2024, 1, 20, 12, 34, 56))


@pytest.fixture()
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture()
def session_store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "monitoring_sessions.csv")


@pytest.fixture()
def detail_store(tmp_path: Path) -> DetailStore:
    return DetailStore(tmp_path / "latest_session_details.csv")


@pytest.fixture()
def writer(session_store: SessionStore, detail_store: DetailStore) -> Iterator[StoreWriter]:
    store_writer = StoreWriter(session_store, detail_store)
    store_writer.start()
    yield store_writer
    store_writer.stop()


@pytest.fixture()
def recorder(writer: StoreWriter, clock: FakeClock) -> SessionRecorder:
    return SessionRecorder(
        writer, MonitorSettings(require_task_name=False), clock=clock
    )
