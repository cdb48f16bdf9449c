"""Tests for console reporting helpers and settings."""

from __future__ import annotations

import datetime as dt

import pytest

from activity_monitor.config import MonitorSettings
from activity_monitor.models import KeysPressed, PointerMoved, Session
from activity_monitor.reporting import count_actions, format_duration, timeline_lines

from conftest import utc


class TestFormatDuration:
    def test_formats_hours_minutes_seconds(self) -> None:
        assert format_duration(0) == "00:00:00"
        assert format_duration(61.4) == "00:01:01"
        assert format_duration(3 * 3600 + 5) == "03:00:05"


class TestTimeline:
    def test_offsets_relative_to_start(self) -> None:
        session = Session(
            session_id="20240120_123456",
            start_time=utc(2024, 1, 20, 12, 34, 56),
            actions=[
                PointerMoved(timestamp=utc(2024, 1, 20, 12, 34, 57), x=1, y=2),
                KeysPressed(timestamp=utc(2024, 1, 20, 12, 34, 58, 500000), keys=("LControl", "S")),
            ],
        )
        lines = timeline_lines(session)
        assert lines[0].strip() == "+   1.000s  mouse  (1, 2)"
        assert lines[1].endswith("keys   LControl+S")
        assert count_actions(session.actions) == {"mouse": 1, "key": 1}


class TestMonitorSettings:
    def test_defaults(self) -> None:
        settings = MonitorSettings()
        assert settings.poll_interval == dt.timedelta(milliseconds=50)
        assert settings.require_task_name
        assert settings.include_task_name

    def test_from_intervals(self) -> None:
        settings = MonitorSettings.from_intervals(poll_ms=20, require_task_name=False)
        assert settings.poll_interval == dt.timedelta(milliseconds=20)
        assert not settings.require_task_name
        assert settings.include_task_name

    def test_from_intervals_narrow_layout_on_request(self) -> None:
        settings = MonitorSettings.from_intervals(poll_ms=20, include_task_name=False)
        assert settings.require_task_name
        assert not settings.include_task_name

    def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValueError):
            MonitorSettings.from_intervals(poll_ms=0)
