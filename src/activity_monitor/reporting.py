"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Iterable

from .models import KeysPressed, PointerMoved, Session
from .store import SessionStore, format_timestamp


class SessionPrinter:
    """Render human-readable session listings in the console."""

    def __init__(self, sessions_path: Path) -> None:
        self.store = SessionStore(Path(sessions_path))

    def print_sessions(self) -> None:
        sessions = self.store.read_sessions()
        if not sessions:
            print("No sessions recorded yet.")
            return

        print(f"{'Session':<17} {'Task':<28} {'Duration':>9} {'Moves':>7} {'Keys':>6}")
        print("-" * 71)
        for session in sessions:
            counts = count_actions(session.actions)
            task = session.task_name or "(none)"
            print(
                f"{session.session_id:<17} {task[:28]:<28} "
                f"{format_duration(session.duration_seconds):>9} "
                f"{counts['mouse']:>7} {counts['key']:>6}"
            )

    def print_session(self, session_id: str) -> bool:
        session = self.store.find(session_id)
        if session is None:
            print(f"No session found with id {session_id}.")
            return False

        print(f"Session {session.session_id}")
        if session.task_name:
            print(f"Task:     {session.task_name}")
        print(f"Started:  {format_timestamp(session.start_time)}")
        if session.end_time:
            print(f"Stopped:  {format_timestamp(session.end_time)}")
        print(f"Duration: {format_duration(session.duration_seconds)}")
        print()
        for line in timeline_lines(session):
            print(line)
        return True


def count_actions(actions: Iterable[object]) -> Counter:
    counts: Counter = Counter(mouse=0, key=0)
    for action in actions:
        if isinstance(action, PointerMoved):
            counts["mouse"] += 1
        elif isinstance(action, KeysPressed):
            counts["key"] += 1
    return counts


def timeline_lines(session: Session) -> list[str]:
    lines = []
    for action in session.actions:
        offset = (action.timestamp - session.start_time).total_seconds()
        if isinstance(action, PointerMoved):
            lines.append(f"  +{offset:8.3f}s  mouse  ({action.x}, {action.y})")
        else:
            lines.append(f"  +{offset:8.3f}s  keys   {action.combo}")
    return lines


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
