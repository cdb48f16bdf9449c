"""CSV stores for completed sessions and the latest session's raw events."""

from __future__ import annotations

import csv
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from .errors import StoreWriteError
from .models import ActivityEvent, KeysPressed, PointerMoved, Session

logger = logging.getLogger(__name__)

SESSION_COLUMNS = ("session_id", "task_name", "start_time", "end_time", "actions")
DETAIL_COLUMNS = ("timestamp", "event_type", "details", "mouse_x", "mouse_y")

_ACTION_PATTERN = re.compile(
    r"\{mouse,(?P<mouse_ts>[^,{};]+),\((?P<x>-?\d+),(?P<y>-?\d+)\)\}"
    r"|\{key,(?P<key_ts>[^,{};]+),\"(?P<keys>(?:[^\"\\]|\\.)*)\"\}"
)
_SPECIAL_KEY_CHARS = re.compile(r'[\\"+]')

# UnicodeEncodeError is a ValueError.
_WRITE_ERRORS = (OSError, ValueError, csv.Error)


def format_timestamp(value: datetime) -> str:
    """Render an instant as ISO-8601 UTC with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    if value.microsecond:
        return value.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(text: str) -> datetime:
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def encode_action(event: ActivityEvent) -> str:
    timestamp = format_timestamp(event.timestamp)
    if isinstance(event, PointerMoved):
        return f"{{mouse,{timestamp},({event.x},{event.y})}}"
    if isinstance(event, KeysPressed):
        quoted = "+".join(_escape_key(key) for key in event.keys)
        return f'{{key,{timestamp},"{quoted}"}}'
    raise TypeError(f"Unsupported activity event: {event!r}")


def _escape_key(key: str) -> str:
    return _SPECIAL_KEY_CHARS.sub(r"\\\g<0>", key)


def _split_keys(raw: str) -> tuple[str, ...]:
    """Split a quoted key list on unescaped ``+`` and drop the escapes."""
    keys: list[str] = []
    current: list[str] = []
    escaped = False
    for char in raw:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "+":
            keys.append("".join(current))
            current = []
        else:
            current.append(char)
    keys.append("".join(current))
    return tuple(keys)


def encode_actions(events: Iterable[ActivityEvent]) -> str:
    return ";".join(encode_action(event) for event in events)


def decode_actions(text: str) -> list[ActivityEvent]:
    """Parse an encoded actions field back into events, in order."""
    events: list[ActivityEvent] = []
    if not text:
        return events
    pos = 0
    while True:
        match = _ACTION_PATTERN.match(text, pos)
        if match is None:
            raise ValueError(f"Malformed action at offset {pos}: {text[pos:pos + 40]!r}")
        if match.group("mouse_ts") is not None:
            events.append(
                PointerMoved(
                    timestamp=parse_timestamp(match.group("mouse_ts")),
                    x=int(match.group("x")),
                    y=int(match.group("y")),
                )
            )
        else:
            events.append(
                KeysPressed(
                    timestamp=parse_timestamp(match.group("key_ts")),
                    keys=_split_keys(match.group("keys")),
                )
            )
        pos = match.end()
        if pos == len(text):
            return events
        if text[pos] != ";":
            raise ValueError(f"Expected ';' between actions at offset {pos}")
        pos += 1


def session_to_row(session: Session, *, include_task_name: bool = True) -> list[str]:
    row = [session.session_id]
    if include_task_name:
        row.append(session.task_name)
    row.extend(
        [
            format_timestamp(session.start_time),
            format_timestamp(session.end_time) if session.end_time else "",
            encode_actions(session.actions),
        ]
    )
    return row


def describe_event(event: ActivityEvent) -> tuple[str, str, Optional[int], Optional[int]]:
    """Return ``(event_type, details, x, y)`` for the detail store."""
    if isinstance(event, PointerMoved):
        return "mouse_move", f"Moved to ({event.x}, {event.y})", event.x, event.y
    if isinstance(event, KeysPressed):
        return "keyboard", event.combo, None, None
    raise TypeError(f"Unsupported activity event: {event!r}")


class SessionStore:
    """Append-only CSV file holding one row per completed session."""

    def __init__(self, path: Path, *, include_task_name: bool = True) -> None:
        self.path = Path(path)
        self.include_task_name = include_task_name

    @property
    def header(self) -> tuple[str, ...]:
        if self.include_task_name:
            return SESSION_COLUMNS
        return tuple(col for col in SESSION_COLUMNS if col != "task_name")

    def append(self, session: Session) -> None:
        row = session_to_row(session, include_task_name=self.include_task_name)
        try:
            # Fields must encode as UTF-8 before anything is written.
            for field in row:
                field.encode("utf-8")
            self.path.parent.mkdir(parents=True, exist_ok=True)
            is_new = not self.path.exists() or self.path.stat().st_size == 0
            if not is_new:
                self._check_header()
            with self.path.open("a", newline="", encoding="utf-8") as handle:
                writer = csv.writer(handle)
                if is_new:
                    writer.writerow(self.header)
                writer.writerow(row)
        except _WRITE_ERRORS as exc:
            raise StoreWriteError(self.path, str(exc)) from exc
        logger.info(
            "Saved session %s (%d actions) to %s",
            session.session_id,
            len(session.actions),
            self.path,
        )

    def _check_header(self) -> None:
        with self.path.open("r", newline="", encoding="utf-8") as handle:
            existing = tuple(next(csv.reader(handle), ()))
        if existing != self.header:
            raise StoreWriteError(
                self.path,
                f"existing columns {','.join(existing)} do not match {','.join(self.header)}",
            )

    def read_sessions(self) -> list[Session]:
        if not self.path.exists():
            return []
        sessions: list[Session] = []
        with self.path.open("r", newline="", encoding="utf-8") as handle:
            for row in csv.DictReader(handle):
                end_time = row.get("end_time") or ""
                sessions.append(
                    Session(
                        session_id=row["session_id"],
                        task_name=row.get("task_name") or "",
                        start_time=parse_timestamp(row["start_time"]),
                        end_time=parse_timestamp(end_time) if end_time else None,
                        actions=decode_actions(row.get("actions") or ""),
                    )
                )
        return sessions

    def find(self, session_id: str) -> Optional[Session]:
        for session in self.read_sessions():
            if session.session_id == session_id:
                return session
        return None


class DetailStore:
    """CSV mirror of the current (or most recent) session's raw events."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def reset(self, events: Iterable[ActivityEvent] = ()) -> None:
        """Recreate the file and replay ``events`` into it."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", newline="", encoding="utf-8") as handle:
                writer = csv.writer(handle)
                writer.writerow(DETAIL_COLUMNS)
                writer.writerows(self._row(event) for event in events)
        except _WRITE_ERRORS as exc:
            raise StoreWriteError(self.path, str(exc)) from exc

    def append(self, event: ActivityEvent) -> None:
        try:
            if not self.path.exists():
                self.reset()
            with self.path.open("a", newline="", encoding="utf-8") as handle:
                csv.writer(handle).writerow(self._row(event))
        except _WRITE_ERRORS as exc:
            raise StoreWriteError(self.path, str(exc)) from exc

    def read_rows(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        with self.path.open("r", newline="", encoding="utf-8") as handle:
            return list(csv.DictReader(handle))

    @staticmethod
    def _row(event: ActivityEvent) -> list[str]:
        event_type, details, x, y = describe_event(event)
        return [
            format_timestamp(event.timestamp),
            event_type,
            details,
            "" if x is None else str(x),
            "" if y is None else str(y),
        ]
