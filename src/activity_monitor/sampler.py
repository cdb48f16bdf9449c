"""Change-detecting sampler that turns input snapshots into events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from .models import ActivityEvent, KeysPressed, PointerMoved, utc_now
from .sources import EventSource

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SamplerState:
    last_pointer: tuple[int, int] = (0, 0)
    last_keys: frozenset[str] = field(default_factory=frozenset)


class EventSampler:
    """Emits pointer and key events only when the observed input changes.

    The sampler keeps its memory up to date on every poll, whether or not a
    session is being recorded. Within one poll a pointer event always comes
    before a key event.
    """

    def __init__(
        self,
        source: EventSource,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._source = source
        self._clock = clock
        self._state = SamplerState()

    @property
    def last_pointer(self) -> tuple[int, int]:
        return self._state.last_pointer

    def poll(self) -> list[ActivityEvent]:
        try:
            pointer = tuple(self._source.get_pointer())
            keys = tuple(self._source.get_keys())
        except Exception:
            logger.warning("Input source query failed; skipping this sample.", exc_info=True)
            return []

        timestamp = self._clock()
        events: list[ActivityEvent] = []

        move = self._pointer_event(timestamp, pointer)
        if move:
            events.append(move)
        press = self._keys_event(timestamp, keys)
        if press:
            events.append(press)

        for event in events:
            logger.debug("Sampled %s", event)
        return events

    def _pointer_event(
        self, timestamp: datetime, pointer: tuple[int, ...]
    ) -> Optional[PointerMoved]:
        x, y = int(pointer[0]), int(pointer[1])
        if (x, y) == self._state.last_pointer:
            return None
        self._state.last_pointer = (x, y)
        return PointerMoved(timestamp=timestamp, x=x, y=y)

    def _keys_event(
        self, timestamp: datetime, keys: tuple[str, ...]
    ) -> Optional[KeysPressed]:
        current = frozenset(keys)
        changed = current != self._state.last_keys
        self._state.last_keys = current
        if not changed or not current:
            return None
        ordered = tuple(dict.fromkeys(keys))
        return KeysPressed(timestamp=timestamp, keys=ordered)
