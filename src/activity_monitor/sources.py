"""Input event sources queried by the sampler."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

from .errors import SourceQueryError
from .normalization import normalize_key_name

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    """Anything that can report the current keyboard and pointer state."""

    def get_keys(self) -> tuple[str, ...]:
        ...

    def get_pointer(self) -> tuple[int, int]:
        ...


class PynputEventSource:
    """Polls pointer position and tracks held keys through pynput.

    pynput only offers callbacks for the keyboard, so a listener keeps the
    held-key set up to date and ``get_keys`` returns a copy of it in press
    order.
    """

    def __init__(self) -> None:
        from pynput import keyboard, mouse  # type: ignore

        self._mouse = mouse.Controller()
        self._pressed: dict[str, None] = {}
        self._lock = threading.Lock()
        self._listener = keyboard.Listener(
            on_press=self._on_press,
            on_release=self._on_release,
        )

    def start(self) -> None:
        self._listener.start()
        logger.info(
            "Input source ready (pointer at %s, keys held: %s)",
            self.get_pointer(),
            list(self.get_keys()) or "none",
        )

    def stop(self) -> None:
        self._listener.stop()

    def get_keys(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._pressed)

    def get_pointer(self) -> tuple[int, int]:
        try:
            x, y = self._mouse.position
        except Exception as exc:
            raise SourceQueryError(f"Pointer position unavailable: {exc}") from exc
        return int(x), int(y)

    def _on_press(self, key) -> None:
        name = self._key_to_name(key)
        if name is None:
            return
        with self._lock:
            self._pressed.setdefault(name, None)

    def _on_release(self, key) -> None:
        name = self._key_to_name(key)
        if name is None:
            return
        with self._lock:
            self._pressed.pop(name, None)

    @staticmethod
    def _key_to_name(key) -> Optional[str]:
        char = getattr(key, "char", None)
        if char is not None:
            return normalize_key_name(char)
        name = getattr(key, "name", None)
        if name:
            return normalize_key_name(name)
        vk = getattr(key, "vk", None)
        if vk is not None:
            return f"Vk{vk}"
        return None
