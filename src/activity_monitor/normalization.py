"""Utilities to normalize key identifiers reported by input backends."""

from __future__ import annotations

import re
from typing import Optional

# Characters that would clash with the "+"-joined key list or read poorly in logs.
_CHAR_NAMES: dict[str, str] = {
    "+": "Plus",
    " ": "Space",
    "\t": "Tab",
    "\n": "Enter",
    "\r": "Enter",
}

_SPECIAL_ALIASES: dict[str, str] = {
    "ctrl_l": "LControl",
    "ctrl_r": "RControl",
    "ctrl": "Control",
    "shift_l": "LShift",
    "shift_r": "RShift",
    "shift": "Shift",
    "alt_l": "LAlt",
    "alt_r": "RAlt",
    "alt_gr": "RAlt",
    "alt": "Alt",
    "cmd_l": "LMeta",
    "cmd_r": "RMeta",
    "cmd": "Meta",
    "esc": "Escape",
    "page_up": "PageUp",
    "page_down": "PageDown",
    "caps_lock": "CapsLock",
    "num_lock": "NumLock",
    "scroll_lock": "ScrollLock",
    "print_screen": "PrintScreen",
}

_KEY_PREFIX_PATTERN = re.compile(r"^Key\.", re.IGNORECASE)


def normalize_key_name(raw: Optional[str]) -> Optional[str]:
    """Return a stable, display-friendly identifier for a key.

    Printable characters are upper-cased, named keys (``Key.shift_l`` or
    ``shift_l``) map to title-cased names, and characters that collide with
    the ``+`` separator get spelled out.
    """
    if raw is None or raw == "":
        return None
    if len(raw) == 1:
        if raw in _CHAR_NAMES:
            return _CHAR_NAMES[raw]
        if not raw.isprintable():
            return None
        return raw.upper()

    name = _KEY_PREFIX_PATTERN.sub("", raw.strip()).lower()
    if not name:
        return None
    alias = _SPECIAL_ALIASES.get(name)
    if alias:
        return alias
    return "".join(part.capitalize() for part in name.split("_"))
