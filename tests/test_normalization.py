"""Tests for key identifier normalization."""

from __future__ import annotations

import pytest

from activity_monitor.normalization import normalize_key_name
from activity_monitor.sources import PynputEventSource


class TestNormalizeKeyName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("a", "A"),
            ("A", "A"),
            ("7", "7"),
            ("+", "Plus"),
            (" ", "Space"),
            ("Key.shift_l", "LShift"),
            ("ctrl_r", "RControl"),
            ("Key.esc", "Escape"),
            ("f12", "F12"),
            ("page_down", "PageDown"),
            ("media_play_pause", "MediaPlayPause"),
        ],
    )
    def test_known_names(self, raw: str, expected: str) -> None:
        assert normalize_key_name(raw) == expected

    def test_empty_and_control_chars(self) -> None:
        assert normalize_key_name(None) is None
        assert normalize_key_name("") is None
        assert normalize_key_name("\x01") is None

    def test_names_never_contain_separator(self) -> None:
        for raw in ["+", "Key.plus", "shift"]:
            name = normalize_key_name(raw)
            assert name is not None
            assert "+" not in name


class _CharKey:
    def __init__(self, char):
        self.char = char


class _NamedKey:
    char = None

    def __init__(self, name):
        self.name = name


class _VirtualKey:
    char = None
    name = None

    def __init__(self, vk):
        self.vk = vk


class TestPynputKeyNames:
    def test_char_key(self) -> None:
        assert PynputEventSource._key_to_name(_CharKey("q")) == "Q"

    def test_named_key(self) -> None:
        assert PynputEventSource._key_to_name(_NamedKey("alt_l")) == "LAlt"

    def test_virtual_key(self) -> None:
        assert PynputEventSource._key_to_name(_VirtualKey(65)) == "Vk65"
