"""Tests for pi.render.events — raw key input parsing."""

from __future__ import annotations

import pytest

from pi.render.errors import ErrorKind, InputParsingError
from pi.render.events import KeyEvent, parse_key_event


class TestSpecialKeys:
    @pytest.mark.parametrize(
        "data, key",
        [
            ("\x1b", "escape"),
            ("\r", "enter"),
            ("\n", "enter"),
            ("\t", "tab"),
            ("\x1b[Z", "shift+tab"),
            (" ", "space"),
            ("\x7f", "backspace"),
            ("\x08", "backspace"),
            ("\x00", "ctrl+space"),
        ],
    )
    def test_named(self, data, key):
        assert parse_key_event(data).key == key

    @pytest.mark.parametrize(
        "data, key",
        [
            ("\x1b[A", "up"),
            ("\x1b[B", "down"),
            ("\x1b[C", "right"),
            ("\x1b[D", "left"),
            ("\x1b[H", "home"),
            ("\x1b[F", "end"),
            ("\x1bOA", "up"),
            ("\x1b[2~", "insert"),
            ("\x1b[3~", "delete"),
            ("\x1b[5~", "pageUp"),
            ("\x1b[6~", "pageDown"),
        ],
    )
    def test_navigation(self, data, key):
        assert parse_key_event(data).key == key

    def test_modified_arrow(self):
        event = parse_key_event("\x1b[1;5C")
        assert event.key == "ctrl+right"
        assert event.ctrl and not event.shift

    def test_shift_alt_arrow(self):
        event = parse_key_event("\x1b[1;4A")
        assert event.key == "shift+alt+up"


class TestCharacters:
    def test_printable(self):
        event = parse_key_event("a")
        assert event == KeyEvent("a", char="a", raw="a")

    def test_uppercase_is_shifted(self):
        event = parse_key_event("A")
        assert event.key == "shift+a"
        assert event.char == "A"

    def test_ctrl_letter(self):
        event = parse_key_event("\x03")
        assert event.key == "ctrl+c"
        assert event.ctrl and event.char is None

    def test_alt_prefix(self):
        assert parse_key_event("\x1bx").key == "alt+x"
        assert parse_key_event("\x1b\r").key == "alt+enter"
        assert parse_key_event("\x1b\x01").key == "ctrl+alt+a"

    def test_pasted_text(self):
        event = parse_key_event("hello")
        assert event.key == "text"
        assert event.char == "hello"

    def test_wide_character(self):
        assert parse_key_event("日").char == "日"

    def test_matches(self):
        assert parse_key_event("\x1b[5~").matches("pageUp")
        assert not parse_key_event("\x1b[5~").matches("pageup")


class TestInvalidInput:
    @pytest.mark.parametrize("data", ["", "\x1b[99~", "\x1b[1;5Q", "\x1b\x1bx"])
    def test_unrecognised_input_raises(self, data):
        with pytest.raises(InputParsingError) as excinfo:
            parse_key_event(data)
        assert excinfo.value.kind is ErrorKind.INPUT_PARSING
