"""Keyboard input events.

``parse_key_event`` turns one chunk of raw terminal input into a ``KeyEvent``
whose ``key`` uses the ``"ctrl+shift+a"`` identifier format.  Splitting a
stream into chunks is the input layer's job.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from pi.render.errors import InputParsingError

MODIFIERS = {"shift": 1, "alt": 2, "ctrl": 4}

# Final byte of CSI / SS3 sequences -> key name
_CSI_FINAL: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}

# CSI <n> ~ sequences
_CSI_TILDE: dict[str, str] = {
    "1": "home",
    "2": "insert",
    "3": "delete",
    "4": "end",
    "5": "pageUp",
    "6": "pageDown",
    "7": "home",
    "8": "end",
}

_CSI_RE = re.compile(r"^\x1b\[(?:1;(\d+))?([A-DHF])$")
_SS3_RE = re.compile(r"^\x1bO([A-DHF])$")
_TILDE_RE = re.compile(r"^\x1b\[(\d+)(?:;(\d+))?~$")


@dataclass(frozen=True)
class KeyEvent:
    key: str
    char: str | None = None
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    raw: str = ""

    def matches(self, key_id: str) -> bool:
        return self.key == key_id


def _key_id(name: str, *, ctrl: bool = False, shift: bool = False, alt: bool = False) -> str:
    prefix = ""
    if ctrl:
        prefix += "ctrl+"
    if shift:
        prefix += "shift+"
    if alt:
        prefix += "alt+"
    return prefix + name


def _event(name: str, data: str, *, ctrl: bool = False, shift: bool = False, alt: bool = False, char: str | None = None) -> KeyEvent:
    return KeyEvent(
        key=_key_id(name, ctrl=ctrl, shift=shift, alt=alt),
        char=char,
        ctrl=ctrl,
        alt=alt,
        shift=shift,
        raw=data,
    )


def _modifier_flags(param: str | None) -> dict[str, bool]:
    if not param:
        return {}
    mod = int(param) - 1
    return {name: bool(mod & bit) for name, bit in MODIFIERS.items()}


def parse_key_event(data: str) -> KeyEvent:
    """Parse one key press.  Raises ``InputParsingError`` if not recognised."""
    if not data:
        raise InputParsingError("Empty key input")

    if data == "\x1b":
        return _event("escape", data)
    if data in ("\r", "\n"):
        return _event("enter", data)
    if data == "\t":
        return _event("tab", data)
    if data == "\x1b[Z":
        return _event("tab", data, shift=True)
    if data == " ":
        return _event("space", data, char=" ")
    if data in ("\x7f", "\x08"):
        return _event("backspace", data)
    if data == "\x00":
        return _event("space", data, ctrl=True)

    m = _CSI_RE.match(data)
    if m:
        return _event(_CSI_FINAL[m.group(2)], data, **_modifier_flags(m.group(1)))
    m = _SS3_RE.match(data)
    if m:
        return _event(_CSI_FINAL[m.group(1)], data)
    m = _TILDE_RE.match(data)
    if m and m.group(1) in _CSI_TILDE:
        return _event(_CSI_TILDE[m.group(1)], data, **_modifier_flags(m.group(2)))

    # Ctrl + letter (0x01 - 0x1a)
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return _event(chr(ord(data) + ord("a") - 1), data, ctrl=True)

    # Alt + key (ESC prefix)
    if len(data) == 2 and data[0] == "\x1b":
        inner = parse_key_event(data[1])
        if inner.alt:
            raise InputParsingError(f"Unrecognised key input: {data!r}", context={"raw": data})
        return KeyEvent(
            key=_key_id(inner.key.split("+")[-1], ctrl=inner.ctrl, shift=inner.shift, alt=True),
            char=None,
            ctrl=inner.ctrl,
            alt=True,
            shift=inner.shift,
            raw=data,
        )

    if data.isprintable() and "\x1b" not in data:
        if len(data) == 1 and data.isupper():
            return _event(data.lower(), data, shift=True, char=data)
        # Multi-character printable input (pasted text or a grapheme cluster)
        return _event(data if len(data) == 1 else "text", data, char=data)

    raise InputParsingError(f"Unrecognised key input: {data!r}", context={"raw": data})
