"""Cell-width measurement and wrapping for text content.

Everything here counts terminal cells, not code points: grapheme clusters
are measured with ``wcwidth`` after segmentation with ``grapheme``, so wide
CJK characters and emoji take two cells and combining marks take none.
Escape sequences embedded in text are ignored for measurement.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterator

import grapheme
import wcwidth as _wcwidth

# CSI, OSC 8 hyperlinks and APC payloads
_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[A-Za-z]"
    r"|\x1b\]8;;[^\x07]*\x07"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
)

TAB_WIDTH = 3

# ---------------------------------------------------------------------------
# Width cache (capped)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


def strip_ansi(text: str) -> str:
    return _STRIP_RE.sub("", text)


def grapheme_width(g: str) -> int:
    """Return the number of cells a single grapheme cluster occupies.

    Control characters and lone marks are zero width.  Emoji sequences
    (VS16, ZWJ, skin tones, regional indicators) are two cells.  Everything
    else is whatever ``wcwidth`` reports for the base code point.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or 0x7F <= cp <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    base = g[0]
    if ord(base) >= 0x1F000:
        return 2
    category = unicodedata.category(base)
    if category.startswith("M") or category == "Cf":
        return 0
    return max(_wcwidth.wcwidth(base), 0)


def iter_graphemes(text: str) -> Iterator[tuple[str, int]]:
    """Yield ``(cluster, cell_width)`` pairs; tabs expand to spaces."""
    for g in grapheme.graphemes(strip_ansi(text)):
        if g == "\t":
            for _ in range(TAB_WIDTH):
                yield " ", 1
            continue
        yield g, grapheme_width(g)


def visible_width(text: str) -> int:
    """Return the cell width of *text* (escape sequences excluded)."""
    if not text:
        return 0

    stripped = strip_ansi(text)
    if not stripped:
        return 0
    stripped = stripped.replace("\t", " " * TAB_WIDTH)

    if all(0x20 <= ord(ch) <= 0x7E for ch in stripped):
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------


def wrap_text(text: str, width: int) -> list[str]:
    """Word-wrap *text* into lines no wider than *width* cells.

    Embedded newlines are hard breaks.  Words longer than *width* are split
    at grapheme boundaries.  Trailing spaces at a soft break are dropped.
    """
    if width <= 0:
        return []

    result: list[str] = []
    for physical in text.split("\n"):
        result.extend(_wrap_line(physical, width))
    return result


def _wrap_line(line: str, width: int) -> list[str]:
    if not line:
        return [""]

    lines: list[str] = []
    current: list[tuple[str, int]] = []
    current_width = 0

    for g, w in iter_graphemes(line):
        if current_width + w > width and current:
            break_at = _last_space(current)
            if break_at is not None:
                head = current[:break_at]
                tail = current[break_at + 1 :]
                lines.append(_join(head).rstrip(" "))
                current = tail
                current_width = sum(cw for _, cw in tail)
            else:
                lines.append(_join(current))
                current = []
                current_width = 0
            if not current and g == " ":
                continue
        current.append((g, w))
        current_width += w

    lines.append(_join(current).rstrip(" ") if lines else _join(current))
    return lines


def _last_space(parts: list[tuple[str, int]]) -> int | None:
    for idx in range(len(parts) - 1, 0, -1):
        if parts[idx][0] == " ":
            return idx
    return None


def _join(parts: list[tuple[str, int]]) -> str:
    return "".join(g for g, _ in parts)


def truncate_to_width(text: str, max_width: int, ellipsis: str = "...") -> str:
    """Cut *text* to at most *max_width* cells, appending *ellipsis* if cut."""
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return take_columns(ellipsis, max_width)
    return take_columns(text, target) + ellipsis


def take_columns(text: str, max_cols: int) -> str:
    """Return the longest grapheme-aligned prefix fitting in *max_cols*."""
    out: list[str] = []
    cols = 0
    for g, w in iter_graphemes(text):
        if cols + w > max_cols:
            break
        out.append(g)
        cols += w
    return "".join(out)
