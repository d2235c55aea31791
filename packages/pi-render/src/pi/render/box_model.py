"""Box-model geometry: edges, bounds, borders and the pure calculations on them.

All geometry is in whole terminal cells.  Anything fractional is floored.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Union

from pi.render.errors import LayoutCalculationError

BorderStyle = Literal["single", "double", "round", "thick", "dashed", "dotted", "ascii"]

BORDER_STYLES: tuple[str, ...] = (
    "single",
    "double",
    "round",
    "thick",
    "dashed",
    "dotted",
    "ascii",
)

# int       -> exact cells
# str       -> "50%", "10ch", "10px", "50vw", "50vh" or "auto"
# None      -> auto
SizeValue = Union[int, str, None]

_SIZE_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(%|ch|px|vw|vh)?\s*$")


@dataclass(frozen=True)
class Edges:
    """A four-sided record (margin, padding or border widths)."""

    top: int = 0
    right: int = 0
    bottom: int = 0
    left: int = 0

    @classmethod
    def uniform(cls, value: int) -> Edges:
        return cls(value, value, value, value)

    @property
    def horizontal(self) -> int:
        return self.left + self.right

    @property
    def vertical(self) -> int:
        return self.top + self.bottom

    def __add__(self, other: Edges) -> Edges:
        return Edges(
            self.top + other.top,
            self.right + other.right,
            self.bottom + other.bottom,
            self.left + other.left,
        )


ZERO_EDGES = Edges()


@dataclass(frozen=True)
class Border:
    width: Edges = ZERO_EDGES
    style: BorderStyle = "single"
    color: str | None = None
    background_color: str | None = None

    @property
    def visible(self) -> bool:
        w = self.width
        return bool(w.top or w.right or w.bottom or w.left)


NO_BORDER = Border()


@dataclass(frozen=True)
class Bounds:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def contains_point(self, x: int, y: int) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom

    def intersects(self, other: Bounds) -> bool:
        return not (
            self.right <= other.x
            or other.right <= self.x
            or self.bottom <= other.y
            or other.bottom <= self.y
        )

    def intersection(self, other: Bounds) -> Bounds | None:
        if not self.intersects(other):
            return None
        x = max(self.x, other.x)
        y = max(self.y, other.y)
        return Bounds(
            x, y, min(self.right, other.right) - x, min(self.bottom, other.bottom) - y
        )

    def translate(self, dx: int, dy: int) -> Bounds:
        return Bounds(self.x + dx, self.y + dy, self.width, self.height)


# Content area has the same shape as bounds.
ContentArea = Bounds


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int
    content_width: int = 0
    content_height: int = 0


@dataclass(frozen=True)
class ViewportSize:
    columns: int
    rows: int


# ---------------------------------------------------------------------------
# Calculations
# ---------------------------------------------------------------------------


def calculate_content_area(bounds: Bounds, border: Border, padding: Edges) -> ContentArea:
    """Bounds minus border widths minus padding, floored at zero per axis."""
    bw = border.width
    return ContentArea(
        x=bounds.x + bw.left + padding.left,
        y=bounds.y + bw.top + padding.top,
        width=max(0, bounds.width - bw.horizontal - padding.horizontal),
        height=max(0, bounds.height - bw.vertical - padding.vertical),
    )


def calculate_margin_bounds(bounds: Bounds, margin: Edges) -> Bounds:
    return Bounds(
        x=bounds.x - margin.left,
        y=bounds.y - margin.top,
        width=bounds.width + margin.horizontal,
        height=bounds.height + margin.vertical,
    )


def calculate_total_dimensions(
    content_width: int,
    content_height: int,
    border: Border,
    padding: Edges,
    margin: Edges,
) -> Dimensions:
    chrome = border.width + padding + margin
    return Dimensions(
        width=content_width + chrome.horizontal,
        height=content_height + chrome.vertical,
        content_width=content_width,
        content_height=content_height,
    )


def resolve_size(
    size: SizeValue,
    dimension: Literal["width", "height"],
    reference: int,
    viewport: ViewportSize | None = None,
) -> int | None:
    """Resolve a size value to whole cells, or ``None`` for auto.

    Percentages resolve against *reference*; ``vw``/``vh`` against the
    viewport (``None`` when no viewport is known).  Fractions are floored.
    """
    if size is None:
        return None
    if isinstance(size, bool):
        raise LayoutCalculationError(f"Invalid {dimension} size: {size!r}")
    if isinstance(size, (int, float)):
        return math.floor(size)
    if size == "auto":
        return None

    m = _SIZE_RE.match(size)
    if m is None:
        raise LayoutCalculationError(
            f"Invalid {dimension} size: {size!r}", context={"value": size}
        )
    value = float(m.group(1))
    unit = m.group(2)
    if unit == "%":
        return math.floor(reference * value / 100)
    if unit in ("vw", "vh"):
        if viewport is None:
            return None
        axis = viewport.columns if unit == "vw" else viewport.rows
        return math.floor(axis * value / 100)
    return math.floor(value)


def _cells(value: Any, spacing: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise LayoutCalculationError(f"Invalid spacing: {spacing!r}", context={"value": spacing})
    return math.floor(value)


def normalize_spacing(spacing: Any, *, name: str = "spacing", signed: bool = True) -> Edges:
    """Turn an int, a ``(v, h)``/4-tuple or a side mapping into ``Edges``.

    Every side is floored to whole cells.  With ``signed=False`` (padding,
    border widths) a negative side raises ``LayoutCalculationError``;
    margins stay signed.
    """
    if spacing is None:
        return ZERO_EDGES
    if isinstance(spacing, Edges):
        edges = Edges(*(_cells(v, spacing) for v in (spacing.top, spacing.right, spacing.bottom, spacing.left)))
    elif isinstance(spacing, bool):
        raise LayoutCalculationError(f"Invalid spacing: {spacing!r}")
    elif isinstance(spacing, (int, float)):
        edges = Edges.uniform(_cells(spacing, spacing))
    elif isinstance(spacing, (tuple, list)):
        values = [_cells(v, spacing) for v in spacing]
        if len(values) == 2:
            v, h = values
            edges = Edges(v, h, v, h)
        elif len(values) == 4:
            edges = Edges(*values)
        else:
            raise LayoutCalculationError(f"Invalid spacing: {spacing!r}")
    elif isinstance(spacing, Mapping):
        edges = Edges(
            top=_cells(spacing.get("top", 0), spacing),
            right=_cells(spacing.get("right", 0), spacing),
            bottom=_cells(spacing.get("bottom", 0), spacing),
            left=_cells(spacing.get("left", 0), spacing),
        )
    else:
        raise LayoutCalculationError(f"Invalid spacing: {spacing!r}")

    if not signed and min(edges.top, edges.right, edges.bottom, edges.left) < 0:
        raise LayoutCalculationError(
            f"{name} must not be negative, got {spacing!r}", context={name: spacing}
        )
    return edges


def normalize_border(style: Mapping[str, Any], current: Border = NO_BORDER) -> Border:
    """Build a ``Border`` from the ``border*`` keys of a style mapping.

    ``border`` may be ``True`` (all sides), ``False``, a style name, or a
    side mapping of booleans.  ``border_width`` overrides the default width
    of 1 for shown sides.
    """
    raw = style.get("border")
    border_style = style.get("border_style", current.style)

    sides = ("top", "right", "bottom", "left")
    show = Edges(*(1 if getattr(current.width, s) else 0 for s in sides))
    if raw is True:
        show = Edges.uniform(1)
    elif raw is False:
        show = ZERO_EDGES
    elif isinstance(raw, str):
        show = Edges.uniform(1)
        border_style = raw
    elif isinstance(raw, Mapping):
        show = Edges(*(1 if raw.get(s) else 0 for s in sides))

    if border_style not in BORDER_STYLES:
        raise LayoutCalculationError(
            f"Unknown border style: {border_style!r}", context={"border_style": border_style}
        )

    width = current.width if raw is None else show
    if "border_width" in style:
        explicit = normalize_spacing(style["border_width"], name="border_width", signed=False)
        if raw is None and not current.visible:
            width = explicit
        else:
            width = Edges(
                explicit.top if show.top else 0,
                explicit.right if show.right else 0,
                explicit.bottom if show.bottom else 0,
                explicit.left if show.left else 0,
            )

    return Border(
        width=width,
        style=border_style,
        color=style.get("border_color", current.color),
        background_color=style.get("border_background_color", current.background_color),
    )
