"""Character-cell buffer with z-testing and a clip stack.

The buffer only holds cells.  Turning cells into escape sequences is the
output layer's job; ``to_lines`` returns the plain characters.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, NamedTuple

from pi.render.box_model import Border, Bounds
from pi.render.errors import RenderingError
from pi.render.text import iter_graphemes

# Any paint wins over an untouched cell.
EMPTY_Z = -(2**31)


@dataclass(frozen=True)
class Cell:
    char: str = " "
    fg: str | None = None
    bg: str | None = None
    bold: bool = False
    italic: bool = False
    underline: bool = False
    dim: bool = False
    inverse: bool = False
    z_index: int = EMPTY_Z
    node_id: str | None = None

    @property
    def is_continuation(self) -> bool:
        return self.char == ""


BLANK = Cell()


class BorderGlyphs(NamedTuple):
    horizontal: str
    vertical: str
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str


BORDER_GLYPHS: dict[str, BorderGlyphs] = {
    "single": BorderGlyphs("─", "│", "┌", "┐", "└", "┘"),
    "double": BorderGlyphs("═", "║", "╔", "╗", "╚", "╝"),
    "round": BorderGlyphs("─", "│", "╭", "╮", "╰", "╯"),
    "thick": BorderGlyphs("━", "┃", "┏", "┓", "┗", "┛"),
    "dashed": BorderGlyphs("┄", "┊", "┌", "┐", "└", "┘"),
    "dotted": BorderGlyphs("┈", "┊", "┌", "┐", "└", "┘"),
    "ascii": BorderGlyphs("-", "|", "+", "+", "+", "+"),
}

_TEXT_ATTRS = ("bold", "italic", "underline", "dim", "inverse")


class CellBuffer:
    """A ``width`` x ``height`` grid of cells."""

    def __init__(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise RenderingError(
                f"Buffer size must not be negative, got {width}x{height}",
                context={"width": width, "height": height},
            )
        self.width = width
        self.height = height
        self._rows: list[list[Cell]] = [[BLANK] * width for _ in range(height)]
        self._clips: list[Bounds] = []

    # -- clipping ------------------------------------------------------------

    @property
    def clip(self) -> Bounds | None:
        """The active clip rectangle, ``None`` when nothing is clipped.

        An empty intersection is a zero-size rectangle, not ``None``.
        """
        return self._clips[-1] if self._clips else None

    def push_clip(self, bounds: Bounds) -> None:
        """Clip further writes to *bounds* intersected with the current clip."""
        current = self.clip
        if current is not None:
            bounds = current.intersection(bounds) or Bounds(bounds.x, bounds.y, 0, 0)
        self._clips.append(bounds)

    def pop_clip(self) -> Bounds:
        if not self._clips:
            raise RenderingError("pop_clip without a matching push_clip")
        return self._clips.pop()

    def _writable(self, x: int, y: int) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        clip = self.clip
        return clip is None or clip.contains_point(x, y)

    # -- cell access ---------------------------------------------------------

    def get_cell(self, x: int, y: int) -> Cell | None:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self._rows[y][x]
        return None

    def set_cell(self, x: int, y: int, cell: Cell) -> bool:
        """Write *cell* unless clipped or an existing cell has a higher z-index."""
        if not self._writable(x, y):
            return False
        row = self._rows[y]
        existing = row[x]
        if existing.z_index > cell.z_index:
            return False

        # Never leave half of a wide character behind.
        if existing.is_continuation and x > 0:
            row[x - 1] = replace(row[x - 1], char=" ")
        elif x + 1 < self.width and row[x + 1].is_continuation and not cell.is_continuation:
            row[x + 1] = replace(row[x + 1], char=" ")
        row[x] = cell
        return True

    # -- drawing -------------------------------------------------------------

    def fill(
        self,
        bounds: Bounds,
        *,
        char: str = " ",
        fg: str | None = None,
        bg: str | None = None,
        z_index: int = 0,
        node_id: str | None = None,
    ) -> None:
        cell = Cell(char=char, fg=fg, bg=bg, z_index=z_index, node_id=node_id)
        for y in range(max(0, bounds.y), min(self.height, bounds.bottom)):
            for x in range(max(0, bounds.x), min(self.width, bounds.right)):
                self.set_cell(x, y, cell)

    def write_text(
        self,
        x: int,
        y: int,
        text: str,
        *,
        style: Mapping[str, Any] | None = None,
        z_index: int = 0,
        node_id: str | None = None,
    ) -> int:
        """Write one line of *text* starting at ``(x, y)``.

        Cells keep their existing background unless *style* sets one.  Wide
        graphemes take two cells, the second holding ``""``.  Returns the
        number of columns advanced.
        """
        style = style or {}
        attrs = {name: bool(style.get(name)) for name in _TEXT_ATTRS}
        if style.get("font_weight") == "bold":
            attrs["bold"] = True
        fg = style.get("color")
        bg = style.get("background_color")

        col = x
        for grapheme, width in iter_graphemes(text):
            if width == 0:
                continue
            existing = self.get_cell(col, y)
            cell_bg = bg if bg is not None else (existing.bg if existing else None)
            if width == 2 and not self._writable(col + 1, y):
                # The right half would be lost; show a blank instead.
                self.set_cell(col, y, Cell(" ", fg, cell_bg, z_index=z_index, node_id=node_id, **attrs))
            elif self.set_cell(col, y, Cell(grapheme, fg, cell_bg, z_index=z_index, node_id=node_id, **attrs)) and width == 2:
                self.set_cell(col + 1, y, Cell("", fg, cell_bg, z_index=z_index, node_id=node_id, **attrs))
            col += width
        return col - x

    def draw_border(
        self,
        bounds: Bounds,
        border: Border,
        *,
        fg: str | None = None,
        bg: str | None = None,
        z_index: int = 0,
        node_id: str | None = None,
    ) -> None:
        if bounds.width <= 0 or bounds.height <= 0:
            return
        glyphs = BORDER_GLYPHS.get(border.style)
        if glyphs is None:
            raise RenderingError(f"Unknown border style: {border.style!r}", node_id=node_id)
        sides = border.width
        left, right = bounds.x, bounds.right - 1
        top, bottom = bounds.y, bounds.bottom - 1

        def put(x: int, y: int, char: str) -> None:
            existing = self.get_cell(x, y)
            cell_bg = bg if bg is not None else (existing.bg if existing else None)
            self.set_cell(x, y, Cell(char, fg, cell_bg, z_index=z_index, node_id=node_id))

        if sides.top:
            for x in range(left, right + 1):
                put(x, top, glyphs.horizontal)
        if sides.bottom:
            for x in range(left, right + 1):
                put(x, bottom, glyphs.horizontal)
        if sides.left:
            for y in range(top, bottom + 1):
                put(left, y, glyphs.vertical)
        if sides.right:
            for y in range(top, bottom + 1):
                put(right, y, glyphs.vertical)

        if sides.top and sides.left:
            put(left, top, glyphs.top_left)
        if sides.top and sides.right:
            put(right, top, glyphs.top_right)
        if sides.bottom and sides.left:
            put(left, bottom, glyphs.bottom_left)
        if sides.bottom and sides.right:
            put(right, bottom, glyphs.bottom_right)

    # -- output --------------------------------------------------------------

    def to_lines(self, *, trim: bool = False) -> list[str]:
        """Plain text rows; *trim* strips trailing spaces."""
        lines = ["".join(cell.char for cell in row) for row in self._rows]
        if trim:
            return [line.rstrip(" ") for line in lines]
        return lines
