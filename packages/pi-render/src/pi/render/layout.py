"""Box-model layout: block flow, flexbox and positioning.

``LayoutEngine.layout`` lays out a whole subtree inside an offered ``Space``.
``LayoutEngine.relayout`` recomputes only the nodes marked dirty since the
last pass, each inside the space it was last offered, escalating to the
parent whenever a node's outer size changes or its parent is sized from
content (flex items, out-of-flow boxes).

Layout reads from nodes:

* the box-model fields (``width``, ``margin``, ``border`` ...)
* ``layout_style()`` for ``display``, ``flex_*``, ``gap``, ``justify_content``,
  ``align_items``, ``align_content`` and ``align_self``
* ``measure_content(width)`` for leaf content (text)

and writes ``bounds``, ``last_layout`` and the dirty flags.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Iterable

from pi.render.box_model import Bounds, ViewportSize, resolve_size
from pi.render.errors import LayoutCalculationError

logger = logging.getLogger(__name__)

OUT_OF_FLOW = ("absolute", "fixed")

JUSTIFY_VALUES = (
    "flex-start",
    "flex-end",
    "center",
    "space-between",
    "space-around",
    "space-evenly",
)
ALIGN_VALUES = ("flex-start", "flex-end", "center", "stretch")
WRAP_VALUES = ("nowrap", "wrap", "wrap-reverse")


@dataclass(frozen=True)
class Space:
    """The rectangle a parent offers a child, margins included."""

    x: int
    y: int
    width: int
    height: int

    def translate(self, dx: int, dy: int) -> Space:
        return Space(self.x + dx, self.y + dy, self.width, self.height)


@dataclass(frozen=True)
class LayoutRequest:
    """What a node was last laid out with, kept for relayout."""

    space: Space
    force_width: int | None = None
    force_height: int | None = None
    flex_item: bool = False


def _is_hidden(node: Any) -> bool:
    return node.layout_style().get("display") == "none"


def _in_flow(node: Any) -> list[Any]:
    return [c for c in node.children if c.position not in OUT_OF_FLOW]


def _justify(justify: str, free: int, count: int) -> tuple[int, int]:
    """Return ``(leading offset, extra space between items)``."""
    if free <= 0 or count == 0:
        return 0, 0
    if justify == "flex-end":
        return free, 0
    if justify == "center":
        return free // 2, 0
    if justify == "space-between":
        return 0, (free // (count - 1) if count > 1 else 0)
    if justify == "space-around":
        per = free // count
        return per // 2, per
    if justify == "space-evenly":
        per = free // (count + 1)
        return per, per
    return 0, 0


def _align_self(child: Any, align: str) -> str:
    value = child.layout_style().get("align_self", "auto")
    return align if value in (None, "auto") else str(value)


def _break_lines(bases: list[int], gap: int, available: int) -> list[list[int]]:
    """Greedily group item indices into lines that fit *available*.

    A line always takes at least one item, even one wider than the line.
    """
    lines: list[list[int]] = []
    current: list[int] = []
    used = 0
    for i, base in enumerate(bases):
        needed = base + (gap if current else 0)
        if current and used + needed > available:
            lines.append(current)
            current, used = [i], base
        else:
            current.append(i)
            used += needed
    if current:
        lines.append(current)
    return lines


def _distribute_lines(
    cross_sizes: list[int], available: int | None, gap: int, align_content: str
) -> tuple[list[int], list[int]]:
    """Cross-axis offsets and sizes of flex lines under ``align_content``."""
    sizes = list(cross_sizes)
    count = len(sizes)
    free = 0 if available is None else available - sum(sizes) - gap * (count - 1)
    lead = between = 0
    if free > 0:
        if align_content == "stretch":
            sizes = [s + free // count for s in sizes]
        else:
            lead, between = _justify(align_content, free, count)
    offsets: list[int] = []
    pos = lead
    for size in sizes:
        offsets.append(pos)
        pos += size + gap + between
    return offsets, sizes


def _sized_by_content(node: Any) -> bool:
    """Whether *node*'s width follows from the intrinsic width of its content.

    Walks up through auto-width ancestors looking for a shrink-to-fit box
    (a flex item or an out-of-flow node).
    """
    while node is not None and node.width is None:
        request = node.last_layout
        if request is not None and (request.flex_item or node.position in OUT_OF_FLOW):
            return True
        node = node.parent
    return False


@dataclass
class _FlexLine:
    """One line of flex items along the main axis."""

    items: list[Any]
    aligns: list[str]
    sizes: list[int]
    positions: list[int]
    main: int


class LayoutEngine:
    """Computes bounds for a node tree."""

    def __init__(self, viewport: ViewportSize | None = None, *, debug: bool = False) -> None:
        self.viewport = viewport
        self.debug = debug
        # Ids of nodes laid out during the most recent pass, in order.
        self.computed: list[str] = []

    # -- public ------------------------------------------------------------

    def layout(self, root: Any, space: Space) -> Bounds:
        self.computed = []
        self._layout_node(root, space)
        logger.debug("Layout pass: %d nodes", len(self.computed))
        return root.bounds

    def relayout(self, root: Any) -> list[Any]:
        """Recompute the dirty parts of *root*'s tree.

        Returns the topmost dirty nodes that were found.
        """
        self.computed = []
        dirty: list[Any] = []
        self._collect_dirty(root, dirty)
        for node in dirty:
            if node.layout_dirty:
                self._recompute(node)
        logger.debug(
            "Relayout: %d dirty roots, %d nodes recomputed", len(dirty), len(self.computed)
        )
        return dirty

    # -- dirty tracking ----------------------------------------------------

    def _collect_dirty(self, node: Any, out: list[Any]) -> None:
        if node.layout_dirty:
            out.append(node)
            return
        if not node.dirty_descendants:
            return
        node.dirty_descendants = False
        for child in node.children:
            self._collect_dirty(child, out)

    def _recompute(self, node: Any) -> None:
        request: LayoutRequest | None = node.last_layout
        parent = node.parent
        if request is None:
            if parent is None:
                raise LayoutCalculationError(
                    "Cannot relayout a tree that was never laid out", node_id=node.id
                )
            self._recompute(parent)
            return

        before = node.outer_size
        after = self._layout_node(
            node,
            request.space,
            force_width=request.force_width,
            force_height=request.force_height,
            flex_item=request.flex_item,
        )
        if parent is None or node.position in OUT_OF_FLOW:
            return
        if after != before or request.flex_item or _sized_by_content(parent):
            if self.debug:
                logger.debug("Relayout of %s escalates to %s", node.id, parent.id)
            self._recompute(parent)

    # -- sizing helpers ----------------------------------------------------

    def _size(self, value: Any, dimension: str, reference: int) -> int | None:
        return resolve_size(value, dimension, reference, self.viewport)

    def _clamp(self, node: Any, value: int, dimension: str, reference: int) -> int:
        low = self._size(getattr(node, f"min_{dimension}"), dimension, reference)
        high = self._size(getattr(node, f"max_{dimension}"), dimension, reference)
        if high is not None:
            value = min(value, high)
        if low is not None:
            value = max(value, low)
        return value

    def _intrinsic_width(self, node: Any, available: int) -> int:
        """Shrink-to-fit border-box width of *node* within *available*."""
        if _is_hidden(node):
            return 0
        explicit = self._size(node.width, "width", available)
        if explicit is not None:
            return self._clamp(node, explicit, "width", available)

        chrome = node.border.width.horizontal + node.padding.horizontal
        inner = max(0, available - chrome)
        content = node.measure_content(inner)
        if content is not None:
            width = content[0]
        else:
            style = node.layout_style()
            row = style.get("display") == "flex" and str(
                style.get("flex_direction", "row")
            ).startswith("row")
            widths = [
                self._intrinsic_width(c, inner) + c.margin.horizontal
                for c in _in_flow(node)
                if not _is_hidden(c)
            ]
            if not widths:
                width = 0
            elif row:
                width = sum(widths) + int(style.get("gap") or 0) * (len(widths) - 1)
            else:
                width = max(widths)
        return self._clamp(node, width + chrome, "width", available)

    def _viewport_space(self, fallback: Space) -> Space:
        if self.viewport is None:
            return fallback
        return Space(0, 0, self.viewport.columns, self.viewport.rows)

    # -- node layout -------------------------------------------------------

    def _layout_node(
        self,
        node: Any,
        space: Space,
        *,
        force_width: int | None = None,
        force_height: int | None = None,
        flex_item: bool = False,
    ) -> tuple[int, int]:
        """Lay out *node* inside *space*.  Returns its outer (margin box) size."""
        node.last_layout = LayoutRequest(space, force_width, force_height, flex_item)
        self.computed.append(node.id)

        if _is_hidden(node):
            self._hide(node, space)
            return (0, 0)

        style = node.layout_style()
        margin = node.margin
        border = node.border.width
        padding = node.padding
        chrome_h = border.horizontal + padding.horizontal
        chrome_v = border.vertical + padding.vertical
        position = node.position
        containing = self._viewport_space(space) if position == "fixed" else space

        avail_w = max(0, containing.width - margin.horizontal)
        avail_h = max(0, containing.height - margin.vertical)

        width = force_width
        if width is None:
            width = self._size(node.width, "width", containing.width)
            if width is None:
                if position in OUT_OF_FLOW or node.measure_content(0) is not None:
                    width = min(avail_w, self._intrinsic_width(node, avail_w))
                else:
                    width = avail_w
            width = self._clamp(node, width, "width", containing.width)

        height = force_height
        if height is None:
            height = self._size(node.height, "height", containing.height)
            if height is not None:
                height = self._clamp(node, height, "height", containing.height)
        height_known = height is not None

        if width < 0 or (height is not None and height < 0):
            raise LayoutCalculationError(
                f"Negative size {width}x{height}",
                node_id=node.id,
                context={"width": width, "height": height},
            )

        x = containing.x + margin.left
        y = containing.y + margin.top
        content_w = max(0, width - chrome_h)
        content_h = max(0, (height if height is not None else avail_h) - chrome_v)
        inner = Space(x + border.left + padding.left, y + border.top + padding.top, content_w, content_h)

        content = node.measure_content(content_w)
        if content is not None:
            used = content[1]
        elif style.get("display") == "flex":
            used = self._layout_flex(node, inner, style, height_known)
        else:
            used = self._layout_block(node, inner)

        if height is None:
            height = self._clamp(node, used + chrome_v, "height", containing.height)

        node.bounds = Bounds(x, y, width, height)
        self._layout_out_of_flow(
            node, Space(inner.x, inner.y, content_w, max(0, height - chrome_v))
        )

        dx, dy = self._offset(node, containing, width, height)
        if dx or dy:
            self._shift(node, dx, dy, move_space=False)

        node.layout_dirty = False
        node.dirty_descendants = False
        outer = (width + margin.horizontal, height + margin.vertical)
        node.outer_size = outer
        if self.debug:
            logger.debug("layout %s in %s -> %s", node.id, space, node.bounds)
        return outer

    def _layout_block(self, node: Any, inner: Space) -> int:
        cursor = inner.y
        prev_margin: int | None = None
        for child in _in_flow(node):
            if _is_hidden(child):
                self._layout_node(child, Space(inner.x, cursor, inner.width, 0))
                continue
            top_margin = child.margin.top
            # Adjacent vertical margins collapse to the larger one.
            collapse = min(prev_margin, top_margin) if prev_margin is not None else 0
            top = cursor - collapse
            remaining = max(0, inner.y + inner.height - top)
            _, outer_h = self._layout_node(child, Space(inner.x, top, inner.width, remaining))
            cursor = top + outer_h
            prev_margin = child.margin.bottom
        return cursor - inner.y

    def _layout_flex(self, node: Any, inner: Space, style: Any, height_known: bool) -> int:
        direction = str(style.get("flex_direction", "row"))
        row = direction.startswith("row")
        reverse = direction.endswith("-reverse")
        wrap = str(style.get("flex_wrap", "nowrap"))
        if wrap not in WRAP_VALUES:
            raise LayoutCalculationError(
                f"Unknown flex_wrap: {wrap!r}", node_id=node.id, context={"flex_wrap": wrap}
            )
        gap = int(style.get("gap") or 0)
        justify = style.get("justify_content", "flex-start")
        align = style.get("align_items", "stretch")

        items: list[Any] = []
        for child in _in_flow(node):
            if _is_hidden(child):
                self._layout_node(child, Space(inner.x, inner.y, 0, 0))
            else:
                items.append(child)
        if not items:
            return 0

        aligns = [_align_self(child, align) for child in items]
        bases = [self._flex_basis(child, inner, row, a) for child, a in zip(items, aligns)]

        main_avail: int | None
        if row:
            main_avail = inner.width
        else:
            main_avail = inner.height if height_known else None
        if wrap != "nowrap" and main_avail is not None:
            groups = _break_lines(bases, gap, main_avail)
        else:
            groups = [list(range(len(items)))]
        if wrap == "wrap-reverse":
            groups.reverse()

        lines: list[_FlexLine] = []
        for group in groups:
            line_items = [items[i] for i in group]
            line_bases = [bases[i] for i in group]
            gaps = gap * (len(group) - 1)
            main = main_avail if main_avail is not None else sum(line_bases) + gaps
            sizes = self._flex_sizes(line_items, line_bases, main - gaps)

            free = max(0, main - gaps - sum(sizes))
            lead, between = _justify(justify, free, len(group))
            positions: list[int] = []
            pos = lead
            for size in sizes:
                positions.append(pos)
                pos += size + gap + between
            if reverse:
                positions = [main - p - s for p, s in zip(positions, sizes)]
            lines.append(_FlexLine(line_items, [aligns[i] for i in group], sizes, positions, main))

        align_content = style.get("align_content", "stretch")
        single = wrap == "nowrap"
        if row:
            return self._place_rows(lines, inner, gap, align_content, height_known, single)
        return self._place_columns(lines, inner, gap, align_content, single)

    def _flex_basis(self, child: Any, inner: Space, row: bool, align: str) -> int:
        """Outer main size of *child* before growing and shrinking.

        An explicit main size wins over ``flex_basis``; ``auto`` falls back
        to content.
        """
        m = child.margin
        dimension = "width" if row else "height"
        basis = child.layout_style().get("flex_basis")
        if basis is not None and getattr(child, dimension) is None:
            reference = inner.width if row else inner.height
            resolved = self._size(basis, dimension, reference)
            if resolved is not None:
                if resolved < 0:
                    raise LayoutCalculationError(
                        f"Negative flex_basis: {basis!r}",
                        node_id=child.id,
                        context={"flex_basis": basis},
                    )
                margins = m.horizontal if row else m.vertical
                return self._clamp(child, resolved, dimension, reference) + margins
        if row:
            return self._intrinsic_width(child, max(0, inner.width - m.horizontal)) + m.horizontal
        _, outer_h = self._layout_node(
            child,
            inner,
            force_width=self._cross_width(child, inner.width, align),
            flex_item=True,
        )
        return outer_h

    def _cross_width(self, child: Any, cross: int, align: str) -> int:
        m = child.margin
        avail = max(0, cross - m.horizontal)
        if align == "stretch" and child.width is None:
            return avail
        return min(avail, self._intrinsic_width(child, avail))

    def _flex_sizes(self, items: list[Any], bases: list[int], available: int) -> list[int]:
        free = available - sum(bases)
        sizes = list(bases)
        if free > 0:
            grows = [max(0.0, float(c.layout_style().get("flex_grow") or 0)) for c in items]
            total = sum(grows)
            if total > 0:
                for i, grow in enumerate(grows):
                    sizes[i] += math.floor(free * grow / total)
        elif free < 0:
            shrinks = [
                max(0.0, float(c.layout_style().get("flex_shrink", 1))) * base
                for c, base in zip(items, bases)
            ]
            total = sum(shrinks)
            if total > 0:
                for i, weight in enumerate(shrinks):
                    sizes[i] = max(0, bases[i] - math.ceil(-free * weight / total))
        return sizes

    def _place_rows(
        self,
        lines: list[_FlexLine],
        inner: Space,
        gap: int,
        align_content: str,
        height_known: bool,
        single: bool,
    ) -> int:
        heights: list[list[int]] = []
        cross_sizes: list[int] = []
        for line in lines:
            line_heights: list[int] = []
            for child, size, pos in zip(line.items, line.sizes, line.positions):
                _, outer_h = self._layout_node(
                    child,
                    Space(inner.x + pos, inner.y, size, inner.height),
                    force_width=max(0, size - child.margin.horizontal),
                    flex_item=True,
                )
                line_heights.append(outer_h)
            heights.append(line_heights)
            cross_sizes.append(max(line_heights))

        if single and height_known:
            cross_sizes = [inner.height]
        offsets, cross_sizes = _distribute_lines(
            cross_sizes, inner.height if height_known else None, gap, align_content
        )

        for line, line_heights, top, cross in zip(lines, heights, offsets, cross_sizes):
            for child, align, size, pos, height in zip(
                line.items, line.aligns, line.sizes, line.positions, line_heights
            ):
                m = child.margin
                if align == "stretch" and child.height is None and height != cross:
                    self._layout_node(
                        child,
                        Space(inner.x + pos, inner.y + top, size, cross),
                        force_width=max(0, size - m.horizontal),
                        force_height=max(0, cross - m.vertical),
                        flex_item=True,
                    )
                    continue
                offset = top + self._align_offset(align, cross - height)
                if offset:
                    self._shift(child, 0, offset)
        return max(top + cross for top, cross in zip(offsets, cross_sizes))

    def _place_columns(
        self,
        lines: list[_FlexLine],
        inner: Space,
        gap: int,
        align_content: str,
        single: bool,
    ) -> int:
        if single:
            cross_sizes = [inner.width]
        else:
            cross_sizes = [
                max(self._cross_width(c, inner.width, "flex-start") + c.margin.horizontal for c in line.items)
                for line in lines
            ]
        offsets, cross_sizes = _distribute_lines(cross_sizes, inner.width, gap, align_content)

        for line, left, cross in zip(lines, offsets, cross_sizes):
            for child, align, size, pos in zip(line.items, line.aligns, line.sizes, line.positions):
                m = child.margin
                box_w = self._cross_width(child, cross, align)
                self._layout_node(
                    child,
                    Space(inner.x + left, inner.y + pos, cross, size),
                    force_width=box_w,
                    force_height=max(0, size - m.vertical),
                    flex_item=True,
                )
                offset = self._align_offset(align, cross - (box_w + m.horizontal))
                if offset:
                    self._shift(child, offset, 0)
        return max(line.main for line in lines)

    @staticmethod
    def _align_offset(align: str, free: int) -> int:
        if free <= 0:
            return 0
        if align == "flex-end":
            return free
        if align == "center":
            return free // 2
        return 0

    # -- positioning -------------------------------------------------------

    def _layout_out_of_flow(self, node: Any, content_box: Space) -> None:
        for child in node.children:
            if child.position in OUT_OF_FLOW:
                self._layout_node(child, content_box)

    def _offset(self, node: Any, containing: Space, width: int, height: int) -> tuple[int, int]:
        position = node.position
        if position == "static":
            return 0, 0
        top = self._size(node.top, "height", containing.height)
        bottom = self._size(node.bottom, "height", containing.height)
        left = self._size(node.left, "width", containing.width)
        right = self._size(node.right, "width", containing.width)

        if position == "relative":
            dx = left if left is not None else (-right if right is not None else 0)
            dy = top if top is not None else (-bottom if bottom is not None else 0)
            return dx, dy

        margin = node.margin
        x, y = node.bounds.x, node.bounds.y
        if left is not None:
            target_x = containing.x + margin.left + left
        elif right is not None:
            target_x = containing.x + containing.width - right - width - margin.right
        else:
            target_x = x
        if top is not None:
            target_y = containing.y + margin.top + top
        elif bottom is not None:
            target_y = containing.y + containing.height - bottom - height - margin.bottom
        else:
            target_y = y
        return target_x - x, target_y - y

    def _shift(self, node: Any, dx: int, dy: int, *, move_space: bool = True) -> None:
        if node.bounds is not None:
            node.bounds = node.bounds.translate(dx, dy)
        if move_space and node.last_layout is not None:
            node.last_layout = replace(
                node.last_layout, space=node.last_layout.space.translate(dx, dy)
            )
        for child in node.children:
            self._shift(child, dx, dy)

    def _hide(self, node: Any, space: Space) -> None:
        for n in _walk(node):
            n.bounds = Bounds(space.x, space.y, 0, 0)
            n.layout_dirty = False
            n.dirty_descendants = False
            n.outer_size = (0, 0)


def _walk(node: Any) -> Iterable[Any]:
    yield node
    for child in node.children:
        yield from _walk(child)
