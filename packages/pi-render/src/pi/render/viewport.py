"""Viewports: clip regions created by ``overflow: hidden | scroll`` nodes.

Every node paints inside the viewport of its nearest clipping ancestor (the
screen viewport at the top).  A viewport's clip area is its own bounds
intersected with its parent's clip area.  Scrolling moves the content of a
viewport, not the clip area.
"""

from __future__ import annotations

import logging
from typing import Any

from pi.render.box_model import Bounds, calculate_content_area

logger = logging.getLogger(__name__)

CLIPPING_OVERFLOW = ("hidden", "scroll")

_EMPTY = Bounds(0, 0, 0, 0)


class Viewport:
    def __init__(self, bounds: Bounds, parent: Viewport | None = None, *, node_id: str | None = None) -> None:
        self.bounds = bounds
        self.node_id = node_id
        self.scroll_x = 0
        self.scroll_y = 0
        self.parent = parent
        self.children: list[Viewport] = []
        self.clip_area = bounds
        if parent is not None:
            parent.children.append(self)
        self._update_clip_area()

    def __repr__(self) -> str:
        return f"<Viewport {self.node_id or 'screen'} {self.clip_area}>"

    @property
    def scroll_offset(self) -> tuple[int, int]:
        """Total scroll applied to content painted in this viewport."""
        dx, dy = self.scroll_x, self.scroll_y
        if self.parent is not None:
            px, py = self.parent.scroll_offset
            dx, dy = dx + px, dy + py
        return dx, dy

    def contains_point(self, x: int, y: int) -> bool:
        return self.clip_area.contains_point(x, y)

    def intersects(self, region: Bounds) -> bool:
        return self.clip_area.intersects(region)

    def clip(self, region: Bounds) -> Bounds | None:
        return self.clip_area.intersection(region)

    def set_scroll(self, x: int, y: int) -> None:
        self.scroll_x = max(0, x)
        self.scroll_y = max(0, y)

    def _update_clip_area(self) -> None:
        if self.parent is None:
            self.clip_area = self.bounds
        else:
            self.clip_area = self.parent.clip(self.bounds) or _EMPTY
        for child in self.children:
            child._update_clip_area()


class ViewportManager:
    """Assigns every node in a tree the viewport it paints inside."""

    def __init__(self) -> None:
        self._created: dict[str, Viewport] = {}
        self._assigned: dict[str, Viewport] = {}
        # Scroll positions outlive a single build.
        self._scroll: dict[str, tuple[int, int]] = {}
        self._root: Viewport | None = None

    def build(self, root: Any, screen: Bounds) -> Viewport:
        self._created.clear()
        self._assigned.clear()
        self._root = Viewport(screen)
        self._assign(root, self._root)
        logger.debug("Built %d viewports", len(self._created) + 1)
        return self._root

    def _assign(self, node: Any, current: Viewport) -> None:
        self._assigned[node.id] = current
        inner = current
        overflow = node.layout_style().get("overflow", "visible")
        if overflow in CLIPPING_OVERFLOW and node.bounds is not None:
            dx, dy = current.scroll_offset
            area = calculate_content_area(node.bounds.translate(-dx, -dy), node.border, node.padding)
            inner = self.create_viewport(node, area, current)
        for child in node.children:
            self._assign(child, inner)

    def create_viewport(self, node: Any, bounds: Bounds, parent: Viewport | None = None) -> Viewport:
        viewport = Viewport(bounds, parent, node_id=node.id)
        x, y = self._scroll.get(node.id, (0, 0))
        viewport.set_scroll(x, y)
        self._created[node.id] = viewport
        return viewport

    def get_viewport(self, node: Any) -> Viewport | None:
        """The viewport *node* creates, if it clips."""
        return self._created.get(node.id)

    def viewport_for(self, node: Any) -> Viewport | None:
        """The viewport *node* paints inside."""
        return self._assigned.get(node.id)

    def get_root_viewport(self) -> Viewport | None:
        return self._root

    def set_scroll(self, node: Any, x: int, y: int) -> None:
        """Remember a scroll position for *node*'s viewport."""
        self._scroll[node.id] = (max(0, x), max(0, y))
        viewport = self._created.get(node.id)
        if viewport is not None:
            viewport.set_scroll(x, y)

    def clear(self) -> None:
        self._created.clear()
        self._assigned.clear()
        self._scroll.clear()
        self._root = None
