"""Render session: the state one interface keeps between render passes.

A session owns the rendering registry, the component tree, the stacking and
viewport managers, the active theme, the layout engine and focus.  Creating
a new session is a full reset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pi.render.box_model import Bounds, ViewportSize
from pi.render.buffer import CellBuffer
from pi.render.capabilities import is_interactive, is_stylable
from pi.render.config import RenderSettings, load_settings
from pi.render.errors import ComponentError, RenderingError
from pi.render.events import KeyEvent, parse_key_event
from pi.render.layout import LayoutEngine, Space
from pi.render.renderer import PaintResult, Renderer
from pi.render.rendering_tree import RenderingInfo, RenderingTree
from pi.render.stacking import StackingContextManager
from pi.render.style import StyleResolver
from pi.render.theme import Theme, get_theme
from pi.render.tree import ComponentTree
from pi.render.viewport import ViewportManager

logger = logging.getLogger(__name__)

# Update priorities, lower runs first.
PRIORITY_INPUT = 0
PRIORITY_INTERACTION = 1
PRIORITY_THEME = 2


@dataclass
class RenderResult:
    buffer: CellBuffer
    lines: list[str]
    root_info: RenderingInfo | None
    failed: list[str] = field(default_factory=list)


class RenderSession:
    def __init__(self, settings: RenderSettings | None = None, *, theme: Theme | None = None) -> None:
        self.settings = settings or RenderSettings()
        self.theme = theme or get_theme(self.settings.theme)
        self.viewport_size = ViewportSize(self.settings.columns, self.settings.rows)

        self.rendering_tree = RenderingTree(strict=self.settings.strict_registration)
        self.component_tree = ComponentTree()
        self.stacking = StackingContextManager()
        self.viewports = ViewportManager()
        self.layout_engine = LayoutEngine(self.viewport_size, debug=self.settings.debug_layout)

        self.root: Any = None
        self.focused: Any = None
        self.hovered: Any = None
        self._full_layout = True
        self._paint_order: list[Any] = []

    @classmethod
    def from_env(cls) -> RenderSession:
        return cls(load_settings())

    # -- render pass ---------------------------------------------------------

    def render(self, root: Any = None) -> RenderResult:
        """Run one synchronous render pass over *root* (or the last root)."""
        if root is None:
            root = self.root
        if root is None:
            raise RenderingError("Nothing to render: no root node")
        if root is not self.root:
            self._full_layout = True
        self.root = root
        logger.debug("Render pass for %s", root.id)

        self._reconcile(root)
        styles = StyleResolver(self.theme).resolve_tree(root)
        self._layout(root)

        screen = Bounds(0, 0, self.viewport_size.columns, self.viewport_size.rows)
        self.stacking.build(root)
        self.viewports.build(root, screen)

        buffer = CellBuffer(screen.width, screen.height)
        painted = Renderer(self.stacking, self.viewports).paint(root, buffer, styles)
        self._paint_order = painted.order
        self._register(root, painted)
        self.component_tree.flush_updates()

        return RenderResult(
            buffer=buffer,
            lines=buffer.to_lines(),
            root_info=self.rendering_tree.get_root(),
            failed=sorted(painted.failed),
        )

    def _reconcile(self, root: Any) -> None:
        result = self.component_tree.sync(root)
        for instance in result.unmounted:
            node = instance.node
            self.rendering_tree.discard(node)
            if node is self.focused:
                self.focused = None
            if node is self.hovered:
                self.hovered = None

    def _layout(self, root: Any) -> None:
        space = Space(0, 0, self.viewport_size.columns, self.viewport_size.rows)
        request = root.last_layout
        if self._full_layout or request is None or request.space != space:
            self.layout_engine.layout(root, space)
            self._full_layout = False
        else:
            self.layout_engine.relayout(root)

    def _register(self, root: Any, painted: PaintResult) -> None:
        """Register snapshots parents first.

        A node whose paint failed keeps its previous snapshot and its
        subtree's; they are re-registered under the new parent snapshot.
        """
        stack = [root]
        while stack:
            node = stack.pop()
            if node.id in painted.failed:
                self._reregister_previous(node)
                continue
            info = painted.infos.get(node.id)
            if info is None:
                continue
            self.rendering_tree.register(info)
            instance = self.component_tree.get_instance(node)
            if instance is not None:
                instance.rendering_info = info
                instance.rendered = True
            stack.extend(reversed(node.children))

    def _reregister_previous(self, node: Any) -> None:
        for n in node.walk():
            previous = self.rendering_tree.get(n)
            if previous is None:
                if n is node:
                    return
                continue
            parent = n.parent
            if parent is not None and self.rendering_tree.get(parent) is None:
                continue
            self.rendering_tree.register(previous)

    # -- theme and scroll ----------------------------------------------------

    def set_theme(self, theme: Theme) -> None:
        self.theme = theme
        self._full_layout = True
        if self.root is not None:
            if is_stylable(self.root):
                self.root.invalidate_style()
            self.component_tree.invalidate(self.root, PRIORITY_THEME)
        logger.debug("Theme set to %s", theme.name)

    def set_scroll(self, node: Any, x: int, y: int) -> None:
        self.viewports.set_scroll(node, x, y)
        self.component_tree.invalidate(node, PRIORITY_INTERACTION)

    # -- focus and interaction -----------------------------------------------

    def focusable_nodes(self) -> list[Any]:
        """Focus order: positive ``tab_index`` ascending, then tree order."""
        if self.root is None:
            return []
        candidates = [
            n
            for n in self.root.walk()
            if is_interactive(n) and not n.disabled and n.tab_index >= 0
        ]
        return sorted(candidates, key=lambda n: (0, n.tab_index) if n.tab_index > 0 else (1, 0))

    def focus(self, node: Any) -> bool:
        if not is_interactive(node):
            raise ComponentError(f"{node.id} cannot take focus", node_id=node.id)
        if node.disabled:
            return False
        if node is self.focused:
            return True
        self.blur()
        node.focus()
        self.focused = node
        self.component_tree.invalidate(node, PRIORITY_INTERACTION)
        return True

    def blur(self) -> None:
        if self.focused is None:
            return
        node, self.focused = self.focused, None
        node.blur()
        self.component_tree.invalidate(node, PRIORITY_INTERACTION)

    def focus_next(self) -> Any:
        return self._move_focus(1)

    def focus_previous(self) -> Any:
        return self._move_focus(-1)

    def _move_focus(self, step: int) -> Any:
        order = self.focusable_nodes()
        if not order:
            return None
        index = next((i for i, n in enumerate(order) if n is self.focused), None)
        if index is None:
            target = order[0] if step > 0 else order[-1]
        else:
            target = order[(index + step) % len(order)]
        self.focus(target)
        return target

    def set_hover(self, node: Any) -> None:
        if node is self.hovered:
            return
        previous, self.hovered = self.hovered, node
        if previous is not None and is_stylable(previous):
            previous.set_interaction(hovered=False)
            self.component_tree.invalidate(previous, PRIORITY_INTERACTION)
        if node is not None and is_stylable(node):
            node.set_interaction(hovered=True)
            self.component_tree.invalidate(node, PRIORITY_INTERACTION)

    def set_pressed(self, node: Any, value: bool = True) -> None:
        if not is_stylable(node):
            raise ComponentError(f"{node.id} has no interaction state", node_id=node.id)
        node.set_interaction(pressed=value)
        self.component_tree.invalidate(node, PRIORITY_INTERACTION)

    def node_at(self, x: int, y: int) -> Any:
        """Topmost painted node under ``(x, y)`` from the last pass."""
        for node in reversed(self._paint_order):
            info = self.rendering_tree.get(node)
            if info is None or not info.visible or info.clipped:
                continue
            region = info.region
            if region.start_x <= x < region.end_x and region.start_y <= y < region.end_y:
                viewport = info.viewport
                if viewport is None or viewport.contains_point(x, y):
                    return node
        return None

    def dispatch_key(self, data: str) -> bool:
        """Deliver raw key input to the focused node.

        Tab and shift+tab move focus when the node does not consume them.
        Returns ``True`` if anything handled the key.
        """
        event: KeyEvent = parse_key_event(data)
        target = self.focused
        if target is not None and target.handle_key(event):
            self.component_tree.invalidate(target, PRIORITY_INPUT)
            return True
        if event.key == "tab":
            return self.focus_next() is not None
        if event.key == "shift+tab":
            return self.focus_previous() is not None
        return False

    # -- reset ---------------------------------------------------------------

    def reset(self) -> None:
        self.rendering_tree.clear()
        self.component_tree.clear()
        self.stacking.clear()
        self.viewports.clear()
        self.root = None
        self.focused = None
        self.hovered = None
        self._full_layout = True
        self._paint_order = []
