"""Node capabilities.

A concrete node type implements any subset of these.  Call sites check for
a capability with the ``is_*`` helpers rather than ``isinstance`` on a node
class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pi.render.box_model import Bounds, ViewportSize
    from pi.render.buffer import CellBuffer
    from pi.render.events import KeyEvent
    from pi.render.layout import Space
    from pi.render.style import ComputedStyle, InteractionState
    from pi.render.theme import Theme


@runtime_checkable
class Stylable(Protocol):
    """Carries style fragments, interaction state and a computed-style cache."""

    interaction: InteractionState

    def set_style(self, style: Any) -> None: ...

    def compute_style(
        self, theme: Theme, parent_style: Mapping[str, Any] | None = None
    ) -> ComputedStyle: ...

    def invalidate_style(self) -> None: ...


@runtime_checkable
class Renderable(Protocol):
    """Can paint itself into a cell buffer."""

    def paint(self, buffer: CellBuffer, style: ComputedStyle, bounds: Bounds, layer: int) -> None: ...


@runtime_checkable
class Layoutable(Protocol):
    """Carries a layout-dirty flag and can recompute its own layout."""

    layout_dirty: bool

    def mark_layout_dirty(self) -> None: ...

    def compute_layout(self, space: Space, viewport: ViewportSize | None = None) -> Bounds: ...


@runtime_checkable
class Interactive(Protocol):
    """Takes focus and keyboard input."""

    focused: bool
    disabled: bool
    tab_index: int

    def focus(self) -> None: ...

    def blur(self) -> None: ...

    def handle_key(self, event: KeyEvent) -> bool: ...

    def contains_point(self, x: int, y: int) -> bool: ...


def is_stylable(node: object | None) -> bool:
    return node is not None and isinstance(node, Stylable)


def is_renderable(node: object | None) -> bool:
    return node is not None and isinstance(node, Renderable)


def is_layoutable(node: object | None) -> bool:
    return node is not None and isinstance(node, Layoutable)


def is_interactive(node: object | None) -> bool:
    return node is not None and isinstance(node, Interactive)
