"""Node tree and the concrete node types.

``Node`` owns the tree structure and the box-model fields.  Capabilities
(see ``pi.render.capabilities``) come from the concrete subclasses:

* ``FragmentNode``: layoutable only
* ``BoxNode``: stylable, renderable, layoutable
* ``TextNode``: a ``BoxNode`` with wrapped text content
* ``FocusableNode``: a ``BoxNode`` that is also interactive
* ``ButtonNode`` / ``InputNode``: focusable widgets
"""

from __future__ import annotations

import itertools
import logging
import weakref
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Iterable, Iterator, Mapping

from pi.render.box_model import (
    NO_BORDER,
    ZERO_EDGES,
    Border,
    Bounds,
    ContentArea,
    Edges,
    SizeValue,
    ViewportSize,
    calculate_content_area,
    calculate_margin_bounds,
    normalize_border,
    normalize_spacing,
    resolve_size,
)
from pi.render.errors import LayoutCalculationError, TreeError
from pi.render.layout import LayoutEngine, LayoutRequest, Space
from pi.render.style import (
    ComputedStyle,
    InteractionState,
    StyleInput,
    cascade,
    flatten,
)
from pi.render.text import take_columns, visible_width, wrap_text

if TYPE_CHECKING:
    from pi.render.buffer import CellBuffer
    from pi.render.events import KeyEvent
    from pi.render.theme import Theme

logger = logging.getLogger(__name__)

_ids = itertools.count(1)

POSITIONS = ("static", "relative", "absolute", "fixed")

BOX_STYLE_KEYS = (
    "width",
    "height",
    "min_width",
    "max_width",
    "min_height",
    "max_height",
    "margin",
    "padding",
    "position",
    "top",
    "left",
    "right",
    "bottom",
    "z_index",
)
BORDER_STYLE_KEYS = ("border", "border_width", "border_style", "border_color", "border_background_color")


# ---------------------------------------------------------------------------
# Field conversion
# ---------------------------------------------------------------------------


def _check_size(name: str, value: SizeValue) -> SizeValue:
    if value is None or value == "auto":
        return None
    resolved = resolve_size(value, "height" if "height" in name else "width", 0)
    if resolved is not None and resolved < 0:
        raise LayoutCalculationError(
            f"{name} must not be negative, got {value!r}", context={name: value}
        )
    return value


def _check_offset(name: str, value: SizeValue) -> SizeValue:
    if value is None or value == "auto":
        return None
    resolve_size(value, "height" if name in ("top", "bottom") else "width", 0)
    return value


def _check_position(name: str, value: str) -> str:
    if value not in POSITIONS:
        raise LayoutCalculationError(f"Unknown position {value!r}", context={name: value})
    return value


def _check_border(name: str, value: Any) -> Border:
    if isinstance(value, Border):
        normalize_spacing(value.width, name="border_width", signed=False)
        return value
    if value is None:
        return NO_BORDER
    return normalize_border({"border": value})


def _spacing(name: str, value: Any) -> Edges:
    return normalize_spacing(value, name=name, signed=name != "padding")


def _z_index(name: str, value: Any) -> int:
    return int(value or 0)


FIELD_DEFAULTS: dict[str, Any] = {
    "width": None,
    "height": None,
    "min_width": None,
    "max_width": None,
    "min_height": None,
    "max_height": None,
    "margin": ZERO_EDGES,
    "padding": ZERO_EDGES,
    "border": NO_BORDER,
    "position": "static",
    "top": None,
    "left": None,
    "right": None,
    "bottom": None,
    "z_index": 0,
}

_converters: dict[str, Callable[[str, Any], Any]] = {}


def _layout_field(name: str, convert: Callable[[str, Any], Any]) -> property:
    """A box-model field.  Assigning it records a direct value on the node."""
    _converters[name] = convert

    def getter(self: Node) -> Any:
        return getattr(self, "_" + name)

    def setter(self: Node, value: Any) -> None:
        value = convert(name, value)
        self._direct[name] = value
        self._assign(name, value)

    return property(getter, setter)


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------


class Node:
    """Tree element with box-model geometry."""

    type_name: ClassVar[str] = "node"

    width = _layout_field("width", _check_size)
    height = _layout_field("height", _check_size)
    min_width = _layout_field("min_width", _check_size)
    max_width = _layout_field("max_width", _check_size)
    min_height = _layout_field("min_height", _check_size)
    max_height = _layout_field("max_height", _check_size)
    margin = _layout_field("margin", _spacing)
    padding = _layout_field("padding", _spacing)
    border = _layout_field("border", _check_border)
    position = _layout_field("position", _check_position)
    top = _layout_field("top", _check_offset)
    left = _layout_field("left", _check_offset)
    right = _layout_field("right", _check_offset)
    bottom = _layout_field("bottom", _check_offset)
    z_index = _layout_field("z_index", _z_index)

    def __init__(self, *, children: Iterable[Node] | None = None, key: str | None = None) -> None:
        self.id = f"node_{next(_ids)}"
        self.key = key
        self._parent_ref: weakref.ReferenceType[Node] | None = None
        self.children: list[Node] = []

        # Box-model values assigned directly, as opposed to coming from a style.
        self._direct: dict[str, Any] = {}
        for name, default in FIELD_DEFAULTS.items():
            setattr(self, "_" + name, default)

        self.bounds: Bounds | None = None
        self.layout_dirty = True
        self.dirty_descendants = False
        self.last_layout: LayoutRequest | None = None
        self.outer_size: tuple[int, int] = (0, 0)

        for child in children or ():
            self.append_child(child)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"

    # -- tree ----------------------------------------------------------------

    @property
    def parent(self) -> Node | None:
        return self._parent_ref() if self._parent_ref is not None else None

    def append_child(self, child: Node) -> Node:
        self._check_attachable(child)
        self.children.append(child)
        child._parent_ref = weakref.ref(self)
        self.mark_layout_dirty()
        child.mark_layout_dirty()
        return child

    def insert_before(self, child: Node, before: Node | None) -> Node:
        """Insert *child* ahead of *before*; append when *before* is ``None``."""
        if before is None:
            return self.append_child(child)
        self._check_attachable(child)
        try:
            index = self._index_of(before)
        except ValueError:
            raise TreeError(
                f"{before.id} is not a child of {self.id}", node_id=self.id
            ) from None
        self.children.insert(index, child)
        child._parent_ref = weakref.ref(self)
        self.mark_layout_dirty()
        child.mark_layout_dirty()
        return child

    def remove_child(self, child: Node) -> Node:
        try:
            index = self._index_of(child)
        except ValueError:
            raise TreeError(
                f"{child.id} is not a child of {self.id}",
                node_id=self.id,
                context={"child": child.id},
            ) from None
        del self.children[index]
        child._parent_ref = None
        self.mark_layout_dirty()
        return child

    def _index_of(self, child: Node) -> int:
        for i, c in enumerate(self.children):
            if c is child:
                return i
        raise ValueError(child.id)

    def _check_attachable(self, child: Node) -> None:
        if child.parent is not None:
            raise TreeError(
                f"{child.id} already has parent {child.parent.id}; remove it first",
                node_id=child.id,
            )
        if child is self or child.is_ancestor_of(self):
            raise TreeError(
                f"Appending {child.id} to {self.id} would create a cycle",
                node_id=self.id,
                context={"child": child.id},
            )

    def is_ancestor_of(self, other: Node) -> bool:
        node = other.parent
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    def get_ancestors(self) -> list[Node]:
        """Parent first, root last."""
        out: list[Node] = []
        node = self.parent
        while node is not None:
            out.append(node)
            node = node.parent
        return out

    def get_descendants(self) -> list[Node]:
        """All descendants in pre-order, excluding this node."""
        return list(self.walk())[1:]

    def walk(self) -> Iterator[Node]:
        """Pre-order iteration starting with this node."""
        stack: list[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def root(self) -> Node:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    # -- layout --------------------------------------------------------------

    def mark_layout_dirty(self) -> None:
        self.layout_dirty = True
        node = self.parent
        while node is not None and not node.dirty_descendants:
            node.dirty_descendants = True
            node = node.parent

    def layout_style(self) -> Mapping[str, Any]:
        return {}

    def measure_content(self, width: int) -> tuple[int, int] | None:
        """Intrinsic ``(width, height)`` of leaf content, ``None`` for containers."""
        return None

    def calculate_content_area(self) -> ContentArea:
        if self.bounds is None:
            raise LayoutCalculationError(
                "Content area requested before layout", node_id=self.id
            )
        return calculate_content_area(self.bounds, self.border, self.padding)

    def calculate_margin_bounds(self) -> Bounds:
        if self.bounds is None:
            raise LayoutCalculationError(
                "Margin bounds requested before layout", node_id=self.id
            )
        return calculate_margin_bounds(self.bounds, self.margin)

    def _assign(self, name: str, value: Any) -> None:
        if getattr(self, "_" + name) != value:
            setattr(self, "_" + name, value)
            self.mark_layout_dirty()

    def apply_box_style(self, style: Mapping[str, Any]) -> None:
        """Rebuild the box-model fields from *style*.

        Keys present in *style* win.  A key the style no longer sets falls
        back to the value assigned directly on the node, else the default.
        """
        for key in BOX_STYLE_KEYS:
            if key in style:
                value = _converters[key](key, style[key])
            else:
                value = self._direct.get(key, FIELD_DEFAULTS[key])
            self._assign(key, value)

        border = self._direct.get("border", NO_BORDER)
        if any(key in style for key in BORDER_STYLE_KEYS):
            border = normalize_border(style, border)
        self._assign("border", border)


class FragmentNode(Node):
    """Groups children without a box of its own."""

    type_name = "fragment"

    def compute_layout(self, space: Space, viewport: ViewportSize | None = None) -> Bounds:
        return LayoutEngine(viewport).layout(self, space)


# ---------------------------------------------------------------------------
# Box
# ---------------------------------------------------------------------------


def _split_styles(style: StyleInput) -> tuple[list[Any], list[Any]]:
    """Separate static fragments from state functions, keeping order."""
    static: list[Any] = []
    functions: list[Any] = []
    if style is None or style is False:
        return static, functions
    if callable(style):
        functions.append(style)
    elif isinstance(style, (list, tuple)):
        for item in style:
            s, f = _split_styles(item)
            static.extend(s)
            functions.extend(f)
    else:
        static.append(style)
    return static, functions


class BoxNode(Node):
    """A styled rectangle: background, border and children."""

    type_name = "box"
    default_style: ClassVar[dict[str, Any]] = {}

    def __init__(
        self,
        *,
        style: StyleInput = None,
        hovered_style: StyleInput = None,
        focused_style: StyleInput = None,
        pressed_style: StyleInput = None,
        disabled_style: StyleInput = None,
        children: Iterable[Node] | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(children=children, key=key)
        self._style: StyleInput = None
        self._static: list[Any] = []
        self._functions: list[Any] = []
        self.overrides: dict[str, StyleInput] = {
            "hovered_style": hovered_style,
            "focused_style": focused_style,
            "pressed_style": pressed_style,
            "disabled_style": disabled_style,
        }
        self._interaction = InteractionState()
        self._style_cache: tuple[Theme, ComputedStyle] | None = None
        if style is not None:
            self.set_style(style)

    # -- style ---------------------------------------------------------------

    @property
    def style(self) -> StyleInput:
        return self._style

    def set_style(self, style: StyleInput) -> None:
        """Replace this node's style and apply its static box-model keys.

        Box keys the previous style set and this one does not are reset.
        """
        self._style = style
        self._static, self._functions = _split_styles(style)
        self.apply_box_style(flatten([self.default_style, *self._static]) or {})
        self.invalidate_style()

    def set_state_style(self, state: str, style: StyleInput) -> None:
        key = f"{state}_style"
        if key not in self.overrides:
            raise ValueError(f"Unknown interaction state: {state!r}")
        self.overrides[key] = style
        self.invalidate_style()

    @property
    def interaction(self) -> InteractionState:
        return self._interaction

    @interaction.setter
    def interaction(self, state: InteractionState) -> None:
        if state != self._interaction:
            self._interaction = state
            self.invalidate_style()

    def set_interaction(self, **changes: bool) -> None:
        self.interaction = replace(self._interaction, **changes)

    def invalidate_style(self) -> None:
        """Drop the cached computed style here and in stylable descendants."""
        for node in self.walk():
            if isinstance(node, BoxNode):
                node._style_cache = None

    @property
    def computed_style(self) -> ComputedStyle | None:
        return self._style_cache[1] if self._style_cache is not None else None

    def theme_style(self, theme: Theme) -> dict[str, Any]:
        """The theme layer of the cascade for this node."""
        return theme.component_style(self.type_name)

    def compute_style(
        self, theme: Theme, parent_style: Mapping[str, Any] | None = None
    ) -> ComputedStyle:
        cached = self._style_cache
        if cached is not None and cached[0] is theme:
            return cached[1]
        computed = cascade(
            defaults=self.default_style,
            component=self.theme_style(theme),
            static=self._static,
            state_styles=self._functions,
            state=self._interaction,
            overrides=self.overrides,
            parent=parent_style,
            theme=theme,
            node_id=self.id,
        )
        self.apply_box_style(computed)
        self._style_cache = (theme, computed)
        return computed

    def set_computed_style_fallback(self, style: ComputedStyle, theme: Theme) -> None:
        self._style_cache = (theme, style)

    def layout_style(self) -> Mapping[str, Any]:
        computed = self.computed_style
        if computed is not None:
            return computed
        return flatten([self.default_style, *self._static]) or {}

    def compute_layout(self, space: Space, viewport: ViewportSize | None = None) -> Bounds:
        return LayoutEngine(viewport).layout(self, space)

    # -- painting ------------------------------------------------------------

    def paint(self, buffer: CellBuffer, style: ComputedStyle, bounds: Bounds, layer: int) -> None:
        if style.background_color is not None:
            buffer.fill(bounds, bg=style.background_color, z_index=layer, node_id=self.id)
        area = calculate_content_area(bounds, self.border, self.padding)
        self.paint_content(buffer, style, area, layer)
        if self.border.visible:
            buffer.draw_border(
                bounds,
                self.border,
                fg=style.border_color or style.color,
                bg=self.border.background_color or style.background_color,
                z_index=layer,
                node_id=self.id,
            )

    def paint_content(
        self, buffer: CellBuffer, style: ComputedStyle, area: ContentArea, layer: int
    ) -> None:
        """Hook for leaf content.  Boxes have none."""


def _aligned_x(area: ContentArea, line_width: int, align: str) -> int:
    if align == "center":
        return area.x + max(0, (area.width - line_width) // 2)
    if align == "right":
        return area.x + max(0, area.width - line_width)
    return area.x


class TextNode(BoxNode):
    """Word-wrapped text measured in terminal cells.

    ``variant`` names one of the theme's ``text_styles``; it layers over
    the ``text`` component style and under the node's own style.
    """

    type_name = "text"

    def __init__(self, text: str = "", *, variant: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._text = text
        self._variant = variant
        self._measure_cache: tuple[str, int, list[str]] | None = None

    @property
    def variant(self) -> str | None:
        return self._variant

    @variant.setter
    def variant(self, value: str | None) -> None:
        if value != self._variant:
            self._variant = value
            self.invalidate_style()

    def theme_style(self, theme: Theme) -> dict[str, Any]:
        style = super().theme_style(theme)
        if self._variant is not None:
            style.update(theme.text_style(self._variant, node_id=self.id))
        return style

    @property
    def text(self) -> str:
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        if value != self._text:
            self._text = value
            self.mark_layout_dirty()

    def lines(self, width: int) -> list[str]:
        cached = self._measure_cache
        if cached is not None and cached[0] == self._text and cached[1] == width:
            return cached[2]
        lines = wrap_text(self._text, width)
        self._measure_cache = (self._text, width, lines)
        return lines

    def measure_content(self, width: int) -> tuple[int, int]:
        lines = self.lines(width)
        return max((visible_width(line) for line in lines), default=0), len(lines)

    def paint_content(
        self, buffer: CellBuffer, style: ComputedStyle, area: ContentArea, layer: int
    ) -> None:
        for row, line in enumerate(self.lines(area.width)[: area.height]):
            x = _aligned_x(area, visible_width(line), style.text_align)
            buffer.write_text(x, area.y + row, line, style=style, z_index=layer, node_id=self.id)


# ---------------------------------------------------------------------------
# Interactive nodes
# ---------------------------------------------------------------------------


class FocusableNode(BoxNode):
    """A box that takes focus and keyboard input."""

    def __init__(self, *, tab_index: int = 0, disabled: bool = False, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.tab_index = tab_index
        if disabled:
            self.set_interaction(disabled=True)

    @property
    def focused(self) -> bool:
        return self.interaction.focused

    @focused.setter
    def focused(self, value: bool) -> None:
        self.set_interaction(focused=value)

    @property
    def disabled(self) -> bool:
        return self.interaction.disabled

    @disabled.setter
    def disabled(self, value: bool) -> None:
        changes: dict[str, bool] = {"disabled": value}
        if value:
            changes.update(focused=False, pressed=False)
        self.set_interaction(**changes)

    def focus(self) -> None:
        if not self.disabled:
            self.focused = True

    def blur(self) -> None:
        self.focused = False

    def handle_key(self, event: KeyEvent) -> bool:
        """Return ``True`` if the event was consumed."""
        return False

    def contains_point(self, x: int, y: int) -> bool:
        return self.bounds is not None and self.bounds.contains_point(x, y)


class ButtonNode(FocusableNode):
    type_name = "button"
    default_style: ClassVar[dict[str, Any]] = {"text_align": "center"}

    def __init__(
        self,
        label: str = "",
        *,
        on_press: Callable[[ButtonNode], Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.label = label
        self.on_press = on_press

    def measure_content(self, width: int) -> tuple[int, int]:
        return visible_width(self.label), 1

    def press(self) -> None:
        if self.disabled:
            return
        if self.on_press is not None:
            self.on_press(self)

    def handle_key(self, event: KeyEvent) -> bool:
        if self.disabled:
            return False
        if event.key in ("enter", "space"):
            self.press()
            return True
        return False

    def paint_content(
        self, buffer: CellBuffer, style: ComputedStyle, area: ContentArea, layer: int
    ) -> None:
        if area.height <= 0:
            return
        label = take_columns(self.label, area.width)
        x = _aligned_x(area, visible_width(label), style.text_align)
        buffer.write_text(x, area.y, label, style=style, z_index=layer, node_id=self.id)


class InputNode(FocusableNode):
    """Single-line editable text with a cursor."""

    type_name = "input"

    def __init__(
        self,
        value: str = "",
        *,
        placeholder: str = "",
        on_change: Callable[[str], Any] | None = None,
        on_submit: Callable[[str], Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._value = value
        self.cursor = len(value)
        self.placeholder = placeholder
        self.on_change = on_change
        self.on_submit = on_submit

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, value: str) -> None:
        self._set_value(value, notify=False)
        self.cursor = min(self.cursor, len(value))

    def _set_value(self, value: str, *, notify: bool = True) -> None:
        if value == self._value:
            return
        self._value = value
        self.mark_layout_dirty()
        if notify and self.on_change is not None:
            self.on_change(value)

    def measure_content(self, width: int) -> tuple[int, int]:
        # One extra cell for the cursor at the end of the value.
        return max(visible_width(self._value), visible_width(self.placeholder)) + 1, 1

    def handle_key(self, event: KeyEvent) -> bool:
        if self.disabled:
            return False
        key = event.key
        value, cursor = self._value, self.cursor

        if key == "enter":
            if self.on_submit is not None:
                self.on_submit(value)
            return True
        if key == "backspace":
            if cursor > 0:
                self.cursor = cursor - 1
                self._set_value(value[: cursor - 1] + value[cursor:])
            return True
        if key == "delete":
            if cursor < len(value):
                self._set_value(value[:cursor] + value[cursor + 1 :])
            return True
        if key == "left":
            self.cursor = max(0, cursor - 1)
            return True
        if key == "right":
            self.cursor = min(len(value), cursor + 1)
            return True
        if key in ("home", "ctrl+a"):
            self.cursor = 0
            return True
        if key in ("end", "ctrl+e"):
            self.cursor = len(value)
            return True
        if event.char is not None and not event.ctrl and not event.alt:
            self.cursor = cursor + len(event.char)
            self._set_value(value[:cursor] + event.char + value[cursor:])
            return True
        return False

    def paint_content(
        self, buffer: CellBuffer, style: ComputedStyle, area: ContentArea, layer: int
    ) -> None:
        if area.width <= 0 or area.height <= 0:
            return
        if not self._value and self.placeholder and not self.focused:
            text = take_columns(self.placeholder, area.width)
            buffer.write_text(
                area.x, area.y, text, style=style.merged({"dim": True}), z_index=layer, node_id=self.id
            )
            return

        # Scroll horizontally so the cursor stays inside the box.
        start = max(0, self.cursor - area.width + 1)
        visible = take_columns(self._value[start:], area.width)
        buffer.write_text(area.x, area.y, visible, style=style, z_index=layer, node_id=self.id)
        if self.focused:
            cursor_x = area.x + visible_width(self._value[start : self.cursor])
            if cursor_x < area.x + area.width:
                cell = buffer.get_cell(cursor_x, area.y)
                char = cell.char if cell is not None and cell.char else " "
                buffer.write_text(
                    cursor_x,
                    area.y,
                    char,
                    style=style.merged({"inverse": True}),
                    z_index=layer,
                    node_id=self.id,
                )
