"""Style composition and resolution.

A *style* is a plain ``dict`` of snake_case keys (``color``,
``background_color``, ``padding``, ``flex_direction`` ...).  Anywhere a style
is accepted, a list of styles (flattened left to right) or a function of
``InteractionState`` returning either is accepted too.

Resolution for a node runs a fixed cascade, lowest priority first:

1. the node type's own defaults
2. the theme's component defaults for the node type
3. static style fragments
4. state-function styles, called with the node's interaction state
5. per-state overrides (hovered < focused < pressed < disabled)

Inheritable text properties are then filled in from the parent, and colour
references are resolved against the theme.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Sequence, Union

from pi.render.capabilities import is_stylable
from pi.render.errors import ComponentError, report_error
from pi.render.theme import Theme, resolve_theme_style

logger = logging.getLogger(__name__)

Style = dict[str, Any]
StyleInput = Union[Style, Sequence[Any], Callable[["InteractionState"], Any], None, bool]

INHERITED_KEYS: tuple[str, ...] = (
    "color",
    "background_color",
    "bold",
    "italic",
    "underline",
    "dim",
)

# Override props in increasing priority.
STATE_OVERRIDE_ORDER: tuple[tuple[str, str], ...] = (
    ("hovered", "hovered_style"),
    ("focused", "focused_style"),
    ("pressed", "pressed_style"),
    ("disabled", "disabled_style"),
)


@dataclass(frozen=True)
class InteractionState:
    hovered: bool = False
    focused: bool = False
    pressed: bool = False
    disabled: bool = False


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def create(styles: dict[str, Style]) -> dict[str, Style]:
    """Name a table of styles.  Returns *styles* unchanged."""
    return styles


def flatten(fragments: Sequence[Any] | None) -> Style | None:
    """Merge style fragments left to right into a new dict.

    Nested lists are flattened in place.  ``None`` and ``False`` entries are
    skipped at any depth.  Returns ``None`` if no fragment was present.
    """
    if not fragments:
        return None
    merged: Style | None = None
    for fragment in _iter_fragments(fragments):
        if merged is None:
            merged = {}
        merged.update(fragment)
    return merged


def compose(*fragments: Any) -> Style | None:
    """``flatten`` over positional arguments."""
    return flatten(fragments)


def _iter_fragments(fragments: Sequence[Any]) -> Iterator[Mapping[str, Any]]:
    for fragment in fragments:
        if fragment is None or fragment is False:
            continue
        if isinstance(fragment, (list, tuple)):
            yield from _iter_fragments(fragment)
        elif isinstance(fragment, Mapping):
            yield fragment
        else:
            raise ComponentError(
                f"Invalid style fragment: {fragment!r}",
                context={"type": type(fragment).__name__},
            )


# ---------------------------------------------------------------------------
# State-dependent styles
# ---------------------------------------------------------------------------


def _resolve_value(style: StyleInput, state: InteractionState) -> Style | None:
    if style is None or style is False:
        return None
    if callable(style):
        return _resolve_value(style(state), state)
    if isinstance(style, (list, tuple)):
        return flatten([_resolve_value(s, state) for s in style])
    return dict(style)


def resolve_state_style(
    style: StyleInput,
    state: InteractionState,
    overrides: Mapping[str, StyleInput] | None = None,
) -> Style | None:
    """Resolve a function, list or plain style against *state*.

    *overrides* may carry ``hovered_style``, ``focused_style``,
    ``pressed_style`` and ``disabled_style``; each one that matches the state
    is applied on top, in that order.
    """
    layers: list[Style | None] = [_resolve_value(style, state)]
    if overrides:
        for flag, key in STATE_OVERRIDE_ORDER:
            if getattr(state, flag) and overrides.get(key) is not None:
                layers.append(_resolve_value(overrides[key], state))
    return flatten(layers)


def create_stateful_style(
    base: StyleInput,
    *,
    pressed: StyleInput = None,
    focused: StyleInput = None,
    hovered: StyleInput = None,
    disabled: StyleInput = None,
) -> Callable[[InteractionState], Style]:
    """Build a style function from a base style and per-state additions."""

    def style_fn(state: InteractionState) -> Style:
        resolved = resolve_state_style(
            base,
            state,
            {
                "hovered_style": hovered,
                "focused_style": focused,
                "pressed_style": pressed,
                "disabled_style": disabled,
            },
        )
        return resolved or {}

    return style_fn


# ---------------------------------------------------------------------------
# Computed style
# ---------------------------------------------------------------------------


class ComputedStyle(Mapping):
    """An immutable, fully-resolved style record."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ComputedStyle({self._data!r})"

    def merged(self, *fragments: Mapping[str, Any] | None) -> ComputedStyle:
        return ComputedStyle(compose(self._data, *fragments) or {})

    @property
    def color(self) -> str | None:
        return self._data.get("color")

    @property
    def background_color(self) -> str | None:
        return self._data.get("background_color")

    @property
    def border_color(self) -> str | None:
        return self._data.get("border_color")

    @property
    def z_index(self) -> int:
        return int(self._data.get("z_index") or 0)

    @property
    def position(self) -> str:
        return self._data.get("position", "static")

    @property
    def display(self) -> str:
        return self._data.get("display", "block")

    @property
    def overflow(self) -> str:
        return self._data.get("overflow", "visible")

    @property
    def bold(self) -> bool:
        return bool(self._data.get("bold")) or self._data.get("font_weight") == "bold"

    @property
    def italic(self) -> bool:
        return bool(self._data.get("italic"))

    @property
    def underline(self) -> bool:
        return bool(self._data.get("underline"))

    @property
    def dim(self) -> bool:
        return bool(self._data.get("dim"))

    @property
    def inverse(self) -> bool:
        return bool(self._data.get("inverse"))

    @property
    def text_align(self) -> str:
        return self._data.get("text_align", "left")


EMPTY_STYLE = ComputedStyle()


def cascade(
    *,
    defaults: Mapping[str, Any] | None,
    component: Mapping[str, Any] | None,
    static: Sequence[StyleInput],
    state_styles: Sequence[StyleInput],
    state: InteractionState,
    overrides: Mapping[str, StyleInput] | None,
    parent: Mapping[str, Any] | None,
    theme: Theme,
    node_id: str | None = None,
) -> ComputedStyle:
    """Run the full resolution cascade for one node."""
    layers: list[Style | None] = [
        dict(defaults) if defaults else None,
        dict(component) if component else None,
        flatten(list(static)),
    ]
    for fn in state_styles:
        layers.append(_resolve_value(fn, state))
    layers.append(resolve_state_style(None, state, overrides))
    merged = flatten(layers) or {}

    if parent:
        for key in INHERITED_KEYS:
            if merged.get(key) is None and parent.get(key) is not None:
                merged[key] = parent[key]

    return ComputedStyle(resolve_theme_style(merged, theme, node_id=node_id))


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class StyleResolver:
    """Resolves computed styles for a node tree against one theme."""

    def __init__(self, theme: Theme) -> None:
        self.theme = theme

    def resolve(self, node: Any, parent_style: Mapping[str, Any] | None = None) -> ComputedStyle:
        return node.compute_style(self.theme, parent_style)

    def resolve_tree(self, root: Any) -> dict[str, ComputedStyle]:
        """Resolve every stylable node under *root*, keyed by node id.

        A node whose resolution fails is reported and given its parent's
        inherited properties only.  Its siblings are unaffected.
        """
        results: dict[str, ComputedStyle] = {}
        self._resolve_subtree(root, None, results)
        return results

    def _resolve_subtree(
        self,
        node: Any,
        parent_style: Mapping[str, Any] | None,
        results: dict[str, ComputedStyle],
    ) -> None:
        style = parent_style
        if is_stylable(node):
            try:
                style = node.compute_style(self.theme, parent_style)
            except ComponentError as exc:
                if exc.node_id is None:
                    exc.node_id = node.id
                report_error(exc, context={"theme": self.theme.name})
                logger.warning("Style resolution failed for %s", node.id)
                style = ComputedStyle(
                    {k: parent_style[k] for k in INHERITED_KEYS if parent_style and k in parent_style}
                )
                node.set_computed_style_fallback(style, self.theme)
            results[node.id] = style
        for child in node.children:
            self._resolve_subtree(child, style, results)
