"""Themes: named colour tables plus per-component default styles.

Colour references come in two forms.  A bare key that happens to exist in
``Theme.colors`` (``"primary"``) resolves silently; anything else is taken
as a literal colour.  A ``"$key"`` reference is explicit and must exist in
the active theme, otherwise ``ThemeResolutionError`` is raised.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from pi.render.errors import ThemeResolutionError

logger = logging.getLogger(__name__)

# Style keys whose values are colours and go through theme resolution.
COLOR_KEYS: tuple[str, ...] = (
    "color",
    "background_color",
    "border_color",
    "border_background_color",
)

THEME_REF_PREFIX = "$"


class Theme(BaseModel):
    """A frozen colour table with component defaults.

    ``components`` maps a node type name (``"box"``, ``"text"``,
    ``"button"``, ``"input"``) to the style that node type starts from;
    ``text_styles`` holds the named variants a text node can opt into.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    colors: dict[str, str] = Field(default_factory=dict)
    components: dict[str, dict[str, Any]] = Field(default_factory=dict)
    text_styles: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def with_colors(self, **overrides: str) -> Theme:
        """Return a copy of this theme with some colours replaced."""
        return self.model_copy(update={"colors": {**self.colors, **overrides}})

    def component_style(self, type_name: str) -> dict[str, Any]:
        return dict(self.components.get(type_name, {}))

    def text_style(self, variant: str, *, node_id: str | None = None) -> dict[str, Any]:
        """Return the style of a named text variant (``"heading"``, ``"caption"`` ...).

        Variants are explicit references, so an unknown one raises
        ``ThemeResolutionError`` like a missing ``$key`` colour does.
        """
        try:
            return dict(self.text_styles[variant])
        except KeyError:
            raise ThemeResolutionError(
                f"Theme {self.name!r} has no text style {variant!r}",
                node_id=node_id,
                context={"theme": self.name, "variant": variant},
            ) from None


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_theme_color(
    value: Any, theme: Theme, *, node_id: str | None = None
) -> Any:
    """Resolve one colour value against *theme*.

    Non-string values and unknown bare names pass through unchanged.
    """
    if not isinstance(value, str) or not value:
        return value
    if value.startswith(THEME_REF_PREFIX):
        key = value[len(THEME_REF_PREFIX):]
        try:
            return theme.colors[key]
        except KeyError:
            raise ThemeResolutionError(
                f"Theme {theme.name!r} has no colour {key!r}",
                node_id=node_id,
                context={"theme": theme.name, "key": key},
            ) from None
    return theme.colors.get(value, value)


def resolve_theme_style(
    style: Mapping[str, Any], theme: Theme, *, node_id: str | None = None
) -> dict[str, Any]:
    """Return a copy of *style* with every colour key resolved."""
    resolved = dict(style)
    for key in COLOR_KEYS:
        if key in resolved:
            resolved[key] = resolve_theme_color(resolved[key], theme, node_id=node_id)
    return resolved


# ---------------------------------------------------------------------------
# Built-in themes
# ---------------------------------------------------------------------------

_BASE_COLORS: dict[str, str] = {
    "text": "white",
    "text_secondary": "gray",
    "text_disabled": "gray",
    "text_error": "red",
    "text_success": "green",
    "text_warning": "yellow",
    "text_info": "cyan",
    "background": "black",
    "background_secondary": "black",
    "background_disabled": "black",
    "border": "gray",
    "border_focused": "cyan",
    "border_disabled": "gray",
    "primary": "cyan",
    "primary_background": "black",
    "secondary": "blue",
    "secondary_background": "black",
}

_BASE_COMPONENTS: dict[str, dict[str, Any]] = {
    "text": {"color": "text"},
    "box": {"background_color": "background"},
    "input": {
        "color": "text",
        "background_color": "background",
        "border": True,
        "border_color": "border",
    },
    "button": {
        "color": "primary",
        "background_color": "primary_background",
        "border": True,
        "border_color": "primary",
    },
}

_BASE_TEXT_STYLES: dict[str, dict[str, Any]] = {
    "heading": {"color": "text", "bold": True},
    "body": {"color": "text"},
    "caption": {"color": "text_secondary", "dim": True},
    "code": {"color": "text", "background_color": "background_secondary"},
}

DEFAULT_THEME = Theme(
    name="default",
    colors=_BASE_COLORS,
    components=_BASE_COMPONENTS,
    text_styles=_BASE_TEXT_STYLES,
)

DARK_THEME = DEFAULT_THEME.model_copy(update={"name": "dark"})

LIGHT_THEME = Theme(
    name="light",
    colors={
        **_BASE_COLORS,
        "text": "black",
        "text_info": "blue",
        "background": "white",
        "background_secondary": "white",
        "background_disabled": "white",
        "border_focused": "blue",
        "primary": "blue",
        "primary_background": "white",
        "secondary_background": "white",
    },
    components=_BASE_COMPONENTS,
    text_styles=_BASE_TEXT_STYLES,
)

BUILTIN_THEMES: dict[str, Theme] = {
    t.name: t for t in (DEFAULT_THEME, DARK_THEME, LIGHT_THEME)
}


def get_theme(name: str) -> Theme:
    """Look up a built-in theme by name, falling back to the default."""
    theme = BUILTIN_THEMES.get(name)
    if theme is None:
        logger.warning("Unknown theme %r, using default", name)
        return DEFAULT_THEME
    return theme
