"""Tests for pi.render.theme."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pi.render.errors import ThemeResolutionError
from pi.render.theme import (
    DEFAULT_THEME,
    LIGHT_THEME,
    Theme,
    get_theme,
    resolve_theme_color,
    resolve_theme_style,
)


class TestResolveColor:
    def test_bare_theme_key(self):
        assert resolve_theme_color("primary", DEFAULT_THEME) == "cyan"

    def test_literal_colour_passes_through(self):
        assert resolve_theme_color("red", DEFAULT_THEME) == "red"
        assert resolve_theme_color("#ff8800", DEFAULT_THEME) == "#ff8800"
        assert resolve_theme_color(None, DEFAULT_THEME) is None

    def test_explicit_reference(self):
        assert resolve_theme_color("$border_focused", DEFAULT_THEME) == "cyan"

    def test_missing_explicit_reference_raises(self):
        with pytest.raises(ThemeResolutionError) as excinfo:
            resolve_theme_color("$nope", DEFAULT_THEME, node_id="node_1")
        assert excinfo.value.node_id == "node_1"
        assert excinfo.value.context["key"] == "nope"

    def test_style_resolves_colour_keys_only(self):
        style = {"color": "text", "background_color": "$primary", "label": "primary"}
        resolved = resolve_theme_style(style, LIGHT_THEME)
        assert resolved["color"] == "black"
        assert resolved["background_color"] == "blue"
        assert resolved["label"] == "primary"
        assert style["color"] == "text"


class TestTheme:
    def test_is_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_THEME.name = "changed"

    def test_with_colors_copies(self):
        custom = DEFAULT_THEME.with_colors(primary="magenta")
        assert custom.colors["primary"] == "magenta"
        assert DEFAULT_THEME.colors["primary"] == "cyan"
        assert custom.components == DEFAULT_THEME.components

    def test_component_style_is_a_copy(self):
        style = DEFAULT_THEME.component_style("button")
        style["color"] = "red"
        assert DEFAULT_THEME.component_style("button")["color"] == "primary"
        assert DEFAULT_THEME.component_style("unknown") == {}

    def test_validates_fields(self):
        with pytest.raises(ValidationError):
            Theme(name="bad", colors={"primary": 3})

    def test_get_theme(self):
        assert get_theme("light") is LIGHT_THEME
        assert get_theme("dark").name == "dark"
        assert get_theme("no-such-theme") is DEFAULT_THEME

    def test_text_style_is_a_copy(self):
        style = DEFAULT_THEME.text_style("heading")
        assert style == {"color": "text", "bold": True}
        style["bold"] = False
        assert DEFAULT_THEME.text_style("heading")["bold"] is True

    def test_unknown_text_style_raises(self):
        with pytest.raises(ThemeResolutionError) as excinfo:
            DEFAULT_THEME.text_style("subtitle", node_id="node_3")
        assert excinfo.value.node_id == "node_3"
        assert excinfo.value.context["variant"] == "subtitle"
