"""Tests for pi.render.config."""

from __future__ import annotations

import pytest

from pi.render import config
from pi.render.config import RenderSettings, load_settings
from pi.render.errors import InitializationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PI_RENDER_COLUMNS", "PI_RENDER_ROWS", "PI_RENDER_THEME", "PI_RENDER_DEBUG"):
        monkeypatch.delenv(name, raising=False)


class TestRenderSettings:
    def test_defaults(self):
        settings = RenderSettings()
        assert (settings.columns, settings.rows) == (80, 24)
        assert settings.theme == "default"
        assert settings.strict_registration

    @pytest.mark.parametrize("columns, rows", [(0, 24), (80, -1)])
    def test_non_positive_viewport_raises(self, columns, rows):
        with pytest.raises(InitializationError):
            RenderSettings(columns=columns, rows=rows)


class TestLoadSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("PI_RENDER_COLUMNS", "100")
        monkeypatch.setenv("PI_RENDER_ROWS", "30")
        monkeypatch.setenv("PI_RENDER_THEME", "light")
        monkeypatch.setenv("PI_RENDER_DEBUG", "1")
        settings = load_settings()
        assert (settings.columns, settings.rows) == (100, 30)
        assert settings.theme == "light"
        assert settings.debug_layout

    def test_falls_back_to_terminal_size(self, monkeypatch):
        monkeypatch.setattr(config, "_terminal_size", lambda: (132, 43))
        monkeypatch.setenv("PI_RENDER_ROWS", "10")
        settings = load_settings()
        assert (settings.columns, settings.rows) == (132, 10)
        assert not settings.debug_layout

    def test_non_integer_raises(self, monkeypatch):
        monkeypatch.setenv("PI_RENDER_COLUMNS", "wide")
        with pytest.raises(InitializationError):
            load_settings()
