import pytest

from pi.render.config import RenderSettings
from pi.render.errors import set_error_handler
from pi.render.session import RenderSession


@pytest.fixture
def reported():
    """Capture errors passed to report_error instead of logging them."""
    captured = []
    set_error_handler(lambda error, kind, context: captured.append((error, kind, context)))
    yield captured
    set_error_handler(None)


@pytest.fixture
def session():
    """A small 20x6 session with the default theme."""
    return RenderSession(RenderSettings(columns=20, rows=6))
