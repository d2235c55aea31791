"""Render settings, read from ``PI_RENDER_*`` environment variables."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from pi.render.errors import InitializationError

DEFAULT_COLUMNS = 80
DEFAULT_ROWS = 24


@dataclass
class RenderSettings:
    """Viewport size and engine switches for one render session."""

    columns: int = DEFAULT_COLUMNS
    rows: int = DEFAULT_ROWS
    theme: str = "default"
    debug_layout: bool = False
    # Registering a child before its parent raises instead of leaving the
    # child unlinked.
    strict_registration: bool = True

    def __post_init__(self) -> None:
        if self.columns <= 0 or self.rows <= 0:
            raise InitializationError(
                f"Viewport must be positive, got {self.columns}x{self.rows}",
                context={"columns": self.columns, "rows": self.rows},
            )


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise InitializationError(
            f"{name} must be an integer, got {raw!r}", context={name: raw}
        ) from None


def _terminal_size() -> tuple[int, int]:
    try:
        size = os.get_terminal_size(sys.stdout.fileno())
        return size.columns, size.lines
    except (OSError, ValueError, AttributeError):
        return DEFAULT_COLUMNS, DEFAULT_ROWS


def load_settings() -> RenderSettings:
    """Build settings from the environment, falling back to the terminal size.

    * ``PI_RENDER_COLUMNS`` / ``PI_RENDER_ROWS`` -- viewport override
    * ``PI_RENDER_THEME`` -- name of a built-in theme
    * ``PI_RENDER_DEBUG=1`` -- log every layout decision
    """
    columns = _env_int("PI_RENDER_COLUMNS")
    rows = _env_int("PI_RENDER_ROWS")
    if columns is None or rows is None:
        term_columns, term_rows = _terminal_size()
        columns = columns if columns is not None else term_columns
        rows = rows if rows is not None else term_rows

    return RenderSettings(
        columns=columns,
        rows=rows,
        theme=os.environ.get("PI_RENDER_THEME", "default"),
        debug_layout=os.environ.get("PI_RENDER_DEBUG") == "1",
    )
