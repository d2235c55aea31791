"""Error taxonomy and reporting for the render engine.

Every failure raised by the engine is a ``RenderEngineError`` subclass tagged
with an ``ErrorKind``.  Failures that are isolated rather than propagated
(a single node's style or paint) go through ``report_error``, which hands
them to a pluggable handler.  The default handler logs them.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    INITIALIZATION = "initialization"
    RENDERING = "rendering"
    INPUT_PARSING = "input_parsing"
    LAYOUT_CALCULATION = "layout_calculation"
    COMPONENT = "component"
    UNKNOWN = "unknown"


_HINTS: dict[ErrorKind, str] = {
    ErrorKind.INITIALIZATION: "Check the render settings and environment.",
    ErrorKind.RENDERING: "Check the node structure being rendered.",
    ErrorKind.INPUT_PARSING: "Ensure the input event is well formed.",
    ErrorKind.LAYOUT_CALCULATION: "Check the layout styles and constraints.",
    ErrorKind.COMPONENT: "Check the node's props and styles.",
    ErrorKind.UNKNOWN: "",
}


class RenderEngineError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        node_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.node_id = node_id
        self.context = context or {}


class InitializationError(RenderEngineError):
    kind = ErrorKind.INITIALIZATION


class RenderingError(RenderEngineError):
    kind = ErrorKind.RENDERING


class InputParsingError(RenderEngineError):
    kind = ErrorKind.INPUT_PARSING


class LayoutCalculationError(RenderEngineError):
    kind = ErrorKind.LAYOUT_CALCULATION


class ComponentError(RenderEngineError):
    """A failure attributable to one node or capability."""

    kind = ErrorKind.COMPONENT


class TreeError(ComponentError):
    """Invalid node-tree mutation (cycle, double parent, missing child)."""


class ReconcilerError(ComponentError):
    """Component-instance state machine violation."""


class ThemeResolutionError(ComponentError):
    """An explicit theme colour reference that the active theme lacks."""


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

ErrorHandler = Callable[[Exception, ErrorKind, "dict[str, Any] | None"], None]


def format_error(
    error: Exception, kind: ErrorKind, context: dict[str, Any] | None = None
) -> str:
    """Build a one-paragraph message with the kind, hint and context."""
    parts = [f"[{kind.value}] {error}"]
    hint = _HINTS.get(kind)
    if hint:
        parts.append(hint)
    node_id = getattr(error, "node_id", None)
    if node_id:
        parts.append(f"node={node_id}")
    if context:
        details = ", ".join(f"{k}={v!r}" for k, v in sorted(context.items()))
        parts.append(f"({details})")
    return " ".join(parts)


def _default_handler(
    error: Exception, kind: ErrorKind, context: dict[str, Any] | None
) -> None:
    logger.error(format_error(error, kind, context))
    logger.debug("traceback", exc_info=error)


_error_handler: ErrorHandler = _default_handler


def set_error_handler(handler: ErrorHandler | None) -> None:
    """Install *handler*; ``None`` restores the logging handler."""
    global _error_handler
    _error_handler = handler if handler is not None else _default_handler


def get_error_handler() -> ErrorHandler:
    return _error_handler


def report_error(
    error: BaseException,
    kind: ErrorKind | None = None,
    context: dict[str, Any] | None = None,
) -> None:
    """Hand an isolated failure to the active error handler.

    When *kind* is omitted it is taken from the error itself, falling back
    to ``ErrorKind.UNKNOWN`` for foreign exceptions.
    """
    err = error if isinstance(error, Exception) else Exception(str(error))
    if kind is None:
        kind = getattr(err, "kind", ErrorKind.UNKNOWN)
    _error_handler(err, kind, context)
