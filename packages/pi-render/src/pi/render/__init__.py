"""pi-render: box-model layout and cell-buffer rendering for terminal UIs."""

# Geometry
from pi.render.box_model import (
    Border,
    Bounds,
    ContentArea,
    Dimensions,
    Edges,
    ViewportSize,
    calculate_content_area,
    calculate_margin_bounds,
    calculate_total_dimensions,
    normalize_spacing,
    resolve_size,
)

# Cell buffer
from pi.render.buffer import BORDER_GLYPHS, Cell, CellBuffer

# Capabilities
from pi.render.capabilities import (
    Interactive,
    Layoutable,
    Renderable,
    Stylable,
    is_interactive,
    is_layoutable,
    is_renderable,
    is_stylable,
)

# Configuration
from pi.render.config import RenderSettings, load_settings

# Errors
from pi.render.errors import (
    ComponentError,
    ErrorKind,
    InitializationError,
    InputParsingError,
    LayoutCalculationError,
    ReconcilerError,
    RenderEngineError,
    RenderingError,
    ThemeResolutionError,
    TreeError,
    format_error,
    get_error_handler,
    report_error,
    set_error_handler,
)

# Input events
from pi.render.events import KeyEvent, parse_key_event

# Layout
from pi.render.layout import LayoutEngine, Space

# Nodes
from pi.render.nodes import (
    BoxNode,
    ButtonNode,
    FocusableNode,
    FragmentNode,
    InputNode,
    Node,
    TextNode,
)

# Rendering
from pi.render.renderer import Renderer
from pi.render.rendering_tree import BufferRegion, RenderingInfo, RenderingTree
from pi.render.session import RenderResult, RenderSession
from pi.render.stacking import StackingContext, StackingContextManager

# Styles and themes
from pi.render.style import (
    ComputedStyle,
    InteractionState,
    StyleResolver,
    compose,
    create,
    create_stateful_style,
    flatten,
    resolve_state_style,
)

# Text measurement
from pi.render.text import truncate_to_width, visible_width, wrap_text
from pi.render.theme import (
    DARK_THEME,
    DEFAULT_THEME,
    LIGHT_THEME,
    Theme,
    get_theme,
    resolve_theme_color,
    resolve_theme_style,
)

# Reconciliation
from pi.render.tree import ComponentInstance, ComponentTree
from pi.render.viewport import Viewport, ViewportManager

__all__ = [
    # Geometry
    "Border",
    "Bounds",
    "ContentArea",
    "Dimensions",
    "Edges",
    "ViewportSize",
    "calculate_content_area",
    "calculate_margin_bounds",
    "calculate_total_dimensions",
    "normalize_spacing",
    "resolve_size",
    # Buffer
    "BORDER_GLYPHS",
    "Cell",
    "CellBuffer",
    # Capabilities
    "Interactive",
    "Layoutable",
    "Renderable",
    "Stylable",
    "is_interactive",
    "is_layoutable",
    "is_renderable",
    "is_stylable",
    # Config
    "RenderSettings",
    "load_settings",
    # Errors
    "ComponentError",
    "ErrorKind",
    "InitializationError",
    "InputParsingError",
    "LayoutCalculationError",
    "ReconcilerError",
    "RenderEngineError",
    "RenderingError",
    "ThemeResolutionError",
    "TreeError",
    "format_error",
    "get_error_handler",
    "report_error",
    "set_error_handler",
    # Events
    "KeyEvent",
    "parse_key_event",
    # Layout
    "LayoutEngine",
    "Space",
    # Nodes
    "BoxNode",
    "ButtonNode",
    "FocusableNode",
    "FragmentNode",
    "InputNode",
    "Node",
    "TextNode",
    # Rendering
    "BufferRegion",
    "RenderResult",
    "RenderSession",
    "Renderer",
    "RenderingInfo",
    "RenderingTree",
    "StackingContext",
    "StackingContextManager",
    "Viewport",
    "ViewportManager",
    # Styles
    "ComputedStyle",
    "InteractionState",
    "StyleResolver",
    "compose",
    "create",
    "create_stateful_style",
    "flatten",
    "resolve_state_style",
    # Text
    "truncate_to_width",
    "visible_width",
    "wrap_text",
    # Themes
    "DARK_THEME",
    "DEFAULT_THEME",
    "LIGHT_THEME",
    "Theme",
    "get_theme",
    "resolve_theme_color",
    "resolve_theme_style",
    # Reconciliation
    "ComponentInstance",
    "ComponentTree",
]
