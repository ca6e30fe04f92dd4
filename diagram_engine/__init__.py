"""
Diagram Engine - geometry and edit-state core for architecture diagrams.

This package provides the document model, connector geometry, layouts,
the edit session state machine and import/export, with no dependency on
any rendering surface.
"""

from .models import (
    # Enums
    ArrowheadStyle,
    BorderStyle,
    BorderWidth,
    ContainerType,
    LineStyle,
    NodeType,
    StrokePattern,
    # Core models
    Node,
    Link,
    LinkStyle,
    Container,
    Document,
    apply_integrity,
)

from .errors import (
    DiagramError,
    DocumentValidationError,
    ExportRenderError,
    GenerationError,
    GenerationRejectedError,
    GenerationResponseError,
    GenerationTimeoutError,
    InvalidReferenceError,
    ViewOnlyError,
)
from .geometry import Point, Rect, Side, DockingPoint, dock_rectangle, dock_node, content_bounds
from .connectors import ConnectorPath, build_connector, build_connectors, link_groups
from .layout import (
    layered_layout,
    apply_layered_layout,
    grid_layout,
    tree_layout,
    align_nodes,
    distribute_nodes,
)
from .history import History
from .viewport import Viewport
from .events import EventSource, GestureListeners, KeyboardShortcuts, KeyEvent, PointerEvent
from .session import EditSession, InteractionMode
from .exchange import export_dict, export_json, import_json, parse_document
from .render import build_scene, render_png, render_svg
from .validation import validate_document, validation_summary, ValidationIssue, IssueSeverity
from .generation import GenerationService, HttpGenerationClient

__all__ = [
    # Enums
    "ArrowheadStyle",
    "BorderStyle",
    "BorderWidth",
    "ContainerType",
    "LineStyle",
    "NodeType",
    "StrokePattern",
    # Models
    "Node",
    "Link",
    "LinkStyle",
    "Container",
    "Document",
    "apply_integrity",
    # Errors
    "DiagramError",
    "DocumentValidationError",
    "ExportRenderError",
    "GenerationError",
    "GenerationRejectedError",
    "GenerationResponseError",
    "GenerationTimeoutError",
    "InvalidReferenceError",
    "ViewOnlyError",
    # Geometry
    "Point",
    "Rect",
    "Side",
    "DockingPoint",
    "dock_rectangle",
    "dock_node",
    "content_bounds",
    # Connectors
    "ConnectorPath",
    "build_connector",
    "build_connectors",
    "link_groups",
    # Layout
    "layered_layout",
    "apply_layered_layout",
    "grid_layout",
    "tree_layout",
    "align_nodes",
    "distribute_nodes",
    # Editing
    "History",
    "Viewport",
    "EventSource",
    "GestureListeners",
    "KeyboardShortcuts",
    "KeyEvent",
    "PointerEvent",
    "EditSession",
    "InteractionMode",
    # Exchange and export
    "export_dict",
    "export_json",
    "import_json",
    "parse_document",
    "build_scene",
    "render_png",
    "render_svg",
    # Validation
    "validate_document",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Generation
    "GenerationService",
    "HttpGenerationClient",
]
