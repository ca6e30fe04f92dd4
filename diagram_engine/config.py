"""
Engine configuration - geometry constants and environment-driven settings.

Constants are shared by the geometry, layout, session and export modules.
Generation service settings can be overridden through the environment:
- DIAGRAM_ENGINE_GENERATION_URL: base URL of the generation service API
- DIAGRAM_ENGINE_GENERATION_TIMEOUT: request timeout in seconds
- DIAGRAM_ENGINE_MAX_HISTORY: number of undo snapshots kept by a session
"""

import os

# --- Node defaults ---

DEFAULT_NODE_WIDTH = 150.0
DEFAULT_NODE_HEIGHT = 80.0
FALLBACK_NODE_WIDTH = 120.0   # used for docking when a node has no usable width
FALLBACK_NODE_HEIGHT = 60.0
CUSTOM_IMAGE_DOCK_FACTOR = 0.85

# --- Connectors ---

SOURCE_DOCK_PADDING = 2.0
TARGET_DOCK_PADDING = 6.0     # leaves room for the arrowhead
PARALLEL_SPACING = 15.0
PARALLEL_INDEX_STEP = 5.0
CURVE_CONTROL_FRACTION = 0.25
LABEL_LIFT = 10.0
LABEL_CHAR_WIDTH = 7.0
LABEL_PLATE_PADDING = 8.0
LABEL_PLATE_HEIGHT = 18.0
DEFAULT_ELBOW_OFFSET = 20.0

# --- Layered layout ---

NEURON_RADIUS = 25.0
LAYER_VERTICAL_SPACING = 30.0
LAYER_HORIZONTAL_SPACING = 250.0
LAYER_LABEL_OFFSET_Y = 60.0
VIRTUAL_CANVAS_WIDTH = 4000.0
VIRTUAL_CANVAS_HEIGHT = 3000.0

# --- Session ---

DUPLICATE_OFFSET = 30.0
DEFAULT_CONTAINER_WIDTH = 400.0
DEFAULT_CONTAINER_HEIGHT = 300.0
MAX_HISTORY = int(os.environ.get("DIAGRAM_ENGINE_MAX_HISTORY", "100"))
MAX_NOTIFICATIONS = 20

# --- Viewport ---

MIN_ZOOM = 0.1
MAX_ZOOM = 4.0
FIT_FILL_RATIO = 0.95

# --- Export ---

EXPORT_PADDING = 20.0
EXPORT_SUPERSAMPLE = 2
EXPORT_BACKGROUND = "#FFF9FB"

# --- Generation service ---

GENERATION_API_BASE = os.environ.get(
    "DIAGRAM_ENGINE_GENERATION_URL", "http://127.0.0.1:8765/api"
)
GENERATION_TIMEOUT = float(os.environ.get("DIAGRAM_ENGINE_GENERATION_TIMEOUT", "30"))
