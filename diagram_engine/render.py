"""
Render-to-image export.

build_scene() turns a document into flat drawing primitives in export
coordinates (content moved so its bounds start at EXPORT_PADDING). The SVG
and PNG writers both draw that one scene, so the two outputs agree.

Draw order: containers, connectors, connector labels, nodes, node labels.
"""

import io
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .config import EXPORT_BACKGROUND, EXPORT_PADDING, EXPORT_SUPERSAMPLE
from .connectors import (
    ELBOW_CORNER_RADIUS,
    ConnectorPath,
    build_connectors,
    cubic_point,
    fmt,
    polyline_path,
)
from .errors import ExportRenderError
from .geometry import Point, content_bounds
from .models import (
    BORDER_WIDTHS,
    ArrowheadStyle,
    BorderStyle,
    Container,
    ContainerType,
    Document,
    LineStyle,
    Node,
    NodeType,
)

logger = logging.getLogger(__name__)

NODE_FILL = "#FFFFFF"
NODE_STROKE = "#3f3f46"
TEXT_COLOR = "#2B2B2B"
LINK_COLOR = "#52525b"
FONT_FAMILY = "Inter, Helvetica, Arial, sans-serif"
NODE_FONT_SIZE = 14
LABEL_FONT_SIZE = 12
CONTAINER_FONT_SIZE = 14
NODE_CORNER_RADIUS = 12.0
CONTAINER_CORNER_RADIUS = 16.0
CONTAINER_FILL_OPACITY = 0.05
ARROW_LENGTH = 10.0
ARROW_HALF_WIDTH = 5.0
CURVE_SAMPLES = 24

CONTAINER_COLORS = {
    ContainerType.REGION.value: "#1e3a5f",
    ContainerType.VPC.value: "#4361ee",
    ContainerType.AVAILABILITY_ZONE.value: "#7c3aed",
    ContainerType.SUBNET.value: "#6b7280",
    ContainerType.TIER.value: "#3f3f46",
}

_BORDER_DASHES = {
    BorderStyle.DASHED.value: "5,5",
    BorderStyle.DOTTED.value: "2,2",
}


# --- Scene primitives ---

@dataclass(frozen=True)
class RectShape:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    radius: float = 0.0
    dash: Optional[str] = None
    fill_opacity: float = 1.0


@dataclass(frozen=True)
class CircleShape:
    cx: float
    cy: float
    rx: float
    ry: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    dash: Optional[str] = None
    fill_opacity: float = 1.0


@dataclass(frozen=True)
class PolygonShape:
    points: tuple[Point, ...]
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    dash: Optional[str] = None
    fill_opacity: float = 1.0


@dataclass(frozen=True)
class PathShape:
    """An open stroke. `d` is SVG path data; `points` is its polyline approximation."""
    d: str
    points: tuple[Point, ...]
    stroke: str
    stroke_width: float
    dash: Optional[str] = None


@dataclass(frozen=True)
class TextShape:
    x: float
    y: float
    text: str
    size: float
    fill: str = TEXT_COLOR
    anchor: str = "middle"  # "middle" or "start"
    bold: bool = False


Shape = RectShape | CircleShape | PolygonShape | PathShape | TextShape


@dataclass
class Scene:
    width: float
    height: float
    background: str = EXPORT_BACKGROUND
    shapes: list[Shape] = field(default_factory=list)


# --- Scene building ---

def build_scene(document: Document, padding: float = EXPORT_PADDING) -> Scene:
    """
    Lay out every drawable of the document in export coordinates.

    Raises:
        ExportRenderError: the document has nothing to draw
    """
    bounds = content_bounds(document)
    if bounds is None or bounds.width <= 0 or bounds.height <= 0:
        raise ExportRenderError("Nothing to export: the diagram is empty")

    origin = Point(padding - bounds.x, padding - bounds.y)
    shift = _translated(origin)
    scene = Scene(width=bounds.width + 2 * padding, height=bounds.height + 2 * padding)

    for container in document.containers:
        scene.shapes.extend(_container_shapes(container, origin))

    connectors = build_connectors(document)
    for connector in connectors:
        scene.shapes.extend(_connector_shapes(connector, shift))
    for connector in connectors:
        if connector.label:
            label = connector.label
            scene.shapes.append(RectShape(
                x=label.x + origin.x - label.width / 2,
                y=label.y + origin.y - label.height / 2,
                width=label.width,
                height=label.height,
                fill=scene.background,
                radius=4.0,
            ))
            scene.shapes.append(TextShape(
                x=label.x + origin.x, y=label.y + origin.y,
                text=label.text, size=LABEL_FONT_SIZE,
            ))

    for node in document.nodes:
        scene.shapes.extend(_node_shapes(node, origin))
    for node in document.nodes:
        if node.type != NodeType.LAYER_LABEL.value and node.label:
            scene.shapes.append(TextShape(
                x=node.x + origin.x, y=node.y + origin.y,
                text=node.label, size=NODE_FONT_SIZE,
            ))
    return scene


def _translated(origin: Point):
    return lambda p: Point(p.x + origin.x, p.y + origin.y)


def _stroke_for(border_style: str, border_width: str, color: Optional[str], default: str):
    if border_style == BorderStyle.NONE.value:
        return None, 0.0, None
    return color or default, BORDER_WIDTHS[border_width], _BORDER_DASHES.get(border_style)


def _container_shapes(container: Container, origin: Point) -> list[Shape]:
    accent = CONTAINER_COLORS.get(container.type, NODE_STROKE)
    stroke, width, dash = _stroke_for(
        container.border_style, container.border_width, container.border_color, accent
    )
    x = container.x + origin.x
    y = container.y + origin.y
    return [
        RectShape(
            x=x, y=y, width=container.width, height=container.height,
            fill=container.color or accent, fill_opacity=CONTAINER_FILL_OPACITY,
            stroke=stroke, stroke_width=width, radius=CONTAINER_CORNER_RADIUS, dash=dash,
        ),
        TextShape(x=x + 12, y=y + 20, text=container.label, size=CONTAINER_FONT_SIZE,
                  fill=accent, anchor="start", bold=True),
    ]


def _node_shapes(node: Node, origin: Point) -> list[Shape]:
    cx = node.x + origin.x
    cy = node.y + origin.y
    if node.type == NodeType.LAYER_LABEL.value:
        return [TextShape(x=cx, y=cy, text=node.label, size=NODE_FONT_SIZE, bold=True)]

    stroke, width, dash = _stroke_for(node.border_style, node.border_width, node.border_color, NODE_STROKE)
    style = dict(fill=node.color or NODE_FILL, fill_opacity=node.fill_opacity,
                  stroke=stroke, stroke_width=width, dash=dash)
    w, h = node.width, node.height
    left, top = cx - w / 2, cy - h / 2

    if node.type == NodeType.NEURON.value or node.shape == "circle":
        r = min(w, h) / 2
        return [CircleShape(cx=cx, cy=cy, rx=r, ry=r, **style)]
    if node.shape == "ellipse":
        return [CircleShape(cx=cx, cy=cy, rx=w / 2, ry=h / 2, **style)]
    outline = _POLYGONS.get(node.shape or "")
    if outline is not None:
        points = tuple(Point(left + fx * w, top + fy * h) for fx, fy in outline)
        return [PolygonShape(points=points, **style)]
    radius = min(w, h) * 0.2 if node.shape == "rounded-rectangle" else NODE_CORNER_RADIUS
    return [RectShape(x=left, y=top, width=w, height=h, radius=radius, **style)]


# Polygon outlines as fractions of the node box
_POLYGONS = {
    "diamond": ((0.5, 0), (1, 0.5), (0.5, 1), (0, 0.5)),
    "triangle": ((0.5, 0), (1, 1), (0, 1)),
    "hexagon": ((0.25, 0), (0.75, 0), (1, 0.5), (0.75, 1), (0.25, 1), (0, 0.5)),
    "pentagon": ((0.5, 0), (1, 0.4), (0.8, 1), (0.2, 1), (0, 0.4)),
    "octagon": ((0.3, 0), (0.7, 0), (1, 0.3), (1, 0.7), (0.7, 1), (0.3, 1), (0, 0.7), (0, 0.3)),
    "parallelogram": ((0.25, 0), (1, 0), (0.75, 1), (0, 1)),
}


def _connector_points(connector: ConnectorPath) -> list[Point]:
    if connector.line_style == LineStyle.CURVED.value and len(connector.controls) == 2:
        cp1, cp2 = connector.controls
        return [
            cubic_point(connector.start, cp1, cp2, connector.end, i / CURVE_SAMPLES)
            for i in range(CURVE_SAMPLES + 1)
        ]
    return [connector.start, *connector.controls, connector.end]


def _arrowhead(tip: Point, angle_deg: float, style: str, color: str, background: str) -> PolygonShape:
    rad = math.radians(angle_deg)
    back = Point(-math.cos(rad), -math.sin(rad))
    side = Point(-back.y, back.x)
    base = tip + back.scaled(ARROW_LENGTH)
    points = (tip, base + side.scaled(ARROW_HALF_WIDTH), base - side.scaled(ARROW_HALF_WIDTH))
    if style == ArrowheadStyle.OUTLINED.value:
        return PolygonShape(points=points, fill=background, stroke=color, stroke_width=1.5)
    return PolygonShape(points=points, fill=color)


def _connector_shapes(connector: ConnectorPath, shift) -> list[Shape]:
    color = connector.color or LINK_COLOR
    points = tuple(shift(p) for p in _connector_points(connector))
    d = _path_data(connector, shift)
    shapes: list[Shape] = [PathShape(
        d=d, points=points, stroke=color,
        stroke_width=connector.stroke_width, dash=connector.dash,
    )]
    if connector.arrowhead == ArrowheadStyle.NONE.value:
        return shapes
    if connector.end_marker:
        shapes.append(_arrowhead(points[-1], connector.arrow_angle, connector.arrowhead,
                                 color, EXPORT_BACKGROUND))
    if connector.start_marker:
        lead = points[1] - points[0]
        angle = math.degrees(math.atan2(-lead.y, -lead.x)) if lead.length() else connector.arrow_angle + 180
        shapes.append(_arrowhead(points[0], angle, connector.arrowhead, color, EXPORT_BACKGROUND))
    return shapes


def _path_data(connector: ConnectorPath, shift) -> str:
    """Re-emit the connector's path in export coordinates."""
    start, end = shift(connector.start), shift(connector.end)
    if connector.line_style == LineStyle.CURVED.value and len(connector.controls) == 2:
        cp1, cp2 = (shift(p) for p in connector.controls)
        return (f"M {fmt(start.x)} {fmt(start.y)} "
                f"C {fmt(cp1.x)} {fmt(cp1.y)} {fmt(cp2.x)} {fmt(cp2.y)} {fmt(end.x)} {fmt(end.y)}")
    points = [start, *(shift(p) for p in connector.controls), end]
    radius = ELBOW_CORNER_RADIUS if connector.line_style == LineStyle.ELBOW.value else 0.0
    return polyline_path(points, radius)


# --- SVG ---

def escape_xml(text: str) -> str:
    """Escape special XML characters in text content."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def _paint(fill: Optional[str], fill_opacity: float, stroke: Optional[str],
           stroke_width: float, dash: Optional[str]) -> str:
    attrs = [f'fill="{escape_xml(fill) if fill else "none"}"']
    if fill and fill_opacity < 1:
        attrs.append(f'fill-opacity="{fmt(fill_opacity)}"')
    if stroke and stroke_width > 0:
        attrs.append(f'stroke="{escape_xml(stroke)}" stroke-width="{fmt(stroke_width)}"')
        if dash:
            attrs.append(f'stroke-dasharray="{escape_xml(dash)}"')
    return " ".join(attrs)


def _svg_shape(shape: Shape) -> str:
    if isinstance(shape, RectShape):
        return (
            f'<rect x="{fmt(shape.x)}" y="{fmt(shape.y)}" width="{fmt(shape.width)}" '
            f'height="{fmt(shape.height)}" rx="{fmt(shape.radius)}" ry="{fmt(shape.radius)}" '
            f'{_paint(shape.fill, shape.fill_opacity, shape.stroke, shape.stroke_width, shape.dash)} />'
        )
    if isinstance(shape, CircleShape):
        return (
            f'<ellipse cx="{fmt(shape.cx)}" cy="{fmt(shape.cy)}" rx="{fmt(shape.rx)}" ry="{fmt(shape.ry)}" '
            f'{_paint(shape.fill, shape.fill_opacity, shape.stroke, shape.stroke_width, shape.dash)} />'
        )
    if isinstance(shape, PolygonShape):
        points = " ".join(f"{fmt(p.x)},{fmt(p.y)}" for p in shape.points)
        return (
            f'<polygon points="{points}" '
            f'{_paint(shape.fill, shape.fill_opacity, shape.stroke, shape.stroke_width, shape.dash)} />'
        )
    if isinstance(shape, PathShape):
        return (
            f'<path d="{shape.d}" '
            f'{_paint(None, 1.0, shape.stroke, shape.stroke_width, shape.dash)} '
            f'stroke-linecap="round" stroke-linejoin="round" />'
        )
    anchor = "middle" if shape.anchor == "middle" else "start"
    weight = ' font-weight="600"' if shape.bold else ""
    return (
        f'<text x="{fmt(shape.x)}" y="{fmt(shape.y)}" text-anchor="{anchor}" '
        f'dominant-baseline="central" font-family="{FONT_FAMILY}" '
        f'font-size="{fmt(shape.size)}"{weight} fill="{escape_xml(shape.fill)}">{escape_xml(shape.text)}</text>'
    )


def render_svg(document: Document, padding: float = EXPORT_PADDING) -> str:
    """Render the document as a self-contained SVG string (inline attributes only)."""
    scene = build_scene(document, padding)
    width, height = fmt(scene.width), fmt(scene.height)
    parts: list[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">',
        f'<title>{escape_xml(document.title)}</title>',
        f'<rect x="0" y="0" width="{width}" height="{height}" fill="{scene.background}" />',
    ]
    for shape in scene.shapes:
        parts.append(_svg_shape(shape))
    parts.append("</svg>")
    return "\n".join(parts)


# --- PNG ---

def _rgba(color: str, opacity: float = 1.0) -> tuple[int, int, int, int]:
    try:
        r, g, b = ImageColor.getrgb(color)[:3]
    except ValueError:
        # CSS variables and other host-only colors have no raster equivalent
        logger.debug("Unsupported color %r, using %s", color, NODE_STROKE)
        r, g, b = ImageColor.getrgb(NODE_STROKE)
    return (r, g, b, round(255 * opacity))


def _dash_runs(points: list[tuple[float, float]], pattern: str, scale: float):
    """Split a polyline into the visible runs of a dash pattern."""
    try:
        lengths = [float(v) * scale for v in re.split(r"[\s,]+", pattern.strip()) if v]
    except ValueError:
        lengths = []
    if not lengths or min(lengths) <= 0:
        yield points
        return
    index, remaining, drawing = 0, lengths[0], True
    run = [points[0]]
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        seg = math.hypot(x1 - x0, y1 - y0)
        pos = 0.0
        while seg - pos > remaining:
            pos += remaining
            t = pos / seg
            cut = (x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)
            if drawing:
                run.append(cut)
                yield run
            run = [cut]
            drawing = not drawing
            index = (index + 1) % len(lengths)
            remaining = lengths[index]
        remaining -= seg - pos
        if drawing:
            run.append((x1, y1))
    if drawing and len(run) > 1:
        yield run


def _stroke_line(draw, points, color, width, dash, scale):
    if len(points) < 2 or width <= 0:
        return
    runs = _dash_runs(points, dash, scale) if dash else [points]
    for run in runs:
        if len(run) > 1:
            draw.line(run, fill=color, width=max(1, round(width)), joint="curve")


def _closed(points):
    return [*points, points[0]]


def _font(size: float, scale: float):
    return ImageFont.load_default(size=size * scale)


def _draw_shape(draw: ImageDraw.ImageDraw, shape: Shape, scale: float):
    def s(p: Point) -> tuple[float, float]:
        return (p.x * scale, p.y * scale)

    if isinstance(shape, TextShape):
        anchor = "mm" if shape.anchor == "middle" else "lm"
        draw.text(s(Point(shape.x, shape.y)), shape.text, fill=_rgba(shape.fill),
                  font=_font(shape.size, scale), anchor=anchor)
        return
    if isinstance(shape, PathShape):
        _stroke_line(draw, [s(p) for p in shape.points], _rgba(shape.stroke),
                     shape.stroke_width * scale, shape.dash, scale)
        return

    fill = _rgba(shape.fill, shape.fill_opacity) if shape.fill else None
    stroke = _rgba(shape.stroke) if shape.stroke and shape.stroke_width > 0 else None
    width = shape.stroke_width * scale
    solid_stroke = stroke if not shape.dash else None

    if isinstance(shape, RectShape):
        box = [shape.x * scale, shape.y * scale,
               (shape.x + shape.width) * scale, (shape.y + shape.height) * scale]
        draw.rounded_rectangle(box, radius=shape.radius * scale, fill=fill,
                               outline=solid_stroke, width=max(1, round(width)))
        if stroke and shape.dash:
            corners = [Point(shape.x, shape.y), Point(shape.x + shape.width, shape.y),
                       Point(shape.x + shape.width, shape.y + shape.height),
                       Point(shape.x, shape.y + shape.height)]
            _stroke_line(draw, _closed([s(p) for p in corners]), stroke, width, shape.dash, scale)
    elif isinstance(shape, CircleShape):
        box = [(shape.cx - shape.rx) * scale, (shape.cy - shape.ry) * scale,
               (shape.cx + shape.rx) * scale, (shape.cy + shape.ry) * scale]
        draw.ellipse(box, fill=fill, outline=solid_stroke, width=max(1, round(width)))
        if stroke and shape.dash:
            ring = [
                s(Point(shape.cx + shape.rx * math.cos(a), shape.cy + shape.ry * math.sin(a)))
                for a in (2 * math.pi * i / 64 for i in range(65))
            ]
            _stroke_line(draw, ring, stroke, width, shape.dash, scale)
    elif isinstance(shape, PolygonShape):
        points = [s(p) for p in shape.points]
        draw.polygon(points, fill=fill)
        if stroke:
            _stroke_line(draw, _closed(points), stroke, width, shape.dash, scale)


def render_png(document: Document, scale: int = EXPORT_SUPERSAMPLE,
               padding: float = EXPORT_PADDING) -> bytes:
    """
    Render the document as PNG bytes, supersampled by `scale`.

    Raises:
        ExportRenderError: the document is empty or the image could not be encoded
    """
    scene = build_scene(document, padding)
    size = (max(1, math.ceil(scene.width * scale)), max(1, math.ceil(scene.height * scale)))

    img = Image.new("RGBA", size, _rgba(scene.background))
    draw = ImageDraw.Draw(img, "RGBA")
    for shape in scene.shapes:
        _draw_shape(draw, shape, scale)

    buffer = io.BytesIO()
    try:
        img.convert("RGB").save(buffer, "PNG")
    except (OSError, ValueError) as e:
        logger.warning("PNG encoding failed: %s", e)
        raise ExportRenderError(f"Could not encode PNG: {e}") from e
    data = buffer.getvalue()
    if not data:
        raise ExportRenderError("Render produced no output")
    logger.debug("Rendered %dx%d PNG (%d bytes)", size[0], size[1], len(data))
    return data
