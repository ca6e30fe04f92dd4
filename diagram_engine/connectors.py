"""
Connector path generation.

Turns a link plus its two nodes into drawable geometry:
- docked endpoints on both node boundaries
- a perpendicular offset so parallel and bidirectional links fan out
- the path itself (cubic curve by default, straight or elbow/orthogonal on request)
- the arrowhead angle at the end of the path
- an optional label anchor with a background plate size
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .config import (
    CURVE_CONTROL_FRACTION,
    DEFAULT_ELBOW_OFFSET,
    LABEL_CHAR_WIDTH,
    LABEL_LIFT,
    LABEL_PLATE_HEIGHT,
    LABEL_PLATE_PADDING,
    PARALLEL_INDEX_STEP,
    PARALLEL_SPACING,
    SOURCE_DOCK_PADDING,
    TARGET_DOCK_PADDING,
)
from .geometry import Point, Side, dock_node
from .models import LineStyle

if TYPE_CHECKING:
    from .models import Document, Link, Node

ELBOW_CORNER_RADIUS = 10.0
FALLBACK_PERPENDICULAR = Point(0.0, 1.0)


@dataclass(frozen=True)
class GroupPlacement:
    """Position of a link among all links joining the same two nodes."""
    index: int = 0
    total: int = 1
    bidirectional: bool = False
    reverse: bool = False

    def offset(self) -> float:
        """Signed perpendicular offset for this link (0 for a lone link)."""
        if not self.bidirectional and self.total <= 1:
            return 0.0
        direction = 0.0
        if self.bidirectional:
            direction = -1.0 if self.reverse else 1.0
        index_offset = self.index - (self.total - 1) / 2
        return PARALLEL_SPACING * direction + index_offset * PARALLEL_INDEX_STEP


@dataclass(frozen=True)
class LabelPlacement:
    text: str
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ConnectorPath:
    """Everything a renderer needs to draw one link."""
    link_id: str
    start: Point
    end: Point
    start_side: Side
    end_side: Side
    controls: tuple[Point, ...]
    path_data: str
    arrow_angle: float
    label: Optional[LabelPlacement]
    line_style: str
    stroke_width: float
    color: Optional[str]
    dash: Optional[str]
    arrowhead: str
    start_marker: bool
    end_marker: bool

    @property
    def arrow_transform(self) -> str:
        return f"translate({fmt(self.end.x)}, {fmt(self.end.y)}) rotate({fmt(self.arrow_angle)})"


def fmt(value: float) -> str:
    """Compact number formatting for path data."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def link_groups(links: "tuple[Link, ...] | list[Link]") -> dict[str, GroupPlacement]:
    """
    Place every link within the group of links sharing its node pair.

    Links are grouped by unordered node pair. Within a group, links running
    from the smaller node id to the larger come first ("forward"); the others
    are "reverse". A group is bidirectional when it has both.
    """
    groups: dict[tuple[str, str], tuple[list[str], list[str]]] = {}
    for link in links:
        key = tuple(sorted((link.source, link.target)))
        fwd, bwd = groups.setdefault(key, ([], []))
        if link.source < link.target:
            fwd.append(link.id)
        else:
            bwd.append(link.id)

    placements: dict[str, GroupPlacement] = {}
    for fwd, bwd in groups.values():
        members = fwd + bwd
        bidirectional = bool(fwd) and bool(bwd)
        for index, link_id in enumerate(members):
            placements[link_id] = GroupPlacement(
                index=index,
                total=len(members),
                bidirectional=bidirectional,
                reverse=link_id in bwd,
            )
    return placements


def cubic_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    u = 1 - t
    a, b, c, d = u ** 3, 3 * u * u * t, 3 * u * t * t, t ** 3
    return Point(
        a * p0.x + b * p1.x + c * p2.x + d * p3.x,
        a * p0.y + b * p1.y + c * p2.y + d * p3.y,
    )


def _perpendicular(start: Point, end: Point) -> Point:
    dx = end.x - start.x
    dy = end.y - start.y
    if dx == 0 and dy == 0:
        return FALLBACK_PERPENDICULAR
    dist = math.hypot(dx, dy) or 1.0
    return Point(-dy / dist, dx / dist)


def _label(text: Optional[str], anchor: Point) -> Optional[LabelPlacement]:
    if not text:
        return None
    return LabelPlacement(
        text=text,
        x=anchor.x,
        y=anchor.y - LABEL_LIFT,
        width=len(text) * LABEL_CHAR_WIDTH + LABEL_PLATE_PADDING,
        height=LABEL_PLATE_HEIGHT,
    )


def _elbow_points(start: Point, end: Point, link: "Link") -> list[Point]:
    """H-V-H route for mostly horizontal links, V-H-V otherwise."""
    dx = end.x - start.x
    dy = end.y - start.y
    if abs(dx) > abs(dy):
        mid = (start.x + end.x) / 2
        p2, p3 = Point(mid, start.y), Point(mid, end.y)
    else:
        mid = (start.y + end.y) / 2
        p2, p3 = Point(start.x, mid), Point(end.x, mid)

    if link.style.angle:
        rad = math.radians(link.style.angle)
        reach = link.style.offset_distance or DEFAULT_ELBOW_OFFSET
        shift = Point(math.cos(rad) * reach, math.sin(rad) * reach)
        p2, p3 = p2 + shift, p3 + shift
    return [start, p2, p3, end]


def polyline_path(points: list[Point], radius: float = 0.0) -> str:
    """Path through `points`, with corners rounded by `radius` when non-zero."""
    parts = [f"M {fmt(points[0].x)} {fmt(points[0].y)}"]
    for prev, corner, nxt in zip(points, points[1:], points[2:]):
        into = corner - prev
        out = nxt - corner
        r = min(radius, into.length() / 2, out.length() / 2)
        if r <= 0:
            parts.append(f"L {fmt(corner.x)} {fmt(corner.y)}")
            continue
        before = corner - into.scaled(r / into.length())
        after = corner + out.scaled(r / out.length())
        parts.append(f"L {fmt(before.x)} {fmt(before.y)}")
        parts.append(f"Q {fmt(corner.x)} {fmt(corner.y)} {fmt(after.x)} {fmt(after.y)}")
    last = points[-1]
    parts.append(f"L {fmt(last.x)} {fmt(last.y)}")
    return " ".join(parts)


def build_connector(
    link: "Link",
    source: "Node",
    target: "Node",
    placement: Optional[GroupPlacement] = None,
    source_padding: float = SOURCE_DOCK_PADDING,
    target_padding: float = TARGET_DOCK_PADDING,
) -> ConnectorPath:
    """
    Compute the drawable path for one link.

    Args:
        link: The link to draw
        source: Node the link starts at
        target: Node the link points to
        placement: The link's place among parallel links (lone link if None)
        source_padding: Clearance between the source boundary and the path
        target_padding: Clearance at the target, leaving room for the arrowhead

    Returns:
        ConnectorPath with endpoints, path data, arrow angle and label anchor
    """
    placement = placement or GroupPlacement()
    start_dock = dock_node(source, Point(target.x, target.y), source_padding)
    end_dock = dock_node(target, Point(source.x, source.y), target_padding)

    perp = _perpendicular(start_dock.point, end_dock.point)
    # Group offsets are measured in the pair's canonical direction so the two
    # halves of a bidirectional pair end up on opposite sides.
    sign = -1.0 if placement.reverse else 1.0
    distance = placement.offset() * sign + link.style.offset_distance
    shift = perp.scaled(distance)
    start = start_dock.point + shift
    end = end_dock.point + shift

    style = link.style
    delta = end - start

    if style.line_style in (LineStyle.ELBOW.value, LineStyle.ORTHOGONAL.value):
        points = _elbow_points(start, end, link)
        radius = ELBOW_CORNER_RADIUS if style.line_style == LineStyle.ELBOW.value else 0.0
        path_data = polyline_path(points, radius)
        controls = tuple(points[1:-1])
        tail = points[-1] - points[-2]
        if tail.length() == 0:
            tail = delta
        angle = math.degrees(math.atan2(tail.y, tail.x))
        label_anchor = Point((points[1].x + points[2].x) / 2, (points[1].y + points[2].y) / 2)
    else:
        cp1 = start + delta.scaled(CURVE_CONTROL_FRACTION)
        cp2 = end - delta.scaled(CURVE_CONTROL_FRACTION)
        if style.line_style == LineStyle.STRAIGHT.value:
            path_data = f"M {fmt(start.x)} {fmt(start.y)} L {fmt(end.x)} {fmt(end.y)}"
            controls = ()
        else:
            path_data = (
                f"M {fmt(start.x)} {fmt(start.y)} "
                f"C {fmt(cp1.x)} {fmt(cp1.y)} {fmt(cp2.x)} {fmt(cp2.y)} {fmt(end.x)} {fmt(end.y)}"
            )
            controls = (cp1, cp2)
        angle = math.degrees(math.atan2(end.y - cp2.y, end.x - cp2.x))
        label_anchor = cubic_point(start, cp1, cp2, end, 0.5)

    return ConnectorPath(
        link_id=link.id,
        start=start,
        end=end,
        start_side=start_dock.side,
        end_side=end_dock.side,
        controls=controls,
        path_data=path_data,
        arrow_angle=angle,
        label=_label(link.label, label_anchor),
        line_style=style.line_style,
        stroke_width=style.stroke_width,
        color=style.color,
        dash=style.resolved_dash(),
        arrowhead=style.arrowhead,
        start_marker=style.start_marker,
        end_marker=style.end_marker,
    )


def build_connectors(document: "Document") -> list[ConnectorPath]:
    """Paths for every link in document order, skipping links with missing endpoints."""
    nodes = {n.id: n for n in document.nodes}
    placements = link_groups(document.links)
    paths = []
    for link in document.links:
        source = nodes.get(link.source)
        target = nodes.get(link.target)
        if source is None or target is None:
            continue
        paths.append(build_connector(link, source, target, placements[link.id]))
    return paths
