"""
Docking geometry - where connectors meet shapes.

Provides:
- Point and Rect value types
- Rectangle docking: the boundary crossing of the ray from a shape's center
  toward a target point, and which side was crossed
- Circle docking for round shapes (neurons)
- Content bounds of a whole document

Degenerate inputs (coincident points) never raise; they fall back to the
shape's center.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .config import CUSTOM_IMAGE_DOCK_FACTOR, FALLBACK_NODE_HEIGHT, FALLBACK_NODE_WIDTH

if TYPE_CHECKING:
    from .models import Document, Node


class Side(str, Enum):
    """Side of a rectangle crossed by a connector."""
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> "Point":
        return Point(self.x * factor, self.y * factor)

    def length(self) -> float:
        return math.hypot(self.x, self.y)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its top-left corner and size."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def padded(self, padding: float) -> "Rect":
        return Rect(self.x - padding, self.y - padding,
                    self.width + 2 * padding, self.height + 2 * padding)

    def union(self, other: "Rect") -> "Rect":
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        return Rect(left, top, max(self.right, other.right) - left,
                    max(self.bottom, other.bottom) - top)


@dataclass(frozen=True)
class DockingPoint:
    """A boundary point plus the side of the shape it lies on."""
    x: float
    y: float
    side: Side

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


def dock_rectangle(
    center: Point,
    half_width: float,
    half_height: float,
    target: Point,
    padding: float = 0.0,
) -> DockingPoint:
    """
    Find where the ray from `center` toward `target` leaves a rectangle.

    Args:
        center: Center of the rectangle
        half_width: Half the rectangle's width
        half_height: Half the rectangle's height
        target: Point the ray heads toward
        padding: Added to both half-extents before intersecting

    Returns:
        The crossing point and side. When target == center the center
        itself is returned with side TOP.
    """
    w = half_width + padding
    h = half_height + padding
    dx = target.x - center.x
    dy = target.y - center.y

    if dx == 0 and dy == 0:
        return DockingPoint(center.x, center.y, Side.TOP)

    t_x = math.inf if dx == 0 else w / abs(dx)
    t_y = math.inf if dy == 0 else h / abs(dy)
    t = min(t_x, t_y)

    if t_x < t_y:
        side = Side.RIGHT if dx > 0 else Side.LEFT
    else:
        side = Side.BOTTOM if dy > 0 else Side.TOP

    return DockingPoint(center.x + t * dx, center.y + t * dy, side)


def dock_node(node: "Node", target: Point, padding: float = 0.0) -> DockingPoint:
    """Dock against a node's rectangle, using fallback sizes for missing extents."""
    width = node.width or FALLBACK_NODE_WIDTH
    height = node.height or FALLBACK_NODE_HEIGHT
    hw, hh = width / 2, height / 2
    # Custom images rarely fill their box; dock closer to the picture
    if node.custom_icon:
        hw *= CUSTOM_IMAGE_DOCK_FACTOR
        hh *= CUSTOM_IMAGE_DOCK_FACTOR
    return dock_rectangle(Point(node.x, node.y), hw, hh, target, padding)


def dock_circle(center: Point, radius: float, target: Point) -> Point:
    """Point on a circle's boundary in the direction of `target`."""
    delta = target - center
    dist = delta.length()
    if dist == 0:
        return center
    return center + delta.scaled(radius / dist)


def content_bounds(document: "Document") -> Optional[Rect]:
    """Bounding box of every node and container, or None for an empty document."""
    rects = []
    for node in document.nodes:
        left, top, right, bottom = node.bounds()
        rects.append(Rect(left, top, right - left, bottom - top))
    for container in document.containers:
        rects.append(Rect(container.x, container.y, container.width, container.height))
    if not rects:
        return None
    bounds = rects[0]
    for rect in rects[1:]:
        bounds = bounds.union(rect)
    return bounds
