"""
Viewport transform - pan and zoom between document and screen space.

screen = document * scale + translate. Scale is always clamped to
[MIN_ZOOM, MAX_ZOOM].
"""

from dataclasses import dataclass, replace
from typing import Optional

from .config import FIT_FILL_RATIO, MAX_ZOOM, MIN_ZOOM
from .geometry import Point, Rect


def clamp_scale(scale: float, min_scale: float = MIN_ZOOM, max_scale: float = MAX_ZOOM) -> float:
    return max(min_scale, min(max_scale, scale))


@dataclass(frozen=True)
class Viewport:
    """Immutable pan/zoom transform."""
    scale: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "scale", clamp_scale(self.scale))

    def apply(self, point: Point) -> Point:
        """Document space -> screen space."""
        return Point(point.x * self.scale + self.tx, point.y * self.scale + self.ty)

    def invert(self, point: Point) -> Point:
        """Screen space -> document space."""
        return Point((point.x - self.tx) / self.scale, (point.y - self.ty) / self.scale)

    def pan(self, dx: float, dy: float) -> "Viewport":
        return replace(self, tx=self.tx + dx, ty=self.ty + dy)

    def zoom_at(self, factor: float, screen_point: Point) -> "Viewport":
        """Zoom by `factor`, keeping `screen_point` fixed on screen."""
        anchor = self.invert(screen_point)
        scale = clamp_scale(self.scale * factor)
        return Viewport(
            scale=scale,
            tx=screen_point.x - anchor.x * scale,
            ty=screen_point.y - anchor.y * scale,
        )

    def view_center(self, viewport_width: float, viewport_height: float) -> Point:
        """Document-space point shown at the middle of the viewport."""
        return self.invert(Point(viewport_width / 2, viewport_height / 2))

    def fit_to_content(
        self,
        bounds: Optional[Rect],
        viewport_width: float,
        viewport_height: float,
        fill: float = FIT_FILL_RATIO,
        max_scale: float = MAX_ZOOM,
    ) -> "Viewport":
        """
        Center `bounds` in the viewport, filling at most `fill` of it.

        The scale never exceeds `max_scale`, so small diagrams are not blown
        up. Empty bounds or a zero-size viewport leave the transform as is.
        The result depends only on the arguments, so repeated calls agree.
        """
        if bounds is None or bounds.width <= 0 or bounds.height <= 0:
            return self
        if viewport_width <= 0 or viewport_height <= 0:
            return self

        ratio = max(bounds.width / viewport_width, bounds.height / viewport_height)
        scale = clamp_scale(min(max_scale, fill / ratio))
        center = bounds.center
        return Viewport(
            scale=scale,
            tx=viewport_width / 2 - center.x * scale,
            ty=viewport_height / 2 - center.y * scale,
        )

    def to_svg_transform(self) -> str:
        return f"translate({self.tx},{self.ty}) scale({self.scale})"
