"""Tests for the pan/zoom transform."""

import pytest

from diagram_engine import Point, Rect, Viewport


class TestViewport:
    def test_scale_is_clamped(self):
        assert Viewport(scale=10).scale == 4.0
        assert Viewport(scale=0.01).scale == 0.1

    def test_apply_and_invert(self):
        viewport = Viewport(scale=2, tx=10, ty=-20)
        assert viewport.apply(Point(5, 5)) == Point(20, -10)
        assert viewport.invert(Point(20, -10)) == Point(5, 5)

    def test_pan(self):
        assert Viewport().pan(15, -5) == Viewport(scale=1, tx=15, ty=-5)

    def test_zoom_keeps_anchor_fixed(self):
        viewport = Viewport(scale=1, tx=30, ty=40)
        anchor = Point(200, 150)
        before = viewport.invert(anchor)
        zoomed = viewport.zoom_at(1.5, anchor)
        assert zoomed.scale == pytest.approx(1.5)
        after = zoomed.invert(anchor)
        assert after.x == pytest.approx(before.x)
        assert after.y == pytest.approx(before.y)

    def test_zoom_is_clamped(self):
        assert Viewport(scale=3).zoom_at(10, Point(0, 0)).scale == 4.0

    def test_view_center(self):
        assert Viewport(scale=2, tx=100, ty=0).view_center(800, 600) == Point(150, 150)

    def test_to_svg_transform(self):
        assert Viewport(scale=2, tx=5, ty=6).to_svg_transform() == "translate(5,6) scale(2)"


class TestFitToContent:
    def test_fits_and_centers(self):
        fitted = Viewport().fit_to_content(Rect(0, 0, 200, 100), 800, 600)
        assert fitted.scale == pytest.approx(3.8)
        assert fitted.tx == pytest.approx(20)
        assert fitted.ty == pytest.approx(110)

    def test_large_content_zooms_out(self):
        fitted = Viewport().fit_to_content(Rect(0, 0, 4000, 1000), 800, 600)
        assert fitted.scale == pytest.approx(0.19)
        center = fitted.apply(Point(2000, 500))
        assert center.x == pytest.approx(400)
        assert center.y == pytest.approx(300)

    def test_repeated_calls_agree(self):
        bounds = Rect(-50, 20, 300, 120)
        once = Viewport().fit_to_content(bounds, 800, 600)
        assert once.fit_to_content(bounds, 800, 600) == once

    def test_empty_bounds_leave_transform(self):
        viewport = Viewport(scale=2, tx=3, ty=4)
        assert viewport.fit_to_content(None, 800, 600) is viewport
        assert viewport.fit_to_content(Rect(0, 0, 0, 10), 800, 600) is viewport

    def test_zero_viewport(self):
        viewport = Viewport()
        assert viewport.fit_to_content(Rect(0, 0, 10, 10), 0, 600) is viewport
