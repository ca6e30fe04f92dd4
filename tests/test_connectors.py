"""Tests for connector path generation."""

import pytest

from diagram_engine import Document, Link, LinkStyle, Node, Point, Side, build_connector, build_connectors, link_groups
from diagram_engine.connectors import GroupPlacement, fmt


class TestSingleLink:
    def test_endpoints_without_padding(self, node_a, node_b):
        link = Link(source="a", target="b")
        path = build_connector(link, node_a, node_b, source_padding=0, target_padding=0)
        assert path.start == Point(50, 0)
        assert path.end == Point(250, 0)
        assert path.start_side == Side.RIGHT
        assert path.end_side == Side.LEFT

    def test_default_padding_leaves_room_for_arrowhead(self, node_a, node_b):
        path = build_connector(Link(source="a", target="b"), node_a, node_b)
        assert path.start == Point(52, 0)
        assert path.end == Point(244, 0)

    def test_curved_path_data(self, node_a, node_b):
        path = build_connector(Link(source="a", target="b"), node_a, node_b,
                               source_padding=0, target_padding=0)
        assert path.path_data == "M 50 0 C 100 0 200 0 250 0"
        assert path.controls == (Point(100, 0), Point(200, 0))
        assert path.arrow_angle == pytest.approx(0)

    def test_straight_path_data(self, node_a, node_b):
        link = Link(source="a", target="b", style=LinkStyle(line_style="straight"))
        path = build_connector(link, node_a, node_b, source_padding=0, target_padding=0)
        assert path.path_data == "M 50 0 L 250 0"
        assert path.controls == ()

    def test_arrow_points_down_for_vertical_link(self, node_a):
        below = Node(id="c", x=0, y=300, width=100, height=60)
        path = build_connector(Link(source="a", target="c"), node_a, below)
        assert path.arrow_angle == pytest.approx(90)
        assert path.end_side == Side.TOP

    def test_label_placement(self, node_a, node_b):
        link = Link(source="a", target="b", label="calls")
        path = build_connector(link, node_a, node_b, source_padding=0, target_padding=0)
        assert path.label.x == pytest.approx(150)
        assert path.label.y == pytest.approx(-10)
        assert path.label.width == 5 * 7 + 8
        assert path.label.height == 18

    def test_no_label_without_text(self, node_a, node_b):
        assert build_connector(Link(source="a", target="b"), node_a, node_b).label is None

    def test_style_offset_shifts_perpendicular(self, node_a, node_b):
        link = Link(source="a", target="b", style=LinkStyle(offset_distance=10))
        path = build_connector(link, node_a, node_b)
        assert path.start.y == pytest.approx(10)
        assert path.end.y == pytest.approx(10)

    def test_coincident_nodes_do_not_raise(self, node_a):
        twin = node_a.model_copy(update={"id": "twin"})
        path = build_connector(Link(source="a", target="twin"), node_a, twin)
        assert path.start == Point(0, 0)
        assert path.path_data.startswith("M 0 0")

    def test_style_is_carried_through(self, node_a, node_b):
        style = LinkStyle(pattern="dashed", color="#123456", stroke_width=4, start_marker=True)
        path = build_connector(Link(source="a", target="b", style=style), node_a, node_b)
        assert path.dash == "5,5"
        assert path.color == "#123456"
        assert path.stroke_width == 4
        assert path.start_marker and path.end_marker


class TestElbow:
    def test_horizontal_dominant_route(self, node_a):
        far = Node(id="c", x=400, y=100, width=100, height=60)
        link = Link(source="a", target="c", style=LinkStyle(line_style="orthogonal"))
        path = build_connector(link, node_a, far)
        first, second = path.controls
        assert first.x == pytest.approx(second.x)
        assert first.y == pytest.approx(path.start.y)
        assert second.y == pytest.approx(path.end.y)
        assert " Q " not in path.path_data

    def test_elbow_rounds_corners(self, node_a):
        far = Node(id="c", x=400, y=100, width=100, height=60)
        link = Link(source="a", target="c", style=LinkStyle(line_style="elbow"))
        path = build_connector(link, node_a, far)
        assert path.path_data.count(" Q ") == 2
        assert path.arrow_angle == pytest.approx(0)

    def test_vertical_dominant_route(self, node_a):
        below = Node(id="c", x=50, y=400, width=100, height=60)
        link = Link(source="a", target="c", style=LinkStyle(line_style="orthogonal"))
        path = build_connector(link, node_a, below)
        first, second = path.controls
        assert first.y == pytest.approx(second.y)
        assert first.x == pytest.approx(path.start.x)
        assert path.arrow_angle == pytest.approx(90)


class TestGroups:
    def test_lone_link_has_no_offset(self):
        placements = link_groups([Link(id="ab", source="a", target="b")])
        assert placements["ab"].offset() == 0

    def test_parallel_offsets_symmetric_and_distinct(self):
        links = [Link(id=f"l{i}", source="a", target="b") for i in range(3)]
        offsets = [link_groups(links)[f"l{i}"].offset() for i in range(3)]
        assert sorted(offsets) == [-5, 0, 5]
        assert sum(offsets) == pytest.approx(0)

    @pytest.mark.parametrize("count", [2, 4, 5])
    def test_parallel_offsets_for_any_count(self, count):
        links = [Link(id=f"l{i}", source="a", target="b") for i in range(count)]
        offsets = [p.offset() for p in link_groups(links).values()]
        assert len(set(offsets)) == count
        assert sum(offsets) == pytest.approx(0)

    def test_bidirectional_pair(self):
        placements = link_groups([
            Link(id="ab", source="a", target="b"),
            Link(id="ba", source="b", target="a"),
        ])
        assert placements["ab"].bidirectional and placements["ba"].bidirectional
        assert placements["ba"].reverse and not placements["ab"].reverse

    def test_offset_formula(self):
        assert GroupPlacement(0, 2, True, False).offset() == pytest.approx(12.5)
        assert GroupPlacement(1, 2, True, True).offset() == pytest.approx(-12.5)


class TestBuildConnectors:
    def test_bidirectional_links_separate(self, node_a, node_b):
        document = Document(
            nodes=(node_a, node_b),
            links=(Link(id="ab", source="a", target="b"), Link(id="ba", source="b", target="a")),
        )
        ab, ba = build_connectors(document)
        endpoints = {ab.start, ab.end, ba.start, ba.end}
        assert len(endpoints) == 4
        assert all(p.y != 0 for p in endpoints)
        assert ab.start.y == pytest.approx(12.5)
        assert ba.start.y == pytest.approx(-12.5)
        # mirrored about the line through the centers
        assert ab.start.y == pytest.approx(-ba.end.y)

    def test_parallel_links_fan_out(self, node_a, node_b):
        document = Document(
            nodes=(node_a, node_b),
            links=tuple(Link(id=f"l{i}", source="a", target="b") for i in range(3)),
        )
        ys = [path.start.y for path in build_connectors(document)]
        assert ys == pytest.approx([-5, 0, 5])

    def test_skips_dangling_links(self, node_a, node_b):
        document = Document(
            nodes=(node_a, node_b),
            links=(Link(id="ab", source="a", target="b"), Link(id="ax", source="a", target="x")),
        )
        assert [p.link_id for p in build_connectors(document)] == ["ab"]


class TestFmt:
    @pytest.mark.parametrize("value,expected", [
        (1.0, "1"), (2.5, "2.5"), (-0.001, "0"), (0.0, "0"), (100.0, "100"), (1.234, "1.23"),
    ])
    def test_formatting(self, value, expected):
        assert fmt(value) == expected
