"""Tests for the edit session state machine."""

import json

import pytest

from diagram_engine import (
    Document,
    DocumentValidationError,
    EditSession,
    ExportRenderError,
    InteractionMode,
    InvalidReferenceError,
    KeyboardShortcuts,
    KeyEvent,
    Point,
    PointerEvent,
    ViewOnlyError,
    import_json,
)
from diagram_engine.config import MAX_NOTIFICATIONS
from diagram_engine.events import EventKind


def pointer(kind, x, y, node_id=None):
    return PointerEvent(kind, x, y, node_id)


def gesture_listeners(source):
    return (
        source.listener_count(EventKind.POINTER_MOVE),
        source.listener_count(EventKind.POINTER_UP),
    )


class TestLinkDrawing:
    def test_link_created_on_drop_over_node(self, wired_session, source):
        wired_session.begin_link("b", Point(300, 0))
        assert wired_session.mode == InteractionMode.LINK_DRAWING
        assert gesture_listeners(source) == (1, 1)

        source.dispatch(pointer(EventKind.POINTER_MOVE, 100, 50, "a"))
        preview = wired_session.link_preview
        assert preview.position == Point(100, 50)
        assert preview.hovered_node_id == "a"

        source.dispatch(pointer(EventKind.POINTER_UP, 0, 0, "a"))
        links = wired_session.document.links
        assert [(l.source, l.target) for l in links] == [("a", "b"), ("b", "a")]
        assert wired_session.mode == InteractionMode.SELECT
        assert wired_session.link_preview is None
        assert gesture_listeners(source) == (0, 0)
        assert len(wired_session.history) == 2

    def test_drop_on_empty_canvas(self, wired_session, source):
        wired_session.begin_link("a", Point(0, 0))
        source.dispatch(pointer(EventKind.POINTER_UP, 500, 500))
        assert len(wired_session.document.links) == 1
        assert wired_session.mode == InteractionMode.SELECT
        assert gesture_listeners(source) == (0, 0)
        assert len(wired_session.history) == 1

    def test_drop_on_source_node(self, wired_session, source):
        wired_session.begin_link("a", Point(0, 0))
        source.dispatch(pointer(EventKind.POINTER_UP, 0, 0, "a"))
        assert len(wired_session.document.links) == 1

    def test_unknown_hover_target_is_ignored(self, session):
        session.begin_link("a", Point(0, 0))
        session.update_link_preview(Point(10, 10), "ghost")
        assert session.link_preview.hovered_node_id is None

    def test_preview_follows_viewport(self, wired_session, source):
        wired_session.viewport = wired_session.viewport.pan(100, 0)
        wired_session.begin_link("a", Point(0, 0))
        source.dispatch(pointer(EventKind.POINTER_MOVE, 150, 20))
        assert wired_session.link_preview.position == Point(50, 20)

    def test_escape_cancels(self, wired_session, source):
        wired_session.begin_link("a", Point(0, 0))
        KeyboardShortcuts(wired_session).handle(KeyEvent("Escape"))
        assert wired_session.link_gesture is None
        assert gesture_listeners(source) == (0, 0)
        assert len(wired_session.history) == 1

    def test_close_releases_listeners(self, wired_session, source):
        wired_session.begin_link("a", Point(0, 0))
        wired_session.close()
        assert gesture_listeners(source) == (0, 0)

    def test_unknown_source(self, session):
        with pytest.raises(InvalidReferenceError):
            session.begin_link("ghost", Point(0, 0))
        assert session.mode == InteractionMode.SELECT

    def test_add_link_to_missing_node(self, session):
        with pytest.raises(InvalidReferenceError):
            session.add_link("a", "ghost")
        assert len(session.history) == 1


class TestDrag:
    def test_live_drag_commits_once(self, wired_session, source):
        assert wired_session.begin_drag("a", Point(0, 0))
        source.dispatch(pointer(EventKind.POINTER_MOVE, 5, 5))
        source.dispatch(pointer(EventKind.POINTER_MOVE, 10, 5))
        node = wired_session.document.get_node("a")
        assert (node.x, node.y) == (10, 5)
        assert wired_session.committed_document.get_node("a").x == 0
        assert len(wired_session.history) == 1

        source.dispatch(pointer(EventKind.POINTER_UP, 10, 5))
        assert len(wired_session.history) == 2
        assert gesture_listeners(source) == (0, 0)
        wired_session.undo()
        assert wired_session.document.get_node("a").x == 0

    def test_drag_moves_whole_selection(self, session):
        session.select(["a", "b"])
        session.begin_drag("b", Point(0, 0))
        session.drag_to(Point(0, 40))
        session.end_drag()
        assert [n.y for n in session.document.nodes] == [40, 40]
        assert session.document.get_container("zone").y == -100

    def test_drag_selects_unselected_node(self, session):
        session.select("b")
        session.begin_drag("a", Point(0, 0))
        assert session.selection == {"a"}

    def test_drag_back_to_start_does_not_commit(self, session):
        session.begin_drag("a", Point(0, 0))
        session.drag_to(Point(30, 30))
        session.drag_to(Point(0, 0))
        assert session.end_drag() is None
        assert len(session.history) == 1

    def test_cancel_restores_document(self, session):
        session.begin_drag("a", Point(0, 0))
        session.drag_to(Point(30, 30))
        session.cancel()
        assert session.document.get_node("a").x == 0
        assert session.end_drag() is None
        assert len(session.history) == 1

    def test_locked_node_stays(self, session):
        session.update_properties("a", locked=True)
        assert session.begin_drag("a", Point(0, 0)) is False
        assert not session.gesture_active

    def test_move_nodes(self, session):
        session.move_nodes(["a"], 10, 20)
        node = session.document.get_node("a")
        assert (node.x, node.y) == (10, 20)


class TestResize:
    def test_double_interaction_toggles_resize(self, session):
        session.double_interaction("a")
        assert session.mode == InteractionMode.RESIZE
        assert session.resizing_node_id == "a"
        assert session.selection == {"a"}
        session.double_interaction("a")
        assert session.mode == InteractionMode.SELECT
        assert session.resizing_node_id is None

    def test_corner_handle(self, session):
        session.double_interaction("a")
        session.begin_resize("br", Point(50, 30))
        session.resize_to(Point(70, 50))
        session.end_resize()
        node = session.document.get_node("a")
        assert (node.width, node.height) == (120, 80)
        assert (node.x, node.y) == (10, 10)
        assert len(session.history) == 2

    def test_minimum_size(self, session):
        session.double_interaction("a")
        session.begin_resize("r", Point(50, 0))
        session.resize_to(Point(-50, 0))
        node = session.document.get_node("a")
        assert node.width == 40
        assert node.x == -30

    def test_node_must_be_in_resize_mode(self, session):
        with pytest.raises(ValueError):
            session.begin_resize("br", Point(50, 30), "a")

    def test_unknown_handle(self, session):
        session.double_interaction("a")
        with pytest.raises(ValueError):
            session.begin_resize("middle", Point(0, 0))

    def test_container_left_handle(self, session):
        session.begin_resize("l", Point(-100, 0), "zone")
        session.resize_to(Point(-50, 0))
        session.end_resize()
        zone = session.document.get_container("zone")
        assert zone.width == 450
        assert zone.x == -50

    def test_resize_cancels_running_drag(self, wired_session, source):
        wired_session.begin_drag("a", Point(0, 0))
        source.dispatch(pointer(EventKind.POINTER_MOVE, 30, 0))
        wired_session.begin_resize("r", Point(400, 0), "zone")
        assert wired_session.document.get_node("a").x == 0
        assert gesture_listeners(source) == (1, 1)
        assert wired_session.end_drag() is None
        assert gesture_listeners(source) == (1, 1)

        source.dispatch(pointer(EventKind.POINTER_MOVE, 450, 0))
        source.dispatch(pointer(EventKind.POINTER_UP, 450, 0))
        assert gesture_listeners(source) == (0, 0)
        assert not wired_session.gesture_active
        assert wired_session.document.get_node("a").x == 0
        assert wired_session.document.get_container("zone").width == 550
        assert len(wired_session.history) == 2

    def test_links_are_not_resizable(self, session):
        with pytest.raises(InvalidReferenceError):
            session.begin_resize("br", Point(0, 0), "ab")

    def test_canvas_click_leaves_resize(self, session):
        session.double_interaction("a")
        session.canvas_click()
        assert session.mode == InteractionMode.SELECT
        assert session.selection == frozenset()


class TestViewOnly:
    def test_entering_clears_selection(self, session):
        session.select("a")
        session.toggle_view_only()
        assert session.is_view_only
        assert session.allows_pan
        assert session.selection == frozenset()

    def test_mutations_rejected(self, session):
        session.add_node()
        session.toggle_view_only()
        with pytest.raises(ViewOnlyError):
            session.add_node()
        with pytest.raises(ViewOnlyError):
            session.undo()
        with pytest.raises(ViewOnlyError):
            session.set_mode("select")
        with pytest.raises(ViewOnlyError):
            session.begin_link("a", Point(0, 0))
        assert len(session.document.nodes) == 3

    def test_selection_is_ignored(self, session):
        session.toggle_view_only()
        session.select("a")
        session.toggle_selection("b")
        session.double_interaction("a")
        assert session.selection == frozenset()
        assert session.is_view_only

    def test_cancel_returns_to_select(self, session):
        session.set_mode("view-only")
        session.cancel()
        assert session.mode == InteractionMode.SELECT

    def test_viewport_still_moves(self, session):
        session.toggle_view_only()
        assert session.pan_by(10, 20).tx == 10


class TestEdits:
    def test_delete_node_cascades(self, session):
        session.select("a")
        assert session.delete_selected()
        document = session.document
        assert document.node_ids() == {"b"}
        assert document.links == ()
        assert document.get_container("zone").child_node_ids == ("b",)

        session.undo()
        assert session.document.node_ids() == {"a", "b"}
        assert len(session.document.links) == 1
        assert session.selection == frozenset()
        assert session.notifications[-1].message == "Action undone"

    def test_delete_container_keeps_nodes(self, session):
        session.select("zone")
        session.delete_selected()
        assert session.document.containers == ()
        assert session.document.node_ids() == {"a", "b"}

    def test_delete_nothing(self, session):
        assert session.delete_selected() is False
        assert len(session.history) == 1

    def test_duplicate(self, session):
        session.select(["a", "b"])
        clones = session.duplicate_selected()
        assert [(c.x, c.y) for c in clones] == [(30, 30), (330, 30)]
        assert {c.id for c in clones}.isdisjoint({"a", "b"})
        assert session.selection == {c.id for c in clones}
        assert len(session.document.links) == 1
        assert len(session.history) == 2

    def test_add_node_at_view_center(self, session):
        node = session.add_node(label="API")
        assert (node.x, node.y) == (640, 400)
        assert node.label == "API"
        assert session.selection == {node.id}

    def test_add_node_by_canvas_click(self, session):
        session.toggle_add_node()
        session.canvas_click(Point(5, 5))
        node = session.document.nodes[-1]
        assert (node.x, node.y) == (5, 5)
        assert session.mode == InteractionMode.SELECT

    def test_add_container(self, session):
        container = session.add_container("subnet")
        assert (container.x, container.y) == (440, 250)
        assert container.label == "Subnet"
        assert session.selection == {container.id}

    def test_update_properties(self, session):
        session.update_properties("ab", label="calls", style={"line_style": "elbow"})
        link = session.document.get_link("ab")
        assert link.label == "calls"
        assert link.style.line_style == "elbow"

    def test_update_unknown_item(self, session):
        with pytest.raises(InvalidReferenceError):
            session.update_properties("ghost", label="x")
        assert len(session.history) == 1

    @pytest.mark.parametrize("edit", [
        lambda s: s.add_node(id="a"),
        lambda s: s.add_link("a", "b", id="a"),
        lambda s: s.add_container(id="ab"),
        lambda s: s.update_properties("b", id="a"),
        lambda s: s.update_properties("ab", id="zone"),
    ])
    def test_taken_id_rejected(self, session, edit):
        with pytest.raises(InvalidReferenceError):
            edit(session)
        assert len(session.history) == 1
        assert import_json(session.export_json()) == session.document

    def test_set_title(self, session):
        session.set_title("Renamed")
        assert session.document.title == "Renamed"

    def test_undo_redo_roundtrip(self, session):
        session.add_node()
        session.undo()
        assert len(session.document.nodes) == 2
        assert session.can_redo
        session.redo()
        assert len(session.document.nodes) == 3
        assert session.redo() is None

    def test_on_change_callbacks(self, session):
        seen = []
        session.on_change(seen.append)
        session.set_title("One")
        session.undo()
        assert [d.title for d in seen] == ["One", "Linked"]

    def test_undo_toasts_replace_each_other(self, session):
        session.notify("saved")
        for _ in range(3):
            session.add_node()
        for _ in range(3):
            session.undo()
        session.redo()
        assert [n.message for n in session.notifications] == ["saved", "Action redone"]

    def test_notification_queue_is_capped(self, session):
        for i in range(MAX_NOTIFICATIONS + 5):
            session.notify(f"message {i}")
        assert len(session.notifications) == MAX_NOTIFICATIONS
        assert session.notifications[0].message == "message 5"

    def test_notifications_dismissible(self, session):
        first = session.notify("hello")
        session.notify("world", level="error")
        assert session.dismiss_notification(first.id)
        assert not session.dismiss_notification(first.id)
        assert [n.message for n in session.notifications] == ["world"]
        session.clear_notifications()
        assert session.notifications == ()


class TestModes:
    def test_set_mode_clears_selection(self, session):
        session.select("a")
        session.set_mode("pan")
        assert session.mode == InteractionMode.PAN
        assert session.allows_pan
        assert session.selection == frozenset()

    def test_gesture_modes_not_settable(self, session):
        with pytest.raises(ValueError):
            session.set_mode("resize")
        with pytest.raises(ValueError):
            session.set_mode("link-drawing")

    def test_toggle_add_node(self, session):
        session.toggle_add_node()
        assert session.mode == InteractionMode.ADD_NODE
        session.toggle_add_node()
        assert session.mode == InteractionMode.SELECT


class TestLayoutActions:
    def test_grid(self, session):
        session.apply_layout("grid")
        assert [(n.x, n.y) for n in session.document.nodes] == [(100, 100), (300, 100)]
        assert len(session.history) == 2

    def test_unknown_strategy(self, session):
        with pytest.raises(ValueError):
            session.apply_layout("spiral")

    def test_layered(self, neural_document):
        session = EditSession(neural_document)
        session.apply_layout("layered")
        assert session.document.get_node("i1").x == 1875

    def test_align(self, session):
        session.move_nodes(["b"], 0, 40)
        session.select(["a", "b"])
        session.align_selected("top")
        assert [n.y for n in session.document.nodes] == [0, 0]

    def test_align_needs_two(self, session):
        session.select("a")
        assert session.align_selected("left") is None


class TestImportExport:
    def test_invalid_json(self, session):
        with pytest.raises(DocumentValidationError):
            session.import_json("{not json")
        assert session.document.title == "Linked"
        assert len(session.history) == 1
        assert session.notifications[-1].level == "error"

    def test_missing_title(self, session):
        with pytest.raises(DocumentValidationError):
            session.import_document({"nodes": [], "links": []})
        assert session.notifications[-1].message.startswith("Import failed")

    def test_missing_nodes_keeps_selection(self, session):
        session.select("a")
        with pytest.raises(DocumentValidationError):
            session.import_document({"title": "No nodes", "links": []})
        assert session.selection == {"a"}
        assert session.document.title == "Linked"

    def test_import_replaces_document(self, session):
        payload = {
            "title": "Imported",
            "nodes": [
                {"id": "x", "label": "X", "x": 0, "y": 0, "width": 100, "height": 50},
                {"id": "y", "x": 200, "y": 0},
            ],
            "links": [
                {"id": "xy", "from": "x", "to": "y"},
                {"id": "bad", "source": "x", "target": "zz"},
            ],
        }
        session.select("a")
        document = session.import_json(json.dumps(payload))
        assert document.title == "Imported"
        assert [l.id for l in document.links] == ["xy"]
        assert session.selection == frozenset()

        center = session.viewport.apply(Point(112.5, 0))
        assert center.x == pytest.approx(640)
        assert center.y == pytest.approx(400)

        session.undo()
        assert session.document.title == "Linked"

    def test_export_json_roundtrip(self, session):
        text = session.export_json()
        assert json.loads(text)["containers"][0]["childNodeIds"] == ["a", "b"]

    def test_export_empty_document(self):
        session = EditSession()
        with pytest.raises(ExportRenderError):
            session.export_svg()
        assert session.notifications[-1].level == "error"

    def test_export_svg(self, session):
        assert session.export_svg().startswith("<svg")

    def test_fit_empty_document(self):
        session = EditSession(Document())
        assert session.fit_to_content().scale == 1.0
