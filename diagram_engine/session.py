"""
Edit Session - interaction modes, gestures, selection and history.

This module implements:
- The interaction mode state machine (select, add-node, add-container, pan,
  resize, link-drawing, view-only)
- Multi-event gestures (link drawing, node drag, resize) as explicit state,
  with pointer listeners attached only while a gesture runs
- Linear undo/redo over immutable document snapshots
- Change callbacks and dismissible notifications for the host UI

Live drags and resizes edit a transient working document; exactly one
history entry is pushed when the gesture ends. Cancelling never commits.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import Any, Callable, Optional

from . import exchange, render
from .config import (
    DEFAULT_CONTAINER_HEIGHT,
    DEFAULT_CONTAINER_WIDTH,
    DUPLICATE_OFFSET,
    MAX_HISTORY,
    MAX_NOTIFICATIONS,
)
from .errors import (
    DocumentValidationError,
    ExportRenderError,
    GenerationError,
    InvalidReferenceError,
    ViewOnlyError,
)
from .events import EventSource, GestureListeners, PointerEvent
from .geometry import Point, content_bounds
from .history import History
from .layout import (
    align_nodes,
    apply_layered_layout,
    distribute_nodes,
    grid_layout,
    tree_layout,
)
from .models import (
    CONTAINER_LABELS,
    Container,
    ContainerType,
    Document,
    Link,
    Node,
    generate_node_id,
)
from .viewport import Viewport

logger = logging.getLogger(__name__)

MIN_NODE_SIZE = 40.0
MIN_CONTAINER_SIZE = 100.0
RESIZE_HANDLES = ("tl", "tr", "bl", "br", "t", "b", "l", "r")
LAYOUT_STRATEGIES = ("layered", "grid", "tree")


class InteractionMode(str, Enum):
    SELECT = "select"
    ADD_NODE = "add-node"
    ADD_CONTAINER = "add-container"
    PAN = "pan"
    RESIZE = "resize"
    LINK_DRAWING = "link-drawing"
    VIEW_ONLY = "view-only"


# Modes that can be entered directly; the others need a gesture payload
_EXPLICIT_MODES = {
    InteractionMode.SELECT,
    InteractionMode.ADD_NODE,
    InteractionMode.ADD_CONTAINER,
    InteractionMode.PAN,
}


@dataclass(frozen=True)
class LinkPreview:
    """Where the rubber-band line currently ends, and what it hovers."""
    position: Point
    hovered_node_id: Optional[str] = None


@dataclass
class LinkGesture:
    source_id: str
    start: Point
    preview: LinkPreview


@dataclass
class DragGesture:
    node_ids: tuple[str, ...]
    origin: Point
    last: Point
    base: Document


@dataclass
class ResizeGesture:
    item_id: str
    handle: str
    origin: Point
    base: Document


@dataclass(frozen=True)
class Notification:
    id: int
    message: str
    level: str = "info"
    replaceable: bool = False


@dataclass
class _Listeners:
    gesture: Optional[GestureListeners] = None
    change: list[Callable[[Document], None]] = field(default_factory=list)


class EditSession:
    """
    Single-writer edit state for one document.

    All mutating actions funnel through `_commit`, which pushes the new
    document onto the history and notifies change callbacks. Gesture
    payloads live on the session, never in the document.
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        *,
        event_source: Optional[EventSource] = None,
        max_history: int = MAX_HISTORY,
        viewport_size: tuple[float, float] = (1280.0, 800.0),
    ):
        self._history = History(document or Document(), max_entries=max_history)
        self._working: Optional[Document] = None
        self._mode = InteractionMode.SELECT
        self._selection: set[str] = set()
        self._resizing_id: Optional[str] = None
        self._link: Optional[LinkGesture] = None
        self._drag: Optional[DragGesture] = None
        self._resize: Optional[ResizeGesture] = None
        self._notifications: list[Notification] = []
        self._notification_ids = count(1)
        self._listeners = _Listeners()
        self._event_source = event_source
        self.viewport = Viewport()
        self.viewport_size = viewport_size

    # --- Properties ---

    @property
    def document(self) -> Document:
        """The document as currently displayed (working copy during a gesture)."""
        return self._working if self._working is not None else self._history.current

    @property
    def committed_document(self) -> Document:
        return self._history.current

    @property
    def mode(self) -> InteractionMode:
        return self._mode

    @property
    def is_view_only(self) -> bool:
        return self._mode == InteractionMode.VIEW_ONLY

    @property
    def allows_pan(self) -> bool:
        return self._mode in (InteractionMode.PAN, InteractionMode.VIEW_ONLY)

    @property
    def selection(self) -> frozenset[str]:
        return frozenset(self._selection)

    @property
    def resizing_node_id(self) -> Optional[str]:
        return self._resizing_id

    @property
    def link_gesture(self) -> Optional[LinkGesture]:
        return self._link

    @property
    def link_preview(self) -> Optional[LinkPreview]:
        return self._link.preview if self._link else None

    @property
    def gesture_active(self) -> bool:
        return self._link is not None or self._drag is not None or self._resize is not None

    @property
    def history(self) -> History:
        return self._history

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[Document], None]):
        """Register a callback invoked with the new document after every change."""
        self._listeners.change.append(callback)

    def _notify_change(self):
        document = self.document
        for callback in self._listeners.change:
            callback(document)

    # --- Notifications ---

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    def notify(self, message: str, level: str = "info", replace: bool = False) -> Notification:
        """
        Queue a message for the host UI.

        A `replace` message supersedes the previous replaceable one (undo and
        redo toasts). Only the newest MAX_NOTIFICATIONS are kept.
        """
        if replace:
            self._notifications = [n for n in self._notifications if not n.replaceable]
        notification = Notification(next(self._notification_ids), message, level, replace)
        self._notifications.append(notification)
        del self._notifications[:-MAX_NOTIFICATIONS]
        return notification

    def dismiss_notification(self, notification_id: int) -> bool:
        before = len(self._notifications)
        self._notifications = [n for n in self._notifications if n.id != notification_id]
        return len(self._notifications) != before

    def clear_notifications(self):
        self._notifications.clear()

    # --- History ---

    def _require_editable(self, action: str):
        if self.is_view_only:
            raise ViewOnlyError(f"Cannot {action} in view-only mode")

    def _commit(self, document: Document, action: str) -> Document:
        """Push a new document onto the history and notify listeners."""
        self._working = None
        self._history.push(document)
        logger.debug("Committed %s (history %d/%d)", action,
                     self._history.index + 1, len(self._history))
        self._notify_change()
        return document

    def undo(self) -> Optional[Document]:
        """Step back one history entry. Clears the selection."""
        self._require_editable("undo")
        self._abort_gesture()
        document = self._history.undo()
        if document is None:
            return None
        self._selection.clear()
        self.notify("Action undone", replace=True)
        logger.debug("Undo to history index %d", self._history.index)
        self._notify_change()
        return document

    def redo(self) -> Optional[Document]:
        """Step forward one history entry. Clears the selection."""
        self._require_editable("redo")
        self._abort_gesture()
        document = self._history.redo()
        if document is None:
            return None
        self._selection.clear()
        self.notify("Action redone", replace=True)
        logger.debug("Redo to history index %d", self._history.index)
        self._notify_change()
        return document

    # --- Modes ---

    def set_mode(self, mode: InteractionMode | str):
        """Explicit mode switch (toolbar or keyboard). Clears selection and gestures."""
        mode = InteractionMode(mode)
        if mode == InteractionMode.VIEW_ONLY:
            if not self.is_view_only:
                self.toggle_view_only()
            return
        if mode not in _EXPLICIT_MODES:
            raise ValueError(f"Mode {mode.value} is entered through a gesture")
        self._require_editable("change mode")
        self._abort_gesture()
        self._selection.clear()
        self._resizing_id = None
        self._mode = mode

    def toggle_add_node(self):
        self._require_editable("add nodes")
        self._abort_gesture()
        self._resizing_id = None
        if self._mode == InteractionMode.ADD_NODE:
            self._mode = InteractionMode.SELECT
        else:
            self._mode = InteractionMode.ADD_NODE

    def toggle_view_only(self):
        """Enter or leave view-only. Entering clears the selection."""
        if self.is_view_only:
            self._mode = InteractionMode.SELECT
            logger.debug("Left view-only mode")
            return
        self._abort_gesture()
        self._selection.clear()
        self._resizing_id = None
        self._mode = InteractionMode.VIEW_ONLY
        logger.debug("Entered view-only mode")

    def cancel(self):
        """Abort whatever is in progress and return to select."""
        self._abort_gesture()
        self._resizing_id = None
        self._mode = InteractionMode.SELECT

    def close(self):
        """Tear down: release gesture listeners and drop any uncommitted work."""
        self._abort_gesture()

    # --- Selection ---

    def select(self, item_ids, additive: bool = False):
        if self.is_view_only:
            return
        if isinstance(item_ids, str):
            item_ids = [item_ids]
        document = self.document
        ids = {i for i in item_ids if document.get_item(i) is not None}
        if additive:
            self._selection |= ids
        else:
            self._selection = ids

    def toggle_selection(self, item_id: str):
        """Add or remove one item from the selection (shift-click)."""
        if self.is_view_only:
            return
        if item_id in self._selection:
            self._selection.discard(item_id)
        elif self.document.get_item(item_id) is not None:
            self._selection.add(item_id)

    def clear_selection(self):
        self._selection.clear()

    def canvas_click(self, position: Optional[Point] = None):
        """
        Click on empty canvas.

        In add-node / add-container mode with a position, places a new item
        there. Otherwise clears the selection and leaves resize mode.
        """
        if self._mode == InteractionMode.ADD_NODE and position is not None:
            self.add_node(at=position)
            return
        if self._mode == InteractionMode.ADD_CONTAINER and position is not None:
            self.add_container(at=position)
            return
        self._selection.clear()
        self._resizing_id = None
        if self._mode == InteractionMode.RESIZE:
            self._mode = InteractionMode.SELECT

    def double_interaction(self, node_id: str):
        """Double-click on a node toggles resize mode for it."""
        if self.is_view_only:
            return
        if self.document.get_node(node_id) is None:
            raise InvalidReferenceError(f"Node not found: {node_id}", node_id)
        self._abort_gesture()
        if self._mode == InteractionMode.RESIZE and self._resizing_id == node_id:
            self._mode = InteractionMode.SELECT
            self._resizing_id = None
            return
        self._mode = InteractionMode.RESIZE
        self._resizing_id = node_id
        self._selection = {node_id}

    # --- Gesture plumbing ---

    def _attach_gesture(self, on_move: Callable[[PointerEvent], None],
                        on_up: Callable[[PointerEvent], None]):
        if self._event_source is None:
            return
        self._listeners.gesture = GestureListeners(self._event_source, on_move, on_up).attach()

    def _release_gesture(self):
        if self._listeners.gesture is not None:
            self._listeners.gesture.detach()
            self._listeners.gesture = None

    def _abort_gesture(self):
        """Drop any gesture without committing; restores the committed document."""
        aborted = self.gesture_active
        self._release_gesture()
        self._link = None
        self._drag = None
        self._resize = None
        if self._mode == InteractionMode.LINK_DRAWING:
            self._mode = InteractionMode.SELECT
        if self._working is not None:
            self._working = None
            self._notify_change()
        if aborted:
            logger.debug("Gesture cancelled")

    def _to_document(self, event: PointerEvent) -> Point:
        return self.viewport.invert(event.position)

    # --- Link drawing ---

    def begin_link(self, source_id: str, position: Point):
        """Start drawing a link from `source_id` at document-space `position`."""
        self._require_editable("draw links")
        if self.document.get_node(source_id) is None:
            raise InvalidReferenceError(f"Source node not found: {source_id}", source_id)
        self._abort_gesture()
        self._resizing_id = None
        self._link = LinkGesture(source_id, position, LinkPreview(position))
        self._mode = InteractionMode.LINK_DRAWING
        self._attach_gesture(
            lambda e: self.update_link_preview(self._to_document(e), e.node_id),
            lambda e: self.end_link(e.node_id),
        )

    def update_link_preview(self, position: Point, hovered_node_id: Optional[str] = None):
        if self._link is None:
            return
        if hovered_node_id is not None and self.document.get_node(hovered_node_id) is None:
            hovered_node_id = None
        self._link.preview = LinkPreview(position, hovered_node_id)

    def end_link(self, target_id: Optional[str] = None) -> Optional[Link]:
        """
        Finish the link gesture.

        Creates a link only when `target_id` is an existing node other than
        the source. Always returns to select mode.
        """
        gesture = self._link
        if gesture is None:
            return None
        self._release_gesture()
        self._link = None
        if self._mode == InteractionMode.LINK_DRAWING:
            self._mode = InteractionMode.SELECT
        if target_id is None or target_id == gesture.source_id:
            return None
        if self.document.get_node(target_id) is None:
            return None
        link = Link(source=gesture.source_id, target=target_id)
        self._commit(self.document.with_link_added(link), "add link")
        return link

    # --- Dragging ---

    def begin_drag(self, node_id: str, position: Point) -> bool:
        """
        Start dragging `node_id` (and the rest of the selection if it is selected).

        Locked nodes stay put. Returns False when nothing can move.
        """
        self._require_editable("move nodes")
        if self.document.get_node(node_id) is None:
            raise InvalidReferenceError(f"Node not found: {node_id}", node_id)
        self._abort_gesture()
        if node_id not in self._selection:
            self._selection = {node_id}
        base = self.document
        ids = tuple(
            n.id for n in base.nodes
            if n.id in self._selection and not n.locked
        )
        if not ids:
            return False
        self._drag = DragGesture(ids, position, position, base)
        self._attach_gesture(
            lambda e: self.drag_to(self._to_document(e)),
            lambda e: self.end_drag(),
        )
        return True

    def drag_to(self, position: Point):
        drag = self._drag
        if drag is None:
            return
        drag.last = position
        delta = position - drag.origin
        self._working = drag.base.with_nodes_moved(drag.node_ids, delta.x, delta.y)
        self._notify_change()

    def end_drag(self) -> Optional[Document]:
        """Commit the drag as one history entry (nothing if the nodes never moved)."""
        drag = self._drag
        if drag is None:
            return None
        self._release_gesture()
        self._drag = None
        working = self._working
        self._working = None
        if working is None or working == drag.base:
            return None
        return self._commit(working, "move")

    def move_nodes(self, node_ids, dx: float, dy: float) -> Document:
        """Move nodes by a fixed offset in one step."""
        self._require_editable("move nodes")
        return self._commit(self.document.with_nodes_moved(node_ids, dx, dy), "move")

    # --- Resizing ---

    def begin_resize(self, handle: str, position: Point, item_id: Optional[str] = None):
        """
        Start dragging a resize handle.

        Nodes are resized in resize mode (the node being resized is the
        default target); containers can be resized whenever selected.
        """
        self._require_editable("resize")
        if handle not in RESIZE_HANDLES:
            raise ValueError(f"Unknown resize handle: {handle}")
        item_id = item_id or self._resizing_id
        if item_id is None:
            raise ValueError("No item to resize")
        item = self.document.get_item(item_id)
        if isinstance(item, Node):
            if self._mode != InteractionMode.RESIZE or self._resizing_id != item_id:
                raise ValueError(f"Node {item_id} is not in resize mode")
        elif not isinstance(item, Container):
            raise InvalidReferenceError(f"Item not resizable: {item_id}", item_id)
        self._abort_gesture()
        self._resize = ResizeGesture(item_id, handle, position, self.document)
        self._attach_gesture(
            lambda e: self.resize_to(self._to_document(e)),
            lambda e: self.end_resize(),
        )

    def resize_to(self, position: Point):
        gesture = self._resize
        if gesture is None:
            return
        delta = position - gesture.origin
        item = gesture.base.get_item(gesture.item_id)
        if isinstance(item, Node):
            changes = _resize_node(item, gesture.handle, delta.x, delta.y)
        else:
            changes = _resize_container(item, gesture.handle, delta.x, delta.y)
        self._working = gesture.base.with_items_updated({item.id: changes})
        self._notify_change()

    def end_resize(self) -> Optional[Document]:
        gesture = self._resize
        if gesture is None:
            return None
        self._release_gesture()
        self._resize = None
        working = self._working
        self._working = None
        if working is None or working == gesture.base:
            return None
        return self._commit(working, "resize")

    # --- Document edits ---

    def _view_center(self) -> Point:
        return self.viewport.view_center(*self.viewport_size)

    def add_node(self, at: Optional[Point] = None, **properties: Any) -> Node:
        """Add a node centered on `at` (default: the middle of the view) and select it."""
        self._require_editable("add nodes")
        self._abort_gesture()
        position = at or self._view_center()
        node = Node(**{**properties, "x": position.x, "y": position.y})
        self._commit(self.document.with_nodes_added(node), "add node")
        self._mode = InteractionMode.SELECT
        self._selection = {node.id}
        return node

    def add_container(
        self,
        container_type: str = ContainerType.AVAILABILITY_ZONE.value,
        at: Optional[Point] = None,
        **properties: Any,
    ) -> Container:
        """Add a container centered on `at` (default: the middle of the view) and select it."""
        self._require_editable("add containers")
        container_type = ContainerType(container_type).value
        center = at or self._view_center()
        width = properties.pop("width", DEFAULT_CONTAINER_WIDTH)
        height = properties.pop("height", DEFAULT_CONTAINER_HEIGHT)
        properties.setdefault("label", CONTAINER_LABELS[container_type])
        container = Container(
            type=container_type,
            x=center.x - width / 2,
            y=center.y - height / 2,
            width=width,
            height=height,
            **properties,
        )
        self._abort_gesture()
        self._commit(self.document.with_container_added(container), "add container")
        self._mode = InteractionMode.SELECT
        self._resizing_id = None
        self._selection = {container.id}
        return container

    def add_link(self, source: str, target: str, **properties: Any) -> Link:
        """Add a link between two existing nodes."""
        self._require_editable("add links")
        link = Link(source=source, target=target, **properties)
        self._commit(self.document.with_link_added(link), "add link")
        return link

    def delete_selected(self) -> bool:
        """Delete the selected items; links to deleted nodes go with them."""
        self._require_editable("delete")
        if not self._selection:
            return False
        removed = set(self._selection)
        self._commit(self.document.with_items_removed(removed), "delete")
        self._selection.clear()
        if self._resizing_id in removed:
            self._resizing_id = None
            if self._mode == InteractionMode.RESIZE:
                self._mode = InteractionMode.SELECT
        return True

    def duplicate_selected(self) -> list[Node]:
        """Clone the selected nodes with fresh ids, offset by DUPLICATE_OFFSET, and select the clones."""
        self._require_editable("duplicate")
        originals = [n for n in self.document.nodes if n.id in self._selection]
        if not originals:
            return []
        clones = [
            n.model_copy(update={
                "id": generate_node_id(),
                "x": n.x + DUPLICATE_OFFSET,
                "y": n.y + DUPLICATE_OFFSET,
            })
            for n in originals
        ]
        self._commit(self.document.with_nodes_added(*clones), "duplicate")
        self._selection = {c.id for c in clones}
        return clones

    def update_properties(self, item_id: str, **changes: Any) -> Document:
        """Change properties of one node, link or container."""
        self._require_editable("edit properties")
        return self._commit(self.document.with_items_updated({item_id: changes}), "update")

    def set_title(self, title: str) -> Document:
        self._require_editable("rename")
        return self._commit(self.document.with_title(title), "rename")

    def apply_layout(self, strategy: str = "layered") -> Document:
        """Re-position nodes with one of the auto-layouts."""
        self._require_editable("apply a layout")
        document = self.document
        if strategy == "layered":
            laid_out = apply_layered_layout(document)
        elif strategy == "grid":
            laid_out = document.model_copy(update={"nodes": grid_layout(document.nodes)})
        elif strategy == "tree":
            laid_out = document.model_copy(
                update={"nodes": tree_layout(document.nodes, document.links)}
            )
        else:
            raise ValueError(f"Unknown layout strategy: {strategy}")
        return self._commit(laid_out, f"{strategy} layout")

    def align_selected(self, alignment: str = "left") -> Optional[Document]:
        """Align the selected nodes; None when fewer than two are selected."""
        self._require_editable("align")
        nodes = align_nodes(self.document.nodes, self._selection, alignment)
        if nodes is None:
            return None
        return self._commit(self.document.model_copy(update={"nodes": nodes}), "align")

    def distribute_selected(self, axis: str = "horizontal") -> Optional[Document]:
        """Space the selected nodes evenly; None when fewer than three are selected."""
        self._require_editable("distribute")
        nodes = distribute_nodes(self.document.nodes, self._selection, axis)
        if nodes is None:
            return None
        return self._commit(self.document.model_copy(update={"nodes": nodes}), "distribute")

    # --- Import / export ---

    def import_json(self, text: str) -> Document:
        """
        Replace the document with one parsed from JSON.

        On failure the document, selection and history are left untouched,
        a notification is recorded and DocumentValidationError is re-raised.
        """
        self._require_editable("import")
        try:
            document = exchange.import_json(text)
        except DocumentValidationError as e:
            self._reject_import(e)
            raise
        return self._load(document, "import")

    def import_document(self, data: Any) -> Document:
        """Like import_json, for already-decoded data."""
        self._require_editable("import")
        try:
            document = exchange.parse_document(data)
        except DocumentValidationError as e:
            self._reject_import(e)
            raise
        return self._load(document, "import")

    def _reject_import(self, error: DocumentValidationError):
        logger.warning("Import rejected: %s", error)
        self.notify(f"Import failed: {error}", level="error")

    def _load(self, document: Document, action: str) -> Document:
        self._abort_gesture()
        self._selection.clear()
        self._resizing_id = None
        self._mode = InteractionMode.SELECT
        self._commit(document, action)
        self.fit_to_content()
        return document

    def generate(self, service, prompt: str) -> Document:
        """Replace the document with one produced by a generation service."""
        self._require_editable("generate")
        try:
            document = service.generate(prompt)
        except GenerationError as e:
            logger.warning("Generation failed: %s", e)
            self.notify(f"Generation failed: {e}", level="error")
            raise
        return self._load(document, "generate")

    def export_json(self) -> str:
        return exchange.export_json(self.document)

    def export_svg(self) -> str:
        try:
            return render.render_svg(self.document)
        except ExportRenderError as e:
            self._export_failed(e)
            raise

    def export_png(self, scale: int = 2) -> bytes:
        try:
            return render.render_png(self.document, scale=scale)
        except ExportRenderError as e:
            self._export_failed(e)
            raise

    def _export_failed(self, error: ExportRenderError):
        logger.warning("Export failed: %s", error)
        self.notify(f"Export failed: {error}", level="error")

    # --- Viewport ---

    def pan_by(self, dx: float, dy: float) -> Viewport:
        self.viewport = self.viewport.pan(dx, dy)
        return self.viewport

    def zoom_at(self, factor: float, screen_point: Point) -> Viewport:
        self.viewport = self.viewport.zoom_at(factor, screen_point)
        return self.viewport

    def fit_to_content(self) -> Viewport:
        """Fit the viewport to the document's content. No-op for an empty document."""
        self.viewport = self.viewport.fit_to_content(
            content_bounds(self.document), *self.viewport_size
        )
        return self.viewport


def _resize_node(node: Node, handle: str, dx: float, dy: float) -> dict[str, float]:
    """New size and center for a node resized by a handle drag of (dx, dy)."""
    changes = {}
    if "r" in handle or "l" in handle:
        grow = dx if "r" in handle else -dx
        width = max(MIN_NODE_SIZE, node.width + grow)
        shift = (width - node.width) / 2
        changes["width"] = width
        changes["x"] = node.x + (shift if "r" in handle else -shift)
    if "b" in handle or "t" in handle:
        grow = dy if "b" in handle else -dy
        height = max(MIN_NODE_SIZE, node.height + grow)
        shift = (height - node.height) / 2
        changes["height"] = height
        changes["y"] = node.y + (shift if "b" in handle else -shift)
    return changes


def _resize_container(container: Container, handle: str, dx: float, dy: float) -> dict[str, float]:
    """New rectangle for a container; left/top handles move the origin."""
    changes = {}
    if "r" in handle:
        changes["width"] = max(MIN_CONTAINER_SIZE, container.width + dx)
    elif "l" in handle:
        width = max(MIN_CONTAINER_SIZE, container.width - dx)
        changes["width"] = width
        changes["x"] = container.x + (container.width - width)
    if "b" in handle:
        changes["height"] = max(MIN_CONTAINER_SIZE, container.height + dy)
    elif "t" in handle:
        height = max(MIN_CONTAINER_SIZE, container.height - dy)
        changes["height"] = height
        changes["y"] = container.y + (container.height - height)
    return changes
