"""
Headless input events.

The host (browser canvas, desktop widget, test) feeds pointer and key events
into an EventSource. The edit session never touches a rendering surface; it
subscribes to the source instead, which keeps the state machine testable.

GestureListeners is the scoped resource for multi-event gestures: pointer-move
and pointer-up handlers are attached when a gesture starts and detached on
every exit path.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from .geometry import Point
from .models import ContainerType

if TYPE_CHECKING:
    from .session import EditSession

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    POINTER_DOWN = "pointer-down"
    POINTER_MOVE = "pointer-move"
    POINTER_UP = "pointer-up"
    KEY_DOWN = "key-down"


@dataclass(frozen=True)
class PointerEvent:
    """A pointer event in screen coordinates.

    `node_id` is the node under the pointer as hit-tested by the host.
    """
    kind: EventKind
    x: float
    y: float
    node_id: Optional[str] = None
    button: int = 0

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    in_text_field: bool = False  # typing into an input; shortcuts stay quiet
    kind: EventKind = EventKind.KEY_DOWN

    @property
    def command(self) -> bool:
        return self.ctrl or self.meta


Handler = Callable[[object], None]


class EventSource:
    """Synchronous publish/subscribe hub. Events are delivered in dispatch order."""

    def __init__(self):
        self._handlers: dict[EventKind, list[Handler]] = defaultdict(list)

    def subscribe(self, kind: EventKind, handler: Handler) -> None:
        self._handlers[kind].append(handler)

    def unsubscribe(self, kind: EventKind, handler: Handler) -> None:
        handlers = self._handlers.get(kind, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, kind: EventKind) -> int:
        return len(self._handlers.get(kind, []))

    def dispatch(self, event: PointerEvent | KeyEvent) -> None:
        # Copy: handlers may detach themselves while running
        for handler in list(self._handlers.get(event.kind, [])):
            handler(event)


class GestureListeners:
    """
    Pointer-move/up listeners that live exactly as long as one gesture.

    Usable as a context manager; `detach` is idempotent so every exit path
    (completion, cancellation, teardown) can call it unconditionally.
    """

    def __init__(self, source: EventSource, on_move: Handler, on_up: Handler):
        self._source = source
        self._on_move = on_move
        self._on_up = on_up
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self) -> "GestureListeners":
        if not self._attached:
            self._source.subscribe(EventKind.POINTER_MOVE, self._on_move)
            self._source.subscribe(EventKind.POINTER_UP, self._on_up)
            self._attached = True
        return self

    def detach(self) -> None:
        if self._attached:
            self._source.unsubscribe(EventKind.POINTER_MOVE, self._on_move)
            self._source.unsubscribe(EventKind.POINTER_UP, self._on_up)
            self._attached = False

    def __enter__(self) -> "GestureListeners":
        return self.attach()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.detach()


class KeyboardShortcuts:
    """
    Maps key presses to session actions.

    - Ctrl/Cmd+Z undo, Ctrl/Cmd+Shift+Z redo
    - V select mode, N toggle add-node, A/B add availability zone, S add subnet
    - Delete/Backspace delete selection
    - Shift+V toggle view-only, Escape cancel
    """

    def __init__(self, session: "EditSession"):
        self.session = session
        self._source: Optional[EventSource] = None

    def attach(self, source: EventSource) -> None:
        self._source = source
        source.subscribe(EventKind.KEY_DOWN, self.handle)

    def detach(self) -> None:
        if self._source is not None:
            self._source.unsubscribe(EventKind.KEY_DOWN, self.handle)
            self._source = None

    def handle(self, event: KeyEvent) -> Optional[str]:
        """Run the action bound to `event`; returns its name, or None if unbound."""
        if event.in_text_field:
            return None
        session = self.session
        key = event.key

        if key.lower() == "v" and event.shift and not event.command:
            session.toggle_view_only()
            return "toggle-view-only"
        if key == "Escape":
            session.cancel()
            return "cancel"
        if session.is_view_only:
            return None

        if event.command and key.lower() == "z":
            if event.shift:
                if session.can_redo:
                    session.redo()
                return "redo"
            if session.can_undo:
                session.undo()
            return "undo"
        if key in ("Delete", "Backspace"):
            if session.selection:
                session.delete_selected()
                return "delete"
            return None
        if event.command:
            return None

        from .session import InteractionMode

        lowered = key.lower()
        if lowered == "v":
            session.set_mode(InteractionMode.SELECT)
            return "select"
        if lowered == "n":
            session.toggle_add_node()
            return "toggle-add-node"
        if lowered in ("a", "b"):
            session.add_container(ContainerType.AVAILABILITY_ZONE.value)
            return "add-container"
        if lowered == "s":
            session.add_container(ContainerType.SUBNET.value)
            return "add-container"
        logger.debug("Unbound key: %s", key)
        return None
