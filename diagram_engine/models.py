"""
Core data models for diagrams.

These models define the canonical schema for diagram documents:
- Nodes placed by their center point, with optional layer and border styling
- Links connecting nodes (source/target naming), each with a closed style record
- Containers grouping nodes visually (weak child references, no ownership)
- The Document value that is the unit of undo/redo and of import/export

Every model is frozen. Mutation helpers return a new Document and run the
integrity pass, so a document never holds a link to a missing node.

Field Naming Convention:
- Python attributes are snake_case
- The exchange format uses camelCase (childNodeIds, offsetDistance, ...)
- Both spellings are accepted on input; `from`/`to` are accepted for links
"""

import uuid
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_NODE_HEIGHT, DEFAULT_NODE_WIDTH
from .errors import InvalidReferenceError


class BorderStyle(str, Enum):
    """Border styles for nodes and containers."""
    SOLID = "solid"
    DOTTED = "dotted"
    DASHED = "dashed"
    DOUBLE = "double"
    NONE = "none"


class BorderWidth(str, Enum):
    """Named border weights."""
    THIN = "thin"
    MEDIUM = "medium"
    THICK = "thick"


class StrokePattern(str, Enum):
    """Line patterns for links."""
    SOLID = "solid"
    DOTTED = "dotted"
    DASHED = "dashed"
    DOUBLE = "double"


class ArrowheadStyle(str, Enum):
    """Arrowhead variants drawn at link endpoints."""
    DEFAULT = "default"
    FILLED = "filled"
    OUTLINED = "outlined"
    NONE = "none"


class LineStyle(str, Enum):
    """How the body of a link is routed."""
    STRAIGHT = "straight"
    CURVED = "curved"
    ELBOW = "elbow"
    ORTHOGONAL = "orthogonal"


class ContainerType(str, Enum):
    """Semantic subtypes for containers."""
    TIER = "tier"
    VPC = "vpc"
    REGION = "region"
    AVAILABILITY_ZONE = "availability-zone"
    SUBNET = "subnet"


class NodeType(str, Enum):
    """Node type tags the engine treats specially."""
    GENERIC = "generic"
    NEURON = "neuron"
    LAYER_LABEL = "layer-label"
    CUSTOM_IMAGE = "custom-image"


BORDER_WIDTHS = {
    BorderWidth.THIN.value: 1.0,
    BorderWidth.MEDIUM.value: 2.0,
    BorderWidth.THICK.value: 4.0,
}

CONTAINER_LABELS = {
    ContainerType.TIER.value: "New Tier",
    ContainerType.VPC.value: "Virtual Private Cloud",
    ContainerType.REGION.value: "Region",
    ContainerType.AVAILABILITY_ZONE.value: "Availability Zone",
    ContainerType.SUBNET.value: "Subnet",
}

_DASH_PATTERNS = {
    StrokePattern.DASHED.value: "5,5",
    StrokePattern.DOTTED.value: "2,2",
}


def generate_node_id() -> str:
    """Generate a unique node ID."""
    return f"n{uuid.uuid4().hex[:8]}"


def generate_link_id() -> str:
    """Generate a unique link ID."""
    return f"l{uuid.uuid4().hex[:8]}"


def generate_container_id() -> str:
    """Generate a unique container ID."""
    return f"c{uuid.uuid4().hex[:8]}"


class DiagramModel(BaseModel):
    """Base for all document models: frozen, camelCase on the wire."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        extra="ignore",
    )

    def updated(self, **changes: Any):
        """Return a validated copy with the given fields replaced."""
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)


class Node(DiagramModel):
    """A shape on the canvas, positioned by its center."""
    id: str = Field(default_factory=generate_node_id)
    label: str = "New Node"
    type: str = NodeType.GENERIC.value
    x: float = 0.0
    y: float = 0.0
    width: float = DEFAULT_NODE_WIDTH
    height: float = DEFAULT_NODE_HEIGHT
    layer: Optional[int] = None
    description: Optional[str] = None
    locked: bool = False
    color: Optional[str] = None
    shape: Optional[str] = None
    custom_icon: Optional[str] = None
    custom_icon_size: Optional[float] = None
    border_style: BorderStyle = BorderStyle.SOLID
    border_width: BorderWidth = BorderWidth.MEDIUM
    border_color: Optional[str] = None
    fill_opacity: float = Field(default=1.0, ge=0.0, le=1.0)

    def center(self) -> tuple[float, float]:
        """Get the center point of the node."""
        return (self.x, self.y)

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (left, top, right, bottom)."""
        hw = self.width / 2
        hh = self.height / 2
        return (self.x - hw, self.y - hh, self.x + hw, self.y + hh)


class LinkStyle(DiagramModel):
    """
    Closed style record for a link.

    Every field has an explicit default so renderers never deal with
    missing values.
    """
    pattern: StrokePattern = StrokePattern.SOLID
    curvature: float = Field(default=30.0, ge=0.0, le=100.0)
    offset_distance: float = 0.0
    arrowhead: ArrowheadStyle = ArrowheadStyle.DEFAULT
    line_style: LineStyle = LineStyle.CURVED
    start_marker: bool = False
    end_marker: bool = True
    stroke_width: float = Field(default=2.0, ge=1.0, le=10.0)
    color: Optional[str] = None
    dash_pattern: Optional[str] = None
    angle: Optional[float] = Field(default=None, ge=0.0, le=360.0)

    def resolved_dash(self) -> Optional[str]:
        """Explicit dash pattern, else the one implied by the stroke pattern."""
        if self.dash_pattern:
            return self.dash_pattern
        return _DASH_PATTERNS.get(self.pattern)


# Flat style keys found on links in older exports (style fields used to live
# directly on the link object).
_FLAT_STYLE_KEYS = {
    "curvature": "curvature",
    "offsetDistance": "offset_distance",
    "offset_distance": "offset_distance",
    "arrowheadStyle": "arrowhead",
    "lineStyle": "line_style",
    "line_style": "line_style",
    "startMarker": "start_marker",
    "start_marker": "start_marker",
    "endMarker": "end_marker",
    "end_marker": "end_marker",
    "strokeWidth": "stroke_width",
    "stroke_width": "stroke_width",
    "color": "color",
    "dashPattern": "dash_pattern",
    "dash_pattern": "dash_pattern",
    "angle": "angle",
}


class Link(DiagramModel):
    """
    A directional connector between two nodes.

    Uses `source` and `target` as canonical field names.
    Accepts `from`/`to` and flat style keys on input for backward compatibility.
    """
    id: str = Field(default_factory=generate_link_id)
    source: str
    target: str
    label: Optional[str] = None
    style: LinkStyle = Field(default_factory=LinkStyle)

    @model_validator(mode="before")
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy endpoint names and flat style fields."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "from" in data and "source" not in data:
            data["source"] = data.pop("from")
        if "to" in data and "target" not in data:
            data["target"] = data.pop("to")

        style = data.get("style")
        if isinstance(style, str):
            # Older exports stored only the stroke pattern under "style"
            style = {"pattern": style}
        elif isinstance(style, LinkStyle):
            style = style.model_dump()
        else:
            style = dict(style or {})
        for key, field_name in _FLAT_STYLE_KEYS.items():
            if key in data:
                style[field_name] = data.pop(key)
        data["style"] = style
        return data

    def endpoints(self) -> tuple[str, str]:
        return (self.source, self.target)

    def updated(self, **changes: Any) -> "Link":
        """Return a validated copy; a `style` dict is merged into the current style."""
        style = changes.get("style")
        if isinstance(style, dict):
            changes["style"] = {**self.style.model_dump(), **style}
        return super().updated(**changes)


class Container(DiagramModel):
    """A labeled bounding region grouping nodes. Positioned by its top-left corner."""
    id: str = Field(default_factory=generate_container_id)
    label: str = "Container"
    type: ContainerType = ContainerType.AVAILABILITY_ZONE
    x: float = 0.0
    y: float = 0.0
    width: float = 400.0
    height: float = 300.0
    child_node_ids: tuple[str, ...] = ()
    description: Optional[str] = None
    color: Optional[str] = None
    border_style: BorderStyle = BorderStyle.SOLID
    border_width: BorderWidth = BorderWidth.MEDIUM
    border_color: Optional[str] = None

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (left, top, right, bottom)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


Item = Node | Link | Container


class Document(DiagramModel):
    """
    The complete diagram document.

    This is what gets exported/imported and what the history stores.
    """
    title: str = "Untitled Diagram"
    architecture_type: str = "General"
    nodes: tuple[Node, ...] = ()
    links: tuple[Link, ...] = ()
    containers: tuple[Container, ...] = ()

    @model_validator(mode="after")
    def check_unique_ids(self) -> "Document":
        duplicate = _duplicate_id(self)
        if duplicate is not None:
            raise ValueError(f"Duplicate identifier: {duplicate}")
        return self

    # --- Lookups ---

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(n))."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_link(self, link_id: str) -> Optional[Link]:
        for link in self.links:
            if link.id == link_id:
                return link
        return None

    def get_container(self, container_id: str) -> Optional[Container]:
        for container in self.containers:
            if container.id == container_id:
                return container
        return None

    def get_item(self, item_id: str) -> Optional[Item]:
        return self.get_node(item_id) or self.get_link(item_id) or self.get_container(item_id)

    # --- Mutations (each returns a new document) ---

    def with_title(self, title: str) -> "Document":
        return self.model_copy(update={"title": title})

    def with_nodes_added(self, *nodes: Node) -> "Document":
        return _unique(self.model_copy(update={"nodes": self.nodes + tuple(nodes)}))

    def with_link_added(self, link: Link) -> "Document":
        """Add a link, rejecting it if either endpoint is missing."""
        _check_endpoints(self.node_ids(), link)
        return _unique(self.model_copy(update={"links": self.links + (link,)}))

    def with_container_added(self, container: Container) -> "Document":
        return apply_integrity(
            _unique(self.model_copy(update={"containers": self.containers + (container,)}))
        )

    def with_items_updated(self, changes: dict[str, dict[str, Any]]) -> "Document":
        """
        Apply per-item property changes.

        Args:
            changes: item id -> {field: new value}

        Raises:
            InvalidReferenceError: an id is unknown, a link would point
                at a missing node, or a new id is already taken
        """
        for item_id in changes:
            if self.get_item(item_id) is None:
                raise InvalidReferenceError(f"Item not found: {item_id}", item_id)

        nodes = tuple(n.updated(**changes[n.id]) if n.id in changes else n for n in self.nodes)
        containers = tuple(
            c.updated(**changes[c.id]) if c.id in changes else c for c in self.containers
        )
        node_ids = {n.id for n in nodes}
        links = []
        for link in self.links:
            if link.id in changes:
                link = link.updated(**changes[link.id])
                _check_endpoints(node_ids, link)
            links.append(link)

        return apply_integrity(_unique(
            self.model_copy(update={"nodes": nodes, "links": tuple(links), "containers": containers})
        ))

    def with_nodes_moved(self, node_ids: Iterable[str], dx: float, dy: float) -> "Document":
        ids = set(node_ids)
        nodes = tuple(
            n.model_copy(update={"x": n.x + dx, "y": n.y + dy}) if n.id in ids else n
            for n in self.nodes
        )
        return self.model_copy(update={"nodes": nodes})

    def with_items_removed(self, item_ids: Iterable[str]) -> "Document":
        """Remove nodes, links and containers by id, cascading through the integrity pass."""
        ids = set(item_ids)
        return apply_integrity(self.model_copy(update={
            "nodes": tuple(n for n in self.nodes if n.id not in ids),
            "links": tuple(l for l in self.links if l.id not in ids),
            "containers": tuple(c for c in self.containers if c.id not in ids),
        }))


def _check_endpoints(node_ids: set[str], link: Link) -> None:
    if link.source not in node_ids:
        raise InvalidReferenceError(f"Source node not found: {link.source}", link.source)
    if link.target not in node_ids:
        raise InvalidReferenceError(f"Target node not found: {link.target}", link.target)


def _duplicate_id(document: Document) -> Optional[str]:
    seen: set[str] = set()
    for item in (*document.nodes, *document.links, *document.containers):
        if item.id in seen:
            return item.id
        seen.add(item.id)
    return None


def _unique(document: Document) -> Document:
    """Reject a mutated document in which two items share an id."""
    duplicate = _duplicate_id(document)
    if duplicate is not None:
        raise InvalidReferenceError(f"Identifier already in use: {duplicate}", duplicate)
    return document


def apply_integrity(document: Document) -> Document:
    """
    Restore referential integrity after a structural change.

    Drops links whose source or target is gone and prunes container
    membership down to existing nodes (order kept, duplicates removed).
    Nodes are never removed here. Returns the same object when nothing
    needed fixing.
    """
    node_ids = document.node_ids()

    links = tuple(l for l in document.links if l.source in node_ids and l.target in node_ids)

    containers = []
    containers_changed = False
    for container in document.containers:
        children = tuple(dict.fromkeys(cid for cid in container.child_node_ids if cid in node_ids))
        if children != container.child_node_ids:
            container = container.model_copy(update={"child_node_ids": children})
            containers_changed = True
        containers.append(container)

    if len(links) == len(document.links) and not containers_changed:
        return document
    return document.model_copy(update={"links": links, "containers": tuple(containers)})
