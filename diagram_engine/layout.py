"""
Layout algorithms for diagram nodes.

Provides deterministic layout strategies:
- Layered: neural-network style columns of neurons with layer labels
- Grid: Simple grid arrangement
- Tree: Hierarchical layout based on link directions
- Align / distribute: tidy up a selection of nodes

Nodes are positioned by their center. No function mutates its input; each
returns new nodes (or a new document), so the same input always yields the
same output.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from .config import (
    LAYER_HORIZONTAL_SPACING,
    LAYER_LABEL_OFFSET_Y,
    LAYER_VERTICAL_SPACING,
    NEURON_RADIUS,
    VIRTUAL_CANVAS_HEIGHT,
    VIRTUAL_CANVAS_WIDTH,
)
from .geometry import Point, dock_circle
from .models import NodeType

if TYPE_CHECKING:
    from .models import Document, Link, Node


# Default layout parameters
DEFAULT_SPACING_X = 200
DEFAULT_SPACING_Y = 150
DEFAULT_START_X = 100
DEFAULT_START_Y = 100


@dataclass(frozen=True)
class LaidOutLink:
    link_id: str
    source: Point
    target: Point


@dataclass
class LayeredLayout:
    """Result of the layered layout: node centers, docked links and content size."""
    positions: dict[str, Point] = field(default_factory=dict)
    links: list[LaidOutLink] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0


def _layer_height(count: int) -> float:
    return count * (NEURON_RADIUS * 2 + LAYER_VERTICAL_SPACING) - LAYER_VERTICAL_SPACING


def layered_layout(
    nodes: Iterable["Node"],
    links: Iterable["Link"] = (),
) -> LayeredLayout:
    """
    Lay out neurons in vertical columns, one per layer.

    Neurons without a layer index go to layer 0. Layers are ranked by index;
    each column is centered vertically on a large virtual canvas so the
    result does not depend on the screen size. Layer labels sit above the
    first neuron of their layer; labels for empty layers are left out.
    Link endpoints are docked on the neuron circles.

    Args:
        nodes: All nodes of the diagram; only neurons and layer labels are placed
        links: Links to dock; links touching unplaced nodes are dropped

    Returns:
        LayeredLayout with positions keyed by node id
    """
    nodes = list(nodes)
    layers: dict[int, list["Node"]] = defaultdict(list)
    for node in nodes:
        if node.type == NodeType.NEURON.value:
            layers[node.layer if node.layer is not None else 0].append(node)

    layer_keys = sorted(layers)
    layout_width = (len(layer_keys) + 1) * LAYER_HORIZONTAL_SPACING
    origin_x = VIRTUAL_CANVAS_WIDTH / 2 - layout_width / 2
    step = NEURON_RADIUS * 2 + LAYER_VERTICAL_SPACING

    result = LayeredLayout(width=layout_width)
    max_layer_height = 0.0
    layer_x: dict[int, float] = {}
    layer_top: dict[int, float] = {}

    for rank, layer in enumerate(layer_keys):
        members = layers[layer]
        height = _layer_height(len(members))
        max_layer_height = max(max_layer_height, height)
        x = origin_x + (rank + 1) * LAYER_HORIZONTAL_SPACING
        start_y = VIRTUAL_CANVAS_HEIGHT / 2 - height / 2
        layer_x[layer] = x
        layer_top[layer] = start_y
        for j, neuron in enumerate(members):
            result.positions[neuron.id] = Point(x, start_y + j * step)

    for node in nodes:
        if node.type != NodeType.LAYER_LABEL.value:
            continue
        layer = node.layer if node.layer is not None else 0
        if layer in layer_x:
            result.positions[node.id] = Point(layer_x[layer], layer_top[layer] - LAYER_LABEL_OFFSET_Y)

    for link in links:
        source = result.positions.get(link.source)
        target = result.positions.get(link.target)
        if source is None or target is None:
            continue
        result.links.append(LaidOutLink(
            link_id=link.id,
            source=dock_circle(source, NEURON_RADIUS, target),
            target=dock_circle(target, NEURON_RADIUS, source),
        ))

    result.height = max_layer_height + LAYER_LABEL_OFFSET_Y * 2
    return result


def apply_layered_layout(document: "Document") -> "Document":
    """Return a copy of the document with layered positions written into its nodes."""
    layout = layered_layout(document.nodes, document.links)
    return document.model_copy(update={"nodes": _with_positions(document.nodes, layout.positions)})


def _with_positions(nodes: Iterable["Node"], positions: dict[str, Point]) -> tuple["Node", ...]:
    return tuple(
        n.model_copy(update={"x": positions[n.id].x, "y": positions[n.id].y})
        if n.id in positions else n
        for n in nodes
    )


def grid_layout(
    nodes: Iterable["Node"],
    spacing_x: float = DEFAULT_SPACING_X,
    spacing_y: float = DEFAULT_SPACING_Y,
    start_x: float = DEFAULT_START_X,
    start_y: float = DEFAULT_START_Y,
    columns: int | None = None
) -> tuple["Node", ...]:
    """
    Arrange nodes in a grid pattern.

    Args:
        nodes: Nodes to arrange
        spacing_x: Horizontal spacing between node centers
        spacing_y: Vertical spacing between node centers
        start_x: X coordinate of the first node's center
        start_y: Y coordinate of the first node's center
        columns: Number of columns (auto-calculated if None)

    Returns:
        New nodes in the same order
    """
    nodes = list(nodes)
    if not nodes:
        return ()

    # Auto-calculate columns based on node count
    if columns is None:
        columns = max(3, int(len(nodes) ** 0.5) + 1)

    positions = {}
    for i, node in enumerate(nodes):
        row, col = divmod(i, columns)
        positions[node.id] = Point(start_x + col * spacing_x, start_y + row * spacing_y)
    return _with_positions(nodes, positions)


def tree_layout(
    nodes: Iterable["Node"],
    links: Iterable["Link"],
    spacing_x: float = DEFAULT_SPACING_X,
    spacing_y: float = DEFAULT_SPACING_Y,
    start_x: float = DEFAULT_START_X,
    start_y: float = DEFAULT_START_Y,
    orientation: str = "vertical"  # "vertical" or "horizontal"
) -> tuple["Node", ...]:
    """
    Arrange nodes in a hierarchical tree layout based on link directions.

    Nodes with no incoming links are placed at the root level.
    Children are positioned below (or right of) their parents.

    Args:
        nodes: Nodes to arrange
        links: Links defining the hierarchy
        spacing_x: Horizontal spacing between nodes
        spacing_y: Vertical spacing between levels
        start_x: X coordinate of the first node
        start_y: Y coordinate of the first node
        orientation: "vertical" (top-to-bottom) or "horizontal" (left-to-right)

    Returns:
        New nodes in the same order
    """
    nodes = list(nodes)
    if not nodes:
        return ()

    # Build adjacency list (parent -> children)
    children: dict[str, list[str]] = {n.id: [] for n in nodes}
    has_parent: set[str] = set()
    for link in links:
        if link.source in children and link.target in children and link.source != link.target:
            children[link.source].append(link.target)
            has_parent.add(link.target)

    roots = [n.id for n in nodes if n.id not in has_parent] or [nodes[0].id]

    # BFS to assign levels
    levels: dict[str, int] = {}
    queue = [(r, 0) for r in roots]
    while queue:
        node_id, level = queue.pop(0)
        if node_id in levels:
            continue
        levels[node_id] = level
        for child in children[node_id]:
            queue.append((child, level + 1))

    level_counts: dict[int, int] = defaultdict(int)
    positions = {}
    for node in nodes:
        # Nodes only reachable through a cycle start a level of their own
        level = levels.get(node.id, 0)
        idx = level_counts[level]
        level_counts[level] += 1
        if orientation == "vertical":
            positions[node.id] = Point(start_x + idx * spacing_x, start_y + level * spacing_y)
        else:
            positions[node.id] = Point(start_x + level * spacing_x, start_y + idx * spacing_y)
    return _with_positions(nodes, positions)


def align_nodes(
    nodes: Iterable["Node"],
    node_ids: Iterable[str],
    alignment: str = "left"
) -> tuple["Node", ...] | None:
    """
    Align selected nodes along an edge or center line.

    Args:
        nodes: All nodes in the diagram
        node_ids: IDs of nodes to align
        alignment: One of "left", "right", "top", "bottom", "center_h", "center_v"

    Returns:
        New nodes, or None if fewer than two nodes match or the alignment is unknown
    """
    nodes = list(nodes)
    ids = set(node_ids)
    targets = [n for n in nodes if n.id in ids]
    if len(targets) < 2:
        return None

    if alignment == "left":
        edge = min(n.x - n.width / 2 for n in targets)
        moved = {n.id: Point(edge + n.width / 2, n.y) for n in targets}
    elif alignment == "right":
        edge = max(n.x + n.width / 2 for n in targets)
        moved = {n.id: Point(edge - n.width / 2, n.y) for n in targets}
    elif alignment == "top":
        edge = min(n.y - n.height / 2 for n in targets)
        moved = {n.id: Point(n.x, edge + n.height / 2) for n in targets}
    elif alignment == "bottom":
        edge = max(n.y + n.height / 2 for n in targets)
        moved = {n.id: Point(n.x, edge - n.height / 2) for n in targets}
    elif alignment == "center_h":
        center = sum(n.x for n in targets) / len(targets)
        moved = {n.id: Point(center, n.y) for n in targets}
    elif alignment == "center_v":
        center = sum(n.y for n in targets) / len(targets)
        moved = {n.id: Point(n.x, center) for n in targets}
    else:
        return None

    return _with_positions(nodes, moved)


def distribute_nodes(
    nodes: Iterable["Node"],
    node_ids: Iterable[str],
    axis: str = "horizontal"
) -> tuple["Node", ...] | None:
    """
    Evenly distribute node centers between the outermost two.

    Returns:
        New nodes, or None if fewer than three nodes match or the axis is unknown
    """
    nodes = list(nodes)
    ids = set(node_ids)
    targets = [n for n in nodes if n.id in ids]
    if len(targets) < 3 or axis not in ("horizontal", "vertical"):
        return None

    horizontal = axis == "horizontal"
    targets.sort(key=lambda n: (n.x if horizontal else n.y, n.id))
    first = targets[0].x if horizontal else targets[0].y
    last = targets[-1].x if horizontal else targets[-1].y
    spacing = (last - first) / (len(targets) - 1)

    moved = {}
    for i, n in enumerate(targets):
        value = first + i * spacing
        moved[n.id] = Point(value, n.y) if horizontal else Point(n.x, value)
    return _with_positions(nodes, moved)
