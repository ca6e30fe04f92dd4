"""Pytest configuration and shared fixtures for diagram engine tests."""

import pytest

from diagram_engine import (
    Container,
    Document,
    EditSession,
    EventSource,
    Link,
    Node,
)


@pytest.fixture
def node_a():
    """100x60 node centered on the origin."""
    return Node(id="a", label="A", x=0, y=0, width=100, height=60)


@pytest.fixture
def node_b():
    """100x60 node centered 300 units right of the origin."""
    return Node(id="b", label="B", x=300, y=0, width=100, height=60)


@pytest.fixture
def linked_document(node_a, node_b):
    """Two nodes joined by a single A -> B link."""
    return Document(
        title="Linked",
        nodes=(node_a, node_b),
        links=(Link(id="ab", source="a", target="b"),),
    )


@pytest.fixture
def grouped_document(linked_document):
    """The linked document with both nodes inside one container."""
    zone = Container(
        id="zone",
        label="Zone",
        type="availability-zone",
        x=-100,
        y=-100,
        width=500,
        height=200,
        child_node_ids=("a", "b"),
    )
    return linked_document.model_copy(update={"containers": (zone,)})


@pytest.fixture
def neural_document():
    """Two layers of neurons with a label per layer (plus one for an empty layer)."""
    return Document(
        title="Net",
        architecture_type="Neural Network",
        nodes=(
            Node(id="i1", label="", type="neuron", layer=0),
            Node(id="i2", label="", type="neuron", layer=0),
            Node(id="o1", label="", type="neuron", layer=1),
            Node(id="in", label="Input", type="layer-label", layer=0),
            Node(id="out", label="Output", type="layer-label", layer=1),
            Node(id="ghost", label="Hidden", type="layer-label", layer=5),
        ),
        links=(
            Link(id="l1", source="i1", target="o1"),
            Link(id="l2", source="i2", target="o1"),
        ),
    )


@pytest.fixture
def session(grouped_document):
    """Edit session over the grouped document, no event source."""
    return EditSession(grouped_document)


@pytest.fixture
def source():
    return EventSource()


@pytest.fixture
def wired_session(grouped_document, source):
    """Edit session that takes pointer events from `source`."""
    return EditSession(grouped_document, event_source=source)
