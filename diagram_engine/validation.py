"""
Document lint - structural issues worth showing to a user.

Imports never fail on these; the integrity pass already repairs what must be
repaired. Lint reports what looks unintended.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .models import NodeType

if TYPE_CHECKING:
    from .models import Document


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a document."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    link_id: str | None = None
    container_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.link_id:
            result["link_id"] = self.link_id
        if self.container_id:
            result["container_id"] = self.container_id
        return result


def validate_document(document: "Document") -> list[ValidationIssue]:
    """
    Lint a document and return a list of issues.

    Checks for:
    - Empty document - INFO
    - Non-positive node or container sizes - ERROR
    - Dangling link endpoints - ERROR
    - Dangling container children - ERROR
    - Orphan nodes (no links; layer labels excepted) - WARNING
    - Self-referencing links - WARNING
    - Duplicate links (same source->target) - WARNING
    - Container children whose center lies outside the container - WARNING
    - Layer labels for layers with no neurons - INFO

    Args:
        document: The document to lint

    Returns:
        List of ValidationIssue objects
    """
    issues: list[ValidationIssue] = []

    nodes = document.nodes
    links = document.links

    if not nodes and not document.containers:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Document has no nodes"
        ))
        return issues

    node_index = {n.id: n for n in nodes}

    for node in nodes:
        if node.width <= 0 or node.height <= 0:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Node has a non-positive size ({node.width}x{node.height})",
                node_id=node.id
            ))
    for container in document.containers:
        if container.width <= 0 or container.height <= 0:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Container has a non-positive size ({container.width}x{container.height})",
                container_id=container.id
            ))

    for link in links:
        if link.source not in node_index:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Link references non-existent source node: {link.source}",
                link_id=link.id
            ))
        if link.target not in node_index:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Link references non-existent target node: {link.target}",
                link_id=link.id
            ))

    # Orphans; layer labels are never linked
    connected: set[str] = set()
    for link in links:
        connected.add(link.source)
        connected.add(link.target)
    orphan_labels = [
        f"{n.label} ({n.id})" for n in nodes
        if n.id not in connected and n.type != NodeType.LAYER_LABEL.value
    ]
    if orphan_labels:
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Orphan nodes (no connections): {', '.join(orphan_labels)}"
        ))

    for link in links:
        if link.source == link.target:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Self-referencing link (node points to itself)",
                link_id=link.id,
                node_id=link.source
            ))

    seen_pairs: set[tuple[str, str]] = set()
    for link in links:
        pair = (link.source, link.target)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Duplicate link from {link.source} to {link.target}",
                link_id=link.id
            ))
        else:
            seen_pairs.add(pair)

    for container in document.containers:
        left, top, right, bottom = container.bounds()
        for child_id in container.child_node_ids:
            child = node_index.get(child_id)
            if child is None:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Container lists non-existent node: {child_id}",
                    container_id=container.id
                ))
            elif not (left <= child.x <= right and top <= child.y <= bottom):
                issues.append(ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    message=f"Node {child.label} lies outside its container {container.label}",
                    node_id=child.id,
                    container_id=container.id
                ))

    neuron_layers = {
        n.layer if n.layer is not None else 0
        for n in nodes if n.type == NodeType.NEURON.value
    }
    for node in nodes:
        if node.type != NodeType.LAYER_LABEL.value:
            continue
        layer = node.layer if node.layer is not None else 0
        if layer not in neuron_layers:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message=f"Layer label for empty layer {layer}",
                node_id=node.id
            ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }
