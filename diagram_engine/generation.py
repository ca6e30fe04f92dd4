"""
Client for the external diagram generation service.

The service turns a natural-language prompt into a diagram:

    POST {base}/generate-diagram          {"prompt": ..., "userApiKey": ...}
    POST {base}/generate-neural-network   {"prompt": ..., "userApiKey": ...}
    -> 200 {"diagram": {...}, "newGenerationCount": 3}
    -> 4xx/5xx {"error": "..."}

Generated diagrams are sanitized before validation: the model behind the
service sometimes returns missing or nonsensical geometry.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx

from .config import GENERATION_API_BASE, GENERATION_TIMEOUT
from .errors import (
    DocumentValidationError,
    GenerationError,
    GenerationRejectedError,
    GenerationResponseError,
    GenerationTimeoutError,
)
from .exchange import parse_document
from .layout import apply_layered_layout
from .models import Document, NodeType

logger = logging.getLogger(__name__)

NEURAL_NETWORK_ARCHITECTURE = "Neural Network"


class GenerationService(Protocol):
    """Anything that can turn a prompt into a document."""

    def generate(self, prompt: str) -> Document:
        ...


@dataclass
class GenerationResult:
    document: Document
    generation_count: Optional[int] = None


# --- Sanitization ---

def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _records(data: dict, key: str) -> list[dict]:
    """The dict entries of a list field; malformed fields are left for validation to reject."""
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def sanitize_diagram(data: dict) -> dict:
    """
    Repair geometry in a generated architecture diagram.

    - Non-finite node positions become (600, 400)
    - Node sizes missing or <= 10 become 150x80
    - Long labels grow their node: >25 chars to at least 180x90, >18 chars to width 160
    - Non-finite container positions become (100, 100); sizes <= 20 become 500x500
    """
    data = dict(data)
    nodes = []
    for raw in _records(data, "nodes"):
        node = dict(raw)
        x, y = _number(node.get("x")), _number(node.get("y"))
        width, height = _number(node.get("width")), _number(node.get("height"))
        node["x"] = x if math.isfinite(x) else 600.0
        node["y"] = y if math.isfinite(y) else 400.0
        node["width"] = width if math.isfinite(width) and width > 10 else 150.0
        node["height"] = height if math.isfinite(height) and height > 10 else 80.0
        node.setdefault("locked", False)

        label = node.get("label") or ""
        if label and node.get("type") not in (NodeType.NEURON.value, NodeType.LAYER_LABEL.value):
            if len(label) > 25:
                node["width"] = max(node["width"], 180.0)
                node["height"] = max(node["height"], 90.0)
            elif len(label) > 18:
                node["width"] = max(node["width"], 160.0)
        nodes.append(node)
    if isinstance(data.get("nodes", []), list):
        data["nodes"] = nodes

    containers = []
    for raw in _records(data, "containers"):
        container = dict(raw)
        x, y = _number(container.get("x")), _number(container.get("y"))
        width, height = _number(container.get("width")), _number(container.get("height"))
        container["x"] = x if math.isfinite(x) else 100.0
        container["y"] = y if math.isfinite(y) else 100.0
        container["width"] = width if math.isfinite(width) and width > 20 else 500.0
        container["height"] = height if math.isfinite(height) and height > 20 else 500.0
        containers.append(container)
    if isinstance(data.get("containers", []), list):
        data["containers"] = containers
    data.setdefault("links", [])
    return data


def sanitize_neural_network(data: dict) -> dict:
    """Zero positions and fixed sizes; the layered layout places everything afterwards."""
    data = dict(data)
    nodes = []
    for raw in _records(data, "nodes"):
        node = dict(raw)
        neuron = node.get("type") == NodeType.NEURON.value
        node["x"] = 0.0
        node["y"] = 0.0
        node["width"] = 40.0 if neuron else 100.0
        node["height"] = 40.0 if neuron else 20.0
        nodes.append(node)
    if isinstance(data.get("nodes", []), list):
        data["nodes"] = nodes
    data.setdefault("links", [])
    data["architectureType"] = NEURAL_NETWORK_ARCHITECTURE
    return data


# --- HTTP client ---

class HttpGenerationClient:
    """
    Generation service client over HTTP.

    Args:
        base_url: API base, e.g. "http://127.0.0.1:8765/api"
        api_key: Optional user API key forwarded as `userApiKey`
        neural: Request neural-network diagrams instead of architecture diagrams
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass an httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str = GENERATION_API_BASE,
        api_key: Optional[str] = None,
        neural: bool = False,
        timeout: float = GENERATION_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.neural = neural
        self.timeout = timeout
        self.transport = transport
        self.last_generation_count: Optional[int] = None

    @property
    def endpoint(self) -> str:
        return "/generate-neural-network" if self.neural else "/generate-diagram"

    def _post(self, endpoint: str, payload: dict) -> dict:
        url = f"{self.base_url}{endpoint}"
        logger.info("Requesting generation from %s", url)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise GenerationTimeoutError(f"Generation service timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Could not reach generation service: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = body.get("error") or f"Request failed with status {response.status_code}"
            logger.warning("Generation rejected (%d): %s", response.status_code, message)
            raise GenerationRejectedError(message, response.status_code, body)

        try:
            body = response.json()
        except ValueError as e:
            raise GenerationResponseError("Generation service returned invalid JSON") from e
        if not isinstance(body, dict):
            raise GenerationResponseError("Generation service returned an unexpected payload")
        return body

    def request(self, prompt: str) -> GenerationResult:
        """Generate a diagram and report the service's generation counter."""
        body = self._post(self.endpoint, {"prompt": prompt, "userApiKey": self.api_key})
        diagram = body.get("diagram")
        if not isinstance(diagram, dict):
            raise GenerationResponseError("Generation response has no diagram")

        if self.neural:
            diagram = sanitize_neural_network(diagram)
        else:
            diagram = sanitize_diagram(diagram)
        diagram.setdefault("title", "Generated Diagram")

        try:
            document = parse_document(diagram)
        except DocumentValidationError as e:
            raise GenerationResponseError(f"Generated diagram is invalid: {e}") from e
        if self.neural:
            document = apply_layered_layout(document)

        count = body.get("newGenerationCount")
        self.last_generation_count = count if isinstance(count, int) else None
        logger.info("Generated %d nodes, %d links", len(document.nodes), len(document.links))
        return GenerationResult(document, self.last_generation_count)

    def generate(self, prompt: str) -> Document:
        return self.request(prompt).document
