"""
Portable import/export of diagram documents.

The exchange format is JSON with camelCase keys:

    {
      "title": "...",
      "architectureType": "General",
      "nodes": [{"id": "n1", "label": "...", "x": 0, "y": 0, ...}],
      "links": [{"id": "l1", "source": "n1", "target": "n2", "style": {...}}],
      "containers": [{"id": "c1", "childNodeIds": ["n1"], ...}]
    }

Links using `from`/`to` are accepted. Links pointing at missing nodes and
container children that do not exist are dropped on import.
"""

import json
from typing import Any

from pydantic import ValidationError

from .errors import DocumentValidationError
from .models import Document, apply_integrity


def export_dict(document: Document) -> dict[str, Any]:
    """JSON-ready dict of the document (camelCase keys, unset optionals omitted)."""
    return document.model_dump(by_alias=True, mode="json", exclude_none=True)


def export_json(document: Document, indent: int = 2) -> str:
    return json.dumps(export_dict(document), indent=indent)


def parse_document(data: Any) -> Document:
    """
    Validate decoded exchange data and build a Document.

    Raises:
        DocumentValidationError: data is not a mapping, `title` is missing or
            not a string, `nodes`/`links`/`containers` are not lists, or an
            item fails model validation
    """
    if not isinstance(data, dict):
        raise DocumentValidationError("Document must be a JSON object")
    if not isinstance(data.get("title"), str):
        raise DocumentValidationError("Document is missing a title")
    for key in ("nodes", "links"):
        if not isinstance(data.get(key), list):
            raise DocumentValidationError(f"Document field '{key}' must be a list")
    if "containers" in data and not isinstance(data["containers"], list):
        raise DocumentValidationError("Document field 'containers' must be a list")

    try:
        document = Document.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        where = f" at {location}" if location else ""
        raise DocumentValidationError(f"Invalid document{where}: {first['msg']}") from e
    return apply_integrity(document)


def import_json(text: str | bytes) -> Document:
    """Parse exchange JSON text into a Document."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentValidationError(f"Invalid JSON: {e.msg}") from e
    return parse_document(data)
