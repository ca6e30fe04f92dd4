"""
Error types raised by the diagram engine.

None of these are fatal: callers either recover locally (the session keeps its
previous document) or surface the message as a dismissible notification.
"""


class DiagramError(Exception):
    """Base class for all engine errors."""


class DocumentValidationError(DiagramError):
    """An imported document is malformed (missing field or wrong shape)."""


class InvalidReferenceError(DiagramError):
    """A mutation refers to an item that is not in the document, or reuses a taken id."""

    def __init__(self, message: str, item_id: str | None = None):
        super().__init__(message)
        self.item_id = item_id


class ViewOnlyError(DiagramError):
    """A mutation was attempted while the session is in view-only mode."""


class ExportRenderError(DiagramError):
    """The render surface produced no output."""


class GenerationError(DiagramError):
    """The generation service could not produce a diagram."""


class GenerationTimeoutError(GenerationError):
    """The generation service did not answer in time."""


class GenerationRejectedError(GenerationError):
    """The generation service answered with an error status."""

    def __init__(self, message: str, status_code: int, payload: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class GenerationResponseError(GenerationError):
    """The generation service answered, but not with a usable diagram."""
