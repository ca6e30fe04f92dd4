"""
Linear undo/redo history over document snapshots.

Documents are immutable, so a snapshot is simply the document value. The
history keeps every entry plus a current index; undo and redo only move the
index, and pushing after an undo discards the entries beyond it.
"""

from typing import TYPE_CHECKING, Optional

from .config import MAX_HISTORY

if TYPE_CHECKING:
    from .models import Document


class History:
    """Sequential list of document snapshots with a movable cursor."""

    def __init__(self, initial: "Document", max_entries: int = MAX_HISTORY):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: list["Document"] = [initial]
        self._index = 0
        self._max_entries = max_entries

    @property
    def current(self) -> "Document":
        return self._entries[self._index]

    @property
    def index(self) -> int:
        return self._index

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, document: "Document") -> None:
        """Record a committed document, discarding any redo branch."""
        del self._entries[self._index + 1:]
        self._entries.append(document)

        # Trim history if too long
        if len(self._entries) > self._max_entries:
            del self._entries[0]
        self._index = len(self._entries) - 1

    def undo(self) -> Optional["Document"]:
        if not self.can_undo:
            return None
        self._index -= 1
        return self.current

    def redo(self) -> Optional["Document"]:
        if not self.can_redo:
            return None
        self._index += 1
        return self.current
