"""Business rules for listing and editing notes.

The service holds no state of its own: every call reads and writes through
the storage, holding its lock across lookup, mutation and persist.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable, Optional

from notes_api.errors import NoteNotFoundError
from notes_api.metrics import NOTE_OPERATIONS
from notes_api.models import Note, NotePage, NoteUpdate, Pagination, utc_timestamp
from notes_api.storage import NoteStorage

logger = logging.getLogger(__name__)

_DECIMAL = re.compile(r"\s*[+-]?\d+(\.\d*)?\s*")


def coerce_page_param(value: Any) -> Optional[int]:
    """Turn a raw limit/offset value into a non-negative int.

    Non-numeric input yields None, negatives clamp to 0 and fractions are
    truncated. Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        # plain decimal only; float() would also take "1_000" or "1e3"
        if not _DECIMAL.fullmatch(value):
            return None
    elif not isinstance(value, (int, float)):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return max(0, int(number))


class NotesService:
    """List, create, read, update and delete notes over a NoteStorage."""

    def __init__(
        self,
        storage: NoteStorage,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self._storage = storage
        self._clock = clock

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def list(
        self,
        q: Optional[str] = None,
        limit: Any = None,
        offset: Any = None,
    ) -> NotePage:
        """Return notes, most recently updated first, filtered and paginated.

        ``total`` in the pagination block counts the filtered notes before
        ``limit``/``offset`` are applied.
        """
        # sorted() is stable, so equal timestamps keep insertion order
        notes = sorted(self._storage.all(), key=lambda n: n.updated_at, reverse=True)

        if isinstance(q, str) and q.strip():
            needle = q.lower()
            notes = [
                n
                for n in notes
                if needle in n.title.lower() or needle in n.content.lower()
            ]

        lim = coerce_page_param(limit)
        off = coerce_page_param(offset) or 0
        total = len(notes)
        if lim is not None:
            notes = notes[off : off + lim]
        elif off > 0:
            notes = notes[off:]

        NOTE_OPERATIONS.labels(operation="list", outcome="success").inc()
        return NotePage(
            data=notes,
            pagination=Pagination(total=total, limit=lim, offset=off),
        )

    def get_by_id(self, note_id: str) -> Note:
        """Return the note with this id or raise NoteNotFoundError."""
        note = self._storage.get(note_id)
        if note is None:
            NOTE_OPERATIONS.labels(operation="get", outcome="not_found").inc()
            raise NoteNotFoundError(note_id)
        NOTE_OPERATIONS.labels(operation="get", outcome="success").inc()
        return note

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, title: str = "", content: str = "") -> Note:
        """Create and persist a new note from already-validated input."""
        now = self._clock()
        note = Note(
            id=self._storage.generate_id(),
            title=title,
            content=content,
            created_at=now,
            updated_at=now,
        )
        self._storage.add(note)
        NOTE_OPERATIONS.labels(operation="create", outcome="success").inc()
        logger.info("Created note %s", note.id)
        return note

    def update(self, note_id: str, changes: NoteUpdate) -> Note:
        """Apply the fields set on ``changes`` and bump ``updated_at``.

        An empty string replaces the current value; unset fields are kept.
        Both fields may end up empty.
        """
        with self._storage.lock:
            current = self._storage.get(note_id)
            if current is None:
                NOTE_OPERATIONS.labels(operation="update", outcome="not_found").inc()
                raise NoteNotFoundError(note_id)
            fields = changes.model_dump(exclude_unset=True, exclude_none=True)
            fields["updated_at"] = self._clock()
            updated = current.model_copy(update=fields)
            self._storage.replace(updated)

        NOTE_OPERATIONS.labels(operation="update", outcome="success").inc()
        logger.info("Updated note %s (%s)", note_id, ", ".join(sorted(fields)))
        return updated

    def remove(self, note_id: str) -> None:
        """Delete a note permanently or raise NoteNotFoundError."""
        if not self._storage.delete(note_id):
            NOTE_OPERATIONS.labels(operation="delete", outcome="not_found").inc()
            raise NoteNotFoundError(note_id)
        NOTE_OPERATIONS.labels(operation="delete", outcome="success").inc()
        logger.info("Deleted note %s", note_id)
