"""JSON file-based storage layer for notes.

The in-memory list is the single source of truth; the file is a mirror that
is rewritten after every mutation. Write failures are logged and counted but
never raised, so the API stays available when durability is broken.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional
from uuid import uuid4

from pydantic import ValidationError

from notes_api.metrics import NOTES_STORED, PERSIST_FAILURES
from notes_api.models import Note, NoteList

logger = logging.getLogger(__name__)


class NoteStorage:
    """Owns the note collection and its on-disk mirror.

    Pass ``storage_path=None`` for a memory-only store that never touches disk.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._path = Path(storage_path) if storage_path is not None else None
        self._notes: list[Note] = []
        self._issued_ids: set[str] = set()
        self._lock = threading.RLock()
        self.last_persist_error: Optional[str] = None
        self._load()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def persistent(self) -> bool:
        """Whether mutations are mirrored to a file."""
        return self._path is not None

    @property
    def healthy(self) -> bool:
        """False while the most recent write of the file failed."""
        return self.last_persist_error is None

    @property
    def lock(self) -> threading.RLock:
        """Lock guarding the collection and the file as one unit."""
        return self._lock

    @property
    def count(self) -> int:
        """Number of stored notes."""
        return len(self._notes)

    # ------------------------------------------------------------------
    # Load / persist
    # ------------------------------------------------------------------

    def _load(self) -> None:
        """Load notes from disk, falling back to an empty collection."""
        if self._path is None:
            return
        if not self._path.exists():
            logger.info("No storage file found at %s — starting fresh", self._path)
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError(f"expected a JSON array, got {type(raw).__name__}")
            self._notes = NoteList.validate_python(raw)
        except (OSError, ValueError, ValidationError) as exc:
            # json.JSONDecodeError is a ValueError
            logger.warning("Failed to load notes from %s: %s — starting fresh", self._path, exc)
            self._notes = []
        else:
            logger.info("Loaded %d notes from %s", len(self._notes), self._path)
        self._issued_ids.update(n.id for n in self._notes)
        NOTES_STORED.set(len(self._notes))

    def _persist(self) -> None:
        """Rewrite the file with the full collection. Never raises."""
        NOTES_STORED.set(len(self._notes))
        if self._path is None:
            return
        payload = NoteList.dump_json(self._notes, by_alias=True, indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_bytes(payload)
        except OSError as exc:
            PERSIST_FAILURES.inc()
            self.last_persist_error = str(exc)
            logger.error("Failed to persist notes to %s: %s", self._path, exc)
        else:
            self.last_persist_error = None

    # ------------------------------------------------------------------
    # Collection operations
    # ------------------------------------------------------------------

    def generate_id(self) -> str:
        """Return an id never issued or loaded before in this process."""
        with self._lock:
            note_id = str(uuid4())
            while note_id in self._issued_ids:
                note_id = str(uuid4())
            self._issued_ids.add(note_id)
            return note_id

    def all(self) -> list[Note]:
        """Return every stored note in insertion order."""
        with self._lock:
            return list(self._notes)

    def get(self, note_id: str) -> Optional[Note]:
        """Return the note with exactly this id, or None."""
        with self._lock:
            for note in self._notes:
                if note.id == note_id:
                    return note
            return None

    def add(self, note: Note) -> None:
        """Append a note and persist."""
        with self._lock:
            self._issued_ids.add(note.id)
            self._notes.append(note)
            self._persist()

    def replace(self, note: Note) -> bool:
        """Swap in a new version of an existing note and persist.

        Returns False, without writing, when no note has ``note.id``.
        """
        with self._lock:
            for idx, current in enumerate(self._notes):
                if current.id == note.id:
                    self._notes[idx] = note
                    self._persist()
                    return True
            return False

    def delete(self, note_id: str) -> bool:
        """Remove a note and persist. Unknown ids are a no-op returning False."""
        with self._lock:
            for idx, current in enumerate(self._notes):
                if current.id == note_id:
                    del self._notes[idx]
                    self._persist()
                    return True
            return False
