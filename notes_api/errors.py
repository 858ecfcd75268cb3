"""Exceptions raised by the notes service and its HTTP boundary."""

from __future__ import annotations


class NotesError(Exception):
    """Base class for notes errors that map to a client response."""


class NoteValidationError(NotesError):
    """Request payload rejected before it reaches the service."""


class NoteNotFoundError(NotesError):
    """No note with the requested id exists."""

    def __init__(self, note_id: str) -> None:
        super().__init__(f"Note not found: {note_id}")
        self.note_id = note_id
