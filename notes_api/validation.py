"""Request-body validation for the notes HTTP endpoints.

Bodies arrive as arbitrary JSON so that type mistakes surface as the API's
own 400 envelope rather than FastAPI's 422 detail list.
"""

from __future__ import annotations

from typing import Any

from notes_api.errors import NoteValidationError
from notes_api.models import NoteUpdate

CREATE_MESSAGE = 'Validation error: provide a non-empty "title" or "content".'
UPDATE_MESSAGE = 'Validation error: "title" and "content" must be strings if provided.'

_FIELDS = ("title", "content")


def _as_object(body: Any) -> dict[str, Any]:
    return body if isinstance(body, dict) else {}


def parse_create(body: Any) -> tuple[str, str]:
    """Return trimmed ``(title, content)`` for a new note.

    Non-string values count as empty. At least one field must be non-empty
    after trimming.
    """
    payload = _as_object(body)
    title, content = (
        payload[f].strip() if isinstance(payload.get(f), str) else "" for f in _FIELDS
    )
    if not title and not content:
        raise NoteValidationError(CREATE_MESSAGE)
    return title, content


def parse_update(body: Any) -> NoteUpdate:
    """Return a NoteUpdate holding only the fields present in ``body``.

    A present field must be a string (``null`` is rejected); it is trimmed
    and may be empty.
    """
    payload = _as_object(body)
    changes: dict[str, str] = {}
    for field in _FIELDS:
        if field not in payload:
            continue
        value = payload[field]
        if not isinstance(value, str):
            raise NoteValidationError(UPDATE_MESSAGE)
        changes[field] = value.strip()
    return NoteUpdate(**changes)
