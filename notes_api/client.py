"""Thin HTTP client for the notes API.

All methods return parsed JSON envelopes (dicts) or raise
``requests.HTTPError`` on a non-2xx response.
"""

from __future__ import annotations

import os
from typing import Any, Optional

import requests

DEFAULT_BASE_URL = os.getenv("NOTES_API_URL", "http://localhost:3001")
_TIMEOUT = 10  # seconds


class NotesClient:
    """Synchronous client for ``/notes`` and ``/health``."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = _TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        resp = self._session.request(
            method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
        )
        resp.raise_for_status()
        return resp

    def list_notes(
        self,
        q: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> dict[str, Any]:
        """GET /notes — one page of notes plus pagination metadata."""
        params = {
            k: v
            for k, v in {"q": q, "limit": limit, "offset": offset}.items()
            if v is not None
        }
        return self._request("GET", "/notes", params=params).json()

    def create_note(self, title: str = "", content: str = "") -> dict[str, Any]:
        """POST /notes — create a note."""
        return self._request(
            "POST", "/notes", json={"title": title, "content": content}
        ).json()

    def get_note(self, note_id: str) -> dict[str, Any]:
        """GET /notes/{id}."""
        return self._request("GET", f"/notes/{note_id}").json()

    def update_note(self, note_id: str, **fields: str) -> dict[str, Any]:
        """PUT /notes/{id} — only the keyword fields given are changed."""
        return self._request("PUT", f"/notes/{note_id}", json=fields).json()

    def delete_note(self, note_id: str) -> None:
        """DELETE /notes/{id}."""
        self._request("DELETE", f"/notes/{note_id}")

    def health(self) -> dict[str, Any]:
        """GET /health."""
        return self._request("GET", "/health").json()
