"""Pydantic models for notes, pages and HTTP envelopes."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def utc_timestamp() -> str:
    """Current time as an RFC-3339 UTC string with millisecond precision."""
    now = datetime.now(UTC).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


class Note(BaseModel):
    """A single note with metadata.

    Unknown keys from the persistence file are kept so they survive rewrites.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., description="Opaque unique identifier")
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Note content")
    created_at: str = Field(
        ..., alias="createdAt", description="ISO-8601 creation timestamp"
    )
    updated_at: str = Field(
        ..., alias="updatedAt", description="ISO-8601 last update timestamp"
    )


# The persistence file is a bare JSON array of notes.
NoteList = TypeAdapter(list[Note])


class NoteUpdate(BaseModel):
    """Partial update; only fields that were explicitly set are applied."""

    title: Optional[str] = None
    content: Optional[str] = None


class Pagination(BaseModel):
    total: int
    limit: Optional[int] = None
    offset: int = 0


class NotePage(BaseModel):
    """One page of notes plus the metadata needed to fetch the next."""

    data: list[Note]
    pagination: Pagination


# --- HTTP envelopes ---


class NoteResponse(BaseModel):
    status: Literal["success"] = "success"
    data: Note


class NoteListResponse(BaseModel):
    status: Literal["success"] = "success"
    data: list[Note]
    pagination: Pagination


class ErrorResponse(BaseModel):
    status: Literal["fail", "error"]
    message: str
