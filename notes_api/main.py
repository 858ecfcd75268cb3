"""FastAPI application for the Personal Notes API.

Endpoints:
  GET    /notes       — List notes (search with ?q=, paginate with ?limit=&offset=)
  POST   /notes       — Create a note
  GET    /notes/{id}  — Fetch a single note
  PUT    /notes/{id}  — Update a note's title and/or content
  DELETE /notes/{id}  — Delete a note
  GET    /health      — Service and persistence health
  GET    /metrics     — Prometheus metrics
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from notes_api.config import Settings, settings
from notes_api.errors import NoteNotFoundError, NoteValidationError
from notes_api.metrics import HTTP_DURATION, HTTP_REQUESTS
from notes_api.models import (
    ErrorResponse,
    NoteListResponse,
    NoteResponse,
    utc_timestamp,
)
from notes_api.service import NotesService
from notes_api.storage import NoteStorage
from notes_api.validation import parse_create, parse_update

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Endpoints excluded from HTTP metrics
_METRICS_EXCLUDE = {"/metrics", "/openapi.json", "/docs", "/redoc"}

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    404: {"model": ErrorResponse, "description": "Note not found"},
}


def _endpoint_label(path: str) -> str:
    """Collapse note ids so the endpoint label stays low-cardinality."""
    if path.startswith("/notes/"):
        return "/notes/{id}"
    return path


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request count and duration for Prometheus."""

    async def dispatch(self, request: Request, call_next):
        """Wrap each request with timing and counting."""
        path = request.url.path
        if path in _METRICS_EXCLUDE:
            return await call_next(request)

        endpoint = _endpoint_label(path)
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            # unhandled errors escape call_next and are counted as 500
            HTTP_REQUESTS.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code,
            ).inc()
            HTTP_DURATION.labels(endpoint=endpoint).observe(
                time.perf_counter() - start
            )
        return response


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "fail", "message": message},
    )


def get_service(request: Request) -> NotesService:
    """Dependency returning the service bound to this app."""
    return request.app.state.service


def create_app(
    config: Optional[Settings] = None,
    storage: Optional[NoteStorage] = None,
) -> FastAPI:
    """Build the notes API.

    A ``storage`` passed in is used as-is; otherwise one is loaded from
    ``config.data_file`` at startup.
    """
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: load the note store and wire the service."""
        if app.state.storage is None:
            logger.info("Loading notes from %s ...", config.data_file)
            app.state.storage = NoteStorage(config.data_file)
        app.state.service = NotesService(app.state.storage)
        logger.info("Notes API ready — %d notes", app.state.storage.count)
        yield
        logger.info("Notes API shut down.")

    app = FastAPI(
        title="Personal Notes API",
        description="RESTful API for managing personal notes.",
        version="1.0.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Service health"},
            {"name": "Notes", "description": "Notes management"},
        ],
    )
    app.state.storage = storage

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error handlers ---

    @app.exception_handler(NoteValidationError)
    async def validation_error(request: Request, exc: NoteValidationError) -> JSONResponse:
        return _fail(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def malformed_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _fail(400, "Validation error: request body must be valid JSON.")

    @app.exception_handler(NoteNotFoundError)
    async def not_found(request: Request, exc: NoteNotFoundError) -> JSONResponse:
        return _fail(404, "Note not found")

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": "Internal server error"},
        )

    # --- Notes ---

    @app.get("/notes", response_model=NoteListResponse, tags=["Notes"])
    def list_notes(
        q: Optional[str] = None,
        limit: Optional[str] = None,
        offset: Optional[str] = None,
        service: NotesService = Depends(get_service),
    ) -> NoteListResponse:
        """List notes, most recently updated first.

        ``q`` searches title and content case-insensitively; ``limit`` and
        ``offset`` paginate. Malformed pagination values are ignored.
        """
        page = service.list(q=q, limit=limit, offset=offset)
        return NoteListResponse(data=page.data, pagination=page.pagination)

    @app.post(
        "/notes",
        response_model=NoteResponse,
        status_code=201,
        tags=["Notes"],
        responses={400: _ERROR_RESPONSES[400]},
    )
    def create_note(
        body: Any = Body(None),
        service: NotesService = Depends(get_service),
    ) -> NoteResponse:
        """Create a note with a non-empty title or content."""
        title, content = parse_create(body)
        return NoteResponse(data=service.create(title=title, content=content))

    @app.get(
        "/notes/{note_id}",
        response_model=NoteResponse,
        tags=["Notes"],
        responses={404: _ERROR_RESPONSES[404]},
    )
    def get_note(
        note_id: str, service: NotesService = Depends(get_service)
    ) -> NoteResponse:
        """Fetch a single note by id."""
        return NoteResponse(data=service.get_by_id(note_id))

    @app.put(
        "/notes/{note_id}",
        response_model=NoteResponse,
        tags=["Notes"],
        responses=_ERROR_RESPONSES,
    )
    def update_note(
        note_id: str,
        body: Any = Body(None),
        service: NotesService = Depends(get_service),
    ) -> NoteResponse:
        """Update a note's title and/or content."""
        changes = parse_update(body)
        return NoteResponse(data=service.update(note_id, changes))

    @app.delete(
        "/notes/{note_id}",
        status_code=204,
        response_class=Response,
        tags=["Notes"],
        responses={404: _ERROR_RESPONSES[404]},
    )
    def delete_note(
        note_id: str, service: NotesService = Depends(get_service)
    ) -> Response:
        """Delete a note by id."""
        service.remove(note_id)
        return Response(status_code=204)

    # --- Operations ---

    @app.get("/health", tags=["Health"])
    async def health(request: Request) -> dict[str, Any]:
        """Report note count and whether the last file write succeeded."""
        store: NoteStorage = request.app.state.storage
        if not store.persistent:
            persistence = "disabled"
        elif store.healthy:
            persistence = "ok"
        else:
            persistence = "degraded"
        return {
            "status": "ok",
            "notes": store.count,
            "persistence": persistence,
            "timestamp": utc_timestamp(),
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
