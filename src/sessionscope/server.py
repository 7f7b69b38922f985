"""FastAPI web server for sessionscope."""

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.responses import Response

from . import __version__
from .archive import SessionArchive
from .errors import InvalidQuery, NotFound
from .export import (
    context_to_dict,
    result_to_dict,
    session_to_dict,
    session_to_json,
    session_to_markdown,
    summary_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def create_app(archive: Optional[SessionArchive] = None) -> FastAPI:
    """Build the app around one archive (built from the environment if omitted)."""
    app = FastAPI(title="sessionscope", version=__version__)
    app.state.archive = archive or SessionArchive()
    app.include_router(router)
    logger.info("Serving sessions from %s", ", ".join(str(p) for p in app.state.archive.roots))
    return app


def _archive(request: Request) -> SessionArchive:
    return request.app.state.archive


# ── Routes ───────────────────────────────────────────────────────
# Plain ``def`` handlers run in the threadpool, so disk I/O never blocks
# the event loop.


@router.get("/api/roots")
def get_roots(request: Request):
    """Return the archive directories being scanned."""
    return [str(p) for p in _archive(request).roots]


@router.get("/api/sessions")
def list_sessions(
    request: Request,
    limit: int = Query(20, ge=0, description="Maximum sessions to return (capped at 100)"),
):
    """Return recent sessions, most recent first."""
    sessions = _archive(request).list_sessions(limit)
    return {
        "total": len(sessions),
        "sessions": [summary_to_dict(s) for s in sessions],
    }


@router.get("/api/search")
def search_sessions(
    request: Request,
    q: str = Query("", description="Search query"),
    limit: int = Query(10, ge=0, description="Maximum results (capped at 50)"),
):
    """Rank sessions against a keyword query."""
    try:
        results = _archive(request).search_sessions(q, limit)
    except InvalidQuery as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "query": q,
        "total": len(results),
        "results": [result_to_dict(r) for r in results],
    }


@router.get("/api/session/{session_id:path}")
def get_session(request: Request, session_id: str):
    """Return full messages for a session."""
    try:
        session = _archive(request).get_session(session_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return session_to_dict(session)


@router.get("/api/context/{session_id:path}")
def get_session_context(request: Request, session_id: str):
    """Return a condensed context summary for a session."""
    try:
        context = _archive(request).get_session_context(session_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return context_to_dict(context)


@router.get("/api/export/{session_id:path}")
def export_session(
    request: Request,
    session_id: str,
    format: str = Query("md", description="Export format: md or json"),
):
    """Export a session as Markdown or JSON."""
    try:
        session = _archive(request).get_session(session_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    safe_name = "".join(c if c.isalnum() or c in "-_" else "" for c in session.id)[:50] or "session"

    if format == "json":
        return Response(
            content=session_to_json(session),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{safe_name}.json"'},
        )
    return Response(
        content=session_to_markdown(session),
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{safe_name}.md"'},
    )
