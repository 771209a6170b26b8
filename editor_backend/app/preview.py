from fastapi import APIRouter, Depends

from editor_backend.app.dependencies import get_preview_sessions
from editor_backend.app.schema import ConsoleListing, ConsoleRelay, PreviewRequest
from editor_backend.core.exceptions import NotFoundException
from editor_backend.models import PreviewSource
from editor_backend.services.preview import (
    SANDBOX_POLICY,
    PreviewSession,
    PreviewSessionManager,
    compose_document,
    error_document,
)
from editor_backend.settings import logger

router = APIRouter()


def _get_session(session_id: str, sessions: PreviewSessionManager) -> PreviewSession:
    session = sessions.get(session_id)
    if session is None:
        raise NotFoundException(f"Preview session not found: {session_id}")
    return session


def _session_payload(session: PreviewSession) -> dict:
    return {
        "sessionId": session.id,
        "state": session.state.value,
        "revision": session.revision,
        "document": session.preview.document if session.preview else None,
        "sandbox": SANDBOX_POLICY,
        "isError": session.preview.is_error if session.preview else False,
        "renderedAt": session.rendered_at.isoformat() if session.rendered_at else None,
    }


@router.post("/render")
async def render_preview(payload: PreviewRequest):
    """One-shot composition, no session"""
    try:
        document = compose_document(payload.html, payload.css, payload.javascript)
        is_error = False
    except Exception as e:
        logger.opt(exception=e).error("[PREVIEW] Failed to compose document")
        document, is_error = error_document(str(e)), True
    return {"success": True, "data": {"document": document, "sandbox": SANDBOX_POLICY, "isError": is_error}}


@router.post("/sessions")
async def create_session(sessions: PreviewSessionManager = Depends(get_preview_sessions)):
    session = sessions.create()
    return {"success": True, "data": _session_payload(session)}


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, sessions: PreviewSessionManager = Depends(get_preview_sessions)):
    return {"success": True, "data": _session_payload(_get_session(session_id, sessions))}


@router.put("/sessions/{session_id}")
async def edit_session(
    session_id: str,
    payload: PreviewRequest,
    immediate: bool = False,
    sessions: PreviewSessionManager = Depends(get_preview_sessions),
):
    """Record an edit. The document is re-rendered after the debounce delay unless ``immediate``."""
    session = _get_session(session_id, sessions)
    source = PreviewSource(html=payload.html, css=payload.css, javascript=payload.javascript)
    if immediate:
        session.render_now(source)
    else:
        session.edit(source)
    return {"success": True, "data": _session_payload(session)}


@router.delete("/sessions/{session_id}")
async def close_session(session_id: str, sessions: PreviewSessionManager = Depends(get_preview_sessions)):
    if not sessions.close(session_id):
        raise NotFoundException(f"Preview session not found: {session_id}")
    return {"success": True, "data": {"sessionId": session_id}}


@router.get("/sessions/{session_id}/console")
async def get_console(session_id: str, sessions: PreviewSessionManager = Depends(get_preview_sessions)):
    session = _get_session(session_id, sessions)
    messages = session.console.messages()
    listing = ConsoleListing(
        messages=[m.model_dump() for m in messages],
        count=len(messages),
        capacity=session.console.maxlen,
    )
    return {"success": True, "data": listing.model_dump(mode="json")}


@router.post("/sessions/{session_id}/console")
async def relay_console(
    session_id: str,
    payload: ConsoleRelay,
    sessions: PreviewSessionManager = Depends(get_preview_sessions),
):
    """Entry point of the console bridge: the editor forwards iframe messages here"""
    session = _get_session(session_id, sessions)
    message = session.receive_console(payload.kind, payload.text, payload.timestamp)
    return {"success": True, "data": {"message": message.model_dump(mode="json"), "count": len(session.console)}}


@router.delete("/sessions/{session_id}/console")
async def clear_console(session_id: str, sessions: PreviewSessionManager = Depends(get_preview_sessions)):
    session = _get_session(session_id, sessions)
    session.console.clear()
    return {"success": True, "data": {"count": 0}}
