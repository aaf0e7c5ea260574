"""Facilitation session routes - transcript in, questions out."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.dependencies import get_config, get_sessions, limiter
from src.api.store import FacilitationSession, SessionsStore
from src.application.facilitation.dto import (
    CreateSessionRequest,
    EnableRequest,
    SessionResponse,
    SummaryRequest,
    TranscriptSegmentRequest,
    VibeRequest,
)
from src.domain.ports.config import AppConfig

log = structlog.get_logger()

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _session(session_id: str, sessions: SessionsStore) -> FacilitationSession:
    try:
        return sessions.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")


def _response(session: FacilitationSession) -> SessionResponse:
    return SessionResponse(session_id=session.id, state=session.engine.snapshot())


@router.post("", response_model=SessionResponse, status_code=201)
@limiter.limit("30/minute")
async def create_session(
    request: Request,
    body: CreateSessionRequest,
    sessions: SessionsStore = Depends(get_sessions),
    config: AppConfig = Depends(get_config),
) -> SessionResponse:
    """Start a session; the first question follows after the settle delay."""
    session = sessions.create(
        vibe=body.vibe.value if body.vibe else None,
        check_interval_ms=body.check_interval,
    )
    enabled = config.facilitation.enabled if body.enabled is None else body.enabled
    await session.engine.set_enabled(enabled)
    log.info("session_created", session=session.id, vibe=session.engine.vibe, enabled=enabled)
    return _response(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, sessions: SessionsStore = Depends(get_sessions)) -> SessionResponse:
    return _response(_session(session_id, sessions))


@router.post("/{session_id}/transcript", response_model=SessionResponse)
@limiter.limit("600/minute")
async def append_transcript(
    request: Request,
    session_id: str,
    body: TranscriptSegmentRequest,
    sessions: SessionsStore = Depends(get_sessions),
) -> SessionResponse:
    """Append one transcribed utterance."""
    session = _session(session_id, sessions)
    session.transcript.append(body.text, body.speaker)
    return _response(session)


@router.post("/{session_id}/enabled", response_model=SessionResponse)
async def set_enabled(
    session_id: str,
    body: EnableRequest,
    sessions: SessionsStore = Depends(get_sessions),
) -> SessionResponse:
    session = _session(session_id, sessions)
    await session.engine.set_enabled(body.enabled)
    return _response(session)


@router.post("/{session_id}/vibe", response_model=SessionResponse)
async def set_vibe(
    session_id: str,
    body: VibeRequest,
    sessions: SessionsStore = Depends(get_sessions),
) -> SessionResponse:
    session = _session(session_id, sessions)
    session.engine.set_vibe(body.vibe.value)
    return _response(session)


@router.post("/{session_id}/dismiss", response_model=SessionResponse)
async def dismiss_question(session_id: str, sessions: SessionsStore = Depends(get_sessions)) -> SessionResponse:
    session = _session(session_id, sessions)
    session.engine.dismiss_question()
    return _response(session)


@router.post("/{session_id}/skip", response_model=SessionResponse)
async def skip_question(session_id: str, sessions: SessionsStore = Depends(get_sessions)) -> SessionResponse:
    session = _session(session_id, sessions)
    session.engine.skip_question()
    return _response(session)


@router.post("/{session_id}/next", response_model=SessionResponse)
@limiter.limit("30/minute")
async def force_next_question(
    request: Request,
    session_id: str,
    sessions: SessionsStore = Depends(get_sessions),
) -> SessionResponse:
    """Drop the current question and get a fresh one now."""
    session = _session(session_id, sessions)
    await session.engine.force_next_question()
    return _response(session)


@router.post("/{session_id}/analyze", response_model=SessionResponse)
@limiter.limit("30/minute")
async def analyze_now(
    request: Request,
    session_id: str,
    sessions: SessionsStore = Depends(get_sessions),
) -> SessionResponse:
    session = _session(session_id, sessions)
    await session.engine.analyze_now()
    return _response(session)


@router.post("/{session_id}/summary")
@limiter.limit("10/minute")
async def session_summary(
    request: Request,
    session_id: str,
    body: SummaryRequest,
    sessions: SessionsStore = Depends(get_sessions),
):
    session = _session(session_id, sessions)
    summary = await session.engine.summarize(body.duration)
    return {"result": summary.to_wire()}


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str, sessions: SessionsStore = Depends(get_sessions)) -> None:
    """End the session and release its timers."""
    try:
        await sessions.delete(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")
    log.info("session_deleted", session=session_id)
