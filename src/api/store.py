"""Sessions store - in-memory facilitation sessions (nothing outlives the process)."""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from src.application.facilitation.engine import FacilitationEngine
from src.domain.ports.facilitation import TranscriptProvider

logger = logging.getLogger(__name__)

# (session_id, transcript provider, vibe, check_interval_ms) -> engine
EngineFactory = Callable[[str, TranscriptProvider, str | None, int | None], FacilitationEngine]


@dataclass
class TranscriptBuffer:
    """Append-only transcript; segments are joined by newlines."""

    segments: list[str] = field(default_factory=list)

    def append(self, text: str, speaker: str | None = None) -> None:
        text = text.strip()
        if not text:
            return
        self.segments.append(f"{speaker}: {text}" if speaker else text)

    def text(self) -> str:
        return "\n".join(self.segments)


@dataclass
class FacilitationSession:
    """One live conversation: its transcript and the engine watching it."""

    id: str
    transcript: TranscriptBuffer
    engine: FacilitationEngine


class SessionsStore:
    """Registry of live sessions keyed by id."""

    def __init__(self, engine_factory: EngineFactory) -> None:
        self._factory = engine_factory
        self._sessions: dict[str, FacilitationSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, vibe: str | None = None, check_interval_ms: int | None = None) -> FacilitationSession:
        """Create a session; the engine starts disabled."""
        session_id = uuid.uuid4().hex[:12]
        transcript = TranscriptBuffer()
        engine = self._factory(session_id, transcript.text, vibe, check_interval_ms)
        session = FacilitationSession(id=session_id, transcript=transcript, engine=engine)
        self._sessions[session_id] = session
        logger.info("Session %s created (vibe=%s)", session_id, engine.vibe)
        return session

    def get(self, session_id: str) -> FacilitationSession:
        """Raises KeyError for unknown ids."""
        try:
            return self._sessions[session_id]
        except KeyError:
            raise KeyError(f"Session not found: {session_id}") from None

    def list_ids(self) -> list[str]:
        return list(self._sessions)

    async def delete(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise KeyError(f"Session not found: {session_id}")
        await session.engine.aclose()
        logger.info("Session %s closed", session_id)

    async def close_all(self) -> None:
        """Tear down every session (app shutdown)."""
        for session_id in list(self._sessions):
            await self.delete(session_id)
