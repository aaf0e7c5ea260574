"""Summary client - end-of-session reflection."""

from src.domain.entities.client_result import ClientResult
from src.domain.entities.conversation import SessionSummary
from src.infrastructure.facilitation.remote import RemoteAIClient

SUMMARY_PATH = "session-summary"


def fallback_summary() -> SessionSummary:
    return SessionSummary(
        key_themes=["Shared experiences", "Personal growth", "Future aspirations"],
        insights=(
            "You shared meaningful moments and learned more about each other. "
            "The conversation touched on both lighthearted and deeper topics."
        ),
        connection_depth=5,
    )


def _parse(data: dict) -> SessionSummary:
    return SessionSummary.model_validate(data["result"])


class SummaryClient:
    """Implements SummaryPort against ``POST <remote>/session-summary``."""

    def __init__(self, remote: RemoteAIClient, session_id: str | None = None) -> None:
        self._remote = remote
        self._session_id = session_id

    async def fetch_summary(
        self,
        transcript: str,
        vibe: str,
        duration: int,
        questions_answered: int,
    ) -> ClientResult[SessionSummary]:
        return await self._remote.fetch(
            "session_summary",
            SUMMARY_PATH,
            {
                "transcript": transcript,
                "vibe": vibe,
                "duration": duration,
                "questionsAnswered": questions_answered,
            },
            _parse,
            fallback_summary,
            session_id=self._session_id,
        )

    async def generate_session_summary(
        self,
        transcript: str,
        vibe: str,
        duration: int,
        questions_answered: int,
    ) -> SessionSummary:
        result = await self.fetch_summary(transcript, vibe, duration, questions_answered)
        return result.value
