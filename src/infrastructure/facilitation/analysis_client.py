"""Analysis client - which connection domains has the conversation covered."""

import logging

from src.domain.entities.client_result import ClientResult
from src.domain.entities.conversation import ALL_DOMAINS, ConnectionDomain, ConversationAnalysis
from src.infrastructure.facilitation.remote import RemoteAIClient

logger = logging.getLogger(__name__)

ANALYZE_PATH = "analyze-conversation"


def fallback_analysis() -> ConversationAnalysis:
    """Deterministic analysis served when the remote service is unusable."""
    return ConversationAnalysis(
        explored_domains=[],
        unexplored_domains=list(ALL_DOMAINS),
        connection_depth=1,
        suggested_domain=ConnectionDomain.CURRENT_SITUATION,
        reasoning="Starting with current situation as a comfortable entry point.",
    )


def _parse(data: dict) -> ConversationAnalysis:
    return ConversationAnalysis.model_validate(data["result"])


class AnalysisClient:
    """Implements AnalysisPort against ``POST <remote>/analyze-conversation``."""

    def __init__(self, remote: RemoteAIClient, session_id: str | None = None) -> None:
        self._remote = remote
        self._session_id = session_id

    async def fetch_analysis(
        self,
        transcript: str,
        vibe: str,
        asked_questions: list[str],
    ) -> ClientResult[ConversationAnalysis]:
        """Analysis with provenance; never raises."""
        logger.debug("Analyzing conversation, transcript length: %d", len(transcript))
        return await self._remote.fetch(
            "analyze_conversation",
            ANALYZE_PATH,
            {"transcript": transcript, "vibe": vibe, "askedQuestions": list(asked_questions)},
            _parse,
            fallback_analysis,
            session_id=self._session_id,
        )

    async def analyze_conversation(
        self,
        transcript: str,
        vibe: str,
        asked_questions: list[str],
    ) -> ConversationAnalysis:
        result = await self.fetch_analysis(transcript, vibe, asked_questions)
        return result.value
