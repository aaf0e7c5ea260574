"""Timing oracle - local rules first, remote judgment only for the middle band."""

import logging

from src.domain.services.timing_policy import (
    DEFAULT_THRESHOLDS,
    TimingThresholds,
    fallback_decision,
    prefilter,
)
from src.infrastructure.facilitation.remote import RemoteAIClient

logger = logging.getLogger(__name__)

TIMING_PATH = "should-ask-question"


def _parse(data: dict) -> bool:
    value = data["shouldAsk"]
    if not isinstance(value, bool):
        raise TypeError(f"shouldAsk must be a boolean, got {type(value).__name__}")
    return value


class TimingOracle:
    """Implements TimingPort. Never raises."""

    def __init__(
        self,
        remote: RemoteAIClient,
        thresholds: TimingThresholds = DEFAULT_THRESHOLDS,
        session_id: str | None = None,
    ) -> None:
        self._remote = remote
        self._session_id = session_id
        self._thresholds = thresholds

    async def should_ask_question(
        self,
        recent_transcript: str,
        last_question_time: int,
        current_time: int,
    ) -> bool:
        decided = prefilter(recent_transcript, last_question_time, current_time, self._thresholds)
        if decided is not None:
            return decided

        result = await self._remote.fetch(
            "should_ask_question",
            TIMING_PATH,
            {
                "recentTranscript": recent_transcript,
                "lastQuestionTime": last_question_time,
                "currentTime": current_time,
            },
            _parse,
            lambda: fallback_decision(last_question_time, current_time, self._thresholds),
            session_id=self._session_id,
        )
        return result.value
