"""Facilitation ports - interfaces the engine depends on."""

from collections.abc import Callable
from typing import Protocol

from src.domain.entities.conversation import (
    ConversationAnalysis,
    GeneratedQuestion,
    QuestionContext,
    SessionSummary,
)

# Zero-argument, synchronous, side-effect free accessor for the full transcript.
TranscriptProvider = Callable[[], str]

# Millisecond wall clock; injectable so tests can control time.
Clock = Callable[[], int]


class AnalysisPort(Protocol):
    """Classifies explored/unexplored connection domains. Never raises."""

    async def analyze_conversation(
        self,
        transcript: str,
        vibe: str,
        asked_questions: list[str],
    ) -> ConversationAnalysis:
        ...


class QuestionPort(Protocol):
    """Produces one facilitation question. Never raises."""

    async def generate_question(self, context: QuestionContext) -> GeneratedQuestion:
        ...


class TimingPort(Protocol):
    """Decides whether now is a good moment to ask. Never raises."""

    async def should_ask_question(
        self,
        recent_transcript: str,
        last_question_time: int,
        current_time: int,
    ) -> bool:
        ...


class SummaryPort(Protocol):
    """Produces the end-of-session reflection summary. Never raises."""

    async def generate_session_summary(
        self,
        transcript: str,
        vibe: str,
        duration: int,
        questions_answered: int,
    ) -> SessionSummary:
        ...
