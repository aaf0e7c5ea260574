"""Clients for the remote AI service (analysis, questions, timing, summaries)."""

from src.infrastructure.facilitation.analysis_client import AnalysisClient, fallback_analysis
from src.infrastructure.facilitation.question_client import QuestionClient, fallback_question
from src.infrastructure.facilitation.remote import RemoteAIClient
from src.infrastructure.facilitation.summary_client import SummaryClient, fallback_summary
from src.infrastructure.facilitation.timing_oracle import TimingOracle

__all__ = [
    "AnalysisClient",
    "QuestionClient",
    "RemoteAIClient",
    "SummaryClient",
    "TimingOracle",
    "fallback_analysis",
    "fallback_question",
    "fallback_summary",
]
