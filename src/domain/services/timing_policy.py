"""Timing policy - deterministic rules for when a new question may be asked.

The rules run before any remote judgment. They answer True/False for the clear
cases and None for the ambiguous middle band, which is left to the LLM.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TimingThresholds:
    """Timing thresholds in milliseconds."""

    long_silence_ms: int = 300_000
    min_spacing_ms: int = 30_000
    utterance_guard_ms: int = 5_000
    fallback_after_ms: int = 60_000


DEFAULT_THRESHOLDS = TimingThresholds()

# Characters of transcript the remote timing judgment looks at.
TIMING_WINDOW_CHARS = 300


def last_segment(transcript: str) -> str:
    """Most recent transcript line (segments are newline separated)."""
    if not transcript:
        return ""
    return transcript.split("\n")[-1]


def prefilter(
    recent_transcript: str,
    last_question_time: int,
    current_time: int,
    thresholds: TimingThresholds = DEFAULT_THRESHOLDS,
) -> bool | None:
    """Apply the local rules in order. None means "ask the remote service"."""
    elapsed = current_time - last_question_time

    if last_question_time == 0 or elapsed > thresholds.long_silence_ms:
        return True
    if elapsed < thresholds.min_spacing_ms:
        return False
    if last_segment(recent_transcript) and elapsed < thresholds.utterance_guard_ms:
        return False
    return None


def fallback_decision(
    last_question_time: int,
    current_time: int,
    thresholds: TimingThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """Coarse answer used when the remote judgment is unavailable."""
    return current_time - last_question_time > thresholds.fallback_after_ms


def interpret_answer(answer: str | None) -> bool:
    """Only an exact "yes" (case-insensitive, trimmed) counts."""
    return (answer or "").strip().lower() == "yes"
