"""Timing policy unit tests."""

import pytest

from src.domain.services.timing_policy import (
    TimingThresholds,
    fallback_decision,
    interpret_answer,
    last_segment,
    prefilter,
)

NOW = 1_700_000_000_000


def test_never_asked_always_true():
    """No question yet means ask."""
    assert prefilter("", 0, NOW) is True
    assert prefilter("Ana: still talking", 0, NOW) is True


def test_long_silence_true():
    assert prefilter("Ana: hm", NOW - 300_001, NOW) is True


def test_exactly_long_silence_is_ambiguous():
    assert prefilter("Ana: hm", NOW - 300_000, NOW) is None


def test_min_spacing_false():
    """Scenario: question 20s ago, no remote call needed."""
    assert prefilter("Ana: and then we left", NOW - 20_000, NOW) is False


def test_middle_band_is_left_to_remote():
    assert prefilter("Ana: and then we left", NOW - 45_000, NOW) is None
    assert prefilter("", NOW - 30_000, NOW) is None


def test_utterance_guard_with_custom_thresholds():
    """The guard only matters when spacing is shorter than it."""
    thresholds = TimingThresholds(min_spacing_ms=1_000, utterance_guard_ms=5_000)
    assert prefilter("Bo: wait", NOW - 3_000, NOW, thresholds) is False
    assert prefilter("", NOW - 3_000, NOW, thresholds) is None


@pytest.mark.parametrize(
    "elapsed,expected",
    [(61_000, True), (60_000, False), (45_000, False)],
)
def test_fallback_decision(elapsed, expected):
    assert fallback_decision(NOW - elapsed, NOW) is expected


@pytest.mark.parametrize(
    "answer,expected",
    [
        ("yes", True),
        ("  YES\n", True),
        ("Yes", True),
        ("yes.", False),
        ("yes, now", False),
        ("no", False),
        ("", False),
        (None, False),
    ],
)
def test_interpret_answer(answer, expected):
    assert interpret_answer(answer) is expected


def test_last_segment():
    assert last_segment("") == ""
    assert last_segment("a\nb\nc") == "c"
    assert last_segment("only") == "only"
    assert last_segment("a\n") == ""
