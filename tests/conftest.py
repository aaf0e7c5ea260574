"""Pytest configuration and shared fixtures."""

import pytest

from src.infrastructure.resilience import reset_all_breakers
from tests.fakes import FakeAnalysis, FakeClock, FakeQuestions, FakeSummaries, FakeTiming


@pytest.fixture(autouse=True)
def _reset_breakers():
    """Circuit breakers are process-wide; start every test closed."""
    reset_all_breakers()
    yield
    reset_all_breakers()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_analysis() -> FakeAnalysis:
    return FakeAnalysis()


@pytest.fixture
def fake_questions() -> FakeQuestions:
    return FakeQuestions()


@pytest.fixture
def fake_timing() -> FakeTiming:
    return FakeTiming()


@pytest.fixture
def fake_summaries() -> FakeSummaries:
    return FakeSummaries()
