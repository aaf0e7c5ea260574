"""Facilitation engine - decides when and what to ask during a live conversation.

One engine owns one SessionState and runs on a single asyncio loop. Work is
triggered by two timers (the settle delay before the first question and the
periodic check) and by caller actions (dismiss, skip, force-next, analyze-now).

Single-flight is enforced by the phase machine in SessionState: a request that
cannot start from the current phase is dropped, never queued. In-flight remote
calls are never cancelled except on teardown.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

import structlog

from src.application.facilitation.dto import EngineSnapshot
from src.domain.entities.conversation import (
    ConversationAnalysis,
    GeneratedQuestion,
    QuestionContext,
    SessionSummary,
    opening_analysis,
)
from src.domain.entities.facilitation_state import PhaseEvent, SessionState
from src.domain.ports.facilitation import (
    AnalysisPort,
    Clock,
    QuestionPort,
    SummaryPort,
    TimingPort,
    TranscriptProvider,
)
from src.shared.clock import now_ms

log = structlog.get_logger()

DEFAULT_CHECK_INTERVAL_MS = 15_000
DEFAULT_SETTLE_DELAY_MS = 1_000
DEFAULT_ANALYSIS_REFRESH_MS = 30_000


class FacilitationEngine:
    """Session state machine driving analysis and question generation."""

    def __init__(
        self,
        *,
        analysis: AnalysisPort,
        questions: QuestionPort,
        timing: TimingPort,
        get_transcript: TranscriptProvider,
        summaries: SummaryPort | None = None,
        vibe: str = "mixed",
        check_interval_ms: int = DEFAULT_CHECK_INTERVAL_MS,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS,
        analysis_refresh_ms: int = DEFAULT_ANALYSIS_REFRESH_MS,
        clock: Clock = now_ms,
        name: str = "session",
    ) -> None:
        if check_interval_ms <= 0:
            raise ValueError("check_interval_ms must be a positive number of milliseconds")
        if settle_delay_ms < 0:
            raise ValueError("settle_delay_ms must be >= 0")
        self._analysis = analysis
        self._questions = questions
        self._timing = timing
        self._summaries = summaries
        self._get_transcript = get_transcript
        self._vibe = vibe
        self._check_interval = check_interval_ms / 1000
        self._settle_delay = settle_delay_ms / 1000
        self._analysis_refresh_ms = analysis_refresh_ms
        self._clock = clock
        self._log = log.bind(session=name)

        self._state = SessionState()
        self._enabled = False
        self._closed = False
        self._bootstrap_timer: asyncio.Task | None = None
        self._ticker: asyncio.Task | None = None
        self._check_task: asyncio.Task | None = None
        self._work: set[asyncio.Task] = set()

    # -- read side -------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def vibe(self) -> str:
        return self._vibe

    @property
    def current_question(self) -> GeneratedQuestion | None:
        return self._state.current_question

    @property
    def analysis(self) -> ConversationAnalysis | None:
        return self._state.analysis

    @property
    def asked_questions(self) -> tuple[str, ...]:
        return tuple(self._state.asked_questions)

    @property
    def is_analyzing(self) -> bool:
        return self._state.is_analyzing

    @property
    def is_generating(self) -> bool:
        return self._state.is_generating

    def snapshot(self) -> EngineSnapshot:
        s = self._state
        return EngineSnapshot(
            current_question=s.current_question,
            analysis=s.analysis,
            asked_questions=list(s.asked_questions),
            is_analyzing=s.is_analyzing,
            is_generating=s.is_generating,
            has_shown_first_question=s.has_shown_first_question,
            phase=s.phase,
            enabled=self._enabled,
            vibe=self._vibe,
            last_question_time=s.last_question_time,
            last_analysis_time=s.last_analysis_time,
        )

    # -- lifecycle -------------------------------------------------------

    async def set_enabled(self, enabled: bool) -> None:
        """Enable arms the timers; disable releases them (in-flight calls finish)."""
        if self._closed:
            raise RuntimeError("engine is closed")
        if enabled == self._enabled:
            return
        self._enabled = enabled
        self._log.info("facilitation_enabled" if enabled else "facilitation_disabled")
        if enabled:
            self._sync_timers()
        else:
            self._cancel_timers()

    def set_vibe(self, vibe: str) -> None:
        """Applies to every call started after this one."""
        self._vibe = vibe

    async def aclose(self) -> None:
        """Tear down: cancel timers and any in-flight work, then wait for them."""
        self._closed = True
        self._enabled = False
        self._cancel_timers()
        pending = list(self._work)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._work.clear()
        self._log.info("facilitation_closed", asked=len(self._state.asked_questions))

    def _cancel_timers(self) -> None:
        for timer in (self._bootstrap_timer, self._ticker):
            if timer is not None and not timer.done():
                timer.cancel()
        self._bootstrap_timer = None
        self._ticker = None

    def _sync_timers(self) -> None:
        """Arm whichever timer the current state calls for.

        Bootstrap timer: enabled, nothing shown yet, no question displayed,
        nothing in flight. Periodic ticker: enabled and first question shown.
        """
        if not self._enabled or self._closed:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop, nothing can be scheduled; the next async entry point re-syncs.
            return
        s = self._state
        if s.has_shown_first_question:
            if self._bootstrap_timer is not None and not self._bootstrap_timer.done():
                self._bootstrap_timer.cancel()
            self._bootstrap_timer = None
            if self._ticker is None or self._ticker.done():
                self._ticker = asyncio.create_task(self._tick_forever(), name="facilitation-ticker")
            return
        if s.current_question is None and not s.is_busy:
            if self._bootstrap_timer is None or self._bootstrap_timer.done():
                self._bootstrap_timer = asyncio.create_task(
                    self._bootstrap_after_settle(),
                    name="facilitation-bootstrap",
                )

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._work.add(task)
        task.add_done_callback(self._work.discard)
        return task

    async def _bootstrap_after_settle(self) -> None:
        await asyncio.sleep(self._settle_delay)
        self._bootstrap_timer = None
        s = self._state
        if self._enabled and not s.has_shown_first_question and s.current_question is None and not s.is_busy:
            self._log.info("first_question_triggered")
            self._spawn(self.generate_question(), "facilitation-first-question")

    async def _tick_forever(self) -> None:
        while True:
            await asyncio.sleep(self._check_interval)
            if self._check_task is not None and not self._check_task.done():
                continue
            self._check_task = self._spawn(self.check_and_ask(), "facilitation-check")

    # -- transitions -----------------------------------------------------

    def _context(self, analysis: ConversationAnalysis, transcript: str) -> QuestionContext:
        return QuestionContext(
            vibe=self._vibe,
            conversation_analysis=analysis,
            recent_transcript=transcript,
            asked_questions=list(self._state.asked_questions),
        )

    def _finish(self) -> None:
        self._state.apply(PhaseEvent.COMPLETE)
        self._sync_timers()

    def _record_question(self, question: GeneratedQuestion) -> None:
        s = self._state
        s.record_question(question, self._clock())
        s.has_shown_first_question = True
        self._log.info(
            "question_shown",
            domain=question.domain.value,
            asked=len(s.asked_questions),
        )

    async def analyze_now(self) -> bool:
        """Refresh the domain analysis. Returns False if dropped or failed."""
        if not self._state.apply(PhaseEvent.START_ANALYSIS):
            self._log.debug("analysis_dropped", phase=self._state.phase.value)
            return False
        try:
            transcript = self._get_transcript()
            self._log.debug("analysis_started", transcript_length=len(transcript))
            result = await self._analysis.analyze_conversation(
                transcript,
                self._vibe,
                list(self._state.asked_questions),
            )
            self._state.record_analysis(result, self._clock())
            self._log.info(
                "analysis_complete",
                depth=result.connection_depth,
                suggested=result.suggested_domain.value,
            )
            return True
        except Exception:
            self._log.exception("analysis_failed")
            return False
        finally:
            self._finish()

    async def generate_question(self) -> bool:
        """Generate and show a question from the current (or opening) analysis."""
        if not self._state.apply(PhaseEvent.START_GENERATION):
            self._log.debug("generation_dropped", phase=self._state.phase.value)
            return False
        try:
            analysis = self._state.analysis or opening_analysis()
            question = await self._questions.generate_question(
                self._context(analysis, self._get_transcript())
            )
            self._record_question(question)
            return True
        except Exception:
            self._log.exception("generation_failed")
            return False
        finally:
            self._finish()

    async def check_and_ask(self) -> bool:
        """One periodic check. Returns True if a new question was shown."""
        s = self._state
        if not self._enabled or s.is_generating or s.current_question is not None:
            return False

        transcript = self._get_transcript()
        now = self._clock()
        if now - s.last_analysis_time > self._analysis_refresh_ms:
            await self.analyze_now()

        should_ask = await self._timing.should_ask_question(transcript, s.last_question_time, now)
        self._log.debug("timing_checked", should_ask=should_ask)
        if not should_ask:
            return False
        # Caller actions may have run while we were awaiting.
        if not self._enabled or s.current_question is not None:
            return False
        return await self.generate_question()

    def dismiss_question(self) -> None:
        """Clear the displayed question; history and timers are untouched."""
        self._state.current_question = None
        self._sync_timers()

    def skip_question(self) -> None:
        """Same effect as dismiss; kept as a separate action for callers."""
        self._state.current_question = None
        self._sync_timers()

    async def force_next_question(self) -> bool:
        """Clear the current question now, then analyze and generate back to back.

        Bypasses the timing oracle and the analysis freshness gate. A failing
        step leaves state as it was before that step.
        """
        self._state.current_question = None
        if not self._state.apply(PhaseEvent.START_FORCE_NEXT):
            self._log.info("force_next_dropped", phase=self._state.phase.value)
            self._sync_timers()
            return False

        try:
            transcript = self._get_transcript()
            self._log.info("force_next_started", transcript_length=len(transcript))
            try:
                analysis = await self._analysis.analyze_conversation(
                    transcript,
                    self._vibe,
                    list(self._state.asked_questions),
                )
            except Exception:
                self._log.exception("force_next_analysis_failed")
                return False
            self._state.record_analysis(analysis, self._clock())

            try:
                question = await self._questions.generate_question(self._context(analysis, transcript))
            except Exception:
                self._log.exception("force_next_generation_failed")
                return False
            self._record_question(question)
            return True
        finally:
            self._finish()

    async def summarize(self, duration_minutes: int) -> SessionSummary:
        """Reflection summary over the full transcript."""
        if self._summaries is None:
            raise RuntimeError("no summary client configured")
        return await self._summaries.generate_session_summary(
            self._get_transcript(),
            self._vibe,
            duration_minutes,
            len(self._state.asked_questions),
        )
