"""Service that runs practice sessions against generation, speech and storage."""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from lexilearn.exceptions import GenerationError, ValidationError
from lexilearn.models.practice_models import (
    HistoryKind,
    MistakeCategory,
    SpellingSession,
    SpellingTestConfig,
    TypingSession,
)
from lexilearn.models.session_models import (
    Effect,
    Notify,
    PersistSpelling,
    PersistTyping,
    RememberConfig,
    RequestSentence,
    ScheduleRetryReset,
    SentenceFailed,
    SentenceLoaded,
    Speak,
    SpellingEvent,
    SpellingState,
    SpellOut,
    StartTimer,
    StopTimer,
    TypingEvent,
    TypingState,
)
from lexilearn.monitoring import sessions_completed, word_outcomes
from lexilearn.services import spelling_test, typing_test
from lexilearn.services.announcer import Announcer, NullAnnouncer
from lexilearn.services.content_generator import ContentGenerator, SentenceRequest, WordListRequest
from lexilearn.services.performance_store import PerformanceStore
from lexilearn.services.scoring import round_half_up
from lexilearn.services.timers import Callback, OneShotTimer, RepeatingTimer


logger = logging.getLogger(__name__)

WORD_LIST_ERROR = "Failed to generate word list. Please try again."
SENTENCE_ERROR = "Failed to generate a sentence. Please try again."
ANALYSIS_ERROR = "Failed to categorize mistakes."


def _chart_date(value: datetime) -> str:
    local = value.astimezone()
    return f"{local:%b} {local.day}"


@dataclass
class ProgressReport:
    """Everything the progress view shows."""
    spelling_history: List[SpellingSession] = field(default_factory=list)
    typing_history: List[TypingSession] = field(default_factory=list)
    common_mistakes: List[str] = field(default_factory=list)
    categories: List[MistakeCategory] = field(default_factory=list)
    analysis_error: Optional[str] = None

    @property
    def spelling_chart(self) -> List[Dict[str, Any]]:
        """Oldest-first points for the spelling accuracy/WPM chart."""
        return [
            {
                "date": _chart_date(session.date),
                "accuracy": round_half_up(session.accuracy),
                "wpm": round_half_up(session.typing_speed_wpm) if session.typing_speed_wpm else None,
            }
            for session in reversed(self.spelling_history)
        ]

    @property
    def typing_chart(self) -> List[Dict[str, Any]]:
        """Oldest-first points for the typing WPM/accuracy/errors chart."""
        return [
            {
                "date": _chart_date(session.date),
                "wpm": round_half_up(session.wpm),
                "accuracy": round_half_up(session.accuracy),
                "errors": session.error_count or 0,
            }
            for session in reversed(self.typing_history)
        ]


class PracticeService:
    """Glue between the session state machines and their collaborators."""

    def __init__(
        self,
        generator: ContentGenerator,
        performance: PerformanceStore,
        announcer: Optional[Announcer] = None,
        notify: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.generator = generator
        self.performance = performance
        self.announcer = announcer or NullAnnouncer()
        self.notify = notify
        self.clock = clock
        self.retry_timer = OneShotTimer()
        self.typing_timer: Optional[RepeatingTimer] = None

    # Spelling

    async def start_spelling_test(self, config: SpellingTestConfig) -> SpellingState:
        """Generate a personalised word list and start a session on it."""
        request = WordListRequest.for_config(config, self.performance.summarize_past_performance())
        self.performance.remember_spelling_config(config)
        try:
            words = await self.generator.generate_word_list(request)
        except GenerationError as e:
            logger.error(f"AI generation failed: {e}")
            raise GenerationError(WORD_LIST_ERROR) from e

        state, effects = spelling_test.start_session(config, words, at=self.clock())
        self._run_effects(effects)
        return state

    async def restart_spelling_test(self) -> SpellingState:
        """Start a new session with the last spelling configuration."""
        config = self.performance.recall_spelling_config()
        if config is None:
            raise ValidationError("No previous spelling test configuration")
        return await self.start_spelling_test(config)

    def handle_spelling(
        self,
        state: SpellingState,
        event: SpellingEvent,
        on_retry_reset: Optional[Callback] = None,
    ) -> SpellingState:
        """Apply ``event`` and carry out its effects.

        ``on_retry_reset`` is called after the pause that follows a wrong
        attempt; without it the caller is responsible for sending RetryReset.
        """
        state, effects = spelling_test.transition(state, event)
        for effect in effects:
            if isinstance(effect, ScheduleRetryReset):
                if on_retry_reset is not None:
                    self.retry_timer.schedule(effect.delay, on_retry_reset)
            else:
                self._run_effect(effect)
        return state

    # Typing

    async def handle_typing(
        self,
        state: TypingState,
        event: TypingEvent,
        on_tick: Optional[Callback] = None,
    ) -> TypingState:
        """Apply ``event``, fetching sentences and driving the timer as needed.

        ``on_tick`` is invoked every second while typing; it should feed a
        Tick event back into this method.
        """
        state, effects = typing_test.transition(state, event)
        for effect in effects:
            if isinstance(effect, RequestSentence):
                follow_up = await self._fetch_sentence(effect)
                state = await self.handle_typing(state, follow_up, on_tick)
            elif isinstance(effect, StartTimer):
                self._stop_typing_timer()
                if on_tick is not None:
                    self.typing_timer = RepeatingTimer(on_tick, interval=1.0)
                    self.typing_timer.start()
            elif isinstance(effect, StopTimer):
                self._stop_typing_timer()
            else:
                self._run_effect(effect)
        return state

    async def _fetch_sentence(self, effect: RequestSentence) -> TypingEvent:
        try:
            sentence = await self.generator.generate_sentence(SentenceRequest.for_config(effect.config))
        except (GenerationError, ValidationError) as e:
            logger.error(f"AI sentence generation failed: {e}")
            return SentenceFailed(SENTENCE_ERROR)
        return SentenceLoaded(sentence)

    def _stop_typing_timer(self) -> None:
        if self.typing_timer is not None:
            self.typing_timer.stop()
            self.typing_timer = None

    # Effects

    def _run_effects(self, effects: List[Effect]) -> None:
        for effect in effects:
            self._run_effect(effect)

    def _run_effect(self, effect: Effect) -> None:
        if isinstance(effect, Speak):
            self.announcer.play(effect.text, effect.rate)
        elif isinstance(effect, SpellOut):
            self.announcer.spell_out(effect.word)
        elif isinstance(effect, PersistSpelling):
            self._record_spelling(effect.session)
        elif isinstance(effect, PersistTyping):
            if self.performance.append_session(HistoryKind.TYPING, effect.session):
                sessions_completed.labels(kind=HistoryKind.TYPING.value).inc()
        elif isinstance(effect, RememberConfig):
            self.performance.remember_typing_config(effect.config)
        elif isinstance(effect, Notify):
            logger.warning(effect.message)
            if self.notify is not None:
                self.notify(effect.message)
        else:
            logger.debug(f"Effect left to the caller: {effect!r}")

    def _record_spelling(self, session: SpellingSession) -> None:
        for attempt in session.words:
            word_outcomes.labels(outcome="correct" if attempt.correct else "incorrect").inc()
        if self.performance.append_session(HistoryKind.SPELLING, session):
            sessions_completed.labels(kind=HistoryKind.SPELLING.value).inc()

    # Progress

    async def progress_report(self, force: bool = False) -> ProgressReport:
        """Histories plus mistake categories, served from cache unless forced."""
        report = ProgressReport(
            spelling_history=self.performance.spelling_history(),
            typing_history=self.performance.typing_history(),
            common_mistakes=self.performance.common_mistakes(),
        )
        if not report.common_mistakes:
            return report

        cached = self.performance.read_cached_analysis()
        if cached is not None and not force:
            report.categories = cached
            return report

        try:
            report.categories = await self.generator.categorize_mistakes(report.common_mistakes)
        except GenerationError as e:
            logger.error(f"AI categorization failed: {e}")
            report.analysis_error = ANALYSIS_ERROR
            return report
        self.performance.write_cached_analysis(report.categories)
        return report

    async def close(self) -> None:
        """Cancel timers and speech, and release the model client."""
        self.retry_timer.cancel()
        self._stop_typing_timer()
        await self.announcer.aclose()
        aclose = getattr(self.generator.model, "aclose", None)
        if aclose is not None:
            await aclose()
