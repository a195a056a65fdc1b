"""Terminal front end for the practice sessions."""
import asyncio
import logging
import time
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from lexilearn.config import settings
from lexilearn.exceptions import GenerationError, ValidationError
from lexilearn.models.base import SessionLocal, init_db
from lexilearn.models.practice_models import SpellingTestConfig, TypingMode, TypingTestConfig
from lexilearn.models.session_models import (
    Advance,
    Check,
    Configure,
    InputChanged,
    Repeat,
    Replay,
    RetryReset,
    Reveal,
    SpellingPhase,
    SpellingState,
    Tick,
    TypingPhase,
    TypingState,
)
from lexilearn.monitoring import start_monitoring
from lexilearn.services.announcer import Announcer, GttsAnnouncer
from lexilearn.services.content_generator import ContentGenerator
from lexilearn.services.gemini_client import GeminiClient
from lexilearn.services.performance_store import PerformanceStore
from lexilearn.services.practice_service import PracticeService, ProgressReport
from lexilearn.services.storage import SqlKeyValueStore
from lexilearn.services.typing_test import character_states, live_metrics

REVEAL_COMMAND = "?"
REPEAT_COMMAND = "!"


async def ainput(prompt: str = "") -> str:
    """Read a line without blocking the event loop."""
    return await asyncio.to_thread(input, prompt)


class LexiLearnApp:
    """Main application class."""

    def __init__(
        self,
        service: Optional[PracticeService] = None,
        read_line: Callable = ainput,
        write: Callable[[str], None] = print,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the application."""
        self.service = service
        self.read_line = read_line
        self.write = write
        self.clock = clock
        self.db: Optional[Session] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    def start(self, announcer: Optional[Announcer] = None) -> None:
        """Open the database and build the services."""
        if self.running:
            return

        if self.service is None:
            init_db()
            self.db = SessionLocal()
            self.logger.info("Database initialized")

            self.service = PracticeService(
                generator=ContentGenerator(GeminiClient()),
                performance=PerformanceStore(SqlKeyValueStore(self.db)),
                announcer=announcer or GttsAnnouncer(),
                notify=lambda message: self.write(f"! {message}"),
                clock=self.clock,
            )
            self.logger.info("Practice service created")

        if settings.monitoring.port:
            start_monitoring(settings.monitoring.port)
            self.logger.info(f"Metrics exporter listening on port {settings.monitoring.port}")

        self.running = True

    async def stop(self) -> None:
        """Stop the application."""
        if not self.running:
            return

        try:
            if self.service:
                await self.service.close()
                self.logger.info("Practice service closed")

            if self.db:
                self.db.close()
                self.db = None
                self.logger.info("Database session closed")
        finally:
            self.running = False

    # Spelling

    async def run_spelling(self, config: SpellingTestConfig) -> Optional[SpellingState]:
        """Run one spelling test in the terminal."""
        try:
            state = await self.service.start_spelling_test(config)
        except (GenerationError, ValidationError) as e:
            self.write(f"! {e}")
            return None

        self.write(f"Spell each word you hear. '{REVEAL_COMMAND}' reveals the word, '{REPEAT_COMMAND}' repeats it.")
        while state.phase != SpellingPhase.FINISHED:
            if state.word_is_finished:
                self._write_word_feedback(state)
                await self.read_line("Press Enter for the next word ")
                state = self.service.handle_spelling(state, Advance(at=self.clock()))
                continue

            remaining = state.max_attempts - state.attempts
            line = await self.read_line(f"[{state.index + 1}/{len(state.words)}] ({remaining} tries left) > ")
            command = line.strip()
            if command == REVEAL_COMMAND:
                state = self.service.handle_spelling(state, Reveal(state.user_input))
            elif command == REPEAT_COMMAND:
                state = self.service.handle_spelling(state, Repeat())
            else:
                state = self.service.handle_spelling(state, Check(line, at=self.clock()))
                if state.phase == SpellingPhase.FEEDBACK and not state.word_is_finished:
                    self.write("Not quite, try again.")
                    await asyncio.sleep(state.retry_delay)
                    state = self.service.handle_spelling(state, RetryReset())

        self._write_spelling_summary(state)
        return state

    def _write_word_feedback(self, state: SpellingState) -> None:
        attempt = state.current_attempt
        if attempt.correct:
            self.write(f"Correct! '{attempt.word}'")
        else:
            self.write(f"The word was '{attempt.word}' ({' '.join(attempt.word)})")

    def _write_spelling_summary(self, state: SpellingState) -> None:
        summary = state.summary
        correct = len(summary.correct_words)
        self.write(f"Test complete! You scored {correct} out of {len(summary.words)} ({summary.accuracy:.0f}%)")
        for attempt in summary.words:
            mark = "+" if attempt.correct else "-"
            note = f" (you wrote: {attempt.user_input})" if not attempt.correct and attempt.user_input else ""
            self.write(f"  {mark} {attempt.word}{note}")
        if summary.typing_speed_wpm:
            self.write(f"Typing speed on correct words: {summary.typing_speed_wpm:.0f} WPM")

    # Typing

    async def run_typing(self, config: TypingTestConfig) -> TypingState:
        """Run one typing test in the terminal.

        The terminal delivers whole lines, so each line is replayed to the
        state machine one character at a time with the elapsed seconds
        ticked in before its last character.
        """
        state = await self.service.handle_typing(TypingState(), Configure(config))
        if state.phase != TypingPhase.READY:
            return state

        if config.mode == TypingMode.READ:
            self.write(state.sentence)
        else:
            self.write(f"Listen and type ('{REPEAT_COMMAND}' on an empty prompt repeats the sentence).")

        started: Optional[float] = None
        ticks = 0
        while state.phase in (TypingPhase.READY, TypingPhase.TYPING):
            line = await self.read_line("> ")
            if line == REPEAT_COMMAND and not state.user_input:
                state = await self.service.handle_typing(state, Replay())
                continue
            line = line[:len(state.sentence) - len(state.user_input)]
            if not line:
                continue
            if started is None:
                started = self.clock()

            typed = state.user_input
            for char in line[:-1]:
                typed += char
                state = await self.service.handle_typing(state, InputChanged(typed))
            due = int(self.clock() - started) - ticks
            for _ in range(max(0, due)):
                state = await self.service.handle_typing(state, Tick())
            ticks += max(0, due)
            state = await self.service.handle_typing(state, InputChanged(typed + line[-1]))

            if state.phase == TypingPhase.TYPING:
                metrics = live_metrics(state)
                left = len(state.sentence) - len(state.user_input)
                self.write(f"{left} characters left, {metrics.wpm} WPM, accuracy {metrics.accuracy:.0f}%")
                self._write_mistakes(state)

        result = state.result
        self.write(
            f"Done! {result.wpm} WPM, {result.cpm} CPM, accuracy {result.accuracy:.0f}%, "
            f"{result.error_count} errors in {result.time}s"
        )
        return state

    def _write_mistakes(self, state: TypingState) -> None:
        """Point at typed characters that do not match the sentence."""
        marks = "".join("^" if mark == "incorrect" else " " for _, mark in character_states(state) if mark != "pending")
        if marks.strip():
            self.write(f"  {state.user_input}\n  {marks.rstrip()}")

    # Progress

    async def show_progress(self, force: bool = False) -> ProgressReport:
        report = await self.service.progress_report(force=force)
        self.write(self.format_progress(report))
        return report

    @staticmethod
    def format_progress(report: ProgressReport) -> str:
        lines: List[str] = []
        if not report.spelling_history and not report.typing_history:
            return "No practice history yet."

        if report.spelling_history:
            lines.append("Spelling tests")
            for row in report.spelling_chart:
                wpm = f"{row['wpm']} WPM" if row["wpm"] is not None else "-"
                lines.append(f"  {row['date']:>6}  accuracy {row['accuracy']:>3}%  {wpm}")
        if report.typing_history:
            lines.append("Typing tests")
            for row in report.typing_chart:
                lines.append(
                    f"  {row['date']:>6}  {row['wpm']:>3} WPM  accuracy {row['accuracy']:>3}%  errors {row['errors']}"
                )
        if report.common_mistakes:
            lines.append("Words to practise: " + ", ".join(report.common_mistakes))
        if report.analysis_error:
            lines.append(f"! {report.analysis_error}")
        for category in report.categories:
            lines.append(f"  {category.category}: {category.count}")
        return "\n".join(lines)
