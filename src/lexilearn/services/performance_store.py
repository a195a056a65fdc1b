"""Service for persisting practice history and cached analysis."""
import json
import logging
from typing import Any, List, Optional, Union

from lexilearn.config import settings
from lexilearn.exceptions import StorageError
from lexilearn.models.practice_models import (
    HistoryKind,
    MistakeCategory,
    SpellingSession,
    SpellingTestConfig,
    TypingSession,
    TypingTestConfig,
)
from lexilearn.monitoring import storage_errors
from lexilearn.services.scoring import round_half_up
from lexilearn.services.storage import KeyValueStore


logger = logging.getLogger(__name__)

SPELLING_HISTORY_KEY = "lexiLearnHistory"
TYPING_HISTORY_KEY = "lexiLearnTypingHistory"
ANALYSIS_KEY = "lexiLearnAnalysis"
TYPING_CONFIG_KEY = "lexiLearnTypingConfig"
SPELLING_CONFIG_KEY = "lexiLearnTestConfig"

NO_DATA_MESSAGE = "No past performance data available."
ERROR_MESSAGE = "Error retrieving past performance data."

HISTORY_KEYS = {
    HistoryKind.SPELLING: SPELLING_HISTORY_KEY,
    HistoryKind.TYPING: TYPING_HISTORY_KEY,
}

# Failures that mean "the stored data is unusable"
READ_ERRORS = (StorageError, ValueError, KeyError, TypeError)

Session = Union[SpellingSession, TypingSession]


class PerformanceStore:
    """History of finished sessions plus the mistake analysis cache."""

    def __init__(
        self,
        store: KeyValueStore,
        history_limit: Optional[int] = None,
        summary_sessions: Optional[int] = None,
        summary_max_words: Optional[int] = None,
    ):
        self.store = store
        self.history_limit = history_limit or settings.practice.history_limit
        self.summary_sessions = summary_sessions or settings.practice.summary_sessions
        self.summary_max_words = summary_max_words or settings.practice.summary_max_words

    def _load_json(self, key: str) -> Any:
        raw = self.store.get(key)
        return json.loads(raw) if raw else None

    def _save_json(self, key: str, value: Any) -> None:
        self.store.set(key, json.dumps(value))

    def _load_records(self, kind: HistoryKind) -> List[dict]:
        records = self._load_json(HISTORY_KEYS[kind])
        if records is None:
            return []
        if not isinstance(records, list):
            raise ValueError(f"{kind.value} history is not a list")
        return records

    def append_session(self, kind: HistoryKind, session: Session) -> bool:
        """Prepend a finished session to its history.

        Returns False when the store could not be updated.
        """
        try:
            records = self._load_records(kind)
            records.insert(0, session.to_dict())
            del records[self.history_limit:]
            if kind == HistoryKind.SPELLING:
                # Old analysis no longer covers the new mistakes
                self.store.delete(ANALYSIS_KEY)
            self._save_json(HISTORY_KEYS[kind], records)
        except READ_ERRORS as e:
            logger.error(f"Failed to save {kind.value} test result: {e}")
            storage_errors.labels(operation="append_session").inc()
            return False
        logger.info(f"Saved {kind.value} result ({len(records)} in history)")
        return True

    def read_history(self, kind: HistoryKind) -> List[Session]:
        """Newest-first sessions of ``kind``; empty when unreadable."""
        record_type = SpellingSession if kind == HistoryKind.SPELLING else TypingSession
        try:
            return [record_type.from_dict(record) for record in self._load_records(kind)]
        except READ_ERRORS as e:
            logger.error(f"Failed to get {kind.value} test history: {e}")
            storage_errors.labels(operation="read_history").inc()
            return []

    def spelling_history(self) -> List[SpellingSession]:
        return self.read_history(HistoryKind.SPELLING)

    def typing_history(self) -> List[TypingSession]:
        return self.read_history(HistoryKind.TYPING)

    def read_cached_analysis(self) -> Optional[List[MistakeCategory]]:
        try:
            cached = self._load_json(ANALYSIS_KEY)
            if cached is None:
                return None
            return [MistakeCategory.from_dict(item) for item in cached]
        except READ_ERRORS as e:
            logger.error(f"Failed to get cached analysis: {e}")
            storage_errors.labels(operation="read_cached_analysis").inc()
            return None

    def write_cached_analysis(self, categories: List[MistakeCategory]) -> None:
        try:
            self._save_json(ANALYSIS_KEY, [category.to_dict() for category in categories])
        except StorageError as e:
            logger.error(f"Failed to save analysis: {e}")
            storage_errors.labels(operation="write_cached_analysis").inc()

    def summarize_past_performance(self) -> str:
        """Short digest of recent spelling sessions for the word list prompt."""
        try:
            records = self._load_records(HistoryKind.SPELLING)
            if not records:
                return NO_DATA_MESSAGE
            lines = [
                self._describe_session(SpellingSession.from_dict(record))
                for record in records[:self.summary_sessions]
            ]
        except READ_ERRORS as e:
            logger.error(f"Failed to get past performance data: {e}")
            storage_errors.labels(operation="summarize_past_performance").inc()
            return ERROR_MESSAGE

        summary = "\n".join(lines)
        words = summary.split()
        if len(words) > self.summary_max_words:
            return " ".join(words[:self.summary_max_words]) + "..."
        return summary

    @staticmethod
    def _describe_session(session: SpellingSession) -> str:
        local_date = session.date.astimezone()
        return (
            f"On {local_date.month}/{local_date.day}/{local_date.year}, "
            f"for grade {session.grade_level} ({session.difficulty} {session.vocab_type}), "
            f"accuracy was {round_half_up(session.accuracy)}%. "
            f"Correct: [{', '.join(session.correct_words)}]. "
            f"Incorrect: [{', '.join(session.incorrect_words)}]."
        )

    def common_mistakes(self) -> List[str]:
        """Unique lower-cased misspelled words, in first-seen order."""
        mistakes: List[str] = []
        for session in self.spelling_history():
            for word in session.incorrect_words:
                word = word.lower()
                if word not in mistakes:
                    mistakes.append(word)
        return mistakes

    def remember_spelling_config(self, config: SpellingTestConfig) -> None:
        try:
            self._save_json(SPELLING_CONFIG_KEY, config.to_dict())
        except StorageError as e:
            logger.error(f"Failed to save spelling config: {e}")
            storage_errors.labels(operation="remember_config").inc()

    def recall_spelling_config(self) -> Optional[SpellingTestConfig]:
        try:
            data = self._load_json(SPELLING_CONFIG_KEY)
            return SpellingTestConfig.from_dict(data) if data else None
        except READ_ERRORS as e:
            logger.error(f"Failed to parse stored spelling config: {e}")
            return None

    def remember_typing_config(self, config: TypingTestConfig) -> None:
        try:
            self._save_json(TYPING_CONFIG_KEY, config.to_dict())
        except StorageError as e:
            logger.error(f"Failed to save typing config: {e}")
            storage_errors.labels(operation="remember_config").inc()

    def recall_typing_config(self) -> Optional[TypingTestConfig]:
        try:
            data = self._load_json(TYPING_CONFIG_KEY)
            return TypingTestConfig.from_dict(data) if data else None
        except READ_ERRORS as e:
            logger.error(f"Failed to parse stored typing config: {e}")
            return None
