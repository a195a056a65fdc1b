"""States, events and effects of the practice session state machines."""
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Optional, Tuple, Union

from lexilearn.models.practice_models import (
    SpellingSession,
    SpellingTestConfig,
    TypingSession,
    TypingTestConfig,
    WordAttempt,
)


class SpellingPhase(Enum):
    """Phases of a spelling test."""
    ONGOING = "ongoing"  # Awaiting input for the current word
    FEEDBACK = "feedback"  # An attempt was just checked
    REVEALED = "revealed"  # User gave up on the current word
    FINISHED = "finished"  # All words done, summary produced


class TypingPhase(Enum):
    """Phases of a typing test."""
    CONFIGURING = "configuring"
    LOADING = "loading"  # Waiting for the generated sentence
    READY = "ready"  # Sentence presented, no keystrokes yet
    TYPING = "typing"  # Timer running
    FINISHED = "finished"


@dataclass(frozen=True)
class SpellingState:
    """Snapshot of a spelling test."""
    config: SpellingTestConfig
    words: Tuple[WordAttempt, ...]
    index: int = 0
    phase: SpellingPhase = SpellingPhase.ONGOING
    attempts: int = 0
    user_input: str = ""
    word_started_at: float = 0.0
    correct_time: float = 0.0  # seconds spent on correctly spelled words
    correct_chars: int = 0
    max_attempts: int = 3
    retry_delay: float = 1.0
    summary: Optional[SpellingSession] = None

    @property
    def current_attempt(self) -> WordAttempt:
        return self.words[self.index]

    @property
    def current_word(self) -> str:
        return self.current_attempt.word

    @property
    def word_is_finished(self) -> bool:
        return not self.current_attempt.is_pending or self.phase == SpellingPhase.REVEALED

    @property
    def has_attempts_left(self) -> bool:
        return self.attempts < self.max_attempts

    @property
    def is_last_word(self) -> bool:
        return self.index >= len(self.words) - 1


@dataclass(frozen=True)
class TypingState:
    """Snapshot of a typing test."""
    phase: TypingPhase = TypingPhase.CONFIGURING
    config: Optional[TypingTestConfig] = None
    sentence: str = ""
    user_input: str = ""
    time: int = 0  # seconds since the first keystroke
    error_count: int = 0  # every mistyped keystroke, never decremented
    result: Optional[TypingSession] = None


# Spelling events

@dataclass(frozen=True)
class Check:
    """Submit an attempt for the current word."""
    user_input: str
    at: float


@dataclass(frozen=True)
class RetryReset:
    """The pause after a wrong attempt has elapsed."""


@dataclass(frozen=True)
class Reveal:
    """Give up on the current word."""
    user_input: str = ""


@dataclass(frozen=True)
class Advance:
    """Move past the finished current word."""
    at: float
    date: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class Repeat:
    """Say the current word again."""


SpellingEvent = Union[Check, RetryReset, Reveal, Advance, Repeat]


# Typing events

@dataclass(frozen=True)
class Configure:
    """Request a sentence for the given configuration."""
    config: TypingTestConfig


@dataclass(frozen=True)
class SentenceLoaded:
    sentence: str


@dataclass(frozen=True)
class SentenceFailed:
    message: str


@dataclass(frozen=True)
class InputChanged:
    """The full content of the typing field after a keystroke."""
    value: str
    date: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class Tick:
    """One second of the typing timer."""


@dataclass(frozen=True)
class Replay:
    """Speak the sentence again."""


@dataclass(frozen=True)
class Reset:
    """Return to configuration."""


@dataclass(frozen=True)
class Restart:
    """Start again with the last configuration."""


TypingEvent = Union[Configure, SentenceLoaded, SentenceFailed, InputChanged, Tick, Replay, Reset, Restart]


# Effects

@dataclass(frozen=True)
class Speak:
    text: str
    rate: float = 1.0


@dataclass(frozen=True)
class SpellOut:
    """Say the word, each of its letters, then the word again."""
    word: str


@dataclass(frozen=True)
class ScheduleRetryReset:
    delay: float


@dataclass(frozen=True)
class PersistSpelling:
    session: SpellingSession


@dataclass(frozen=True)
class PersistTyping:
    session: TypingSession


@dataclass(frozen=True)
class RequestSentence:
    config: TypingTestConfig


@dataclass(frozen=True)
class RememberConfig:
    config: TypingTestConfig


@dataclass(frozen=True)
class StartTimer:
    pass


@dataclass(frozen=True)
class StopTimer:
    pass


@dataclass(frozen=True)
class Notify:
    message: str


Effect = Union[
    Speak,
    SpellOut,
    ScheduleRetryReset,
    PersistSpelling,
    PersistTyping,
    RequestSentence,
    RememberConfig,
    StartTimer,
    StopTimer,
    Notify,
]
