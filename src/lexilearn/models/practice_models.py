"""Models for practice sessions, their configuration and results."""
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from lexilearn.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


class Difficulty(Enum):
    """Difficulty of generated words and sentences."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class VocabType(Enum):
    """Vocabulary domains for spelling word lists."""
    GENERAL = "general"
    SCIENCE = "science"
    HISTORY = "history"


class TypingTopic(Enum):
    """Topics for typing sentences."""
    GENERAL = "general"
    SCIENCE = "science"
    HISTORY = "history"
    FACTS = "facts"


class TypingMode(Enum):
    """How the typing sentence is presented."""
    READ = "read"  # Sentence is shown
    SPEECH = "speech"  # Sentence is spoken


class HistoryKind(Enum):
    """Kinds of persisted session history."""
    SPELLING = "spelling"
    TYPING = "typing"


MIN_GRADE_LEVEL = 1
MAX_GRADE_LEVEL = 12
MIN_SPELLING_WORDS = 1
MAX_SPELLING_WORDS = 100
MIN_TYPING_WORDS = 5
MAX_TYPING_WORDS = 100
DEFAULT_TYPING_WORDS = 20


def coerce_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    """Convert a raw value into a member of ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}") from None


def coerce_int(value: Any, field_name: str, minimum: int, maximum: int) -> int:
    """Convert a raw value into an int within [minimum, maximum]."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if number < minimum or number > maximum:
        raise ValidationError(f"{field_name} must be between {minimum} and {maximum}")
    return number


def parse_date(value: Any) -> datetime:
    """Parse a stored ISO-8601 date, defaulting naive values to UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_date(value: datetime) -> str:
    """Format a date the way history records store it."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class SpellingTestConfig:
    """Settings chosen for a spelling test."""
    grade_level: int
    difficulty: Difficulty = Difficulty.MEDIUM
    vocab_type: VocabType = VocabType.GENERAL
    word_count: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "grade_level", coerce_int(self.grade_level, "gradeLevel", MIN_GRADE_LEVEL, MAX_GRADE_LEVEL))
        object.__setattr__(self, "difficulty", coerce_enum(Difficulty, self.difficulty, "difficulty"))
        object.__setattr__(self, "vocab_type", coerce_enum(VocabType, self.vocab_type, "vocabType"))
        if self.word_count is not None:
            object.__setattr__(self, "word_count", coerce_int(self.word_count, "wordCount", MIN_SPELLING_WORDS, MAX_SPELLING_WORDS))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "gradeLevel": self.grade_level,
            "difficulty": self.difficulty.value,
            "vocabType": self.vocab_type.value,
        }
        if self.word_count is not None:
            data["wordCount"] = self.word_count
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpellingTestConfig":
        if not isinstance(data, dict) or "gradeLevel" not in data:
            raise ValidationError("gradeLevel is required")
        return cls(
            grade_level=data["gradeLevel"],
            difficulty=data.get("difficulty", Difficulty.MEDIUM.value),
            vocab_type=data.get("vocabType", VocabType.GENERAL.value),
            word_count=data.get("wordCount"),
        )


@dataclass(frozen=True)
class TypingTestConfig:
    """Settings chosen for a typing test."""
    difficulty: Difficulty = Difficulty.MEDIUM
    topic: TypingTopic = TypingTopic.GENERAL
    mode: TypingMode = TypingMode.READ
    word_count: int = DEFAULT_TYPING_WORDS

    def __post_init__(self):
        object.__setattr__(self, "difficulty", coerce_enum(Difficulty, self.difficulty, "difficulty"))
        object.__setattr__(self, "topic", coerce_enum(TypingTopic, self.topic, "topic"))
        object.__setattr__(self, "mode", coerce_enum(TypingMode, self.mode, "mode"))
        object.__setattr__(self, "word_count", coerce_int(self.word_count, "wordCount", MIN_TYPING_WORDS, MAX_TYPING_WORDS))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "difficulty": self.difficulty.value,
            "topic": self.topic.value,
            "mode": self.mode.value,
            "wordCount": self.word_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypingTestConfig":
        if not isinstance(data, dict):
            raise ValidationError("typing configuration must be an object")
        return cls(
            difficulty=data.get("difficulty", Difficulty.MEDIUM.value),
            topic=data.get("topic", TypingTopic.GENERAL.value),
            mode=data.get("mode", TypingMode.READ.value),
            word_count=data.get("wordCount", DEFAULT_TYPING_WORDS),
        )


@dataclass(frozen=True)
class WordAttempt:
    """Outcome of one word in a spelling session.

    ``correct`` is None while the word is pending and is set exactly once.
    """
    word: str
    correct: Optional[bool] = None
    user_input: str = ""

    @property
    def is_pending(self) -> bool:
        return self.correct is None

    def resolve(self, correct: bool, user_input: str) -> "WordAttempt":
        """Return the resolved attempt; a resolved attempt cannot change again."""
        if not self.is_pending:
            raise ValueError(f"Attempt for '{self.word}' is already resolved")
        return replace(self, correct=correct, user_input=user_input)

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "correct": bool(self.correct)}


def spelling_accuracy(words: List[WordAttempt]) -> float:
    """Percentage of words spelled correctly."""
    if not words:
        return 0.0
    correct = sum(1 for attempt in words if attempt.correct)
    return correct / len(words) * 100


@dataclass
class SpellingSession:
    """A finished spelling session as stored in history."""
    grade_level: int
    difficulty: str
    vocab_type: str
    words: List[WordAttempt]
    typing_speed_wpm: Optional[float] = None
    date: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def accuracy(self) -> float:
        return spelling_accuracy(self.words)

    @property
    def correct_words(self) -> List[str]:
        return [attempt.word for attempt in self.words if attempt.correct]

    @property
    def incorrect_words(self) -> List[str]:
        return [attempt.word for attempt in self.words if not attempt.correct]

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "date": format_date(self.date),
            "gradeLevel": self.grade_level,
            "difficulty": self.difficulty,
            "vocabType": self.vocab_type,
            "words": [attempt.to_dict() for attempt in self.words],
            "accuracy": self.accuracy,
        }
        if self.typing_speed_wpm is not None:
            data["typingSpeedWpm"] = self.typing_speed_wpm
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpellingSession":
        # Stored accuracy is ignored; it is always derived from the words
        return cls(
            date=parse_date(data["date"]),
            grade_level=int(data["gradeLevel"]),
            difficulty=str(data["difficulty"]),
            vocab_type=str(data["vocabType"]),
            words=[
                WordAttempt(word=str(item["word"]), correct=bool(item["correct"]))
                for item in data.get("words", [])
            ],
            typing_speed_wpm=data.get("typingSpeedWpm"),
        )


@dataclass
class TypingSession:
    """A finished typing session as stored in history."""
    difficulty: str
    topic: str
    mode: str
    wpm: int
    accuracy: float
    cpm: int
    time: int  # in seconds
    error_count: int
    date: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": format_date(self.date),
            "difficulty": self.difficulty,
            "topic": self.topic,
            "mode": self.mode,
            "wpm": self.wpm,
            "accuracy": self.accuracy,
            "cpm": self.cpm,
            "time": self.time,
            "errorCount": self.error_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypingSession":
        return cls(
            date=parse_date(data["date"]),
            difficulty=str(data["difficulty"]),
            topic=str(data["topic"]),
            mode=str(data["mode"]),
            wpm=int(data["wpm"]),
            accuracy=float(data["accuracy"]),
            cpm=int(data["cpm"]),
            time=int(data["time"]),
            error_count=int(data.get("errorCount") or 0),
        )


@dataclass(frozen=True)
class MistakeCategory:
    """A named group of misspelled words sharing an error pattern."""
    category: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "count": self.count}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MistakeCategory":
        return cls(category=str(data["category"]), count=int(data["count"]))
