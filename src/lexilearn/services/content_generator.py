"""Content generation service using a language model."""
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from lexilearn.exceptions import GenerationError, ValidationError
from lexilearn.models.practice_models import (
    DEFAULT_TYPING_WORDS,
    Difficulty,
    MistakeCategory,
    SpellingTestConfig,
    TypingTestConfig,
    TypingTopic,
    VocabType,
    coerce_enum,
    coerce_int,
    MIN_GRADE_LEVEL,
    MAX_GRADE_LEVEL,
    MIN_SPELLING_WORDS,
    MAX_SPELLING_WORDS,
    MIN_TYPING_WORDS,
    MAX_TYPING_WORDS,
)
from lexilearn.monitoring import generation_duration, generation_errors, generation_requests

logger = logging.getLogger(__name__)

DEFAULT_LIST_SIZE = 30


class TextModel(Protocol):
    """Anything that turns a prompt into reply text."""

    async def generate(self, prompt: str) -> str:
        ...


@dataclass(frozen=True)
class WordListRequest:
    """Input of the personalised word list prompt."""
    grade_level: int
    difficulty: Difficulty
    vocab_type: VocabType
    past_performance_data: str
    word_count: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "grade_level", coerce_int(self.grade_level, "gradeLevel", MIN_GRADE_LEVEL, MAX_GRADE_LEVEL))
        object.__setattr__(self, "difficulty", coerce_enum(Difficulty, self.difficulty, "difficulty"))
        object.__setattr__(self, "vocab_type", coerce_enum(VocabType, self.vocab_type, "vocabType"))
        if not isinstance(self.past_performance_data, str):
            raise ValidationError("pastPerformanceData must be text")
        if self.word_count is not None:
            object.__setattr__(self, "word_count", coerce_int(self.word_count, "wordCount", MIN_SPELLING_WORDS, MAX_SPELLING_WORDS))

    @classmethod
    def for_config(cls, config: SpellingTestConfig, past_performance_data: str) -> "WordListRequest":
        return cls(
            grade_level=config.grade_level,
            difficulty=config.difficulty,
            vocab_type=config.vocab_type,
            past_performance_data=past_performance_data,
            word_count=config.word_count,
        )


@dataclass(frozen=True)
class SentenceRequest:
    """Input of the typing sentence prompt."""
    difficulty: Difficulty
    topic: TypingTopic
    word_count: int = DEFAULT_TYPING_WORDS

    def __post_init__(self):
        object.__setattr__(self, "difficulty", coerce_enum(Difficulty, self.difficulty, "difficulty"))
        object.__setattr__(self, "topic", coerce_enum(TypingTopic, self.topic, "topic"))
        object.__setattr__(self, "word_count", coerce_int(self.word_count, "wordCount", MIN_TYPING_WORDS, MAX_TYPING_WORDS))

    @classmethod
    def for_config(cls, config: TypingTestConfig) -> "SentenceRequest":
        return cls(difficulty=config.difficulty, topic=config.topic, word_count=config.word_count)


WORD_LIST_PROMPT = """You are an expert spelling word list generator.
Generate a list of {count} spelling words based on the user's inputs.
The words should be challenging yet appropriate for the user's skill level.
Do not repeat words the user has already spelled correctly in the past performance data.

User Inputs:
- Grade Level: {grade_level}
- Difficulty: {difficulty}
- Vocabulary Type: {vocab_type}
- Past Performance Data: {past_performance_data}

Return ONLY a JSON object with a single key "wordList" containing an array of strings.
Example: {{"wordList": ["excellent", "bicycle", "enormous"]}}
"""

SENTENCE_PROMPT = """You are an expert content creator for educational typing games.
Generate an interesting, grammatically correct sentence for a typing test.
The sentence should be approximately {word_count} words long. Commas and periods are fine,
but avoid complex punctuation. If the word count is large, you may write several sentences.

Difficulty: {difficulty}
Topic: {topic}
Word Count: {word_count}

Example for 'hard' difficulty and 'science' topic: "The process of photosynthesis in plants converts light energy into chemical energy, creating glucose and oxygen as byproducts."
Example for 'easy' difficulty and 'general' topic: "The quick brown fox jumps over the lazy dog near the river."

Return ONLY a JSON object of the form {{"sentence": "..."}}.
"""

CATEGORIZE_PROMPT = """You are an expert linguistic analyst specializing in spelling errors.
Group the following misspelled words into 3-5 distinct, descriptive categories based on the likely reason for the error.

Useful kinds of categories:
- Phonetic errors: homophones (their/there), vowel teams (ie/ei), silent letters (knight).
- Orthographic errors: suffix/prefix rules (hoping vs. hopping), doubled consonants (beginning), irregular plurals (mice).
- Etymological errors: words of foreign origin with unusual spellings (bouquet, psychology).

Misspelled Words:
{words}

For each category give the number of words from the list that fit into it.
Sort categories from most to least frequent and leave out categories with a count of zero.
Return ONLY a JSON object of the form {{"categories": [{{"category": "Silent Letters", "count": 2}}]}}.
"""


def extract_json_block(text: str) -> Dict[str, Any]:
    """Parse the reply as JSON, or the first JSON object embedded in it."""
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except ValueError:
        pass
    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        try:
            data = json.loads(match.group(0))
            if isinstance(data, dict):
                return data
        except ValueError:
            pass
    raise GenerationError("Failed to parse JSON from language model output")


class ContentGenerator:
    """Service for generating word lists, sentences and mistake categories."""

    def __init__(self, model: TextModel):
        self.model = model

    async def _ask(self, kind: str, prompt: str) -> Dict[str, Any]:
        generation_requests.labels(kind=kind).inc()
        started = time.perf_counter()
        try:
            reply = await self.model.generate(prompt)
            return extract_json_block(reply)
        except GenerationError as e:
            generation_errors.labels(kind=kind).inc()
            logger.error(f"{kind} generation failed: {e}")
            raise
        finally:
            generation_duration.labels(kind=kind).observe(time.perf_counter() - started)

    async def generate_word_list(self, request: WordListRequest) -> List[str]:
        """Personalised spelling words for the request."""
        prompt = WORD_LIST_PROMPT.format(
            count=request.word_count or f"approximately {DEFAULT_LIST_SIZE}",
            grade_level=request.grade_level,
            difficulty=request.difficulty.value,
            vocab_type=request.vocab_type.value,
            past_performance_data=request.past_performance_data,
        )
        data = await self._ask("word_list", prompt)
        words = data.get("wordList")
        if not isinstance(words, list):
            generation_errors.labels(kind="word_list").inc()
            raise GenerationError("Language model reply has no word list")
        words = [str(word).strip() for word in words if str(word).strip()]
        if not words:
            generation_errors.labels(kind="word_list").inc()
            raise GenerationError("Language model returned an empty word list")
        logger.info(f"Generated {len(words)} words for grade {request.grade_level}")
        return words

    async def generate_sentence(self, request: SentenceRequest) -> str:
        """A typing practice sentence for the request."""
        prompt = SENTENCE_PROMPT.format(
            difficulty=request.difficulty.value,
            topic=request.topic.value,
            word_count=request.word_count,
        )
        data = await self._ask("sentence", prompt)
        sentence = data.get("sentence")
        if not isinstance(sentence, str) or not sentence.strip():
            generation_errors.labels(kind="sentence").inc()
            raise GenerationError("Language model did not return a sentence")
        # Collapse line breaks and runs of spaces so positions line up with typing
        sentence = " ".join(sentence.split())
        logger.info(f"Generated sentence of {len(sentence.split())} words")
        return sentence

    async def categorize_mistakes(self, misspelled_words: List[str]) -> List[MistakeCategory]:
        """Group misspelled words into error categories, most frequent first."""
        if not misspelled_words:
            return []
        prompt = CATEGORIZE_PROMPT.format(words="\n".join(f"- {word}" for word in misspelled_words))
        data = await self._ask("categorize", prompt)
        raw_categories = data.get("categories")
        if not isinstance(raw_categories, list):
            generation_errors.labels(kind="categorize").inc()
            raise GenerationError("Language model reply has no categories")

        categories = []
        for item in raw_categories:
            try:
                category = MistakeCategory.from_dict(item)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed category: {item!r}")
                continue
            if category.count > 0 and category.category.strip():
                categories.append(category)
        categories.sort(key=lambda category: category.count, reverse=True)
        return categories
