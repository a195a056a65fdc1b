"""Tests for content generation service."""
import json
from unittest.mock import AsyncMock

import pytest

from lexilearn.exceptions import GenerationError, ValidationError
from lexilearn.models.practice_models import (
    Difficulty,
    MistakeCategory,
    SpellingTestConfig,
    TypingTestConfig,
    TypingTopic,
    VocabType,
)
from lexilearn.services.content_generator import (
    ContentGenerator,
    SentenceRequest,
    WordListRequest,
    extract_json_block,
)


def make_generator(*replies: str):
    model = AsyncMock()
    model.generate = AsyncMock(side_effect=list(replies))
    return ContentGenerator(model), model


def word_list_request(**overrides) -> WordListRequest:
    values = {
        "grade_level": 3,
        "difficulty": "easy",
        "vocab_type": "general",
        "past_performance_data": "No past performance data available.",
    }
    values.update(overrides)
    return WordListRequest(**values)


def test_extract_json_block() -> None:
    """Test parsing bare, fenced and surrounded JSON replies."""
    assert extract_json_block('{"sentence": "Hi."}') == {"sentence": "Hi."}
    assert extract_json_block('```json\n{"wordList": ["a"]}\n```') == {"wordList": ["a"]}
    assert extract_json_block('Sure! {"categories": []} Hope this helps.') == {"categories": []}

    with pytest.raises(GenerationError):
        extract_json_block("no json here")
    with pytest.raises(GenerationError):
        extract_json_block('["just", "a", "list"]')


def test_word_list_request_validation() -> None:
    """Test request validation before any model call."""
    request = word_list_request(grade_level="12", difficulty="HARD", word_count="10")
    assert request.grade_level == 12
    assert request.difficulty == Difficulty.HARD
    assert request.word_count == 10

    with pytest.raises(ValidationError):
        word_list_request(grade_level=13)
    with pytest.raises(ValidationError):
        word_list_request(vocab_type="music")
    with pytest.raises(ValidationError):
        word_list_request(past_performance_data=None)


def test_word_list_request_for_config() -> None:
    config = SpellingTestConfig(grade_level=5, difficulty="medium", vocab_type="science", word_count=8)

    request = WordListRequest.for_config(config, "summary")

    assert request.grade_level == 5
    assert request.vocab_type == VocabType.SCIENCE
    assert request.word_count == 8
    assert request.past_performance_data == "summary"


def test_sentence_request_validation() -> None:
    request = SentenceRequest.for_config(TypingTestConfig(topic="facts", word_count=40))
    assert request.topic == TypingTopic.FACTS
    assert request.word_count == 40

    with pytest.raises(ValidationError):
        SentenceRequest(difficulty="easy", topic="general", word_count=3)
    with pytest.raises(ValidationError):
        SentenceRequest(difficulty="easy", topic="sports")


@pytest.mark.asyncio
async def test_generate_word_list() -> None:
    """Test the personalised word list prompt and reply handling."""
    generator, model = make_generator(json.dumps({"wordList": [" bicycle ", "enormous", ""]}))

    words = await generator.generate_word_list(word_list_request(past_performance_data="On 5/1/2024 ..."))

    assert words == ["bicycle", "enormous"]
    prompt = model.generate.await_args.args[0]
    assert "Grade Level: 3" in prompt
    assert "Difficulty: easy" in prompt
    assert "Vocabulary Type: general" in prompt
    assert "On 5/1/2024 ..." in prompt
    assert "approximately 30" in prompt


@pytest.mark.asyncio
async def test_generate_word_list_with_count() -> None:
    generator, model = make_generator(json.dumps({"wordList": ["cat"]}))

    await generator.generate_word_list(word_list_request(word_count=12))

    assert "list of 12 spelling words" in model.generate.await_args.args[0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        json.dumps({"wordList": []}),
        json.dumps({"words": ["cat"]}),
        json.dumps({"wordList": "cat dog"}),
        "I cannot help with that.",
    ],
)
async def test_generate_word_list_rejects_bad_reply(reply: str) -> None:
    generator, _ = make_generator(reply)

    with pytest.raises(GenerationError):
        await generator.generate_word_list(word_list_request())


@pytest.mark.asyncio
async def test_generate_word_list_propagates_model_failure() -> None:
    generator, _ = make_generator()
    generator.model.generate = AsyncMock(side_effect=GenerationError("timeout"))

    with pytest.raises(GenerationError):
        await generator.generate_word_list(word_list_request())


@pytest.mark.asyncio
async def test_generate_sentence() -> None:
    """Test sentence prompt and whitespace normalisation."""
    reply = json.dumps({"sentence": "The quick  brown fox\njumps over the lazy dog."})
    generator, model = make_generator(reply)

    sentence = await generator.generate_sentence(SentenceRequest(difficulty="easy", topic="general", word_count=9))

    assert sentence == "The quick brown fox jumps over the lazy dog."
    prompt = model.generate.await_args.args[0]
    assert "Difficulty: easy" in prompt
    assert "Topic: general" in prompt
    assert "Word Count: 9" in prompt


@pytest.mark.asyncio
async def test_generate_sentence_rejects_empty() -> None:
    generator, _ = make_generator(json.dumps({"sentence": "   "}))

    with pytest.raises(GenerationError):
        await generator.generate_sentence(SentenceRequest(difficulty="easy", topic="general"))


@pytest.mark.asyncio
async def test_categorize_empty_list_skips_model() -> None:
    """Test that nothing is sent to the model without mistakes."""
    generator, model = make_generator()

    assert await generator.categorize_mistakes([]) == []
    model.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_categorize_mistakes() -> None:
    """Test that categories are filtered and sorted by count."""
    reply = json.dumps({
        "categories": [
            {"category": "Silent letters", "count": 1},
            {"category": "Doubled consonants", "count": 3},
            {"category": "Homophones", "count": 0},
            {"category": "Vowel teams"},
            "Irregular plurals",
            {"category": "Suffix rules", "count": 2},
        ]
    })
    generator, model = make_generator(reply)

    categories = await generator.categorize_mistakes(["knight", "begining", "hoping"])

    assert categories == [
        MistakeCategory("Doubled consonants", 3),
        MistakeCategory("Suffix rules", 2),
        MistakeCategory("Silent letters", 1),
    ]
    prompt = model.generate.await_args.args[0]
    assert "- knight\n- begining\n- hoping" in prompt


@pytest.mark.asyncio
async def test_categorize_rejects_missing_categories() -> None:
    generator, _ = make_generator(json.dumps({"groups": []}))

    with pytest.raises(GenerationError):
        await generator.categorize_mistakes(["knight"])


if __name__ == "__main__":
    pytest.main([__file__])
