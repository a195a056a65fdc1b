"""Scoring formulas shared by the practice sessions."""
import math

CHARS_PER_WORD = 5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def spelling_wpm(correct_chars: int, correct_seconds: float) -> float:
    """Words per minute over correctly spelled words only."""
    minutes = correct_seconds / 60
    if minutes <= 0:
        return 0.0
    return (correct_chars / CHARS_PER_WORD) / minutes


def live_typing_wpm(user_input: str, seconds: int) -> int:
    """Running WPM estimate shown while typing."""
    if seconds <= 0:
        return 0
    return round_half_up((len(user_input) / CHARS_PER_WORD) / (seconds / 60))


def live_typing_accuracy(user_input: str, error_count: int) -> float:
    """Running accuracy from the sticky error counter.

    Corrected mistakes still count, so this can stay below the final
    positional accuracy.
    """
    if not user_input:
        return 100.0
    return (len(user_input) - error_count) / len(user_input) * 100


def final_typing_accuracy(user_input: str, sentence: str) -> float:
    """Percentage of sentence positions matched by the final input."""
    if not sentence:
        return 0.0
    correct = sum(1 for typed, expected in zip(user_input, sentence) if typed == expected)
    return correct / len(sentence) * 100


def final_typing_wpm(user_input: str, seconds: int) -> int:
    if seconds <= 0:
        return 0
    words_typed = len(user_input.split(" "))
    return round_half_up(words_typed / seconds * 60)


def final_typing_cpm(user_input: str, seconds: int) -> int:
    if seconds <= 0:
        return 0
    return round_half_up(len(user_input) / seconds * 60)
