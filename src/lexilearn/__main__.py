"""Main entry point for the practice app."""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from lexilearn.app import LexiLearnApp
from lexilearn.config import ensure_directories
from lexilearn.logging_config import setup_logging
from lexilearn.models.practice_models import (
    DEFAULT_TYPING_WORDS,
    Difficulty,
    SpellingTestConfig,
    TypingMode,
    TypingTestConfig,
    TypingTopic,
    VocabType,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lexilearn", description="Spelling and typing practice")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    spelling = commands.add_parser("spelling", help="Take a spelling test")
    spelling.add_argument("--grade", type=int, default=3, help="Grade level (1-12)")
    spelling.add_argument("--difficulty", default=Difficulty.MEDIUM.value, choices=[d.value for d in Difficulty])
    spelling.add_argument("--vocab", default=VocabType.GENERAL.value, choices=[v.value for v in VocabType])
    spelling.add_argument("--words", type=int, default=None, help="Number of words (1-100)")
    spelling.add_argument("--again", action="store_true", help="Reuse the last spelling configuration")

    typing = commands.add_parser("typing", help="Take a typing test")
    typing.add_argument("--difficulty", default=Difficulty.MEDIUM.value, choices=[d.value for d in Difficulty])
    typing.add_argument("--topic", default=TypingTopic.GENERAL.value, choices=[t.value for t in TypingTopic])
    typing.add_argument("--mode", default=TypingMode.READ.value, choices=[m.value for m in TypingMode])
    typing.add_argument("--words", type=int, default=DEFAULT_TYPING_WORDS, help="Sentence length (5-100)")

    progress = commands.add_parser("progress", help="Show practice history and common mistakes")
    progress.add_argument("--refresh", action="store_true", help="Re-run the mistake analysis")
    return parser


async def main(args: argparse.Namespace) -> int:
    """Run the selected command."""
    app = LexiLearnApp()
    app.start()
    try:
        if args.command == "spelling":
            if args.again:
                config = app.service.performance.recall_spelling_config()
                if config is None:
                    print("! No previous spelling test to repeat", file=sys.stderr)
                    return 2
            else:
                config = SpellingTestConfig(
                    grade_level=args.grade,
                    difficulty=args.difficulty,
                    vocab_type=args.vocab,
                    word_count=args.words,
                )
            state = await app.run_spelling(config)
            return 0 if state is not None else 1
        if args.command == "typing":
            config = TypingTestConfig(
                difficulty=args.difficulty,
                topic=args.topic,
                mode=args.mode,
                word_count=args.words,
            )
            await app.run_typing(config)
            return 0
        await app.show_progress(force=args.refresh)
        return 0
    finally:
        await app.stop()


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    ensure_directories()
    setup_logging("Starting LexiLearn practice ...", level=args.log_level)

    try:
        return asyncio.run(main(args))
    except ValueError as e:
        # Invalid options or missing GEMINI_API_KEY
        print(f"! {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
        return 130


if __name__ == "__main__":
    sys.exit(run())
