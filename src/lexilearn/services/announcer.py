"""Speech output for words and sentences."""
import asyncio
import hashlib
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional

from gtts import gTTS
from gtts.tts import gTTSError

from lexilearn.config import settings


logger = logging.getLogger(__name__)


def spell_out_parts(word: str) -> List[str]:
    """The word, each letter, then the word again."""
    return [word, *word, word]


class Announcer(ABC):
    """Fire-and-forget speech. A new utterance supersedes the previous one."""

    @abstractmethod
    def play(self, text: str, rate: float = 1.0) -> None:
        """Speak ``text``, cancelling anything still queued."""

    @abstractmethod
    def cancel(self) -> None:
        """Drop whatever is playing or queued."""

    def _say(self, text: str, rate: float) -> None:
        """Speak one part of a sequence without cancelling the sequence."""
        self.play(text, rate)

    def spell_out(self, word: str) -> None:
        """Say the word, its letters slowly, then the word again."""
        if not word:
            return
        self.cancel()
        token = self._sequence_token()
        parts = spell_out_parts(word)
        for index, part in enumerate(parts):
            if self._sequence_token() != token:
                # A newer utterance took over
                return
            rate = settings.speech.letter_rate if 0 < index < len(parts) - 1 else 1.0
            self._say(part, rate)

    def _sequence_token(self) -> int:
        return 0

    async def aclose(self) -> None:
        """Stop speaking and release any background work."""
        self.cancel()


class NullAnnouncer(Announcer):
    """Announcer that stays silent."""

    def play(self, text: str, rate: float = 1.0) -> None:
        pass

    def cancel(self) -> None:
        pass


class GttsAnnouncer(Announcer):
    """Synthesise speech with gTTS and hand the audio file to a player.

    Utterances are queued and spoken by a background task that runs
    synthesis and playback in worker threads, so the event loop keeps
    serving timers meanwhile. Each utterance carries the generation it was
    queued under; ``cancel()`` bumps the generation and empties the queue,
    and anything from an older generation is skipped.
    """

    def __init__(
        self,
        player: Optional[Callable[[Path], None]] = None,
        lang: Optional[str] = None,
        output_dir: Optional[Path] = None,
    ):
        self.player = player
        self.lang = lang or settings.speech.language
        self.output_dir = Path(output_dir or settings.paths.pronunciations_dir)
        self._generation = 0
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    def _sequence_token(self) -> int:
        return self._generation

    def cancel(self) -> None:
        self._generation += 1
        if self._queue is None:
            return
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()

    def play(self, text: str, rate: float = 1.0) -> None:
        self.cancel()
        self._say(text, rate)

    def _say(self, text: str, rate: float) -> None:
        if not text:
            return
        if self._worker is None or self._worker.done():
            self._queue = asyncio.Queue()
            self._worker = asyncio.create_task(self._speak_queued())
        self._queue.put_nowait((self._generation, text, rate))

    async def _speak_queued(self) -> None:
        while True:
            generation, text, rate = await self._queue.get()
            try:
                if generation == self._generation:
                    await self._speak(generation, text, rate)
            finally:
                self._queue.task_done()

    async def _speak(self, generation: int, text: str, rate: float) -> None:
        try:
            path = await asyncio.to_thread(self.synthesize, text, rate < 1.0)
            if self.player is not None and generation == self._generation:
                await asyncio.to_thread(self.player, path)
        except (gTTSError, OSError, ValueError, AssertionError) as e:
            # Speech is an enhancement; practice continues without it
            logger.debug(f"Speech failed for '{text}': {e}")

    async def join(self) -> None:
        """Wait until everything queued so far has been spoken or skipped."""
        if self._queue is not None:
            await self._queue.join()

    async def aclose(self) -> None:
        self.cancel()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    def synthesize(self, text: str, slow: bool = False) -> Path:
        """Write an mp3 for ``text`` (reused when already cached) and return its path."""
        path = self.output_dir / self._filename(text, slow)
        if path.exists():
            return path
        self.output_dir.mkdir(parents=True, exist_ok=True)
        tts = gTTS(text=text, lang=self.lang, slow=slow)
        tts.save(str(path))
        logger.debug(f"Pronunciation generated for '{text}': {path}")
        return path

    @staticmethod
    def _filename(text: str, slow: bool) -> str:
        stem = re.sub(r"[^a-zA-Z0-9]", "_", text.lower())[:40]
        digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:8]
        return f"{stem}_{digest}{'_slow' if slow else ''}.mp3"
