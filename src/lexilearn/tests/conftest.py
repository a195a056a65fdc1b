"""Test configuration."""
import os
import tempfile
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"
_test_dir = Path(tempfile.mkdtemp(prefix="lexilearn-test-"))
os.environ.setdefault("DATA_DIR", str(_test_dir / "data"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_test_dir / 'lexilearn-test.db'}")
os.environ.setdefault("GEMINI_API_KEY", "test-key")

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from lexilearn.config import ensure_directories
from lexilearn.models.practice_models import SpellingTestConfig
from lexilearn.services.announcer import Announcer
from lexilearn.services.performance_store import PerformanceStore
from lexilearn.services.storage import InMemoryStore


class RecordingAnnouncer(Announcer):
    """Announcer that remembers what it was asked to say."""

    def __init__(self):
        self.spoken = []
        self.cancels = 0

    def play(self, text, rate=1.0):
        self.spoken.append((text, rate))

    def cancel(self):
        self.cancels += 1


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment before each test."""
    ensure_directories()
    yield


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def performance(memory_store: InMemoryStore) -> PerformanceStore:
    return PerformanceStore(memory_store, history_limit=50, summary_sessions=5, summary_max_words=300)


@pytest.fixture
def announcer() -> RecordingAnnouncer:
    return RecordingAnnouncer()


@pytest.fixture
def spelling_config() -> SpellingTestConfig:
    return SpellingTestConfig(grade_level=3, difficulty="easy", vocab_type="general")
