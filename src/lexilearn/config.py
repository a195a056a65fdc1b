"""Configuration settings for the practice app."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
MEDIA_DIR = DATA_DIR / "media"
PRONUNCIATIONS_DIR = MEDIA_DIR / "pronunciations"

# Practice settings
MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 1.0
HISTORY_LIMIT = 50
SUMMARY_SESSIONS = 5
SUMMARY_MAX_WORDS = 300


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        MEDIA_DIR,
        PRONUNCIATIONS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    media_dir: Path = MEDIA_DIR
    pronunciations_dir: Path = PRONUNCIATIONS_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///lexilearn.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class GeminiSettings:
    """Language model provider settings."""
    api_key: Optional[str] = os.getenv("GEMINI_API_KEY")
    model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    base_url: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/models"
    )
    timeout: float = float(os.getenv("GEMINI_TIMEOUT", "30"))


@dataclass
class PracticeSettings:
    """Practice session settings."""
    max_attempts: int = int(os.getenv("MAX_ATTEMPTS", str(MAX_ATTEMPTS)))
    retry_delay_seconds: float = float(os.getenv("RETRY_DELAY_SECONDS", str(RETRY_DELAY_SECONDS)))
    history_limit: int = int(os.getenv("HISTORY_LIMIT", str(HISTORY_LIMIT)))
    summary_sessions: int = int(os.getenv("SUMMARY_SESSIONS", str(SUMMARY_SESSIONS)))
    summary_max_words: int = int(os.getenv("SUMMARY_MAX_WORDS", str(SUMMARY_MAX_WORDS)))


@dataclass
class SpeechSettings:
    """Speech synthesis settings."""
    language: str = os.getenv("SPEECH_LANGUAGE", "en")
    letter_rate: float = 0.8


@dataclass
class MonitoringSettings:
    """Metrics exporter settings."""
    port: int = int(os.getenv("METRICS_PORT", "0"))


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_gemini_settings() -> GeminiSettings:
    """Get language model settings."""
    return GeminiSettings()


def get_practice_settings() -> PracticeSettings:
    """Get practice settings."""
    return PracticeSettings()


def get_speech_settings() -> SpeechSettings:
    """Get speech settings."""
    return SpeechSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    gemini: GeminiSettings = field(default_factory=get_gemini_settings)
    practice: PracticeSettings = field(default_factory=get_practice_settings)
    speech: SpeechSettings = field(default_factory=get_speech_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.practice.max_attempts < 1:
            raise ValueError("MAX_ATTEMPTS must be positive")

        if self.practice.retry_delay_seconds < 0:
            raise ValueError("RETRY_DELAY_SECONDS cannot be negative")

        if self.practice.history_limit < 1:
            raise ValueError("HISTORY_LIMIT must be positive")

        if self.practice.summary_sessions < 1:
            raise ValueError("SUMMARY_SESSIONS must be positive")

        if self.practice.summary_max_words < 1:
            raise ValueError("SUMMARY_MAX_WORDS must be positive")

        if self.gemini.timeout <= 0:
            raise ValueError("GEMINI_TIMEOUT must be positive")

        if self.monitoring.port < 0:
            raise ValueError("METRICS_PORT cannot be negative")


# Create global settings instance
settings = Settings()
settings.validate()
