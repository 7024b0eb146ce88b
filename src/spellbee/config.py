"""Configuration settings for the spelling practice app."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from spellbee.models.progress_models import GradeLevel

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
GRADE_LEVELS = [grade.value for grade in GradeLevel]
HISTORY_WINDOW_DAYS = 7
DEFAULT_GRADE_TOTAL = 500  # used when a grade has no configured word count
DEFAULT_GRADE_TOTALS = {"3-4": 450, "5-6": 500, "7-8": 550}
DEFAULT_WORD_LIST_URL_TEMPLATE = (
    "https://dev-srmedtechsolutions-files.s3.ap-south-1.amazonaws.com/public/words-grade-{grade}.txt"
)


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        MEDIA_DIR,
        PRONUNCIATIONS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


def parse_grade_totals(raw: str) -> dict[str, int]:
    """Parse ``grade=count`` pairs separated by commas, e.g. ``1-2=300,3-4=450``."""
    totals = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        grade, sep, count = pair.partition("=")
        if not sep:
            raise ValueError(f"Invalid GRADE_TOTAL_WORDS entry: {pair!r}")
        totals[grade.strip()] = int(count)
    return totals


def get_grade_totals() -> dict[str, int]:
    """Get per-grade word totals, with GRADE_TOTAL_WORDS overriding the defaults."""
    totals = dict(DEFAULT_GRADE_TOTALS)
    totals.update(parse_grade_totals(os.getenv("GRADE_TOTAL_WORDS", "")))
    return totals


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
    url: str = os.getenv("DATABASE_URL", "sqlite:///spellbee.db")
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
class WordListSettings:
    """Word source settings."""
    url_template: str = os.getenv("WORD_LIST_URL_TEMPLATE", DEFAULT_WORD_LIST_URL_TEMPLATE)
    timeout: float = float(os.getenv("WORD_LIST_TIMEOUT", "10"))


@dataclass
class PracticeSettings:
    """Practice and history settings."""
    grade_levels: list[str] = field(default_factory=lambda: list(GRADE_LEVELS))
    history_window_days: int = int(os.getenv("HISTORY_WINDOW_DAYS", str(HISTORY_WINDOW_DAYS)))
    default_grade_total: int = int(os.getenv("DEFAULT_GRADE_TOTAL", str(DEFAULT_GRADE_TOTAL)))
    grade_totals: dict[str, int] = field(default_factory=get_grade_totals)


@dataclass
class SpeechSettings:
    """Pronunciation settings."""
    enabled: bool = os.getenv("SPEECH_ENABLED", "true").lower() == "true"
    lang: str = os.getenv("SPEECH_LANG", "en")
    tld: str = os.getenv("SPEECH_TLD", "us")


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_word_list_settings() -> WordListSettings:
    """Get word list settings."""
    return WordListSettings()


def get_practice_settings() -> PracticeSettings:
    """Get practice settings."""
    return PracticeSettings()


def get_speech_settings() -> SpeechSettings:
    """Get speech settings."""
    return SpeechSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    word_list: WordListSettings = field(default_factory=get_word_list_settings)
    practice: PracticeSettings = field(default_factory=get_practice_settings)
    speech: SpeechSettings = field(default_factory=get_speech_settings)

    def total_words_for_grade(self) -> dict[str, int]:
        """Expected word count per grade, falling back to the default total."""
        totals = {grade: self.practice.default_grade_total for grade in self.practice.grade_levels}
        totals.update(self.practice.grade_totals)
        return totals

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.practice.history_window_days < 1:
            raise ValueError("HISTORY_WINDOW_DAYS must be positive")

        if self.practice.default_grade_total < 1:
            raise ValueError("DEFAULT_GRADE_TOTAL must be positive")

        for grade, total in self.practice.grade_totals.items():
            if total < 1:
                raise ValueError(f"GRADE_TOTAL_WORDS for {grade} must be positive")

        if "{grade}" not in self.word_list.url_template:
            raise ValueError("WORD_LIST_URL_TEMPLATE must contain a {grade} placeholder")

        if self.word_list.timeout <= 0:
            raise ValueError("WORD_LIST_TIMEOUT must be positive")


# Create global settings instance
settings = Settings()
settings.validate()
