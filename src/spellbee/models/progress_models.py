"""Models for practice progress stored as JSON."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from spellbee.errors import CorruptStoreError


class GradeLevel(Enum):
    """Grade buckets offered by the practice screen."""
    GRADE_1_2 = "1-2"
    GRADE_3_4 = "3-4"
    GRADE_5_6 = "5-6"
    GRADE_7_8 = "7-8"


def grade_value(grade_level: Any) -> str:
    """Normalize a GradeLevel or free-form string to the stored string."""
    if isinstance(grade_level, GradeLevel):
        return grade_level.value
    return str(grade_level)


@dataclass
class WordAttempt:
    """One scored answer."""
    word: str
    correct: bool
    user_answer: str  # empty means the word was skipped
    timestamp: int  # milliseconds since epoch

    def matches(self, word: str) -> bool:
        """Whether this attempt is for ``word``, ignoring case."""
        return self.word.lower() == word.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word": self.word,
            "correct": self.correct,
            "userAnswer": self.user_answer,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordAttempt":
        try:
            attempt = cls(
                word=data["word"],
                correct=data["correct"],
                user_answer=data.get("userAnswer", ""),
                timestamp=data.get("timestamp", 0),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise CorruptStoreError(f"Invalid word attempt record: {data!r}") from e
        if not isinstance(attempt.word, str) or not isinstance(attempt.correct, bool):
            raise CorruptStoreError(f"Invalid word attempt record: {data!r}")
        return attempt


@dataclass
class DayProgress:
    """Attempts of one user for one grade on one calendar date."""
    date: str  # YYYY-MM-DD, client-local
    grade_level: str
    attempts: List[WordAttempt] = field(default_factory=list)
    score: int = 0
    total_attempts: int = 0

    def find_attempt(self, word: str) -> Optional[WordAttempt]:
        """Get the attempt for ``word`` (case-insensitive), if any."""
        for attempt in self.attempts:
            if attempt.matches(word):
                return attempt
        return None

    def is_consistent(self) -> bool:
        """Check that the running counters agree with the attempts."""
        correct = sum(1 for attempt in self.attempts if attempt.correct)
        return (
            self.score == correct
            and self.total_attempts == len(self.attempts)
            and self.score <= self.total_attempts
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "gradeLevel": self.grade_level,
            "attempts": [attempt.to_dict() for attempt in self.attempts],
            "score": self.score,
            "totalAttempts": self.total_attempts,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DayProgress":
        try:
            return cls(
                date=data["date"],
                grade_level=data["gradeLevel"],
                attempts=[WordAttempt.from_dict(item) for item in data.get("attempts", [])],
                score=int(data.get("score", 0)),
                total_attempts=int(data.get("totalAttempts", 0)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CorruptStoreError(f"Invalid day progress record: {data!r}") from e


@dataclass
class UserData:
    """One user's full practice record."""
    username: str
    history: List[DayProgress] = field(default_factory=list)

    def find_day(self, date: str, grade_level: str) -> Optional[DayProgress]:
        for day in self.history:
            if day.date == date and day.grade_level == grade_level:
                return day
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "history": [day.to_dict() for day in self.history],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserData":
        try:
            return cls(
                username=data["username"],
                history=[DayProgress.from_dict(item) for item in data.get("history", [])],
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise CorruptStoreError(f"Invalid user record: {data!r}") from e


@dataclass
class PracticeSession:
    """Who is practicing which grade; passed explicitly to the store."""
    username: str
    grade_level: str
