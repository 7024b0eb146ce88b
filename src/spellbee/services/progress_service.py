"""Progress service for recording attempts and querying practice history."""
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from spellbee.config import settings
from spellbee.models.progress_models import DayProgress, UserData, WordAttempt, grade_value
from spellbee.monitoring import attempts_recorded, corrupt_records_skipped, reattempts
from spellbee.services.storage_service import StorageService

logger = logging.getLogger(__name__)


def format_day(day: datetime) -> str:
    """Format a date as YYYY-MM-DD."""
    return day.strftime("%Y-%m-%d")


class ProgressService:
    """Service for recording word attempts and reading practice history.

    Every method takes the username explicitly; the store keeps no notion
    of who is practicing. ``clock`` returns the current local time and
    decides what "today" is.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        """Initialize the service with a database session."""
        self.storage = StorageService(db)
        self.clock = clock

    def today(self) -> str:
        """Get today's local date in YYYY-MM-DD format."""
        return format_day(self.clock())

    def _timestamp(self) -> int:
        return int(self.clock().timestamp() * 1000)

    def record_attempt(
        self,
        username: str,
        grade_level: str,
        word: str,
        correct: bool,
        user_answer: str,
    ) -> None:
        """Record the outcome of one answer for today.

        A second answer for a word already attempted today (ignoring case)
        replaces the earlier one and only adjusts the score.
        """
        grade_level = grade_value(grade_level)
        today = self.today()

        with self.storage.transaction() as users:
            user = users.get(username)
            if user is None:
                user = UserData(username=username)
                users[username] = user
                logger.info(f"User created on first attempt: {username}")

            day = user.find_day(today, grade_level)
            if day is None:
                day = DayProgress(date=today, grade_level=grade_level)
                user.history.append(day)
            elif not day.is_consistent():
                corrupt_records_skipped.inc()
                logger.error(
                    f"Skipping attempt for {word}: inconsistent progress for {username} "
                    f"on {today} grade {grade_level} (score {day.score}, total {day.total_attempts})"
                )
                return

            attempt = WordAttempt(
                word=word,
                correct=correct,
                user_answer=user_answer,
                timestamp=self._timestamp(),
            )
            existing = day.find_attempt(word)
            if existing is not None:
                if existing.correct and not correct:
                    day.score -= 1
                elif not existing.correct and correct:
                    day.score += 1
                existing.word = attempt.word
                existing.correct = attempt.correct
                existing.user_answer = attempt.user_answer
                existing.timestamp = attempt.timestamp
                reattempts.labels(grade_level=grade_level).inc()
            else:
                day.attempts.append(attempt)
                day.total_attempts += 1
                if correct:
                    day.score += 1

        attempts_recorded.labels(
            grade_level=grade_level,
            outcome="correct" if correct else "incorrect",
        ).inc()
        logger.debug(f"Recorded {word} for {username} ({grade_level}): correct={correct}")

    def get_day_progress(self, username: str, date: str, grade_level: str) -> Optional[DayProgress]:
        """Get the progress for one date and grade, or None.

        Inconsistent records are logged and treated as absent.
        """
        user = self.storage.load_users().get(username)
        if user is None:
            return None
        day = user.find_day(date, grade_value(grade_level))
        if day is not None and not day.is_consistent():
            corrupt_records_skipped.inc()
            logger.error(f"Skipping inconsistent progress for {username} on {date} grade {day.grade_level}")
            return None
        return day

    def get_today_progress(self, username: str, grade_level: str) -> Optional[DayProgress]:
        """Get today's progress for a grade, or None if nothing was attempted yet."""
        return self.get_day_progress(username, self.today(), grade_level)

    def get_recent_progress(self, username: str, window_days: Optional[int] = None) -> List[DayProgress]:
        """Get progress for the last ``window_days`` calendar days, most recent first.

        The window holds today and the previous ``window_days - 1`` dates.
        Inconsistent records are logged and left out.
        """
        if window_days is None:
            window_days = settings.practice.history_window_days
        user = self.storage.load_users().get(username)
        if user is None:
            return []

        now = self.clock()
        dates = {format_day(now - timedelta(days=offset)) for offset in range(window_days)}

        recent = []
        for day in user.history:
            if day.date not in dates:
                continue
            if not day.is_consistent():
                corrupt_records_skipped.inc()
                logger.error(f"Skipping inconsistent progress for {username} on {day.date} grade {day.grade_level}")
                continue
            recent.append(day)
        return sorted(recent, key=lambda day: day.date, reverse=True)

    @staticmethod
    def get_misspelled_words(day_progress: DayProgress) -> List[WordAttempt]:
        """Get the incorrect attempts of a day in attempt order."""
        return [attempt for attempt in day_progress.attempts if not attempt.correct]

    def get_misspelled_words_for_day(self, username: str, date: str, grade_level: str) -> List[WordAttempt]:
        """Get the incorrect attempts for a stored day, or an empty list."""
        day = self.get_day_progress(username, date, grade_level)
        if day is None:
            return []
        return self.get_misspelled_words(day)

    @staticmethod
    def is_session_complete(day_progress: DayProgress, total_words_for_grade: Dict[str, int]) -> bool:
        """Whether every word of the grade was attempted on that day.

        Grades missing from ``total_words_for_grade`` use the configured
        default total.
        """
        total = total_words_for_grade.get(day_progress.grade_level, settings.practice.default_grade_total)
        return day_progress.total_attempts >= total

    def clear_user_history(self, username: str) -> bool:
        """Remove a user's history but keep the user. False if the user does not exist."""
        with self.storage.transaction() as users:
            user = users.get(username)
            if user is None:
                return False
            user.history = []
        logger.info(f"History cleared for {username}")
        return True
