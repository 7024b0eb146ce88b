"""Review of recent practice days: summaries, retries and resuming."""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from spellbee.models.progress_models import DayProgress
from spellbee.services.progress_service import ProgressService


@dataclass
class DaySummary:
    """One row of the history overview."""
    date: str
    label: str
    grade_level: str
    score: int
    total_attempts: int
    percentage: int
    misspelled_count: int
    complete: bool


@dataclass
class ResumePoint:
    """Where to pick up a practice day again."""
    last_word: str
    all_words: List[str]
    grade_level: str


def format_date_label(day: str, today: date) -> str:
    """Label a YYYY-MM-DD date as Today, Yesterday or e.g. 'Mon, Oct 12'."""
    value = datetime.strptime(day, "%Y-%m-%d").date()
    if value == today:
        return "Today"
    if value == today - timedelta(days=1):
        return "Yesterday"
    return f"{value.strftime('%a, %b')} {value.day}"


def percentage(day: DayProgress) -> int:
    if day.total_attempts == 0:
        return 0
    # halves round up
    return int(day.score * 100 / day.total_attempts + 0.5)


def retry_words(day: DayProgress) -> List[str]:
    """Words misspelled that day, in attempt order."""
    return [attempt.word for attempt in ProgressService.get_misspelled_words(day)]


def resume_point(day: DayProgress) -> Optional[ResumePoint]:
    """The last attempted word of a day and everything attempted before it."""
    if not day.attempts:
        return None
    words = [attempt.word for attempt in day.attempts]
    return ResumePoint(last_word=words[-1], all_words=words, grade_level=day.grade_level)


class HistoryService:
    """Builds the history overview from the progress store."""

    def __init__(self, progress: ProgressService, total_words_for_grade: Dict[str, int]):
        self.progress = progress
        self.total_words_for_grade = total_words_for_grade

    def summarize(self, day: DayProgress) -> DaySummary:
        return DaySummary(
            date=day.date,
            label=format_date_label(day.date, self.progress.clock().date()),
            grade_level=day.grade_level,
            score=day.score,
            total_attempts=day.total_attempts,
            percentage=percentage(day),
            misspelled_count=len(ProgressService.get_misspelled_words(day)),
            complete=ProgressService.is_session_complete(day, self.total_words_for_grade),
        )

    def recent_summaries(self, username: str, window_days: Optional[int] = None) -> List[DaySummary]:
        """Summaries of the recent days, most recent first."""
        return [self.summarize(day) for day in self.progress.get_recent_progress(username, window_days)]
