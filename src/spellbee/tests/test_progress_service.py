"""Tests for progress service."""
import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from faker import Faker
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from spellbee.errors import CorruptStoreError, StorageError, StorageUnavailableError
from spellbee.models.models import StoredValue
from spellbee.models.progress_models import DayProgress, GradeLevel, WordAttempt
from spellbee.services.progress_service import ProgressService
from spellbee.services.storage_service import STORAGE_KEY, StorageService
from spellbee.services.user_service import UserService

fake = Faker()


@pytest.fixture
def progress_service(db: Session, clock) -> ProgressService:
    """Create a progress service instance with a fixed clock."""
    return ProgressService(db, clock=clock)


def assert_counters_consistent(day: DayProgress) -> None:
    assert day.score == sum(1 for attempt in day.attempts if attempt.correct)
    assert day.total_attempts == len({attempt.word.lower() for attempt in day.attempts})
    assert day.total_attempts == len(day.attempts)


def test_reattempt_updates_in_place(progress_service: ProgressService) -> None:
    """A wrong second answer replaces a right first one."""
    progress_service.record_attempt("alice", "5-6", "cat", True, "cat")
    progress_service.record_attempt("alice", "5-6", "cat", False, "kat")

    day = progress_service.get_today_progress("alice", "5-6")
    assert day is not None
    assert day.total_attempts == 1
    assert day.score == 0
    assert len(day.attempts) == 1
    assert day.attempts[0].correct is False
    assert day.attempts[0].user_answer == "kat"


def test_reattempt_incorrect_then_correct(progress_service: ProgressService, clock) -> None:
    """Fixing a misspelled word raises the score and refreshes the timestamp."""
    progress_service.record_attempt("alice", "5-6", "cat", False, "kat")
    first = progress_service.get_today_progress("alice", "5-6").attempts[0].timestamp

    clock.advance(seconds=5)
    progress_service.record_attempt("alice", "5-6", "cat", True, "cat")

    day = progress_service.get_today_progress("alice", "5-6")
    assert day.score == 1
    assert day.total_attempts == 1
    assert day.attempts[0].timestamp == first + 5000


def test_reattempt_is_case_insensitive(progress_service: ProgressService) -> None:
    """Words differing only in case are the same attempt."""
    progress_service.record_attempt("alice", "5-6", "Cat", True, "Cat")
    progress_service.record_attempt("alice", "5-6", "cAT", True, "cat")

    day = progress_service.get_today_progress("alice", "5-6")
    assert day.total_attempts == 1
    assert day.score == 1
    assert day.attempts[0].word == "cAT"


def test_mixed_attempts_and_misspelled_words(progress_service: ProgressService) -> None:
    """Only incorrect attempts are reported as misspelled."""
    progress_service.record_attempt("alice", "5-6", "dog", True, "dog")
    progress_service.record_attempt("alice", "5-6", "cow", False, "kow")

    day = progress_service.get_today_progress("alice", "5-6")
    assert day.score == 1
    assert day.total_attempts == 2

    misspelled = progress_service.get_misspelled_words(day)
    assert [attempt.word for attempt in misspelled] == ["cow"]
    assert misspelled[0].user_answer == "kow"


def test_counters_stay_consistent_over_sequence(progress_service: ProgressService) -> None:
    """Score and attempt count match the attempts after every call."""
    words = ["apple", "Apple", "pear", "plum", "PEAR", "plum", "fig"]
    for _ in range(40):
        word = fake.random_element(words)
        correct = fake.pybool()
        progress_service.record_attempt("carol", "3-4", word, correct, word if correct else "x")
        day = progress_service.get_today_progress("carol", "3-4")
        assert_counters_consistent(day)
        assert day.score <= day.total_attempts


def test_attempt_order_is_preserved(progress_service: ProgressService) -> None:
    """Re-attempts keep the word's original position."""
    for word in ["one", "two", "three"]:
        progress_service.record_attempt("dave", "1-2", word, False, "")
    progress_service.record_attempt("dave", "1-2", "one", True, "one")

    day = progress_service.get_today_progress("dave", "1-2")
    assert [attempt.word for attempt in day.attempts] == ["one", "two", "three"]
    assert [attempt.word for attempt in progress_service.get_misspelled_words(day)] == ["two", "three"]


def test_grades_are_tracked_separately(progress_service: ProgressService) -> None:
    """Each grade gets its own day record."""
    progress_service.record_attempt("erin", "1-2", "sun", True, "sun")
    progress_service.record_attempt("erin", GradeLevel.GRADE_3_4, "sun", False, "son")

    assert progress_service.get_today_progress("erin", "1-2").score == 1
    day = progress_service.get_today_progress("erin", "3-4")
    assert day.grade_level == "3-4"
    assert day.score == 0
    assert progress_service.get_today_progress("erin", "5-6") is None


def test_record_attempt_creates_user(progress_service: ProgressService, db: Session) -> None:
    """The first attempt of an unknown user creates the user."""
    username = fake.user_name()
    progress_service.record_attempt(username, "5-6", "tree", True, "tree")

    assert UserService(db).list_users() == [username]


def test_new_day_starts_fresh(progress_service: ProgressService, clock) -> None:
    """Attempts on a new date go into a new day record."""
    progress_service.record_attempt("frank", "5-6", "tree", True, "tree")
    clock.advance(days=1)
    progress_service.record_attempt("frank", "5-6", "tree", False, "trea")

    today = progress_service.get_today_progress("frank", "5-6")
    assert today.date == "2024-03-16"
    assert today.score == 0
    yesterday = progress_service.get_day_progress("frank", "2024-03-15", "5-6")
    assert yesterday.score == 1


def test_recent_progress_window(progress_service: ProgressService, clock) -> None:
    """Only the last seven calendar days are returned, newest first."""
    start = clock.now
    for offset in [0, 3, 6, 7, 10]:
        clock.now = start.replace(day=start.day - offset)
        progress_service.record_attempt("gina", "5-6", "word", True, "word")
    clock.now = start

    recent = progress_service.get_recent_progress("gina")
    assert [day.date for day in recent] == ["2024-03-15", "2024-03-12", "2024-03-09"]


def test_recent_progress_excludes_future_days(progress_service: ProgressService, clock) -> None:
    """Days dated after today are never returned."""
    clock.advance(days=1)
    progress_service.record_attempt("gina", "5-6", "word", True, "word")
    clock.advance(days=-1)
    progress_service.record_attempt("gina", "5-6", "word", False, "wrod")

    recent = progress_service.get_recent_progress("gina")
    assert [day.date for day in recent] == ["2024-03-15"]
    assert "2024-03-16" not in [day.date for day in progress_service.get_recent_progress("gina", window_days=30)]


def test_recent_progress_window_across_month(progress_service: ProgressService, clock) -> None:
    """The window uses calendar dates, including across month ends."""
    clock.now = datetime(2024, 2, 28, 23, 59)
    progress_service.record_attempt("hank", "5-6", "leap", True, "leap")
    clock.now = datetime(2024, 3, 1, 0, 1)
    progress_service.record_attempt("hank", "5-6", "leap", True, "leap")
    progress_service.record_attempt("hank", "1-2", "leap", False, "lep")

    recent = progress_service.get_recent_progress("hank", window_days=2)
    assert [day.date for day in recent] == ["2024-03-01", "2024-03-01"]
    assert len(progress_service.get_recent_progress("hank", window_days=3)) == 3


def test_recent_progress_unknown_user(progress_service: ProgressService) -> None:
    """A user without history gets an empty list."""
    assert progress_service.get_recent_progress("bob") == []


def test_misspelled_words_for_day(progress_service: ProgressService) -> None:
    """Misspelled words can be looked up by date and grade."""
    progress_service.record_attempt("ivy", "7-8", "rhythm", False, "rythm")

    assert [a.word for a in progress_service.get_misspelled_words_for_day("ivy", "2024-03-15", "7-8")] == ["rhythm"]
    assert progress_service.get_misspelled_words_for_day("ivy", "2024-03-14", "7-8") == []
    assert progress_service.get_misspelled_words_for_day("nobody", "2024-03-15", "7-8") == []


def test_is_session_complete() -> None:
    """Completion compares the attempt count with the grade total."""
    day = DayProgress(date="2024-03-15", grade_level="5-6", total_attempts=3)

    assert ProgressService.is_session_complete(day, {"5-6": 3}) is True
    assert ProgressService.is_session_complete(day, {"5-6": 4}) is False
    assert ProgressService.is_session_complete(day, {"1-2": 2}) is False


def test_clear_user_history(progress_service: ProgressService, db: Session) -> None:
    """Clearing history keeps the user."""
    progress_service.record_attempt("jack", "5-6", "moon", True, "moon")

    assert progress_service.clear_user_history("jack") is True
    assert progress_service.get_recent_progress("jack") == []
    assert UserService(db).get_user("jack").history == []
    assert progress_service.clear_user_history("nobody") is False


def test_inconsistent_day_is_skipped(progress_service: ProgressService, db: Session) -> None:
    """A day whose score disagrees with its attempts is left out and not updated."""
    storage = StorageService(db)
    progress_service.record_attempt("kate", "5-6", "star", True, "star")
    users = storage.load_users()
    users["kate"].history[0].score = 5
    storage.save_users(users)

    assert progress_service.get_recent_progress("kate") == []
    assert progress_service.get_today_progress("kate", "5-6") is None
    assert progress_service.get_day_progress("kate", "2024-03-15", "5-6") is None
    assert progress_service.get_misspelled_words_for_day("kate", "2024-03-15", "5-6") == []

    progress_service.record_attempt("kate", "5-6", "sky", True, "sky")
    day = storage.load_users()["kate"].history[0]
    assert day.score == 5
    assert [attempt.word for attempt in day.attempts] == ["star"]


def test_corrupt_store_raises(progress_service: ProgressService, db: Session) -> None:
    """Undecodable stored data is an error, not an empty history."""
    db.add(StoredValue(key=STORAGE_KEY, value="{not json"))
    db.commit()

    with pytest.raises(CorruptStoreError):
        progress_service.get_recent_progress("alice")
    with pytest.raises(StorageError):
        progress_service.record_attempt("alice", "5-6", "cat", True, "cat")


def test_wrong_shape_raises(progress_service: ProgressService, db: Session) -> None:
    """Stored data with the wrong shape is reported as corrupt."""
    db.add(StoredValue(key=STORAGE_KEY, value=json.dumps({"alice": {"history": []}})))
    db.commit()

    with pytest.raises(CorruptStoreError):
        progress_service.get_today_progress("alice", "5-6")


def test_storage_unavailable_raises(clock) -> None:
    """Database failures surface as StorageUnavailableError."""
    db = MagicMock(spec=Session)
    db.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
    service = ProgressService(db, clock=clock)

    with pytest.raises(StorageUnavailableError):
        service.get_recent_progress("alice")
    with pytest.raises(StorageUnavailableError):
        service.record_attempt("alice", "5-6", "cat", True, "cat")
    db.rollback.assert_called()


def test_stored_json_shape(progress_service: ProgressService, db: Session) -> None:
    """The stored document uses the camelCase layout."""
    progress_service.record_attempt("liz", "5-6", "bee", False, "")

    raw = db.query(StoredValue).filter(StoredValue.key == STORAGE_KEY).first().value
    data = json.loads(raw)
    day = data["liz"]["history"][0]
    assert data["liz"]["username"] == "liz"
    assert day["date"] == "2024-03-15"
    assert day["gradeLevel"] == "5-6"
    assert day["score"] == 0
    assert day["totalAttempts"] == 1
    assert day["attempts"][0]["userAnswer"] == ""
    assert day["attempts"][0]["correct"] is False
    assert isinstance(day["attempts"][0]["timestamp"], int)


def test_find_attempt() -> None:
    """Attempts are found regardless of case."""
    day = DayProgress(
        date="2024-03-15",
        grade_level="5-6",
        attempts=[WordAttempt(word="Owl", correct=True, user_answer="owl", timestamp=1)],
        score=1,
        total_attempts=1,
    )
    assert day.find_attempt("OWL") is day.attempts[0]
    assert day.find_attempt("hawk") is None
