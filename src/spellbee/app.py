"""Console practice application."""
import logging
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from spellbee.config import settings
from spellbee.errors import StorageError, WordListError
from spellbee.models.progress_models import PracticeSession
from spellbee.services.history_service import HistoryService, resume_point, retry_words
from spellbee.services.progress_service import ProgressService
from spellbee.services.speech_service import SpeechService
from spellbee.services.user_service import UserService, normalize_username
from spellbee.services.word_service import WordEntry, WordService, check_spelling

REPEAT = ":r"
SLOW = ":s"
NEXT = ":n"
HISTORY = ":h"
QUIT = ":q"


class SpellBeeApp:
    """Main application class."""

    def __init__(
        self,
        db: Session,
        word_service: Optional[WordService] = None,
        speech: Optional[SpeechService] = None,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ):
        """Initialize the application."""
        self.users = UserService(db)
        self.progress = ProgressService(db)
        self.history = HistoryService(self.progress, settings.total_words_for_grade())
        self.words = word_service or WordService()
        self.speech = speech or SpeechService()
        self.input = input_func
        self.output = output_func
        self.loaded_grade: Optional[str] = None
        self.logger = logging.getLogger(__name__)

    def ask(self, prompt: str) -> str:
        return self.input(prompt).strip()

    def choose_user(self) -> str:
        """Select an existing user or create one, and make it current."""
        current = self.users.get_current_user()
        existing = self.users.list_users()
        if existing:
            self.output("Users: " + ", ".join(existing))
        default = f" [{current}]" if current else ""
        while True:
            name = self.ask(f"Your name{default}: ") or (current or "")
            try:
                username = normalize_username(name)
            except ValueError as e:
                self.output(str(e))
                continue
            self.users.create_user(username)
            self.users.set_current_user(username)
            return username

    def choose_grade(self) -> str:
        grades = settings.practice.grade_levels
        while True:
            grade = self.ask(f"Grade ({', '.join(grades)}): ")
            if grade in grades:
                return grade
            self.output(f"Unknown grade: {grade}")

    def load_words(self, grade_level: str) -> bool:
        """Load the grade's word list; retry only when the user asks to."""
        while True:
            try:
                words = self.words.fetch_words(grade_level)
            except WordListError as e:
                self.output(f"Error: {e}")
                if self.ask("Try again? [y/N]: ").lower() != "y":
                    return False
                continue
            self.loaded_grade = grade_level
            self.output(f"Loaded {len(words)} words")
            return True

    def play(self, text: str, slow: bool = False) -> None:
        path = self.speech.speak(text, slow)
        if path is not None:
            self.output(f"(audio: {path})")

    def practice(self, session: PracticeSession, queue: Optional[List[WordEntry]] = None) -> None:
        """Ask words until the user quits or the queue runs out.

        Without a queue, words are picked at random from the loaded list.
        """
        word = None
        while True:
            if queue is not None:
                if not queue:
                    self.output("No more words in this round.")
                    return
                word = queue.pop(0)
            else:
                word = self.words.pick_word(exclude=word)
                if word is None:
                    return
            self.play(word.primary)
            if not self.ask_word(session, word):
                return

    def ask_word(self, session: PracticeSession, word: WordEntry) -> bool:
        """Ask for one word. Returns False when the user wants to stop."""
        while True:
            answer = self.ask(f"Spell the word ({REPEAT} repeat, {SLOW} slow, {NEXT} next, {HISTORY} history, {QUIT} quit): ")
            if answer == QUIT:
                return False
            if answer == NEXT:
                return True
            if answer == REPEAT:
                self.play(word.primary)
                continue
            if answer == SLOW:
                self.play(word.primary, slow=True)
                continue
            if answer == HISTORY:
                self.show_history(session)
                continue
            if not answer:
                continue

            correct = check_spelling(word, answer)
            if correct:
                self.output("Correct! Well done!")
                self.play("Correct")
            else:
                self.output(f"Incorrect. The correct spelling is: {' or '.join(word.spellings)}")
                self.play("Incorrect")
            try:
                self.progress.record_attempt(session.username, session.grade_level, word.primary, correct, answer)
            except StorageError as e:
                self.logger.error(f"Could not save attempt: {e}")
                self.output("Your progress could not be saved. Please check the storage and try again.")
                return False
            today = self.progress.get_today_progress(session.username, session.grade_level)
            if today is not None:
                self.output(f"Today's score: {today.score}/{today.total_attempts}")
            return True

    def show_history(self, session: PracticeSession) -> None:
        """Show the last days and offer to retry misspelled words or resume a day."""
        summaries = self.history.recent_summaries(session.username)
        if not summaries:
            self.output("No practice history yet.")
            return
        for index, summary in enumerate(summaries, start=1):
            status = "complete" if summary.complete else "incomplete"
            self.output(
                f"{index}. {summary.label} (grade {summary.grade_level}): "
                f"{summary.score}/{summary.total_attempts} ({summary.percentage}%), "
                f"{summary.misspelled_count} misspelled, {status}"
            )

        choice = self.ask("Day number to review (enter to go back): ")
        if not choice.isdigit() or not 1 <= int(choice) <= len(summaries):
            return
        summary = summaries[int(choice) - 1]
        day = self.progress.get_day_progress(session.username, summary.date, summary.grade_level)
        if day is None:
            return
        for attempt in self.progress.get_misspelled_words(day):
            self.output(f"  {attempt.word}: you wrote {attempt.user_answer or '(skipped)'}")

        action = self.ask("[t] retry misspelled, [c] continue this day, enter to go back: ").lower()
        if action == "t":
            words = retry_words(day)
            if words:
                retry_session = PracticeSession(session.username, day.grade_level)
                self.practice(retry_session, [self.entry_for(word) for word in words])
        elif action == "c" and not summary.complete:
            point = resume_point(day)
            if point is not None:
                self.output(f"Resuming after '{point.last_word}'")
                self.resume(PracticeSession(session.username, point.grade_level), point.all_words)

    def entry_for(self, word: str) -> WordEntry:
        return self.words.find_entry(word) or WordEntry(spellings=[word], primary=word)

    def resume(self, session: PracticeSession, done: List[str]) -> None:
        """Practice the words of a grade that were not attempted yet."""
        if session.grade_level != self.loaded_grade and not self.load_words(session.grade_level):
            return
        seen = {word.lower() for word in done}
        queue = [entry for entry in self.words.words if entry.primary.lower() not in seen]
        self.practice(session, queue)

    def run(self) -> None:
        """Run one practice session."""
        try:
            username = self.choose_user()
            grade_level = self.choose_grade()
            if not self.load_words(grade_level):
                return
            self.practice(PracticeSession(username, grade_level))
        except StorageError as e:
            self.logger.error(f"Storage error: {e}")
            self.output("Saved progress could not be read. Please check the storage before practicing.")
        finally:
            self.speech.stop()
