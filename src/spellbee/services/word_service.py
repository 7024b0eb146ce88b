"""Service for loading word lists and checking answers."""
import logging
import random
from dataclasses import dataclass
from typing import List, Optional

import requests

from spellbee.config import settings
from spellbee.errors import EmptyWordListError, WordListUnavailableError
from spellbee.models.progress_models import grade_value
from spellbee.monitoring import word_list_errors

logger = logging.getLogger(__name__)


@dataclass
class WordEntry:
    """One vocabulary item with every accepted spelling."""
    spellings: List[str]
    primary: str  # first spelling, used for lookup and audio


def parse_word_list(text: str) -> List[WordEntry]:
    """Parse newline-delimited records of comma-separated spellings."""
    entries = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        spellings = [spelling.strip() for spelling in line.split(",")]
        spellings = [spelling for spelling in spellings if spelling]
        if not spellings:
            continue
        entries.append(WordEntry(spellings=spellings, primary=spellings[0]))
    return entries


def check_spelling(entry: WordEntry, answer: str) -> bool:
    """Whether ``answer`` matches any accepted spelling, ignoring case and outer spaces."""
    answer = answer.strip().lower()
    return any(spelling.lower() == answer for spelling in entry.spellings)


class WordService:
    """Service for fetching the word list of a grade."""

    def __init__(self, url_template: Optional[str] = None, timeout: Optional[float] = None):
        self.url_template = url_template or settings.word_list.url_template
        self.timeout = timeout or settings.word_list.timeout
        self.words: List[WordEntry] = []

    def word_list_url(self, grade_level: str) -> str:
        """Build the word list URL for a grade."""
        return self.url_template.format(grade=grade_value(grade_level))

    def fetch_words(self, grade_level: Optional[str] = None, url: Optional[str] = None) -> List[WordEntry]:
        """Fetch and parse the word list for a grade, or from an explicit URL.

        The loaded list replaces any earlier one. Failures are raised once;
        fetching again is up to the caller.
        """
        if url is None:
            if grade_level is None:
                raise ValueError("Either grade_level or url is required")
            url = self.word_list_url(grade_level)

        logger.info(f"Fetching word list from {url}")
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            word_list_errors.labels(error_type="unavailable").inc()
            logger.error(f"Failed to fetch word list from {url}: {e}")
            raise WordListUnavailableError("Failed to fetch word list") from e

        words = parse_word_list(response.text)
        if not words:
            word_list_errors.labels(error_type="empty").inc()
            logger.error(f"Word list at {url} is empty")
            raise EmptyWordListError("Word list is empty")

        self.words = words
        logger.info(f"Loaded {len(words)} words")
        return words

    def pick_word(self, exclude: Optional[WordEntry] = None) -> Optional[WordEntry]:
        """Pick a random word, avoiding ``exclude`` when there is a choice."""
        candidates = [word for word in self.words if word is not exclude] or self.words
        if not candidates:
            return None
        return random.choice(candidates)

    def find_entry(self, word: str) -> Optional[WordEntry]:
        """Find a loaded entry by its primary spelling, ignoring case."""
        for entry in self.words:
            if entry.primary.lower() == word.lower():
                return entry
        return None
