"""Exceptions raised by the spelling practice app."""


class SpellBeeError(Exception):
    """Base class for all application errors."""


class WordListError(SpellBeeError):
    """The word list for a grade could not be loaded."""


class WordListUnavailableError(WordListError):
    """The word list could not be fetched."""


class EmptyWordListError(WordListError):
    """The word list was fetched but contains no words."""


class StorageError(SpellBeeError):
    """The progress store cannot be read or written.

    Callers must treat this differently from "no history yet": the stored
    progress still exists (or is damaged) and must not be overwritten with
    an empty record.
    """


class StorageUnavailableError(StorageError):
    """The underlying database could not be reached."""


class CorruptStoreError(StorageError):
    """The stored progress could not be decoded."""
