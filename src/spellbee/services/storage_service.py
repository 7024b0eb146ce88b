"""Key-value storage of users and the current-user pointer."""
import json
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Generator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spellbee.errors import CorruptStoreError, StorageUnavailableError
from spellbee.models.models import StoredValue
from spellbee.models.progress_models import UserData
from spellbee.monitoring import storage_errors

logger = logging.getLogger(__name__)

STORAGE_KEY = "spellbee_users"
CURRENT_USER_KEY = "spellbee_current_user"

# Serializes every load-modify-save in this process.
_store_lock = threading.RLock()


class StorageService:
    """Whole-store access to the ``spellbee_users`` blob and the current user.

    The users map is loaded, mutated and saved as a single JSON document.
    Use :meth:`transaction` for any read-modify-write so that concurrent
    callers in one process cannot interleave.
    """

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def _get(self, key: str) -> Optional[str]:
        try:
            row = self.db.query(StoredValue).filter(StoredValue.key == key).first()
        except SQLAlchemyError as e:
            raise self._fail("read", key, e) from e
        return row.value if row else None

    def _set(self, key: str, value: str) -> None:
        try:
            row = self.db.query(StoredValue).filter(StoredValue.key == key).first()
            if row:
                row.value = value
            else:
                self.db.add(StoredValue(key=key, value=value))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("write", key, e) from e

    def _delete(self, key: str) -> None:
        try:
            self.db.query(StoredValue).filter(StoredValue.key == key).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete", key, e) from e

    def _fail(self, operation: str, key: str, error: SQLAlchemyError) -> StorageUnavailableError:
        self.db.rollback()
        storage_errors.labels(error_type="unavailable").inc()
        logger.error(f"Storage {operation} failed for key {key}: {error}")
        return StorageUnavailableError(f"Could not {operation} {key}")

    def load_users(self) -> Dict[str, UserData]:
        """Load every user record, keyed by username in stored order."""
        raw = self._get(STORAGE_KEY)
        if raw is None:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            storage_errors.labels(error_type="corrupt").inc()
            logger.error(f"Stored users could not be decoded: {e}")
            raise CorruptStoreError("Stored users are not valid JSON") from e
        if not isinstance(data, dict):
            storage_errors.labels(error_type="corrupt").inc()
            raise CorruptStoreError("Stored users must be a JSON object")
        try:
            return {username: UserData.from_dict(record) for username, record in data.items()}
        except CorruptStoreError:
            storage_errors.labels(error_type="corrupt").inc()
            raise

    def save_users(self, users: Dict[str, UserData]) -> None:
        """Persist the full users map."""
        payload = {username: user.to_dict() for username, user in users.items()}
        self._set(STORAGE_KEY, json.dumps(payload))

    @contextmanager
    def transaction(self) -> Generator[Dict[str, UserData], None, None]:
        """Load the users map, let the caller mutate it, then save it.

        Nothing is saved if the block raises.
        """
        with _store_lock:
            users = self.load_users()
            yield users
            self.save_users(users)

    def get_current_user(self) -> Optional[str]:
        return self._get(CURRENT_USER_KEY)

    def set_current_user(self, username: str) -> None:
        self._set(CURRENT_USER_KEY, username)

    def clear_current_user(self) -> None:
        self._delete(CURRENT_USER_KEY)
