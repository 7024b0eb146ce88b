"""User service for managing practice users and the current user."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from spellbee.models.progress_models import UserData
from spellbee.services.storage_service import StorageService

# Configure logging
logger = logging.getLogger(__name__)


def normalize_username(username: str) -> str:
    """Trim a username typed by the user, rejecting empty names."""
    name = username.strip()
    if not name:
        raise ValueError("Username cannot be empty")
    return name


class UserService:
    """Service for creating, selecting and deleting users."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.storage = StorageService(db)

    def list_users(self) -> List[str]:
        """Get all usernames in stored order."""
        return list(self.storage.load_users())

    def get_user(self, username: str) -> Optional[UserData]:
        """Get a user's record, or None if the user does not exist."""
        return self.storage.load_users().get(username)

    def create_user(self, username: str) -> UserData:
        """Get existing user or create a new one."""
        with self.storage.transaction() as users:
            user = users.get(username)
            if user is None:
                user = UserData(username=username)
                users[username] = user
                logger.info(f"User created: {username}")
        return user

    def delete_user(self, username: str) -> bool:
        """Delete a user with their whole history.

        Returns False if the user does not exist. Clears the current user
        if it pointed to the deleted user.
        """
        with self.storage.transaction() as users:
            if username not in users:
                return False
            del users[username]

        if self.storage.get_current_user() == username:
            self.storage.clear_current_user()
        logger.info(f"User deleted: {username}")
        return True

    def get_current_user(self) -> Optional[str]:
        """Get the username currently practicing, if any."""
        return self.storage.get_current_user()

    def set_current_user(self, username: str) -> None:
        """Select the user currently practicing."""
        self.storage.set_current_user(username)

    def clear_current_user(self) -> None:
        """Forget the user currently practicing."""
        self.storage.clear_current_user()
