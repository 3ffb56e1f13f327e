"""
User service: account management shared by registration and the admin channel.
"""

from __future__ import annotations

import logging

from ..auth import create_account, generate_salt, hash_password
from ..database import Database
from ..database.models import DBUser
from ..exceptions import BadRequestError, require_user

logger = logging.getLogger(__name__)


class UserService:
    """Service for user-management operations."""

    def __init__(self, db: Database):
        self.db = db

    def create_user(self, username: str, password: str) -> DBUser:
        """
        Create a user with its Uncategorized category.

        Raises:
            BadRequestError: If the username or password is empty
            ConflictError: "Username already exists" if the name is taken
        """
        user = create_account(self.db, username, password)
        logger.info(f"Created user {user.username} ({user.id})")
        return user

    def delete_user(self, user_id: str) -> None:
        """Delete a user and everything the user owns."""
        self.db.users.delete(user_id)
        logger.info(f"Deleted user {user_id}")

    def rename_user(self, user_id: str, new_name: str) -> None:
        new_name = (new_name or "").strip()
        if not new_name:
            raise BadRequestError("Username cannot be empty")
        self.db.users.update_name(user_id, new_name)

    def change_password(self, user_id: str, new_password: str) -> None:
        """Replace a user's password. The user's refresh keys are revoked."""
        if not new_password:
            raise BadRequestError("Password cannot be empty")
        salt = generate_salt()
        self.db.users.update_password(user_id, hash_password(new_password, salt), salt)

    def list_users(self, limit: int = 100) -> list[DBUser]:
        """List up to `limit` users in creation order."""
        if limit < 1:
            raise BadRequestError("Limit must be positive")
        users, _ = self.db.users.list(count=limit)
        return users

    def user_with_name(self, username: str) -> DBUser | None:
        return self.db.users.get_by_name(username)

    def user_with_id(self, user_id: str) -> DBUser:
        return require_user(self.db.users.get_by_id(user_id))
