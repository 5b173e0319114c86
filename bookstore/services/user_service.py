"""
User Service

Registration, credential checks and profile lookups.
"""

from typing import Optional

from loguru import logger

from bookstore.exceptions import AuthenticationError, NotFoundError
from bookstore.security import get_password_hash, verify_password
from bookstore.storage.models import UserRole
from bookstore.storage.user_repository import StoredUser, UserRepository


class UserService:
    """Service for user accounts."""

    def __init__(self, user_repository: UserRepository):
        self.users = user_repository

    def register(
        self,
        username: str,
        email: str,
        password: str,
        address: str,
        age: Optional[int] = None,
        role: UserRole = UserRole.CUSTOMER,
    ) -> StoredUser:
        """Create an account with a hashed password."""
        logger.info(f"Registering user: {username}")
        return self.users.create(
            username=username,
            email=email,
            hashed_password=get_password_hash(password),
            address=address,
            age=age,
            role=role,
        )

    def find_by_username(self, username: str) -> Optional[StoredUser]:
        return self.users.get_by_username(username)

    def authenticate(self, username: str, password: str) -> StoredUser:
        """
        Check credentials.

        Raises:
            AuthenticationError: Unknown user or wrong password (same message).
        """
        user = self.users.get_by_username(username)
        if user is None or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login for {username}")
            raise AuthenticationError("Incorrect username or password")
        return user

    def update_profile(self, user_id: int, **updates) -> StoredUser:
        """Apply profile changes; a plain ``password`` is re-hashed."""
        password = updates.pop("password", None)
        if password:
            updates["hashed_password"] = get_password_hash(password)
        updates = {k: v for k, v in updates.items() if v is not None}
        return self.users.update(user_id, **updates)

    def delete_user(self, user_id: int) -> None:
        if not self.users.delete(user_id):
            raise NotFoundError("User", user_id)
