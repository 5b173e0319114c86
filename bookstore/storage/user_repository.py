"""
User Repository

Account storage on top of SQLAlchemy. Returns detached ``StoredUser``
snapshots; models never leave a session.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError

from bookstore.exceptions import (
    ConflictError,
    DuplicateCustomerIdError,
    MalformedRequestError,
    NotFoundError,
)

from .database import Database
from .models import OrderItemModel, OrderModel, UserModel, UserRole


@dataclass
class StoredUser:
    """Data class for user data transfer."""

    id: int
    username: str
    email: str
    hashed_password: str
    address: str
    customer_id: str
    role: UserRole = UserRole.CUSTOMER
    age: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def authorities(self) -> frozenset[str]:
        return self.role.authorities

    @classmethod
    def from_model(cls, model: UserModel) -> "StoredUser":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            username=model.username,
            email=model.email,
            hashed_password=model.hashed_password,
            address=model.address,
            customer_id=model.customer_id,
            role=model.role,
            age=model.age,
            created_at=model.created_at,
        )


class UserRepository:
    """Repository for user accounts."""

    # Columns a profile update may touch
    UPDATABLE_FIELDS = frozenset({"email", "address", "age", "hashed_password", "role"})

    def __init__(self, database: Database):
        self.db = database

    def create(
        self,
        username: str,
        email: str,
        hashed_password: str,
        address: str,
        age: Optional[int] = None,
        role: UserRole = UserRole.CUSTOMER,
    ) -> StoredUser:
        """
        Insert a new user.

        Raises:
            ConflictError: Username or email already registered.
            DuplicateCustomerIdError: Generated customer id collided.
            MalformedRequestError: A check constraint rejected the row.
        """
        user = UserModel(
            username=username,
            email=email,
            hashed_password=hashed_password,
            address=address,
            age=age,
            role=role,
        )

        try:
            with self.db.session() as session:
                self._check_unique(session, username, email)
                session.add(user)
                session.flush()
                stored = StoredUser.from_model(user)
        except IntegrityError as e:
            raise self._translate_integrity_error(e, user) from e

        logger.info(f"Created user {stored.username} ({stored.customer_id})")
        return stored

    @staticmethod
    def _translate_integrity_error(error: IntegrityError, user: UserModel) -> Exception:
        """Name the constraint a failed insert tripped over."""
        reason = str(error.orig).lower()

        if "customer_id" in reason:
            logger.warning(f"Customer id collision for {user.username}: {user.customer_id}")
            return DuplicateCustomerIdError(user.customer_id)
        if "check" in reason:
            return MalformedRequestError("Invalid user data", "Username or age out of range")
        if "username" in reason:
            return ConflictError("Username already registered", f"Username '{user.username}' is taken")
        if "email" in reason:
            return ConflictError("Email already registered", f"Email '{user.email}' is taken")
        logger.error(f"Unexpected integrity error creating {user.username}: {error.orig}")
        return ConflictError("User could not be created")

    @staticmethod
    def _check_unique(session, username: str, email: str) -> None:
        existing = session.execute(
            select(UserModel.username, UserModel.email).where(
                or_(UserModel.username == username, UserModel.email == email)
            )
        ).first()

        if existing is None:
            return
        if existing.username == username:
            raise ConflictError("Username already registered", f"Username '{username}' is taken")
        raise ConflictError("Email already registered", f"Email '{email}' is taken")

    def get(self, user_id: int) -> Optional[StoredUser]:
        with self.db.session() as session:
            user = session.get(UserModel, user_id)
            return StoredUser.from_model(user) if user else None

    def get_by_username(self, username: str) -> Optional[StoredUser]:
        """Exact, case-sensitive username lookup."""
        with self.db.session() as session:
            user = session.execute(
                select(UserModel).where(UserModel.username == username)
            ).scalar_one_or_none()
            return StoredUser.from_model(user) if user else None

    def update(self, user_id: int, **updates) -> StoredUser:
        """
        Update profile fields.

        Unknown or immutable fields (username, customer_id) are ignored.
        """
        with self.db.session() as session:
            user = session.get(UserModel, user_id)
            if user is None:
                raise NotFoundError("User", user_id)

            for key, value in updates.items():
                if key in self.UPDATABLE_FIELDS:
                    setattr(user, key, value)

            try:
                session.flush()
            except IntegrityError as e:
                raise ConflictError("Email already registered") from e

            return StoredUser.from_model(user)

    def delete(self, user_id: int) -> bool:
        """
        Delete a user with all owned orders and their items.

        Runs in a single transaction.
        """
        with self.db.session() as session:
            user = session.get(UserModel, user_id)
            if user is None:
                return False

            order_ids = select(OrderModel.id).where(OrderModel.user_id == user_id)
            session.execute(delete(OrderItemModel).where(OrderItemModel.order_id.in_(order_ids)))
            session.execute(delete(OrderModel).where(OrderModel.user_id == user_id))
            session.execute(delete(UserModel).where(UserModel.id == user_id))

        logger.info(f"Deleted user {user_id} and owned orders")
        return True

    def count(self) -> int:
        with self.db.session() as session:
            return session.query(UserModel).count()
