"""
Database models for the bookstore.

Relationships are declared with ``lazy="raise"``: every repository query
states the rows it needs up front, so nothing is loaded behind the caller's
back once a session has closed.
"""

import time
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

ADMIN_AUTHORITY = "ROLE_ADMIN"
CUSTOMER_AUTHORITY = "ROLE_CUSTOMER"

# Price columns keep cents; Decimal values round-trip unchanged.
PRICE_TYPE = Numeric(precision=12, scale=2, asdecimal=True)


class UserRole(str, Enum):
    """Account role."""
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"

    @property
    def authorities(self) -> frozenset[str]:
        if self is UserRole.ADMIN:
            return frozenset({ADMIN_AUTHORITY})
        return frozenset({CUSTOMER_AUTHORITY})


class OrderStatus(str, Enum):
    """Order lifecycle states."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, name: str) -> "OrderStatus":
        """
        Parse a status name, ignoring case.

        Raises:
            ValueError: If the name is not a member.
        """
        try:
            return cls[name.strip().upper()]
        except (KeyError, AttributeError):
            raise ValueError(f"Unknown order status: {name!r}") from None

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    def can_transition_to(self, target: "OrderStatus") -> bool:
        # Re-applying the current status is a no-op and always allowed
        if target is self:
            return True
        return not self.is_terminal


def generate_customer_id() -> str:
    """
    Human-facing account reference: ``CUST`` + epoch milliseconds.

    Two accounts built in the same millisecond get the same value; only the
    unique constraint on ``users.customer_id`` catches that.
    """
    return f"CUST{int(time.time() * 1000)}"


class UserModel(Base):
    """Registered account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    customer_id = Column(String(32), unique=True, nullable=False)
    role = Column(SAEnum(UserRole, name="user_role"), nullable=False, default=UserRole.CUSTOMER)
    age = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)

    orders = relationship("OrderModel", back_populates="user", lazy="raise")

    __table_args__ = (
        CheckConstraint("length(username) >= 3", name="ck_users_username_length"),
        CheckConstraint("age IS NULL OR age >= 0", name="ck_users_age"),
    )

    def __init__(self, **kwargs):
        # Assigned once, at construction
        kwargs.setdefault("customer_id", generate_customer_id())
        kwargs.setdefault("role", UserRole.CUSTOMER)
        super().__init__(**kwargs)


class BookModel(Base):
    """Catalog entry."""
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(500), nullable=False, index=True)
    isbn_13 = Column(String(13), unique=True, index=True)
    price = Column(PRICE_TYPE, nullable=False)
    description = Column(Text)
    added_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_books_price"),
    )


class OrderModel(Base):
    """Purchase record owned by a user."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    shipping_address = Column(Text)
    status = Column(SAEnum(OrderStatus, name="order_status"), nullable=False, default=OrderStatus.PENDING)
    total_amount = Column(PRICE_TYPE, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("UserModel", back_populates="orders", lazy="raise")
    items = relationship("OrderItemModel", back_populates="order", lazy="raise")

    __table_args__ = (
        Index("idx_orders_user_created", "user_id", "created_at"),
    )


class OrderItemModel(Base):
    """
    Line item linking an order to a book.

    ``price`` is the unit price at order time and is never refreshed from
    the book.
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False)
    book_title = Column(String(500))
    quantity = Column(Integer, nullable=False)
    price = Column(PRICE_TYPE, nullable=False)

    order = relationship("OrderModel", back_populates="items", lazy="raise")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity"),
    )
