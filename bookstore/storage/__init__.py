"""
Storage Module for the bookstore

Relational persistence through SQLAlchemy:
- Declarative models (users, books, orders, order items)
- Repositories returning detached dataclass snapshots
- Explicit eager loading and explicit cascading deletes
"""

from bookstore.storage.database import Database
from bookstore.storage.models import (
    Base,
    UserModel,
    BookModel,
    OrderModel,
    OrderItemModel,
    UserRole,
    OrderStatus,
    ADMIN_AUTHORITY,
    CUSTOMER_AUTHORITY,
    generate_customer_id,
)
from bookstore.storage.user_repository import (
    UserRepository,
    StoredUser,
)
from bookstore.storage.book_repository import (
    BookRepository,
    StoredBook,
)
from bookstore.storage.order_repository import (
    OrderRepository,
    StoredOrder,
    StoredOrderItem,
    LineItemSpec,
)

__all__ = [
    "Database",
    # Models
    "Base",
    "UserModel",
    "BookModel",
    "OrderModel",
    "OrderItemModel",
    "UserRole",
    "OrderStatus",
    "ADMIN_AUTHORITY",
    "CUSTOMER_AUTHORITY",
    "generate_customer_id",
    # Repositories
    "UserRepository",
    "StoredUser",
    "BookRepository",
    "StoredBook",
    "OrderRepository",
    "StoredOrder",
    "StoredOrderItem",
    "LineItemSpec",
]
