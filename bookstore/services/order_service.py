"""
Order Service

Business logic for placing orders and moving them through their status
lifecycle. Prices are resolved here, once, when the order is created.
"""

from decimal import Decimal
from typing import Optional, Sequence

from loguru import logger

from bookstore.exceptions import (
    InvalidStatusTransitionError,
    MalformedRequestError,
    NotFoundError,
)
from bookstore.storage.book_repository import BookRepository
from bookstore.storage.models import OrderStatus
from bookstore.storage.order_repository import LineItemSpec, OrderRepository, StoredOrder
from bookstore.storage.user_repository import StoredUser

# Matches the Numeric(12, 2) price columns
CENT = Decimal("0.01")
MAX_PRICE = Decimal("9999999999.99")


class OrderService:
    """Service for order creation, lookup and status transitions."""

    def __init__(self, order_repository: OrderRepository, book_repository: BookRepository):
        self.orders = order_repository
        self.books = book_repository

    def create_order(
        self,
        user: StoredUser,
        items: Sequence,
        shipping_address: Optional[str] = None,
    ) -> StoredOrder:
        """
        Place an order for a user.

        Args:
            user: Owning user
            items: Objects exposing ``book_id``, ``quantity`` and an optional
                ``price``. A missing price falls back to the book's current
                price.
            shipping_address: Delivery address

        Raises:
            MalformedRequestError: No items, or a non-positive quantity.
            NotFoundError: An item references an unknown book.
        """
        if not items:
            raise MalformedRequestError("Order request and items are required")

        books = self.books.get_many([item.book_id for item in items])

        line_items = []
        for item in items:
            if item.quantity is None or item.quantity < 1:
                raise MalformedRequestError(
                    "Item quantity must be positive",
                    f"Book {item.book_id} has quantity {item.quantity}",
                )

            book = books.get(item.book_id)
            if book is None:
                raise NotFoundError("Book", item.book_id)

            price = Decimal(item.price if getattr(item, "price", None) is not None else book.price)
            if price < 0:
                raise MalformedRequestError("Item price must not be negative")
            if price > MAX_PRICE or price != price.quantize(CENT):
                raise MalformedRequestError(
                    "Item price must be a whole number of cents",
                    f"Book {item.book_id} has price {price}",
                )

            line_items.append(
                LineItemSpec(
                    book_id=book.id,
                    quantity=item.quantity,
                    price=price,
                    book_title=book.title,
                )
            )

        order = self.orders.create(
            user_id=user.id,
            items=line_items,
            shipping_address=shipping_address,
        )
        logger.info(f"Order {order.id} created for {user.username}: {len(line_items)} items, total {order.total_amount}")
        return order

    def get_user_orders(self, user: StoredUser) -> list[StoredOrder]:
        return self.orders.list_for_user(user.id)

    def get_all_orders(self) -> list[StoredOrder]:
        return self.orders.list_all()

    def get_order(self, order_id: int) -> StoredOrder:
        order = self.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def update_order_status(self, order_id: int, status: OrderStatus) -> StoredOrder:
        """
        Move an order to a new status.

        Raises:
            NotFoundError: Unknown order.
            InvalidStatusTransitionError: Order is in a terminal status.
        """
        order = self.get_order(order_id)

        if not order.status.can_transition_to(status):
            logger.warning(f"Rejected transition for order {order_id}: {order.status.value} -> {status.value}")
            raise InvalidStatusTransitionError(order.status, status)

        updated = self.orders.set_status(order_id, status)
        logger.debug(f"Order {order_id}: {order.status.value} -> {status.value}")
        return updated

    def delete_order(self, order_id: int) -> None:
        """Remove an order and its items."""
        if not self.orders.delete(order_id):
            raise NotFoundError("Order", order_id)
