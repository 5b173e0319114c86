"""
Order Repository

Orders and their line items. An order and its items are always written,
and deleted, in one transaction. Reads eagerly load items and the owning
user in the same round trip, so returned ``StoredOrder`` objects are
complete and detached.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.orm import joinedload, selectinload

from bookstore.exceptions import NotFoundError

from .database import Database
from .models import OrderItemModel, OrderModel, OrderStatus


@dataclass
class LineItemSpec:
    """Priced line item ready to be written."""

    book_id: int
    quantity: int
    price: Decimal
    book_title: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class StoredOrderItem:
    """Data class for order item transfer."""

    id: int
    book_id: int
    quantity: int
    price: Decimal
    book_title: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_model(cls, model: OrderItemModel) -> "StoredOrderItem":
        return cls(
            id=model.id,
            book_id=model.book_id,
            quantity=model.quantity,
            price=model.price,
            book_title=model.book_title,
        )


@dataclass
class StoredOrder:
    """Data class for order transfer."""

    id: int
    user_id: int
    status: OrderStatus
    total_amount: Decimal
    shipping_address: Optional[str] = None
    username: Optional[str] = None
    items: list[StoredOrderItem] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: OrderModel) -> "StoredOrder":
        """Create from a model whose items and user were eagerly loaded."""
        return cls(
            id=model.id,
            user_id=model.user_id,
            status=model.status,
            total_amount=model.total_amount,
            shipping_address=model.shipping_address,
            username=model.user.username if model.user is not None else None,
            items=[StoredOrderItem.from_model(i) for i in sorted(model.items, key=lambda i: i.id)],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class OrderRepository:
    """Repository for orders and order items."""

    def __init__(self, database: Database):
        self.db = database

    @staticmethod
    def _select_orders():
        return select(OrderModel).options(
            selectinload(OrderModel.items),
            joinedload(OrderModel.user),
        )

    def create(
        self,
        user_id: int,
        items: list[LineItemSpec],
        shipping_address: Optional[str] = None,
    ) -> StoredOrder:
        """
        Insert an order with its items.

        Args:
            user_id: Owning user
            items: Priced line items (prices are stored as given)
            shipping_address: Delivery address

        Returns:
            The created order
        """
        total = sum((item.line_total for item in items), Decimal("0"))

        with self.db.session() as session:
            order = OrderModel(
                user_id=user_id,
                shipping_address=shipping_address,
                status=OrderStatus.PENDING,
                total_amount=total,
            )
            session.add(order)
            session.flush()

            session.add_all([
                OrderItemModel(
                    order_id=order.id,
                    book_id=item.book_id,
                    book_title=item.book_title,
                    quantity=item.quantity,
                    price=item.price,
                )
                for item in items
            ])
            order_id = order.id

        logger.debug(f"Inserted order {order_id} with {len(items)} items")
        return self.get(order_id)

    def get(self, order_id: int) -> Optional[StoredOrder]:
        with self.db.session() as session:
            order = session.execute(
                self._select_orders().where(OrderModel.id == order_id)
            ).unique().scalar_one_or_none()
            return StoredOrder.from_model(order) if order else None

    def list_for_user(self, user_id: int) -> list[StoredOrder]:
        """All orders owned by a user, newest first."""
        with self.db.session() as session:
            rows = session.execute(
                self._select_orders()
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).unique().scalars().all()
            return [StoredOrder.from_model(o) for o in rows]

    def list_all(self) -> list[StoredOrder]:
        """Every order in the system, newest first."""
        with self.db.session() as session:
            rows = session.execute(
                self._select_orders()
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).unique().scalars().all()
            return [StoredOrder.from_model(o) for o in rows]

    def set_status(self, order_id: int, status: OrderStatus) -> StoredOrder:
        """Write a new status. Transition rules are the caller's concern."""
        with self.db.session() as session:
            order = session.get(OrderModel, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            order.status = status
            order.updated_at = datetime.utcnow()

        return self.get(order_id)

    def delete(self, order_id: int) -> bool:
        """
        Delete an order and its items in one transaction.

        Returns:
            False if the order did not exist
        """
        with self.db.session() as session:
            exists = session.execute(
                select(OrderModel.id).where(OrderModel.id == order_id)
            ).scalar_one_or_none()
            if exists is None:
                return False

            session.execute(delete(OrderItemModel).where(OrderItemModel.order_id == order_id))
            session.execute(delete(OrderModel).where(OrderModel.id == order_id))

        logger.info(f"Deleted order {order_id} with its items")
        return True

    def count(self) -> int:
        with self.db.session() as session:
            return session.query(OrderModel).count()

    def count_items(self, order_id: Optional[int] = None) -> int:
        """Count item rows, optionally for one order."""
        with self.db.session() as session:
            query = session.query(OrderItemModel)
            if order_id is not None:
                query = query.filter(OrderItemModel.order_id == order_id)
            return query.count()
