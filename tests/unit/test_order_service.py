"""
Unit tests for OrderService and UserService.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import pytest

from bookstore.exceptions import (
    AuthenticationError,
    InvalidStatusTransitionError,
    MalformedRequestError,
    NotFoundError,
)
from bookstore.storage import OrderStatus, UserRole


@dataclass
class Item:
    book_id: int
    quantity: int
    price: Optional[Decimal] = None


@pytest.fixture
def buyer(user_service, unique_customer_ids):
    return user_service.register(
        username="alice",
        email="alice@example.com",
        password="wonderland",
        address="1 Rabbit Hole",
    )


@pytest.fixture
def books(book_repository):
    return [
        book_repository.create(title="Dune", author="Frank Herbert", price=Decimal("9.99")),
        book_repository.create(title="Emma", author="Jane Austen", price=Decimal("5.00")),
    ]


class TestCreateOrder:
    """Tests for OrderService.create_order."""

    def test_creates_one_order_with_all_items(self, order_service, order_repository, buyer, books):
        order = order_service.create_order(
            buyer,
            [Item(books[0].id, 2, Decimal("7.50")), Item(books[1].id, 1, Decimal("5.00"))],
            "1 Rabbit Hole",
        )

        assert order_repository.count() == 1
        assert len(order.items) == 2
        assert [i.price for i in order.items] == [Decimal("7.50"), Decimal("5.00")]
        assert order.total_amount == Decimal("20.00")
        assert order.shipping_address == "1 Rabbit Hole"
        assert order.status is OrderStatus.PENDING

    def test_missing_price_uses_current_book_price(self, order_service, buyer, books):
        order = order_service.create_order(buyer, [Item(books[0].id, 3)])

        assert order.items[0].price == Decimal("9.99")
        assert order.items[0].book_title == "Dune"
        assert order.total_amount == Decimal("29.97")

    def test_price_is_not_affected_by_later_repricing(self, order_service, book_repository, buyer, books):
        order = order_service.create_order(buyer, [Item(books[0].id, 1)])

        book_repository.update_price(books[0].id, Decimal("99.00"))

        assert order_service.get_order(order.id).items[0].price == Decimal("9.99")

    @pytest.mark.parametrize("items", [[], None])
    def test_empty_items_rejected(self, order_service, order_repository, buyer, items):
        with pytest.raises(MalformedRequestError):
            order_service.create_order(buyer, items)
        assert order_repository.count() == 0

    def test_non_positive_quantity_rejected(self, order_service, order_repository, buyer, books):
        with pytest.raises(MalformedRequestError):
            order_service.create_order(buyer, [Item(books[0].id, 0)])
        assert order_repository.count() == 0

    @pytest.mark.parametrize("price", ["9.999", "12345678901.00"])
    def test_price_must_fit_cents(self, order_service, order_repository, buyer, books, price):
        with pytest.raises(MalformedRequestError):
            order_service.create_order(buyer, [Item(books[0].id, 1, Decimal(price))])
        assert order_repository.count() == 0

    def test_unknown_book_rejected(self, order_service, order_repository, buyer, books):
        with pytest.raises(NotFoundError):
            order_service.create_order(buyer, [Item(books[0].id, 1), Item(9999, 1)])
        assert order_repository.count() == 0

    def test_duplicate_submissions_create_duplicate_orders(self, order_service, buyer, books):
        items = [Item(books[0].id, 1)]

        first = order_service.create_order(buyer, items)
        second = order_service.create_order(buyer, items)

        assert first.id != second.id
        assert len(order_service.get_user_orders(buyer)) == 2


class TestUpdateOrderStatus:
    """Tests for OrderService.update_order_status."""

    @pytest.fixture
    def order(self, order_service, buyer, books):
        return order_service.create_order(buyer, [Item(books[0].id, 1)])

    def test_moves_status(self, order_service, order):
        updated = order_service.update_order_status(order.id, OrderStatus.CONFIRMED)
        assert updated.status is OrderStatus.CONFIRMED

    def test_same_status_is_allowed(self, order_service, order):
        updated = order_service.update_order_status(order.id, OrderStatus.PENDING)
        assert updated.status is OrderStatus.PENDING

    def test_terminal_status_is_final(self, order_service, order):
        order_service.update_order_status(order.id, OrderStatus.CANCELLED)

        with pytest.raises(InvalidStatusTransitionError):
            order_service.update_order_status(order.id, OrderStatus.SHIPPED)

        assert order_service.get_order(order.id).status is OrderStatus.CANCELLED

    def test_unknown_order(self, order_service):
        with pytest.raises(NotFoundError):
            order_service.update_order_status(31337, OrderStatus.SHIPPED)


class TestListingAndDeletion:

    def test_get_all_orders_spans_users(self, order_service, user_service, buyer, books):
        other = user_service.register("bob", "bob@example.com", "builder123", "7 Yard Road")
        order_service.create_order(buyer, [Item(books[0].id, 1)])
        order_service.create_order(other, [Item(books[1].id, 1)])

        assert len(order_service.get_all_orders()) == 2
        assert len(order_service.get_user_orders(other)) == 1

    def test_delete_order(self, order_service, order_repository, buyer, books):
        order = order_service.create_order(buyer, [Item(books[0].id, 1), Item(books[1].id, 2)])

        order_service.delete_order(order.id)

        with pytest.raises(NotFoundError):
            order_service.get_order(order.id)
        assert order_repository.count_items() == 0

    def test_delete_unknown_order(self, order_service):
        with pytest.raises(NotFoundError):
            order_service.delete_order(5)


class TestUserService:
    """Tests for UserService."""

    def test_password_is_hashed(self, buyer):
        assert buyer.hashed_password != "wonderland"

    def test_authenticate(self, user_service, buyer):
        user = user_service.authenticate("alice", "wonderland")
        assert user.id == buyer.id

    @pytest.mark.parametrize("username,password", [("alice", "wrong-pass"), ("nobody", "wonderland")])
    def test_authenticate_rejects_bad_credentials(self, user_service, buyer, username, password):
        with pytest.raises(AuthenticationError):
            user_service.authenticate(username, password)

    def test_register_admin_role(self, user_service, unique_customer_ids):
        admin = user_service.register("root", "root@example.com", "rootpass", "HQ", role=UserRole.ADMIN)
        assert admin.authorities == frozenset({"ROLE_ADMIN"})

    def test_update_profile_rehashes_password(self, user_service, buyer):
        user_service.update_profile(buyer.id, password="new-secret", address="2 Tea Party")

        user = user_service.authenticate("alice", "new-secret")
        assert user.address == "2 Tea Party"

    def test_delete_unknown_user(self, user_service):
        with pytest.raises(NotFoundError):
            user_service.delete_user(404)
