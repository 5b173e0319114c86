"""
Pytest configuration and fixtures for the bookstore tests.
"""

import itertools
import sys
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bookstore.api.dependencies import Settings
from bookstore.api.main import create_app
from bookstore.security import issue_token_for
from bookstore.services import OrderService, UserService
from bookstore.storage import (
    BookRepository,
    Database,
    OrderRepository,
    UserRepository,
    UserRole,
)
from bookstore.storage import models


# =============================================================================
# Test Settings
# =============================================================================

def get_test_settings() -> Settings:
    """Return settings configured for testing."""
    return Settings(
        database_url="sqlite://",
        database_echo=False,
        secret_key="test-secret-key",
        frontend_origin="http://localhost:4200",
        environment="test",
        debug=False,
    )


@pytest.fixture
def settings() -> Settings:
    return get_test_settings()


@pytest.fixture
def unique_customer_ids(monkeypatch):
    """
    Deterministic, distinct customer ids.

    Fixture users are created faster than one per millisecond, which would
    make the time-based ids collide.
    """
    counter = itertools.count(1)
    monkeypatch.setattr(models, "generate_customer_id", lambda: f"CUST{next(counter):013d}")


# =============================================================================
# Storage / Service Fixtures
# =============================================================================

@pytest.fixture
def database():
    """Fresh in-memory database."""
    db = Database("sqlite://")
    yield db
    db.dispose()


@pytest.fixture
def user_repository(database) -> UserRepository:
    return UserRepository(database)


@pytest.fixture
def book_repository(database) -> BookRepository:
    return BookRepository(database)


@pytest.fixture
def order_repository(database) -> OrderRepository:
    return OrderRepository(database)


@pytest.fixture
def user_service(user_repository) -> UserService:
    return UserService(user_repository)


@pytest.fixture
def order_service(order_repository, book_repository) -> OrderService:
    return OrderService(order_repository=order_repository, book_repository=book_repository)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app(settings):
    """Create FastAPI application for testing."""
    application = create_app(settings)
    yield application
    application.state.services.close()


@pytest.fixture
def services(app):
    """Service container of the test application."""
    return app.state.services


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def customer(services, unique_customer_ids):
    """Registered customer account."""
    return services.user_service.register(
        username="alice",
        email="alice@example.com",
        password="wonderland",
        address="1 Rabbit Hole, Oxford",
        age=29,
    )


@pytest.fixture
def other_customer(services, unique_customer_ids):
    return services.user_service.register(
        username="bob",
        email="bob@example.com",
        password="builder123",
        address="7 Yard Road, Leeds",
    )


@pytest.fixture
def admin(services, unique_customer_ids):
    """Registered administrator account."""
    return services.user_service.register(
        username="admin",
        email="admin@example.com",
        password="admin-pass",
        address="Bookstore HQ",
        role=UserRole.ADMIN,
    )


def auth_headers(settings: Settings, username: str, authorities) -> dict:
    token = issue_token_for(username, authorities, secret_key=settings.secret_key)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for(settings):
    """Bearer headers for an arbitrary username, registered or not."""
    def _headers(username: str, authorities) -> dict:
        return auth_headers(settings, username, authorities)
    return _headers


@pytest.fixture
def customer_headers(settings, customer) -> dict:
    return auth_headers(settings, customer.username, customer.authorities)


@pytest.fixture
def other_customer_headers(settings, other_customer) -> dict:
    return auth_headers(settings, other_customer.username, other_customer.authorities)


@pytest.fixture
def admin_headers(settings, admin) -> dict:
    return auth_headers(settings, admin.username, admin.authorities)


@pytest.fixture
def catalog(services) -> list:
    """Two books in the application's catalog."""
    repo = services.book_repository
    return [
        repo.create(
            title="The Great Gatsby",
            author="F. Scott Fitzgerald",
            price=Decimal("12.50"),
            isbn_13="9780743273565",
        ),
        repo.create(
            title="1984",
            author="George Orwell",
            price=Decimal("8.00"),
            isbn_13="9780451524935",
        ),
    ]


@pytest.fixture
def sample_books_batch() -> list[dict]:
    """Book payloads for catalog tests."""
    return [
        {"title": "Pride and Prejudice", "author": "Jane Austen", "price": "9.99", "isbn_13": "9780141439518"},
        {"title": "To Kill a Mockingbird", "author": "Harper Lee", "price": "11.25", "isbn_13": "9780061120084"},
    ]
