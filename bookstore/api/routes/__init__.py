"""
API Routes for the bookstore

Route modules:
- auth: Registration, login, current user
- books: Catalog entries and prices
- orders: Order placement, listing and status changes
"""

from bookstore.api.routes.auth import router as auth_router
from bookstore.api.routes.books import router as books_router
from bookstore.api.routes.orders import router as orders_router

__all__ = [
    "auth_router",
    "books_router",
    "orders_router",
]
