"""
Service layer: business rules between the HTTP routes and the repositories.
"""

from bookstore.services.user_service import UserService
from bookstore.services.order_service import OrderService

__all__ = [
    "UserService",
    "OrderService",
]
