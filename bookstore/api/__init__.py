"""
Bookstore - FastAPI Backend.

REST API for order placement and administration.
"""

from .main import app, create_app, main
from .dependencies import (
    Settings,
    get_settings,
    get_service_container,
    ServiceContainer,
)
from .schemas import (
    UserCreate,
    UserResponse,
    Token,
    BookCreate,
    BookResponse,
    OrderItemRequest,
    OrderCreateRequest,
    OrderResponse,
    StatusUpdateRequest,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "get_service_container",
    "ServiceContainer",
    # Schemas
    "UserCreate",
    "UserResponse",
    "Token",
    "BookCreate",
    "BookResponse",
    "OrderItemRequest",
    "OrderCreateRequest",
    "OrderResponse",
    "StatusUpdateRequest",
    "HealthResponse",
    "ErrorResponse",
]
