"""
API Schemas for the bookstore

Pydantic models for request validation and response serialization:
- Auth and user models
- Book models
- Order models

Design Decisions:
1. Requests accept both snake_case and the camelCase keys the front-end sends
2. Responses are built from repository dataclasses (``from_attributes``)
3. Money is ``Decimal`` end to end and serialized as a string
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field

from bookstore.storage.models import OrderStatus, UserRole


# =============================================================================
# Auth / User Schemas
# =============================================================================

class UserCreate(BaseModel):
    """Registration request."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    address: str = Field(..., min_length=1)
    age: Optional[int] = Field(None, ge=0, le=150)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "reader42",
                "email": "reader42@example.com",
                "password": "s3cret-pass",
                "address": "12 Library Lane, Springfield",
                "age": 31,
            }
        }
    )


class UserResponse(BaseModel):
    """Public user profile."""

    id: int
    username: str
    email: str
    address: str
    customer_id: str
    role: UserRole
    age: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def authorities(self) -> list[str]:
        return sorted(self.role.authorities)


class Token(BaseModel):
    access_token: str
    token_type: str


# =============================================================================
# Book Schemas
# =============================================================================

class BookCreate(BaseModel):
    """Catalog entry creation request."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    isbn_13: Optional[str] = Field(None, pattern=r"^\d{13}$")
    description: Optional[str] = None


class BookPriceUpdate(BaseModel):
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class BookResponse(BaseModel):
    id: int
    title: str
    author: str
    price: Decimal
    isbn_13: Optional[str] = None
    description: Optional[str] = None
    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Order Schemas
# =============================================================================

class OrderItemRequest(BaseModel):
    """One requested line item."""

    book_id: int = Field(..., alias="bookId", ge=1)
    quantity: int = Field(..., ge=1)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)

    model_config = ConfigDict(populate_by_name=True)


class OrderCreateRequest(BaseModel):
    """Order placement request."""

    items: Optional[list[OrderItemRequest]] = None
    shipping_address: Optional[str] = Field(None, alias="shippingAddress")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "items": [{"bookId": 1, "quantity": 2, "price": "12.50"}],
                "shippingAddress": "12 Library Lane, Springfield",
            }
        },
    )


class StatusUpdateRequest(BaseModel):
    """Status change request; the name is matched case-insensitively."""

    status: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: int
    book_id: int
    book_title: Optional[str] = None
    quantity: int
    price: Decimal

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class OrderResponse(BaseModel):
    """Order with its items."""

    id: int
    user_id: int
    username: Optional[str] = None
    status: OrderStatus
    shipping_address: Optional[str] = None
    total_amount: Decimal
    items: list[OrderItemResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Error Schemas
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    request_id: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Order not found",
                "code": "NOT_FOUND",
                "detail": "No order with identifier '42' exists",
                "timestamp": "2025-01-20T12:00:00Z",
                "request_id": "3f9c2a1b",
            }
        }
    )


# =============================================================================
# Health Check
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
