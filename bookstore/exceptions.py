"""
Typed errors for the bookstore.

Every error carries an ``ErrorKind``. The HTTP layer turns kinds into
status codes through ``ERROR_STATUS_CODES`` and nowhere else.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure categories understood by the HTTP layer."""
    AUTHENTICATION_MISSING = "AUTHENTICATION_MISSING"
    AUTHORIZATION_DENIED = "AUTHORIZATION_DENIED"
    MALFORMED_REQUEST = "MALFORMED_REQUEST"
    UNPARSABLE_ENUM = "UNPARSABLE_ENUM"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    DOMAIN_ERROR = "DOMAIN_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.AUTHENTICATION_MISSING: 401,
    ErrorKind.AUTHORIZATION_DENIED: 403,
    ErrorKind.MALFORMED_REQUEST: 400,
    ErrorKind.UNPARSABLE_ENUM: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.DOMAIN_ERROR: 400,
    ErrorKind.INTERNAL_ERROR: 500,
}


def status_code_for(kind: ErrorKind) -> int:
    """HTTP status for an error kind."""
    return ERROR_STATUS_CODES.get(kind, 500)


class BookstoreException(Exception):
    """Base exception for bookstore errors."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.INTERNAL_ERROR,
        detail: Optional[str] = None,
    ):
        self.message = message
        self.kind = kind
        self.detail = detail
        super().__init__(message)

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def status_code(self) -> int:
        return status_code_for(self.kind)


class AuthenticationError(BookstoreException):
    """Caller identity missing or not verifiable."""

    def __init__(self, message: str = "Authentication required", detail: Optional[str] = None):
        super().__init__(message, ErrorKind.AUTHENTICATION_MISSING, detail)


class AuthorizationError(BookstoreException):
    """Caller lacks the required authority."""

    def __init__(self, message: str = "Admin access required", detail: Optional[str] = None):
        super().__init__(message, ErrorKind.AUTHORIZATION_DENIED, detail)


class MalformedRequestError(BookstoreException):
    """Request shape is unusable."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, ErrorKind.MALFORMED_REQUEST, detail)


class InvalidOrderStatusError(BookstoreException):
    """Status name is not an ``OrderStatus`` member."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            "Invalid order status",
            ErrorKind.UNPARSABLE_ENUM,
            f"'{value}' is not a known order status",
        )


class NotFoundError(BookstoreException):
    """Resource not found."""

    def __init__(self, resource: str, identifier):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            f"{resource} not found",
            ErrorKind.NOT_FOUND,
            f"No {resource.lower()} with identifier '{identifier}' exists",
        )


class ConflictError(BookstoreException):
    """Write rejected by a uniqueness rule."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, ErrorKind.CONFLICT, detail)


class DuplicateCustomerIdError(ConflictError):
    """Generated customer id already taken."""

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(
            "Customer identifier already in use",
            f"Customer id '{customer_id}' collides with an existing account",
        )


class DomainError(BookstoreException):
    """Business rule violation."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, ErrorKind.DOMAIN_ERROR, detail)


class UnknownUserError(DomainError):
    """Authenticated name has no user record."""

    def __init__(self, username: str, message: str = "User not found"):
        self.username = username
        super().__init__(message)


class InvalidStatusTransitionError(DomainError):
    """Order cannot move from its current status to the requested one."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(
            "Invalid status transition",
            f"Order in status {current.value} cannot move to {target.value}",
        )
