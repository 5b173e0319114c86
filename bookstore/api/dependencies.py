"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Repositories and services
- Caller identity and authorization guards
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Type, TypeVar

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel, ValidationError

from bookstore.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    SECRET_KEY,
    Identity,
    decode_access_token,
    require_admin_authority,
    require_authenticated,
)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./bookstore.db"
    database_echo: bool = False

    # Tokens
    secret_key: str = SECRET_KEY
    jwt_algorithm: str = ALGORITHM
    access_token_expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES

    # The single front-end allowed by CORS
    frontend_origin: str = "http://localhost:4200"

    # Optional administrator created at startup
    admin_username: Optional[str] = None
    admin_password: Optional[str] = None
    admin_email: Optional[str] = None

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            secret_key=os.getenv("SECRET_KEY", cls.secret_key),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", cls.access_token_expire_minutes)
            ),
            frontend_origin=os.getenv("FRONTEND_ORIGIN", cls.frontend_origin),
            admin_username=os.getenv("ADMIN_USERNAME"),
            admin_password=os.getenv("ADMIN_PASSWORD"),
            admin_email=os.getenv("ADMIN_EMAIL"),
            environment=os.getenv("BOOKSTORE_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was created with."""
    return request.app.state.settings


# =============================================================================
# Service Dependencies (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for lazy-loaded service instances.

    Nothing touches the database until the first request needs it.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._database = None
        self._user_repository = None
        self._book_repository = None
        self._order_repository = None
        self._user_service = None
        self._order_service = None

    @property
    def database(self):
        """Get database instance."""
        if self._database is None:
            from ..storage.database import Database
            self._database = Database(
                self.settings.database_url,
                echo=self.settings.database_echo,
            )
        return self._database

    @property
    def user_repository(self):
        if self._user_repository is None:
            from ..storage.user_repository import UserRepository
            self._user_repository = UserRepository(self.database)
        return self._user_repository

    @property
    def book_repository(self):
        if self._book_repository is None:
            from ..storage.book_repository import BookRepository
            self._book_repository = BookRepository(self.database)
        return self._book_repository

    @property
    def order_repository(self):
        if self._order_repository is None:
            from ..storage.order_repository import OrderRepository
            self._order_repository = OrderRepository(self.database)
        return self._order_repository

    @property
    def user_service(self):
        """Get user service instance."""
        if self._user_service is None:
            from ..services.user_service import UserService
            self._user_service = UserService(self.user_repository)
        return self._user_service

    @property
    def order_service(self):
        """Get order service instance."""
        if self._order_service is None:
            from ..services.order_service import OrderService
            self._order_service = OrderService(
                order_repository=self.order_repository,
                book_repository=self.book_repository,
            )
        return self._order_service

    def close(self) -> None:
        if self._database is not None:
            self._database.dispose()


def init_services(settings: Settings) -> ServiceContainer:
    """Create a service container for one application."""
    return ServiceContainer(settings)


def get_service_container(request: Request) -> ServiceContainer:
    """Service container of the running application."""
    return request.app.state.services


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_user_service(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for user service."""
    return container.user_service


def get_order_service(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for order service."""
    return container.order_service


def get_book_repository(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for book repository."""
    return container.book_repository


# =============================================================================
# Authentication Dependencies
# =============================================================================

# auto_error=False: a missing token must surface as our own 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def get_identity(
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_app_settings),
) -> Optional[Identity]:
    """
    Decode the bearer token, if any.

    Returns None when no token was sent; an invalid token raises.
    """
    if not token:
        return None
    return decode_access_token(token, settings.secret_key, settings.jwt_algorithm)


def require_identity(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    """Require an authenticated caller."""
    return require_authenticated(identity)


def require_admin(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    """Require an authenticated caller with ROLE_ADMIN."""
    return require_admin_authority(identity)


# =============================================================================
# Request Context Dependencies
# =============================================================================

async def get_client_ip(request: Request) -> str:
    """Extract client IP from request, considering proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


ModelT = TypeVar("ModelT", bound=BaseModel)


async def parse_json_body(request: Request, model: Type[ModelT]) -> Optional[ModelT]:
    """
    Validate the raw request body against ``model``.

    Called from dependencies that already passed an auth guard, so an
    anonymous caller is rejected before the body is looked at. An empty
    body or JSON ``null`` yields None.
    """
    body = await request.body()
    if not body.strip() or body.strip() == b"null":
        return None
    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False), body=body) from e
