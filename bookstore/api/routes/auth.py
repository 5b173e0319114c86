"""
Authentication API Routes

Handles:
- User registration
- User login (token generation)
- Current user retrieval
"""

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger

from bookstore.api.dependencies import (
    Settings,
    get_app_settings,
    get_client_ip,
    get_user_service,
    require_identity,
)
from bookstore.api.schemas import Token, UserCreate, UserResponse
from bookstore.exceptions import UnknownUserError
from bookstore.security import Identity, issue_token_for

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, users=Depends(get_user_service)):
    """Register a new customer account."""
    return users.register(
        username=user.username,
        email=user.email,
        password=user.password,
        address=user.address,
        age=user.age,
    )


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    users=Depends(get_user_service),
    settings: Settings = Depends(get_app_settings),
    client_ip: str = Depends(get_client_ip),
):
    """
    Login endpoint.
    Returns a bearer JWT carrying the user's authorities.
    """
    user = users.authenticate(form_data.username, form_data.password)

    access_token = issue_token_for(
        user.username,
        user.authorities,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    logger.info(f"Issued token for {user.username} from {client_ip}")

    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
def read_users_me(
    identity: Identity = Depends(require_identity),
    users=Depends(get_user_service),
):
    """Get current user profile."""
    user = users.find_by_username(identity.username)
    if user is None:
        raise UnknownUserError(identity.username)
    return user
