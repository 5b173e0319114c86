"""
Password hashing, access tokens and the request identity.

Tokens are HS256 JWTs whose ``sub`` is the username and whose
``authorities`` claim lists the caller's role strings.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from bookstore.exceptions import AuthenticationError, AuthorizationError
from bookstore.storage.models import ADMIN_AUTHORITY

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
    secret_key: str = SECRET_KEY,
    algorithm: str = ALGORITHM,
) -> str:
    """
    Encode a signed access token.

    Args:
        data: Claims; must contain ``sub``
        expires_delta: Lifetime (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller: a username and its authority strings."""

    username: str
    authorities: frozenset[str] = field(default_factory=frozenset)

    def has_authority(self, authority: str) -> bool:
        # Exact string membership, no hierarchy
        return authority in self.authorities

    @property
    def is_admin(self) -> bool:
        return self.has_authority(ADMIN_AUTHORITY)


def decode_access_token(
    token: str,
    secret_key: str = SECRET_KEY,
    algorithm: str = ALGORITHM,
) -> Identity:
    """
    Verify a token and build the caller identity.

    Raises:
        AuthenticationError: Bad signature, expired, or empty subject.
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError as e:
        raise AuthenticationError("Invalid authentication", detail="Could not validate credentials") from e

    username = payload.get("sub")
    if not username or not isinstance(username, str):
        raise AuthenticationError("Invalid authentication", detail="Token subject is empty")

    authorities = payload.get("authorities") or []
    if isinstance(authorities, str):
        authorities = [authorities]

    return Identity(username=username, authorities=frozenset(str(a) for a in authorities))


def issue_token_for(username: str, authorities: Iterable[str], **kwargs) -> str:
    """Access token for a user with the given authorities."""
    return create_access_token(
        {"sub": username, "authorities": sorted(authorities)},
        **kwargs,
    )


def require_authenticated(identity: Optional[Identity]) -> Identity:
    """Guard: a caller with a non-empty username."""
    if identity is None:
        raise AuthenticationError("Authentication required")
    if not identity.username:
        raise AuthenticationError("Invalid authentication")
    return identity


def require_admin_authority(identity: Optional[Identity]) -> Identity:
    """Guard: an authenticated caller holding ROLE_ADMIN."""
    identity = require_authenticated(identity)
    if not identity.is_admin:
        raise AuthorizationError("Admin access required")
    return identity
