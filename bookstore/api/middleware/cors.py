"""
CORS Configuration

The API serves exactly one browser front-end; only its origin is allowed.
"""

from dataclasses import dataclass, field
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


@dataclass
class CORSConfig:
    """CORS configuration settings."""

    allowed_origin: str = "http://localhost:4200"

    # Cookies and Authorization headers
    allow_credentials: bool = True

    allowed_methods: List[str] = field(default_factory=lambda: [
        "GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"
    ])

    allowed_headers: List[str] = field(default_factory=lambda: [
        "Accept",
        "Accept-Language",
        "Content-Type",
        "Content-Language",
        "Authorization",
        "X-Request-ID",
    ])

    expose_headers: List[str] = field(default_factory=lambda: [
        "X-Request-ID",
    ])

    # Preflight cache (seconds)
    max_age: int = 3600


def get_cors_config(frontend_origin: str) -> CORSConfig:
    """CORS configuration for a front-end origin (trailing slash ignored)."""
    return CORSConfig(allowed_origin=frontend_origin.rstrip("/"))


def setup_cors(app: FastAPI, config: CORSConfig) -> None:
    """
    Configure CORS middleware for the FastAPI application.

    Args:
        app: FastAPI application instance.
        config: CORS configuration.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.allowed_origin],
        allow_credentials=config.allow_credentials,
        allow_methods=config.allowed_methods,
        allow_headers=config.allowed_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )
