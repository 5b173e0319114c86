"""
Error Handling for the bookstore API

Centralized translation of typed errors into HTTP responses:
- Status codes come only from ``ERROR_STATUS_CODES``
- Structured error bodies
- Unexpected exceptions are logged in full and answered generically
"""

import traceback
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from bookstore.exceptions import BookstoreException, ErrorKind, status_code_for

from .logging import get_request_id


def create_error_response(
    error: str,
    kind: ErrorKind,
    detail: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Create standardized error response."""
    return JSONResponse(
        status_code=status_code_for(kind),
        content={
            "error": error,
            "code": kind.value,
            "detail": detail,
            "timestamp": datetime.utcnow().isoformat(),
            "request_id": get_request_id() or None,
        },
        headers=headers,
    )


def _summarize_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location or 'body'}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(BookstoreException)
    async def bookstore_exception_handler(request: Request, exc: BookstoreException):
        logger.warning(f"{request.method} {request.url.path}: {exc.code} - {exc.message}")

        headers = None
        if exc.kind is ErrorKind.AUTHENTICATION_MISSING:
            headers = {"WWW-Authenticate": "Bearer"}

        return create_error_response(
            error=exc.message,
            kind=exc.kind,
            detail=exc.detail,
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        detail = _summarize_validation_errors(exc)
        logger.warning(f"Validation error on {request.url.path}: {detail}")
        return create_error_response(
            error="Malformed request",
            kind=ErrorKind.MALFORMED_REQUEST,
            detail=detail,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: "
            f"{type(exc).__name__}: {exc}\n{traceback.format_exc()}"
        )
        # Internal error text stays in the log
        return create_error_response(
            error="Internal Server Error",
            kind=ErrorKind.INTERNAL_ERROR,
            detail="An unexpected error occurred",
        )
