"""
Request logging middleware and log sink setup.

Every request gets one access line on the ``bookstore.api`` logger with
method, path, status, duration and a correlation id. Credentials never
reach the log: auth headers and password/token fields are redacted.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Set

from fastapi import FastAPI, Request, Response
from loguru import logger as loguru_logger
from starlette.middleware.base import BaseHTTPMiddleware

# Request ID for the current request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("bookstore.api")


@dataclass
class LoggingConfig:
    """Configuration for request logging."""

    enabled: bool = True

    # Log JSON request bodies (redacted)
    log_request_body: bool = False
    max_body_log_size: int = 10000

    excluded_paths: Set[str] = field(default_factory=lambda: {
        "/health",
        "/favicon.ico",
    })

    excluded_headers: Set[str] = field(default_factory=lambda: {
        "authorization",
        "cookie",
        "set-cookie",
    })

    redacted_fields: Set[str] = field(default_factory=lambda: {
        "password",
        "hashed_password",
        "token",
        "access_token",
        "secret",
    })

    slow_request_threshold: float = 2.0

    request_id_header: str = "X-Request-ID"


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter for access log records."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        for attr in ("request_data", "status_code", "duration_ms"):
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def redact_sensitive_data(
    data: Any,
    redacted_fields: Set[str],
    replacement: str = "[REDACTED]",
) -> Any:
    """Recursively replace values of sensitive keys."""
    if isinstance(data, dict):
        return {
            key: replacement if key.lower() in redacted_fields
            else redact_sensitive_data(value, redacted_fields, replacement)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive_data(item, redacted_fields, replacement) for item in data]
    return data


def get_request_id() -> str:
    """Get current request ID from context."""
    return request_id_var.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access logging for every request."""

    def __init__(self, app: FastAPI, config: Optional[LoggingConfig] = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    def _filter_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        return {
            key: "[REDACTED]" if key.lower() in self.config.excluded_headers else value
            for key, value in headers.items()
        }

    async def _read_body(self, request: Request) -> Optional[Any]:
        body = await request.body()
        if not body:
            return None
        if len(body) > self.config.max_body_log_size:
            return f"[BODY TOO LARGE: {len(body)} bytes]"
        try:
            return redact_sensitive_data(json.loads(body), self.config.redacted_fields)
        except (json.JSONDecodeError, UnicodeDecodeError):
            # Form posts (token endpoint) carry passwords; never log them raw
            return "[NON-JSON BODY]"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.config.request_id_header) or uuid.uuid4().hex[:8]
        request_id_var.set(request_id)

        if not self.config.enabled or request.url.path in self.config.excluded_paths:
            response = await call_next(request)
            response.headers[self.config.request_id_header] = request_id
            return response

        start_time = time.perf_counter()

        request_data = {
            "method": request.method,
            "path": request.url.path,
            "query": str(request.url.query) or None,
            "headers": self._filter_headers(dict(request.headers)),
            "client_ip": request.client.host if request.client else None,
        }
        if self.config.log_request_body:
            request_data["body"] = await self._read_body(request)

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        duration_ms = round(duration * 1000, 2)
        response.headers[self.config.request_id_header] = request_id

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400 or duration > self.config.slow_request_threshold:
            level = logging.WARNING
        else:
            level = logging.INFO

        message = f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)"
        if duration > self.config.slow_request_threshold:
            message = f"[SLOW] {message}"

        logger.log(
            level,
            message,
            extra={
                "request_data": request_data,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response


def configure_log_sinks(level: str = "INFO", structured: bool = False) -> None:
    """
    Point loguru (service/repository logs) and the access logger at stderr.

    Args:
        level: Minimum level for both loggers.
        structured: Emit JSON lines instead of human-readable text.
    """
    loguru_logger.remove()
    loguru_logger.add(sys.stderr, level=level, serialize=structured)

    handler = logging.StreamHandler()
    if structured:
        handler.setFormatter(StructuredLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    api_logger = logging.getLogger("bookstore")
    api_logger.handlers = [handler]
    api_logger.setLevel(level)
    api_logger.propagate = False


def setup_logging(
    app: FastAPI,
    config: Optional[LoggingConfig] = None,
) -> None:
    """Add the request logging middleware."""
    app.add_middleware(RequestLoggingMiddleware, config=config or LoggingConfig())
