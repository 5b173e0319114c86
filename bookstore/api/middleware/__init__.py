"""
API middleware components.

Provides cross-cutting concerns for the API:
- Error translation
- CORS configuration
- Request logging
"""

from .error_handler import (
    setup_exception_handlers,
    create_error_response,
)

from .cors import (
    CORSConfig,
    get_cors_config,
    setup_cors,
)

from .logging import (
    LoggingConfig,
    StructuredLogFormatter,
    RequestLoggingMiddleware,
    configure_log_sinks,
    setup_logging,
    get_request_id,
    redact_sensitive_data,
)


__all__ = [
    # Error handling
    "setup_exception_handlers",
    "create_error_response",
    # CORS
    "CORSConfig",
    "get_cors_config",
    "setup_cors",
    # Logging
    "LoggingConfig",
    "StructuredLogFormatter",
    "RequestLoggingMiddleware",
    "configure_log_sinks",
    "setup_logging",
    "get_request_id",
    "redact_sensitive_data",
]
