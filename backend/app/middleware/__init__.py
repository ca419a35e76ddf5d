"""Application middleware."""

from app.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
]
