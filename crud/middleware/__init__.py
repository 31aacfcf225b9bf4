"""ASGI middleware for request correlation and request logging."""

from crud.middleware.logging import LoggingMiddleware
from crud.middleware.request_id import RequestIDMiddleware

__all__ = ["LoggingMiddleware", "RequestIDMiddleware"]
