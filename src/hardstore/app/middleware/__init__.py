"""HTTP middleware."""

from hardstore.app.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
