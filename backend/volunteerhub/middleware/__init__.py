"""Middleware package."""

from volunteerhub.middleware.logging import LoggingMiddleware
from volunteerhub.middleware.request_id import RequestIDMiddleware

__all__ = ["LoggingMiddleware", "RequestIDMiddleware"]
