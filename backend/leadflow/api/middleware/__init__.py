"""
API Middleware Module

- correlation: request correlation ID middleware
- error_handlers: exception handlers for domain, validation and unexpected errors
"""

from .correlation import CorrelationIdMiddleware
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "register_error_handlers"]
