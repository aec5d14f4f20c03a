"""
API Middleware

- correlation: correlation id propagation and access logging
- error_handlers: flat JSON error bodies for domain, validation and unexpected errors
"""

from .correlation import CorrelationIdMiddleware
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "register_error_handlers"]
