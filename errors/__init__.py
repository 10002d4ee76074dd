"""
Error handling module for the session service.

This module provides:
- ErrorCode enum for standardized error codes
- Exception handlers mapping session store and unexpected errors to
  structured JSON responses
"""

from errors.codes import ErrorCode
from errors.handlers import (
    ErrorResponse,
    handle_session_store_error,
    handle_unexpected_exception,
    register_exception_handlers,
)

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "handle_session_store_error",
    "handle_unexpected_exception",
    "register_exception_handlers",
]
