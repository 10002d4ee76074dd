"""
Middleware components for the session service.

This module contains FastAPI middleware for cross-cutting concerns
such as request correlation and request context for session enrichment.
"""

from middleware.request_id import RequestIDMiddleware, request_id_var
from middleware.request_context import (
    RequestContextMiddleware,
    ContextRequestResolver,
    ContextIdentityResolver,
    request_context_var,
    identity_var,
    set_current_identity,
    reset_current_identity,
    get_client_ip,
)

__all__ = [
    "RequestIDMiddleware",
    "request_id_var",
    "RequestContextMiddleware",
    "ContextRequestResolver",
    "ContextIdentityResolver",
    "request_context_var",
    "identity_var",
    "set_current_identity",
    "reset_current_identity",
    "get_client_ip",
]
