"""
Request and identity context for session enrichment.

RequestContextMiddleware publishes the request being served in a context
variable so session writes can record the client's network origin and user
agent without the session layer knowing anything about HTTP. Host
authentication code publishes the current user id the same way through
``set_current_identity``.
"""

from contextvars import ContextVar, Token
from typing import Any, Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

# Request currently being served, None outside a request
request_context_var: ContextVar[Optional[Request]] = ContextVar("request_context", default=None)

# Authenticated user id for the current request, None when anonymous
identity_var: ContextVar[Optional[Any]] = ContextVar("identity", default=None)

USER_AGENT_HEADER = "User-Agent"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that exposes the active request through ``request_context_var``.

    The context variable is reset after the response is produced so one
    request never leaks into the next.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        token = request_context_var.set(request)
        try:
            return await call_next(request)
        finally:
            request_context_var.reset(token)


def get_client_ip(request: Request, trust_forwarded_headers: bool = False) -> Optional[str]:
    """
    Extract the client IP address from the request.

    Forwarding headers are only honoured when the service runs behind a
    proxy that sets them, since clients can forge them otherwise.

    Args:
        request: The incoming FastAPI request
        trust_forwarded_headers: Use X-Forwarded-For / X-Real-IP when present

    Returns:
        The client's IP address, or None if it cannot be determined
    """
    if trust_forwarded_headers:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    if request.client is None:
        return None
    return request.client.host


class ContextRequestResolver:
    """Request-context resolver reading the request set by RequestContextMiddleware."""

    def __init__(self, trust_forwarded_headers: bool = False):
        self.trust_forwarded_headers = trust_forwarded_headers

    def has_active_request(self) -> bool:
        return request_context_var.get() is not None

    def current_network_origin(self) -> Optional[str]:
        request = request_context_var.get()
        if request is None:
            return None
        return get_client_ip(request, self.trust_forwarded_headers)

    def current_client_agent(self) -> Optional[str]:
        request = request_context_var.get()
        if request is None:
            return None
        return request.headers.get(USER_AGENT_HEADER)


def set_current_identity(user_id: Optional[Any]) -> Token:
    """
    Record the authenticated user for the current context.

    Args:
        user_id: The user's id, or None for an anonymous request.

    Returns:
        Token to pass to ``reset_current_identity``.
    """
    return identity_var.set(user_id)


def reset_current_identity(token: Token) -> None:
    identity_var.reset(token)


class ContextIdentityResolver:
    """Identity resolver reading the user id set via ``set_current_identity``."""

    def current_identity_id(self) -> Optional[Any]:
        return identity_var.get()
