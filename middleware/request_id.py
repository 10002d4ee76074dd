"""
Request ID middleware for request correlation.

Every request gets an id, taken from the X-Request-ID header or freshly
generated, which is echoed back in the response and attached to every log
line emitted while the request is served.
"""

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

# Context variable read by the JSON log formatter
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that generates or extracts a request ID for each request.

    The id is stored in ``request.state`` for the error handlers and in
    ``request_id_var`` for logging, and returned in the X-Request-ID header.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)


def get_request_id() -> str:
    """
    Get the current request ID.

    Returns:
        The current request ID, or empty string outside a request context
    """
    return request_id_var.get()
