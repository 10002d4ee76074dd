"""
Exception handlers for the session service.

Session handlers let pymongo errors propagate untouched; these FastAPI
handlers are where such failures become a generic 503 response for the
client. Anything else becomes a generic 500 without internal details.
"""

import logging
import uuid
from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from errors.codes import ErrorCode, get_default_status_code

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Structured error response model shared by every error path."""
    error_code: str
    message: str
    request_id: str


def get_request_id(request: Request) -> str:
    """
    Get the request ID set by RequestIDMiddleware, or generate one.

    Args:
        request: The FastAPI request object

    Returns:
        The request ID string
    """
    if hasattr(request.state, "request_id"):
        return request.state.request_id

    return str(uuid.uuid4())


async def handle_session_store_error(request: Request, exc: PyMongoError) -> JSONResponse:
    """
    Convert a backing-store failure into a 503 response.

    The driver error is logged with its type and message; the client only
    learns that sessions are temporarily unavailable.
    """
    request_id = get_request_id(request)

    logger.error(
        "Session store operation failed",
        extra={
            "error_code": ErrorCode.SESSION_STORE_UNAVAILABLE.value,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=True,
    )

    error_response = ErrorResponse(
        error_code=ErrorCode.SESSION_STORE_UNAVAILABLE.value,
        message="Session store unavailable. Please try again later.",
        request_id=request_id,
    )

    return JSONResponse(
        status_code=get_default_status_code(ErrorCode.SESSION_STORE_UNAVAILABLE),
        content=error_response.model_dump(exclude_none=True),
    )


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions safely without exposing internal details.

    Args:
        request: The FastAPI request object
        exc: The unexpected exception that was raised

    Returns:
        JSONResponse with generic error message (no internal details exposed)
    """
    request_id = get_request_id(request)

    logger.error(
        "Unexpected error occurred",
        extra={
            "error_code": ErrorCode.INTERNAL_ERROR.value,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=True,
    )

    error_response = ErrorResponse(
        error_code=ErrorCode.INTERNAL_ERROR.value,
        message="An unexpected error occurred. Please try again later.",
        request_id=request_id,
    )

    return JSONResponse(
        status_code=get_default_status_code(ErrorCode.INTERNAL_ERROR),
        content=error_response.model_dump(exclude_none=True),
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(PyMongoError, handle_session_store_error)
    app.add_exception_handler(Exception, handle_unexpected_exception)

    logger.info("Exception handlers registered successfully")
