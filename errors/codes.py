"""
Error code catalog for the session service.

Each code maps to the HTTP status used when an error surfaces through the
FastAPI exception handlers.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of the error codes returned by the application.

    - Dependency errors (5xx): session store unreachable or failing
    - Internal errors (5xx): anything unexpected
    """

    SESSION_STORE_UNAVAILABLE = "SESSION_STORE_UNAVAILABLE"
    """MongoDB unreachable or rejected the operation (HTTP 503)"""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected server error (HTTP 500)"""


ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.SESSION_STORE_UNAVAILABLE: 503,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
