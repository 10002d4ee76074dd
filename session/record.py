"""
Stored session document shape and the logical expiry rule.

One document exists per session id. Optional fields are omitted from the
document entirely when their source is unavailable; they are never stored
as null.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, TypedDict, Union

# Document field names
ID_FIELD = "_id"
PAYLOAD_FIELD = "payload"
LAST_ACTIVITY_FIELD = "last_activity"
EXPIRE_FIELD = "expire"
USER_ID_FIELD = "user_id"
IP_ADDRESS_FIELD = "ip_address"
USER_AGENT_FIELD = "user_agent"

USER_AGENT_MAX_LENGTH = 500

# Returned by read() for absent or expired sessions
EMPTY_PAYLOAD = ""

Payload = Union[str, bytes]


class SessionDocument(TypedDict, total=False):
    """A session record as persisted in the backing collection."""
    _id: str
    payload: Payload
    last_activity: datetime
    expire: datetime
    user_id: Any
    ip_address: str
    user_agent: str


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes coming back from the driver as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(document: Mapping[str, Any], now: datetime, lifetime: timedelta) -> bool:
    """
    Check whether a stored session is past its lifetime.

    A document without ``last_activity`` is never considered expired.

    Args:
        document: The stored session document.
        now: Current time.
        lifetime: Session lifetime.

    Returns:
        True if ``last_activity`` is older than ``now - lifetime``.
    """
    last_activity = document.get(LAST_ACTIVITY_FIELD)
    if last_activity is None:
        return False
    return as_utc(last_activity) < as_utc(now) - lifetime
