"""
Payload assembly for session writes.

The PayloadBuilder composes the field set persisted on every write: the
opaque session data, the activity/expiry timestamps, and whatever request
metadata the optional resolvers can supply at that moment.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from session.record import (
    EXPIRE_FIELD,
    IP_ADDRESS_FIELD,
    LAST_ACTIVITY_FIELD,
    PAYLOAD_FIELD,
    USER_AGENT_FIELD,
    USER_AGENT_MAX_LENGTH,
    USER_ID_FIELD,
    Payload,
    SessionDocument,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current timezone-aware UTC time."""
    return datetime.now(timezone.utc)


@runtime_checkable
class IdentityResolver(Protocol):
    """Resolves the identity of the currently authenticated user, if any."""

    def current_identity_id(self) -> Optional[Any]:
        ...


@runtime_checkable
class RequestContextResolver(Protocol):
    """Exposes metadata about the request currently being served, if any."""

    def has_active_request(self) -> bool:
        ...

    def current_network_origin(self) -> Optional[str]:
        ...

    def current_client_agent(self) -> Optional[str]:
        ...


class PayloadBuilder:
    """
    Builds the document fields stored by a session write.

    Identity and request enrichment are independent: either resolver may be
    missing, and a resolver that cannot resolve anything right now (no
    authenticated user, no active request) just leaves its fields out.

    Attributes:
        lifetime: Session lifetime added to the write time to get ``expire``.
        identity_resolver: Optional source of ``user_id``.
        request_resolver: Optional source of ``ip_address`` and ``user_agent``.
        clock: Callable returning the current time.
    """

    def __init__(
        self,
        lifetime_minutes: int,
        identity_resolver: Optional[IdentityResolver] = None,
        request_resolver: Optional[RequestContextResolver] = None,
        clock: Optional[Clock] = None,
    ):
        self.lifetime = timedelta(minutes=lifetime_minutes)
        self.identity_resolver = identity_resolver
        self.request_resolver = request_resolver
        self.clock = clock or utc_now

    def build(self, data: Payload) -> SessionDocument:
        """
        Assemble the field set for a write.

        Args:
            data: The opaque serialized session contents.

        Returns:
            SessionDocument with ``payload``, ``last_activity`` and ``expire``,
            plus any optional enrichment fields that could be resolved.
        """
        last_activity = self.clock()

        fields: SessionDocument = {
            PAYLOAD_FIELD: data,
            LAST_ACTIVITY_FIELD: last_activity,
            EXPIRE_FIELD: last_activity + self.lifetime,
        }

        self._add_user_information(fields)
        self._add_request_information(fields)

        return fields

    def _add_user_information(self, fields: SessionDocument) -> None:
        if self.identity_resolver is None:
            return

        user_id = self.identity_resolver.current_identity_id()
        if user_id is not None:
            fields[USER_ID_FIELD] = user_id

    def _add_request_information(self, fields: SessionDocument) -> None:
        if self.request_resolver is None or not self.request_resolver.has_active_request():
            return

        ip_address = self.request_resolver.current_network_origin()
        if ip_address is not None:
            fields[IP_ADDRESS_FIELD] = ip_address

        # A request without a User-Agent header still records an empty agent
        user_agent = self.request_resolver.current_client_agent() or ""
        fields[USER_AGENT_FIELD] = user_agent[:USER_AGENT_MAX_LENGTH]
