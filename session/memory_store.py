"""
In-memory session handler for development and tests.

The dictionary backend has no native expiry, so expired sessions stay in
memory until ``gc`` sweeps them. Readers still never see them.
"""

import threading
from datetime import timedelta
from typing import Dict, Optional

from session.payload import (
    Clock,
    IdentityResolver,
    PayloadBuilder,
    RequestContextResolver,
    utc_now,
)
from session.record import (
    EMPTY_PAYLOAD,
    ID_FIELD,
    PAYLOAD_FIELD,
    Payload,
    SessionDocument,
    is_expired,
)
from session.store import SessionHandler


class InMemorySessionStore(SessionHandler):
    """Session handler keeping documents in a process-local dictionary."""

    def __init__(
        self,
        lifetime_minutes: int,
        identity_resolver: Optional[IdentityResolver] = None,
        request_resolver: Optional[RequestContextResolver] = None,
        clock: Optional[Clock] = None,
    ):
        self.lifetime = timedelta(minutes=lifetime_minutes)
        self.clock = clock or utc_now
        self.payload_builder = PayloadBuilder(
            lifetime_minutes,
            identity_resolver=identity_resolver,
            request_resolver=request_resolver,
            clock=self.clock,
        )
        self._documents: Dict[str, SessionDocument] = {}
        self._lock = threading.RLock()

    def read(self, session_id: str) -> Payload:
        with self._lock:
            document = self._documents.get(session_id)

        if document is None or is_expired(document, self.clock(), self.lifetime):
            return EMPTY_PAYLOAD

        return document[PAYLOAD_FIELD]

    def write(self, session_id: str, data: Payload) -> bool:
        document: SessionDocument = {ID_FIELD: session_id, **self.payload_builder.build(data)}
        with self._lock:
            self._documents[session_id] = document
        return True

    def destroy(self, session_id: str) -> bool:
        with self._lock:
            self._documents.pop(session_id, None)
        return True

    def gc(self, max_lifetime: int) -> bool:
        """Drop every session idle for more than ``max_lifetime`` seconds."""
        now = self.clock()
        lifetime = timedelta(seconds=max_lifetime)
        with self._lock:
            expired = [
                sid for sid, document in self._documents.items()
                if is_expired(document, now, lifetime)
            ]
            for sid in expired:
                del self._documents[sid]
        return True

    def get_document(self, session_id: str) -> Optional[SessionDocument]:
        """Return a copy of the stored document, expired or not."""
        with self._lock:
            document = self._documents.get(session_id)
            return dict(document) if document is not None else None

    def count(self) -> int:
        """Number of documents held, including expired ones not yet swept."""
        with self._lock:
            return len(self._documents)

    def health_check(self) -> bool:
        return True
