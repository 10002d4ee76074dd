"""
MongoDB-based session handler implementation.

Sessions are stored one document per session id in a single collection.
Expiry is enforced twice: ``read`` treats records past their lifetime as
absent, and a TTL index on ``expire`` lets MongoDB remove them physically in
the background.
"""

import logging
from datetime import timedelta
from typing import Any, Optional

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from session.payload import (
    Clock,
    IdentityResolver,
    PayloadBuilder,
    RequestContextResolver,
    utc_now,
)
from session.record import (
    EMPTY_PAYLOAD,
    EXPIRE_FIELD,
    ID_FIELD,
    LAST_ACTIVITY_FIELD,
    PAYLOAD_FIELD,
    Payload,
    SessionDocument,
    is_expired,
)
from session.store import SessionHandler

logger = logging.getLogger(__name__)


class MongoSessionStore(SessionHandler):
    """
    MongoDB-backed session handler.

    Every write is a single atomic ``replace_one`` with upsert, so a session
    id maps to exactly one document and the latest write wins. Backing-store
    errors raised by pymongo propagate unchanged.

    Attributes:
        client: The MongoClient used to reach the collection.
        database_name: Logical database holding the sessions collection.
        collection_name: Name of the sessions collection.
        lifetime: Session lifetime.
        sweep_on_gc: When True, ``gc`` deletes expired documents itself
            instead of relying on the TTL index.
    """

    def __init__(
        self,
        client: MongoClient,
        database_name: str,
        collection_name: str,
        lifetime_minutes: int,
        identity_resolver: Optional[IdentityResolver] = None,
        request_resolver: Optional[RequestContextResolver] = None,
        clock: Optional[Clock] = None,
        sweep_on_gc: bool = False,
    ):
        """
        Initialize the MongoDB session handler.

        Args:
            client: Connected MongoClient. Its lifetime is owned by the caller.
            database_name: Database name.
            collection_name: Collection name.
            lifetime_minutes: Session time-to-live in minutes.
            identity_resolver: Optional source of the current user id.
            request_resolver: Optional source of request ip/user agent.
            clock: Optional clock, defaults to UTC now.
            sweep_on_gc: Delete expired documents from ``gc``.
        """
        self.client = client
        self.database_name = database_name
        self.collection_name = collection_name
        self.lifetime = timedelta(minutes=lifetime_minutes)
        self.clock = clock or utc_now
        self.sweep_on_gc = sweep_on_gc
        self.payload_builder = PayloadBuilder(
            lifetime_minutes,
            identity_resolver=identity_resolver,
            request_resolver=request_resolver,
            clock=self.clock,
        )
        self._collection: Optional[Collection] = None

    @property
    def collection(self) -> Collection:
        """The sessions collection, resolved on first use and then cached."""
        if self._collection is None:
            self._collection = self.client.get_database(
                self.database_name
            ).get_collection(self.collection_name)
        return self._collection

    def read(self, session_id: str) -> Payload:
        session: Optional[SessionDocument] = self.collection.find_one({ID_FIELD: session_id})

        if session is None:
            return EMPTY_PAYLOAD

        if is_expired(session, self.clock(), self.lifetime):
            return EMPTY_PAYLOAD

        return session.get(PAYLOAD_FIELD, EMPTY_PAYLOAD)

    def write(self, session_id: str, data: Payload) -> bool:
        fields = self.payload_builder.build(data)

        self.collection.replace_one({ID_FIELD: session_id}, fields, upsert=True)

        return True

    def destroy(self, session_id: str) -> bool:
        self.collection.delete_one({ID_FIELD: session_id})
        return True

    def gc(self, max_lifetime: int) -> bool:
        """
        Delete sessions idle for more than ``max_lifetime`` seconds.

        Without ``sweep_on_gc`` this does nothing: the TTL index created by
        ``ensure_expiry_index`` removes expired documents.
        """
        if not self.sweep_on_gc:
            return True

        cutoff = self.clock() - timedelta(seconds=max_lifetime)
        result = self.collection.delete_many({LAST_ACTIVITY_FIELD: {"$lt": cutoff}})
        logger.debug(
            "Expired sessions swept",
            extra={"extra_data": {
                "collection": self.collection_name,
                "deleted_count": result.deleted_count,
            }}
        )
        return True

    def ensure_expiry_index(self) -> None:
        """
        Create the TTL index on ``expire``.

        MongoDB removes a document once its ``expire`` time has passed. An
        existing index with different options or a server without TTL
        support is not fatal, because ``read`` enforces expiry regardless.
        """
        try:
            self.collection.create_index(
                [(EXPIRE_FIELD, ASCENDING)], expireAfterSeconds=0
            )
        except PyMongoError as e:
            logger.debug(
                "Session expiry index not created",
                extra={"extra_data": {
                    "collection": self.collection_name,
                    "error": str(e),
                }}
            )

    def health_check(self) -> bool:
        try:
            result: Any = self.client.admin.command("ping")
            return bool(result.get("ok"))
        except Exception:
            return False
