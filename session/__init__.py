"""
Session management module.

This module provides session handlers that persist opaque web-session
payloads into a document collection (MongoDB) or process memory, with
upsert-on-write, logical expiry on read, and background physical expiry.
"""

from session.store import SessionHandler
from session.mongo_store import MongoSessionStore
from session.memory_store import InMemorySessionStore
from session.payload import (
    IdentityResolver,
    PayloadBuilder,
    RequestContextResolver,
    utc_now,
)
from session.record import EMPTY_PAYLOAD, USER_AGENT_MAX_LENGTH
from session.sweeper import ExpirySweeper

__all__ = [
    "SessionHandler",
    "MongoSessionStore",
    "InMemorySessionStore",
    "IdentityResolver",
    "PayloadBuilder",
    "RequestContextResolver",
    "utc_now",
    "EMPTY_PAYLOAD",
    "USER_AGENT_MAX_LENGTH",
    "ExpirySweeper",
]
