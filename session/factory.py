"""
Session handler construction from application settings.

This is where the configured driver is resolved into a concrete handler:
the MongoDB client is built with the configured timeouts, the handler gets
its database, collection and lifetime, and the physical expiry strategy
(TTL index or periodic sweep) is wired up.
"""

import logging
from typing import Any, Dict, Optional

from pymongo import MongoClient

from config.settings import ExpiryMode, SessionDriver, Settings
from session.memory_store import InMemorySessionStore
from session.mongo_store import MongoSessionStore
from session.payload import Clock, IdentityResolver, RequestContextResolver
from session.store import SessionHandler
from session.sweeper import ExpirySweeper

logger = logging.getLogger(__name__)


def create_mongo_client(settings: Settings) -> MongoClient:
    """
    Create a MongoClient for the session collection.

    Timeouts are only passed when configured, leaving the driver defaults
    otherwise. The client is timezone-aware so stored timestamps come back
    as UTC datetimes.

    Args:
        settings: Application settings.

    Returns:
        A MongoClient. pymongo connects lazily, so no I/O happens here.
    """
    options: Dict[str, Any] = {"tz_aware": True}
    if settings.mongodb_connect_timeout_ms is not None:
        options["connectTimeoutMS"] = settings.mongodb_connect_timeout_ms
    if settings.mongodb_server_selection_timeout_ms is not None:
        options["serverSelectionTimeoutMS"] = settings.mongodb_server_selection_timeout_ms
    if settings.mongodb_socket_timeout_ms is not None:
        options["socketTimeoutMS"] = settings.mongodb_socket_timeout_ms

    return MongoClient(settings.mongodb_uri, **options)


def create_session_handler(
    settings: Settings,
    client: Optional[MongoClient] = None,
    identity_resolver: Optional[IdentityResolver] = None,
    request_resolver: Optional[RequestContextResolver] = None,
    clock: Optional[Clock] = None,
) -> SessionHandler:
    """
    Build the session handler selected by ``settings.session_driver``.

    For the mongodb driver in ``ttl_index`` expiry mode the TTL index is
    requested immediately; in ``sweep`` mode the handler deletes expired
    documents from ``gc`` instead.

    Args:
        settings: Application settings.
        client: Optional existing MongoClient. Created from settings if omitted.
        identity_resolver: Optional source of the current user id.
        request_resolver: Optional source of request metadata.
        clock: Optional clock override.

    Returns:
        The configured session handler.
    """
    if settings.session_driver == SessionDriver.MEMORY:
        logger.info("Using in-memory session store", extra={"extra_data": {
            "lifetime_minutes": settings.session_lifetime_minutes,
        }})
        return InMemorySessionStore(
            settings.session_lifetime_minutes,
            identity_resolver=identity_resolver,
            request_resolver=request_resolver,
            clock=clock,
        )

    if client is None:
        client = create_mongo_client(settings)

    handler = MongoSessionStore(
        client,
        settings.session_database,
        settings.session_collection,
        settings.session_lifetime_minutes,
        identity_resolver=identity_resolver,
        request_resolver=request_resolver,
        clock=clock,
        sweep_on_gc=settings.session_expiry_mode == ExpiryMode.SWEEP,
    )

    if settings.session_expiry_mode == ExpiryMode.TTL_INDEX:
        handler.ensure_expiry_index()

    logger.info("Using MongoDB session store", extra={"extra_data": {
        "database": settings.session_database,
        "collection": settings.session_collection,
        "lifetime_minutes": settings.session_lifetime_minutes,
        "expiry_mode": settings.session_expiry_mode.value,
    }})
    return handler


def create_expiry_sweeper(
    handler: SessionHandler,
    settings: Settings
) -> Optional[ExpirySweeper]:
    """
    Create a periodic sweeper when the handler needs one.

    The in-memory driver always needs one since it has no native expiry.
    The mongodb driver needs one only in ``sweep`` expiry mode.

    Returns:
        An ExpirySweeper (not yet started), or None when the TTL index
        takes care of physical removal.
    """
    needs_sweep = (
        settings.session_driver == SessionDriver.MEMORY
        or settings.session_expiry_mode == ExpiryMode.SWEEP
    )
    if not needs_sweep:
        return None

    return ExpirySweeper(
        handler,
        max_lifetime_seconds=settings.session_lifetime_seconds,
        interval_seconds=settings.session_sweep_interval_seconds,
    )
