"""
Session handler abstraction for persisting web-session payloads.

This module defines the lifecycle contract a host web framework drives for
every request: open, read, write, destroy, close, and periodic garbage
collection. Backends (MongoDB, in-memory) implement it on top of a keyed
collection of session documents.
"""

from abc import ABC, abstractmethod

from session.record import Payload


class SessionHandler(ABC):
    """
    Abstract base class for session handler implementations.

    Not-found and expired sessions are not errors: ``read`` returns an
    empty payload and ``destroy`` reports success. Failures of the backing
    store propagate unchanged to the caller.

    All methods are synchronous; the host framework calls them from its
    request cycle.
    """

    def open(self, save_path: str, session_name: str) -> bool:
        """
        Prepare the handler for a request.

        No per-request setup is needed, so this always succeeds.
        """
        return True

    def close(self) -> bool:
        """
        Finish a request.

        Connection lifetime is managed outside the handler, so this always
        succeeds.
        """
        return True

    @abstractmethod
    def read(self, session_id: str) -> Payload:
        """
        Read the payload stored for a session.

        Args:
            session_id: Unique identifier for the session.

        Returns:
            The stored payload unmodified, or an empty payload if the
            session does not exist or has expired.
        """
        pass

    @abstractmethod
    def write(self, session_id: str, data: Payload) -> bool:
        """
        Create or replace the session record.

        Args:
            session_id: Unique identifier for the session.
            data: Opaque serialized session contents.

        Returns:
            True once the record has been persisted.
        """
        pass

    @abstractmethod
    def destroy(self, session_id: str) -> bool:
        """
        Delete the session record.

        This operation is idempotent - destroying a non-existent session
        still returns True.

        Args:
            session_id: Unique identifier for the session to delete.
        """
        pass

    @abstractmethod
    def gc(self, max_lifetime: int) -> bool:
        """
        Remove sessions inactive for longer than ``max_lifetime`` seconds.

        Backends with native expiry may leave this as a no-op; readers
        never observe expired sessions either way.

        Args:
            max_lifetime: Maximum inactivity in seconds.
        """
        pass

    def ensure_expiry_index(self) -> None:
        """
        Ask the backing store to remove expired records on its own.

        Advisory only: implementations must never raise from here.
        """
        return None

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check connectivity and health of the backing store.

        Returns:
            True if the store is healthy and accessible, False otherwise.

        Note:
            This method should not raise exceptions - connectivity issues
            should be caught and result in a False return value.
        """
        pass
