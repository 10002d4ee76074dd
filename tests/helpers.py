"""
Test doubles shared across the unit and integration suites.
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, Optional


T0 = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StaticIdentityResolver:
    def __init__(self, user_id: Optional[Any]):
        self.user_id = user_id

    def current_identity_id(self) -> Optional[Any]:
        return self.user_id


class StaticRequestResolver:
    def __init__(
        self,
        ip_address: Optional[str] = "203.0.113.7",
        user_agent: Optional[str] = "Mozilla/5.0",
        active: bool = True,
    ):
        self.ip_address = ip_address
        self.user_agent = user_agent
        self.active = active

    def has_active_request(self) -> bool:
        return self.active

    def current_network_origin(self) -> Optional[str]:
        return self.ip_address

    def current_client_agent(self) -> Optional[str]:
        return self.user_agent


class FakeCollection:
    """
    Dictionary-backed stand-in for a pymongo Collection.

    Supports the subset of the API the session store uses, keyed on ``_id``.
    """

    def __init__(self):
        self.documents: Dict[Any, Dict[str, Any]] = {}
        self.indexes = []

    def find_one(self, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        document = self.documents.get(filter["_id"])
        return dict(document) if document is not None else None

    def replace_one(self, filter: Dict[str, Any], replacement: Dict[str, Any], upsert: bool = False):
        key = filter["_id"]
        exists = key in self.documents
        if exists or upsert:
            self.documents[key] = {"_id": key, **replacement}
        return SimpleNamespace(matched_count=int(exists), upserted_id=None if exists else key)

    def delete_one(self, filter: Dict[str, Any]):
        removed = self.documents.pop(filter["_id"], None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)

    def delete_many(self, filter: Dict[str, Any]):
        ((field, condition),) = filter.items()
        cutoff = condition["$lt"]
        doomed = [
            key for key, document in self.documents.items()
            if field in document and document[field] < cutoff
        ]
        for key in doomed:
            del self.documents[key]
        return SimpleNamespace(deleted_count=len(doomed))

    def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))
        return "_".join(f"{name}_{direction}" for name, direction in keys)


