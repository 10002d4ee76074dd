"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from unittest.mock import MagicMock

import pytest

from tests.helpers import FakeClock, FakeCollection

# Hypothesis configuration for property-based testing
from hypothesis import settings, Verbosity, Phase

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough and reproducible
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples, no shrinking
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def mock_mongo_client(fake_collection) -> MagicMock:
    """Mock MongoClient whose database/collection lookups return the fake collection."""
    client = MagicMock()
    client.get_database.return_value.get_collection.return_value = fake_collection
    client.admin.command.return_value = {"ok": 1.0}
    return client
