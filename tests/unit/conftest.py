"""Shared test fixtures."""

import pytest

from adr_manager.store import AdrStore
from tests.unit.fakes import FakeStorage


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def store(storage: FakeStorage) -> AdrStore:
    """Return an empty, reloaded store backed by the fake storage."""
    s = AdrStore(storage)
    s.reload()
    return s
