"""Shared test fixtures."""

import pytest

from ltm_mem import MemoryEngine
from ltm_mem.storage.sqlite_store import SqliteStore


@pytest.fixture
def store():
    """In-memory SqliteStore."""
    s = SqliteStore(path=":memory:")
    yield s
    s.close()


@pytest.fixture
def engine():
    """MemoryEngine backed by an in-memory database."""
    e = MemoryEngine({"sqlite_path": ":memory:"})
    yield e
    e.close()


@pytest.fixture
def session(engine):
    return engine.create_session("user-1", title="Test Conversation Session")
