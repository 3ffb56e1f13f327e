"""
Pytest fixtures for syndication tests.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from syndication.auth import AuthService, create_account
from syndication.config import state
from syndication.database import Database, NewEntry
from syndication.puller import PullResult
from syndication.server import app

TEST_SECRET = "test-secret-for-signing-tokens"
ALICE_PASSWORD = "s3cret-long"


class FakePuller:
    """Stands in for FeedPuller. Serves canned results or errors per URL."""

    def __init__(self):
        self.responses: dict[str, PullResult | Exception] = {}
        self.calls: list[tuple[str, str | None, str | None]] = []

    def serve(self, url: str, *guids: str, title: str = "Example Feed", etag: str | None = None):
        """Serve entries with the given guids for url."""
        self.responses[url] = PullResult(
            title=title,
            link="https://example.com",
            entries=make_entries(*guids),
            etag=etag,
        )

    def fail(self, url: str, error: Exception):
        self.responses[url] = error

    async def pull(self, url: str, etag: str | None = None, last_modified: str | None = None) -> PullResult:
        self.calls.append((url, etag, last_modified))
        response = self.responses.get(url)
        if response is None:
            return PullResult(title="", link="")
        if isinstance(response, Exception):
            raise response
        return PullResult(
            title=response.title,
            link=response.link,
            entries=list(response.entries),
            etag=response.etag,
            last_modified=response.last_modified,
        )


def make_entries(*guids: str, start: datetime | None = None) -> list[NewEntry]:
    """Entries published one minute apart, oldest first."""
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        NewEntry(
            guid=guid,
            title=f"Entry {guid}",
            link=f"https://example.com/{guid}",
            author="Author",
            published_at=start + timedelta(minutes=i),
        )
        for i, guid in enumerate(guids)
    ]


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    # Cleanup, including WAL side files
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(f.name + suffix):
            os.unlink(f.name + suffix)


@pytest.fixture
def test_db(temp_db_path):
    """Create a test database instance."""
    db = Database(temp_db_path)
    yield db


@pytest.fixture
def fake_puller():
    return FakePuller()


@pytest.fixture
def auth(test_db):
    return AuthService(test_db, TEST_SECRET)


@pytest.fixture
def alice(test_db):
    return create_account(test_db, "alice", ALICE_PASSWORD)


@pytest.fixture
def bob(test_db):
    return create_account(test_db, "bob", "hunter22-long")


@pytest.fixture
def client(test_db, auth, fake_puller):
    """Create a test client with isolated database and a fake puller."""
    # Store original state
    original = (state.db, state.auth, state.puller, state.synchronizer, state.admin)

    state.db = test_db
    state.auth = auth
    state.puller = fake_puller
    state.synchronizer = None
    state.admin = None

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    # Restore original state
    state.db, state.auth, state.puller, state.synchronizer, state.admin = original


@pytest.fixture
def alice_headers(client, auth):
    """Bearer headers for a freshly registered alice."""
    pair = auth.register("alice", ALICE_PASSWORD)
    return {"Authorization": f"Bearer {pair.access.token}"}
