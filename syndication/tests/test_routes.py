"""
Tests for the HTTP API.
"""

import pytest

from syndication.config import config
from syndication.tests.conftest import ALICE_PASSWORD
from syndication.tests.test_opml import SAMPLE_OPML

FEED_URL = "https://example.com/feed.xml"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def bob_headers(client, auth):
    pair = auth.register("bob", "hunter22-long")
    return bearer(pair.access.token)


@pytest.fixture
def subscribed(client, alice_headers, fake_puller):
    """Subscribe alice to a feed serving three entries. Returns the feed JSON."""
    fake_puller.serve(FEED_URL, "g1", "g2", "g3", title="Example Feed")
    response = client.post("/feeds", json={"subscription": FEED_URL}, headers=alice_headers)
    assert response.status_code == 201
    return response.json()


class TestStatus:
    def test_status(self, client):
        response = client.get("/status")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAuthRoutes:
    """Tests for /auth endpoints."""

    def test_register(self, client, test_db):
        response = client.post("/auth/register", json={"username": "alice", "password": ALICE_PASSWORD})

        assert response.status_code == 201
        data = response.json()
        assert data["access_token"]["token"]
        assert data["refresh_token"]["token"]
        assert data["access_token"]["token"] != data["refresh_token"]["token"]

        categories = client.get("/categories", headers=bearer(data["access_token"]["token"])).json()
        assert [c["name"].lower() for c in categories["categories"]] == ["uncategorized"]

    def test_register_disabled(self, client, test_db, monkeypatch):
        monkeypatch.setattr(config, "ALLOW_REGISTRATION", False)

        response = client.post("/auth/register", json={"username": "alice", "password": ALICE_PASSWORD})

        assert response.status_code == 404
        assert test_db.users.get_by_name("alice") is None

    def test_login_still_works_with_registration_disabled(self, client, auth, monkeypatch):
        auth.register("alice", ALICE_PASSWORD)
        monkeypatch.setattr(config, "ALLOW_REGISTRATION", False)

        response = client.post("/auth/login", json={"username": "alice", "password": ALICE_PASSWORD})

        assert response.status_code == 200

    def test_register_duplicate(self, client):
        client.post("/auth/register", json={"username": "alice", "password": ALICE_PASSWORD})
        response = client.post("/auth/register", json={"username": "alice", "password": "other"})
        assert response.status_code == 409

    def test_register_empty_password(self, client):
        response = client.post("/auth/register", json={"username": "alice", "password": ""})
        assert response.status_code == 400

    def test_login(self, client):
        client.post("/auth/register", json={"username": "alice", "password": ALICE_PASSWORD})
        response = client.post("/auth/login", json={"username": "alice", "password": ALICE_PASSWORD})
        assert response.status_code == 200
        assert response.json()["access_token"]["token"]

    @pytest.mark.parametrize("username,password", [("alice", "wrong"), ("nobody", ALICE_PASSWORD)])
    def test_login_rejected(self, client, username, password):
        client.post("/auth/register", json={"username": "alice", "password": ALICE_PASSWORD})
        response = client.post("/auth/login", json={"username": username, "password": password})
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_renew(self, client):
        pair = client.post("/auth/register", json={"username": "alice", "password": ALICE_PASSWORD}).json()
        refresh = pair["refresh_token"]["token"]

        response = client.post("/auth/renew", json={"refresh_token": refresh})

        assert response.status_code == 200
        access = response.json()["token"]
        assert access != refresh
        assert client.get("/categories", headers=bearer(access)).status_code == 200
        assert client.get("/categories", headers=bearer(refresh)).status_code == 401

    def test_renew_with_access_token(self, client):
        pair = client.post("/auth/register", json={"username": "alice", "password": ALICE_PASSWORD}).json()
        response = client.post("/auth/renew", json={"refresh_token": pair["access_token"]["token"]})
        assert response.status_code == 401

    def test_missing_token(self, client):
        assert client.get("/entries").status_code == 401

    def test_garbage_token(self, client):
        assert client.get("/entries", headers=bearer("garbage")).status_code == 401


class TestCategoryRoutes:
    """Tests for /categories endpoints."""

    def test_crud(self, client, alice_headers):
        created = client.post("/categories", json={"name": "Tech"}, headers=alice_headers)
        assert created.status_code == 201
        category_id = created.json()["id"]

        renamed = client.put(f"/categories/{category_id}", json={"name": "Science"}, headers=alice_headers)
        assert renamed.json()["name"] == "Science"

        assert client.delete(f"/categories/{category_id}", headers=alice_headers).status_code == 204
        assert client.get(f"/categories/{category_id}", headers=alice_headers).status_code == 404

    def test_duplicate_name(self, client, alice_headers):
        client.post("/categories", json={"name": "Tech"}, headers=alice_headers)
        response = client.post("/categories", json={"name": "tech"}, headers=alice_headers)
        assert response.status_code == 409

    def test_uncategorized_is_protected(self, client, alice_headers):
        categories = client.get("/categories", headers=alice_headers).json()["categories"]
        uncategorized_id = categories[0]["id"]

        assert client.delete(f"/categories/{uncategorized_id}", headers=alice_headers).status_code == 403
        response = client.put(f"/categories/{uncategorized_id}", json={"name": "Misc"}, headers=alice_headers)
        assert response.status_code == 403
        response = client.post("/categories", json={"name": "Uncategorized"}, headers=alice_headers)
        assert response.status_code == 403

    def test_move_feed_and_delete_category(self, client, alice_headers, subscribed):
        uncategorized_id = subscribed["category"]
        tech_id = client.post("/categories", json={"name": "Tech"}, headers=alice_headers).json()["id"]

        response = client.put(
            f"/categories/{tech_id}/feeds", json={"feeds": [subscribed["id"]]}, headers=alice_headers
        )
        assert response.status_code == 204
        feeds = client.get(f"/categories/{tech_id}/feeds", headers=alice_headers).json()["feeds"]
        assert [f["id"] for f in feeds] == [subscribed["id"]]
        assert client.get(f"/categories/{tech_id}/stats", headers=alice_headers).json()["total"] == 3

        client.delete(f"/categories/{tech_id}", headers=alice_headers)

        feed = client.get(f"/feeds/{subscribed['id']}", headers=alice_headers).json()
        assert feed["category"] == uncategorized_id
        assert client.get(f"/categories/{tech_id}/stats", headers=alice_headers).status_code == 404

    def test_mark_category(self, client, alice_headers, subscribed):
        category_id = subscribed["category"]

        response = client.put(f"/categories/{category_id}/mark?as=read", headers=alice_headers)

        assert response.status_code == 204
        stats = client.get("/entries/stats", headers=alice_headers).json()
        assert stats == {"unread": 0, "read": 3, "saved": 0, "total": 3}

    def test_other_users_category(self, client, alice_headers, bob_headers):
        category_id = client.post("/categories", json={"name": "Tech"}, headers=alice_headers).json()["id"]
        assert client.get(f"/categories/{category_id}", headers=bob_headers).status_code == 404


class TestFeedRoutes:
    """Tests for /feeds endpoints."""

    def test_subscribe(self, client, alice_headers, subscribed):
        assert subscribed["title"] == "Example Feed"
        assert subscribed["subscription"] == FEED_URL
        assert subscribed["last_updated"] is not None

        feeds = client.get("/feeds", headers=alice_headers).json()
        assert [f["id"] for f in feeds["feeds"]] == [subscribed["id"]]

    def test_subscribe_into_category(self, client, alice_headers):
        category = client.post("/categories", json={"name": "Tech"}, headers=alice_headers).json()

        response = client.post(
            "/feeds", json={"subscription": FEED_URL, "category": category["id"]}, headers=alice_headers
        )

        assert response.status_code == 201
        assert response.json()["category"] == category["id"]

    def test_subscribe_into_unknown_category(self, client, alice_headers):
        response = client.post(
            "/feeds", json={"subscription": FEED_URL, "category": "missing"}, headers=alice_headers
        )
        assert response.status_code == 404

    def test_subscribe_without_url(self, client, alice_headers):
        response = client.post("/feeds", json={"subscription": ""}, headers=alice_headers)
        assert response.status_code == 400

    def test_update(self, client, alice_headers, subscribed):
        response = client.put(f"/feeds/{subscribed['id']}", json={"title": "Renamed"}, headers=alice_headers)
        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"

    def test_entries_and_stats(self, client, alice_headers, subscribed):
        entries = client.get(f"/feeds/{subscribed['id']}/entries", headers=alice_headers).json()
        assert [e["title"] for e in entries["entries"]] == ["Entry g3", "Entry g2", "Entry g1"]

        client.put(f"/feeds/{subscribed['id']}/mark?as=saved", headers=alice_headers)

        stats = client.get(f"/feeds/{subscribed['id']}/stats", headers=alice_headers).json()
        assert stats["saved"] == 3

    def test_delete(self, client, alice_headers, subscribed):
        assert client.delete(f"/feeds/{subscribed['id']}", headers=alice_headers).status_code == 204
        assert client.get(f"/feeds/{subscribed['id']}", headers=alice_headers).status_code == 404
        assert client.get("/entries/stats", headers=alice_headers).json()["total"] == 0

    def test_other_user_cannot_access(self, client, bob_headers, subscribed):
        assert client.get(f"/feeds/{subscribed['id']}", headers=bob_headers).status_code == 404
        assert client.delete(f"/feeds/{subscribed['id']}", headers=bob_headers).status_code == 404


class TestEntryRoutes:
    """Tests for /entries endpoints."""

    def test_list_and_paginate(self, client, alice_headers, subscribed):
        first = client.get("/entries?count=2", headers=alice_headers).json()
        assert len(first["entries"]) == 2
        assert first["continuation"]

        second = client.get(
            f"/entries?count=2&continuation={first['continuation']}", headers=alice_headers
        ).json()
        assert [e["title"] for e in second["entries"]] == ["Entry g1"]
        assert second["continuation"] == ""

    def test_invalid_count(self, client, alice_headers):
        assert client.get("/entries?count=0", headers=alice_headers).status_code == 400

    def test_invalid_marker(self, client, alice_headers):
        assert client.get("/entries?marker=starred", headers=alice_headers).status_code == 400

    def test_mark_entry(self, client, alice_headers, subscribed):
        entry_id = client.get("/entries", headers=alice_headers).json()["entries"][0]["id"]

        response = client.put(f"/entries/{entry_id}/mark?as=saved", headers=alice_headers)

        assert response.status_code == 200
        assert response.json()["marker"] == "saved"
        saved = client.get("/entries?marker=saved", headers=alice_headers).json()["entries"]
        assert [e["id"] for e in saved] == [entry_id]

    def test_mark_entry_with_any(self, client, alice_headers, subscribed):
        entry_id = client.get("/entries", headers=alice_headers).json()["entries"][0]["id"]
        response = client.put(f"/entries/{entry_id}/mark?as=any", headers=alice_headers)
        assert response.status_code == 400

    def test_mark_all(self, client, alice_headers, subscribed):
        assert client.put("/entries/mark?as=read", headers=alice_headers).status_code == 204
        assert client.get("/entries/stats", headers=alice_headers).json()["unread"] == 0

    def test_unknown_entry(self, client, alice_headers):
        assert client.get("/entries/does-not-exist", headers=alice_headers).status_code == 404


class TestTagRoutes:
    """Tests for /tags endpoints."""

    def test_apply_and_list(self, client, alice_headers, subscribed):
        tag_id = client.post("/tags", json={"name": "later"}, headers=alice_headers).json()["id"]
        entry_id = client.get("/entries", headers=alice_headers).json()["entries"][0]["id"]

        response = client.put(f"/tags/{tag_id}/entries", json={"entries": [entry_id]}, headers=alice_headers)
        assert response.status_code == 204

        tagged = client.get(f"/tags/{tag_id}/entries", headers=alice_headers).json()["entries"]
        assert [e["id"] for e in tagged] == [entry_id]

    def test_apply_unknown_entry(self, client, alice_headers):
        tag_id = client.post("/tags", json={"name": "later"}, headers=alice_headers).json()["id"]
        response = client.put(f"/tags/{tag_id}/entries", json={"entries": ["nope"]}, headers=alice_headers)
        assert response.status_code == 404

    def test_rename_and_delete(self, client, alice_headers):
        tag_id = client.post("/tags", json={"name": "later"}, headers=alice_headers).json()["id"]
        assert client.put(f"/tags/{tag_id}", json={"name": "soon"}, headers=alice_headers).json()["name"] == "soon"
        assert client.delete(f"/tags/{tag_id}", headers=alice_headers).status_code == 204
        assert client.get("/tags", headers=alice_headers).json()["tags"] == []


class TestOPMLRoutes:
    """Tests for /opml endpoints."""

    def test_import_then_export(self, client, alice_headers):
        response = client.post("/opml", content=SAMPLE_OPML.encode(), headers=alice_headers)
        assert response.status_code == 200
        assert response.json() == {"imported": 3}

        exported = client.get("/opml", headers=alice_headers)
        assert exported.status_code == 200
        assert exported.headers["content-type"].startswith("text/x-opml")
        assert b"https://tech.example/feed" in exported.content

    def test_import_malformed(self, client, alice_headers):
        response = client.post("/opml", content=b"not opml", headers=alice_headers)
        assert response.json() == {"imported": 0}
