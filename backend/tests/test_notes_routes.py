"""
Notes Backend — Notes Endpoint Tests
=====================================

What:  HTTP-level tests for /api/notes and /health.
How:   Users are inserted directly; tokens come from the app's own
       session token issuer.

What we test:
    ✅ Every note endpoint requires a valid bearer token (401 otherwise)
    ✅ CRUD round trip with the client-facing field names
    ✅ Notes of another user are not found
    ✅ Blank content → 400
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from app.services.session_tokens import SessionTokenIssuer, session_token_issuer


@pytest_asyncio.fixture
async def ann(make_user, db_session):
    user = await make_user("ann@example.com", is_verified=True)
    await db_session.commit()
    return user


def _auth(user) -> dict:
    return {"Authorization": f"Bearer {session_token_issuer.issue(user)}"}


class TestTokenGate:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/notes"),
            ("POST", "/api/notes"),
            ("PUT", f"/api/notes/{uuid.uuid4()}"),
            ("DELETE", f"/api/notes/{uuid.uuid4()}"),
        ],
    )
    async def test_missing_token(self, test_client, method, path):
        response = await test_client.request(method, path, json={"content": "x"})

        assert response.status_code == 401
        assert response.json()["error"] == "Access denied"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_garbage_token(self, test_client):
        response = await test_client.get(
            "/api/notes", headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_non_bearer_scheme(self, test_client, ann):
        token = session_token_issuer.issue(ann)

        response = await test_client.get("/api/notes", headers={"Authorization": f"Basic {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, test_client, ann):
        eight_days_ago = datetime.now(timezone.utc) - timedelta(days=8)
        issuer = SessionTokenIssuer(
            secret=session_token_issuer._secret, clock=lambda: eight_days_ago
        )

        response = await test_client.get(
            "/api/notes", headers={"Authorization": f"Bearer {issuer.issue(ann)}"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Token expired"

    @pytest.mark.asyncio
    async def test_me_for_deleted_user(self, test_client):
        class Ghost:
            id = uuid.uuid4()

        response = await test_client.get("/api/auth/me", headers=_auth(Ghost()))

        assert response.status_code == 401


class TestNotesCrud:

    @pytest.mark.asyncio
    async def test_round_trip(self, test_client, ann):
        created = await test_client.post("/api/notes", json={"content": "Buy milk"}, headers=_auth(ann))

        assert created.status_code == 201
        note = created.json()
        assert set(note) == {"_id", "userId", "content", "createdAt", "updatedAt"}
        assert note["userId"] == str(ann.id)
        assert note["content"] == "Buy milk"

        listed = await test_client.get("/api/notes", headers=_auth(ann))
        assert [n["_id"] for n in listed.json()] == [note["_id"]]

        updated = await test_client.put(
            f"/api/notes/{note['_id']}", json={"content": "Buy oat milk"}, headers=_auth(ann)
        )
        assert updated.status_code == 200
        assert updated.json()["content"] == "Buy oat milk"

        deleted = await test_client.delete(f"/api/notes/{note['_id']}", headers=_auth(ann))
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Note deleted"}

        assert (await test_client.get("/api/notes", headers=_auth(ann))).json() == []

    @pytest.mark.asyncio
    async def test_blank_content(self, test_client, ann):
        response = await test_client.post("/api/notes", json={"content": "  "}, headers=_auth(ann))

        assert response.status_code == 400
        assert response.json()["error"] == "Content is required"

    @pytest.mark.asyncio
    async def test_other_users_note_not_found(self, test_client, ann, make_user, db_session):
        bob = await make_user("bob@example.com")
        await db_session.commit()
        # Failed requests roll back the shared session and expire its rows,
        # so mint both tokens up front
        ann_headers = _auth(ann)
        bob_headers = _auth(bob)
        created = await test_client.post("/api/notes", json={"content": "mine"}, headers=ann_headers)
        note_id = created.json()["_id"]

        update = await test_client.put(
            f"/api/notes/{note_id}", json={"content": "stolen"}, headers=bob_headers
        )
        delete = await test_client.delete(f"/api/notes/{note_id}", headers=bob_headers)

        assert update.status_code == 404
        assert update.json()["error"] == "Note not found"
        assert delete.status_code == 404
        assert (await test_client.get("/api/notes", headers=bob_headers)).json() == []

        mine = (await test_client.get("/api/notes", headers=ann_headers)).json()
        assert [n["content"] for n in mine] == ["mine"]

    @pytest.mark.asyncio
    async def test_malformed_note_id(self, test_client, ann):
        response = await test_client.delete("/api/notes/not-a-uuid", headers=_auth(ann))

        assert response.status_code == 400


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["auth"] == "configured"
