"""Request transaction boundaries: the commit lands before the response goes out."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from stratum.api.main import create_application
from stratum.shared.db.session import get_session_factory


def recording_app(app, events):
    """Wrap an ASGI app, noting when the response starts."""

    async def wrapped(scope, receive, send):
        async def recording_send(message):
            if message["type"] == "http.response.start":
                events.append(f"response {message['status']}")
            await send(message)

        await app(scope, receive, recording_send)

    return wrapped


@pytest.fixture
def application(session_factory):
    app = create_application()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return app


async def test_write_is_committed_before_the_response_starts(application, auth, monkeypatch):
    events = []
    original_commit = AsyncSession.commit

    async def recording_commit(self):
        await original_commit(self)
        events.append("commit")

    monkeypatch.setattr(AsyncSession, "commit", recording_commit)

    transport = ASGITransport(app=recording_app(application, events))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.post("/clusters", json={"name": "Alpha"}, headers=auth("alice"))

    assert response.status_code == 201
    assert events == ["commit", "response 201"]


async def test_delete_is_committed_before_the_response_starts(application, client, auth, monkeypatch):
    created = await client.post("/clusters", json={"name": "Alpha"}, headers=auth("alice"))
    cluster_id = created.json()["data"]["id"]

    events = []
    original_commit = AsyncSession.commit

    async def recording_commit(self):
        await original_commit(self)
        events.append("commit")

    monkeypatch.setattr(AsyncSession, "commit", recording_commit)

    transport = ASGITransport(app=recording_app(application, events))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.delete(f"/clusters/{cluster_id}", headers=auth("alice"))

    assert response.status_code == 204
    assert events == ["commit", "response 204"]


async def test_failed_commit_is_reported_as_an_error(application, client, auth, monkeypatch):
    async def failing_commit(self):
        raise OperationalError("COMMIT", {}, Exception("could not serialize access"))

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)

    transport = ASGITransport(app=application, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.post("/clusters", json={"name": "Alpha"}, headers=auth("alice"))

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "An unexpected error occurred",
        "error_code": "INTERNAL_ERROR",
    }

    monkeypatch.undo()
    listed = await client.get("/clusters", headers=auth("alice"))
    assert listed.json()["data"] == []
