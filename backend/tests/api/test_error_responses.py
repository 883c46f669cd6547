"""Error translation and the middleware pipeline, end to end.

Tests:
    - Unknown routes and wrong methods use the {"error": ...} envelope
    - Malformed JSON bodies are 400, not 422
    - Unhandled failures and server-side FolioErrors never leak their message
    - Trailing slashes route like their bare form; no redirect
    - X-Request-ID is echoed or generated
"""

import uuid

from folio.core.errors import DatabaseError, INTERNAL_MESSAGE
from folio.models.author import Author

API = "/api/v1"


async def test_unknown_route_is_404(client):
    resp = await client.get(f"{API}/publishers")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


async def test_wrong_method_is_405(client):
    resp = await client.put(f"{API}/authors")
    assert resp.status_code == 405
    assert resp.json() == {"error": "Method Not Allowed"}


async def test_malformed_json_is_400(client):
    resp = await client.post(
        f"{API}/authors",
        content=b'{"name": "Broken",',
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request data"


async def test_unhandled_exception_is_generic_500(client, monkeypatch):
    async def explode(data):
        raise RuntimeError("secret connection string")

    monkeypatch.setattr(Author, "create", explode)
    resp = await client.post(f"{API}/authors", json={"name": "X"})
    assert resp.status_code == 500
    assert resp.json() == {"error": INTERNAL_MESSAGE}


async def test_database_error_is_redacted(client, monkeypatch):
    async def failing_count(filter=None):
        raise DatabaseError("password authentication failed", "count")

    monkeypatch.setattr(Author.store, "count", failing_count)
    resp = await client.get(f"{API}/authors")
    assert resp.status_code == 500
    assert resp.json() == {"error": INTERNAL_MESSAGE}


async def test_trailing_slash_routes_without_redirect(client, author):
    resp = await client.get(f"{API}/authors/")
    assert resp.status_code == 200
    assert resp.json()["pagination"]["total"] == 1

    resp = await client.get(f"{API}/authors/{author.id}/")
    assert resp.status_code == 200
    assert resp.json()["id"] == author.id


async def test_request_id_echoed(client, test_manager):
    resp = await client.get(f"{API}/health", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


async def test_request_id_generated(client, test_manager):
    resp = await client.get(f"{API}/authors/{uuid.uuid4().hex}")
    assert resp.status_code == 404
    assert len(resp.headers["X-Request-ID"]) == 32
