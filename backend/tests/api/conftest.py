"""API test fixtures — FastAPI test client over the per-test database.

Invariants:
    - The client shares test_manager with the document mapper: data created
      through models in a test is visible through the routes and vice versa
    - App exceptions become responses (raise_app_exceptions=False) so the
      catch-all 500 handler can be asserted on

Design Decisions:
    - ASGITransport does not run the lifespan: the patched db_manager is the
      only database the routes ever see
"""

import pytest
from httpx import ASGITransport, AsyncClient

from folio.main import app

API = "/api/v1"


@pytest.fixture
async def client(test_manager):
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c
