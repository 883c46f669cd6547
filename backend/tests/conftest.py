"""Root conftest — shared test configuration and database fixtures.

Invariants:
    - Every test gets a fresh SQLite database file under its tmp_path
    - The process-wide db_manager is patched for the duration of a test,
      so the document mapper and the routes use the test database

Design Decisions:
    - SQLite file, not :memory:: an in-memory database lives on one shared
      connection, so concurrent sessions would share a transaction. A file
      gives each session its own connection, as on PostgreSQL
    - JSON accessors used by the store are portable between SQLite and PostgreSQL
"""

import os

# Ensure tests never reach a real database server
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest  # noqa: E402

from folio.db.base import Base  # noqa: E402
from folio.infrastructure import database as db_module  # noqa: E402
from folio.infrastructure.database import DatabaseSessionManager  # noqa: E402
from folio.models.author import Author  # noqa: E402
from folio.models.book import Book  # noqa: E402
import folio.models.shelf  # noqa: E402,F401


@pytest.fixture
async def test_manager(monkeypatch, tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'folio.db'}")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    monkeypatch.setattr(db_module, "db_manager", manager)
    yield manager
    await manager.close()


@pytest.fixture
async def author(test_manager):
    return await Author.create({
        "name": "Ursula K. Le Guin", "born": 1929, "nationality": "American",
    })


@pytest.fixture
async def other_author(test_manager):
    return await Author.create({"name": "Stanislaw Lem", "born": 1921})


@pytest.fixture
async def book(author):
    return await Book.create({
        "title": "The Dispossessed",
        "author": author.id,
        "genre": "science_fiction",
        "pages": 387,
        "published_year": 1974,
        "tags": ["Utopia", "anarchism", "utopia"],
        "editions": [
            {"format": "paperback", "isbn": "978-0-306-40615-7", "price": 15.99},
        ],
    })
