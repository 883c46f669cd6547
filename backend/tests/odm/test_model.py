"""Models — verifies the registry and collection-level operations.

Tests:
    - Model names and collection names are bound once per process
    - Default collection names are lowercase plurals
    - create/find_by_id/find_by_id_and_update/find_by_id_and_delete round the store
    - Updates re-validate the merged record before persisting
    - Concurrent updates of one document all land; a stale read is re-applied
    - Filters: equality, membership, None, id; unknown fields rejected
    - Reference filters accept ids in any form a reference field accepts
    - Documents of one collection are invisible to another
"""

import asyncio
import uuid

import pytest
from pydantic import Field

from folio.core.errors import (
    DocumentConflictError, DocumentValidationError, InvalidIdError, InvalidQueryError,
    ModelRegistrationError,
)
from folio.models.author import Author
from folio.models.book import Book
from folio.models.shelf import Shelf
from folio.odm import DocumentSchema, get_model, register_model
from folio.odm.model import default_collection_name


class CounterSchema(DocumentSchema):
    label: str
    value: int = Field(0, ge=0)


# ─── Registry ───────────────────────────────────────────────────

def test_catalog_models_registered():
    assert get_model("Author") is Author
    assert get_model("Book") is Book
    assert get_model("Shelf") is Shelf
    assert Author.collection == "authors"
    assert Book.collection == "books"
    assert Shelf.collection == "shelves"


def test_duplicate_model_name_rejected():
    register_model("RegistryProbe", CounterSchema)
    with pytest.raises(ModelRegistrationError, match="already registered"):
        register_model("RegistryProbe", CounterSchema, collection="probes_again")


def test_duplicate_collection_rejected():
    with pytest.raises(ModelRegistrationError, match="already bound"):
        register_model("AuthorCopy", CounterSchema, collection="authors")


def test_unknown_model_lookup_fails():
    with pytest.raises(ModelRegistrationError, match="not registered"):
        get_model("Nope")


@pytest.mark.parametrize("name, expected", [
    ("Author", "authors"),
    ("Category", "categories"),
    ("Day", "days"),
    ("Box", "boxes"),
    ("BookSeries", "book_series"),
    ("ReadingList", "reading_lists"),
])
def test_default_collection_name(name, expected):
    assert default_collection_name(name) == expected


# ─── CRUD ───────────────────────────────────────────────────────

async def test_create_assigns_id_and_timestamps(test_manager):
    author = await Author.create({"name": "Octavia Butler", "born": 1947})
    assert len(author.id) == 32
    assert author.created_at is not None
    assert author.updated_at is not None
    assert not author.is_new


async def test_create_rejects_invalid_record_and_stores_nothing(test_manager):
    with pytest.raises(DocumentValidationError):
        await Author.create({"born": 1947})
    assert await Author.count_documents() == 0


async def test_find_by_id_returns_document(author):
    found = await Author.find_by_id(author.id)
    assert found == author
    assert found.name == "Ursula K. Le Guin"


async def test_find_by_id_accepts_hyphenated_uuid(author):
    found = await Author.find_by_id(str(uuid.UUID(author.id)))
    assert found.id == author.id


async def test_find_by_id_missing_returns_none(test_manager):
    assert await Author.find_by_id(uuid.uuid4().hex) is None


async def test_find_by_id_malformed_raises_on_exec(test_manager):
    query = Author.find_by_id("42")
    with pytest.raises(InvalidIdError):
        await query


async def test_find_by_id_and_update_merges_and_validates(author):
    updated = await Author.find_by_id_and_update(author.id, {"died": 2018})
    assert updated.died == 2018
    assert updated.name == "Ursula K. Le Guin"
    assert updated.created_at == author.created_at

    with pytest.raises(DocumentValidationError) as exc_info:
        await Author.find_by_id_and_update(author.id, {"died": 1800})
    assert "document" in exc_info.value.field_errors
    stored = await Author.find_by_id(author.id).lean()
    assert stored["died"] == 2018


async def test_find_by_id_and_update_ignores_metadata_keys(author):
    updated = await Author.find_by_id_and_update(
        author.id, {"id": uuid.uuid4().hex, "nationality": "US"},
    )
    assert updated.id == author.id
    assert updated.nationality == "US"


async def test_find_by_id_and_update_missing_returns_none(test_manager):
    assert await Author.find_by_id_and_update(uuid.uuid4().hex, {"name": "x"}) is None


async def test_concurrent_updates_both_land(author):
    await asyncio.gather(
        Author.find_by_id_and_update(author.id, {"nationality": "Polish"}),
        Author.find_by_id_and_update(author.id, {"born": 1930}),
    )
    stored = await Author.find_by_id(author.id).lean()
    assert stored["nationality"] == "Polish"
    assert stored["born"] == 1930


async def test_update_reapplied_after_intervening_write(author, monkeypatch):
    stale = await Author.store.get(author.id)
    await Author.find_by_id_and_update(author.id, {"born": 1930})

    real_get = Author.store.get
    reads = [stale]

    async def get(document_id):
        return reads.pop() if reads else await real_get(document_id)

    monkeypatch.setattr(Author.store, "get", get)
    updated = await Author.find_by_id_and_update(author.id, {"nationality": "Polish"})
    assert updated.born == 1930
    assert updated.nationality == "Polish"


async def test_update_gives_up_when_always_outraced(author, monkeypatch):
    stale = await Author.store.get(author.id)
    await Author.find_by_id_and_update(author.id, {"born": 1930})

    async def get(document_id):
        return stale

    monkeypatch.setattr(Author.store, "get", get)
    with pytest.raises(DocumentConflictError):
        await Author.find_by_id_and_update(author.id, {"nationality": "Polish"})
    stored = await Author.find_by_id(author.id).lean()
    assert stored["nationality"] == "American"
    assert stored["born"] == 1930


async def test_find_by_id_and_modify_unchanged_skips_write(author):
    same = await Author.find_by_id_and_modify(author.id, lambda data: data)
    assert same.updated_at == author.updated_at

    shouted = await Author.find_by_id_and_modify(
        author.id, lambda data: {**data, "name": data["name"].upper()},
    )
    assert shouted.name == "URSULA K. LE GUIN"
    assert shouted.updated_at >= author.updated_at


async def test_find_by_id_and_modify_missing_returns_none(test_manager):
    assert await Author.find_by_id_and_modify(uuid.uuid4().hex, lambda data: data) is None


async def test_find_by_id_and_delete(author):
    deleted = await Author.find_by_id_and_delete(author.id)
    assert deleted.id == author.id
    assert await Author.find_by_id(author.id) is None
    assert await Author.find_by_id_and_delete(author.id) is None


async def test_collections_are_isolated(book):
    assert await Author.find_by_id(book.id) is None
    assert await Author.find_by_id_and_delete(book.id) is None
    assert await Book.count_documents() == 1


# ─── Filters ────────────────────────────────────────────────────

async def test_filter_equality_and_count(author, other_author, book):
    americans = await Author.find({"nationality": "American"})
    assert [a.id for a in americans] == [author.id]
    assert await Author.count_documents({"nationality": "American"}) == 1
    assert await Author.count_documents() == 2


async def test_filter_numeric_and_enum(book, author):
    await Book.create({
        "title": "The Left Hand of Darkness", "author": author.id,
        "genre": "science_fiction", "pages": 304, "published_year": 1969,
    })
    titles = [b.title for b in await Book.find({"pages": 387})]
    assert titles == ["The Dispossessed"]
    assert await Book.count_documents({"genre": "science_fiction"}) == 2
    assert await Book.count_documents({"published_year": [1969, 1974]}) == 2


async def test_filter_none_matches_missing_value(author, other_author):
    without = await Author.find({"nationality": None})
    assert [a.id for a in without] == [other_author.id]


async def test_filter_by_ids(author, other_author):
    found = await Author.find({"id": [author.id, other_author.id]})
    assert {a.id for a in found} == {author.id, other_author.id}


async def test_filter_unknown_field_rejected(test_manager):
    with pytest.raises(InvalidQueryError):
        await Author.find({"shoe_size": 42})


async def test_filter_non_scalar_field_rejected(test_manager):
    with pytest.raises(InvalidQueryError):
        await Book.find({"tags": "utopia"})


async def test_exists(author):
    assert await Author.exists({"name": "Ursula K. Le Guin"})
    assert not await Author.exists({"name": "Nobody"})


async def test_reference_filter_accepts_any_reference_form(book, author):
    hyphenated = str(uuid.UUID(author.id))
    for value in (author.id, hyphenated, {"id": author.id}, author):
        assert [b.id for b in await Book.find({"author": value})] == [book.id]
        assert await Book.count_documents({"author": value}) == 1


async def test_reference_filter_list_is_normalized(book, author, other_author):
    value = [str(uuid.UUID(author.id)), other_author]
    assert await Book.count_documents({"author": value}) == 1


async def test_reference_filter_malformed_rejected(book):
    with pytest.raises(InvalidIdError):
        await Book.find({"author": "not-an-id"})
    with pytest.raises(InvalidIdError):
        await Book.count_documents({"author": {"name": "Nobody"}})
