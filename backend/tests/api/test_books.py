"""Book routes — author existence checks, filters, sorting, population."""

import uuid

API = "/api/v1"


def _payload(author_id, **overrides):
    data = {
        "title": "The Left Hand of Darkness",
        "author": author_id,
        "genre": "science_fiction",
        "pages": 304,
        "published_year": 1969,
    }
    data.update(overrides)
    return data


async def test_create_book(client, author):
    resp = await client.post(f"{API}/books", json=_payload(
        author.id, tags=["Gender", "gender"],
        editions=[{"format": "hardcover", "isbn": "0-306-40615-2", "price": 30}],
    ))
    assert resp.status_code == 201
    body = resp.json()
    assert body["author"] == author.id
    assert body["tags"] == ["gender"]
    assert body["editions"][0]["isbn"] == "0306406152"


async def test_create_book_unknown_author(client, test_manager):
    missing = uuid.uuid4().hex
    resp = await client.post(f"{API}/books", json=_payload(missing))
    assert resp.status_code == 404
    assert resp.json() == {"error": f"Author '{missing}' not found"}


async def test_create_book_validation_before_author_lookup(client, test_manager):
    resp = await client.post(f"{API}/books", json=_payload("nope", pages=0))
    assert resp.status_code == 400
    assert set(resp.json()["fields"]) == {"author", "pages"}


async def test_create_book_duplicate_isbn_rejected(client, author):
    edition = {"format": "ebook", "isbn": "978-0-306-40615-7", "price": 5}
    resp = await client.post(f"{API}/books", json=_payload(
        author.id, editions=[edition, {**edition, "format": "audiobook"}],
    ))
    assert resp.status_code == 400
    assert "document" in resp.json()["fields"]


async def test_list_books_filters(client, author, other_author, book):
    await client.post(f"{API}/books", json=_payload(
        other_author.id, title="The Cyberiad", genre="fiction", pages=295,
    ))

    by_genre = (await client.get(f"{API}/books", params={"genre": "fiction"})).json()
    assert [b["title"] for b in by_genre["books"]] == ["The Cyberiad"]
    assert by_genre["pagination"]["total"] == 1

    by_author = (await client.get(f"{API}/books", params={"author": author.id})).json()
    assert [b["title"] for b in by_author["books"]] == ["The Dispossessed"]


async def test_list_books_unknown_genre_rejected(client):
    resp = await client.get(f"{API}/books", params={"genre": "cookbook"})
    assert resp.status_code == 400
    assert "genre" in resp.json()["fields"]


async def test_list_books_sort(client, author, book):
    await client.post(f"{API}/books", json=_payload(author.id))
    titles = lambda resp: [b["title"] for b in resp.json()["books"]]  # noqa: E731

    assert titles(await client.get(f"{API}/books")) == [
        "The Dispossessed", "The Left Hand of Darkness",
    ]
    assert titles(await client.get(f"{API}/books", params={"sort": "-pages"})) == [
        "The Dispossessed", "The Left Hand of Darkness",
    ]
    assert titles(await client.get(f"{API}/books", params={"sort": "published_year"})) == [
        "The Left Hand of Darkness", "The Dispossessed",
    ]


async def test_list_books_unknown_sort_field(client, test_manager):
    resp = await client.get(f"{API}/books", params={"sort": "isbn"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Unknown field 'isbn' on Book"}


async def test_list_books_populated(client, author, book):
    resp = await client.get(f"{API}/books", params={"populate": "author"})
    books = resp.json()["books"]
    assert books[0]["author"] == {
        "id": author.id, "name": "Ursula K. Le Guin", "nationality": "American",
    }


async def test_get_book_with_fields_and_populate(client, author, book):
    resp = await client.get(
        f"{API}/books/{book.id}", params={"fields": "title,author", "populate": "author"},
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "id": book.id,
        "title": "The Dispossessed",
        "author": {"id": author.id, "name": "Ursula K. Le Guin", "nationality": "American"},
    }


async def test_get_book_mixed_fields_rejected(client, book):
    resp = await client.get(f"{API}/books/{book.id}", params={"fields": "title,-pages"})
    assert resp.status_code == 400


async def test_get_book_not_found(client, test_manager):
    missing = uuid.uuid4().hex
    resp = await client.get(f"{API}/books/{missing}")
    assert resp.status_code == 404
    assert resp.json() == {"error": f"Book '{missing}' not found"}


async def test_update_book(client, book):
    resp = await client.patch(f"{API}/books/{book.id}", json={"pages": 400})
    assert resp.status_code == 200
    assert resp.json()["pages"] == 400
    assert resp.json()["title"] == "The Dispossessed"


async def test_update_book_reassign_author(client, book, other_author):
    resp = await client.patch(f"{API}/books/{book.id}", json={"author": other_author.id})
    assert resp.json()["author"] == other_author.id

    missing = uuid.uuid4().hex
    resp = await client.patch(f"{API}/books/{book.id}", json={"author": missing})
    assert resp.status_code == 404


async def test_update_book_author_given_as_object(client, book, other_author):
    resp = await client.patch(
        f"{API}/books/{book.id}", json={"author": {"id": other_author.id, "name": "Lem"}},
    )
    assert resp.status_code == 200
    assert resp.json()["author"] == other_author.id


async def test_update_book_author_hyphenated_missing(client, book):
    missing = uuid.uuid4()
    resp = await client.patch(f"{API}/books/{book.id}", json={"author": str(missing)})
    assert resp.status_code == 404
    assert resp.json() == {"error": f"Author '{missing.hex}' not found"}


async def test_list_books_by_hyphenated_author(client, author, book):
    params = {"author": str(uuid.UUID(author.id))}
    body = (await client.get(f"{API}/books", params=params)).json()
    assert [b["id"] for b in body["books"]] == [book.id]
    assert body["pagination"]["total"] == 1


async def test_delete_book(client, book):
    resp = await client.delete(f"{API}/books/{book.id}")
    assert resp.status_code == 204
    assert (await client.delete(f"{API}/books/{book.id}")).status_code == 404
