"""Book Routes — CRUD for books with optional author population.

Invariants:
    - A book's author must exist when the book is created or re-assigned (404)
    - populate=author replaces the author id with the author's public fields
    - sort accepts any declared field, "-field" for descending
"""

import logging
from typing import Any, Literal

from fastapi import APIRouter, Body, Depends, Query, Response, status

from folio.api.dependencies import (
    Pagination, ensure_exists, get_or_404, pagination, parse_fields,
)
from folio.core.domain_types import Genre
from folio.core.errors import ResourceNotFoundError
from folio.models.author import Author
from folio.models.book import Book
from folio.odm.reference import reference_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/books", tags=["books"])

AUTHOR_FIELDS = ("name", "nationality")


def _with_author(query, populate: str | None):
    if populate == "author":
        return query.populate("author", select=AUTHOR_FIELDS)
    return query


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book(body: dict[str, Any] = Body(...)):
    """Create a book for an existing author."""
    validated = Book.validate(body)
    await ensure_exists(Author, validated["author"])
    book = await Book.create(body)
    logger.info(f"Created book {book.id}")
    return book.to_dict()


@router.get("")
async def list_books(
    page: Pagination = Depends(pagination),
    genre: Genre | None = Query(None),
    author: str | None = Query(None),
    sort: str = Query("title"),
    populate: Literal["author"] | None = Query(None),
    fields: str | None = Query(None),
):
    """List books, optionally filtered by genre and author."""
    filter: dict[str, Any] = {}
    if genre:
        filter["genre"] = genre
    if author:
        filter["author"] = reference_id(author)
    query = page.apply(Book.find(filter).sort(sort)).lean()
    if fields:
        query = query.select(*parse_fields(fields))
    books = await _with_author(query, populate)
    total = await Book.count_documents(filter)
    return {"books": books, "pagination": page.to_response(total)}


@router.get("/{book_id}")
async def get_book(
    book_id: str,
    populate: Literal["author"] | None = Query(None),
    fields: str | None = Query(None),
):
    """Get one book."""
    query = Book.find_by_id(book_id).lean()
    if fields:
        query = query.select(*parse_fields(fields))
    return await get_or_404(_with_author(query, populate), "Book", book_id)


@router.patch("/{book_id}")
async def update_book(book_id: str, body: dict[str, Any] = Body(...)):
    """Apply changes; a new author must exist."""
    if "author" in body:
        await ensure_exists(Author, body["author"])
    book = await Book.find_by_id_and_update(book_id, body)
    if book is None:
        raise ResourceNotFoundError("Book", book_id)
    return book.to_dict()


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(book_id: str):
    """Delete a book."""
    book = await Book.find_by_id_and_delete(book_id)
    if book is None:
        raise ResourceNotFoundError("Book", book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
