"""Author Routes — CRUD for authors and the listing of an author's books.

Invariants:
    - Request bodies are validated by AuthorSchema on persistence, not here
    - An author with catalogued books cannot be deleted (400)
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response, status

from folio.api.dependencies import Pagination, get_or_404, pagination, parse_fields
from folio.core.errors import BadRequestError, ResourceNotFoundError
from folio.models.author import Author
from folio.models.book import Book

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/authors", tags=["authors"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_author(body: dict[str, Any] = Body(...)):
    """Create an author."""
    author = await Author.create(body)
    logger.info(f"Created author {author.id}")
    return author.to_dict()


@router.get("")
async def list_authors(
    page: Pagination = Depends(pagination),
    nationality: str | None = Query(None),
    fields: str | None = Query(None),
):
    """List authors ordered by name."""
    filter = {"nationality": nationality} if nationality else {}
    query = page.apply(Author.find(filter).sort("name")).lean()
    if fields:
        query = query.select(*parse_fields(fields))
    authors = await query
    total = await Author.count_documents(filter)
    return {"authors": authors, "pagination": page.to_response(total)}


@router.get("/{author_id}")
async def get_author(author_id: str, fields: str | None = Query(None)):
    """Get one author."""
    query = Author.find_by_id(author_id).lean()
    if fields:
        query = query.select(*parse_fields(fields))
    return await get_or_404(query, "Author", author_id)


@router.patch("/{author_id}")
async def update_author(author_id: str, body: dict[str, Any] = Body(...)):
    """Apply changes; the merged record is re-validated before saving."""
    author = await Author.find_by_id_and_update(author_id, body)
    if author is None:
        raise ResourceNotFoundError("Author", author_id)
    return author.to_dict()


@router.delete("/{author_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_author(author_id: str):
    """Delete an author that has no books."""
    author = await get_or_404(
        Author.find_by_id(author_id).select("name"), "Author", author_id,
    )
    books = await Book.count_documents({"author": author.id})
    if books:
        raise BadRequestError(
            f"Author '{author_id}' still has {books} book(s) in the catalog",
        )
    await Author.find_by_id_and_delete(author.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{author_id}/books")
async def list_author_books(
    author_id: str, page: Pagination = Depends(pagination),
):
    """List the author's books ordered by publication year."""
    author = await get_or_404(
        Author.find_by_id(author_id).select("name").lean(), "Author", author_id,
    )
    filter = {"author": author["id"]}
    books = await page.apply(
        Book.find(filter).sort("published_year").select("-editions"),
    ).lean()
    total = await Book.count_documents(filter)
    return {
        "author": author,
        "books": books,
        "pagination": page.to_response(total),
    }
