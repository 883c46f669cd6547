"""Shelf Routes — reading lists linking many books (many-to-many).

Invariants:
    - Every book placed on a shelf must exist at the time it is placed (404)
    - Adding a book already on the shelf is a no-op (idempotent PUT)
    - Removing a book not on the shelf is a no-op (idempotent DELETE)
    - GET /shelves/{id} populates books with their title, author and genre

Design Decisions:
    - Add and remove go through find_by_id_and_modify: concurrent placements
      on one shelf all land
    - Deleting a book does not rewrite shelves: populate() drops references
      whose target no longer exists
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response, status

from folio.api.dependencies import Pagination, ensure_exists, get_or_404, pagination
from folio.core.errors import ResourceNotFoundError
from folio.models.book import Book
from folio.models.shelf import Shelf
from folio.odm.reference import reference_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/shelves", tags=["shelves"])

BOOK_FIELDS = ("title", "author", "genre")


async def _ensure_books_exist(book_ids: list[Any]) -> None:
    for book_id in dict.fromkeys(book_ids):
        await ensure_exists(Book, book_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_shelf(body: dict[str, Any] = Body(...)):
    """Create a shelf, optionally pre-filled with existing books."""
    validated = Shelf.validate(body)
    await _ensure_books_exist(validated["books"])
    shelf = await Shelf.create(body)
    logger.info(f"Created shelf {shelf.id}")
    return shelf.to_dict()


@router.get("")
async def list_shelves(
    page: Pagination = Depends(pagination),
    owner: str | None = Query(None),
):
    """List shelves ordered by name."""
    filter = {"owner": owner} if owner else {}
    shelves = await page.apply(Shelf.find(filter).sort("name")).lean()
    total = await Shelf.count_documents(filter)
    return {"shelves": shelves, "pagination": page.to_response(total)}


@router.get("/{shelf_id}")
async def get_shelf(shelf_id: str):
    """Get one shelf with its books resolved."""
    query = Shelf.find_by_id(shelf_id).populate("books", select=BOOK_FIELDS).lean()
    return await get_or_404(query, "Shelf", shelf_id)


@router.delete("/{shelf_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shelf(shelf_id: str):
    """Delete a shelf; its books are untouched."""
    shelf = await Shelf.find_by_id_and_delete(shelf_id)
    if shelf is None:
        raise ResourceNotFoundError("Shelf", shelf_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{shelf_id}/books/{book_id}")
async def add_book_to_shelf(shelf_id: str, book_id: str):
    """Place a book on the shelf."""
    canonical = await ensure_exists(Book, book_id)

    def place(data: dict) -> dict:
        books = data.get("books") or []
        if canonical in books:
            return data
        return {**data, "books": [*books, canonical]}

    shelf = await Shelf.find_by_id_and_modify(shelf_id, place)
    if shelf is None:
        raise ResourceNotFoundError("Shelf", shelf_id)
    return shelf.to_dict()


@router.delete("/{shelf_id}/books/{book_id}")
async def remove_book_from_shelf(shelf_id: str, book_id: str):
    """Take a book off the shelf."""
    canonical = reference_id(book_id)

    def take(data: dict) -> dict:
        books = data.get("books") or []
        return {**data, "books": [b for b in books if b != canonical]}

    shelf = await Shelf.find_by_id_and_modify(shelf_id, take)
    if shelf is None:
        raise ResourceNotFoundError("Shelf", shelf_id)
    return shelf.to_dict()
