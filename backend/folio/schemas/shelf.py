"""Shelf Schema — a reader's named collection of books (many-to-many).

Invariants:
    - name, owner: 1-100 chars after stripping
    - books: references to Book documents, no duplicates, insertion order kept
"""

from typing import Annotated

from pydantic import Field, StringConstraints, field_validator

from folio.odm import DocumentSchema, Ref


class ShelfSchema(DocumentSchema):
    """Shelf record."""
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    owner: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    description: str | None = Field(None, max_length=1000)
    is_public: bool = False
    books: list[Ref["Book"]] = Field(default_factory=list)

    @field_validator("books")
    @classmethod
    def distinct_books(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))
