"""Book Schema — a catalogued title with its published editions.

Invariants:
    - title: 1-300 chars after stripping; author: reference to an Author (required)
    - genre: one of core.domain_types.Genre
    - pages: 1-20000; published_year: never in the future
    - tags: lowercased, stripped, de-duplicated, order preserved
    - editions: list of embedded Edition records, ISBNs unique within the book

Design Decisions:
    - Edition is embedded, not referenced: it has no life outside its book
    - ISBN check digit verified here; hyphens and spaces are accepted on input
      and removed before storage
"""

from datetime import date
from typing import Annotated

from pydantic import Field, StringConstraints, field_validator, model_validator

from folio.core.domain_types import EditionFormat, Genre
from folio.odm import DocumentSchema, EmbeddedSchema, Ref


def normalize_isbn(value: str) -> str:
    """Strip separators and verify an ISBN-10 or ISBN-13 check digit."""
    isbn = value.replace("-", "").replace(" ", "").upper()
    if len(isbn) == 10:
        if not (isbn[:9].isdigit() and (isbn[9].isdigit() or isbn[9] == "X")):
            raise ValueError("ISBN-10 must be 9 digits followed by a digit or X")
        digits = [int(c) for c in isbn[:9]] + [10 if isbn[9] == "X" else int(isbn[9])]
        if sum((10 - i) * d for i, d in enumerate(digits)) % 11:
            raise ValueError("ISBN-10 check digit mismatch")
        return isbn
    if len(isbn) == 13:
        if not isbn.isdigit():
            raise ValueError("ISBN-13 must contain only digits")
        total = sum(int(c) * (3 if i % 2 else 1) for i, c in enumerate(isbn[:12]))
        if (10 - total % 10) % 10 != int(isbn[12]):
            raise ValueError("ISBN-13 check digit mismatch")
        return isbn
    raise ValueError("ISBN must have 10 or 13 characters")


class Edition(EmbeddedSchema):
    """One published edition of a book."""
    format: EditionFormat
    isbn: str
    price: float = Field(ge=0)
    publisher: str | None = Field(None, max_length=200)

    @field_validator("isbn")
    @classmethod
    def check_isbn(cls, v: str) -> str:
        return normalize_isbn(v)


class BookSchema(DocumentSchema):
    """Book record."""
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=300)]
    author: Ref["Author"]
    genre: Genre
    pages: int = Field(ge=1, le=20_000)
    published_year: int | None = Field(None, ge=0)
    summary: str | None = Field(None, max_length=5000)
    tags: list[str] = Field(default_factory=list, max_length=20)
    editions: list[Edition] = Field(default_factory=list)

    @field_validator("published_year")
    @classmethod
    def not_in_future(cls, v: int | None) -> int | None:
        if v is not None and v > date.today().year:
            raise ValueError("published_year cannot be in the future")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in v:
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @model_validator(mode="after")
    def unique_isbns(self):
        isbns = [e.isbn for e in self.editions]
        if len(isbns) != len(set(isbns)):
            raise ValueError("editions must have distinct ISBNs")
        return self
