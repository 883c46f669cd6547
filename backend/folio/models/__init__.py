"""Models — ORM table for stored documents and the catalog's bound models.

Invariants:
    - DocumentRecord (db/base.py metadata) is the only SQL table
    - Catalog models (Author, Book, Shelf) are registered once, on first import

Design Decisions:
    - One file per model for locality
    - Only the ORM table imported here so Base.metadata is complete for
      Alembic and test fixtures; catalog models are imported where used
"""

from folio.models.document_record import DocumentRecord  # noqa: F401
