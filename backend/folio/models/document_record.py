"""DocumentRecord ORM — the single table every document collection is stored in.

Invariants:
    - id is UUID primary key, unique across all collections
    - collection is the bound name of the owning model (e.g. "books")
    - body holds the validated field data as JSON, never metadata keys
    - updated_at moves on every write; created_at never changes
    - version starts at 1 and increases by one on every write; writes are
      conditional on the version the writer read

Design Decisions:
    - One table, JSON body: schemas live in Python, not in DDL, so adding a
      model needs no migration
    - (collection, created_at) index: default listing order is insertion order
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Integer, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from folio.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentRecord(Base):
    """Stored document — one row per document of any collection."""
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    collection: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True,
    )
    body: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1",
    )

    __table_args__ = (
        Index("ix_documents_collection_created_at", "collection", "created_at"),
    )
