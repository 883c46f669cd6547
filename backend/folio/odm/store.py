"""Document Store — SQL access for one collection in the shared documents table.

Invariants:
    - Every statement is scoped by collection; a document id from another
      collection behaves as missing
    - Sessions come from the process-wide manager, looked up per operation
    - Callers receive StoredDocument snapshots, never live ORM instances
    - Writes to existing documents are compare-and-swap on `version`: a write
      based on a stale read never lands
    - Reference-field filter values are reduced to canonical ids, like the
      values stored by the Ref type

Design Decisions:
    - Typed JSON accessors (as_string/as_float/as_boolean) chosen from the
      schema's field kinds: portable across PostgreSQL and SQLite
    - Insertion order (created_at, id) is the default and tie-breaking order
    - Optimistic versioning over SELECT ... FOR UPDATE: SQLite has no row locks,
      and a single conditional UPDATE is atomic on both backends
    - update() re-reads and re-applies the caller's change on a lost race,
      up to MAX_UPDATE_ATTEMPTS
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from sqlalchemy import func, select, update

from folio.core.errors import DocumentConflictError, InvalidIdError, InvalidQueryError
from folio.infrastructure import database
from folio.models.document_record import DocumentRecord
from folio.odm.reference import reference_id, to_uuid
from folio.odm.schema import BOOLEAN, NUMBER, STRING

logger = logging.getLogger(__name__)

_COLLECTION_TYPES = (list, tuple, set, frozenset)

MAX_UPDATE_ATTEMPTS = 5


@dataclass(frozen=True)
class StoredDocument:
    """Immutable snapshot of a documents row."""
    id: str
    body: dict
    created_at: datetime
    updated_at: datetime
    version: int = 1

    def to_row(self) -> dict:
        return {
            "id": self.id,
            **self.body,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def _aware(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they were written as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _snapshot(record: Any) -> StoredDocument:
    return StoredDocument(
        id=record.id.hex,
        body=dict(record.body),
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
        version=record.version,
    )


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _reference_filter(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, _COLLECTION_TYPES):
        return [reference_id(v) for v in value]
    return reference_id(value)


class DocumentStore:
    """Reads and writes the rows of a single collection."""

    def __init__(
        self,
        collection: str,
        field_kinds: Mapping[str, str],
        reference_fields: Iterable[str] = (),
        model_name: str | None = None,
    ):
        self.collection = collection
        self.model_name = model_name or collection
        self._field_kinds = dict(field_kinds)
        self._references = frozenset(reference_fields)

    # ─── Statement building ─────────────────────────────────────

    def column(self, field: str):
        """SQL expression for a filterable/sortable field."""
        if field == "id":
            return DocumentRecord.id
        if field in ("created_at", "updated_at"):
            return getattr(DocumentRecord, field)
        kind = self._field_kinds.get(field)
        item = DocumentRecord.body[field]
        if kind == STRING:
            return item.as_string()
        if kind == NUMBER:
            return item.as_float()
        if kind == BOOLEAN:
            return item.as_boolean()
        raise InvalidQueryError(
            f"Field '{field}' cannot be queried on {self.collection}",
        )

    def conditions(self, filter: Mapping[str, Any] | None) -> list:
        clauses = [DocumentRecord.collection == self.collection]
        for field, value in (filter or {}).items():
            column = self.column(field)
            if field == "id":
                if isinstance(value, _COLLECTION_TYPES):
                    clauses.append(column.in_([to_uuid(reference_id(v)) for v in value]))
                else:
                    clauses.append(column == to_uuid(reference_id(value)))
                continue
            if field in self._references:
                value = _reference_filter(value)
            if isinstance(value, _COLLECTION_TYPES):
                clauses.append(column.in_([_plain(v) for v in value]))
            elif value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == _plain(value))
        return clauses

    def ordering(self, sort: tuple[str, bool] | None) -> list:
        order = []
        if sort:
            field, descending = sort
            column = self.column(field)
            order.append(column.desc() if descending else column.asc())
        order += [DocumentRecord.created_at.asc(), DocumentRecord.id.asc()]
        return order

    # ─── Reads ──────────────────────────────────────────────────

    async def find(
        self,
        filter: Mapping[str, Any] | None = None,
        sort: tuple[str, bool] | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        """Matching documents; limit=None (or 0) means no limit."""
        stmt = (
            select(DocumentRecord)
            .where(*self.conditions(filter))
            .order_by(*self.ordering(sort))
        )
        if skip:
            stmt = stmt.offset(skip)
        if limit:
            stmt = stmt.limit(limit)
        async with database.get_manager().session() as session:
            result = await session.execute(stmt)
            return [_snapshot(r) for r in result.scalars().all()]

    async def get(self, document_id: Any) -> StoredDocument | None:
        stmt = select(DocumentRecord).where(
            DocumentRecord.collection == self.collection,
            DocumentRecord.id == to_uuid(document_id),
        )
        async with database.get_manager().session() as session:
            record = (await session.execute(stmt)).scalar_one_or_none()
            return _snapshot(record) if record is not None else None

    async def get_many(self, ids: Iterable[str]) -> dict[str, StoredDocument]:
        """Fetch documents by id in one query; malformed ids are skipped."""
        uuids = set()
        for value in ids:
            try:
                uuids.add(to_uuid(value))
            except InvalidIdError:
                logger.debug(f"Skipping malformed reference id {value!r}")
        if not uuids:
            return {}
        stmt = select(DocumentRecord).where(
            DocumentRecord.collection == self.collection,
            DocumentRecord.id.in_(uuids),
        )
        async with database.get_manager().session() as session:
            result = await session.execute(stmt)
            return {r.id.hex: _snapshot(r) for r in result.scalars().all()}

    async def count(self, filter: Mapping[str, Any] | None = None) -> int:
        stmt = select(func.count()).select_from(DocumentRecord).where(
            *self.conditions(filter),
        )
        async with database.get_manager().session() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    # ─── Writes ─────────────────────────────────────────────────

    async def insert(self, body: dict) -> StoredDocument:
        now = datetime.now(timezone.utc)
        record = DocumentRecord(
            id=uuid.uuid4(), collection=self.collection, body=body,
            created_at=now, updated_at=now, version=1,
        )
        snapshot = _snapshot(record)
        async with database.get_manager().session() as session:
            session.add(record)
            await session.commit()
        logger.info(
            f"Inserted document into {self.collection}",
            extra={"collection": self.collection, "document_id": snapshot.id},
        )
        return snapshot

    async def _swap(
        self, document_id: uuid.UUID, body: dict, expected_version: int,
    ) -> StoredDocument | None:
        """Write body only if the row is still at expected_version."""
        stmt = (
            update(DocumentRecord)
            .where(
                DocumentRecord.id == document_id,
                DocumentRecord.collection == self.collection,
                DocumentRecord.version == expected_version,
            )
            .values(
                body=body,
                updated_at=datetime.now(timezone.utc),
                version=expected_version + 1,
            )
            .returning(
                DocumentRecord.id, DocumentRecord.body, DocumentRecord.created_at,
                DocumentRecord.updated_at, DocumentRecord.version,
            )
            .execution_options(synchronize_session=False)
        )
        async with database.get_manager().session() as session:
            row = (await session.execute(stmt)).one_or_none()
            await session.commit()
        return _snapshot(row) if row is not None else None

    async def replace(
        self, document_id: str, body: dict, expected_version: int,
    ) -> StoredDocument | None:
        """Overwrite a document read at expected_version.

        Returns None when the document no longer exists; raises
        DocumentConflictError when it was written since it was read.
        """
        uid = to_uuid(document_id)
        stored = await self._swap(uid, body, expected_version)
        if stored is not None:
            return stored
        if await self.get(uid) is None:
            return None
        raise DocumentConflictError(self.model_name, uid.hex)

    async def update(
        self, document_id: Any, build: Callable[[dict], dict],
    ) -> StoredDocument | None:
        """Read-modify-write without lost updates.

        `build` receives a copy of the current body and returns the new one.
        It is called again on a fresh read whenever another writer got in
        first. An unchanged body is not written. None when missing.
        """
        uid = to_uuid(document_id)
        for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
            current = await self.get(uid)
            if current is None:
                return None
            body = build(dict(current.body))
            if body == current.body:
                return current
            stored = await self._swap(uid, body, current.version)
            if stored is not None:
                return stored
            logger.info(
                f"Concurrent write on {self.collection}, retrying (attempt {attempt})",
                extra={"collection": self.collection, "document_id": uid.hex},
            )
        raise DocumentConflictError(self.model_name, uid.hex)

    async def remove(self, document_id: str) -> StoredDocument | None:
        async with database.get_manager().session() as session:
            record = await session.get(DocumentRecord, to_uuid(document_id))
            if record is None or record.collection != self.collection:
                return None
            snapshot = _snapshot(record)
            await session.delete(record)
            await session.commit()
        logger.info(
            f"Deleted document from {self.collection}",
            extra={"collection": self.collection, "document_id": snapshot.id},
        )
        return snapshot
