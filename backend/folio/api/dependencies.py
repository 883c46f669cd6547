"""Route Dependencies — shared query parameters and lookup helpers.

Invariants:
    - Pagination: limit 1-100 (default 20), offset >= 0
    - get_or_404 raises ResourceNotFoundError; callers never return None to clients
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Query as QueryParam

from folio.core.errors import ResourceNotFoundError
from folio.odm import Model, Query
from folio.odm.reference import reference_id


@dataclass(frozen=True)
class Pagination:
    limit: int
    offset: int

    def apply(self, query: Query) -> Query:
        return query.skip(self.offset).limit(self.limit)

    def to_response(self, total: int) -> dict:
        return {"limit": self.limit, "offset": self.offset, "total": total}


def pagination(
    limit: int = QueryParam(20, ge=1, le=100),
    offset: int = QueryParam(0, ge=0),
) -> Pagination:
    return Pagination(limit=limit, offset=offset)


def parse_fields(fields: str | None) -> tuple[str, ...]:
    """Split "title,-summary" into ("title", "-summary")."""
    if not fields:
        return ()
    return tuple(f.strip() for f in fields.split(",") if f.strip())


async def get_or_404(query: Query, resource_type: str, resource_id: str) -> Any:
    """Execute a single-result query or raise 404."""
    found = await query
    if found is None:
        raise ResourceNotFoundError(resource_type, resource_id)
    return found


async def ensure_exists(model: Model, document_id: Any) -> str:
    """Canonical id of an existing document (any reference form) or raise 404."""
    canonical = reference_id(document_id)
    if not await model.exists({"id": canonical}):
        raise ResourceNotFoundError(model.name, canonical)
    return canonical
