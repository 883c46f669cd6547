"""Query Descriptor — deferred, chainable description of a pending fetch.

Invariants:
    - Nothing touches storage until the query is awaited (or exec() is called)
    - Refinements are generative: each returns a new Query, the receiver is unchanged
    - id is always present in results, whatever the projection
    - populate() resolves one level of references with one batched fetch per path;
      a missing singular target becomes None, missing list targets are dropped
    - lean() yields plain dicts instead of Document instances
    - limit(0) means no limit, same as never calling limit()

Design Decisions:
    - Projection applied before population: an excluded reference is never resolved
    - Validation of field names happens while building, errors surface early as
      InvalidQueryError; id parsing happens at execution like any other filter value
"""

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from folio.core.domain_types import METADATA_FIELDS
from folio.core.errors import InvalidQueryError
from folio.odm.document import Document

if TYPE_CHECKING:
    from folio.odm.model import Model


@dataclass(frozen=True)
class PopulateSpec:
    path: str
    select: tuple[str, ...] = ()


class Query:
    """A pending retrieval against one model's collection."""

    def __init__(
        self,
        model: "Model",
        filter: Mapping[str, Any] | None = None,
        single: bool = False,
    ):
        self._model = model
        self._filter = dict(filter or {})
        self._single = single
        self._fields: tuple[str, ...] = ()
        self._exclude = False
        self._populate: tuple[PopulateSpec, ...] = ()
        self._lean = False
        self._sort: tuple[str, bool] | None = None
        self._skip = 0
        self._limit: int | None = None

    def _clone(self, **changes: Any) -> "Query":
        query = copy.copy(self)
        query._filter = dict(self._filter)
        for name, value in changes.items():
            setattr(query, f"_{name}", value)
        return query

    def _check_field(self, name: str) -> None:
        if name not in self._model.schema.model_fields and name not in METADATA_FIELDS:
            raise InvalidQueryError(
                f"Unknown field '{name}' on {self._model.name}",
            )

    # ─── Refinements ────────────────────────────────────────────

    def where(self, **conditions: Any) -> "Query":
        """Add equality/membership conditions to the filter."""
        query = self._clone()
        query._filter.update(conditions)
        return query

    def select(self, *fields: str) -> "Query":
        """Project fields: "title" includes, "-title" excludes; not both."""
        names = [f for f in fields if f]
        if not names:
            return self._clone(fields=(), exclude=False)
        excluded = [n.startswith("-") for n in names]
        if any(excluded) and not all(excluded):
            raise InvalidQueryError("Cannot mix inclusion and exclusion in select()")
        cleaned = tuple(n.lstrip("-") for n in names)
        for name in cleaned:
            self._check_field(name)
        if all(excluded) and "id" in cleaned:
            raise InvalidQueryError("Field 'id' cannot be excluded")
        return self._clone(fields=cleaned, exclude=all(excluded))

    def populate(self, path: str, select: tuple[str, ...] | list[str] = ()) -> "Query":
        """Resolve the reference at `path` to the referenced document's data."""
        ref = self._model.references.get(path)
        if ref is None:
            raise InvalidQueryError(
                f"'{path}' is not a reference field of {self._model.name}",
            )
        target = self._model.related(ref.model_name)
        for name in select:
            if name not in target.schema.model_fields and name not in METADATA_FIELDS:
                raise InvalidQueryError(
                    f"Unknown field '{name}' on {target.name}",
                )
        specs = tuple(p for p in self._populate if p.path != path)
        return self._clone(populate=specs + (PopulateSpec(path, tuple(select)),))

    def lean(self, enabled: bool = True) -> "Query":
        return self._clone(lean=enabled)

    def sort(self, field: str, descending: bool = False) -> "Query":
        if field.startswith("-"):
            field, descending = field[1:], True
        self._check_field(field)
        return self._clone(sort=(field, descending))

    def skip(self, count: int) -> "Query":
        if count < 0:
            raise InvalidQueryError("skip() requires a non-negative count")
        return self._clone(skip=count)

    def limit(self, count: int | None) -> "Query":
        """Cap the number of results; 0 or None means no limit."""
        if count is not None and count < 0:
            raise InvalidQueryError("limit() requires a non-negative count")
        return self._clone(limit=count or None)

    # ─── Execution ──────────────────────────────────────────────

    def __await__(self):
        return self.exec().__await__()

    async def exec(self):
        limit = 1 if self._single else self._limit
        stored = await self._model.store.find(
            self._filter, self._sort, self._skip, limit,
        )
        rows = [self._project(s.to_row()) for s in stored]
        for spec in self._populate:
            await self._resolve(rows, spec)

        partial = bool(self._fields)
        results = rows if self._lean else [
            Document.from_row(self._model, row, partial=partial, version=s.version)
            for s, row in zip(stored, rows)
        ]
        if self._single:
            return results[0] if results else None
        return results

    def _project(self, row: dict) -> dict:
        return project(row, self._fields, self._exclude)

    async def _resolve(self, rows: list[dict], spec: PopulateSpec) -> None:
        ref = self._model.references[spec.path]
        target = self._model.related(ref.model_name)
        wanted: list[str] = []
        for row in rows:
            value = row.get(spec.path)
            if ref.many:
                wanted.extend(value or [])
            elif value is not None:
                wanted.append(value)
        found = await target.store.get_many(wanted)
        resolved = {
            doc_id: project(doc.to_row(), spec.select, False)
            for doc_id, doc in found.items()
        }
        for row in rows:
            if spec.path not in row:
                continue
            value = row[spec.path]
            if ref.many:
                row[spec.path] = [
                    resolved[v] for v in (value or []) if v in resolved
                ]
            else:
                row[spec.path] = resolved.get(value) if value is not None else None

    def __repr__(self) -> str:
        kind = "one" if self._single else "many"
        return f"<Query {self._model.name}.{kind} filter={self._filter!r}>"


def project(row: dict, fields: tuple[str, ...], exclude: bool) -> dict:
    if not fields:
        return dict(row)
    if exclude:
        return {k: v for k, v in row.items() if k not in fields}
    return {k: v for k, v in row.items() if k == "id" or k in fields}
