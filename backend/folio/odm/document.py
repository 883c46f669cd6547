"""Document — a model instance supporting mutate-then-persist.

Invariants:
    - Field data lives in a plain dict; attribute access reads and writes it
    - id, created_at, updated_at are read-only and assigned by the store
    - save() validates the whole record against the schema before any write
    - A projected (partial) document can never be saved
    - save() of a loaded document only lands if nobody wrote it since it was
      read; otherwise DocumentConflictError and nothing is written

Design Decisions:
    - Data is reset to the validated body after save(): populated references
      collapse back to ids, exactly what was stored
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from folio.core.domain_types import METADATA_FIELDS
from folio.core.errors import DocumentStateError, ResourceNotFoundError

if TYPE_CHECKING:
    from folio.odm.model import Model
    from folio.odm.store import StoredDocument


class Document:
    """A single document of a registered model."""

    def __init__(
        self,
        model: "Model",
        data: dict | None = None,
        *,
        document_id: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        partial: bool = False,
        version: int | None = None,
    ):
        object.__setattr__(self, "_model", model)
        object.__setattr__(self, "_data", {
            k: v for k, v in (data or {}).items() if k not in METADATA_FIELDS
        })
        object.__setattr__(self, "_id", document_id)
        object.__setattr__(self, "_created_at", created_at)
        object.__setattr__(self, "_updated_at", updated_at)
        object.__setattr__(self, "_partial", partial)
        object.__setattr__(self, "_version", version)

    @classmethod
    def from_row(
        cls, model: "Model", row: dict, partial: bool = False, version: int | None = None,
    ) -> "Document":
        return cls(
            model, row,
            document_id=row.get("id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            partial=partial,
            version=version,
        )

    @classmethod
    def from_stored(cls, model: "Model", stored: "StoredDocument") -> "Document":
        return cls.from_row(model, stored.to_row(), version=stored.version)

    # ─── Identity ───────────────────────────────────────────────

    @property
    def model(self) -> "Model":
        return self._model

    @property
    def id(self) -> str | None:
        return self._id

    @property
    def created_at(self) -> datetime | None:
        return self._created_at

    @property
    def updated_at(self) -> datetime | None:
        return self._updated_at

    @property
    def is_new(self) -> bool:
        return self._id is None

    @property
    def is_partial(self) -> bool:
        return self._partial

    # ─── Field access ───────────────────────────────────────────

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        data = self.__dict__.get("_data", {})
        if name in data:
            return data[name]
        if name in self._model.schema.model_fields:
            return None
        raise AttributeError(
            f"{self._model.name} document has no field '{name}'",
        )

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or name in METADATA_FIELDS:
            raise AttributeError(f"'{name}' is read-only")
        self._data[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self._data.get(name, default)

    def set(self, **changes: Any) -> "Document":
        """Apply several field changes; metadata keys are ignored."""
        for name, value in changes.items():
            if name not in METADATA_FIELDS:
                self._data[name] = value
        return self

    # ─── Persistence ────────────────────────────────────────────

    async def save(self) -> "Document":
        if self._partial:
            raise DocumentStateError(
                f"Cannot save a projected {self._model.name} document",
            )
        body = self._model.validate(self._data)
        if self._id is None:
            stored = await self._model.store.insert(body)
        else:
            stored = await self._model.store.replace(self._id, body, self._version or 1)
            if stored is None:
                raise ResourceNotFoundError(self._model.name, self._id)
        self._apply(stored)
        return self

    async def delete(self) -> None:
        if self._id is None:
            raise DocumentStateError(
                f"Cannot delete an unsaved {self._model.name} document",
            )
        removed = await self._model.store.remove(self._id)
        if removed is None:
            raise ResourceNotFoundError(self._model.name, self._id)

    def _apply(self, stored: "StoredDocument") -> None:
        object.__setattr__(self, "_data", dict(stored.body))
        object.__setattr__(self, "_id", stored.id)
        object.__setattr__(self, "_created_at", stored.created_at)
        object.__setattr__(self, "_updated_at", stored.updated_at)
        object.__setattr__(self, "_version", stored.version)

    # ─── Serialization ──────────────────────────────────────────

    def to_dict(self) -> dict:
        out = {"id": self._id, **self._data}
        if self._created_at is not None:
            out["created_at"] = self._created_at
        if self._updated_at is not None:
            out["updated_at"] = self._updated_at
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        if self._id is None or other._id is None:
            return self is other
        return self._model is other._model and self._id == other._id

    def __hash__(self) -> int:
        return hash((self._model.name, self._id)) if self._id else id(self)

    def __repr__(self) -> str:
        return f"<{self._model.name} {self._id or 'unsaved'}>"
