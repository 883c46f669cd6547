"""Models — schemas bound to named collections, plus the process-wide registry.

Invariants:
    - A model name is bound at most once per process; so is a collection name
    - The model name is how references address a model (Ref["Author"])
    - Every write path (create, save, find_by_id_and_update/modify) validates
      the full record before persistence
    - Collection-level reads return Query descriptors; writes are coroutines
    - find_by_id_and_modify/update never overwrite a concurrent write to the
      same document

Design Decisions:
    - Module-level registry dict: models are declared at import time, once
    - Default collection name is the lowercase plural of the model name
"""

import logging
import re
from typing import Any, Callable, Mapping

from folio.core.domain_types import METADATA_FIELDS
from folio.core.errors import ModelRegistrationError
from folio.odm.document import Document
from folio.odm.query import Query
from folio.odm.reference import ReferenceField
from folio.odm.schema import DocumentSchema
from folio.odm.store import DocumentStore

logger = logging.getLogger(__name__)

_models: dict[str, "Model"] = {}


class Model:
    """A DocumentSchema bound to a collection."""

    def __init__(self, name: str, schema: type[DocumentSchema], collection: str):
        self.name = name
        self.schema = schema
        self.collection = collection
        self.references: dict[str, ReferenceField] = schema.reference_fields()
        self.store = DocumentStore(
            collection, schema.field_kinds(), self.references, model_name=name,
        )

    def related(self, model_name: str) -> "Model":
        return get_model(model_name)

    def validate(self, data: Mapping[str, Any]) -> dict:
        """Validate a full record; returns the body to store."""
        clean = {k: v for k, v in data.items() if k not in METADATA_FIELDS}
        return self.schema.validate_document(self.name, clean)

    # ─── Instances ──────────────────────────────────────────────

    def new(self, data: Mapping[str, Any] | None = None) -> Document:
        """Unsaved document; validated on save()."""
        return Document(self, dict(data or {}))

    async def create(self, data: Mapping[str, Any]) -> Document:
        doc = self.new(data)
        await doc.save()
        return doc

    # ─── Queries ────────────────────────────────────────────────

    def find(self, filter: Mapping[str, Any] | None = None) -> Query:
        return Query(self, filter)

    def find_one(self, filter: Mapping[str, Any] | None = None) -> Query:
        return Query(self, filter, single=True)

    def find_by_id(self, document_id: Any) -> Query:
        return Query(self, {"id": document_id}, single=True)

    async def find_by_id_and_modify(
        self, document_id: Any, modify: Callable[[dict], dict],
    ) -> Document | None:
        """Apply `modify` to the stored data and persist the validated result.

        Read, merge and conditional write form one store update: when another
        writer gets in first, `modify` runs again on the newer data instead of
        overwriting it. None when the document is missing.
        """
        def build(body: dict) -> dict:
            return self.validate(modify(body))

        stored = await self.store.update(document_id, build)
        return Document.from_stored(self, stored) if stored is not None else None

    async def find_by_id_and_update(
        self, document_id: Any, changes: Mapping[str, Any],
    ) -> Document | None:
        """Merge changes into the stored record, re-validate, persist."""
        changes = {k: v for k, v in changes.items() if k not in METADATA_FIELDS}
        return await self.find_by_id_and_modify(
            document_id, lambda body: {**body, **changes},
        )

    async def find_by_id_and_delete(self, document_id: Any) -> Document | None:
        doc = await self.find_by_id(document_id)
        if doc is None:
            return None
        removed = await self.store.remove(doc.id)
        return doc if removed is not None else None

    async def count_documents(self, filter: Mapping[str, Any] | None = None) -> int:
        return await self.store.count(filter)

    async def exists(self, filter: Mapping[str, Any]) -> bool:
        return await self.store.count(filter) > 0

    def __repr__(self) -> str:
        return f"<Model {self.name} collection={self.collection!r}>"


def default_collection_name(model_name: str) -> str:
    """`Author` -> `authors`, `BookSeries` -> `book_series`, `Category` -> `categories`."""
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", model_name).lower()
    if snake.endswith("series"):
        return snake
    if snake.endswith(("s", "x", "z", "ch", "sh")):
        return snake + "es"
    if snake.endswith("y") and snake[-2:-1] not in ("a", "e", "i", "o", "u"):
        return snake[:-1] + "ies"
    return snake + "s"


def register_model(
    name: str, schema: type[DocumentSchema], collection: str | None = None,
) -> Model:
    """Bind `schema` to a collection under a process-unique model name."""
    if name in _models:
        raise ModelRegistrationError(f"Model '{name}' is already registered")
    collection = collection or default_collection_name(name)
    for existing in _models.values():
        if existing.collection == collection:
            raise ModelRegistrationError(
                f"Collection '{collection}' is already bound to model '{existing.name}'",
            )
    model = Model(name, schema, collection)
    _models[name] = model
    logger.debug(f"Registered model {name} -> {collection}")
    return model


def get_model(name: str) -> Model:
    try:
        return _models[name]
    except KeyError:
        raise ModelRegistrationError(f"Model '{name}' is not registered")
