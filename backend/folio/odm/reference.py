"""References — id-valued fields that point at a document of another model.

Invariants:
    - A reference is stored as the target's DocumentId string, never as embedded data
    - Ref["Author"] is singular (one-to-many); list[Ref["Book"]] is many-to-many
    - A dict or Document assigned to a reference field is reduced to its id
      before validation, so populated documents save cleanly
    - Malformed ids fail schema validation; in filters and lookups they raise
      InvalidIdError (reference_id)

Design Decisions:
    - Ref["Name"] resolves to typing.Annotated metadata: pydantic validates the id,
      find_reference() reads the target name back for populate()
    - Target named by string, resolved lazily through the model registry: models
      may reference each other regardless of import order
"""

import types
import uuid
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import AfterValidator, BeforeValidator

from folio.core.domain_types import DocumentId
from folio.core.errors import InvalidIdError


@dataclass(frozen=True)
class ReferenceTo:
    """Annotation marker naming the referenced model."""
    model_name: str


@dataclass(frozen=True)
class ReferenceField:
    """A resolved reference field of a schema."""
    name: str
    model_name: str
    many: bool


def to_uuid(value: Any) -> uuid.UUID:
    """Parse a document id; raises InvalidIdError when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        raise InvalidIdError(value)


def normalize_document_id(value: Any) -> DocumentId:
    return DocumentId(to_uuid(value).hex)


def _reference_value(value: Any) -> Any:
    if isinstance(value, dict):
        return value.get("id")
    if isinstance(value, uuid.UUID):
        return value.hex
    if value is None or isinstance(value, str):
        return value
    # Document instances and anything else exposing an id
    return getattr(value, "id", value)


def reference_id(value: Any) -> DocumentId:
    """Canonical id for any accepted reference form: id string, UUID, dict or Document."""
    return normalize_document_id(_reference_value(value))


def _validate_reference_id(value: Any) -> str:
    try:
        return normalize_document_id(value)
    except InvalidIdError:
        raise ValueError("must be a valid document id")


class Ref:
    """Reference type factory: `author: Ref["Author"]`."""

    def __class_getitem__(cls, model_name: str):
        return Annotated[
            str,
            BeforeValidator(_reference_value),
            AfterValidator(_validate_reference_id),
            ReferenceTo(model_name),
        ]


def find_reference(annotation: Any, metadata: list | tuple = ()) -> tuple[str, bool] | None:
    """Return (model_name, many) if the annotation declares a reference."""
    for extra in metadata:
        if isinstance(extra, ReferenceTo):
            return extra.model_name, False

    origin = get_origin(annotation)
    if origin is Annotated:
        base, *extras = get_args(annotation)
        return find_reference(base, extras)
    if origin in (list, tuple, set, frozenset):
        args = get_args(annotation)
        if args:
            inner = find_reference(args[0])
            if inner:
                return inner[0], True
        return None
    if origin in (Union, types.UnionType):
        for arg in get_args(annotation):
            if arg is type(None):
                continue
            found = find_reference(arg)
            if found:
                return found
    return None
