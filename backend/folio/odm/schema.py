"""Document Schemas — declarative shape and validation rules for stored records.

Invariants:
    - A record is persisted only after validate_document() accepts the whole record
    - Validation failures surface as DocumentValidationError with one entry per
      offending dotted field path
    - Unknown keys are dropped, never stored
    - Schemas never declare metadata keys (id, created_at, updated_at)

Design Decisions:
    - Pydantic models as schemas: required fields, Enum/Literal membership,
      Field(ge/le) bounds and field_validator predicates come for free
    - EmbeddedSchema for nested objects: same validation, no identity of its own
    - field_kinds() derives JSON accessor types from annotations, so filters and
      sorts compare numbers as numbers
"""

import types
from enum import Enum
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, ValidationError

from folio.core.domain_types import METADATA_FIELDS
from folio.core.errors import DocumentValidationError
from folio.odm.reference import ReferenceField, find_reference

# Scalar kinds a body field can be compared as
STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"


class EmbeddedSchema(BaseModel):
    """Nested object schema — validated as part of its parent document."""

    model_config = ConfigDict(extra="ignore", use_enum_values=True)


class DocumentSchema(EmbeddedSchema):
    """Top-level document schema bound to a collection by register_model()."""

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        reserved = set(cls.model_fields) & set(METADATA_FIELDS)
        if reserved:
            raise TypeError(
                f"{cls.__name__} declares reserved field(s): {', '.join(sorted(reserved))}",
            )

    @classmethod
    def reference_fields(cls) -> dict[str, ReferenceField]:
        refs = {}
        for name, info in cls.model_fields.items():
            found = find_reference(info.annotation, info.metadata)
            if found:
                refs[name] = ReferenceField(name, found[0], found[1])
        return refs

    @classmethod
    def field_kinds(cls) -> dict[str, str]:
        """Map every scalar field to STRING, NUMBER or BOOLEAN."""
        kinds = {}
        for name, info in cls.model_fields.items():
            kind = scalar_kind(info.annotation)
            if kind:
                kinds[name] = kind
        return kinds

    @classmethod
    def validate_document(cls, model_name: str, data: dict) -> dict:
        """Validate a full record; return its JSON-ready body."""
        try:
            instance = cls.model_validate(data)
        except ValidationError as e:
            raise DocumentValidationError(model_name, field_errors(e))
        return instance.model_dump(mode="json")


def field_errors(exc: ValidationError) -> dict[str, str]:
    """Flatten pydantic errors to {dotted.path: message}; first message per path wins."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        path = ".".join(str(loc) for loc in err["loc"]) or "document"
        errors.setdefault(path, err["msg"])
    return errors


def scalar_kind(annotation: Any) -> str | None:
    origin = get_origin(annotation)
    if origin is Annotated:
        return scalar_kind(get_args(annotation)[0])
    if origin in (Union, types.UnionType):
        kinds = {
            scalar_kind(arg) for arg in get_args(annotation)
            if arg is not type(None)
        }
        return kinds.pop() if len(kinds) == 1 else None
    if origin is Literal:
        values = get_args(annotation)
        if all(isinstance(v, bool) for v in values):
            return BOOLEAN
        if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
            return NUMBER
        if all(isinstance(v, str) for v in values):
            return STRING
        return None
    if not isinstance(annotation, type):
        return None
    if issubclass(annotation, bool):
        return BOOLEAN
    if issubclass(annotation, Enum):
        return STRING if issubclass(annotation, str) else None
    if issubclass(annotation, (int, float)):
        return NUMBER
    if issubclass(annotation, str):
        return STRING
    return None
