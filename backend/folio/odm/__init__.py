"""Document Mapper — schemas, models, references and lazy queries over the documents table.

Invariants:
    - Validation is pydantic's; this package only binds, stores and resolves
    - All IO goes through the process-wide DatabaseSessionManager

Design Decisions:
    - Public surface re-exported here: route modules import from folio.odm only
"""

from folio.odm.document import Document
from folio.odm.model import Model, get_model, register_model
from folio.odm.query import Query
from folio.odm.reference import Ref
from folio.odm.schema import DocumentSchema, EmbeddedSchema

__all__ = [
    "Document",
    "DocumentSchema",
    "EmbeddedSchema",
    "Model",
    "Query",
    "Ref",
    "get_model",
    "register_model",
]
