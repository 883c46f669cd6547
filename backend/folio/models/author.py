"""Author Model — AuthorSchema bound to the "authors" collection."""

from folio.odm import register_model
from folio.schemas.author import AuthorSchema

Author = register_model("Author", AuthorSchema)
