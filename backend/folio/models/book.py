"""Book Model — BookSchema bound to the "books" collection.

Invariants:
    - Book.author references Author; Author is registered before any populate()
"""

import folio.models.author  # noqa: F401
from folio.odm import register_model
from folio.schemas.book import BookSchema

Book = register_model("Book", BookSchema)
