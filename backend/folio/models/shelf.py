"""Shelf Model — ShelfSchema bound to the "shelves" collection."""

import folio.models.book  # noqa: F401
from folio.odm import register_model
from folio.schemas.shelf import ShelfSchema

Shelf = register_model("Shelf", ShelfSchema, collection="shelves")
