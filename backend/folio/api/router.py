"""API Router — mounts every resource router under the versioned prefix.

Invariants:
    - Resource routers declare paths relative to their own prefix; the final
      path is api_prefix + resource prefix + route path
"""

from fastapi import APIRouter

from folio.api.routes import authors, books, health, shelves


def build_api_router(prefix: str) -> APIRouter:
    api = APIRouter(prefix=prefix)
    api.include_router(health.router)
    api.include_router(authors.router)
    api.include_router(books.router)
    api.include_router(shelves.router)
    return api
