"""API Layer — FastAPI routes, middleware and error handlers.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Route handlers never build error responses; they raise and the
      handlers in error_handlers.py translate

Design Decisions:
    - Thin routes call the document mapper directly: there is no business
      logic beyond existence checks between HTTP and the models
"""
