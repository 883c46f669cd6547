"""Infrastructure Layer — database connection and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from odm/ or api/
    - All driver exceptions mapped to core error types before leaving this layer
"""
