"""Route Modules — one file per resource/concern.

Invariants:
    - Each module defines its own APIRouter with a prefix relative to its mount point
    - Routes never contain business logic beyond existence checks

Design Decisions:
    - Explicit registration in api/router.py over auto-discovery
"""
