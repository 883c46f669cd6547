"""Core Layer — error hierarchy and domain vocabulary, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from odm/, api/, infrastructure/, or db/
"""
