"""Document Schemas — shape and validation rules for every catalog record.

Invariants:
    - Schemas validate at the persistence boundary (every create/save/update)
    - Domain enums from core/ used for enumerated fields

Design Decisions:
    - Separate from models: schemas are the record contract, models bind them
      to collections
"""
