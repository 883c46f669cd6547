"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - DocumentId is the canonical 32-char lowercase hex form of a UUID
    - All valid enumerated states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

DocumentId = NewType("DocumentId", str)     # uuid4().hex
CollectionName = NewType("CollectionName", str)


# ─── Document Metadata ──────────────────────────────────────────

# Keys every stored document carries besides its schema fields
METADATA_FIELDS = ("id", "created_at", "updated_at")


# ─── Enums ───────────────────────────────────────────────────────

class Genre(str, Enum):
    """Catalog genres a Book may belong to."""
    FICTION = "fiction"
    NON_FICTION = "non_fiction"
    SCIENCE_FICTION = "science_fiction"
    FANTASY = "fantasy"
    MYSTERY = "mystery"
    BIOGRAPHY = "biography"
    HISTORY = "history"
    POETRY = "poetry"
    REFERENCE = "reference"


class EditionFormat(str, Enum):
    """Physical or digital format of a published edition."""
    HARDCOVER = "hardcover"
    PAPERBACK = "paperback"
    EBOOK = "ebook"
    AUDIOBOOK = "audiobook"
