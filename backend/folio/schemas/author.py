"""Author Schema — a writer whose books are catalogued.

Invariants:
    - name: 1-120 chars after stripping, required
    - born / died: optional years, never in the future, died >= born
    - website: optional, must be an http(s) URL
"""

from datetime import date
from typing import Annotated

from pydantic import Field, StringConstraints, field_validator, model_validator

from folio.odm import DocumentSchema


class AuthorSchema(DocumentSchema):
    """Author record."""
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]
    born: int | None = Field(None, ge=0)
    died: int | None = Field(None, ge=0)
    nationality: str | None = Field(None, max_length=80)
    website: str | None = Field(None, max_length=500)

    @field_validator("born", "died")
    @classmethod
    def not_in_future(cls, v: int | None) -> int | None:
        if v is not None and v > date.today().year:
            raise ValueError("year cannot be in the future")
        return v

    @field_validator("website")
    @classmethod
    def check_website(cls, v: str | None) -> str | None:
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("website must start with http:// or https://")
        return v

    @model_validator(mode="after")
    def check_lifespan(self):
        if self.born is not None and self.died is not None and self.died < self.born:
            raise ValueError("died cannot be earlier than born")
        return self
