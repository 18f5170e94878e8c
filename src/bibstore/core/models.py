"""Domain models for bibliography records."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DOIEntry(BaseModel):
    """
    One bibliographic record as stored in ``doi_entries``.

    Every field is mandatory; partial records are rejected here before
    they reach the store, which enforces the same rule with NOT NULL.
    The derived ``search`` column is deliberately absent: it is computed
    by the database and never supplied by callers.
    """

    model_config = ConfigDict(extra="forbid", from_attributes=True)

    cite_key: str = Field(..., min_length=1, description="Citation key (primary key)")
    bib_type: str = Field(..., description="Entry type, e.g. article or book")
    doi: str = Field(..., description="Digital Object Identifier")
    url: str = Field(..., description="Resolvable location")
    author: str = Field(..., description="Free-text author list")
    title: str = Field(..., description="Title of the work")
    journal: str = Field(..., description="Journal name")
    publisher: str = Field(..., description="Publisher name")
    volume: int = Field(..., description="Volume number")
    number: int = Field(..., description="Issue number")
    month: str = Field(..., description="Publication month")
    year: int = Field(..., description="Publication year")

    def to_row(self) -> dict[str, Any]:
        """Return the twelve base column values for an insert or full update."""
        return self.model_dump()

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> DOIEntry:
        """Build an entry from a result row, ignoring derived columns."""
        return cls.model_validate({name: row[name] for name in cls.model_fields})
