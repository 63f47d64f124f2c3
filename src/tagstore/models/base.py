"""Base model for tagstore records."""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class TagStoreModel(BaseModel):
    """Base for all tagstore Pydantic models. Records are immutable once built."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)

    def to_row(self) -> dict[str, Any]:
        """Convert model to a flat dict suitable for DB insertion."""
        return self.model_dump()

    @classmethod
    def from_row(cls, row: Any) -> "TagStoreModel":
        """Create model from a sqlite3.Row or dict, ignoring extra columns."""
        if hasattr(row, "keys"):
            data = {k: row[k] for k in row.keys()}
        else:
            data = dict(row)
        return cls(**{k: v for k, v in data.items() if k in cls.model_fields})
