"""Repository protocol — the read contract stores are written against."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from tagstore.repository.query import Query


class Pagination(BaseModel):
    """Totals for a paged read. Zero when page counting wasn't requested."""

    page_count: int = 0
    record_count: int = 0


class QueryResult(BaseModel):
    """Raw rows returned by ``Repository.get``."""

    results: list[dict[str, Any]] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


@runtime_checkable
class Repository(Protocol):
    """Protocol that query backends must implement."""

    name: str

    def get(self, query: Query) -> QueryResult:
        """Execute the query and return matching rows.

        Raises RepositoryError when execution fails.
        """
        ...
