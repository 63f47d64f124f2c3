"""Query builder — filters, sorts and pagination for repository reads.

A ``Query`` describes *what* to fetch; executing it is up to a repository
implementation (see ``tagstore.repository.sqlite``).

    query = (
        Query()
        .set_filter(PropertyFilter("tag_id", FilterOperator.EQUAL, tag_id))
        .add_sort("article_id", SortDirection.DESCENDING)
        .set_current_page_num(2)
        .set_page_size(10)
        .set_page_count(True)
    )
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from tagstore.core.exceptions import ValidationError


class FilterOperator(str, Enum):
    EQUAL = "="
    NOT_EQUAL = "!="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    IN = "IN"


class CompositeFilterOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class SortDirection(str, Enum):
    ASCENDING = "ASC"
    DESCENDING = "DESC"


class PropertyFilter:
    """Compare one named field against a value."""

    def __init__(self, key: str, operator: FilterOperator, value: Any) -> None:
        if not key:
            raise ValidationError("Filter key must not be empty")
        if operator is FilterOperator.IN:
            if not isinstance(value, (list, tuple, set)) or not value:
                raise ValidationError(f"IN filter on '{key}' needs a non-empty collection")
            value = list(value)
        self.key = key
        self.operator = operator
        self.value = value

    def keys(self) -> list[str]:
        return [self.key]

    def __repr__(self) -> str:
        return f"PropertyFilter({self.key!r}, {self.operator.name}, {self.value!r})"


class CompositeFilter:
    """Combine subfilters with AND / OR."""

    def __init__(self, operator: CompositeFilterOperator, filters: list["Filter"]) -> None:
        if not filters:
            raise ValidationError("Composite filter needs at least one subfilter")
        self.operator = operator
        self.filters = list(filters)

    def keys(self) -> list[str]:
        return [k for f in self.filters for k in f.keys()]

    def __repr__(self) -> str:
        return f"CompositeFilter({self.operator.name}, {self.filters!r})"


Filter = Union[PropertyFilter, CompositeFilter]


class Query:
    """Fluent description of a repository read."""

    def __init__(self) -> None:
        self.filter: Filter | None = None
        self.sorts: list[tuple[str, SortDirection]] = []
        self.projection: list[str] = []
        self.current_page_num = 1
        self.page_size: int | None = None
        self.page_count = False

    def set_filter(self, flt: Filter) -> "Query":
        self.filter = flt
        return self

    def add_sort(self, key: str, direction: SortDirection = SortDirection.ASCENDING) -> "Query":
        if not key:
            raise ValidationError("Sort key must not be empty")
        self.sorts.append((key, direction))
        return self

    def set_projection(self, *keys: str) -> "Query":
        """Restrict the returned columns (``id`` is always included)."""
        self.projection = list(keys)
        return self

    def set_current_page_num(self, page_num: int) -> "Query":
        if page_num < 1:
            raise ValidationError(f"Page number must be >= 1, got {page_num}")
        self.current_page_num = page_num
        return self

    def set_page_size(self, page_size: int | None) -> "Query":
        """Set rows per page; ``None`` fetches every match in a single page."""
        if page_size is not None and page_size < 1:
            raise ValidationError(f"Page size must be >= 1, got {page_size}")
        self.page_size = page_size
        return self

    def set_page_count(self, enabled: bool = True) -> "Query":
        """Ask the repository to compute total record and page counts."""
        self.page_count = enabled
        return self

    @property
    def is_paged(self) -> bool:
        return self.page_size is not None

    def referenced_keys(self) -> list[str]:
        keys = [k for k, _ in self.sorts] + list(self.projection)
        if self.filter is not None:
            keys.extend(self.filter.keys())
        return keys

    def __repr__(self) -> str:
        return (
            f"Query(filter={self.filter!r}, sorts={self.sorts!r}, "
            f"page={self.current_page_num}, page_size={self.page_size}, page_count={self.page_count})"
        )
