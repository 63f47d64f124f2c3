"""Generic SQLite-backed repository executing ``Query`` objects against one table."""

from __future__ import annotations

import logging
from typing import Any

from tagstore.core.database import DatabaseConnection
from tagstore.core.exceptions import RepositoryError
from tagstore.models.base import new_id
from tagstore.repository.protocol import Pagination, QueryResult
from tagstore.repository.query import (
    CompositeFilter,
    Filter,
    FilterOperator,
    PropertyFilter,
    Query,
    SortDirection,
)

logger = logging.getLogger(__name__)

SQLITE_MAX_INT = 2**63 - 1


class SqliteRepository:
    """CRUD plus query execution over a single table."""

    def __init__(self, db: DatabaseConnection, name: str) -> None:
        self.db = db
        self.name = name

    # ── Reads ────────────────────────────────────────────────────

    def get(self, query: Query) -> QueryResult:
        """Run a query, returning the selected page and (optionally) totals."""
        self._check_keys(query.referenced_keys())
        where, params = self._where(query.filter)

        if query.projection:
            columns = ", ".join(dict.fromkeys(["id", *query.projection]))
        else:
            columns = "*"
        sql = f"SELECT {columns} FROM {self.name}{where}"

        sorts = list(query.sorts)
        if not sorts and query.is_paged:
            sorts = [("id", SortDirection.DESCENDING)]
        if sorts:
            sql += " ORDER BY " + ", ".join(f"{key} {direction.value}" for key, direction in sorts)

        record_count: int | None = None
        page_params: tuple[Any, ...] = ()
        skip_select = False
        if query.page_size is not None:
            page_size = query.page_size
            offset = (query.current_page_num - 1) * page_size
            record_count = self._count(where, params)
            # Past the last page; the offset may not fit in an SQLite integer
            skip_select = offset >= record_count
            sql += " LIMIT ? OFFSET ?"
            page_params = (page_size if page_size <= SQLITE_MAX_INT else -1, offset)

        rows: list[Any] = []
        if not skip_select:
            logger.debug("%s: %s %r", self.name, sql, params + page_params)
            rows = self.db.fetchall(sql, params + page_params)

        pagination = Pagination()
        if query.page_count:
            if record_count is None:
                record_count = self._count(where, params)
            if query.page_size is not None:
                page_count = -(-record_count // query.page_size)
            else:
                page_count = 1 if record_count else 0
            pagination = Pagination(page_count=page_count, record_count=record_count)

        return QueryResult(results=[dict(r) for r in rows], pagination=pagination)

    def get_by_id(self, record_id: str) -> dict[str, Any] | None:
        row = self.db.fetchone(f"SELECT * FROM {self.name} WHERE id = ?", (record_id,))
        return dict(row) if row is not None else None

    def has(self, record_id: str) -> bool:
        row = self.db.fetchone(f"SELECT 1 FROM {self.name} WHERE id = ?", (record_id,))
        return row is not None

    def count(self, query: Query | None = None) -> int:
        """Count rows, optionally restricted by the query's filter."""
        flt = query.filter if query is not None else None
        if query is not None:
            self._check_keys(query.referenced_keys())
        where, params = self._where(flt)
        return self._count(where, params)

    # ── Writes ───────────────────────────────────────────────────

    def add(self, record: dict[str, Any]) -> str:
        """Insert a record, assigning a new id when it has none. Returns the id."""
        data = dict(record)
        if not data.get("id"):
            data["id"] = new_id()
        self._check_keys(list(data.keys()))
        cols = ", ".join(data.keys())
        placeholders = ", ".join(f":{k}" for k in data.keys())
        self.db.execute(f"INSERT INTO {self.name} ({cols}) VALUES ({placeholders})", data)
        self.db.commit()
        logger.debug("%s: added %s", self.name, data["id"])
        return data["id"]

    def update(self, record_id: str, record: dict[str, Any]) -> None:
        """Overwrite fields of an existing record."""
        data = {k: v for k, v in record.items() if k != "id"}
        if not data:
            return
        self._check_keys(list(data.keys()))
        set_clause = ", ".join(f"{k} = :{k}" for k in data.keys())
        data["_id"] = record_id
        cursor = self.db.execute(f"UPDATE {self.name} SET {set_clause} WHERE id = :_id", data)
        self.db.commit()
        if cursor.rowcount == 0:
            raise RepositoryError(f"{self.name}: no record with id {record_id}")

    def remove(self, record_id: str) -> None:
        """Delete a record by id. Removing a missing id is a no-op."""
        self.db.execute(f"DELETE FROM {self.name} WHERE id = ?", (record_id,))
        self.db.commit()
        logger.debug("%s: removed %s", self.name, record_id)

    # ── SQL helpers ──────────────────────────────────────────────

    def _count(self, where: str, params: tuple[Any, ...]) -> int:
        row = self.db.fetchone(f"SELECT COUNT(*) as cnt FROM {self.name}{where}", params)
        return row["cnt"] if row else 0

    def _where(self, flt: Filter | None) -> tuple[str, tuple[Any, ...]]:
        if flt is None:
            return "", ()
        clause, params = self._compile(flt)
        return f" WHERE {clause}", tuple(params)

    def _compile(self, flt: Filter) -> tuple[str, list[Any]]:
        if isinstance(flt, PropertyFilter):
            if flt.operator is FilterOperator.IN:
                placeholders = ", ".join("?" for _ in flt.value)
                return f"{flt.key} IN ({placeholders})", list(flt.value)
            return f"{flt.key} {flt.operator.value} ?", [flt.value]
        if isinstance(flt, CompositeFilter):
            parts: list[str] = []
            params: list[Any] = []
            for sub in flt.filters:
                clause, sub_params = self._compile(sub)
                parts.append(f"({clause})")
                params.extend(sub_params)
            return f" {flt.operator.value} ".join(parts), params
        raise RepositoryError(f"Unsupported filter: {flt!r}")

    def _check_keys(self, keys: list[str]) -> None:
        columns = set(self._column_names())
        if not columns:
            raise RepositoryError(f"Table not found: {self.name}")
        unknown = [k for k in keys if k not in columns]
        if unknown:
            raise RepositoryError(f"{self.name}: unknown field(s) {', '.join(unknown)}")

    def _column_names(self) -> list[str]:
        cursor = self.db.execute(f"PRAGMA table_info({self.name})")
        return [row["name"] for row in cursor.fetchall()]
