"""Shared plumbing for the job, recurrence and runtime-data repositories.

Subclasses write their SQL against ``self.ph(n)`` markers and hand it to
the helpers below, which return plain dicts regardless of whether the
driver yields ``sqlite3.Row`` objects or DB-API tuples.
"""

from __future__ import annotations

from typing import Any

from jobspine.core.dialect import SQLITE, Dialect
from jobspine.core.protocols import Connection


def _rows_as_dicts(cursor: Any, rows: list[Any]) -> list[dict[str, Any]]:
    if not rows:
        return []
    if hasattr(rows[0], "keys"):
        return [dict(row) for row in rows]
    names = [column[0] for column in cursor.description]
    return [dict(zip(names, row, strict=True)) for row in rows]


class BaseRepository:
    """A connection plus the dialect its SQL is written in.

    The repository never opens or closes ``conn``; transaction boundaries
    are explicit via :meth:`commit` and :meth:`rollback`.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self.conn = conn
        self.dialect = dialect or SQLITE

    def ph(self, count: int) -> str:
        return self.dialect.placeholders(count)

    def execute(self, sql: str, params: tuple = ()) -> Any:
        return self.conn.execute(sql, params)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        cursor = self.conn.execute(sql, params)
        return _rows_as_dicts(cursor, cursor.fetchall())

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def insert(self, table: str, data: dict[str, Any]) -> Any:
        """INSERT one row whose columns are the keys of ``data``."""
        sql = f"INSERT INTO {table} ({', '.join(data)}) VALUES ({self.ph(len(data))})"
        return self.conn.execute(sql, tuple(data.values()))

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()


__all__ = ["BaseRepository"]
