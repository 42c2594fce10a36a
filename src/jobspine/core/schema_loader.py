"""Create the job tables from the ``.sql`` files shipped in ``schema/``.

Files run in name order (``01_jobs.sql``, ``02_...``) and every statement
is ``CREATE ... IF NOT EXISTS``, so a worker may apply the schema on each
start. Statements go through ``conn.execute`` one at a time because the
DB-API has no portable ``executescript``.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from jobspine.core.protocols import Connection

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent / "schema"


def _split_sql(sql: str) -> list[str]:
    """Break a script on trailing semicolons, dropping ``--`` comment lines."""
    lines = [
        line
        for line in sql.splitlines()
        if line.strip() and not line.strip().startswith("--")
    ]
    statements: list[str] = []
    pending: list[str] = []
    for line in lines:
        pending.append(line)
        if line.rstrip().endswith(";"):
            statements.append("\n".join(pending).strip())
            pending = []
    if pending:
        statements.append("\n".join(pending).strip())
    return [s for s in statements if s.strip(" ;")]


def get_schema_files(schema_dir: Path | str | None = None) -> list[Path]:
    directory = Path(schema_dir or SCHEMA_DIR)
    return sorted(directory.glob("*.sql")) if directory.is_dir() else []


def apply_schema(conn: Connection, schema_dir: Path | str | None = None) -> list[str]:
    """Run every schema file against ``conn`` and commit.

    Returns the names of the files applied.
    """
    applied: list[str] = []
    for path in get_schema_files(schema_dir):
        statements = _split_sql(path.read_text(encoding="utf-8"))
        for statement in statements:
            conn.execute(statement)
        logger.debug("Applied %s (%d statements)", path.name, len(statements))
        applied.append(path.name)
    conn.commit()
    return applied


def create_test_db(schema_dir: Path | str | None = None) -> sqlite3.Connection:
    """An in-memory SQLite job store with ``sqlite3.Row`` rows."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    apply_schema(conn, schema_dir)
    return conn


__all__ = ["SCHEMA_DIR", "apply_schema", "create_test_db", "get_schema_files"]
