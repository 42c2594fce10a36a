"""
CLI utility helpers — output formatting and connection management.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from jobspine.core.errors import JobError
from jobspine.core.settings import get_settings

console = Console()
err_console = Console(stderr=True)


# ── Connection helper ────────────────────────────────────────────────────


def get_connection(database: str | None = None) -> sqlite3.Connection:
    """Open the job store.  Defaults to ``JobSettings.database``."""
    db_path = Path(database) if database else get_settings().database
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert a dataclass / dict to a plain dict of printable values."""
    data = asdict(obj) if hasattr(obj, "__dataclass_fields__") else dict(obj)
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}


def output_item(obj: Any, *, as_json: bool = False, title: str = "") -> None:
    """Render a single record."""
    data = _to_dict(obj)
    if as_json:
        console.print_json(json.dumps(data, default=str))
        return
    if title:
        console.print(f"[bold]{escape(title)}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {escape(str(v))}", soft_wrap=True)


def output_table(items: list, *, columns: list[str], as_json: bool = False, title: str = "") -> None:
    """Render records as a Rich table restricted to ``columns``."""
    rows = [_to_dict(i) for i in items]
    if as_json:
        console.print_json(json.dumps(rows, default=str))
        return
    if not rows:
        console.print("[dim]No items.[/dim]")
        return

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*("" if row.get(c) is None else escape(str(row.get(c))) for c in columns))
    console.print(table)


def exit_with_error(error: JobError | str) -> None:
    """Print an error and exit with status 1."""
    if isinstance(error, JobError):
        err_console.print(
            f"[bold red]Error[/bold red] ({error.category.value}): {escape(error.message)}", soft_wrap=True
        )
    else:
        err_console.print(f"[bold red]Error[/bold red]: {escape(error)}", soft_wrap=True)
    raise typer.Exit(code=1)
