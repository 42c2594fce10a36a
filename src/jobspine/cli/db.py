"""
CLI: ``jobspine db`` — database management commands.
"""

from __future__ import annotations

import typer

from jobspine.cli.utils import console, get_connection

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path"),
) -> None:
    """Initialise database schema (create tables)."""
    from jobspine.core.schema_loader import apply_schema

    conn = get_connection(database)
    try:
        applied = apply_schema(conn)
    finally:
        conn.close()
    for name in applied:
        console.print(f"[green]✓[/green] {name}")
