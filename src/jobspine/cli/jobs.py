"""
CLI: ``jobspine jobs`` — inspect, cancel and run job rows.
"""

from __future__ import annotations

import importlib

import typer

from jobspine.cli.utils import console, exit_with_error, get_connection, output_item, output_table
from jobspine.core.errors import JobError
from jobspine.repositories import JobRepository

app = typer.Typer(no_args_is_help=True)

_LINEAGE_COLUMNS = [
    "job_id",
    "previous_job_id",
    "run_time",
    "status_id",
    "current_retry_count",
    "current_recurrence_count",
    "run_by_instance_id",
    "job_result",
]


@app.command("show")
def show_job(
    job_id: str = typer.Argument(..., help="Job ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one job row."""
    conn = get_connection(database)
    try:
        row = JobRepository(conn).fetch_by_id(job_id)
    finally:
        conn.close()
    if row is None:
        exit_with_error(f"Job [{job_id}] not found")
    output_item(row, as_json=json_out, title=f"Job: {job_id}")


@app.command()
def lineage(
    job_id: str = typer.Argument(..., help="Any job ID in the lineage"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List every row sharing the job's lineage root, oldest first."""
    conn = get_connection(database)
    try:
        rows = JobRepository(conn).list_lineage(job_id)
    finally:
        conn.close()
    output_table(rows, columns=_LINEAGE_COLUMNS, as_json=json_out, title=f"Lineage of {job_id}")


@app.command()
def cancel(
    job_id: str = typer.Argument(..., help="Job ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Cancel a pending job that has not started."""
    conn = get_connection(database)
    try:
        cancelled = JobRepository(conn).cancel(job_id)
    finally:
        conn.close()
    if not cancelled:
        exit_with_error(f"Job [{job_id}] is not pending or has already started")
    console.print(f"[green]✓[/green] Cancelled {job_id}")


@app.command()
def run(
    job_id: str = typer.Argument(..., help="Job ID"),
    accept: bool = typer.Option(False, "--accept", help="Take ownership of an unowned row first"),
    modules: list[str] = typer.Option(
        [], "--module", "-m", help="Module registering service handlers (repeatable)"
    ),
    instance_id: str | None = typer.Option(None, "--instance-id", help="Override JOBSPINE_INSTANCE_ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run one job through claim, initialize, execute and finish/fail."""
    from jobspine.core.settings import get_settings
    from jobspine.execution import JobLifecycleController, RegistryExecutor, run_job
    from jobspine.logging import configure_logging

    settings = get_settings()
    configure_logging(level=settings.log_level, format=settings.log_format)

    for module in modules:
        importlib.import_module(module)

    owner = instance_id or settings.instance_id
    conn = get_connection(database)
    try:
        if accept and not JobRepository(conn).accept(job_id, owner):
            console.print(f"[yellow]![/yellow] Job {job_id} was not accepted (already owned or not pending)")
        controller = JobLifecycleController.from_connection(
            job_id, conn, instance_id=owner, settings=settings
        )
        outcome = run_job(controller, RegistryExecutor())
    except JobError as e:
        exit_with_error(e)
    finally:
        conn.close()

    output_item(outcome, as_json=json_out, title=f"Outcome: {job_id}")
