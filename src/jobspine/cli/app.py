"""
``jobspine`` command: ``db`` for the store, ``jobs`` for rows.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

import typer

from jobspine.cli.db import app as db_app
from jobspine.cli.jobs import app as jobs_app

app = typer.Typer(
    name="jobspine",
    help="Run and inspect persisted, recurring, retryable jobs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(db_app, name="db", help="Create the job store.")
app.add_typer(jobs_app, name="jobs", help="Inspect, cancel and run jobs.")


def _installed_version() -> str:
    try:
        return version("jobspine")
    except PackageNotFoundError:
        from jobspine import __version__

        return __version__


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"jobspine {_installed_version()}")
        raise typer.Exit()


@app.callback()
def main(
    show_version: bool = typer.Option(
        False, "--version", "-V", help="Show version and exit.", callback=_print_version, is_eager=True
    ),
) -> None:
    """Manage the job store and run jobs."""
