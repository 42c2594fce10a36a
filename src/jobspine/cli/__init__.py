"""jobspine command-line interface (typer + rich)."""
