"""
storelink command-line tool.

Checks the configured SQL and Redis backends from the environment (or a
.env file) and prints dialect fragments for the configured SQL backend.

Examples:

    storelink sql-ping --env-file .env.local
    storelink sql-fragment datetime --delta=-3600
    storelink redis-ping --verbose
"""

import json
import logging
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import load_settings
from .errors import RedisError, SQLError
from .kv import RedisConn
from .sql import SQL

app = typer.Typer(help="Driver-agnostic SQL and Redis connection checks")
console = Console()


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def fail(message: str) -> None:
    """Print an error in red and exit with status 1."""
    console.print(f"[bold red]✗ {escape(message)}[/bold red]")
    raise typer.Exit(code=1)


def load_or_fail(env_file: Optional[str]):
    try:
        return load_settings(env_file)
    except ValueError as e:
        fail(str(e))


ENV_FILE_OPTION = typer.Option(
    None, "--env-file", "-e", help="Path to a .env file (default: ./.env)"
)
VERBOSE_OPTION = typer.Option(
    False, "--verbose", "-v", help="Show library log output"
)


@app.command("sql-ping")
def sql_ping(
    env_file: Optional[str] = ENV_FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Open the configured SQL backend and print its server time.
    """
    setup_logging(verbose)
    sql_settings, _ = load_or_fail(env_file)
    if verbose:
        console.print(f"[dim]{sql_settings}[/dim]")

    try:
        with SQL(sql_settings.to_params()) as sql:
            table = Table(title="SQL connection", box=box.ROUNDED)
            table.add_column("Field", style="cyan")
            table.add_column("Value", style="green")
            table.add_row("Backend", sql.get_dbtype())
            table.add_row("Parameters", json.dumps(sql.get_safe_params()))
            table.add_row("Server time", str(sql.time()))
            console.print(table)
    except SQLError as e:
        fail(f"{e.code.name}: {e.message}")

    console.print("[bold green]✓ SQL connection OK[/bold green]")


@app.command("sql-fragment")
def sql_fragment(
    part: str = typer.Argument(..., help="engine, index or datetime"),
    delta: int = typer.Option(0, "--delta", "-d", help="Seconds from now, for datetime"),
    env_file: Optional[str] = ENV_FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Print the dialect fragment for the configured SQL backend.
    """
    setup_logging(verbose)
    sql_settings, _ = load_or_fail(env_file)

    try:
        with SQL(sql_settings.to_params()) as sql:
            fragment = sql.stmt_fragment(part, {"delta": delta})
    except SQLError as e:
        fail(f"{e.code.name}: {e.message}")

    console.print(fragment, markup=False, highlight=False)


@app.command("redis-ping")
def redis_ping(
    env_file: Optional[str] = ENV_FILE_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Open the configured Redis backend and print its server time.
    """
    setup_logging(verbose)
    _, redis_settings = load_or_fail(env_file)
    if verbose:
        console.print(f"[dim]{redis_settings}[/dim]")

    try:
        with RedisConn(redis_settings.to_params()) as kv:
            table = Table(title="Redis connection", box=box.ROUNDED)
            table.add_column("Field", style="cyan")
            table.add_column("Value", style="green")
            table.add_row("Driver", kv.get_driver())
            table.add_row("Parameters", json.dumps(kv.get_safe_params()))
            table.add_row("Server time", f"{kv.time(with_mcs=True):.6f}")
            console.print(table)
    except RedisError as e:
        fail(f"{e.code.name}: {e.message}")

    console.print("[bold green]✓ Redis connection OK[/bold green]")


if __name__ == "__main__":
    app()
