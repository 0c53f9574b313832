"""
CLI utility helpers — settings, connection management and output.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from audit_tables.core.connection import create_connection
from audit_tables.core.errors import AuditError, InvalidConfigError
from audit_tables.core.logging import configure_logging
from audit_tables.core.settings import AuditSettings

console = Console()
err_console = Console(stderr=True)


# ── Settings / connection ────────────────────────────────────────────────


def load_settings(log_level: str | None = None) -> AuditSettings:
    """Load settings and configure logging once per command."""
    settings = AuditSettings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.json_logs)
    return settings


def get_connection(database: str | None, settings: AuditSettings) -> Any:
    """Open a connection from ``--database`` or ``AUDIT_DATABASE_URL``."""
    url = database or settings.database_url
    if not url:
        raise InvalidConfigError(
            "database_url",
            None,
            "No database given. Pass --database or set AUDIT_DATABASE_URL.",
        )
    conn, _info = create_connection(url)
    return conn


@contextmanager
def handle_errors() -> Iterator[None]:
    """Render ``AuditError`` as a one-line message and exit with status 1."""
    try:
        yield
    except AuditError as err:
        err_console.print(f"[bold red]Error[/bold red] ({err.category.value}): {escape(err.message)}")
        raise typer.Exit(code=1) from err


def close_quietly(conn: Any) -> None:
    close = getattr(conn, "close", None)
    if callable(close):
        close()


# ── Output helpers ───────────────────────────────────────────────────────


def print_statements(statements: list[str], *, as_json: bool = False) -> None:
    """Print statements as SQL separated by ``;`` or as a JSON list.

    Highlighting is only applied on a terminal; piped output is the exact
    SQL that ``apply`` runs.
    """
    if as_json:
        console.print_json(json.dumps(statements))
        return
    if not statements:
        console.print("[dim]Nothing to do: audit table and triggers already exist.[/dim]")
        return
    for sql in statements:
        if console.is_terminal:
            console.print(Syntax(sql + ";", "sql", word_wrap=True))
        else:
            console.print(sql + ";", markup=False, highlight=False, emoji=False, soft_wrap=True)
        console.print()


def print_status(status: Any, *, as_json: bool = False, title: str = "") -> None:
    """Render an ``AuditStatus`` as a two-column table."""
    data = asdict(status)
    if as_json:
        console.print_json(json.dumps(data))
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    table.add_column("object")
    table.add_column("exists")
    for key, value in data.items():
        table.add_row(key.removesuffix("_exists"), "[green]yes[/green]" if value else "[red]no[/red]")
    console.print(table)
