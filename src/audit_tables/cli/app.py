"""
Root Typer application for the audit-tables CLI.
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from audit_tables.cli.utils import (
    close_quietly,
    console,
    get_connection,
    handle_errors,
    load_settings,
    print_statements,
    print_status,
)

app = Typer(
    name="audit-tables",
    help="audit-tables — record every row version of a MySQL table via triggers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from audit_tables import __version__

        typer.echo(f"audit-tables {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """audit-tables CLI — plan, apply and inspect audit tables and triggers."""


# ── Shared options ───────────────────────────────────────────────────────

_DATABASE = typer.Option(None, "--database", "-d", help="mysql://user:pw@host:port/db")
_AUDIT_TABLE = typer.Option(None, "--audit-table", "-a", help="Audit table name (default audit_TABLE)")
_STRICT_TABLE = typer.Option(None, "--strict-table/--no-strict-table", help="Fail if the audit table exists")
_STRICT_TRIGGERS = typer.Option(None, "--strict-triggers/--no-strict-triggers", help="Fail if an audit trigger exists")
_LOG_LEVEL = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR")


def _pick(flag: bool | None, default: bool) -> bool:
    return default if flag is None else flag


@app.command()
def plan(
    table: str = typer.Argument(..., help="Table to audit"),
    database: str | None = _DATABASE,
    audit_table: str | None = _AUDIT_TABLE,
    strict_table: bool | None = _STRICT_TABLE,
    strict_triggers: bool | None = _STRICT_TRIGGERS,
    log_level: str | None = _LOG_LEVEL,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Print the statements needed to audit TABLE without running them."""
    from audit_tables.reconciler import generate_statements

    settings = load_settings(log_level)
    with handle_errors():
        conn = get_connection(database, settings)
        try:
            statements = generate_statements(
                table,
                conn,
                audit_table,
                strict_if_audit_table_exists=_pick(strict_table, settings.strict_if_audit_table_exists),
                strict_if_triggers_exist=_pick(strict_triggers, settings.strict_if_triggers_exist),
            )
        finally:
            close_quietly(conn)
    print_statements(statements, as_json=json_out)


@app.command()
def apply(
    table: str = typer.Argument(..., help="Table to audit"),
    database: str | None = _DATABASE,
    audit_table: str | None = _AUDIT_TABLE,
    strict_table: bool | None = _STRICT_TABLE,
    strict_triggers: bool | None = _STRICT_TRIGGERS,
    log_file: Path | None = typer.Option(None, "--log-file", help="Append executed SQL to this file"),
    log_level: str | None = _LOG_LEVEL,
) -> None:
    """Create the audit table and triggers for TABLE."""
    from audit_tables.executor import execute

    settings = load_settings(log_level)
    with handle_errors():
        conn = get_connection(database, settings)
        try:
            report = execute(
                table,
                conn,
                audit_table,
                log_file=log_file or settings.execution_log,
                strict_if_audit_table_exists=_pick(strict_table, settings.strict_if_audit_table_exists),
                strict_if_triggers_exist=_pick(strict_triggers, settings.strict_if_triggers_exist),
            )
        finally:
            close_quietly(conn)
    if report.count:
        console.print(f"[green]Executed {report.count} statement(s)[/green] in {report.elapsed_ms:.0f} ms")
    else:
        console.print("[dim]Nothing to do: audit table and triggers already exist.[/dim]")


@app.command()
def status(
    table: str = typer.Argument(..., help="Audited table"),
    database: str | None = _DATABASE,
    audit_table: str | None = _AUDIT_TABLE,
    log_level: str | None = _LOG_LEVEL,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show which of the audit table and triggers exist for TABLE."""
    from audit_tables.naming import AuditTarget
    from audit_tables.prober import detect_fetch_style, probe_status

    settings = load_settings(log_level)
    target = AuditTarget.for_table(table, audit_table)
    with handle_errors():
        conn = get_connection(database, settings)
        try:
            result = probe_status(conn, target, detect_fetch_style(conn), require_base_table=False)
        finally:
            close_quietly(conn)
    print_status(result, as_json=json_out, title=f"Audit status: {table}")


if __name__ == "__main__":
    app()
