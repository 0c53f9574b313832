"""
State prober — what already exists in the database.

Given a connection exposing ``query(sql)``, the prober:

1. checks the connection has ``query`` at all,
2. issues ``SELECT 1`` once to learn how rows are pulled from a result
   (``fetchone()`` or ``next()``),
3. lists tables and triggers and records which of the base table, the audit
   table and the three audit triggers are present,
4. fetches the base table's ``SHOW CREATE TABLE`` text for the parser.

Driver errors raised by any probe query surface as
:class:`StatementExecutionError`.

A missing audit table or trigger is normal on a first run. A missing base
table is not: auditing cannot proceed.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from audit_tables.core.dialect import Dialect, get_dialect
from audit_tables.core.errors import (
    BaseTableMissingError,
    ConnectionCapabilityError,
    StatementExecutionError,
    UnsupportedCursorError,
)
from audit_tables.core.logging import get_logger
from audit_tables.core.protocols import FetchOneCursor
from audit_tables.naming import AuditEvent, AuditTarget

logger = get_logger(__name__)


class FetchStyle(str, Enum):
    """How rows are pulled from a query result."""

    FETCHONE = "fetchone"    # PEP 249 cursor
    ITERATOR = "iterator"    # next(result)


@dataclass(frozen=True)
class AuditStatus:
    """Snapshot of the audit-relevant objects present in the database."""

    base_table_exists: bool
    audit_table_exists: bool
    insert_trigger_exists: bool
    update_trigger_exists: bool
    delete_trigger_exists: bool

    def trigger_exists(self, event: AuditEvent) -> bool:
        return {
            AuditEvent.INSERT: self.insert_trigger_exists,
            AuditEvent.UPDATE: self.update_trigger_exists,
            AuditEvent.DELETE: self.delete_trigger_exists,
        }[event]

    @property
    def all_present(self) -> bool:
        return self.audit_table_exists and all(self.trigger_exists(e) for e in AuditEvent)


def require_query_capability(conn: Any) -> None:
    """Raise :class:`ConnectionCapabilityError` unless ``conn.query`` is callable."""
    if not callable(getattr(conn, "query", None)):
        raise ConnectionCapabilityError(
            f"Connection of type {type(conn).__name__} does not have a public method named query"
        )


def run_query(conn: Any, sql: str) -> Any:
    """``conn.query(sql)`` with driver failures raised as :class:`StatementExecutionError`."""
    try:
        return conn.query(sql)
    except Exception as exc:
        logger.error("probe_query_failed", statement=sql, error=str(exc))
        raise StatementExecutionError.from_driver_error(sql, exc) from exc


def detect_fetch_style(conn: Any) -> FetchStyle:
    """Run a trivial query and inspect which row-retrieval style its result supports."""
    require_query_capability(conn)
    result = run_query(conn, "SELECT 1")
    if isinstance(result, FetchOneCursor):
        style = FetchStyle.FETCHONE
    elif callable(getattr(result, "__next__", None)):
        style = FetchStyle.ITERATOR
    else:
        raise UnsupportedCursorError(type(result).__name__)
    # Drain the probe result so the connection is ready for the next query.
    for _ in iter_rows(result, style):
        pass
    logger.debug("fetch_style_detected", style=style.value)
    return style


def iter_rows(result: Any, style: FetchStyle) -> Iterator[Sequence[Any]]:
    """Yield every row of ``result`` as an ordered field list."""
    while True:
        row = result.fetchone() if style is FetchStyle.FETCHONE else next(result, None)
        if not row:
            return
        if isinstance(row, Mapping):
            # Dict cursors keep column order.
            row = list(row.values())
        yield row


def first_column(conn: Any, sql: str, style: FetchStyle) -> list[str]:
    """First field of every row returned by ``sql``."""
    return [row[0] for row in iter_rows(run_query(conn, sql), style)]


def probe_status(
    conn: Any,
    target: AuditTarget,
    style: FetchStyle,
    *,
    dialect: Dialect | None = None,
    require_base_table: bool = True,
) -> AuditStatus:
    """List tables and triggers and build the :class:`AuditStatus`.

    Both listings complete before anything is raised, so the status is
    always fully known first.
    """
    d = dialect or get_dialect()
    tables = set(first_column(conn, d.show_tables(), style))
    triggers = set(first_column(conn, d.show_triggers(), style))

    status = AuditStatus(
        base_table_exists=target.table in tables,
        audit_table_exists=target.audit_table in tables,
        insert_trigger_exists=target.trigger(AuditEvent.INSERT) in triggers,
        update_trigger_exists=target.trigger(AuditEvent.UPDATE) in triggers,
        delete_trigger_exists=target.trigger(AuditEvent.DELETE) in triggers,
    )
    logger.info(
        "audit_status_probed",
        table=target.table,
        audit_table=target.audit_table,
        base_table_exists=status.base_table_exists,
        audit_table_exists=status.audit_table_exists,
        triggers={e.value: status.trigger_exists(e) for e in AuditEvent},
    )
    if require_base_table and not status.base_table_exists:
        raise BaseTableMissingError(target.table)
    return status


def fetch_table_definition(
    conn: Any,
    table: str,
    style: FetchStyle,
    *,
    dialect: Dialect | None = None,
) -> str:
    """The ``CREATE TABLE`` text the server reports for ``table``."""
    d = dialect or get_dialect()
    rows = iter_rows(run_query(conn, d.show_create_table(table)), style)
    row = next(rows, None)
    if row is None or len(row) < 2:
        raise BaseTableMissingError(table)
    # Exhaust the result set.
    for _ in rows:
        pass
    return row[1]


__all__ = [
    "AuditStatus",
    "FetchStyle",
    "detect_fetch_style",
    "fetch_table_definition",
    "first_column",
    "iter_rows",
    "probe_status",
    "require_query_capability",
    "run_query",
]
