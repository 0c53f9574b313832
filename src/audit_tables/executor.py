"""
Executor — run generated statements in order and stop at the first error.

DDL on the target database is not transactional, so no rollback is tried:
statements that succeeded before a failure stay applied. Re-running is safe
because planning skips whatever already exists.

Optional execution log (plain text, append-only)::

    Executing SQL:
    CREATE TABLE IF NOT EXISTS `audit_users` LIKE `users`
    Executing SQL:
    ALTER TABLE `audit_users` ...
    Error in MySQL Query:
    Error Number: 1060
    Error Message: Duplicate column name 'audit_id'
    SQL Statement:
        ALTER TABLE `audit_users` ...
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

from audit_tables.core.errors import InvalidConfigError, StatementExecutionError
from audit_tables.core.logging import get_logger
from audit_tables.prober import require_query_capability
from audit_tables.reconciler import generate_statements

logger = get_logger(__name__)


@dataclass
class ExecutionReport:
    """What an execution run did."""

    executed: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    log_file: Path | None = None

    @property
    def count(self) -> int:
        return len(self.executed)


def resolve_log_path(log_file: str | Path) -> Path:
    """Validate the execution log path; parent-directory hops are rejected."""
    path = Path(str(log_file).replace("\\", "/"))
    if ".." in path.parts:
        raise InvalidConfigError("log_file", str(log_file), f"Refusing log path with '..': {log_file}")
    return path


@contextmanager
def _open_log(log_file: str | Path | None) -> Iterator[IO[str] | None]:
    if log_file is None or str(log_file) == "":
        yield None
        return
    path = resolve_log_path(log_file)
    with path.open("a", encoding="utf-8") as handle:
        yield handle


def _error_from_connection(sql: str, conn: Any, result: Any) -> StatementExecutionError | None:
    """Errors reported on the connection instead of raised.

    Some wrappers record ``errno``/``error`` on the connection, others return
    ``False`` and expose ``error_info()`` as ``(sqlstate, code, message)``.
    """
    errno = getattr(conn, "errno", None)
    if errno:
        return StatementExecutionError(sql, error_code=errno, db_message=getattr(conn, "error", None))
    error_info = getattr(conn, "error_info", None)
    if result is False and callable(error_info):
        sql_state, code, message = error_info()
        return StatementExecutionError(sql, error_code=code, sql_state=sql_state, db_message=message)
    return None


def execute_one(conn: Any, sql: str, log: IO[str] | None = None) -> Any:
    """Run one statement, writing it (and any error block) to ``log``."""
    if log is not None:
        log.write(f"Executing SQL:\n{sql}\n")
    try:
        result = conn.query(sql)
    except Exception as exc:
        error = StatementExecutionError.from_driver_error(sql, exc)
    else:
        error = _error_from_connection(sql, conn, result)
        if error is None:
            return result

    if log is not None:
        log.write(error.format_details() + "\n")
    logger.error("statement_failed", error_code=error.error_code, message=error.db_message)
    raise error


def execute_statements(
    conn: Any,
    statements: Iterable[str],
    log_file: str | Path | None = None,
) -> ExecutionReport:
    """Run ``statements`` in order against ``conn``.

    Raises:
        StatementExecutionError: on the first statement the database rejects.
        InvalidConfigError: if ``log_file`` is not an acceptable path.
    """
    require_query_capability(conn)
    report = ExecutionReport(log_file=resolve_log_path(log_file) if log_file else None)
    start = time.perf_counter()
    with _open_log(log_file) as log:
        for sql in statements:
            execute_one(conn, sql, log)
            report.executed.append(sql)
            logger.debug("statement_executed", index=report.count, statement=sql)
    report.elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("statements_executed", count=report.count, elapsed_ms=round(report.elapsed_ms, 2))
    return report


def execute(
    table: str,
    conn: Any,
    audit_table: str | None = None,
    *,
    log_file: str | Path | None = None,
    strict_if_audit_table_exists: bool = False,
    strict_if_triggers_exist: bool = False,
) -> ExecutionReport:
    """Generate the statements for ``table`` and run them."""
    statements = generate_statements(
        table,
        conn,
        audit_table,
        strict_if_audit_table_exists=strict_if_audit_table_exists,
        strict_if_triggers_exist=strict_if_triggers_exist,
    )
    return execute_statements(conn, statements, log_file=log_file)


__all__ = [
    "ExecutionReport",
    "execute",
    "execute_one",
    "execute_statements",
    "resolve_log_path",
]
