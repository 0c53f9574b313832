"""
Reconciliation — decide which statements a run actually needs.

Flow::

    connection ──► detect_fetch_style ──► probe_status ──► AuditStatus
                                    └──► fetch_table_definition ──► parse ──► TableSchema
    (TableSchema, AuditStatus, policy) ──► plan_statements ──► [sql, ...]

``plan_statements`` is pure. It either raises before producing anything or
returns the complete ordered list: audit-table create and adjust (only when
the audit table is absent), then the insert, delete and update triggers
(each only when absent). Re-running against a fully set-up table yields an
empty list.

Concurrent runs against the same table are not coordinated; two of them can
both see a trigger as absent. Serialize runs per table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from audit_tables.composer import adjust_audit_table_sql, create_audit_table_sql, trigger_sql
from audit_tables.core.dialect import Dialect, get_dialect
from audit_tables.core.errors import (
    AuditTableExistsError,
    BaseTableMissingError,
    TriggerExistsError,
)
from audit_tables.core.logging import LogContext, get_logger
from audit_tables.naming import TRIGGER_ORDER, AuditEvent, AuditTarget
from audit_tables.prober import (
    AuditStatus,
    detect_fetch_style,
    fetch_table_definition,
    probe_status,
    require_query_capability,
)
from audit_tables.schema.model import TableSchema
from audit_tables.schema.parser import DDLParser, parse_create_table

logger = get_logger(__name__)

# Strict-mode trigger checks run in this order; the first hit is reported.
_STRICT_CHECK_ORDER = (AuditEvent.DELETE, AuditEvent.INSERT, AuditEvent.UPDATE)


@dataclass(frozen=True)
class AuditPolicy:
    """Whether pre-existing audit objects are an error or silently skipped."""

    strict_if_audit_table_exists: bool = False
    strict_if_triggers_exist: bool = False


def check_policy(status: AuditStatus, target: AuditTarget, policy: AuditPolicy) -> None:
    """Raise if ``status`` violates ``policy``; return quietly otherwise."""
    if not status.base_table_exists:
        raise BaseTableMissingError(target.table)
    if status.audit_table_exists and policy.strict_if_audit_table_exists:
        raise AuditTableExistsError(target.audit_table)
    if policy.strict_if_triggers_exist:
        for event in _STRICT_CHECK_ORDER:
            if status.trigger_exists(event):
                raise TriggerExistsError(event, target.table, target.trigger(event))


def plan_statements(
    schema: TableSchema,
    status: AuditStatus,
    target: AuditTarget,
    policy: AuditPolicy | None = None,
    *,
    dialect: Dialect | None = None,
) -> list[str]:
    """Ordered statements needed to bring ``target`` to a fully audited state."""
    policy = policy or AuditPolicy()
    check_policy(status, target, policy)

    statements: list[str] = []
    if not status.audit_table_exists:
        statements.append(
            create_audit_table_sql(
                target,
                if_not_exists=not policy.strict_if_audit_table_exists,
                dialect=dialect,
            )
        )
        # ALTERing an already adjusted audit table would be wrong.
        statements.append(adjust_audit_table_sql(schema, target, dialect=dialect))

    for event in TRIGGER_ORDER:
        if not status.trigger_exists(event):
            statements.append(trigger_sql(schema, target, event, dialect=dialect))
    return statements


def generate_statements(
    table: str,
    conn: Any,
    audit_table: str | None = None,
    *,
    strict_if_audit_table_exists: bool = False,
    strict_if_triggers_exist: bool = False,
    parser: DDLParser | None = None,
    dialect: Dialect | None = None,
) -> list[str]:
    """Probe the database behind ``conn`` and return the statements to run.

    Args:
        table: Base table to audit.
        conn: Object with a ``query(sql)`` method.
        audit_table: Audit table name; ``audit_<table>`` by default.
        strict_if_audit_table_exists: Fail if the audit table already exists.
        strict_if_triggers_exist: Fail if any audit trigger already exists.

    Raises:
        ConnectionCapabilityError: ``conn`` cannot run queries or read rows.
        BaseTableMissingError: ``table`` does not exist.
        AuditTableExistsError / TriggerExistsError: strict-mode violations.
    """
    d = dialect or get_dialect()
    target = AuditTarget.for_table(table, audit_table)
    policy = AuditPolicy(
        strict_if_audit_table_exists=strict_if_audit_table_exists,
        strict_if_triggers_exist=strict_if_triggers_exist,
    )

    with LogContext(table=target.table, audit_table=target.audit_table):
        style = detect_fetch_style(conn)
        status = probe_status(conn, target, style, dialect=d)
        check_policy(status, target, policy)

        ddl = fetch_table_definition(conn, target.table, style, dialect=d)
        schema = parse_create_table(ddl, parser)
        statements = plan_statements(schema, status, target, policy, dialect=d)
        logger.info("statements_planned", count=len(statements))
    return statements


class AuditTableCreator:
    """Binds a table, connection and policy for repeated use.

    Example:
        creator = AuditTableCreator("users", conn, strict_if_triggers_exist=True)
        for sql in creator.generate_statements():
            print(sql)
        creator.execute(log_file="/var/log/audit_setup.log")
    """

    def __init__(
        self,
        table: str,
        conn: Any,
        audit_table: str | None = None,
        *,
        strict_if_audit_table_exists: bool = False,
        strict_if_triggers_exist: bool = False,
    ):
        require_query_capability(conn)
        self.conn = conn
        self.target = AuditTarget.for_table(table, audit_table)
        self.policy = AuditPolicy(
            strict_if_audit_table_exists=strict_if_audit_table_exists,
            strict_if_triggers_exist=strict_if_triggers_exist,
        )

    @property
    def table(self) -> str:
        return self.target.table

    @property
    def audit_table(self) -> str:
        return self.target.audit_table

    def generate_statements(self) -> list[str]:
        return generate_statements(
            self.target.table,
            self.conn,
            self.target.audit_table,
            strict_if_audit_table_exists=self.policy.strict_if_audit_table_exists,
            strict_if_triggers_exist=self.policy.strict_if_triggers_exist,
        )

    def execute(self, log_file: str | None = None) -> Any:
        """Generate and run the statements; returns an ``ExecutionReport``."""
        from audit_tables.executor import execute_statements

        return execute_statements(self.conn, self.generate_statements(), log_file=log_file)


__all__ = [
    "AuditPolicy",
    "AuditTableCreator",
    "check_policy",
    "generate_statements",
    "plan_statements",
]
