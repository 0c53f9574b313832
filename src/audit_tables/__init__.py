"""
audit-tables — change-history tracking for existing MySQL tables.

For a base table ``t`` this creates ``audit_t`` plus insert/update/delete
triggers that record every row version written to ``t``, without touching
application code.

Usage::

    from audit_tables import generate_statements, execute

    for sql in generate_statements("users", conn):
        print(sql)

    execute("users", conn, log_file="audit_setup.log")

DROP TABLE and TRUNCATE TABLE do not fire row triggers and are not recorded.
"""

__version__ = "0.1.0"

from audit_tables.core.errors import (
    AuditError,
    AuditTableExistsError,
    BaseTableMissingError,
    ConnectionCapabilityError,
    DatabaseConnectionError,
    StatementExecutionError,
    TriggerExistsError,
    UnsupportedCursorError,
)
from audit_tables.executor import ExecutionReport, execute, execute_statements
from audit_tables.naming import AuditEvent, AuditTarget, audit_table_name, trigger_name
from audit_tables.prober import AuditStatus
from audit_tables.reconciler import (
    AuditPolicy,
    AuditTableCreator,
    generate_statements,
    plan_statements,
)
from audit_tables.schema import TableSchema, UniqueKey, parse_create_table

__all__ = [
    "__version__",
    "AuditError",
    "AuditEvent",
    "AuditPolicy",
    "AuditStatus",
    "AuditTableCreator",
    "AuditTableExistsError",
    "AuditTarget",
    "BaseTableMissingError",
    "ConnectionCapabilityError",
    "DatabaseConnectionError",
    "ExecutionReport",
    "StatementExecutionError",
    "TableSchema",
    "TriggerExistsError",
    "UniqueKey",
    "UnsupportedCursorError",
    "audit_table_name",
    "execute",
    "execute_statements",
    "generate_statements",
    "parse_create_table",
    "plan_statements",
    "trigger_name",
]
