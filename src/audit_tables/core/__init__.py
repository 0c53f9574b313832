"""Infrastructure shared by the engine: protocols, errors, logging, settings,
dialect and connection factory."""

from audit_tables.core.dialect import Dialect, MySQLDialect, get_dialect
from audit_tables.core.errors import (
    AuditError,
    AuditTableExistsError,
    BaseTableMissingError,
    ConnectionCapabilityError,
    DatabaseConnectionError,
    DDLParseError,
    ErrorCategory,
    StatementExecutionError,
    TriggerExistsError,
    UnsupportedCursorError,
)
from audit_tables.core.protocols import FetchOneCursor, QueryConnection

__all__ = [
    "AuditError",
    "AuditTableExistsError",
    "BaseTableMissingError",
    "ConnectionCapabilityError",
    "DatabaseConnectionError",
    "DDLParseError",
    "Dialect",
    "ErrorCategory",
    "FetchOneCursor",
    "MySQLDialect",
    "QueryConnection",
    "StatementExecutionError",
    "TriggerExistsError",
    "UnsupportedCursorError",
    "get_dialect",
]
