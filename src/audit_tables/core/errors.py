"""
Structured error types for audit-tables.

Every failure the engine can report is an ``AuditError`` subclass carrying
a category, a retryable flag, structured context and an optional chained
cause. Callers can catch the base class to handle everything, or a specific
subclass to react to one condition (e.g. re-running after a strict-mode
failure once the existing triggers have been dropped).

Architecture:
    ::

        AuditError
        ├── ConnectionCapabilityError   (CONFIG)
        │   └── UnsupportedCursorError
        ├── ConfigError                 (CONFIG)
        │   └── InvalidConfigError
        ├── DDLParseError               (PARSE)
        ├── BaseTableMissingError       (VALIDATION)
        ├── AuditTableExistsError       (VALIDATION)
        ├── TriggerExistsError          (VALIDATION)
        ├── StatementExecutionError     (DATABASE)
        └── DatabaseConnectionError     (DATABASE, retryable)

Usage:
    from audit_tables.core.errors import AuditError, TriggerExistsError

    try:
        statements = generate_statements("users", conn, strict_if_triggers_exist=True)
    except TriggerExistsError as e:
        print(e.trigger)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from audit_tables.naming import AuditEvent


class ErrorCategory(str, Enum):
    """Error categories used for classification and CLI rendering."""

    CONFIG = "CONFIG"             # Connection capability, invalid settings
    PARSE = "PARSE"               # Table definition could not be parsed
    VALIDATION = "VALIDATION"     # Database state conflicts with the request
    DATABASE = "DATABASE"         # Database reported an error
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error."""

    table: str | None = None
    audit_table: str | None = None
    statement: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "audit_table", "statement"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class AuditError(Exception):
    """Base exception for all audit-tables errors."""

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AuditError:
        """
        Add context to this error (fluent API).

        Usage:
            raise AuditError("Failed").with_context(table="users")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION / CAPABILITY ERRORS
# =============================================================================


class ConfigError(AuditError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


class ConnectionCapabilityError(AuditError):
    """The connection, or a result it returns, lacks a required operation."""

    default_category = ErrorCategory.CONFIG


class UnsupportedCursorError(ConnectionCapabilityError):
    """Query results support neither ``fetchone()`` nor iteration."""

    def __init__(self, cursor_type: str):
        self.cursor_type = cursor_type
        super().__init__(
            f"Query result of type {cursor_type} has neither a fetchone() method "
            "nor supports next()"
        )


# =============================================================================
# PARSE ERRORS
# =============================================================================


class DDLParseError(AuditError):
    """The table definition text is not a CREATE TABLE statement."""

    default_category = ErrorCategory.PARSE


# =============================================================================
# STATE ERRORS
# =============================================================================


class BaseTableMissingError(AuditError):
    """The table to be audited does not exist."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, table: str):
        self.table = table
        super().__init__(
            f"Base table {table} does not exist",
            context=ErrorContext(table=table),
        )


class AuditTableExistsError(AuditError):
    """Strict mode: the audit table is already present."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, audit_table: str):
        self.audit_table = audit_table
        super().__init__(
            "Audit table already exists",
            context=ErrorContext(audit_table=audit_table),
        )


class TriggerExistsError(AuditError):
    """Strict mode: one of the audit triggers is already present."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, event: AuditEvent, table: str, trigger: str):
        self.event = event
        self.table = table
        self.trigger = trigger
        super().__init__(
            f"Audit trigger for {event.label} on table {table} already exists",
            context=ErrorContext(table=table, metadata={"trigger": trigger}),
        )


# =============================================================================
# EXECUTION ERRORS
# =============================================================================


class StatementExecutionError(AuditError):
    """The database reported an error while executing a generated statement.

    Statements executed before the failing one stay applied; DDL is not
    transactional on the target database.
    """

    default_category = ErrorCategory.DATABASE

    def __init__(
        self,
        sql: str,
        *,
        error_code: int | str | None = None,
        sql_state: str | None = None,
        db_message: str | None = None,
        cause: Exception | None = None,
    ):
        self.sql = sql
        self.error_code = error_code
        self.sql_state = sql_state
        self.db_message = db_message
        super().__init__(
            self.format_details(),
            context=ErrorContext(statement=sql),
            cause=cause,
        )

    @classmethod
    def from_driver_error(cls, sql: str, exc: Exception) -> StatementExecutionError:
        """Map a driver exception onto the database's own error details.

        PyMySQL/mysqlclient put ``(code, message)`` in ``args``; mysql-connector
        exposes ``errno``, ``sqlstate`` and ``msg``.
        """
        args = getattr(exc, "args", ())
        code = getattr(exc, "errno", None)
        if code is None and args and isinstance(args[0], int):
            code = args[0]
        message = getattr(exc, "msg", None)
        if message is None:
            message = args[1] if len(args) > 1 else str(exc)
        return cls(
            sql,
            error_code=code,
            sql_state=getattr(exc, "sqlstate", None),
            db_message=message,
            cause=exc,
        )

    def format_details(self) -> str:
        """Render the error block written to the execution log."""
        lines = ["Error in MySQL Query:"]
        if self.sql_state is not None:
            lines.append(f"SQL State: {self.sql_state}")
        lines.append(f"Error Number: {self.error_code}")
        lines.append(f"Error Message: {self.db_message}")
        lines.append("SQL Statement:")
        lines.append(f"    {self.sql}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error_code"] = self.error_code
        if self.sql_state is not None:
            result["sql_state"] = self.sql_state
        return result


class DatabaseConnectionError(AuditError):
    """The database server could not be reached or refused the login."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True

    def __init__(self, url: str, cause: Exception | None = None):
        self.url = url
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"Cannot connect to {url}{detail}",
            context=ErrorContext(metadata={"url": url}),
            cause=cause,
        )


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "AuditError",
    "ConfigError",
    "InvalidConfigError",
    "ConnectionCapabilityError",
    "UnsupportedCursorError",
    "DDLParseError",
    "BaseTableMissingError",
    "AuditTableExistsError",
    "TriggerExistsError",
    "StatementExecutionError",
    "DatabaseConnectionError",
]
