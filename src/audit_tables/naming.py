"""Naming rules for audit tables and triggers.

Names are fixed by convention so that a re-run can find what an earlier run
created:

- audit table: ``audit_<table>`` unless the caller overrides it
- triggers:    ``audit_<table>_inserts``, ``audit_<table>_updates``,
               ``audit_<table>_deletes``
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AuditEvent(str, Enum):
    """A base-table event recorded in the audit table.

    Each event fixes when its trigger fires and which row reference
    (``NEW``/``OLD``) feeds the copied columns and the version lookup.
    """

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def timing(self) -> str:
        return _TIMING[self]

    @property
    def copy_row(self) -> str:
        """Row reference whose values are copied into the audit row."""
        return "OLD" if self is AuditEvent.DELETE else "NEW"

    @property
    def version_row(self) -> str:
        """Row reference correlated against earlier audit rows."""
        return "NEW" if self is AuditEvent.INSERT else "OLD"

    @property
    def suffix(self) -> str:
        return f"{self.value}s"

    @property
    def label(self) -> str:
        return _LABELS[self]


_TIMING = {
    AuditEvent.INSERT: "AFTER INSERT",
    AuditEvent.UPDATE: "BEFORE UPDATE",
    AuditEvent.DELETE: "BEFORE DELETE",
}

_LABELS = {
    AuditEvent.INSERT: "insertions",
    AuditEvent.UPDATE: "updates",
    AuditEvent.DELETE: "deletions",
}

# Order in which triggers are emitted.
TRIGGER_ORDER = (AuditEvent.INSERT, AuditEvent.DELETE, AuditEvent.UPDATE)


def audit_table_name(table: str, override: str | None = None) -> str:
    """Name of the audit table for ``table``."""
    return override or f"audit_{table}"


def trigger_name(table: str, event: AuditEvent) -> str:
    """Name of the audit trigger for ``event`` on ``table``."""
    return f"audit_{table}_{event.suffix}"


@dataclass(frozen=True)
class AuditTarget:
    """The base table being audited and the audit table recording it."""

    table: str
    audit_table: str

    @classmethod
    def for_table(cls, table: str, audit_table: str | None = None) -> AuditTarget:
        return cls(table=table, audit_table=audit_table_name(table, audit_table))

    def trigger(self, event: AuditEvent) -> str:
        return trigger_name(self.table, event)

    @property
    def triggers(self) -> dict[AuditEvent, str]:
        return {event: self.trigger(event) for event in AuditEvent}


__all__ = [
    "AuditEvent",
    "AuditTarget",
    "TRIGGER_ORDER",
    "audit_table_name",
    "trigger_name",
]
