"""
Capability protocols consumed by audit-tables.

The engine never opens connections or imports drivers itself. It needs one
operation from whatever the caller hands it: ``query(sql)`` returning a
cursor-like result. That result must support one of two row-retrieval
conventions, detected once per run by :func:`audit_tables.prober.detect_fetch_style`:

- ``fetchone()`` (PEP 249 cursors: PyMySQL, mysqlclient, mysql-connector)
- ``next()`` (plain iterators, e.g. a generator of rows)

Architecture:
    ::

        QueryConnection Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ query(sql)  → FetchOneCursor | Iterator[row]           │
        └────────────────────────────────────────────────────────┘

        Implementations:
        ┌────────────────────────────────────────────────────────┐
        │ DBAPIConnection (core.connection) → any PEP 249 conn   │
        │ test doubles                      → tests/conftest.py  │
        └────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class FetchOneCursor(Protocol):
    """Result supporting PEP 249 style ``fetchone()``."""

    def fetchone(self) -> Sequence[Any] | None:
        """Return the next row, or ``None`` when exhausted."""
        ...


@runtime_checkable
class QueryConnection(Protocol):
    """
    Minimal connection capability required by the engine.

    Examples:
        >>> cursor = conn.query("SHOW TABLES")
        >>> row = cursor.fetchone()
    """

    def query(self, sql: str) -> Any:
        """Execute ``sql`` and return a cursor-like result."""
        ...


__all__ = ["FetchOneCursor", "QueryConnection"]
