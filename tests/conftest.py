"""
Shared pytest fixtures for audit-tables tests.

Provides an in-memory stand-in for a MySQL connection that understands the
handful of statements the engine issues (``SELECT 1``, ``SHOW TABLES``,
``SHOW TRIGGERS``, ``SHOW CREATE TABLE``) and records the DDL it is asked
to execute, updating its table/trigger catalogue as a server would.
"""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Any

import pytest
import structlog

# Ensure audit_tables package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# =============================================================================
# Table definitions as MySQL 8 reports them
# =============================================================================

AUTO_INCREMENT_DDL = """CREATE TABLE `t` (
  `id` int NOT NULL AUTO_INCREMENT,
  `foo` char(20) DEFAULT NULL,
  PRIMARY KEY (`id`)
) ENGINE=InnoDB AUTO_INCREMENT=3 DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_0900_ai_ci"""

COMPOUND_PRIMARY_DDL = """CREATE TABLE `table_with_compound_primary` (
  `a` int NOT NULL,
  `b` int NOT NULL,
  `foo` char(20) DEFAULT NULL,
  PRIMARY KEY (`a`,`b`)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"""

NO_PRIMARY_DDL = """CREATE TABLE `table_with_no_primary` (
  `a` int DEFAULT NULL,
  `b` int DEFAULT NULL
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"""

UNIQUE_KEY_DDL = """CREATE TABLE `table_with_unique_key` (
  `id` int NOT NULL AUTO_INCREMENT,
  `foo` char(20) NOT NULL,
  `bar` char(20) NOT NULL,
  PRIMARY KEY (`id`),
  UNIQUE KEY `fubar` (`foo`,`bar`)
) ENGINE=InnoDB AUTO_INCREMENT=7 DEFAULT CHARSET=utf8mb4"""

GROUPS_DDL = """CREATE TABLE `groups` (
  `id` int unsigned NOT NULL AUTO_INCREMENT COMMENT '',
  `owner_user` int unsigned NOT NULL COMMENT '',
  `created` datetime NOT NULL COMMENT '',
  PRIMARY KEY (`id`),
  KEY `owner_user` (`owner_user`),
  KEY `created` (`created`),
  CONSTRAINT `groups_owner_user` FOREIGN KEY (`owner_user`) REFERENCES `users` (`id`) ON DELETE NO ACTION ON UPDATE NO ACTION
) ENGINE=InnoDB AUTO_INCREMENT=12 DEFAULT CHARSET=latin1"""


# =============================================================================
# Fake driver
# =============================================================================


class FakeDriverError(Exception):
    """Shaped like PyMySQL errors: ``args == (code, message)``."""


class ListCursor:
    """PEP 249 style result: rows pulled with ``fetchone()``."""

    def __init__(self, rows: list[tuple]):
        self._rows = list(rows)

    def fetchone(self) -> tuple | None:
        return self._rows.pop(0) if self._rows else None


class DictListCursor(ListCursor):
    """Like PyMySQL's DictCursor: rows are mappings in column order."""

    def __init__(self, rows: list[tuple], columns: tuple[str, ...] = ()):
        names = columns or tuple(f"c{i}" for i in range(max((len(r) for r in rows), default=0)))
        super().__init__([dict(zip(names, row)) for row in rows])


_CREATE_LIKE_RE = re.compile(r"^CREATE TABLE (?:IF NOT EXISTS )?`([^`]+)` LIKE `([^`]+)`")
_CREATE_TRIGGER_RE = re.compile(r"^CREATE TRIGGER `([^`]+)` \w+ (\w+) ON `([^`]+)`")
_SHOW_CREATE_RE = re.compile(r"^SHOW CREATE TABLE `([^`]+)`")


class FakeMySQL:
    """In-memory catalogue answering the engine's state queries.

    ``cursor`` selects the result style: ``"fetchone"``, ``"dict"`` or
    ``"iterator"``.
    """

    def __init__(self, tables: dict[str, str] | None = None, *, cursor: str = "fetchone"):
        self.tables: dict[str, str] = dict(tables or {})
        self.triggers: dict[str, tuple[str, str]] = {}
        self.queries: list[str] = []
        self.executed: list[str] = []
        self.fail_on: dict[str, tuple[int, str]] = {}
        self.cursor_style = cursor

    # -- helpers ---------------------------------------------------------

    def add_trigger(self, name: str, event: str = "INSERT", table: str = "t") -> None:
        self.triggers[name] = (event, table)

    def _result(self, rows: list[tuple]) -> Any:
        if self.cursor_style == "iterator":
            return iter(rows)
        if self.cursor_style == "dict":
            return DictListCursor(rows)
        return ListCursor(rows)

    # -- QueryConnection ---------------------------------------------------

    def query(self, sql: str) -> Any:
        self.queries.append(sql)
        for fragment, (code, message) in self.fail_on.items():
            if fragment in sql:
                raise FakeDriverError(code, message)

        if sql == "SELECT 1":
            return self._result([(1,)])
        if sql == "SHOW TABLES":
            return self._result([(name,) for name in self.tables])
        if sql == "SHOW TRIGGERS":
            return self._result(
                [(name, event, table) for name, (event, table) in self.triggers.items()]
            )
        match = _SHOW_CREATE_RE.match(sql)
        if match:
            name = match.group(1)
            if name not in self.tables:
                raise FakeDriverError(1146, f"Table 'app.{name}' doesn't exist")
            return self._result([(name, self.tables[name])])

        self.executed.append(sql)
        match = _CREATE_LIKE_RE.match(sql)
        if match:
            self.tables.setdefault(match.group(1), self.tables[match.group(2)])
        match = _CREATE_TRIGGER_RE.match(sql)
        if match:
            name, event, table = match.groups()
            if name in self.triggers:
                raise FakeDriverError(1359, "Trigger already exists")
            self.triggers[name] = (event, table)
        return self._result([])


@pytest.fixture
def fake_db() -> FakeMySQL:
    """Database holding table ``t`` (AUTO_INCREMENT primary key + ``foo``)."""
    return FakeMySQL({"t": AUTO_INCREMENT_DDL, "other": NO_PRIMARY_DDL})


@pytest.fixture
def audited_db(fake_db: FakeMySQL) -> FakeMySQL:
    """``t`` with its audit table and all three triggers already in place."""
    fake_db.tables["audit_t"] = AUTO_INCREMENT_DDL
    fake_db.add_trigger("audit_t_inserts", "INSERT")
    fake_db.add_trigger("audit_t_updates", "UPDATE")
    fake_db.add_trigger("audit_t_deletes", "DELETE")
    return fake_db


@pytest.fixture(autouse=True)
def _clean_audit_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep AUDIT_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("AUDIT_") and key != "AUDIT_TEST_DATABASE_URL":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Drop logging configuration made by a test (CLI commands configure it)."""
    yield
    structlog.reset_defaults()
