"""
Statement composer — pure SQL generation for the audit table and triggers.

Nothing here touches a connection. Given a :class:`TableSchema` and an
:class:`AuditTarget`, each function returns one SQL statement:

- ``create_audit_table_sql``  — ``CREATE TABLE ... LIKE`` the base table
- ``adjust_audit_table_sql``  — one ``ALTER TABLE`` turning the copy into an
  audit table (surrogate key, audit columns, keys demoted to plain keys)
- ``trigger_sql``             — the insert/update/delete trigger writing one
  audit row per base-table row event

When the base table has a primary key, every trigger numbers audit rows per
primary-key value with a correlated lookup over earlier audit rows::

    `audit_item_version` = IFNULL(
        (SELECT MAX(`audit_item_version`) + 1
           FROM `audit_t` `source`
          WHERE `source`.`a` = OLD.`a` AND `source`.`b` = OLD.`b`),
        1)

Tables without a primary key get no version column and no lookup.
"""

from __future__ import annotations

import re

from audit_tables.core.dialect import Dialect, get_dialect
from audit_tables.naming import AuditEvent, AuditTarget
from audit_tables.schema.model import TableSchema

AUDIT_ID = "audit_id"
AUDIT_DATETIME = "audit_datetime"
AUDIT_EVENT = "audit_event"
AUDIT_ITEM_VERSION = "audit_item_version"
REAL_PRIMARY_KEY = "real_primary_key"
VERSION_SOURCE_ALIAS = "source"

_AUTO_INCREMENT_RE = re.compile(r"\s+AUTO_INCREMENT\b", re.IGNORECASE)


def create_audit_table_sql(
    target: AuditTarget,
    *,
    if_not_exists: bool = True,
    dialect: Dialect | None = None,
) -> str:
    """``CREATE TABLE`` copying the base table's structure.

    The copy still carries the base table's primary key, unique keys and
    AUTO_INCREMENT column; :func:`adjust_audit_table_sql` fixes those.
    """
    d = dialect or get_dialect()
    clause = "IF NOT EXISTS " if if_not_exists else ""
    return f"CREATE TABLE {clause}{d.quote(target.audit_table)} LIKE {d.quote(target.table)}"


def adjust_audit_table_sql(
    schema: TableSchema,
    target: AuditTarget,
    *,
    dialect: Dialect | None = None,
) -> str:
    """Single ``ALTER TABLE`` turning the fresh copy into the audit table."""
    d = dialect or get_dialect()
    clauses: list[str] = []

    ai_name = schema.auto_increment_column_name
    if ai_name is not None:
        plain = _AUTO_INCREMENT_RE.sub("", schema.auto_increment_column)
        clauses.append(f"CHANGE COLUMN {d.quote(ai_name)} {plain}")

    if schema.has_primary_key:
        clauses.append("DROP PRIMARY KEY")

    clauses += [
        f"ADD COLUMN {d.quote(AUDIT_ID)} INT AUTO_INCREMENT NOT NULL FIRST",
        f"ADD PRIMARY KEY ({d.quote(AUDIT_ID)})",
        f"ADD COLUMN {d.quote(AUDIT_DATETIME)} DATETIME NOT NULL AFTER {d.quote(AUDIT_ID)}",
        f"ADD COLUMN {d.quote(AUDIT_EVENT)} CHAR(7) NOT NULL DEFAULT 'insert' "
        f"AFTER {d.quote(AUDIT_DATETIME)}",
    ]

    if schema.has_primary_key:
        clauses += [
            f"ADD COLUMN {d.quote(AUDIT_ITEM_VERSION)} INT NULL AFTER {d.quote(AUDIT_EVENT)}",
            f"ADD KEY {d.quote(REAL_PRIMARY_KEY)} ({_primary_key_list(schema, d)})",
        ]

    # Many audit rows share the base table's "unique" values across versions.
    for key in schema.unique_keys:
        clauses.append(f"DROP KEY {d.quote(key.name)}")
        clauses.append(f"ADD {key.definition}")

    body = ",\n    ".join(clauses)
    return f"ALTER TABLE {d.quote(target.audit_table)}\n    {body}"


def field_assignments(
    schema: TableSchema,
    row_ref: str,
    *,
    dialect: Dialect | None = None,
) -> list[str]:
    """``col = ROW.col`` for every base column, in declaration order."""
    d = dialect or get_dialect()
    return [f"{d.quote(col)} = {row_ref}.{d.quote(col)}" for col in schema.column_names]


def version_condition(
    schema: TableSchema,
    row_ref: str,
    *,
    dialect: Dialect | None = None,
) -> str:
    """Correlation of earlier audit rows with ``row_ref`` on every primary-key column."""
    d = dialect or get_dialect()
    alias = d.quote(VERSION_SOURCE_ALIAS)
    return " AND ".join(
        f"{alias}.{d.quote(col)} = {row_ref}.{d.quote(col)}"
        for col in schema.primary_key_columns
    )


def version_expression(
    schema: TableSchema,
    target: AuditTarget,
    row_ref: str,
    *,
    dialect: Dialect | None = None,
) -> str:
    """Next item version for the entity identified by ``row_ref``; 1 if unseen."""
    d = dialect or get_dialect()
    where = version_condition(schema, row_ref, dialect=d)
    return (
        "IFNULL(\n"
        "                (\n"
        f"                    SELECT MAX({d.quote(AUDIT_ITEM_VERSION)}) + 1\n"
        f"                    FROM {d.quote(target.audit_table)} {d.quote(VERSION_SOURCE_ALIAS)}\n"
        f"                    WHERE {where}\n"
        "                ),\n"
        "                1)"
    )


def trigger_sql(
    schema: TableSchema,
    target: AuditTarget,
    event: AuditEvent,
    *,
    dialect: Dialect | None = None,
) -> str:
    """``CREATE TRIGGER`` inserting one audit row per ``event`` on the base table.

    Insert copies and versions by ``NEW``; delete copies and versions by
    ``OLD``; update copies ``NEW`` but looks the version up by ``OLD``, so a
    row whose primary key changes keeps counting under its old identity.
    """
    d = dialect or get_dialect()
    assignments = [
        f"{d.quote(AUDIT_DATETIME)} = {d.now()}",
        f"{d.quote(AUDIT_EVENT)} = '{event.value}'",
    ]
    if schema.has_primary_key:
        version = version_expression(schema, target, event.version_row, dialect=d)
        assignments.append(f"{d.quote(AUDIT_ITEM_VERSION)} = {version}")
    assignments += field_assignments(schema, event.copy_row, dialect=d)

    body = ",\n            ".join(assignments)
    return (
        f"CREATE TRIGGER {d.quote(target.trigger(event))} {event.timing} ON {d.quote(target.table)}\n"
        "    FOR EACH ROW\n"
        "    BEGIN\n"
        f"        INSERT INTO {d.quote(target.audit_table)}\n"
        f"        SET {body};\n"
        "    END"
    )


def _primary_key_list(schema: TableSchema, d: Dialect) -> str:
    # Keep the raw definition so prefix lengths (`name`(10)) carry over.
    if schema.primary_key_definition:
        return schema.primary_key_definition
    return ",".join(d.quote(col) for col in schema.primary_key_columns)


__all__ = [
    "AUDIT_DATETIME",
    "AUDIT_EVENT",
    "AUDIT_ID",
    "AUDIT_ITEM_VERSION",
    "REAL_PRIMARY_KEY",
    "adjust_audit_table_sql",
    "create_audit_table_sql",
    "field_assignments",
    "trigger_sql",
    "version_condition",
    "version_expression",
]
