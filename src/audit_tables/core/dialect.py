"""SQL dialect for the generated audit DDL and the introspection queries.

The statements emitted by the composer (``CREATE TABLE ... LIKE``,
``ALTER TABLE ... CHANGE COLUMN``, ``CREATE TRIGGER ... SET``) and the probes
(``SHOW TABLES``, ``SHOW TRIGGERS``, ``SHOW CREATE TABLE``) are MySQL
syntax, also accepted by MariaDB. The dialect keeps identifier quoting and
the introspection SQL in one place so the composer never hand-quotes.

Examples:
    >>> from audit_tables.core.dialect import get_dialect
    >>> d = get_dialect("mysql")
    >>> d.quote("order")
    '`order`'
    >>> d.quote("we`ird")
    '`we``ird`'
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment or statement valid for the target
    database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'mysql'``)."""
        ...

    def quote(self, identifier: str) -> str:
        """Delimit an identifier so reserved words and odd names are safe."""
        ...

    def now(self) -> str:
        """SQL expression for the current timestamp."""
        ...

    def show_tables(self) -> str:
        """Query listing every table; first field of each row is the name."""
        ...

    def show_triggers(self) -> str:
        """Query listing every trigger; first field of each row is the name."""
        ...

    def show_create_table(self, table: str) -> str:
        """Query whose second field is the table's CREATE TABLE text."""
        ...


class MySQLDialect:
    """MySQL dialect — backtick identifiers, ``NOW()``, ``SHOW`` introspection."""

    @property
    def name(self) -> str:
        return "mysql"

    def quote(self, identifier: str) -> str:
        return "`" + identifier.replace("`", "``") + "`"

    def now(self) -> str:
        return "NOW()"

    def show_tables(self) -> str:
        # never interpolate the table name here
        return "SHOW TABLES"

    def show_triggers(self) -> str:
        return "SHOW TRIGGERS"

    def show_create_table(self, table: str) -> str:
        return f"SHOW CREATE TABLE {self.quote(table)}"


class MariaDBDialect(MySQLDialect):
    """MariaDB accepts the MySQL syntax unchanged."""

    @property
    def name(self) -> str:
        return "mariadb"


# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "mysql": MySQLDialect(),
    "mariadb": MariaDBDialect(),
}


def get_dialect(db_type: str = "mysql") -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. Supported: {sorted(_DIALECTS)}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (e.g. a test double)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "MySQLDialect",
    "MariaDBDialect",
    "get_dialect",
    "register_dialect",
]
