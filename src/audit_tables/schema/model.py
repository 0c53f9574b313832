"""
Schema Model — the parts of a table definition that auditing depends on.

A ``TableSchema`` is derived fresh from ``SHOW CREATE TABLE`` output on every
run and never mutated afterwards. Column names are stored unquoted; the
composer re-quotes them through the dialect.

Examples:
    >>> schema = TableSchema(
    ...     column_names=("id", "foo"),
    ...     primary_key_columns=("id",),
    ...     primary_key_definition="`id`",
    ...     auto_increment_column="`id` int NOT NULL AUTO_INCREMENT",
    ... )
    >>> schema.has_primary_key
    True
    >>> schema.auto_increment_column_name
    'id'
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_LEADING_IDENTIFIER = re.compile(r"^\s*`((?:[^`]|``)+)`")


@dataclass(frozen=True)
class UniqueKey:
    """A UNIQUE key of the base table.

    ``definition`` is the declaration with the ``UNIQUE`` keyword removed,
    e.g. ``KEY `fubar` (`foo`,`bar`)``, which is exactly the plain key the
    audit table gets in its place.
    """

    name: str
    definition: str


@dataclass(frozen=True)
class TableSchema:
    """Structural summary of a base table."""

    column_names: tuple[str, ...]
    primary_key_columns: tuple[str, ...] = ()
    primary_key_definition: str | None = None
    """Raw column list of the primary key, quoting and prefix lengths kept."""
    auto_increment_column: str | None = None
    """Full definition line of the AUTO_INCREMENT column, trailing comma stripped."""
    unique_keys: tuple[UniqueKey, ...] = ()

    @property
    def has_primary_key(self) -> bool:
        return bool(self.primary_key_columns)

    @property
    def auto_increment_column_name(self) -> str | None:
        if self.auto_increment_column is None:
            return None
        match = _LEADING_IDENTIFIER.match(self.auto_increment_column)
        if match is None:
            return None
        return match.group(1).replace("``", "`")


__all__ = ["TableSchema", "UniqueKey"]
