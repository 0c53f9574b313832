"""DDL parser — ``SHOW CREATE TABLE`` text → :class:`TableSchema`.

The input is always produced by the same server that will run the generated
statements, and that server writes exactly one column or key declaration per
line::

    CREATE TABLE `users` (
      `id` int unsigned NOT NULL AUTO_INCREMENT,
      `email` varchar(255) NOT NULL,
      PRIMARY KEY (`id`),
      UNIQUE KEY `email` (`email`)
    ) ENGINE=InnoDB AUTO_INCREMENT=42 DEFAULT CHARSET=utf8mb4

so line-anchored patterns are enough; no SQL grammar is involved. The rules
live behind the :class:`DDLParser` protocol so a stricter parser can be
dropped in without touching the composer.
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

from audit_tables.core.errors import DDLParseError
from audit_tables.core.logging import get_logger
from audit_tables.schema.model import TableSchema, UniqueKey

logger = get_logger(__name__)

_QUOTED = r"`((?:[^`]|``)+)`"

# The trailing table options also mention AUTO_INCREMENT (the next counter
# value); they are the only line carrying ENGINE.
_AUTO_INCREMENT_RE = re.compile(r"^(?!.+\bENGINE\b)\s*(.+? AUTO_INCREMENT.*?),?$", re.MULTILINE)
_COLUMN_RE = re.compile(rf"^\s*{_QUOTED}", re.MULTILINE)
_PRIMARY_KEY_RE = re.compile(
    r"^\s*PRIMARY KEY\s*(?:`[^`]+`\s*)?\((.+?)\)[^()]*?,?$", re.MULTILINE
)
_UNIQUE_KEY_RE = re.compile(r"^\s*UNIQUE\s+(KEY .+?),?$", re.MULTILINE)
_KEY_NAME_RE = re.compile(rf"^KEY\s*{_QUOTED}")
_IDENTIFIER_RE = re.compile(_QUOTED)
_PREFIX_LENGTH_RE = re.compile(r"\(\d+\)")


@runtime_checkable
class DDLParser(Protocol):
    """Turns table definition text into a :class:`TableSchema`."""

    def parse(self, ddl: str) -> TableSchema:
        ...


def _unescape(identifier: str) -> str:
    return identifier.replace("``", "`")


class RegexDDLParser:
    """Line-anchored pattern matching over ``SHOW CREATE TABLE`` output."""

    def parse(self, ddl: str) -> TableSchema:
        if not ddl or "CREATE TABLE" not in ddl.upper():
            raise DDLParseError("Table definition is not a CREATE TABLE statement")

        columns = self.column_names(ddl)
        if not columns:
            raise DDLParseError("Table definition declares no columns")

        pk_definition = self.primary_key_definition(ddl)
        schema = TableSchema(
            column_names=columns,
            primary_key_columns=self.split_key_columns(pk_definition) if pk_definition else (),
            primary_key_definition=pk_definition,
            auto_increment_column=self.auto_increment_column(ddl),
            unique_keys=self.unique_keys(ddl),
        )
        logger.debug(
            "table_definition_parsed",
            columns=len(schema.column_names),
            primary_key=list(schema.primary_key_columns),
            auto_increment=schema.auto_increment_column_name,
            unique_keys=[key.name for key in schema.unique_keys],
        )
        return schema

    def auto_increment_column(self, ddl: str) -> str | None:
        match = _AUTO_INCREMENT_RE.search(ddl)
        return match.group(1).strip() if match else None

    def column_names(self, ddl: str) -> tuple[str, ...]:
        return tuple(_unescape(name) for name in _COLUMN_RE.findall(ddl))

    def primary_key_definition(self, ddl: str) -> str | None:
        match = _PRIMARY_KEY_RE.search(ddl)
        return match.group(1).strip() if match else None

    def split_key_columns(self, definition: str) -> tuple[str, ...]:
        """Column names of a key definition such as ``` `a`(10),`b` ```."""
        quoted = _IDENTIFIER_RE.findall(definition)
        if quoted:
            return tuple(_unescape(name) for name in quoted)
        # Unquoted lists: drop prefix lengths and ordering keywords.
        parts = _PREFIX_LENGTH_RE.sub("", definition).split(",")
        return tuple(part.split()[0] for part in parts if part.strip())

    def unique_keys(self, ddl: str) -> tuple[UniqueKey, ...]:
        keys = []
        for definition in _UNIQUE_KEY_RE.findall(ddl):
            definition = definition.strip()
            name_match = _KEY_NAME_RE.match(definition)
            if name_match is None:
                raise DDLParseError(f"Unique key without a name: UNIQUE {definition}")
            keys.append(UniqueKey(name=_unescape(name_match.group(1)), definition=definition))
        return tuple(keys)


_default_parser = RegexDDLParser()


def parse_create_table(ddl: str, parser: DDLParser | None = None) -> TableSchema:
    """Parse table definition text with ``parser`` (regex rules by default)."""
    return (parser or _default_parser).parse(ddl)


__all__ = ["DDLParser", "RegexDDLParser", "parse_create_table"]
