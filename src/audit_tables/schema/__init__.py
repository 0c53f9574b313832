"""Schema Model and the DDL parser that derives it."""

from audit_tables.schema.model import TableSchema, UniqueKey
from audit_tables.schema.parser import DDLParser, RegexDDLParser, parse_create_table

__all__ = [
    "DDLParser",
    "RegexDDLParser",
    "TableSchema",
    "UniqueKey",
    "parse_create_table",
]
