"""Schema snapshots, structural comparison and DDL synthesis.

Provides schema comparison (``compare``), DDL generation (``synthesize``),
live database introspection (``SchemaIntrospector``) and JSON snapshots
(``save_snapshot``, ``load_snapshot``).

Usage:
    from schema_sync.schema import compare, synthesize, SchemaIntrospector
    from schema_sync.schema import load_snapshot, save_snapshot
"""

from schema_sync.schema.comparator import compare
from schema_sync.schema.defaults import (
    ColumnDefault,
    ExpressionDefault,
    LiteralDefault,
    NoDefault,
    NullDefault,
    parse_default,
)
from schema_sync.schema.introspector import SchemaIntrospector
from schema_sync.schema.models import (
    ColumnSchema,
    DatabaseSchema,
    ForeignKeySchema,
    IndexSchema,
    PlacedColumn,
    SchemaDiff,
    TableDiff,
    TableSchema,
)
from schema_sync.schema.snapshot import load_snapshot, save_snapshot
from schema_sync.schema.synthesizer import synthesize

__all__ = [
    "compare",
    "synthesize",
    "SchemaIntrospector",
    "load_snapshot",
    "save_snapshot",
    "parse_default",
    "ColumnDefault",
    "NoDefault",
    "NullDefault",
    "LiteralDefault",
    "ExpressionDefault",
    "ColumnSchema",
    "IndexSchema",
    "ForeignKeySchema",
    "TableSchema",
    "DatabaseSchema",
    "PlacedColumn",
    "TableDiff",
    "SchemaDiff",
]
