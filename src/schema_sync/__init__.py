"""schema-sync: compare two MySQL schemas and generate the DDL to sync them.

Compares a source schema against a target schema and produces an ordered
list of CREATE / DROP / ALTER TABLE statements that make the target match
the source.

Usage:
    from schema_sync import compare, synthesize
    from schema_sync import DatabaseSchema, TableSchema, ColumnSchema
    from schema_sync import SchemaIntrospector, load_config
"""

__version__ = "0.1.0"

# Config
from schema_sync.config.loader import load_config
from schema_sync.config.models import DatabaseProfile, SchemaSyncConfig

# Errors
from schema_sync.errors import (
    MalformedSchemaError,
    ProfileNotFoundError,
    SchemaSyncError,
    UnsupportedDefaultExpressionError,
)

# Schema
from schema_sync.schema.comparator import compare
from schema_sync.schema.introspector import SchemaIntrospector
from schema_sync.schema.models import (
    ColumnSchema,
    DatabaseSchema,
    ForeignKeySchema,
    IndexSchema,
    SchemaDiff,
    TableDiff,
    TableSchema,
)
from schema_sync.schema.synthesizer import synthesize

__all__ = [
    # Core
    "compare",
    "synthesize",
    # Models
    "DatabaseSchema",
    "TableSchema",
    "ColumnSchema",
    "IndexSchema",
    "ForeignKeySchema",
    "SchemaDiff",
    "TableDiff",
    # Introspection
    "SchemaIntrospector",
    # Config
    "load_config",
    "DatabaseProfile",
    "SchemaSyncConfig",
    # Errors
    "SchemaSyncError",
    "MalformedSchemaError",
    "UnsupportedDefaultExpressionError",
    "ProfileNotFoundError",
]
