"""Structural comparison of two schema snapshots.

Computes what must change in a *target* schema for it to match a *source*
schema. Pure logic -- no I/O, no database connections, inputs are never
mutated.

Usage:
    from schema_sync.schema.comparator import compare
    from schema_sync.schema.introspector import SchemaIntrospector

    async with SchemaIntrospector(staging_url) as introspector:
        source = await introspector.introspect()
    async with SchemaIntrospector(production_url) as introspector:
        target = await introspector.introspect()

    diff = compare(source, target, ignore_tables={"sessions"})
    print(diff.format_report())
"""

import logging
from collections.abc import Collection

from schema_sync.schema.defaults import normalize_default
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

logger = logging.getLogger(__name__)


def compare(
    source: DatabaseSchema,
    target: DatabaseSchema,
    ignore_tables: Collection[str] = (),
) -> SchemaDiff:
    """Compare *source* against *target*.

    - Missing tables: in *source* only; the full definition is kept so it
      can be created.
    - Extra tables: in *target* only; name only, sorted.
    - Table differences: tables in both whose columns, indexes or foreign
      keys differ. Unchanged tables are left out.

    Args:
        source: Schema the target should end up matching.
        target: Schema of the database that will be altered.
        ignore_tables: Table names excluded from both sides.

    Returns:
        ``SchemaDiff`` describing the changes.

    Raises:
        MalformedSchemaError: If either schema violates a structural
            invariant. Raised before any comparison happens.

    Examples:
        >>> from schema_sync.schema.models import ColumnSchema, TableSchema
        >>> users = TableSchema.from_definitions(
        ...     "users", [ColumnSchema(name="id", data_type="int", position=1)]
        ... )
        >>> schema = DatabaseSchema(tables={"users": users})
        >>> compare(schema, schema).is_empty
        True
        >>> list(compare(schema, DatabaseSchema()).missing_tables)
        ['users']
    """
    source.check()
    target.check()

    source = source.without(ignore_tables)
    target = target.without(ignore_tables)

    missing_tables = {
        name: table for name, table in source.tables.items() if name not in target.tables
    }
    extra_tables = sorted(name for name in target.tables if name not in source.tables)

    table_differences: dict[str, TableDiff] = {}
    for name, table in source.tables.items():
        if name not in target.tables:
            continue
        table_diff = compare_tables(table, target.tables[name])
        if not table_diff.is_empty:
            table_differences[name] = table_diff

    diff = SchemaDiff(
        missing_tables=missing_tables,
        extra_tables=extra_tables,
        table_differences=table_differences,
    )
    logger.debug(
        "Compared %d source / %d target tables: %d missing, %d extra, %d changed",
        len(source.tables),
        len(target.tables),
        len(missing_tables),
        len(extra_tables),
        len(table_differences),
    )
    return diff


def compare_tables(source: TableSchema, target: TableSchema) -> TableDiff:
    """Compute the ``TableDiff`` between two versions of one table.

    Columns are walked in *source* position order. New and changed columns
    are placed after the source column that precedes them (``None`` means
    first). A column whose only change is its position is not reported.

    Changed indexes and foreign keys appear in both the drop and the add
    mapping: there is no in-place modify for either.
    """
    add_columns: dict[str, PlacedColumn] = {}
    modify_columns: dict[str, PlacedColumn] = {}

    previous: str | None = None
    for column in source.ordered_columns():
        existing = target.columns.get(column.name)
        if existing is None:
            add_columns[column.name] = PlacedColumn.place(column, after=previous)
        elif column_changed(column, existing):
            modify_columns[column.name] = PlacedColumn.place(column, after=previous)
        previous = column.name

    drop_columns = {
        name: column
        for name, column in target.columns.items()
        if name not in source.columns
    }

    add_indexes, drop_indexes = _replace_changed(
        source.indexes, target.indexes, index_changed
    )
    add_foreign_keys, drop_foreign_keys = _replace_changed(
        source.foreign_keys, target.foreign_keys, foreign_key_changed
    )

    return TableDiff(
        add_columns=add_columns,
        modify_columns=modify_columns,
        drop_columns=drop_columns,
        add_indexes=add_indexes,
        drop_indexes=drop_indexes,
        add_foreign_keys=add_foreign_keys,
        drop_foreign_keys=drop_foreign_keys,
    )


def _replace_changed(source, target, changed):
    """Split named definitions into (to add, to drop).

    Source-only entries are added, target-only entries dropped, and entries
    that differ are dropped (target definition) and re-added (source
    definition).
    """
    to_add = {}
    to_drop = {}

    for name, definition in source.items():
        existing = target.get(name)
        if existing is None:
            to_add[name] = definition
        elif changed(definition, existing):
            to_drop[name] = existing
            to_add[name] = definition

    for name, definition in target.items():
        if name not in source:
            to_drop[name] = definition

    return to_add, to_drop


def column_changed(source: ColumnSchema, target: ColumnSchema) -> bool:
    """True if two column definitions differ, ignoring position."""
    return (
        source.data_type != target.data_type
        or source.is_nullable != target.is_nullable
        or normalize_default(source.default) != normalize_default(target.default)
        or source.extra != target.extra
        or source.comment != target.comment
    )


def index_changed(source: IndexSchema, target: IndexSchema) -> bool:
    """True if primary/unique flags or the ordered column list differ."""
    return (
        source.is_primary != target.is_primary
        or source.is_unique != target.is_unique
        or source.columns != target.columns
    )


def foreign_key_changed(source: ForeignKeySchema, target: ForeignKeySchema) -> bool:
    """True if any part of the constraint definition differs."""
    return (
        source.columns != target.columns
        or source.referenced_table != target.referenced_table
        or source.referenced_columns != target.referenced_columns
        or source.on_update != target.on_update
        or source.on_delete != target.on_delete
    )
