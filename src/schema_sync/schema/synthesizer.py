"""DDL synthesis -- turn a ``SchemaDiff`` into ordered MySQL statements.

Pure logic: no I/O and no connections. Statements are returned without a
trailing terminator; callers normalize terminators when writing a script.

Statement order:
1. ``CREATE TABLE`` for each missing table (by name)
2. ``DROP TABLE`` for each extra table (by name)
3. One ``ALTER TABLE`` per changed table (by name), clauses ordered
   drop foreign keys, drop indexes, drop columns, add columns, modify
   columns, add indexes, add foreign keys

Usage:
    from schema_sync.schema.comparator import compare
    from schema_sync.schema.synthesizer import synthesize

    statements = synthesize(compare(source, target))
    for statement in statements:
        print(f"{statement};")
"""

import logging

from schema_sync.schema.defaults import ExpressionDefault, LiteralDefault, NullDefault
from schema_sync.schema.models import (
    ColumnSchema,
    ForeignKeySchema,
    IndexSchema,
    PlacedColumn,
    SchemaDiff,
    TableDiff,
    TableSchema,
)

logger = logging.getLogger(__name__)

# Referential action the engine applies when none is declared.
IMPLICIT_REFERENTIAL_ACTION = "RESTRICT"

DEFAULT_ENGINE = "InnoDB"


def synthesize(diff: SchemaDiff, engine: str = DEFAULT_ENGINE) -> list[str]:
    """Generate the statements that apply *diff* to the target database.

    Args:
        diff: Result of ``compare(source, target)``.
        engine: Storage engine appended to ``CREATE TABLE`` statements.

    Returns:
        Ordered statements. Empty when the diff is empty.

    Raises:
        MalformedSchemaError: If a table to create, or a constraint to add,
            violates a structural invariant.

    Example:
        >>> synthesize(SchemaDiff(extra_tables=["legacy"]))
        ['DROP TABLE `legacy`']
    """
    for name in sorted(diff.missing_tables):
        diff.missing_tables[name].check()
    for name in sorted(diff.table_differences):
        diff.table_differences[name].check(name)

    statements: list[str] = []

    for name in sorted(diff.missing_tables):
        statements.append(create_table_statement(diff.missing_tables[name], engine))

    for name in sorted(diff.extra_tables):
        statements.append(f"DROP TABLE {quote_identifier(name)}")

    for name in sorted(diff.table_differences):
        statement = alter_table_statement(name, diff.table_differences[name])
        if statement:
            statements.append(statement)

    logger.debug("Synthesized %d statements", len(statements))
    return statements


# ------------------------------------------------------------------
# Statements
# ------------------------------------------------------------------


def create_table_statement(table: TableSchema, engine: str = DEFAULT_ENGINE) -> str:
    """Render ``CREATE TABLE`` with one definition per line.

    Body order: columns (by position), primary key, unique keys, plain
    keys, foreign keys.
    """
    columns = [column_definition(c) for c in table.ordered_columns()]

    primary_keys: list[str] = []
    unique_keys: list[str] = []
    keys: list[str] = []
    for index in table.indexes.values():
        if index.is_primary:
            primary_keys.append(f"PRIMARY KEY ({quote_columns(index.columns)})")
        elif index.is_unique:
            unique_keys.append(
                f"UNIQUE KEY {quote_identifier(index.name)} ({quote_columns(index.columns)})"
            )
        else:
            keys.append(
                f"KEY {quote_identifier(index.name)} ({quote_columns(index.columns)})"
            )

    foreign_keys = [
        f"CONSTRAINT {foreign_key_definition(fk)}" for fk in table.foreign_keys.values()
    ]

    body = ",\n    ".join(columns + primary_keys + unique_keys + keys + foreign_keys)
    return f"CREATE TABLE {quote_identifier(table.name)} (\n    {body}\n) ENGINE={engine}"


def alter_table_statement(table: str, changes: TableDiff) -> str | None:
    """Render one composite ``ALTER TABLE``, or ``None`` if nothing changes.

    Drops come first and foreign keys are added last. Added columns are
    emitted in source position order, so consecutive ``FIRST``/``AFTER``
    placements reproduce the source column order.
    """
    clauses: list[str] = []

    for fk in changes.drop_foreign_keys.values():
        clauses.append(f"DROP FOREIGN KEY {quote_identifier(fk.name)}")

    for index in changes.drop_indexes.values():
        if index.is_primary:
            clauses.append("DROP PRIMARY KEY")
        else:
            clauses.append(f"DROP INDEX {quote_identifier(index.name)}")

    for column in changes.drop_columns.values():
        clauses.append(f"DROP COLUMN {quote_identifier(column.name)}")

    for column in sorted(changes.add_columns.values(), key=lambda c: c.position):
        clauses.append(f"ADD COLUMN {placed_column_definition(column)}")

    for column in changes.modify_columns.values():
        clauses.append(f"MODIFY COLUMN {placed_column_definition(column)}")

    for index in changes.add_indexes.values():
        clauses.append(add_index_clause(index))

    for fk in changes.add_foreign_keys.values():
        clauses.append(f"ADD CONSTRAINT {foreign_key_definition(fk)}")

    if not clauses:
        return None
    return f"ALTER TABLE {quote_identifier(table)} " + ", ".join(clauses)


# ------------------------------------------------------------------
# Clauses
# ------------------------------------------------------------------


def column_definition(column: ColumnSchema) -> str:
    """Render a column definition shared by CREATE, ADD and MODIFY.

    Examples:
        >>> column_definition(ColumnSchema(
        ...     name="status", data_type="varchar(20)", is_nullable=False,
        ...     default="it's", position=1,
        ... ))
        "`status` varchar(20) NOT NULL DEFAULT 'it''s'"
        >>> column_definition(ColumnSchema(
        ...     name="id", data_type="int", is_nullable=False,
        ...     extra="auto_increment", position=1,
        ... ))
        '`id` int NOT NULL AUTO_INCREMENT'
    """
    sql = f"{quote_identifier(column.name)} {column.data_type}"
    sql += " NULL" if column.is_nullable else " NOT NULL"

    default = column.default
    if isinstance(default, NullDefault):
        # DEFAULT NULL on a NOT NULL column is illegal
        if column.is_nullable:
            sql += " DEFAULT NULL"
    elif isinstance(default, ExpressionDefault):
        sql += f" DEFAULT {default.value}"
    elif isinstance(default, LiteralDefault):
        sql += f" DEFAULT {quote_string(default.value)}"

    if column.extra:
        sql += f" {column.extra.upper()}"

    if column.comment:
        sql += f" COMMENT {quote_string(column.comment)}"

    return sql


def placed_column_definition(column: PlacedColumn) -> str:
    """Column definition followed by ``FIRST`` or ``AFTER `previous```."""
    placement = "FIRST" if column.after is None else f"AFTER {quote_identifier(column.after)}"
    return f"{column_definition(column)} {placement}"


def add_index_clause(index: IndexSchema) -> str:
    """Render the ``ADD`` clause for a primary, unique or plain index."""
    columns = quote_columns(index.columns)
    if index.is_primary:
        return f"ADD PRIMARY KEY ({columns})"
    if index.is_unique:
        return f"ADD UNIQUE KEY {quote_identifier(index.name)} ({columns})"
    return f"ADD INDEX {quote_identifier(index.name)} ({columns})"


def foreign_key_definition(fk: ForeignKeySchema) -> str:
    """Render ``name FOREIGN KEY (...) REFERENCES t (...)`` plus actions.

    ``ON DELETE``/``ON UPDATE`` are only rendered for actions other than
    the implicit ``RESTRICT``.
    """
    sql = (
        f"{quote_identifier(fk.name)} FOREIGN KEY ({quote_columns(fk.columns)}) "
        f"REFERENCES {quote_identifier(fk.referenced_table)} "
        f"({quote_columns(fk.referenced_columns)})"
    )
    if fk.on_delete and fk.on_delete.upper() != IMPLICIT_REFERENTIAL_ACTION:
        sql += f" ON DELETE {fk.on_delete}"
    if fk.on_update and fk.on_update.upper() != IMPLICIT_REFERENTIAL_ACTION:
        sql += f" ON UPDATE {fk.on_update}"
    return sql


# ------------------------------------------------------------------
# Quoting
# ------------------------------------------------------------------


def quote_identifier(name: str) -> str:
    """Backtick-quote an identifier, doubling embedded backticks."""
    return "`" + name.replace("`", "``") + "`"


def quote_columns(columns: tuple[str, ...]) -> str:
    """Quote and comma-join column names, keeping their order."""
    return ", ".join(quote_identifier(c) for c in columns)


def quote_string(value: str) -> str:
    """Single-quote a string literal, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"
