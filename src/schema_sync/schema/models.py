"""Pydantic models for schema snapshots and structural diffs.

This module contains schema-domain models:
- Snapshot models: ColumnSchema, IndexSchema, ForeignKeySchema,
  TableSchema, DatabaseSchema
- Diff models: PlacedColumn, TableDiff, SchemaDiff

All models are frozen. Mappings keyed by name preserve insertion order;
column order is carried by ``ColumnSchema.position``.

Column defaults live in db-agnostic form in schema_sync.schema.defaults.
"""

from collections import Counter
from collections.abc import Collection, Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schema_sync.errors import MalformedSchemaError
from schema_sync.schema.defaults import ColumnDefault, NoDefault, parse_default


# ============================================================================
# Snapshot Models
# ============================================================================


class ColumnSchema(BaseModel):
    """Schema for a table column.

    ``default`` accepts a resolved variant, or a raw ``str``/``None`` which
    is classified with ``parse_default``. Leaving it out means no default.

    Example:
        >>> col = ColumnSchema(name="id", data_type="int", position=1)
        >>> col.is_nullable
        True
        >>> col.default.kind
        'none'
    """

    model_config = ConfigDict(frozen=True)

    name: str
    data_type: str
    is_nullable: bool = True
    default: ColumnDefault = Field(default_factory=NoDefault)
    extra: str = ""
    comment: str = ""
    position: int

    @field_validator("default", mode="before")
    @classmethod
    def _resolve_raw_default(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return parse_default(value)
        return value


class IndexSchema(BaseModel):
    """Schema for a table index (including the primary key)."""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: tuple[str, ...]
    is_primary: bool = False
    is_unique: bool = False


class ForeignKeySchema(BaseModel):
    """Schema for a foreign-key constraint."""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: tuple[str, ...]
    referenced_table: str
    referenced_columns: tuple[str, ...]
    on_update: str | None = None
    on_delete: str | None = None


class TableSchema(BaseModel):
    """Schema for a base table."""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: dict[str, ColumnSchema] = Field(default_factory=dict)
    indexes: dict[str, IndexSchema] = Field(default_factory=dict)
    foreign_keys: dict[str, ForeignKeySchema] = Field(default_factory=dict)

    @classmethod
    def from_definitions(
        cls,
        name: str,
        columns: Iterable[ColumnSchema],
        indexes: Iterable[IndexSchema] = (),
        foreign_keys: Iterable[ForeignKeySchema] = (),
    ) -> "TableSchema":
        """Build a table from sequences, keying each definition by its name.

        Example:
            >>> table = TableSchema.from_definitions(
            ...     "users",
            ...     [ColumnSchema(name="id", data_type="int", position=1)],
            ... )
            >>> list(table.columns)
            ['id']
        """
        return cls(
            name=name,
            columns={c.name: c for c in columns},
            indexes={i.name: i for i in indexes},
            foreign_keys={fk.name: fk for fk in foreign_keys},
        )

    def ordered_columns(self) -> list[ColumnSchema]:
        """Columns in declared (position) order."""
        return sorted(self.columns.values(), key=lambda c: c.position)

    @property
    def primary_index(self) -> IndexSchema | None:
        """The primary-key index, if the table has one."""
        for index in self.indexes.values():
            if index.is_primary:
                return index
        return None

    def check(self) -> None:
        """Verify structural invariants.

        Raises:
            MalformedSchemaError: On mismatched keys, duplicate column
                positions, more than one primary index, empty index or
                foreign-key column lists, or foreign keys whose column and
                referenced-column counts differ.
        """
        for key, column in self.columns.items():
            _check_key(self.name, "column", key, column.name)

        counts = Counter(c.position for c in self.columns.values())
        duplicates = sorted(pos for pos, n in counts.items() if n > 1)
        if duplicates:
            raise MalformedSchemaError(
                f"Table '{self.name}' has duplicate column positions: {duplicates}"
            )

        for key, index in self.indexes.items():
            _check_key(self.name, "index", key, index.name)
            if not index.columns:
                raise MalformedSchemaError(
                    f"Index '{index.name}' on table '{self.name}' has no columns"
                )

        primaries = [i.name for i in self.indexes.values() if i.is_primary]
        if len(primaries) > 1:
            raise MalformedSchemaError(
                f"Table '{self.name}' has more than one primary index: {primaries}"
            )

        for key, fk in self.foreign_keys.items():
            _check_key(self.name, "foreign key", key, fk.name)
            check_foreign_key(self.name, fk)


class DatabaseSchema(BaseModel):
    """Complete base-table structure of one database.

    Example:
        >>> DatabaseSchema().tables
        {}
    """

    model_config = ConfigDict(frozen=True)

    tables: dict[str, TableSchema] = Field(default_factory=dict)

    def check(self) -> None:
        """Verify invariants of every table."""
        for key, table in self.tables.items():
            _check_key(key, "table", key, table.name)
            table.check()

    def without(self, ignore_tables: Collection[str]) -> "DatabaseSchema":
        """Return a copy without the named tables."""
        if not ignore_tables:
            return self
        return DatabaseSchema(
            tables={
                name: table
                for name, table in self.tables.items()
                if name not in ignore_tables
            }
        )


def _check_key(table: str, kind: str, key: str, name: str) -> None:
    if key != name:
        raise MalformedSchemaError(
            f"Table '{table}': {kind} stored under '{key}' is named '{name}'"
        )


def check_foreign_key(table: str, fk: ForeignKeySchema) -> None:
    """Raise ``MalformedSchemaError`` if *fk* is not well formed."""
    if not fk.columns:
        raise MalformedSchemaError(
            f"Foreign key '{fk.name}' on table '{table}' has no columns"
        )
    if len(fk.columns) != len(fk.referenced_columns):
        raise MalformedSchemaError(
            f"Foreign key '{fk.name}' on table '{table}' has "
            f"{len(fk.columns)} columns but {len(fk.referenced_columns)} "
            f"referenced columns"
        )


# ============================================================================
# Diff Models
# ============================================================================


class PlacedColumn(ColumnSchema):
    """A column to add or redefine, with its placement in the final order.

    ``after`` names the column it must follow; ``None`` places it first.
    """

    after: str | None = None

    @classmethod
    def place(cls, column: ColumnSchema, after: str | None) -> "PlacedColumn":
        """Attach a placement to an existing column definition."""
        return cls(**dict(column), after=after)


class TableDiff(BaseModel):
    """Changes needed to turn a target table into its source counterpart."""

    model_config = ConfigDict(frozen=True)

    add_columns: dict[str, PlacedColumn] = Field(default_factory=dict)
    modify_columns: dict[str, PlacedColumn] = Field(default_factory=dict)
    drop_columns: dict[str, ColumnSchema] = Field(default_factory=dict)
    add_indexes: dict[str, IndexSchema] = Field(default_factory=dict)
    drop_indexes: dict[str, IndexSchema] = Field(default_factory=dict)
    add_foreign_keys: dict[str, ForeignKeySchema] = Field(default_factory=dict)
    drop_foreign_keys: dict[str, ForeignKeySchema] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True if no category holds a change."""
        return self.change_count == 0

    @property
    def change_count(self) -> int:
        """Total number of entries across all categories."""
        return (
            len(self.add_columns)
            + len(self.modify_columns)
            + len(self.drop_columns)
            + len(self.add_indexes)
            + len(self.drop_indexes)
            + len(self.add_foreign_keys)
            + len(self.drop_foreign_keys)
        )

    def check(self, table: str) -> None:
        """Verify the constraints this diff would create are well formed."""
        primaries = [i.name for i in self.add_indexes.values() if i.is_primary]
        if len(primaries) > 1:
            raise MalformedSchemaError(
                f"Diff for table '{table}' adds more than one primary index: {primaries}"
            )
        for fk in self.add_foreign_keys.values():
            check_foreign_key(table, fk)

    def summary(self) -> str:
        """One-line description such as ``+1 column, -1 index``."""
        parts = []
        for sign, entries, noun in (
            ("+", self.add_columns, "column"),
            ("~", self.modify_columns, "column"),
            ("-", self.drop_columns, "column"),
            ("+", self.add_indexes, "index"),
            ("-", self.drop_indexes, "index"),
            ("+", self.add_foreign_keys, "foreign key"),
            ("-", self.drop_foreign_keys, "foreign key"),
        ):
            if entries:
                plural = "indexes" if noun == "index" else f"{noun}s"
                parts.append(f"{sign}{len(entries)} {noun if len(entries) == 1 else plural}")
        return ", ".join(parts)


class SchemaDiff(BaseModel):
    """Result of comparing a source schema against a target schema.

    Example:
        >>> diff = SchemaDiff()
        >>> diff.is_empty
        True
        >>> diff.format_report()
        'Schemas are in sync'
    """

    model_config = ConfigDict(frozen=True)

    missing_tables: dict[str, TableSchema] = Field(default_factory=dict)
    extra_tables: list[str] = Field(default_factory=list)
    table_differences: dict[str, TableDiff] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True if the target already matches the source."""
        return not (self.missing_tables or self.extra_tables or self.table_differences)

    @property
    def change_count(self) -> int:
        """Count of missing tables, extra tables and per-table changes."""
        return (
            len(self.missing_tables)
            + len(self.extra_tables)
            + sum(d.change_count for d in self.table_differences.values())
        )

    def format_report(self) -> str:
        """Format the diff as a human-readable report."""
        if self.is_empty:
            return "Schemas are in sync"

        lines = ["Schema differences:"]

        if self.missing_tables:
            lines.append(f"\n  Missing tables ({len(self.missing_tables)}):")
            for table in sorted(self.missing_tables):
                lines.append(f"    - {table}")

        if self.extra_tables:
            lines.append(f"\n  Extra tables ({len(self.extra_tables)}):")
            for table in self.extra_tables:
                lines.append(f"    - {table}")

        if self.table_differences:
            lines.append(f"\n  Changed tables ({len(self.table_differences)}):")
            for table in sorted(self.table_differences):
                lines.append(f"    - {table}: {self.table_differences[table].summary()}")

        return "\n".join(lines)
