"""Tests for schema snapshot and diff models."""

import pytest
from pydantic import ValidationError

from schema_sync.errors import MalformedSchemaError
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


def _column(name: str, position: int, data_type: str = "int") -> ColumnSchema:
    return ColumnSchema(name=name, data_type=data_type, position=position)


class TestTableSchema:
    """Construction helpers and accessors."""

    def test_from_definitions_keys_by_name(self) -> None:
        table = TableSchema.from_definitions(
            "users",
            [_column("id", 1), _column("email", 2)],
            indexes=[IndexSchema(name="PRIMARY", columns=("id",), is_primary=True)],
        )
        assert list(table.columns) == ["id", "email"]
        assert list(table.indexes) == ["PRIMARY"]
        assert table.foreign_keys == {}

    def test_ordered_columns_follow_position(self) -> None:
        table = TableSchema.from_definitions("t", [_column("b", 2), _column("a", 1), _column("c", 3)])
        assert [c.name for c in table.ordered_columns()] == ["a", "b", "c"]

    def test_primary_index(self) -> None:
        pk = IndexSchema(name="PRIMARY", columns=("id",), is_primary=True)
        table = TableSchema.from_definitions(
            "t", [_column("id", 1)], indexes=[IndexSchema(name="idx", columns=("id",)), pk]
        )
        assert table.primary_index == pk

    def test_no_primary_index(self) -> None:
        assert TableSchema.from_definitions("t", [_column("id", 1)]).primary_index is None

    def test_models_are_frozen(self) -> None:
        column = _column("id", 1)
        with pytest.raises(ValidationError):
            column.name = "other"


class TestTableSchemaCheck:
    """Structural invariants raise MalformedSchemaError."""

    def test_valid_table_passes(self) -> None:
        TableSchema.from_definitions(
            "orders",
            [_column("id", 1), _column("user_id", 2)],
            indexes=[IndexSchema(name="PRIMARY", columns=("id",), is_primary=True)],
            foreign_keys=[
                ForeignKeySchema(
                    name="fk_user",
                    columns=("user_id",),
                    referenced_table="users",
                    referenced_columns=("id",),
                )
            ],
        ).check()

    def test_duplicate_positions(self) -> None:
        table = TableSchema.from_definitions("t", [_column("a", 1), _column("b", 1)])
        with pytest.raises(MalformedSchemaError, match="duplicate column positions"):
            table.check()

    def test_two_primary_indexes(self) -> None:
        table = TableSchema.from_definitions(
            "t",
            [_column("a", 1), _column("b", 2)],
            indexes=[
                IndexSchema(name="PRIMARY", columns=("a",), is_primary=True),
                IndexSchema(name="pk2", columns=("b",), is_primary=True),
            ],
        )
        with pytest.raises(MalformedSchemaError, match="more than one primary"):
            table.check()

    def test_index_without_columns(self) -> None:
        table = TableSchema.from_definitions(
            "t", [_column("a", 1)], indexes=[IndexSchema(name="idx", columns=())]
        )
        with pytest.raises(MalformedSchemaError, match="has no columns"):
            table.check()

    def test_foreign_key_length_mismatch(self) -> None:
        table = TableSchema.from_definitions(
            "t",
            [_column("a", 1), _column("b", 2)],
            foreign_keys=[
                ForeignKeySchema(
                    name="fk",
                    columns=("a", "b"),
                    referenced_table="other",
                    referenced_columns=("id",),
                )
            ],
        )
        with pytest.raises(MalformedSchemaError, match="2 columns but 1 referenced"):
            table.check()

    def test_key_name_mismatch(self) -> None:
        table = TableSchema(name="t", columns={"a": _column("b", 1)})
        with pytest.raises(MalformedSchemaError, match="stored under 'a' is named 'b'"):
            table.check()

    def test_database_table_key_mismatch(self) -> None:
        schema = DatabaseSchema(tables={"users": TableSchema(name="accounts")})
        with pytest.raises(MalformedSchemaError):
            schema.check()


class TestDatabaseSchemaWithout:
    """Ignore-list filtering."""

    def test_removes_named_tables(self) -> None:
        schema = DatabaseSchema(
            tables={"a": TableSchema(name="a"), "b": TableSchema(name="b")}
        )
        assert list(schema.without({"a"}).tables) == ["b"]
        assert list(schema.tables) == ["a", "b"]

    def test_empty_ignore_returns_same_schema(self) -> None:
        schema = DatabaseSchema(tables={"a": TableSchema(name="a")})
        assert schema.without(()) is schema


class TestPlacedColumn:
    """Placement is attached without altering the definition."""

    def test_place_copies_definition(self) -> None:
        column = ColumnSchema(
            name="discount", data_type="decimal(5,2)", default="0.00", comment="pct", position=4
        )
        placed = PlacedColumn.place(column, after="total")

        assert placed.after == "total"
        assert placed.name == "discount"
        assert placed.default == column.default
        assert placed.comment == "pct"
        assert placed.position == 4

    def test_place_first(self) -> None:
        assert PlacedColumn.place(_column("id", 1), after=None).after is None


class TestTableDiff:
    """Counting, summaries and checks on a per-table diff."""

    def test_empty(self) -> None:
        diff = TableDiff()
        assert diff.is_empty
        assert diff.change_count == 0
        assert diff.summary() == ""

    def test_summary_pluralizes(self) -> None:
        diff = TableDiff(
            add_columns={"a": PlacedColumn.place(_column("a", 1), None)},
            drop_indexes={
                "i1": IndexSchema(name="i1", columns=("a",)),
                "i2": IndexSchema(name="i2", columns=("b",)),
            },
            add_foreign_keys={
                "fk": ForeignKeySchema(
                    name="fk", columns=("a",), referenced_table="t", referenced_columns=("id",)
                )
            },
        )
        assert diff.change_count == 4
        assert diff.summary() == "+1 column, -2 indexes, +1 foreign key"

    def test_check_rejects_two_primary_additions(self) -> None:
        diff = TableDiff(
            add_indexes={
                "PRIMARY": IndexSchema(name="PRIMARY", columns=("a",), is_primary=True),
                "pk2": IndexSchema(name="pk2", columns=("b",), is_primary=True),
            }
        )
        with pytest.raises(MalformedSchemaError):
            diff.check("t")

    def test_check_rejects_malformed_foreign_key(self) -> None:
        diff = TableDiff(
            add_foreign_keys={
                "fk": ForeignKeySchema(
                    name="fk", columns=(), referenced_table="t", referenced_columns=()
                )
            }
        )
        with pytest.raises(MalformedSchemaError, match="has no columns"):
            diff.check("orders")


class TestSchemaDiffReport:
    """Human-readable report."""

    def test_in_sync(self) -> None:
        diff = SchemaDiff()
        assert diff.is_empty
        assert diff.format_report() == "Schemas are in sync"

    def test_report_sections(self) -> None:
        diff = SchemaDiff(
            missing_tables={"users": TableSchema(name="users")},
            extra_tables=["legacy"],
            table_differences={
                "orders": TableDiff(drop_columns={"old": _column("old", 3)})
            },
        )
        report = diff.format_report()

        assert not diff.is_empty
        assert diff.change_count == 3
        assert report.startswith("Schema differences:")
        assert "Missing tables (1):\n    - users" in report
        assert "Extra tables (1):\n    - legacy" in report
        assert "orders: -1 column" in report
