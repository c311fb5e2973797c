"""MySQL / MariaDB schema introspection via information_schema.

This module queries a live database to build a ``DatabaseSchema``:
- Base tables (views are skipped)
- Columns: raw column type, nullability, default, extra, comment, position
- Indexes: name, ordered columns, primary/unique flags
- Foreign keys: ordered columns, referenced table and columns, actions

Uses SQLAlchemy's async engine with the ``aiomysql`` driver.
"""

import logging
from collections.abc import Collection
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from schema_sync.schema.defaults import parse_default
from schema_sync.schema.models import (
    ColumnSchema,
    DatabaseSchema,
    ForeignKeySchema,
    IndexSchema,
    TableSchema,
)

logger = logging.getLogger(__name__)

PRIMARY_INDEX_NAME = "PRIMARY"


def normalize_url(database_url: str) -> str:
    """Rewrite a MySQL/MariaDB URL to the ``mysql+aiomysql://`` scheme.

    Example:
        >>> normalize_url("mysql://app@db:3306/shop")
        'mysql+aiomysql://app@db:3306/shop'
    """
    scheme, separator, rest = database_url.partition("://")
    if not separator:
        raise ValueError(f"Invalid database URL: {database_url!r}")
    if scheme.split("+")[0].lower() not in ("mysql", "mariadb"):
        raise ValueError(f"Unsupported database URL scheme: {scheme}")
    return f"mysql+aiomysql://{rest}"


class SchemaIntrospector:
    """Introspects a MySQL or MariaDB database schema.

    Usage:
        async with SchemaIntrospector(database_url) as introspector:
            schema = await introspector.introspect(ignore_tables={"sessions"})
    """

    def __init__(
        self,
        database_url: str,
        excluded_tables: Collection[str] = (),
        connect_timeout: int = 10,
        strict_defaults: bool = False,
    ):
        """Initialize with database connection URL.

        Args:
            database_url: ``mysql://``, ``mariadb://`` or
                ``mysql+aiomysql://`` URL including the database name.
            excluded_tables: Tables never introspected by this instance.
            connect_timeout: Connection timeout in seconds.
            strict_defaults: Raise on ambiguous column defaults instead of
                treating them as literals.
        """
        self._database_url = normalize_url(database_url)
        self._excluded_tables = frozenset(excluded_tables)
        self._connect_timeout = connect_timeout
        self._strict_defaults = strict_defaults
        self._engine: AsyncEngine | None = None
        self._conn: AsyncConnection | None = None
        self._mariadb = False

    async def __aenter__(self) -> "SchemaIntrospector":
        """Open the engine and a connection."""
        self._engine = create_async_engine(
            self._database_url,
            pool_pre_ping=True,
            connect_args={"connect_timeout": self._connect_timeout},
        )
        self._conn = await self._engine.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the connection and dispose of the engine."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    async def test_connection(self) -> bool:
        """Run ``SELECT 1``."""
        rows = await self._fetch("SELECT 1")
        return bool(rows) and rows[0][0] == 1

    async def introspect(self, ignore_tables: Collection[str] = ()) -> DatabaseSchema:
        """Introspect every base table of the connected database.

        Args:
            ignore_tables: Extra table names to skip, on top of the
                excluded tables given to the constructor.

        Returns:
            DatabaseSchema with columns, indexes and foreign keys per table.
        """
        database = await self._current_database()
        version = await self._fetch("SELECT VERSION()")
        self._mariadb = bool(version) and "mariadb" in str(version[0][0]).lower()

        tables: dict[str, TableSchema] = {}
        for table_name in await self._get_tables(database):
            if table_name in self._excluded_tables or table_name in ignore_tables:
                continue

            tables[table_name] = TableSchema(
                name=table_name,
                columns=await self._get_columns(database, table_name),
                indexes=await self._get_indexes(database, table_name),
                foreign_keys=await self._get_foreign_keys(database, table_name),
            )

        logger.debug("Introspected %d tables from %s", len(tables), database)
        return DatabaseSchema(tables=tables)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _fetch(self, query: str, params: dict[str, Any] | None = None) -> list[tuple]:
        if self._conn is None:
            raise RuntimeError("Introspector not connected. Use async with statement.")
        result = await self._conn.execute(text(query), params or {})
        return [tuple(row) for row in result.fetchall()]

    async def _current_database(self) -> str:
        rows = await self._fetch("SELECT DATABASE()")
        if not rows or rows[0][0] is None:
            raise ValueError("No database selected. Include it in the connection URL.")
        return rows[0][0]

    async def _get_tables(self, database: str) -> list[str]:
        """Get all base table names, sorted."""
        rows = await self._fetch(
            """
            SELECT TABLE_NAME
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = :schema
              AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
            """,
            {"schema": database},
        )
        return [row[0] for row in rows]

    async def _get_columns(self, database: str, table_name: str) -> dict[str, ColumnSchema]:
        """Get columns for a table in ordinal order."""
        rows = await self._fetch(
            """
            SELECT
                COLUMN_NAME,
                COLUMN_TYPE,
                IS_NULLABLE,
                COLUMN_DEFAULT,
                EXTRA,
                COLUMN_COMMENT,
                ORDINAL_POSITION
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_SCHEMA = :schema
              AND TABLE_NAME = :table
            ORDER BY ORDINAL_POSITION
            """,
            {"schema": database, "table": table_name},
        )
        columns = {}
        for name, column_type, is_nullable, default, extra, comment, position in rows:
            columns[name] = ColumnSchema(
                name=name,
                data_type=column_type,
                is_nullable=(is_nullable == "YES"),
                default=parse_default(
                    self._normalize_default_text(default), strict=self._strict_defaults
                ),
                extra=self._normalize_extra(extra),
                comment=comment or "",
                position=int(position),
            )
        return columns

    async def _get_indexes(self, database: str, table_name: str) -> dict[str, IndexSchema]:
        """Get indexes for a table, including the primary key."""
        rows = await self._fetch(
            """
            SELECT INDEX_NAME, NON_UNIQUE, COLUMN_NAME
            FROM INFORMATION_SCHEMA.STATISTICS
            WHERE TABLE_SCHEMA = :schema
              AND TABLE_NAME = :table
            ORDER BY INDEX_NAME, SEQ_IN_INDEX
            """,
            {"schema": database, "table": table_name},
        )

        index_columns: dict[str, list[str]] = {}
        index_unique: dict[str, bool] = {}
        functional: set[str] = set()

        for name, non_unique, column_name in rows:
            if name not in index_columns:
                index_columns[name] = []
                index_unique[name] = int(non_unique) == 0
            if column_name is None:
                functional.add(name)
            else:
                index_columns[name].append(column_name)

        indexes = {}
        for name, columns in index_columns.items():
            if name in functional:
                logger.warning(
                    "Skipping functional index %s on %s: expression key parts are not compared",
                    name,
                    table_name,
                )
                continue
            indexes[name] = IndexSchema(
                name=name,
                columns=columns,
                is_primary=(name == PRIMARY_INDEX_NAME),
                is_unique=index_unique[name],
            )
        return indexes

    async def _get_foreign_keys(
        self, database: str, table_name: str
    ) -> dict[str, ForeignKeySchema]:
        """Get foreign-key constraints for a table."""
        rows = await self._fetch(
            """
            SELECT
                k.CONSTRAINT_NAME,
                k.COLUMN_NAME,
                k.REFERENCED_TABLE_NAME,
                k.REFERENCED_COLUMN_NAME,
                c.UPDATE_RULE,
                c.DELETE_RULE
            FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE k
            JOIN INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS c
                ON k.CONSTRAINT_NAME = c.CONSTRAINT_NAME
                AND k.CONSTRAINT_SCHEMA = c.CONSTRAINT_SCHEMA
                AND k.TABLE_NAME = c.TABLE_NAME
            WHERE k.TABLE_SCHEMA = :schema
              AND k.TABLE_NAME = :table
              AND k.REFERENCED_TABLE_NAME IS NOT NULL
            ORDER BY k.CONSTRAINT_NAME, k.ORDINAL_POSITION
            """,
            {"schema": database, "table": table_name},
        )

        parts: dict[str, dict[str, Any]] = {}
        for name, column, ref_table, ref_column, update_rule, delete_rule in rows:
            if name not in parts:
                parts[name] = {
                    "name": name,
                    "columns": [],
                    "referenced_table": ref_table,
                    "referenced_columns": [],
                    "on_update": update_rule,
                    "on_delete": delete_rule,
                }
            parts[name]["columns"].append(column)
            parts[name]["referenced_columns"].append(ref_column)

        return {name: ForeignKeySchema(**fields) for name, fields in parts.items()}

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def _normalize_extra(self, extra: str | None) -> str:
        """Drop the ``DEFAULT_GENERATED`` marker MySQL 8 adds to expression defaults."""
        if not extra:
            return ""
        words = [w for w in extra.split() if w.upper() != "DEFAULT_GENERATED"]
        return " ".join(words)

    def _normalize_default_text(self, default: str | None) -> str | None:
        """Unquote MariaDB-style literal defaults (``'abc'`` -> ``abc``).

        MariaDB 10.2.7+ quotes literal defaults and reports a null default
        as the string ``NULL``; MySQL reports literals bare.
        """
        if default is None or not self._mariadb:
            return default
        if len(default) >= 2 and default.startswith("'") and default.endswith("'"):
            return default[1:-1].replace("''", "'")
        return default
