"""Output sinks for generated SQL.

Usage:
    from schema_sync.output import render_script, write_sql_file, write_migration
"""

from schema_sync.output.writer import (
    current_head,
    render_migration,
    render_script,
    write_migration,
    write_sql_file,
)

__all__ = [
    "render_script",
    "render_migration",
    "write_sql_file",
    "write_migration",
    "current_head",
]
