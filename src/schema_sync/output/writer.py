"""Write generated statements to disk.

Two sinks are provided:
- ``write_sql_file``: a plain, timestamped ``.sql`` script
- ``write_migration``: an Alembic revision module whose ``upgrade()``
  executes each statement

Usage:
    from schema_sync.output.writer import write_migration, write_sql_file

    path = write_sql_file(statements, "staging", "production", "database/schema-sync")
    path = write_migration(statements, "migrations/versions")
"""

import textwrap
import uuid
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from alembic.script import ScriptDirectory


def render_script(statements: Sequence[str]) -> str:
    """Join statements into a script, one terminator per statement.

    Example:
        >>> render_script(["DROP TABLE `a`;", "DROP TABLE `b`"])
        'DROP TABLE `a`;\\nDROP TABLE `b`;'
    """
    return "\n".join(statement.rstrip().rstrip(";") + ";" for statement in statements)


def write_sql_file(
    statements: Sequence[str],
    source: str,
    target: str,
    directory: str | Path,
    now: datetime | None = None,
) -> Path:
    """Write the script to ``<source>_to_<target>_<timestamp>.sql``.

    Args:
        statements: Statements from ``synthesize``.
        source: Source identifier, used in the file name.
        target: Target identifier, used in the file name.
        directory: Output directory, created if missing.
        now: Timestamp for the file name (default: current time).

    Returns:
        Path of the written file.
    """
    now = now or datetime.now()
    output_dir = Path(directory)
    output_dir.mkdir(parents=True, exist_ok=True)

    filename = f"{_file_safe(source)}_to_{_file_safe(target)}_{now.strftime('%Y%m%d_%H%M%S')}.sql"
    path = output_dir / filename
    path.write_text(render_script(statements) + "\n")
    return path


def current_head(directory: str | Path) -> str | None:
    """Head revision of the Alembic versions in *directory*, if any.

    Raises:
        alembic.util.CommandError: If the directory has more than one head
            or holds a module that is not a revision.
    """
    if not Path(directory).is_dir():
        return None
    script = ScriptDirectory(str(directory), version_locations=[str(directory)])
    return script.get_current_head()


def write_migration(
    statements: Sequence[str],
    directory: str | Path,
    now: datetime | None = None,
    revision: str | None = None,
    down_revision: str | None = None,
) -> Path:
    """Wrap the statements in an Alembic revision module.

    The new revision revises the current head of *directory* unless
    *down_revision* is given. The module's ``downgrade()`` is left empty:
    rolling back a schema sync is done from version control, not generated.

    Args:
        statements: Statements from ``synthesize``.
        directory: Migrations directory, created if missing.
        now: Creation timestamp (default: current time).
        revision: Revision id (default: 12 random hex digits).
        down_revision: Parent revision id (default: current head).

    Returns:
        Path of the written module.

    Raises:
        alembic.util.CommandError: If the current head is ambiguous.
    """
    now = now or datetime.now()
    revision = revision or uuid.uuid4().hex[:12]
    output_dir = Path(directory)
    output_dir.mkdir(parents=True, exist_ok=True)

    if down_revision is None:
        down_revision = current_head(output_dir)

    path = output_dir / f"{now.strftime('%Y_%m_%d_%H%M%S')}_schema_sync_{revision}.py"
    path.write_text(render_migration(statements, revision, down_revision, now))
    return path


def render_migration(
    statements: Sequence[str],
    revision: str,
    down_revision: str | None,
    created: datetime,
) -> str:
    """Render the source of an Alembic revision module."""
    if statements:
        body = "\n".join(
            f"    op.execute({_python_string(statement.rstrip().rstrip(';'))})"
            for statement in statements
        )
    else:
        body = "    pass"

    header = textwrap.dedent(f'''\
        """Schema sync.

        Revision ID: {revision}
        Revises: {down_revision or ""}
        Create Date: {created.strftime("%Y-%m-%d %H:%M:%S.%f")}
        """

        from alembic import op

        # revision identifiers, used by Alembic.
        revision = {revision!r}
        down_revision = {down_revision!r}
        branch_labels = None
        depends_on = None


        def upgrade() -> None:
        ''')
    footer = textwrap.dedent('''\



        def downgrade() -> None:
            # Intentionally empty. Use version control to roll back schema changes.
            pass
        ''')
    return header + body + footer


def _python_string(value: str) -> str:
    """Python literal for *value*, triple-quoted when it spans lines."""
    if "\n" in value and '"""' not in value and not value.endswith('"') and "\\" not in value:
        return '"""' + value + '"""'
    return repr(value)


def _file_safe(identifier: str) -> str:
    """Reduce a profile name or snapshot path to a file-name fragment."""
    stem = Path(identifier).stem if identifier.lower().endswith(".json") else identifier
    return "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in stem)
