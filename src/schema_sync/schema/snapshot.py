"""JSON snapshots of a ``DatabaseSchema``.

A snapshot lets either side of a comparison come from a file instead of a
live connection (e.g. a schema captured from production last week).

Usage:
    from schema_sync.schema.snapshot import load_snapshot, save_snapshot

    save_snapshot(schema, "snapshots/production.json")
    schema = load_snapshot("snapshots/production.json")
"""

from pathlib import Path

from pydantic import ValidationError

from schema_sync.errors import MalformedSchemaError
from schema_sync.schema.models import DatabaseSchema


def save_snapshot(schema: DatabaseSchema, path: str | Path) -> Path:
    """Write *schema* as indented JSON, creating parent directories.

    Returns:
        The path written.
    """
    snapshot_path = Path(path)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    snapshot_path.write_text(schema.model_dump_json(indent=2) + "\n")
    return snapshot_path


def load_snapshot(path: str | Path) -> DatabaseSchema:
    """Load and check a snapshot written by ``save_snapshot``.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedSchemaError: If the content is not a valid schema.
    """
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"Snapshot not found: {snapshot_path}")

    try:
        schema = DatabaseSchema.model_validate_json(snapshot_path.read_text())
    except ValidationError as e:
        raise MalformedSchemaError(f"Invalid snapshot {snapshot_path.name}: {e}") from e

    schema.check()
    return schema
