"""Schema loading for the CLI.

Resolves a schema identifier to a ``DatabaseSchema``:
1. Snapshot mode: an existing ``.json`` file written by ``save_snapshot``
2. Profile mode: a profile name from schema-sync.toml, introspected live
"""

import asyncio
import logging
from collections.abc import Collection
from pathlib import Path

from schema_sync.config.loader import resolve_url
from schema_sync.config.models import DatabaseProfile, SchemaSyncConfig
from schema_sync.errors import ProfileNotFoundError
from schema_sync.schema.introspector import SchemaIntrospector
from schema_sync.schema.models import DatabaseSchema
from schema_sync.schema.snapshot import load_snapshot

logger = logging.getLogger(__name__)


def get_profile(config: SchemaSyncConfig, profile_name: str) -> DatabaseProfile:
    """Look up a profile by name.

    Raises:
        ProfileNotFoundError: If the profile is not configured
    """
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found. Available: {available}"
        )
    return config.profiles[profile_name]


def is_snapshot_path(identifier: str) -> bool:
    """True if *identifier* points at an existing JSON snapshot file."""
    path = Path(identifier)
    return path.suffix.lower() == ".json" and path.is_file()


async def introspect_profile(
    config: SchemaSyncConfig,
    profile_name: str,
    ignore_tables: Collection[str] = (),
) -> DatabaseSchema:
    """Introspect the database behind a configured profile."""
    profile = get_profile(config, profile_name)
    async with SchemaIntrospector(
        resolve_url(profile), strict_defaults=config.sync.strict_defaults
    ) as introspector:
        return await introspector.introspect(ignore_tables=ignore_tables)


async def load_schema(
    identifier: str,
    config: SchemaSyncConfig,
    ignore_tables: Collection[str] = (),
) -> DatabaseSchema:
    """Load a schema from a snapshot file or a live profile.

    Args:
        identifier: Snapshot path or profile name.
        config: Loaded configuration (profiles and sync settings).
        ignore_tables: Tables left out of the result.

    Returns:
        DatabaseSchema for the identifier.

    Raises:
        ProfileNotFoundError: If *identifier* is neither a snapshot nor a
            configured profile.
    """
    if is_snapshot_path(identifier):
        logger.debug("Loading snapshot %s", identifier)
        return load_snapshot(identifier).without(ignore_tables)

    logger.debug("Introspecting profile %s", identifier)
    return await introspect_profile(config, identifier, ignore_tables)


async def load_schemas(
    source: str,
    target: str,
    config: SchemaSyncConfig,
    ignore_tables: Collection[str] = (),
) -> tuple[DatabaseSchema, DatabaseSchema]:
    """Load the source and target schemas concurrently."""
    source_schema, target_schema = await asyncio.gather(
        load_schema(source, config, ignore_tables),
        load_schema(target, config, ignore_tables),
    )
    return source_schema, target_schema
