"""TOML configuration loading for schema-sync."""

import os
import tomllib
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import quote

from schema_sync.config.models import DatabaseProfile, SchemaSyncConfig, SyncSettings

CONFIG_FILE_NAME = "schema-sync.toml"
CONFIG_PATH_ENV_VAR = "SCHEMA_SYNC_CONFIG"


def load_config(config_path: Path | None = None) -> SchemaSyncConfig:
    """Load schema-sync configuration from a TOML file.

    Args:
        config_path: Path to the config file. Defaults to the
            ``SCHEMA_SYNC_CONFIG`` environment variable, then
            ``schema-sync.toml`` in the current working directory.

    Returns:
        SchemaSyncConfig with all profiles and sync settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If config format is invalid
    """
    if config_path is None:
        env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
        config_path = Path(env_path) if env_path else Path.cwd() / CONFIG_FILE_NAME

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config not found: {config_path}\n"
            f"Create {CONFIG_FILE_NAME} with a [profiles.<name>] section per database."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = DatabaseProfile(**profile_data)

    return SchemaSyncConfig(
        profiles=profiles,
        sync=SyncSettings(**data.get("sync", {})),
    )


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Example:
        >>> resolve_url(DatabaseProfile(
        ...     url="mysql://app:[YOUR-PASSWORD]@db/app", db_password="p@ss"
        ... ))
        'mysql://app:p%40ss@db/app'
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def resolve_ignore_tables(
    config_ignore: Iterable[str], option_value: str | None = None
) -> frozenset[str]:
    """Merge the configured ignore-list with a comma-separated CLI option.

    Blank entries are dropped and names are trimmed.

    Example:
        >>> sorted(resolve_ignore_tables(["sessions"], " cache, ,jobs"))
        ['cache', 'jobs', 'sessions']
    """
    names = [name.strip() for name in config_ignore]
    if option_value:
        names.extend(part.strip() for part in option_value.split(","))
    return frozenset(name for name in names if name)
