"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from schema_sync.config import load_config, DatabaseProfile, SchemaSyncConfig
"""

from schema_sync.config.loader import load_config, resolve_ignore_tables, resolve_url
from schema_sync.config.models import DatabaseProfile, SchemaSyncConfig, SyncSettings

__all__ = [
    "load_config",
    "resolve_url",
    "resolve_ignore_tables",
    "DatabaseProfile",
    "SchemaSyncConfig",
    "SyncSettings",
]
