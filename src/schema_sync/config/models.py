"""Pydantic models for schema-sync configuration."""

from pydantic import BaseModel, Field

from schema_sync.schema.synthesizer import DEFAULT_ENGINE


class DatabaseProfile(BaseModel):
    """Database connection profile from schema-sync.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class SyncSettings(BaseModel):
    """``[sync]`` section: defaults for the compare command."""

    ignore_tables: list[str] = Field(default_factory=list)
    output_path: str = "database/schema-sync"
    migrations_path: str = "migrations/versions"
    engine: str = DEFAULT_ENGINE
    strict_defaults: bool = False


class SchemaSyncConfig(BaseModel):
    """Complete configuration from schema-sync.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    sync: SyncSettings = Field(default_factory=SyncSettings)
