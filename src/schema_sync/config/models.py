"""Pydantic models for connection options and synchronization configuration."""

from pydantic import BaseModel, Field


# ============================================================================
# Configuration Models
# ============================================================================


class ConnectionOptions(BaseModel):
    """Options of the target connection that shape entity metadata.

    ``max_identifier_length`` overrides the dialect's limit; ``0`` disables
    shortening of generated identifiers.
    """

    type: str = "postgres"
    database: str | None = None
    schema_name: str | None = None
    entity_prefix: str = ""
    max_identifier_length: int | None = None


class DatabaseProfile(BaseModel):
    """Database connection profile from schema-sync.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: str = "postgres"  # Defaults to postgres
    schema_name: str = "public"  # Schema introspected for live tables


class SyncConfig(BaseModel):
    """Behaviour of a synchronization run."""

    drop_orphan_tables: bool = False
    dry_run: bool = False


class SchemaSyncConfig(BaseModel):
    """Complete configuration from schema-sync.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    connection: ConnectionOptions = Field(default_factory=ConnectionOptions)
    sync: SyncConfig = Field(default_factory=SyncConfig)
