"""schema-sync: entity metadata resolution and schema synchronization.

Builds table-level metadata from registered entity declarations (columns,
relations, embeddeds, inheritance, trees, constraints, row-level security)
and synchronizes a live database with it through an inspect, diff, plan and
apply pipeline.

Usage:
    from schema_sync import MetadataRegistry, TableArgs, ColumnArgs, build_entity_metadatas
    from schema_sync import SchemaSynchronizer, InMemoryDatabase, get_dialect
    from schema_sync import load_config, synchronize_profile
"""

__version__ = "0.1.0"

# Errors
from schema_sync.errors import (
    CannotBuildIdMapError,
    DdlExecutionError,
    DuplicateConstraintNameError,
    MetadataNotFoundError,
    MissingPrimaryColumnError,
    ProfileNotFoundError,
    SchemaSyncError,
)

# Metadata
from schema_sync.metadata import (
    ColumnArgs,
    EntityMetadata,
    MetadataRegistry,
    RelationArgs,
    TableArgs,
    build_entity_metadatas,
)

# Naming
from schema_sync.naming import DefaultNamingStrategy, NamingStrategy

# Schema
from schema_sync.schema import (
    InMemoryDatabase,
    SchemaSynchronizer,
    SyncResult,
    Table,
    get_dialect,
)
from schema_sync.schema.introspector import PostgresIntrospector

# Adapters
from schema_sync.adapters import AsyncPostgresExecutor, DdlExecutor, LiveSchemaIntrospector

# Config
from schema_sync.config import ConnectionOptions, DatabaseProfile, load_config

# Factory
from schema_sync.factory import resolve_url, synchronize_profile

__all__ = [
    # Errors
    "SchemaSyncError",
    "MetadataNotFoundError",
    "MissingPrimaryColumnError",
    "CannotBuildIdMapError",
    "DuplicateConstraintNameError",
    "DdlExecutionError",
    "ProfileNotFoundError",
    # Metadata
    "MetadataRegistry",
    "TableArgs",
    "ColumnArgs",
    "RelationArgs",
    "EntityMetadata",
    "build_entity_metadatas",
    # Naming
    "NamingStrategy",
    "DefaultNamingStrategy",
    # Schema
    "Table",
    "get_dialect",
    "SchemaSynchronizer",
    "SyncResult",
    "InMemoryDatabase",
    "PostgresIntrospector",
    # Adapters
    "DdlExecutor",
    "LiveSchemaIntrospector",
    "AsyncPostgresExecutor",
    # Config
    "load_config",
    "ConnectionOptions",
    "DatabaseProfile",
    # Factory
    "synchronize_profile",
    "resolve_url",
]
