"""Configuration management: connection options, profiles, TOML loading.

Usage:
    >>> from schema_sync.config import load_config, ConnectionOptions, DatabaseProfile
"""

from schema_sync.config.loader import load_config
from schema_sync.config.models import (
    ConnectionOptions,
    DatabaseProfile,
    SchemaSyncConfig,
    SyncConfig,
)

__all__ = [
    "load_config",
    "ConnectionOptions",
    "DatabaseProfile",
    "SchemaSyncConfig",
    "SyncConfig",
]
