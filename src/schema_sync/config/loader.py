"""Configuration loader for schema-sync.toml files."""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from schema_sync.config.models import ConnectionOptions, DatabaseProfile, SchemaSyncConfig, SyncConfig

CONFIG_FILE_NAME = "schema-sync.toml"


def load_config(config_path: Path | None = None) -> SchemaSyncConfig:
    """Load synchronization configuration from TOML file.

    Sections: ``[connection]`` (``ConnectionOptions``), ``[sync]``
    (``SyncConfig``) and ``[profiles.<name>]`` (``DatabaseProfile``).

    Args:
        config_path: Path to schema-sync.toml (default: current working
            directory)

    Returns:
        SchemaSyncConfig with all profiles

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILE_NAME

    if not config_path.exists():
        raise FileNotFoundError(
            f"Schema sync config not found: {config_path}\n"
            f"Create {CONFIG_FILE_NAME} with a [profiles.<name>] section."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        # Parse profiles
        profiles = {}
        for name, profile_data in data.get("profiles", {}).items():
            profiles[name] = DatabaseProfile(**profile_data)

        return SchemaSyncConfig(
            profiles=profiles,
            connection=ConnectionOptions(**data.get("connection", {})),
            sync=SyncConfig(**data.get("sync", {})),
        )
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Invalid configuration in {config_path}: {e}") from e
