"""Profile-based synchronization entry point.

Resolves a database profile from schema-sync.toml, builds entity metadata
from a registry and synchronizes the profile's database with it.

Usage:
    from schema_sync.factory import synchronize_profile

    result = await synchronize_profile(registry, profile_name="local", dry_run=True)
    for line in result.plan.describe():
        print(line)
"""

import logging
import os
from urllib.parse import quote

from schema_sync.adapters.postgres import AsyncPostgresExecutor
from schema_sync.config.loader import load_config
from schema_sync.config.models import DatabaseProfile, SchemaSyncConfig
from schema_sync.errors import ProfileNotFoundError
from schema_sync.metadata.args import MetadataRegistry
from schema_sync.metadata.builder import build_entity_metadatas
from schema_sync.naming.strategy import DefaultNamingStrategy, NamingStrategy
from schema_sync.schema.dialect import get_dialect
from schema_sync.schema.introspector import PostgresIntrospector
from schema_sync.schema.sync import SchemaSynchronizer, SyncResult

logger = logging.getLogger(__name__)

PROFILE_ENV_VAR = "SCHEMA_SYNC_PROFILE"


# ============================================================================
# Profile Resolution
# ============================================================================


def get_active_profile_name(config: SchemaSyncConfig) -> str:
    """Get active profile name.

    Priority:
    1. SCHEMA_SYNC_PROFILE env var
    2. The only profile, if exactly one is configured
    3. Raise ProfileNotFoundError

    Raises:
        ProfileNotFoundError: If no profile can be chosen
    """
    env_profile = os.environ.get(PROFILE_ENV_VAR)
    if env_profile:
        return env_profile

    if len(config.profiles) == 1:
        return next(iter(config.profiles))

    raise ProfileNotFoundError(
        "No database profile selected.\n"
        f"Set {PROFILE_ENV_VAR}=<name> or pass profile_name.\n"
        f"Available profiles: {', '.join(config.profiles) or 'none'}"
    )


def get_active_profile(
    config: SchemaSyncConfig, profile_name: str | None = None
) -> tuple[str, DatabaseProfile]:
    """Get profile name and configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile is selected or it is not configured
    """
    if profile_name is None:
        profile_name = get_active_profile_name(config)

    if profile_name not in config.profiles:
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in schema-sync.toml.\n"
            f"Available profiles: {', '.join(config.profiles)}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with password substituted

    Example:
        >>> resolve_url(DatabaseProfile(url="postgresql://u:[YOUR-PASSWORD]@h/db", db_password="p@ss"))
        'postgresql://u:p%40ss@h/db'
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Synchronization
# ============================================================================


async def synchronize_profile(
    registry: MetadataRegistry,
    profile_name: str | None = None,
    config: SchemaSyncConfig | None = None,
    naming_strategy: NamingStrategy | None = None,
    dry_run: bool | None = None,
) -> SyncResult:
    """Synchronize a profile's database with the entities in *registry*.

    Args:
        registry: Registered entity facts.
        profile_name: Profile from schema-sync.toml.  If None, uses the
            SCHEMA_SYNC_PROFILE env var or the only configured profile.
        config: Loaded configuration (default: ``load_config()``).
        naming_strategy: Naming strategy (default: ``DefaultNamingStrategy``).
        dry_run: Overrides ``[sync] dry_run`` when given.

    Returns:
        SyncResult of the run.

    Raises:
        ProfileNotFoundError: If no usable profile is configured.
        ValueError: If the profile's provider has no dialect or is not postgres.
    """
    config = config or load_config()
    profile_name, profile = get_active_profile(config, profile_name)
    naming = naming_strategy or DefaultNamingStrategy()
    dialect = get_dialect(profile.provider)
    if dialect.name != "postgres":
        raise ValueError(
            f"Profile '{profile_name}' uses provider '{profile.provider}'; "
            f"only postgres databases can be synchronized from a profile"
        )
    if dry_run is None:
        dry_run = config.sync.dry_run

    metadatas = build_entity_metadatas(registry, naming, config.connection, dialect)
    url = resolve_url(profile)
    logger.info(f"Synchronizing profile '{profile_name}' ({len(metadatas)} entities)")

    executor = AsyncPostgresExecutor(url, dialect=dialect)
    try:
        async with PostgresIntrospector(
            url,
            default_schema=profile.schema_name,
            qualify_default_schema=config.connection.schema_name is not None,
        ) as introspector:
            synchronizer = SchemaSynchronizer(
                introspector,
                executor,
                dialect,
                naming_strategy=naming,
                drop_orphan_tables=config.sync.drop_orphan_tables,
            )
            return await synchronizer.synchronize(metadatas, dry_run=dry_run)
    finally:
        await executor.close()
