"""Database adapters package.

Provides the ``DdlExecutor`` and ``LiveSchemaIntrospector`` Protocols and the
async PostgreSQL executor.

Usage:
    from schema_sync.adapters import DdlExecutor, AsyncPostgresExecutor
"""

from schema_sync.adapters.base import DdlExecutor, LiveSchemaIntrospector
from schema_sync.adapters.postgres import AsyncPostgresExecutor, create_async_engine_pooled

__all__ = [
    "DdlExecutor",
    "LiveSchemaIntrospector",
    "AsyncPostgresExecutor",
    "create_async_engine_pooled",
]
