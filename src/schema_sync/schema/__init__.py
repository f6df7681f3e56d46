"""Schema synchronization: canonical tables, diffing, planning and applying.

Usage:
    from schema_sync.schema import SchemaSynchronizer, InMemoryDatabase, get_dialect
"""

from schema_sync.schema.models import (
    Table,
    TableCheck,
    TableColumn,
    TableExclusion,
    TableForeignKey,
    TableIndex,
    TableRowLevelSecurityPolicy,
    TableUnique,
)
from schema_sync.schema.dialect import Dialect, get_dialect
from schema_sync.schema.diff import TableDiff, diff_tables
from schema_sync.schema.plan import SyncPlan, plan_sync
from schema_sync.schema.sync import SchemaSynchronizer, SyncResult, SyncState
from schema_sync.schema.memory import InMemoryDatabase

__all__ = [
    "Table",
    "TableCheck",
    "TableColumn",
    "TableExclusion",
    "TableForeignKey",
    "TableIndex",
    "TableRowLevelSecurityPolicy",
    "TableUnique",
    "Dialect",
    "get_dialect",
    "TableDiff",
    "diff_tables",
    "SyncPlan",
    "plan_sync",
    "SchemaSynchronizer",
    "SyncResult",
    "SyncState",
    "InMemoryDatabase",
]
