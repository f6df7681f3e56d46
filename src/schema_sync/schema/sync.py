"""Schema synchronization: inspect, diff, plan and apply (async).

Brings a live database in line with the tables described by entity
metadata.  The stages can be run one by one or all together:

1. **inspect**: build the desired tables and read their live counterparts.
2. **diff**: compare each pair structurally (pure logic).
3. **plan**: order every difference into DDL operations (pure logic).
4. **apply**: run the operations through an executor.

A table missing from the live database is an ordinary input: it ends up as a
``CreateTable`` operation.  When an operation fails, the rest of that table's
operations (and foreign keys pointing at the table) are skipped; other tables
carry on.  A table whose definition reuses a constraint name is left out the
same way.

Usage:
    from schema_sync.schema.sync import SchemaSynchronizer
    from schema_sync.schema.dialect import get_dialect

    async with PostgresIntrospector(url) as introspector:
        executor = AsyncPostgresExecutor(url)
        synchronizer = SchemaSynchronizer(introspector, executor, get_dialect("postgres"))

        # Preview the plan
        result = await synchronizer.synchronize(metadatas, dry_run=True)
        for line in result.plan.describe():
            print(line)

        # Apply it
        result = await synchronizer.synchronize(metadatas)
        result.raise_for_errors()
        await executor.close()
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from schema_sync.adapters.base import DdlExecutor, LiveSchemaIntrospector
from schema_sync.errors import DdlExecutionError, DuplicateConstraintNameError
from schema_sync.metadata.types import TableType
from schema_sync.naming.strategy import NamingStrategy
from schema_sync.schema.dialect import Dialect
from schema_sync.schema.diff import TableDiff, diff_tables
from schema_sync.schema.models import Table
from schema_sync.schema.operations import CreateForeignKey, Operation
from schema_sync.schema.plan import SyncPlan, plan_sync

if TYPE_CHECKING:
    from schema_sync.metadata.entity import EntityMetadata

logger = logging.getLogger(__name__)

# Table types that own a physical table; entity children live in their root's table
SYNCHRONIZED_TABLE_TYPES = (TableType.REGULAR, TableType.JUNCTION, TableType.CLOSURE_JUNCTION)


class SyncState(str, Enum):
    """Stage a synchronizer is in; ``APPLY`` is skipped for an empty plan."""

    INSPECT = "inspect"
    DIFF = "diff"
    PLAN = "plan"
    APPLY = "apply"
    DONE = "done"


@dataclass
class SyncResult:
    """Outcome of a synchronization run.

    Attributes:
        plan: The plan that was (or, for a dry run, would be) applied.
        applied: Operations the executor accepted, in order.
        failed: One error per rejected operation, carrying the operation.
        skipped: Operations not attempted because an earlier operation of
            the same table, or of a table they reference, failed.
        rejected: Tables left out of the plan because their definition
            reuses a constraint name.
        dry_run: True if nothing was executed.
    """

    plan: SyncPlan
    applied: list[Operation] = field(default_factory=list)
    failed: list[DdlExecutionError] = field(default_factory=list)
    skipped: list[Operation] = field(default_factory=list)
    rejected: list[DuplicateConstraintNameError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not (self.failed or self.rejected)

    def raise_for_errors(self) -> None:
        """Raise the first error, if any.

        Raises:
            DuplicateConstraintNameError: The first table left out of the plan.
            DdlExecutionError: The first operation the database rejected.
        """
        if self.rejected:
            raise self.rejected[0]
        if self.failed:
            raise self.failed[0]


class SchemaSynchronizer:
    """Synchronize live tables with entity metadata.

    Args:
        introspector: Reads live tables (``LiveSchemaIntrospector``).
        executor: Runs DDL operations (``DdlExecutor``).
        dialect: Dialect used for desired tables and SQL rendering.
        naming_strategy: Naming strategy for primary key and enum check
            names.  Defaults to the strategy each metadata was built with.
        drop_orphan_tables: Drop live tables no metadata describes.

    Example:
        db = InMemoryDatabase()
        synchronizer = SchemaSynchronizer(db, db, get_dialect("postgres"))
        result = await synchronizer.synchronize(metadatas)
        assert result.success
    """

    def __init__(
        self,
        introspector: LiveSchemaIntrospector,
        executor: DdlExecutor,
        dialect: Dialect,
        naming_strategy: NamingStrategy | None = None,
        drop_orphan_tables: bool = False,
    ) -> None:
        self.introspector = introspector
        self.executor = executor
        self.dialect = dialect
        self.naming_strategy = naming_strategy
        self.drop_orphan_tables = drop_orphan_tables
        self.state = SyncState.INSPECT
        self.rejected_tables: list[DuplicateConstraintNameError] = []

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def desired_tables(self, metadatas: list["EntityMetadata"]) -> list[Table]:
        """Desired tables for every synchronized metadata, in registration order."""
        tables = []
        for metadata in metadatas:
            if not metadata.synchronize or metadata.table_type not in SYNCHRONIZED_TABLE_TYPES:
                continue
            tables.append(Table.create(metadata, self.dialect, self.naming_strategy))
        return tables

    async def inspect(self, metadatas: list["EntityMetadata"]) -> list[tuple[Table, Table | None]]:
        """Pair each desired table with its live table (``None`` if missing)."""
        self.state = SyncState.INSPECT
        pairs = []
        for desired in self.desired_tables(metadatas):
            live = await self.introspector.get_table(desired.name)
            if live is None:
                logger.debug(f"Table {desired.name} does not exist yet")
            pairs.append((desired, live))
        logger.info(f"Inspected {len(pairs)} tables")
        return pairs

    def diff(self, pairs: list[tuple[Table, Table | None]]) -> list[TableDiff]:
        """Diff every pair.

        A table whose desired definition reuses a constraint name is left
        out of the result and recorded in ``rejected_tables``; the other
        tables are still diffed.
        """
        self.state = SyncState.DIFF
        self.rejected_tables = []
        diffs = []
        for desired, live in pairs:
            try:
                diffs.append(diff_tables(desired, live, self.dialect))
            except DuplicateConstraintNameError as e:
                logger.warning(f"Skipping table {desired.name}: {e}")
                self.rejected_tables.append(e)
        changed = [d for d in diffs if not d.is_empty]
        for table_diff in changed:
            logger.debug(table_diff.summary())
        logger.info(f"{len(changed)} of {len(diffs)} tables differ")
        return diffs

    async def find_orphan_tables(self, desired: list[Table]) -> list[Table]:
        """Live tables with no desired counterpart."""
        names = {table.name for table in desired}
        orphans = []
        for path in await self.introspector.list_tables():
            if path in names:
                continue
            table = await self.introspector.get_table(path)
            if table is not None:
                orphans.append(table)
        return orphans

    def plan(self, diffs: list[TableDiff], orphan_tables: list[Table] | None = None) -> SyncPlan:
        self.state = SyncState.PLAN
        plan = plan_sync(diffs, self.dialect, orphan_tables)
        logger.info(f"Planned {len(plan)} operations for {len(plan.table_order)} tables")
        return plan

    async def apply(self, plan: SyncPlan) -> SyncResult:
        """Run *plan* through the executor.

        A rejected operation aborts the remaining operations of its table and
        foreign keys referencing that table.  Foreign keys referencing a table
        left out by ``diff`` are skipped too.  Everything else still runs.

        Returns:
            ``SyncResult`` with applied, failed and skipped operations.
        """
        self.state = SyncState.APPLY
        result = SyncResult(plan=plan, rejected=list(self.rejected_tables))
        aborted = {error.table for error in self.rejected_tables}

        async with self.executor.batch():
            for operation in plan:
                if operation.table in aborted or self._references(operation, aborted):
                    result.skipped.append(operation)
                    continue
                try:
                    await self.executor.execute(operation)
                except DdlExecutionError as e:
                    logger.warning(f"Aborting remaining operations on {operation.table}: {e}")
                    result.failed.append(e)
                    aborted.add(operation.table)
                    continue
                logger.debug(f"Applied {operation.describe()}")
                result.applied.append(operation)

        logger.info(
            f"Applied {len(result.applied)} operations, "
            f"{len(result.failed)} failed, {len(result.skipped)} skipped"
        )
        return result

    @staticmethod
    def _references(operation: Operation, tables: set[str]) -> bool:
        return isinstance(operation, CreateForeignKey) and operation.foreign_key.referenced_table_path in tables

    # ------------------------------------------------------------------
    # All stages
    # ------------------------------------------------------------------

    async def synchronize(self, metadatas: list["EntityMetadata"], dry_run: bool = False) -> SyncResult:
        """Inspect, diff, plan and (unless *dry_run*) apply.

        Args:
            metadatas: Built entity metadata (views and entity children are
                covered by their root or skipped).
            dry_run: Plan only; nothing is executed.

        Returns:
            ``SyncResult``.  An in-sync schema yields an empty plan.

        A desired table that reuses a constraint name for two different
        definitions is not synchronized; it is reported in
        ``SyncResult.rejected`` and the other tables are still applied.
        """
        pairs = await self.inspect(metadatas)
        diffs = self.diff(pairs)
        orphans = None
        if self.drop_orphan_tables:
            orphans = await self.find_orphan_tables([desired for desired, _ in pairs])
        plan = self.plan(diffs, orphans)

        if dry_run or plan.is_empty:
            self.state = SyncState.DONE
            return SyncResult(plan=plan, rejected=list(self.rejected_tables), dry_run=dry_run)

        result = await self.apply(plan)
        self.state = SyncState.DONE
        return result
