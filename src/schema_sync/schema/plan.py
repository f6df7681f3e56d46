"""Turn table diffs into one dependency-ordered list of DDL operations.

Order of a plan:

1. drop foreign keys (removed, changed, or referencing a column that is
   dropped or rebuilt in any table)
2. per table, parents before children: drop policies, exclusions, checks,
   uniques, indices, primary key and columns; create the table or add and
   alter columns; primary key; indices, uniques, checks, exclusions;
   row-level security; policies; comment
3. create foreign keys
4. drop orphan tables, children before parents

Usage:
    from schema_sync.schema.diff import diff_tables
    from schema_sync.schema.plan import plan_sync

    diffs = [diff_tables(desired, live) for desired, live in pairs]
    plan = plan_sync(diffs, dialect)
    for statement in plan.statements(dialect):
        print(statement)
"""

from collections import defaultdict
from collections.abc import Iterator
from dataclasses import dataclass, field

from schema_sync.schema.dialect import Dialect
from schema_sync.schema.diff import ColumnChange, TableDiff
from schema_sync.schema.models import Table, TableForeignKey
from schema_sync.schema.operations import (
    AddColumn,
    AlterColumn,
    CreateCheck,
    CreateExclusion,
    CreateForeignKey,
    CreateIndex,
    CreatePolicy,
    CreatePrimaryKey,
    CreateTable,
    CreateUnique,
    DropCheck,
    DropColumn,
    DropExclusion,
    DropForeignKey,
    DropIndex,
    DropPolicy,
    DropPrimaryKey,
    DropTable,
    DropUnique,
    Operation,
    SetRowLevelSecurity,
    SetTableComment,
)


# ------------------------------------------------------------------
# Plan data class
# ------------------------------------------------------------------


@dataclass
class SyncPlan:
    """Ordered operations plus the diffs they were derived from.

    Attributes:
        operations: Operations in execution order.
        table_order: Tables in forward topological order (parents first).
        diffs: The non-empty table diffs.
    """

    operations: list[Operation] = field(default_factory=list)
    table_order: list[str] = field(default_factory=list)
    diffs: list[TableDiff] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.operations

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations)

    def for_table(self, table: str) -> list[Operation]:
        return [op for op in self.operations if op.table == table]

    def statements(self, dialect: Dialect) -> list[str]:
        """All SQL statements of the plan, in order."""
        return [sql for op in self.operations for sql in op.to_sql(dialect)]

    def describe(self) -> list[str]:
        return [op.describe() for op in self.operations]


# ------------------------------------------------------------------
# Ordering
# ------------------------------------------------------------------


def _topological_sort(dependencies: dict[str, set[str]], tables: list[str]) -> list[str]:
    """Topological sort of tables based on FK dependencies.

    Returns tables in forward order: parent tables first, child tables last.
    Cycles are broken where they are found.

    Args:
        dependencies: FK dependency graph (table -> set of referenced tables).
        tables: Table names to sort.

    Returns:
        Tables sorted so that parent tables come before child tables.
    """
    relevant = {t: dependencies.get(t, set()) & set(tables) for t in tables}

    sorted_tables: list[str] = []
    visited: set[str] = set()
    visiting: set[str] = set()

    def visit(table: str) -> None:
        if table in visited:
            return
        if table in visiting:
            # Cycle detected -- break it by just adding the table
            return
        visiting.add(table)
        for dep in sorted(relevant.get(table, set())):
            visit(dep)
        visiting.discard(table)
        visited.add(table)
        sorted_tables.append(table)

    for table in tables:
        visit(table)

    return sorted_tables


def _dependencies(tables: list[Table]) -> dict[str, set[str]]:
    return {
        table.name: {
            fk.referenced_table_path for fk in table.foreign_keys if fk.referenced_table_path != table.name
        }
        for table in tables
    }


def _rebuilt_columns(table_diff: TableDiff, dialect: Dialect) -> list[ColumnChange]:
    """Column changes applied as drop and add (all of them without ALTER COLUMN)."""
    if not dialect.supports_alter_column:
        return table_diff.changed_columns
    return table_diff.recreated_columns


def _affected_columns(diffs: list[TableDiff], dialect: Dialect) -> dict[str, set[str]]:
    """Columns per table that foreign keys may no longer reference during the plan."""
    affected: dict[str, set[str]] = defaultdict(set)
    for table_diff in diffs:
        if table_diff.live is None:
            continue
        affected[table_diff.table_name].update(c.name for c in table_diff.dropped_columns)
        affected[table_diff.table_name].update(c.new.name for c in _rebuilt_columns(table_diff, dialect))
        if table_diff.primary_key_changed:
            affected[table_diff.table_name].update(c.name for c in table_diff.live.primary_columns)
    return affected


def _dependent_foreign_keys(
    diffs: list[TableDiff], dialect: Dialect
) -> tuple[dict[str, list[TableForeignKey]], dict[str, list[TableForeignKey]]]:
    """Foreign keys to drop (and re-create) because their referenced columns change."""
    affected = _affected_columns(diffs, dialect)
    extra_drops: dict[str, list[TableForeignKey]] = defaultdict(list)
    extra_adds: dict[str, list[TableForeignKey]] = defaultdict(list)
    for table_diff in diffs:
        if table_diff.live is None:
            continue
        dropped = {fk.name for fk in table_diff.dropped_foreign_keys}
        added = {fk.name for fk in table_diff.added_foreign_keys}
        desired = {fk.name: fk for fk in table_diff.desired.foreign_keys}
        for fk in table_diff.live.foreign_keys:
            columns = affected.get(fk.referenced_table_path, set())
            if fk.name in dropped or not columns & set(fk.referenced_column_names):
                continue
            extra_drops[table_diff.table_name].append(fk)
            if fk.name in desired and fk.name not in added:
                extra_adds[table_diff.table_name].append(desired[fk.name])
    return extra_drops, extra_adds


# ------------------------------------------------------------------
# Per-table phases
# ------------------------------------------------------------------


def _table_operations(table_diff: TableDiff, dialect: Dialect) -> list[Operation]:
    name = table_diff.table_name
    desired = table_diff.desired
    live = table_diff.live
    ops: list[Operation] = []

    if table_diff.create_table:
        ops.append(CreateTable(name, desired))
    else:
        recreated = _rebuilt_columns(table_diff, dialect)
        altered = table_diff.altered_columns if dialect.supports_alter_column else []

        ops.extend(DropPolicy(name, p) for p in table_diff.dropped_policies)
        ops.extend(DropExclusion(name, x) for x in table_diff.dropped_exclusions)
        ops.extend(DropCheck(name, c) for c in table_diff.dropped_checks)
        ops.extend(DropUnique(name, u) for u in table_diff.dropped_uniques)
        ops.extend(DropIndex(name, i) for i in table_diff.dropped_indices)
        if table_diff.primary_key_changed and live.primary_columns:
            ops.append(DropPrimaryKey(name, live.primary_key_name, [c.name for c in live.primary_columns]))
        ops.extend(DropColumn(name, c) for c in table_diff.dropped_columns)
        ops.extend(DropColumn(name, change.old) for change in recreated)

        ops.extend(AddColumn(name, c) for c in table_diff.added_columns)
        ops.extend(AddColumn(name, change.new) for change in recreated)
        ops.extend(AlterColumn(name, change.old, change.new, change.changed) for change in altered)

        if table_diff.primary_key_changed and desired.primary_columns:
            ops.append(CreatePrimaryKey(name, desired.primary_key_name, [c.name for c in desired.primary_columns]))

    ops.extend(CreateIndex(name, i) for i in table_diff.added_indices)
    ops.extend(CreateUnique(name, u) for u in table_diff.added_uniques)
    ops.extend(CreateCheck(name, c) for c in table_diff.added_checks)
    ops.extend(CreateExclusion(name, x) for x in table_diff.added_exclusions)

    if table_diff.row_level_security_changed:
        target = desired.row_level_security
        ops.append(
            SetRowLevelSecurity(
                name,
                enabled=target is not None,
                force=bool(target and target.force),
                previous=live.row_level_security if live else None,
            )
        )

    ops.extend(CreatePolicy(name, p) for p in table_diff.added_policies)

    if table_diff.comment_changed or (table_diff.create_table and desired.comment):
        ops.append(SetTableComment(name, desired.comment))
    return ops


# ------------------------------------------------------------------
# Plan generation
# ------------------------------------------------------------------


def plan_sync(
    diffs: list[TableDiff],
    dialect: Dialect,
    orphan_tables: list[Table] | None = None,
) -> SyncPlan:
    """Build the ordered plan for *diffs*.

    Pure logic; empty diffs contribute nothing, so planning against a schema
    that is already in sync yields an empty plan.

    Args:
        diffs: One diff per desired table.
        dialect: Target dialect.
        orphan_tables: Live tables without a desired counterpart to drop.

    Returns:
        ``SyncPlan`` with operations in execution order.

    Example:
        plan = plan_sync([diff_tables(desired, None)], get_dialect("postgres"))
        plan.describe()
        # ['create table tenant', ...]
    """
    extra_drops, extra_adds = _dependent_foreign_keys(diffs, dialect)
    diffs = [d for d in diffs if not d.is_empty or d.table_name in extra_drops]
    order = _topological_sort(_dependencies([d.desired for d in diffs]), [d.table_name for d in diffs])
    by_name = {d.table_name: d for d in diffs}

    plan = SyncPlan(table_order=order, diffs=[by_name[name] for name in order])

    for name in order:
        fks = by_name[name].dropped_foreign_keys + extra_drops.get(name, [])
        plan.operations.extend(DropForeignKey(name, fk) for fk in fks)

    for name in order:
        plan.operations.extend(_table_operations(by_name[name], dialect))

    for name in order:
        fks = by_name[name].added_foreign_keys + extra_adds.get(name, [])
        plan.operations.extend(CreateForeignKey(name, fk) for fk in fks)

    if orphan_tables:
        orphan_order = _topological_sort(_dependencies(orphan_tables), [t.name for t in orphan_tables])
        orphans = {t.name: t for t in orphan_tables}
        plan.operations.extend(DropTable(name, orphans[name]) for name in reversed(orphan_order))

    return plan
