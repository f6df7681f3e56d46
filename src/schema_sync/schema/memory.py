"""In-memory database implementing both introspector and executor protocols.

Tables are held as canonical ``Table`` models and operations are applied to
them directly, so a synchronization can be run, repeated and inspected
without a server.  Failures can be injected per operation type or table.

Usage:
    from schema_sync.schema.memory import InMemoryDatabase

    db = InMemoryDatabase()
    synchronizer = SchemaSynchronizer(db, db, get_dialect("postgres"))
    await synchronizer.synchronize(metadatas)
    db.tables["tenant"].row_level_security
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from schema_sync.errors import DdlExecutionError
from schema_sync.schema.models import Table
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


class InMemoryDatabase:
    """Tables in a dict, changed by applying operations.

    Args:
        tables: Initial tables (cloned), keyed by their path.

    Attributes:
        tables: Current tables by path.
        executed: Every operation applied successfully, in order.
        batches: Number of batches opened.
    """

    def __init__(self, tables: list[Table] | None = None) -> None:
        self.tables: dict[str, Table] = {t.name: t.clone() for t in tables or []}
        self.executed: list[Operation] = []
        self.batches = 0
        self.closed = False
        self._failures: list[Callable[[Operation], bool]] = []
        self._handlers: dict[type[Operation], Callable] = {
            CreateTable: self._create_table,
            DropTable: self._drop_table,
            AddColumn: self._add_column,
            DropColumn: self._drop_column,
            AlterColumn: self._alter_column,
            CreatePrimaryKey: self._create_primary_key,
            DropPrimaryKey: self._drop_primary_key,
            CreateIndex: lambda t, op: t.indices.append(op.index),
            DropIndex: lambda t, op: self._remove(t.indices, op.index.name),
            CreateUnique: lambda t, op: t.uniques.append(op.unique),
            DropUnique: lambda t, op: self._remove(t.uniques, op.unique.name),
            CreateCheck: lambda t, op: t.checks.append(op.check),
            DropCheck: lambda t, op: self._remove(t.checks, op.check.name),
            CreateExclusion: lambda t, op: t.exclusions.append(op.exclusion),
            DropExclusion: lambda t, op: self._remove(t.exclusions, op.exclusion.name),
            CreateForeignKey: self._create_foreign_key,
            DropForeignKey: lambda t, op: self._remove(t.foreign_keys, op.foreign_key.name),
            CreatePolicy: lambda t, op: t.row_level_security_policies.append(op.policy),
            DropPolicy: lambda t, op: self._remove(t.row_level_security_policies, op.policy.name),
            SetRowLevelSecurity: self._set_row_level_security,
            SetTableComment: self._set_comment,
        }

    # ------------------------------------------------------------------
    # Failure injection
    # ------------------------------------------------------------------

    def fail_on(
        self,
        operation_type: type[Operation] | None = None,
        table: str | None = None,
    ) -> None:
        """Reject matching operations with ``DdlExecutionError``.

        Example:
            db.fail_on(AddColumn, table="tenant")
        """
        def matches(operation: Operation) -> bool:
            if operation_type is not None and not isinstance(operation, operation_type):
                return False
            return table is None or operation.table == table

        self._failures.append(matches)

    # ------------------------------------------------------------------
    # LiveSchemaIntrospector
    # ------------------------------------------------------------------

    async def get_table(self, path: str) -> Table | None:
        table = self.tables.get(path)
        return table.clone() if table is not None else None

    async def list_tables(self) -> list[str]:
        return sorted(self.tables)

    # ------------------------------------------------------------------
    # DdlExecutor
    # ------------------------------------------------------------------

    async def execute(self, operation: Operation) -> None:
        """Apply *operation* to the stored tables.

        Raises:
            DdlExecutionError: For injected failures, unknown tables or
                names that already exist.
        """
        if any(matches(operation) for matches in self._failures):
            raise DdlExecutionError(operation, RuntimeError("injected failure"))

        handler = self._handlers[type(operation)]
        if isinstance(operation, CreateTable):
            handler(operation)
        else:
            table = self.tables.get(operation.table)
            if table is None:
                raise DdlExecutionError(operation, LookupError(f"relation {operation.table} does not exist"))
            try:
                handler(table, operation)
            except (LookupError, ValueError) as e:
                raise DdlExecutionError(operation, e) from e
        self.executed.append(operation)

    @asynccontextmanager
    async def batch(self) -> AsyncIterator[None]:
        self.batches += 1
        yield

    async def close(self) -> None:
        self.closed = True

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    @staticmethod
    def _remove(items: list, name: str) -> None:
        for position, item in enumerate(items):
            if item.name == name:
                del items[position]
                return
        raise LookupError(f"{name} does not exist")

    def _create_table(self, operation: CreateTable) -> None:
        if operation.table in self.tables:
            raise DdlExecutionError(operation, ValueError(f"relation {operation.table} already exists"))
        definition = operation.definition
        self.tables[operation.table] = Table(
            name=operation.table,
            schema_name=definition.schema_name,
            database=definition.database,
            columns=[c.model_copy() for c in definition.columns],
            primary_key_name=definition.primary_key_name if definition.primary_columns else None,
            engine=definition.engine,
            without_rowid=definition.without_rowid,
        )

    def _drop_table(self, table: Table, operation: DropTable) -> None:
        del self.tables[operation.table]

    def _add_column(self, table: Table, operation: AddColumn) -> None:
        if table.find_column_by_name(operation.column.name) is not None:
            raise ValueError(f"column {operation.column.name} already exists")
        column = operation.column.model_copy()
        # the primary key constraint is added separately
        column.is_primary = False
        table.add_column(column)

    def _drop_column(self, table: Table, operation: DropColumn) -> None:
        if table.find_column_by_name(operation.column.name) is None:
            raise LookupError(f"column {operation.column.name} does not exist")
        table.remove_column(operation.column.name)

    def _alter_column(self, table: Table, operation: AlterColumn) -> None:
        column = table.find_column_by_name(operation.new.name)
        if column is None:
            raise LookupError(f"column {operation.new.name} does not exist")
        updated = column.model_copy(
            update={attribute: getattr(operation.new, attribute) for attribute in operation.changed}
        )
        table.replace_column(updated)

    def _create_primary_key(self, table: Table, operation: CreatePrimaryKey) -> None:
        if table.primary_columns:
            raise ValueError(f"table {table.name} already has a primary key")
        columns = table.find_columns_by_names(operation.column_names)
        if len(columns) != len(operation.column_names):
            raise LookupError(f"primary key columns missing on {table.name}")
        for column in columns:
            table.replace_column(column.model_copy(update={"is_primary": True}))
        table.primary_key_name = operation.name

    def _drop_primary_key(self, table: Table, operation: DropPrimaryKey) -> None:
        for column in table.primary_columns:
            table.replace_column(column.model_copy(update={"is_primary": False}))
        table.primary_key_name = None

    def _create_foreign_key(self, table: Table, operation: CreateForeignKey) -> None:
        referenced = self.tables.get(operation.foreign_key.referenced_table_path)
        if referenced is None:
            raise LookupError(f"relation {operation.foreign_key.referenced_table_path} does not exist")
        missing = set(operation.foreign_key.referenced_column_names) - {c.name for c in referenced.columns}
        if missing:
            raise LookupError(f"referenced columns {sorted(missing)} do not exist")
        table.foreign_keys.append(operation.foreign_key)

    def _set_row_level_security(self, table: Table, operation: SetRowLevelSecurity) -> None:
        table.row_level_security = operation.target

    def _set_comment(self, table: Table, operation: SetTableComment) -> None:
        table.comment = operation.comment
