"""Protocols for the two database seams of a synchronization.

``LiveSchemaIntrospector`` reads the tables that exist; ``DdlExecutor`` runs
the operations of a plan.  All methods are ``async def``.

Usage:
    from schema_sync.adapters.base import DdlExecutor, LiveSchemaIntrospector

    async def run(introspector: LiveSchemaIntrospector, executor: DdlExecutor) -> None:
        live = await introspector.get_table("public.tenant")
        async with executor.batch():
            await executor.execute(CreateTable("public.tenant", desired))
        await executor.close()
"""

from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from schema_sync.schema.models import Table
    from schema_sync.schema.operations import Operation


class LiveSchemaIntrospector(Protocol):
    """Reads live tables into the canonical ``Table`` model."""

    async def get_table(self, path: str) -> "Table | None":
        """Return the live table at *path*, or ``None`` if it does not exist.

        A missing table is not an error.

        Args:
            path: Table path as built by the dialect (``schema.table``).
        """
        ...

    async def list_tables(self) -> list[str]:
        """Paths of all user tables, for orphan detection."""
        ...


class DdlExecutor(Protocol):
    """Runs DDL operations against a database.

    ``execute`` raises ``DdlExecutionError`` (carrying the operation) when the
    database rejects an operation.
    """

    async def execute(self, operation: "Operation") -> None:
        """Execute one operation.

        Raises:
            DdlExecutionError: If the database rejects the operation.
        """
        ...

    def batch(self) -> AbstractAsyncContextManager[None]:
        """Group the operations of one plan (a transaction where supported).

        Example:
            async with executor.batch():
                for op in plan:
                    await executor.execute(op)
        """
        ...

    async def close(self) -> None:
        """Release connections held by the executor."""
        ...
