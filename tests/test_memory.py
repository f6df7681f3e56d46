"""Tests for InMemoryDatabase as introspector and executor."""

import pytest

from schema_sync.errors import DdlExecutionError
from schema_sync.schema import InMemoryDatabase, Table, TableColumn, TableForeignKey, TableIndex
from schema_sync.schema.operations import (
    AddColumn,
    AlterColumn,
    CreateForeignKey,
    CreateIndex,
    CreatePrimaryKey,
    CreateTable,
    DropIndex,
    DropPrimaryKey,
    DropTable,
)


def _customer() -> Table:
    return Table(
        name="customer",
        columns=[TableColumn(name="id", type="integer", is_primary=True)],
        primary_key_name="PK_customer",
    )


def _fk(referenced_table: str = "customer", column: str = "id") -> TableForeignKey:
    return TableForeignKey(
        name="FK_1",
        column_names=["customerId"],
        referenced_table_path=referenced_table,
        referenced_column_names=[column],
    )


class TestInMemoryDatabase:
    """Verify operations change the stored tables."""

    @pytest.mark.asyncio
    async def test_get_table_returns_copy(self) -> None:
        db = InMemoryDatabase(tables=[_customer()])
        table = await db.get_table("customer")
        table.columns.clear()
        assert len(db.tables["customer"].columns) == 1
        assert await db.get_table("missing") is None
        assert await db.list_tables() == ["customer"]

    @pytest.mark.asyncio
    async def test_create_table_keeps_columns_and_primary_key(self) -> None:
        db = InMemoryDatabase()
        definition = _customer()
        definition.indices.append(TableIndex(name="IDX_1", column_names=["id"]))
        await db.execute(CreateTable("customer", definition))

        table = db.tables["customer"]
        assert table.primary_key_name == "PK_customer"
        assert table.indices == []
        assert db.executed == [CreateTable("customer", definition)]

    @pytest.mark.asyncio
    async def test_create_existing_table_fails(self) -> None:
        db = InMemoryDatabase(tables=[_customer()])
        with pytest.raises(DdlExecutionError, match="already exists"):
            await db.execute(CreateTable("customer", _customer()))

    @pytest.mark.asyncio
    async def test_unknown_table_fails(self) -> None:
        db = InMemoryDatabase()
        with pytest.raises(DdlExecutionError, match="does not exist"):
            await db.execute(AddColumn("order", TableColumn(name="id", type="integer")))

    @pytest.mark.asyncio
    async def test_add_existing_column_fails(self) -> None:
        db = InMemoryDatabase(tables=[_customer()])
        with pytest.raises(DdlExecutionError) as exc_info:
            await db.execute(AddColumn("customer", TableColumn(name="id", type="integer")))
        assert isinstance(exc_info.value.cause, ValueError)
        assert db.executed == []

    @pytest.mark.asyncio
    async def test_alter_column_changes_only_listed_attributes(self) -> None:
        db = InMemoryDatabase(tables=[_customer()])
        old = TableColumn(name="id", type="integer", is_primary=True)
        new = TableColumn(name="id", type="bigint", is_primary=True, comment="Key")
        await db.execute(AlterColumn("customer", old, new, ["comment"]))
        column = db.tables["customer"].find_column_by_name("id")
        assert column.comment == "Key"
        assert column.type == "integer"

    @pytest.mark.asyncio
    async def test_primary_key_round(self) -> None:
        db = InMemoryDatabase(tables=[_customer()])
        await db.execute(DropPrimaryKey("customer", "PK_customer"))
        assert db.tables["customer"].primary_columns == []
        await db.execute(CreatePrimaryKey("customer", "PK_new", ["id"]))
        assert db.tables["customer"].primary_key_name == "PK_new"
        with pytest.raises(DdlExecutionError, match="already has a primary key"):
            await db.execute(CreatePrimaryKey("customer", "PK_other", ["id"]))

    @pytest.mark.asyncio
    async def test_foreign_key_needs_referenced_table_and_columns(self) -> None:
        order = Table(name="order", columns=[TableColumn(name="customerId", type="integer")])
        db = InMemoryDatabase(tables=[order])
        with pytest.raises(DdlExecutionError, match="relation customer does not exist"):
            await db.execute(CreateForeignKey("order", _fk()))

        db.tables["customer"] = _customer()
        with pytest.raises(DdlExecutionError, match="referenced columns"):
            await db.execute(CreateForeignKey("order", _fk(column="uuid")))

        await db.execute(CreateForeignKey("order", _fk()))
        assert [fk.name for fk in db.tables["order"].foreign_keys] == ["FK_1"]

    @pytest.mark.asyncio
    async def test_drop_missing_index_fails(self) -> None:
        db = InMemoryDatabase(tables=[_customer()])
        index = TableIndex(name="IDX_1", column_names=["id"])
        with pytest.raises(DdlExecutionError, match="IDX_1 does not exist"):
            await db.execute(DropIndex("customer", index))
        await db.execute(CreateIndex("customer", index))
        await db.execute(DropIndex("customer", index))
        assert db.tables["customer"].indices == []

    @pytest.mark.asyncio
    async def test_fail_on(self) -> None:
        db = InMemoryDatabase(tables=[_customer()])
        db.fail_on(DropTable)
        with pytest.raises(DdlExecutionError, match="injected failure"):
            await db.execute(DropTable("customer"))
        assert "customer" in db.tables

    @pytest.mark.asyncio
    async def test_fail_on_table_only(self) -> None:
        db = InMemoryDatabase(tables=[_customer()])
        db.fail_on(table="order")
        await db.execute(DropTable("customer"))
        assert db.tables == {}

    @pytest.mark.asyncio
    async def test_batch_and_close(self) -> None:
        db = InMemoryDatabase()
        async with db.batch():
            pass
        await db.close()
        assert db.batches == 1
        assert db.closed
