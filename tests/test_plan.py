"""Tests for plan ordering.

Verifies the phase order of a plan:
- foreign keys are dropped first and created last
- parent tables are handled before the tables that reference them
- orphan tables are dropped children first
"""

from schema_sync.metadata import RowLevelSecurityOptions
from schema_sync.schema import (
    Table,
    TableColumn,
    TableForeignKey,
    TableIndex,
    TableRowLevelSecurityPolicy,
    TableUnique,
    diff_tables,
    get_dialect,
    plan_sync,
)
from schema_sync.schema.operations import (
    AddColumn,
    AlterColumn,
    CreateForeignKey,
    CreateIndex,
    CreatePolicy,
    CreatePrimaryKey,
    CreateTable,
    CreateUnique,
    DropColumn,
    DropForeignKey,
    DropPrimaryKey,
    DropTable,
    SetRowLevelSecurity,
)

postgres = get_dialect("postgres")


def _customer(id_type: str = "integer") -> Table:
    return Table(
        name="customer",
        columns=[TableColumn(name="id", type=id_type, is_primary=True)],
        primary_key_name="PK_customer",
    )


def _order() -> Table:
    return Table(
        name="order",
        columns=[
            TableColumn(name="id", type="integer", is_primary=True),
            TableColumn(name="customerId", type="integer", is_nullable=True),
        ],
        indices=[TableIndex(name="IDX_order_customer", column_names=["customerId"])],
        foreign_keys=[
            TableForeignKey(
                name="FK_order_customer",
                column_names=["customerId"],
                referenced_table_path="customer",
                referenced_column_names=["id"],
            )
        ],
        primary_key_name="PK_order",
    )


def _types(plan) -> list[str]:
    return [type(op).__name__ for op in plan]


# ============================================================
# Test: Empty plans
# ============================================================


class TestEmptyPlan:
    """Verify in-sync schemas produce nothing."""

    def test_in_sync(self) -> None:
        diffs = [diff_tables(t, t.clone()) for t in (_customer(), _order())]
        plan = plan_sync(diffs, postgres)
        assert plan.is_empty
        assert len(plan) == 0
        assert plan.table_order == []


# ============================================================
# Test: Ordering
# ============================================================


class TestOrdering:
    """Verify parents first and foreign keys last."""

    def test_create_from_scratch(self) -> None:
        """The referenced table is created first even when listed last."""
        plan = plan_sync([diff_tables(_order(), None), diff_tables(_customer(), None)], postgres)
        assert plan.table_order == ["customer", "order"]
        assert _types(plan) == ["CreateTable", "CreateTable", "CreateIndex", "CreateForeignKey"]
        assert [op.table for op in plan] == ["customer", "order", "order", "order"]

    def test_statements(self) -> None:
        plan = plan_sync([diff_tables(_customer(), None)], postgres)
        assert plan.statements(postgres) == [
            'CREATE TABLE IF NOT EXISTS "customer" ("id" integer NOT NULL, CONSTRAINT "PK_customer" PRIMARY KEY ("id"))'
        ]
        assert plan.describe() == ["create table customer"]

    def test_for_table(self) -> None:
        plan = plan_sync([diff_tables(_order(), None), diff_tables(_customer(), None)], postgres)
        assert len(plan.for_table("order")) == 3

    def test_table_phase_order(self) -> None:
        """Drops precede creates inside one table."""
        desired = _customer()
        desired.add_column(TableColumn(name="name", type="text"))
        desired.add_column(TableColumn(name="email", type="text", is_nullable=True))
        desired.uniques.append(TableUnique(name="UQ_email", column_names=["email"]))
        live = _customer()
        live.add_column(TableColumn(name="legacy", type="text"))
        live.add_column(TableColumn(name="email", type="text"))

        plan = plan_sync([diff_tables(desired, live)], postgres)
        assert _types(plan) == ["DropColumn", "AddColumn", "AlterColumn", "CreateUnique"]
        drop, add, alter, _ = plan.operations
        assert isinstance(drop, DropColumn) and drop.column.name == "legacy"
        assert isinstance(add, AddColumn) and add.column.name == "name"
        assert isinstance(alter, AlterColumn) and alter.changed == ["is_nullable"]

    def test_row_level_security_is_single_operation(self) -> None:
        desired = _customer().model_copy(
            update={
                "row_level_security": RowLevelSecurityOptions(force=True),
                "row_level_security_policies": [TableRowLevelSecurityPolicy(name="RLSP_1", expression="id = 1")],
            }
        )
        plan = plan_sync([diff_tables(desired, None)], postgres)
        assert _types(plan) == ["CreateTable", "SetRowLevelSecurity", "CreatePolicy"]
        rls = plan.operations[1]
        assert isinstance(rls, SetRowLevelSecurity)
        assert rls.to_sql(postgres) == [
            'ALTER TABLE "customer" ENABLE ROW LEVEL SECURITY',
            'ALTER TABLE "customer" FORCE ROW LEVEL SECURITY',
        ]

    def test_new_table_comment(self) -> None:
        desired = _customer().model_copy(update={"comment": "Customers"})
        assert _types(plan_sync([diff_tables(desired, None)], postgres))[-1] == "SetTableComment"


# ============================================================
# Test: Dependent foreign keys
# ============================================================


class TestDependentForeignKeys:
    """Verify foreign keys around rebuilt referenced columns."""

    def test_rebuilt_referenced_column(self) -> None:
        """Changing customer.id drops the order FK first and restores it last."""
        desired = [_customer("bigint"), _order()]
        desired[1].columns[1].type = "bigint"
        live = [_customer(), _order()]
        plan = plan_sync([diff_tables(d, l) for d, l in zip(desired, live)], postgres)

        types = _types(plan)
        assert types[0] == "DropForeignKey"
        assert types[-1] == "CreateForeignKey"
        assert types.count("DropForeignKey") == 1
        assert types.count("CreateForeignKey") == 1
        assert "DropPrimaryKey" in types
        assert "CreatePrimaryKey" in types
        assert plan.operations[0].table == "order"

    def test_unchanged_referencing_table_still_restored(self) -> None:
        """A referencing table with no diff of its own gets its FK dropped and re-created."""
        desired = [_customer("bigint"), _order()]
        live = [_customer(), _order()]
        plan = plan_sync([diff_tables(d, l) for d, l in zip(desired, live)], postgres)

        assert isinstance(plan.operations[0], DropForeignKey)
        assert isinstance(plan.operations[-1], CreateForeignKey)
        assert plan.operations[-1].foreign_key.name == "FK_order_customer"
        assert "order" in plan.table_order

    def test_primary_key_rebuild_order(self) -> None:
        desired, live = _customer("bigint"), _customer()
        plan = plan_sync([diff_tables(desired, live)], postgres)
        assert _types(plan) == ["DropPrimaryKey", "DropColumn", "AddColumn", "CreatePrimaryKey"]
        assert isinstance(plan.operations[0], DropPrimaryKey)
        assert isinstance(plan.operations[-1], CreatePrimaryKey)


# ============================================================
# Test: Sqlite
# ============================================================


class TestSqlite:
    """Verify dialects without ALTER COLUMN rebuild changed columns."""

    def test_nullable_change_rebuilds_column(self) -> None:
        sqlite = get_dialect("sqlite")
        desired = _customer()
        desired.add_column(TableColumn(name="note", type="text", is_nullable=True))
        live = _customer()
        live.add_column(TableColumn(name="note", type="text"))
        plan = plan_sync([diff_tables(desired, live)], sqlite)
        assert _types(plan) == ["DropColumn", "AddColumn"]


# ============================================================
# Test: Orphans
# ============================================================


class TestOrphans:
    """Verify orphan tables are dropped children first."""

    def test_reverse_order(self) -> None:
        plan = plan_sync([], postgres, orphan_tables=[_customer(), _order()])
        assert _types(plan) == ["DropTable", "DropTable"]
        assert [op.table for op in plan] == ["order", "customer"]
        assert all(isinstance(op, DropTable) for op in plan)

    def test_orphans_after_everything_else(self) -> None:
        plan = plan_sync([diff_tables(_customer(), None)], postgres, orphan_tables=[_order()])
        assert isinstance(plan.operations[0], CreateTable)
        assert isinstance(plan.operations[-1], DropTable)


def test_create_index_and_unique_follow_table() -> None:
    """Indices and uniques of a new table come right after it."""
    desired = _order().model_copy(update={"foreign_keys": [], "uniques": [TableUnique(name="UQ_1", column_names=["id"])]})
    plan = plan_sync([diff_tables(desired, None)], postgres)
    assert [type(op) for op in plan] == [CreateTable, CreateIndex, CreateUnique]


def test_policy_added_to_existing_table() -> None:
    desired = _customer().model_copy(
        update={"row_level_security_policies": [TableRowLevelSecurityPolicy(name="RLSP_1", expression="id = 1")]}
    )
    plan = plan_sync([diff_tables(desired, _customer())], postgres)
    assert [type(op) for op in plan] == [CreatePolicy]
