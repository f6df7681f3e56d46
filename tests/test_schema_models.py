"""Tests for the canonical table model, dialects and metadata conversion.

Verifies that desired tables built from metadata use canonical types and
defaults, that single-table inheritance merges into the root table, and that
enum columns become checks.
"""

import pytest

from schema_sync.metadata import (
    ColumnArgs,
    DeclarationArgs,
    MetadataRegistry,
    RawSql,
    RowLevelSecurityOptions,
    RowLevelSecurityPolicyArgs,
    TableArgs,
    TableInheritanceArgs,
    build_entity_metadatas,
)
from schema_sync.metadata.args import ExclusionArgs
from schema_sync.schema import Table, TableColumn, TableForeignKey, TableIndex, get_dialect
from schema_sync.schema.dialect import MssqlDialect, MysqlDialect, PostgresDialect, SqliteDialect


# ============================================================
# Test: Table model
# ============================================================


class TestTableModel:
    """Verify Table helpers."""

    def _table(self) -> Table:
        return Table(
            name="order",
            columns=[
                TableColumn(name="id", type="integer", is_primary=True),
                TableColumn(name="customerId", type="integer", is_nullable=True),
            ],
            indices=[TableIndex(name="IDX_1", column_names=["customerId"])],
            foreign_keys=[
                TableForeignKey(
                    name="FK_1",
                    column_names=["customerId"],
                    referenced_table_path="customer",
                    referenced_column_names=["id"],
                )
            ],
            primary_key_name="PK_1",
        )

    def test_primary_columns(self) -> None:
        assert [c.name for c in self._table().primary_columns] == ["id"]

    def test_clone_is_independent(self) -> None:
        """Mutating a clone never touches the original."""
        table = self._table()
        copy = table.clone()
        copy.columns[0].type = "bigint"
        copy.indices.clear()
        assert table.columns[0].type == "integer"
        assert len(table.indices) == 1

    def test_remove_column_drops_dependents(self) -> None:
        table = self._table()
        table.remove_column("customerId")
        assert [c.name for c in table.columns] == ["id"]
        assert table.indices == []
        assert table.foreign_keys == []
        assert table.primary_key_name == "PK_1"

    def test_removing_primary_column_clears_key_name(self) -> None:
        table = self._table()
        table.remove_column("id")
        assert table.primary_key_name is None

    def test_find_columns(self) -> None:
        table = self._table()
        assert table.find_column_by_name("id").is_primary
        assert table.find_column_by_name("missing") is None
        assert [c.name for c in table.find_columns_by_names(["customerId"])] == ["customerId"]


# ============================================================
# Test: Dialects
# ============================================================


class TestDialects:
    """Verify dialect lookup, type normalization and quoting."""

    def test_get_dialect(self) -> None:
        assert isinstance(get_dialect("postgres"), PostgresDialect)
        assert isinstance(get_dialect("PostgreSQL"), PostgresDialect)
        assert isinstance(get_dialect("mariadb"), MysqlDialect)
        assert isinstance(get_dialect("sqlite"), SqliteDialect)
        assert isinstance(get_dialect("mssql"), MssqlDialect)

    def test_unknown_dialect_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown dialect 'oracle'"):
            get_dialect("oracle")

    @pytest.mark.parametrize(
        "type, expected",
        [
            ("int4", "integer"),
            ("int", "integer"),
            ("varchar", "character varying"),
            ("timestamptz", "timestamp with time zone"),
            ("_int4", "integer"),
            ("uuid", "uuid"),
            ("TEXT", "text"),
        ],
    )
    def test_postgres_normalize_type(self, type: str, expected: str) -> None:
        assert get_dialect("postgres").normalize_type(type) == expected

    def test_inferred_types(self) -> None:
        """Missing types are inferred from the generation strategy."""
        postgres = get_dialect("postgres")
        assert postgres.normalize_type(None, "increment") == "integer"
        assert postgres.normalize_type(None, "uuid") == "uuid"
        assert postgres.normalize_type(None) == "character varying"
        assert get_dialect("mssql").normalize_type(None, "uuid") == "uniqueidentifier"

    def test_table_paths(self) -> None:
        assert get_dialect("postgres").build_table_name("tenant", "public", "db") == "public.tenant"
        assert get_dialect("mysql").build_table_name("tenant", "public", "db") == "db.tenant"
        assert get_dialect("sqlite").build_table_name("tenant", "public", "db") == "tenant"
        assert get_dialect("mssql").build_table_name("tenant", "dbo", "db") == "db.dbo.tenant"

    def test_quote(self) -> None:
        assert get_dialect("postgres").quote("public.tenant") == '"public"."tenant"'
        assert get_dialect("mysql").quote("tenant") == "`tenant`"
        assert get_dialect("mssql").quote("dbo.tenant") == "[dbo].[tenant]"

    def test_normalize_default(self) -> None:
        dialect = get_dialect("postgres")
        assert dialect.normalize_default(None) is None
        assert dialect.normalize_default(True) == "true"
        assert dialect.normalize_default(0) == "0"
        assert dialect.normalize_default("it's") == "'it''s'"
        assert dialect.normalize_default(RawSql(sql="now()")) == "now()"

    def test_default_varchar_length(self) -> None:
        assert get_dialect("mysql").normalize_length("varchar", None) == 255
        assert get_dialect("postgres").normalize_length("character varying", None) is None

    def test_column_type_sql(self) -> None:
        postgres = get_dialect("postgres")
        assert postgres.column_type_sql("character varying", length=40) == "character varying(40)"
        assert postgres.column_type_sql("numeric", precision=10, scale=2) == "numeric(10,2)"
        assert postgres.column_type_sql("text", is_array=True) == "text[]"


# ============================================================
# Test: Conversion from metadata
# ============================================================


def _desired(registry: MetadataRegistry, dialect: str = "postgres") -> dict[str, Table]:
    metadatas = build_entity_metadatas(registry)
    return {m.target_name: Table.create(m, get_dialect(dialect)) for m in metadatas}


class TestTableFromMetadata:
    """Verify desired tables built from entity metadata."""

    def test_columns(self) -> None:
        tables = _desired(
            MetadataRegistry().register(
                TableArgs(target="Tenant", comment="Tenants"),
                ColumnArgs(target="Tenant", property_name="id", primary=True, generated="increment"),
                ColumnArgs(target="Tenant", property_name="name", type="varchar", length=80),
                ColumnArgs(target="Tenant", property_name="active", type="bool", default=True),
                ColumnArgs(
                    target="Tenant", property_name="createdAt", type="timestamptz", default=RawSql(sql="now()")
                ),
                ColumnArgs(target="Tenant", property_name="note", type="text", nullable=True),
            )
        )
        table = tables["Tenant"]
        columns = {c.name: c for c in table.columns}

        assert table.name == "tenant"
        assert table.comment == "Tenants"
        assert columns["id"].type == "integer"
        assert columns["id"].is_generated
        assert columns["id"].generation_strategy == "increment"
        assert columns["id"].default is None
        assert columns["name"].type == "character varying"
        assert columns["name"].length == 80
        assert columns["active"].type == "boolean"
        assert columns["active"].default == "true"
        assert columns["createdAt"].default == "now()"
        assert columns["note"].is_nullable
        assert not columns["name"].is_nullable
        assert table.primary_key_name.startswith("PK_")

    def test_explicit_primary_key_name(self) -> None:
        tables = _desired(
            MetadataRegistry().register(
                TableArgs(target="Tenant"),
                ColumnArgs(target="Tenant", property_name="id", type="int", primary=True, primary_key_constraint_name="tenant_pkey"),
            )
        )
        assert tables["Tenant"].primary_key_name == "tenant_pkey"

    def test_enum_column_becomes_check(self) -> None:
        tables = _desired(
            MetadataRegistry().register(
                TableArgs(target="Task"),
                ColumnArgs(target="Task", property_name="id", type="int", primary=True),
                ColumnArgs(target="Task", property_name="status", enum=["open", "done"]),
            )
        )
        table = tables["Task"]
        status = table.find_column_by_name("status")
        assert status.type == "character varying"
        assert status.enum == ["open", "done"]
        (check,) = table.checks
        assert check.name.endswith("_ENUM")
        assert check.expression == "\"status\" IN ('open', 'done')"

    def test_generated_expression_column(self) -> None:
        tables = _desired(
            MetadataRegistry().register(
                TableArgs(target="Item"),
                ColumnArgs(target="Item", property_name="id", type="int", primary=True),
                ColumnArgs(target="Item", property_name="total", type="int", as_expression="price * qty"),
            )
        )
        total = tables["Item"].find_column_by_name("total")
        assert total.as_expression == "price * qty"
        assert total.generated_type == "STORED"

    def test_single_table_inheritance_merges_into_root(self) -> None:
        """Children resolve to the root table; child-only columns are nullable."""
        tables = _desired(
            MetadataRegistry().register(
                TableArgs(target="Content"),
                TableInheritanceArgs(target="Content"),
                ColumnArgs(target="Content", property_name="id", type="int", primary=True),
                ColumnArgs(target="Content", property_name="title", type="varchar"),
                DeclarationArgs(target="Photo", parent="Content"),
                TableArgs(target="Photo"),
                ColumnArgs(target="Photo", property_name="size", type="int"),
            )
        )
        content, photo = tables["Content"], tables["Photo"]
        assert photo == content
        columns = {c.name: c for c in content.columns}
        assert set(columns) == {"id", "title", "type", "size"}
        assert columns["size"].is_nullable
        assert not columns["title"].is_nullable
        assert not columns["type"].is_nullable
        assert [index.column_names for index in content.indices] == [["type"]]

    def test_row_level_security_only_where_supported(self) -> None:
        registry = MetadataRegistry().register(
            TableArgs(target="Tenant", row_level_security=True),
            ColumnArgs(target="Tenant", property_name="id", type="int", primary=True),
            RowLevelSecurityPolicyArgs(target="Tenant", expression="id = 1"),
            ExclusionArgs(target="Tenant", expression="USING gist (id WITH =)"),
        )
        postgres = _desired(registry)["Tenant"]
        assert postgres.row_level_security == RowLevelSecurityOptions()
        assert len(postgres.row_level_security_policies) == 1
        assert len(postgres.exclusions) == 1

        mysql = _desired(registry, "mysql")["Tenant"]
        assert mysql.row_level_security is None
        assert mysql.row_level_security_policies == []
        assert mysql.exclusions == []

    def test_duplicate_policies_collapse(self) -> None:
        """A policy spelled with the default role and type equals the implicit one."""
        tables = _desired(
            MetadataRegistry().register(
                TableArgs(target="Tenant", row_level_security=True),
                ColumnArgs(target="Tenant", property_name="id", type="int", primary=True),
                RowLevelSecurityPolicyArgs(target="Tenant", expression="id = 1"),
                RowLevelSecurityPolicyArgs(target="Tenant", expression="id = 1", role="public", type="permissive"),
            )
        )
        assert len(tables["Tenant"].row_level_security_policies) == 1
