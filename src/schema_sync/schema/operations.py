"""DDL operations and their SQL rendering.

Every operation is a small dataclass naming the table it touches and the
canonical model object it creates or drops.  ``to_sql(dialect)`` renders the
statements for one dialect; ``describe()`` gives a one-line summary used in
logs and errors.

Usage:
    from schema_sync.schema.operations import AddColumn
    from schema_sync.schema.dialect import get_dialect

    op = AddColumn(table="tenant", column=TableColumn(name="name", type="character varying"))
    op.to_sql(get_dialect("postgres"))
    # ['ALTER TABLE "tenant" ADD COLUMN IF NOT EXISTS "name" character varying NOT NULL']
"""

from dataclasses import dataclass, field

from schema_sync.metadata.types import RowLevelSecurityOptions
from schema_sync.schema.dialect import Dialect
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


# ------------------------------------------------------------------
# Rendering helpers
# ------------------------------------------------------------------


def _if_exists(dialect: Dialect) -> str:
    return "IF EXISTS " if dialect.supports_constraint_if_exists else ""


def _if_not_exists(dialect: Dialect) -> str:
    return "IF NOT EXISTS " if dialect.supports_constraint_if_exists else ""


def _columns(dialect: Dialect, names: list[str]) -> str:
    return ", ".join(dialect.quote(name) for name in names)


def _index_path(table: str, name: str) -> str:
    """Postgres indices live in the table's schema."""
    if "." in table:
        return f"{table.rsplit('.', 1)[0]}.{name}"
    return name


def column_definition(column: TableColumn, dialect: Dialect) -> str:
    """``"name" type [GENERATED ...] [NOT NULL] [DEFAULT ...]`` for one column.

    MySQL keeps column comments inline (``COMMENT '...'``).
    """
    default = column.default
    if column.is_generated and column.generation_strategy:
        type_sql, generated_default = dialect.generated_column_sql(column.type, column.generation_strategy)
        default = default or generated_default
    else:
        type_sql = dialect.column_type_sql(
            column.type, column.length, column.precision, column.scale, column.is_array
        )

    parts = [dialect.quote(column.name), type_sql]
    if column.as_expression:
        parts.append(f"GENERATED ALWAYS AS ({column.as_expression}) {column.generated_type or 'STORED'}")
    if not column.is_nullable:
        parts.append("NOT NULL")
    if default is not None and not column.as_expression:
        parts.append(f"DEFAULT {default}")
    if column.comment and dialect.name == "mysql":
        parts.append(f"COMMENT {dialect.quote_literal(column.comment)}")
    return " ".join(parts)


def column_comment_sql(table: str, column: TableColumn, dialect: Dialect) -> list[str]:
    """``COMMENT ON COLUMN`` for dialects that keep comments outside the definition."""
    if not column.comment or dialect.name != "postgres":
        return []
    return [
        f"COMMENT ON COLUMN {dialect.quote(table)}.{dialect.quote(column.name)} "
        f"IS {dialect.quote_literal(column.comment)}"
    ]


def foreign_key_definition(foreign_key: TableForeignKey, dialect: Dialect) -> str:
    sql = (
        f"CONSTRAINT {dialect.quote(foreign_key.name)} FOREIGN KEY ({_columns(dialect, foreign_key.column_names)}) "
        f"REFERENCES {dialect.quote(foreign_key.referenced_table_path)} "
        f"({_columns(dialect, foreign_key.referenced_column_names)})"
    )
    if foreign_key.on_delete:
        sql += f" ON DELETE {foreign_key.on_delete}"
    if foreign_key.on_update:
        sql += f" ON UPDATE {foreign_key.on_update}"
    if foreign_key.deferrable:
        sql += f" DEFERRABLE {foreign_key.deferrable}"
    return sql


# ------------------------------------------------------------------
# Operations
# ------------------------------------------------------------------


@dataclass
class Operation:
    """Base class; ``table`` is the path of the table the operation changes."""

    table: str

    def to_sql(self, dialect: Dialect) -> list[str]:
        raise NotImplementedError

    def describe(self) -> str:
        return f"{type(self).__name__} on {self.table}"


@dataclass
class CreateTable(Operation):
    """Create a table with its columns and primary key."""

    definition: Table

    def to_sql(self, dialect: Dialect) -> list[str]:
        parts = [column_definition(column, dialect) for column in self.definition.columns]
        primary = self.definition.primary_columns
        if primary:
            names = _columns(dialect, [c.name for c in primary])
            if self.definition.primary_key_name:
                parts.append(f"CONSTRAINT {dialect.quote(self.definition.primary_key_name)} PRIMARY KEY ({names})")
            else:
                parts.append(f"PRIMARY KEY ({names})")

        if_not_exists = "IF NOT EXISTS " if dialect.supports_if_exists else ""
        sql = f"CREATE TABLE {if_not_exists}{dialect.quote(self.table)} ({', '.join(parts)})"
        if self.definition.engine and dialect.name == "mysql":
            sql += f" ENGINE={self.definition.engine}"
        if self.definition.without_rowid and dialect.name == "sqlite":
            sql += " WITHOUT ROWID"
        statements = [sql]
        for column in self.definition.columns:
            statements.extend(column_comment_sql(self.table, column, dialect))
        return statements

    def describe(self) -> str:
        return f"create table {self.table}"


@dataclass
class DropTable(Operation):
    definition: Table | None = None

    def to_sql(self, dialect: Dialect) -> list[str]:
        if_exists = "IF EXISTS " if dialect.supports_if_exists else ""
        return [f"DROP TABLE {if_exists}{dialect.quote(self.table)}"]

    def describe(self) -> str:
        return f"drop table {self.table}"


@dataclass
class AddColumn(Operation):
    column: TableColumn

    def to_sql(self, dialect: Dialect) -> list[str]:
        return [
            f"ALTER TABLE {dialect.quote(self.table)} ADD COLUMN {_if_not_exists(dialect)}"
            f"{column_definition(self.column, dialect)}",
            *column_comment_sql(self.table, self.column, dialect),
        ]

    def describe(self) -> str:
        return f"add column {self.table}.{self.column.name}"


@dataclass
class DropColumn(Operation):
    column: TableColumn

    def to_sql(self, dialect: Dialect) -> list[str]:
        return [
            f"ALTER TABLE {dialect.quote(self.table)} DROP COLUMN {_if_exists(dialect)}"
            f"{dialect.quote(self.column.name)}"
        ]

    def describe(self) -> str:
        return f"drop column {self.table}.{self.column.name}"


@dataclass
class AlterColumn(Operation):
    """Change nullability, default or comment of an existing column."""

    old: TableColumn
    new: TableColumn
    changed: list[str] = field(default_factory=list)

    def to_sql(self, dialect: Dialect) -> list[str]:
        table = dialect.quote(self.table)
        column = dialect.quote(self.new.name)
        statements = []
        if dialect.name == "mysql":
            if {"is_nullable", "default", "comment"} & set(self.changed):
                statements.append(f"ALTER TABLE {table} MODIFY {column_definition(self.new, dialect)}")
            return statements

        if "is_nullable" in self.changed:
            action = "DROP NOT NULL" if self.new.is_nullable else "SET NOT NULL"
            statements.append(f"ALTER TABLE {table} ALTER COLUMN {column} {action}")
        if "default" in self.changed:
            if self.new.default is None:
                statements.append(f"ALTER TABLE {table} ALTER COLUMN {column} DROP DEFAULT")
            else:
                statements.append(f"ALTER TABLE {table} ALTER COLUMN {column} SET DEFAULT {self.new.default}")
        if "comment" in self.changed and dialect.supports_comments:
            comment = dialect.quote_literal(self.new.comment) if self.new.comment else "NULL"
            statements.append(f"COMMENT ON COLUMN {table}.{column} IS {comment}")
        return statements

    def describe(self) -> str:
        return f"alter column {self.table}.{self.new.name} ({', '.join(self.changed)})"


@dataclass
class CreatePrimaryKey(Operation):
    name: str | None = None
    column_names: list[str] = field(default_factory=list)

    def to_sql(self, dialect: Dialect) -> list[str]:
        constraint = f"CONSTRAINT {dialect.quote(self.name)} " if self.name else ""
        return [
            f"ALTER TABLE {dialect.quote(self.table)} ADD {constraint}"
            f"PRIMARY KEY ({_columns(dialect, self.column_names)})"
        ]

    def describe(self) -> str:
        return f"create primary key {self.table} ({', '.join(self.column_names)})"


@dataclass
class DropPrimaryKey(Operation):
    name: str | None = None
    column_names: list[str] = field(default_factory=list)

    def to_sql(self, dialect: Dialect) -> list[str]:
        if dialect.name == "mysql" or not self.name:
            return [f"ALTER TABLE {dialect.quote(self.table)} DROP PRIMARY KEY"]
        return [
            f"ALTER TABLE {dialect.quote(self.table)} DROP CONSTRAINT {_if_exists(dialect)}{dialect.quote(self.name)}"
        ]

    def describe(self) -> str:
        return f"drop primary key {self.table}"


@dataclass
class CreateIndex(Operation):
    index: TableIndex

    def to_sql(self, dialect: Dialect) -> list[str]:
        unique = "UNIQUE " if self.index.is_unique else ""
        kind = ""
        if dialect.name == "mysql":
            if self.index.is_fulltext:
                kind = "FULLTEXT "
            elif self.index.is_spatial:
                kind = "SPATIAL "
        using = " USING GiST" if self.index.is_spatial and dialect.name == "postgres" else ""
        sql = (
            f"CREATE {unique}{kind}INDEX {_if_not_exists(dialect)}{dialect.quote(self.index.name)} "
            f"ON {dialect.quote(self.table)}{using} ({_columns(dialect, self.index.column_names)})"
        )
        if self.index.where:
            sql += f" WHERE {self.index.where}"
        return [sql]

    def describe(self) -> str:
        return f"create index {self.index.name} on {self.table}"


@dataclass
class DropIndex(Operation):
    index: TableIndex

    def to_sql(self, dialect: Dialect) -> list[str]:
        if dialect.name in ("mysql", "mssql"):
            return [f"DROP INDEX {dialect.quote(self.index.name)} ON {dialect.quote(self.table)}"]
        path = _index_path(self.table, self.index.name) if dialect.name == "postgres" else self.index.name
        return [f"DROP INDEX {_if_exists(dialect)}{dialect.quote(path)}"]

    def describe(self) -> str:
        return f"drop index {self.index.name} on {self.table}"


@dataclass
class CreateUnique(Operation):
    unique: TableUnique

    def to_sql(self, dialect: Dialect) -> list[str]:
        return [
            f"ALTER TABLE {dialect.quote(self.table)} ADD CONSTRAINT {dialect.quote(self.unique.name)} "
            f"UNIQUE ({_columns(dialect, self.unique.column_names)})"
        ]

    def describe(self) -> str:
        return f"create unique {self.unique.name} on {self.table}"


@dataclass
class DropUnique(Operation):
    unique: TableUnique

    def to_sql(self, dialect: Dialect) -> list[str]:
        if dialect.name == "mysql":
            return [f"DROP INDEX {dialect.quote(self.unique.name)} ON {dialect.quote(self.table)}"]
        return [
            f"ALTER TABLE {dialect.quote(self.table)} DROP CONSTRAINT "
            f"{_if_exists(dialect)}{dialect.quote(self.unique.name)}"
        ]

    def describe(self) -> str:
        return f"drop unique {self.unique.name} on {self.table}"


@dataclass
class CreateCheck(Operation):
    check: TableCheck

    def to_sql(self, dialect: Dialect) -> list[str]:
        return [
            f"ALTER TABLE {dialect.quote(self.table)} ADD CONSTRAINT {dialect.quote(self.check.name)} "
            f"CHECK ({self.check.expression})"
        ]

    def describe(self) -> str:
        return f"create check {self.check.name} on {self.table}"


@dataclass
class DropCheck(Operation):
    check: TableCheck

    def to_sql(self, dialect: Dialect) -> list[str]:
        keyword = "CHECK" if dialect.name == "mysql" else "CONSTRAINT"
        return [
            f"ALTER TABLE {dialect.quote(self.table)} DROP {keyword} "
            f"{_if_exists(dialect)}{dialect.quote(self.check.name)}"
        ]

    def describe(self) -> str:
        return f"drop check {self.check.name} on {self.table}"


@dataclass
class CreateExclusion(Operation):
    exclusion: TableExclusion

    def to_sql(self, dialect: Dialect) -> list[str]:
        return [
            f"ALTER TABLE {dialect.quote(self.table)} ADD CONSTRAINT {dialect.quote(self.exclusion.name)} "
            f"EXCLUDE {self.exclusion.expression}"
        ]

    def describe(self) -> str:
        return f"create exclusion {self.exclusion.name} on {self.table}"


@dataclass
class DropExclusion(Operation):
    exclusion: TableExclusion

    def to_sql(self, dialect: Dialect) -> list[str]:
        return [
            f"ALTER TABLE {dialect.quote(self.table)} DROP CONSTRAINT "
            f"{_if_exists(dialect)}{dialect.quote(self.exclusion.name)}"
        ]

    def describe(self) -> str:
        return f"drop exclusion {self.exclusion.name} on {self.table}"


@dataclass
class CreateForeignKey(Operation):
    foreign_key: TableForeignKey

    def to_sql(self, dialect: Dialect) -> list[str]:
        return [f"ALTER TABLE {dialect.quote(self.table)} ADD {foreign_key_definition(self.foreign_key, dialect)}"]

    def describe(self) -> str:
        return (
            f"create foreign key {self.foreign_key.name} "
            f"{self.table} -> {self.foreign_key.referenced_table_path}"
        )


@dataclass
class DropForeignKey(Operation):
    foreign_key: TableForeignKey

    def to_sql(self, dialect: Dialect) -> list[str]:
        if dialect.name == "mysql":
            return [
                f"ALTER TABLE {dialect.quote(self.table)} DROP FOREIGN KEY {dialect.quote(self.foreign_key.name)}"
            ]
        return [
            f"ALTER TABLE {dialect.quote(self.table)} DROP CONSTRAINT "
            f"{_if_exists(dialect)}{dialect.quote(self.foreign_key.name)}"
        ]

    def describe(self) -> str:
        return f"drop foreign key {self.foreign_key.name} on {self.table}"


@dataclass
class CreatePolicy(Operation):
    policy: TableRowLevelSecurityPolicy

    def to_sql(self, dialect: Dialect) -> list[str]:
        role = self.policy.role if self.policy.role == "public" else dialect.quote(self.policy.role)
        return [
            f"CREATE POLICY {dialect.quote(self.policy.name)} ON {dialect.quote(self.table)} "
            f"AS {self.policy.type.upper()} FOR ALL TO {role} USING ({self.policy.expression})"
        ]

    def describe(self) -> str:
        return f"create policy {self.policy.name} on {self.table}"


@dataclass
class DropPolicy(Operation):
    policy: TableRowLevelSecurityPolicy

    def to_sql(self, dialect: Dialect) -> list[str]:
        return [f"DROP POLICY {_if_exists(dialect)}{dialect.quote(self.policy.name)} ON {dialect.quote(self.table)}"]

    def describe(self) -> str:
        return f"drop policy {self.policy.name} on {self.table}"


@dataclass
class SetRowLevelSecurity(Operation):
    """Move a table from one row-level security state to another.

    ``None`` means disabled.  One operation covers enabling, disabling and
    (un)forcing together, so every transition is a single plan step.
    """

    enabled: bool = False
    force: bool = False
    previous: RowLevelSecurityOptions | None = None

    @property
    def target(self) -> RowLevelSecurityOptions | None:
        return RowLevelSecurityOptions(force=self.force) if self.enabled else None

    def to_sql(self, dialect: Dialect) -> list[str]:
        table = dialect.quote(self.table)
        was_enabled = self.previous is not None
        was_forced = bool(self.previous and self.previous.force)
        statements = []
        if self.enabled:
            if not was_enabled:
                statements.append(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
            if self.force and not was_forced:
                statements.append(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY")
            elif not self.force and was_forced:
                statements.append(f"ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY")
        else:
            if was_forced:
                statements.append(f"ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY")
            if was_enabled:
                statements.append(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")
        return statements

    def describe(self) -> str:
        state = "disabled"
        if self.enabled:
            state = "enabled, forced" if self.force else "enabled"
        return f"set row level security {self.table} ({state})"


@dataclass
class SetTableComment(Operation):
    comment: str | None = None

    def to_sql(self, dialect: Dialect) -> list[str]:
        if not dialect.supports_comments:
            return []
        if dialect.name == "mysql":
            comment = dialect.quote_literal(self.comment or "")
            return [f"ALTER TABLE {dialect.quote(self.table)} COMMENT = {comment}"]
        comment = dialect.quote_literal(self.comment) if self.comment else "NULL"
        return [f"COMMENT ON TABLE {dialect.quote(self.table)} IS {comment}"]

    def describe(self) -> str:
        return f"set comment on {self.table}"
