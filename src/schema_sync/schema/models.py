"""Canonical table model shared by desired and live schemas.

Desired tables are built from entity metadata (``Table.create``); live tables
come from an introspector.  Both use exactly these models so the differ can
compare them field by field.  Column types are always stored in the dialect's
canonical spelling and defaults as the SQL text the database reports.
"""

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from schema_sync.metadata.types import RowLevelSecurityOptions

if TYPE_CHECKING:
    from schema_sync.metadata.entity import EntityMetadata
    from schema_sync.naming.strategy import NamingStrategy
    from schema_sync.schema.dialect import Dialect


# ============================================================================
# Table Parts
# ============================================================================


class TableColumn(BaseModel):
    """A column of a table.

    Example:
        >>> col = TableColumn(name="id", type="integer", is_primary=True)
        >>> col.is_nullable
        False
    """

    name: str
    type: str
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    is_nullable: bool = False
    default: str | None = None
    is_primary: bool = False
    is_generated: bool = False
    generation_strategy: str | None = None
    as_expression: str | None = None
    generated_type: str | None = None
    comment: str | None = None
    is_array: bool = False
    enum: list[str] | None = None


class TableIndex(BaseModel):
    """An index; ``synchronize=False`` indices are never created, altered or dropped."""

    name: str
    column_names: list[str] = Field(default_factory=list)
    is_unique: bool = False
    where: str | None = None
    is_spatial: bool = False
    is_fulltext: bool = False
    synchronize: bool = True


class TableUnique(BaseModel):
    name: str
    column_names: list[str] = Field(default_factory=list)


class TableCheck(BaseModel):
    name: str
    expression: str


class TableExclusion(BaseModel):
    name: str
    expression: str


class TableForeignKey(BaseModel):
    """A foreign key; ``referenced_table_path`` is the referenced table's path."""

    name: str
    column_names: list[str] = Field(default_factory=list)
    referenced_table_path: str
    referenced_column_names: list[str] = Field(default_factory=list)
    on_delete: str = "NO ACTION"
    on_update: str = "NO ACTION"
    deferrable: str | None = None


class TableRowLevelSecurityPolicy(BaseModel):
    name: str
    expression: str
    role: str = "public"
    type: str = "permissive"


# ============================================================================
# Table
# ============================================================================


class Table(BaseModel):
    """A table with its columns, constraints and row-level security state.

    ``name`` is the full table path (``schema.table`` where a schema applies).

    Example:
        >>> table = Table(name="tenant", columns=[TableColumn(name="id", type="integer", is_primary=True)])
        >>> [c.name for c in table.primary_columns]
        ['id']
        >>> table.clone() == table
        True
    """

    name: str
    schema_name: str | None = None
    database: str | None = None
    columns: list[TableColumn] = Field(default_factory=list)
    indices: list[TableIndex] = Field(default_factory=list)
    uniques: list[TableUnique] = Field(default_factory=list)
    checks: list[TableCheck] = Field(default_factory=list)
    foreign_keys: list[TableForeignKey] = Field(default_factory=list)
    exclusions: list[TableExclusion] = Field(default_factory=list)
    row_level_security_policies: list[TableRowLevelSecurityPolicy] = Field(default_factory=list)
    row_level_security: RowLevelSecurityOptions | None = None
    primary_key_name: str | None = None
    engine: str | None = None
    comment: str | None = None
    without_rowid: bool = False

    @classmethod
    def create(
        cls,
        metadata: "EntityMetadata",
        dialect: "Dialect",
        naming_strategy: "NamingStrategy | None" = None,
    ) -> "Table":
        """Build the desired table for *metadata* (see ``schema.convert``)."""
        from schema_sync.schema.convert import table_from_metadata

        return table_from_metadata(metadata, dialect, naming_strategy)

    def clone(self) -> "Table":
        """Deep copy; mutating the copy never affects this table."""
        return self.model_copy(deep=True)

    @property
    def primary_columns(self) -> list[TableColumn]:
        return [column for column in self.columns if column.is_primary]

    def find_column_by_name(self, name: str) -> TableColumn | None:
        return next((column for column in self.columns if column.name == name), None)

    def find_columns_by_names(self, names: list[str]) -> list[TableColumn]:
        return [column for column in self.columns if column.name in names]

    def add_column(self, column: TableColumn) -> None:
        self.columns.append(column)

    def remove_column(self, name: str) -> None:
        """Remove a column and every index, unique and foreign key built on it."""
        self.columns = [c for c in self.columns if c.name != name]
        self.indices = [i for i in self.indices if name not in i.column_names]
        self.uniques = [u for u in self.uniques if name not in u.column_names]
        self.foreign_keys = [fk for fk in self.foreign_keys if name not in fk.column_names]
        if not self.primary_columns:
            self.primary_key_name = None

    def replace_column(self, column: TableColumn) -> None:
        self.columns = [column if c.name == column.name else c for c in self.columns]
