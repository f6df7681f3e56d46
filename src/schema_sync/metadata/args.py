"""Raw declaration facts and the registry that collects them.

The registry replaces class decorators: whoever captures declarations (a
decorator layer, a config file, a test) registers plain fact objects, and
``EntityMetadataBuilder`` reads them.  The registry is append-only and the
builder never depends on the order facts were registered in.

Usage:
    from schema_sync.metadata.args import MetadataRegistry, TableArgs, ColumnArgs

    registry = MetadataRegistry()
    registry.register(
        TableArgs(target="Tenant", row_level_security=True),
        ColumnArgs(target="Tenant", property_name="id", primary=True, generated="increment"),
        ColumnArgs(target="Tenant", property_name="tenantId", unique=True, type="int"),
    )
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, Field, field_validator

from schema_sync.metadata.types import (
    ColumnMode,
    GenerationStrategy,
    InheritancePattern,
    PolicyType,
    RelationType,
    RowLevelSecurityOptions,
    TableType,
    Target,
    TreeType,
    as_target,
    normalize_row_level_security,
)


# ============================================================================
# Fact Models
# ============================================================================


class DeclarationFact(BaseModel):
    """Base for every fact: the declaration it belongs to."""

    target: Target

    @field_validator("target", mode="before")
    @classmethod
    def _coerce_target(cls, value: Any) -> Any:
        return as_target(value) if isinstance(value, str) else value


class TableArgs(DeclarationFact):
    """A declaration mapped to a table (or view)."""

    name: str | None = None
    type: TableType = TableType.REGULAR
    database: str | None = None
    schema_name: str | None = None
    synchronize: bool | None = None
    without_rowid: bool | None = None
    comment: str | None = None
    row_level_security: RowLevelSecurityOptions | None = None
    order_by: dict[str, str] | None = None
    engine: str | None = None
    depends_on: list[str] = Field(default_factory=list)
    expression: str | None = None  # view definition
    discriminator_value: str | None = None

    @field_validator("row_level_security", mode="before")
    @classmethod
    def _normalize_rls(cls, value: Any) -> Any:
        return normalize_row_level_security(value)


class DeclarationArgs(DeclarationFact):
    """Parent link of a declaration (replaces class inheritance)."""

    parent: Target | None = None

    @field_validator("parent", mode="before")
    @classmethod
    def _coerce_parent(cls, value: Any) -> Any:
        return as_target(value) if isinstance(value, str) else value


class ColumnArgs(DeclarationFact):
    """A column declared on a property."""

    property_name: str
    mode: ColumnMode = ColumnMode.REGULAR
    name: str | None = None
    type: str | None = None
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    nullable: bool = False
    default: Any = None
    primary: bool = False
    unique: bool = False
    comment: str | None = None
    generated: GenerationStrategy | None = None
    generated_type: Literal["STORED", "VIRTUAL"] | None = None
    as_expression: str | None = None
    array: bool = False
    enum: list[str] | None = None
    primary_key_constraint_name: str | None = None


class EmbeddedArgs(DeclarationFact):
    """A group of columns declared by another declaration, nested under a property."""

    property_name: str
    embedded_target: Target
    prefix: str | bool | None = None
    array: bool = False

    @field_validator("embedded_target", mode="before")
    @classmethod
    def _coerce_embedded(cls, value: Any) -> Any:
        return as_target(value) if isinstance(value, str) else value


class JoinColumnArgs(BaseModel):
    name: str | None = None
    referenced_column_name: str | None = None
    foreign_key_constraint_name: str | None = None


class JoinTableArgs(BaseModel):
    name: str | None = None
    join_columns: list[JoinColumnArgs] | None = None
    inverse_join_columns: list[JoinColumnArgs] | None = None
    database: str | None = None
    schema_name: str | None = None
    synchronize: bool = True


class RelationArgs(DeclarationFact):
    """A relation to another entity.

    ``join_columns`` marks the owning side of a one-to-one; ``join_table``
    marks the owning side of a many-to-many.  Many-to-one is always owning.
    """

    property_name: str
    relation_type: RelationType
    inverse_target: Target
    inverse_side: str | None = None
    nullable: bool = True
    primary: bool = False
    on_delete: str | None = None
    on_update: str | None = None
    deferrable: str | None = None
    lazy: bool = False
    eager: bool = False
    join_columns: list[JoinColumnArgs] | None = None
    join_table: JoinTableArgs | None = None
    is_tree_parent: bool = False
    is_tree_children: bool = False
    create_foreign_key_constraints: bool = True

    @field_validator("inverse_target", mode="before")
    @classmethod
    def _coerce_inverse(cls, value: Any) -> Any:
        return as_target(value) if isinstance(value, str) else value


class IndexArgs(DeclarationFact):
    """An index over property paths."""

    name: str | None = None
    columns: list[str]
    unique: bool = False
    where: str | None = None
    synchronize: bool = True
    spatial: bool = False
    fulltext: bool = False


class UniqueArgs(DeclarationFact):
    name: str | None = None
    columns: list[str]


class CheckArgs(DeclarationFact):
    name: str | None = None
    expression: str


class ExclusionArgs(DeclarationFact):
    name: str | None = None
    expression: str


class RowLevelSecurityPolicyArgs(DeclarationFact):
    """A row-level security policy; missing role/type mean ``public``/``permissive``."""

    name: str | None = None
    expression: str
    role: str | None = None
    type: PolicyType | None = None


class EnableRowLevelSecurityArgs(DeclarationFact):
    """An "enable" marker, valid on entities and on plain base declarations."""

    force: bool = False

    @property
    def options(self) -> RowLevelSecurityOptions:
        return RowLevelSecurityOptions(enabled=True, force=self.force)


class TableInheritanceArgs(DeclarationFact):
    """Declares a single-table inheritance root and its discriminator column."""

    pattern: InheritancePattern = InheritancePattern.STI
    column_name: str = "type"
    column_type: str = "varchar"
    column_length: int | None = None


class TreeArgs(DeclarationFact):
    type: TreeType
    closure_ancestor_column_name: str | None = None
    closure_descendant_column_name: str | None = None


# ============================================================================
# Registry
# ============================================================================

FactT = TypeVar("FactT", bound=DeclarationFact)


@dataclass
class MetadataRegistry:
    """Unordered collection of declaration facts, keyed by their target."""

    tables: list[TableArgs] = field(default_factory=list)
    declarations: list[DeclarationArgs] = field(default_factory=list)
    columns: list[ColumnArgs] = field(default_factory=list)
    embeddeds: list[EmbeddedArgs] = field(default_factory=list)
    relations: list[RelationArgs] = field(default_factory=list)
    indices: list[IndexArgs] = field(default_factory=list)
    uniques: list[UniqueArgs] = field(default_factory=list)
    checks: list[CheckArgs] = field(default_factory=list)
    exclusions: list[ExclusionArgs] = field(default_factory=list)
    row_level_security_policies: list[RowLevelSecurityPolicyArgs] = field(default_factory=list)
    row_level_security_markers: list[EnableRowLevelSecurityArgs] = field(default_factory=list)
    inheritances: list[TableInheritanceArgs] = field(default_factory=list)
    trees: list[TreeArgs] = field(default_factory=list)

    def register(self, *facts: DeclarationFact) -> "MetadataRegistry":
        """Append facts to the matching collections.

        Raises:
            TypeError: If a fact is not one of the known fact types.
        """
        for fact in facts:
            collection = _FACT_COLLECTIONS.get(type(fact))
            if collection is None:
                raise TypeError(f"Unknown declaration fact: {type(fact).__name__}")
            getattr(self, collection).append(fact)
        return self

    def find_table(self, target: Target) -> TableArgs | None:
        return next((table for table in self.tables if table.target == target), None)

    def has_table(self, target: Target) -> bool:
        return self.find_table(target) is not None

    def is_declared(self, target: Target) -> bool:
        """True if any fact at all was registered for *target*."""
        return any(
            fact.target == target
            for collection in _FACT_COLLECTIONS.values()
            for fact in getattr(self, collection)
        )

    def find_parent(self, target: Target) -> Target | None:
        declaration = next((d for d in self.declarations if d.target == target), None)
        return declaration.parent if declaration else None

    def find_inheritance(self, target: Target) -> TableInheritanceArgs | None:
        return next((i for i in self.inheritances if i.target == target), None)

    def find_tree(self, target: Target) -> TreeArgs | None:
        return next((t for t in self.trees if t.target == target), None)

    def find_row_level_security_marker(self, target: Target) -> EnableRowLevelSecurityArgs | None:
        return next((m for m in self.row_level_security_markers if m.target == target), None)

    def filter(self, items: Iterable[FactT], targets: list[Target]) -> list[FactT]:
        """Facts belonging to *targets*, grouped in the order of *targets*."""
        items = list(items)
        result: list[FactT] = []
        for target in targets:
            result.extend(item for item in items if item.target == target)
        return result


_FACT_COLLECTIONS: dict[type, str] = {
    TableArgs: "tables",
    DeclarationArgs: "declarations",
    ColumnArgs: "columns",
    EmbeddedArgs: "embeddeds",
    RelationArgs: "relations",
    IndexArgs: "indices",
    UniqueArgs: "uniques",
    CheckArgs: "checks",
    ExclusionArgs: "exclusions",
    RowLevelSecurityPolicyArgs: "row_level_security_policies",
    EnableRowLevelSecurityArgs: "row_level_security_markers",
    TableInheritanceArgs: "inheritances",
    TreeArgs: "trees",
}
