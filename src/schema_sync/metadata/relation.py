"""Relation and foreign key metadata."""

from typing import TYPE_CHECKING, Any

from schema_sync.metadata.args import JoinColumnArgs, JoinTableArgs, RelationArgs
from schema_sync.metadata.types import RelationType, Target
from schema_sync.metadata.values import get_value

if TYPE_CHECKING:
    from schema_sync.metadata.column import ColumnMetadata
    from schema_sync.metadata.embedded import EmbeddedMetadata
    from schema_sync.metadata.entity import EntityMetadata
    from schema_sync.naming.strategy import NamingStrategy


class RelationMetadata:
    """A relation between two entities."""

    def __init__(
        self,
        entity_metadata: "EntityMetadata",
        args: RelationArgs,
        embedded_metadata: "EmbeddedMetadata | None" = None,
    ) -> None:
        self.entity_metadata = entity_metadata
        self.embedded_metadata = embedded_metadata
        self.inverse_entity_metadata: "EntityMetadata | None" = None
        self.inverse_relation: "RelationMetadata | None" = None
        self.junction_entity_metadata: "EntityMetadata | None" = None

        self.property_name = args.property_name
        self.property_path = args.property_name
        self.relation_type = args.relation_type
        self.inverse_target: Target = args.inverse_target
        self.inverse_side_property_path = args.inverse_side
        self.is_nullable = args.nullable
        self.is_primary = args.primary
        self.on_delete = args.on_delete
        self.on_update = args.on_update
        self.deferrable = args.deferrable
        self.is_lazy = args.lazy
        self.is_eager = args.eager
        self.is_tree_parent = args.is_tree_parent
        self.is_tree_children = args.is_tree_children
        self.create_foreign_key_constraints = args.create_foreign_key_constraints
        self.given_join_columns: list[JoinColumnArgs] | None = args.join_columns
        self.given_join_table: JoinTableArgs | None = args.join_table

        self.join_columns: list["ColumnMetadata"] = []
        self.inverse_join_columns: list["ColumnMetadata"] = []
        self.foreign_keys: list[ForeignKeyMetadata] = []

        if self.relation_type == RelationType.MANY_TO_ONE:
            self.is_owning = True
        elif self.relation_type == RelationType.ONE_TO_ONE:
            self.is_owning = self.given_join_columns is not None
        elif self.relation_type == RelationType.MANY_TO_MANY:
            self.is_owning = self.given_join_table is not None
        else:
            self.is_owning = False

    def __repr__(self) -> str:
        return f"<RelationMetadata {self.entity_metadata.target_name}.{self.property_path}>"

    @property
    def is_one_to_one(self) -> bool:
        return self.relation_type == RelationType.ONE_TO_ONE

    @property
    def is_one_to_one_owner(self) -> bool:
        return self.is_one_to_one and self.is_owning

    @property
    def is_one_to_one_not_owner(self) -> bool:
        return self.is_one_to_one and not self.is_owning

    @property
    def is_one_to_many(self) -> bool:
        return self.relation_type == RelationType.ONE_TO_MANY

    @property
    def is_many_to_one(self) -> bool:
        return self.relation_type == RelationType.MANY_TO_ONE

    @property
    def is_many_to_many(self) -> bool:
        return self.relation_type == RelationType.MANY_TO_MANY

    @property
    def is_many_to_many_owner(self) -> bool:
        return self.is_many_to_many and self.is_owning

    @property
    def is_with_join_columns(self) -> bool:
        return self.is_many_to_one or self.is_one_to_one_owner

    def build(self) -> "RelationMetadata":
        if self.embedded_metadata and self.embedded_metadata.property_path:
            self.property_path = f"{self.embedded_metadata.property_path}.{self.property_name}"
        return self

    def get_entity_value(self, entity: Any) -> Any:
        if self.embedded_metadata:
            for property_name in self.embedded_metadata.parent_property_names:
                entity = get_value(entity, property_name)
                if entity is None:
                    return None
        return get_value(entity, self.property_name)

    def create_value_map(self, value: Any) -> dict:
        inner = {self.property_name: value}
        if self.embedded_metadata:
            for property_name in reversed(self.embedded_metadata.parent_property_names):
                inner = {property_name: inner}
        return inner

    def register_join_columns(
        self,
        join_columns: list["ColumnMetadata"],
        inverse_join_columns: list["ColumnMetadata"] | None = None,
    ) -> None:
        self.join_columns = join_columns
        self.inverse_join_columns = inverse_join_columns or []

    def register_junction_entity_metadata(self, junction: "EntityMetadata") -> None:
        self.junction_entity_metadata = junction

    def register_foreign_keys(self, *foreign_keys: "ForeignKeyMetadata") -> None:
        self.foreign_keys.extend(foreign_keys)


class ForeignKeyMetadata:
    """A foreign key from ``entity_metadata.columns`` to ``referenced_columns``."""

    def __init__(
        self,
        entity_metadata: "EntityMetadata",
        referenced_entity_metadata: "EntityMetadata",
        columns: list["ColumnMetadata"],
        referenced_columns: list["ColumnMetadata"],
        on_delete: str | None = None,
        on_update: str | None = None,
        deferrable: str | None = None,
        name: str | None = None,
    ) -> None:
        self.entity_metadata = entity_metadata
        self.referenced_entity_metadata = referenced_entity_metadata
        self.columns = columns
        self.referenced_columns = referenced_columns
        self.on_delete = on_delete or "NO ACTION"
        self.on_update = on_update or "NO ACTION"
        self.deferrable = deferrable
        self.given_name = name
        self.name = name or ""

    def __repr__(self) -> str:
        return f"<ForeignKeyMetadata {self.name}>"

    @property
    def column_names(self) -> list[str]:
        return [column.database_name for column in self.columns]

    @property
    def referenced_column_names(self) -> list[str]:
        return [column.database_name for column in self.referenced_columns]

    @property
    def referenced_table_path(self) -> str:
        return self.referenced_entity_metadata.table_path

    def build(self, naming_strategy: "NamingStrategy") -> "ForeignKeyMetadata":
        self.name = self.given_name or naming_strategy.foreign_key_name(
            self.entity_metadata.table_name,
            self.column_names,
            self.referenced_table_path,
            self.referenced_column_names,
        )
        return self
