"""Built column metadata."""

from typing import TYPE_CHECKING, Any

from schema_sync.metadata.args import ColumnArgs
from schema_sync.metadata.types import ColumnMode
from schema_sync.metadata.values import get_value, is_object

if TYPE_CHECKING:
    from schema_sync.metadata.embedded import EmbeddedMetadata
    from schema_sync.metadata.entity import EntityMetadata
    from schema_sync.metadata.relation import RelationMetadata
    from schema_sync.naming.strategy import NamingStrategy


class ColumnMetadata:
    """A column of an entity, after naming and embedding are resolved.

    Join columns created for relations carry ``relation_metadata`` and
    ``referenced_column``; their value is read through the related object.
    """

    def __init__(
        self,
        entity_metadata: "EntityMetadata",
        property_name: str,
        *,
        embedded_metadata: "EmbeddedMetadata | None" = None,
        relation_metadata: "RelationMetadata | None" = None,
        referenced_column: "ColumnMetadata | None" = None,
        mode: ColumnMode = ColumnMode.REGULAR,
        name: str | None = None,
        type: str | None = None,
        length: int | None = None,
        precision: int | None = None,
        scale: int | None = None,
        nullable: bool = False,
        default: Any = None,
        primary: bool = False,
        unique: bool = False,
        comment: str | None = None,
        generated: str | None = None,
        generated_type: str | None = None,
        as_expression: str | None = None,
        array: bool = False,
        enum: list[str] | None = None,
        primary_key_constraint_name: str | None = None,
        is_virtual: bool = False,
        is_discriminator: bool = False,
        is_nested_set_left: bool = False,
        is_nested_set_right: bool = False,
        is_materialized_path: bool = False,
    ) -> None:
        self.entity_metadata = entity_metadata
        self.embedded_metadata = embedded_metadata
        self.relation_metadata = relation_metadata
        self.referenced_column = referenced_column
        self.property_name = property_name
        self.given_database_name = name
        self.type = type
        self.length = length
        self.precision = precision
        self.scale = scale
        self.is_nullable = nullable
        self.default = default
        self.is_primary = primary
        self.is_unique = unique
        self.comment = comment
        self.is_generated = generated is not None
        self.generation_strategy = generated
        self.generated_type = generated_type
        self.as_expression = as_expression
        self.is_array = array
        self.enum = enum
        self.primary_key_constraint_name = primary_key_constraint_name
        self.is_virtual = is_virtual
        self.is_discriminator = is_discriminator
        self.is_nested_set_left = is_nested_set_left
        self.is_nested_set_right = is_nested_set_right
        self.is_materialized_path = is_materialized_path

        self.is_create_date = mode == ColumnMode.CREATE_DATE
        self.is_update_date = mode == ColumnMode.UPDATE_DATE
        self.is_delete_date = mode == ColumnMode.DELETE_DATE
        self.is_version = mode == ColumnMode.VERSION
        self.is_virtual_property = mode == ColumnMode.VIRTUAL_PROPERTY
        self.is_tree_level = mode == ColumnMode.TREE_LEVEL

        self.property_path = property_name
        self.database_name = name or property_name

    @classmethod
    def from_args(
        cls,
        entity_metadata: "EntityMetadata",
        args: ColumnArgs,
        embedded_metadata: "EmbeddedMetadata | None" = None,
    ) -> "ColumnMetadata":
        return cls(
            entity_metadata,
            args.property_name,
            embedded_metadata=embedded_metadata,
            mode=args.mode,
            name=args.name,
            type=args.type,
            length=args.length,
            precision=args.precision,
            scale=args.scale,
            nullable=args.nullable,
            default=args.default,
            primary=args.primary,
            unique=args.unique,
            comment=args.comment,
            generated=args.generated,
            generated_type=args.generated_type,
            as_expression=args.as_expression,
            array=args.array,
            enum=args.enum,
            primary_key_constraint_name=args.primary_key_constraint_name,
        )

    def __repr__(self) -> str:
        return f"<ColumnMetadata {self.entity_metadata.target_name}.{self.property_path}>"

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self, naming_strategy: "NamingStrategy") -> "ColumnMetadata":
        """Compute the property path and the final database name."""
        self.property_path = self._build_property_path()
        prefixes = self.embedded_metadata.parent_prefixes if self.embedded_metadata else []
        self.database_name = naming_strategy.column_name(
            self.property_name, self.given_database_name, prefixes
        )
        return self

    def _build_property_path(self) -> str:
        if self.embedded_metadata and self.embedded_metadata.property_path:
            return f"{self.embedded_metadata.property_path}.{self.property_name}"
        return self.property_name

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _extract_embedded_owner(self, entity: Any) -> Any:
        """Walk down the embedded chain and return the object holding this column."""
        if not self.embedded_metadata:
            return entity
        for property_name in self.embedded_metadata.parent_property_names:
            entity = get_value(entity, property_name)
            if entity is None:
                return None
        return entity

    def get_entity_value(self, entity: Any) -> Any:
        """Read this column's value from *entity* (mapping or object)."""
        owner = self._extract_embedded_owner(entity)
        if owner is None:
            return None
        value = get_value(owner, self.property_name)
        if self.relation_metadata and self.referenced_column and is_object(value):
            return self.referenced_column.get_entity_value(value)
        return value

    def get_entity_value_map(self, entity: Any) -> dict | None:
        """Nested ``{property: value}`` map of this column's value, ``None`` if unset."""
        owner = self._extract_embedded_owner(entity)
        if owner is None:
            return None

        value = get_value(owner, self.property_name)
        if self.relation_metadata and self.referenced_column and is_object(value):
            related_map: dict = {}
            for join_column in self.relation_metadata.join_columns:
                referenced = join_column.referenced_column
                sub_map = referenced.get_entity_value_map(value) if referenced else None
                if sub_map is not None:
                    related_map.update(sub_map)
            if not related_map:
                return None
            value = related_map
        elif value is None:
            return None

        return self._wrap_in_embedded_path({self.property_name: value})

    def create_value_map(self, value: Any) -> dict:
        """Build the nested map an entity would need to carry *value* in this column."""
        if self.relation_metadata and self.referenced_column and self.is_virtual:
            inner = {self.relation_metadata.property_name: self.referenced_column.create_value_map(value)}
        else:
            inner = {self.property_name: value}
        return self._wrap_in_embedded_path(inner)

    def _wrap_in_embedded_path(self, inner: dict) -> dict:
        if not self.embedded_metadata:
            return inner
        for property_name in reversed(self.embedded_metadata.parent_property_names):
            inner = {property_name: inner}
        return inner
