"""Entity metadata: the canonical, fully-resolved description of one table.

``EntityMetadata`` objects are produced by ``EntityMetadataBuilder``.  Once a
build finishes they are read-only for the duration of a synchronization pass;
the public query methods (``has_id``, ``get_entity_id_map``,
``find_column_with_property_path`` ...) are pure.

Entities passed to the query methods may be mappings or plain objects.

Usage:
    metadatas = build_entity_metadatas(registry, DefaultNamingStrategy(), options)
    tenant = next(m for m in metadatas if m.target_name == "Tenant")

    tenant.has_id({"id": 1})
    # True
    tenant.get_entity_id_mixed_map({"id": 1, "tenantId": 7})
    # 1
"""

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from schema_sync.errors import CannotBuildIdMapError, MetadataNotFoundError
from schema_sync.metadata.args import TableArgs, TreeArgs
from schema_sync.metadata.types import (
    InheritancePattern,
    RowLevelSecurityOptions,
    TableType,
    Target,
    as_target,
    normalize_row_level_security,
)
from schema_sync.metadata.values import is_object, merge_deep
from schema_sync.naming.strings import shorten_identifier

if TYPE_CHECKING:
    from schema_sync.config.models import ConnectionOptions
    from schema_sync.metadata.column import ColumnMetadata
    from schema_sync.metadata.constraints import (
        CheckMetadata,
        ExclusionMetadata,
        IndexMetadata,
        RowLevelSecurityPolicyMetadata,
        UniqueMetadata,
    )
    from schema_sync.metadata.embedded import EmbeddedMetadata
    from schema_sync.metadata.relation import ForeignKeyMetadata, RelationMetadata
    from schema_sync.naming.strategy import NamingStrategy
    from schema_sync.schema.dialect import Dialect

logger = logging.getLogger(__name__)


class EntityMetadata:
    """All metadata of one entity (or one synthetic table such as a junction)."""

    def __init__(
        self,
        args: TableArgs,
        inheritance_tree: list[Target] | None = None,
        inheritance_pattern: InheritancePattern | None = None,
        tree: TreeArgs | None = None,
        parent_closure_entity_metadata: "EntityMetadata | None" = None,
    ) -> None:
        self.table_args = args
        self.target: Target = args.target
        self.table_type: TableType = args.type
        self.inheritance_tree: list[Target] = inheritance_tree or [args.target]
        self.inheritance_pattern = inheritance_pattern
        self.tree_type = tree.type if tree else None
        self.tree_options = tree
        self.expression = args.expression
        self.depends_on = list(args.depends_on)
        self.without_rowid = bool(args.without_rowid)

        # non-owning links
        self.parent_entity_metadata: EntityMetadata | None = None
        self.child_entity_metadatas: list[EntityMetadata] = []
        self.parent_closure_entity_metadata = parent_closure_entity_metadata
        self.closure_junction_table: EntityMetadata | None = None

        self.target_name = args.target.name
        self.name = self.target_name
        self.given_table_name: str | None = args.name
        self.table_name_without_prefix = ""
        self.table_name = ""
        self.table_path = ""
        self.database: str | None = None
        self.schema_name: str | None = None
        self.synchronize = True
        self.engine: str | None = None
        self.order_by: dict[str, str] | None = None
        self.comment: str | None = None
        self.naming_strategy: "NamingStrategy | None" = None
        self.is_junction = False
        self.is_closure_junction = False
        self.discriminator_value: str | None = None
        self._row_level_security: RowLevelSecurityOptions | None = None

        self.own_columns: list[ColumnMetadata] = []
        self.columns: list[ColumnMetadata] = []
        self.primary_columns: list[ColumnMetadata] = []
        self.generated_columns: list[ColumnMetadata] = []
        self.non_virtual_columns: list[ColumnMetadata] = []
        self.owner_columns: list[ColumnMetadata] = []
        self.inverse_columns: list[ColumnMetadata] = []
        self.has_multiple_primary_keys = False
        self.has_uuid_generated_columns = False
        self.create_date_column: ColumnMetadata | None = None
        self.update_date_column: ColumnMetadata | None = None
        self.delete_date_column: ColumnMetadata | None = None
        self.version_column: ColumnMetadata | None = None
        self.discriminator_column: ColumnMetadata | None = None
        self.tree_level_column: ColumnMetadata | None = None
        self.nested_set_left_column: ColumnMetadata | None = None
        self.nested_set_right_column: ColumnMetadata | None = None
        self.materialized_path_column: ColumnMetadata | None = None

        self.own_relations: list[RelationMetadata] = []
        self.relations: list[RelationMetadata] = []
        self.eager_relations: list[RelationMetadata] = []
        self.lazy_relations: list[RelationMetadata] = []
        self.one_to_one_relations: list[RelationMetadata] = []
        self.owner_one_to_one_relations: list[RelationMetadata] = []
        self.one_to_many_relations: list[RelationMetadata] = []
        self.many_to_one_relations: list[RelationMetadata] = []
        self.many_to_many_relations: list[RelationMetadata] = []
        self.owner_many_to_many_relations: list[RelationMetadata] = []
        self.relations_with_join_columns: list[RelationMetadata] = []
        self.tree_parent_relation: RelationMetadata | None = None
        self.tree_children_relation: RelationMetadata | None = None
        self.has_non_nullable_relations = False

        self.embeddeds: list[EmbeddedMetadata] = []
        self.foreign_keys: list[ForeignKeyMetadata] = []
        self.own_indices: list[IndexMetadata] = []
        self.indices: list[IndexMetadata] = []
        self.own_uniques: list[UniqueMetadata] = []
        self.uniques: list[UniqueMetadata] = []
        self.checks: list[CheckMetadata] = []
        self.exclusions: list[ExclusionMetadata] = []
        self.row_level_security_policies: list[RowLevelSecurityPolicyMetadata] = []

        self.properties_map: dict = {}

    def __repr__(self) -> str:
        return f"<EntityMetadata {self.target_name} ({self.table_type.value})>"

    # ------------------------------------------------------------------
    # Row level security
    # ------------------------------------------------------------------

    @property
    def row_level_security(self) -> RowLevelSecurityOptions | None:
        """``None`` when disabled, otherwise enabled (and possibly forced)."""
        return self._row_level_security

    @row_level_security.setter
    def row_level_security(self, value: Any) -> None:
        self._row_level_security = normalize_row_level_security(value)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(
        self,
        naming_strategy: "NamingStrategy",
        options: "ConnectionOptions",
        dialect: "Dialect",
    ) -> "EntityMetadata":
        """Resolve location, table name and table-level settings."""
        args = self.table_args
        self.naming_strategy = naming_strategy
        parent = self.parent_entity_metadata if self.table_type == TableType.ENTITY_CHILD else None

        self.engine = args.engine
        self.database = parent.database if parent else (args.database or options.database)
        if args.schema_name:
            self.schema_name = args.schema_name
        elif parent:
            self.schema_name = parent.schema_name
        else:
            self.schema_name = options.schema_name
        self.given_table_name = parent.given_table_name if parent else args.name
        self.synchronize = args.synchronize is not False

        max_length = options.max_identifier_length
        if max_length is None:
            max_length = dialect.max_identifier_length

        if self.table_type == TableType.CLOSURE_JUNCTION:
            name = naming_strategy.closure_junction_table_name(self.given_table_name or "")
            self.table_name_without_prefix = shorten_identifier(name, max_length)
        elif parent:
            self.table_name_without_prefix = parent.table_name_without_prefix
        else:
            name = naming_strategy.table_name(self.target_name, self.given_table_name)
            if not self.given_table_name:
                name = shorten_identifier(name, max_length)
            self.table_name_without_prefix = name

        if options.entity_prefix:
            self.table_name = naming_strategy.prefix_table_name(
                options.entity_prefix, self.table_name_without_prefix
            )
        else:
            self.table_name = self.table_name_without_prefix

        self.name = self.target_name or self.table_name
        self.without_rowid = args.without_rowid is True
        self.table_path = dialect.build_table_name(self.table_name, self.schema_name, self.database)
        self.order_by = args.order_by
        self.is_junction = self.table_type in (TableType.JUNCTION, TableType.CLOSURE_JUNCTION)
        self.is_closure_junction = self.table_type == TableType.CLOSURE_JUNCTION
        self.comment = args.comment
        logger.debug(f"Resolved table '{self.table_path}' for {self.target_name}")
        return self

    def register_column(self, column: "ColumnMetadata") -> None:
        """Add a column, recompute derived sets and push it to child metadatas."""
        if column in self.own_columns:
            return
        self.own_columns.append(column)
        self._recompute_columns()
        for child in self.child_entity_metadatas:
            child.register_column(column)

    def register_embedded(self, embedded: "EmbeddedMetadata") -> None:
        if embedded in self.embeddeds:
            return
        self.embeddeds.append(embedded)
        self._recompute_columns()
        self._recompute_relations()
        for child in self.child_entity_metadatas:
            for column in embedded.columns_from_tree:
                child.register_column(column)
            for relation in embedded.relations_from_tree:
                child.register_relation(relation)

    def register_relation(self, relation: "RelationMetadata") -> None:
        if relation in self.own_relations:
            return
        self.own_relations.append(relation)
        self._recompute_relations()
        for child in self.child_entity_metadatas:
            child.register_relation(relation)

    def _recompute_columns(self) -> None:
        columns = list(self.own_columns)
        for embedded in self.embeddeds:
            columns.extend(c for c in embedded.columns_from_tree if c not in columns)
        self.columns = columns
        self.primary_columns = [c for c in columns if c.is_primary]
        self.has_multiple_primary_keys = len(self.primary_columns) > 1
        self.generated_columns = [c for c in columns if c.is_generated]
        self.has_uuid_generated_columns = any(
            c.is_generated and c.generation_strategy == "uuid" for c in columns
        )
        self.non_virtual_columns = [c for c in columns if not c.is_virtual]
        self.create_date_column = next((c for c in columns if c.is_create_date), None)
        self.update_date_column = next((c for c in columns if c.is_update_date), None)
        self.delete_date_column = next((c for c in columns if c.is_delete_date), None)
        self.version_column = next((c for c in columns if c.is_version), None)
        self.discriminator_column = next((c for c in columns if c.is_discriminator), None)
        self.tree_level_column = next((c for c in columns if c.is_tree_level), None)
        self.nested_set_left_column = next((c for c in columns if c.is_nested_set_left), None)
        self.nested_set_right_column = next((c for c in columns if c.is_nested_set_right), None)
        self.materialized_path_column = next((c for c in columns if c.is_materialized_path), None)
        self.properties_map = self.create_properties_map()

    def _recompute_relations(self) -> None:
        relations = list(self.own_relations)
        for embedded in self.embeddeds:
            relations.extend(r for r in embedded.relations_from_tree if r not in relations)
        self.relations = relations
        self.eager_relations = [r for r in relations if r.is_eager]
        self.lazy_relations = [r for r in relations if r.is_lazy]
        self.one_to_one_relations = [r for r in relations if r.is_one_to_one]
        self.owner_one_to_one_relations = [r for r in relations if r.is_one_to_one_owner]
        self.one_to_many_relations = [r for r in relations if r.is_one_to_many]
        self.many_to_one_relations = [r for r in relations if r.is_many_to_one]
        self.many_to_many_relations = [r for r in relations if r.is_many_to_many]
        self.owner_many_to_many_relations = [r for r in relations if r.is_many_to_many_owner]
        self.relations_with_join_columns = [r for r in relations if r.is_with_join_columns]
        self.tree_parent_relation = next((r for r in relations if r.is_tree_parent), None)
        self.tree_children_relation = next((r for r in relations if r.is_tree_children), None)
        self.has_non_nullable_relations = any(
            r.is_with_join_columns and not r.is_nullable for r in relations
        )
        self.properties_map = self.create_properties_map()

    def create_properties_map(self) -> dict:
        """Nested map of every property path to itself (``{"profile": {"name": "profile.name"}}``)."""
        properties: dict = {}
        for column in self.columns:
            merge_deep(properties, column.create_value_map(column.property_path))
        for relation in self.relations:
            merge_deep(properties, relation.create_value_map(relation.property_path))
        return properties

    # ------------------------------------------------------------------
    # Identity queries
    # ------------------------------------------------------------------

    def has_id(self, entity: Any) -> bool:
        """True if every primary column has a non-empty value."""
        if not entity:
            return False
        return all(
            column.get_entity_value(entity) not in (None, "")
            for column in self.primary_columns
        )

    def has_all_primary_keys(self, entity: Any) -> bool:
        return all(column.get_entity_value(entity) is not None for column in self.primary_columns)

    def ensure_entity_id_map(self, id: Any) -> dict:
        """Turn a scalar id into an id map; mappings pass through unchanged.

        Raises:
            CannotBuildIdMapError: If *id* is a scalar and the entity has
                several primary keys.
        """
        if isinstance(id, Mapping):
            return dict(id)
        if self.has_multiple_primary_keys:
            raise CannotBuildIdMapError(self.target_name, id)
        return self.primary_columns[0].create_value_map(id)

    def get_entity_id_map(self, entity: Any) -> dict | None:
        if not entity:
            return None
        return EntityMetadata.get_value_map(entity, self.primary_columns)

    def get_entity_id_mixed_map(self, entity: Any) -> Any:
        """Id map for multi-key entities, the bare id value for single-key ones."""
        if not entity:
            return entity
        id_map = self.get_entity_id_map(entity)
        if self.has_multiple_primary_keys:
            return id_map
        if id_map:
            return self.primary_columns[0].get_entity_value(id_map)
        return id_map

    def compare_entities(self, first_entity: Any, second_entity: Any) -> bool:
        first_id_map = self.get_entity_id_map(first_entity)
        if not first_id_map:
            return False
        second_id_map = self.get_entity_id_map(second_entity)
        if not second_id_map:
            return False
        return first_id_map == second_id_map

    # ------------------------------------------------------------------
    # Property lookups
    # ------------------------------------------------------------------

    def find_column_with_property_name(self, property_name: str) -> "ColumnMetadata | None":
        return next((c for c in self.columns if c.property_name == property_name), None)

    def find_column_with_database_name(self, database_name: str) -> "ColumnMetadata | None":
        return next((c for c in self.columns if c.database_name == database_name), None)

    def has_column_with_property_path(self, property_path: str) -> bool:
        has_column = any(c.property_path == property_path for c in self.columns)
        return has_column or self.has_relation_with_property_path(property_path)

    def find_column_with_property_path(self, property_path: str) -> "ColumnMetadata | None":
        """Column at *property_path*, or the single join column of a relation there."""
        column = self.find_column_with_property_path_strict(property_path)
        if column:
            return column
        relation = self.find_relation_with_property_path(property_path)
        if relation and len(relation.join_columns) == 1:
            return relation.join_columns[0]
        return None

    def find_column_with_property_path_strict(self, property_path: str) -> "ColumnMetadata | None":
        return next((c for c in self.columns if c.property_path == property_path and not c.is_virtual), None)

    def find_columns_with_property_path(self, property_path: str) -> list["ColumnMetadata"]:
        column = self.find_column_with_property_path_strict(property_path)
        if column:
            return [column]
        relation = self.find_relation_with_property_path(property_path)
        if relation and relation.join_columns:
            return list(relation.join_columns)
        return []

    def has_relation_with_property_path(self, property_path: str) -> bool:
        return any(r.property_path == property_path for r in self.relations)

    def find_relation_with_property_path(self, property_path: str) -> "RelationMetadata | None":
        return next((r for r in self.relations if r.property_path == property_path), None)

    @property
    def all_embeddeds(self) -> list["EmbeddedMetadata"]:
        result: list[EmbeddedMetadata] = []
        for embedded in self.embeddeds:
            result.extend(embedded.embeddeds_from_tree)
        return result

    def has_embedded_with_property_path(self, property_path: str) -> bool:
        return any(e.property_path == property_path for e in self.all_embeddeds)

    def find_embedded_with_property_path(self, property_path: str) -> "EmbeddedMetadata | None":
        return next((e for e in self.all_embeddeds if e.property_path == property_path), None)

    def resolve_property_path(self, property_path: str) -> Any:
        """Return the column, relation or embedded registered at *property_path*.

        Raises:
            MetadataNotFoundError: If nothing is registered under that path.
        """
        found = (
            self.find_column_with_property_path_strict(property_path)
            or self.find_relation_with_property_path(property_path)
            or self.find_embedded_with_property_path(property_path)
        )
        if found is None:
            raise MetadataNotFoundError(property_path, self.target_name)
        return found

    def map_property_paths_to_columns(self, property_paths: list[str]) -> list["ColumnMetadata"]:
        """Resolve property paths to columns (relations expand to their join columns).

        Raises:
            MetadataNotFoundError: If a path matches no column or relation.
        """
        columns: list[ColumnMetadata] = []
        for property_path in property_paths:
            found = self.find_columns_with_property_path(property_path)
            if not found:
                raise MetadataNotFoundError(property_path, self.target_name)
            columns.extend(found)
        return columns

    # ------------------------------------------------------------------
    # Inheritance
    # ------------------------------------------------------------------

    def find_inheritance_metadata(self, value: Any, target: Target | str | None = None) -> "EntityMetadata":
        """Most specific single-table-inheritance metadata for *value*.

        The discriminator value stored in *value* is tried first, then the
        explicitly supplied declaration *target*.  Without a match (or
        outside single-table inheritance) this metadata is returned.
        """
        if self.inheritance_pattern != InheritancePattern.STI or not self.child_entity_metadatas:
            return self

        if self.discriminator_column is not None:
            discriminator = self.discriminator_column.get_entity_value(value)
            if discriminator is not None:
                for child in self.child_entity_metadatas:
                    if child.discriminator_value == discriminator:
                        return child

        if target is not None:
            wanted = as_target(target)
            for child in self.child_entity_metadatas:
                if child.target == wanted:
                    return child

        return self

    # ------------------------------------------------------------------
    # Insert support
    # ------------------------------------------------------------------

    def get_insertion_returning_columns(self) -> list["ColumnMetadata"]:
        """Columns whose value the database produces on insert."""
        return [
            column
            for column in self.columns
            if column.default is not None
            or column.as_expression is not None
            or column.is_generated
            or column.is_create_date
            or column.is_update_date
            or column.is_delete_date
            or column.is_version
        ]

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------

    @staticmethod
    def get_value_map(entity: Any, columns: list["ColumnMetadata"]) -> dict | None:
        """Merge the value maps of *columns*; ``None`` if any value is missing."""
        value_map: dict = {}
        for column in columns:
            value = column.get_entity_value_map(entity)
            if value is None:
                return None
            merge_deep(value_map, value)
        return value_map

    @staticmethod
    def difference(first_id_maps: list[dict], second_id_maps: list[dict]) -> list[dict]:
        """Id maps in *first_id_maps* that are not in *second_id_maps*."""
        return [id_map for id_map in first_id_maps if id_map not in second_id_maps]

    @staticmethod
    def create_property_path(metadata: "EntityMetadata", entity: Any, prefix: str = "") -> list[str]:
        """List the property paths present in *entity*, descending into embeddeds."""
        items = entity.items() if isinstance(entity, Mapping) else vars(entity).items()
        paths: list[str] = []
        for key, value in items:
            path = f"{prefix}.{key}" if prefix else key
            if metadata.has_embedded_with_property_path(path) and is_object(value):
                paths.extend(EntityMetadata.create_property_path(metadata, value, path))
            else:
                paths.append(path)
        return paths
