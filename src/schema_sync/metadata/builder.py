"""Build ``EntityMetadata`` objects from the facts in a ``MetadataRegistry``.

The builder works in passes so that the result never depends on the order in
which facts were registered:

1. create one metadata per table declaration and link single-table
   inheritance parents and children
2. resolve table names and paths
3. register embeddeds, columns and relations (propagating into STI children)
4. add special columns (discriminator, nested set, materialized path)
5. resolve inverse relations, create join columns and foreign keys
6. create junction and closure-junction metadatas
7. build indices, uniques, checks, exclusions and row-level security

Usage:
    from schema_sync.metadata.builder import build_entity_metadatas
    from schema_sync.naming import DefaultNamingStrategy
    from schema_sync.config import ConnectionOptions

    metadatas = build_entity_metadatas(registry, DefaultNamingStrategy(), ConnectionOptions())
"""

import logging

from schema_sync.config.models import ConnectionOptions
from schema_sync.errors import MetadataNotFoundError, MissingPrimaryColumnError
from schema_sync.metadata.args import (
    JoinColumnArgs,
    MetadataRegistry,
    TableArgs,
    TreeArgs,
)
from schema_sync.metadata.column import ColumnMetadata
from schema_sync.metadata.constraints import (
    CheckMetadata,
    ExclusionMetadata,
    IndexMetadata,
    RelationUniqueMetadata,
    RowLevelSecurityPolicyMetadata,
    UniqueMetadata,
)
from schema_sync.metadata.embedded import EmbeddedMetadata
from schema_sync.metadata.entity import EntityMetadata
from schema_sync.metadata.relation import ForeignKeyMetadata, RelationMetadata
from schema_sync.metadata.types import (
    InheritancePattern,
    RowLevelSecurityOptions,
    TableType,
    Target,
    TreeType,
)
from schema_sync.naming.strategy import DefaultNamingStrategy, NamingStrategy
from schema_sync.naming.strings import shorten_identifier
from schema_sync.schema.dialect import Dialect, get_dialect

logger = logging.getLogger(__name__)

_ENTITY_TABLE_TYPES = (TableType.REGULAR, TableType.VIEW, TableType.ENTITY_CHILD)


class EntityMetadataBuilder:
    """Turns registry facts into fully-resolved entity metadatas.

    Args:
        registry: Declaration facts.
        naming_strategy: Strategy for every generated identifier.
        options: Connection-level settings (schema, prefix, identifier limit).
        dialect: Dialect used for table paths; looked up from ``options.type``
            when omitted.
    """

    def __init__(
        self,
        registry: MetadataRegistry,
        naming_strategy: NamingStrategy | None = None,
        options: ConnectionOptions | None = None,
        dialect: Dialect | None = None,
    ) -> None:
        self.registry = registry
        self.naming_strategy = naming_strategy or DefaultNamingStrategy()
        self.options = options or ConnectionOptions()
        self.dialect = dialect or get_dialect(self.options.type)

    def build(self) -> list[EntityMetadata]:
        """Build every entity metadata plus the junction tables they need.

        Returns:
            Entity metadatas in registry order, followed by junction and
            closure-junction metadatas.

        Raises:
            MetadataNotFoundError: If a relation or embedded points to an
                undeclared target, or a constraint names an unknown property.
            MissingPrimaryColumnError: If a table entity has no primary column.
        """
        entities = [
            self._create_entity_metadata(table)
            for table in self.registry.tables
            if table.type in _ENTITY_TABLE_TYPES
        ]
        self._link_inheritance(entities)

        # parents resolve their table names before their children
        by_depth = sorted(entities, key=lambda m: len(m.inheritance_tree))
        for metadata in by_depth:
            metadata.build(self.naming_strategy, self.options, self.dialect)

        for metadata in by_depth:
            self._register_properties(metadata)
            self._build_special_columns(metadata)

        self._compute_discriminator_values(entities)
        self._compute_inverse_properties(entities)

        # relations that are part of a primary key go first so that
        # references to those keys can mirror the join columns
        relations = [
            relation
            for metadata in by_depth
            for relation in metadata.relations
            if relation.entity_metadata is metadata
        ]
        for relation in sorted(relations, key=lambda r: not r.is_primary):
            if relation.is_with_join_columns:
                self._build_join_columns(relation)

        for metadata in entities:
            if metadata.table_type == TableType.REGULAR and not metadata.primary_columns:
                raise MissingPrimaryColumnError(metadata.name)

        junctions: list[EntityMetadata] = []
        for relation in relations:
            if relation.is_many_to_many_owner:
                junctions.append(self._build_junction(relation))

        for metadata in entities:
            if metadata.tree_type == TreeType.CLOSURE_TABLE and metadata.table_type != TableType.ENTITY_CHILD:
                junctions.append(self._build_closure_junction(metadata))

        for metadata in entities:
            self._build_constraints(metadata)
            metadata.row_level_security = self._resolve_row_level_security(metadata)

        all_metadatas = entities + junctions
        logger.info(
            f"Built metadata for {len(entities)} entities and {len(junctions)} junction tables"
        )
        return all_metadatas

    # ------------------------------------------------------------------
    # Inheritance
    # ------------------------------------------------------------------

    def _inheritance_tree(self, target: Target) -> list[Target]:
        """Ancestor-to-descendant chain of declarations ending with *target*."""
        tree = [target]
        parent = self.registry.find_parent(target)
        while parent is not None and parent not in tree:
            tree.append(parent)
            parent = self.registry.find_parent(parent)
        tree.reverse()
        return tree

    def _create_entity_metadata(self, table: TableArgs) -> EntityMetadata:
        tree = self._inheritance_tree(table.target)
        inheritance = next(
            (self.registry.find_inheritance(t) for t in tree if self.registry.find_inheritance(t)),
            None,
        )
        tree_args = self._find_tree(tree)
        if inheritance and table.type == TableType.REGULAR:
            root = next(t for t in tree if self.registry.find_inheritance(t))
            if root != table.target and self.registry.has_table(root):
                table = table.model_copy(update={"type": TableType.ENTITY_CHILD})

        return EntityMetadata(
            table,
            inheritance_tree=tree,
            inheritance_pattern=inheritance.pattern if inheritance else None,
            tree=tree_args,
        )

    def _find_tree(self, tree: list[Target]) -> TreeArgs | None:
        for target in reversed(tree):
            tree_args = self.registry.find_tree(target)
            if tree_args:
                return tree_args
        return None

    def _link_inheritance(self, entities: list[EntityMetadata]) -> None:
        by_target = {metadata.target: metadata for metadata in entities}
        for metadata in entities:
            if metadata.table_type != TableType.ENTITY_CHILD:
                continue
            for ancestor in reversed(metadata.inheritance_tree[:-1]):
                parent = by_target.get(ancestor)
                if parent and parent.inheritance_pattern == InheritancePattern.STI:
                    metadata.parent_entity_metadata = parent
                    break

        for metadata in entities:
            if metadata.inheritance_pattern != InheritancePattern.STI:
                continue
            descendants = [
                other
                for other in entities
                if other.table_type == TableType.ENTITY_CHILD
                and metadata.target in other.inheritance_tree[:-1]
            ]
            metadata.child_entity_metadatas = sorted(descendants, key=lambda m: m.target_name)

    def _own_declarations(self, metadata: EntityMetadata) -> list[Target]:
        """Declarations whose properties belong to *metadata* itself.

        STI children only own what is declared below their parent entity;
        everything above it arrives through propagation.
        """
        parent = metadata.parent_entity_metadata
        if metadata.table_type == TableType.ENTITY_CHILD and parent:
            index = metadata.inheritance_tree.index(parent.target)
            return metadata.inheritance_tree[index + 1:]
        return metadata.inheritance_tree

    def _compute_discriminator_values(self, entities: list[EntityMetadata]) -> None:
        for metadata in entities:
            if metadata.inheritance_pattern == InheritancePattern.STI:
                metadata.discriminator_value = (
                    metadata.table_args.discriminator_value or metadata.target_name
                )

    # ------------------------------------------------------------------
    # Columns, embeddeds, relations
    # ------------------------------------------------------------------

    def _register_properties(self, metadata: EntityMetadata) -> None:
        targets = self._own_declarations(metadata)

        embeddeds = self._create_embeddeds(metadata, targets)
        for embedded in embeddeds:
            embedded.build()
            for column in embedded.columns_from_tree:
                column.build(self.naming_strategy)
            for relation in embedded.relations_from_tree:
                relation.build()

        for args in self.registry.filter(self.registry.columns, targets):
            column = ColumnMetadata.from_args(metadata, args)
            metadata.register_column(column.build(self.naming_strategy))

        for embedded in embeddeds:
            metadata.register_embedded(embedded)

        for args in self.registry.filter(self.registry.relations, targets):
            metadata.register_relation(RelationMetadata(metadata, args).build())

    def _create_embeddeds(
        self,
        metadata: EntityMetadata,
        targets: list[Target],
        parent: EmbeddedMetadata | None = None,
    ) -> list[EmbeddedMetadata]:
        embeddeds = []
        for args in self.registry.filter(self.registry.embeddeds, targets):
            if not self.registry.is_declared(args.embedded_target):
                raise MetadataNotFoundError(str(args.embedded_target))

            embedded = EmbeddedMetadata(
                metadata,
                args.property_name,
                args.embedded_target,
                prefix=args.prefix,
                is_array=args.array,
                parent_embedded_metadata=parent,
            )
            embedded_tree = self._inheritance_tree(args.embedded_target)
            embedded.columns = [
                ColumnMetadata.from_args(metadata, column_args, embedded)
                for column_args in self.registry.filter(self.registry.columns, embedded_tree)
            ]
            embedded.relations = [
                RelationMetadata(metadata, relation_args, embedded)
                for relation_args in self.registry.filter(self.registry.relations, embedded_tree)
            ]
            embedded.indices = [
                IndexMetadata(
                    metadata,
                    given_column_names=index_args.columns,
                    name=index_args.name,
                    is_unique=index_args.unique,
                    where=index_args.where,
                    synchronize=index_args.synchronize,
                    is_spatial=index_args.spatial,
                    is_fulltext=index_args.fulltext,
                    embedded_metadata=embedded,
                )
                for index_args in self.registry.filter(self.registry.indices, embedded_tree)
            ]
            embedded.uniques = [
                UniqueMetadata(
                    metadata,
                    given_column_names=unique_args.columns,
                    name=unique_args.name,
                    embedded_metadata=embedded,
                )
                for unique_args in self.registry.filter(self.registry.uniques, embedded_tree)
            ]
            embedded.embeddeds = self._create_embeddeds(metadata, embedded_tree, embedded)
            embeddeds.append(embedded)
        return embeddeds

    def _build_special_columns(self, metadata: EntityMetadata) -> None:
        if metadata.table_type == TableType.ENTITY_CHILD:
            return

        inheritance = next(
            (
                self.registry.find_inheritance(t)
                for t in metadata.inheritance_tree
                if self.registry.find_inheritance(t)
            ),
            None,
        )
        if inheritance and metadata.discriminator_column is None:
            column = ColumnMetadata(
                metadata,
                inheritance.column_name,
                name=inheritance.column_name,
                type=inheritance.column_type,
                length=inheritance.column_length,
                nullable=False,
                is_discriminator=True,
            )
            metadata.register_column(column.build(self.naming_strategy))
            metadata.own_indices.append(IndexMetadata(metadata, columns=[column]))

        naming = self.naming_strategy
        if metadata.tree_type == TreeType.NESTED_SET:
            for side, default in (("left", 1), ("right", 2)):
                column = ColumnMetadata(
                    metadata,
                    naming.nested_set_column_names[side],
                    type="integer",
                    nullable=False,
                    default=default,
                    is_nested_set_left=side == "left",
                    is_nested_set_right=side == "right",
                )
                metadata.register_column(column.build(naming))
        elif metadata.tree_type == TreeType.MATERIALIZED_PATH:
            column = ColumnMetadata(
                metadata,
                naming.materialized_path_column_name,
                type="varchar",
                nullable=True,
                default="",
                is_materialized_path=True,
            )
            metadata.register_column(column.build(naming))

    def _compute_inverse_properties(self, entities: list[EntityMetadata]) -> None:
        by_target = {metadata.target: metadata for metadata in entities}
        for metadata in entities:
            for relation in metadata.relations:
                if relation.entity_metadata is not metadata:
                    continue
                inverse = by_target.get(relation.inverse_target)
                if inverse is None:
                    raise MetadataNotFoundError(str(relation.inverse_target))
                relation.inverse_entity_metadata = inverse
                if relation.inverse_side_property_path:
                    relation.inverse_relation = inverse.find_relation_with_property_path(
                        relation.inverse_side_property_path
                    )

    # ------------------------------------------------------------------
    # Join columns and junction tables
    # ------------------------------------------------------------------

    def _referenced_columns(
        self, metadata: EntityMetadata, join_columns: list[JoinColumnArgs] | None
    ) -> list[ColumnMetadata]:
        names = [jc.referenced_column_name for jc in join_columns or [] if jc.referenced_column_name]
        if not names:
            return list(metadata.primary_columns)
        return metadata.map_property_paths_to_columns(names)

    @staticmethod
    def _find_join_column_args(
        join_columns: list[JoinColumnArgs] | None, referenced: ColumnMetadata
    ) -> JoinColumnArgs | None:
        return next(
            (
                jc
                for jc in join_columns or []
                if jc.name
                and (not jc.referenced_column_name or jc.referenced_column_name == referenced.property_name)
            ),
            None,
        )

    @staticmethod
    def _mirrored_type(referenced: ColumnMetadata) -> str | None:
        if referenced.type:
            return referenced.type
        if referenced.generation_strategy == "uuid":
            return "uuid"
        if referenced.is_generated:
            return "integer"
        return None

    def _build_join_columns(self, relation: RelationMetadata) -> None:
        metadata = relation.entity_metadata
        inverse = relation.inverse_entity_metadata
        referenced_columns = self._referenced_columns(inverse, relation.given_join_columns)

        join_columns = []
        for referenced in referenced_columns:
            join_args = self._find_join_column_args(relation.given_join_columns, referenced)
            name = join_args.name if join_args else self.naming_strategy.join_column_name(
                relation.property_name, referenced.property_name
            )
            column = next((c for c in metadata.own_columns if c.database_name == name), None)
            if column is None:
                column = ColumnMetadata(
                    metadata,
                    relation.property_name,
                    embedded_metadata=relation.embedded_metadata,
                    relation_metadata=relation,
                    referenced_column=referenced,
                    name=name,
                    type=self._mirrored_type(referenced),
                    length=referenced.length,
                    precision=referenced.precision,
                    scale=referenced.scale,
                    nullable=relation.is_nullable,
                    primary=relation.is_primary,
                    is_virtual=True,
                )
                column.build(self.naming_strategy)
                # explicit join column names are final, even inside embeddeds
                column.database_name = name
                metadata.register_column(column)
            else:
                column.relation_metadata = relation
                column.referenced_column = referenced
                column.type = self._mirrored_type(referenced)
            join_columns.append(column)

        relation.register_join_columns(join_columns)

        if relation.create_foreign_key_constraints:
            fk_name = next(
                (jc.foreign_key_constraint_name for jc in relation.given_join_columns or [] if jc.foreign_key_constraint_name),
                None,
            )
            foreign_key = ForeignKeyMetadata(
                metadata,
                inverse,
                join_columns,
                referenced_columns,
                on_delete=relation.on_delete,
                on_update=relation.on_update,
                deferrable=relation.deferrable,
                name=fk_name,
            ).build(self.naming_strategy)
            metadata.foreign_keys.append(foreign_key)
            relation.register_foreign_keys(foreign_key)

        if relation.is_one_to_one_owner:
            metadata.own_uniques.append(RelationUniqueMetadata(metadata, columns=join_columns))

        logger.debug(f"Join columns for {relation!r}: {[c.database_name for c in join_columns]}")

    def _junction_column(
        self, junction: EntityMetadata, name: str, referenced: ColumnMetadata
    ) -> ColumnMetadata:
        column = ColumnMetadata(
            junction,
            name,
            referenced_column=referenced,
            name=name,
            type=self._mirrored_type(referenced),
            length=referenced.length,
            precision=referenced.precision,
            scale=referenced.scale,
            nullable=False,
            primary=True,
        )
        return column.build(self.naming_strategy)

    def _build_junction(self, relation: RelationMetadata) -> EntityMetadata:
        """Create the junction table of an owning many-to-many relation."""
        naming = self.naming_strategy
        owner = relation.entity_metadata
        inverse = relation.inverse_entity_metadata
        join_table = relation.given_join_table
        inverse_relation = relation.inverse_relation

        table_name = join_table.name
        if not table_name:
            table_name = naming.join_table_name(
                owner.table_name_without_prefix,
                inverse.table_name_without_prefix,
                relation.property_path,
                inverse_relation.property_name if inverse_relation else "",
            )
            table_name = shorten_identifier(table_name, self._max_identifier_length())

        junction = EntityMetadata(
            TableArgs(
                target=Target.synthetic(table_name),
                name=table_name,
                type=TableType.JUNCTION,
                database=join_table.database or owner.database,
                schema_name=join_table.schema_name or owner.schema_name,
                synchronize=join_table.synchronize,
            )
        )
        junction.build(naming, self.options, self.dialect)

        owner_refs = self._referenced_columns(owner, join_table.join_columns)
        inverse_refs = self._referenced_columns(inverse, join_table.inverse_join_columns)

        owner_names = []
        for referenced in owner_refs:
            join_args = self._find_join_column_args(join_table.join_columns, referenced)
            owner_names.append(
                join_args.name
                if join_args
                else naming.join_table_column_name(
                    owner.table_name_without_prefix, referenced.property_name, referenced.database_name
                )
            )
        inverse_names = []
        for referenced in inverse_refs:
            join_args = self._find_join_column_args(join_table.inverse_join_columns, referenced)
            inverse_names.append(
                join_args.name
                if join_args
                else naming.join_table_inverse_column_name(
                    inverse.table_name_without_prefix, referenced.property_name, referenced.database_name
                )
            )

        # self-referencing relations produce the same names on both sides
        duplicates = set(owner_names) & set(inverse_names)
        owner_names = [
            naming.join_table_column_duplication_prefix(n, 1) if n in duplicates else n for n in owner_names
        ]
        inverse_names = [
            naming.join_table_column_duplication_prefix(n, 2) if n in duplicates else n for n in inverse_names
        ]

        owner_columns = [self._junction_column(junction, n, r) for n, r in zip(owner_names, owner_refs)]
        inverse_columns = [self._junction_column(junction, n, r) for n, r in zip(inverse_names, inverse_refs)]
        for column in owner_columns + inverse_columns:
            junction.register_column(column)
        junction.owner_columns = owner_columns
        junction.inverse_columns = inverse_columns

        if relation.create_foreign_key_constraints:
            junction.foreign_keys = [
                ForeignKeyMetadata(
                    junction,
                    owner,
                    owner_columns,
                    owner_refs,
                    on_delete=relation.on_delete or "CASCADE",
                    on_update=relation.on_update or "CASCADE",
                ).build(naming),
                ForeignKeyMetadata(
                    junction,
                    inverse,
                    inverse_columns,
                    inverse_refs,
                    on_delete=(inverse_relation.on_delete if inverse_relation else None) or "CASCADE",
                    on_update=(inverse_relation.on_update if inverse_relation else None) or "CASCADE",
                ).build(naming),
            ]
        junction.own_indices = [
            IndexMetadata(junction, columns=owner_columns).build(naming),
            IndexMetadata(junction, columns=inverse_columns).build(naming),
        ]
        junction.indices = list(junction.own_indices)

        relation.register_junction_entity_metadata(junction)
        relation.register_join_columns(owner_columns, inverse_columns)
        if inverse_relation:
            inverse_relation.register_junction_entity_metadata(junction)
            inverse_relation.register_join_columns(inverse_columns, owner_columns)

        logger.debug(f"Junction table '{junction.table_path}' for {relation!r}")
        return junction

    def _build_closure_junction(self, metadata: EntityMetadata) -> EntityMetadata:
        """Create the ``<table>_closure`` table of a closure-table tree."""
        naming = self.naming_strategy
        tree = metadata.tree_options
        junction = EntityMetadata(
            TableArgs(
                target=Target.synthetic(naming.closure_junction_table_name(metadata.table_name_without_prefix)),
                name=metadata.table_name_without_prefix,
                type=TableType.CLOSURE_JUNCTION,
                database=metadata.database,
                schema_name=metadata.schema_name,
            ),
            parent_closure_entity_metadata=metadata,
        )
        junction.build(naming, self.options, self.dialect)

        ancestors, descendants = [], []
        for primary in metadata.primary_columns:
            ancestor_name = (
                tree.closure_ancestor_column_name
                if tree.closure_ancestor_column_name and len(metadata.primary_columns) == 1
                else f"{primary.database_name}_ancestor"
            )
            descendant_name = (
                tree.closure_descendant_column_name
                if tree.closure_descendant_column_name and len(metadata.primary_columns) == 1
                else f"{primary.database_name}_descendant"
            )
            ancestors.append(self._junction_column(junction, ancestor_name, primary))
            descendants.append(self._junction_column(junction, descendant_name, primary))

        for column in ancestors + descendants:
            junction.register_column(column)
        junction.owner_columns = ancestors
        junction.inverse_columns = descendants

        primaries = list(metadata.primary_columns)
        junction.foreign_keys = [
            ForeignKeyMetadata(junction, metadata, ancestors, primaries, on_delete="CASCADE").build(naming),
            ForeignKeyMetadata(junction, metadata, descendants, primaries, on_delete="CASCADE").build(naming),
        ]
        junction.own_indices = [
            IndexMetadata(junction, columns=ancestors).build(naming),
            IndexMetadata(junction, columns=descendants).build(naming),
        ]
        junction.indices = list(junction.own_indices)
        metadata.closure_junction_table = junction
        return junction

    def _max_identifier_length(self) -> int:
        if self.options.max_identifier_length is not None:
            return self.options.max_identifier_length
        return self.dialect.max_identifier_length

    # ------------------------------------------------------------------
    # Constraints and row level security
    # ------------------------------------------------------------------

    def _build_constraints(self, metadata: EntityMetadata) -> None:
        naming = self.naming_strategy
        targets = self._own_declarations(metadata)
        registry = self.registry

        metadata.own_indices.extend(
            IndexMetadata(
                metadata,
                given_column_names=args.columns,
                name=args.name,
                is_unique=args.unique,
                where=args.where,
                synchronize=args.synchronize,
                is_spatial=args.spatial,
                is_fulltext=args.fulltext,
            )
            for args in registry.filter(registry.indices, targets)
        )
        metadata.indices = list(metadata.own_indices) + [
            index for embedded in metadata.embeddeds for index in embedded.indices_from_tree
        ]
        for index in metadata.indices:
            index.build(naming)

        metadata.own_uniques.extend(
            UniqueMetadata(metadata, given_column_names=args.columns, name=args.name)
            for args in registry.filter(registry.uniques, targets)
        )
        metadata.own_uniques.extend(
            UniqueMetadata(metadata, columns=[column])
            for column in metadata.columns
            if column.is_unique and column.entity_metadata is metadata
        )
        metadata.uniques = list(metadata.own_uniques) + [
            unique for embedded in metadata.embeddeds for unique in embedded.uniques_from_tree
        ]
        for unique in metadata.uniques:
            unique.build(naming)

        metadata.checks = [
            CheckMetadata(metadata, args.expression, args.name).build(naming)
            for args in registry.filter(registry.checks, targets)
        ]
        metadata.exclusions = [
            ExclusionMetadata(metadata, args.expression, args.name).build(naming)
            for args in registry.filter(registry.exclusions, targets)
        ]
        metadata.row_level_security_policies = [
            RowLevelSecurityPolicyMetadata(
                metadata, args.expression, role=args.role, type=args.type, name=args.name
            ).build(naming)
            for args in registry.filter(registry.row_level_security_policies, targets)
        ]

    def _resolve_row_level_security(self, metadata: EntityMetadata) -> RowLevelSecurityOptions | None:
        """Explicit table setting, then own marker, then nearest tableless ancestor marker."""
        args = metadata.table_args
        if "row_level_security" in args.model_fields_set:
            return args.row_level_security

        marker = self.registry.find_row_level_security_marker(metadata.target)
        if marker:
            return marker.options

        for ancestor in reversed(metadata.inheritance_tree[:-1]):
            if self.registry.has_table(ancestor):
                continue
            marker = self.registry.find_row_level_security_marker(ancestor)
            if marker:
                return marker.options
        return None


def build_entity_metadatas(
    registry: MetadataRegistry,
    naming_strategy: NamingStrategy | None = None,
    options: ConnectionOptions | None = None,
    dialect: Dialect | None = None,
) -> list[EntityMetadata]:
    """Build all entity metadatas for *registry*.

    Example:
        >>> from schema_sync.metadata.args import ColumnArgs
        >>> registry = MetadataRegistry().register(
        ...     TableArgs(target="Tenant"),
        ...     ColumnArgs(target="Tenant", property_name="id", primary=True),
        ... )
        >>> [m.table_name for m in build_entity_metadatas(registry)]
        ['tenant']
    """
    return EntityMetadataBuilder(registry, naming_strategy, options, dialect).build()
