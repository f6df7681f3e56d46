"""Convert built entity metadata into the canonical ``Table`` model.

Single-table inheritance children share their root's physical table, so the
root's table holds the union of root and descendant columns and
constraints.  Columns only descendants declare are nullable because rows of
other types never fill them.

Usage:
    from schema_sync.schema.convert import table_from_metadata
    from schema_sync.schema.dialect import get_dialect

    table = table_from_metadata(tenant_metadata, get_dialect("postgres"))
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel

from schema_sync.metadata.types import TableType
from schema_sync.naming.strategy import DefaultNamingStrategy, NamingStrategy
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

if TYPE_CHECKING:
    from schema_sync.metadata.column import ColumnMetadata
    from schema_sync.metadata.entity import EntityMetadata
    from schema_sync.schema.dialect import Dialect

ModelT = TypeVar("ModelT", bound=BaseModel)


def _physical_root(metadata: "EntityMetadata") -> "EntityMetadata":
    while metadata.table_type == TableType.ENTITY_CHILD and metadata.parent_entity_metadata:
        metadata = metadata.parent_entity_metadata
    return metadata


def _dedupe(items: Iterable[ModelT]) -> list[ModelT]:
    """Drop exact duplicates, keep order; same-name different bodies stay for the differ."""
    result: list[ModelT] = []
    for item in items:
        if item not in result:
            result.append(item)
    return result


def column_from_metadata(
    column: "ColumnMetadata", dialect: "Dialect", force_nullable: bool = False
) -> TableColumn:
    """Canonical column for *column* in *dialect*."""
    strategy = column.generation_strategy if column.is_generated else None
    source_type = column.type
    if column.enum and (source_type is None or source_type == "enum"):
        source_type = "varchar"
    type = dialect.normalize_type(source_type, strategy, column.is_array)

    generated_type = column.generated_type
    if column.as_expression and generated_type is None:
        generated_type = "STORED"

    return TableColumn(
        name=column.database_name,
        type=type,
        length=dialect.normalize_length(type, column.length),
        precision=column.precision,
        scale=column.scale,
        is_nullable=(column.is_nullable or force_nullable) and not column.is_primary,
        default=None if column.is_generated else dialect.normalize_default(column.default),
        is_primary=column.is_primary,
        is_generated=column.is_generated,
        generation_strategy=strategy,
        as_expression=column.as_expression,
        generated_type=generated_type if column.as_expression else None,
        comment=column.comment,
        is_array=column.is_array,
        enum=list(column.enum) if column.enum else None,
    )


def _enum_check(
    table_name: str, column: TableColumn, dialect: "Dialect", naming: NamingStrategy
) -> TableCheck:
    values = ", ".join(dialect.quote_literal(value) for value in column.enum or [])
    expression = f"{dialect.quote(column.name)} IN ({values})"
    return TableCheck(
        name=naming.check_constraint_name(table_name, expression, is_enum=True),
        expression=expression,
    )


def table_from_metadata(
    metadata: "EntityMetadata",
    dialect: "Dialect",
    naming_strategy: NamingStrategy | None = None,
) -> Table:
    """Build the desired ``Table`` for *metadata*.

    An entity-child metadata resolves to its root's table.

    Args:
        metadata: Built entity metadata.
        dialect: Target dialect (type spelling, feature support).
        naming_strategy: Used for primary key and enum check names; defaults
            to the strategy *metadata* was built with.

    Returns:
        The canonical table model.
    """
    naming = naming_strategy or metadata.naming_strategy or DefaultNamingStrategy()
    root = _physical_root(metadata)
    family = [root] + list(root.child_entity_metadatas)

    columns: list[TableColumn] = []
    seen: set[str] = set()
    for member in family:
        for column in member.columns:
            if column.is_virtual_property or column.database_name in seen:
                continue
            seen.add(column.database_name)
            columns.append(column_from_metadata(column, dialect, force_nullable=member is not root))

    primary_names = [c.name for c in columns if c.is_primary]
    primary_key_name = None
    if primary_names:
        given = next(
            (c.primary_key_constraint_name for c in root.primary_columns if c.primary_key_constraint_name),
            None,
        )
        primary_key_name = given or naming.primary_key_name(root.table_name, primary_names)

    checks = [
        TableCheck(name=check.name, expression=check.expression)
        for member in family
        for check in member.checks
    ]
    checks.extend(_enum_check(root.table_name, c, dialect, naming) for c in columns if c.enum)

    table = Table(
        name=root.table_path,
        schema_name=root.schema_name,
        database=root.database,
        columns=columns,
        indices=_dedupe(
            TableIndex(
                name=index.name,
                column_names=index.column_names,
                is_unique=index.is_unique,
                where=index.where,
                is_spatial=index.is_spatial,
                is_fulltext=index.is_fulltext,
                synchronize=index.synchronize,
            )
            for member in family
            for index in member.indices
        ),
        uniques=_dedupe(
            TableUnique(name=unique.name, column_names=unique.column_names)
            for member in family
            for unique in member.uniques
        ),
        checks=_dedupe(checks),
        foreign_keys=_dedupe(
            TableForeignKey(
                name=fk.name,
                column_names=fk.column_names,
                referenced_table_path=fk.referenced_table_path,
                referenced_column_names=fk.referenced_column_names,
                on_delete=fk.on_delete,
                on_update=fk.on_update,
                deferrable=fk.deferrable,
            )
            for member in family
            for fk in member.foreign_keys
        ),
        primary_key_name=primary_key_name,
        engine=root.engine,
        comment=root.comment,
        without_rowid=root.without_rowid,
    )

    if dialect.supports_exclusions:
        table.exclusions = _dedupe(
            TableExclusion(name=exclusion.name, expression=exclusion.expression)
            for member in family
            for exclusion in member.exclusions
        )
    if dialect.supports_row_level_security:
        table.row_level_security = root.row_level_security
        table.row_level_security_policies = _dedupe(
            TableRowLevelSecurityPolicy(
                name=policy.name, expression=policy.expression, role=policy.role, type=policy.type
            )
            for member in family
            for policy in member.row_level_security_policies
        )
    return table
