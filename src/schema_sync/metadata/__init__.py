"""Entity metadata: declaration facts, the registry and the metadata builder.

Usage:
    from schema_sync.metadata import MetadataRegistry, TableArgs, ColumnArgs, build_entity_metadatas
"""

from schema_sync.metadata.args import (
    CheckArgs,
    ColumnArgs,
    DeclarationArgs,
    EmbeddedArgs,
    EnableRowLevelSecurityArgs,
    ExclusionArgs,
    IndexArgs,
    JoinColumnArgs,
    JoinTableArgs,
    MetadataRegistry,
    RelationArgs,
    RowLevelSecurityPolicyArgs,
    TableArgs,
    TableInheritanceArgs,
    TreeArgs,
    UniqueArgs,
)
from schema_sync.metadata.builder import EntityMetadataBuilder, build_entity_metadatas
from schema_sync.metadata.column import ColumnMetadata
from schema_sync.metadata.entity import EntityMetadata
from schema_sync.metadata.relation import ForeignKeyMetadata, RelationMetadata
from schema_sync.metadata.types import (
    RawSql,
    RelationType,
    RowLevelSecurityOptions,
    TableType,
    Target,
    TreeType,
)

__all__ = [
    # Facts
    "CheckArgs",
    "ColumnArgs",
    "DeclarationArgs",
    "EmbeddedArgs",
    "EnableRowLevelSecurityArgs",
    "ExclusionArgs",
    "IndexArgs",
    "JoinColumnArgs",
    "JoinTableArgs",
    "MetadataRegistry",
    "RelationArgs",
    "RowLevelSecurityPolicyArgs",
    "TableArgs",
    "TableInheritanceArgs",
    "TreeArgs",
    "UniqueArgs",
    # Builder
    "EntityMetadataBuilder",
    "build_entity_metadatas",
    # Metadata
    "ColumnMetadata",
    "EntityMetadata",
    "ForeignKeyMetadata",
    "RelationMetadata",
    # Types
    "RawSql",
    "RelationType",
    "RowLevelSecurityOptions",
    "TableType",
    "Target",
    "TreeType",
]
