"""Index, unique, check, exclusion and row-level security policy metadata.

Each constraint resolves its columns from property paths and takes its name
from the naming strategy unless one was given explicitly.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schema_sync.metadata.column import ColumnMetadata
    from schema_sync.metadata.embedded import EmbeddedMetadata
    from schema_sync.metadata.entity import EntityMetadata
    from schema_sync.naming.strategy import NamingStrategy


class _ColumnConstraintMetadata:
    """Shared column resolution for indices and uniques."""

    def __init__(
        self,
        entity_metadata: "EntityMetadata",
        given_column_names: list[str] | None = None,
        columns: list["ColumnMetadata"] | None = None,
        name: str | None = None,
        embedded_metadata: "EmbeddedMetadata | None" = None,
    ) -> None:
        self.entity_metadata = entity_metadata
        self.embedded_metadata = embedded_metadata
        self.given_column_names = given_column_names or []
        self.columns: list["ColumnMetadata"] = list(columns or [])
        self.given_name = name
        self.name = name or ""

    @property
    def column_names(self) -> list[str]:
        return [column.database_name for column in self.columns]

    def _resolve_columns(self) -> None:
        if self.columns or not self.given_column_names:
            return
        prefix = f"{self.embedded_metadata.property_path}." if self.embedded_metadata else ""
        self.columns = self.entity_metadata.map_property_paths_to_columns(
            [prefix + path for path in self.given_column_names]
        )


class IndexMetadata(_ColumnConstraintMetadata):
    def __init__(
        self,
        entity_metadata: "EntityMetadata",
        given_column_names: list[str] | None = None,
        columns: list["ColumnMetadata"] | None = None,
        name: str | None = None,
        is_unique: bool = False,
        where: str | None = None,
        synchronize: bool = True,
        is_spatial: bool = False,
        is_fulltext: bool = False,
        embedded_metadata: "EmbeddedMetadata | None" = None,
    ) -> None:
        super().__init__(entity_metadata, given_column_names, columns, name, embedded_metadata)
        self.is_unique = is_unique
        self.where = where
        self.synchronize = synchronize
        self.is_spatial = is_spatial
        self.is_fulltext = is_fulltext

    def __repr__(self) -> str:
        return f"<IndexMetadata {self.name}>"

    def build(self, naming_strategy: "NamingStrategy") -> "IndexMetadata":
        self._resolve_columns()
        self.name = self.given_name or naming_strategy.index_name(
            self.entity_metadata.table_name, self.column_names, self.where
        )
        return self


class UniqueMetadata(_ColumnConstraintMetadata):
    def __repr__(self) -> str:
        return f"<UniqueMetadata {self.name}>"

    def build(self, naming_strategy: "NamingStrategy") -> "UniqueMetadata":
        self._resolve_columns()
        self.name = self.given_name or naming_strategy.unique_constraint_name(
            self.entity_metadata.table_name, self.column_names
        )
        return self


class RelationUniqueMetadata(UniqueMetadata):
    """Unique constraint backing the join columns of an owning one-to-one."""

    def build(self, naming_strategy: "NamingStrategy") -> "UniqueMetadata":
        self._resolve_columns()
        self.name = self.given_name or naming_strategy.relation_constraint_name(
            self.entity_metadata.table_name, self.column_names
        )
        return self


class CheckMetadata:
    def __init__(
        self, entity_metadata: "EntityMetadata", expression: str, name: str | None = None
    ) -> None:
        self.entity_metadata = entity_metadata
        self.expression = expression
        self.given_name = name
        self.name = name or ""

    def __repr__(self) -> str:
        return f"<CheckMetadata {self.name}>"

    def build(self, naming_strategy: "NamingStrategy") -> "CheckMetadata":
        self.name = self.given_name or naming_strategy.check_constraint_name(
            self.entity_metadata.table_name, self.expression
        )
        return self


class ExclusionMetadata:
    def __init__(
        self, entity_metadata: "EntityMetadata", expression: str, name: str | None = None
    ) -> None:
        self.entity_metadata = entity_metadata
        self.expression = expression
        self.given_name = name
        self.name = name or ""

    def __repr__(self) -> str:
        return f"<ExclusionMetadata {self.name}>"

    def build(self, naming_strategy: "NamingStrategy") -> "ExclusionMetadata":
        self.name = self.given_name or naming_strategy.exclusion_constraint_name(
            self.entity_metadata.table_name, self.expression
        )
        return self


class RowLevelSecurityPolicyMetadata:
    """A row-level security policy; ``role``/``type`` default to ``public``/``permissive``."""

    def __init__(
        self,
        entity_metadata: "EntityMetadata",
        expression: str,
        role: str | None = None,
        type: str | None = None,
        name: str | None = None,
    ) -> None:
        self.entity_metadata = entity_metadata
        self.expression = expression
        self.given_role = role
        self.given_type = type
        self.role = role or "public"
        self.type = type or "permissive"
        self.given_name = name
        self.name = name or ""

    def __repr__(self) -> str:
        return f"<RowLevelSecurityPolicyMetadata {self.name}>"

    def build(self, naming_strategy: "NamingStrategy") -> "RowLevelSecurityPolicyMetadata":
        self.name = self.given_name or naming_strategy.row_level_security_policy_name(
            self.entity_metadata.table_name, self.expression, self.given_role, self.given_type
        )
        return self
