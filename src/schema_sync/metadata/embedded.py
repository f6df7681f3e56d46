"""Embedded (nested column group) metadata."""

from typing import TYPE_CHECKING

from schema_sync.metadata.types import Target

if TYPE_CHECKING:
    from schema_sync.metadata.column import ColumnMetadata
    from schema_sync.metadata.constraints import IndexMetadata, UniqueMetadata
    from schema_sync.metadata.entity import EntityMetadata
    from schema_sync.metadata.relation import RelationMetadata


class EmbeddedMetadata:
    """A named group of columns flattened into its owning entity.

    Prefix rules: a string prefix is used as-is, ``False`` disables the
    prefix, anything else uses the property name.
    """

    def __init__(
        self,
        entity_metadata: "EntityMetadata",
        property_name: str,
        embedded_target: Target,
        prefix: str | bool | None = None,
        is_array: bool = False,
        parent_embedded_metadata: "EmbeddedMetadata | None" = None,
    ) -> None:
        self.entity_metadata = entity_metadata
        self.property_name = property_name
        self.embedded_target = embedded_target
        self.custom_prefix = prefix
        self.is_array = is_array
        self.parent_embedded_metadata = parent_embedded_metadata

        self.columns: list["ColumnMetadata"] = []
        self.relations: list["RelationMetadata"] = []
        self.embeddeds: list["EmbeddedMetadata"] = []
        self.indices: list["IndexMetadata"] = []
        self.uniques: list["UniqueMetadata"] = []

        self.property_path = property_name
        self.prefix = ""
        self.parent_prefixes: list[str] = []
        self.parent_property_names: list[str] = []

    def __repr__(self) -> str:
        return f"<EmbeddedMetadata {self.property_path}>"

    def build(self) -> "EmbeddedMetadata":
        """Compute paths and prefixes, then build nested embeddeds."""
        parent = self.parent_embedded_metadata
        self.property_path = f"{parent.property_path}.{self.property_name}" if parent else self.property_name
        self.parent_property_names = (parent.parent_property_names if parent else []) + [self.property_name]
        self.prefix = self._build_prefix()
        self.parent_prefixes = (parent.parent_prefixes if parent else []) + [self.prefix]
        for embedded in self.embeddeds:
            embedded.build()
        return self

    def _build_prefix(self) -> str:
        if isinstance(self.custom_prefix, str):
            return self.custom_prefix
        if self.custom_prefix is False:
            return ""
        return self.property_name

    @property
    def embeddeds_from_tree(self) -> list["EmbeddedMetadata"]:
        result = [self]
        for embedded in self.embeddeds:
            result.extend(embedded.embeddeds_from_tree)
        return result

    @property
    def columns_from_tree(self) -> list["ColumnMetadata"]:
        result = list(self.columns)
        for embedded in self.embeddeds:
            result.extend(embedded.columns_from_tree)
        return result

    @property
    def relations_from_tree(self) -> list["RelationMetadata"]:
        result = list(self.relations)
        for embedded in self.embeddeds:
            result.extend(embedded.relations_from_tree)
        return result

    @property
    def indices_from_tree(self) -> list["IndexMetadata"]:
        result = list(self.indices)
        for embedded in self.embeddeds:
            result.extend(embedded.indices_from_tree)
        return result

    @property
    def uniques_from_tree(self) -> list["UniqueMetadata"]:
        result = list(self.uniques)
        for embedded in self.embeddeds:
            result.extend(embedded.uniques_from_tree)
        return result
