"""Shared enums and small value types for entity metadata."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class TableType(str, Enum):
    REGULAR = "regular"
    VIEW = "view"
    JUNCTION = "junction"
    CLOSURE_JUNCTION = "closure-junction"
    ENTITY_CHILD = "entity-child"


class InheritancePattern(str, Enum):
    STI = "STI"


class TreeType(str, Enum):
    ADJACENCY_LIST = "adjacency-list"
    CLOSURE_TABLE = "closure-table"
    NESTED_SET = "nested-set"
    MATERIALIZED_PATH = "materialized-path"


class RelationType(str, Enum):
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


class ColumnMode(str, Enum):
    REGULAR = "regular"
    CREATE_DATE = "create-date"
    UPDATE_DATE = "update-date"
    DELETE_DATE = "delete-date"
    VERSION = "version"
    VIRTUAL_PROPERTY = "virtual-property"
    TREE_LEVEL = "tree-level"


PolicyType = Literal["permissive", "restrictive"]
GenerationStrategy = Literal["increment", "uuid", "rowid", "identity"]


class Target(BaseModel):
    """Identity of a declaration.

    ``declared`` targets come from a user declaration (an entity or a plain
    base used for field composition); ``synthetic`` targets name tables the
    builder creates itself, such as junction tables.

    Example:
        >>> Target.declared("Tenant") == Target.declared("Tenant")
        True
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["declared", "synthetic"] = "declared"
    name: str

    @classmethod
    def declared(cls, name: str) -> "Target":
        return cls(kind="declared", name=name)

    @classmethod
    def synthetic(cls, name: str) -> "Target":
        return cls(kind="synthetic", name=name)

    @property
    def is_synthetic(self) -> bool:
        return self.kind == "synthetic"

    def __str__(self) -> str:
        return self.name


class RawSql(BaseModel):
    """A column default written as SQL (``RawSql(sql="now()")``) instead of a literal."""

    model_config = ConfigDict(frozen=True)

    sql: str

    def __str__(self) -> str:
        return self.sql


def as_target(value: "Target | str") -> Target:
    """Accept a bare declaration name wherever a ``Target`` is expected."""
    if isinstance(value, Target):
        return value
    return Target.declared(value)


class RowLevelSecurityOptions(BaseModel):
    """Enabled row-level security, optionally forced for the table owner.

    Absence of row-level security is represented by ``None``, never by an
    instance with ``enabled=False``; see :func:`normalize_row_level_security`.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    force: bool = False


def normalize_row_level_security(value: Any) -> RowLevelSecurityOptions | None:
    """Normalize the accepted spellings of row-level security settings.

    ``True`` means enabled, ``{"enabled": True, "force": True}`` means enabled
    and forced, ``None``/``False``/disabled means off.

    Example:
        >>> normalize_row_level_security(True)
        RowLevelSecurityOptions(enabled=True, force=False)
        >>> normalize_row_level_security(None) is None
        True
    """
    if value is None or value is False:
        return None
    if value is True:
        return RowLevelSecurityOptions()
    if isinstance(value, RowLevelSecurityOptions):
        options = value
    elif isinstance(value, dict):
        options = RowLevelSecurityOptions(**value)
    else:
        raise ValueError(f"Invalid row level security setting: {value!r}")
    return options if options.enabled else None
