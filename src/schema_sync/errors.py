"""Error taxonomy for metadata building and schema synchronization.

Every error derives from ``SchemaSyncError`` so callers can catch the whole
family at once.  None of these are used for ordinary control flow: a table
that does not exist in the live database is a normal plan input, not an error.

Usage:
    from schema_sync.errors import MetadataNotFoundError, DdlExecutionError

    try:
        columns = metadata.map_property_paths_to_columns(["profile.name"])
    except MetadataNotFoundError as e:
        print(e.property_path)
"""

from typing import Any


class SchemaSyncError(Exception):
    """Base class for all schema-sync errors."""

    pass


class MetadataNotFoundError(SchemaSyncError):
    """Raised when a property path, column, entity or table was never registered."""

    def __init__(self, property_path: str, entity_name: str | None = None) -> None:
        self.property_path = property_path
        self.entity_name = entity_name
        if entity_name:
            message = f"Property '{property_path}' was not found in '{entity_name}'"
        else:
            message = f"Metadata for '{property_path}' was not found"
        super().__init__(message)


class CannotBuildIdMapError(SchemaSyncError):
    """Raised when a scalar id is given for an entity with several primary keys."""

    def __init__(self, entity_name: str, id_value: Any) -> None:
        self.entity_name = entity_name
        self.id_value = id_value
        super().__init__(
            f"Cannot use scalar id {id_value!r} for '{entity_name}': "
            f"it has multiple primary keys, pass a mapping of key values instead"
        )


class MissingPrimaryColumnError(SchemaSyncError):
    """Raised when a table entity declares no primary column."""

    def __init__(self, entity_name: str) -> None:
        self.entity_name = entity_name
        super().__init__(
            f"Entity '{entity_name}' does not have a primary column. "
            f"Declare at least one column with primary=True"
        )


class DuplicateConstraintNameError(SchemaSyncError):
    """Raised when two different constraint bodies share one generated name."""

    def __init__(self, table: str, name: str, kinds: tuple[str, str]) -> None:
        self.table = table
        self.name = name
        self.kinds = kinds
        super().__init__(
            f"Constraint name '{name}' on table '{table}' is used by two "
            f"different definitions ({kinds[0]}, {kinds[1]})"
        )


class DdlExecutionError(SchemaSyncError):
    """Raised when the database rejects a DDL operation.

    Attributes:
        operation: The operation that failed.
        cause: The underlying driver exception, if any.
    """

    def __init__(self, operation: Any, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.cause = cause
        description = operation.describe() if hasattr(operation, "describe") else repr(operation)
        message = f"Failed to apply {description}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ProfileNotFoundError(SchemaSyncError):
    """Raised when no database profile is configured or the name is unknown."""

    pass
