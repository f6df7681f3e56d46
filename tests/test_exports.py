"""Tests for package exports and public API.

Verifies that all __init__.py files export the expected names and that the
__all__ lists are accurate.
"""

import importlib

import pytest


# ============================================================================
# Top-level package exports
# ============================================================================


class TestTopLevelExports:
    """Tests for src/schema_sync/__init__.py exports."""

    def test_version_defined(self) -> None:
        """Package __version__ matches the project version."""
        import schema_sync

        assert schema_sync.__version__ == "0.1.0"

    def test_all_names_are_importable(self) -> None:
        """Every name in __all__ is actually accessible on the module."""
        import schema_sync

        for name in schema_sync.__all__:
            assert hasattr(schema_sync, name), f"'{name}' is in __all__ but not accessible on schema_sync"

    def test_errors_share_base(self) -> None:
        """Every error derives from SchemaSyncError."""
        from schema_sync import (
            CannotBuildIdMapError,
            DdlExecutionError,
            DuplicateConstraintNameError,
            MetadataNotFoundError,
            MissingPrimaryColumnError,
            ProfileNotFoundError,
            SchemaSyncError,
        )

        for error in (
            CannotBuildIdMapError,
            DdlExecutionError,
            DuplicateConstraintNameError,
            MetadataNotFoundError,
            MissingPrimaryColumnError,
            ProfileNotFoundError,
        ):
            assert issubclass(error, SchemaSyncError)


# ============================================================================
# Subpackage exports
# ============================================================================


@pytest.mark.parametrize(
    "module_name",
    [
        "schema_sync.adapters",
        "schema_sync.config",
        "schema_sync.metadata",
        "schema_sync.naming",
        "schema_sync.schema",
    ],
)
def test_subpackage_all_is_accurate(module_name: str) -> None:
    """Each subpackage defines __all__ and every listed name exists."""
    module = importlib.import_module(module_name)
    assert isinstance(module.__all__, list)
    for name in module.__all__:
        assert hasattr(module, name), f"'{name}' is in {module_name}.__all__ but missing"
