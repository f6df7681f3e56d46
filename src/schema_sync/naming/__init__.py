"""Naming strategies for tables, columns and constraints.

Usage:
    from schema_sync.naming import DefaultNamingStrategy, NamingStrategy
"""

from schema_sync.naming.strategy import DefaultNamingStrategy, NamingStrategy
from schema_sync.naming.strings import shorten, shorten_identifier

__all__ = [
    "DefaultNamingStrategy",
    "NamingStrategy",
    "shorten",
    "shorten_identifier",
]
