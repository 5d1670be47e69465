"""
Configuration utilities for dml2graph.
"""

from .settings import (
    MigrationSettings,
    Neo4jSettings,
    SourceSettings,
    load_migration_settings,
    load_settings,
    load_source_settings,
)

__all__ = [
    "Neo4jSettings",
    "SourceSettings",
    "MigrationSettings",
    "load_settings",
    "load_source_settings",
    "load_migration_settings",
]
