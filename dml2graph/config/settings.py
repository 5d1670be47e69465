"""
Centralized application settings.

Environment variables drive configuration so that deployments can override
defaults without code changes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Neo4jSettings:
    """Connection parameters for the target Neo4j database."""

    uri: str
    username: str
    password: str
    database: str = "neo4j"


def load_settings() -> Neo4jSettings:
    """
    Load Neo4j configuration from environment variables.

    Required vars:
        DML2GRAPH_NEO4J_URI
        DML2GRAPH_NEO4J_USER
        DML2GRAPH_NEO4J_PASSWORD

    Optional:
        DML2GRAPH_NEO4J_DATABASE (defaults to \"neo4j\")
    """

    uri = os.environ.get("DML2GRAPH_NEO4J_URI")
    username = os.environ.get("DML2GRAPH_NEO4J_USER")
    password = os.environ.get("DML2GRAPH_NEO4J_PASSWORD")
    database = os.environ.get("DML2GRAPH_NEO4J_DATABASE", "neo4j")

    if not uri or not username or not password:
        raise RuntimeError("Neo4j configuration missing required environment variables")

    return Neo4jSettings(uri=uri, username=username, password=password, database=database)


@dataclass(frozen=True)
class SourceSettings:
    """Connection parameters for the relational (MySQL) source database."""

    host: str
    username: str
    password: str
    database: str
    port: int = 3306


def load_source_settings() -> SourceSettings:
    """
    Load the relational source configuration.

    Required vars:
        DML2GRAPH_SQL_HOST
        DML2GRAPH_SQL_USER
        DML2GRAPH_SQL_PASSWORD
        DML2GRAPH_SQL_DATABASE

    Optional:
        DML2GRAPH_SQL_PORT (defaults to 3306)
    """

    host = os.environ.get("DML2GRAPH_SQL_HOST")
    username = os.environ.get("DML2GRAPH_SQL_USER")
    # Empty passwords are legitimate for local MySQL instances.
    password = os.environ.get("DML2GRAPH_SQL_PASSWORD")
    database = os.environ.get("DML2GRAPH_SQL_DATABASE")
    port = int(os.environ.get("DML2GRAPH_SQL_PORT", "3306"))

    if not host or not username or password is None or not database:
        raise RuntimeError("Relational source configuration missing required environment variables")

    return SourceSettings(
        host=host,
        username=username,
        password=password,
        database=database,
        port=port,
    )


@dataclass(frozen=True)
class MigrationSettings:
    """Tuning knobs for a migration run."""

    batch_size: int = 1000
    fetch_size: int = 500


def load_migration_settings() -> MigrationSettings:
    batch_size = int(os.environ.get("DML2GRAPH_BATCH_SIZE", "1000"))
    fetch_size = int(os.environ.get("DML2GRAPH_FETCH_SIZE", "500"))
    if batch_size <= 0 or fetch_size <= 0:
        raise RuntimeError("DML2GRAPH_BATCH_SIZE and DML2GRAPH_FETCH_SIZE must be positive")
    return MigrationSettings(batch_size=batch_size, fetch_size=fetch_size)
