"""
High-level migration pipeline for dml2graph.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from dml2graph.config import (
    MigrationSettings,
    Neo4jSettings,
    SourceSettings,
    load_migration_settings,
    load_settings,
    load_source_settings,
)
from dml2graph.dml.parser import DMLParser
from dml2graph.graph.store import GraphStore, Neo4jGraphStore
from dml2graph.migration.orchestrator import MigrationOrchestrator, MigrationReport
from dml2graph.source.relational import RelationalSource

logger = logging.getLogger(__name__)


class MigrationPipeline:
    """
    Coordinates parsing DML files, opening both databases and running a migration.
    """

    def __init__(
        self,
        *,
        neo4j_settings: Neo4jSettings | None = None,
        source_settings: SourceSettings | None = None,
        migration_settings: MigrationSettings | None = None,
        parser: DMLParser | None = None,
        source_factory: Optional[Callable[[], RelationalSource]] = None,
        store_factory: Optional[Callable[[], GraphStore]] = None,
    ) -> None:
        self._migration_settings = migration_settings or load_migration_settings()
        self._parser = parser or DMLParser()
        self._source_factory = source_factory or self._default_source_factory(source_settings)
        self._store_factory = store_factory or self._default_store_factory(neo4j_settings)

    def run(self, paths: Sequence[Path]) -> MigrationReport:
        model = self._parser.parse(paths)
        logger.info(
            "Domain model has %d classes and %d relations",
            len(model.classes),
            len(model.relations),
        )

        source = self._source_factory()
        try:
            store = self._store_factory()
            try:
                return MigrationOrchestrator(model, source, store).migrate()
            finally:
                store.close()
        finally:
            source.close()

    def _default_source_factory(self, settings: SourceSettings | None) -> Callable[[], RelationalSource]:
        fetch_size = self._migration_settings.fetch_size

        def factory() -> RelationalSource:
            return RelationalSource.from_settings(settings or load_source_settings(), fetch_size=fetch_size)

        return factory

    def _default_store_factory(self, settings: Neo4jSettings | None) -> Callable[[], GraphStore]:
        batch_size = self._migration_settings.batch_size

        def factory() -> GraphStore:
            return Neo4jGraphStore(settings=settings or load_settings(), batch_size=batch_size)

        return factory
