"""
Migration orchestration for dml2graph.

A run walks a fixed sequence of phases. Each phase yields a `PhaseResult`;
the first failed result stops the run, leaving whatever was already written in
the graph store in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from dml2graph.dml.models import DomainModel
from dml2graph.errors import MigrationError, MissingRootObjectError
from dml2graph.graph.identity import IdentityIndexProvider
from dml2graph.graph.schema import (
    DEFAULT_SCHEMA,
    NODE_ROOT,
    REL_DOMAIN_ROOT,
    ROOT_OBJECT_OID,
    SchemaMetadata,
)
from dml2graph.graph.store import GraphStore
from dml2graph.migration.hierarchy import ClassHierarchyLoader
from dml2graph.migration.objects import ObjectLoader
from dml2graph.migration.relations import RelationLoader
from dml2graph.source.relational import ClassCatalog, RelationalSource

logger = logging.getLogger(__name__)


class MigrationState(str, Enum):
    """States reached by a migration run, in order."""

    INIT = "init"
    SCHEMA_SETUP = "schema_setup"
    HIERARCHY_LOADED = "hierarchy_loaded"
    OBJECTS_LOADED = "objects_loaded"
    RELATIONS_LOADED = "relations_loaded"
    ROOT_LINKED = "root_linked"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class PhaseResult:
    """Outcome of the phase that leads into `state`."""

    state: MigrationState
    counts: Mapping[str, int] = field(default_factory=dict)
    error: Optional[MigrationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class MigrationReport:
    state: MigrationState = MigrationState.INIT
    phases: List[PhaseResult] = field(default_factory=list)
    error: Optional[MigrationError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.state is MigrationState.FINALIZED

    def counts_for(self, state: MigrationState) -> Mapping[str, int]:
        for result in self.phases:
            if result.state is state:
                return result.counts
        return {}

    @property
    def objects_loaded(self) -> int:
        return sum(self.counts_for(MigrationState.OBJECTS_LOADED).values())

    @property
    def edges_created(self) -> int:
        return sum(self.counts_for(MigrationState.RELATIONS_LOADED).values())

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class MigrationOrchestrator:
    """
    Sequences one migration run.

    The orchestrator owns the identity indexes and the graph store for the
    duration of the run and closes both when it finalizes. An instance runs
    once; re-running against the same store duplicates every node and edge.
    """

    def __init__(
        self,
        model: DomainModel,
        source: RelationalSource,
        store: GraphStore,
        *,
        catalog: Optional[ClassCatalog] = None,
        schema: SchemaMetadata = DEFAULT_SCHEMA,
    ) -> None:
        self._model = model
        self._source = source
        self._store = store
        self._catalog = catalog or ClassCatalog(source)
        self._schema = schema
        self._indexes: IdentityIndexProvider[Any] = IdentityIndexProvider()
        self._root_node: Any = None
        self._class_ids: Dict[str, int] = {}
        self.state = MigrationState.INIT

    @property
    def indexes(self) -> IdentityIndexProvider[Any]:
        return self._indexes

    def migrate(self) -> MigrationReport:
        if self.state is not MigrationState.INIT:
            raise RuntimeError(f"Migration already ran (state: {self.state.value})")

        phases: List[tuple[MigrationState, Callable[[], Mapping[str, int]]]] = [
            (MigrationState.SCHEMA_SETUP, self._setup_schema),
            (MigrationState.HIERARCHY_LOADED, self._load_hierarchy),
            (MigrationState.OBJECTS_LOADED, self._load_objects),
            (MigrationState.RELATIONS_LOADED, self._load_relations),
            (MigrationState.ROOT_LINKED, self._link_root),
            (MigrationState.FINALIZED, self._finalize),
        ]

        report = MigrationReport()
        for target, step in phases:
            result = self._run_phase(target, step)
            report.phases.append(result)
            if not result.ok:
                logger.error(
                    "Migration stopped after %s while moving to %s: %s",
                    self.state.value,
                    target.value,
                    result.error,
                )
                report.error = result.error
                break
            self.state = target
            report.state = target

        return report

    def _run_phase(self, target: MigrationState, step: Callable[[], Mapping[str, int]]) -> PhaseResult:
        try:
            counts = step()
        except MigrationError as error:
            return PhaseResult(state=target, error=error)
        return PhaseResult(state=target, counts=dict(counts))

    # Phases ----------------------------------------------------------------------
    def _setup_schema(self) -> Mapping[str, int]:
        for label, key in self._schema.node_keys.items():
            self._store.create_unique_constraint(label, key)
        self._root_node = self._store.create_node({}, NODE_ROOT)
        return {"constraints": len(self._schema.node_keys)}

    def _load_hierarchy(self) -> Mapping[str, int]:
        loader = ClassHierarchyLoader(self._model, self._catalog, self._store, self._root_node)
        self._class_ids = loader.load()
        return self._class_ids

    def _load_objects(self) -> Mapping[str, int]:
        loader = ObjectLoader(self._model, self._source, self._store, self._indexes, self._class_ids)
        counts = loader.load()
        self._indexes.freeze()
        logger.info("Loaded %d objects from %d classes", sum(counts.values()), len(counts))
        return counts

    def _load_relations(self) -> Mapping[str, int]:
        loader = RelationLoader(self._model, self._source, self._store, self._indexes.global_index)
        counts = loader.load()
        logger.info("Created %d edges for %d relations", sum(counts.values()), len(counts))
        return counts

    def _link_root(self) -> Mapping[str, int]:
        root_object = self._indexes.global_index.get(ROOT_OBJECT_OID)
        if root_object is None:
            raise MissingRootObjectError(ROOT_OBJECT_OID)
        self._store.create_relationship(self._root_node, root_object, REL_DOMAIN_ROOT)
        return {REL_DOMAIN_ROOT: 1}

    def _finalize(self) -> Mapping[str, int]:
        self._indexes.shutdown()
        self._store.flush()
        self._store.close()
        return {}
