"""
Graph store integration for dml2graph.

`GraphStore` is the narrow interface the migration engine writes through.
`Neo4jGraphStore` implements it on top of the official driver, grouping writes
into explicit transactions so a bulk load does not pay one round trip commit
per node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol

from neo4j import Driver, GraphDatabase, Record, Session, Transaction

from dml2graph.config import Neo4jSettings
from dml2graph.graph.schema import PropertyValue

logger = logging.getLogger(__name__)


class GraphStore(Protocol):
    """Write primitives required by the migration engine."""

    def create_unique_constraint(self, label: str, key: str) -> None:
        ...

    def create_node(self, properties: Mapping[str, PropertyValue], label: str) -> Any:
        ...

    def create_relationship(
        self,
        start: Any,
        end: Any,
        rel_type: str,
        properties: Optional[Mapping[str, PropertyValue]] = None,
    ) -> None:
        ...

    def flush(self) -> None:
        ...

    def close(self) -> None:
        ...


def quote_name(name: str) -> str:
    """Backtick-quote a label or relationship type for inclusion in Cypher."""

    return "`" + name.replace("`", "``") + "`"


@dataclass
class Neo4jGraphStore:
    """Bulk writer that persists nodes and relationships into Neo4j."""

    settings: Neo4jSettings
    batch_size: int = 1000
    driver: Driver | None = None
    _session_handle: Session | None = field(default=None, init=False, repr=False)
    _transaction: Transaction | None = field(default=None, init=False, repr=False)
    _pending: int = field(default=0, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)
    _failed: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.driver is None:
            auth = (self.settings.username, self.settings.password)
            self.driver = GraphDatabase.driver(self.settings.uri, auth=auth)

    def _session(self) -> Session:
        if not self.driver:
            raise RuntimeError("Neo4j driver is not initialized")
        return self.driver.session(database=self.settings.database)

    def _tx(self) -> Transaction:
        if self._closed:
            raise RuntimeError("Graph store has been closed")
        if self._transaction is None:
            if self._session_handle is None:
                self._session_handle = self._session()
            self._transaction = self._session_handle.begin_transaction()
        return self._transaction

    def _written(self) -> None:
        self._pending += 1
        if self._pending >= self.batch_size:
            self.flush()

    # Schema ----------------------------------------------------------------------
    def create_unique_constraint(self, label: str, key: str) -> None:
        # Schema changes cannot share a transaction with data writes.
        with self._session() as session:
            session.run(
                f"CREATE CONSTRAINT IF NOT EXISTS FOR (n:{quote_name(label)}) "
                f"REQUIRE n.{quote_name(key)} IS UNIQUE"
            )

    # Writes ----------------------------------------------------------------------
    def create_node(self, properties: Mapping[str, PropertyValue], label: str) -> str:
        record = self._run(
            f"CREATE (n:{quote_name(label)}) SET n = $props RETURN elementId(n) AS node_id",
            props=dict(properties),
        )
        self._written()
        return record["node_id"]

    def create_relationship(
        self,
        start: str,
        end: str,
        rel_type: str,
        properties: Optional[Mapping[str, PropertyValue]] = None,
    ) -> None:
        self._run(
            "MATCH (src) WHERE elementId(src) = $start_id "
            "MATCH (dst) WHERE elementId(dst) = $end_id "
            f"CREATE (src)-[r:{quote_name(rel_type)}]->(dst) SET r = $props",
            start_id=start,
            end_id=end,
            props=dict(properties or {}),
        )
        self._written()

    def _run(self, query: str, **params: Any) -> Optional[Record]:
        """Run one write in the open transaction and return its single record, if any."""

        tx = self._tx()
        try:
            return tx.run(query, **params).single()
        except Exception:
            # A failed statement leaves the transaction only fit for rollback.
            self._failed = True
            raise

    def flush(self) -> None:
        if self._transaction is not None:
            transaction, self._transaction = self._transaction, None
            if self._failed:
                logger.warning("Rolling back %d graph writes after a failed statement", self._pending)
                if not transaction.closed():
                    transaction.rollback()
            else:
                if not transaction.closed():
                    transaction.commit()
                logger.debug("Committed %d graph writes", self._pending)
        self._failed = False
        self._pending = 0

    def close(self) -> None:
        if self._closed:
            return
        try:
            self.flush()
        finally:
            self._closed = True
            try:
                if self._session_handle is not None:
                    self._session_handle.close()
                    self._session_handle = None
            finally:
                if self.driver:
                    self.driver.close()
