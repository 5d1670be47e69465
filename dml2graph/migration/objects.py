"""
Object loading: one graph node per persisted domain object.

Every class of a hierarchy shares the root class's table; the concrete class
of a row is the class id stored in the high 32 bits of its OID.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping

from dml2graph.dml.models import DomainClass, DomainModel
from dml2graph.graph.identity import IdentityIndexProvider
from dml2graph.graph.schema import PROP_OID, format_node_properties
from dml2graph.graph.store import GraphStore
from dml2graph.migration.naming import column_name, expected_table_name, node_label
from dml2graph.source.relational import OID_COLUMN, RelationalSource, quote_identifier

logger = logging.getLogger(__name__)


def class_rows_query(table: str, class_id: int) -> str:
    return f"SELECT * FROM {quote_identifier(table)} WHERE {OID_COLUMN} >> 32 = {int(class_id)}"


class ObjectLoader:
    """
    Streams each class's rows into graph nodes and registers them by OID.

    The loader is the only writer of the identity indexes handed to it.
    """

    def __init__(
        self,
        model: DomainModel,
        source: RelationalSource,
        store: GraphStore,
        indexes: IdentityIndexProvider,
        class_ids: Mapping[str, int],
    ) -> None:
        self._model = model
        self._source = source
        self._store = store
        self._indexes = indexes
        self._class_ids = class_ids
        self.skipped_classes: List[str] = []

    def load(self) -> Dict[str, int]:
        """Load every class; return the number of objects copied per class."""

        counts: Dict[str, int] = {}
        for domain_class in self._model.get_domain_classes():
            table = expected_table_name(domain_class)
            if table is None:
                logger.warning(
                    "Skipping %s: its hierarchy does not end in a domain class with a table",
                    domain_class.full_name,
                )
                self.skipped_classes.append(domain_class.full_name)
                continue
            counts[domain_class.full_name] = self._load_class(domain_class, table)
        return counts

    def _load_class(self, domain_class: DomainClass, table: str) -> int:
        logger.info("Importing %s", domain_class.full_name)

        class_index = self._indexes.node_index(domain_class.full_name)
        global_index = self._indexes.global_index
        label = node_label(domain_class.full_name)
        columns = {slot.name: column_name(slot.name) for slot in domain_class.all_slots()}
        query = class_rows_query(table, self._class_ids[domain_class.full_name])

        count = 0
        for row in self._source.query(query, table=table):
            properties = format_node_properties(
                {slot_name: row.value(column) for slot_name, column in columns.items()}
            )
            oid = row.oid()
            properties[PROP_OID] = oid

            node = self._store.create_node(properties, label)
            class_index.add(node, oid)
            global_index.add(node, oid)
            count += 1

        logger.info("\t\tCopied %d objects.", count)
        return count
