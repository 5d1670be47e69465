"""
Class catalog loading.

Every domain class gets one catalog node carrying its name and the class id
that the relational store encodes in the high 32 bits of each OID.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from dml2graph.dml.models import DomainModel
from dml2graph.graph.schema import (
    NODE_DOMAIN_CLASS,
    PROP_CLASS_ID,
    PROP_DOMAIN_CLASS,
    REL_DOMAIN_CLASS,
)
from dml2graph.graph.store import GraphStore
from dml2graph.source.relational import ClassCatalog

logger = logging.getLogger(__name__)


class ClassHierarchyLoader:
    """Creates the `FF_DOMAIN_CLASS` catalog nodes under the root node."""

    def __init__(self, model: DomainModel, catalog: ClassCatalog, store: GraphStore, root_node: Any) -> None:
        self._model = model
        self._catalog = catalog
        self._store = store
        self._root_node = root_node

    def load(self) -> Dict[str, int]:
        """Return the class id of every domain class, keyed by full name."""

        # Every lookup must succeed before the first catalog node is written.
        class_ids: Dict[str, int] = {}
        for domain_class in self._model.get_domain_classes():
            class_ids[domain_class.full_name] = self._catalog.class_id(domain_class.full_name)

        for full_name, class_id in class_ids.items():
            node = self._store.create_node(
                {PROP_DOMAIN_CLASS: full_name, PROP_CLASS_ID: class_id},
                NODE_DOMAIN_CLASS,
            )
            self._store.create_relationship(self._root_node, node, REL_DOMAIN_CLASS)
            logger.debug("Catalogued %s with class id %d", full_name, class_id)

        logger.info("Catalogued %d domain classes", len(class_ids))
        return class_ids
