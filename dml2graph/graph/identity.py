"""
Exact-match OID -> node identity indexes.

The object loader registers every node it creates under the object's OID; the
relation loader later resolves foreign keys through the global index. One
provider is created per migration run and handed to the loaders explicitly.
"""

from __future__ import annotations

import logging
from typing import Dict, Generic, Iterator, Optional, TypeVar

from dml2graph.errors import DuplicateObjectError, UnresolvedObjectError
from dml2graph.graph.schema import GLOBAL_INDEX_NAME

logger = logging.getLogger(__name__)

NodeId = TypeVar("NodeId")


class IndexClosedError(RuntimeError):
    """Raised when an index is used after its provider was shut down."""


class IdentityIndex(Generic[NodeId]):
    """
    Append-only mapping from numeric OID to graph node identity.

    An index can be frozen once its writer is done; afterwards it only serves
    lookups.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: Dict[int, NodeId] = {}
        self._frozen = False
        self._closed = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, oid: object) -> bool:
        return oid in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add(self, node_id: NodeId, oid: int) -> None:
        self._check_open()
        if self._frozen:
            raise RuntimeError(f"Index {self.name} is read-only")
        oid = int(oid)
        if oid in self._entries:
            raise DuplicateObjectError(oid, self.name)
        self._entries[oid] = node_id

    def get(self, oid: int) -> Optional[NodeId]:
        self._check_open()
        return self._entries.get(int(oid))

    def require(self, oid: int, context: str = "") -> NodeId:
        """Return the node registered for `oid` or raise `UnresolvedObjectError`."""

        node_id = self.get(oid)
        if node_id is None:
            raise UnresolvedObjectError(int(oid), context)
        return node_id

    def freeze(self) -> None:
        self._frozen = True

    def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise IndexClosedError(f"Index {self.name} has been shut down")


class IdentityIndexProvider(Generic[NodeId]):
    """Owns the named indexes of one migration run."""

    def __init__(self) -> None:
        self._indexes: Dict[str, IdentityIndex[NodeId]] = {}
        self._shutdown = False

    @property
    def global_index(self) -> IdentityIndex[NodeId]:
        return self.node_index(GLOBAL_INDEX_NAME)

    def node_index(self, name: str) -> IdentityIndex[NodeId]:
        if self._shutdown:
            raise IndexClosedError("Identity index provider has been shut down")
        index = self._indexes.get(name)
        if index is None:
            index = IdentityIndex(name)
            self._indexes[name] = index
        return index

    def index_names(self) -> list[str]:
        return list(self._indexes)

    def freeze(self) -> None:
        """Make every index read-only; called once the object loader is done."""

        for index in self._indexes.values():
            index.freeze()

    def shutdown(self) -> None:
        for index in self._indexes.values():
            index.close()
        logger.debug("Shut down %d identity indexes", len(self._indexes))
        self._shutdown = True
