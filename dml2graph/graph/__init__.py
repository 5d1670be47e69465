"""
Graph schema, identity indexes and Neo4j integration for dml2graph.
"""

from .identity import IdentityIndex, IdentityIndexProvider, IndexClosedError
from .schema import (
    DEFAULT_SCHEMA,
    GLOBAL_INDEX_NAME,
    NODE_DOMAIN_CLASS,
    NODE_ROOT,
    PROP_CLASS_ID,
    PROP_DOMAIN_CLASS,
    PROP_OID,
    REL_DOMAIN_CLASS,
    REL_DOMAIN_ROOT,
    ROOT_OBJECT_OID,
    PropertyValue,
    SchemaMetadata,
    format_node_properties,
    to_epoch_millis,
    to_property_value,
)
from .store import GraphStore, Neo4jGraphStore

__all__ = [
    "DEFAULT_SCHEMA",
    "GLOBAL_INDEX_NAME",
    "NODE_DOMAIN_CLASS",
    "NODE_ROOT",
    "PROP_CLASS_ID",
    "PROP_DOMAIN_CLASS",
    "PROP_OID",
    "REL_DOMAIN_CLASS",
    "REL_DOMAIN_ROOT",
    "ROOT_OBJECT_OID",
    "PropertyValue",
    "SchemaMetadata",
    "format_node_properties",
    "to_epoch_millis",
    "to_property_value",
    "IdentityIndex",
    "IdentityIndexProvider",
    "IndexClosedError",
    "GraphStore",
    "Neo4jGraphStore",
]
