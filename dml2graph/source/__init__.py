"""
Relational source adapters for dml2graph.
"""

from .relational import (
    CLASS_INFO_TABLE,
    OID_COLUMN,
    ClassCatalog,
    RelationalSource,
    SourceRow,
    quote_identifier,
)

__all__ = [
    "CLASS_INFO_TABLE",
    "OID_COLUMN",
    "ClassCatalog",
    "RelationalSource",
    "SourceRow",
    "quote_identifier",
]
