"""
Centralized definitions for the Neo4j schema produced by dml2graph.

The migration engine relies on the metadata in this file for constraint
creation, and to keep node labels and relationship types consistent between
the class catalog, the object data and the root node.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Mapping, Union

from dml2graph.errors import UnsupportedValueError


NODE_ROOT = "FF_ROOT"
NODE_DOMAIN_CLASS = "FF_DOMAIN_CLASS"

REL_DOMAIN_CLASS = "DOMAIN_CLASS"
REL_DOMAIN_ROOT = "DOMAIN_ROOT"

PROP_DOMAIN_CLASS = "domainClass"
PROP_CLASS_ID = "classId"
PROP_OID = "oid"

GLOBAL_INDEX_NAME = "ff$OID"
ROOT_OBJECT_OID = 1

# Values a node property may hold. Temporal values are stored as epoch millis.
PropertyValue = Union[bool, int, float, str]


@dataclass(frozen=True)
class SchemaMetadata:
    """
    Encapsulates the constraint configuration applied before loading.

    Attributes:
        node_keys: Mapping of node label -> property that must be unique.
    """

    node_keys: Mapping[str, str]


DEFAULT_SCHEMA = SchemaMetadata(
    node_keys={NODE_DOMAIN_CLASS: PROP_DOMAIN_CLASS},
)


def to_epoch_millis(value: Union[datetime, date]) -> int:
    """
    Convert a timestamp or date to milliseconds since the epoch.

    Naive timestamps are read as UTC. Dates map to their UTC midnight.
    """

    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def to_property_value(value: object) -> PropertyValue | None:
    """Normalize a native column value into a storable property value."""

    if value is None:
        return None
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return to_epoch_millis(value)
    if isinstance(value, Decimal):
        return float(value)
    raise UnsupportedValueError(value)


def format_node_properties(payload: Mapping[str, object]) -> Dict[str, PropertyValue]:
    """
    Normalize node property payloads before insertion.

    Values are converted with `to_property_value`; absent values are dropped
    rather than stored as explicit nulls.
    """

    normalized: Dict[str, PropertyValue] = {}
    for key, raw in payload.items():
        value = to_property_value(raw)
        if value is None:
            continue
        normalized[key] = value
    return normalized
