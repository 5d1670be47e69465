"""
Domain metamodel (DML) layer for dml2graph.

The metamodel describes which classes, slots and relations exist in the
relational source and drives every step of the migration.
"""

from .models import (
    DomainClass,
    DomainEntity,
    DomainModel,
    DomainRelation,
    ExternalEntity,
    Role,
    Slot,
    qualify_name,
)
from .parser import DMLParseError, DMLParser, load_domain_model

__all__ = [
    "DomainClass",
    "DomainEntity",
    "DomainModel",
    "DomainRelation",
    "ExternalEntity",
    "Role",
    "Slot",
    "qualify_name",
    "DMLParseError",
    "DMLParser",
    "load_domain_model",
]
