"""
Error taxonomy for migration runs.

Every failure is fatal: a run stops at the first error and the graph store is
left as written so far.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base class for failures detected by the migration engine."""


class MetadataInconsistency(MigrationError):
    """The metamodel or the class catalog does not describe the source data."""


class SourceDataInconsistency(MigrationError):
    """Rows in the relational source disagree with the loaded object set."""


class PreconditionViolation(MigrationError):
    """A step's required state is missing."""


class MissingClassMetadataError(MetadataInconsistency):
    def __init__(self, class_name: str) -> None:
        super().__init__(f"No catalog entry in FF$DOMAIN_CLASS_INFO for {class_name}")
        self.class_name = class_name


class UnsupportedHierarchyError(MetadataInconsistency):
    def __init__(self, class_name: str) -> None:
        super().__init__(f"Cannot resolve a backing table for {class_name}: superclass is not a domain class")
        self.class_name = class_name


class AmbiguousJoinColumnsError(MetadataInconsistency):
    def __init__(self, relation_name: str, column: str) -> None:
        super().__init__(f"Relation {relation_name}: both roles map to join column {column}")
        self.relation_name = relation_name
        self.column = column


class UnresolvedObjectError(SourceDataInconsistency):
    def __init__(self, oid: int, context: str = "") -> None:
        message = f"Object {oid} was never loaded"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)
        self.oid = oid


class MissingColumnError(SourceDataInconsistency):
    def __init__(self, column: str, table: str = "") -> None:
        location = f" in {table}" if table else ""
        super().__init__(f"Expected column {column}{location} is missing")
        self.column = column
        self.table = table


class DuplicateObjectError(SourceDataInconsistency):
    def __init__(self, oid: int, index_name: str) -> None:
        super().__init__(f"Object {oid} is already registered in index {index_name}")
        self.oid = oid
        self.index_name = index_name


class UnsupportedValueError(SourceDataInconsistency):
    def __init__(self, value: object) -> None:
        super().__init__(f"Cannot store value of type {type(value).__name__} as a graph property")
        self.value = value


class MissingRootObjectError(PreconditionViolation):
    def __init__(self, oid: int) -> None:
        super().__init__(f"No object with OID {oid} was loaded; cannot link the domain root")
        self.oid = oid


class AnonymousRoleError(MetadataInconsistency):
    def __init__(self, relation_name: str) -> None:
        super().__init__(f"Relation {relation_name}: the role naming the foreign key column is anonymous")
        self.relation_name = relation_name
