"""
Domain metamodel definitions for dml2graph.

These dataclasses describe the object model persisted in the relational
source: domain classes with single inheritance, their declared slots, and the
bidirectional relations between them. The migration engine only reads these
objects; they are built once by the DML parser before a run starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union


def qualify_name(package: Optional[str], name: str) -> str:
    """
    Build the fully-qualified name of an entity declared inside a package.

    Args:
        package: Dotted package name currently in scope, if any.
        name: Simple name of the entity.

    Returns:
        Dotted fully-qualified name.
    """

    if package:
        return f"{package}.{name}"
    return name


@dataclass(eq=False)
class DomainEntity:
    """Common base for anything a DML declaration can reference by name."""

    name: str
    full_name: str


@dataclass(eq=False)
class ExternalEntity(DomainEntity):
    """
    A type referenced by the metamodel but not declared as a domain class.

    Framework base classes (e.g. the persistent root object type) show up as
    superclasses this way. They have no backing table.
    """


@dataclass(slots=True)
class Slot:
    """A named, typed field declared directly on a domain class."""

    name: str
    type_name: str


@dataclass(eq=False)
class DomainClass(DomainEntity):
    """Representation of a persistent domain class."""

    slots: List[Slot] = field(default_factory=list)
    superclass: Optional[Union["DomainClass", ExternalEntity]] = None

    def add_slot(self, slot: Slot) -> None:
        self.slots.append(slot)

    def ancestors(self) -> Iterator["DomainClass"]:
        """
        Yield this class followed by each domain-class ancestor.

        The walk stops at the first superclass that is not a domain class.
        """

        current: Optional[DomainEntity] = self
        while isinstance(current, DomainClass):
            yield current
            current = current.superclass

    def all_slots(self) -> Iterator[Slot]:
        """Yield declared and inherited slots."""

        for cls in self.ancestors():
            yield from cls.slots


@dataclass(eq=False)
class Role:
    """
    One end of a domain relation.

    `multiplicity_upper` is `None` when the role is unbounded (`*`).
    """

    type: DomainClass
    name: Optional[str] = None
    multiplicity_lower: int = 0
    multiplicity_upper: Optional[int] = 1
    relation: Optional["DomainRelation"] = field(default=None, repr=False)

    @property
    def is_many(self) -> bool:
        return self.multiplicity_upper != 1

    @property
    def is_first_role(self) -> bool:
        return self.relation is not None and self.relation.first_role is self

    @property
    def other_role(self) -> "Role":
        if self.relation is None:
            raise ValueError(f"Role {self.name!r} is not attached to a relation")
        if self.is_first_role:
            return self.relation.second_role
        return self.relation.first_role


@dataclass(eq=False)
class DomainRelation:
    """A named association between exactly two roles."""

    name: str
    first_role: Role
    second_role: Role

    def __post_init__(self) -> None:
        self.first_role.relation = self
        self.second_role.relation = self


@dataclass
class DomainModel:
    """Ordered collection of the classes and relations of a metamodel."""

    classes: Dict[str, DomainClass] = field(default_factory=dict)
    relations: Dict[str, DomainRelation] = field(default_factory=dict)

    def add_class(self, domain_class: DomainClass) -> None:
        self.classes[domain_class.full_name] = domain_class

    def add_relation(self, relation: DomainRelation) -> None:
        self.relations[relation.name] = relation

    def get_domain_classes(self) -> List[DomainClass]:
        return list(self.classes.values())

    def get_domain_relations(self) -> List[DomainRelation]:
        return list(self.relations.values())

    def find_class(self, name: str) -> Optional[DomainClass]:
        """Look a class up by full name, falling back to a unique simple name."""

        if name in self.classes:
            return self.classes[name]
        matches = [cls for cls in self.classes.values() if cls.name == name]
        if len(matches) == 1:
            return matches[0]
        return None
