"""
Relation loading: one graph edge per resolved object pair.

Many-to-many relations live in a join table named after the relation. The
other shapes store a foreign key column on one side's table; that side is the
"picked" role. Foreign keys are resolved through the global identity index,
which must already hold every loaded object.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple, Union

from dml2graph.dml.models import DomainModel, DomainRelation, Role
from dml2graph.errors import (
    AmbiguousJoinColumnsError,
    AnonymousRoleError,
    UnsupportedHierarchyError,
)
from dml2graph.graph.identity import IdentityIndex
from dml2graph.graph.store import GraphStore
from dml2graph.migration.naming import (
    convert_to_db_style,
    expected_table_name,
    foreign_key_column,
    table_name,
)
from dml2graph.source.relational import OID_COLUMN, RelationalSource, SourceRow, quote_identifier

logger = logging.getLogger(__name__)


class RelationShape(str, Enum):
    """Cardinality shape of a relation, derived from its role multiplicities."""

    MANY_TO_MANY = "many-to-many"
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"


@dataclass(frozen=True)
class JoinTablePlan:
    """Edges come from a join table: first column -> second column."""

    table: str
    first_column: str
    second_column: str

    def query(self) -> str:
        return f"SELECT * FROM {quote_identifier(self.table)}"


@dataclass(frozen=True)
class ForeignKeyPlan:
    """
    Edges come from a foreign key column on the picked role's table.

    `picked_is_first` tells whether a row's own object plays the relation's
    first role. When it does, edges run from the key target to the row's own
    object; otherwise from the row's own object to the key target.
    """

    table: str
    column: str
    picked_is_first: bool

    def query(self) -> str:
        return (
            f"SELECT {OID_COLUMN}, {self.column} FROM {quote_identifier(self.table)} "
            f"WHERE {self.column} IS NOT NULL"
        )


RelationPlan = Union[JoinTablePlan, ForeignKeyPlan]


def classify_relation(relation: DomainRelation) -> RelationShape:
    first, second = relation.first_role, relation.second_role
    if first.is_many and second.is_many:
        return RelationShape.MANY_TO_MANY
    if not first.is_many and not second.is_many:
        return RelationShape.ONE_TO_ONE
    return RelationShape.ONE_TO_MANY


def pick_role(relation: DomainRelation) -> Role:
    """
    Return the role whose table stores the foreign key.

    One-to-one: the first role when it is anonymous, otherwise the second.
    One-to-many: the unbounded ("many") role.
    """

    first, second = relation.first_role, relation.second_role
    if classify_relation(relation) is RelationShape.ONE_TO_ONE:
        return first if first.name is None else second
    return first if first.is_many else second


def join_columns(relation: DomainRelation) -> Tuple[str, str]:
    first, second = relation.first_role, relation.second_role
    first_column = foreign_key_column(first.type.name)
    second_column = foreign_key_column(second.type.name)

    if first_column == second_column:
        if first.name is None or second.name is None:
            raise AmbiguousJoinColumnsError(relation.name, first_column)
        first_column = f"{first_column}_{convert_to_db_style(first.name)}"
        second_column = f"{second_column}_{convert_to_db_style(second.name)}"
        if first_column == second_column:
            raise AmbiguousJoinColumnsError(relation.name, first_column)

    return first_column, second_column


def plan_relation(relation: DomainRelation) -> RelationPlan:
    if classify_relation(relation) is RelationShape.MANY_TO_MANY:
        first_column, second_column = join_columns(relation)
        return JoinTablePlan(
            table=table_name(relation.name),
            first_column=first_column,
            second_column=second_column,
        )

    picked = pick_role(relation)
    table = expected_table_name(picked.type)
    if table is None:
        raise UnsupportedHierarchyError(picked.type.full_name)
    other = picked.other_role
    if other.name is None:
        raise AnonymousRoleError(relation.name)
    return ForeignKeyPlan(
        table=table,
        column=foreign_key_column(other.name),
        picked_is_first=picked.is_first_role,
    )


class RelationLoader:
    """Resolves every declared relation into typed edges."""

    def __init__(
        self,
        model: DomainModel,
        source: RelationalSource,
        store: GraphStore,
        objects: IdentityIndex[Any],
    ) -> None:
        self._model = model
        self._source = source
        self._store = store
        self._objects = objects

    def load(self) -> Dict[str, int]:
        """Load every relation; return the number of edges created per relation."""

        counts: Dict[str, int] = {}
        for relation in self._model.get_domain_relations():
            logger.info("Importing relation %s", relation.name)
            plan = plan_relation(relation)
            if isinstance(plan, JoinTablePlan):
                counts[relation.name] = self._load_join_table(relation, plan)
            else:
                counts[relation.name] = self._load_foreign_key(relation, plan)
        return counts

    def _load_join_table(self, relation: DomainRelation, plan: JoinTablePlan) -> int:
        count = 0
        for row in self._source.query(plan.query(), table=plan.table):
            first = self._resolve(row, plan.first_column, relation)
            second = self._resolve(row, plan.second_column, relation)
            self._store.create_relationship(first, second, relation.name)
            count += 1

        logger.info(
            "\tRelation is Many-to-Many, in table: %s, %s - %s. Got %d hits",
            plan.table,
            plan.first_column,
            plan.second_column,
            count,
        )
        return count

    def _load_foreign_key(self, relation: DomainRelation, plan: ForeignKeyPlan) -> int:
        logger.info("\tLooking it up on table %s, column %s.", plan.table, plan.column)

        count = 0
        for row in self._source.query(plan.query(), table=plan.table):
            own = self._resolve(row, OID_COLUMN, relation)
            target = self._resolve(row, plan.column, relation)
            if plan.picked_is_first:
                self._store.create_relationship(target, own, relation.name)
            else:
                self._store.create_relationship(own, target, relation.name)
            count += 1

        logger.info("\t\tFinished. Got %d hits", count)
        return count

    def _resolve(self, row: SourceRow, column: str, relation: DomainRelation) -> Any:
        oid = row.oid(column)
        return self._objects.require(oid, f"relation {relation.name}, column {column}")
