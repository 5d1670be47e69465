"""Shared fixtures: an in-memory SQLite source and a recording graph store."""

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from dml2graph.dml import DMLParser
from dml2graph.source import RelationalSource

PERSON_PET_DML = """
package sample;

class Person {
    String name;
}

class Pet {
    String name;
}

relation owns {
    Pet playsRole pets {
        multiplicity *;
    }
    Person playsRole owner;
}
"""

PERSON_CLASS_ID = 0
PET_CLASS_ID = 1


def make_oid(class_id: int, counter: int) -> int:
    return (class_id << 32) | counter


@dataclass
class RecordingGraphStore:
    """Graph store double that keeps everything it is asked to write."""

    nodes: Dict[int, Tuple[str, Dict[str, Any]]] = field(default_factory=dict)
    relationships: List[Tuple[int, int, str, Dict[str, Any]]] = field(default_factory=list)
    constraints: List[Tuple[str, str]] = field(default_factory=list)
    flushes: int = 0
    closed: bool = False

    def create_unique_constraint(self, label: str, key: str) -> None:
        self.constraints.append((label, key))

    def create_node(self, properties: Mapping[str, Any], label: str) -> int:
        node_id = len(self.nodes)
        self.nodes[node_id] = (label, dict(properties))
        return node_id

    def create_relationship(
        self,
        start: int,
        end: int,
        rel_type: str,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.relationships.append((start, end, rel_type, dict(properties or {})))

    def flush(self) -> None:
        self.flushes += 1

    def close(self) -> None:
        self.closed = True

    # Inspection helpers
    def nodes_with_label(self, label: str) -> List[Dict[str, Any]]:
        return [props for node_label, props in self.nodes.values() if node_label == label]

    def edges_of_type(self, rel_type: str) -> List[Tuple[int, int]]:
        return [(start, end) for start, end, kind, _ in self.relationships if kind == rel_type]

    def oid_of(self, node_id: int) -> Any:
        return self.nodes[node_id][1].get("oid")


@pytest.fixture
def store() -> RecordingGraphStore:
    return RecordingGraphStore()


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def source(connection) -> RelationalSource:
    return RelationalSource(connection, placeholder="?", fetch_size=2)


def create_catalog(connection, class_ids: Mapping[str, int]) -> None:
    connection.execute(
        "CREATE TABLE `FF$DOMAIN_CLASS_INFO` (DOMAIN_CLASS_ID INTEGER, DOMAIN_CLASS_NAME TEXT)"
    )
    connection.executemany(
        "INSERT INTO `FF$DOMAIN_CLASS_INFO` VALUES (?, ?)",
        [(class_id, name) for name, class_id in class_ids.items()],
    )


def parse_dml(text: str):
    return DMLParser().parse_text(text)


@pytest.fixture
def person_pet_model():
    return parse_dml(PERSON_PET_DML)


@pytest.fixture
def person_pet_db(connection):
    """Three people, three pets, two of the pets with an owner."""

    create_catalog(connection, {"sample.Person": PERSON_CLASS_ID, "sample.Pet": PET_CLASS_ID})
    connection.execute("CREATE TABLE PERSON (OID INTEGER, NAME TEXT)")
    connection.execute("CREATE TABLE PET (OID INTEGER, NAME TEXT, OID_OWNER INTEGER)")
    connection.executemany(
        "INSERT INTO PERSON VALUES (?, ?)",
        [(make_oid(PERSON_CLASS_ID, n), name) for n, name in enumerate(["Ana", "Rui", "Eva"], start=1)],
    )
    connection.executemany(
        "INSERT INTO PET VALUES (?, ?, ?)",
        [
            (make_oid(PET_CLASS_ID, 1), "Rex", make_oid(PERSON_CLASS_ID, 1)),
            (make_oid(PET_CLASS_ID, 2), "Tom", make_oid(PERSON_CLASS_ID, 3)),
            (make_oid(PET_CLASS_ID, 3), "Bob", None),
        ],
    )
    return connection
