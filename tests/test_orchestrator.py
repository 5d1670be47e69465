"""End-to-end migration runs against SQLite and the recording store."""

import pytest

from conftest import PERSON_CLASS_ID, PET_CLASS_ID, RecordingGraphStore, make_oid
from dml2graph.errors import MissingClassMetadataError, MissingRootObjectError
from dml2graph.graph import (
    NODE_DOMAIN_CLASS,
    NODE_ROOT,
    REL_DOMAIN_CLASS,
    REL_DOMAIN_ROOT,
    IndexClosedError,
    SchemaMetadata,
)
from dml2graph.migration import MigrationOrchestrator, MigrationState


def test_person_pet_scenario(person_pet_model, person_pet_db, source, store):
    report = MigrationOrchestrator(person_pet_model, source, store).migrate()

    assert report.succeeded
    assert report.state is MigrationState.FINALIZED
    assert [phase.state for phase in report.phases] == [
        MigrationState.SCHEMA_SETUP,
        MigrationState.HIERARCHY_LOADED,
        MigrationState.OBJECTS_LOADED,
        MigrationState.RELATIONS_LOADED,
        MigrationState.ROOT_LINKED,
        MigrationState.FINALIZED,
    ]

    data_nodes = store.nodes_with_label("sample_Person") + store.nodes_with_label("sample_Pet")
    assert len(data_nodes) == 6
    assert len(store.nodes_with_label(NODE_DOMAIN_CLASS)) == 2
    assert len(store.nodes_with_label(NODE_ROOT)) == 1
    assert len(store.nodes) == 9

    root_edges = store.edges_of_type(REL_DOMAIN_ROOT)
    assert len(root_edges) == 1
    root_start, root_end = root_edges[0]
    assert store.nodes[root_start][0] == NODE_ROOT
    assert store.oid_of(root_end) == 1

    owns = sorted((store.oid_of(a), store.oid_of(b)) for a, b in store.edges_of_type("owns"))
    assert owns == [
        (make_oid(PERSON_CLASS_ID, 1), make_oid(PET_CLASS_ID, 1)),
        (make_oid(PERSON_CLASS_ID, 3), make_oid(PET_CLASS_ID, 2)),
    ]
    assert all(store.nodes[a][0] == "sample_Person" for a, _ in store.edges_of_type("owns"))
    assert all(store.nodes[b][0] == "sample_Pet" for _, b in store.edges_of_type("owns"))
    assert len(store.edges_of_type(REL_DOMAIN_CLASS)) == 2

    assert store.constraints == [(NODE_DOMAIN_CLASS, "domainClass")]
    assert store.closed
    assert report.objects_loaded == 6
    assert report.edges_created == 2


def test_indexes_are_closed_after_finalizing(person_pet_model, person_pet_db, source, store):
    orchestrator = MigrationOrchestrator(person_pet_model, source, store)
    report = orchestrator.migrate()
    assert report.succeeded

    # Finalization closes the indexes; a fresh run is needed to inspect them.
    with pytest.raises(IndexClosedError):
        orchestrator.indexes.global_index


def test_index_holds_each_object_once_before_finalizing(person_pet_model, person_pet_db, source, store, monkeypatch):
    orchestrator = MigrationOrchestrator(person_pet_model, source, store)
    monkeypatch.setattr(orchestrator, "_finalize", lambda: {})

    assert orchestrator.migrate().succeeded

    index = orchestrator.indexes.global_index
    data_nodes = {
        node_id: props["oid"] for node_id, (label, props) in store.nodes.items() if label.startswith("sample_")
    }
    assert len(index) == len(data_nodes) == 6
    for node_id, oid in data_nodes.items():
        assert index.get(oid) == node_id


def test_missing_root_object_stops_before_linking(person_pet_model, person_pet_db, source, store):
    person_pet_db.execute("DELETE FROM PERSON WHERE OID = 1")
    person_pet_db.execute("UPDATE PET SET OID_OWNER = NULL WHERE OID_OWNER = 1")

    orchestrator = MigrationOrchestrator(person_pet_model, source, store)
    report = orchestrator.migrate()

    assert not report.succeeded
    assert report.state is MigrationState.RELATIONS_LOADED
    assert orchestrator.state is MigrationState.RELATIONS_LOADED
    assert isinstance(report.error, MissingRootObjectError)
    assert report.phases[-1].state is MigrationState.ROOT_LINKED
    assert not report.phases[-1].ok
    # Nothing is rolled back and nothing is finalized.
    assert len(store.edges_of_type("owns")) == 1
    assert store.edges_of_type(REL_DOMAIN_ROOT) == []
    assert not store.closed
    with pytest.raises(MissingRootObjectError):
        report.raise_for_error()


def test_missing_catalog_metadata_fails_hierarchy_phase(person_pet_model, connection, source, store):
    connection.execute(
        "CREATE TABLE `FF$DOMAIN_CLASS_INFO` (DOMAIN_CLASS_ID INTEGER, DOMAIN_CLASS_NAME TEXT)"
    )

    report = MigrationOrchestrator(person_pet_model, source, store).migrate()

    assert report.state is MigrationState.SCHEMA_SETUP
    assert isinstance(report.error, MissingClassMetadataError)
    assert len(store.nodes) == 1


def test_orchestrator_runs_once(person_pet_model, person_pet_db, source, store):
    orchestrator = MigrationOrchestrator(person_pet_model, source, store)
    orchestrator.migrate()

    with pytest.raises(RuntimeError):
        orchestrator.migrate()


def test_rerun_duplicates_nodes_and_edges(person_pet_model, person_pet_db, source):
    """Re-running against the same store is not deduplicated; this is documented behavior."""

    store = RecordingGraphStore()
    assert MigrationOrchestrator(person_pet_model, source, store).migrate().succeeded
    first_nodes, first_edges = len(store.nodes), len(store.relationships)

    store.closed = False
    assert MigrationOrchestrator(person_pet_model, source, store).migrate().succeeded

    assert len(store.nodes) == 2 * first_nodes
    assert len(store.relationships) == 2 * first_edges
    assert len(store.edges_of_type("owns")) == 4


def test_schema_setup_creates_every_configured_constraint(person_pet_model, person_pet_db, source, store):
    schema = SchemaMetadata(node_keys={NODE_DOMAIN_CLASS: "domainClass", "sample_Person": "oid"})

    report = MigrationOrchestrator(person_pet_model, source, store, schema=schema).migrate()

    assert report.succeeded
    assert store.constraints == [(NODE_DOMAIN_CLASS, "domainClass"), ("sample_Person", "oid")]
    assert report.counts_for(MigrationState.SCHEMA_SETUP) == {"constraints": 2}
