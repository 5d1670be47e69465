"""Tests for the OID identity indexes."""

import pytest

from dml2graph.errors import DuplicateObjectError, UnresolvedObjectError
from dml2graph.graph import GLOBAL_INDEX_NAME, IdentityIndex, IdentityIndexProvider, IndexClosedError


def test_add_and_lookup_by_oid():
    index = IdentityIndex("sample.Person")
    index.add("node-1", 1)
    index.add("node-2", (7 << 32) | 2)

    assert index.get(1) == "node-1"
    assert index.get((7 << 32) | 2) == "node-2"
    assert index.get(3) is None
    assert len(index) == 2
    assert 1 in index


def test_node_id_zero_is_a_valid_registration():
    index = IdentityIndex("sample.Person")
    index.add(0, 1)
    assert index.require(1) == 0


def test_duplicate_registration_is_rejected():
    index = IdentityIndex(GLOBAL_INDEX_NAME)
    index.add("a", 5)
    with pytest.raises(DuplicateObjectError):
        index.add("b", 5)
    assert index.get(5) == "a"


def test_require_raises_for_unknown_oid():
    index = IdentityIndex(GLOBAL_INDEX_NAME)
    with pytest.raises(UnresolvedObjectError, match="relation owns"):
        index.require(42, "relation owns")


def test_frozen_index_only_serves_lookups():
    provider = IdentityIndexProvider()
    provider.global_index.add("a", 1)
    provider.node_index("sample.Person").add("a", 1)

    provider.freeze()

    assert provider.global_index.frozen
    assert provider.global_index.get(1) == "a"
    with pytest.raises(RuntimeError):
        provider.global_index.add("b", 2)


def test_provider_returns_one_index_per_name():
    provider = IdentityIndexProvider()
    assert provider.node_index("sample.Pet") is provider.node_index("sample.Pet")
    assert provider.global_index is provider.node_index(GLOBAL_INDEX_NAME)
    assert set(provider.index_names()) == {"sample.Pet", GLOBAL_INDEX_NAME}


def test_shutdown_closes_every_index():
    provider = IdentityIndexProvider()
    index = provider.global_index
    index.add("a", 1)

    provider.shutdown()

    with pytest.raises(IndexClosedError):
        index.get(1)
    with pytest.raises(IndexClosedError):
        provider.node_index("other")
