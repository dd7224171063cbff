from types import MappingProxyType

from flatgraph.core.entity import EntitySchema
from flatgraph.engine import EntityStore


def test_add_stores_then_merges() -> None:
    users = EntitySchema("users")
    store = EntityStore()
    store.add(users, {"id": 1, "name": "a"}, {"id": 1, "name": "a"}, None, None)
    store.add(users, {"id": 1, "name": "b", "age": 2}, {"id": 1}, None, None)

    assert store.get("users", 1) == {"id": 1, "name": "b", "age": 2}
    assert ("users", 1) in store
    assert len(store) == 1


def test_identity_resolved_from_original_input() -> None:
    users = EntitySchema("users", id_attribute="uid")
    store = EntityStore()
    # canonical value dropped the identity field; the original input still has it
    store.add(users, {"name": "a"}, {"uid": "u1", "name": "a"}, None, None)
    assert store.tables == {"users": {"u1": {"name": "a"}}}


def test_identities_are_not_coerced() -> None:
    users = EntitySchema("users")
    store = EntityStore()
    store.add(users, {"id": 5}, {"id": 5}, None, None)
    store.add(users, {"id": "5"}, {"id": "5"}, None, None)
    assert len(store) == 2
    assert store.get("users", "5") == {"id": "5"}


def test_unknown_lookups() -> None:
    store = EntityStore({"users": {1: {"id": 1}}})
    assert store.get("users", 2) is None
    assert store.get("groups", 1) is None
    assert ("groups", 1) not in store
    assert "users" not in store
    assert repr(store) == "EntityStore({'users': 1})"


def test_keyed_entity_stays_keyed_after_merge() -> None:
    users = EntitySchema("users")
    store = EntityStore()
    store.add(users, MappingProxyType({"id": 1, "name": "a"}), {"id": 1}, None, None)
    store.add(users, MappingProxyType({"id": 1, "age": 3}), {"id": 1}, None, None)

    merged = store.get("users", 1)
    assert isinstance(merged, MappingProxyType)
    assert dict(merged) == {"id": 1, "name": "a", "age": 3}
