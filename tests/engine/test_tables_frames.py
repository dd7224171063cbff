import polars as pl

from flatgraph.core.entity import EntitySchema
from flatgraph.engine import EngineSettings, EntityStore, entity_frames, normalize


def _normalized_blog():
    users = EntitySchema("users")
    articles = EntitySchema("articles", {"author": users, "readers": [users]})
    data = [
        {"id": 1, "title": "a", "author": {"id": 7, "name": "ada"}, "readers": [{"id": 8, "name": "bob"}]},
        {"id": 2, "title": "b", "author": {"id": 8, "name": "bob"}, "readers": []},
    ]
    return normalize(data, [articles])


def test_one_frame_per_entity_type() -> None:
    out = _normalized_blog()
    frames = entity_frames(out.entities)

    assert set(frames) == {"users", "articles"}
    articles = frames["articles"]
    assert articles.columns == ["entity_id", "id", "title", "author", "readers"]
    assert articles.height == 2
    assert articles["entity_id"].to_list() == ["1", "2"]
    assert articles["author"].to_list() == [7, 8]
    assert articles.schema["readers"] == pl.List(pl.Int64)
    assert sorted(frames["users"]["name"].to_list()) == ["ada", "bob"]


def test_custom_identity_column_and_store_input() -> None:
    store = EntityStore({"tags": {"py": {"id": "py", "count": 3}}})
    frames = entity_frames(store, EngineSettings(frame_id_column="id"))
    tags = frames["tags"]
    # a field sharing the identity column's name is replaced by the identity
    assert tags.columns == ["id", "count"]
    assert tags.row(0) == ("py", 3)


def test_non_mapping_entities_use_value_column() -> None:
    frames = entity_frames({"labels": {1: "red", 2: "blue"}})
    assert frames["labels"].columns == ["entity_id", "value"]
    assert frames["labels"]["value"].to_list() == ["red", "blue"]


def test_empty_table_keeps_identity_column() -> None:
    frames = entity_frames({"users": {}})
    assert frames["users"].columns == ["entity_id"]
    assert frames["users"].height == 0
