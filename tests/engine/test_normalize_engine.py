import copy
import sys

import pytest

from flatgraph.core.entity import EntitySchema
from flatgraph.engine import (
    EngineSettings,
    NormalizeInputError,
    UnionSchema,
    UnsupportedSchemaError,
    denormalize,
    normalize,
)


@pytest.fixture()
def blog():
    users = EntitySchema("users")
    comments = EntitySchema("comments", {"commenter": users})
    articles = EntitySchema("articles", {"author": users, "comments": [comments]})
    return users, comments, articles


def _article(article_id: int, author: dict) -> dict:
    return {
        "id": article_id,
        "title": f"post {article_id}",
        "author": author,
        "comments": [
            {"id": article_id * 10, "body": "nice", "commenter": {"id": 99, "name": "reader"}},
        ],
    }


def test_normalize_builds_flat_tables(blog) -> None:
    users, comments, articles = blog
    out = normalize(_article(1, {"id": 7, "name": "ada"}), articles)

    assert out.result == 1
    assert out.entities == {
        "users": {99: {"id": 99, "name": "reader"}, 7: {"id": 7, "name": "ada"}},
        "comments": {10: {"id": 10, "body": "nice", "commenter": 99}},
        "articles": {1: {"id": 1, "title": "post 1", "author": 7, "comments": [10]}},
    }


def test_round_trip_for_acyclic_input(blog) -> None:
    _, _, articles = blog
    data = [_article(1, {"id": 7, "name": "ada"}), _article(2, {"id": 8, "name": "bob"})]
    out = normalize(data, [articles])

    assert out.result == [1, 2]
    assert denormalize(out.result, [articles], out.entities) == data


def test_input_is_not_mutated(blog) -> None:
    _, _, articles = blog
    data = [_article(1, {"id": 7}), _article(2, {"id": 7})]
    before = copy.deepcopy(data)
    normalize(data, [articles])
    assert data == before


def test_shared_substructure_is_stored_once(blog) -> None:
    merges = []

    def tracking_merge(a, b):
        merges.append((a, b))
        return {**a, **b}

    users = EntitySchema("users", merge_strategy=tracking_merge)
    articles = EntitySchema("articles", {"author": users})
    author = {"id": 7, "name": "ada"}

    out = normalize([{"id": 1, "author": author}, {"id": 2, "author": dict(author)}], [articles])

    assert merges == []
    assert out.entities["users"] == {7: {"id": 7, "name": "ada"}}
    assert out.entities["articles"][1]["author"] == out.entities["articles"][2]["author"] == 7


def test_reference_dedupe_revisits_equal_copies() -> None:
    merges = []
    users = EntitySchema("users", merge_strategy=lambda a, b: merges.append(b) or {**a, **b})
    articles = EntitySchema("articles", {"author": users})
    author = {"id": 7, "name": "ada"}
    data = [{"id": 1, "author": author}, {"id": 2, "author": dict(author)}]

    out = normalize(data, [articles], EngineSettings(dedupe="reference"))

    assert merges == [{"id": 7, "name": "ada"}]
    assert out.entities["users"] == {7: {"id": 7, "name": "ada"}}


def test_observations_merge_in_post_order() -> None:
    users = EntitySchema("users")
    users.define({"friend": users})
    data = {"id": 1, "name": "outer", "friend": {"id": 2, "friend": {"id": 1, "name": "inner", "age": 30}}}

    out = normalize(data, users)

    # the nested observation of user 1 is stored first; the outer one is merged over it
    assert out.entities["users"][1] == {"id": 1, "name": "outer", "age": 30, "friend": 2}
    assert out.entities["users"][2] == {"id": 2, "friend": 1}


def test_two_node_reference_cycle_terminates() -> None:
    users = EntitySchema("users")
    users.define({"friend": users})
    a = {"id": 1, "name": "a"}
    b = {"id": 2, "name": "b", "friend": a}
    a["friend"] = b

    out = normalize(a, users)

    assert out.result == 1
    assert out.entities["users"] == {
        1: {"id": 1, "name": "a", "friend": 2},
        2: {"id": 2, "name": "b", "friend": 1},
    }


def test_long_reference_cycle_terminates() -> None:
    nodes = EntitySchema("nodes")
    nodes.define({"next": nodes})
    depth = 1000
    root = {"id": 0}
    node = root
    for i in range(1, depth):
        nxt = {"id": i}
        node["next"] = nxt
        node = nxt
    node["next"] = root

    out = normalize(root, nodes)

    assert out.result == 0
    table = out.entities["nodes"]
    assert len(table) == depth
    assert all(table[i]["next"] == (i + 1) % depth for i in range(depth))


def test_long_cycle_through_list_fields_terminates() -> None:
    nodes = EntitySchema("nodes")
    nodes.define({"children": [nodes]})
    depth = 1000
    root = {"id": 0}
    node = root
    for i in range(1, depth):
        child = {"id": i}
        node["children"] = [child]
        node = child
    node["children"] = [root]

    out = normalize(root, nodes)

    assert len(out.entities["nodes"]) == depth
    assert out.entities["nodes"][depth - 1] == {"id": depth - 1, "children": [0]}


def test_recursion_limit_restored_after_call() -> None:
    nodes = EntitySchema("nodes")
    nodes.define({"next": nodes})
    before = sys.getrecursionlimit()

    normalize({"id": 0, "next": {"id": 1}}, nodes, EngineSettings(recursion_limit=before + 5000))

    assert sys.getrecursionlimit() == before


def test_cyclic_graph_denormalizes_to_cyclic_view() -> None:
    users = EntitySchema("users")
    posts = EntitySchema("posts", {"author": users})
    users.define({"posts": [posts]})
    data = {"id": 1, "posts": [{"id": 7, "author": {"id": 1}}, {"id": 8, "author": {"id": 1}}]}

    out = normalize(data, users)
    assert out.entities["users"] == {1: {"id": 1, "posts": [7, 8]}}

    view = denormalize(out.result, users, out.entities)
    assert view["posts"][0]["author"] is view
    assert view["posts"][1]["author"] is view
    # stored tables keep identities
    assert out.entities["posts"][7] == {"id": 7, "author": 1}


def test_custom_process_round_trips_to_processed_form() -> None:
    users = EntitySchema("users", process_strategy=lambda v, p, k: {k2: x for k2, x in v.items() if k2 != "password"})
    posts = EntitySchema("posts", {"author": users})
    data = {"id": 1, "author": {"id": 2, "password": "hunter2"}}

    out = normalize(data, posts)

    assert out.entities["users"][2] == {"id": 2}
    assert denormalize(out.result, posts, out.entities) == {"id": 1, "author": {"id": 2}}


def test_composite_identity_from_parent_context() -> None:
    comments = EntitySchema("comments", id_attribute=lambda v, parent, key: f"{parent['type']}-{v['id']}")
    posts = EntitySchema("posts", {"comments": [comments]})
    data = {"id": 1, "type": "post", "comments": [{"id": 3}, {"id": 4}]}

    out = normalize(data, posts)

    assert out.entities["posts"][1]["comments"] == ["post-3", "post-4"]
    assert set(out.entities["comments"]) == {"post-3", "post-4"}


def test_object_shorthand_keeps_other_fields(blog) -> None:
    users, _, _ = blog
    data = {"users": [{"id": 1}, {"id": 2}], "meta": {"page": 1}}

    out = normalize(data, {"users": [users]})

    assert out.result == {"users": [1, 2], "meta": {"page": 1}}
    assert sorted(out.entities["users"]) == [1, 2]


def test_array_shorthand_over_mapping_values(blog) -> None:
    users, _, _ = blog
    out = normalize({"a": {"id": 1}, "b": {"id": 2}}, [users])
    assert out.result == [1, 2]


def test_identities_pass_through(blog) -> None:
    users, _, _ = blog
    out = normalize({"author": 5, "editors": [6, 7]}, {"author": users, "editors": [users]})
    assert out.result == {"author": 5, "editors": [6, 7]}
    assert out.entities == {}


def test_union_field_normalizes_to_tagged_identity() -> None:
    users = EntitySchema("users")
    groups = EntitySchema("groups")
    owner = UnionSchema({"user": users, "group": groups}, schema_attribute="type")
    repos = EntitySchema("repos", {"owner": owner})
    data = [
        {"id": 1, "owner": {"id": 10, "type": "user"}},
        {"id": 2, "owner": {"id": 10, "type": "group"}},
        {"id": 3, "owner": {"id": 11, "type": "robot"}},
    ]

    out = normalize(data, [repos])

    assert out.entities["repos"][1]["owner"] == {"id": 10, "schema": "user"}
    assert out.entities["repos"][2]["owner"] == {"id": 10, "schema": "group"}
    assert out.entities["repos"][3]["owner"] == {"id": 11, "type": "robot"}
    assert set(out.entities) == {"users", "groups", "repos"}
    assert denormalize(out.result, [repos], out.entities) == data


def test_union_with_callable_schema_attribute() -> None:
    cats = EntitySchema("cats")
    dogs = EntitySchema("dogs")
    pet = UnionSchema({"cats": cats, "dogs": dogs}, lambda v, parent, key: "cats" if v.get("meows") else "dogs")

    out = normalize([{"id": 1, "meows": True}, {"id": 2}], [pet])

    assert out.result == [{"id": 1, "schema": "cats"}, {"id": 2, "schema": "dogs"}]


@pytest.mark.parametrize("bad_input", [1, "text", None, 2.5])
def test_non_composite_top_level_input_rejected(blog, bad_input) -> None:
    _, _, articles = blog
    with pytest.raises(NormalizeInputError):
        normalize(bad_input, articles)


def test_list_shorthand_needs_exactly_one_schema(blog) -> None:
    users, _, articles = blog
    with pytest.raises(UnsupportedSchemaError):
        normalize([{"id": 1}], [users, articles])


def test_unknown_schema_object_strict_and_lenient() -> None:
    with pytest.raises(UnsupportedSchemaError):
        normalize({"id": 1}, 42)
    out = normalize({"id": 1}, 42, EngineSettings(strict_schemas=False))
    assert out.result == {"id": 1}


def test_resolver_failure_aborts_whole_call() -> None:
    def fail_on_two(v, parent, key):
        if v["id"] == 2:
            raise KeyError("boom")
        return v["id"]

    users = EntitySchema("users", id_attribute=fail_on_two)
    with pytest.raises(KeyError):
        normalize([{"id": 1}, {"id": 2}], [users])
