"""Unit tests for property graph assembly."""

from __future__ import annotations

from core.schema import EdgeSchema, GraphKind, NodeSchema, NodeSource
from transforms.graph_builder import GraphIndexCache, build_graph, node_identifier

_TABLES = {
    "people": [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}],
    "person_tag": [{"from": 1, "to": 2, "weight": 0.5}],
    "post_tag": [{"from": 1, "to": 2, "weight": 0.1}],
    "knows": [{"from": 1, "to": 2, "since": 2020}, {"from": 1, "to": 2, "since": 2021}],
}


def _edge(key: str, from_label: str, to_label: str, **kwargs: object) -> EdgeSchema:
    return EdgeSchema(
        key=key,
        from_node=NodeSchema("from", from_label, kwargs.get("from_source")),  # type: ignore[arg-type]
        to_node=NodeSchema("to", to_label, kwargs.get("to_source")),  # type: ignore[arg-type]
        props=tuple(kwargs.get("props", ())),  # type: ignore[arg-type]
    )


def test_build_graph_scopes_node_ids_by_label() -> None:
    """Equal raw ids under different labels should stay distinct nodes."""
    kind = GraphKind(
        key="g",
        edges=(_edge("person_tag", "person", "tag"), _edge("post_tag", "post", "tag")),
    )

    graph = build_graph(_TABLES, kind)

    assert sorted(graph.nodes) == ["person1", "post1", "tag2"]
    assert graph.number_of_edges() == 2
    assert graph.nodes["person1"] == {"id": 1, "labels": ["person"]}


def test_build_graph_copies_indexed_rows_and_props() -> None:
    """Nodes should carry source rows and edges only declared props plus type."""
    people = NodeSource("people", "id")
    kind = GraphKind(
        key="g",
        edges=(
            _edge(
                "knows",
                "person",
                "person",
                from_source=people,
                to_source=people,
                props=("since",),
            ),
        ),
    )

    graph = build_graph(_TABLES, kind)

    assert graph.nodes["person2"] == {"id": 2, "name": "Bob", "labels": ["person"]}
    edges = sorted(data["since"] for _, _, data in graph.edges(data=True))
    assert edges == [2020, 2021]
    assert all(
        set(data) == {"since", "type"} and data["type"] == "knows"
        for _, _, data in graph.edges(data=True)
    )


def test_build_graph_reuses_nodes_across_edge_schemas() -> None:
    """A node reached by two edge schemas should be created once."""
    kind = GraphKind(
        key="g",
        edges=(_edge("knows", "person", "person"), _edge("person_tag", "person", "tag")),
    )

    graph = build_graph(_TABLES, kind)

    assert sorted(graph.nodes) == ["person1", "person2", "tag2"]
    assert graph.nodes["person1"]["labels"] == ["person"]
    assert graph.number_of_edges() == 3


def test_graph_index_cache_resolves_once() -> None:
    """Indexes should be cached per table and column."""
    cache = GraphIndexCache(tables=_TABLES)
    source = NodeSource("people", "id")

    first = cache.resolve(source)
    second = cache.resolve(source)

    assert first is second and first[2]["name"] == "Bob"


def test_node_identifier_concatenates_label_and_id() -> None:
    """Node identifiers should be label-scoped."""
    assert node_identifier("person", 1) == "person1"


def test_build_graph_accumulates_labels_on_colliding_ids() -> None:
    """Colliding label and id pairs should merge into one multi-labeled node."""
    tables = {"links": [{"from": 1, "to": "b1"}]}
    kind = GraphKind(key="g", edges=(_edge("links", "ab", "a"),))

    graph = build_graph(tables, kind)

    assert list(graph.nodes) == ["ab1"]
    assert graph.nodes["ab1"] == {"id": 1, "labels": ["ab", "a"]}
    assert graph.number_of_edges() == 1
