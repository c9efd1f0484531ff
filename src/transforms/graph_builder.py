"""Property graph assembly from edge tables.

Every edge schema reads its rows from one filtered table. Endpoint
nodes are identified by label plus raw id, so equal raw ids under
different labels stay distinct nodes. A node reached through several
edge schemas accumulates their labels.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import networkx as nx

from core.constants import EDGE_TYPE_ATTRIBUTE, NODE_ID_ATTRIBUTE, NODE_LABELS_ATTRIBUTE
from core.errors import PolyloadSchemaError
from core.logging_config import get_logger
from core.schema import CsvRow, EdgeSchema, GraphKind, NodeSchema, NodeSource

_LOGGER = get_logger(__name__)

GraphIndex = dict[Any, CsvRow]


@dataclass
class GraphIndexCache:
    """Source-table indexes resolved once per graph build.

    Attributes:
        tables: Filtered tables keyed by file key.
        indexes: Cached indexes keyed by ``(table key, id column)``.
    """

    tables: Mapping[str, object]
    indexes: dict[tuple[str, str], GraphIndex] = field(default_factory=dict)

    def resolve(self, source: NodeSource) -> GraphIndex:
        """Return the index from ``source.column`` values to full rows.

        Raises:
            PolyloadSchemaError: If the source table is not available.
        """
        cache_key = (source.key, source.column)
        cached = self.indexes.get(cache_key)
        if cached is not None:
            return cached
        rows = self.tables.get(source.key)
        if rows is None:
            raise PolyloadSchemaError(
                f"Node source table '{source.key}' not found while building the graph."
            )
        index: GraphIndex = {}
        for row in rows:  # type: ignore[attr-defined]
            index[row.get(source.column)] = row
        self.indexes[cache_key] = index
        return index


def build_graph(tables: Mapping[str, object], kind: GraphKind) -> nx.MultiDiGraph:
    """Build one directed multigraph from the kind's edge schemas.

    Args:
        tables: Filtered tables keyed by file key.
        kind: Graph kind listing edge schemas in build order.

    Returns:
        Graph whose nodes carry row attributes plus a ``labels`` list and
        whose edges carry a ``type`` tag plus the declared props.
    """
    graph = nx.MultiDiGraph()
    index_cache = GraphIndexCache(tables=tables)
    for edge_schema in kind.edges:
        add_edges_for_schema(graph, tables, index_cache, edge_schema)
    _LOGGER.info(
        "graph_built",
        graph_key=kind.key,
        node_count=graph.number_of_nodes(),
        edge_count=graph.number_of_edges(),
    )
    return graph


def add_edges_for_schema(
    graph: nx.MultiDiGraph,
    tables: Mapping[str, object],
    index_cache: GraphIndexCache,
    edge_schema: EdgeSchema,
) -> None:
    """Add one edge per row of the edge schema's table."""
    rows = tables.get(edge_schema.key)
    if rows is None:
        raise PolyloadSchemaError(
            f"Edge table '{edge_schema.key}' not found while building the graph."
        )
    from_index = _resolve_index(index_cache, edge_schema.from_node)
    to_index = _resolve_index(index_cache, edge_schema.to_node)
    for row in rows:  # type: ignore[attr-defined]
        from_node_id = _ensure_node(graph, row, edge_schema.from_node, from_index)
        to_node_id = _ensure_node(graph, row, edge_schema.to_node, to_index)
        edge_data = {prop: row.get(prop) for prop in edge_schema.props}
        edge_data[EDGE_TYPE_ATTRIBUTE] = edge_schema.key
        graph.add_edges_from([(from_node_id, to_node_id, edge_data)])


def node_identifier(label: str, raw_id: object) -> str:
    """Return the label-scoped node identifier for a raw id."""
    return f"{label}{raw_id}"


def _resolve_index(index_cache: GraphIndexCache, node: NodeSchema) -> GraphIndex | None:
    if node.source is None:
        return None
    return index_cache.resolve(node.source)


def _ensure_node(
    graph: nx.MultiDiGraph,
    row: CsvRow,
    node: NodeSchema,
    index: GraphIndex | None,
) -> str:
    """Create the endpoint node, or add the label to an existing one.

    Ids are label-scoped, so an existing node only gains a second label
    when two label and id pairs concatenate to the same id, such as
    ``("ab", 1)`` and ``("a", "b1")``. Attributes are never overwritten.
    """
    raw_id = row.get(node.id_column)
    node_id = node_identifier(node.label, raw_id)
    if graph.has_node(node_id):
        labels = graph.nodes[node_id][NODE_LABELS_ATTRIBUTE]
        if node.label not in labels:
            labels.append(node.label)
        return node_id
    indexed_row = index.get(raw_id) if index is not None else None
    attributes = dict(indexed_row) if indexed_row is not None else {NODE_ID_ATTRIBUTE: raw_id}
    attributes[NODE_LABELS_ATTRIBUTE] = [node.label]
    graph.add_nodes_from([(node_id, attributes)])
    return node_id
