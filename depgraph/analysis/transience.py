"""Transience filter: drop transient external packages and their edges."""

from __future__ import annotations

from dataclasses import replace

from depgraph.models import Graph, GraphEdge, NodeType


def filter_transient(graph: Graph) -> Graph:
    """Return a new graph without transient external-package nodes.

    Projects, targets and internal packages always survive. Idempotent.
    """
    nodes = {
        node_id: replace(node)
        for node_id, node in graph.nodes.items()
        if node.node_type is not NodeType.EXTERNAL_PACKAGE or not node.is_transient
    }
    edges = [
        GraphEdge(source=e.source, target=e.target)
        for e in graph.edges
        if e.source in nodes and e.target in nodes
    ]
    return Graph(nodes=nodes, edges=edges)
