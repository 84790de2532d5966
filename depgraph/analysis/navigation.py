"""Navigation: closure subgraphs for drilling into one node's dependencies or dependents."""

from __future__ import annotations

from dataclasses import replace

from depgraph.models import Graph, GraphEdge

DIRECTION_DEPENDENCIES = "dependencies"
DIRECTION_DEPENDENTS = "dependents"


def reachable(graph: Graph, node_id: str, direction: str = DIRECTION_DEPENDENCIES) -> set[str]:
    """Ids reachable from ``node_id`` (itself included) along or against the edges."""
    if node_id not in graph.nodes:
        return set()
    forward, reverse = graph.adjacency()
    adjacency = reverse if direction == DIRECTION_DEPENDENTS else forward

    visited = {node_id}
    stack = [node_id]
    while stack:
        current = stack.pop()
        for neighbor in adjacency.get(current, []):
            if neighbor not in visited:
                visited.add(neighbor)
                stack.append(neighbor)
    return visited


def subgraph(graph: Graph, node_ids: set[str]) -> Graph:
    """Copy of ``graph`` restricted to ``node_ids``."""
    nodes = {nid: replace(node) for nid, node in graph.nodes.items() if nid in node_ids}
    edges = [
        GraphEdge(source=e.source, target=e.target)
        for e in graph.edges
        if e.source in nodes and e.target in nodes
    ]
    return Graph(nodes=nodes, edges=edges)


def dependency_subgraph(graph: Graph, node_id: str) -> Graph:
    return subgraph(graph, reachable(graph, node_id, DIRECTION_DEPENDENCIES))


def dependent_subgraph(graph: Graph, node_id: str) -> Graph:
    return subgraph(graph, reachable(graph, node_id, DIRECTION_DEPENDENTS))


def find_node(graph: Graph, query: str) -> str | None:
    """Resolve a user-supplied id or label (case-insensitive) to a node id."""
    if query in graph.nodes:
        return query
    lowered = query.lower()
    matches = sorted(
        node_id for node_id, node in graph.nodes.items()
        if node.label.lower() == lowered or node_id.lower() == lowered
    )
    return matches[0] if matches else None
