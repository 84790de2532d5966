"""Render layers: shared-queue BFS from every node without incoming edges."""

from __future__ import annotations

from collections import deque

from depgraph.models import Graph


def compute_layers(graph: Graph) -> None:
    """Assign ``layer`` on every node in place.

    Roots get layer 0 and the first traversal to reach a node fixes its
    layer. Nodes only reachable through a rootless cycle stay at 0.
    """
    forward, reverse = graph.adjacency()
    for node in graph.nodes.values():
        node.layer = 0

    roots = [node_id for node_id in graph.nodes if not reverse.get(node_id)]
    queue: deque[tuple[str, int]] = deque((node_id, 0) for node_id in roots)
    visited: set[str] = set()

    while queue:
        node_id, layer = queue.popleft()
        if node_id in visited:
            continue
        visited.add(node_id)
        graph.nodes[node_id].layer = layer
        for dep in forward.get(node_id, []):
            if dep not in visited:
                queue.append((dep, layer + 1))


def nodes_by_layer(graph: Graph) -> list[list[str]]:
    """Node ids grouped by layer, each group sorted."""
    if not graph.nodes:
        return []
    max_layer = max(node.layer for node in graph.nodes.values())
    layers: list[list[str]] = [[] for _ in range(max_layer + 1)]
    for node_id, node in graph.nodes.items():
        layers[node.layer].append(node_id)
    return [sorted(layer) for layer in layers]
