"""Format-agnostic graph document consumed by renderers."""

from __future__ import annotations

import json
from pathlib import Path

from depgraph.models import Graph


def graph_to_dict(graph: Graph, schema_version: int = 1) -> dict:
    """Return a JSON-serializable dict: nodes sorted by id, edges in insertion order.

    schemaVersion 1 means label-keyed ids, 2 means stable type-qualified ids.
    """
    nodes = [
        {
            "id": node.id,
            "label": node.label,
            "type": node.node_type.value,
            "isTransient": node.is_transient,
            "isInternal": node.is_internal,
            "layer": node.layer,
        }
        for node in sorted(graph.nodes.values(), key=lambda n: n.id)
    ]
    edges = [{"source": e.source, "target": e.target} for e in graph.edges]
    return {
        "nodes": nodes,
        "edges": edges,
        "metadata": {
            "schemaVersion": schema_version,
            "nodeCount": len(nodes),
            "edgeCount": len(edges),
        },
    }


def write_graph_document(graph: Graph, output_path: Path, schema_version: int = 1) -> Path:
    """Write the graph document as pretty-printed JSON."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(graph_to_dict(graph, schema_version), indent=2) + "\n",
        encoding="utf-8",
    )
    return output_path
