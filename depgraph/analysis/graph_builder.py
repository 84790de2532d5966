"""Graph builder: classify merged records into typed nodes and edges."""

from __future__ import annotations

import logging
from pathlib import Path

from depgraph.identity import normalize_identity
from depgraph.models import Graph, GraphNode, MergedRecord, NodeType

logger = logging.getLogger(__name__)


class NodeIdScheme:
    """Node ids, either raw labels (schema 1) or type-qualified stable ids (schema 2).

    Package ids are registered per canonical identity, so every reference to
    one package lands on the same node.
    """

    def __init__(self, stable: bool = False):
        self.stable = stable
        self._packages: dict[str, str] = {}

    def project(self, root: Path, label: str) -> str:
        return f"project:{root}#{label}" if self.stable else label

    def target(self, container_id: str, label: str) -> str:
        return f"target:{container_id}#{label}" if self.stable else label

    def package(self, canonical: str, label: str, internal: bool) -> str:
        existing = self._packages.get(canonical)
        if existing is not None:
            return existing
        if self.stable:
            prefix = "localPackage" if internal else "externalPackage"
            node_id = f"{prefix}:{canonical}"
        else:
            node_id = label
        self._packages[canonical] = node_id
        return node_id


def global_explicit(records: list[MergedRecord]) -> set[str]:
    explicit: set[str] = set()
    for record in records:
        explicit |= record.explicit
    return explicit


def local_package_names(records: list[MergedRecord]) -> set[str]:
    return {normalize_identity(r.name) for r in records if r.is_local_package}


class GraphBuilder:
    """Build a typed dependency graph from merged records."""

    def __init__(self, show_targets: bool = False, stable_ids: bool = False):
        self.show_targets = show_targets
        self.ids = NodeIdScheme(stable=stable_ids)
        self._explicit: set[str] = set()
        self._local: set[str] = set()

    def build(self, records: list[MergedRecord]) -> Graph:
        graph = Graph()
        self._explicit = global_explicit(records)
        self._local = local_package_names(records)

        # Register manifest records first so package nodes keep the manifest's casing
        for record in records:
            if record.is_local_package:
                canon = normalize_identity(record.name)
                self.ids.package(canon, record.name, internal=True)

        for record in records:
            self._add_record(graph, record)

        graph.check_integrity()
        logger.debug(
            "Built graph from %d record(s): %d nodes, %d edges",
            len(records), len(graph.nodes), len(graph.edges),
        )
        return graph

    def is_explicit(self, canonical: str) -> bool:
        return canonical in self._explicit

    def is_local(self, canonical: str) -> bool:
        return canonical in self._local

    def record_node_id(self, record: MergedRecord) -> str:
        if record.is_local_package:
            canon = normalize_identity(record.name)
            return self.ids.package(canon, record.name, internal=True)
        return self.ids.project(record.root, record.name)

    def _add_record(self, graph: Graph, record: MergedRecord) -> None:
        canon = normalize_identity(record.name)
        is_internal = not record.targets and canon in self._explicit
        node_id = self.record_node_id(record)
        graph.add_node(GraphNode(
            id=node_id,
            label=record.name,
            node_type=NodeType.INTERNAL_PACKAGE if is_internal else NodeType.PROJECT,
        ))

        if self.show_targets:
            self._add_targets(graph, record, node_id)

        seen: set[str] = set()
        for dep in record.dependencies:
            dep_id = self.ensure_package(graph, dep)
            if dep_id == node_id or dep_id in seen:
                continue
            seen.add(dep_id)
            graph.add_edge(node_id, dep_id)

    def _add_targets(self, graph: Graph, record: MergedRecord, node_id: str) -> None:
        declared = {t.name for t in record.targets}
        for target in record.targets:
            target_id = self.ids.target(node_id, target.name)
            graph.add_node(GraphNode(id=target_id, label=target.name, node_type=NodeType.TARGET))
            # label ids collide when a target shares its project's name
            if target_id != node_id:
                graph.add_edge(node_id, target_id)

        for target in record.targets:
            target_id = self.ids.target(node_id, target.name)
            for dep_name in target.target_dependencies:
                if dep_name in declared and dep_name != target.name:
                    graph.add_edge(target_id, self.ids.target(node_id, dep_name))
            for identity in target.package_dependencies:
                graph.add_edge(target_id, self.ensure_package(graph, identity))

    def ensure_package(
        self,
        graph: Graph,
        reference: str,
        *,
        label: str | None = None,
        transient: bool | None = None,
    ) -> str:
        """Add (or merge) the package node for ``reference`` and return its id.

        ``label`` overrides the display name. ``transient`` overrides the global
        explicit-set rule; internal packages are never transient either way.
        """
        canon = normalize_identity(reference)
        internal = canon in self._local
        if transient is None:
            transient = canon not in self._explicit
        label = label or reference
        node_id = self.ids.package(canon, label, internal=internal)
        graph.add_node(GraphNode(
            id=node_id,
            label=label,
            node_type=NodeType.INTERNAL_PACKAGE if internal else NodeType.EXTERNAL_PACKAGE,
            is_transient=transient and not internal,
        ))
        return node_id
