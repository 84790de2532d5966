"""Data models for the depgraph pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path


class NodeType(enum.Enum):
    PROJECT = "project"
    TARGET = "target"
    INTERNAL_PACKAGE = "internalPackage"
    EXTERNAL_PACKAGE = "externalPackage"


class SourceKind(enum.Enum):
    LOCKFILE = "lockfile"
    PROJECT_CONFIG = "project_config"
    LOCAL_PACKAGE = "local_package"


# Upgrade order for package-ish nodes. Targets sit outside the lattice.
_TYPE_RANK = {
    NodeType.EXTERNAL_PACKAGE: 0,
    NodeType.PROJECT: 1,
    NodeType.INTERNAL_PACKAGE: 2,
}


class GraphIntegrityError(RuntimeError):
    """Raised when a graph breaks its own invariants (a bug, not bad input)."""


# ── Fact records ─────────────────────────────────────────────


@dataclass(frozen=True)
class TargetRecord:
    """A build target declared by a project configuration."""
    name: str
    package_dependencies: tuple[str, ...] = ()
    target_dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class FactRecord:
    """Parsed summary of one project or package root, from a single source."""
    name: str
    root: Path
    source: SourceKind
    dependencies: tuple[str, ...] = ()
    explicit: frozenset[str] = frozenset()
    targets: tuple[TargetRecord, ...] = ()


@dataclass(frozen=True)
class MergedRecord:
    """One canonical record per root, produced by the merge engine."""
    name: str
    root: Path
    dependencies: tuple[str, ...] = ()
    explicit: frozenset[str] = frozenset()
    targets: tuple[TargetRecord, ...] = ()
    is_local_package: bool = False


@dataclass
class ScanResult:
    """Fact records grouped by the source that produced them."""
    lockfiles: list[FactRecord] = field(default_factory=list)
    project_configs: list[FactRecord] = field(default_factory=list)
    local_packages: list[FactRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.lockfiles or self.project_configs or self.local_packages)


# ── Graph ────────────────────────────────────────────────────


@dataclass
class GraphNode:
    id: str
    label: str
    node_type: NodeType
    is_transient: bool = False
    layer: int = 0

    @property
    def is_internal(self) -> bool:
        return self.node_type is NodeType.INTERNAL_PACKAGE


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str


def merge_node(existing: GraphNode, incoming: GraphNode) -> GraphNode:
    """Fold ``incoming`` into ``existing`` in place and return it.

    Types only move up external < project < internal; targets keep whatever
    they already are. ``is_transient`` only ever goes from True to False.
    """
    old_rank = _TYPE_RANK.get(existing.node_type)
    new_rank = _TYPE_RANK.get(incoming.node_type)
    if old_rank is not None and new_rank is not None and new_rank > old_rank:
        existing.node_type = incoming.node_type
    if existing.node_type is not NodeType.EXTERNAL_PACKAGE:
        existing.is_transient = False
    else:
        existing.is_transient = existing.is_transient and incoming.is_transient
    return existing


@dataclass
class Graph:
    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: list[GraphEdge] = field(default_factory=list)

    def add_node(self, node: GraphNode) -> GraphNode:
        """Insert ``node`` or merge it into the node already holding its id."""
        existing = self.nodes.get(node.id)
        if existing is None:
            self.nodes[node.id] = node
            return node
        return merge_node(existing, node)

    def add_edge(self, source: str, target: str) -> None:
        self.edges.append(GraphEdge(source=source, target=target))

    def adjacency(self) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
        """Forward and reverse adjacency lists over the current edges."""
        forward: dict[str, list[str]] = {nid: [] for nid in self.nodes}
        reverse: dict[str, list[str]] = {nid: [] for nid in self.nodes}
        for edge in self.edges:
            forward.setdefault(edge.source, []).append(edge.target)
            reverse.setdefault(edge.target, []).append(edge.source)
        return forward, reverse

    def check_integrity(self) -> None:
        for edge in self.edges:
            if edge.source not in self.nodes or edge.target not in self.nodes:
                raise GraphIntegrityError(
                    f"Edge {edge.source!r} -> {edge.target!r} references a missing node"
                )


# ── Configuration ────────────────────────────────────────────


@dataclass
class GraphConfig:
    """Configuration for the graph pipeline."""
    source_dir: Path = field(default_factory=lambda: Path("."))
    show_targets: bool = False
    hide_transient: bool = False
    stable_ids: bool = False
    resolve_local: bool = False
    resolve_timeout: float | None = None
    swift_executable: str = "swift"
    skip_dirs: list[str] = field(default_factory=lambda: [
        ".build", ".git", ".swiftpm", "DerivedData", "Pods", "Carthage",
        "node_modules", "build", ".venv", "venv",
    ])

    @property
    def schema_version(self) -> int:
        return 2 if self.stable_ids else 1


@dataclass
class PipelineResult:
    """Result of a full pipeline run."""
    records: list[MergedRecord] = field(default_factory=list)
    graph: Graph = field(default_factory=Graph)
    schema_version: int = 1
    augmented_edges: int = 0

    @property
    def found(self) -> bool:
        return bool(self.records)
