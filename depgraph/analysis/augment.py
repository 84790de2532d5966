"""External edge augmenter: package->package edges from `swift package show-dependencies`."""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from depgraph.identity import normalize_identity
from depgraph.models import Graph, MergedRecord
from depgraph.analysis.graph_builder import GraphBuilder

logger = logging.getLogger(__name__)

SHOW_DEPENDENCIES_ARGS = ("package", "show-dependencies", "--format", "json")


@dataclass
class DependencyTree:
    identity: str
    label: str
    children: list[DependencyTree] = field(default_factory=list)


def parse_dependency_tree(data: object) -> DependencyTree | None:
    """Convert decoded show-dependencies JSON into a DependencyTree."""
    root = _tree_node(data)
    if root is None:
        return None

    stack: list[tuple[dict, DependencyTree]] = [(data, root)]  # type: ignore[list-item]
    while stack:
        raw, node = stack.pop()
        raw_children = raw.get("dependencies")
        if not isinstance(raw_children, list):
            continue
        for raw_child in raw_children:
            child = _tree_node(raw_child)
            if child is None:
                continue
            node.children.append(child)
            stack.append((raw_child, child))
    return root


def parse_show_dependencies(output: str) -> DependencyTree | None:
    """Parse tool stdout; progress lines before the JSON body are ignored."""
    start = output.find("{")
    if start < 0:
        return None
    try:
        data = json.loads(output[start:])
    except ValueError:
        return None
    return parse_dependency_tree(data)


def _tree_node(raw: object) -> DependencyTree | None:
    if not isinstance(raw, dict):
        return None
    identity = raw.get("identity") or raw.get("name") or raw.get("url")
    if not identity:
        return None
    canonical = normalize_identity(str(identity))
    return DependencyTree(identity=canonical, label=str(raw.get("name") or canonical))


class ResolutionCache:
    """show-dependencies results keyed by symlink-resolved root path.

    Lives for one pipeline run; ``clear()`` drops everything when an instance
    is reused across runs. A failed invocation is cached as None.
    """

    def __init__(self):
        self._entries: dict[str, DependencyTree | None] = {}

    @staticmethod
    def key(root: Path) -> str:
        return str(Path(root).resolve())

    def __contains__(self, root: Path) -> bool:
        return self.key(root) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, root: Path) -> DependencyTree | None:
        return self._entries.get(self.key(root))

    def put(self, root: Path, tree: DependencyTree | None) -> None:
        self._entries[self.key(root)] = tree

    def clear(self) -> None:
        self._entries.clear()


class DependencyResolver:
    """Run the dependency-query tool at most once per package root."""

    def __init__(
        self,
        swift_executable: str = "swift",
        timeout: float | None = None,
        cache: ResolutionCache | None = None,
    ):
        self.swift_executable = swift_executable
        self.timeout = timeout
        self.cache = cache if cache is not None else ResolutionCache()
        self.invocations = 0

    def resolve(self, root: Path) -> DependencyTree | None:
        if root in self.cache:
            return self.cache.get(root)
        tree = self._invoke(Path(root))
        self.cache.put(root, tree)
        return tree

    def _invoke(self, root: Path) -> DependencyTree | None:
        self.invocations += 1
        cmd = [self.swift_executable, *SHOW_DEPENDENCIES_ARGS]
        logger.info("Resolving dependencies in %s", root)
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(root),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("show-dependencies timed out in %s", root)
            return None
        except OSError as e:
            logger.warning("Could not run %s in %s: %s", self.swift_executable, root, e)
            return None

        if proc.returncode != 0:
            logger.warning(
                "show-dependencies failed in %s (exit %d): %s",
                root, proc.returncode, (proc.stderr or "").strip()[:200],
            )
            return None

        tree = parse_show_dependencies(proc.stdout)
        if tree is None:
            logger.warning("show-dependencies returned malformed output in %s", root)
        return tree


class EdgeAugmenter:
    """Add package->package edges discovered by resolving local packages."""

    def __init__(
        self,
        builder: GraphBuilder,
        resolver: DependencyResolver,
        hide_transient: bool = False,
    ):
        self.builder = builder
        self.resolver = resolver
        self.hide_transient = hide_transient

    def augment(self, graph: Graph, records: list[MergedRecord]) -> int:
        """Mutate ``graph`` in place; return the number of edges added."""
        candidates = candidate_packages(records)
        if not candidates:
            return 0

        seen = {(e.source, e.target) for e in graph.edges}
        covered: set[str] = set()
        added = 0

        for record in order_entry_points(candidates):
            canon = normalize_identity(record.name)
            if canon in covered:
                logger.debug("Skipping %s: already covered by an earlier tree", record.name)
                continue
            tree = self.resolver.resolve(record.root)
            if tree is None:
                continue
            root_id = self.builder.record_node_id(record)
            covered.add(canon)
            added += self._walk(graph, tree, root_id, seen, covered)

        graph.check_integrity()
        logger.debug("Augmented graph with %d edge(s)", added)
        return added

    def _walk(
        self,
        graph: Graph,
        tree: DependencyTree,
        root_id: str,
        seen: set[tuple[str, str]],
        covered: set[str],
    ) -> int:
        added = 0
        stack = [(child, root_id, 0) for child in reversed(tree.children)]
        while stack:
            node, parent_id, depth = stack.pop()
            transient = depth > 0 and not self.builder.is_explicit(node.identity)
            if self.hide_transient and transient and not self.builder.is_local(node.identity):
                continue
            child_id = self.builder.ensure_package(
                graph, node.identity, label=node.label, transient=transient,
            )

            key = (parent_id, child_id)
            if parent_id != child_id and key not in seen:
                seen.add(key)
                graph.add_edge(parent_id, child_id)
                added += 1

            # with transients hidden the walk stops at depth 1
            if self.hide_transient:
                if depth == 0:
                    stack.extend((child, child_id, 1) for child in reversed(node.children))
                continue
            if node.identity in covered:
                continue
            covered.add(node.identity)
            stack.extend((child, child_id, depth + 1) for child in reversed(node.children))
        return added


def candidate_packages(records: list[MergedRecord]) -> list[MergedRecord]:
    """Local packages referenced by a project, or every local package if none is."""
    local = [r for r in records if r.is_local_package]
    referenced: set[str] = set()
    for record in records:
        if not record.is_local_package:
            referenced |= record.explicit
    chosen = [r for r in local if normalize_identity(r.name) in referenced]
    return chosen or local


def order_entry_points(candidates: list[MergedRecord]) -> list[MergedRecord]:
    """Packages no other candidate declares come first; their trees cover the rest."""
    depended: set[str] = set()
    for record in candidates:
        own = normalize_identity(record.name)
        depended |= {name for name in record.explicit if name != own}

    def sort_key(record: MergedRecord) -> tuple[bool, str]:
        return (normalize_identity(record.name) in depended, record.name.lower())

    return sorted(candidates, key=sort_key)
