"""Pinch-point analysis: SCC condensation plus impact and vulnerability scoring.

Cycles are collapsed into one component before any metric is computed, so
depth and closure sizes stay well-defined on cyclic graphs. Tarjan emits
components sinks-first, which is the only ordering the metric passes need.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from depgraph.models import Graph, NodeType

CRITICAL_THRESHOLD = 20
HIGH_THRESHOLD = 10
MEDIUM_THRESHOLD = 5
DEPTH_WEIGHT = 0.2


@dataclass(frozen=True)
class PinchPointInfo:
    node_id: str
    label: str
    node_type: str
    direct_dependents: int
    transitive_dependents: int
    direct_dependencies: int
    transitive_dependencies: int
    depth: int
    cycle_size: int
    impact_score: float
    vulnerability_score: int

    @property
    def risk_level(self) -> str:
        if self.transitive_dependents >= CRITICAL_THRESHOLD:
            return "critical"
        if self.transitive_dependents >= HIGH_THRESHOLD:
            return "high"
        if self.transitive_dependents >= MEDIUM_THRESHOLD:
            return "medium"
        return "low"


@dataclass
class ComponentView:
    """Condensed component graph. Component indices follow Tarjan's sinks-first order."""
    components: list[list[str]] = field(default_factory=list)
    component_of: dict[str, int] = field(default_factory=dict)
    successors: list[set[int]] = field(default_factory=list)
    predecessors: list[set[int]] = field(default_factory=list)

    def size(self, component: int) -> int:
        return len(self.components[component])


@dataclass
class PinchPointAnalysis:
    infos: list[PinchPointInfo] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    component_count: int = 0
    max_depth: int = 0
    project_count: int = 0
    dependency_count: int = 0
    edge_count: int = 0
    # (node id, distinct direct dependents) for nodes used by more than one node
    shared: list[tuple[str, int]] = field(default_factory=list)

    @property
    def high_impact(self) -> list[PinchPointInfo]:
        return sorted(self.infos, key=lambda i: (-i.impact_score, i.label))

    @property
    def most_vulnerable(self) -> list[PinchPointInfo]:
        return sorted(self.infos, key=lambda i: (-i.vulnerability_score, i.label))

    def bucket(self, level: str) -> list[PinchPointInfo]:
        return [i for i in self.high_impact if i.risk_level == level]


def strongly_connected_components(
    node_ids: list[str],
    forward: dict[str, list[str]],
) -> list[list[str]]:
    """Iterative Tarjan. Each component is sorted; components come out sinks-first."""
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    sccs: list[list[str]] = []
    counter = 0

    for start in node_ids:
        if start in index:
            continue
        index[start] = lowlink[start] = counter
        counter += 1
        stack.append(start)
        on_stack.add(start)
        work = [(start, iter(forward.get(start, [])))]

        while work:
            v, successors = work[-1]
            descended = False
            for w in successors:
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    stack.append(w)
                    on_stack.add(w)
                    work.append((w, iter(forward.get(w, []))))
                    descended = True
                    break
                if w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[v])

            if lowlink[v] == index[v]:
                component: list[str] = []
                while True:
                    w = stack.pop()
                    on_stack.discard(w)
                    component.append(w)
                    if w == v:
                        break
                sccs.append(sorted(component))

    return sccs


def condense(graph: Graph) -> ComponentView:
    """Collapse every strongly connected component of ``graph`` into one vertex."""
    forward, _ = graph.adjacency()
    node_ids = sorted(graph.nodes)
    components = strongly_connected_components(node_ids, forward)

    view = ComponentView(components=components)
    for idx, members in enumerate(components):
        for node_id in members:
            view.component_of[node_id] = idx
    view.successors = [set() for _ in components]
    view.predecessors = [set() for _ in components]

    for edge in graph.edges:
        a = view.component_of.get(edge.source)
        b = view.component_of.get(edge.target)
        if a is None or b is None or a == b:
            continue
        view.successors[a].add(b)
        view.predecessors[b].add(a)
    return view


def component_depths(view: ComponentView) -> list[int]:
    depths = [0] * len(view.components)
    # successors always precede their predecessors in Tarjan order
    for idx in range(len(view.components)):
        succ = view.successors[idx]
        depths[idx] = 1 + max(depths[s] for s in succ) if succ else 0
    return depths


def downward_closures(view: ComponentView) -> list[set[int]]:
    closures: list[set[int]] = [set() for _ in view.components]
    for idx in range(len(view.components)):
        for s in view.successors[idx]:
            closures[idx].add(s)
            closures[idx] |= closures[s]
    return closures


def upward_closures(view: ComponentView) -> list[set[int]]:
    closures: list[set[int]] = [set() for _ in view.components]
    for idx in reversed(range(len(view.components))):
        for p in view.predecessors[idx]:
            closures[idx].add(p)
            closures[idx] |= closures[p]
    return closures


def analysis_subgraph(graph: Graph, internal_only: bool = False) -> Graph:
    """Non-transient nodes (minus external packages in internal-only mode)."""
    kept = Graph()
    for node_id, node in graph.nodes.items():
        if node.is_transient:
            continue
        if internal_only and node.node_type is NodeType.EXTERNAL_PACKAGE:
            continue
        kept.nodes[node_id] = node
    for edge in graph.edges:
        if edge.source in kept.nodes and edge.target in kept.nodes:
            kept.edges.append(edge)
    return kept


def shared_dependencies(graph: Graph) -> list[tuple[str, int]]:
    """Nodes with more than one distinct direct dependent, most shared first."""
    _, reverse = graph.adjacency()
    shared = [
        (node_id, len(set(dependents)))
        for node_id, dependents in reverse.items()
        if len(set(dependents)) > 1
    ]
    return sorted(shared, key=lambda item: (-item[1], item[0]))


def analyze_pinch_points(graph: Graph, internal_only: bool = False) -> PinchPointAnalysis:
    """Score every analyzed node by impact (blast radius) and vulnerability (exposure)."""
    filtered = analysis_subgraph(graph, internal_only=internal_only)
    if not filtered.nodes:
        return PinchPointAnalysis()

    view = condense(filtered)
    depths = component_depths(view)
    down = downward_closures(view)
    up = upward_closures(view)

    infos: list[PinchPointInfo] = []
    for idx, members in enumerate(view.components):
        direct_dependents = sum(view.size(p) for p in view.predecessors[idx])
        transitive_dependents = sum(view.size(c) for c in up[idx])
        direct_dependencies = sum(view.size(s) for s in view.successors[idx])
        transitive_dependencies = sum(view.size(c) for c in down[idx])
        impact = transitive_dependents * (1 + depths[idx] * DEPTH_WEIGHT)

        for node_id in members:
            node = filtered.nodes[node_id]
            infos.append(PinchPointInfo(
                node_id=node_id,
                label=node.label,
                node_type=node.node_type.value,
                direct_dependents=direct_dependents,
                transitive_dependents=transitive_dependents,
                direct_dependencies=direct_dependencies,
                transitive_dependencies=transitive_dependencies,
                depth=depths[idx],
                cycle_size=len(members),
                impact_score=round(impact, 2),
                vulnerability_score=transitive_dependencies,
            ))

    cycles = sorted(
        sorted(filtered.nodes[n].label for n in members)
        for members in view.components
        if len(members) > 1
    )

    result = PinchPointAnalysis(
        infos=infos,
        cycles=cycles,
        component_count=len(view.components),
        max_depth=max(depths) if depths else 0,
        project_count=sum(
            1 for n in filtered.nodes.values()
            if n.node_type in (NodeType.PROJECT, NodeType.TARGET)
        ),
        dependency_count=sum(
            1 for n in filtered.nodes.values()
            if n.node_type in (NodeType.INTERNAL_PACKAGE, NodeType.EXTERNAL_PACKAGE)
        ),
        edge_count=len(filtered.edges),
        shared=shared_dependencies(filtered),
    )
    result.infos = result.high_impact
    return result
