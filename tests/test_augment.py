"""Tests for the show-dependencies edge augmenter."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from depgraph.analysis.augment import (
    DependencyResolver,
    EdgeAugmenter,
    ResolutionCache,
    candidate_packages,
    order_entry_points,
    parse_show_dependencies,
)
from depgraph.analysis.graph_builder import GraphBuilder
from depgraph.analysis.transience import filter_transient
from depgraph.models import MergedRecord, NodeType

CORE_ROOT = Path("/src/Packages/Core")
UTILS_ROOT = Path("/src/Packages/Utils")


def _tree(identity, name, children=()):
    return {
        "identity": identity,
        "name": name,
        "url": f"https://example.com/{name}.git",
        "version": "1.0.0",
        "dependencies": list(children),
    }


CORE_TREE = _tree("core", "Core", [
    _tree("utils", "Utils", [_tree("logging", "Logging")]),
])


def _completed(stdout="", returncode=0, stderr=""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


def _records(*local_names):
    records = [MergedRecord(
        name="App", root=Path("/src/App"),
        explicit=frozenset(n.lower() for n in local_names),
    )]
    for name in local_names:
        records.append(MergedRecord(
            name=name, root=Path(f"/src/Packages/{name}"),
            explicit=frozenset({"utils"}) if name == "Core" else frozenset(),
            is_local_package=True,
        ))
    return records


def _augment(records, hide_transient=False, resolver=None):
    builder = GraphBuilder()
    graph = builder.build(records)
    resolver = resolver or DependencyResolver()
    added = EdgeAugmenter(builder, resolver, hide_transient=hide_transient).augment(graph, records)
    return graph, added, resolver


def _edges(graph):
    return {(e.source, e.target) for e in graph.edges}


# ── Output parsing ────────────────────────────────────────────

class TestParseShowDependencies:
    def test_nested_tree(self):
        tree = parse_show_dependencies(json.dumps(CORE_TREE))
        assert tree.identity == "core"
        assert [c.label for c in tree.children] == ["Utils"]
        assert tree.children[0].children[0].identity == "logging"

    def test_progress_lines_before_json(self):
        output = "Fetching https://example.com/Utils.git\nComputing version\n" + json.dumps(CORE_TREE)
        assert parse_show_dependencies(output).label == "Core"

    def test_identity_from_url(self):
        tree = parse_show_dependencies(json.dumps({
            "url": "https://github.com/apple/swift-log.git", "dependencies": [],
        }))
        assert tree.identity == "swift-log"

    def test_malformed(self):
        assert parse_show_dependencies("error: root manifest not found") is None
        assert parse_show_dependencies("{ nope") is None
        assert parse_show_dependencies(json.dumps({"dependencies": []})) is None

    def test_children_without_identity_skipped(self):
        tree = parse_show_dependencies(json.dumps(_tree("core", "Core", [{"version": "1"}])))
        assert tree.children == []


# ── Resolver ──────────────────────────────────────────────────

class TestDependencyResolver:
    @patch("depgraph.analysis.augment.subprocess.run")
    def test_invokes_in_package_root(self, mock_run):
        mock_run.return_value = _completed(json.dumps(CORE_TREE))
        tree = DependencyResolver(swift_executable="/usr/bin/swift", timeout=30).resolve(CORE_ROOT)
        assert tree.label == "Core"
        args, kwargs = mock_run.call_args
        assert args[0] == ["/usr/bin/swift", "package", "show-dependencies", "--format", "json"]
        assert kwargs["cwd"] == str(CORE_ROOT)
        assert kwargs["timeout"] == 30

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_cached_per_root(self, mock_run):
        mock_run.return_value = _completed(json.dumps(CORE_TREE))
        resolver = DependencyResolver()
        resolver.resolve(CORE_ROOT)
        resolver.resolve(Path("/src/Packages/../Packages/Core"))
        assert mock_run.call_count == 1
        assert resolver.invocations == 1
        assert len(resolver.cache) == 1

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_failure_cached_and_not_retried(self, mock_run):
        mock_run.return_value = _completed(returncode=1, stderr="error: no manifest")
        resolver = DependencyResolver()
        assert resolver.resolve(CORE_ROOT) is None
        assert resolver.resolve(CORE_ROOT) is None
        assert mock_run.call_count == 1

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="swift", timeout=1)
        assert DependencyResolver(timeout=1).resolve(CORE_ROOT) is None

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_missing_executable(self, mock_run):
        mock_run.side_effect = FileNotFoundError("swift")
        assert DependencyResolver().resolve(CORE_ROOT) is None

    def test_cache_clear(self):
        cache = ResolutionCache()
        cache.put(CORE_ROOT, None)
        assert CORE_ROOT in cache
        cache.clear()
        assert CORE_ROOT not in cache


# ── Augmenter ─────────────────────────────────────────────────

class TestEdgeAugmenter:
    @patch("depgraph.analysis.augment.subprocess.run")
    def test_transients_shown(self, mock_run):
        mock_run.return_value = _completed(json.dumps(CORE_TREE))
        graph, added, _ = _augment(_records("Core"))
        assert added == 2
        assert {("Core", "Utils"), ("Utils", "Logging")} <= _edges(graph)
        assert graph.nodes["Logging"].is_transient
        assert graph.nodes["Logging"].node_type is NodeType.EXTERNAL_PACKAGE
        assert not graph.nodes["Utils"].is_transient

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_transients_hidden(self, mock_run):
        mock_run.return_value = _completed(json.dumps(CORE_TREE))
        graph, added, _ = _augment(_records("Core"), hide_transient=True)
        assert added == 1
        assert ("Core", "Utils") in _edges(graph)
        assert "Logging" not in graph.nodes

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_hidden_keeps_declared_depth_one_edges(self, mock_run):
        tree = _tree("core", "Core", [
            _tree("remotekit", "RemoteKit", [
                _tree("alamofire", "alamofire", [_tree("deepkit", "DeepKit")]),
                _tree("logging", "Logging"),
            ]),
        ])
        mock_run.return_value = _completed(json.dumps(tree))
        records = [
            MergedRecord(name="App", root=Path("/src/App"), dependencies=("alamofire",),
                         explicit=frozenset({"core", "alamofire"})),
            MergedRecord(name="Core", root=CORE_ROOT, is_local_package=True),
        ]

        shown, _, _ = _augment(records)
        hidden, added, _ = _augment(records, hide_transient=True)

        assert _edges(filter_transient(shown)) == _edges(filter_transient(hidden))
        assert ("RemoteKit", "alamofire") in _edges(hidden)
        assert added == 2
        assert "Logging" not in hidden.nodes
        assert "DeepKit" not in hidden.nodes

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_local_package_stays_internal(self, mock_run):
        def run(cmd, cwd, **kwargs):
            if cwd == str(CORE_ROOT):
                return _completed(json.dumps(CORE_TREE))
            return _completed(json.dumps(_tree("utils", "Utils")))
        mock_run.side_effect = run

        graph, _, _ = _augment(_records("Core", "Utils"))
        assert graph.nodes["Utils"].node_type is NodeType.INTERNAL_PACKAGE
        assert not graph.nodes["Utils"].is_transient

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_covered_roots_not_queried(self, mock_run):
        mock_run.return_value = _completed(json.dumps(CORE_TREE))
        _, _, resolver = _augment(_records("Core", "Utils"))
        assert mock_run.call_count == 1
        assert mock_run.call_args.kwargs["cwd"] == str(CORE_ROOT)
        assert resolver.invocations == 1

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_failure_adds_nothing(self, mock_run):
        mock_run.return_value = _completed(returncode=1, stderr="error")
        graph, added, _ = _augment(_records("Core"))
        assert added == 0
        assert set(graph.nodes) == {"App", "Core"}

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_malformed_output_adds_nothing(self, mock_run):
        mock_run.return_value = _completed("warning: something odd happened")
        _, added, _ = _augment(_records("Core"))
        assert added == 0

    @patch("depgraph.analysis.augment.subprocess.run")
    def test_existing_edges_not_duplicated(self, mock_run):
        mock_run.return_value = _completed(json.dumps(_tree("core", "Core", [_tree("swift-log", "swift-log")])))
        records = [
            MergedRecord(name="App", root=Path("/src/App"), explicit=frozenset({"core"})),
            MergedRecord(name="Core", root=CORE_ROOT, dependencies=("swift-log",),
                         explicit=frozenset({"swift-log"}), is_local_package=True),
        ]
        graph, added, _ = _augment(records)
        assert added == 0
        assert sum(1 for e in graph.edges if (e.source, e.target) == ("Core", "swift-log")) == 1

    def test_no_local_packages(self):
        records = [MergedRecord(name="App", root=Path("/src/App"))]
        with patch("depgraph.analysis.augment.subprocess.run") as mock_run:
            _, added, _ = _augment(records)
        assert added == 0
        mock_run.assert_not_called()


class TestCandidates:
    def test_referenced_packages_only(self):
        records = _records("Core") + [MergedRecord(
            name="Sandbox", root=Path("/src/Packages/Sandbox"), is_local_package=True,
        )]
        assert [r.name for r in candidate_packages(records)] == ["Core"]

    def test_all_local_when_none_referenced(self):
        records = [
            MergedRecord(name="App", root=Path("/src/App")),
            MergedRecord(name="Core", root=CORE_ROOT, is_local_package=True),
            MergedRecord(name="Utils", root=UTILS_ROOT, is_local_package=True),
        ]
        assert [r.name for r in candidate_packages(records)] == ["Core", "Utils"]

    def test_entry_points_first(self):
        records = _records("Utils", "Core")[1:]
        assert [r.name for r in order_entry_points(records)] == ["Core", "Utils"]
