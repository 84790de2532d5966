"""Tests for the web API."""

import pytest
from pathlib import Path

# Only run if fastapi/httpx are installed
try:
    from fastapi.testclient import TestClient
    from depgraph.web import create_app
    from depgraph.web.state import state
    HAS_WEB = True
except ImportError:
    HAS_WEB = False

pytestmark = pytest.mark.skipif(not HAS_WEB, reason="web dependencies not installed")

FIXTURES = Path(__file__).parent / "fixtures"
WORKSPACE = FIXTURES / "workspace"


@pytest.fixture
def client():
    state.clear()
    yield TestClient(create_app())
    state.clear()


def _build(client, **options):
    res = client.post("/api/graph", json={"path": str(WORKSPACE), **options})
    assert res.status_code == 200
    return res.json()


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "graphs": 0}


def test_build_graph(client):
    data = _build(client)
    assert data["found"] is True
    assert data["records"] == 3
    assert data["nodeCount"] == 6
    assert data["edgeCount"] == 5
    assert "graph_id" in data


def test_build_graph_options(client):
    data = _build(client, hide_transient=True)
    assert data["nodeCount"] == 5


def test_build_graph_nothing_found(client, tmp_path):
    res = client.post("/api/graph", json={"path": str(tmp_path)})
    assert res.status_code == 200
    assert res.json()["found"] is False


def test_build_graph_missing_path(client):
    res = client.post("/api/graph", json={"path": "/nonexistent/path"})
    assert res.status_code == 404


def test_get_graph(client):
    graph_id = _build(client, stable_ids=True)["graph_id"]
    res = client.get(f"/api/graph/{graph_id}")
    assert res.status_code == 200
    doc = res.json()
    assert doc["metadata"]["schemaVersion"] == 2
    assert "localPackage:core" in {n["id"] for n in doc["nodes"]}


def test_get_graph_not_found(client):
    res = client.get("/api/graph/doesnotexist")
    assert res.status_code == 404


def test_delete_graph(client):
    graph_id = _build(client)["graph_id"]
    assert client.delete(f"/api/graph/{graph_id}").status_code == 200
    assert client.get(f"/api/graph/{graph_id}").status_code == 404
    assert client.delete(f"/api/graph/{graph_id}").status_code == 404


def test_navigate(client):
    graph_id = _build(client)["graph_id"]
    res = client.post("/api/graph/navigate", json={"graph_id": graph_id, "node": "Utils",
                                                   "direction": "dependents"})
    assert res.status_code == 200
    doc = res.json()
    assert {n["id"] for n in doc["nodes"]} == {"Utils", "Core"}
    assert doc["focus"] == {"node": "Utils", "direction": "dependents"}


def test_navigate_errors(client):
    graph_id = _build(client)["graph_id"]
    res = client.post("/api/graph/navigate", json={"graph_id": graph_id, "node": "Utils",
                                                   "direction": "sideways"})
    assert res.status_code == 400
    res = client.post("/api/graph/navigate", json={"graph_id": graph_id, "node": "Nope"})
    assert res.status_code == 404
    res = client.post("/api/graph/navigate", json={"graph_id": "missing", "node": "Utils"})
    assert res.status_code == 404


def test_pinch_points(client):
    graph_id = _build(client)["graph_id"]
    res = client.post("/api/analysis/pinch-points", json={"graph_id": graph_id, "limit": 2})
    assert res.status_code == 200
    data = res.json()
    assert data["summary"]["analyzed_nodes"] == 5
    assert len(data["high_impact"]) == 2


def test_pinch_points_internal_only(client):
    graph_id = _build(client)["graph_id"]
    res = client.post("/api/analysis/pinch-points", json={"graph_id": graph_id, "internal_only": True})
    assert res.status_code == 200
    assert res.json()["summary"]["analyzed_nodes"] == 3


def test_pinch_points_unknown_graph(client):
    res = client.post("/api/analysis/pinch-points", json={"graph_id": "missing"})
    assert res.status_code == 404
