"""FastAPI routes for building, navigating and analyzing dependency graphs."""

from __future__ import annotations

import asyncio
from pathlib import Path

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from depgraph.models import GraphConfig
from depgraph.pipeline import run_pipeline
from depgraph.analysis.navigation import (
    DIRECTION_DEPENDENCIES,
    DIRECTION_DEPENDENTS,
    dependency_subgraph,
    dependent_subgraph,
    find_node,
)
from depgraph.analysis.pinch_points import analyze_pinch_points
from depgraph.exporter import analysis_to_dict, graph_to_dict
from depgraph.web.state import GraphSession, state

router = APIRouter(prefix="/api")


# --- Request / Response models ---

class GraphRequest(BaseModel):
    path: str
    show_targets: bool = False
    hide_transient: bool = False
    stable_ids: bool = False
    resolve: bool = False

class NavigateRequest(BaseModel):
    graph_id: str
    node: str
    direction: str = DIRECTION_DEPENDENCIES

class AnalysisRequest(BaseModel):
    graph_id: str
    internal_only: bool = False
    limit: int = 10


def _validate_path(p: str) -> Path:
    resolved = Path(p).expanduser().resolve()
    if not resolved.is_dir():
        raise HTTPException(404, f"Directory not found: {resolved}")
    return resolved


def _get_session(graph_id: str) -> GraphSession:
    session = state.get_graph(graph_id)
    if session is None:
        raise HTTPException(404, "Unknown graph id")
    return session


# --- Endpoints ---

@router.get("/health")
async def health():
    return {"status": "ok", "graphs": len(state.graphs)}


@router.post("/graph")
async def build_graph(req: GraphRequest):
    config = GraphConfig(
        source_dir=_validate_path(req.path),
        show_targets=req.show_targets,
        hide_transient=req.hide_transient,
        stable_ids=req.stable_ids,
        resolve_local=req.resolve,
    )
    result = await asyncio.to_thread(run_pipeline, config)
    session = GraphSession(config=config, result=result)
    state.add_graph(session)
    return {
        "graph_id": session.id,
        "found": result.found,
        "records": len(result.records),
        "nodeCount": len(result.graph.nodes),
        "edgeCount": len(result.graph.edges),
    }


@router.get("/graph/{graph_id}")
async def get_graph(graph_id: str):
    session = _get_session(graph_id)
    return graph_to_dict(session.result.graph, session.result.schema_version)


@router.delete("/graph/{graph_id}")
async def delete_graph(graph_id: str):
    if not state.delete_graph(graph_id):
        raise HTTPException(404, "Unknown graph id")
    return {"deleted": graph_id}


@router.post("/graph/navigate")
async def navigate(req: NavigateRequest):
    if req.direction not in (DIRECTION_DEPENDENCIES, DIRECTION_DEPENDENTS):
        raise HTTPException(400, f"Unknown direction: {req.direction}")
    session = _get_session(req.graph_id)
    graph = session.result.graph

    node_id = find_node(graph, req.node)
    if node_id is None:
        raise HTTPException(404, f"No node matches {req.node!r}")

    if req.direction == DIRECTION_DEPENDENTS:
        sub = dependent_subgraph(graph, node_id)
    else:
        sub = dependency_subgraph(graph, node_id)
    document = graph_to_dict(sub, session.result.schema_version)
    document["focus"] = {"node": node_id, "direction": req.direction}
    return document


@router.post("/analysis/pinch-points")
async def pinch_points(req: AnalysisRequest):
    session = _get_session(req.graph_id)
    analysis = await asyncio.to_thread(
        analyze_pinch_points, session.result.graph, req.internal_only,
    )
    return analysis_to_dict(analysis, limit=max(req.limit, 1))
