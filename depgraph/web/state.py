"""In-memory state for the web API, no database required."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from depgraph.models import GraphConfig, PipelineResult


@dataclass
class GraphSession:
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    config: GraphConfig = field(default_factory=GraphConfig)
    result: PipelineResult = field(default_factory=PipelineResult)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


class AppState:
    """Singleton in-memory state shared by all API routes."""

    def __init__(self):
        self.graphs: dict[str, GraphSession] = {}

    def add_graph(self, session: GraphSession) -> None:
        self.graphs[session.id] = session

    def get_graph(self, graph_id: str) -> GraphSession | None:
        return self.graphs.get(graph_id)

    def delete_graph(self, graph_id: str) -> bool:
        return self.graphs.pop(graph_id, None) is not None

    def clear(self) -> None:
        self.graphs.clear()


state = AppState()
