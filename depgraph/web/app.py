"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from depgraph import __version__
from depgraph.web.api import router


def create_app() -> FastAPI:
    app = FastAPI(title="depgraph", version=__version__)
    app.include_router(router)
    return app
