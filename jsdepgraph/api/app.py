"""FastAPI application factory and lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from jsdepgraph import __version__
from jsdepgraph.api.graph_routes import graph_router
from jsdepgraph.api.routes import router
from jsdepgraph.config import settings
from jsdepgraph.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler; configures logging on startup."""
    setup_logging(settings.log_level)
    yield


def create_app() -> FastAPI:
    """Build and return the configured FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description=(
            "Scans a local JavaScript repository and returns the declares / "
            "invokes / extends / requires relations between its modules and "
            "functions, optionally exporting them to Neo4j."
        ),
        lifespan=lifespan,
    )
    app.include_router(router, tags=["Scan"])
    app.include_router(graph_router, tags=["Relation Graph"])
    return app


app = create_app()
