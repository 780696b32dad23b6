"""FastAPI route definitions for the Neo4j-backed relation graph.

- ``POST /graph/export``: scan a repository and push its graph to Neo4j.
- ``GET /graph/relations/{name}``: outgoing relations of a vertex.
- ``DELETE /graph/clear``: wipe all graph data (dangerous).

All Neo4j calls use the **synchronous** driver and are dispatched to a
thread via ``asyncio.to_thread`` so the FastAPI event loop stays free.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from jsdepgraph.api.routes import run_scan
from jsdepgraph.config import settings
from jsdepgraph.graph.database import GraphService
from jsdepgraph.graph.exporter import export_to_neo4j
from jsdepgraph.models.graph import Relation

graph_router = APIRouter(prefix="/graph")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _get_graph_service() -> GraphService:
    """Build a GraphService from application settings.

    Raises:
        HTTPException: 503 if Neo4j credentials are not configured.
    """
    if not settings.neo4j_uri or not settings.neo4j_password:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=(
                "Neo4j credentials not configured. "
                "Set JSDEPGRAPH_NEO4J_URI and JSDEPGRAPH_NEO4J_PASSWORD "
                "in your .env file."
            ),
        )
    return GraphService(
        uri=settings.neo4j_uri,
        user=settings.neo4j_user,
        password=settings.neo4j_password,
        database=settings.neo4j_database,
    )


# ------------------------------------------------------------------
# Request / Response schemas
# ------------------------------------------------------------------


class GraphExportRequest(BaseModel):
    """Payload for ``POST /graph/export``."""

    path: str = Field(..., description="Absolute local path to the repository.")
    blacklist: list[str] | None = Field(None, description="Optional glob patterns to exclude.")
    clear_existing: bool = Field(False, description="Wipe existing data first.")


class GraphExportResponse(BaseModel):
    status: str = Field("success")
    files_scanned: int = Field(..., description="Files walked to completion.")
    files_failed: int = Field(..., description="Files whose scan was aborted.")
    vertices_merged: int = Field(..., description="Vertices created/updated in Neo4j.")
    edges_created: int = Field(..., description="Edges created in Neo4j.")


class RelationRow(BaseModel):
    relation: Relation
    target: str


class RelationsResponse(BaseModel):
    name: str
    relations: list[RelationRow] = Field(default_factory=list)


class ClearResponse(BaseModel):
    status: str = Field("success")
    message: str


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------


@graph_router.post(
    "/export",
    response_model=GraphExportResponse,
    status_code=status.HTTP_200_OK,
    summary="Scan a repository into Neo4j",
    description=(
        "Scan the repository, then push its vertices and edges into Neo4j "
        "using batched UNWIND writes."
    ),
)
async def graph_export(request: GraphExportRequest) -> GraphExportResponse:
    """Scan a repo and push its relation graph into Neo4j."""
    svc = _get_graph_service()
    report = await run_scan(request.path, request.blacklist)

    def _do_export() -> dict[str, int]:
        with svc:
            return export_to_neo4j(
                report.graph,
                svc,
                clear_existing=request.clear_existing,
                batch_size=settings.neo4j_batch_size,
            )

    try:
        summary = await asyncio.to_thread(_do_export)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Neo4j export failed: {exc}",
        )

    return GraphExportResponse(
        files_scanned=report.files_scanned,
        files_failed=report.files_failed,
        vertices_merged=summary["vertices_merged"],
        edges_created=summary["edges_created"],
    )


@graph_router.get(
    "/relations/{name}",
    response_model=RelationsResponse,
    status_code=status.HTTP_200_OK,
    summary="Outgoing relations of a vertex",
)
async def graph_relations(
    name: str,
    relation: Optional[Relation] = Query(None, description="Only this relation."),
) -> RelationsResponse:
    """Answer "what does *name* declare, invoke, extend or require?"."""
    svc = _get_graph_service()

    def _do_query() -> list[dict]:
        with svc:
            return svc.outgoing_relations(name, relation)

    try:
        rows = await asyncio.to_thread(_do_query)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Query failed: {exc}",
        )

    return RelationsResponse(name=name, relations=[RelationRow(**row) for row in rows])


@graph_router.delete(
    "/clear",
    response_model=ClearResponse,
    status_code=status.HTTP_200_OK,
    summary="Clear all graph data",
    description="Delete all nodes and relationships from Neo4j. Use with caution.",
)
async def graph_clear() -> ClearResponse:
    """Wipe all data from the Neo4j database."""
    svc = _get_graph_service()

    def _do_clear() -> None:
        with svc:
            svc.clear_all()

    try:
        await asyncio.to_thread(_do_clear)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Clear failed: {exc}",
        )

    return ClearResponse(message="All graph data deleted.")
