"""FastAPI route definitions for repository scans.

- ``POST /scan`` scans a repository and returns (or streams) its
  relation graph.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from jsdepgraph.core.ingestion import scan_repository
from jsdepgraph.models.graph import RelationGraph
from jsdepgraph.models.report import ScanFailure, ScanReport

router = APIRouter()


# ------------------------------------------------------------------
# Request / Response schemas
# ------------------------------------------------------------------


class ScanRequest(BaseModel):
    """Payload for the ``/scan`` endpoint.

    Attributes:
        path: Absolute local path to the repository to scan.
        blacklist: Optional list of glob patterns to exclude.
        stream: If ``True``, return an NDJSON streaming response.
    """

    path: str = Field(..., description="Absolute local path to the repository.")
    blacklist: list[str] | None = Field(None, description="Optional glob patterns to exclude.")
    stream: bool = Field(False, description="If true, return NDJSON streaming response.")


class ScanResponse(BaseModel):
    """Response from the ``/scan`` endpoint (non-streaming mode)."""

    status: str = Field("success", description="Status message.")
    files_scanned: int = Field(..., description="Files walked to completion.")
    files_failed: int = Field(..., description="Files whose scan was aborted.")
    failures: list[ScanFailure] = Field(default_factory=list, description="Aborted files.")
    total_vertices: int = Field(..., description="Number of vertices.")
    total_edges: int = Field(..., description="Number of edges.")
    graph: RelationGraph = Field(..., description="The relation graph.")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


async def run_scan(path: str, blacklist: list[str] | None) -> ScanReport:
    """Scan in a worker thread, mapping errors to HTTP status codes."""
    try:
        return await asyncio.to_thread(scan_repository, path, blacklist)
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Scan failed: {exc}",
        )


async def _stream_ndjson(graph: RelationGraph) -> AsyncIterator[str]:
    for line in graph.ndjson_lines():
        yield line


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------


@router.post(
    "/scan",
    status_code=status.HTTP_200_OK,
    summary="Scan a local repository",
    description=(
        "Recursively scan a local directory of JavaScript sources and return "
        "the relation graph. Set ``stream: true`` to receive NDJSON."
    ),
)
async def scan(request: ScanRequest):
    """Scan a repository and return its relation graph.

    Raises:
        HTTPException: 400 if the path is invalid, 500 on unexpected errors.
    """
    report = await run_scan(request.path, request.blacklist)
    graph = report.graph

    if request.stream:
        return StreamingResponse(
            _stream_ndjson(graph),
            media_type="application/x-ndjson",
            headers={
                "X-Total-Vertices": str(len(graph.vertices)),
                "X-Total-Edges": str(len(graph.edges)),
                "X-Files-Failed": str(report.files_failed),
            },
        )

    return ScanResponse(
        files_scanned=report.files_scanned,
        files_failed=report.files_failed,
        failures=report.failures,
        total_vertices=len(graph.vertices),
        total_edges=len(graph.edges),
        graph=graph,
    )
