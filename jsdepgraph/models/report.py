"""Pydantic models describing the outcome of a repository scan."""

from __future__ import annotations

from pydantic import BaseModel, Field

from jsdepgraph.models.graph import RelationGraph


class ScanFailure(BaseModel):
    """A file whose scan was aborted.

    Attributes:
        path: Repo-relative path of the file.
        error: Exception class name.
        message: Human-readable error message.
        partial: ``True`` when the walk had started, so some of the
            file's relations may already be in the graph.
    """

    path: str = Field(..., description="Repo-relative file path.")
    error: str = Field(..., description="Exception class name.")
    message: str = Field(..., description="Error message.")
    partial: bool = Field(False, description="Relations may have been partially emitted.")


class ScanReport(BaseModel):
    """Summary and result graph of a scan run.

    Attributes:
        root: Absolute path of the scanned repository.
        files_scanned: Files walked to completion.
        files_failed: Files whose scan was aborted.
        failures: Details of every aborted file.
        graph: The relation graph accumulated over the run.
    """

    root: str = Field(..., description="Scanned repository root.")
    files_scanned: int = Field(0, description="Files walked to completion.")
    files_failed: int = Field(0, description="Files whose scan was aborted.")
    failures: list[ScanFailure] = Field(default_factory=list, description="Aborted files.")
    graph: RelationGraph = Field(default_factory=RelationGraph, description="Relation graph.")
