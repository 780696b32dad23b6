"""Pydantic graph records and scan reports."""

from jsdepgraph.models.graph import (
    EdgeRecord,
    Relation,
    RelationGraph,
    VertexKind,
    VertexRecord,
)
from jsdepgraph.models.report import ScanFailure, ScanReport

__all__ = [
    "VertexKind",
    "Relation",
    "VertexRecord",
    "EdgeRecord",
    "RelationGraph",
    "ScanFailure",
    "ScanReport",
]
