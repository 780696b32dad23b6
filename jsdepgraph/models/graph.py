"""Graph data models for vertices, edges, and the complete relation graph.

These Pydantic v2 models define the JSON schema returned by the scan
pipeline and consumed by the Neo4j exporter.
"""

from __future__ import annotations

import enum
import json
from typing import Iterator, Optional

from pydantic import BaseModel, Field


class VertexKind(str, enum.Enum):
    """Role a vertex was requested under.

    Modules and symbols share one namespace, so a single vertex may carry
    both kinds.
    """

    MODULE = "module"
    SYMBOL = "symbol"


class Relation(str, enum.Enum):
    """Enumeration of supported edge labels."""

    DECLARES = "declares"
    INVOKES = "invokes"
    EXTENDS = "extends"
    REQUIRES = "requires"


class VertexRecord(BaseModel):
    """A single vertex of the relation graph.

    Attributes:
        name: Canonical name (module basename or identifier text).
        kinds: Every role the name has been referenced as.
    """

    name: str = Field(..., description="Canonical vertex name.")
    kinds: list[VertexKind] = Field(default_factory=list, description="Roles of this vertex.")


class EdgeRecord(BaseModel):
    """A directed, labelled edge between two vertices.

    Attributes:
        source: Name of the originating vertex (always a module).
        target: Name of the destination vertex.
        relation: The relation label.
    """

    source: str = Field(..., description="Originating vertex name.")
    target: str = Field(..., description="Destination vertex name.")
    relation: Relation = Field(..., description="Relation label.")


class RelationGraph(BaseModel):
    """Complete relation graph produced by a scan run.

    Edges are not deduplicated: a relation that occurs twice in the
    source appears twice here.

    Attributes:
        vertices: All vertices, in creation order.
        edges: All edges, in emission order.
    """

    vertices: list[VertexRecord] = Field(default_factory=list, description="Named entities.")
    edges: list[EdgeRecord] = Field(default_factory=list, description="Relations between entities.")

    def relations_of(self, name: str, relation: Optional[Relation] = None) -> list[EdgeRecord]:
        """Return outgoing edges of *name*, optionally filtered by label."""
        return [
            e
            for e in self.edges
            if e.source == name and (relation is None or e.relation == relation)
        ]

    def targets_of(self, name: str, relation: Relation) -> list[str]:
        """Return target names of *name*'s outgoing *relation* edges."""
        return [e.target for e in self.relations_of(name, relation)]

    def ndjson_lines(self) -> Iterator[str]:
        """Yield the graph as newline-delimited JSON.

        Each line carries a ``_type`` discriminator (``"vertex"`` or
        ``"edge"``); vertices come first.
        """
        for vertex in self.vertices:
            yield json.dumps({"_type": "vertex", **vertex.model_dump(mode="json")}, ensure_ascii=False) + "\n"
        for edge in self.edges:
            yield json.dumps({"_type": "edge", **edge.model_dump(mode="json")}, ensure_ascii=False) + "\n"
