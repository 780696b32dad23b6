"""Backing graph store for vertices and labelled edges.

The scanner only ever talks to the narrow :class:`GraphStore` contract:
create a vertex, add a labelled edge, set a property.  It never reads
back from the store; name lookups go through
:class:`jsdepgraph.graph.registry.VertexRegistry`.

:class:`MemoryGraphStore` is the in-process implementation used for a
scan run.  Its content can be exported as a
:class:`~jsdepgraph.models.graph.RelationGraph` and pushed to Neo4j.
"""

from __future__ import annotations

import abc
import itertools
import threading
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union

from jsdepgraph.models.graph import (
    EdgeRecord,
    Relation,
    RelationGraph,
    VertexKind,
    VertexRecord,
)


@dataclass(eq=False)
class Vertex:
    """Handle to a stored vertex.  Compared by identity."""

    id: int
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.properties.get("name", "")


@dataclass(eq=False)
class Edge:
    """Handle to a stored directed edge."""

    id: int
    source: Vertex
    target: Vertex
    label: str
    properties: dict[str, Any] = field(default_factory=dict)


Element = Union[Vertex, Edge]


class GraphStore(abc.ABC):
    """Contract every backing store must fulfil."""

    @abc.abstractmethod
    def create_vertex(self, name: str) -> Vertex:
        """Create and return a new vertex named *name*.  Never deduplicates."""

    @abc.abstractmethod
    def add_edge(self, source: Vertex, target: Vertex, label: str) -> Edge:
        """Add a directed edge from *source* to *target* labelled *label*."""

    @abc.abstractmethod
    def set_property(self, element: Element, key: str, value: Any) -> None:
        """Set a property on a vertex or an edge."""


class MemoryGraphStore(GraphStore):
    """Thread-safe in-memory multigraph.

    Usage::

        store = MemoryGraphStore()
        a = store.create_vertex("a")
        b = store.create_vertex("b")
        store.add_edge(a, b, "invokes")
        store.to_model()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._vertices: list[Vertex] = []
        self._edges: list[Edge] = []

    # ------------------------------------------------------------------
    # GraphStore contract
    # ------------------------------------------------------------------

    def create_vertex(self, name: str) -> Vertex:
        with self._lock:
            vertex = Vertex(id=next(self._ids), properties={"name": name})
            self._vertices.append(vertex)
        return vertex

    def add_edge(self, source: Vertex, target: Vertex, label: str) -> Edge:
        with self._lock:
            edge = Edge(id=next(self._ids), source=source, target=target, label=label)
            self._edges.append(edge)
        return edge

    def set_property(self, element: Element, key: str, value: Any) -> None:
        with self._lock:
            element.properties[key] = value

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def vertices(self) -> list[Vertex]:
        """Return all vertices in creation order."""
        with self._lock:
            return list(self._vertices)

    def edges(self, relation: Optional[Relation | str] = None) -> list[Edge]:
        """Return all edges, optionally only those labelled *relation*."""
        label = _label(relation)
        with self._lock:
            return [e for e in self._edges if label is None or e.label == label]

    def out_edges(self, vertex: Vertex, relation: Optional[Relation | str] = None) -> list[Edge]:
        """Return edges leaving *vertex*, optionally filtered by label."""
        return [e for e in self.edges(relation) if e.source is vertex]

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self.vertices())

    def to_model(self) -> RelationGraph:
        """Export the store as a :class:`RelationGraph`."""
        vertices = [
            VertexRecord(
                name=v.name,
                kinds=[VertexKind(k) for k in v.properties.get("kinds", [])],
            )
            for v in self.vertices()
        ]
        edges = [
            EdgeRecord(
                source=e.source.name,
                target=e.target.name,
                relation=Relation(e.properties.get("relation", e.label)),
            )
            for e in self.edges()
        ]
        return RelationGraph(vertices=vertices, edges=edges)


def _label(relation: Optional[Relation | str]) -> Optional[str]:
    if isinstance(relation, Relation):
        return relation.value
    return relation
