"""Graph storage: vertex registry, in-memory store and Neo4j export."""

from jsdepgraph.graph.registry import VertexRegistry
from jsdepgraph.graph.store import Edge, GraphStore, MemoryGraphStore, Vertex

__all__ = ["Edge", "GraphStore", "MemoryGraphStore", "Vertex", "VertexRegistry"]
