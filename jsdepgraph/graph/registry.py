"""Name-keyed vertex registry shared by every walker in a scan run.

Modules and symbols live in one namespace: a function named like some
module's basename resolves to that module's vertex.  Each vertex records
the roles it was requested under in its ``kinds`` property so consumers
can tell the two apart without changing how names merge.
"""

from __future__ import annotations

import threading
from typing import Optional

import structlog

from jsdepgraph.graph.store import GraphStore, MemoryGraphStore, Vertex
from jsdepgraph.models.graph import VertexKind

logger = structlog.get_logger(__name__)


class VertexRegistry:
    """Find-or-create map from canonical name to vertex.

    The lookup and insert happen under one lock, so walkers running on
    different threads never create two vertices for the same name.

    Args:
        store: Backing graph store.  Defaults to a fresh
            :class:`MemoryGraphStore`.
    """

    def __init__(self, store: Optional[GraphStore] = None) -> None:
        self.store: GraphStore = store if store is not None else MemoryGraphStore()
        self._vertices: dict[str, Vertex] = {}
        self._kinds: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def find_or_create(self, name: str, kind: VertexKind = VertexKind.SYMBOL) -> Vertex:
        """Return the vertex for *name*, creating it on first use.

        Args:
            name: Canonical vertex name.
            kind: Role the caller refers to the name as.

        Returns:
            The single vertex registered under *name*.
        """
        with self._lock:
            vertex = self._vertices.get(name)
            if vertex is None:
                vertex = self.store.create_vertex(name)
                self.store.set_property(vertex, "name", name)
                self.store.set_property(vertex, "kinds", [kind.value])
                self._vertices[name] = vertex
                self._kinds[name] = [kind.value]
                logger.debug("vertex_created", name=name, kind=kind.value)
            elif kind.value not in self._kinds[name]:
                self._kinds[name] = sorted([*self._kinds[name], kind.value])
                self.store.set_property(vertex, "kinds", list(self._kinds[name]))
        return vertex

    def get(self, name: str) -> Optional[Vertex]:
        """Return the vertex for *name* without creating it."""
        with self._lock:
            return self._vertices.get(name)

    def kinds_of(self, name: str) -> list[VertexKind]:
        with self._lock:
            return [VertexKind(k) for k in self._kinds.get(name, [])]

    def names(self) -> list[str]:
        with self._lock:
            return list(self._vertices)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._vertices

    def __len__(self) -> int:
        with self._lock:
            return len(self._vertices)
