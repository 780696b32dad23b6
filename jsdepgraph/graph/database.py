"""Neo4j connection manager with batch Cypher writes for relation graphs.

Uses the **synchronous** ``GraphDatabase.driver`` and ``execute_query``
API.  FastAPI endpoints call these methods via ``asyncio.to_thread`` so
the event loop is never blocked.

Vertices are merged by name (one node per canonical name, labelled
``Entity`` plus ``Module``/``Symbol`` per kind).  Edges are *created*,
not merged, so repeated relations stay repeated as in the in-memory
multigraph.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from neo4j import Driver, GraphDatabase

from jsdepgraph.models.graph import Relation

logger = structlog.get_logger(__name__)

# Default batch size for UNWIND operations.
DEFAULT_BATCH_SIZE: int = 200

ENTITY_LABEL: str = "Entity"


class GraphService:
    """Synchronous connection manager for Neo4j.

    Usage::

        with GraphService(uri, user, password) as svc:
            svc.batch_merge_vertices(vertex_records)
            svc.batch_create_edges(edge_records)

    Attributes:
        uri: Neo4j connection string.
        user: Database username (typically ``neo4j``).
        database: Target database name.
    """

    def __init__(
        self,
        uri: str,
        user: str,
        password: str,
        database: str = "neo4j",
    ) -> None:
        self.uri = uri
        self.user = user
        self._password = password
        self.database = database
        self._driver: Optional[Driver] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Establish the driver connection."""
        if self._driver is not None:
            return
        self._driver = GraphDatabase.driver(
            self.uri,
            auth=(self.user, self._password),
        )
        self._driver.verify_connectivity()
        logger.info("neo4j_connected", uri=self.uri, database=self.database)

    def close(self) -> None:
        """Gracefully close the driver connection."""
        if self._driver is not None:
            self._driver.close()
            self._driver = None
            logger.info("neo4j_disconnected")

    def __enter__(self) -> GraphService:
        self.connect()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _ensure_driver(self) -> Driver:
        if self._driver is None:
            raise RuntimeError("GraphService is not connected. Call connect() first.")
        return self._driver

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def create_uniqueness_constraints(self) -> None:
        """Ensure vertex names are unique, which also indexes them."""
        self.run_cypher(
            f"""
            CREATE CONSTRAINT entity_name_unique IF NOT EXISTS
            FOR (n:{ENTITY_LABEL})
            REQUIRE n.name IS UNIQUE
            """
        )
        logger.info("constraint_created", name="entity_name_unique")

    # ------------------------------------------------------------------
    # Batch writes
    # ------------------------------------------------------------------

    def batch_merge_vertices(
        self,
        records: list[dict[str, Any]],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> int:
        """Create or update vertices in batches.

        Each record must look like ``{"name": "...", "kinds": ["module"]}``.
        Records are grouped by their kind set so the secondary labels can
        be written without APOC.

        Args:
            records: List of vertex property dicts.
            batch_size: Number of records per UNWIND transaction.

        Returns:
            Total number of vertices merged.
        """
        driver = self._ensure_driver()
        total = 0
        by_kinds: dict[tuple[str, ...], list[dict[str, Any]]] = {}
        for rec in records:
            by_kinds.setdefault(tuple(sorted(rec.get("kinds", []))), []).append(rec)

        for kinds, group in by_kinds.items():
            cypher = _merge_vertices_cypher(kinds)
            for chunk in _chunked(group, batch_size):
                cnt = self._execute_write(driver, cypher, {"batch": chunk})
                total += cnt
                logger.debug("batch_vertices_merged", kinds=list(kinds), count=cnt, batch_size=len(chunk))
        return total

    def batch_create_edges(
        self,
        records: list[dict[str, Any]],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> int:
        """Create relationships in batches.

        Each record must contain ``source``, ``target`` and ``relation``
        (one of the :class:`~jsdepgraph.models.graph.Relation` values).
        Both endpoints must already exist.

        Args:
            records: List of edge property dicts.
            batch_size: Number of records per UNWIND transaction.

        Returns:
            Total number of relationships created.
        """
        driver = self._ensure_driver()
        total = 0
        cypher = _create_edges_cypher()
        for chunk in _chunked(records, batch_size):
            cnt = self._execute_write(driver, cypher, {"batch": chunk})
            total += cnt
            logger.debug("batch_edges_created", count=cnt, batch_size=len(chunk))
        return total

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def outgoing_relations(
        self,
        name: str,
        relation: Optional[Relation] = None,
    ) -> list[dict[str, Any]]:
        """Return ``{"relation", "target"}`` rows for edges leaving *name*.

        Args:
            name: Source vertex name.
            relation: Only return edges with this label.
        """
        return self.run_cypher(
            f"""
            MATCH (src:{ENTITY_LABEL} {{name: $name}})-[r]->(tgt:{ENTITY_LABEL})
            WHERE $relation IS NULL OR r.relation = $relation
            RETURN r.relation AS relation, tgt.name AS target
            ORDER BY relation, target
            """,
            {"name": name, "relation": relation.value if relation is not None else None},
        )

    def run_cypher(
        self,
        cypher: str,
        parameters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Execute an arbitrary query and return result records as dicts."""
        driver = self._ensure_driver()
        records, _, _ = driver.execute_query(
            cypher,
            parameters_=parameters or {},
            database_=self.database,
        )
        return [record.data() for record in records]

    def clear_all(self) -> None:
        """Delete all nodes and relationships. **Use with caution.**"""
        driver = self._ensure_driver()
        driver.execute_query(
            "MATCH (n) DETACH DELETE n",
            database_=self.database,
        )
        logger.warning("neo4j_cleared_all")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _execute_write(
        self,
        driver: Driver,
        cypher: str,
        parameters: dict[str, Any],
    ) -> int:
        """Run a write query and return its ``cnt`` scalar."""
        records, _, _ = driver.execute_query(
            cypher,
            parameters_=parameters,
            database_=self.database,
        )
        if records:
            return records[0].get("cnt", 0)
        return 0


# ------------------------------------------------------------------
# Cypher templates
# ------------------------------------------------------------------


def _merge_vertices_cypher(kinds: tuple[str, ...]) -> str:
    """Return a MERGE query adding a ``Module``/``Symbol`` label per kind."""
    labels = "".join(f":{kind.capitalize()}" for kind in kinds if kind in ("module", "symbol"))
    set_labels = f"SET n{labels}" if labels else ""
    return f"""
    UNWIND $batch AS rec
    MERGE (n:{ENTITY_LABEL} {{name: rec.name}})
    SET n.kinds = rec.kinds
    {set_labels}
    RETURN count(n) AS cnt
    """


def _create_edges_cypher() -> str:
    """Return a CREATE query with one typed relationship per relation.

    Uses the ``FOREACH`` + ``CASE`` pattern so no APOC is needed for
    dynamic relationship types.
    """
    branches = "\n".join(
        f"""    FOREACH (_ IN CASE WHEN rec.relation = '{rel.value}' THEN [1] ELSE [] END |
        CREATE (src)-[:{rel.value.upper()} {{relation: rec.relation}}]->(tgt)
    )"""
        for rel in Relation
    )
    return f"""
    UNWIND $batch AS rec
    MATCH (src:{ENTITY_LABEL} {{name: rec.source}})
    MATCH (tgt:{ENTITY_LABEL} {{name: rec.target}})
{branches}
    RETURN count(tgt) AS cnt
    """


# ------------------------------------------------------------------
# Utilities
# ------------------------------------------------------------------


def _chunked(items: list[Any], size: int) -> list[list[Any]]:
    """Split *items* into sub-lists of at most *size* elements."""
    return [items[i : i + size] for i in range(0, len(items), size)]
