"""Graph exporter: pushes a scanned relation graph into Neo4j.

Takes the :class:`~jsdepgraph.models.graph.RelationGraph` produced by
:func:`jsdepgraph.core.ingestion.scan_repository` and writes it with
batched ``UNWIND`` queries in two phases: vertices first, then edges.
"""

from __future__ import annotations

from typing import Optional

import structlog

from jsdepgraph.config import settings
from jsdepgraph.graph.database import GraphService
from jsdepgraph.models.graph import RelationGraph

logger = structlog.get_logger(__name__)


def export_to_neo4j(
    graph: RelationGraph,
    graph_service: GraphService,
    *,
    clear_existing: bool = False,
    ensure_constraints: bool = True,
    batch_size: Optional[int] = None,
) -> dict[str, int]:
    """Write *graph* to Neo4j.

    Args:
        graph: The relation graph of a scan run.
        graph_service: An already-connected :class:`GraphService`.
        clear_existing: If True, wipe all existing data first.
        ensure_constraints: Create the name uniqueness constraint first.
        batch_size: Records per UNWIND transaction.  Defaults to
            :pyattr:`jsdepgraph.config.Settings.neo4j_batch_size`.

    Returns:
        ``{"vertices_merged": int, "edges_created": int}``
    """
    batch_size = batch_size or settings.neo4j_batch_size

    if clear_existing:
        logger.warning("clearing_existing_graph_data")
        graph_service.clear_all()
    if ensure_constraints:
        graph_service.create_uniqueness_constraints()

    logger.info("export_vertices_start", total=len(graph.vertices))
    vertex_records = [
        {"name": v.name, "kinds": [k.value for k in v.kinds]}
        for v in graph.vertices
    ]
    vertices_merged = graph_service.batch_merge_vertices(vertex_records, batch_size=batch_size)
    logger.info("export_vertices_done", merged=vertices_merged)

    logger.info("export_edges_start", total=len(graph.edges))
    edge_records = [
        {"source": e.source, "target": e.target, "relation": e.relation.value}
        for e in graph.edges
    ]
    edges_created = graph_service.batch_create_edges(edge_records, batch_size=batch_size)
    logger.info("export_edges_done", created=edges_created)

    summary = {
        "vertices_merged": vertices_merged,
        "edges_created": edges_created,
    }
    logger.info("export_to_neo4j_complete", **summary)
    return summary
