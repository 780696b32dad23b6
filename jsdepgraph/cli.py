"""Command line interface.

- ``jsdepgraph scan PATH``: scan a repository and print its graph.
- ``jsdepgraph export PATH``: scan a repository and push it to Neo4j.
- ``jsdepgraph serve``: run the HTTP API with uvicorn.
"""

from __future__ import annotations

import os
import sys
from typing import Optional

import click
import uvicorn

from jsdepgraph import __version__
from jsdepgraph.config import settings
from jsdepgraph.core.ingestion import scan_repository
from jsdepgraph.errors import SourceParseError, UnsupportedSyntaxError
from jsdepgraph.graph.database import GraphService
from jsdepgraph.graph.exporter import export_to_neo4j
from jsdepgraph.logging import setup_logging
from jsdepgraph.models.report import ScanReport


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--log-level", default=None, help="Minimum log level (defaults to JSDEPGRAPH_LOG_LEVEL).")
@click.option("--json-logs", is_flag=True, help="Emit log lines as JSON.")
@click.version_option(version=__version__)
def main(log_level: Optional[str], json_logs: bool) -> None:
    """Extract declares / invokes / extends / requires relations from JavaScript."""
    # Logs go to stderr so the graph printed on stdout can be piped.
    setup_logging(log_level or settings.log_level, json_output=json_logs, stream=sys.stderr)


def _run_scan(path: str, exclude: tuple[str, ...], workers: Optional[int], fail_fast: bool) -> ScanReport:
    try:
        return scan_repository(
            path,
            blacklist=list(exclude) or None,
            workers=workers,
            fail_fast=fail_fast or None,
        )
    except (UnsupportedSyntaxError, SourceParseError) as exc:
        raise click.ClickException(str(exc)) from exc


def _print_summary(report: ScanReport) -> None:
    graph = report.graph
    click.echo(f"Scanned {report.files_scanned} file(s), {report.files_failed} failed.")
    click.echo(f"{len(graph.vertices)} vertices, {len(graph.edges)} edges.")
    for failure in report.failures:
        suffix = " (partial)" if failure.partial else ""
        click.echo(f"  {failure.path}: {failure.error}: {failure.message}{suffix}")


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("--exclude", "-e", multiple=True, help="Glob pattern to exclude; replaces the default blacklist.")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None, help="Threads used to scan files.")
@click.option("--fail-fast", is_flag=True, help="Stop at the first file that cannot be scanned.")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["json", "ndjson", "summary"]),
    default="json",
    help="Output format.",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), help="Write output to a file.")
def scan(
    path: str,
    exclude: tuple[str, ...],
    workers: Optional[int],
    fail_fast: bool,
    output_format: str,
    output: Optional[str],
) -> None:
    """Scan the repository at PATH and print its relation graph."""
    report = _run_scan(path, exclude, workers, fail_fast)

    if output_format == "summary":
        _print_summary(report)
        return

    if output_format == "json":
        text = report.model_dump_json(indent=2) + "\n"
    else:
        text = "".join(report.graph.ndjson_lines())

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text)
        _print_summary(report)
    else:
        click.echo(text, nl=False)


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("--exclude", "-e", multiple=True, help="Glob pattern to exclude; replaces the default blacklist.")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None, help="Threads used to scan files.")
@click.option("--clear", is_flag=True, help="Delete all existing graph data first.")
def export(path: str, exclude: tuple[str, ...], workers: Optional[int], clear: bool) -> None:
    """Scan the repository at PATH and write its graph to Neo4j."""
    if not settings.neo4j_uri or not settings.neo4j_password:
        raise click.ClickException(
            "Neo4j credentials not configured. Set JSDEPGRAPH_NEO4J_URI and JSDEPGRAPH_NEO4J_PASSWORD."
        )

    report = _run_scan(path, exclude, workers, fail_fast=False)
    service = GraphService(
        uri=settings.neo4j_uri,
        user=settings.neo4j_user,
        password=settings.neo4j_password,
        database=settings.neo4j_database,
    )
    with service:
        summary = export_to_neo4j(
            report.graph,
            service,
            clear_existing=clear,
            batch_size=settings.neo4j_batch_size,
        )

    _print_summary(report)
    click.echo(f"Merged {summary['vertices_merged']} vertices, created {summary['edges_created']} edges.")


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=lambda: int(os.environ.get("PORT", 8000)), help="Defaults to $PORT or 8000.")
@click.option("--reload", is_flag=True, help="Restart on code changes.")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP API."""
    uvicorn.run(
        "jsdepgraph.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
