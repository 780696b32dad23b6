"""Scan orchestrator that ties the crawler, parser and walker together.

This is the main entry point for scanning a repository: it crawls the
file tree, parses each file, and walks it against one vertex registry
shared by the whole run.  Files may be scanned on a thread pool; the
registry serialises vertex creation.

A file that fails is logged and reported.  Relations it emitted before
failing stay in the graph, so its contribution may be partial.
"""

from __future__ import annotations

import pathlib
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import structlog

from jsdepgraph.config import settings
from jsdepgraph.core.crawler import EXTENSION_LANGUAGE_MAP, FileCrawler
from jsdepgraph.errors import SourceParseError, UnsupportedSyntaxError
from jsdepgraph.graph.registry import VertexRegistry
from jsdepgraph.graph.store import MemoryGraphStore
from jsdepgraph.models.graph import RelationGraph
from jsdepgraph.models.report import ScanFailure, ScanReport
from jsdepgraph.parsers.base import BaseLanguageParser
from jsdepgraph.parsers.factory import ParserFactory
from jsdepgraph.parsers.javascript_parser import JavaScriptParser
from jsdepgraph.scanner.naming import make_relative
from jsdepgraph.scanner.walker import TreeWalker

logger = structlog.get_logger(__name__)


def _build_factory(repo_root: pathlib.Path) -> ParserFactory:
    """Create a :class:`ParserFactory` pre-loaded with the built-in parsers."""
    factory = ParserFactory(repo_root)
    factory.register(
        "javascript",
        JavaScriptParser,
        extensions=[ext for ext, lang in EXTENSION_LANGUAGE_MAP.items() if lang == "javascript"],
    )
    return factory


def scan_source(
    source: bytes | str,
    rel_path: str,
    registry: VertexRegistry,
    parser: Optional[BaseLanguageParser] = None,
) -> TreeWalker:
    """Parse and walk a single in-memory file.

    Args:
        source: JavaScript source text.
        rel_path: Repo-relative path naming the module.
        registry: Registry receiving the relations.
        parser: Parser to use.  Defaults to a fresh
            :class:`JavaScriptParser`.

    Returns:
        The walker that scanned the file.

    Raises:
        SourceParseError: On syntax errors.
        UnsupportedSyntaxError: On constructs outside the syntax model.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    parser = parser or JavaScriptParser(pathlib.Path.cwd())
    walker = TreeWalker(registry, rel_path)
    walker.scan(parser.parse_source(source, rel_path))
    return walker


def scan_repository(
    repo_path: str | pathlib.Path,
    blacklist: list[str] | None = None,
    registry: Optional[VertexRegistry] = None,
    workers: Optional[int] = None,
    fail_fast: Optional[bool] = None,
) -> ScanReport:
    """Scan a local repository and produce its relation graph.

    Args:
        repo_path: Path to the repository root directory.
        blacklist: Optional override for the default blacklist.
        registry: Registry to accumulate into.  A fresh one backed by a
            :class:`MemoryGraphStore` is created when omitted; pass one
            in to merge several repositories into one graph.
        workers: Threads used to scan files.  Defaults to
            :pyattr:`jsdepgraph.config.Settings.scan_workers`.
        fail_fast: Re-raise the first file error instead of recording
            it.  Defaults to :pyattr:`jsdepgraph.config.Settings.fail_fast`.

    Returns:
        A :class:`ScanReport` with counts, failures and the graph.

    Raises:
        FileNotFoundError: If *repo_path* does not exist.
        NotADirectoryError: If *repo_path* is not a directory.
    """
    root = pathlib.Path(repo_path).resolve()

    if not root.exists():
        raise FileNotFoundError(f"Repository path does not exist: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Repository path is not a directory: {root}")

    registry = registry if registry is not None else VertexRegistry(MemoryGraphStore())
    workers = workers if workers is not None else settings.scan_workers
    fail_fast = fail_fast if fail_fast is not None else settings.fail_fast

    logger.info("scan_started", repo=str(root), workers=workers)

    factory = _build_factory(root)
    files = list(FileCrawler(root, blacklist=blacklist, extensions=factory.supported_extensions).crawl())

    def scan_one(file_path: pathlib.Path) -> Optional[ScanFailure]:
        return _scan_file(root, file_path, factory, registry, fail_fast)

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(scan_one, files))
    else:
        outcomes = [scan_one(file_path) for file_path in files]

    failures = [outcome for outcome in outcomes if outcome is not None]
    store = registry.store
    graph = store.to_model() if isinstance(store, MemoryGraphStore) else RelationGraph()

    report = ScanReport(
        root=str(root),
        files_scanned=len(files) - len(failures),
        files_failed=len(failures),
        failures=failures,
        graph=graph,
    )
    logger.info(
        "scan_finished",
        repo=str(root),
        files_scanned=report.files_scanned,
        files_failed=report.files_failed,
        total_vertices=len(graph.vertices),
        total_edges=len(graph.edges),
    )
    return report


def _scan_file(
    root: pathlib.Path,
    file_path: pathlib.Path,
    factory: ParserFactory,
    registry: VertexRegistry,
    fail_fast: bool,
) -> Optional[ScanFailure]:
    """Scan one file; return a failure record instead of raising."""
    rel_path = make_relative(root, file_path)
    language = factory.language_for(file_path)
    parser = factory.for_path(file_path)
    if parser is None:
        logger.warning("no_parser_for_language", language=language, file=rel_path)
        return ScanFailure(path=rel_path, error="NoParser", message=f"No parser for {file_path.suffix}")

    walking = False
    try:
        walker = TreeWalker(registry, rel_path)
        tree = parser.parse_file(file_path, file_path.read_bytes())
        walking = True
        walker.scan(tree)
    except (UnsupportedSyntaxError, SourceParseError) as exc:
        if fail_fast:
            raise
        logger.warning(
            "scan_aborted",
            file=rel_path,
            error=type(exc).__name__,
            detail=str(exc),
            partial=walking,
        )
        return ScanFailure(path=rel_path, error=type(exc).__name__, message=str(exc), partial=walking)
    except Exception as exc:
        if fail_fast:
            raise
        logger.exception("scan_failed", file=rel_path, language=language)
        return ScanFailure(path=rel_path, error=type(exc).__name__, message=str(exc), partial=walking)

    logger.debug("file_scanned", file=rel_path, module=walker.module_name)
    return None
