"""Tests for repository scan orchestration."""

from __future__ import annotations

import pytest

from jsdepgraph.config import settings
from jsdepgraph.core.ingestion import scan_repository
from jsdepgraph.errors import SourceParseError, UnsupportedSyntaxError
from jsdepgraph.graph.registry import VertexRegistry
from jsdepgraph.models.graph import Relation, VertexKind

REPO = {
    "lib/base.js": "function Base() { init(); }\n",
    "lib/widget.js": (
        "define(['./base'], function (base) {\n"
        "    var self = new Base();\n"
        "    function draw() { paint(); }\n"
        "});\n"
    ),
    "app/main.js": "require(['lib/widget'], function (widget) { start(); });\n",
}


def edges(report) -> list[tuple[str, str, str]]:
    return [(e.source, e.relation.value, e.target) for e in report.graph.edges]


class TestScanRepository:
    def test_builds_graph_across_files(self, write_repo):
        report = scan_repository(write_repo(REPO))

        assert report.files_scanned == 3
        assert report.files_failed == 0
        graph = report.graph
        assert graph.targets_of("main", Relation.REQUIRES) == ["widget"]
        assert graph.targets_of("widget", Relation.REQUIRES) == ["base"]
        assert graph.targets_of("widget", Relation.EXTENDS) == ["Base"]
        assert graph.targets_of("widget", Relation.DECLARES) == ["draw"]
        assert graph.targets_of("base", Relation.DECLARES) == ["Base"]
        assert graph.targets_of("base", Relation.INVOKES) == ["init"]

    def test_module_vertices_are_tagged(self, write_repo):
        report = scan_repository(write_repo(REPO))
        kinds = {v.name: v.kinds for v in report.graph.vertices}
        assert kinds["widget"] == [VertexKind.MODULE]
        assert kinds["paint"] == [VertexKind.SYMBOL]

    def test_failures_are_recorded_and_scan_continues(self, write_repo):
        root = write_repo(
            {
                "a.js": "ok();\n",
                "b.js": "class B {}\n",
                "c.js": "function (\n",
            }
        )
        report = scan_repository(root)

        assert report.files_scanned == 1
        assert report.files_failed == 2
        by_path = {f.path: f for f in report.failures}
        assert by_path["b.js"].error == "UnsupportedSyntaxError"
        assert by_path["c.js"].error == "SourceParseError"
        assert not by_path["c.js"].partial
        # Failed files still contribute their module vertex.
        names = {v.name for v in report.graph.vertices}
        assert {"a", "b", "c", "ok"} <= names

    def test_partial_relations_survive_a_failure(self, write_repo, monkeypatch):
        monkeypatch.setattr(settings, "max_depth", 6)
        # Converts within the limit; walking into b goes past it.
        root = write_repo({"deep.js": "start();\nfunction a() { function b() { function c() { f(); } } }\n"})

        report = scan_repository(root)

        (failure,) = report.failures
        assert failure.error == "NestingTooDeepError"
        assert failure.partial
        assert report.graph.targets_of("deep", Relation.INVOKES) == ["start"]
        assert report.graph.targets_of("deep", Relation.DECLARES) == ["a"]

    def test_deep_nesting_is_reported_as_a_failure(self, write_repo):
        deep = "var x = " + "(" * 500 + "1" + ")" * 500 + ";\n"
        root = write_repo({"deep.js": deep, "ok.js": "run();\n"})

        report = scan_repository(root)

        (failure,) = report.failures
        assert failure.path == "deep.js"
        assert failure.error == "NestingTooDeepError"
        assert not failure.partial
        assert report.graph.targets_of("ok", Relation.INVOKES) == ["run"]

    @pytest.mark.parametrize(
        "source, error",
        [("class B {}", UnsupportedSyntaxError), ("function (", SourceParseError)],
    )
    def test_fail_fast_reraises(self, write_repo, source, error):
        root = write_repo({"bad.js": source})
        with pytest.raises(error):
            scan_repository(root, fail_fast=True)

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            scan_repository(tmp_path / "nope")

    def test_file_path(self, tmp_path):
        path = tmp_path / "a.js"
        path.write_text("x();")
        with pytest.raises(NotADirectoryError):
            scan_repository(path)

    def test_workers_produce_the_same_graph(self, write_repo):
        files = {f"pkg{i}/mod{i}.js": f"function f{i}() {{ shared(); helper{i}(); }}\n" for i in range(20)}
        root = write_repo(files)

        serial = scan_repository(root, workers=1)
        threaded = scan_repository(root, workers=4)

        assert sorted(edges(serial)) == sorted(edges(threaded))
        assert sorted(v.name for v in serial.graph.vertices) == sorted(v.name for v in threaded.graph.vertices)
        # One shared vertex no matter how many threads asked for it.
        assert [v.name for v in threaded.graph.vertices].count("shared") == 1

    def test_registry_accumulates_across_runs(self, tmp_path):
        first = tmp_path / "one"
        second = tmp_path / "two"
        first.mkdir()
        second.mkdir()
        (first / "a.js").write_text("util();")
        (second / "util.js").write_text("a();")

        registry = VertexRegistry()
        scan_repository(first, registry=registry)
        report = scan_repository(second, registry=registry)

        assert registry.kinds_of("util") == [VertexKind.MODULE, VertexKind.SYMBOL]
        assert sorted(edges(report)) == [("a", "invokes", "util"), ("util", "invokes", "a")]
