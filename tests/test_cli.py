"""Tests for the command line interface."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from jsdepgraph.cli import main
from jsdepgraph.config import settings

# Keep structlog quiet; the runner swaps stdio between invocations.
QUIET = ["--log-level", "CRITICAL"]


@pytest.fixture
def repo(write_repo):
    return write_repo(
        {
            "a.js": "require(['./b'], function () { helper(); });\n",
            "b.js": "function helper() {}\n",
            "bad.js": "class C {}\n",
        }
    )


def invoke(*args):
    return CliRunner().invoke(main, [*QUIET, *args])


def test_scan_prints_json_report(repo):
    result = invoke("scan", str(repo))

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["files_scanned"] == 2
    assert report["files_failed"] == 1
    assert {"source": "a", "target": "b", "relation": "requires"} in report["graph"]["edges"]


def test_scan_ndjson(repo):
    result = invoke("scan", str(repo), "--format", "ndjson", "--exclude", "bad.js")

    assert result.exit_code == 0, result.output
    lines = [json.loads(line) for line in result.output.splitlines()]
    edges = [line for line in lines if line["_type"] == "edge"]
    assert {"_type": "edge", "source": "b", "target": "helper", "relation": "declares"} in edges


def test_scan_summary_lists_failures(repo):
    result = invoke("scan", str(repo), "-f", "summary")

    assert result.exit_code == 0
    assert "Scanned 2 file(s), 1 failed." in result.output
    assert "bad.js: UnsupportedSyntaxError" in result.output


def test_scan_to_file(repo, tmp_path):
    target = tmp_path / "out"
    target.mkdir()
    out = target / "graph.json"

    result = invoke("scan", str(repo), "-o", str(out))

    assert result.exit_code == 0
    assert json.loads(out.read_text(encoding="utf-8"))["files_failed"] == 1
    assert "Scanned 2 file(s)" in result.output


def test_scan_fail_fast_exits_non_zero(repo):
    result = invoke("scan", str(repo), "--fail-fast")
    assert result.exit_code == 1
    assert "Unsupported syntax shape" in result.output


def test_scan_missing_path(tmp_path):
    result = invoke("scan", str(tmp_path / "missing"))
    assert result.exit_code == 2


def test_export_without_credentials(repo, monkeypatch):
    monkeypatch.setattr(settings, "neo4j_uri", "")
    result = invoke("export", str(repo))
    assert result.exit_code == 1
    assert "credentials" in result.output


def test_export(repo, monkeypatch):
    monkeypatch.setattr(settings, "neo4j_uri", "neo4j://localhost:7687")
    monkeypatch.setattr(settings, "neo4j_password", "secret")
    with patch("jsdepgraph.cli.GraphService") as service_cls, patch(
        "jsdepgraph.cli.export_to_neo4j",
        return_value={"vertices_merged": 5, "edges_created": 4},
    ) as export:
        result = invoke("export", str(repo), "--clear")

    assert result.exit_code == 0, result.output
    assert "Merged 5 vertices, created 4 edges." in result.output
    assert export.call_args.kwargs["clear_existing"] is True
    service_cls.return_value.__enter__.assert_called_once()


def test_serve_runs_uvicorn():
    with patch("jsdepgraph.cli.uvicorn.run") as run:
        result = invoke("serve", "--port", "9001")
    assert result.exit_code == 0
    assert run.call_args.args == ("jsdepgraph.api.app:app",)
    assert run.call_args.kwargs["port"] == 9001
