"""Tests for the HTTP API."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from jsdepgraph.api.app import create_app
from jsdepgraph.config import settings


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def repo(write_repo):
    return write_repo(
        {
            "a.js": "define(['./b'], function () { helper(); });\n",
            "b.js": "function helper() {}\n",
            "broken.js": "class C {}\n",
        }
    )


@pytest.fixture
def neo4j_configured(monkeypatch):
    monkeypatch.setattr(settings, "neo4j_uri", "neo4j://localhost:7687")
    monkeypatch.setattr(settings, "neo4j_password", "secret")


class TestScanEndpoint:
    def test_scan_returns_graph(self, client, repo):
        response = client.post("/scan", json={"path": str(repo)})

        assert response.status_code == 200
        body = response.json()
        assert body["files_scanned"] == 2
        assert body["files_failed"] == 1
        assert body["failures"][0]["path"] == "broken.js"
        assert body["total_edges"] == len(body["graph"]["edges"])
        assert {"source": "a", "target": "b", "relation": "requires"} in body["graph"]["edges"]

    def test_scan_stream(self, client, repo):
        response = client.post("/scan", json={"path": str(repo), "stream": True})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        assert response.headers["x-files-failed"] == "1"
        lines = [json.loads(line) for line in response.text.splitlines() if line]
        types = [line["_type"] for line in lines]
        assert types == sorted(types, key=lambda t: t != "vertex")
        assert len(lines) == int(response.headers["x-total-vertices"]) + int(response.headers["x-total-edges"])

    def test_scan_missing_path(self, client, tmp_path):
        response = client.post("/scan", json={"path": str(tmp_path / "missing")})
        assert response.status_code == 400

    def test_scan_blacklist(self, client, repo):
        response = client.post("/scan", json={"path": str(repo), "blacklist": ["broken.js"]})
        assert response.json()["files_failed"] == 0


class TestGraphEndpoints:
    def test_export_requires_credentials(self, client, repo, monkeypatch):
        monkeypatch.setattr(settings, "neo4j_uri", "")
        response = client.post("/graph/export", json={"path": str(repo)})
        assert response.status_code == 503

    def test_export(self, client, repo, neo4j_configured):
        with patch("jsdepgraph.api.graph_routes.GraphService") as service_cls, patch(
            "jsdepgraph.api.graph_routes.export_to_neo4j",
            return_value={"vertices_merged": 4, "edges_created": 3},
        ) as export:
            response = client.post("/graph/export", json={"path": str(repo), "clear_existing": True})

        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "files_scanned": 2,
            "files_failed": 1,
            "vertices_merged": 4,
            "edges_created": 3,
        }
        assert export.call_args.kwargs["clear_existing"] is True
        service_cls.return_value.__enter__.assert_called_once()

    def test_export_failure_is_500(self, client, repo, neo4j_configured):
        with patch("jsdepgraph.api.graph_routes.GraphService"), patch(
            "jsdepgraph.api.graph_routes.export_to_neo4j",
            side_effect=RuntimeError("connection refused"),
        ):
            response = client.post("/graph/export", json={"path": str(repo)})
        assert response.status_code == 500
        assert "connection refused" in response.json()["detail"]

    def test_relations(self, client, neo4j_configured):
        svc = MagicMock()
        svc.__enter__.return_value = svc
        svc.outgoing_relations.return_value = [{"relation": "invokes", "target": "helper"}]
        with patch("jsdepgraph.api.graph_routes.GraphService", return_value=svc):
            response = client.get("/graph/relations/a", params={"relation": "invokes"})

        assert response.status_code == 200
        assert response.json() == {"name": "a", "relations": [{"relation": "invokes", "target": "helper"}]}
        svc.outgoing_relations.assert_called_once()
        assert svc.outgoing_relations.call_args.args[1].value == "invokes"

    def test_relations_rejects_unknown_label(self, client, neo4j_configured):
        response = client.get("/graph/relations/a", params={"relation": "calls"})
        assert response.status_code == 422

    def test_clear(self, client, neo4j_configured):
        svc = MagicMock()
        svc.__enter__.return_value = svc
        with patch("jsdepgraph.api.graph_routes.GraphService", return_value=svc):
            response = client.delete("/graph/clear")
        assert response.status_code == 200
        svc.clear_all.assert_called_once()
