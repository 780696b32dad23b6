"""Shared fixtures for the test suite."""

from __future__ import annotations

import pathlib

import pytest

from jsdepgraph.graph.registry import VertexRegistry
from jsdepgraph.graph.store import MemoryGraphStore


@pytest.fixture
def store() -> MemoryGraphStore:
    return MemoryGraphStore()


@pytest.fixture
def registry(store: MemoryGraphStore) -> VertexRegistry:
    return VertexRegistry(store)


@pytest.fixture
def write_repo(tmp_path: pathlib.Path):
    """Return a helper that writes ``{relative_path: source}`` under tmp_path."""

    def _write(files: dict[str, str]) -> pathlib.Path:
        for rel, source in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        return tmp_path

    return _write
