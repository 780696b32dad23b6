"""Tests for file discovery."""

from __future__ import annotations

import pathlib

from jsdepgraph.core.crawler import FileCrawler


def crawled(root: pathlib.Path, **kwargs) -> list[str]:
    return [p.relative_to(root.resolve()).as_posix() for p in FileCrawler(root, **kwargs).crawl()]


def test_yields_javascript_files_in_sorted_order(write_repo):
    root = write_repo(
        {
            "b.js": "",
            "a.js": "",
            "lib/z.cjs": "",
            "lib/x.mjs": "",
            "view.jsx": "",
            "lib/y.cjs": "",
            "README.md": "",
            "style.css": "",
        }
    )
    assert crawled(root) == ["a.js", "b.js", "lib/y.cjs", "lib/z.cjs"]


def test_default_blacklist_prunes_directories(write_repo):
    root = write_repo(
        {
            "app.js": "",
            "node_modules/pkg/index.js": "",
            "dist/bundle.js": "",
            "vendor.min.js": "",
        }
    )
    assert crawled(root) == ["app.js"]


def test_custom_blacklist_replaces_default(write_repo):
    root = write_repo({"app.js": "", "node_modules/pkg/index.js": "", "test/spec.js": ""})
    assert crawled(root, blacklist=["test/"]) == ["app.js", "node_modules/pkg/index.js"]


def test_oversized_files_are_skipped(write_repo):
    root = write_repo({"small.js": "a();", "big.js": "x" * 100})
    assert crawled(root, max_file_size_bytes=10) == ["small.js"]


def test_extension_filter(write_repo):
    root = write_repo({"a.js": "", "b.jsx": ""})
    assert crawled(root, extensions=[".JSX"]) == ["b.jsx"]


def test_jsx_and_module_files_are_not_scanned_by_default(write_repo):
    root = write_repo({"app.js": "", "view.jsx": "", "entry.mjs": ""})
    assert crawled(root) == ["app.js"]
