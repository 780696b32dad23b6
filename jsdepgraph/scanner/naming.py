"""Canonical names for modules.

The same rule applies to paths found on disk and to module strings
written inside ``require``/``define`` calls, so ``lib/util.js`` on disk
and ``"./lib/util"`` in source both name the module ``util``.
"""

from __future__ import annotations

import pathlib


def namify(path: str) -> str:
    """Return the canonical module name for a slash-delimited *path*.

    The last path segment is taken and everything from its first ``.``
    onwards is dropped.  Trailing slashes are ignored.

    >>> namify("a/b/c.js")
    'c'
    >>> namify("x.y.js")
    'x'
    >>> namify("plain")
    'plain'
    """
    leaf = path.rstrip("/").rsplit("/", 1)[-1]
    return leaf.split(".", 1)[0]


def make_relative(root: pathlib.Path, file_path: pathlib.Path) -> str:
    """Return *file_path* relative to *root* as a POSIX string.

    Args:
        root: Repository root directory.
        file_path: File inside *root*.

    Returns:
        Forward-slash separated relative path without a leading ``./`` or
        trailing slash.  Files outside *root* keep their own POSIX path.
    """
    try:
        relative = file_path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        relative = file_path.as_posix()
    return relative.rstrip("/")
