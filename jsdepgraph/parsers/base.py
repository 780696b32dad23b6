"""Abstract base class for language parsers feeding the relation walker.

A parser turns raw source bytes into the closed syntax model of
:mod:`jsdepgraph.models.syntax`, wrapped in one top-level
:class:`~jsdepgraph.models.syntax.FunctionNode` per file.
"""

from __future__ import annotations

import abc
import pathlib

from jsdepgraph.models.syntax import FunctionNode
from jsdepgraph.scanner.naming import make_relative


class BaseLanguageParser(abc.ABC):
    """Contract that every language parser must fulfil.

    Args:
        repo_root: The root of the repository being scanned, used to
            compute repo-relative file paths for error messages.
    """

    def __init__(self, repo_root: pathlib.Path) -> None:
        self.repo_root = repo_root.resolve()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def parse_source(self, source: bytes, rel_path: str = "") -> FunctionNode:
        """Parse *source* into the file's top-level function node.

        Args:
            source: Raw bytes of the file.
            rel_path: Repo-relative path, used in error messages only.

        Raises:
            SourceParseError: If the source has syntax errors.
            UnsupportedSyntaxError: If the source uses a construct the
                syntax model cannot represent.
        """

    def parse_file(self, file_path: pathlib.Path, source: bytes) -> FunctionNode:
        """Parse the contents of *file_path*.

        Args:
            file_path: Absolute path to the source file.
            source: Raw bytes of the source file.

        Returns:
            The wrapped module body.
        """
        return self.parse_source(source, self._relative_path(file_path))

    # ------------------------------------------------------------------
    # Helpers available to all subclasses
    # ------------------------------------------------------------------

    def _relative_path(self, file_path: pathlib.Path) -> str:
        """Return a POSIX-style repo-relative path string."""
        return make_relative(self.repo_root, file_path)

    @staticmethod
    def _node_text(node: object) -> str:
        """Decode the UTF-8 text of a tree-sitter node."""
        # tree_sitter.Node exposes ``text`` as ``bytes | None``.
        text: bytes | None = getattr(node, "text", None)
        if text is None:
            return ""
        return text.decode("utf-8", errors="replace")
