"""Exceptions raised while turning JavaScript source into relations."""

from __future__ import annotations


class UnsupportedSyntaxError(Exception):
    """Traversal reached a syntax shape outside the recognised set.

    Fatal for the file being scanned.  Edges emitted before the error was
    raised remain in the graph.

    Attributes:
        node: The offending node (a syntax model object, a literal value,
            or a tree-sitter node type name when raised by the parser).
    """

    def __init__(self, node: object, message: str | None = None) -> None:
        self.node = node
        if message is None:
            message = f"Unsupported syntax shape: {_describe(node)}"
        super().__init__(message)


class NestingTooDeepError(UnsupportedSyntaxError):
    """Syntax nesting exceeded the configured depth limit.

    Raised by the parser while converting and by the walker while
    visiting, so deep sources fail as a scan error instead of a
    :class:`RecursionError`.
    """

    def __init__(self, node: object, limit: int) -> None:
        self.limit = limit
        super().__init__(node, f"Nesting deeper than {limit} levels at {_describe(node)}")


class SourceParseError(ValueError):
    """The source text could not be parsed into a syntax tree.

    Attributes:
        path: Relative path of the file, if known.
        line: 1-indexed line of the first syntax error.
    """

    def __init__(self, path: str, line: int) -> None:
        self.path = path
        self.line = line
        super().__init__(f"Syntax error in {path or '<source>'} at line {line}")


def _describe(node: object) -> str:
    if isinstance(node, str):
        return node
    return type(node).__name__
