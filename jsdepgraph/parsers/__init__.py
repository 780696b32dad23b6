"""Tree-sitter parsers producing the relation walker's syntax model."""

from jsdepgraph.parsers.factory import ParserFactory
from jsdepgraph.parsers.javascript_parser import JavaScriptParser

__all__ = ["JavaScriptParser", "ParserFactory"]
