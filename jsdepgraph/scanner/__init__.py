"""Relation extraction: module naming, tree walking and pattern emission."""

from jsdepgraph.scanner.naming import make_relative, namify
from jsdepgraph.scanner.relations import RelationEmitter
from jsdepgraph.scanner.walker import TreeWalker

__all__ = ["RelationEmitter", "TreeWalker", "make_relative", "namify"]
