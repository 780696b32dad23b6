"""Small constructors for hand-built syntax trees."""

from __future__ import annotations

from jsdepgraph.graph.store import MemoryGraphStore
from jsdepgraph.models.syntax import (
    Block,
    CallNode,
    ExpressionStatement,
    FunctionNode,
    IdentNode,
    LiteralNode,
)


def module(*statements) -> FunctionNode:
    """Wrap *statements* in the per-file wrapper function."""
    return FunctionNode(ident=IdentNode("runScript"), body=Block(list(statements)))


def call(name: str, *args) -> CallNode:
    return CallNode(IdentNode(name), list(args))


def stmt(expression) -> ExpressionStatement:
    return ExpressionStatement(expression)


def string(value: str) -> LiteralNode:
    return LiteralNode(value)


def array(*elements) -> LiteralNode:
    return LiteralNode(list(elements))


def relations(store: MemoryGraphStore, relation=None) -> list[tuple[str, str, str]]:
    """Return ``(source, label, target)`` triples in emission order."""
    return [(e.source.name, e.label, e.target.name) for e in store.edges(relation)]
