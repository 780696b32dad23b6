"""Pattern recognisers that turn syntax shapes into graph edges.

The :class:`~jsdepgraph.scanner.walker.TreeWalker` calls into a
:class:`RelationEmitter` at three node shapes:

- every function node (``declares``),
- every call node (``invokes`` and, for ``require``/``define``,
  ``requires``),
- every variable declaration (``extends``).

All edges leave the module vertex of the file being scanned.  Edges are
written to the store as soon as they are recognised; nothing is batched
or rolled back.
"""

from __future__ import annotations

from typing import Optional, Sequence

import structlog

from jsdepgraph.config import settings
from jsdepgraph.graph.registry import VertexRegistry
from jsdepgraph.graph.store import Edge, Vertex
from jsdepgraph.models.graph import Relation, VertexKind
from jsdepgraph.models.syntax import (
    CallNode,
    FunctionNode,
    IdentNode,
    LiteralNode,
    UnaryNode,
    VarNode,
)
from jsdepgraph.scanner.naming import namify

logger = structlog.get_logger(__name__)


class RelationEmitter:
    """Recognises relation patterns and writes the matching edges.

    Args:
        registry: Shared vertex registry.
        module: Vertex of the module being scanned.
        wrapper_name: Name of the synthetic per-file wrapper function.
        anonymous_delimiter: Character that marks synthetic function names.
        extension_sentinel: Variable name of the prototypal extension idiom.
        require_functions: Call names that introduce module requirements.

    Unset options fall back to :data:`jsdepgraph.config.settings`.
    """

    def __init__(
        self,
        registry: VertexRegistry,
        module: Vertex,
        *,
        wrapper_name: Optional[str] = None,
        anonymous_delimiter: Optional[str] = None,
        extension_sentinel: Optional[str] = None,
        require_functions: Optional[Sequence[str]] = None,
    ) -> None:
        self.registry = registry
        self.module = module
        self.wrapper_name = wrapper_name if wrapper_name is not None else settings.wrapper_function_name
        self.anonymous_delimiter = (
            anonymous_delimiter if anonymous_delimiter is not None else settings.anonymous_name_delimiter
        )
        self.extension_sentinel = (
            extension_sentinel if extension_sentinel is not None else settings.extension_sentinel
        )
        self.require_functions = frozenset(
            require_functions if require_functions is not None else settings.require_functions
        )

    # ------------------------------------------------------------------
    # Pattern hooks
    # ------------------------------------------------------------------

    def on_function(self, node: FunctionNode) -> None:
        """Emit ``declares`` for a named, non-synthetic function."""
        name = node.name
        if not name or name == self.wrapper_name:
            return
        if self.anonymous_delimiter and self.anonymous_delimiter in name:
            return
        self.emit(Relation.DECLARES, name)

    def on_call(self, node: CallNode) -> None:
        """Emit ``invokes`` for identifier callees, plus module requirements.

        ``require(["a", "b"], callback)`` and ``define([...], factory)``
        emit one ``requires`` edge per string element of the array.
        Member and computed callees (``obj.method()``) emit nothing.
        """
        if not isinstance(node.function, IdentNode):
            return
        name = node.function.name
        self.emit(Relation.INVOKES, name)

        if name not in self.require_functions or len(node.args) != 2:
            return
        paths = node.args[0]
        if not (isinstance(paths, LiteralNode) and paths.is_array):
            return
        for element in paths.value:
            if isinstance(element, LiteralNode) and isinstance(element.value, str):
                self.emit(Relation.REQUIRES, namify(element.value), kind=VertexKind.MODULE)

    def on_var(self, node: VarNode) -> None:
        """Emit ``extends`` for ``var self = <unary> Base(...)``.

        The match is exact: the initialiser must be a unary node whose
        operand is a call on a bare identifier.
        """
        if node.name.name != self.extension_sentinel:
            return
        init = node.init
        if not isinstance(init, UnaryNode) or not isinstance(init.rhs, CallNode):
            return
        callee = init.rhs.function
        if isinstance(callee, IdentNode):
            self.emit(Relation.EXTENDS, callee.name)

    # ------------------------------------------------------------------
    # Edge emission
    # ------------------------------------------------------------------

    def emit(self, relation: Relation, name: str, kind: VertexKind = VertexKind.SYMBOL) -> Edge:
        """Add a *relation* edge from the module to the vertex named *name*."""
        target = self.registry.find_or_create(name, kind)
        store = self.registry.store
        edge = store.add_edge(self.module, target, relation.value)
        store.set_property(edge, "relation", relation.value)
        logger.debug(
            "relation_emitted",
            source=self.module.name,
            relation=relation.value,
            target=name,
        )
        return edge
