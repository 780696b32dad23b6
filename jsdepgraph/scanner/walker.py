"""Recursive walker over the closed JavaScript syntax model.

One :class:`TreeWalker` is created per source file.  It is bound to the
file's module vertex and, when :meth:`TreeWalker.scan` is called with the
file's top-level function, visits every statement and expression in
source order.  Relations are written to the graph as a side effect by a
:class:`~jsdepgraph.scanner.relations.RelationEmitter`.

Dispatch is on the exact node class.  A class outside the known set
raises :class:`~jsdepgraph.errors.UnsupportedSyntaxError` rather than
being skipped, so coverage gaps show up as failures instead of missing
edges.
"""

from __future__ import annotations

import contextlib
import pathlib
from typing import Any, Callable, Iterator, Optional

from jsdepgraph.config import settings
from jsdepgraph.errors import NestingTooDeepError, UnsupportedSyntaxError
from jsdepgraph.graph.registry import VertexRegistry
from jsdepgraph.models.graph import VertexKind
from jsdepgraph.models.syntax import (
    AccessNode,
    BinaryNode,
    Block,
    BlockStatement,
    BreakNode,
    CallNode,
    CaseNode,
    CatchNode,
    ContinueNode,
    Expression,
    ExpressionStatement,
    ForNode,
    FunctionNode,
    IdentNode,
    IfNode,
    IndexNode,
    LiteralNode,
    ObjectNode,
    PropertyNode,
    RegexToken,
    ReturnNode,
    Statement,
    SwitchNode,
    TernaryNode,
    ThrowNode,
    TryNode,
    UnaryNode,
    VarNode,
    WhileNode,
)
from jsdepgraph.scanner.naming import make_relative, namify
from jsdepgraph.scanner.relations import RelationEmitter


class TreeWalker:
    """Walks one file's syntax tree and emits its relations.

    Args:
        registry: Vertex registry shared by the whole scan run.
        module_path: Repo-relative path of the file; its canonical name
            becomes the module vertex.
        max_depth: Deepest nesting level visited before giving up.
            Defaults to :pyattr:`jsdepgraph.config.Settings.max_depth`.
        **emitter_options: Forwarded to :class:`RelationEmitter`.
    """

    def __init__(
        self,
        registry: VertexRegistry,
        module_path: str,
        *,
        max_depth: Optional[int] = None,
        **emitter_options: Any,
    ) -> None:
        self.registry = registry
        self.module_path = module_path
        self.module_name = namify(module_path)
        self.module = registry.find_or_create(self.module_name, VertexKind.MODULE)
        self.emitter = RelationEmitter(registry, self.module, **emitter_options)
        self.max_depth = max_depth if max_depth is not None else settings.max_depth
        self._depth = 0

        self._statement_handlers: dict[type, Callable[[Any], None]] = {
            VarNode: self._visit_var,
            ReturnNode: self._visit_return,
            IfNode: self._visit_if,
            ForNode: self._visit_for,
            WhileNode: self._visit_while,
            ExpressionStatement: self._visit_expression_statement,
            BlockStatement: self._visit_block_statement,
            TryNode: self._visit_try,
            CatchNode: self._visit_catch,
            BreakNode: self._visit_break,
            ContinueNode: self._visit_continue,
            ThrowNode: self._visit_throw,
            SwitchNode: self._visit_switch,
            CaseNode: self._visit_case,
        }
        self._expression_handlers: dict[type, Callable[[Any], None]] = {
            ObjectNode: self._visit_object,
            IdentNode: self.visit_ident,
            CallNode: self._visit_call,
            AccessNode: self._visit_access,
            LiteralNode: self._visit_literal,
            FunctionNode: self.visit_function,
            BinaryNode: self._visit_binary,
            UnaryNode: self._visit_unary,
            IndexNode: self._visit_index,
            TernaryNode: self._visit_ternary,
        }

    @classmethod
    def for_file(
        cls,
        registry: VertexRegistry,
        root: pathlib.Path,
        file_path: pathlib.Path,
        **kwargs: Any,
    ) -> TreeWalker:
        """Build a walker for *file_path* inside the repository *root*."""
        return cls(registry, make_relative(root, file_path), **kwargs)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(self, node: FunctionNode) -> None:
        """Walk the file's top-level function and emit its relations.

        Raises:
            UnsupportedSyntaxError: If a node outside the known set is
                reached.  Relations emitted up to that point stay in the
                graph.
        """
        if type(node) is not FunctionNode:
            raise UnsupportedSyntaxError(node, f"Expected a top-level FunctionNode, got {type(node).__name__}")
        self._depth = 0
        self.visit_function(node)

    def visit_function(self, node: FunctionNode) -> None:
        with self._descend(node):
            self.emitter.on_function(node)
            self.visit_block(node.body)
            self.visit_ident(node.ident)
            for param in node.parameters:
                self.visit_ident(param)

    def visit_block(self, block: Optional[Block]) -> None:
        if block is None:
            return
        for statement in block.statements:
            self.visit_statement(statement)

    def visit_statement(self, statement: Statement) -> None:
        handler = self._statement_handlers.get(type(statement))
        if handler is None:
            raise UnsupportedSyntaxError(statement)
        with self._descend(statement):
            handler(statement)

    def visit_expression(self, expression: Optional[Expression]) -> None:
        if expression is None:
            return
        handler = self._expression_handlers.get(type(expression))
        if handler is None:
            raise UnsupportedSyntaxError(expression)
        with self._descend(expression):
            handler(expression)

    def visit_ident(self, node: Optional[IdentNode]) -> None:
        # Identifiers carry no relation on their own.
        return None

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _visit_var(self, node: VarNode) -> None:
        self.emitter.on_var(node)
        self.visit_ident(node.name)
        self.visit_expression(node.init)

    def _visit_return(self, node: ReturnNode) -> None:
        self.visit_expression(node.expression)

    def _visit_if(self, node: IfNode) -> None:
        self.visit_expression(node.test)
        self.visit_block(node.pass_block)
        self.visit_block(node.fail_block)

    def _visit_for(self, node: ForNode) -> None:
        self.visit_expression(node.init)
        self.visit_expression(node.test)
        self.visit_expression(node.modify)
        self.visit_block(node.body)

    def _visit_while(self, node: WhileNode) -> None:
        self.visit_expression(node.test)
        self.visit_block(node.body)

    def _visit_expression_statement(self, node: ExpressionStatement) -> None:
        self.visit_expression(node.expression)

    def _visit_block_statement(self, node: BlockStatement) -> None:
        self.visit_block(node.block)

    def _visit_try(self, node: TryNode) -> None:
        self.visit_block(node.body)
        for block in node.catch_blocks:
            self.visit_block(block)
        self.visit_block(node.finally_body)

    def _visit_catch(self, node: CatchNode) -> None:
        self.visit_block(node.body)
        self.visit_ident(node.exception)
        self.visit_expression(node.condition)

    def _visit_break(self, node: BreakNode) -> None:
        self.visit_ident(node.label)

    def _visit_continue(self, node: ContinueNode) -> None:
        self.visit_ident(node.label)

    def _visit_throw(self, node: ThrowNode) -> None:
        self.visit_expression(node.expression)

    def _visit_switch(self, node: SwitchNode) -> None:
        self.visit_expression(node.expression)
        for case in node.cases:
            self.visit_statement(case)

    def _visit_case(self, node: CaseNode) -> None:
        self.visit_expression(node.test)
        self.visit_block(node.body)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _visit_object(self, node: ObjectNode) -> None:
        for prop in node.elements:
            self._visit_property(prop)

    def _visit_property(self, node: PropertyNode) -> None:
        self.visit_expression(node.key)
        self.visit_expression(node.value)

    def _visit_call(self, node: CallNode) -> None:
        self.emitter.on_call(node)
        self.visit_expression(node.function)
        for arg in node.args:
            self.visit_expression(arg)

    def _visit_access(self, node: AccessNode) -> None:
        self.visit_expression(node.base)
        self.visit_ident(node.property)

    def _visit_literal(self, node: LiteralNode) -> None:
        value = node.value
        if value is None or isinstance(value, (str, bool, int, float)):
            return
        if isinstance(value, list):
            for element in value:
                self.visit_expression(element)
            return
        if isinstance(value, RegexToken):
            self._visit_regex(value)
            return
        if type(value) in self._expression_handlers:
            self.visit_expression(value)
            return
        raise UnsupportedSyntaxError(value)

    def _visit_regex(self, token: RegexToken) -> None:
        # Pattern and flags are read for completeness; no relation.
        _ = (token.expression, token.options)

    def _visit_binary(self, node: BinaryNode) -> None:
        # ``a + b + c`` nests to the left; walk the chain as one level.
        operands: list[Optional[Expression]] = []
        while type(node) is BinaryNode:
            operands.append(node.rhs)
            node = node.lhs
        self.visit_expression(node)
        for operand in reversed(operands):
            self.visit_expression(operand)

    def _visit_unary(self, node: UnaryNode) -> None:
        self.visit_expression(node.rhs)

    def _visit_index(self, node: IndexNode) -> None:
        self.visit_expression(node.base)
        self.visit_expression(node.index)

    def _visit_ternary(self, node: TernaryNode) -> None:
        self.visit_expression(node.test)
        self.visit_expression(node.true_expression)
        self.visit_expression(node.false_expression)

    # ------------------------------------------------------------------
    # Depth guard
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _descend(self, node: object) -> Iterator[None]:
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise NestingTooDeepError(node, self.max_depth)
            yield
        finally:
            self._depth -= 1
