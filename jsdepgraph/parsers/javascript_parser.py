"""Tree-sitter based parser for JavaScript source files.

Converts the concrete syntax tree produced by ``tree-sitter-javascript``
into the closed syntax model walked by
:class:`~jsdepgraph.scanner.walker.TreeWalker`.  The whole file becomes
the body of one synthetic wrapper function.

Conversions worth knowing about:

- ``function foo() {}`` becomes ``var foo = function foo() {}``.
- Anonymous functions and arrow functions are named ``L:<line>``.
- ``new X(args)`` becomes a ``new`` unary node around a call.
- Assignments and comma sequences become binary nodes.  Long
  left-associative chains (``a + b + c ...``) are converted iteratively.
- Getters, setters and method shorthand in object literals become
  properties holding an anonymous function.
- String escapes are decoded, so ``'a\'b'`` is the text ``a'b``.
- ``var`` declarations in a ``for`` header are hoisted in front of the
  loop; ``for (k in o)`` stores ``k`` as the init and ``o`` as the
  modify expression.

Anything the model has no shape for (classes, destructuring, ES module
syntax, generators) raises
:class:`~jsdepgraph.errors.UnsupportedSyntaxError`.
"""

from __future__ import annotations

import contextlib
import pathlib
import threading
from typing import Callable, Iterable, Iterator, Optional

import structlog
import tree_sitter_javascript as tsjavascript
from tree_sitter import Language, Node, Parser

from jsdepgraph.config import settings
from jsdepgraph.errors import NestingTooDeepError, SourceParseError, UnsupportedSyntaxError
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
from jsdepgraph.parsers.base import BaseLanguageParser

logger = structlog.get_logger(__name__)

JS_LANGUAGE = Language(tsjavascript.language())

# Statements that carry nothing to walk.
_DROPPED_STATEMENTS = frozenset({"empty_statement", "debugger_statement", "comment", "hash_bang_line"})

_DECLARATIONS = frozenset({"variable_declaration", "lexical_declaration"})


class JavaScriptParser(BaseLanguageParser):
    """Parses JavaScript files into the relation walker's syntax model.

    Tree-sitter parsers are not thread-safe, so each thread gets its own.

    Args:
        repo_root: Repository root for relative path computation.
        wrapper_name: Name of the synthetic function wrapping each file.
            Defaults to :pyattr:`jsdepgraph.config.Settings.wrapper_function_name`.
        max_depth: Deepest syntax nesting converted before raising
            :class:`~jsdepgraph.errors.NestingTooDeepError`.  Defaults to
            :pyattr:`jsdepgraph.config.Settings.max_depth`.
    """

    def __init__(
        self,
        repo_root: pathlib.Path,
        wrapper_name: Optional[str] = None,
        max_depth: Optional[int] = None,
    ) -> None:
        super().__init__(repo_root)
        self.wrapper_name = wrapper_name or settings.wrapper_function_name
        self.max_depth = max_depth if max_depth is not None else settings.max_depth
        self.anonymous_delimiter = settings.anonymous_name_delimiter
        self._local = threading.local()

        self._statement_converters: dict[str, Callable[[Node], list[Statement]]] = {
            "expression_statement": self._expression_statement,
            "variable_declaration": self._declaration,
            "lexical_declaration": self._declaration,
            "function_declaration": self._function_declaration,
            "return_statement": self._return_statement,
            "if_statement": self._if_statement,
            "for_statement": self._for_statement,
            "for_in_statement": self._for_in_statement,
            "while_statement": self._while_statement,
            "do_statement": self._do_statement,
            "statement_block": self._statement_block,
            "try_statement": self._try_statement,
            "break_statement": self._break_statement,
            "continue_statement": self._continue_statement,
            "throw_statement": self._throw_statement,
            "switch_statement": self._switch_statement,
            "labeled_statement": self._labeled_statement,
        }
        self._expression_converters: dict[str, Callable[[Node], Expression]] = {
            "identifier": self._ident,
            "property_identifier": self._ident,
            "shorthand_property_identifier": self._ident,
            "this": self._ident,
            "undefined": self._ident,
            "number": self._number,
            "string": self._string,
            "template_string": self._template_string,
            "true": lambda node: LiteralNode(True),
            "false": lambda node: LiteralNode(False),
            "null": lambda node: LiteralNode(None),
            "regex": self._regex,
            "array": self._array,
            "object": self._object,
            "call_expression": self._call,
            "new_expression": self._new,
            "member_expression": self._member,
            "subscript_expression": self._subscript,
            "binary_expression": self._binary,
            "assignment_expression": self._assignment,
            "augmented_assignment_expression": self._assignment,
            "sequence_expression": self._sequence,
            "unary_expression": self._unary,
            "update_expression": self._unary,
            "await_expression": self._await,
            "spread_element": self._spread,
            "ternary_expression": self._ternary,
            "parenthesized_expression": self._parenthesized,
            "function_expression": self._function,
            "function": self._function,
            "arrow_function": self._function,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_source(self, source: bytes, rel_path: str = "") -> FunctionNode:
        """Parse *source* and return the wrapped module body.

        Args:
            source: Raw bytes of the JavaScript file.
            rel_path: Repo-relative path, used in error messages only.

        Returns:
            A :class:`FunctionNode` named after the wrapper whose body
            holds every top-level statement.

        Raises:
            SourceParseError: If tree-sitter reports a syntax error.
            UnsupportedSyntaxError: If the file uses a construct outside
                the syntax model.
        """
        self._local.depth = 0
        tree = self._parser.parse(source)
        root = tree.root_node
        if root.has_error:
            line = _first_error_line(root)
            logger.debug("syntax_error", file=rel_path, line=line)
            raise SourceParseError(rel_path, line)

        body = Block(self._statements(self._named(root)))
        return FunctionNode(ident=IdentNode(self.wrapper_name), parameters=[], body=body)

    @property
    def _parser(self) -> Parser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = Parser(JS_LANGUAGE)
            self._local.parser = parser
        return parser

    @contextlib.contextmanager
    def _descend(self, node: Node) -> Iterator[None]:
        # Per-thread, like the tree-sitter parser itself.
        depth = getattr(self._local, "depth", 0) + 1
        self._local.depth = depth
        try:
            if depth > self.max_depth:
                raise NestingTooDeepError(node.type, self.max_depth)
            yield
        finally:
            self._local.depth = depth - 1

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _statements(self, nodes: Iterable[Node]) -> list[Statement]:
        result: list[Statement] = []
        for node in nodes:
            result.extend(self._statement(node))
        return result

    def _statement(self, node: Node) -> list[Statement]:
        if node.type in _DROPPED_STATEMENTS:
            return []
        converter = self._statement_converters.get(node.type)
        if converter is None:
            raise UnsupportedSyntaxError(node.type)
        with self._descend(node):
            return converter(node)

    def _block_of(self, node: Optional[Node]) -> Optional[Block]:
        """Wrap a statement (or a ``{...}`` block) as a :class:`Block`."""
        if node is None:
            return None
        if node.type == "statement_block":
            return Block(self._statements(self._named(node)))
        return Block(self._statement(node))

    def _expression_statement(self, node: Node) -> list[Statement]:
        return [ExpressionStatement(self._expression(self._first_named(node)))]

    def _declaration(self, node: Node) -> list[Statement]:
        # ``var a = 1, b = 2`` yields one VarNode per declarator.
        result: list[Statement] = []
        for declarator in self._named(node):
            if declarator.type != "variable_declarator":
                raise UnsupportedSyntaxError(declarator.type)
            name = declarator.child_by_field_name("name")
            if name is None or name.type != "identifier":
                raise UnsupportedSyntaxError(name.type if name is not None else declarator.type)
            value = declarator.child_by_field_name("value")
            result.append(VarNode(IdentNode(self._node_text(name)), self._optional_expression(value)))
        return result

    def _function_declaration(self, node: Node) -> list[Statement]:
        function = self._function(node)
        return [VarNode(IdentNode(function.name or ""), function)]

    def _return_statement(self, node: Node) -> list[Statement]:
        return [ReturnNode(self._optional_expression(self._first_named(node)))]

    def _throw_statement(self, node: Node) -> list[Statement]:
        return [ThrowNode(self._expression(self._first_named(node)))]

    def _if_statement(self, node: Node) -> list[Statement]:
        fail_block = None
        alternative = node.child_by_field_name("alternative")
        if alternative is not None:
            fail_block = self._block_of(self._first_named(alternative))
        return [
            IfNode(
                test=self._expression(node.child_by_field_name("condition")),
                pass_block=self._block_of(node.child_by_field_name("consequence")),
                fail_block=fail_block,
            )
        ]

    def _for_statement(self, node: Node) -> list[Statement]:
        hoisted: list[Statement] = []
        init: Optional[Expression] = None
        initializer = node.child_by_field_name("initializer")
        if initializer is not None and initializer.type in _DECLARATIONS:
            hoisted = self._declaration(initializer)
        else:
            init = self._loop_clause(initializer)

        loop = ForNode(
            init=init,
            test=self._loop_clause(node.child_by_field_name("condition")),
            modify=self._loop_clause(node.child_by_field_name("increment")),
            body=self._block_of(node.child_by_field_name("body")),
        )
        return [*hoisted, loop]

    def _loop_clause(self, node: Optional[Node]) -> Optional[Expression]:
        if node is None or node.type in ("empty_statement", ";"):
            return None
        if node.type == "expression_statement":
            return self._expression(self._first_named(node))
        return self._expression(node)

    def _for_in_statement(self, node: Node) -> list[Statement]:
        return [
            ForNode(
                init=self._expression(node.child_by_field_name("left")),
                modify=self._expression(node.child_by_field_name("right")),
                body=self._block_of(node.child_by_field_name("body")),
            )
        ]

    def _while_statement(self, node: Node) -> list[Statement]:
        return [
            WhileNode(
                test=self._expression(node.child_by_field_name("condition")),
                body=self._block_of(node.child_by_field_name("body")),
            )
        ]

    def _do_statement(self, node: Node) -> list[Statement]:
        return [
            WhileNode(
                test=self._expression(node.child_by_field_name("condition")),
                body=self._block_of(node.child_by_field_name("body")),
                is_do_while=True,
            )
        ]

    def _statement_block(self, node: Node) -> list[Statement]:
        return [BlockStatement(Block(self._statements(self._named(node))))]

    def _try_statement(self, node: Node) -> list[Statement]:
        catch_blocks: list[Block] = []
        handler = node.child_by_field_name("handler")
        if handler is not None:
            parameter = handler.child_by_field_name("parameter")
            if parameter is not None and parameter.type != "identifier":
                raise UnsupportedSyntaxError(parameter.type)
            catch = CatchNode(
                exception=IdentNode(self._node_text(parameter)) if parameter is not None else None,
                body=self._block_of(handler.child_by_field_name("body")),
            )
            catch_blocks.append(Block([catch]))

        finally_body = None
        finalizer = node.child_by_field_name("finalizer")
        if finalizer is not None:
            finally_body = self._block_of(finalizer.child_by_field_name("body"))

        return [
            TryNode(
                body=self._block_of(node.child_by_field_name("body")) or Block(),
                catch_blocks=catch_blocks,
                finally_body=finally_body,
            )
        ]

    def _break_statement(self, node: Node) -> list[Statement]:
        return [BreakNode(self._label(node))]

    def _continue_statement(self, node: Node) -> list[Statement]:
        return [ContinueNode(self._label(node))]

    def _label(self, node: Node) -> Optional[IdentNode]:
        label = node.child_by_field_name("label")
        return IdentNode(self._node_text(label)) if label is not None else None

    def _switch_statement(self, node: Node) -> list[Statement]:
        cases: list[CaseNode] = []
        body = node.child_by_field_name("body")
        for clause in self._named(body) if body is not None else []:
            if clause.type not in ("switch_case", "switch_default"):
                raise UnsupportedSyntaxError(clause.type)
            cases.append(
                CaseNode(
                    test=self._optional_expression(clause.child_by_field_name("value")),
                    body=Block(self._statements(clause.children_by_field_name("body"))),
                )
            )
        return [SwitchNode(self._expression(node.child_by_field_name("value")), cases)]

    def _labeled_statement(self, node: Node) -> list[Statement]:
        # Labels are not modelled; the labelled statement stands alone.
        return self._statement(node.child_by_field_name("body"))

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self, node: Optional[Node]) -> Expression:
        if node is None:
            raise UnsupportedSyntaxError("missing expression")
        converter = self._expression_converters.get(node.type)
        if converter is None:
            raise UnsupportedSyntaxError(node.type)
        with self._descend(node):
            return converter(node)

    def _optional_expression(self, node: Optional[Node]) -> Optional[Expression]:
        return self._expression(node) if node is not None else None

    def _ident(self, node: Node) -> IdentNode:
        return IdentNode(self._node_text(node))

    def _number(self, node: Node) -> LiteralNode:
        return LiteralNode(_parse_number(self._node_text(node)))

    def _string(self, node: Node) -> LiteralNode:
        return LiteralNode("".join(self._string_part(child) for child in node.named_children))

    def _string_part(self, node: Node) -> str:
        if node.type == "escape_sequence":
            return _decode_escape(self._node_text(node))
        return self._node_text(node)

    def _template_string(self, node: Node) -> Expression:
        # `a${b}c` becomes "a" + b + "c".
        parts: list[Expression] = []
        buffer = ""
        for child in self._named(node):
            if child.type == "template_substitution":
                if buffer:
                    parts.append(LiteralNode(buffer))
                    buffer = ""
                parts.append(self._expression(self._first_named(child)))
            else:
                buffer += self._string_part(child)
        if buffer or not parts:
            parts.append(LiteralNode(buffer))
        result = parts[0]
        for part in parts[1:]:
            result = BinaryNode("+", result, part)
        return result

    def _regex(self, node: Node) -> LiteralNode:
        pattern = node.child_by_field_name("pattern")
        flags = node.child_by_field_name("flags")
        return LiteralNode(
            RegexToken(
                expression=self._node_text(pattern) if pattern is not None else "",
                options=self._node_text(flags) if flags is not None else "",
            )
        )

    def _array(self, node: Node) -> LiteralNode:
        return LiteralNode([self._expression(child) for child in self._named(node)])

    def _object(self, node: Node) -> ObjectNode:
        elements: list[PropertyNode] = []
        for child in self._named(node):
            if child.type == "pair":
                elements.append(
                    PropertyNode(
                        key=self._property_key(child.child_by_field_name("key")),
                        value=self._expression(child.child_by_field_name("value")),
                    )
                )
            elif child.type == "shorthand_property_identifier":
                elements.append(PropertyNode(key=self._ident(child), value=self._ident(child)))
            elif child.type == "method_definition":
                # ``get x() {}``, ``set x(v) {}`` and ``run() {}``.
                elements.append(
                    PropertyNode(
                        key=self._property_key(child.child_by_field_name("name")),
                        value=self._function(child, anonymous=True),
                    )
                )
            elif child.type == "spread_element":
                elements.append(PropertyNode(key=self._spread(child)))
            else:
                raise UnsupportedSyntaxError(child.type)
        return ObjectNode(elements)

    def _property_key(self, node: Node) -> Expression:
        if node.type == "computed_property_name":
            return self._expression(self._first_named(node))
        return self._expression(node)

    def _call(self, node: Node) -> CallNode:
        function = self._expression(node.child_by_field_name("function"))
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            args: list[Expression] = []
        elif arguments.type == "template_string":
            args = [self._template_string(arguments)]
        else:
            args = [self._expression(child) for child in self._named(arguments)]
        return CallNode(function, args)

    def _new(self, node: Node) -> UnaryNode:
        arguments = node.child_by_field_name("arguments")
        args = [self._expression(child) for child in self._named(arguments)] if arguments is not None else []
        return UnaryNode("new", CallNode(self._expression(node.child_by_field_name("constructor")), args))

    def _member(self, node: Node) -> AccessNode:
        return AccessNode(
            base=self._expression(node.child_by_field_name("object")),
            property=IdentNode(self._node_text(node.child_by_field_name("property"))),
        )

    def _subscript(self, node: Node) -> IndexNode:
        return IndexNode(
            base=self._expression(node.child_by_field_name("object")),
            index=self._expression(node.child_by_field_name("index")),
        )

    def _binary(self, node: Node) -> BinaryNode:
        # Walk down the left spine without recursing so that long
        # concatenations in generated code do not count as nesting.
        spine = [node]
        left = node.child_by_field_name("left")
        while left is not None and left.type == "binary_expression":
            spine.append(left)
            left = left.child_by_field_name("left")

        result: Expression = self._expression(left)
        for parent in reversed(spine):
            result = BinaryNode(
                operator=self._operator(parent),
                lhs=result,
                rhs=self._expression(parent.child_by_field_name("right")),
            )
        return result

    def _assignment(self, node: Node) -> BinaryNode:
        # Plain ``=`` has no operator field; ``+=`` and friends do.
        return BinaryNode(
            operator=self._operator(node) or "=",
            lhs=self._expression(node.child_by_field_name("left")),
            rhs=self._expression(node.child_by_field_name("right")),
        )

    def _sequence(self, node: Node) -> Expression:
        """Convert ``a, b, c`` into a left-nested chain of ``,`` nodes."""
        expressions: list[Expression] = []
        pending = [node]
        while pending:
            current = pending.pop()
            if current.type == "sequence_expression":
                pending.extend(reversed(self._named(current)))
            else:
                expressions.append(self._expression(current))
        result = expressions[0]
        for expression in expressions[1:]:
            result = BinaryNode(",", result, expression)
        return result

    def _unary(self, node: Node) -> UnaryNode:
        return UnaryNode(self._operator(node), self._expression(node.child_by_field_name("argument")))

    def _await(self, node: Node) -> UnaryNode:
        return UnaryNode("await", self._expression(self._first_named(node)))

    def _spread(self, node: Node) -> UnaryNode:
        return UnaryNode("...", self._expression(self._first_named(node)))

    def _ternary(self, node: Node) -> TernaryNode:
        return TernaryNode(
            test=self._expression(node.child_by_field_name("condition")),
            true_expression=self._expression(node.child_by_field_name("consequence")),
            false_expression=self._expression(node.child_by_field_name("alternative")),
        )

    def _parenthesized(self, node: Node) -> Expression:
        return self._expression(self._first_named(node))

    def _function(self, node: Node, anonymous: bool = False) -> FunctionNode:
        """Convert a function declaration, expression or arrow function.

        Object methods pass *anonymous* so their property key does not
        become a declared name.
        """
        name = None if anonymous else node.child_by_field_name("name")
        if name is not None:
            ident = IdentNode(self._node_text(name))
        else:
            ident = IdentNode(f"L{self.anonymous_delimiter}{node.start_point[0] + 1}")

        parameters: list[IdentNode] = []
        single = node.child_by_field_name("parameter")
        if single is not None:
            parameters.append(self._parameter(single))
        formal = node.child_by_field_name("parameters")
        if formal is not None:
            parameters.extend(self._parameter(child) for child in self._named(formal))

        body = node.child_by_field_name("body")
        if body is None:
            raise UnsupportedSyntaxError(node.type)
        if body.type == "statement_block":
            block = Block(self._statements(self._named(body)))
        else:
            # Arrow function with an expression body.
            block = Block([ReturnNode(self._expression(body))])
        return FunctionNode(ident=ident, parameters=parameters, body=block)

    def _parameter(self, node: Node) -> IdentNode:
        if node.type != "identifier":
            raise UnsupportedSyntaxError(node.type)
        return self._ident(node)

    # ------------------------------------------------------------------
    # Utility
    # ------------------------------------------------------------------

    def _operator(self, node: Node) -> str:
        operator = node.child_by_field_name("operator")
        return self._node_text(operator) if operator is not None else ""

    @staticmethod
    def _named(node: Node) -> list[Node]:
        """Named children of *node*, without comments."""
        return [child for child in node.named_children if child.type != "comment"]

    def _first_named(self, node: Node) -> Optional[Node]:
        named = self._named(node)
        return named[0] if named else None


def _parse_number(text: str) -> int | float:
    """Parse a JavaScript numeric literal."""
    cleaned = text.replace("_", "").rstrip("n")
    try:
        return int(cleaned, 0)
    except ValueError:
        pass
    try:
        return float(cleaned)
    except ValueError:
        raise UnsupportedSyntaxError(text, f"Unsupported numeric literal: {text}") from None


_SINGLE_CHAR_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v"}


def _decode_escape(text: str) -> str:
    """Decode one backslash escape such as ``\\n``, ``\\x41`` or ``\\u{1F600}``."""
    body = text[1:]
    if not body or body[0] in "\r\n\u2028\u2029":
        # Line continuation.
        return ""
    head = body[0]
    if head == "x" and len(body) == 3:
        return chr(int(body[1:], 16))
    if head == "u" and len(body) > 1:
        code = int(body[2:-1] if body.startswith("u{") else body[1:], 16)
        if code > 0x10FFFF:
            raise UnsupportedSyntaxError(text, f"Code point out of range: {text}")
        return chr(code)
    if head in "01234567":
        # Legacy octal escape.
        return chr(int(body, 8))
    return _SINGLE_CHAR_ESCAPES.get(head, head)


def _first_error_line(root: Node) -> int:
    """Return the 1-indexed line of the first ERROR or MISSING node."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(reversed(node.children))
    return root.start_point[0] + 1
