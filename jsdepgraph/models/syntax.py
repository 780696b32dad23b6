"""Closed syntax model consumed by the relation walker.

The walker never sees raw parser output.  Parsers convert their trees
into these node classes, which expose only the children needed for
traversal.  The set is deliberately closed: the walker dispatches on the
exact class and rejects anything else.

Statements and expressions form two families; a :class:`Block` is a
plain statement list and belongs to neither.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


# ------------------------------------------------------------------
# Expressions
# ------------------------------------------------------------------


@dataclass
class IdentNode:
    """A bare identifier (``foo``, ``this``, a property name)."""

    name: str


@dataclass
class RegexToken:
    """Body and flags of a regular-expression literal."""

    expression: str
    options: str = ""


@dataclass
class LiteralNode:
    """A literal value.

    ``value`` is one of: ``str``, ``int``/``float``, ``bool``, ``None``,
    a nested expression, a ``list`` of expressions (array literal), or a
    :class:`RegexToken`.
    """

    value: object = None

    @property
    def is_array(self) -> bool:
        return isinstance(self.value, list)


@dataclass
class PropertyNode:
    """One ``key: value`` entry of an object literal."""

    key: "Expression"
    value: Optional["Expression"] = None


@dataclass
class ObjectNode:
    elements: list[PropertyNode] = field(default_factory=list)


@dataclass
class CallNode:
    """``function(args...)``."""

    function: "Expression"
    args: list["Expression"] = field(default_factory=list)


@dataclass
class AccessNode:
    """Member access ``base.property``."""

    base: "Expression"
    property: IdentNode


@dataclass
class IndexNode:
    """Computed member access ``base[index]``."""

    base: "Expression"
    index: "Expression"


@dataclass
class BinaryNode:
    """Binary operator, assignment or comma sequence."""

    operator: str
    lhs: "Expression"
    rhs: "Expression"


@dataclass
class UnaryNode:
    """Prefix/postfix operator, including ``new``."""

    operator: str
    rhs: "Expression"


@dataclass
class TernaryNode:
    test: "Expression"
    true_expression: "Expression"
    false_expression: "Expression"


@dataclass
class FunctionNode:
    """A function literal.  Also the top-level node of every file.

    Attributes:
        ident: The function's name; ``None`` for anonymous functions.
        parameters: Parameter identifiers in declaration order.
        body: Statements of the function body.
    """

    ident: Optional[IdentNode]
    parameters: list[IdentNode] = field(default_factory=list)
    body: Optional["Block"] = None

    @property
    def name(self) -> Optional[str]:
        return self.ident.name if self.ident is not None else None


Expression = Union[
    ObjectNode,
    IdentNode,
    CallNode,
    AccessNode,
    LiteralNode,
    FunctionNode,
    BinaryNode,
    UnaryNode,
    IndexNode,
    TernaryNode,
]


# ------------------------------------------------------------------
# Statements
# ------------------------------------------------------------------


@dataclass
class Block:
    statements: list["Statement"] = field(default_factory=list)


@dataclass
class VarNode:
    """``var name = init``; ``init`` is ``None`` for a bare declaration."""

    name: IdentNode
    init: Optional[Expression] = None


@dataclass
class ReturnNode:
    expression: Optional[Expression] = None


@dataclass
class IfNode:
    test: Expression
    pass_block: Optional[Block] = None
    fail_block: Optional[Block] = None


@dataclass
class ForNode:
    """Classic and ``for-in``/``for-of`` loops.

    ``init``, ``test`` and ``modify`` are always expressions when present.
    For ``for (k in o)`` the key is stored in ``init`` and the iterated
    object in ``modify``.
    """

    init: Optional[Expression] = None
    test: Optional[Expression] = None
    modify: Optional[Expression] = None
    body: Optional[Block] = None


@dataclass
class WhileNode:
    """``while`` and ``do ... while`` loops."""

    test: Expression
    body: Optional[Block] = None
    is_do_while: bool = False


@dataclass
class ExpressionStatement:
    expression: Expression


@dataclass
class BlockStatement:
    block: Block


@dataclass
class CatchNode:
    """A ``catch`` clause; ``condition`` is a guard expression if any."""

    exception: Optional[IdentNode] = None
    condition: Optional[Expression] = None
    body: Optional[Block] = None


@dataclass
class TryNode:
    """``try`` statement.

    Each entry of ``catch_blocks`` is a block holding a :class:`CatchNode`.
    """

    body: Block
    catch_blocks: list[Block] = field(default_factory=list)
    finally_body: Optional[Block] = None


@dataclass
class BreakNode:
    label: Optional[IdentNode] = None


@dataclass
class ContinueNode:
    label: Optional[IdentNode] = None


@dataclass
class ThrowNode:
    expression: Expression


@dataclass
class CaseNode:
    """One ``case``; ``test`` is ``None`` for ``default``."""

    test: Optional[Expression] = None
    body: Optional[Block] = None


@dataclass
class SwitchNode:
    expression: Expression
    cases: list[CaseNode] = field(default_factory=list)


Statement = Union[
    VarNode,
    ReturnNode,
    IfNode,
    ForNode,
    WhileNode,
    ExpressionStatement,
    BlockStatement,
    TryNode,
    CatchNode,
    BreakNode,
    ContinueNode,
    ThrowNode,
    SwitchNode,
    CaseNode,
]
