"""Tests for traversal coverage and failure behaviour of the tree walker."""

import pytest

from jsdepgraph.errors import NestingTooDeepError, UnsupportedSyntaxError
from jsdepgraph.models.graph import Relation, VertexKind
from jsdepgraph.models.syntax import (
    AccessNode,
    BinaryNode,
    Block,
    BlockStatement,
    BreakNode,
    CaseNode,
    CatchNode,
    ContinueNode,
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
    SwitchNode,
    TernaryNode,
    ThrowNode,
    TryNode,
    UnaryNode,
    VarNode,
    WhileNode,
)
from jsdepgraph.scanner.walker import TreeWalker
from tests.builders import array, call, module, relations, stmt


def invoked(store) -> list[str]:
    return [target for _, _, target in relations(store, Relation.INVOKES)]


class TestTraversal:
    def test_module_vertex_named_from_path(self, registry):
        walker = TreeWalker(registry, "src/widgets/button.view.js")
        assert walker.module_name == "button"
        assert registry.kinds_of("button") == [VertexKind.MODULE]

    def test_for_file(self, registry, tmp_path):
        path = tmp_path / "lib" / "util.js"
        walker = TreeWalker.for_file(registry, tmp_path, path)
        assert walker.module_path == "lib/util.js"
        assert walker.module_name == "util"

    def test_every_statement_shape_is_visited(self, registry, store):
        tree = module(
            VarNode(IdentNode("v"), call("varInit")),
            ReturnNode(call("returned")),
            IfNode(
                call("ifTest"),
                Block([stmt(call("ifPass"))]),
                Block([stmt(call("ifFail"))]),
            ),
            ForNode(
                init=call("forInit"),
                test=call("forTest"),
                modify=call("forModify"),
                body=Block([stmt(call("forBody"))]),
            ),
            WhileNode(call("whileTest"), Block([stmt(call("whileBody"))])),
            BlockStatement(Block([stmt(call("nested"))])),
            TryNode(
                body=Block([stmt(call("tryBody"))]),
                catch_blocks=[
                    Block([CatchNode(IdentNode("e"), call("catchGuard"), Block([stmt(call("catchBody"))]))])
                ],
                finally_body=Block([stmt(call("finallyBody"))]),
            ),
            BreakNode(IdentNode("outer")),
            ContinueNode(),
            ThrowNode(call("thrown")),
            SwitchNode(
                call("switchOn"),
                [
                    CaseNode(call("caseTest"), Block([stmt(call("caseBody"))])),
                    CaseNode(None, Block([stmt(call("defaultBody"))])),
                ],
            ),
        )

        TreeWalker(registry, "m.js").scan(tree)

        assert invoked(store) == [
            "varInit",
            "returned",
            "ifTest",
            "ifPass",
            "ifFail",
            "forInit",
            "forTest",
            "forModify",
            "forBody",
            "whileTest",
            "whileBody",
            "nested",
            "tryBody",
            "catchBody",
            "catchGuard",
            "finallyBody",
            "thrown",
            "switchOn",
            "caseTest",
            "caseBody",
            "defaultBody",
        ]

    def test_every_expression_shape_is_visited(self, registry, store):
        expression = array(
            ObjectNode([PropertyNode(call("key"), call("value"))]),
            AccessNode(call("base"), IdentNode("prop")),
            BinaryNode("+", call("left"), call("right")),
            UnaryNode("!", call("operand")),
            IndexNode(call("indexed"), call("index")),
            TernaryNode(call("test"), call("yes"), call("no")),
            LiteralNode(call("wrapped")),
            LiteralNode(RegexToken("^a+$", "gi")),
            FunctionNode(IdentNode("L:1"), [IdentNode("p")], Block([stmt(call("inBody"))])),
        )

        TreeWalker(registry, "m.js").scan(module(stmt(expression)))

        assert invoked(store) == [
            "key",
            "value",
            "base",
            "left",
            "right",
            "operand",
            "indexed",
            "index",
            "test",
            "yes",
            "no",
            "wrapped",
            "inBody",
        ]

    def test_absent_children_are_no_ops(self, registry, store):
        tree = module(
            IfNode(IdentNode("x")),
            ForNode(),
            WhileNode(IdentNode("x")),
            ReturnNode(),
            BreakNode(),
            VarNode(IdentNode("v")),
            CatchNode(),
            CaseNode(),
            TryNode(Block()),
            stmt(LiteralNode(None)),
            stmt(ObjectNode([PropertyNode(IdentNode("k"))])),
        )
        TreeWalker(registry, "m.js").scan(tree)
        assert store.edges() == []

    @pytest.mark.parametrize("value", ["text", 42, 4.2, True, False, None, []])
    def test_scalar_literals(self, registry, store, value):
        TreeWalker(registry, "m.js").scan(module(stmt(LiteralNode(value))))
        assert store.edges() == []


class Mystery:
    """A node class the walker does not know."""


class TestUnsupportedShapes:
    def test_unknown_statement_is_fatal(self, registry):
        with pytest.raises(UnsupportedSyntaxError) as info:
            TreeWalker(registry, "m.js").scan(module(Mystery()))
        assert isinstance(info.value.node, Mystery)
        assert "Mystery" in str(info.value)

    def test_unknown_expression_is_fatal(self, registry):
        with pytest.raises(UnsupportedSyntaxError):
            TreeWalker(registry, "m.js").scan(module(stmt(call("f", Mystery()))))

    def test_unknown_literal_value_is_fatal(self, registry):
        with pytest.raises(UnsupportedSyntaxError):
            TreeWalker(registry, "m.js").scan(module(stmt(LiteralNode(3 + 4j))))

    def test_statement_in_expression_position_is_fatal(self, registry):
        with pytest.raises(UnsupportedSyntaxError):
            TreeWalker(registry, "m.js").scan(module(stmt(ReturnNode())))

    def test_top_level_must_be_a_function(self, registry):
        with pytest.raises(UnsupportedSyntaxError):
            TreeWalker(registry, "m.js").scan(Block())

    def test_edges_before_failure_remain(self, registry, store):
        tree = module(
            stmt(call("before")),
            VarNode(IdentNode("f"), FunctionNode(IdentNode("f"))),
            Mystery(),
            stmt(call("after")),
        )
        with pytest.raises(UnsupportedSyntaxError):
            TreeWalker(registry, "m.js").scan(tree)

        assert relations(store) == [
            ("m", "invokes", "before"),
            ("m", "declares", "f"),
        ]
        assert "after" not in registry


class TestDepthLimit:
    @staticmethod
    def nested_unary(depth: int):
        expression = IdentNode("x")
        for _ in range(depth):
            expression = UnaryNode("!", expression)
        return expression

    def test_too_deep_raises(self, registry):
        walker = TreeWalker(registry, "m.js", max_depth=10)
        with pytest.raises(NestingTooDeepError) as info:
            walker.scan(module(stmt(self.nested_unary(20))))
        assert info.value.limit == 10
        assert isinstance(info.value, UnsupportedSyntaxError)

    def test_within_limit_passes(self, registry):
        walker = TreeWalker(registry, "m.js", max_depth=30)
        walker.scan(module(stmt(self.nested_unary(20))))

    def test_walker_can_be_reused_after_failure(self, registry, store):
        walker = TreeWalker(registry, "m.js", max_depth=10)
        with pytest.raises(NestingTooDeepError):
            walker.scan(module(stmt(self.nested_unary(20))))
        walker.scan(module(stmt(call("ok"))))
        assert invoked(store) == ["ok"]

    def test_binary_chain_counts_as_one_level(self, registry, store):
        expression = call("first")
        for i in range(500):
            expression = BinaryNode("+", expression, LiteralNode(f"p{i}"))
        expression = BinaryNode("+", expression, call("last"))
        walker = TreeWalker(registry, "m.js", max_depth=10)
        walker.scan(module(stmt(expression)))
        assert invoked(store) == ["first", "last"]
