"""Tests for the syntax tree models and the ESTree adapter."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from translator.errors import NestingTooDeep, SourceSyntaxError
from translator.syntax import (
    BinaryExpression,
    Identifier,
    Literal,
    OpaqueNode,
    Program,
    VariableDeclaration,
    from_estree,
)


def _ident(name: str) -> dict:
    return {"type": "Identifier", "name": name}


def _program(*body: dict) -> dict:
    return {"type": "Program", "body": list(body)}


class TestFromEstree:
    def test_variable_declaration(self):
        tree = from_estree(
            _program(
                {
                    "type": "VariableDeclaration",
                    "kind": "let",
                    "declarations": [
                        {
                            "type": "VariableDeclarator",
                            "id": _ident("x"),
                            "init": {"type": "Literal", "value": 10, "raw": "10"},
                        }
                    ],
                }
            )
        )
        assert isinstance(tree, Program)
        decl = tree.body[0]
        assert isinstance(decl, VariableDeclaration)
        assert decl.kind == "let"
        assert decl.declarations[0].id.name == "x"
        assert decl.declarations[0].init.value == 10

    def test_binary_expression(self):
        tree = from_estree(
            {
                "type": "BinaryExpression",
                "operator": "+",
                "left": _ident("a"),
                "right": {"type": "Literal", "value": 1, "raw": "1"},
            }
        )
        assert isinstance(tree, BinaryExpression)
        assert isinstance(tree.left, Identifier)
        assert isinstance(tree.right, Literal)

    def test_unknown_kind_becomes_opaque(self):
        tree = from_estree(
            _program(
                {
                    "type": "ExpressionStatement",
                    "expression": {
                        "type": "CallExpression",
                        "callee": _ident("foo"),
                        "arguments": [],
                    },
                }
            )
        )
        call = tree.body[0].expression
        assert isinstance(call, OpaqueNode)
        assert call.type == "CallExpression"

    def test_regex_literal_is_opaque(self):
        tree = from_estree(
            {"type": "Literal", "value": {}, "raw": "/a/", "regex": {"pattern": "a"}}
        )
        assert isinstance(tree, OpaqueNode)

    def test_estree_location(self):
        tree = from_estree(
            {
                "type": "Identifier",
                "name": "x",
                "loc": {
                    "start": {"line": 1, "column": 4},
                    "end": {"line": 1, "column": 5},
                },
            }
        )
        assert str(tree.loc) == "1:4-1:5"

    def test_missing_required_field_raises(self):
        with pytest.raises(SourceSyntaxError, match="malformed syntax tree"):
            from_estree({"type": "BinaryExpression", "operator": "+", "left": _ident("a")})

    def test_node_without_type_raises(self):
        with pytest.raises(SourceSyntaxError):
            from_estree({"name": "x"})

    def test_deep_tree_reports_nesting(self):
        expr = _ident("a")
        for _ in range(1500):
            expr = {
                "type": "BinaryExpression",
                "operator": "+",
                "left": expr,
                "right": _ident("a"),
            }
        with pytest.raises(NestingTooDeep):
            from_estree(_program({"type": "ExpressionStatement", "expression": expr}))


class TestNodesAreReadOnly:
    def test_frozen(self):
        node = Identifier(name="x")
        with pytest.raises(ValidationError):
            node.name = "y"

    def test_opaque_keeps_kind_name(self):
        node = OpaqueNode(type="BreakStatement")
        assert node.type == "BreakStatement"
