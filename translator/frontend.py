"""JavaScriptSyntaxBuilder — tree-sitter JavaScript CST → syntax tree.

Builds the same frozen ``syntax`` models that ``from_estree`` produces, so
lowering never sees tree-sitter nodes.  Parentheses are unwrapped and
comments dropped; anything outside the grammar subset becomes an
``OpaqueNode`` carrying its ESTree kind name.
"""

from __future__ import annotations

import codecs
import logging
import re
from typing import Callable

from .errors import NestingTooDeep, SourceSyntaxError
from .ir import SourceLocation
from .parser import ParsedSource
from .syntax import (
    AssignmentExpression,
    BinaryExpression,
    BlockStatement,
    ExpressionStatement,
    ForStatement,
    FunctionDeclaration,
    Identifier,
    IfStatement,
    Literal,
    LogicalExpression,
    OpaqueNode,
    Program,
    ReturnStatement,
    SyntaxNode,
    VariableDeclaration,
    VariableDeclarator,
    WhileStatement,
)

logger = logging.getLogger(__name__)

LOGICAL_OPERATORS: frozenset[str] = frozenset({"&&", "||", "??"})

# sloppy-mode integers with a leading zero: 010 is octal, 08 is decimal
LEGACY_OCTAL = re.compile(r"0[0-7]+")
LEGACY_DECIMAL = re.compile(r"0[0-9]+")

SIMPLE_ESCAPES: dict[str, str] = {
    "\\n": "\n",
    "\\t": "\t",
    "\\r": "\r",
    "\\b": "\b",
    "\\f": "\f",
    "\\v": "\v",
    "\\0": "\0",
    "\\'": "'",
    '\\"': '"',
    "\\\\": "\\",
}

# tree-sitter kinds whose ESTree name is not the CamelCased kind
ESTREE_KIND_NAMES: dict[str, str] = {
    "array": "ArrayExpression",
    "object": "ObjectExpression",
    "arrow_function": "ArrowFunctionExpression",
    "function_expression": "FunctionExpression",
    "ternary_expression": "ConditionalExpression",
    "template_string": "TemplateLiteral",
    "do_statement": "DoWhileStatement",
    "subscript_expression": "MemberExpression",
    "regex": "RegExpLiteral",
    "this": "ThisExpression",
}


class JavaScriptSyntaxBuilder:
    """Converts one tree-sitter JavaScript parse tree into a ``Program``."""

    COMMENT_TYPES: frozenset[str] = frozenset({"comment", "hash_bang_line"})
    PAREN_EXPR_TYPE: str = "parenthesized_expression"

    def __init__(self):
        self._source: bytes = b""
        self._DISPATCH: dict[str, Callable] = {
            "program": self._build_program,
            "statement_block": self._build_block,
            "expression_statement": self._build_expression_statement,
            "lexical_declaration": self._build_var_declaration,
            "variable_declaration": self._build_var_declaration,
            "variable_declarator": self._build_declarator,
            "if_statement": self._build_if,
            "while_statement": self._build_while,
            "for_statement": self._build_for,
            "function_declaration": self._build_function_def,
            "return_statement": self._build_return,
            "identifier": self._build_identifier,
            "undefined": self._build_identifier,
            "number": self._build_number,
            "string": self._build_string,
            "true": self._build_boolean,
            "false": self._build_boolean,
            "null": self._build_null,
            "binary_expression": self._build_binop,
            "assignment_expression": self._build_assignment,
            "augmented_assignment_expression": self._build_assignment,
            self.PAREN_EXPR_TYPE: self._build_paren,
        }

    # ── entry point ──────────────────────────────────────────────

    def build(self, parsed: ParsedSource) -> SyntaxNode:
        self._source = parsed.source
        root = parsed.tree.root_node
        if parsed.has_error:
            bad = _first_error_node(root)
            what = f"missing {bad.type}" if bad.is_missing else "unexpected input"
            raise SourceSyntaxError(what, self._source_loc(bad))
        try:
            program = self._build(root)
        except RecursionError as exc:
            raise NestingTooDeep("syntax tree construction") from exc
        logger.debug("Built syntax tree with %d top-level statements", len(program.body))
        return program

    # ── helpers ──────────────────────────────────────────────────

    def _node_text(self, node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def _source_loc(self, node) -> SourceLocation:
        s, e = node.start_point, node.end_point
        return SourceLocation(
            start_line=s[0] + 1,
            start_col=s[1],
            end_line=e[0] + 1,
            end_col=e[1],
        )

    def _statements(self, node) -> list[SyntaxNode]:
        return [
            self._build(child)
            for child in node.named_children
            if child.type not in self.COMMENT_TYPES
            and child.type != "empty_statement"
        ]

    def _first_named(self, node):
        return next(
            (c for c in node.named_children if c.type not in self.COMMENT_TYPES),
            None,
        )

    def _build(self, node) -> SyntaxNode:
        handler = self._DISPATCH.get(node.type)
        if handler is None:
            return self._build_opaque(node)
        return handler(node)

    def _build_optional(self, node) -> SyntaxNode | None:
        return self._build(node) if node is not None else None

    # ── statements ───────────────────────────────────────────────

    def _build_program(self, node) -> Program:
        return Program(body=self._statements(node), loc=self._source_loc(node))

    def _build_block(self, node) -> BlockStatement:
        return BlockStatement(body=self._statements(node), loc=self._source_loc(node))

    def _build_expression_statement(self, node) -> ExpressionStatement:
        return ExpressionStatement(
            expression=self._build(self._first_named(node)),
            loc=self._source_loc(node),
        )

    def _build_var_declaration(self, node) -> VariableDeclaration:
        return VariableDeclaration(
            kind=self._node_text(node.children[0]),
            declarations=[
                self._build(child)
                for child in node.named_children
                if child.type == "variable_declarator"
            ],
            loc=self._source_loc(node),
        )

    def _build_declarator(self, node) -> VariableDeclarator:
        return VariableDeclarator(
            id=self._build(node.child_by_field_name("name")),
            init=self._build_optional(node.child_by_field_name("value")),
            loc=self._source_loc(node),
        )

    def _build_if(self, node) -> IfStatement:
        alt_node = node.child_by_field_name("alternative")
        if alt_node is not None and alt_node.type == "else_clause":
            alt_node = self._first_named(alt_node)
        return IfStatement(
            test=self._build(node.child_by_field_name("condition")),
            consequent=self._build(node.child_by_field_name("consequence")),
            alternate=self._build_optional(alt_node),
            loc=self._source_loc(node),
        )

    def _build_while(self, node) -> WhileStatement:
        return WhileStatement(
            test=self._build(node.child_by_field_name("condition")),
            body=self._build(node.child_by_field_name("body")),
            loc=self._source_loc(node),
        )

    def _build_for(self, node) -> ForStatement:
        """Build a C-style for(init; test; update) loop from its header clauses.

        The grammar wraps the init and test clauses in statements
        (``expression_statement`` / ``empty_statement``); those wrappers are
        peeled off so the clauses come out as in ESTree.
        """
        update_node = node.child_by_field_name("increment")
        if update_node is None:
            update_node = node.child_by_field_name("update")
        return ForStatement(
            init=self._for_clause(node.child_by_field_name("initializer")),
            test=self._for_clause(node.child_by_field_name("condition")),
            update=self._for_clause(update_node),
            body=self._build(node.child_by_field_name("body")),
            loc=self._source_loc(node),
        )

    def _for_clause(self, node) -> SyntaxNode | None:
        if node is None or node.type in ("empty_statement", ";"):
            return None
        if node.type == "expression_statement":
            return self._build(self._first_named(node))
        return self._build(node)

    def _build_function_def(self, node) -> FunctionDeclaration:
        params_node = node.child_by_field_name("parameters")
        params = (
            [
                self._build(child)
                for child in params_node.named_children
                if child.type not in self.COMMENT_TYPES
            ]
            if params_node is not None
            else []
        )
        return FunctionDeclaration(
            id=self._build(node.child_by_field_name("name")),
            params=params,
            body=self._build(node.child_by_field_name("body")),
            loc=self._source_loc(node),
        )

    def _build_return(self, node) -> ReturnStatement:
        return ReturnStatement(
            argument=self._build_optional(self._first_named(node)),
            loc=self._source_loc(node),
        )

    # ── expressions ──────────────────────────────────────────────

    def _build_identifier(self, node) -> Identifier:
        return Identifier(name=self._node_text(node), loc=self._source_loc(node))

    def _build_number(self, node) -> SyntaxNode:
        raw = self._node_text(node)
        if raw.endswith("n"):
            return OpaqueNode(type="BigIntLiteral", loc=self._source_loc(node))
        digits = raw.replace("_", "")
        value: int | float
        if LEGACY_OCTAL.fullmatch(digits):
            value = int(digits, 8)
        elif LEGACY_DECIMAL.fullmatch(digits):
            value = int(digits, 10)
        else:
            try:
                value = int(digits, 0)
            except ValueError:
                value = float(digits)
        return Literal(value=value, raw=raw, loc=self._source_loc(node))

    def _build_string(self, node) -> Literal:
        parts: list[str] = []
        for child in node.named_children:
            text = self._node_text(child)
            if child.type == "escape_sequence":
                parts.append(_decode_escape(text))
            else:
                parts.append(text)
        return Literal(
            value="".join(parts), raw=self._node_text(node), loc=self._source_loc(node)
        )

    def _build_boolean(self, node) -> Literal:
        return Literal(
            value=node.type == "true", raw=node.type, loc=self._source_loc(node)
        )

    def _build_null(self, node) -> Literal:
        return Literal(value=None, raw="null", loc=self._source_loc(node))

    def _build_binop(self, node) -> SyntaxNode:
        op_node = node.child_by_field_name("operator")
        if op_node is None:
            op_node = node.children[1]
        operator = self._node_text(op_node)
        cls = LogicalExpression if operator in LOGICAL_OPERATORS else BinaryExpression
        return cls(
            operator=operator,
            left=self._build(node.child_by_field_name("left")),
            right=self._build(node.child_by_field_name("right")),
            loc=self._source_loc(node),
        )

    def _build_assignment(self, node) -> AssignmentExpression:
        op_node = node.child_by_field_name("operator")
        operator = self._node_text(op_node) if op_node is not None else "="
        return AssignmentExpression(
            operator=operator,
            left=self._build(node.child_by_field_name("left")),
            right=self._build(node.child_by_field_name("right")),
            loc=self._source_loc(node),
        )

    def _build_paren(self, node) -> SyntaxNode:
        return self._build(self._first_named(node))

    def _build_opaque(self, node) -> OpaqueNode:
        return OpaqueNode(type=estree_kind_name(node.type), loc=self._source_loc(node))


def estree_kind_name(ts_type: str) -> str:
    """ESTree-style kind name for a tree-sitter node type."""
    if ts_type in ESTREE_KIND_NAMES:
        return ESTREE_KIND_NAMES[ts_type]
    return "".join(part.capitalize() for part in ts_type.split("_"))


def _decode_escape(text: str) -> str:
    if text in SIMPLE_ESCAPES:
        return SIMPLE_ESCAPES[text]
    if text.startswith("\\u{"):
        return chr(int(text[3:-1], 16))
    if text.startswith(("\\u", "\\x")):
        return codecs.decode(text, "unicode_escape")
    # \<newline> line continuation and identity escapes
    return text[1:].lstrip("\r\n")


def _first_error_node(node):
    if node.is_error or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            return _first_error_node(child)
    return node
