"""Lowering — syntax tree → flat SIL instruction sequence."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from . import constants
from .errors import (
    InvalidAssignmentTarget,
    NestingTooDeep,
    UnsupportedConstruct,
    UnsupportedOperator,
)
from .ir import (
    BINARY_OPERATOR_OPCODES,
    NO_SOURCE_LOCATION,
    IRInstruction,
    Opcode,
    Operand,
)
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
    Program,
    ReturnStatement,
    SyntaxNode,
    VariableDeclaration,
    VariableDeclarator,
    WhileStatement,
)

logger = logging.getLogger(__name__)

LOGICAL_OPERATOR_JUMPS: dict[str, Opcode] = {
    "&&": Opcode.JMP_IF_FALSE,
    "||": Opcode.JMP_IF_TRUE,
}


@dataclass
class LoweringContext:
    """State of one lowering call: both counters and the growing sequence."""

    temp_counter: int = 0
    label_counter: int = 0
    instructions: list[IRInstruction] = field(default_factory=list)
    function_depth: int = 0

    def fresh_temp(self) -> str:
        name = f"{constants.TEMP_PREFIX}{self.temp_counter}"
        self.temp_counter += 1
        return name

    def fresh_label(self) -> str:
        name = f"{constants.LABEL_PREFIX}{self.label_counter}"
        self.label_counter += 1
        return name

    def emit(
        self,
        opcode: Opcode,
        *,
        name: str | None = None,
        dest: str | None = None,
        operands: Sequence[Operand] = (),
        label: str | None = None,
        node: SyntaxNode | None = None,
    ) -> IRInstruction:
        loc = node.loc if node is not None and node.loc is not None else None
        inst = IRInstruction(
            opcode=opcode,
            name=name,
            dest=dest,
            operands=list(operands),
            label=label,
            source_location=loc or NO_SOURCE_LOCATION,
        )
        self.instructions.append(inst)
        return inst


class Lowerer:
    """Depth-first lowering of a syntax tree into SIL.

    The lowerer itself is stateless between calls; everything a call
    accumulates lives in the ``LoweringContext`` threaded through the
    traversal, so one instance can serve any number of translations.
    """

    def __init__(self):
        self._STMT_DISPATCH: dict[type, Callable] = {
            Program: self._lower_body,
            BlockStatement: self._lower_body,
            ExpressionStatement: self._lower_expression_statement,
            VariableDeclaration: self._lower_var_declaration,
            VariableDeclarator: self._lower_declarator,
            IfStatement: self._lower_if,
            WhileStatement: self._lower_while,
            ForStatement: self._lower_for,
            FunctionDeclaration: self._lower_function_def,
            ReturnStatement: self._lower_return,
        }
        self._EXPR_DISPATCH: dict[type, Callable] = {
            Literal: self._lower_literal,
            Identifier: self._lower_identifier,
            BinaryExpression: self._lower_binop,
            LogicalExpression: self._lower_logical,
            AssignmentExpression: self._lower_assignment,
        }

    @property
    def handled_node_types(self) -> frozenset[type]:
        return frozenset(self._STMT_DISPATCH) | frozenset(self._EXPR_DISPATCH)

    # ── entry point ──────────────────────────────────────────────

    def lower(self, tree: SyntaxNode) -> list[IRInstruction]:
        ctx = LoweringContext()
        try:
            self._lower_stmt(tree, ctx)
        except RecursionError as exc:
            raise NestingTooDeep("lowering") from exc
        logger.debug(
            "Lowered %s into %d instructions (%d temporaries, %d labels)",
            tree.type,
            len(ctx.instructions),
            ctx.temp_counter,
            ctx.label_counter,
        )
        return ctx.instructions

    # ── dispatchers ──────────────────────────────────────────────

    def _lower_stmt(self, node: SyntaxNode, ctx: LoweringContext):
        handler = self._STMT_DISPATCH.get(type(node))
        if handler:
            handler(node, ctx)
            return
        # Expression in statement position: evaluate for its effects
        self._lower_expr(node, ctx)

    def _lower_expr(self, node: SyntaxNode, ctx: LoweringContext) -> Operand:
        """Lower an expression, return the operand holding its value."""
        handler = self._EXPR_DISPATCH.get(type(node))
        if handler is None:
            raise UnsupportedConstruct(node.type, node.loc)
        return handler(node, ctx)

    # ── structural passthrough ───────────────────────────────────

    def _lower_body(self, node, ctx: LoweringContext):
        for child in node.body:
            self._lower_stmt(child, ctx)

    def _lower_expression_statement(self, node: ExpressionStatement, ctx):
        self._lower_expr(node.expression, ctx)

    # ── declarations ─────────────────────────────────────────────

    def _lower_var_declaration(self, node: VariableDeclaration, ctx):
        for declarator in node.declarations:
            self._lower_stmt(declarator, ctx)

    def _lower_declarator(self, node: VariableDeclarator, ctx: LoweringContext):
        if not isinstance(node.id, Identifier):
            raise UnsupportedConstruct(node.id.type, node.id.loc)
        name = node.id.name
        ctx.emit(Opcode.DECL, name=name, node=node)
        if node.init is not None:
            value = self._lower_expr(node.init, ctx)
            ctx.emit(Opcode.MOV, dest=name, operands=[value], node=node)

    # ── expressions ──────────────────────────────────────────────

    def _lower_literal(self, node: Literal, ctx) -> Operand:
        return Operand.const(node.value, node.raw)

    def _lower_identifier(self, node: Identifier, ctx) -> Operand:
        return Operand.var(node.name)

    def _lower_binop(self, node: BinaryExpression, ctx: LoweringContext) -> Operand:
        opcode = BINARY_OPERATOR_OPCODES.get(node.operator)
        if opcode is None:
            raise UnsupportedOperator(node.operator, node.type, node.loc)
        lhs = self._lower_expr(node.left, ctx)
        rhs = self._lower_expr(node.right, ctx)
        result = ctx.fresh_temp()
        ctx.emit(opcode, dest=result, operands=[lhs, rhs], node=node)
        return Operand.temp(result)

    def _lower_logical(self, node: LogicalExpression, ctx: LoweringContext) -> Operand:
        """Short-circuit ``&&`` / ``||``.

        The right operand is evaluated only on the fall-through path; the
        short-circuit label takes the left operand as the result.
        """
        jump = LOGICAL_OPERATOR_JUMPS.get(node.operator)
        if jump is None:
            raise UnsupportedOperator(node.operator, node.type, node.loc)
        left = self._lower_expr(node.left, ctx)
        result = ctx.fresh_temp()
        short_circuit_label = ctx.fresh_label()
        end_label = ctx.fresh_label()

        ctx.emit(Opcode.CMP, operands=[left], node=node)
        ctx.emit(jump, label=short_circuit_label, node=node)
        right = self._lower_expr(node.right, ctx)
        ctx.emit(Opcode.MOV, dest=result, operands=[right], node=node)
        ctx.emit(Opcode.JMP, label=end_label, node=node)
        ctx.emit(Opcode.LABEL, label=short_circuit_label)
        ctx.emit(Opcode.MOV, dest=result, operands=[left], node=node)
        ctx.emit(Opcode.LABEL, label=end_label)
        return Operand.temp(result)

    def _lower_assignment(
        self, node: AssignmentExpression, ctx: LoweringContext
    ) -> Operand:
        if node.operator != "=":
            raise UnsupportedOperator(node.operator, node.type, node.loc)
        if not isinstance(node.left, Identifier):
            raise InvalidAssignmentTarget(node.left.type, node.left.loc or node.loc)
        value = self._lower_expr(node.right, ctx)
        target = node.left.name
        ctx.emit(Opcode.MOV, dest=target, operands=[value], node=node)
        return Operand.var(target)

    # ── control flow ─────────────────────────────────────────────

    def _lower_if(self, node: IfStatement, ctx: LoweringContext):
        condition = self._lower_expr(node.test, ctx)
        else_label = ctx.fresh_label()
        end_label = ctx.fresh_label() if node.alternate is not None else ""

        ctx.emit(Opcode.CMP, operands=[condition], node=node)
        ctx.emit(Opcode.JMP_IF_FALSE, label=else_label, node=node)
        self._lower_stmt(node.consequent, ctx)
        if node.alternate is not None:
            ctx.emit(Opcode.JMP, label=end_label, node=node)
            ctx.emit(Opcode.LABEL, label=else_label)
            self._lower_stmt(node.alternate, ctx)
            ctx.emit(Opcode.LABEL, label=end_label)
        else:
            ctx.emit(Opcode.LABEL, label=else_label)

    def _lower_while(self, node: WhileStatement, ctx: LoweringContext):
        start_label = ctx.fresh_label()
        end_label = ctx.fresh_label()

        ctx.emit(Opcode.LABEL, label=start_label)
        condition = self._lower_expr(node.test, ctx)
        ctx.emit(Opcode.CMP, operands=[condition], node=node)
        ctx.emit(Opcode.JMP_IF_FALSE, label=end_label, node=node)
        self._lower_stmt(node.body, ctx)
        ctx.emit(Opcode.JMP, label=start_label, node=node)
        ctx.emit(Opcode.LABEL, label=end_label)

    def _lower_for(self, node: ForStatement, ctx: LoweringContext):
        """Lower a C-style for(init; test; update) loop.

        Without a test clause the loop is unconditional; only a return in
        the body ends it.
        """
        if node.init is not None:
            self._lower_stmt(node.init, ctx)

        start_label = ctx.fresh_label()
        end_label = ctx.fresh_label()

        ctx.emit(Opcode.LABEL, label=start_label)
        if node.test is not None:
            condition = self._lower_expr(node.test, ctx)
            ctx.emit(Opcode.CMP, operands=[condition], node=node)
            ctx.emit(Opcode.JMP_IF_FALSE, label=end_label, node=node)
        self._lower_stmt(node.body, ctx)
        if node.update is not None:
            self._lower_expr(node.update, ctx)
        ctx.emit(Opcode.JMP, label=start_label, node=node)
        ctx.emit(Opcode.LABEL, label=end_label)

    # ── functions ────────────────────────────────────────────────

    def _lower_function_def(self, node: FunctionDeclaration, ctx: LoweringContext):
        if ctx.function_depth > 0:
            raise UnsupportedConstruct(
                node.type, node.loc, detail="nested inside a function"
            )
        if not isinstance(node.id, Identifier):
            raise UnsupportedConstruct(node.id.type, node.id.loc)

        ctx.emit(Opcode.FUNC, name=node.id.name, node=node)
        for param in node.params:
            if not isinstance(param, Identifier):
                raise UnsupportedConstruct(param.type, param.loc)
            ctx.emit(Opcode.PARAM, name=param.name, node=param)

        ctx.function_depth += 1
        self._lower_stmt(node.body, ctx)
        ctx.function_depth -= 1
        ctx.emit(Opcode.ENDFUNC, node=node)

    def _lower_return(self, node: ReturnStatement, ctx: LoweringContext):
        if node.argument is None:
            ctx.emit(Opcode.RET, node=node)
            return
        value = self._lower_expr(node.argument, ctx)
        ctx.emit(Opcode.RET, operands=[value], node=node)


def lower(tree: SyntaxNode) -> list[IRInstruction]:
    """Lower *tree* with a fresh context; raises on the first unsupported node."""
    return Lowerer().lower(tree)
