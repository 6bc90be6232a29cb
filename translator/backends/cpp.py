"""C++ backend — SIL rendered as one compilable ``main`` translation unit.

Names assigned without a declaration (temporaries, and variables the
source never declared) are hoisted to the top of ``main`` with a type
inferred from their first assignment.  A name declared again in the same
scope (sibling loops, repeated ``var``) is declared only once.  Functions
become generic lambdas capturing by reference, so they can see the hoisted
names.
"""

from __future__ import annotations

from typing import Any

from ._base import BaseBackend, EmissionState
from .. import constants
from ..ir import ARITHMETIC_OPCODES, COMPARISON_OPCODES, IRInstruction, Opcode, Operand

INCLUDES = ("#include <iostream>", "#include <string>")
NAMESPACE = "using namespace std;"

INT_TYPE = "int"
FLOAT_TYPE = "double"
BOOL_TYPE = "bool"
STRING_TYPE = "std::string"
POINTER_TYPE = "void*"


class CppBackend(BaseBackend):
    NAME = constants.BACKEND_CPP

    BASE_DEPTH = 1
    COMMENT_PREFIX = "//"
    TERMINATOR = ";"
    TRUE_LITERAL = "true"
    FALSE_LITERAL = "false"
    NULL_LITERAL = "nullptr"

    IF_FALSE_TEMPLATE = "if (!{test}) {{"
    IF_TRUE_TEMPLATE = "if ({test}) {{"
    BLOCK_CLOSE = "}"
    FUNCTION_CLOSE = "};"
    DEFAULT_TYPE = INT_TYPE

    def prologue(self, state: EmissionState) -> list[str]:
        lines = [*INCLUDES, NAMESPACE, "", "int main() {"]
        lines.extend(
            f"{self._indent * self.BASE_DEPTH}{ctype} {name};"
            for name, ctype in state.implicit.items()
        )
        return lines

    def epilogue(self, state: EmissionState) -> list[str]:
        return [f"{self._indent * self.BASE_DEPTH}return 0;", "}"]

    def declaration(self, name: str, state: EmissionState) -> str | None:
        if name in state.scopes.get(state.depth, ()):
            return None
        ctype = INT_TYPE
        upcoming = state.upcoming
        if (
            upcoming is not None
            and upcoming.opcode == Opcode.MOV
            and upcoming.dest == name
            and upcoming.operands[0].is_const
        ):
            ctype = self._literal_type(upcoming.operands[0].value)
        state.types[name] = ctype
        return f"{ctype} {name};"

    def function_header(self, name: str, params: list[str]) -> str:
        spelled = ", ".join(f"auto {param}" for param in params)
        return f"auto {name} = [&]({spelled}) {{"

    def return_statement(self, value: str | None, state: EmissionState) -> str:
        if value is None:
            return "return;" if state.in_function else "return 0;"
        return f"return {value};"

    def literal(self, value: Any) -> str:
        if isinstance(value, str):
            return f"{STRING_TYPE}({super().literal(value)})"
        return super().literal(value)

    def result_type(self, inst: IRInstruction, state: EmissionState) -> str:
        if inst.opcode in COMPARISON_OPCODES:
            return BOOL_TYPE
        operand_types = [self._operand_type(op, state) for op in inst.operands]
        if inst.opcode == Opcode.MOV:
            return operand_types[0]
        if inst.opcode == Opcode.ADD and STRING_TYPE in operand_types:
            return STRING_TYPE
        if inst.opcode in ARITHMETIC_OPCODES and FLOAT_TYPE in operand_types:
            return FLOAT_TYPE
        return INT_TYPE

    def _operand_type(self, op: Operand, state: EmissionState) -> str:
        if op.is_const:
            return self._literal_type(op.value)
        return state.types.get(op.value, INT_TYPE)

    @staticmethod
    def _literal_type(value: Any) -> str:
        if value is None:
            return POINTER_TYPE
        if isinstance(value, bool):
            return BOOL_TYPE
        if isinstance(value, str):
            return STRING_TYPE
        if isinstance(value, float):
            return FLOAT_TYPE
        return INT_TYPE
