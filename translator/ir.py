"""IR Design — SIL, a flat three-address instruction sequence."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel


class Opcode(str, Enum):
    # Declarations / moves
    DECL = "DECL"
    MOV = "MOV"
    # Arithmetic
    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    DIV = "DIV"
    # Comparison
    LT = "LT"
    GT = "GT"
    LTE = "LTE"
    GTE = "GTE"
    EQ = "EQ"
    NEQ = "NEQ"
    # Control flow
    CMP = "CMP"
    JMP_IF_FALSE = "JMP_IF_FALSE"
    JMP_IF_TRUE = "JMP_IF_TRUE"
    JMP = "JMP"
    # Functions
    FUNC = "FUNC"
    PARAM = "PARAM"
    ENDFUNC = "ENDFUNC"
    RET = "RET"
    # Labels (pseudo-instruction)
    LABEL = "LABEL"


ARITHMETIC_OPCODES: frozenset[Opcode] = frozenset(
    {Opcode.ADD, Opcode.SUB, Opcode.MUL, Opcode.DIV}
)

COMPARISON_OPCODES: frozenset[Opcode] = frozenset(
    {Opcode.LT, Opcode.GT, Opcode.LTE, Opcode.GTE, Opcode.EQ, Opcode.NEQ}
)

CONDITIONAL_JUMP_OPCODES: frozenset[Opcode] = frozenset(
    {Opcode.JMP_IF_FALSE, Opcode.JMP_IF_TRUE}
)

BINARY_OPERATOR_OPCODES: dict[str, Opcode] = {
    "+": Opcode.ADD,
    "-": Opcode.SUB,
    "*": Opcode.MUL,
    "/": Opcode.DIV,
    "<": Opcode.LT,
    ">": Opcode.GT,
    "<=": Opcode.LTE,
    ">=": Opcode.GTE,
    "==": Opcode.EQ,
    "!=": Opcode.NEQ,
}


class SourceLocation(BaseModel):
    """Structured source span carried from syntax nodes onto instructions."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def is_unknown(self) -> bool:
        return (
            self.start_line == 0
            and self.start_col == 0
            and self.end_line == 0
            and self.end_col == 0
        )

    def __str__(self) -> str:
        if self.is_unknown():
            return "<unknown>"
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


NO_SOURCE_LOCATION = SourceLocation(start_line=0, start_col=0, end_line=0, end_col=0)


class OperandKind(str, Enum):
    CONST = "const"
    VAR = "var"
    TEMP = "temp"


class Operand(BaseModel):
    """Where an expression's value lives: a literal, a variable or a temporary.

    For CONST operands ``value`` is the Python value of the literal and
    ``raw`` its source spelling; for VAR and TEMP ``value`` is the name.
    """

    kind: OperandKind
    value: Any = None
    raw: str = ""

    @classmethod
    def const(cls, value: Any, raw: str = "") -> Operand:
        return cls(kind=OperandKind.CONST, value=value, raw=raw or _spell(value))

    @classmethod
    def var(cls, name: str) -> Operand:
        return cls(kind=OperandKind.VAR, value=name)

    @classmethod
    def temp(cls, name: str) -> Operand:
        return cls(kind=OperandKind.TEMP, value=name)

    @property
    def is_const(self) -> bool:
        return self.kind == OperandKind.CONST

    def __str__(self) -> str:
        if self.is_const:
            return self.raw
        return str(self.value)


def _spell(value: Any) -> str:
    """JavaScript spelling for a literal value that arrived without one."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value)
    return str(value)


class IRInstruction(BaseModel):
    opcode: Opcode
    name: str | None = None  # for DECL / FUNC / PARAM
    dest: str | None = None  # for MOV / arithmetic / comparison
    operands: list[Operand] = []
    label: str | None = None  # for LABEL / jump targets
    source_location: SourceLocation = NO_SOURCE_LOCATION

    def __str__(self) -> str:
        if self.opcode == Opcode.LABEL:
            return f"{self.label}:"
        fields: list[str] = []
        if self.name is not None:
            fields.append(self.name)
        if self.dest is not None:
            fields.append(self.dest)
        fields.extend(str(op) for op in self.operands)
        if self.label is not None:
            fields.append(self.label)
        mnemonic = self.opcode.value.lower()
        if not fields:
            return mnemonic
        return f"{mnemonic} {', '.join(fields)}"

    def located(self) -> str:
        """The SIL line with its source span appended, when known."""
        if self.source_location.is_unknown():
            return str(self)
        return f"{self}  # {self.source_location}"


def format_sil(instructions: list[IRInstruction] | tuple[IRInstruction, ...]) -> str:
    """Render an instruction sequence as SIL text, one instruction per line."""
    return "\n".join(str(inst) for inst in instructions)
