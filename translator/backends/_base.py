"""BaseBackend — target-agnostic structured-text emission from flat SIL.

The engine walks the instruction sequence exactly once, with a single
instruction of lookahead, and rebuilds block nesting from a depth counter
plus a LIFO stack of pending blocks:

* a conditional jump opens a block and remembers the depth it opened at;
* the ``LABEL`` that the innermost pending branch targets closes it (or the
  unconditional ``JMP`` immediately in front of that label does);
* every other jump or label is just a marker line.

Subclasses only supply spellings (class constants) and framing hooks
(declarations, function headers, prologue/epilogue).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from .. import constants
from ..errors import MalformedControlFlow
from ..ir import (
    ARITHMETIC_OPCODES,
    COMPARISON_OPCODES,
    CONDITIONAL_JUMP_OPCODES,
    IRInstruction,
    Opcode,
    Operand,
)

logger = logging.getLogger(__name__)


class BlockKind(Enum):
    BRANCH = "branch"
    FUNCTION = "function"


@dataclass
class PendingBlock:
    kind: BlockKind
    label: str  # branch target label, or the function name
    depth: int  # depth the block was opened at
    has_statement: bool = False


@dataclass
class EmissionState:
    """Everything one ``emit`` call accumulates."""

    depth: int
    lines: list[str] = field(default_factory=list)
    blocks: list[PendingBlock] = field(default_factory=list)
    tested: Operand | None = None
    upcoming: IRInstruction | None = None
    defined_labels: set[str] = field(default_factory=set)
    forward_targets: set[str] = field(default_factory=set)
    function_header: tuple[str, list[str]] | None = None
    declared: set[str] = field(default_factory=set)
    implicit: dict[str, str] = field(default_factory=dict)
    scopes: dict[int, set[str]] = field(default_factory=dict)  # depth -> names declared there
    types: dict[str, str] = field(default_factory=dict)
    depth_trace: list[int] = field(default_factory=list)

    @property
    def in_function(self) -> bool:
        return any(block.kind == BlockKind.FUNCTION for block in self.blocks)

    @property
    def max_depth(self) -> int:
        return max(self.depth_trace, default=self.depth)


class BaseBackend:
    """Generic structured emitter; subclasses override the constants below."""

    NAME: str = ""

    BASE_DEPTH: int = 0
    COMMENT_PREFIX: str = "#"
    TERMINATOR: str = ""

    TRUE_LITERAL: str = "true"
    FALSE_LITERAL: str = "false"
    NULL_LITERAL: str = "null"

    OPERATOR_SPELLINGS: dict[Opcode, str] = {
        Opcode.ADD: "+",
        Opcode.SUB: "-",
        Opcode.MUL: "*",
        Opcode.DIV: "/",
        Opcode.LT: "<",
        Opcode.GT: ">",
        Opcode.LTE: "<=",
        Opcode.GTE: ">=",
        Opcode.EQ: "==",
        Opcode.NEQ: "!=",
    }

    IF_FALSE_TEMPLATE: str = "if not {test}:"
    IF_TRUE_TEMPLATE: str = "if {test}:"
    BLOCK_CLOSE: str = ""
    FUNCTION_CLOSE: str = ""
    EMPTY_BLOCK_STATEMENT: str = ""
    DEFAULT_TYPE: str = ""

    LABEL_MARKER: str = "Label {label}"
    JUMP_MARKER: str = "Jump to {label}"

    def __init__(self, indent: str = constants.DEFAULT_INDENT):
        self._indent = indent
        self._DISPATCH: dict[Opcode, Callable] = {
            Opcode.DECL: self._emit_decl,
            Opcode.MOV: self._emit_mov,
            Opcode.CMP: self._emit_cmp,
            Opcode.JMP_IF_FALSE: self._emit_conditional_jump,
            Opcode.JMP_IF_TRUE: self._emit_conditional_jump,
            Opcode.JMP: self._emit_jump,
            Opcode.LABEL: self._emit_label,
            Opcode.FUNC: self._emit_func,
            Opcode.PARAM: self._emit_param,
            Opcode.ENDFUNC: self._emit_endfunc,
            Opcode.RET: self._emit_return,
        }
        for opcode in ARITHMETIC_OPCODES | COMPARISON_OPCODES:
            self._DISPATCH[opcode] = self._emit_binary

    @property
    def handled_opcodes(self) -> frozenset[Opcode]:
        return frozenset(self._DISPATCH)

    # ── entry points ─────────────────────────────────────────────

    def render(self, instructions: list[IRInstruction] | tuple[IRInstruction, ...]) -> str:
        state = self.emit(instructions)
        lines = self.prologue(state) + state.lines + self.epilogue(state)
        logger.debug(
            "%s backend rendered %d instructions into %d lines",
            self.NAME,
            len(instructions),
            len(lines),
        )
        return "\n".join(lines)

    def emit(self, instructions: list[IRInstruction] | tuple[IRInstruction, ...]) -> EmissionState:
        """Run the engine over *instructions* and return the final state."""
        state = EmissionState(depth=self.BASE_DEPTH)
        for i, inst in enumerate(instructions):
            state.upcoming = instructions[i + 1] if i + 1 < len(instructions) else None
            if state.function_header is not None and inst.opcode != Opcode.PARAM:
                self._open_function(state)
            if state.tested is not None and inst.opcode not in CONDITIONAL_JUMP_OPCODES:
                raise MalformedControlFlow(
                    str(state.tested), "cmp not followed by a conditional jump"
                )
            self._DISPATCH[inst.opcode](inst, state)
            state.depth_trace.append(state.depth)
        self._finish(state)
        return state

    # ── framing hooks ────────────────────────────────────────────

    def prologue(self, state: EmissionState) -> list[str]:
        return []

    def epilogue(self, state: EmissionState) -> list[str]:
        return []

    def declaration(self, name: str, state: EmissionState) -> str | None:
        """Declaration line for *name*, or None when nothing needs emitting."""
        return f"{name} = {self.NULL_LITERAL}{self.TERMINATOR}"

    def function_header(self, name: str, params: list[str]) -> str:
        raise NotImplementedError

    def return_statement(self, value: str | None, state: EmissionState) -> str:
        if value is None:
            return f"return{self.TERMINATOR}"
        return f"return {value}{self.TERMINATOR}"

    def result_type(self, inst: IRInstruction, state: EmissionState) -> str:
        """Type name for a value assigned to a name that was never declared."""
        return ""

    # ── operand spelling ─────────────────────────────────────────

    def operand(self, op: Operand) -> str:
        if op.is_const:
            return self.literal(op.value)
        return str(op.value)

    def literal(self, value: Any) -> str:
        if value is None:
            return self.NULL_LITERAL
        if isinstance(value, bool):
            return self.TRUE_LITERAL if value else self.FALSE_LITERAL
        if isinstance(value, str):
            return json.dumps(value)
        if isinstance(value, float):
            return repr(value)
        return str(value)

    # ── line output ──────────────────────────────────────────────

    def _line(self, state: EmissionState, text: str):
        state.lines.append(f"{self._indent * state.depth}{text}")

    def _statement(self, state: EmissionState, text: str):
        self._line(state, text)
        if state.blocks:
            state.blocks[-1].has_statement = True

    def _comment(self, state: EmissionState, text: str):
        self._line(state, f"{self.COMMENT_PREFIX} {text}")

    def _note_reads(self, state: EmissionState, operands: list[Operand]):
        for op in operands:
            name = op.value
            if op.is_const or name in state.declared or name in state.implicit:
                continue
            self._hoist(state, name, self.DEFAULT_TYPE)

    def _hoist(self, state: EmissionState, name: str, ctype: str):
        state.implicit[name] = ctype
        state.types.setdefault(name, ctype)
        state.scopes.setdefault(self.BASE_DEPTH, set()).add(name)

    def _assign(self, state: EmissionState, inst: IRInstruction, value: str):
        self._note_reads(state, inst.operands)
        dest = inst.dest
        if dest not in state.declared and dest not in state.implicit:
            self._hoist(state, dest, self.result_type(inst, state))
        self._statement(state, f"{dest} = {value}{self.TERMINATOR}")

    # ── block stack ──────────────────────────────────────────────

    def _open_block(self, state: EmissionState, kind: BlockKind, label: str, opener: str):
        self._statement(state, opener)
        state.blocks.append(PendingBlock(kind=kind, label=label, depth=state.depth))
        state.depth += 1

    def _close_block(self, state: EmissionState) -> PendingBlock:
        block = state.blocks.pop()
        if not block.has_statement and self.EMPTY_BLOCK_STATEMENT:
            self._line(state, self.EMPTY_BLOCK_STATEMENT)
        state.depth = block.depth
        for depth in [d for d in state.scopes if d > block.depth]:
            del state.scopes[depth]
        closer = (
            self.FUNCTION_CLOSE if block.kind == BlockKind.FUNCTION else self.BLOCK_CLOSE
        )
        if closer:
            self._line(state, closer)
        return block

    def _closes_innermost_branch(self, state: EmissionState, label: str | None) -> bool:
        if not state.blocks:
            return False
        top = state.blocks[-1]
        return top.kind == BlockKind.BRANCH and top.label == label

    # ── instruction handlers ─────────────────────────────────────

    def _emit_decl(self, inst: IRInstruction, state: EmissionState):
        state.declared.add(inst.name)
        line = self.declaration(inst.name, state)
        state.scopes.setdefault(state.depth, set()).add(inst.name)
        if line is not None:
            self._statement(state, line)

    def _emit_mov(self, inst: IRInstruction, state: EmissionState):
        self._assign(state, inst, self.operand(inst.operands[0]))

    def _emit_binary(self, inst: IRInstruction, state: EmissionState):
        spelled = self.OPERATOR_SPELLINGS[inst.opcode]
        lhs, rhs = (self.operand(op) for op in inst.operands)
        self._assign(state, inst, f"{lhs} {spelled} {rhs}")

    def _emit_cmp(self, inst: IRInstruction, state: EmissionState):
        self._note_reads(state, inst.operands)
        state.tested = inst.operands[0]

    def _emit_conditional_jump(self, inst: IRInstruction, state: EmissionState):
        label = inst.label
        if state.tested is None:
            raise MalformedControlFlow(label, "conditional jump without a preceding cmp")
        if label in state.defined_labels:
            raise MalformedControlFlow(label, "conditional jump to an earlier label")
        template = (
            self.IF_FALSE_TEMPLATE
            if inst.opcode == Opcode.JMP_IF_FALSE
            else self.IF_TRUE_TEMPLATE
        )
        test = self.operand(state.tested)
        state.tested = None
        state.forward_targets.add(label)
        self._open_block(state, BlockKind.BRANCH, label, template.format(test=test))

    def _emit_jump(self, inst: IRInstruction, state: EmissionState):
        label = inst.label
        if label not in state.defined_labels:
            state.forward_targets.add(label)
        self._comment(state, self.JUMP_MARKER.format(label=label))
        upcoming = state.upcoming
        if (
            upcoming is not None
            and upcoming.opcode == Opcode.LABEL
            and self._closes_innermost_branch(state, upcoming.label)
        ):
            self._close_block(state)

    def _emit_label(self, inst: IRInstruction, state: EmissionState):
        label = inst.label
        if label in state.defined_labels:
            raise MalformedControlFlow(label, "label defined twice")
        if self._closes_innermost_branch(state, label):
            self._close_block(state)
        elif any(
            block.kind == BlockKind.BRANCH and block.label == label
            for block in state.blocks
        ):
            raise MalformedControlFlow(label, "label crosses an open block")
        state.defined_labels.add(label)
        state.forward_targets.discard(label)
        self._comment(state, self.LABEL_MARKER.format(label=label))

    def _emit_func(self, inst: IRInstruction, state: EmissionState):
        if state.in_function:
            raise MalformedControlFlow(inst.name, "function opened inside a function")
        state.function_header = (inst.name, [])

    def _emit_param(self, inst: IRInstruction, state: EmissionState):
        if state.function_header is None:
            raise MalformedControlFlow(inst.name, "parameter outside a function header")
        state.function_header[1].append(inst.name)
        state.declared.add(inst.name)

    def _open_function(self, state: EmissionState):
        name, params = state.function_header
        state.function_header = None
        self._open_block(
            state, BlockKind.FUNCTION, name, self.function_header(name, params)
        )
        state.scopes[state.depth] = set(params)

    def _emit_endfunc(self, inst: IRInstruction, state: EmissionState):
        if not state.blocks:
            raise MalformedControlFlow("endfunc", "no open function")
        top = state.blocks[-1]
        if top.kind != BlockKind.FUNCTION:
            raise MalformedControlFlow(top.label, "block still open at end of function")
        self._close_block(state)

    def _emit_return(self, inst: IRInstruction, state: EmissionState):
        self._note_reads(state, inst.operands)
        value = self.operand(inst.operands[0]) if inst.operands else None
        self._statement(state, self.return_statement(value, state))

    def _finish(self, state: EmissionState):
        if state.function_header is not None:
            self._open_function(state)
        if state.blocks:
            top = state.blocks[-1]
            raise MalformedControlFlow(top.label, f"{top.kind.value} block never closed")
        if state.forward_targets:
            missing = sorted(state.forward_targets)[0]
            raise MalformedControlFlow(missing, "jump to a label that is never defined")
