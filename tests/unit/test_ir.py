"""Tests for SIL instruction models and their text form."""

from __future__ import annotations

from translator.ir import (
    BINARY_OPERATOR_OPCODES,
    NO_SOURCE_LOCATION,
    IRInstruction,
    Opcode,
    Operand,
    SourceLocation,
    format_sil,
)


class TestOperand:
    def test_const_keeps_source_spelling(self):
        assert str(Operand.const(10, "10")) == "10"
        assert str(Operand.const("hi", "'hi'")) == "'hi'"

    def test_const_without_spelling_uses_javascript_form(self):
        assert str(Operand.const(True)) == "true"
        assert str(Operand.const(None)) == "null"
        assert str(Operand.const("hi")) == '"hi"'

    def test_var_and_temp_print_their_names(self):
        assert str(Operand.var("a")) == "a"
        assert str(Operand.temp("t0")) == "t0"

    def test_is_const(self):
        assert Operand.const(1).is_const
        assert not Operand.var("a").is_const


class TestInstructionText:
    def test_decl(self):
        assert str(IRInstruction(opcode=Opcode.DECL, name="x")) == "decl x"

    def test_mov(self):
        inst = IRInstruction(opcode=Opcode.MOV, dest="a", operands=[Operand.temp("t3")])
        assert str(inst) == "mov a, t3"

    def test_binary(self):
        inst = IRInstruction(
            opcode=Opcode.MUL,
            dest="t0",
            operands=[Operand.var("a"), Operand.var("b")],
        )
        assert str(inst) == "mul t0, a, b"

    def test_label(self):
        assert str(IRInstruction(opcode=Opcode.LABEL, label="L0")) == "L0:"

    def test_jumps(self):
        assert str(IRInstruction(opcode=Opcode.JMP_IF_FALSE, label="L0")) == "jmp_if_false L0"
        assert str(IRInstruction(opcode=Opcode.JMP_IF_TRUE, label="L2")) == "jmp_if_true L2"
        assert str(IRInstruction(opcode=Opcode.JMP, label="L1")) == "jmp L1"

    def test_cmp(self):
        inst = IRInstruction(opcode=Opcode.CMP, operands=[Operand.temp("t0")])
        assert str(inst) == "cmp t0"

    def test_function_framing(self):
        assert str(IRInstruction(opcode=Opcode.FUNC, name="f")) == "func f"
        assert str(IRInstruction(opcode=Opcode.PARAM, name="a")) == "param a"
        assert str(IRInstruction(opcode=Opcode.ENDFUNC)) == "endfunc"

    def test_return(self):
        assert str(IRInstruction(opcode=Opcode.RET)) == "ret"
        inst = IRInstruction(opcode=Opcode.RET, operands=[Operand.temp("t0")])
        assert str(inst) == "ret t0"


class TestSourceLocation:
    def test_unknown_location(self):
        assert NO_SOURCE_LOCATION.is_unknown()
        assert str(NO_SOURCE_LOCATION) == "<unknown>"

    def test_located_appends_span(self):
        loc = SourceLocation(start_line=1, start_col=0, end_line=1, end_col=5)
        inst = IRInstruction(opcode=Opcode.DECL, name="x", source_location=loc)
        assert inst.located() == "decl x  # 1:0-1:5"

    def test_located_without_span(self):
        inst = IRInstruction(opcode=Opcode.DECL, name="x")
        assert inst.located() == "decl x"


class TestFormatSil:
    def test_one_instruction_per_line(self):
        instructions = [
            IRInstruction(opcode=Opcode.DECL, name="x"),
            IRInstruction(opcode=Opcode.MOV, dest="x", operands=[Operand.const(10, "10")]),
        ]
        assert format_sil(instructions) == "decl x\nmov x, 10"

    def test_empty(self):
        assert format_sil([]) == ""


class TestOperatorTable:
    def test_every_supported_operator_maps_to_arithmetic_or_comparison(self):
        assert set(BINARY_OPERATOR_OPCODES) == {
            "+", "-", "*", "/", "<", ">", "<=", ">=", "==", "!=",
        }
