"""Tests for PythonBackend — SIL rendered as indented Python."""

from __future__ import annotations

from translator.api import lower_source
from translator.backends.python import PythonBackend


def _render(source: str) -> str:
    return PythonBackend().render(lower_source(source))


class TestStatements:
    def test_declaration_and_move(self):
        assert _render("let x = 10;") == "x = None\nx = 10"

    def test_arithmetic(self):
        assert _render("a = a * b + c;") == "t0 = a * b\nt1 = t0 + c\na = t1"

    def test_comparison(self):
        assert _render("x = a != b;") == "t0 = a != b\nx = t0"

    def test_literals(self):
        assert _render("a = true; b = false; c = null; d = 'hi';") == (
            'a = True\nb = False\nc = None\nd = "hi"'
        )

    def test_float_literal(self):
        assert _render("x = 1.5;") == "x = 1.5"


class TestControlFlow:
    def test_if_else(self):
        assert _render("if (a < b) { a = 1; } else { a = 2; }") == "\n".join(
            [
                "t0 = a < b",
                "if not t0:",
                "    a = 1",
                "    # Jump to L1",
                "# Label L0",
                "a = 2",
                "# Label L1",
            ]
        )

    def test_while(self):
        assert _render("while (a < 10) { a = a + 1; }") == "\n".join(
            [
                "# Label L0",
                "t0 = a < 10",
                "if not t0:",
                "    t1 = a + 1",
                "    a = t1",
                "    # Jump to L0",
                "# Label L1",
            ]
        )

    def test_empty_block_gets_pass(self):
        assert _render("if (a) { }") == "if not a:\n    pass\n# Label L0"

    def test_block_with_only_jump_marker_gets_pass(self):
        assert _render("if (a) { } else { x = 1; }") == "\n".join(
            [
                "if not a:",
                "    # Jump to L1",
                "    pass",
                "# Label L0",
                "x = 1",
                "# Label L1",
            ]
        )

    def test_or_uses_direct_condition(self):
        text = _render("c = a || b;")
        assert text.splitlines()[0] == "if a:"

    def test_nested_blocks_indent(self):
        text = _render("while (a) { if (b) { x = 1; } }")
        assert "        x = 1" in text.splitlines()


class TestFunctions:
    def test_function_with_parameters(self):
        assert _render("function add(a, b) { return a + b; }") == "\n".join(
            [
                "def add(a, b):",
                "    t0 = a + b",
                "    return t0",
            ]
        )

    def test_empty_function_gets_pass(self):
        assert _render("function f() {}") == "def f():\n    pass"

    def test_bare_return(self):
        assert _render("function f() { return; }") == "def f():\n    return"

    def test_code_after_function_returns_to_top_level(self):
        lines = _render("function f(x) { return x; } let y = 1;").splitlines()
        assert lines[-2:] == ["y = None", "y = 1"]
