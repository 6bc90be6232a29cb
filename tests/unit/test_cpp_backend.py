"""Tests for CppBackend — SIL rendered as a C++ translation unit."""

from __future__ import annotations

from translator.api import lower_source
from translator.backends.cpp import CppBackend

PRELUDE = [
    "#include <iostream>",
    "#include <string>",
    "using namespace std;",
    "",
    "int main() {",
]
EPILOGUE = ["    return 0;", "}"]


def _render(source: str) -> str:
    return CppBackend().render(lower_source(source))


def _body(source: str) -> list[str]:
    lines = _render(source).splitlines()
    assert lines[: len(PRELUDE)] == PRELUDE
    assert lines[-len(EPILOGUE) :] == EPILOGUE
    return lines[len(PRELUDE) : -len(EPILOGUE)]


class TestFraming:
    def test_empty_program(self):
        assert _render("") == "\n".join(PRELUDE + EPILOGUE)

    def test_declaration_typed_from_initializer(self):
        assert _body("let x = 10;") == ["    int x;", "    x = 10;"]
        assert _body("let f = 1.5;") == ["    double f;", "    f = 1.5;"]
        assert _body("let b = true;") == ["    bool b;", "    b = true;"]
        assert _body("let s = 'hi';") == [
            "    std::string s;",
            '    s = std::string("hi");',
        ]

    def test_declaration_without_literal_defaults_to_int(self):
        assert _body("let x;") == ["    int x;"]

    def test_null_literal_declares_a_pointer(self):
        assert _body("let x = null;") == ["    void* x;", "    x = nullptr;"]


class TestRedeclaration:
    def test_sibling_loops_declare_once(self):
        body = _body(
            "for (let i = 0; i < 2; i = i + 1) { } "
            "for (let i = 0; i < 3; i = i + 1) { }"
        )
        assert body.count("    int i;") == 1
        assert body.count("    i = 0;") == 2

    def test_repeated_var(self):
        assert _body("var x = 1; var x = 2;") == [
            "    int x;",
            "    x = 1;",
            "    x = 2;",
        ]

    def test_inner_block_may_shadow(self):
        body = _body("let a = 1; if (a < 2) { let a = 3; }")
        assert body.count("    int a;") == 1
        assert "        int a;" in body

    def test_declared_again_after_block_closes(self):
        body = _body("if (c) { let a = 1; } if (c) { let a = 2; }")
        assert body.count("        int a;") == 2

    def test_parameter_not_redeclared(self):
        assert _body("function f(a) { var a = 1; }") == [
            "    auto f = [&](auto a) {",
            "        a = 1;",
            "    };",
        ]

    def test_hoisted_name_not_redeclared(self):
        body = _body("x = 1; var x = 2;")
        assert body.count("    int x;") == 1


class TestHoistedNames:
    def test_temporaries_declared_at_top_of_main(self):
        assert _body("let r = a + b < c;") == [
            "    int a;",
            "    int b;",
            "    int t0;",
            "    int c;",
            "    bool t1;",
            "    int r;",
            "    t0 = a + b;",
            "    t1 = t0 < c;",
            "    r = t1;",
        ]

    def test_float_arithmetic_is_double(self):
        body = _body("let x = 1.5; let y = x * 2;")
        assert "    double t0;" in body

    def test_declared_names_not_hoisted(self):
        body = _body("let x = 1; x = x + 1;")
        assert body.count("    int x;") == 1


class TestControlFlow:
    def test_if_else(self):
        assert _body("if (a < b) { a = 1; } else { a = 2; }") == [
            "    int a;",
            "    int b;",
            "    bool t0;",
            "    t0 = a < b;",
            "    if (!t0) {",
            "        a = 1;",
            "        // Jump to L1",
            "    }",
            "    // Label L0",
            "    a = 2;",
            "    // Label L1",
        ]

    def test_or_uses_direct_condition(self):
        assert "    if (a) {" in _body("c = a || b;")

    def test_empty_block_needs_no_filler(self):
        assert _body("if (a) { }") == [
            "    int a;",
            "    if (!a) {",
            "    }",
            "    // Label L0",
        ]


class TestFunctions:
    def test_function_as_lambda(self):
        assert _body("function add(a, b) { return a + b; }") == [
            "    int t0;",
            "    auto add = [&](auto a, auto b) {",
            "        t0 = a + b;",
            "        return t0;",
            "    };",
        ]

    def test_no_parameters(self):
        assert "    auto f = [&]() {" in _body("function f() { return; }")

    def test_empty_return_inside_function(self):
        assert "        return;" in _body("function f() { return; }")

    def test_empty_return_at_top_level(self):
        assert _body("return;") == ["    return 0;"]
