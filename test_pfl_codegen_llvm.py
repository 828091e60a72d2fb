"""Tests for LLVM IR generation."""

import pytest
from llvmlite import ir

from pfl_codegen_llvm import build_module_for_definition, build_module_for_expression
from pfl_core import parse_expr


class TestBuildModule:
    def test_simple_function(self):
        module = build_module_for_definition("sin(x) + x^2", func_name="g")
        assert isinstance(module, ir.Module)
        text = str(module)
        assert '"g"' in text
        assert '"sin"' in text
        assert "llvm.pow.f64" in text
        assert "ret double" in text

    def test_piecewise_uses_branches(self):
        module = build_module_for_definition("[[x + 5, x < -4], [x^2, -4 <= x < 1]]")
        text = str(module)
        assert "phi double" in text
        assert "fcmp olt" in text
        assert "fcmp ole" in text
        assert "br i1" in text

    def test_not_equal_piece(self):
        text = str(build_module_for_definition("[[x^2, x != 1], [3, x = 1]]"))
        # !(x == 1) is true when x is NaN
        assert "fcmp ueq" in text
        assert "fcmp oeq" in text

    def test_library_aliases(self):
        text = str(build_module_for_definition("abs(x) + ln(x) + log(x, 2) + nthroot(x, 3)"))
        assert '"fabs"' in text
        assert '"log"' in text
        assert '"pow"' in text
        assert "select" in text

    def test_logical_or(self):
        text = str(build_module_for_expression(parse_expr("x < -1 || 1 < x ? (1) : (0)")))
        assert "ortmp" in text
        assert "phi double" in text

    def test_libm_declared_once(self):
        module = build_module_for_definition("sin(x) + sin(2 * x)")
        assert str(module).count('declare double @"sin"') == 1

    def test_constants_from_compiled_text(self):
        module = build_module_for_expression(parse_expr("x < 0 ? (NaN) : (x)"))
        assert "phi double" in str(module)

    def test_invalid_definition(self):
        with pytest.raises(ValueError):
            build_module_for_definition("foo(x)")

    def test_unknown_variable(self):
        with pytest.raises(ValueError):
            build_module_for_expression(parse_expr("x + y"))
