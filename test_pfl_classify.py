"""Tests for the expression and condition classifiers."""

import pytest
from pfl_classify import (
    ValidationContext,
    is_one_variable_expression,
    is_valid_condition,
    free_symbols,
)
from pfl_core import parse_expr


def classify(fn, text):
    ctx = ValidationContext()
    return fn(text, ctx), ctx.message


class TestExpressionClassifier:
    @pytest.mark.parametrize("text", [
        "x^2 + 2*x - 1",
        "sin(x)",
        "nthroot(x, 3)",
        "nthroot(x)",
        "log(x, 2)",
        "2 * pi * x",
        "e^x",
        "x**2",
        "2x + 3(x - 1)",
        "abs(-x) / sqrt(x^2 + 1)",
        "5",
    ])
    def test_valid(self, text):
        assert classify(is_one_variable_expression, text) == (True, "")

    @pytest.mark.parametrize("text, fragment", [
        ("", "empty"),
        ("   ", "empty"),
        ("x +", "Invalid or incomplete expression"),
        ("foo(x)", "'foo' is not a valid function"),
        ("sin(x, 2)", "takes 1 argument, got 2"),
        ("nthroot(x, 3, 4)", "takes 1 or 2 arguments, got 3"),
        ("x + y", "'y' is not a valid symbol"),
        ("x < 2", "Operator '<'"),
        ("x && 1", "Operator '&&'"),
        ("x || 1", "Operator '||'"),
        ("x ^ ²", "Invalid or incomplete expression"),
        ("(" * 3000 + "x" + ")" * 3000, "nested too deeply"),
        ("x = 2", "Operator '=='"),
        ("x < 0 ? 1 : 2", "Conditional"),
        ("[x, x < 1]", "reserved for piecewise"),
    ])
    def test_invalid(self, text, fragment):
        ok, message = classify(is_one_variable_expression, text)
        assert not ok
        assert fragment in message

    def test_calls_are_checked_before_symbols(self):
        ok, message = classify(is_one_variable_expression, "foo(y)")
        assert not ok
        assert "foo" in message

    def test_context_is_per_call(self):
        first, second = ValidationContext(), ValidationContext()
        is_one_variable_expression("foo(x)", first)
        is_one_variable_expression("x", second)
        assert first.errors and not second.errors

    def test_free_symbols_exclude_function_names(self):
        assert free_symbols(parse_expr("sin(x) + log(y, 2)")) == ["x", "y"]


class TestConditionClassifier:
    @pytest.mark.parametrize("text", [
        "x < 3",
        "x <= -4",
        "3 > x",
        "x >= 1/2",
        "x == 3",
        "x = 3",
        "x != 0",
        "x < pi",
        "x < sqrt(2)",
        "x < nthroot(8, 3)",
        "1 <= x < 3",
        "-4 < x <= 1",
        "2 <= x <= 2",
    ])
    def test_valid(self, text):
        assert classify(is_valid_condition, text) == (True, "")

    @pytest.mark.parametrize("text, fragment", [
        ("", "empty"),
        ("x <", "Invalid or incomplete condition"),
        ("x + 1", "must be a comparison"),
        ("y < 3", "variable must be x"),
        ("1 < y < 3", "variable must be x"),
        ("x < x", "Only one side"),
        ("2*x < 3", "must be the variable x"),
        ("x < y", "'y' is not a valid symbol"),
        ("x < x + 1", "cannot depend on x"),
        ("x < foo(2)", "'foo' is not a valid function"),
        ("x < 1/0", "finite"),
        ("1 < x > 3", "Only < and <="),
        ("1 == x < 3", "Only < and <="),
        ("1 < x < 2 < 3", "at most two"),
        ("1 < 2 < x", "middle term"),
        ("5 < x < 3", "empty interval"),
        ("2 < x <= 2", "empty interval"),
        ("x < ¹", "Invalid or incomplete condition"),
    ])
    def test_invalid(self, text, fragment):
        ok, message = classify(is_valid_condition, text)
        assert not ok
        assert fragment in message
