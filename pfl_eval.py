#!/usr/bin/env python3
"""
Python reference evaluator for PFL expressions.

Numbers follow the semantics a plotting front-end expects from JavaScript:
division by zero gives +/-Infinity (or NaN for 0/0), domain errors give NaN
instead of raising, comparisons return 1.0/0.0 and NaN is falsy. A renderer
samples the compiled text with compile_function():

    f = compile_function("x < 0 ? (-x) : (x ^ 2)")
    ys = [f(x) for x in xs]
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Optional

from pfl_core import (
    Expr,
    Var,
    Const,
    UnaryOp,
    BinOp,
    Call,
    Compare,
    IfExpr,
    Assign,
    ListExpr,
    parse_expr,
)

NAN = float("nan")
INF = float("inf")

# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------

def _div(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return NAN
        # sign of a signed zero decides the infinity
        return math.copysign(INF, a) * math.copysign(1.0, b)
    return a / b


def _pow(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        if a < 0 and b == int(b) and int(b) % 2 == 1:
            return -INF
        return INF
    except ValueError:
        # 0 ^ negative, negative ^ fractional
        if a == 0.0 and b < 0:
            return INF
        return NAN


def _unary(fn: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(v: float) -> float:
        try:
            return fn(v)
        except OverflowError:
            return INF
        except ValueError:
            return NAN
    wrapped.__name__ = fn.__name__
    return wrapped


def _ln(v: float) -> float:
    if v == 0.0:
        return -INF
    if v < 0 or math.isnan(v):
        return NAN
    return math.log(v)


def _log(v: float, base: Optional[float] = None) -> float:
    if base is None:
        return _ln(v)
    return _div(_ln(v), _ln(base))


def _sqrt(v: float) -> float:
    if v < 0 or math.isnan(v):
        return NAN
    return math.sqrt(v)


def _nth_root(v: float, n: float = 2.0) -> float:
    if n == 0 or math.isnan(v) or math.isnan(n):
        return NAN
    if v < 0:
        # odd integer roots of negatives stay real
        if n == int(n) and int(n) % 2 == 1:
            return -_pow(-v, 1.0 / n)
        return NAN
    return _pow(v, 1.0 / n)


def _cot(v: float) -> float:
    return _div(1.0, math.tan(v))


def _acot(v: float) -> float:
    if v == 0.0:
        return math.pi / 2
    return math.atan(1.0 / v)


def _rounding(fn: Callable[[float], int]) -> Callable[[float], float]:
    def wrapped(v: float) -> float:
        if math.isnan(v) or math.isinf(v):
            return v
        return float(fn(v))
    wrapped.__name__ = fn.__name__
    return wrapped


# Evaluator spelling of every allow-listed function (note nthRoot).
FUNCTIONS: Dict[str, Callable[..., float]] = {
    "sin": _unary(math.sin),
    "cos": _unary(math.cos),
    "tan": _unary(math.tan),
    "asin": _unary(math.asin),
    "acos": _unary(math.acos),
    "atan": _unary(math.atan),
    "sinh": _unary(math.sinh),
    "cosh": _unary(math.cosh),
    "tanh": _unary(math.tanh),
    "cot": _unary(_cot),
    "acot": _unary(_acot),
    "exp": _unary(math.exp),
    "log": _log,
    "ln": _ln,
    "log10": lambda v: _log(v, 10.0),
    "log2": lambda v: _log(v, 2.0),
    "sqrt": _sqrt,
    "abs": abs,
    "ceil": _rounding(math.ceil),
    "floor": _rounding(math.floor),
    "nthRoot": _nth_root,
}

CONSTANTS: Dict[str, float] = {
    "NaN": NAN,
    "Infinity": INF,
    "pi": math.pi,
    "PI": math.pi,
    "e": math.e,
    "E": math.e,
}


def truthy(v: float) -> bool:
    return not (v == 0.0 or math.isnan(v))


def _compare(op: str, a: float, b: float) -> bool:
    if op == "<":
        return a < b
    if op == "<=":
        return a <= b
    if op == ">":
        return a > b
    if op == ">=":
        return a >= b
    if op == "==":
        return a == b
    if op == "!=":
        return a != b
    raise NotImplementedError(f"Unsupported compare op {op!r}")


# ---------------------------------------------------------------------------
# Tree-walking evaluator
# ---------------------------------------------------------------------------

def eval_expr_py(expr: Expr, env: Dict[str, float]) -> float:
    """
    Evaluate an Expr in Python for a given variable environment.

    - env: mapping from variable name -> float; shadows CONSTANTS
    - unknown variables and functions raise ValueError
    """
    if isinstance(expr, Const):
        return float(expr.value)

    if isinstance(expr, Var):
        if expr.name in env:
            return float(env[expr.name])
        if expr.name in CONSTANTS:
            return CONSTANTS[expr.name]
        raise ValueError(f"Unknown variable {expr.name!r}")

    if isinstance(expr, UnaryOp):
        val = eval_expr_py(expr.operand, env)
        if expr.op == "-":
            return -val
        if expr.op == "+":
            return val
        if expr.op == "!":
            return 0.0 if truthy(val) else 1.0
        raise NotImplementedError(f"Unsupported unary op {expr.op!r}")

    if isinstance(expr, BinOp):
        left = eval_expr_py(expr.left, env)

        # short-circuit like the target language
        if expr.op == "&&":
            if not truthy(left):
                return 0.0
            return 1.0 if truthy(eval_expr_py(expr.right, env)) else 0.0
        if expr.op == "||":
            if truthy(left):
                return 1.0
            return 1.0 if truthy(eval_expr_py(expr.right, env)) else 0.0

        right = eval_expr_py(expr.right, env)
        if expr.op == "+":
            return left + right
        if expr.op == "-":
            return left - right
        if expr.op == "*":
            return left * right
        if expr.op == "/":
            return _div(left, right)
        if expr.op == "^":
            return _pow(left, right)

        raise NotImplementedError(f"Unsupported binary op {expr.op!r}")

    if isinstance(expr, Call):
        fn = FUNCTIONS.get(expr.func_name)
        if fn is None:
            raise ValueError(f"Unknown function {expr.func_name!r}")
        args = [eval_expr_py(a, env) for a in expr.args]
        try:
            return float(fn(*args))
        except TypeError:
            raise ValueError(
                f"Wrong number of arguments for {expr.func_name!r}: {len(args)}"
            ) from None

    if isinstance(expr, Compare):
        values = [eval_expr_py(o, env) for o in expr.operands]
        for i, op in enumerate(expr.ops):
            if not _compare(op, values[i], values[i + 1]):
                return 0.0
        return 1.0

    if isinstance(expr, IfExpr):
        cond_val = eval_expr_py(expr.cond, env)
        if truthy(cond_val):
            return eval_expr_py(expr.then_branch, env)
        return eval_expr_py(expr.else_branch, env)

    if isinstance(expr, (Assign, ListExpr)):
        raise ValueError(f"{type(expr).__name__} cannot be evaluated to a number")

    raise NotImplementedError(f"Unknown Expr node type: {type(expr)}")


def evaluate_constant(expr: Expr) -> float:
    """Evaluate an expression without free variables; raises ValueError otherwise."""
    return eval_expr_py(expr, {})


def compile_function(src: str, variable: str = "x") -> Callable[[float], float]:
    """Parse once, return f(x) evaluating the parsed tree."""
    expr = parse_expr(src)

    def f(value: float) -> float:
        return eval_expr_py(expr, {variable: value})

    return f
