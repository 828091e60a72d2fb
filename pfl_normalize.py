"""
Rewrites applied before classification and compilation.

- normalize_source: text-level fixes ('**' is accepted as '^')
- normalize: named constants -> numbers, 'a = b' -> 'a == b'
- simplify: constant folding
- to_evaluable: rename functions to the evaluator's spelling
"""

from __future__ import annotations

import math
from typing import Optional

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
    transform,
)
from pfl_eval import FUNCTIONS, eval_expr_py

NAMED_CONSTANTS = {
    "pi": math.pi,
    "PI": math.pi,
    "π": math.pi,
    "e": math.e,
    "E": math.e,
}

# validator name -> evaluator name
EVALUATOR_ALIASES = {
    "nthroot": "nthRoot",
}

FOLDABLE_OPS = ("+", "-", "*", "/", "^")


def normalize_source(text: str) -> str:
    return text.strip().replace("**", "^")


def _normalize_node(node: Expr, parent: Optional[Expr]) -> Expr:
    if isinstance(node, Var) and node.name in NAMED_CONSTANTS:
        return Const(NAMED_CONSTANTS[node.name])
    if isinstance(node, Assign):
        return Compare(ops=["=="], operands=[node.target, node.value])
    return node


def normalize(expr: Expr) -> Expr:
    return transform(expr, _normalize_node)


def _rename_node(node: Expr, parent: Optional[Expr]) -> Expr:
    if isinstance(node, Call) and node.func_name in EVALUATOR_ALIASES:
        return Call(EVALUATOR_ALIASES[node.func_name], node.args)
    return node


def to_evaluable(expr: Expr) -> Expr:
    return transform(expr, _rename_node)


def _fold(expr: Expr) -> Optional[float]:
    try:
        value = eval_expr_py(to_evaluable(expr), {})
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def simplify(expr: Expr) -> Expr:
    """
    Bottom-up constant folding. Only arithmetic and allow-listed calls are
    folded, and a fold that would produce Infinity or NaN is kept symbolic
    so the renderer still sees e.g. 1 / 0.
    """
    if isinstance(expr, UnaryOp):
        operand = simplify(expr.operand)
        node = UnaryOp(expr.op, operand)
        if expr.op in ("-", "+") and isinstance(operand, Const):
            value = _fold(node)
            if value is not None:
                return Const(value)
        return node

    if isinstance(expr, BinOp):
        left = simplify(expr.left)
        right = simplify(expr.right)
        node = BinOp(expr.op, left, right)
        if expr.op in FOLDABLE_OPS and isinstance(left, Const) and isinstance(right, Const):
            value = _fold(node)
            if value is not None:
                return Const(value)
        return node

    if isinstance(expr, Call):
        args = [simplify(a) for a in expr.args]
        node = Call(expr.func_name, args)
        name = EVALUATOR_ALIASES.get(expr.func_name, expr.func_name)
        if name in FUNCTIONS and all(isinstance(a, Const) for a in args):
            value = _fold(node)
            if value is not None:
                return Const(value)
        return node

    if isinstance(expr, Compare):
        return Compare(list(expr.ops), [simplify(o) for o in expr.operands])

    if isinstance(expr, IfExpr):
        return IfExpr(simplify(expr.cond),
                      simplify(expr.then_branch),
                      simplify(expr.else_branch))

    if isinstance(expr, ListExpr):
        return ListExpr([simplify(i) for i in expr.items])

    # Var / Const / Assign
    return expr
