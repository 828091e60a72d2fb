"""
Compile validated definitions into a single evaluable PFL string.

A piecewise definition becomes a chain of ternaries in declaration order:

    c1 ? (e1) : (c2 ? (e2) : (NaN))

so a point no piece claims evaluates to NaN and is left undrawn.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from pfl_core import Expr, Compare, UnaryOp, BinOp, to_string
from pfl_normalize import simplify, to_evaluable

UNDEFINED = "NaN"


def compile_expression(expr: Expr) -> str:
    return to_string(to_evaluable(simplify(expr)))


def condition_expr(condition: Compare) -> Expr:
    """
    Runtime form of a condition: '!=' is a negated equality, a chain is a
    conjunction of its two comparisons.
    """
    condition = simplify(to_evaluable(condition))
    if len(condition.ops) == 1:
        if condition.ops[0] == "!=":
            return UnaryOp("!", Compare(["=="], list(condition.operands)))
        return condition
    low, x, high = condition.operands
    op_low, op_high = condition.ops
    return BinOp("&&", Compare([op_low], [low, x]), Compare([op_high], [x, high]))


def compile_condition(condition: Compare) -> str:
    return to_string(condition_expr(condition))


def compile_piecewise(pieces: Sequence[Tuple[Expr, Compare]]) -> str:
    """pieces: (expression, condition) pairs, already validated and normalized."""
    compiled = UNDEFINED
    for expression, condition in reversed(pieces):
        compiled = (f"{compile_condition(condition)} ? "
                    f"({compile_expression(expression)}) : ({compiled})")
    return compiled
