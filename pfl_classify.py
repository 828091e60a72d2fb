"""
Classifiers for the two kinds of text a user types into a function editor:

    is_one_variable_expression("x^2 + sin(x)")   # an expression in x
    is_valid_condition("-4 <= x < 1")            # where a piece applies

Both return a bool. Error messages go into the ValidationContext passed in,
so concurrent validations never share state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional

from pfl_config import setup_logger
from pfl_core import (
    Expr,
    Var,
    UnaryOp,
    BinOp,
    Call,
    Compare,
    IfExpr,
    Assign,
    ListExpr,
    parse_expr,
    walk,
)
from pfl_eval import evaluate_constant
from pfl_normalize import normalize, normalize_source, to_evaluable

logger = setup_logger(__name__)

VARIABLE = "x"

ALLOWED_FUNCTIONS = frozenset({
    "sin", "cos", "tan", "asin", "acos", "atan",
    "sinh", "cosh", "tanh", "cot", "acot",
    "exp", "log", "ln", "log10", "log2",
    "sqrt", "abs", "ceil", "floor", "nthroot",
})

# everything else takes exactly one argument
FUNCTION_ARITIES = {
    "log": (1, 2),
    "nthroot": (1, 2),
}

ALLOWED_OPERATORS = frozenset({"+", "-", "*", "/", "^"})
ALLOWED_CONSTANTS = frozenset({"pi", "PI", "e", "E"})

RELATIONS = frozenset({"<", ">", "<=", ">=", "==", "!="})
CHAIN_RELATIONS = frozenset({"<", "<="})


@dataclass
class ValidationContext:
    """Collects the error messages of one validation call."""
    errors: List[str] = field(default_factory=list)

    def fail(self, message: str) -> bool:
        self.errors.append(message)
        return False

    @property
    def message(self) -> str:
        return self.errors[0] if self.errors else ""


# ---------------------------------------------------------------------------
# Shared checks
# ---------------------------------------------------------------------------

def parse_normalized(text: str) -> Expr:
    """Parse user text and apply the constant/assignment rewrites."""
    return normalize(parse_expr(normalize_source(text)))


def _arity_ok(name: str, n_args: int) -> bool:
    return n_args in FUNCTION_ARITIES.get(name, (1,))


def _arity_text(name: str) -> str:
    allowed = FUNCTION_ARITIES.get(name, (1,))
    if len(allowed) == 1:
        return "1 argument"
    return " or ".join(str(n) for n in allowed) + " arguments"


def _operator_of(node: Expr) -> Optional[str]:
    if isinstance(node, (BinOp, UnaryOp)):
        return node.op
    if isinstance(node, Compare):
        return node.ops[0]
    if isinstance(node, Assign):
        return "="
    return None


def free_symbols(expr: Expr) -> List[str]:
    """
    Names referenced as values. Function names live on Call nodes, not in
    Var children, so a called name is never reported as a free symbol.
    """
    names: List[str] = []
    for node, parent in walk(expr):
        if isinstance(node, Var) and node.name not in names:
            names.append(node.name)
    return names


def check_expression_tree(expr: Expr, ctx: ValidationContext,
                          allow_variable: bool = True) -> bool:
    """
    Check calls, then operators, then symbols against the allow-lists.
    With allow_variable=False the tree must be a constant expression.
    """
    nodes = [node for node, _ in walk(expr)]

    for node in nodes:
        if isinstance(node, Call):
            if node.func_name not in ALLOWED_FUNCTIONS:
                return ctx.fail(f"'{node.func_name}' is not a valid function")
            if not _arity_ok(node.func_name, len(node.args)):
                return ctx.fail(
                    f"Function '{node.func_name}' takes {_arity_text(node.func_name)}, "
                    f"got {len(node.args)}"
                )

    for node in nodes:
        if isinstance(node, IfExpr):
            return ctx.fail("Conditional expressions (? :) are not allowed in an expression")
        if isinstance(node, ListExpr):
            return ctx.fail("Lists are not allowed inside an expression")
        op = _operator_of(node)
        if op is not None and op not in ALLOWED_OPERATORS:
            return ctx.fail(f"Operator '{op}' is not allowed in an expression")

    for name in free_symbols(expr):
        if name == VARIABLE:
            if not allow_variable:
                return ctx.fail(f"A boundary must be a constant, it cannot depend on {VARIABLE}")
            continue
        if name not in ALLOWED_CONSTANTS:
            return ctx.fail(
                f"'{name}' is not a valid symbol; the only variable allowed is {VARIABLE}"
            )

    return True


# ---------------------------------------------------------------------------
# Expression classifier
# ---------------------------------------------------------------------------

def is_one_variable_expression(text: str, ctx: Optional[ValidationContext] = None) -> bool:
    ctx = ctx if ctx is not None else ValidationContext()
    if not text or not text.strip():
        return ctx.fail("Expression is empty")
    try:
        expr = parse_normalized(text)
    except SyntaxError as e:
        return ctx.fail(f"Invalid or incomplete expression: {e.msg}")
    except RecursionError:
        return ctx.fail("The expression is nested too deeply")
    if isinstance(expr, ListExpr):
        return ctx.fail("Lists are reserved for piecewise definitions")
    ok = check_expression_tree(expr, ctx, allow_variable=True)
    logger.debug("expression %r -> %s", text, ok)
    return ok


# ---------------------------------------------------------------------------
# Condition classifier
# ---------------------------------------------------------------------------

def is_variable(expr: Expr) -> bool:
    return isinstance(expr, Var) and expr.name == VARIABLE


def boundary_value(expr: Expr) -> float:
    return evaluate_constant(to_evaluable(expr))


def _check_boundary(expr: Expr, ctx: ValidationContext) -> bool:
    if not check_expression_tree(expr, ctx, allow_variable=False):
        return False
    try:
        value = boundary_value(expr)
    except ValueError as e:
        return ctx.fail(f"A boundary must be a number: {e}")
    if not math.isfinite(value):
        return ctx.fail("A boundary must be a finite number")
    return True


def _wrong_variable(*operands: Expr) -> Optional[str]:
    for operand in operands:
        if isinstance(operand, Var) and operand.name != VARIABLE:
            return operand.name
    return None


def _check_single(cond: Compare, ctx: ValidationContext) -> bool:
    op = cond.ops[0]
    if op not in RELATIONS:
        return ctx.fail(f"Relation '{op}' is not allowed in a condition")
    left, right = cond.operands

    if is_variable(left) and is_variable(right):
        return ctx.fail(f"Only one side of a condition may be the variable {VARIABLE}")
    if not is_variable(left) and not is_variable(right):
        wrong = _wrong_variable(left, right)
        if wrong is not None:
            return ctx.fail(f"The variable must be {VARIABLE}, not '{wrong}'")
        return ctx.fail(f"One side of a condition must be the variable {VARIABLE}")

    constant = right if is_variable(left) else left
    return _check_boundary(constant, ctx)


def _check_chain(cond: Compare, ctx: ValidationContext) -> bool:
    if not all(op in CHAIN_RELATIONS for op in cond.ops):
        return ctx.fail("Only < and <= are allowed in a chained condition such as 1 <= x < 3")
    low, middle, high = cond.operands

    if not is_variable(middle):
        wrong = _wrong_variable(middle)
        if wrong is not None:
            return ctx.fail(f"The variable must be {VARIABLE}, not '{wrong}'")
        return ctx.fail(f"The middle term of a chained condition must be the variable {VARIABLE}")

    if not (_check_boundary(low, ctx) and _check_boundary(high, ctx)):
        return False

    a, b = boundary_value(low), boundary_value(high)
    if a > b or (a == b and cond.ops != ["<=", "<="]):
        return ctx.fail("The chained condition describes an empty interval")
    return True


def is_valid_condition(text: str, ctx: Optional[ValidationContext] = None) -> bool:
    ctx = ctx if ctx is not None else ValidationContext()
    if not text or not text.strip():
        return ctx.fail("Condition is empty")
    try:
        cond = parse_normalized(text)
    except SyntaxError as e:
        return ctx.fail(f"Invalid or incomplete condition: {e.msg}")
    except RecursionError:
        return ctx.fail("The condition is nested too deeply")

    if not isinstance(cond, Compare):
        ok = ctx.fail(f"A condition must be a comparison such as {VARIABLE} < 2 or 1 <= {VARIABLE} < 3")
    elif len(cond.ops) == 1:
        ok = _check_single(cond, ctx)
    elif len(cond.ops) == 2:
        ok = _check_chain(cond, ctx)
    else:
        ok = ctx.fail("A chained condition may have at most two comparisons")

    logger.debug("condition %r -> %s", text, ok)
    return ok
