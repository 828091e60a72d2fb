"""
Interval reasoning for piecewise definitions.

A validated condition becomes one interval (two for '!='):

    x < a        (-inf, a)          a <= x < b   [a, b)
    x >= a       [a, inf)           x == a       [a, a]
    x != a       (a, inf) and (-inf, a)

check_disjoint() verifies that no point of the real line is claimed by two
pieces; endpoint_markers() gives the renderer the open/closed dots drawn at
piece boundaries.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pfl_core import Expr, Compare, format_number
from pfl_classify import boundary_value, is_variable
from pfl_eval import eval_expr_py
from pfl_normalize import to_evaluable

INF = float("inf")

# relation seen from the variable's side: "a < x" reads as "x > a"
MIRRORED = {
    "<": ">",
    ">": "<",
    "<=": ">=",
    ">=": "<=",
    "==": "==",
    "!=": "!=",
}

OPEN = "open"
CLOSED = "closed"


@dataclass(frozen=True)
class Interval:
    lower: float
    upper: float
    lower_inclusive: bool
    upper_inclusive: bool

    def __post_init__(self):
        if self.lower > self.upper:
            raise ValueError(f"Empty interval: lower {self.lower} > upper {self.upper}")

    @property
    def is_point(self) -> bool:
        return self.lower == self.upper

    def contains(self, value: float) -> bool:
        if value < self.lower or (value == self.lower and not self.lower_inclusive):
            return False
        if value > self.upper or (value == self.upper and not self.upper_inclusive):
            return False
        return True

    def sample_points(self) -> List[float]:
        """A few points strictly inside (or the point itself for [a, a])."""
        if self.is_point:
            return [self.lower]
        lo, hi = self.lower, self.upper
        if math.isinf(lo) and math.isinf(hi):
            return [-10.0, 0.0, 10.0]
        if math.isinf(lo):
            return [hi - 10.0, hi - 1.0, hi - 0.25]
        if math.isinf(hi):
            return [lo + 0.25, lo + 1.0, lo + 10.0]
        width = hi - lo
        return [lo + width * 0.25, lo + width * 0.5, lo + width * 0.75]

    def __str__(self) -> str:
        left = "[" if self.lower_inclusive else "("
        right = "]" if self.upper_inclusive else ")"
        return f"{left}{_bound_text(self.lower)}, {_bound_text(self.upper)}{right}"


def _bound_text(value: float) -> str:
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    return format_number(value + 0.0)  # -0 reads as 0


@dataclass(frozen=True)
class PieceInterval:
    interval: Interval
    piece_index: int


@dataclass(frozen=True)
class Overlap:
    first: PieceInterval
    second: PieceInterval

    @property
    def piece_indices(self) -> Tuple[int, int]:
        return self.first.piece_index, self.second.piece_index

    @property
    def message(self) -> str:
        return (f"The intervals {self.first.interval} and {self.second.interval} "
                f"of pieces {self.first.piece_index + 1} and {self.second.piece_index + 1} overlap")


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _from_relation(op: str, a: float) -> List[Interval]:
    """Intervals for 'x op a'."""
    if op == "<":
        return [Interval(-INF, a, False, False)]
    if op == "<=":
        return [Interval(-INF, a, False, True)]
    if op == ">":
        return [Interval(a, INF, False, False)]
    if op == ">=":
        return [Interval(a, INF, True, False)]
    if op == "==":
        return [Interval(a, a, True, True)]
    if op == "!=":
        return [Interval(a, INF, False, False), Interval(-INF, a, False, False)]
    raise ValueError(f"Unsupported relation {op!r}")


def extract_intervals(condition: Expr) -> List[Interval]:
    """Intervals of an already-validated, normalized condition."""
    if not isinstance(condition, Compare):
        raise ValueError("A condition must be a comparison")

    if len(condition.ops) == 1:
        op = condition.ops[0]
        left, right = condition.operands
        if is_variable(left):
            return _from_relation(op, boundary_value(right))
        return _from_relation(MIRRORED[op], boundary_value(left))

    if len(condition.ops) == 2:
        low, _, high = condition.operands
        op_low, op_high = condition.ops
        return [Interval(boundary_value(low), boundary_value(high),
                         op_low == "<=", op_high == "<=")]

    raise ValueError("A chained condition may have at most two comparisons")


def piece_intervals(conditions: Sequence[Expr]) -> List[PieceInterval]:
    entries: List[PieceInterval] = []
    for index, condition in enumerate(conditions):
        for interval in extract_intervals(condition):
            entries.append(PieceInterval(interval, index))
    return entries


# ---------------------------------------------------------------------------
# Disjointness
# ---------------------------------------------------------------------------

def sort_key(entry: PieceInterval) -> Tuple[float, bool, float, bool]:
    # -inf/inf are ordinary floats here; NaN bounds never pass validation.
    iv = entry.interval
    return (iv.lower, not iv.lower_inclusive, iv.upper, iv.upper_inclusive)


def overlaps(a: Interval, b: Interval) -> bool:
    """Overlap test for a <= b in sort order."""
    if a.upper > b.lower:
        return True
    return a.upper == b.lower and a.upper_inclusive and b.lower_inclusive


def check_disjoint(entries: Sequence[PieceInterval]) -> Tuple[bool, Optional[Overlap]]:
    ordered = sorted(entries, key=sort_key)
    for a, b in zip(ordered, ordered[1:]):
        if overlaps(a.interval, b.interval):
            return False, Overlap(a, b)
    return True, None


# ---------------------------------------------------------------------------
# Endpoint markers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EndpointMarker:
    x: float
    y: float
    kind: str        # OPEN or CLOSED
    part_index: int


def endpoint_markers(pieces: Sequence[Tuple[Expr, Expr]]) -> List[EndpointMarker]:
    """
    Open/closed dots at the finite boundaries of every piece, placed on the
    piece's own curve. Boundaries where the piece is not finite get no dot.
    """
    markers: List[EndpointMarker] = []
    for index, (expression, condition) in enumerate(pieces):
        evaluable = to_evaluable(expression)
        for interval in extract_intervals(condition):
            ends = [(interval.lower, interval.lower_inclusive),
                    (interval.upper, interval.upper_inclusive)]
            for x, inclusive in ends:
                if math.isinf(x):
                    continue
                try:
                    y = eval_expr_py(evaluable, {"x": x})
                except ValueError:
                    continue
                if not math.isfinite(y):
                    continue
                marker = EndpointMarker(x, y, CLOSED if inclusive else OPEN, index)
                if marker not in markers:
                    markers.append(marker)
    return markers
