#!/usr/bin/env python3
"""
Validate and compile a function definition for the graph renderer.

    result = check_math_spell("[[x + 5, x < -4], [x^2, -4 <= x]]")
    result.expression   # "x < -4 ? (x + 5) : (-4 <= x ? (x ^ 2) : (NaN))"
    result.errors       # []

An invalid definition compiles to the constant "0" together with error
records whose position is 0 for a single expression, or a list of
(piece_index, part) pairs with part 0 = expression and 1 = condition.
check_math_spell never raises.

CLI:

    python pfl_check.py "sin(x)"
    python pfl_check.py "[[x, x <= 2], [1, 1 <= x]]" --json
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, asdict
from typing import List, NamedTuple, Sequence, Tuple, Union

import pfl_config
from pfl_config import setup_logger
from pfl_core import Expr, ListExpr, parse_expr, to_string
from pfl_classify import (
    ValidationContext,
    is_one_variable_expression,
    is_valid_condition,
    parse_normalized,
)
from pfl_compile import compile_expression, compile_piecewise
from pfl_intervals import EndpointMarker, check_disjoint, endpoint_markers, piece_intervals
from pfl_normalize import normalize, normalize_source

logger = setup_logger(__name__)

FALLBACK_EXPRESSION = "0"

EXPRESSION_PART = 0
CONDITION_PART = 1

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Piece:
    expression: str
    condition: str


@dataclass(frozen=True)
class SimpleDefinition:
    expression: str


@dataclass(frozen=True)
class PiecewiseDefinition:
    pieces: Tuple[Piece, ...]


FunctionDefinition = Union[SimpleDefinition, PiecewiseDefinition]
Position = Union[int, List[Tuple[int, int]]]


@dataclass(frozen=True)
class ErrorRecord:
    message: str
    position: Position


class MathSpellResult(NamedTuple):
    expression: str
    errors: List[ErrorRecord]

    @property
    def ok(self) -> bool:
        return not self.errors


class DefinitionError(ValueError):
    """A transport string that is a list but not a list of pairs."""


# ---------------------------------------------------------------------------
# Input forms
# ---------------------------------------------------------------------------

def parse_definition(text: str) -> FunctionDefinition:
    """
    Split transport text into the tagged union. Anything that does not parse
    as a list literal is a single expression (and gets classified as one).
    """
    source = normalize_source(text)
    if not source.startswith("["):
        return SimpleDefinition(text)
    try:
        parsed = parse_expr(source)
    except SyntaxError:
        return SimpleDefinition(text)
    if not isinstance(parsed, ListExpr):
        return SimpleDefinition(text)
    if not all(isinstance(item, ListExpr) and len(item.items) == 2 for item in parsed.items):
        raise DefinitionError("A piecewise definition must be a list of [expression, condition] pairs")
    return PiecewiseDefinition(tuple(
        Piece(to_string(item.items[0]), to_string(item.items[1]))
        for item in parsed.items
    ))


def as_definition(definition) -> FunctionDefinition:
    if isinstance(definition, (SimpleDefinition, PiecewiseDefinition)):
        return definition
    if isinstance(definition, str):
        return parse_definition(definition)
    # a list of [expression, condition] pairs
    pieces = []
    for pair in definition:
        expression, condition = pair
        pieces.append(Piece(str(expression), str(condition)))
    return PiecewiseDefinition(tuple(pieces))


def serialize_pieces(pieces: Sequence[Piece]) -> str:
    return "[" + ", ".join(
        f"[{normalize_source(p.expression)}, {normalize_source(p.condition)}]" for p in pieces
    ) + "]"


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def _fail(errors: List[ErrorRecord]) -> MathSpellResult:
    for error in errors:
        logger.debug("invalid input at %s: %s", error.position, error.message)
    return MathSpellResult(FALLBACK_EXPRESSION, errors)


def _check_simple(definition: SimpleDefinition) -> MathSpellResult:
    text = definition.expression
    if len(text) > pfl_config.MAX_EXPRESSION_LENGTH:
        return _fail([ErrorRecord(
            f"Expression is too long (maximum {pfl_config.MAX_EXPRESSION_LENGTH} characters)", 0)])

    ctx = ValidationContext()
    if not is_one_variable_expression(text, ctx):
        return _fail([ErrorRecord(ctx.message, 0)])
    return MathSpellResult(compile_expression(parse_normalized(text)), [])


def _piece_errors(index: int, piece: Piece) -> List[ErrorRecord]:
    errors: List[ErrorRecord] = []
    fields = ((EXPRESSION_PART, piece.expression, is_one_variable_expression),
              (CONDITION_PART, piece.condition, is_valid_condition))
    for part, text, classify in fields:
        if len(text) > pfl_config.MAX_PIECE_LENGTH:
            errors.append(ErrorRecord(
                f"Piece {index + 1} is too long (maximum {pfl_config.MAX_PIECE_LENGTH} characters)",
                [(index, part)]))
            continue
        ctx = ValidationContext()
        if not classify(text, ctx):
            errors.append(ErrorRecord(ctx.message, [(index, part)]))
    return errors


def _check_piecewise(definition: PiecewiseDefinition) -> MathSpellResult:
    pieces = definition.pieces
    if not pieces:
        return _fail([ErrorRecord("A piecewise function needs at least one piece", 0)])
    if len(pieces) > pfl_config.MAX_PIECES:
        return _fail([ErrorRecord(
            f"Too many pieces (maximum {pfl_config.MAX_PIECES} allowed)", 0)])

    errors: List[ErrorRecord] = []
    for index, piece in enumerate(pieces):
        errors.extend(_piece_errors(index, piece))
    if errors:
        return _fail(errors)

    combined = normalize(parse_expr(serialize_pieces(pieces)))
    parsed: List[Tuple[Expr, Expr]] = [(item.items[0], item.items[1]) for item in combined.items]

    ok, overlap = check_disjoint(piece_intervals([cond for _, cond in parsed]))
    if not ok:
        a, b = overlap.piece_indices
        return _fail([
            ErrorRecord(overlap.message, [(a, CONDITION_PART)]),
            ErrorRecord(overlap.message, [(b, CONDITION_PART)]),
        ])

    return MathSpellResult(compile_piecewise(parsed), [])


def check_math_spell(definition) -> MathSpellResult:
    """
    definition: transport text, a list of [expression, condition] pairs,
    or a SimpleDefinition / PiecewiseDefinition.
    """
    try:
        definition = as_definition(definition)
        if isinstance(definition, SimpleDefinition):
            result = _check_simple(definition)
        else:
            result = _check_piecewise(definition)
    except (SyntaxError, ValueError, TypeError, ArithmeticError, RecursionError) as e:
        logger.debug("definition rejected: %s", e)
        return _fail([ErrorRecord(str(e) or "Invalid function definition", 0)])

    if result.ok:
        logger.debug("valid input compiled to %s", result.expression)
    return result


def compute_endpoint_markers(definition) -> List[EndpointMarker]:
    """Renderer dots for a valid piecewise definition; [] otherwise."""
    try:
        definition = as_definition(definition)
    except (ValueError, TypeError):
        return []
    if not isinstance(definition, PiecewiseDefinition):
        return []
    if not check_math_spell(definition).ok:
        return []
    combined = normalize(parse_expr(serialize_pieces(definition.pieces)))
    return endpoint_markers([(item.items[0], item.items[1]) for item in combined.items])


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Validate a function definition and print its compiled expression."
    )
    p.add_argument(
        "definition",
        help='Expression or piecewise list, e.g. "sin(x)" or "[[x, x < 0], [x^2, x >= 0]]"',
    )
    p.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON.",
    )
    p.add_argument(
        "--markers",
        action="store_true",
        help="Also print the open/closed endpoint markers of a piecewise definition.",
    )
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    result = check_math_spell(args.definition)
    markers = compute_endpoint_markers(args.definition) if args.markers else []

    if args.json:
        payload = {
            "expression": result.expression,
            "errors": [asdict(e) for e in result.errors],
        }
        if args.markers:
            payload["markers"] = [asdict(m) for m in markers]
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(result.expression)
        for error in result.errors:
            print(f"[ERROR] {error.position}: {error.message}")
        for marker in markers:
            print(f"[INFO] {marker.kind} endpoint of piece {marker.part_index + 1} at ({marker.x:g}, {marker.y:g})")

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
