#!/usr/bin/env python3
"""
Check the validate -> compile pipeline on a set of function definitions.

For each record in a JSONL file (default: manual_pfl_functions.jsonl) with field
    "definition": "[[x+5, x < -4], [x^2, -4 <= x]]"

we:

  1. Run pfl_check.check_math_spell
  2. For invalid input, record the error messages (status "invalid")
  3. For valid input, sample x inside every piece's interval (or a fixed set
     of points for a single expression) and compare the compiled expression
     with the piece's own expression at that x
  4. Count ok / invalid / mismatch / runtime_error.

Usage:

    python make_manual_pfl_functions.py
    python eval_pfl_functions.py --in manual_pfl_functions.jsonl
"""

from __future__ import annotations

import argparse
import json
import math
import time
import statistics
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from pfl_check import PiecewiseDefinition, as_definition, check_math_spell
from pfl_classify import parse_normalized
from pfl_eval import compile_function, eval_expr_py
from pfl_intervals import extract_intervals
from pfl_normalize import to_evaluable

SIMPLE_SAMPLES = [-3.0, -1.0, 0.1, 2.0, 4.0]

# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------

def same_value(got: float, expected: float, eps: float = 1e-9) -> bool:
    if math.isnan(got) or math.isnan(expected):
        return math.isnan(got) and math.isnan(expected)
    if math.isinf(got) or math.isinf(expected):
        return got == expected
    return math.isclose(got, expected, rel_tol=eps, abs_tol=eps)


def sample_cases(definition) -> List[Tuple[float, float]]:
    """(x, expected) pairs computed from the raw expressions."""
    cases: List[Tuple[float, float]] = []
    if isinstance(definition, PiecewiseDefinition):
        for piece in definition.pieces:
            expression = to_evaluable(parse_normalized(piece.expression))
            for interval in extract_intervals(parse_normalized(piece.condition)):
                # far from the origin an offset can round onto an open bound
                for x in interval.sample_points():
                    if interval.contains(x):
                        cases.append((x, eval_expr_py(expression, {"x": x})))
    else:
        expression = to_evaluable(parse_normalized(definition.expression))
        for x in SIMPLE_SAMPLES:
            cases.append((x, eval_expr_py(expression, {"x": x})))
    return cases


# ---------------------------------------------------------------------------
# Evaluation pipeline
# ---------------------------------------------------------------------------

@dataclass
class EvalResult:
    record_id: str
    definition: str
    status: str      # "ok", "invalid", "mismatch", "runtime_error"
    detail: str = ""


def evaluate_definition(definition: str, record_id: str) -> EvalResult:
    # 1) Validate + compile
    result = check_math_spell(definition)
    if not result.ok:
        return EvalResult(
            record_id=record_id,
            definition=definition,
            status="invalid",
            detail="; ".join(f"{e.position}: {e.message}" for e in result.errors),
        )

    # 2) Reference values from the raw pieces
    try:
        cases = sample_cases(as_definition(definition))
        f = compile_function(result.expression)
    except (SyntaxError, ValueError) as e:
        return EvalResult(
            record_id=record_id,
            definition=definition,
            status="runtime_error",
            detail=f"Reference eval failed: {e}",
        )

    # 3) Compiled vs raw
    for x, expected in cases:
        got = f(x)
        if not same_value(got, expected):
            return EvalResult(
                record_id=record_id,
                definition=definition,
                status="mismatch",
                detail=f"x={x:g}: compiled {got!r}, expected {expected!r}",
            )

    return EvalResult(
        record_id=record_id,
        definition=definition,
        status="ok",
        detail=f"{len(cases)} samples agree",
    )


# ---------------------------------------------------------------------------
# CLI driver
# ---------------------------------------------------------------------------

def parse_args():
    p = argparse.ArgumentParser(
        description="Check validate/compile round trips on definitions from a JSONL file."
    )
    p.add_argument(
        "--in",
        dest="in_path",
        default="manual_pfl_functions.jsonl",
        help="Input JSONL with a 'definition' field (default: manual_pfl_functions.jsonl).",
    )
    p.add_argument(
        "--max-functions",
        type=int,
        default=1000,
        help="Maximum number of definitions to evaluate (default: 1000).",
    )
    return p.parse_args()


def main():
    args = parse_args()
    in_path = Path(args.in_path)

    results: List[EvalResult] = []
    timings: List[float] = []

    with in_path.open("r", encoding="utf-8") as fin:
        for line in fin:
            if args.max_functions is not None and len(results) >= args.max_functions:
                break
            if not line.strip():
                continue

            rec = json.loads(line)
            definition = rec.get("definition")
            if not definition:
                continue
            record_id = str(rec.get("id", len(results)))

            start_t = time.perf_counter()
            res = evaluate_definition(definition, record_id)
            timings.append(time.perf_counter() - start_t)

            results.append(res)
            print(f"[{res.status.upper()}] {record_id}")

    # Summary
    counts = {}
    for r in results:
        counts[r.status] = counts.get(r.status, 0) + 1

    print("\n=== Summary ===")
    print(f"Total evaluated (up to max): {len(results)}")
    for status, count in sorted(counts.items()):
        print(f"  {status}: {count}")

    for r in results:
        if r.status != "ok":
            print(f"\n--- {r.status.upper()} for {r.record_id} ---")
            print(f"Definition: {r.definition}")
            print(f"Detail: {r.detail}")

    print("\n=== Performance summary ===")
    if timings:
        print(f"Definitions timed: {len(timings)}")
        print(f"Avg per def:       {statistics.mean(timings) * 1000:.2f} ms")
        print(f"Median per def:    {statistics.median(timings) * 1000:.2f} ms")
        print(f"Min / Max:         {min(timings) * 1000:.2f} ms / {max(timings) * 1000:.2f} ms")
    else:
        print("No definitions evaluated.")


if __name__ == "__main__":
    main()
