#!/usr/bin/env python3
import json
from pathlib import Path

OUT = Path("manual_pfl_functions.jsonl")

CASES = [
    # ----- Single expressions -----
    ("simple_1", "x^2 + 2*x - 1"),
    ("simple_2", "sin(x)"),
    ("simple_3", "nthroot(x, 3)"),
    ("simple_4", "2x + pi"),
    ("simple_5", "x**3 - log(x, 2)"),

    # ----- Piecewise, disjoint -----
    ("pw_abs", "[[-x, x < 0], [x, x >= 0]]"),
    ("pw_step", "[[0, x < 0], [1, 0 <= x]]"),
    ("pw_six", "[[x+5,x < -4],[1/2*x^2,-4<=x < 1],[x-2,1<=x < 3],[5,x==3],[x-2,3 < x < 5],[3,5<= x]]"),
    ("pw_hole", "[[x^2, x != 1], [3, x = 1]]"),
    ("pw_mirror", "[[sqrt(x), 0 < x], [-1, x <= -2]]"),

    # ----- Invalid -----
    ("bad_fn", "foo(x)"),
    ("bad_var", "[[x, y < 3]]"),
    ("bad_overlap", "[[x, x <= 2], [1, 1 <= x]]"),
    ("bad_chain", "[[x, 1 < x > 3]]"),
    ("bad_syntax", "x^^2"),
]


def main():
    with OUT.open("w", encoding="utf-8") as f:
        for id_, definition in CASES:
            rec = {
                "id": id_,
                "definition": definition,
            }
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
    print(f"Wrote {len(CASES)} cases to {OUT}")


if __name__ == "__main__":
    main()
