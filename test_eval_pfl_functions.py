"""Round-trip tests: compiled output agrees with the raw pieces."""

import json

import pytest
import eval_pfl_functions
import make_manual_pfl_functions
from eval_pfl_functions import evaluate_definition, sample_cases, same_value
from pfl_check import parse_definition


class TestEvaluateDefinition:
    @pytest.mark.parametrize("record_id, definition", [
        (rid, d) for rid, d in make_manual_pfl_functions.CASES if not rid.startswith("bad_")
    ])
    def test_valid_cases_round_trip(self, record_id, definition):
        res = evaluate_definition(definition, record_id)
        assert res.status == "ok", res.detail

    @pytest.mark.parametrize("record_id, definition", [
        (rid, d) for rid, d in make_manual_pfl_functions.CASES if rid.startswith("bad_")
    ])
    def test_invalid_cases(self, record_id, definition):
        res = evaluate_definition(definition, record_id)
        assert res.status == "invalid"
        assert res.detail

    def test_samples_stay_inside_open_bounds(self):
        cases = sample_cases(parse_definition("[[x, x < 1e300], [2, 1e300 <= x]]"))
        assert cases
        assert all(x < 1e300 or y == 2.0 for x, y in cases)

    def test_negative_zero_divisor(self):
        res = evaluate_definition("[[x / -0, x < 0], [x, x >= 0]]", "neg_zero")
        assert res.status == "ok", res.detail

    def test_same_value(self):
        nan = float("nan")
        assert same_value(nan, nan)
        assert not same_value(nan, 1.0)
        assert same_value(float("inf"), float("inf"))
        assert same_value(0.1 + 0.2, 0.3)


class TestCli:
    def test_manual_cases_end_to_end(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        make_manual_pfl_functions.main()
        lines = (tmp_path / "manual_pfl_functions.jsonl").read_text(encoding="utf-8").splitlines()
        assert len(lines) == len(make_manual_pfl_functions.CASES)
        assert json.loads(lines[0])["id"] == "simple_1"

        monkeypatch.setattr("sys.argv", ["eval_pfl_functions.py", "--in", "manual_pfl_functions.jsonl"])
        eval_pfl_functions.main()
        out = capsys.readouterr().out
        assert "[OK] pw_six" in out
        assert "[INVALID] bad_overlap" in out
        assert "mismatch" not in out
