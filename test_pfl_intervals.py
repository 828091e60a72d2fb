"""Tests for interval extraction, disjointness and endpoint markers."""

import itertools
import math

import pytest
from pfl_classify import parse_normalized
from pfl_intervals import (
    Interval, PieceInterval, CLOSED, OPEN,
    extract_intervals, piece_intervals, check_disjoint, endpoint_markers,
)

INF = math.inf


def intervals_of(text):
    return extract_intervals(parse_normalized(text))


class TestInterval:
    def test_str(self):
        assert str(Interval(-INF, 2.0, False, True)) == "(-∞, 2]"
        assert str(Interval(0.5, 3.0, True, False)) == "[0.5, 3)"

    def test_empty_interval_rejected(self):
        with pytest.raises(ValueError):
            Interval(3.0, 1.0, True, True)

    def test_contains(self):
        iv = Interval(1.0, 3.0, True, False)
        assert iv.contains(1.0)
        assert iv.contains(2.0)
        assert not iv.contains(3.0)
        assert not iv.contains(0.5)

    def test_sample_points_lie_inside(self):
        for iv in [Interval(-INF, 2.0, False, False), Interval(1.0, 3.0, False, False),
                   Interval(5.0, INF, True, False), Interval(-INF, INF, False, False),
                   Interval(3.0, 3.0, True, True)]:
            assert all(iv.contains(x) for x in iv.sample_points())


class TestExtraction:
    @pytest.mark.parametrize("text, expected", [
        ("x < 2", [Interval(-INF, 2.0, False, False)]),
        ("x <= 2", [Interval(-INF, 2.0, False, True)]),
        ("x > 2", [Interval(2.0, INF, False, False)]),
        ("x >= 2", [Interval(2.0, INF, True, False)]),
        ("x == 2", [Interval(2.0, 2.0, True, True)]),
        ("x = 2", [Interval(2.0, 2.0, True, True)]),
        ("x != 2", [Interval(2.0, INF, False, False), Interval(-INF, 2.0, False, False)]),
        ("1 <= x <= 2", [Interval(1.0, 2.0, True, True)]),
        ("1 < x <= 2", [Interval(1.0, 2.0, False, True)]),
        ("1 <= x < 2", [Interval(1.0, 2.0, True, False)]),
        ("1 < x < 2", [Interval(1.0, 2.0, False, False)]),
    ])
    def test_variable_first(self, text, expected):
        assert intervals_of(text) == expected

    @pytest.mark.parametrize("mirrored, direct", [
        ("2 > x", "x < 2"),
        ("2 >= x", "x <= 2"),
        ("2 < x", "x > 2"),
        ("2 <= x", "x >= 2"),
        ("2 == x", "x == 2"),
        ("2 != x", "x != 2"),
    ])
    def test_constant_first_mirrors(self, mirrored, direct):
        assert intervals_of(mirrored) == intervals_of(direct)

    def test_constant_expressions_are_evaluated(self):
        assert intervals_of("-pi <= x < 2^3") == [Interval(-math.pi, 8.0, True, False)]

    def test_not_equal_keeps_piece_index(self):
        entries = piece_intervals([parse_normalized("x < -1"), parse_normalized("x != 0")])
        assert [e.piece_index for e in entries] == [0, 1, 1]


class TestDisjointness:
    def entries(self, *conditions):
        return piece_intervals([parse_normalized(c) for c in conditions])

    def test_touching_half_open_is_fine(self):
        assert check_disjoint(self.entries("0 <= x < 1", "1 <= x <= 2")) == (True, None)

    def test_touching_closed_overlaps(self):
        ok, overlap = check_disjoint(self.entries("0 <= x <= 1", "1 <= x <= 2"))
        assert not ok
        assert overlap.piece_indices == (0, 1)

    def test_overlap_message_shows_both_intervals(self):
        ok, overlap = check_disjoint(self.entries("x <= 2", "1 <= x"))
        assert not ok
        assert "(-∞, 2]" in overlap.message
        assert "[1, ∞)" in overlap.message

    def test_point_inside_range_overlaps(self):
        ok, overlap = check_disjoint(self.entries("1 < x < 5", "x == 3"))
        assert not ok
        assert set(overlap.piece_indices) == {0, 1}

    def test_point_on_open_boundary_is_fine(self):
        ok, _ = check_disjoint(self.entries("x < 3", "x == 3", "3 < x"))
        assert ok

    def test_not_equal_covers_everything_but_the_point(self):
        assert check_disjoint(self.entries("x != 1", "x == 1"))[0]
        assert not check_disjoint(self.entries("x != 1", "x == 2"))[0]

    def test_result_does_not_depend_on_order(self):
        conditions = ["x < -4", "-4 <= x < 1", "0 <= x < 3", "x == 3", "3 < x"]
        reference = None
        for perm in itertools.permutations(conditions):
            ok, overlap = check_disjoint(self.entries(*perm))
            assert not ok
            found = (str(overlap.first.interval), str(overlap.second.interval))
            if reference is None:
                reference = found
            assert found == reference
        assert reference == ("[-4, 1)", "[0, 3)")

    def test_scenario_intervals_are_disjoint(self):
        ok, overlap = check_disjoint(self.entries(
            "x < -4", "-4<=x < 1", "1<=x < 3", "x==3", "3 < x < 5", "5<= x"))
        assert ok and overlap is None

    def test_identical_entries_overlap(self):
        entry = PieceInterval(Interval(0.0, 1.0, True, True), 0)
        other = PieceInterval(Interval(0.0, 1.0, True, True), 1)
        assert not check_disjoint([entry, other])[0]


class TestEndpointMarkers:
    def pieces(self, *pairs):
        return [(parse_normalized(e), parse_normalized(c)) for e, c in pairs]

    def test_open_and_closed(self):
        markers = endpoint_markers(self.pieces(("x", "x < 1"), ("2", "1 <= x")))
        assert [(m.x, m.y, m.kind, m.part_index) for m in markers] == [
            (1.0, 1.0, OPEN, 0),
            (1.0, 2.0, CLOSED, 1),
        ]

    def test_not_equal_gives_one_open_marker(self):
        markers = endpoint_markers(self.pieces(("x^2", "x != 1"), ("3", "x = 1")))
        assert [(m.x, m.y, m.kind, m.part_index) for m in markers] == [
            (1.0, 1.0, OPEN, 0),
            (1.0, 3.0, CLOSED, 1),
        ]

    def test_non_finite_boundary_has_no_marker(self):
        markers = endpoint_markers(self.pieces(("1/x", "0 < x <= 1")))
        assert [(m.x, m.y, m.kind) for m in markers] == [(1.0, 1.0, CLOSED)]
