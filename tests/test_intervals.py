"""Unit tests for the interval model."""

import random

import pytest

from gloss_annote.intervals import (
    even_split,
    move_split,
    snap_to_duration,
    split_times,
    total_duration,
    validate_partition,
    with_new_ids,
)

from conftest import make_segments


class TestEvenSplit:
    def test_two_labels(self, id_factory):
        segs = even_split("t1", ["A", "B"], 10.0, id_factory=id_factory)
        assert [(s.label, s.start_time, s.end_time) for s in segs] == [("A", 0.0, 5.0), ("B", 5.0, 10.0)]
        assert [s.id for s in segs] == ["new1", "new2"]
        assert all(s.task_id == "t1" for s in segs)

    def test_boundaries_are_shared_exactly(self):
        segs = even_split("t1", ["A", "B", "C"], 10.0)
        for left, right in zip(segs, segs[1:]):
            assert left.end_time == right.start_time
        assert segs[0].start_time == 0.0
        assert segs[-1].end_time == 10.0
        validate_partition(segs, 10.0)

    def test_no_labels_or_no_duration(self):
        assert even_split("t1", [], 10.0) == []
        assert even_split("t1", ["A"], 0.0) == []
        assert even_split("t1", ["A"], -1.0) == []


class TestMoveSplit:
    def test_scenario_two_labels(self):
        segs = make_segments("t1", ["A", "B"], [0.0, 5.0, 10.0])

        segs = move_split(segs, 0, 7.0)
        assert (segs[0].start_time, segs[0].end_time) == (0.0, 7.0)
        assert (segs[1].start_time, segs[1].end_time) == (7.0, 10.0)

        segs = move_split(segs, 0, -3.0)
        assert (segs[0].start_time, segs[0].end_time) == (0.0, 0.0)
        assert (segs[1].start_time, segs[1].end_time) == (0.0, 10.0)

        segs = move_split(segs, 0, 12.0)
        assert (segs[0].start_time, segs[0].end_time) == (0.0, 10.0)
        assert (segs[1].start_time, segs[1].end_time) == (10.0, 10.0)

    def test_clamps_to_neighbour_limits_only(self):
        segs = make_segments("t1", ["A", "B", "C"], [0.0, 3.0, 6.0, 9.0])

        moved = move_split(segs, 1, 100.0)
        assert moved[1].end_time == 9.0
        assert moved[2].start_time == 9.0
        assert moved[0] == segs[0]

        moved = move_split(segs, 1, -100.0)
        assert moved[1].end_time == 3.0
        assert moved[1].start_time == 3.0
        assert moved[2].start_time == 3.0

    def test_only_neighbours_change_and_input_untouched(self):
        segs = make_segments("t1", ["A", "B", "C", "D"], [0.0, 1.0, 2.0, 3.0, 4.0])
        before = list(segs)
        moved = move_split(segs, 1, 2.5)
        assert segs == before
        assert moved[0] is segs[0]
        assert moved[3] is segs[3]
        assert moved[1].id == "s1" and moved[2].id == "s2"

    def test_moving_to_current_value_is_identity(self):
        segs = make_segments("t1", ["A", "B", "C"], [0.0, 2.0, 5.0, 9.0])
        for k, t in enumerate(split_times(segs)):
            assert move_split(segs, k, t) == segs

    def test_nan_is_ignored(self):
        segs = make_segments("t1", ["A", "B"], [0.0, 5.0, 10.0])
        assert move_split(segs, 0, float("nan")) == segs

    @pytest.mark.parametrize("k", [-1, 1, 5])
    def test_out_of_range_split(self, k):
        segs = make_segments("t1", ["A", "B"], [0.0, 5.0, 10.0])
        with pytest.raises(IndexError):
            move_split(segs, k, 1.0)

    def test_random_moves_keep_partition(self):
        rng = random.Random(7)
        duration = 42.0
        segs = even_split("t1", [f"G{i}" for i in range(8)], duration)
        for _ in range(500):
            k = rng.randrange(len(segs) - 1)
            segs = move_split(segs, k, rng.uniform(-10.0, duration + 10.0))
            for s in segs:
                assert s.start_time <= s.end_time
            for left, right in zip(segs, segs[1:]):
                assert left.end_time == right.start_time
        assert segs[0].start_time == 0.0
        assert segs[-1].end_time == duration
        assert total_duration(segs) == pytest.approx(duration)
        validate_partition(segs, duration)


class TestValidatePartition:
    def test_empty_is_valid(self):
        validate_partition([], 10.0)

    def test_gap(self):
        segs = make_segments("t1", ["A", "B"], [0.0, 4.0, 10.0])
        segs[1] = segs[1].__class__(id="x", task_id="t1", label="B", start_time=5.0, end_time=10.0)
        with pytest.raises(ValueError, match="gap or overlap"):
            validate_partition(segs, 10.0)

    def test_wrong_ends(self):
        with pytest.raises(ValueError, match="start at 0"):
            validate_partition(make_segments("t1", ["A"], [1.0, 10.0]), 10.0)
        with pytest.raises(ValueError, match="end at"):
            validate_partition(make_segments("t1", ["A"], [0.0, 9.0]), 10.0)

    def test_message_shows_sub_millisecond_drift(self):
        with pytest.raises(ValueError, match=r"end at 10\.000000, got 10\.000400"):
            validate_partition(make_segments("t1", ["A"], [0.0, 10.0004]), 10.0)


class TestSnapToDuration:
    def test_drift_past_the_end_is_snapped(self):
        segs = make_segments("t1", ["A", "B"], [0.0, 4.0, 10.0004])
        out = snap_to_duration(segs, 10.0)
        assert [(s.start_time, s.end_time) for s in out] == [(0.0, 4.0), (4.0, 10.0)]
        validate_partition(out, 10.0)
        assert segs[1].end_time == 10.0004

    def test_short_of_the_end_is_snapped(self):
        out = snap_to_duration(make_segments("t1", ["A", "B"], [0.0, 4.0, 9.97]), 10.0)
        assert out[-1].end_time == 10.0

    def test_collapsed_tail_stays_contiguous(self):
        segs = make_segments("t1", ["A", "B", "C"], [0.0, 10.001, 10.001, 10.001])
        out = snap_to_duration(segs, 10.0)
        assert [(s.start_time, s.end_time) for s in out] == [(0.0, 10.0), (10.0, 10.0), (10.0, 10.0)]
        validate_partition(out, 10.0)

    def test_start_drift_is_snapped(self):
        out = snap_to_duration(make_segments("t1", ["A"], [-0.002, 10.0]), 10.0)
        assert out[0].start_time == 0.0

    def test_far_off_is_left_alone(self):
        segs = make_segments("t1", ["A", "B"], [0.0, 4.0, 10.5])
        out = snap_to_duration(segs, 10.0)
        assert out[-1].end_time == 10.5
        with pytest.raises(ValueError, match="got 10.500000"):
            validate_partition(out, 10.0)

    def test_unknown_duration(self):
        segs = make_segments("t1", ["A"], [0.0, 10.0004])
        assert snap_to_duration(segs, 0.0) == segs
        assert snap_to_duration([], 10.0) == []


def test_with_new_ids_keeps_times(id_factory):
    segs = make_segments("t1", ["A", "B"], [0.0, 5.0, 10.0])
    fresh = with_new_ids(segs, id_factory=id_factory)
    assert [s.id for s in fresh] == ["new1", "new2"]
    assert [(s.label, s.start_time, s.end_time) for s in fresh] == [
        (s.label, s.start_time, s.end_time) for s in segs
    ]
