import math

import pytest

from services.errors import DuplicateLabelError, IndexOutOfRangeError
from services.range_set import Range, RangeSet


def _values(range_set):
    return [r.value for r in range_set]


def test_update_value_takes_excess_from_other_range():
    ranges = RangeSet.from_pairs([("A", 50), ("B", 50)])

    updated = ranges.update_value(0, 70)

    assert updated.labels == ["A", "B"]
    assert _values(updated) == pytest.approx([70.0, 30.0])
    assert updated.is_complete()
    # original left untouched
    assert _values(ranges) == [50.0, 50.0]


def test_update_value_under_hundred_leaves_others_alone():
    ranges = RangeSet.from_pairs([("A", 50), ("B", 30), ("C", 20)])

    updated = ranges.update_value(0, 10)

    assert _values(updated) == [10.0, 30.0, 20.0]
    assert updated.remaining == pytest.approx(40.0)
    assert not updated.is_complete()


def test_update_value_clamps_input():
    ranges = RangeSet.from_pairs([("A", 50), ("B", 50)])

    assert _values(ranges.update_value(1, 250)) == pytest.approx([0.0, 100.0])
    assert _values(ranges.update_value(1, -10)) == pytest.approx([50.0, 0.0])


def test_delete_range_absorbs_into_survivors():
    ranges = RangeSet.from_pairs([("A", 80), ("B", 20)])

    updated = ranges.delete_range(1)

    assert updated.ranges == (Range("A", 100.0),)
    assert updated.is_complete()


def test_delete_range_preserves_total():
    ranges = RangeSet.from_pairs([("0-18", 25), ("19-35", 40), ("36-55", 25), ("56+", 10)])

    updated = ranges.delete_range(1)

    assert updated.labels == ["0-18", "36-55", "56+"]
    assert math.isclose(updated.sum(), ranges.sum())
    assert all(v >= 0 for v in _values(updated))


def test_deleting_last_range_gives_empty_set():
    updated = RangeSet.from_pairs([("A", 100)]).delete_range(0)

    assert len(updated) == 0
    assert updated.sum() == 0
    assert not updated.is_complete()


def test_add_range_appends_without_renormalising():
    ranges = RangeSet.from_pairs([("A", 50), ("B", 50)])

    updated = ranges.add_range("C", 20)

    assert updated.labels == ["A", "B", "C"]
    assert _values(updated) == [50.0, 50.0, 20.0]
    assert updated.remaining == pytest.approx(-20.0)


def test_add_range_rejects_duplicate_and_empty_labels():
    ranges = RangeSet.from_pairs([("Male", 50), ("Female", 50)])

    with pytest.raises(DuplicateLabelError):
        ranges.add_range("Male", 0)
    with pytest.raises(DuplicateLabelError):
        ranges.add_range("", 0)


def test_label_comparison_is_case_sensitive():
    ranges = RangeSet.from_pairs([("Urban", 100)])

    assert ranges.add_range("urban", 0).labels == ["Urban", "urban"]


@pytest.mark.parametrize("index", [-1, 2, 10])
def test_invalid_index_is_rejected(index):
    ranges = RangeSet.from_pairs([("A", 50), ("B", 50)])

    with pytest.raises(IndexOutOfRangeError):
        ranges.update_value(index, 10)
    with pytest.raises(IndexOutOfRangeError):
        ranges.delete_range(index)


def test_empty_set_is_never_complete():
    assert not RangeSet().is_complete()
    assert RangeSet().remaining == 100.0


def test_list_round_trip_keeps_order():
    items = [{"label": "B", "value": 60.0}, {"label": "A", "value": 40.0}]

    assert RangeSet.from_list(items).to_list() == items
