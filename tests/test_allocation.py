import math

import pytest

from services.allocation import (
    apply_proportional_absorption,
    apply_proportional_excess,
    clamp_percentage,
    is_complete,
    remainder,
)


def test_clamp_percentage_limits_to_zero_and_hundred():
    assert clamp_percentage(-5) == 0.0
    assert clamp_percentage(150) == 100.0
    assert clamp_percentage(42.5) == 42.5


def test_clamp_percentage_rejects_nan():
    with pytest.raises(ValueError):
        clamp_percentage(float("nan"))


def test_excess_split_between_others_by_share():
    result = apply_proportional_excess([40.0, 30.0, 30.0], 0, 70.0)

    # excess 30 taken from two equal ranges
    assert result == pytest.approx([70.0, 15.0, 15.0])
    assert math.isclose(sum(result), 100.0)


def test_excess_weighted_by_current_share():
    result = apply_proportional_excess([20.0, 60.0, 20.0], 0, 60.0)

    # excess 40, others total 80: B gives 30, C gives 10
    assert result == pytest.approx([60.0, 30.0, 10.0])


def test_no_change_to_others_when_total_stays_under_hundred():
    before = [20.0, 30.0, 10.0]
    result = apply_proportional_excess(before, 1, 50.0)

    assert result == [20.0, 50.0, 10.0]
    assert before == [20.0, 30.0, 10.0]


def test_ranges_at_zero_absorb_nothing():
    result = apply_proportional_excess([10.0, 90.0, 0.0], 0, 100.0)

    assert result == pytest.approx([100.0, 0.0, 0.0])
    assert min(result) >= 0.0


@pytest.mark.parametrize(
    "values, index, new_value",
    [
        ([50.0, 50.0], 0, 70.0),
        ([25.0, 40.0, 25.0, 10.0], 3, 90.0),
        ([33.3, 33.3, 33.4], 2, 100.0),
        ([60.0, 60.0, 5.0], 1, 80.0),
    ],
)
def test_excess_reduction_never_exceeds_excess(values, index, new_value):
    substituted = list(values)
    substituted[index] = new_value
    excess = max(0.0, sum(substituted) - 100.0)

    result = apply_proportional_excess(values, index, new_value)

    reduction = sum(substituted[j] - result[j] for j in range(len(values)) if j != index)
    assert reduction <= excess + 1e-9
    assert all(v >= 0.0 for v in result)


def test_absorption_distributes_by_share():
    result = apply_proportional_absorption([20.0, 60.0, 20.0], 0)

    # 20 split 60:20 between the survivors
    assert result == pytest.approx([75.0, 25.0])
    assert math.isclose(sum(result), 100.0)


def test_absorption_preserves_incomplete_total():
    before = [10.0, 30.0, 20.0]
    result = apply_proportional_absorption(before, 1)

    assert math.isclose(sum(result), sum(before))


def test_absorption_drops_value_when_survivors_are_zero():
    assert apply_proportional_absorption([100.0, 0.0, 0.0], 0) == [0.0, 0.0]


def test_absorption_of_last_range_leaves_nothing():
    assert apply_proportional_absorption([100.0], 0) == []


def test_remainder_and_completeness():
    assert remainder([60.0, 30.0]) == pytest.approx(10.0)
    assert remainder([80.0, 40.0]) == pytest.approx(-20.0)
    assert is_complete([33.3333333, 33.3333333, 33.3333334])
    assert not is_complete([])
    assert not is_complete([99.9])
