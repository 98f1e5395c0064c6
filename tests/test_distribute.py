import pytest

from download_stats.config import BackfillConfig, BackfillStrategy, PatternFallback
from download_stats.distribute import (
    build_pattern_series,
    distribute,
    distribute_even,
    distribute_pattern,
    scale_to_total,
    should_distribute,
)
from download_stats.errors import NegativeDeltaError, PatternUnavailableError, UnsupportedStrategyError


def test_even_remainder_goes_to_earliest_days():
    assert distribute_even(3, 10) == [4, 3, 3]
    assert distribute_even(4, 6) == [2, 2, 1, 1]


def test_even_zero_total():
    assert distribute_even(4, 0) == [0, 0, 0, 0]


def test_even_single_day_gets_everything():
    assert distribute_even(1, 1234) == [1234]


@pytest.mark.parametrize("gap_days", [1, 2, 3, 7, 30, 31, 365, 400])
@pytest.mark.parametrize("total", [0, 1, 5, 399, 400, 401, 12345, 9_999_991, 10_000_000])
def test_even_sums_exactly_with_two_values(gap_days, total):
    result = distribute_even(gap_days, total)
    base = total // gap_days
    assert len(result) == gap_days
    assert sum(result) == total
    assert set(result) <= {base, base + 1}
    # extra units are front-loaded
    assert result == sorted(result, reverse=True)


def test_even_negative_total_is_signed_and_exact():
    result = distribute_even(3, -10)
    assert result == [-3, -3, -4]
    assert sum(result) == -10


def test_even_rejects_non_positive_gap():
    with pytest.raises(ValueError):
        distribute_even(0, 10)


def test_pattern_series_cycles_short_baseline():
    baseline = [1, 2, 3, 4, 5]
    assert build_pattern_series(baseline, 12) == [1, 2, 3, 4, 5, 1, 2, 3, 4, 5, 1, 2]


def test_pattern_series_uses_most_recent_values_of_long_baseline():
    assert build_pattern_series([9, 9, 1, 2, 3], 3) == [1, 2, 3]


def test_pattern_series_empty_baseline():
    assert build_pattern_series([], 5) == []


def test_scale_to_total_proportional():
    assert scale_to_total([1, 1, 2], 8) == [2, 2, 4]


def test_scale_to_total_largest_remainder():
    # raw shares 3.33.., 3.33.., 3.33.. -> one extra unit to the first day
    assert scale_to_total([5, 5, 5], 10) == [4, 3, 3]
    # raw shares 1.5, 4.5, 4.0 -> tie between days 0 and 1 goes to the earlier day
    assert scale_to_total([3, 9, 8], 10) == [2, 4, 4]


def test_scale_to_total_ignores_negative_weights():
    assert scale_to_total([-5, 1, 1], 4) == [0, 2, 2]


def test_scale_to_total_zero_mass():
    assert scale_to_total([0, -1, 0], 10) is None


def test_scale_to_total_zero_total():
    assert scale_to_total([0, 0, 0], 0) == [0, 0, 0]


def test_scale_to_total_negative_total():
    with pytest.raises(NegativeDeltaError):
        scale_to_total([1, 2], -1)


@pytest.mark.parametrize("baseline", [
    [1],
    [0, 0, 7],
    [120, 80, 95, 300, 12],
    [3, -2, 5, 0, 11, 1, 1, 1],
    list(range(1, 31)),
])
@pytest.mark.parametrize("gap_days", [2, 5, 12, 45])
@pytest.mark.parametrize("total", [0, 1, 17, 1000, 3_333_333])
def test_pattern_sums_exactly(baseline, gap_days, total):
    result = distribute_pattern(gap_days, total, baseline)
    assert len(result) == gap_days
    assert sum(result) == total
    assert all(v >= 0 for v in result)


def test_pattern_follows_baseline_shape():
    # weekday-heavy baseline: the busy days get the bigger share
    result = distribute_pattern(5, 100, [10, 30, 10, 40, 10])
    assert result == [10, 30, 10, 40, 10]


def test_pattern_cycles_before_scaling():
    result = distribute_pattern(12, 150, [1, 2, 3, 4, 5])
    # pattern [1..5, 1..5, 1, 2] has mass 33; five residual units go to the largest remainders
    assert result == [5, 9, 14, 18, 23, 4, 9, 14, 18, 23, 4, 9]


@pytest.mark.parametrize("baseline", [[], [0, 0, 0], [-3, 0, -1]])
def test_pattern_falls_back_to_even(baseline):
    assert distribute_pattern(4, 10, baseline) == distribute_even(4, 10)


@pytest.mark.parametrize("baseline", [[], [0, -1]])
def test_pattern_without_fallback_raises(baseline):
    with pytest.raises(PatternUnavailableError):
        distribute_pattern(4, 10, baseline, PatternFallback.NONE)


def test_pattern_zero_total_is_all_zero():
    assert distribute_pattern(4, 0, [5, 1, 2]) == [0, 0, 0, 0]
    assert distribute_pattern(4, 0, [], PatternFallback.NONE) == [0, 0, 0, 0]


def test_pattern_negative_total_falls_back_to_even():
    assert distribute_pattern(3, -10, [1, 2, 3]) == distribute_even(3, -10)


def test_pattern_negative_total_without_fallback_raises():
    with pytest.raises(NegativeDeltaError):
        distribute_pattern(3, -10, [1, 2, 3], PatternFallback.NONE)


def test_distribute_is_deterministic(pattern_config):
    baseline = [7, 3, 9, 1, 4]
    first = distribute(9, 1001, pattern_config, baseline)
    second = distribute(9, 1001, pattern_config, baseline)
    assert first == second


def test_distribute_dispatch(even_config, pattern_config):
    assert distribute(3, 10, even_config) == [4, 3, 3]
    assert distribute(3, 10, pattern_config, [1, 1, 8]) == [1, 1, 8]


@pytest.mark.parametrize("strategy", [BackfillStrategy.NONE, BackfillStrategy.STOCHASTIC])
def test_distribute_rejects_strategies_without_distribution(strategy):
    with pytest.raises(UnsupportedStrategyError):
        distribute(3, 10, BackfillConfig(strategy=strategy))


def test_should_distribute():
    config = BackfillConfig(strategy=BackfillStrategy.EVEN, minimum_gap_days=2)
    assert should_distribute(1, config) is False
    assert should_distribute(2, config) is True
    assert should_distribute(3, BackfillConfig(strategy=BackfillStrategy.NONE)) is False
