# tests/test_stats.py
from functools import partial

import numpy as np
import pytest
from scipy.stats import trim_mean

from rerand.errors import InvalidPartition
from rerand.stats import mean_diff, median_diff, split_groups, trimmed_mean_diff


def test_split_groups_uses_complement_as_control():
    y = np.array([10.0, 20.0, 30.0, 40.0, 50.0])
    treated, control = split_groups(y, [4, 1])
    assert sorted(treated.tolist()) == [20.0, 50.0]
    assert sorted(control.tolist()) == [10.0, 30.0, 40.0]


@pytest.mark.parametrize("idx", [[], [0, 1, 2, 3]])
def test_split_groups_rejects_empty_or_full(idx):
    with pytest.raises(InvalidPartition):
        split_groups([1.0, 2.0, 3.0, 4.0], idx)


def test_mean_diff_concrete():
    assert mean_diff([1, 2, 3, 4], [0, 1]) == pytest.approx(-2.0)
    assert mean_diff([1, 2, 3, 4], [2, 3]) == pytest.approx(2.0)


def test_median_diff_concrete():
    y = [1.0, 2.0, 100.0, 3.0, 4.0, 5.0]
    # treated {1, 2, 100} -> 2 ; control {3, 4, 5} -> 4
    assert median_diff(y, [0, 1, 2]) == pytest.approx(-2.0)


def test_statistics_ignore_index_order():
    rng = np.random.default_rng(5)
    y = rng.normal(size=12)
    idx = [7, 0, 3, 10]
    for stat in (mean_diff, median_diff, trimmed_mean_diff):
        assert stat(y, idx) == pytest.approx(stat(y, sorted(idx)))


def test_mean_diff_swapping_groups_negates():
    rng = np.random.default_rng(11)
    y = rng.normal(size=9)
    idx = [0, 4, 5]
    rest = [i for i in range(9) if i not in idx]
    assert mean_diff(y, idx) == pytest.approx(-mean_diff(y, rest))


def test_trimmed_mean_diff_matches_scipy_and_partial():
    rng = np.random.default_rng(3)
    y = rng.standard_t(df=2, size=20)
    idx = np.arange(10)
    expected = trim_mean(y[:10], 0.2) - trim_mean(y[10:], 0.2)
    stat = partial(trimmed_mean_diff, proportiontocut=0.2)
    assert stat(y, idx) == pytest.approx(expected)


def test_statistics_return_plain_float():
    for stat in (mean_diff, median_diff, trimmed_mean_diff):
        assert isinstance(stat([1.0, 2.0, 3.0, 5.0], [0, 3]), float)


@pytest.mark.parametrize("idx", [{0, 1}, frozenset({1, 0}), (i for i in (1, 0)), range(2)])
def test_unordered_and_lazy_index_collections(idx):
    assert mean_diff([1, 2, 3, 4], idx) == pytest.approx(-2.0)


def test_split_groups_accepts_a_set():
    treated, control = split_groups([1.0, 2.0, 3.0, 4.0], {3, 0})
    assert treated.tolist() == [1.0, 4.0]
    assert control.tolist() == [2.0, 3.0]
