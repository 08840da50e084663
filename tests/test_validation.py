# tests/test_validation.py
import dataclasses
import types

import numpy as np
import pandas as pd
import pytest

from rerand.errors import DegenerateStatistic, InvalidPartition, ValidationError
from rerand.stats import mean_diff
from rerand.validation import check_stat_value, treatment_indices, validate_inputs

# -----------------------------
# outcome
# -----------------------------


@pytest.mark.parametrize(
    "outcome,msg",
    [
        ([1.0], "at least 2"),
        ([[1.0, 2.0], [3.0, 4.0]], "one-dimensional"),
        ([1.0, np.nan, 3.0], "non-finite"),
        (["a", "b", "c"], "numeric"),
    ],
)
def test_bad_outcomes(outcome, msg):
    with pytest.raises(ValidationError, match=msg):
        validate_inputs(outcome, [0], mean_diff)


def test_accepts_pandas_series_and_returns_float_array():
    v = validate_inputs(pd.Series([1, 2, 3, 4]), [1, 0], mean_diff)
    assert v.y.dtype == np.float64
    assert v.treat_idx.tolist() == [0, 1]
    assert v.obs_stat == pytest.approx(-2.0)
    assert not v.blocked


# -----------------------------
# treatment indices
# -----------------------------


@pytest.mark.parametrize(
    "idx,msg",
    [
        ([], "empty"),
        ([0, 1, 2, 3], "every observation"),
        ([0, 0], "duplicates"),
        ([4], "lie in"),
        ([-1], "lie in"),
    ],
)
def test_invalid_partitions(idx, msg):
    with pytest.raises(InvalidPartition, match=msg):
        validate_inputs([1.0, 2.0, 3.0, 4.0], idx, mean_diff)


def test_boolean_mask_is_refused_with_hint():
    with pytest.raises(ValidationError, match="treatment_indices"):
        validate_inputs([1.0, 2.0, 3.0], [True, False, True], mean_diff)


def test_integral_floats_accepted_fractional_refused():
    v = validate_inputs([1.0, 2.0, 3.0], [0.0, 2.0], mean_diff)
    assert v.treat_idx.tolist() == [0, 2]
    with pytest.raises(ValidationError):
        validate_inputs([1.0, 2.0, 3.0], [0.5], mean_diff)


def test_treatment_indices_from_labels():
    groups = ["control", "treatment", "treatment", "control", "treatment"]
    assert treatment_indices(groups, "treatment").tolist() == [1, 2, 4]
    assert treatment_indices(pd.Series(groups), "control").tolist() == [0, 3]


@pytest.mark.parametrize(
    "groups,label",
    [
        (["a", "b", "c"], "a"),
        (["a", "a", "a"], "a"),
        (["a", "b", "a"], "z"),
        (["a", None, "b"], "a"),
    ],
)
def test_treatment_indices_errors(groups, label):
    with pytest.raises(ValidationError):
        treatment_indices(groups, label)


# -----------------------------
# blocks
# -----------------------------


def test_blocks_are_factorised_in_sorted_label_order():
    block = ["p2", "p1", "p2", "p1"]
    v = validate_inputs([1.0, 2.0, 3.0, 4.0], [0, 1], mean_diff, block=block)
    assert v.blocked
    assert v.block_codes.tolist() == [1, 0, 1, 0]
    assert [c.tolist() for c in v.candidates] == [[1, 3], [0, 2]]


@pytest.mark.parametrize(
    "block,idx,msg",
    [
        ([1, 1, 2, 2, 3], [0, 2], "at least 2"),
        ([1, 1, 2, 2, 2, 2], [0, 2], "same size"),
        ([1, 1, 2, 2], [0, 1], "exactly one treated"),
        ([1, 1, 2, 2], [0], "exactly one treated"),
    ],
)
def test_block_design_errors(block, idx, msg):
    y = np.arange(len(block), dtype=float)
    with pytest.raises(InvalidPartition, match=msg):
        validate_inputs(y, idx, mean_diff, block=block)


def test_block_length_and_missing_labels():
    with pytest.raises(ValidationError, match="length"):
        validate_inputs([1.0, 2.0, 3.0, 4.0], [0, 2], mean_diff, block=[1, 1, 2])
    with pytest.raises(ValidationError, match="missing"):
        validate_inputs([1.0, 2.0, 3.0, 4.0], [0, 2], mean_diff, block=[1, 1, None, 2])


# -----------------------------
# statistic
# -----------------------------


def test_statistic_must_be_callable():
    with pytest.raises(ValidationError, match="callable"):
        validate_inputs([1.0, 2.0], [0], "mean")  # type: ignore[arg-type]


def test_statistic_error_is_wrapped_with_context():
    def broken(outcome, treatment_idx):
        raise KeyError("oops")

    with pytest.raises(ValidationError, match="observed assignment") as exc:
        validate_inputs([1.0, 2.0, 3.0], [0], broken)
    assert isinstance(exc.value.__cause__, KeyError)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), np.array([1.0, 2.0]), "1.0", 1 + 2j])
def test_degenerate_statistic_values(value):
    with pytest.raises(DegenerateStatistic):
        validate_inputs([1.0, 2.0, 3.0], [0], lambda y, i: value)


def test_check_stat_value_accepts_numpy_scalars():
    assert check_stat_value(np.float32(1.5)) == 1.5
    assert check_stat_value(np.int64(3)) == 3.0


def test_slow_statistic_warns(monkeypatch):
    ticks = iter([0.0, 2.5])
    fake_time = types.SimpleNamespace(perf_counter=lambda: next(ticks))
    monkeypatch.setattr("rerand.validation.time", fake_time)
    with pytest.warns(RuntimeWarning, match="slow"):
        v = validate_inputs([1.0, 2.0, 3.0], [0], mean_diff)
    assert len(v.warnings) == 1


def test_set_of_positions_is_sorted_and_accepted():
    v = validate_inputs([1.0, 2.0, 3.0, 4.0], {2, 0}, mean_diff)
    assert v.treat_idx.tolist() == [0, 2]
    with pytest.raises(InvalidPartition, match="empty"):
        validate_inputs([1.0, 2.0, 3.0, 4.0], set(), mean_diff)


def test_validated_inputs_carry_design_fields_only():
    v = validate_inputs([1.0, 2.0, 3.0, 4.0], [0, 2], mean_diff, block=["a", "a", "b", "b"])
    names = {f.name for f in dataclasses.fields(v)}
    assert names == {"y", "treat_idx", "statistic", "obs_stat", "block_codes", "candidates", "warnings"}
    assert [c.tolist() for c in v.candidates] == [[0, 1], [2, 3]]
