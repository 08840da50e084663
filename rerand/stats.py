"""
Test statistics for two-group comparisons.

Every statistic follows the same contract::

    statistic(outcome, treatment_idx) -> float

where `outcome` is the full outcome vector and `treatment_idx` holds the
positions of the treated observations. The complement is the control
group. Statistics must be pure and must not depend on the order of the
indices within a group. Any callable with this signature can be passed
to the engines in place of the built-ins below.
"""

from __future__ import annotations

from collections import abc
from typing import AbstractSet, Callable, Sequence, Tuple, Union

import numpy as np
from scipy.stats import trim_mean

from .errors import DegenerateStatistic, InvalidPartition

__all__ = [
    "Statistic",
    "as_positions",
    "check_stat_value",
    "split_groups",
    "mean_diff",
    "median_diff",
    "trimmed_mean_diff",
]

IndexLike = Union[Sequence[int], AbstractSet[int], np.ndarray]
Statistic = Callable[[np.ndarray, IndexLike], float]


def as_positions(treatment_idx: IndexLike):
    """
    Make treatment positions digestible by `np.asarray`.

    Sets become sorted lists and other plain iterables (generators, dict
    views) become lists; arrays, pandas objects and sequences pass through.
    """
    if isinstance(treatment_idx, (set, frozenset)):
        try:
            return sorted(treatment_idx)
        except TypeError:
            return list(treatment_idx)
    if (
        not hasattr(treatment_idx, "__array__")
        and not isinstance(treatment_idx, (abc.Sequence, str, bytes))
        and isinstance(treatment_idx, abc.Iterable)
    ):
        return list(treatment_idx)
    return treatment_idx


def check_stat_value(value: object, assignment: object = None) -> float:
    """
    Coerce a statistic's return value to float, refusing anything degenerate.

    Raises
    ------
    DegenerateStatistic
        If the value is not a real scalar or is NaN/inf.
    """
    arr = np.asarray(value)
    if arr.ndim != 0 or not (
        np.issubdtype(arr.dtype, np.number) or np.issubdtype(arr.dtype, np.bool_)
    ):
        raise DegenerateStatistic(
            f"statistic must return a real scalar (got {value!r})",
            value=value,
            assignment=assignment,
        )
    if np.iscomplexobj(arr):
        raise DegenerateStatistic(
            f"statistic returned a complex value ({value!r})",
            value=value,
            assignment=assignment,
        )
    out = float(arr)
    if not np.isfinite(out):
        raise DegenerateStatistic(
            f"statistic returned a non-finite value ({out!r})",
            value=out,
            assignment=assignment,
        )
    return out


def split_groups(outcome, treatment_idx: IndexLike) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return (treated, control) outcome arrays.

    Raises
    ------
    InvalidPartition
        If `treatment_idx` selects no observation or every observation.
    """
    y = np.asarray(outcome, dtype=np.float64)
    mask = np.zeros(y.shape[0], dtype=bool)
    mask[np.asarray(as_positions(treatment_idx), dtype=np.intp)] = True
    n_treated = int(mask.sum())
    if n_treated == 0 or n_treated == y.shape[0]:
        raise InvalidPartition(
            f"treatment group must be a proper, non-empty subset "
            f"(got {n_treated} of {y.shape[0]} observations)"
        )
    return y[mask], y[~mask]


def mean_diff(outcome, treatment_idx: IndexLike) -> float:
    """Difference between group means (treated minus control)."""
    treated, control = split_groups(outcome, treatment_idx)
    return float(treated.mean() - control.mean())


def median_diff(outcome, treatment_idx: IndexLike) -> float:
    """Difference between group medians (treated minus control)."""
    treated, control = split_groups(outcome, treatment_idx)
    return float(np.median(treated) - np.median(control))


def trimmed_mean_diff(
    outcome, treatment_idx: IndexLike, proportiontocut: float = 0.1
) -> float:
    """
    Difference between trimmed group means (treated minus control).

    `proportiontocut` is removed from each end of each group before
    averaging. Bind another value with `functools.partial` to keep the
    two-argument statistic contract.
    """
    treated, control = split_groups(outcome, treatment_idx)
    return float(trim_mean(treated, proportiontocut) - trim_mean(control, proportiontocut))
