"""
AB/BA crossover designs.

Each participant receives both conditions, A and B, in one of two orders.
The analysis works on period differences:

    difference_AB     = A - B
    period_difference = difference_AB   for order AB
                      = -difference_AB  for order BA

Half the period difference is then compared between the AB and BA order
groups with the ordinary two-group rerandomisation machinery. With
`mean_diff` the observed statistic is the usual treatment-effect estimate
(mean PD(AB) - mean PD(BA)) / 2, which also equals the average of the two
order groups' mean A - B differences.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
import pandas as pd

from .errors import ValidationError
from .results import RerandResult
from .run import _dispatch
from .stats import Statistic, mean_diff
from .validation import validate_inputs

__all__ = [
    "crossover_differences",
    "crossover_inputs",
    "crossover_effect",
    "crossover_test",
]


def _require(cond: object, msg: str) -> None:
    if not bool(cond):
        raise ValidationError(f"Validation error: {msg}")


def crossover_differences(
    order,
    a,
    b,
    *,
    ab_label: str = "AB",
    ba_label: str = "BA",
) -> pd.DataFrame:
    """
    Per-participant crossover record.

    Parameters
    ----------
    order : array-like
        Order per participant; every value is `ab_label` or `ba_label` and
        both must occur.
    a, b : array-like of float
        Scores under condition A and condition B.

    Returns
    -------
    DataFrame
        Columns `order`, `A`, `B`, `difference_AB`, `period_difference`.
    """
    order_arr = np.asarray(order, dtype=object).ravel()
    a_arr = np.asarray(a, dtype=np.float64).ravel()
    b_arr = np.asarray(b, dtype=np.float64).ravel()

    n = order_arr.shape[0]
    _require(
        a_arr.shape[0] == n and b_arr.shape[0] == n,
        f"order, A and B must have equal length (got {n}, {a_arr.shape[0]}, {b_arr.shape[0]})",
    )
    _require(
        np.all(np.isfinite(a_arr)) and np.all(np.isfinite(b_arr)),
        "condition scores contain missing or non-finite values",
    )
    _require(ab_label != ba_label, "ab_label and ba_label must differ")

    is_ab = order_arr == ab_label
    is_ba = order_arr == ba_label
    unknown = sorted({str(o) for o in order_arr[~(is_ab | is_ba)]})
    _require(
        not unknown,
        f"order values must be {ab_label!r} or {ba_label!r} (found {unknown})",
    )
    _require(is_ab.any() and is_ba.any(), "both orders must be present")

    difference_ab = a_arr - b_arr
    period_difference = np.where(is_ab, difference_ab, -difference_ab)

    return pd.DataFrame(
        {
            "order": order_arr,
            "A": a_arr,
            "B": b_arr,
            "difference_AB": difference_ab,
            "period_difference": period_difference,
        }
    )


def crossover_inputs(
    order, a, b, *, ab_label: str = "AB", ba_label: str = "BA"
) -> Tuple[np.ndarray, np.ndarray]:
    """Outcome (half period differences) and AB positions for the engines."""
    d = crossover_differences(order, a, b, ab_label=ab_label, ba_label=ba_label)
    outcome = d["period_difference"].to_numpy() / 2.0
    treatment_idx = np.flatnonzero((d["order"] == ab_label).to_numpy()).astype(np.intp)
    return outcome, treatment_idx


def crossover_effect(order, a, b, *, ab_label: str = "AB", ba_label: str = "BA") -> float:
    """Treatment-effect estimate: (mean PD(AB) - mean PD(BA)) / 2."""
    outcome, idx = crossover_inputs(order, a, b, ab_label=ab_label, ba_label=ba_label)
    return mean_diff(outcome, idx)


def crossover_test(
    order,
    a,
    b,
    statistic: Statistic = mean_diff,
    *,
    method: str = "exhaustive",
    ab_label: str = "AB",
    ba_label: str = "BA",
    reps: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    eps: Optional[float] = None,
    alpha: Optional[float] = None,
    ci_method: Optional[str] = None,
    n_jobs: Optional[int] = None,
) -> RerandResult:
    """
    Rerandomisation test of A versus B in an AB/BA crossover design.

    The order assignment is rerandomised: `statistic` is applied to half
    the period differences with the AB participants as the "treated"
    group. Positive statistics favour condition A.

    Parameters
    ----------
    order, a, b :
        See `crossover_differences`.
    method : {"exhaustive", "montecarlo", "auto"}, default "exhaustive"
        Engine to use. Exhaustive enumeration is only practical for about
        18 participants.

    Other parameters are as in `rerand.run.montecarlo_test`.
    """
    outcome, idx = crossover_inputs(order, a, b, ab_label=ab_label, ba_label=ba_label)
    v = validate_inputs(outcome, idx, statistic)
    res = _dispatch(
        v,
        method,
        design="crossover",
        reps=reps,
        rng=rng,
        seed=seed,
        eps=eps,
        alpha=alpha,
        ci_method=ci_method,
        n_jobs=n_jobs,
    )
    res.settings["ab_label"] = ab_label
    res.settings["ba_label"] = ba_label
    return res
