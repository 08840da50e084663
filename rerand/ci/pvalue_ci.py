"""
Monte Carlo error of rerandomisation p-values.

A Monte Carlo run compares the observed statistic with `reps` sampled
assignments and counts how many land in a tail (`c_left` or `c_right`).
That count is a Binomial(reps, p) draw, where p is the tail p-value full
enumeration would give, so a binomial interval for p says how far the
estimate can be from the exact answer.

Methods
-------
clopper-pearson ("cp")
    Exact equal-tailed interval from beta quantiles. The lower bound is 0
    when no sampled value falls in the tail and the upper bound is 1 when
    all of them do.
normal ("wald")
    Normal approximation around c / reps, widened by 0.5 / reps on each
    side as a continuity correction.

The two-sided p-value is twice the smaller tail, capped at 1, and
`two_sided_ci` transforms the smaller tail's interval the same way.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Literal, Tuple

from scipy.stats import beta, norm

__all__ = ["pvalue_ci", "two_sided_ci"]

CIMethod = Literal["clopper-pearson", "cp", "normal", "wald"]
Interval = Tuple[float, float]


def _clopper_pearson(c: int, reps: int, alpha: float) -> Interval:
    lo = 0.0 if c == 0 else float(beta.ppf(alpha / 2.0, c, reps - c + 1))
    hi = 1.0 if c == reps else float(beta.ppf(1.0 - alpha / 2.0, c + 1, reps - c))
    return lo, hi


def _wald_corrected(c: int, reps: int, alpha: float) -> Interval:
    p = c / reps
    half_width = float(norm.ppf(1.0 - alpha / 2.0)) * math.sqrt(p * (1.0 - p) / reps)
    half_width += 0.5 / reps
    return p - half_width, p + half_width


_INTERVALS: Dict[str, Callable[[int, int, float], Interval]] = {
    "clopper-pearson": _clopper_pearson,
    "cp": _clopper_pearson,
    "normal": _wald_corrected,
    "wald": _wald_corrected,
}


def pvalue_ci(
    c: int,
    reps: int,
    alpha: float = 0.05,
    method: CIMethod = "clopper-pearson",
) -> Interval:
    """
    (1 - alpha) interval for a tail p-value estimated as `c / reps`.

    Parameters
    ----------
    c : int
        Sampled null statistics in the tail, observed assignment included.
    reps : int
        Monte Carlo sample size.
    alpha : float, default 0.05
        Non-coverage, split evenly between the two ends.
    method : {"clopper-pearson", "cp", "normal", "wald"}
        Interval construction.

    Returns
    -------
    (lower, upper) : tuple of float
        Bounds clipped to [0, 1].

    Raises
    ------
    ValueError
        For counts outside [0, reps], a non-positive `reps`, `alpha`
        outside (0, 1), or an unknown method.
    """
    if not isinstance(reps, int) or reps < 1:
        raise ValueError(f"`reps` must be a positive integer (got {reps!r})")
    if not isinstance(c, int) or not 0 <= c <= reps:
        raise ValueError(f"`c` must be an integer in [0, reps] (got {c!r})")
    if not 0.0 < float(alpha) < 1.0:
        raise ValueError(f"`alpha` must be in (0, 1) (got {alpha!r})")
    try:
        interval = _INTERVALS[method]
    except KeyError:
        raise ValueError(
            f"Unknown ci method: {method!r} (expected one of {sorted(_INTERVALS)})"
        ) from None

    lo, hi = interval(c, reps, float(alpha))
    return min(max(lo, 0.0), 1.0), min(max(hi, 0.0), 1.0)


def two_sided_ci(
    c_left: int,
    c_right: int,
    reps: int,
    alpha: float = 0.05,
    method: CIMethod = "clopper-pearson",
) -> Interval:
    """Interval for min(2 * min(left, right), 1), built from the smaller tail."""
    lo, hi = pvalue_ci(min(c_left, c_right), reps, alpha=alpha, method=method)
    return min(2.0 * lo, 1.0), min(2.0 * hi, 1.0)
