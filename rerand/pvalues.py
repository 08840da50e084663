"""
Rerandomisation p-values.

Compares the observed statistic against a null sample (exact or
simulated) and reports left-, right- and two-sided p-values:

    left      = mean(null <= obs + eps)
    right     = mean(null >= obs - eps)
    two-sided = min(2 * min(left, right), 1)

`eps` absorbs floating-point noise when a null value equals the observed
statistic mathematically but differs in the last bits. It defaults to the
square root of float64 machine epsilon.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .config import DEFAULTS
from .errors import DegenerateStatistic

__all__ = ["PValues", "tail_counts", "rerandomisation_pvalues"]

LABELS = ("left-sided p-value", "right-sided p-value", "two-sided p-value")


@dataclass(frozen=True)
class PValues:
    """Left-sided, right-sided and two-sided p-values, each in [0, 1]."""

    left: float
    right: float
    two_sided: float

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(LABELS, (self.left, self.right, self.two_sided)))

    def __getitem__(self, alternative: str) -> float:
        """Look up by alternative: 'left', 'right' or 'two-sided'."""
        key = alternative.replace("_", "-")
        if key == "left":
            return self.left
        if key == "right":
            return self.right
        if key == "two-sided":
            return self.two_sided
        raise KeyError(f"Unknown alternative: {alternative!r}")


def _resolve_eps(eps: Optional[float]) -> float:
    eps = float(DEFAULTS["eps"]) if eps is None else float(eps)
    if not (np.isfinite(eps) and eps >= 0.0):
        raise ValueError(f"eps must be a finite, non-negative number (got {eps!r})")
    return eps


def tail_counts(null_stats, obs_stat: float, eps: Optional[float] = None) -> Tuple[int, int]:
    """
    Count null values at or below / at or above the observed statistic.

    Returns
    -------
    (c_left, c_right) : tuple of int
    """
    eps = _resolve_eps(eps)
    null = np.asarray(null_stats, dtype=np.float64).ravel()
    if null.size == 0:
        raise ValueError("null_stats must contain at least one value")
    if not np.all(np.isfinite(null)):
        raise DegenerateStatistic("null distribution contains non-finite values")
    obs = float(obs_stat)
    if not np.isfinite(obs):
        raise DegenerateStatistic(f"observed statistic is not finite ({obs!r})", value=obs)

    c_left = int(np.count_nonzero(null <= obs + eps))
    c_right = int(np.count_nonzero(null >= obs - eps))
    return c_left, c_right


def rerandomisation_pvalues(
    null_stats, obs_stat: float, eps: Optional[float] = None
) -> PValues:
    """
    Left-, right- and two-sided p-values of `obs_stat` against `null_stats`.

    Parameters
    ----------
    null_stats : array-like
        Null distribution sample; should include the observed assignment.
    obs_stat : float
        Statistic on the observed assignment.
    eps : float, optional
        Tie tolerance (default: DEFAULTS["eps"]).
    """
    c_left, c_right = tail_counts(null_stats, obs_stat, eps)
    size = np.asarray(null_stats).size
    left = c_left / size
    right = c_right / size
    two_sided = min(2.0 * min(left, right), 1.0)
    return PValues(left=left, right=right, two_sided=two_sided)
