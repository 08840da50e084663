"""
Monte Carlo rerandomisation.

Approximates the exact null distribution by evaluating the statistic on
randomly drawn assignments when enumeration is out of reach.

Design
------
- Unblocked draws: a uniform k-subset of range(n), without replacement
  inside each draw and independent across draws.
- Blocked draws: one uniform unit per block, independent across blocks
  and across draws.
- The observed assignment's statistic is stored first, followed by
  reps - 1 draws, so the sample always has reps entries and the observed
  value carries at least 1/reps of the mass.
- The caller owns the `numpy.random.Generator`; nothing here seeds or
  touches global random state. All draws are taken sequentially from that
  generator before any evaluation, so results do not depend on `n_jobs`.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

import numpy as np

from ..stats import Statistic, check_stat_value
from .exhaustive import evaluate_assignments

# ------------------------------------------------------------------ #
# Single draws
# ------------------------------------------------------------------ #


def draw_subset(n: int, k: int, rng: np.random.Generator) -> np.ndarray:
    """Uniform random k-subset of range(n), sorted."""
    return np.sort(rng.choice(n, size=k, replace=False))


def draw_block_assignment(
    candidates: Sequence[np.ndarray], rng: np.random.Generator
) -> np.ndarray:
    """One uniformly chosen unit from each block, in block order."""
    sizes = np.fromiter((len(c) for c in candidates), dtype=np.int64, count=len(candidates))
    picks = rng.integers(0, sizes)
    return np.fromiter(
        (c[p] for c, p in zip(candidates, picks)), dtype=np.intp, count=len(candidates)
    )


# ------------------------------------------------------------------ #
# Streams of draws
# ------------------------------------------------------------------ #


def iter_draws(
    n: int,
    k: int,
    reps: int,
    rng: np.random.Generator,
    *,
    candidates: Optional[Sequence[np.ndarray]] = None,
) -> Iterator[np.ndarray]:
    """Yield `reps` independent random assignments from one generator."""
    if reps < 0:
        raise ValueError("iter_draws: `reps` must be non-negative.")
    for _ in range(reps):
        if candidates is None:
            yield draw_subset(n, k, rng)
        else:
            yield draw_block_assignment(candidates, rng)


def montecarlo_null(
    outcome,
    treatment_idx,
    statistic: Statistic,
    reps: int,
    rng: np.random.Generator,
    *,
    candidates: Optional[Sequence[np.ndarray]] = None,
    n_jobs: Optional[int] = 1,
) -> np.ndarray:
    """
    Simulated null distribution of `statistic` under rerandomisation.

    Parameters
    ----------
    outcome : array-like
        Outcome vector of length n.
    treatment_idx : array-like of int
        Observed treated positions.
    statistic : callable
        `(outcome, treatment_idx) -> float`.
    reps : int
        Total sample size, observed assignment included (>= 1).
    rng : numpy.random.Generator
        Source of randomness, owned by the caller.
    candidates : sequence of ndarray, optional
        Units of each block. Switches to blocked mode.
    n_jobs : int, optional
        Threads used to evaluate the statistic (-1 = all cores).

    Returns
    -------
    ndarray
        float64 array of length `reps`; element 0 is the observed statistic.
    """
    if not isinstance(rng, np.random.Generator):
        raise TypeError("montecarlo_null: `rng` must be a numpy.random.Generator.")
    reps = int(reps)
    if reps < 1:
        raise ValueError("montecarlo_null: `reps` must be a positive integer.")

    y = np.asarray(outcome, dtype=np.float64)
    idx = np.asarray(treatment_idx, dtype=np.intp)
    n, k = y.shape[0], idx.size

    out = np.empty(reps, dtype=np.float64)
    out[0] = check_stat_value(statistic(y, idx), assignment=idx)

    # Materialise draws first: the generator is consumed in a fixed order.
    draws: List[np.ndarray] = list(
        iter_draws(n, k, reps - 1, rng, candidates=candidates)
    )
    out[1:] = evaluate_assignments(y, iter(draws), statistic, reps - 1, n_jobs=n_jobs)
    return out


__all__ = ["draw_subset", "draw_block_assignment", "iter_draws", "montecarlo_null"]
