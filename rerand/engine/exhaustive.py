"""
Exhaustive rerandomisation.

Enumerates every assignment the design could have produced and evaluates
the statistic on each one, giving the exact null distribution.

Design
------
- Unblocked: all C(n, k) k-subsets of the n positions, in lexicographic
  order (`itertools.combinations`).
- Blocked: one treated unit per block, all combinations across blocks
  (`itertools.product`), lexicographic over sorted block labels. For k
  blocks of m units this is m**k assignments (2**k for pairs).
- Every attainable assignment appears exactly once. The observed
  assignment is among them by construction.
- Cost is combinatorial. Enumeration is never refused; a
  `ComputationalInfeasibilityWarning` is emitted above a configurable
  count and picking Monte Carlo remains the caller's decision.
"""

from __future__ import annotations

import itertools
import math
import os
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..config import DEFAULTS
from ..errors import ComputationalInfeasibilityWarning
from ..stats import Statistic, check_stat_value

# ------------------------------------------------------------------ #
# Enumeration
# ------------------------------------------------------------------ #


def iter_combinations(n: int, k: int) -> Iterator[Tuple[int, ...]]:
    """Yield every k-subset of range(n) once, in lexicographic order."""
    if not 0 < k < n:
        raise ValueError(f"iter_combinations: need 0 < k < n (got n={n}, k={k}).")
    return itertools.combinations(range(n), k)


def block_candidates(block_codes: np.ndarray) -> List[np.ndarray]:
    """Index arrays of the units in each block, for dense codes 0..B-1."""
    codes = np.asarray(block_codes, dtype=np.int64)
    return [np.flatnonzero(codes == b) for b in range(int(codes.max()) + 1)]


def iter_block_assignments(
    candidates: Sequence[np.ndarray],
) -> Iterator[Tuple[int, ...]]:
    """Yield every choice of one unit per block once (Cartesian product)."""
    return itertools.product(*(c.tolist() for c in candidates))


def count_rerandomisations(
    n: int, k: int, candidates: Optional[Sequence[np.ndarray]] = None
) -> int:
    """
    Exact number of assignments an exhaustive run evaluates.

    C(n, k) without blocking; the product of block sizes with blocking.
    """
    if candidates is None:
        return math.comb(n, k)
    return math.prod(len(c) for c in candidates)


def _warn_if_large(count: int, threshold: int) -> Optional[str]:
    if count <= threshold:
        return None
    msg = (
        f"Exhaustive rerandomisation will evaluate {count:,} assignments "
        f"(threshold {threshold:,}); consider Monte Carlo rerandomisation."
    )
    warnings.warn(msg, ComputationalInfeasibilityWarning, stacklevel=3)
    return msg


# ------------------------------------------------------------------ #
# Evaluation
# ------------------------------------------------------------------ #


# Assignments handed to the thread pool per batch.
_CHUNK_ROWS = 10_000


def _coerce_n_jobs(val: Optional[int]) -> int:
    """Normalise `n_jobs` to a sensible positive integer."""
    if val is None:
        return 1
    if val == -1:
        return max(os.cpu_count() or 1, 1)
    return max(int(val), 1)


def evaluate_assignments(
    y: np.ndarray,
    assignments: Iterable[Sequence[int]],
    statistic: Statistic,
    size: int,
    *,
    n_jobs: Optional[int] = 1,
    chunk_rows: int = _CHUNK_ROWS,
) -> np.ndarray:
    """
    Apply `statistic` to each assignment, keeping input order.

    `size` is the number of assignments the iterator yields; the output is
    pre-allocated to it. With several threads the iterator is consumed
    `chunk_rows` assignments at a time, so at most one chunk of pending
    work exists at once.
    """
    if chunk_rows < 1:
        raise ValueError(f"evaluate_assignments: chunk_rows must be >= 1 (got {chunk_rows}).")
    out = np.empty(size, dtype=np.float64)
    workers = _coerce_n_jobs(n_jobs)

    def _eval_one(args: Tuple[int, Sequence[int]]) -> Tuple[int, float]:
        r, combo = args
        idx = np.asarray(combo, dtype=np.intp)
        return r, check_stat_value(statistic(y, idx), assignment=idx)

    filled = 0
    numbered = enumerate(assignments)
    if workers == 1:
        for r, combo in numbered:
            out[r] = _eval_one((r, combo))[1]
            filled += 1
    else:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            while True:
                chunk = list(itertools.islice(numbered, chunk_rows))
                if not chunk:
                    break
                for r, z in ex.map(_eval_one, chunk):
                    out[r] = z
                    filled += 1

    if filled != size:
        raise RuntimeError(
            f"evaluate_assignments: expected {size} assignments, got {filled}."
        )
    return out


def exhaustive_null(
    outcome,
    treatment_idx,
    statistic: Statistic,
    *,
    candidates: Optional[Sequence[np.ndarray]] = None,
    n_jobs: Optional[int] = 1,
    warn_threshold: Optional[int] = None,
    warnings_out: Optional[List[str]] = None,
) -> np.ndarray:
    """
    Exact null distribution of `statistic` under rerandomisation.

    Parameters
    ----------
    outcome : array-like
        Outcome vector of length n.
    treatment_idx : array-like of int
        Observed treated positions; only its size k is used without blocking.
    statistic : callable
        `(outcome, treatment_idx) -> float`.
    candidates : sequence of ndarray, optional
        Units of each block (see `block_candidates`). Switches to blocked mode.
    n_jobs : int, optional
        Threads used to evaluate the statistic (-1 = all cores).
    warn_threshold : int, optional
        Warn above this many assignments (default: DEFAULTS["exhaustive_warn"]).
    warnings_out : list of str, optional
        Receives the warning message, if one is emitted.

    Returns
    -------
    ndarray
        float64 array of length C(n, k), or the product of block sizes.
    """
    y = np.asarray(outcome, dtype=np.float64)
    n = y.shape[0]
    k = int(np.asarray(treatment_idx).size)
    threshold = int(DEFAULTS["exhaustive_warn"]) if warn_threshold is None else warn_threshold

    size = count_rerandomisations(n, k, candidates)
    msg = _warn_if_large(size, threshold)
    if msg is not None and warnings_out is not None:
        warnings_out.append(msg)

    if candidates is None:
        assignments = iter_combinations(n, k)
    else:
        assignments = iter_block_assignments(candidates)

    return evaluate_assignments(y, assignments, statistic, size, n_jobs=n_jobs)


__all__ = [
    "iter_combinations",
    "block_candidates",
    "iter_block_assignments",
    "count_rerandomisations",
    "evaluate_assignments",
    "exhaustive_null",
]
