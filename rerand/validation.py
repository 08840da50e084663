"""
rerand.validation
=================

Centralised input validation for the public test functions.

The *only* job of this module is to:

1. Check that the user supplied a **consistent, supported** design.
2. Refuse anything unexpected or ambiguous with clear errors
   (`ValidationError`, `InvalidPartition`, `DegenerateStatistic`).
3. Convert array-likes and pandas objects to NumPy arrays of the *exact*
   dtypes required by the engines.

No mutation of caller data is done; block labels are factorised on copies.
"""

from __future__ import annotations

import time
import warnings
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd

from .engine.exhaustive import block_candidates
from .errors import InvalidPartition, ValidationError
from .stats import Statistic, as_positions, check_stat_value

__all__ = ["ValidatedInputs", "validate_inputs", "treatment_indices", "check_stat_value"]


# --------------------------------------------------------------------- #
# Public return container
# --------------------------------------------------------------------- #
@dataclass
class ValidatedInputs:
    """Everything downstream modules need, NA-free and correctly typed."""

    y: np.ndarray
    treat_idx: np.ndarray
    statistic: Statistic
    obs_stat: float

    # blocked designs only
    block_codes: Optional[np.ndarray] = None
    candidates: Optional[List[np.ndarray]] = None

    warnings: List[str] = field(default_factory=list)

    @property
    def n(self) -> int:
        return int(self.y.shape[0])

    @property
    def k(self) -> int:
        return int(self.treat_idx.shape[0])

    @property
    def blocked(self) -> bool:
        return self.candidates is not None


# --------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------- #
def _require(cond: object, msg: str, exc: type = ValidationError) -> None:
    """Raise `exc` with message if `cond` is falsy (bool-cast)."""
    if not bool(cond):
        raise exc(f"Validation error: {msg}")


def _outcome_array(outcome) -> np.ndarray:
    try:
        y = np.asarray(outcome, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Validation error: outcome must be numeric ({e})") from e
    _require(y.ndim == 1, f"outcome must be one-dimensional (got shape {y.shape})")
    _require(y.shape[0] >= 2, "outcome must contain at least 2 observations")
    _require(np.all(np.isfinite(y)), "outcome contains missing or non-finite values")
    return y


def _index_array(treatment_idx, n: int) -> np.ndarray:
    raw = np.asarray(as_positions(treatment_idx))
    _require(raw.ndim <= 1, "treatment_idx must be a flat sequence of positions")
    raw = raw.ravel()
    _require(
        not np.issubdtype(raw.dtype, np.bool_),
        "treatment_idx must hold integer positions, not a boolean mask "
        "(use `treatment_indices(groups, treatment)` to build them)",
    )
    if raw.size and not np.issubdtype(raw.dtype, np.integer):
        _require(
            np.issubdtype(raw.dtype, np.floating) and np.all(np.mod(raw, 1) == 0),
            "treatment_idx must hold integer positions",
        )
    idx = raw.astype(np.intp)

    _require(idx.size > 0, "treatment group is empty", InvalidPartition)
    _require(
        np.all((idx >= 0) & (idx < n)),
        f"treatment_idx must lie in [0, {n - 1}]",
        InvalidPartition,
    )
    uniq = np.unique(idx)
    _require(uniq.size == idx.size, "treatment_idx contains duplicates", InvalidPartition)
    _require(
        uniq.size < n,
        "treatment group covers every observation; no control group left",
        InvalidPartition,
    )
    return uniq


def _factorize_no_na(block, n: int) -> np.ndarray:
    """Factorize block labels to dense int64 codes, sorted for stability."""
    ser = block if isinstance(block, pd.Series) else pd.Series(np.asarray(block).ravel())
    _require(ser.shape[0] == n, f"block must have length {n} (got {ser.shape[0]})")
    _require(not ser.isna().any(), "block contains missing values")
    codes, _ = pd.factorize(ser, sort=True)
    return codes.astype(np.int64)


def _block_candidates(codes: np.ndarray, treat_idx: np.ndarray) -> List[np.ndarray]:
    """
    Per-block index arrays, checked for the one-treated-per-block design.

    Every block must hold the same number of units (at least 2) and exactly
    one of them must be treated.
    """
    candidates = block_candidates(codes)
    n_blocks = len(candidates)
    sizes = np.array([c.size for c in candidates])
    _require(
        sizes.min() >= 2,
        f"every block needs at least 2 units (smallest block has {sizes.min()})",
        InvalidPartition,
    )
    _require(
        np.all(sizes == sizes[0]),
        f"all blocks must have the same size (got sizes {sorted(set(sizes.tolist()))})",
        InvalidPartition,
    )
    treated_per_block = np.bincount(codes[treat_idx], minlength=n_blocks)
    bad = np.flatnonzero(treated_per_block != 1)
    _require(
        bad.size == 0,
        "each block must contain exactly one treated unit "
        f"({bad.size} block(s) violate this)",
        InvalidPartition,
    )
    return candidates


def treatment_indices(groups, treatment) -> np.ndarray:
    """
    Positions of `treatment` in a two-label group vector.

    Parameters
    ----------
    groups : array-like
        One label per observation, with exactly two distinct labels.
    treatment : object
        The label that marks treated observations.

    Returns
    -------
    np.ndarray
        Sorted 0-based positions (dtype intp).
    """
    ser = groups if isinstance(groups, pd.Series) else pd.Series(np.asarray(groups).ravel())
    _require(not ser.isna().any(), "groups contains missing values")
    n_labels = ser.nunique(dropna=True)
    _require(
        n_labels == 2,
        f"groups must have exactly 2 distinct labels (found {n_labels})",
    )
    mask = (ser == treatment).to_numpy()
    _require(mask.any(), f"treatment label {treatment!r} not found in groups")
    return np.flatnonzero(mask).astype(np.intp)


# --------------------------------------------------------------------- #
# Main public validator
# --------------------------------------------------------------------- #
def validate_inputs(
    outcome,
    treatment_idx,
    statistic: Statistic,
    *,
    block=None,
) -> ValidatedInputs:
    """
    Validate *all* design arguments and return clean NumPy arrays.

    The statistic is evaluated once on the observed assignment, both to
    check that it returns a finite scalar and to time it.

    Raises
    ------
    ValidationError
        Malformed outcome, block labels, or a statistic that raises.
    InvalidPartition
        Treatment indices that do not split the design into two groups.
    DegenerateStatistic
        Observed statistic is not a finite real scalar.
    """
    _require(callable(statistic), "statistic must be callable")

    y = _outcome_array(outcome)
    n = y.shape[0]
    idx = _index_array(treatment_idx, n)

    codes: Optional[np.ndarray] = None
    candidates: Optional[List[np.ndarray]] = None
    if block is not None:
        codes = _factorize_no_na(block, n)
        candidates = _block_candidates(codes, idx)

    warnings_list: List[str] = []

    # warm-up call to ensure scalar return + measure runtime
    t0 = time.perf_counter()
    try:
        stat0 = statistic(y, idx)
    except InvalidPartition:
        raise
    except Exception as e:
        raise ValidationError(
            f"statistic raised an error on the observed assignment: {e}"
        ) from e
    dt = time.perf_counter() - t0

    obs_stat = check_stat_value(stat0, assignment=idx)

    if dt > 1.0:
        msg = f"statistic took {dt:.2f}s; rerandomisation may be slow."
        warnings_list.append(msg)
        warnings.warn(msg, RuntimeWarning, stacklevel=2)

    return ValidatedInputs(
        y=y,
        treat_idx=idx,
        statistic=statistic,
        obs_stat=obs_stat,
        block_codes=codes,
        candidates=candidates,
        warnings=warnings_list,
    )
