"""
Simulated example datasets.

Small generative models that produce inputs for the tests in this
package. Nothing in the inference engine depends on this module.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
import pandas as pd

__all__ = ["generate_crossover", "generate_blocking"]


def generate_crossover(
    n: int = 40,
    sd_baseline: float = 1.0,
    sd_error: float = 0.3,
    effect_a: float = 0.3,
    effect_last: float = 0.4,
    carryover_a: float = 0.0,
    *,
    rng: Optional[np.random.Generator] = None,
) -> pd.DataFrame:
    """
    Simulate an AB/BA crossover experiment.

    Parameters
    ----------
    n : int
        Participants; ceil(n/2) get order AB, floor(n/2) order BA.
    sd_baseline : float
        Standard deviation of the participant baseline.
    sd_error : float
        Standard deviation of the measurement error on each score.
    effect_a : float
        Benefit of A relative to B.
    effect_last : float
        Benefit of the second period relative to the first.
    carryover_a : float
        Boost to B when it follows A.
    rng : numpy.random.Generator, optional
        Source of randomness (fresh entropy if omitted).

    Returns
    -------
    DataFrame
        Columns `order`, `A`, `B`, `difference_AB`, `period_difference`.
    """
    if n < 2:
        raise ValueError(f"n must be at least 2 (got {n})")
    if rng is None:
        rng = np.random.default_rng()

    baseline = rng.normal(0.0, sd_baseline, size=n)
    n_ab = math.ceil(n / 2)
    order = np.array(["AB"] * n_ab + ["BA"] * (n - n_ab), dtype=object)
    is_ab = order == "AB"

    a = baseline + effect_a
    b = baseline.copy()
    b[is_ab] += effect_last + carryover_a
    a[~is_ab] += effect_last
    a = a + rng.normal(0.0, sd_error, size=n)
    b = b + rng.normal(0.0, sd_error, size=n)

    difference_ab = a - b
    return pd.DataFrame(
        {
            "order": order,
            "A": a,
            "B": b,
            "difference_AB": difference_ab,
            "period_difference": np.where(is_ab, difference_ab, -difference_ab),
        }
    )


def generate_blocking(
    n: int = 32,
    effect: float = 0.3,
    sd_noise: float = 0.4,
    *,
    rng: Optional[np.random.Generator] = None,
) -> pd.DataFrame:
    """
    Simulate a pretest-blocked experiment with blocks of two.

    Units are sorted on a standard-normal pretest and paired with their
    neighbour; one unit per pair is randomly assigned to the intervention,
    which adds `effect` to its score.

    Returns
    -------
    DataFrame
        Columns `Block` (1-based), `Condition` ("control" or
        "intervention") and `Score`.
    """
    if n < 4 or n % 2:
        raise ValueError(f"n must be an even number >= 4 (got {n})")
    if rng is None:
        rng = np.random.default_rng()

    pretest = np.sort(rng.normal(size=n))
    control = pretest + rng.normal(0.0, sd_noise, size=n)
    block = np.repeat(np.arange(1, n // 2 + 1), 2)

    # one intervention unit per block: offset 0 or 1 inside each pair
    treated = np.arange(0, n, 2) + rng.integers(0, 2, size=n // 2)
    is_treated = np.zeros(n, dtype=bool)
    is_treated[treated] = True

    return pd.DataFrame(
        {
            "Block": block,
            "Condition": np.where(is_treated, "intervention", "control"),
            "Score": np.where(is_treated, control + effect, control),
        }
    )
