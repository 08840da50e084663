"""Core rerandomisation-test orchestration for rerand.

This module contains the public test functions. Each one coordinates:

- configuration (DEFAULTS and explicit overrides),
- validation and preprocessing,
- the null distribution (exhaustive enumeration or Monte Carlo draws),
- p-values and, for Monte Carlo, a CI for the two-sided p-value,
- packaging results into `RerandResult`.
"""

from __future__ import annotations

import functools
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .ci.pvalue_ci import two_sided_ci
from .config import DEFAULTS, _validate_pair
from .engine.exhaustive import count_rerandomisations, exhaustive_null
from .engine.montecarlo import montecarlo_null
from .errors import ValidationError
from .pvalues import rerandomisation_pvalues, tail_counts
from .results import RerandResult
from .stats import Statistic, mean_diff
from .validation import ValidatedInputs, validate_inputs

__all__ = ["exhaustive_test", "montecarlo_test", "rerandomisation_test"]

_METHODS = {"exhaustive", "montecarlo", "auto"}


def _control(key: str, val: Any) -> Any:
    """Explicit value (validated like a config entry) or the current default."""
    if val is None:
        return DEFAULTS[key]
    return _validate_pair(key, val)


def _statistic_name(statistic: Statistic) -> str:
    if isinstance(statistic, functools.partial):
        return _statistic_name(statistic.func)
    return getattr(statistic, "__name__", type(statistic).__name__)


def _resolve_rng(
    rng: Optional[np.random.Generator], seed: Optional[int]
) -> Tuple[np.random.Generator, Optional[int]]:
    """Use the caller's generator, or build one from `seed` / DEFAULTS['seed']."""
    if rng is not None:
        if seed is not None:
            raise ValidationError("Validation error: pass either `rng` or `seed`, not both")
        if not isinstance(rng, np.random.Generator):
            raise ValidationError("Validation error: `rng` must be a numpy.random.Generator")
        return rng, None
    seed = _control("seed", seed)
    return np.random.default_rng(seed), seed


def _design_label(v: ValidatedInputs, design: Optional[str]) -> str:
    if design is not None:
        return design
    return "blocked" if v.blocked else "two-group"


def _run_exhaustive(
    v: ValidatedInputs,
    *,
    eps: Optional[float],
    n_jobs: Optional[int],
    design: Optional[str] = None,
) -> RerandResult:
    eps = _control("eps", eps)
    n_jobs = _control("n_jobs", n_jobs)

    warnings_list = list(v.warnings)
    null = exhaustive_null(
        v.y,
        v.treat_idx,
        v.statistic,
        candidates=v.candidates,
        n_jobs=n_jobs,
        warnings_out=warnings_list,
    )

    c_left, c_right = tail_counts(null, v.obs_stat, eps)
    settings: Dict[str, object] = {
        "statistic": _statistic_name(v.statistic),
        "eps": eps,
        "n_jobs": n_jobs,
        "n": v.n,
        "k": v.k,
        "blocks": len(v.candidates) if v.candidates is not None else None,
    }
    return RerandResult(
        obs_stat=v.obs_stat,
        pvalues=rerandomisation_pvalues(null, v.obs_stat, eps),
        c_left=c_left,
        c_right=c_right,
        reps=int(null.size),
        method="exhaustive",
        design=_design_label(v, design),
        pval_ci=None,
        null_stats=null,
        settings=settings,
        warnings=warnings_list,
    )


def _run_montecarlo(
    v: ValidatedInputs,
    *,
    reps: Optional[int],
    rng: Optional[np.random.Generator],
    seed: Optional[int],
    eps: Optional[float],
    alpha: Optional[float],
    ci_method: Optional[str],
    n_jobs: Optional[int],
    design: Optional[str] = None,
) -> RerandResult:
    reps = int(_control("reps", reps))
    eps = _control("eps", eps)
    alpha = _control("alpha", alpha)
    ci_method = _control("ci_method", ci_method)
    n_jobs = _control("n_jobs", n_jobs)
    gen, seed_used = _resolve_rng(rng, seed)

    null = montecarlo_null(
        v.y,
        v.treat_idx,
        v.statistic,
        reps,
        gen,
        candidates=v.candidates,
        n_jobs=n_jobs,
    )

    c_left, c_right = tail_counts(null, v.obs_stat, eps)
    settings: Dict[str, object] = {
        "statistic": _statistic_name(v.statistic),
        "eps": eps,
        "alpha": alpha,
        "ci_method": ci_method,
        "seed": seed_used if rng is None else "caller-supplied generator",
        "n_jobs": n_jobs,
        "n": v.n,
        "k": v.k,
        "blocks": len(v.candidates) if v.candidates is not None else None,
    }
    return RerandResult(
        obs_stat=v.obs_stat,
        pvalues=rerandomisation_pvalues(null, v.obs_stat, eps),
        c_left=c_left,
        c_right=c_right,
        reps=reps,
        method="montecarlo",
        design=_design_label(v, design),
        pval_ci=two_sided_ci(c_left, c_right, reps, alpha=alpha, method=ci_method),
        null_stats=null,
        settings=settings,
        warnings=list(v.warnings),
    )


def _choose_method(v: ValidatedInputs, method: str) -> str:
    if method not in _METHODS:
        raise ValidationError(
            f"Validation error: method must be one of {sorted(_METHODS)} (got {method!r})"
        )
    if method != "auto":
        return method
    count = count_rerandomisations(v.n, v.k, v.candidates)
    return "exhaustive" if count <= int(DEFAULTS["auto_exhaustive_max"]) else "montecarlo"


def _dispatch(
    v: ValidatedInputs,
    method: str,
    *,
    design: Optional[str] = None,
    reps: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    eps: Optional[float] = None,
    alpha: Optional[float] = None,
    ci_method: Optional[str] = None,
    n_jobs: Optional[int] = None,
) -> RerandResult:
    """Run validated inputs through the engine `method` resolves to."""
    if _choose_method(v, method) == "exhaustive":
        return _run_exhaustive(v, eps=eps, n_jobs=n_jobs, design=design)
    return _run_montecarlo(
        v,
        reps=reps,
        rng=rng,
        seed=seed,
        eps=eps,
        alpha=alpha,
        ci_method=ci_method,
        n_jobs=n_jobs,
        design=design,
    )


def exhaustive_test(
    outcome,
    treatment_idx,
    statistic: Statistic = mean_diff,
    *,
    block=None,
    eps: Optional[float] = None,
    n_jobs: Optional[int] = None,
) -> RerandResult:
    """
    Exact rerandomisation test.

    Enumerates every assignment of the observed group sizes (or, with
    `block`, every choice of one treated unit per block) and compares the
    observed statistic against all of them. Only practical for small
    designs: C(n, k) grows fast (about 18 units unblocked, about 20 pairs
    blocked); use `montecarlo_test` beyond that.

    Parameters
    ----------
    outcome : array-like of float
        Outcome per observation.
    treatment_idx : array-like of int
        0-based positions of the treated observations.
    statistic : callable, default `mean_diff`
        `(outcome, treatment_idx) -> float`.
    block : array-like, optional
        Block label per observation; each block holds exactly one treated unit.
    eps : float, optional
        Tie tolerance for the p-value comparisons.
    n_jobs : int, optional
        Threads for evaluating the statistic (-1 = all cores).
    """
    v = validate_inputs(outcome, treatment_idx, statistic, block=block)
    return _run_exhaustive(v, eps=eps, n_jobs=n_jobs)


def montecarlo_test(
    outcome,
    treatment_idx,
    statistic: Statistic = mean_diff,
    *,
    block=None,
    reps: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    eps: Optional[float] = None,
    alpha: Optional[float] = None,
    ci_method: Optional[str] = None,
    n_jobs: Optional[int] = None,
) -> RerandResult:
    """
    Monte Carlo rerandomisation test.

    Draws `reps - 1` random assignments consistent with the design, adds
    the observed one, and compares the observed statistic against them.

    Parameters
    ----------
    reps : int, optional
        Null sample size including the observed assignment
        (default: DEFAULTS["reps"]).
    rng : numpy.random.Generator, optional
        Caller-owned generator. Mutually exclusive with `seed`.
    seed : int, optional
        Seed for a fresh generator (default: DEFAULTS["seed"], None = entropy).
    alpha, ci_method : optional
        Level and method of the CI reported for the two-sided p-value.

    Other parameters are as in `exhaustive_test`.
    """
    v = validate_inputs(outcome, treatment_idx, statistic, block=block)
    return _run_montecarlo(
        v,
        reps=reps,
        rng=rng,
        seed=seed,
        eps=eps,
        alpha=alpha,
        ci_method=ci_method,
        n_jobs=n_jobs,
    )


def rerandomisation_test(
    outcome,
    treatment_idx,
    statistic: Statistic = mean_diff,
    *,
    method: str = "auto",
    block=None,
    reps: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    eps: Optional[float] = None,
    alpha: Optional[float] = None,
    ci_method: Optional[str] = None,
    n_jobs: Optional[int] = None,
) -> RerandResult:
    """
    Rerandomisation test with a selectable method.

    `method="auto"` enumerates exhaustively when the design has at most
    DEFAULTS["auto_exhaustive_max"] assignments and falls back to Monte
    Carlo otherwise. Monte Carlo-only arguments are ignored for
    exhaustive runs.
    """
    v = validate_inputs(outcome, treatment_idx, statistic, block=block)
    return _dispatch(
        v,
        method,
        reps=reps,
        rng=rng,
        seed=seed,
        eps=eps,
        alpha=alpha,
        ci_method=ci_method,
        n_jobs=n_jobs,
    )
