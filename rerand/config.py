"""Configuration handling for rerand.

Defines the DEFAULTS dict that stores all global configuration values,
and the public interface for safely reading/updating them.

Public API:
- DEFAULTS                : live dict with current global config (do not mutate directly)
- rerand_set(overrides)   : validate and update selected keys (in-place)
- rerand_get(key=None)    : read a single value or a (shallow) copy of all config
- rerand_reset(keys=None) : restore all or selected keys to import-time defaults
- rerand_config(overrides): context manager for temporary overrides (auto-reset)

Notes:
- DEFAULTS is a live dictionary used internally throughout the package.
- Prefer rerand_set / rerand_reset / rerand_config over mutating DEFAULTS directly.
- Mutations are applied in-place (identity of DEFAULTS is preserved).
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping, Optional

import numpy as np

from .errors import ValidationError

__all__ = [
    "DEFAULTS",
    "rerand_set",
    "rerand_get",
    "rerand_reset",
    "rerand_config",
]

# ---------------------------------------------------------------------
# Global config used by all internal modules
# ---------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    # --- Monte Carlo settings ---
    "reps": 20000,  # Rerandomisations, including the observed assignment
    "seed": None,  # None = fresh OS entropy on every call
    # --- P-value settings ---
    # Tie tolerance for comparing null statistics against the observed one.
    "eps": float(np.sqrt(np.finfo(np.float64).eps)),
    "alpha": 0.05,  # Level for the Monte Carlo p-value CI
    "ci_method": "clopper-pearson",  # or 'normal' (Wald with continuity correction)
    # --- Parallelism ---
    "n_jobs": 1,  # -1 = use all available CPU cores
    # --- Exhaustive enumeration ---
    # Warn when an exhaustive run would evaluate more assignments than this.
    "exhaustive_warn": 5_000_000,
    # method="auto" enumerates exhaustively up to this many assignments.
    "auto_exhaustive_max": 100_000,
}

# Keep a baseline snapshot to enable full resets.
_BASE_DEFAULTS: Dict[str, Any] = deepcopy(DEFAULTS)

_CI_METHOD_ALIASES = {
    "cp": "clopper-pearson",
    "clopper-pearson": "clopper-pearson",
    "normal": "normal",
    "wald": "normal",
}


def _canonical_ci_method(val: Any) -> str:
    """Map a CI method name or alias to its canonical label."""
    key = str(val).strip().lower() if isinstance(val, str) else val
    if key not in _CI_METHOD_ALIASES:
        raise ValidationError(
            f"ci_method must be one of {sorted(_CI_METHOD_ALIASES)} (got {val!r})"
        )
    return _CI_METHOD_ALIASES[key]


def _is_int(val: Any) -> bool:
    return isinstance(val, (int, np.integer)) and not isinstance(val, bool)


def _validate_pair(key: str, val: Any) -> Any:
    """Raise ValidationError if (key, val) is invalid; return the value to store."""
    if key not in DEFAULTS:
        raise ValidationError(f"Invalid config key: '{key}'")

    if key == "reps":
        if not _is_int(val) or val < 1:
            raise ValidationError(f"reps must be a positive integer (got {val!r})")

    elif key == "seed":
        if val is not None and not _is_int(val):
            raise ValidationError(f"seed must be an integer or None (got {val!r})")

    elif key == "eps":
        if (
            not isinstance(val, (int, float))
            or isinstance(val, bool)
            or not (math.isfinite(val) and val >= 0)
        ):
            raise ValidationError(f"eps must be a finite, non-negative number (got {val!r})")
        return float(val)

    elif key == "alpha":
        try:
            ok = 0 < float(val) < 1
        except (TypeError, ValueError):
            ok = False
        if not ok:
            raise ValidationError(
                f"alpha must be a float strictly between 0 and 1 (got {val!r})"
            )
        return float(val)

    elif key == "ci_method":
        return _canonical_ci_method(val)

    elif key == "n_jobs":
        if not _is_int(val):
            raise ValidationError(f"n_jobs must be an integer (got {val!r})")
        if not (val == -1 or val >= 1):
            raise ValidationError("n_jobs must be -1 (all cores) or a positive integer >= 1")

    elif key in {"exhaustive_warn", "auto_exhaustive_max"}:
        if not _is_int(val) or val < 1:
            raise ValidationError(f"{key} must be a positive integer (got {val!r})")

    return val


def rerand_set(overrides: Mapping[str, Any]) -> None:
    """
    Update the global configuration in-place (validated).

    Parameters
    ----------
    overrides : Mapping[str, Any]
        Dict-like with keys in DEFAULTS. Unknown keys are rejected.

    Raises
    ------
    ValidationError
        If unknown keys or invalid values are passed.

    Notes
    -----
    - This mutates global state. Prefer using `rerand_config(...)` when you want
      temporary overrides that automatically revert (e.g., per-test or per-run).
    """
    if not isinstance(overrides, Mapping):
        raise ValidationError("overrides must be a mapping of {key: value}")

    # Validate first, then apply (all-or-nothing semantics)
    clean = {k: _validate_pair(k, v) for k, v in overrides.items()}
    DEFAULTS.update(clean)


def rerand_get(key: Optional[str] = None) -> Any:
    """
    Read configuration values safely.

    Parameters
    ----------
    key : str or None, optional
        If None (default), returns a shallow copy of the entire config.
        If a key is provided, returns the current value for that key.

    Raises
    ------
    KeyError
        If `key` is provided and is not a valid config key.
    """
    if key is None:
        return dict(DEFAULTS)
    if key not in DEFAULTS:
        raise KeyError(f"Unknown config key: {key!r}")
    return DEFAULTS[key]


def rerand_reset(keys: Optional[Iterable[str]] = None) -> None:
    """
    Reset configuration to the import-time defaults.

    Parameters
    ----------
    keys : iterable of str or None, optional
        - None (default): reset all keys to baseline values.
        - Iterable: reset only those keys (unknown keys raise ValidationError).
    """
    if keys is None:
        DEFAULTS.clear()
        DEFAULTS.update(_BASE_DEFAULTS)
        return

    to_reset = list(keys)
    for k in to_reset:
        if k not in DEFAULTS:
            raise ValidationError(f"Unknown config key for reset: {k!r}")

    for k in to_reset:
        DEFAULTS[k] = _BASE_DEFAULTS[k]


@contextmanager
def rerand_config(overrides: Mapping[str, Any]):
    """
    Context manager for temporary configuration overrides.

    Example
    -------
    >>> with rerand_config({"reps": 5000, "seed": 2025}):
    ...     # run code with temporary config
    ...     pass
    >>> # here config is restored to previous values

    Always restores the prior configuration on exit, even if an exception
    is raised, and preserves the identity of DEFAULTS.
    """
    prev = dict(DEFAULTS)
    try:
        rerand_set(overrides)
        yield
    finally:
        DEFAULTS.clear()
        DEFAULTS.update(prev)
