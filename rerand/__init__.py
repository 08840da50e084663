"""Public interface for the rerand package.

This module exposes a stable, user-facing API:

- Tests: `exhaustive_test`, `montecarlo_test`, `rerandomisation_test`,
  `crossover_test`.
- Statistics: `mean_diff`, `median_diff`, `trimmed_mean_diff`.
- Building blocks: `exhaustive_null`, `montecarlo_null`,
  `rerandomisation_pvalues`, `treatment_indices`.
- `RerandResult` / `PValues`: containers for outputs.
- Config helpers: `rerand_set`, `rerand_get`, `rerand_reset`, `rerand_config`.
"""

from __future__ import annotations

from .config import rerand_config, rerand_get, rerand_reset, rerand_set
from .crossover import crossover_differences, crossover_effect, crossover_test
from .engine.exhaustive import count_rerandomisations, exhaustive_null
from .engine.montecarlo import montecarlo_null
from .errors import (
    ComputationalInfeasibilityWarning,
    DegenerateStatistic,
    InvalidPartition,
    RerandError,
    ValidationError,
)
from .pvalues import PValues, rerandomisation_pvalues
from .results import RerandResult
from .run import exhaustive_test, montecarlo_test, rerandomisation_test
from .stats import mean_diff, median_diff, trimmed_mean_diff
from .validation import treatment_indices

__all__ = [
    "exhaustive_test",
    "montecarlo_test",
    "rerandomisation_test",
    "crossover_test",
    "crossover_differences",
    "crossover_effect",
    "mean_diff",
    "median_diff",
    "trimmed_mean_diff",
    "exhaustive_null",
    "montecarlo_null",
    "count_rerandomisations",
    "rerandomisation_pvalues",
    "treatment_indices",
    "PValues",
    "RerandResult",
    "RerandError",
    "ValidationError",
    "InvalidPartition",
    "DegenerateStatistic",
    "ComputationalInfeasibilityWarning",
    "rerand_set",
    "rerand_get",
    "rerand_reset",
    "rerand_config",
]

__version__ = "0.1.0"
