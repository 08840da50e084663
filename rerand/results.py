"""
rerand.results
==============

Presentation utilities and container class for rerandomisation output.

`RerandResult` is the object returned by the test functions in run.py. It
is a lightweight, self-contained container that:

- Stores the observed statistic, the p-value triple and the tail counts,
- Optionally stores a CI for Monte Carlo p-values,
- Keeps the null distribution for downstream inspection,
- Knows enough settings to reconstruct a stable textual summary,
- Can draw a histogram of the null distribution.

Design notes
------------
- No computation happens here; plotting only consumes stored data.
- Formatting is deterministic with fixed decimals to make comparisons and
  tests reproducible.
- Matplotlib is imported lazily inside `plot()`; the method returns an Axes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import numpy as np

from .pvalues import PValues

if TYPE_CHECKING:
    from matplotlib.axes import Axes  # pragma: no cover

__all__ = ["RerandResult"]


# --------- formatting helpers (deterministic) --------- #
def _fmt_float(x: float, nd: int = 4) -> str:
    """Format a scalar as a fixed-decimal string; fall back to `str(x)` on error."""
    try:
        return f"{float(x):.{nd}f}"
    except (TypeError, ValueError):
        return str(x)


def _fmt_pct(p: float, nd: int = 1) -> str:
    """Format a probability as a percentage string."""
    try:
        return f"{float(p) * 100:.{nd}f}%"
    except (TypeError, ValueError):
        return str(p)


def _fmt_ci(ci: Optional[Tuple[float, float]], nd: int = 4) -> str:
    """Format a (lo, hi) pair as `[lo, hi]`, or `'not computed'` if missing."""
    if not ci or len(ci) != 2:
        return "not computed"
    lo, hi = ci
    return f"[{_fmt_float(lo, nd)}, {_fmt_float(hi, nd)}]"


def _get_alpha(settings: Dict[str, object], fallback: float = 0.05) -> float:
    a = settings.get("alpha", fallback)
    if isinstance(a, (int, float, np.floating)):
        return float(a)
    return float(fallback)


_DIR_PHRASE = {
    "two-sided": "in either direction",
    "left": "in the negative direction",
    "right": "in the positive direction",
}


# --------- main result container --------- #
@dataclass(slots=True)
class RerandResult:
    """
    Container for rerandomisation-test output.

    Attributes
    ----------
    obs_stat : float
        Statistic on the observed assignment.
    pvalues : PValues
        Left-, right- and two-sided p-values.
    c_left, c_right : int
        Null values at or below / at or above the observed statistic.
    reps : int
        Size of the null sample (exact count or Monte Carlo repetitions).
    method : str
        "exhaustive" or "montecarlo".
    design : str
        "two-group", "blocked" or "crossover".
    """

    obs_stat: float
    pvalues: PValues
    c_left: int
    c_right: int
    reps: int
    method: str
    design: str = "two-group"

    # Monte Carlo only: CI for the two-sided p-value
    pval_ci: Optional[Tuple[float, float]] = None

    null_stats: Optional[np.ndarray] = None

    settings: Dict[str, object] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    # --------------- accessors --------------- #
    @property
    def left(self) -> float:
        return self.pvalues.left

    @property
    def right(self) -> float:
        return self.pvalues.right

    @property
    def two_sided(self) -> float:
        return self.pvalues.two_sided

    @property
    def exact(self) -> bool:
        """True when the null distribution was enumerated exhaustively."""
        return self.method == "exhaustive"

    def as_dict(self) -> Dict[str, float]:
        """Labelled p-values, e.g. {'two-sided p-value': 0.33, ...}."""
        return self.pvalues.as_dict()

    # --------------- dunder methods --------------- #
    def __repr__(self) -> str:
        return (
            f"RerandResult(obs={_fmt_float(self.obs_stat)}, "
            f"left={_fmt_float(self.left)}, right={_fmt_float(self.right)}, "
            f"two_sided={_fmt_float(self.two_sided)}, method='{self.method}', "
            f"reps={self.reps})"
        )

    def __str__(self) -> str:
        return (
            f"Rerandomisation: p={_fmt_float(self.two_sided)} (two-sided), "
            f"reps={self.reps} ({self.method}), stat={_fmt_float(self.obs_stat)}"
        )

    # --------------- user-facing helpers --------------- #
    def explain(self, alternative: str = "two-sided", alpha: Optional[float] = None) -> str:
        """
        Return a brief, plain-language interpretation of one p-value.

        Parameters
        ----------
        alternative : {"two-sided", "left", "right"}
            Which p-value to describe.
        alpha : float, optional
            Significance threshold to reference. If None, uses
            `settings['alpha']` or 0.05.
        """
        a = _get_alpha(self.settings, 0.05) if alpha is None else float(alpha)
        p = float(self.pvalues[alternative])
        dir_phrase = _DIR_PHRASE[alternative.replace("_", "-")]
        source = (
            "all possible rerandomisations"
            if self.exact
            else f"{self.reps} Monte Carlo rerandomisations"
        )

        lines = [
            f"Under the null hypothesis of no effect for any unit, the {alternative} "
            f"p-value from {source} is {_fmt_float(p)} ({_fmt_pct(p)}), "
            f"comparing how extreme the observed statistic is {dir_phrase}."
        ]
        verdict = "statistically significant" if p <= a else "not statistically significant"
        lines.append(f"At α = {_fmt_float(a, 3)}, the result is {verdict}.")
        if self.exact:
            lines.append("The p-value is exact for this design.")
        else:
            lines.append(
                "The p-value is a Monte Carlo estimate that includes the observed assignment."
            )
        return " ".join(lines)

    def summary(self, print_out: bool = True) -> str:
        """
        Build a deterministic, human-friendly summary of the result.

        Parameters
        ----------
        print_out : bool, default True
            If True, print the summary to stdout. The string is always returned.
        """
        a = _get_alpha(self.settings, 0.05)

        lines: list[str] = []
        lines.append("Rerandomisation Test Result")
        lines.append("=" * 27)
        lines.append("")
        lines.append(f"Design:                 {self.design}")
        lines.append(f"Method:                 {self.method}")
        lines.append(f"Statistic:              {self.settings.get('statistic', 'unknown')}")
        lines.append(f"Observed statistic:     {_fmt_float(self.obs_stat)}")
        lines.append(f"Rerandomisations:       {self.reps}")
        lines.append("")
        lines.append("P-values")
        lines.append("--------")
        lines.append(f"Left-sided:             {_fmt_float(self.left)}   ({self.c_left} / {self.reps})")
        lines.append(f"Right-sided:            {_fmt_float(self.right)}   ({self.c_right} / {self.reps})")
        lines.append(f"Two-sided:              {_fmt_float(self.two_sided)}")
        if not self.exact:
            lines.append(f"Two-sided CI @ α={_fmt_float(a, 3)}: {_fmt_ci(self.pval_ci)}")

        lines.append("")
        lines.append("Settings")
        lines.append("--------")
        lines.append(f"eps:                    {self.settings.get('eps', 'unknown')}")
        if not self.exact:
            lines.append(f"seed:                   {self.settings.get('seed', 'unknown')}")
            lines.append(f"ci_method:              {self.settings.get('ci_method', 'unknown')}")
        lines.append(f"n_jobs:                 {self.settings.get('n_jobs', 'unknown')}")

        if self.warnings:
            lines.append("")
            lines.append("Warnings")
            lines.append("--------")
            lines.extend(f"- {w}" for w in self.warnings)

        lines.append("")
        lines.append("Interpretation")
        lines.append("--------------")
        lines.append(self.explain(alpha=a))

        out = "\n".join(lines)
        if print_out:
            print(out)
        return out

    def plot(self, *, bins: int = 30, show: bool = False) -> "Axes":
        """
        Histogram of the null distribution with the observed statistic marked.

        Raises
        ------
        ValueError
            If the null distribution was not kept on this result.
        """
        if self.null_stats is None:
            raise ValueError("null_stats is not available on this result.")

        # Lazy import to avoid unnecessary dependency cost on summary-only use
        import matplotlib.pyplot as plt  # type: ignore

        null = np.asarray(self.null_stats, dtype=float)

        fig, ax = plt.subplots()
        ax.hist(null, bins=bins, color="lightgrey", edgecolor="grey")
        ax.axvline(
            x=self.obs_stat,
            color="blue",
            linewidth=2.0,
            label=f"observed = {_fmt_float(self.obs_stat)}",
        )
        ax.set_xlabel("Test statistic")
        ax.set_ylabel("Count")
        ax.set_title(f"Test statistic in {self.reps} rerandomisations")
        ax.legend(loc="best", frameon=False)

        if show:
            plt.show()

        return ax
