# tests/test_results.py
import numpy as np
import pytest

from rerand.pvalues import PValues
from rerand.results import RerandResult


def make_res(
    *,
    method: str = "montecarlo",
    pval_ci: tuple[float, float] | None = (0.018, 0.051),
    with_null: bool = True,
    warnings: list[str] | None = None,
):
    settings: dict[str, object] = {
        "statistic": "mean_diff",
        "eps": 1.5e-8,
        "alpha": 0.05,
        "seed": 123,
        "ci_method": "clopper-pearson",
        "n_jobs": 1,
    }
    null = np.linspace(-1.0, 1.0, 5000) if with_null else None
    return RerandResult(
        obs_stat=0.1234,
        pvalues=PValues(left=0.9840, right=0.0320, two_sided=0.0640),
        c_left=4920,
        c_right=160,
        reps=5000,
        method=method,
        design="two-group",
        pval_ci=pval_ci,
        null_stats=null,
        settings=settings,
        warnings=list(warnings or []),
    )


def test_summary_includes_sections_and_values():
    s = make_res().summary(print_out=False)

    assert "Rerandomisation Test Result" in s
    assert "P-values" in s
    assert "Settings" in s
    assert "Interpretation" in s
    assert "Warnings" not in s

    assert "Design:                 two-group" in s
    assert "Statistic:              mean_diff" in s
    assert "Observed statistic:     0.1234" in s
    assert "Right-sided:            0.0320   (160 / 5000)" in s
    assert "Two-sided:              0.0640" in s

    # deterministic formatting
    assert "Two-sided CI @ α=0.050: [0.0180, 0.0510]" in s
    assert "seed:                   123" in s
    assert "ci_method:              clopper-pearson" in s


def test_summary_for_exhaustive_omits_monte_carlo_lines():
    s = make_res(method="exhaustive", pval_ci=None).summary(print_out=False)
    assert "Two-sided CI" not in s
    assert "seed:" not in s
    assert "exact for this design" in s


def test_summary_lists_warnings_and_handles_missing_ci():
    s = make_res(pval_ci=None, warnings=["too many assignments"]).summary(print_out=False)
    assert "Warnings" in s
    assert "- too many assignments" in s
    assert "Two-sided CI @ α=0.050: not computed" in s


def test_summary_prints_when_asked(capsys):
    out = make_res().summary()
    assert capsys.readouterr().out.strip() == out.strip()


def test_explain_verdicts_by_alternative():
    res = make_res()
    assert "not statistically significant" in res.explain()
    assert "is statistically significant" in res.explain("right")
    assert "in the negative direction" in res.explain("left")
    assert "is statistically significant" in res.explain(alpha=0.1)
    assert "Monte Carlo estimate" in res.explain()
    with pytest.raises(KeyError):
        res.explain("greater")


def test_accessors_and_as_dict():
    res = make_res()
    assert (res.left, res.right, res.two_sided) == (0.9840, 0.0320, 0.0640)
    assert not res.exact
    assert res.as_dict() == {
        "left-sided p-value": 0.9840,
        "right-sided p-value": 0.0320,
        "two-sided p-value": 0.0640,
    }


def test_repr_and_str_are_concise():
    res = make_res()
    r = repr(res)
    s = str(res)
    assert r.startswith("RerandResult(") and "two_sided=0.0640" in r and "reps=5000" in r
    assert s.startswith("Rerandomisation: p=0.0640")


def test_plot_returns_axes_with_observed_line():
    mpl = pytest.importorskip("matplotlib")
    mpl.use("Agg")
    import matplotlib.pyplot as plt
    from matplotlib.axes import Axes

    ax = make_res().plot(bins=20)
    try:
        assert isinstance(ax, Axes)
        assert len(ax.patches) == 20
        assert len(ax.lines) == 1
        assert ax.lines[0].get_xdata()[0] == pytest.approx(0.1234)
        assert ax.get_title() == "Test statistic in 5000 rerandomisations"
    finally:
        plt.close(ax.figure)


def test_plot_without_null_raises():
    with pytest.raises(ValueError, match="null_stats is not available"):
        make_res(with_null=False).plot()
