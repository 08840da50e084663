# tests/test_datasets.py
import numpy as np
import pytest

from rerand.datasets import generate_blocking, generate_crossover


def test_crossover_order_split_and_columns():
    d = generate_crossover(n=19, rng=np.random.default_rng(0))
    assert len(d) == 19
    assert (d["order"] == "AB").sum() == 10
    assert (d["order"] == "BA").sum() == 9
    assert d.columns.tolist() == ["order", "A", "B", "difference_AB", "period_difference"]


def test_crossover_without_noise_recovers_effects():
    d = generate_crossover(
        n=10, sd_error=0.0, effect_a=0.3, effect_last=0.4, carryover_a=0.1,
        rng=np.random.default_rng(1),
    )
    ab = d[d["order"] == "AB"]
    ba = d[d["order"] == "BA"]
    # AB: A first, B last (+ period effect + carryover)
    assert np.allclose(ab["difference_AB"], 0.3 - 0.4 - 0.1)
    # BA: B first, A last (+ period effect)
    assert np.allclose(ba["difference_AB"], 0.3 + 0.4)


def test_crossover_is_reproducible():
    a = generate_crossover(n=8, rng=np.random.default_rng(5))
    b = generate_crossover(n=8, rng=np.random.default_rng(5))
    assert a.equals(b)


def test_blocking_one_intervention_per_pair():
    d = generate_blocking(n=32, rng=np.random.default_rng(20250730))
    assert len(d) == 32
    assert d["Block"].nunique() == 16
    counts = d.groupby("Block")["Condition"].apply(lambda s: (s == "intervention").sum())
    assert (counts == 1).all()
    assert set(d["Condition"]) == {"control", "intervention"}


@pytest.mark.parametrize("n", [1, 3, 2])
def test_invalid_sizes(n):
    with pytest.raises(ValueError):
        if n == 1:
            generate_crossover(n=n)
        else:
            generate_blocking(n=n)
