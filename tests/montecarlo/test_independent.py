"""
Tests for independent subsampling (one observation per stratum per group).
"""

import numpy as np
import pytest

from permstats.core.exceptions import DimensionError, ValidationError
from permstats.montecarlo import (
    RandomSampler,
    draw_independent_pair,
    equalize_sizes,
    independent_difference,
    independent_samples_test,
)


def encoded_data():
    """
    x encodes its own stratum and group: x = 10 * stratum + group_code + row / 100.

    Group "A" occupies strata 0-4, group "B" strata 2-7.
    """
    rows = []
    for stratum in range(5):
        rows += [(stratum, "A")] * 3
    for stratum in range(2, 8):
        rows += [(stratum, "B")] * 2
    strata = np.array([s for s, _ in rows])
    group = np.array([g for _, g in rows])
    x = np.array([
        10 * s + (0 if g == "A" else 1) + i / 100
        for i, (s, g) in enumerate(rows)
    ])
    return x, group, strata


def decode(sample):
    strata = np.floor(sample / 10).astype(int)
    codes = np.floor(sample % 10).astype(int)
    return strata, codes


class TestDrawIndependentPair:

    def test_one_per_stratum_per_group(self):
        x, group, strata = encoded_data()
        a, b = draw_independent_pair(x, group, strata, seed=0)

        strata_a, codes_a = decode(a)
        strata_b, codes_b = decode(b)
        np.testing.assert_array_equal(strata_a, [0, 1, 2, 3, 4])
        np.testing.assert_array_equal(strata_b, [2, 3, 4, 5, 6, 7])
        assert set(codes_a.tolist()) == {0}
        assert set(codes_b.tolist()) == {1}

    def test_draws_vary(self):
        x, group, strata = encoded_data()
        sampler = RandomSampler(1)
        draws = {tuple(draw_independent_pair(x, group, strata, sampler)[0]) for _ in range(30)}
        assert len(draws) > 1

    def test_levels_order(self):
        x, group, strata = encoded_data()
        a, b = draw_independent_pair(x, group, strata, seed=0, levels=("B", "A"))
        assert len(a) == 6
        assert len(b) == 5

    def test_empty(self):
        with pytest.raises(ValidationError):
            draw_independent_pair([], [], [])

    def test_empty_group(self):
        with pytest.raises(ValidationError, match="no observations"):
            draw_independent_pair([1.0, 2.0], ["A", "A"], [0, 1], levels=("A", "B"))

    def test_wrong_cardinality(self):
        with pytest.raises(ValidationError, match="exactly 2"):
            draw_independent_pair([1.0, 2.0, 3.0], ["A", "B", "C"], [0, 1, 2])

    def test_length_mismatch(self):
        with pytest.raises(DimensionError):
            draw_independent_pair([1.0, 2.0], ["A", "B"], [0])


class TestEqualizeSizes:

    def test_shrinks_larger(self):
        a = np.arange(5.0)
        b = np.arange(10.0, 13.0)
        a_eq, b_eq = equalize_sizes(a, b, seed=0)
        assert len(a_eq) == len(b_eq) == 3
        assert set(a_eq.tolist()) <= set(a.tolist())
        assert len(set(a_eq.tolist())) == 3
        np.testing.assert_array_equal(b_eq, b)

    def test_shrinks_second(self):
        a_eq, b_eq = equalize_sizes([1.0], [2.0, 3.0, 4.0], seed=0)
        assert len(a_eq) == len(b_eq) == 1

    def test_equal_unchanged(self):
        a_eq, b_eq = equalize_sizes([1.0, 2.0], [3.0, 4.0], seed=0)
        np.testing.assert_array_equal(a_eq, [1.0, 2.0])
        np.testing.assert_array_equal(b_eq, [3.0, 4.0])

    def test_pair_then_equalize(self):
        x, group, strata = encoded_data()
        sampler = RandomSampler(4)
        for _ in range(20):
            a, b = equalize_sizes(*draw_independent_pair(x, group, strata, sampler), sampler)
            assert len(a) == len(b) <= min(5, 6)


class TestIndependentDifference:

    def test_sign_convention(self):
        assert independent_difference([1, 2, 3], [4, 5, 6]) == 3.0

    def test_order_independent(self, rng):
        a = rng.random(7)
        b = rng.random(7)
        expected = independent_difference(a, b)
        for _ in range(20):
            assert independent_difference(rng.permutation(a), rng.permutation(b)) == expected

    def test_empty(self):
        with pytest.raises(ValidationError):
            independent_difference([], [1.0])


class TestIndependentSamplesTest:

    def test_equalized_sizes(self):
        x, group, strata = encoded_data()
        result = independent_samples_test(x, group, strata, R=50, seed=0)
        assert result.sample_sizes.shape == (50, 2)
        assert np.all(result.sample_sizes == 5)
        assert result.diffs.shape == (50,)
        assert any("subsampled" in w for w in result.warnings)

    def test_unequalized_sizes(self):
        x, group, strata = encoded_data()
        result = independent_samples_test(x, group, strata, R=20, equalize=False, seed=0)
        assert np.all(result.sample_sizes[:, 0] == 5)
        assert np.all(result.sample_sizes[:, 1] == 6)
        assert result.warnings == ()

    def test_constant_groups(self):
        group = np.array(["A", "A", "B", "B", "A", "B"])
        strata = np.array([0, 1, 0, 1, 2, 2])
        x = np.where(group == "A", 0.0, 1.0)
        result = independent_samples_test(x, group, strata, R=30, seed=0)
        np.testing.assert_array_equal(result.diffs, np.ones(30))
        assert result.prop_positive == 1.0
        assert result.mean == 1.0

    def test_summary_statistics(self):
        x, group, strata = encoded_data()
        result = independent_samples_test(x, group, strata, R=40, seed=2)
        assert result.mean == pytest.approx(np.mean(result.diffs))
        assert result.sd == pytest.approx(np.std(result.diffs, ddof=1))
        assert result.prop_positive == pytest.approx(np.mean(result.diffs > 0))

    def test_reproducible_and_parallel(self):
        x, group, strata = encoded_data()
        r1 = independent_samples_test(x, group, strata, R=30, seed=5)
        r2 = independent_samples_test(x, group, strata, R=30, seed=5)
        np.testing.assert_array_equal(r1.diffs, r2.diffs)
        p2 = independent_samples_test(x, group, strata, R=30, seed=5, n_jobs=2)
        p3 = independent_samples_test(x, group, strata, R=30, seed=5, n_jobs=3)
        np.testing.assert_array_equal(p2.diffs, p3.diffs)

    def test_display(self):
        x, group, strata = encoded_data()
        result = independent_samples_test(x, group, strata, R=10, seed=0)
        assert "INDEPENDENT SAMPLES" in result.summary()
        assert "IndependentSamplesSolution" in repr(result)
        assert result.backend_name == "cpu_independent_samples"
