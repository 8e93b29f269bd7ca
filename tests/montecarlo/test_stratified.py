"""
Tests for within-stratum permutation.

Validates the reassembly order, preservation of per-stratum label
multisets, alignment between x and permuted labels, and confound control
in stratified_permutation_test().
"""

import numpy as np
import pytest

from permstats.core.exceptions import DimensionError, ValidationError
from permstats.montecarlo import (
    difference_of_means,
    permutation_test,
    permute_within_strata,
    stratified_permutation_test,
    stratum_order,
)


# 2 strata x 4 units, strata interleaved in row order
STRATA = np.array(["north", "south", "north", "south", "north", "south", "north", "south"])
GROUP = np.array(["A", "A", "B", "B", "A", "B", "B", "B"])
X = np.array([1.0, 5.0, 2.0, 6.0, 3.0, 7.0, 4.0, 8.0])


def label_multisets(labels, strata):
    return {s: sorted(labels[strata == s].tolist()) for s in np.unique(strata)}


# ---------------------------------------------------------------------------
# Tests: Reassembly order and permutation primitive
# ---------------------------------------------------------------------------

class TestStratumOrder:

    def test_sorted_strata_stable_rows(self):
        order = stratum_order(["b", "a", "b", "a"])
        np.testing.assert_array_equal(order, [1, 3, 0, 2])

    def test_blocks_are_contiguous(self):
        order = stratum_order(STRATA)
        np.testing.assert_array_equal(STRATA[order], ["north"] * 4 + ["south"] * 4)

    def test_empty(self):
        with pytest.raises(ValidationError, match="empty"):
            stratum_order([])


class TestPermuteWithinStrata:

    def test_multiset_preserved(self):
        before = label_multisets(GROUP, STRATA)
        for seed in range(50):
            permuted, order = permute_within_strata(GROUP, STRATA, seed=seed)
            assert label_multisets(permuted, STRATA[order]) == before

    def test_labels_move(self):
        originals = GROUP[stratum_order(STRATA)]
        changed = any(
            not np.array_equal(permute_within_strata(GROUP, STRATA, seed=s)[0], originals)
            for s in range(20)
        )
        assert changed

    def test_alignment_with_x(self):
        permuted, order = permute_within_strata(GROUP, STRATA, seed=3)
        x_re = X[order]
        # x is realigned, not shuffled: same rows, stratum-grouped order
        np.testing.assert_array_equal(x_re, [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0])
        # the statistic is computable on the aligned pair
        difference_of_means(x_re, permuted)

    def test_length_mismatch(self):
        with pytest.raises(DimensionError):
            permute_within_strata(GROUP, STRATA[:5])

    def test_singleton_strata_fixed(self):
        permuted, order = permute_within_strata(["A", "B", "A"], [1, 2, 3], seed=0)
        np.testing.assert_array_equal(permuted, ["A", "B", "A"])


# ---------------------------------------------------------------------------
# Tests: stratified_permutation_test
# ---------------------------------------------------------------------------

class TestStratifiedPermutationTest:

    def test_backend_preserves_multisets(self):
        """Every replicate handed to the statistic keeps per-stratum labels."""
        seen = []

        def recording(x, group):
            seen.append((x.copy(), group.copy()))
            return difference_of_means(x, group)

        result = stratified_permutation_test(X, GROUP, STRATA, recording, R=30, seed=0)
        order = result.info["reassembly_order"]
        strata_re = STRATA[order]
        before = label_multisets(GROUP, STRATA)

        # first call is the observed statistic on the reassembled rows
        for x_seen, group_seen in seen[1:]:
            np.testing.assert_array_equal(x_seen, X[order])
            assert label_multisets(group_seen, strata_re) == before

    def test_observed_matches_unstratified(self):
        result = stratified_permutation_test(X, GROUP, STRATA, R=20, seed=0)
        assert result.observed_stat == pytest.approx(difference_of_means(X, GROUP))

    def test_metadata(self):
        result = stratified_permutation_test(X, GROUP, STRATA, R=20, seed=0)
        assert result.backend_name == "cpu_stratified_permutation"
        assert result.stratified
        assert result.info["n_strata"] == 2
        assert result.alternative == "greater"
        assert "STRATIFIED PERMUTATION TEST" in result.summary()

    def test_confound_removed(self, areal_data):
        """Area-driven difference is significant globally, not within areas."""
        x, group, areas = areal_data
        naive = permutation_test(
            x, group, "difference_of_means", R=1000,
            alternative="greater", seed=1,
        )
        stratified = stratified_permutation_test(
            x, group, areas, R=1000, seed=1,
        )
        assert naive.p_value < 0.01
        assert stratified.p_value > 0.001
        assert abs(stratified.z_score) < abs(naive.z_score)

    def test_measure_constant_within_strata(self):
        """Within-stratum shuffles cannot move a stratum-level measure."""
        areas = np.repeat([0, 1, 2], 4)
        x = areas * 2.0
        group = np.array(list("AABB" "ABBB" "AAAB"))
        with pytest.warns(UserWarning, match="degenerate"):
            result = stratified_permutation_test(x, group, areas, R=50, seed=0)
        np.testing.assert_allclose(result.perm_stats, result.observed_stat)
        assert result.p_value == 1.0
        assert result.is_degenerate

    def test_confounded_groups_tie_exactly(self):
        """Every stratum holds one group, so every replicate ties the observed value."""
        strata = np.array([3, 1, 2, 0] * 3)
        group = np.where(strata < 2, "A", "B")
        rng = np.random.default_rng(0)
        for _ in range(30):
            x = rng.random(12)
            with pytest.warns(UserWarning, match="degenerate"):
                result = stratified_permutation_test(x, group, strata, R=5, seed=0)
            assert np.all(result.perm_stats == result.observed_stat)
            assert result.p_value == 1.0
            assert not result.p_value_is_bound

    def test_fixed_strata_warning(self):
        strata = np.array([0, 0, 1, 1, 2, 2])
        group = np.array(["A", "A", "B", "B", "A", "B"])
        x = np.arange(6, dtype=float)
        result = stratified_permutation_test(x, group, strata, R=20, seed=0)
        assert any("2 of 3 strata" in w for w in result.warnings)

    def test_correlation_within_strata(self, rng):
        strata = np.repeat(np.arange(5), 10)
        x = rng.standard_normal(50)
        y = x + rng.standard_normal(50) * 0.1
        result = stratified_permutation_test(
            x, y, strata, "correlation", R=200,
            alternative="two.sided", seed=0,
        )
        assert result.p_value == 0.0
        assert result.p_value_is_bound

    def test_reproducible(self, areal_data):
        x, group, areas = areal_data
        r1 = stratified_permutation_test(x, group, areas, R=50, seed=9)
        r2 = stratified_permutation_test(x, group, areas, R=50, seed=9)
        np.testing.assert_array_equal(r1.perm_stats, r2.perm_stats)

    def test_parallel(self, areal_data):
        x, group, areas = areal_data
        r1 = stratified_permutation_test(x, group, areas, R=40, seed=9, n_jobs=2)
        r2 = stratified_permutation_test(x, group, areas, R=40, seed=9, n_jobs=3)
        np.testing.assert_array_equal(r1.perm_stats, r2.perm_stats)

    def test_strata_length_mismatch(self):
        with pytest.raises(DimensionError, match="strata"):
            stratified_permutation_test(X, GROUP, STRATA[:3], R=10)
