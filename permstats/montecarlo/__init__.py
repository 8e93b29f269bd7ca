"""
PermStats Monte Carlo methods.

Permutation tests (global and within strata), independent subsampling
with one observation per stratum per group, and the hybrid test that
permutes independent samples.

Usage:
    from permstats.montecarlo import (
        permutation_test, stratified_permutation_test, hybrid_test,
    )

    # Association between two continuous variables
    result = permutation_test(x, y, "correlation", R=1000, seed=42)

    # Group difference, controlling for area
    result = stratified_permutation_test(
        x, group, area, "difference_of_means", R=1000, seed=42,
    )
    if result.p_value_is_bound:
        print(f"p < {result.p_value_bound}")

    # Independent samples against relabelling noise
    hybrid = hybrid_test(x, group, area, R=1000, seed=42)
"""

from permstats.montecarlo._common import DEFAULT_R
from permstats.montecarlo._sampler import RandomSampler
from permstats.montecarlo._statistics import (
    correlation,
    difference_of_means,
    group_levels,
)
from permstats.montecarlo._strata import permute_within_strata, stratum_order
from permstats.montecarlo._independent import (
    draw_independent_pair,
    equalize_sizes,
    independent_difference,
)
from permstats.montecarlo.solvers import (
    hybrid_test,
    independent_samples_test,
    permutation_test,
    stratified_permutation_test,
)

__all__ = [
    "DEFAULT_R",
    "RandomSampler",
    "correlation",
    "difference_of_means",
    "group_levels",
    "permute_within_strata",
    "stratum_order",
    "draw_independent_pair",
    "equalize_sizes",
    "independent_difference",
    "permutation_test",
    "stratified_permutation_test",
    "independent_samples_test",
    "hybrid_test",
]
