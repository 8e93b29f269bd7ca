"""
Solver dispatch for Monte Carlo methods.

Public functions: permutation_test(), stratified_permutation_test(),
independent_samples_test(), hybrid_test().
"""

from __future__ import annotations

from typing import Callable, Literal

from numpy.typing import ArrayLike

from permstats.core.exceptions import ValidationError
from permstats.montecarlo._common import DEFAULT_R
from permstats.montecarlo._sampler import SeedLike
from permstats.montecarlo.design import IndependentSamplesDesign, PermutationDesign
from permstats.montecarlo.solution import (
    HybridSolution,
    IndependentSamplesSolution,
    PermutationSolution,
)
from permstats.montecarlo.backends.cpu import (
    CPUHybridBackend,
    CPUIndependentSamplesBackend,
    CPUPermutationBackend,
)

Alternative = Literal["two.sided", "less", "greater"]

_BACKENDS = {
    'permutation': CPUPermutationBackend,
    'independent_samples': CPUIndependentSamplesBackend,
    'hybrid': CPUHybridBackend,
}


def _get_backend(kind: str, backend: str = 'cpu'):
    """Select backend. Only CPU backends exist; 'auto' resolves to CPU."""
    if backend in ('cpu', 'auto'):
        return _BACKENDS[kind]()
    raise ValidationError(
        f"Unknown backend: {backend!r}. Use 'cpu' or 'auto'."
    )


def permutation_test(
    x: ArrayLike | PermutationDesign,
    y: ArrayLike | None = None,
    statistic: str | Callable = "correlation",
    R: int = DEFAULT_R,
    *,
    alternative: Alternative = "two.sided",
    levels: tuple | None = None,
    seed: SeedLike = None,
    n_jobs: int = 1,
    backend: str = 'cpu',
) -> PermutationSolution:
    """
    Permutation test of the association between x and y.

    The observed statistic is computed once on the original data; the
    null distribution comes from R random permutations of ``y`` (x is
    never permuted).

    Parameters
    ----------
    x : array-like or PermutationDesign
        Numeric measure.
    y : array-like
        Numeric variable (correlation) or group labels
        (difference_of_means / custom statistic).
    statistic : str or callable
        "correlation" (default), "difference_of_means", or fn(x, y) -> float.
    R : int
        Number of permutations. Default 1000.
    alternative : str
        "two.sided" (default, |perm| >= |observed|), "greater"
        (perm >= observed) or "less" (perm <= observed).
    levels : tuple or None
        Explicit (first, second) group order for difference_of_means.
        Default: sorted order of the distinct labels.
    seed : int, Generator, RandomSampler or None
        Randomness source for reproducibility.
    n_jobs : int
        joblib workers for the replicate loop. Default 1 (sequential).
    backend : str
        'cpu' (default).

    Returns
    -------
    PermutationSolution
        observed_stat, perm_stats, mean, sd, z_score, p_value, R.
    """
    if isinstance(x, PermutationDesign):
        design = x
    else:
        design = PermutationDesign.for_permutation_test(
            x, y, statistic, R,
            alternative=alternative,
            levels=levels,
            seed=seed,
            n_jobs=n_jobs,
        )

    be = _get_backend('permutation', backend)
    result = be.solve(design)
    return PermutationSolution(_result=result, _design=design)


def stratified_permutation_test(
    x: ArrayLike,
    group: ArrayLike,
    strata: ArrayLike,
    statistic: str | Callable = "difference_of_means",
    R: int = DEFAULT_R,
    *,
    alternative: Alternative = "greater",
    levels: tuple | None = None,
    seed: SeedLike = None,
    n_jobs: int = 1,
    backend: str = 'cpu',
) -> PermutationSolution:
    """
    Permutation test with group labels permuted only within strata.

    Models a null hypothesis in which group membership is random inside
    each stratum (e.g. area) but the strata themselves stay confounded
    with the groups. The multiset of labels in every stratum is the same
    in every replicate.

    Parameters
    ----------
    x : array-like
        Numeric measure.
    group : array-like
        Group labels (or a numeric y for correlation).
    strata : array-like
        Stratum labels, same length as x.
    statistic : str or callable
        "difference_of_means" (default), "correlation", or fn(x, group).
    R : int
        Number of permutations. Default 1000.
    alternative : str
        "greater" (default), "less", or "two.sided".
    levels, seed, n_jobs, backend
        As in permutation_test().

    Returns
    -------
    PermutationSolution
        ``info['reassembly_order']`` holds the row order used to align x
        with the permuted labels.
    """
    design = PermutationDesign.for_permutation_test(
        x, group, statistic, R,
        alternative=alternative,
        levels=levels,
        strata=strata,
        seed=seed,
        n_jobs=n_jobs,
    )
    be = _get_backend('permutation', backend)
    result = be.solve(design)
    return PermutationSolution(_result=result, _design=design)


def independent_samples_test(
    x: ArrayLike,
    group: ArrayLike,
    strata: ArrayLike,
    R: int = DEFAULT_R,
    *,
    levels: tuple | None = None,
    equalize: bool = True,
    seed: SeedLike = None,
    n_jobs: int = 1,
    backend: str = 'cpu',
) -> IndependentSamplesSolution:
    """
    Distribution of group differences over repeated independent samples.

    Each of R draws takes one observation per stratum within each group
    (optionally equalizing the two sample sizes) and records
    mean(second) - mean(first).

    Returns
    -------
    IndependentSamplesSolution
        diffs, mean, sd, prop_positive, sample_sizes.
    """
    design = IndependentSamplesDesign.for_independent_samples(
        x, group, strata, R,
        levels=levels,
        equalize=equalize,
        seed=seed,
        n_jobs=n_jobs,
    )
    be = _get_backend('independent_samples', backend)
    result = be.solve(design)
    return IndependentSamplesSolution(_result=result, _design=design)


def hybrid_test(
    x: ArrayLike,
    group: ArrayLike,
    strata: ArrayLike,
    R: int = DEFAULT_R,
    *,
    levels: tuple | None = None,
    seed: SeedLike = None,
    n_jobs: int = 1,
    backend: str = 'cpu',
) -> HybridSolution:
    """
    Test the independent-sample group difference against relabelling.

    Per replicate: draw one observation per stratum per group, equalize,
    take the group difference; shuffle the pooled sample, split it into
    two halves of the same size and take that difference; record the
    first minus the second.

    Returns
    -------
    HybridSolution
        distribution, mean, sd and p_value = proportion of
        distribution >= 0.
    """
    design = IndependentSamplesDesign.for_hybrid_test(
        x, group, strata, R,
        levels=levels,
        seed=seed,
        n_jobs=n_jobs,
    )
    be = _get_backend('hybrid', backend)
    result = be.solve(design)
    return HybridSolution(_result=result, _design=design)
