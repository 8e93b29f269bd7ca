"""
Design classes for Monte Carlo methods.

PermutationDesign, IndependentSamplesDesign and HybridDesign encapsulate
all inputs needed by backends to perform resampling. Immutable, validated
at construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from permstats.core.exceptions import ValidationError
from permstats.core.validation import (
    check_array,
    check_1d,
    check_consistent_length,
    check_finite,
    check_labels,
    check_min_samples,
    check_replicates,
)
from permstats.montecarlo._common import DEFAULT_R, VALID_ALTERNATIVES
from permstats.montecarlo._sampler import SeedLike
from permstats.montecarlo._statistics import group_levels, resolve_statistic


def _validate_alternative(alternative: str) -> str:
    """Validate and return alternative hypothesis string."""
    if alternative not in VALID_ALTERNATIVES:
        raise ValidationError(
            f"alternative must be one of {VALID_ALTERNATIVES}, got {alternative!r}"
        )
    return alternative


def _validate_n_jobs(n_jobs: int) -> int:
    """joblib convention: positive worker count or negative for 'all but k'."""
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, (int, np.integer)) or n_jobs == 0:
        raise ValidationError(f"n_jobs must be a non-zero integer, got {n_jobs!r}")
    return int(n_jobs)


def _measure(x: ArrayLike, name: str = "x") -> NDArray[np.floating[Any]]:
    """Validated, finite, non-empty 1D float64 copy."""
    arr = check_array(x, name)
    check_1d(arr, name)
    check_min_samples(arr, 1, name)
    check_finite(arr, name)
    return arr.copy()


def _statistic_name(statistic: str | Callable) -> str:
    if callable(statistic):
        return getattr(statistic, "__name__", type(statistic).__name__)
    return statistic


@dataclass(frozen=True)
class PermutationDesign:
    """
    Frozen design for (optionally stratified) permutation testing.

    Attributes:
        x: Measure, shape (n,). Never permuted.
        target: Second variable, shape (n,): numeric y for correlation or
            group labels for difference of means. This is the side that
            gets permuted.
        statistic: fn(x, target) -> float.
        statistic_name: Name of the statistic for display.
        R: Number of permutations.
        alternative: "two.sided", "less", or "greater".
        levels: Canonical (first, second) group order, or None for
            statistics that do not use groups.
        strata: Optional stratum labels, shape (n,). When present the
            target is permuted only within strata.
        seed: Seed, Generator or RandomSampler for reproducibility.
        n_jobs: joblib worker count for the replicate loop.
    """
    x: NDArray[np.floating[Any]]
    target: NDArray
    statistic: Callable
    statistic_name: str
    R: int
    alternative: str
    levels: tuple | None
    strata: NDArray | None
    seed: SeedLike
    n_jobs: int

    @property
    def n(self) -> int:
        return self.x.shape[0]

    @property
    def is_stratified(self) -> bool:
        return self.strata is not None

    @classmethod
    def for_permutation_test(
        cls,
        x,
        y,
        statistic: str | Callable = "correlation",
        R: int = DEFAULT_R,
        *,
        alternative: str = "two.sided",
        levels: tuple | None = None,
        strata=None,
        seed: SeedLike = None,
        n_jobs: int = 1,
    ) -> PermutationDesign:
        """
        Create a permutation test design with validation.

        Args:
            x: Measure (numeric, finite).
            y: Numeric variable (correlation) or group labels
                (difference_of_means / custom statistics).
            statistic: "correlation", "difference_of_means", or
                fn(x, y) -> float.
            R: Number of permutations. Must be >= 1.
            alternative: "two.sided", "less", or "greater".
            levels: Explicit (first, second) group order.
            strata: Optional stratum labels for within-stratum permutation.
            seed: Random seed, Generator, or RandomSampler.
            n_jobs: Parallel workers for the replicate loop (1 = sequential).

        Returns:
            Validated PermutationDesign.

        Raises:
            ValidationError: If inputs are invalid.
            DimensionError: If x, y, strata lengths differ.
        """
        x_arr = _measure(x, "x")

        if statistic == "correlation":
            target = _measure(y, "y")
        else:
            target = check_labels(y, "y")
        check_consistent_length(x_arr, target, names=("x", "y"))

        if statistic == "difference_of_means":
            levels = group_levels(target, levels)

        strata_arr = None
        if strata is not None:
            strata_arr = check_labels(strata, "strata")
            check_consistent_length(x_arr, strata_arr, names=("x", "strata"))

        return cls(
            x=x_arr,
            target=target,
            statistic=resolve_statistic(statistic, levels),
            statistic_name=_statistic_name(statistic),
            R=check_replicates(R),
            alternative=_validate_alternative(alternative),
            levels=levels,
            strata=strata_arr,
            seed=seed,
            n_jobs=_validate_n_jobs(n_jobs),
        )


@dataclass(frozen=True)
class IndependentSamplesDesign:
    """
    Frozen design for independent-sample procedures.

    Shared by the repeated independent-sample difference and by the hybrid
    test; ``equalize`` only applies to the former (the hybrid test always
    equalizes).

    Attributes:
        x: Measure, shape (n,).
        group: Group labels, shape (n,), exactly two distinct values.
        strata: Stratum labels, shape (n,).
        levels: Canonical (first, second) group order.
        R: Number of replicates.
        equalize: Subsample the larger sample down to the smaller.
        seed: Seed, Generator, or RandomSampler.
        n_jobs: joblib worker count for the replicate loop.
    """
    x: NDArray[np.floating[Any]]
    group: NDArray
    strata: NDArray
    levels: tuple
    R: int
    equalize: bool
    seed: SeedLike
    n_jobs: int

    @classmethod
    def for_independent_samples(
        cls,
        x,
        group,
        strata,
        R: int = DEFAULT_R,
        *,
        levels: tuple | None = None,
        equalize: bool = True,
        seed: SeedLike = None,
        n_jobs: int = 1,
    ) -> IndependentSamplesDesign:
        """
        Create an independent-sample design with validation.

        Raises:
            ValidationError: If inputs are invalid or a group is empty.
            DimensionError: If x, group, strata lengths differ.
        """
        x_arr = _measure(x, "x")
        group_arr = check_labels(group, "group")
        strata_arr = check_labels(strata, "strata")
        check_consistent_length(
            x_arr, group_arr, strata_arr, names=("x", "group", "strata")
        )
        first, second = group_levels(group_arr, levels)
        for level in (first, second):
            if not np.any(group_arr == level):
                raise ValidationError(
                    f"group: no observations for level {level!r}"
                )

        return cls(
            x=x_arr,
            group=group_arr,
            strata=strata_arr,
            levels=(first, second),
            R=check_replicates(R),
            equalize=bool(equalize),
            seed=seed,
            n_jobs=_validate_n_jobs(n_jobs),
        )

    @classmethod
    def for_hybrid_test(
        cls,
        x,
        group,
        strata,
        R: int = DEFAULT_R,
        *,
        levels: tuple | None = None,
        seed: SeedLike = None,
        n_jobs: int = 1,
    ) -> IndependentSamplesDesign:
        """Hybrid test design: always equalized."""
        return cls.for_independent_samples(
            x, group, strata, R,
            levels=levels, equalize=True, seed=seed, n_jobs=n_jobs,
        )
