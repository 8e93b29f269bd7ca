"""
Common data structures for Monte Carlo methods.

PermutationParams, IndependentSamplesParams and HybridParams are the
parameter payloads wrapped by Result[P] and exposed through Solution
classes. summarize_null() and tail_count() are shared by every backend
so the z-score and p-value are derived identically everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from permstats.core.exceptions import ValidationError

VALID_ALTERNATIVES = ("two.sided", "less", "greater")

DEFAULT_R = 1000


@dataclass(frozen=True)
class PermutationParams:
    """
    Parameter payload for permutation test results.

    - observed_stat: test statistic on original (unpermuted) data
    - perm_stats: test statistics from R permutations, slot b = replicate b
    - mean / sd: mean and Bessel-corrected SD of perm_stats
    - z_score: (observed - mean) / sd, NaN when sd is 0 or undefined
    - count: replicates at least as extreme as observed
    - p_value: count / R
    """
    observed_stat: float
    perm_stats: NDArray[np.floating[Any]]      # shape (R,)
    mean: float
    sd: float
    z_score: float
    count: int
    p_value: float
    R: int
    alternative: str                            # "two.sided" | "less" | "greater"


@dataclass(frozen=True)
class IndependentSamplesParams:
    """
    Parameter payload for repeated independent-sample differences.

    - diffs: mean(second) - mean(first) for each independent draw
    - sample_sizes: per-group sample size used in each draw, shape (R, 2)
    """
    diffs: NDArray[np.floating[Any]]           # shape (R,)
    sample_sizes: NDArray[np.integer[Any]]     # shape (R, 2)
    mean: float
    sd: float
    prop_positive: float
    R: int


@dataclass(frozen=True)
class HybridParams:
    """
    Parameter payload for the hybrid independent-sample permutation test.

    - indep_diffs: group difference of each equalized independent sample
    - perm_diffs: difference after randomly relabelling that same sample
    - distribution: indep_diffs - perm_diffs
    - p_value: proportion of distribution >= 0
    """
    distribution: NDArray[np.floating[Any]]    # shape (R,)
    indep_diffs: NDArray[np.floating[Any]]     # shape (R,)
    perm_diffs: NDArray[np.floating[Any]]      # shape (R,)
    sample_sizes: NDArray[np.integer[Any]]     # shape (R,)
    mean: float
    sd: float
    p_value: float
    R: int


def tail_count(
    perm_stats: NDArray[np.floating[Any]],
    observed: float,
    alternative: str,
) -> int:
    """Number of replicates at least as extreme as ``observed``."""
    if alternative == "two.sided":
        return int(np.sum(np.abs(perm_stats) >= np.abs(observed)))
    if alternative == "greater":
        return int(np.sum(perm_stats >= observed))
    if alternative == "less":
        return int(np.sum(perm_stats <= observed))
    raise ValidationError(f"Unknown alternative: {alternative!r}")


def summarize_null(
    perm_stats: NDArray[np.floating[Any]],
    observed: float,
) -> tuple[float, float, float]:
    """
    Mean, SD (ddof=1) and z-score of a null distribution.

    The z-score is NaN when the SD is zero or undefined (R == 1); callers
    turn that into a DegenerateDistributionError at access time.
    """
    mean, sd = describe(perm_stats)
    if not np.isfinite(sd) or sd == 0.0:
        return mean, sd, float("nan")
    return mean, sd, (observed - mean) / sd


def describe(values: NDArray[np.floating[Any]]) -> tuple[float, float]:
    """Mean and SD (ddof=1, NaN for a single value, exactly 0 when constant)."""
    if values.shape[0] > 1 and np.all(values == values[0]):
        return float(values[0]), 0.0
    mean = float(np.mean(values))
    sd = float(np.std(values, ddof=1)) if values.shape[0] > 1 else float("nan")
    return mean, sd
