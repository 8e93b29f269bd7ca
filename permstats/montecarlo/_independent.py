"""
Independent subsampling: one observation per stratum per group.

Observations from the same stratum (e.g. languages from the same area)
are not independent. Drawing a single observation from every stratum
inside each group yields two samples without within-stratum dependence;
their sizes equal the number of strata each group occupies.
"""

from __future__ import annotations

import math
from typing import Any

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
)
from permstats.montecarlo._sampler import RandomSampler, SeedLike
from permstats.montecarlo._statistics import group_levels
from permstats.montecarlo._strata import stratum_blocks


def group_cells(
    group: NDArray,
    strata: NDArray,
    levels: tuple,
) -> tuple[list[NDArray[np.intp]], list[NDArray[np.intp]]]:
    """
    Row indices per stratum, separately for each group.

    Returns:
        (cells_first, cells_second): one index array per stratum present in
        that group, strata in sorted order.

    Raises:
        ValidationError: If a group has no observations.
    """
    cells = []
    for level in levels:
        rows = np.flatnonzero(group == level)
        if rows.shape[0] == 0:
            raise ValidationError(f"group: no observations for level {level!r}")
        _, blocks = stratum_blocks(strata[rows])
        cells.append([rows[block] for block in blocks])
    return cells[0], cells[1]


def draw_from_cells(
    x: NDArray[np.floating[Any]],
    cells: list[NDArray[np.intp]],
    sampler: RandomSampler,
) -> NDArray[np.floating[Any]]:
    """One uniformly drawn value of ``x`` per cell."""
    picked = np.empty(len(cells), dtype=np.intp)
    for i, cell in enumerate(cells):
        picked[i] = sampler.subsample(cell, 1)[0]
    return x[picked]


def draw_independent_pair(
    x: ArrayLike,
    group: ArrayLike,
    strata: ArrayLike,
    seed: SeedLike = None,
    *,
    levels: tuple | None = None,
) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]]]:
    """
    Draw one observation per stratum within each group.

    Args:
        x: Measure, shape (n,).
        group: Group labels, exactly two distinct values.
        strata: Stratum labels.
        seed: Seed, Generator, or RandomSampler.
        levels: Explicit (first, second) group order.

    Returns:
        (sample_first, sample_second) in canonical group order. Their
        lengths are the number of strata present in each group and may
        differ.

    Raises:
        ValidationError: On empty input, wrong group cardinality, or an
            empty group.
        DimensionError: If lengths differ.
    """
    x_arr = check_array(x, "x")
    check_1d(x_arr, "x")
    check_min_samples(x_arr, 1, "x")
    check_finite(x_arr, "x")
    group_arr = check_labels(group, "group")
    strata_arr = check_labels(strata, "strata")
    check_consistent_length(
        x_arr, group_arr, strata_arr, names=("x", "group", "strata")
    )

    first, second = group_levels(group_arr, levels)
    cells_first, cells_second = group_cells(group_arr, strata_arr, (first, second))
    sampler = RandomSampler.coerce(seed)
    return (
        draw_from_cells(x_arr, cells_first, sampler),
        draw_from_cells(x_arr, cells_second, sampler),
    )


def equalize_sizes(
    sample_a: ArrayLike,
    sample_b: ArrayLike,
    seed: SeedLike = None,
) -> tuple[NDArray[Any], NDArray[Any]]:
    """
    Subsample the longer sample, without replacement, to the shorter's length.

    Samples of equal length are returned unchanged.
    """
    a = np.asarray(sample_a)
    b = np.asarray(sample_b)
    if len(a) == len(b):
        return a, b
    sampler = RandomSampler.coerce(seed)
    if len(a) > len(b):
        return sampler.subsample(a, len(b)), b
    return a, sampler.subsample(b, len(a))


def independent_difference(sample_a: ArrayLike, sample_b: ArrayLike) -> float:
    """
    mean(sample_b) - mean(sample_a).

    Same sign convention as difference_of_means: second group minus first.
    Means use exactly rounded sums, so the result depends only on the
    values in each sample and not on their order.

    Raises:
        ValidationError: If either sample is empty.
    """
    a = np.asarray(sample_a, dtype=np.float64)
    b = np.asarray(sample_b, dtype=np.float64)
    if a.shape[0] == 0 or b.shape[0] == 0:
        raise ValidationError(
            f"samples must be non-empty, got sizes {a.shape[0]} and {b.shape[0]}"
        )
    return math.fsum(b) / b.shape[0] - math.fsum(a) / a.shape[0]
