"""
Stratum partitioning and within-stratum permutation.

The stratified permutation test relies on an explicit reassembly contract
rather than on whatever order a group-by primitive happens to produce:

1. partition: strata are visited in sorted order (``numpy.unique``), and
   each stratum's row indices are kept in their original relative order;
2. reassembly order: the concatenation of those index blocks;
3. permutation: each block of the reassembled target is shuffled in place
   independently, so block boundaries (and therefore the multiset of
   labels per stratum) never change.

Anything that must stay aligned with the permuted target, such as the
measure ``x``, is reordered once with the same reassembly order.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from permstats.core.exceptions import ValidationError
from permstats.core.validation import check_consistent_length, check_labels
from permstats.montecarlo._sampler import RandomSampler, SeedLike


def stratum_blocks(strata: ArrayLike) -> tuple[NDArray, list[NDArray[np.intp]]]:
    """
    Distinct strata in sorted order and the row indices of each.

    Returns:
        (values, blocks) where blocks[i] holds, in original row order, the
        indices of every observation with stratum == values[i].

    Raises:
        ValidationError: If strata is empty or cannot be ordered.
    """
    labels = check_labels(strata, "strata")
    if labels.shape[0] == 0:
        raise ValidationError("strata: no observations, stratum set is empty")
    try:
        values, inverse = np.unique(labels, return_inverse=True)
    except TypeError as e:
        raise ValidationError(f"strata: labels cannot be ordered: {e}") from e
    # Stable sort keeps original order inside each block
    order = np.argsort(inverse.ravel(), kind="stable")
    counts = np.bincount(inverse.ravel(), minlength=len(values))
    blocks = np.split(order, np.cumsum(counts)[:-1])
    return values, blocks


def stratum_order(strata: ArrayLike) -> NDArray[np.intp]:
    """Reassembly order: row indices grouped by stratum, strata sorted."""
    _, blocks = stratum_blocks(strata)
    return np.concatenate(blocks)


def block_bounds(blocks: list[NDArray[np.intp]]) -> list[tuple[int, int]]:
    """(start, stop) of each block within the reassembled sequence."""
    bounds = []
    start = 0
    for block in blocks:
        stop = start + len(block)
        bounds.append((start, stop))
        start = stop
    return bounds


def shuffle_blocks(
    reassembled: NDArray,
    bounds: list[tuple[int, int]],
    sampler: RandomSampler,
) -> NDArray:
    """Copy of ``reassembled`` with every block permuted independently."""
    out = reassembled.copy()
    for start, stop in bounds:
        if stop - start > 1:
            out[start:stop] = sampler.permute(reassembled[start:stop])
    return out


def permute_within_strata(
    target: ArrayLike,
    strata: ArrayLike,
    seed: SeedLike = None,
) -> tuple[NDArray[Any], NDArray[np.intp]]:
    """
    Permute ``target`` within strata.

    Returns:
        (permuted, order): ``permuted`` is in reassembly order; align any
        companion sequence with ``companion[order]``.

    Example:
        >>> permuted, order = permute_within_strata(group, area, seed=1)
        >>> difference_of_means(x[order], permuted)
    """
    target_arr = np.asarray(target)
    labels = check_labels(strata, "strata")
    check_consistent_length(target_arr, labels, names=("target", "strata"))
    _, blocks = stratum_blocks(labels)
    order = np.concatenate(blocks)
    permuted = shuffle_blocks(
        target_arr[order], block_bounds(blocks), RandomSampler.coerce(seed)
    )
    return permuted, order
