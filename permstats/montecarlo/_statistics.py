"""
Built-in test statistics.

Both statistics take two aligned sequences and return a float, so either
can be handed to the permutation engines:

- correlation(x, y): Pearson product-moment correlation
- difference_of_means(x, group): mean(second group) - mean(first group)

Canonical group order
---------------------
"First" and "second" group are defined by the sorted order of the
distinct labels, exactly as ``numpy.unique`` returns them (lexicographic
for strings, numeric for numbers). ``levels=(first, second)`` overrides
the rule explicitly.
"""

from __future__ import annotations

from typing import Any, Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from permstats.core.exceptions import ValidationError, ZeroVarianceError
from permstats.core.validation import (
    check_array,
    check_1d,
    check_consistent_length,
    check_labels,
    check_min_samples,
)


def group_levels(group: ArrayLike, levels: tuple | None = None) -> tuple[Any, Any]:
    """
    Canonical (first, second) pair of group labels.

    Args:
        group: Group labels.
        levels: Optional explicit (first, second) order. Both must occur
            in ``group`` and no other label may.

    Returns:
        Tuple of the two labels in canonical order.

    Raises:
        ValidationError: If group does not have exactly two distinct values,
            or an explicit level is absent from or incomplete for ``group``.
    """
    labels = check_labels(group, "group")
    try:
        distinct = np.unique(labels)
    except TypeError as e:
        raise ValidationError(f"group: labels cannot be ordered: {e}") from e

    if levels is not None:
        if len(levels) != 2 or levels[0] == levels[1]:
            raise ValidationError(
                f"levels must be two distinct labels, got {levels!r}"
            )
        unknown = [v for v in distinct.tolist() if v not in levels]
        if unknown:
            raise ValidationError(
                f"group contains labels outside levels {levels!r}: {unknown!r}"
            )
        for level in levels:
            if level not in distinct.tolist():
                raise ValidationError(f"group: no observations for level {level!r}")
        return levels[0], levels[1]

    if len(distinct) != 2:
        raise ValidationError(
            f"group must have exactly 2 distinct values, got {len(distinct)}: "
            f"{distinct.tolist()!r}"
        )
    first, second = distinct.tolist()
    return first, second


def correlation(x: ArrayLike, y: ArrayLike) -> float:
    """
    Pearson correlation coefficient of two aligned sequences.

    Raises:
        DimensionError: If lengths differ.
        ValidationError: If fewer than 2 observations.
        ZeroVarianceError: If either sequence is constant.
    """
    x_arr = check_array(x, "x")
    y_arr = check_array(y, "y")
    check_1d(x_arr, "x")
    check_1d(y_arr, "y")
    check_consistent_length(x_arr, y_arr, names=("x", "y"))
    check_min_samples(x_arr, 2, "x")

    xc = x_arr - x_arr.mean()
    yc = y_arr - y_arr.mean()
    sxx = float(np.dot(xc, xc))
    syy = float(np.dot(yc, yc))
    if sxx == 0.0:
        raise ZeroVarianceError("x: zero variance, correlation undefined", name="x")
    if syy == 0.0:
        raise ZeroVarianceError("y: zero variance, correlation undefined", name="y")

    r = float(np.dot(xc, yc)) / np.sqrt(sxx * syy)
    # Rounding can push |r| a hair past 1
    return float(np.clip(r, -1.0, 1.0))


def difference_of_means(
    x: ArrayLike,
    group: ArrayLike,
    levels: tuple | None = None,
) -> float:
    """
    mean(x in second group) - mean(x in first group).

    Example:
        >>> difference_of_means([1, 2, 3, 4, 5, 6], ["A"] * 3 + ["B"] * 3)
        3.0

    Raises:
        DimensionError: If lengths differ.
        ValidationError: If group does not have exactly two distinct values,
            or a partition is empty.
    """
    x_arr = check_array(x, "x")
    check_1d(x_arr, "x")
    labels = check_labels(group, "group")
    check_consistent_length(x_arr, labels, names=("x", "group"))

    first, second = group_levels(labels, levels)
    return float(x_arr[labels == second].mean() - x_arr[labels == first].mean())


STATISTICS: dict[str, Callable[..., float]] = {
    "correlation": correlation,
    "difference_of_means": difference_of_means,
}


def resolve_statistic(
    statistic: str | Callable[..., float],
    levels: tuple | None = None,
) -> Callable[[NDArray, NDArray], float]:
    """
    Turn a built-in statistic name or a user callable into fn(x, target).

    With ``levels`` given, difference_of_means is bound to that order and
    skips per-call validation: the design has already checked the labels,
    and permuting them cannot empty a group.
    """
    if callable(statistic):
        return statistic
    if statistic not in STATISTICS:
        raise ValidationError(
            f"statistic must be a callable or one of {sorted(STATISTICS)}, "
            f"got {statistic!r}"
        )
    if statistic == "difference_of_means" and levels is not None:
        return _bound_difference_of_means(levels)
    return STATISTICS[statistic]


def _bound_difference_of_means(levels: tuple) -> Callable[[NDArray, NDArray], float]:
    """difference_of_means for validated float x and labels in a fixed order."""
    first, second = levels

    def statistic(x: NDArray, group: NDArray) -> float:
        return float(x[group == second].mean() - x[group == first].mean())

    statistic.__name__ = "difference_of_means"
    return statistic
