"""
Input validation utilities for PermStats.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from permstats.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a float64 numpy array.

    Rejects inputs that result in object dtype (mixed types) or in a
    non-numeric dtype (strings, datetimes).

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with float64 dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    return result.astype(np.float64)


def check_labels(array: ArrayLike, name: str) -> NDArray:
    """
    Convert a categorical label sequence to a 1D numpy array.

    Labels may be of any dtype that supports equality and ordering among
    themselves (strings, integers, ...). Missing values are the caller's
    responsibility; None is rejected because it cannot be ordered.

    Args:
        array: Label sequence
        name: Parameter name for error messages

    Returns:
        1D numpy array of labels (a copy)

    Raises:
        DimensionError: If labels are not 1D
        ValidationError: If labels contain None
    """
    result = np.array(array)
    check_1d(result, name)
    if result.dtype == object and any(v is None for v in result):
        raise ValidationError(f"{name}: contains None labels")
    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray, ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray, name: str) -> None:
    """
    Verify array is 1-dimensional.

    Raises:
        DimensionError: If array is not 1D
    """
    check_ndim(array, 1, name)


def check_consistent_length(
    *arrays: NDArray,
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_min_samples(array: NDArray, min_samples: int, name: str) -> None:
    """
    Verify array has at least the minimum number of samples.

    Raises:
        ValidationError: If array has fewer than min_samples
    """
    n = array.shape[0]
    if n < min_samples:
        raise ValidationError(
            f"{name}: requires at least {min_samples} samples, got {n}"
        )


def check_replicates(R: int, name: str = "R") -> int:
    """
    Verify a replicate count is a positive integer.

    Raises:
        ValidationError: If R is not an integer or R < 1
    """
    if isinstance(R, bool) or not isinstance(R, (int, np.integer)):
        raise ValidationError(f"{name} must be an integer, got {type(R).__name__}")
    if R < 1:
        raise ValidationError(f"{name} must be >= 1, got {R}")
    return int(R)
