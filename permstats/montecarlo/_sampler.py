"""
Seedable sampling primitive.

Every random draw in the Monte Carlo package goes through a RandomSampler,
never through numpy's global state, so a seed passed at the top of a call
determines every permutation and subsample beneath it.
"""

from __future__ import annotations

from typing import Any, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from permstats.core.exceptions import ValidationError

SeedLike = Union[None, int, np.random.SeedSequence, np.random.Generator, 'RandomSampler']


class RandomSampler:
    """
    Uniform permutation and subsampling over finite sequences.

    Wraps a ``numpy.random.Generator``. Accepts ``None`` (process entropy),
    an int seed, a ``SeedSequence``, an existing ``Generator`` or another
    RandomSampler, in which case the generator is shared.

    Usage:
        sampler = RandomSampler(42)
        shuffled = sampler.permute(labels)
        picked = sampler.subsample(values, 3)
    """

    def __init__(self, seed: SeedLike = None):
        if isinstance(seed, RandomSampler):
            self._seed_seq = seed._seed_seq
            self._rng = seed._rng
        elif isinstance(seed, np.random.Generator):
            self._seed_seq = seed.bit_generator.seed_seq
            self._rng = seed
        else:
            if isinstance(seed, np.random.SeedSequence):
                seed_seq = seed
            else:
                seed_seq = np.random.SeedSequence(seed)
            self._seed_seq = seed_seq
            self._rng = np.random.default_rng(seed_seq)

    @classmethod
    def coerce(cls, seed: SeedLike) -> RandomSampler:
        """Return ``seed`` itself if it is a RandomSampler, else wrap it."""
        if isinstance(seed, cls):
            return seed
        return cls(seed)

    @property
    def generator(self) -> np.random.Generator:
        """The underlying numpy Generator."""
        return self._rng

    def permute(self, seq: ArrayLike) -> NDArray[Any]:
        """
        Uniformly random reordering of ``seq``.

        Returns a new array of the same length; the input is not modified.
        """
        arr = np.asarray(seq)
        return self._rng.permutation(arr)

    def subsample(self, seq: ArrayLike, k: int) -> NDArray[Any]:
        """
        Draw ``k`` elements of ``seq`` without replacement.

        Uniform over all size-k subsets and over the order of the drawn
        elements.

        Raises:
            ValidationError: If k < 0 or k > len(seq)
        """
        arr = np.asarray(seq)
        n = arr.shape[0]
        if k < 0 or k > n:
            raise ValidationError(
                f"subsample size k must be in [0, {n}], got {k}"
            )
        idx = self._rng.choice(n, size=k, replace=False)
        return arr[idx]

    def spawn(self, n: int) -> list[RandomSampler]:
        """
        Derive ``n`` statistically independent child samplers.

        Children are a deterministic function of this sampler's seed
        sequence and of how many children it has spawned so far.
        """
        return [RandomSampler(child) for child in self._seed_seq.spawn(n)]

    def __repr__(self) -> str:
        return f"RandomSampler(entropy={self._seed_seq.entropy!r})"
