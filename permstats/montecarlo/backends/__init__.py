"""CPU backends for Monte Carlo methods."""

from permstats.montecarlo.backends.cpu import (
    CPUHybridBackend,
    CPUIndependentSamplesBackend,
    CPUPermutationBackend,
)

__all__ = [
    "CPUHybridBackend",
    "CPUIndependentSamplesBackend",
    "CPUPermutationBackend",
]
