"""
PermStats: permutation and resampling inference for Python.

Tests whether two continuous variables are associated, or whether a
measure differs between two groups, by comparing the observed statistic
with a null distribution built from randomized copies of the data.
Confounding strata (e.g. geographic areas) are handled by permuting
within strata or by drawing one observation per stratum.

Submodules:
    core: Result envelope, exceptions, validation, timing
    montecarlo: Permutation, stratified permutation, independent samples
"""

__version__ = "0.1.0"

from permstats import core
from permstats import montecarlo
from permstats.montecarlo import (
    RandomSampler,
    hybrid_test,
    independent_samples_test,
    permutation_test,
    stratified_permutation_test,
)

__all__ = [
    "__version__",
    "core",
    "montecarlo",
    "RandomSampler",
    "permutation_test",
    "stratified_permutation_test",
    "independent_samples_test",
    "hybrid_test",
]
