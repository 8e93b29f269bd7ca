"""
Core infrastructure for PermStats.

Shared abstractions used by the Monte Carlo domain package.

Key components:
    protocols: Backend protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing
"""

from permstats.core.protocols import Backend
from permstats.core.result import Result
from permstats.core.exceptions import (
    PermStatsError,
    ValidationError,
    DimensionError,
    NumericalError,
    DegenerateDistributionError,
    ZeroVarianceError,
)

__all__ = [
    # Protocols
    "Backend",
    # Result
    "Result",
    # Exceptions
    "PermStatsError",
    "ValidationError",
    "DimensionError",
    "NumericalError",
    "DegenerateDistributionError",
    "ZeroVarianceError",
]
