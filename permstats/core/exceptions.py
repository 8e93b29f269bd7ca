"""
Exception hierarchy for PermStats.

All exceptions inherit from PermStatsError to allow catching any
library-specific error. Domain code raises the most specific class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PermStatsError(Exception):
    """Base exception for all PermStats errors."""
    pass


class ValidationError(PermStatsError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks: wrong group
    cardinality, empty partitions, subsample size larger than the
    population, invalid replicate counts.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when aligned sequences (measure, group, stratum) do not share
    the same length, or when an input is not one-dimensional.
    """
    pass


class NumericalError(PermStatsError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class DegenerateDistributionError(NumericalError):
    """
    A distribution has zero (or undefined) spread.

    Raised when a standardized quantity would require dividing by a zero
    standard deviation, e.g. the z-score of a null distribution whose
    replicates are all identical.

    Attributes:
        R: Number of replicates in the distribution, if applicable
        sd: The offending standard deviation, if computed
    """

    def __init__(
        self,
        message: str,
        R: int | None = None,
        sd: float | None = None,
    ):
        super().__init__(message)
        self.R = R
        self.sd = sd


class ZeroVarianceError(ValidationError, DegenerateDistributionError):
    """
    An input sequence is constant.

    Both an invalid argument (the statistic is undefined for this input)
    and a degenerate distribution, so either handler catches it.

    Attributes:
        name: Parameter name of the constant input
    """

    def __init__(self, message: str, name: str | None = None):
        super().__init__(message)
        self.name = name
