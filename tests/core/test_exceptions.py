"""
Tests for PermStats exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PermStatsError)
    - ZeroVarianceError is both a ValidationError and a
      DegenerateDistributionError
    - Diagnostic attributes and their defaults
"""

import pytest

from permstats.core.exceptions import (
    DegenerateDistributionError,
    DimensionError,
    NumericalError,
    PermStatsError,
    ValidationError,
    ZeroVarianceError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PermStatsError."""

    def test_validation_error_is_permstats_error(self):
        with pytest.raises(PermStatsError):
            raise ValidationError("bad input")

    def test_dimension_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise DimensionError("wrong length")

    def test_degenerate_is_numerical_error(self):
        with pytest.raises(NumericalError):
            raise DegenerateDistributionError("sd is zero")

    def test_zero_variance_caught_as_validation_error(self):
        with pytest.raises(ValidationError):
            raise ZeroVarianceError("constant")

    def test_zero_variance_caught_as_degenerate(self):
        with pytest.raises(DegenerateDistributionError):
            raise ZeroVarianceError("constant")

    def test_validation_is_not_numerical(self):
        assert not issubclass(ValidationError, NumericalError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestAttributes:

    def test_degenerate_attributes(self):
        err = DegenerateDistributionError("sd is zero", R=1000, sd=0.0)
        assert err.R == 1000
        assert err.sd == 0.0
        assert str(err) == "sd is zero"

    def test_degenerate_defaults(self):
        err = DegenerateDistributionError("sd is zero")
        assert err.R is None
        assert err.sd is None

    def test_zero_variance_name(self):
        err = ZeroVarianceError("x: zero variance", name="x")
        assert err.name == "x"
        assert err.R is None
        assert "zero variance" in str(err)
