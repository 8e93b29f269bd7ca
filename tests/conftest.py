"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def uncorrelated_data(rng):
    """Two independent standard-normal sequences of length 100."""
    x = rng.standard_normal(100)
    y = rng.standard_normal(100)
    return x, y


@pytest.fixture
def associated_data(rng):
    """y = x plus small noise."""
    x = rng.standard_normal(100)
    y = x + rng.standard_normal(100) * 0.05
    return x, y


@pytest.fixture
def areal_data(rng):
    """
    Measure, binary group and area labels with a confound.

    Ten areas with five observations each. Areas 0-4 are mostly group
    "A", areas 5-9 mostly group "B"; the measure depends on area only.
    """
    areas = np.repeat(np.arange(10), 5)
    group = np.where(areas < 5, "A", "B").astype(object)
    # One minority label per area so every stratum mixes groups
    group[::5] = np.where(areas[::5] < 5, "B", "A")
    group = group.astype(str)
    x = areas * 0.5 + rng.standard_normal(50) * 0.1
    return x, group, areas
