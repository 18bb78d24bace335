"""Pytest configuration for IsoFast tests.

This module provides common fixtures and configuration for all tests.
"""

import numpy as np
import pytest

from isofast.isotopes import SubstitutionTable


@pytest.fixture
def example_spectrum():
    """Monoisotopic peak at 100, its 13C peak and an unrelated peak."""
    return np.array([
        [100.0, 100.0],
        [101.003355, 1.1],
        [102.0, 5.0],
    ])


@pytest.fixture
def carbon_table():
    """Single 13C substitution valid for all masses.

    Intensity ratio bounds are constant: 0.005 - 0.02 of the seed intensity.
    """
    return SubstitutionTable.from_rows([
        ("[13]C", 1.003355, 0.0, 1e6, 0.0, 1e6, 0.0, 0.005, 0.0, 0.02),
    ])


@pytest.fixture
def hmdb_neutral():
    """Built-in substitution table."""
    from isofast.isotopes import isotopic_substitution_matrix
    return isotopic_substitution_matrix("HMDB_NEUTRAL")


@pytest.fixture
def caffeine_spectrum():
    """[M+H]+ of caffeine (C8H10N4O2) with its main isotopologues.

    Intensities relative to a monoisotopic intensity of 1000.
    """
    mono = 195.087652
    return np.array([
        [mono, 1000.0],
        [mono + 0.997035, 14.6],   # 15N
        [mono + 1.003355, 86.6],   # 13C
        [mono + 2.004245, 4.1],    # 18O
        [mono + 2.00671, 3.3],     # 13C2
    ])


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
