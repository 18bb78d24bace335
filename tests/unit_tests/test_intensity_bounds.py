"""Tests for isotopologue intensity ratio bounds."""

import numpy as np
import pytest

from isofast.isotopes import (
    SubstitutionRow,
    SubstitutionTable,
    applicable_rows,
    bounds_for,
    intensity_in_range,
    is_isotope_intensity_range,
)


class TestBoundsFor:

    def test_linear_bounds(self):
        row = SubstitutionRow("[13]C", 1.003355, 0, 1e6, 0, 1e6, 0.0001, 0.005, 0.001, 0.02)
        lower, upper = bounds_for(row, 200.0)
        assert lower == pytest.approx(0.025)
        assert upper == pytest.approx(0.22)

    def test_table_bounds(self, hmdb_neutral):
        lower, upper = bounds_for(hmdb_neutral, 194.08)
        assert lower.shape == upper.shape == (len(hmdb_neutral),)


class TestApplicableRows:
    """Segment selection uses left_end < mass <= right_end."""

    def test_first_segment(self, hmdb_neutral):
        rows = applicable_rows(hmdb_neutral, 194.08)
        assert len(rows) == 18
        assert np.all(hmdb_neutral.left_end[rows] == 0.0)

    def test_right_end_inclusive(self, hmdb_neutral):
        rows = applicable_rows(hmdb_neutral, 300.0)
        assert np.all(hmdb_neutral.right_end[rows] == 300.0)

    def test_left_end_exclusive(self, hmdb_neutral):
        rows = applicable_rows(hmdb_neutral, 300.0001)
        assert np.all(hmdb_neutral.left_end[rows] == 300.0)

    def test_open_last_segment(self, hmdb_neutral):
        rows = applicable_rows(hmdb_neutral, 5000.0)
        assert len(rows) == 18
        assert np.all(np.isinf(hmdb_neutral.right_end[rows]))

    def test_rows_stay_sorted(self, hmdb_neutral):
        rows = applicable_rows(hmdb_neutral, 450.0)
        assert np.all(np.diff(hmdb_neutral.mass_diff[rows]) >= 0)

    def test_no_row(self, carbon_table):
        assert len(applicable_rows(carbon_table, 2e6)) == 0
        assert len(applicable_rows(carbon_table, 0.0)) == 0


class TestIsIsotopeIntensityRange:
    """Test the compiled intensity check."""

    def test_bounds_inclusive(self):
        n = 4
        accepted = is_isotope_intensity_range(
            np.array([0.49, 0.5, 2.0, 2.01]),
            0.0,    # mass (slopes are zero anyway)
            1.0,    # seed intensity
            np.zeros(n), np.full(n, 0.5),
            np.zeros(n), np.full(n, 2.0),
        )
        np.testing.assert_array_equal(accepted, [1, 2])

    def test_scaled_by_seed_intensity(self):
        n = 5
        accepted = is_isotope_intensity_range(
            np.array([0.4, 0.50001, 1.0, 1.99999, 2.1]),
            100.0,
            100.0,
            np.zeros(n), np.full(n, 0.005),
            np.zeros(n), np.full(n, 0.02),
        )
        np.testing.assert_array_equal(accepted, [1, 2, 3])

    def test_mass_dependent_bounds(self):
        """Slopes make the accepted range grow with the seed mass."""
        args = (np.array([0.0]), np.array([0.0]), np.array([0.001]), np.array([0.0]))
        intensity = np.array([0.15])
        assert len(is_isotope_intensity_range(intensity, 100.0, 1.0, *args)) == 0
        assert len(is_isotope_intensity_range(intensity, 200.0, 1.0, *args)) == 1

    def test_parameters_per_candidate(self):
        """Each candidate is checked with its own row."""
        intensity = np.array([5.0, 5.0])
        accepted = is_isotope_intensity_range(
            intensity, 100.0, 100.0,
            np.zeros(2), np.array([0.0, 0.1]),
            np.zeros(2), np.array([0.1, 1.0]),
        )
        np.testing.assert_array_equal(accepted, [0])

    def test_empty(self):
        empty = np.empty(0)
        accepted = is_isotope_intensity_range(empty, 100.0, 1.0, empty, empty, empty, empty)
        assert len(accepted) == 0


class TestIntensityInRange:

    def test_caffeine_carbon(self, hmdb_neutral):
        """13C peak of caffeine (8 carbons) passes, a 50% peak does not."""
        mass = 194.080376
        rows = applicable_rows(hmdb_neutral, mass)
        table = hmdb_neutral.subset(rows)
        carbon = table.subset(np.flatnonzero(table.names == '[13]C'))

        carbon_twice = carbon.subset(np.array([0, 0]))
        accepted = intensity_in_range(np.array([86.6, 500.0]), mass, 1000.0, carbon_twice)
        np.testing.assert_array_equal(accepted, [0])

    def test_row_count_mismatch(self, carbon_table):
        with pytest.raises(ValueError, match="one substitution row per candidate"):
            intensity_in_range(np.array([1.0, 2.0]), 100.0, 100.0, carbon_table)

    def test_table_rows(self):
        table = SubstitutionTable.from_rows([
            ("a", 1.0, 0, 1e6, 0, 1e6, 0.0, 0.01, 0.0, 0.1),
            ("b", 2.0, 0, 1e6, 0, 1e6, 0.0, 0.5, 0.0, 1.0),
        ])
        accepted = intensity_in_range(np.array([5.0, 5.0]), 100.0, 100.0, table)
        np.testing.assert_array_equal(accepted, [0])
