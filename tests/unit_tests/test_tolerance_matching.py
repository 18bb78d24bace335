"""Tests for tolerance-based matching.

Tests cover:
1. Tolerance windows (absolute + ppm)
2. Binary search windows on sorted arrays
3. Closest matching and duplicate policies
4. Multi-column closest matching
5. Grouping of sorted values
"""

import numpy as np
import pytest

from isofast.constants import TOLERANCE_EPSILON
from isofast.search import (
    ToleranceMatch,
    closest,
    group_values,
    mclosest,
    mz_window_range,
    ppm_to_da,
    tolerance_window,
)


class TestToleranceWindow:
    """Test conversion of tolerances into absolute windows."""

    def test_ppm_to_da(self):
        """10 ppm at 500 m/z is 0.005 Da."""
        assert ppm_to_da(500.0, 10.0) == pytest.approx(0.005)

    def test_combined_window(self):
        """Absolute and relative parts are added."""
        window = tolerance_window(np.array([100.0, 200.0]), tolerance=0.01, ppm=10.0)
        np.testing.assert_allclose(window, np.array([0.011, 0.012]) + TOLERANCE_EPSILON)

    def test_epsilon_included(self):
        """A zero tolerance still allows for rounding errors."""
        window = tolerance_window(np.array([100.0]), 0.0, 0.0)
        assert window[0] == pytest.approx(TOLERANCE_EPSILON)

    def test_per_value_tolerance(self):
        window = tolerance_window(np.array([100.0, 100.0]), tolerance=np.array([0.1, 0.2]))
        np.testing.assert_allclose(window, [0.1, 0.2], rtol=1e-6)

    @pytest.mark.parametrize("tolerance,ppm", [(-0.1, 0.0), (0.0, -5.0)])
    def test_negative_tolerance_raises(self, tolerance, ppm):
        with pytest.raises(ValueError, match="non-negative"):
            tolerance_window(np.array([100.0]), tolerance, ppm)


class TestMzWindowRange:
    """Test binary search window on sorted m/z arrays."""

    def test_basic_window(self):
        mz_array = np.array([100.0, 200.0, 200.1, 300.0])
        start, end = mz_window_range(mz_array, 200.0, 0.1 + TOLERANCE_EPSILON)
        assert (start, end) == (1, 3)

    def test_window_between_values(self):
        """Window without values returns an empty range."""
        mz_array = np.array([100.0, 200.0, 300.0])
        start, end = mz_window_range(mz_array, 150.0, 1.0)
        assert start == end

    def test_window_outside_array(self):
        mz_array = np.array([100.0, 200.0, 300.0])
        assert mz_window_range(mz_array, 50.0, 1.0) == (0, 0)
        assert mz_window_range(mz_array, 500.0, 1.0) == (3, 3)

    def test_empty_array(self):
        assert mz_window_range(np.empty(0), 100.0, 1.0) == (0, 0)

    def test_matches_linear_scan(self):
        """Binary search gives the same values as a linear scan."""
        mz_array = np.sort(np.random.uniform(100, 1000, 500))
        for target in np.random.uniform(100, 1000, 50):
            start, end = mz_window_range(mz_array, target, 0.5)
            expected = np.flatnonzero(np.abs(mz_array - target) <= 0.5)
            np.testing.assert_array_equal(np.arange(start, end), expected)


class TestClosest:
    """Test closest matching of queries against a sorted reference."""

    def test_basic_match(self):
        table = np.array([100.0, 101.003355, 102.0])
        res = closest(np.array([101.0034, 150.0]), table, tolerance=0.0, ppm=5.0)

        assert isinstance(res, ToleranceMatch)
        np.testing.assert_array_equal(res.query_idx, [0])
        np.testing.assert_array_equal(res.ref_idx, [1])
        assert res.n_matches == 1

    def test_exact_match_zero_tolerance(self):
        res = closest([1.0], [0.5, 1.0, 2.0], tolerance=0.0)
        np.testing.assert_array_equal(res.ref_idx, [1])

    def test_default_tolerance_is_infinite(self):
        res = closest([100.0], [1.0, 2.0])
        np.testing.assert_array_equal(res.ref_idx, [1])

    def test_tie_goes_to_lower_index(self):
        """A query exactly between two values matches the lower one."""
        res = closest([1.5], [1.0, 2.0])
        np.testing.assert_array_equal(res.ref_idx, [0])

    def test_duplicated_table_values(self):
        """Duplicated reference values resolve to the first occurrence."""
        table = [1.0, 2.0, 2.0, 3.0]
        np.testing.assert_array_equal(closest([2.0], table).ref_idx, [1])
        np.testing.assert_array_equal(closest([2.1], table).ref_idx, [1])

    def test_ppm_relative_to_query(self):
        """ppm tolerance is evaluated on the query value."""
        assert closest([1000.0], [1000.009], tolerance=0.0, ppm=10.0).n_matches == 1
        assert closest([1000.0], [1000.009], tolerance=0.0, ppm=5.0).n_matches == 0

    def test_tolerance_per_query(self):
        res = closest([1.0, 2.0], [1.05, 2.05], tolerance=np.array([0.1, 0.01]))
        np.testing.assert_array_equal(res.query_idx, [0])

    def test_nan_query_never_matches(self):
        res = closest([np.nan, 1.0], [1.0], tolerance=0.0)
        np.testing.assert_array_equal(res.query_idx, [1])

    def test_empty_inputs(self):
        assert closest([1.0, 2.0], []).n_matches == 0
        assert closest([], [1.0, 2.0]).n_matches == 0

    def test_duplicates_keep(self):
        res = closest([1.0, 1.1, 5.0], [1.0, 2.0], tolerance=0.2, duplicates="keep")
        np.testing.assert_array_equal(res.query_idx, [0, 1])
        np.testing.assert_array_equal(res.ref_idx, [0, 0])

    def test_duplicates_closest(self):
        res = closest([1.0, 1.1, 5.0], [1.0, 2.0], tolerance=0.2, duplicates="closest")
        np.testing.assert_array_equal(res.query_idx, [0])
        np.testing.assert_array_equal(res.ref_idx, [0])

    def test_duplicates_closest_tie_keeps_first_query(self):
        res = closest([0.5, 1.5], [1.0], tolerance=1.0, duplicates="closest")
        np.testing.assert_array_equal(res.query_idx, [0])

    def test_duplicates_remove(self):
        res = closest([1.0, 1.1, 1.9], [1.0, 2.0], tolerance=0.2, duplicates="remove")
        np.testing.assert_array_equal(res.query_idx, [2])
        np.testing.assert_array_equal(res.ref_idx, [1])

    def test_unknown_duplicates_policy(self):
        with pytest.raises(ValueError, match="Unknown duplicates policy"):
            closest([1.0], [1.0], duplicates="first")

    def test_negative_tolerance_raises(self):
        with pytest.raises(ValueError):
            closest([1.0], [1.0], tolerance=-1.0)

    def test_matches_brute_force(self):
        """Closest matches agree with an exhaustive search."""
        table = np.sort(np.random.uniform(100, 200, 300))
        queries = np.random.uniform(95, 205, 200)
        tolerance = 0.05

        res = closest(queries, table, tolerance=tolerance)

        expected_query = []
        expected_ref = []
        for i, q in enumerate(queries):
            j = np.argmin(np.abs(table - q))
            if abs(table[j] - q) <= tolerance:
                expected_query.append(i)
                expected_ref.append(j)

        np.testing.assert_array_equal(res.query_idx, expected_query)
        np.testing.assert_array_equal(res.ref_idx, expected_ref)


class TestMclosest:
    """Test multi-column closest matching."""

    def test_basic_match(self):
        x = np.array([[100.0, 10.0], [200.0, 20.0]])
        table = np.array([[200.001, 20.1], [100.002, 10.0]])

        res = mclosest(x, table, tolerance=(0.01, 0.5))

        np.testing.assert_array_equal(res.query_idx, [0, 1])
        np.testing.assert_array_equal(res.ref_idx, [1, 0])

    def test_all_columns_must_be_within_tolerance(self):
        x = np.array([[100.0, 10.0]])
        table = np.array([[100.0, 11.0]])
        assert mclosest(x, table, tolerance=(0.01, 0.5)).n_matches == 0

    def test_tie_goes_to_first_row(self):
        x = np.array([[1.0, 1.0]])
        table = np.array([[1.1, 1.0], [1.0, 1.1]])
        res = mclosest(x, table, tolerance=0.2)
        np.testing.assert_array_equal(res.ref_idx, [0])

    def test_smallest_total_deviation_wins(self):
        x = np.array([[1.0, 1.0]])
        table = np.array([[1.05, 1.05], [1.08, 1.0]])
        res = mclosest(x, table, tolerance=0.1)
        # 0.1 vs 0.08 summed absolute deviation
        np.testing.assert_array_equal(res.ref_idx, [1])

    def test_scalar_tolerance_recycled(self):
        res = mclosest([[1.0, 2.0]], [[1.05, 2.05]], tolerance=0.1)
        assert res.n_matches == 1

    def test_ppm_per_column(self):
        x = np.array([[1000.0, 10.0]])
        table = np.array([[1000.009, 10.0]])
        assert mclosest(x, table, tolerance=0.0, ppm=(10.0, 0.0)).n_matches == 1
        assert mclosest(x, table, tolerance=0.0, ppm=(5.0, 0.0)).n_matches == 0

    def test_vector_is_single_row(self):
        res = mclosest([1.0, 2.0], [[1.0, 2.0], [3.0, 4.0]], tolerance=0.0)
        np.testing.assert_array_equal(res.query_idx, [0])
        np.testing.assert_array_equal(res.ref_idx, [0])

    def test_column_mismatch_raises(self):
        with pytest.raises(ValueError, match="same number of columns"):
            mclosest([[1.0, 2.0]], [[1.0, 2.0, 3.0]])


class TestGroupValues:
    """Test grouping of sorted values."""

    def test_basic_grouping(self):
        groups = group_values([1.0, 1.05, 1.5, 3.0], tolerance=0.1)
        np.testing.assert_array_equal(groups, [0, 0, 1, 2])

    def test_chained_grouping(self):
        """Values further apart than the tolerance are linked by neighbours."""
        groups = group_values([1.0, 1.08, 1.16], tolerance=0.1)
        np.testing.assert_array_equal(groups, [0, 0, 0])

    def test_ppm_grouping(self):
        groups = group_values([1000.0, 1000.005, 1000.02], ppm=10.0)
        np.testing.assert_array_equal(groups, [0, 0, 1])

    def test_empty(self):
        assert len(group_values([])) == 0

    def test_unsorted_raises(self):
        with pytest.raises(ValueError, match="increasingly ordered"):
            group_values([2.0, 1.0])
