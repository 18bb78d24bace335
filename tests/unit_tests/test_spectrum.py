"""Tests for peak list normalisation and validation."""

import numpy as np
import pytest

from isofast.spectrum import as_peak_arrays, positive_intensity_indices, validate_mz


class TestAsPeakArrays:
    """Test accepted peak list formats."""

    def test_two_column_array(self, example_spectrum):
        mz, intensity = as_peak_arrays(example_spectrum)

        np.testing.assert_allclose(mz, [100.0, 101.003355, 102.0])
        np.testing.assert_allclose(intensity, [100.0, 1.1, 5.0])
        assert mz.dtype == np.float64
        assert mz.flags['C_CONTIGUOUS']

    def test_nested_list(self):
        mz, intensity = as_peak_arrays([[100.0, 1.0], [200.0, 2.0]])
        np.testing.assert_allclose(mz, [100.0, 200.0])

    def test_structured_array(self):
        peaks = np.array(
            [(100.0, 10.0), (200.0, 20.0)],
            dtype=[('mz', 'f4'), ('intensity', 'f4')],
        )
        mz, intensity = as_peak_arrays(peaks)

        assert mz.dtype == np.float64
        np.testing.assert_allclose(intensity, [10.0, 20.0])

    def test_dict_of_columns(self):
        mz, intensity = as_peak_arrays({"mz": [100.0, 200.0], "intensity": [1, 2]})
        np.testing.assert_allclose(intensity, [1.0, 2.0])

    def test_empty(self):
        mz, intensity = as_peak_arrays([])
        assert len(mz) == len(intensity) == 0

    def test_wrong_shape(self):
        with pytest.raises(ValueError, match="two columns"):
            as_peak_arrays([100.0, 200.0, 300.0])

    def test_missing_column(self):
        with pytest.raises(ValueError, match="'mz' and 'intensity'"):
            as_peak_arrays({"mz": [100.0]})

    def test_structured_missing_field(self):
        peaks = np.zeros(2, dtype=[('mz', 'f8'), ('int', 'f8')])
        with pytest.raises(ValueError, match="'mz' and 'intensity' fields"):
            as_peak_arrays(peaks)

    def test_unequal_columns(self):
        with pytest.raises(ValueError, match="equal length"):
            as_peak_arrays({"mz": [100.0, 200.0], "intensity": [1.0]})


class TestValidateMz:

    def test_sorted(self):
        validate_mz(np.array([100.0, 100.0, 200.0]))

    def test_empty(self):
        validate_mz(np.empty(0))

    def test_unsorted(self):
        with pytest.raises(ValueError, match="increasingly ordered"):
            validate_mz(np.array([200.0, 100.0]))

    def test_nan(self):
        with pytest.raises(ValueError, match="NaN"):
            validate_mz(np.array([100.0, np.nan, 200.0]))


def test_positive_intensity_indices():
    intensity = np.array([0.0, -1.0, np.nan, 5.0, 1e-9])
    np.testing.assert_array_equal(positive_intensity_indices(intensity), [3, 4])
