"""Peak list normalisation and validation.

A spectrum (peak list) is accepted in any of these shapes:

- ``(n, 2)`` numeric array: column 0 is m/z, column 1 is intensity
- numpy structured array with fields ``mz`` and ``intensity``
- any table object exposing ``"mz"`` and ``"intensity"`` columns
  (``dict`` of arrays, pandas DataFrame, ...)

All of them are converted into two contiguous float64 arrays so that the
Numba kernels can work on them directly. Peaks are never reordered: indices
reported by the grouping functions always refer to rows of the input.
"""

from typing import Tuple

import numpy as np


def as_peak_arrays(x) -> Tuple[np.ndarray, np.ndarray]:
    """Split a peak list into m/z and intensity arrays.

    Parameters
    ----------
    x : array-like, structured array or table
        Peak list, see module docstring for accepted shapes

    Returns
    -------
    mz : np.ndarray (float64)
        m/z values, same order as the input
    intensity : np.ndarray (float64)
        Intensity values, same order as the input

    Raises
    ------
    ValueError
        If the peak list has an unsupported shape or lacks a column
    """
    dtype_names = getattr(getattr(x, "dtype", None), "names", None)
    if dtype_names is not None:
        if "mz" not in dtype_names or "intensity" not in dtype_names:
            raise ValueError(
                "Structured peak arrays need 'mz' and 'intensity' fields, "
                f"got {dtype_names}"
            )
        mz = x["mz"]
        intensity = x["intensity"]
    elif hasattr(x, "keys") or hasattr(x, "columns"):
        try:
            mz = x["mz"]
            intensity = x["intensity"]
        except KeyError as err:
            raise ValueError(
                "Peak tables need 'mz' and 'intensity' columns"
            ) from err
    else:
        arr = np.asarray(x, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] < 2:
            if arr.size == 0:
                return np.empty(0, dtype=np.float64), np.empty(0, dtype=np.float64)
            raise ValueError(
                "Peak arrays need two columns (m/z, intensity), "
                f"got shape {arr.shape}"
            )
        mz = arr[:, 0]
        intensity = arr[:, 1]

    mz = np.ascontiguousarray(np.asarray(mz, dtype=np.float64))
    intensity = np.ascontiguousarray(np.asarray(intensity, dtype=np.float64))

    if mz.ndim != 1 or mz.shape != intensity.shape:
        raise ValueError(
            f"m/z and intensity must be 1D and of equal length, "
            f"got {mz.shape} and {intensity.shape}"
        )

    return mz, intensity


def validate_mz(mz: np.ndarray) -> None:
    """Check that m/z values are increasingly ordered and not NaN.

    Ties are allowed (non-decreasing order).

    Raises
    ------
    ValueError
        If any m/z is NaN or the values are not sorted
    """
    if len(mz) == 0:
        return
    if np.isnan(mz).any() or (np.diff(mz) < 0).any():
        raise ValueError(
            "m/z values need to be increasingly ordered and should not be NaN"
        )


def positive_intensity_indices(intensity: np.ndarray) -> np.ndarray:
    """Indices of peaks with intensity > 0.

    Zero, negative and missing (NaN) intensities are excluded.
    """
    return np.flatnonzero(intensity > 0)
