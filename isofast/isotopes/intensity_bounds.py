"""Intensity ratio bounds for isotopologue candidates.

For a seed (assumed monoisotopic) peak with compound mass ``m`` and intensity
``I``, a candidate isotopologue peak with intensity ``x`` that matched
substitution row ``r`` is accepted if

    (r.lower_slope * m + r.lower_intercept) * I
        <= x <=
    (r.upper_slope * m + r.upper_intercept) * I

Only the bound columns of a substitution table are used, so anything with the
``SubstitutionRow`` field names works (a ``SubstitutionTable``, a single
``SubstitutionRow`` or a structured array).
"""

from typing import Tuple

import numpy as np
from numba import njit


def bounds_for(rows, mass: float) -> Tuple[np.ndarray, np.ndarray]:
    """Lower and upper intensity ratio of substitution rows at a given mass.

    Parameters
    ----------
    rows : SubstitutionTable or SubstitutionRow
        Rows to evaluate
    mass : float
        Compound (neutral) mass of the seed peak, i.e. ``mz * charge``

    Returns
    -------
    lower_ratio : np.ndarray
        ``lower_slope * mass + lower_intercept`` per row
    upper_ratio : np.ndarray
        ``upper_slope * mass + upper_intercept`` per row

    Examples
    --------
    >>> row = SubstitutionRow("[13]C", 1.003355, 0, 1e6, 0, 1e6, 0.0001, 0.005, 0.001, 0.02)
    >>> bounds_for(row, 200.0)
    (array(0.025), array(0.22))
    """
    lower = np.asarray(rows.lower_slope, dtype=np.float64) * mass + np.asarray(rows.lower_intercept, dtype=np.float64)
    upper = np.asarray(rows.upper_slope, dtype=np.float64) * mass + np.asarray(rows.upper_intercept, dtype=np.float64)
    return lower, upper


def applicable_rows(table, mass: float) -> np.ndarray:
    """Positions of the rows whose mass segment contains ``mass``.

    A row applies if ``left_end < mass <= right_end``.

    Parameters
    ----------
    table : SubstitutionTable
        Substitution definitions
    mass : float
        Compound (neutral) mass of the seed peak, not its m/z

    Returns
    -------
    np.ndarray (int64)
        Row positions in table order (so still sorted by mass difference)
    """
    return np.flatnonzero(
        (np.asarray(table.left_end) < mass) & (np.asarray(table.right_end) >= mass)
    )


@njit
def is_isotope_intensity_range(
    intensity: np.ndarray,
    mass: float,
    seed_intensity: float,
    lower_slope: np.ndarray,
    lower_intercept: np.ndarray,
    upper_slope: np.ndarray,
    upper_intercept: np.ndarray,
) -> np.ndarray:
    """Positions of candidates whose intensity lies inside the ratio bounds.

    The bound arrays are parallel to ``intensity``: entry k holds the
    parameters of the substitution candidate k was matched with.

    Parameters
    ----------
    intensity : np.ndarray
        Intensities of the candidate isotopologue peaks
    mass : float
        Compound mass of the seed peak
    seed_intensity : float
        Intensity of the seed peak
    lower_slope, lower_intercept, upper_slope, upper_intercept : np.ndarray
        Bound parameters, one per candidate

    Returns
    -------
    np.ndarray (int64)
        Positions into ``intensity`` of accepted candidates, ascending
    """
    n = len(intensity)
    accepted = np.empty(n, dtype=np.int64)
    n_accepted = 0

    for k in range(n):
        lower = lower_slope[k] * mass + lower_intercept[k]
        upper = upper_slope[k] * mass + upper_intercept[k]
        x = intensity[k]
        if x >= lower * seed_intensity and x <= upper * seed_intensity:
            accepted[n_accepted] = k
            n_accepted += 1

    return accepted[:n_accepted]


def intensity_in_range(
    intensity: np.ndarray,
    mass: float,
    seed_intensity: float,
    rows,
) -> np.ndarray:
    """Convenience wrapper of ``is_isotope_intensity_range`` taking rows.

    Parameters
    ----------
    intensity : np.ndarray
        Candidate intensities
    mass : float
        Compound mass of the seed peak
    seed_intensity : float
        Intensity of the seed peak
    rows : SubstitutionTable
        One row per candidate (the substitution each candidate matched)

    Returns
    -------
    np.ndarray (int64)
        Positions of accepted candidates
    """
    intensity = np.ascontiguousarray(intensity, dtype=np.float64)
    if len(rows) != len(intensity):
        raise ValueError(
            f"Need one substitution row per candidate, got {len(rows)} rows "
            f"for {len(intensity)} candidates"
        )
    return is_isotope_intensity_range(
        intensity,
        float(mass),
        float(seed_intensity),
        np.ascontiguousarray(rows.lower_slope, dtype=np.float64),
        np.ascontiguousarray(rows.lower_intercept, dtype=np.float64),
        np.ascontiguousarray(rows.upper_slope, dtype=np.float64),
        np.ascontiguousarray(rows.upper_intercept, dtype=np.float64),
    )
