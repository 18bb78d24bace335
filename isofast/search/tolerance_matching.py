"""Tolerance-based nearest value matching on sorted m/z arrays.

Core algorithms for relaxed matching of measured m/z values:
1. Window search on sorted arrays with binary search (O(log n))
2. Closest match of query values against a sorted reference (O(n log m))
3. Multi-column closest match (quadratic, for small inputs)
4. Grouping of sorted values into tolerance-connected runs

Every tolerance window combines an absolute and a relative part:

    tol(q) = tolerance + |q| * ppm * 1e-6

evaluated on the *query* value q. A tiny epsilon (``TOLERANCE_EPSILON``) is
added so that differences equal to the tolerance up to floating point
rounding are still reported.

Matches are returned as aligned pairs of query and reference indices
(``ToleranceMatch``). Queries without a match are simply absent: no index
value is ever used to mean "no match" in the public API.

Examples
--------
>>> table = np.array([100.0, 101.003355, 102.0])
>>> res = closest(np.array([101.0034, 150.0]), table, tolerance=0.0, ppm=5.0)
>>> res.query_idx, res.ref_idx
(array([0]), array([1]))
"""

from typing import NamedTuple, Tuple, Union

import numba
import numpy as np

from ..constants import TOLERANCE_EPSILON


ArrayLike = Union[float, np.ndarray]

# Duplicate handling policies (Numba kernels work on the integer codes)
DUPLICATES_KEEP = 0
DUPLICATES_CLOSEST = 1
DUPLICATES_REMOVE = 2

DUPLICATES_POLICIES = {
    "keep": DUPLICATES_KEEP,
    "closest": DUPLICATES_CLOSEST,
    "remove": DUPLICATES_REMOVE,
}


class ToleranceMatch(NamedTuple):
    """Matched pairs from a tolerance search.

    Attributes
    ----------
    query_idx : np.ndarray (int64)
        Indices of the queries that found a match, ascending
    ref_idx : np.ndarray (int64)
        Index of the matched reference element for each entry of query_idx
    """
    query_idx: np.ndarray
    ref_idx: np.ndarray

    @property
    def n_matches(self) -> int:
        return len(self.query_idx)


# =============================================================================
# Tolerance Windows
# =============================================================================

def ppm_to_da(values: ArrayLike, ppm: ArrayLike) -> np.ndarray:
    """Convert a relative tolerance in ppm into an absolute one.

    Parameters
    ----------
    values : float or np.ndarray
        Reference values (m/z or mass)
    ppm : float or np.ndarray
        Relative tolerance in parts per million

    Returns
    -------
    np.ndarray
        Absolute tolerance ``|values| * ppm * 1e-6``

    Examples
    --------
    >>> ppm_to_da(500.0, 10.0)
    array(0.005)
    """
    return np.abs(np.asarray(values, dtype=np.float64)) * np.asarray(ppm, dtype=np.float64) * 1e-6


def tolerance_window(
    values: np.ndarray,
    tolerance: ArrayLike = 0.0,
    ppm: ArrayLike = 0.0,
) -> np.ndarray:
    """Half-width of the matching window for each value.

    Parameters
    ----------
    values : np.ndarray
        Query values the windows are centred on
    tolerance : float or np.ndarray
        Absolute tolerance (scalar or one per value)
    ppm : float or np.ndarray
        Relative tolerance in ppm (scalar or one per value)

    Returns
    -------
    np.ndarray (float64)
        ``tolerance + ppm_to_da(values, ppm) + TOLERANCE_EPSILON``,
        same length as values

    Raises
    ------
    ValueError
        If tolerance or ppm are negative
    """
    values = np.asarray(values, dtype=np.float64)
    tolerance = np.asarray(tolerance, dtype=np.float64)
    ppm = np.asarray(ppm, dtype=np.float64)

    if (tolerance < 0).any() or (ppm < 0).any():
        raise ValueError("'tolerance' and 'ppm' have to be non-negative")

    window = tolerance + ppm_to_da(values, ppm) + TOLERANCE_EPSILON
    return np.array(np.broadcast_to(window, values.shape), dtype=np.float64)


# =============================================================================
# Window Search (Core Algorithm)
# =============================================================================

@numba.jit(nopython=True, cache=True)
def mz_window_range(
    mz_array: np.ndarray,
    target_mz: float,
    half_width: float,
) -> Tuple[int, int]:
    """Find the index range of values within an absolute window.

    Parameters
    ----------
    mz_array : np.ndarray
        Sorted array of m/z values
        CRITICAL: Must be sorted ascending! No validation for speed.
    target_mz : float
        Centre of the window
    half_width : float
        Absolute half-width of the window (Da)

    Returns
    -------
    start_idx : int
        Start index (inclusive)
    end_idx : int
        End index (exclusive, Python convention)

    Examples
    --------
    >>> mz_array = np.array([100.0, 200.0, 200.1, 300.0])
    >>> mz_window_range(mz_array, 200.0, 0.1)
    (1, 3)
    """
    n = len(mz_array)
    low_mz = target_mz - half_width
    high_mz = target_mz + half_width

    # Binary search for lower bound
    left, right = 0, n
    while left < right:
        mid = (left + right) // 2
        if mz_array[mid] < low_mz:
            left = mid + 1
        else:
            right = mid
    start_idx = left

    # Binary search for upper bound
    left, right = start_idx, n
    while left < right:
        mid = (left + right) // 2
        if mz_array[mid] <= high_mz:
            left = mid + 1
        else:
            right = mid
    end_idx = left

    return start_idx, end_idx


@numba.jit(nopython=True, cache=True)
def _closest_kernel(
    x: np.ndarray,
    table: np.ndarray,
    tol: np.ndarray,
    duplicates: int,
) -> np.ndarray:
    """Closest table index per query, -1 where nothing is within tol.

    Internal: the -1 marker never leaves this module.
    """
    n = len(x)
    n_table = len(table)
    result = np.full(n, -1, dtype=np.int64)
    diffs = np.full(n, np.inf, dtype=np.float64)

    if n_table == 0:
        return result

    for i in range(n):
        q = x[i]
        if np.isnan(q):
            continue

        # First table value >= q
        pos = np.searchsorted(table, q)

        best = -1
        best_diff = np.inf
        if pos < n_table:
            best = pos
            best_diff = abs(table[pos] - q)
        if pos > 0:
            d = abs(table[pos - 1] - q)
            if d <= best_diff:
                # Ties go to the first occurrence
                best = pos - 1
                best_diff = d
                while best > 0 and table[best - 1] == table[best]:
                    best -= 1

        if best >= 0 and best_diff <= tol[i]:
            result[i] = best
            diffs[i] = best_diff

    if duplicates == DUPLICATES_CLOSEST:
        winner = np.full(n_table, -1, dtype=np.int64)
        for i in range(n):
            j = result[i]
            if j < 0:
                continue
            k = winner[j]
            if k < 0 or diffs[i] < diffs[k]:
                winner[j] = i
        for i in range(n):
            j = result[i]
            if j >= 0 and winner[j] != i:
                result[i] = -1

    elif duplicates == DUPLICATES_REMOVE:
        counts = np.zeros(n_table, dtype=np.int64)
        for i in range(n):
            if result[i] >= 0:
                counts[result[i]] += 1
        for i in range(n):
            j = result[i]
            if j >= 0 and counts[j] > 1:
                result[i] = -1

    return result


@numba.jit(nopython=True, cache=True)
def _mclosest_kernel(
    x: np.ndarray,
    table: np.ndarray,
    tolerance: np.ndarray,
    ppm: np.ndarray,
) -> np.ndarray:
    """Closest table row per query row, -1 where no row is within tolerance."""
    n, n_col = x.shape
    n_table = table.shape[0]
    result = np.full(n, -1, dtype=np.int64)

    for i in range(n):
        best = -1
        best_dev = np.inf
        for j in range(n_table):
            dev = 0.0
            ok = True
            for c in range(n_col):
                d = abs(x[i, c] - table[j, c])
                tol = tolerance[c] + abs(x[i, c]) * ppm[c] * 1e-6 + TOLERANCE_EPSILON
                if not d <= tol:
                    ok = False
                    break
                dev += d
            # Strict comparison keeps the first row on ties
            if ok and dev < best_dev:
                best = j
                best_dev = dev
        result[i] = best

    return result


@numba.jit(nopython=True, cache=True)
def _group_kernel(x: np.ndarray, tolerance: float, ppm: float) -> np.ndarray:
    n = len(x)
    groups = np.zeros(n, dtype=np.int64)
    current = 0
    for i in range(1, n):
        if x[i] - x[i - 1] > tolerance + abs(x[i]) * ppm * 1e-6 + TOLERANCE_EPSILON:
            current += 1
        groups[i] = current
    return groups


# =============================================================================
# Public API
# =============================================================================

def _as_float_vector(values) -> np.ndarray:
    return np.ascontiguousarray(np.atleast_1d(np.asarray(values, dtype=np.float64)))


def closest(
    x,
    table,
    tolerance: ArrayLike = np.inf,
    ppm: ArrayLike = 0.0,
    duplicates: str = "keep",
) -> ToleranceMatch:
    """Match each query to the closest value of a sorted reference.

    Parameters
    ----------
    x : array-like
        Query values, any order
    table : array-like
        Reference values
        CRITICAL: Must be sorted ascending! No validation for speed.
    tolerance : float or np.ndarray, default=inf
        Absolute tolerance, scalar or one per query
    ppm : float or np.ndarray, default=0.0
        Relative tolerance in ppm of the query value
    duplicates : {"keep", "closest", "remove"}, default="keep"
        What to do when several queries match the same reference element:
        - "keep": report all of them
        - "closest": report only the query with the smallest difference
          (the first one on ties)
        - "remove": report none of them

    Returns
    -------
    ToleranceMatch
        Matched (query index, reference index) pairs

    Raises
    ------
    ValueError
        For an unknown duplicates policy or negative tolerances

    Examples
    --------
    >>> res = closest([1.0, 1.1, 5.0], [1.0, 2.0], tolerance=0.2, duplicates="closest")
    >>> res.query_idx, res.ref_idx
    (array([0]), array([0]))
    """
    if duplicates not in DUPLICATES_POLICIES:
        raise ValueError(
            f"Unknown duplicates policy: {duplicates}. "
            f"Must be one of {sorted(DUPLICATES_POLICIES)}"
        )

    x = _as_float_vector(x)
    table = _as_float_vector(table)
    tol = tolerance_window(x, tolerance, ppm)

    result = _closest_kernel(x, table, tol, DUPLICATES_POLICIES[duplicates])

    query_idx = np.flatnonzero(result >= 0)
    return ToleranceMatch(query_idx, result[query_idx])


def mclosest(
    x,
    table,
    tolerance: ArrayLike = np.inf,
    ppm: ArrayLike = 0.0,
) -> ToleranceMatch:
    """Match rows of ``x`` to the closest rows of ``table`` across columns.

    A table row is a candidate for a query row only if every column is within
    that column's tolerance window (``tolerance[c] + ppm_to_da(x[c], ppm[c])``).
    Among the candidates the row with the smallest sum of absolute column
    differences wins; ties go to the first row of the table.

    Parameters
    ----------
    x : array-like, shape (n, n_col)
        Query rows (a 1D input is treated as a single row)
    table : array-like, shape (m, n_col)
        Reference rows, any order
    tolerance : float or array-like, default=inf
        Absolute tolerance per column, recycled to the number of columns
    ppm : float or array-like, default=0.0
        Relative tolerance per column, recycled to the number of columns

    Returns
    -------
    ToleranceMatch
        Matched (query row, table row) pairs

    Notes
    -----
    Quadratic in the number of rows; intended for small inputs.

    Examples
    --------
    >>> x = np.array([[100.0, 10.0], [200.0, 20.0]])
    >>> table = np.array([[200.001, 20.1], [100.002, 10.0]])
    >>> res = mclosest(x, table, tolerance=(0.01, 0.5))
    >>> res.query_idx, res.ref_idx
    (array([0, 1]), array([1, 0]))
    """
    x = np.asarray(x, dtype=np.float64)
    table = np.asarray(table, dtype=np.float64)
    if x.ndim == 1:
        x = x.reshape(1, -1)
    if table.ndim == 1:
        table = table.reshape(1, -1)
    if x.ndim != 2 or table.ndim != 2:
        raise ValueError("'x' and 'table' have to be 2D arrays")
    if x.shape[1] != table.shape[1]:
        raise ValueError(
            f"'x' and 'table' need the same number of columns, "
            f"got {x.shape[1]} and {table.shape[1]}"
        )

    n_col = x.shape[1]
    tolerance = np.atleast_1d(np.asarray(tolerance, dtype=np.float64))
    ppm = np.atleast_1d(np.asarray(ppm, dtype=np.float64))
    if len(tolerance) == 0 or len(ppm) == 0:
        raise ValueError("'tolerance' and 'ppm' must not be empty")
    if (tolerance < 0).any() or (ppm < 0).any():
        raise ValueError("'tolerance' and 'ppm' have to be non-negative")

    # Recycle per-column tolerances to the number of columns
    tolerance = np.ascontiguousarray(np.resize(tolerance, n_col))
    ppm = np.ascontiguousarray(np.resize(ppm, n_col))

    result = _mclosest_kernel(
        np.ascontiguousarray(x), np.ascontiguousarray(table), tolerance, ppm
    )

    query_idx = np.flatnonzero(result >= 0)
    return ToleranceMatch(query_idx, result[query_idx])


def group_values(x, tolerance: float = 0.0, ppm: float = 0.0) -> np.ndarray:
    """Group sorted values into runs of tolerance-connected neighbours.

    A new group starts whenever the gap to the previous value is larger than
    ``tolerance + ppm_to_da(value, ppm)``. Groups are chained: values further
    apart than the tolerance can share a group through intermediate values.

    Parameters
    ----------
    x : array-like
        Values sorted ascending
    tolerance : float
        Absolute tolerance
    ppm : float
        Relative tolerance in ppm

    Returns
    -------
    np.ndarray (int64)
        Group number (0-based, non-decreasing) for each value

    Raises
    ------
    ValueError
        If x is not sorted or tolerances are negative

    Examples
    --------
    >>> group_values([1.0, 1.05, 1.5, 3.0], tolerance=0.1)
    array([0, 0, 1, 2])
    """
    x = _as_float_vector(x)
    if tolerance < 0 or ppm < 0:
        raise ValueError("'tolerance' and 'ppm' have to be non-negative")
    if len(x) > 1 and (np.diff(x) < 0).any():
        raise ValueError("'x' has to be increasingly ordered")
    return _group_kernel(x, float(tolerance), float(ppm))
