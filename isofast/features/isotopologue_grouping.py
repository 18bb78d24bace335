"""
Isotopologue grouping for centroided MS peak lists.

Partitions a spectrum into groups of peaks that plausibly are isotopologues
of the same compound: a seed (assumed monoisotopic) peak plus the peaks found
at the mass differences of known isotopic substitutions, with intensities
inside the substitution's expected ratio range.

The scan goes left to right over the peaks. Peaks assigned to a group, and
peaks left of the current seed, are never tested again, so every peak ends
up in at most one group.

Four matching strategies are available (see ``GroupingStrategy``). They share
the scan and the intensity check and only differ in how candidate peaks are
matched to substitution masses:

- CLOSEST: each substitution mass picks its closest peak
- REVERSE: each peak picks its closest substitution mass
- EXHAUSTIVE: every peak within tolerance of every substitution mass
- GROUPED: peaks are matched against clusters of close substitution masses
  and then checked against every substitution of the matched cluster

EXHAUSTIVE resolves many-to-many matches completely and is the reference
behaviour; the other strategies are cheaper approximations.
"""

import logging
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Union

import numpy as np
from numba import njit

from ..constants import DEFAULT_PPM, DEFAULT_SUBSTITUTION_SOURCE, DEFAULT_TOLERANCE
from ..isotopes.intensity_bounds import applicable_rows, is_isotope_intensity_range
from ..isotopes.substitutions import SubstitutionTable, as_substitution_table
from ..search.tolerance_matching import (
    closest,
    group_values,
    mz_window_range,
    tolerance_window,
)
from ..spectrum import as_peak_arrays, positive_intensity_indices, validate_mz

logger = logging.getLogger(__name__)


class GroupingStrategy(Enum):
    """How candidate peaks are matched to substitution masses."""
    CLOSEST = "closest"        # one peak per substitution
    REVERSE = "reverse"        # one substitution per peak
    EXHAUSTIVE = "exhaustive"  # all pairs within tolerance
    GROUPED = "grouped"        # peaks vs clusters of substitutions


class InstrumentType(Enum):
    """Instrument types with different mass accuracy characteristics."""
    ORBITRAP = "orbitrap"  # ~240K resolution, 2-5 ppm
    MR_TOF = "mr_tof"      # >1M resolution, <1 ppm
    ASTRAL = "astral"      # Orbitrap-based, similar to Orbitrap


@dataclass
class IsotopologueGroupingParams:
    """Parameters for isotopologue grouping.

    Tolerances apply to m/z values; substitution masses and mass segments are
    converted with ``charge``.
    """

    # m/z matching tolerances
    tolerance: float = DEFAULT_TOLERANCE  # Da
    ppm: float = DEFAULT_PPM

    # Charge of the ionized compounds
    charge: float = 1.0

    strategy: GroupingStrategy = GroupingStrategy.CLOSEST

    # Registered table name or a SubstitutionTable
    substitution_source: Union[str, SubstitutionTable] = DEFAULT_SUBSTITUTION_SOURCE

    def __post_init__(self):
        self.strategy = GroupingStrategy(self.strategy)
        if self.tolerance < 0 or self.ppm < 0:
            raise ValueError("'tolerance' and 'ppm' have to be non-negative")
        if not self.charge > 0:
            raise ValueError(f"'charge' has to be positive, got {self.charge}")

    @classmethod
    def for_instrument(cls, instrument: InstrumentType) -> 'IsotopologueGroupingParams':
        """Create parameters optimized for specific instrument type.

        Args:
            instrument: Instrument type enum

        Returns:
            IsotopologueGroupingParams with instrument-specific defaults
        """
        if instrument == InstrumentType.MR_TOF:
            return cls(
                tolerance=0.0,
                ppm=1.5,  # Ultra-tight for >1M resolution
            )
        elif instrument in (InstrumentType.ORBITRAP, InstrumentType.ASTRAL):
            return cls(
                tolerance=0.0,
                ppm=5.0,
            )
        else:
            raise ValueError(f"Unknown instrument type: {instrument}")


@dataclass
class IsotopologueGroup:
    """A seed peak and its matched isotopologue peaks."""

    # Indices into the input peak list
    seed_idx: int
    member_idx: np.ndarray

    seed_mz: float
    seed_intensity: float
    member_mz: np.ndarray
    member_intensity: np.ndarray

    charge: float = 1.0

    @property
    def indices(self) -> np.ndarray:
        """All peak indices, seed first."""
        return np.concatenate(([self.seed_idx], self.member_idx)).astype(np.int64)

    @property
    def n_peaks(self) -> int:
        return 1 + len(self.member_idx)

    @property
    def intensity_ratios(self) -> np.ndarray:
        """Member intensity relative to the seed intensity."""
        return self.member_intensity / self.seed_intensity

    @property
    def mass_deltas(self) -> np.ndarray:
        """Compound mass difference of each member to the seed (Da)."""
        return (self.member_mz - self.seed_mz) * self.charge


# =============================================================================
# Strategy-Specific Matching
# =============================================================================
#
# Every matcher gets the seed, the still unassigned peaks right of the seed
# (``target_mz``/``target_intensity``, sorted by m/z) and the substitution
# rows active at the seed mass. It returns the sorted, unique positions into
# the target arrays of the peaks that passed the mass and intensity checks.

_NO_MATCH = np.empty(0, dtype=np.int64)


def _check_intensity(target_intensity, target_pos, sub, row_pos, seed_mass, seed_intensity):
    ok = is_isotope_intensity_range(
        target_intensity[target_pos],
        seed_mass,
        seed_intensity,
        sub.lower_slope[row_pos],
        sub.lower_intercept[row_pos],
        sub.upper_slope[row_pos],
        sub.upper_intercept[row_pos],
    )
    return np.unique(target_pos[ok])


def _match_closest(seed_mz, seed_mass, seed_intensity, target_mz, target_intensity,
                   sub, charge, tolerance, ppm):
    candidates = seed_mz + sub.mass_diff / charge
    res = closest(candidates, target_mz, tolerance=tolerance, ppm=ppm, duplicates="keep")
    if res.n_matches == 0:
        return _NO_MATCH
    return _check_intensity(
        target_intensity, res.ref_idx, sub, res.query_idx, seed_mass, seed_intensity
    )


def _match_reverse(seed_mz, seed_mass, seed_intensity, target_mz, target_intensity,
                   sub, charge, tolerance, ppm):
    candidates = seed_mz + sub.mass_diff / charge
    res = closest(target_mz, candidates, tolerance=tolerance, ppm=ppm, duplicates="keep")
    if res.n_matches == 0:
        return _NO_MATCH
    return _check_intensity(
        target_intensity, res.query_idx, sub, res.ref_idx, seed_mass, seed_intensity
    )


@njit
def _exhaustive_kernel(
    candidates: np.ndarray,
    half_width: np.ndarray,
    target_mz: np.ndarray,
    target_intensity: np.ndarray,
    seed_mass: float,
    seed_intensity: float,
    lower_slope: np.ndarray,
    lower_intercept: np.ndarray,
    upper_slope: np.ndarray,
    upper_intercept: np.ndarray,
) -> np.ndarray:
    """All target positions within the window of any candidate and its bounds."""
    hit = np.zeros(len(target_mz), dtype=np.bool_)

    for j in range(len(candidates)):
        start, end = mz_window_range(target_mz, candidates[j], half_width[j])
        if start >= end:
            continue

        lower = (lower_slope[j] * seed_mass + lower_intercept[j]) * seed_intensity
        upper = (upper_slope[j] * seed_mass + upper_intercept[j]) * seed_intensity

        for k in range(start, end):
            x = target_intensity[k]
            if x >= lower and x <= upper:
                hit[k] = True

    return np.nonzero(hit)[0].astype(np.int64)


def _match_exhaustive(seed_mz, seed_mass, seed_intensity, target_mz, target_intensity,
                      sub, charge, tolerance, ppm):
    candidates = seed_mz + sub.mass_diff / charge
    # Window is relative to the candidate m/z
    half_width = tolerance_window(candidates, tolerance, ppm)
    return _exhaustive_kernel(
        candidates,
        half_width,
        target_mz,
        target_intensity,
        seed_mass,
        seed_intensity,
        np.ascontiguousarray(sub.lower_slope),
        np.ascontiguousarray(sub.lower_intercept),
        np.ascontiguousarray(sub.upper_slope),
        np.ascontiguousarray(sub.upper_intercept),
    )


def _match_grouped(seed_mz, seed_mass, seed_intensity, target_mz, target_intensity,
                   sub, charge, tolerance, ppm):
    mzd = sub.mass_diff / charge

    # Merge substitutions closer than the tolerance; rows are sorted so every
    # cluster is a contiguous run of rows
    clusters = group_values(seed_mz + mzd, tolerance=tolerance, ppm=ppm)
    cluster_size = np.bincount(clusters)
    cluster_start = np.cumsum(cluster_size) - cluster_size
    cluster_mzd = np.bincount(clusters, weights=mzd) / cluster_size

    res = closest(target_mz, seed_mz + cluster_mzd, tolerance=tolerance, ppm=ppm, duplicates="keep")
    if res.n_matches == 0:
        return _NO_MATCH

    # Expand every matched peak to all substitutions of its cluster
    sizes = cluster_size[res.ref_idx]
    target_pos = np.repeat(res.query_idx, sizes)
    offsets = np.arange(len(target_pos)) - np.repeat(np.cumsum(sizes) - sizes, sizes)
    row_pos = np.repeat(cluster_start[res.ref_idx], sizes) + offsets

    return _check_intensity(
        target_intensity, target_pos, sub, row_pos, seed_mass, seed_intensity
    )


_STRATEGY_MATCHERS: Dict[GroupingStrategy, Callable[..., np.ndarray]] = {
    GroupingStrategy.CLOSEST: _match_closest,
    GroupingStrategy.REVERSE: _match_reverse,
    GroupingStrategy.EXHAUSTIVE: _match_exhaustive,
    GroupingStrategy.GROUPED: _match_grouped,
}


# =============================================================================
# Seed Scan
# =============================================================================

def _isotope_peaks(
    mz: np.ndarray,
    intensity: np.ndarray,
    table: SubstitutionTable,
    tolerance: float,
    ppm: float,
    seed_mz: Optional[np.ndarray],
    charge: float,
    matcher: Callable[..., np.ndarray],
) -> List[np.ndarray]:
    """Greedy left-to-right scan shared by all strategies."""
    # Peaks still available as seed or isotopologue
    eligible = intensity > 0
    positive = positive_intensity_indices(intensity)

    if seed_mz is not None and len(seed_mz):
        res = closest(seed_mz, mz[positive], tolerance=tolerance, ppm=ppm, duplicates="closest")
        seeds = positive[res.ref_idx]
        logger.debug(f"{len(seeds)} of {len(seed_mz)} seed m/z values matched a peak")
        if len(seeds) == 0:
            warnings.warn(
                f"None of the {len(seed_mz)} seed m/z values matched a peak "
                f"(tolerance={tolerance}, ppm={ppm})"
            )
    else:
        seeds = positive

    # Active substitution rows only change at segment boundaries
    active_rows: Dict[bytes, SubstitutionTable] = {}

    groups = []
    # Every peak left of the cursor has been consumed
    cursor = 0

    for i in seeds:
        if i < cursor or not eligible[i]:
            continue

        eligible[cursor:i + 1] = False
        cursor = i + 1

        targets = cursor + np.flatnonzero(eligible[cursor:])
        if len(targets) == 0:
            continue

        seed_mass = mz[i] * charge
        rows = applicable_rows(table, seed_mass)
        if len(rows) == 0:
            continue
        key = rows.tobytes()
        if key not in active_rows:
            active_rows[key] = table.subset(rows)

        matched = matcher(
            mz[i], seed_mass, intensity[i],
            mz[targets], intensity[targets],
            active_rows[key], charge, tolerance, ppm,
        )

        if len(matched):
            members = targets[matched]
            eligible[members] = False
            groups.append(np.concatenate(([i], members)).astype(np.int64))

    return groups


def isotopologues(
    x,
    subst_definition=None,
    tolerance: float = DEFAULT_TOLERANCE,
    ppm: float = DEFAULT_PPM,
    seed_mz: Optional[Sequence[float]] = None,
    charge: float = 1.0,
    check: bool = True,
    strategy: Union[GroupingStrategy, str] = GroupingStrategy.CLOSEST,
) -> List[np.ndarray]:
    """Identify groups of isotopologue peaks in a spectrum.

    Each peak, from low to high m/z, is assumed to be a monoisotopic peak.
    Peaks right of it whose m/z matches the seed m/z plus a substitution mass
    difference (divided by the charge) and whose intensity lies within the
    substitution's ratio bounds are grouped with it. Bounds are evaluated at
    the seed's compound mass ``mz * charge``, using only the substitution
    rows whose mass segment contains that mass.

    Grouped peaks are not tested again, so each peak belongs to at most one
    group. Peaks with zero, negative or missing intensity are ignored.

    Parameters
    ----------
    x : array-like
        Peak list: (n, 2) array of m/z and intensity, a structured array
        with 'mz' and 'intensity' fields, or a table with such columns.
        m/z values must be increasingly ordered without NaN.
    subst_definition : SubstitutionTable, str, table or None
        Isotopic substitutions, sorted by mass difference. A string selects a
        registered table; None uses 'HMDB_NEUTRAL'.
    tolerance : float, default=0.0
        Absolute m/z tolerance
    ppm : float, default=20.0
        Relative m/z tolerance in ppm
    seed_mz : sequence of float, optional
        Ordered m/z values. If given, only the peaks closest to these values
        (within tolerance) are used as seeds, in this order.
    charge : float, default=1.0
        Expected charge of the ionized compounds
    check : bool, default=True
        Validate the m/z ordering. Only disable if the input is known to be
        sorted and NaN-free.
    strategy : GroupingStrategy or str, default='closest'
        Matching strategy, one of 'closest', 'reverse', 'exhaustive',
        'grouped'

    Returns
    -------
    List[np.ndarray]
        One int64 array of peak indices per group, seed first, the other
        members in increasing m/z order. Seeds without isotopologues are not
        reported.

    Raises
    ------
    ValueError
        For unsorted or NaN m/z values (when check=True), negative
        tolerances, a non-positive charge, an unknown strategy or an unknown
        substitution table name

    Examples
    --------
    >>> x = np.array([[100.0, 100.0], [101.003355, 1.1], [102.0, 5.0]])
    >>> table = SubstitutionTable.from_rows(
    ...     [("[13]C", 1.003355, 0, 1e6, 0, 1e6, 0, 0.005, 0, 0.02)])
    >>> isotopologues(x, table, ppm=5)
    [array([0, 1])]
    """
    strategy = GroupingStrategy(strategy)
    table = as_substitution_table(subst_definition)
    mz, intensity = as_peak_arrays(x)

    if check:
        validate_mz(mz)
    if tolerance < 0 or ppm < 0:
        raise ValueError("'tolerance' and 'ppm' have to be non-negative")
    if not charge > 0:
        raise ValueError(f"'charge' has to be positive, got {charge}")

    if seed_mz is not None:
        seed_mz = np.atleast_1d(np.asarray(seed_mz, dtype=np.float64))

    groups = _isotope_peaks(
        mz, intensity, table, float(tolerance), float(ppm),
        seed_mz, float(charge), _STRATEGY_MATCHERS[strategy],
    )

    logger.debug(
        f"{strategy.value}: {len(groups)} isotopologue groups "
        f"from {len(mz)} peaks"
    )
    return groups


# =============================================================================
# High-Level API
# =============================================================================

def detect_isotopologue_groups(
    peaks,
    params: Optional[IsotopologueGroupingParams] = None,
    seed_mz: Optional[Sequence[float]] = None,
    check: bool = True,
) -> List[IsotopologueGroup]:
    """Detect isotopologue groups and return them as ``IsotopologueGroup``.

    Args:
        peaks: Peak list (see ``isotopologues`` for accepted formats)
        params: Grouping parameters (defaults if None)
        seed_mz: Optional ordered seed m/z values
        check: Validate the m/z ordering

    Returns:
        List of IsotopologueGroup objects in scan order
    """
    if params is None:
        params = IsotopologueGroupingParams()

    mz, intensity = as_peak_arrays(peaks)
    table = as_substitution_table(params.substitution_source)

    logger.info(
        f"Grouping isotopologues in {len(mz):,} peaks "
        f"(strategy: {params.strategy.value}, ppm: {params.ppm}, "
        f"tolerance: {params.tolerance}, charge: {params.charge})..."
    )

    index_groups = isotopologues(
        np.column_stack((mz, intensity)),
        table,
        tolerance=params.tolerance,
        ppm=params.ppm,
        seed_mz=seed_mz,
        charge=params.charge,
        check=check,
        strategy=params.strategy,
    )

    # Build IsotopologueGroup objects
    isotopologue_groups = []
    for indices in index_groups:
        seed_idx = int(indices[0])
        member_idx = indices[1:]
        isotopologue_groups.append(IsotopologueGroup(
            seed_idx=seed_idx,
            member_idx=member_idx,
            seed_mz=float(mz[seed_idx]),
            seed_intensity=float(intensity[seed_idx]),
            member_mz=mz[member_idx],
            member_intensity=intensity[member_idx],
            charge=params.charge,
        ))

    n_grouped = sum(group.n_peaks for group in isotopologue_groups)
    logger.info(
        f"✓ Found {len(isotopologue_groups):,} isotopologue groups "
        f"({n_grouped:,} of {len(mz):,} peaks grouped)"
    )

    return isotopologue_groups


def label_peaks(
    n_peaks: int,
    groups: Sequence[Union[np.ndarray, IsotopologueGroup]],
) -> np.ndarray:
    """Per-peak group label.

    Args:
        n_peaks: Number of peaks in the spectrum
        groups: Index arrays from ``isotopologues`` or IsotopologueGroup objects

    Returns:
        int64 array with the 1-based group number of each peak, 0 for
        peaks that are not part of any group
    """
    labels = np.zeros(n_peaks, dtype=np.int64)
    for number, group in enumerate(groups, start=1):
        indices = group.indices if isinstance(group, IsotopologueGroup) else np.asarray(group)
        labels[indices] = number
    return labels
