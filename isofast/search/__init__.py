"""Tolerance-based matching of m/z values.

Core algorithms:
1. Binary search windows on m/z-sorted arrays (O(log n))
2. Closest match with absolute + ppm tolerance and duplicate policies
3. Multi-column closest match
4. Grouping of sorted values into tolerance-connected runs
"""

from .tolerance_matching import (
    ToleranceMatch,
    ppm_to_da,
    tolerance_window,
    mz_window_range,
    closest,
    mclosest,
    group_values,
)

__all__ = [
    'ToleranceMatch',
    'ppm_to_da',
    'tolerance_window',
    'mz_window_range',
    'closest',
    'mclosest',
    'group_values',
]
