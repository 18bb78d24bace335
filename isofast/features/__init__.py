"""Isotopologue grouping of MS peak lists.

This module provides:
- The greedy seed scan with four matching strategies
- Instrument-specific parameter presets (Orbitrap, MR-TOF, Astral)
- Group containers and per-peak group labels
"""

from .isotopologue_grouping import (
    GroupingStrategy,
    InstrumentType,
    IsotopologueGroup,
    IsotopologueGroupingParams,
    isotopologues,
    detect_isotopologue_groups,
    label_peaks,
)

__all__ = [
    'GroupingStrategy',
    'InstrumentType',
    'IsotopologueGroup',
    'IsotopologueGroupingParams',
    'isotopologues',
    'detect_isotopologue_groups',
    'label_peaks',
]
