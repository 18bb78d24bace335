"""Isotopic substitution tables and intensity ratio bounds."""

from .substitutions import (
    SubstitutionRow,
    SubstitutionTable,
    as_substitution_table,
    isotopic_substitution_matrix,
    available_substitution_matrices,
    register_substitution_matrix,
)

from .intensity_bounds import (
    bounds_for,
    applicable_rows,
    is_isotope_intensity_range,
    intensity_in_range,
)

__all__ = [
    # Substitution tables
    'SubstitutionRow',
    'SubstitutionTable',
    'as_substitution_table',
    'isotopic_substitution_matrix',
    'available_substitution_matrices',
    'register_substitution_matrix',

    # Intensity bounds
    'bounds_for',
    'applicable_rows',
    'is_isotope_intensity_range',
    'intensity_in_range',
]
