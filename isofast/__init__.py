"""IsoFast - Isotopologue peak grouping for mass spectrometry peak lists.

Groups the peaks of a centroided spectrum into monoisotopic peaks and their
isotopologues, based on tables of isotopic substitutions with mass dependent
intensity ratio bounds. The heavy lifting is done in Numba-compiled kernels
working on sorted m/z arrays.
"""

__version__ = "0.1.0"

# Import main submodules for convenient access
from isofast import search
from isofast import isotopes
from isofast import features

from isofast.search import closest, mclosest, group_values
from isofast.isotopes import (
    SubstitutionTable,
    isotopic_substitution_matrix,
    available_substitution_matrices,
    register_substitution_matrix,
)
from isofast.features import (
    GroupingStrategy,
    IsotopologueGroupingParams,
    isotopologues,
    detect_isotopologue_groups,
)

__all__ = [
    "search",
    "isotopes",
    "features",
    # Most used entry points
    "closest",
    "mclosest",
    "group_values",
    "SubstitutionTable",
    "isotopic_substitution_matrix",
    "available_substitution_matrices",
    "register_substitution_matrix",
    "GroupingStrategy",
    "IsotopologueGroupingParams",
    "isotopologues",
    "detect_isotopologue_groups",
]
