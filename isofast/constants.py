"""Physical constants and default tolerances for isotopologue detection.

This module provides the isotope mass differences and tolerance settings used
throughout IsoFast. All mass values are monoisotopic and sourced from the
IUPAC/NIST atomic mass tables.

Mass differences are defined on neutral (compound) mass. To obtain the m/z
spacing of an isotopologue peak divide by the charge state.

Sources
-------
- NIST atomic weights and isotopic compositions:
  https://physics.nist.gov/cgi-bin/Compositions/stand_alone.pl
- IUPAC isotopic abundances (CIAAW)
"""

import numpy as np

# =============================================================================
# Isotope Mass Differences (heavy - light, Da)
# =============================================================================

# 13C - 12C
# 13.003354835 - 12.000000000
C13_MASS_DIFF = 1.003354835

# 15N - 14N
# 15.000108899 - 14.003074004
N15_MASS_DIFF = 0.997034895

# 2H - 1H
# 2.014101778 - 1.007825032
H2_MASS_DIFF = 1.006276746

# 17O - 16O
# 16.999131757 - 15.994914620
O17_MASS_DIFF = 1.004217137

# 18O - 16O
# 17.999159613 - 15.994914620
O18_MASS_DIFF = 2.004244993

# 33S - 32S
# 32.971458910 - 31.972071174
S33_MASS_DIFF = 0.999387736

# 34S - 32S
# 33.967867004 - 31.972071174
S34_MASS_DIFF = 1.995795830

# 37Cl - 35Cl
# 36.965902602 - 34.968852682
CL37_MASS_DIFF = 1.997049920

# 81Br - 79Br
# 80.916290 - 78.918338
BR81_MASS_DIFF = 1.997952

# =============================================================================
# Natural Abundance Ratios (heavy / light)
# =============================================================================

# Used to reason about expected isotopologue/monoisotopic intensity ratios.
# A compound with n atoms of an element shows an M+1 (or M+2) peak of
# roughly n * ratio relative to the monoisotopic peak.
C13_ABUNDANCE_RATIO = 0.0107 / 0.9893
N15_ABUNDANCE_RATIO = 0.00364 / 0.99636
H2_ABUNDANCE_RATIO = 0.000115 / 0.999885
O17_ABUNDANCE_RATIO = 0.00038 / 0.99757
O18_ABUNDANCE_RATIO = 0.00205 / 0.99757
S33_ABUNDANCE_RATIO = 0.0075 / 0.9499
S34_ABUNDANCE_RATIO = 0.0425 / 0.9499
CL37_ABUNDANCE_RATIO = 0.2424 / 0.7576
BR81_ABUNDANCE_RATIO = 0.4931 / 0.5069

# =============================================================================
# Default Tolerance Settings
# =============================================================================

# Default relative m/z tolerance in PPM for isotopologue matching
DEFAULT_PPM = 20.0

# Default absolute m/z tolerance (Da)
DEFAULT_TOLERANCE = 0.0

# Added to every tolerance window so that differences equal to the
# tolerance up to floating point rounding still match.
TOLERANCE_EPSILON = float(np.sqrt(np.finfo(np.float64).eps))

# Name of the substitution table used when none is given
DEFAULT_SUBSTITUTION_SOURCE = "HMDB_NEUTRAL"

# =============================================================================
# Mass Accuracy Validation
# =============================================================================

def validate_constants():
    """Validate that constants are physically reasonable.

    Raises AssertionError if any constant is out of expected range.
    This is a sanity check to catch copy-paste errors or typos.
    """
    # Single neutron-like substitutions sit close to 1 Da
    for name, diff in [
        ("C13", C13_MASS_DIFF),
        ("N15", N15_MASS_DIFF),
        ("H2", H2_MASS_DIFF),
        ("O17", O17_MASS_DIFF),
        ("S33", S33_MASS_DIFF),
    ]:
        assert 0.99 < diff < 1.01, f"{name}_MASS_DIFF is wrong: {diff}"

    # Two-neutron substitutions sit close to 2 Da
    for name, diff in [
        ("O18", O18_MASS_DIFF),
        ("S34", S34_MASS_DIFF),
        ("CL37", CL37_MASS_DIFF),
        ("BR81", BR81_MASS_DIFF),
    ]:
        assert 1.99 < diff < 2.01, f"{name}_MASS_DIFF is wrong: {diff}"

    # 15N < 33S < 13C < 17O < 2H (ordering used by the substitution tables)
    assert N15_MASS_DIFF < S33_MASS_DIFF < C13_MASS_DIFF < O17_MASS_DIFF < H2_MASS_DIFF

    assert 0.0 < TOLERANCE_EPSILON < 1e-6, f"TOLERANCE_EPSILON is wrong: {TOLERANCE_EPSILON}"
