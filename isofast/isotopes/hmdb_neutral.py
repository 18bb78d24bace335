"""Isotopic substitutions for neutral metabolite masses (``HMDB_NEUTRAL``).

The substitution set follows the most frequent isotopic substitutions of
small molecules in the Human Metabolome Database (https://hmdb.ca), defined
on the **neutral** compound mass (no adducts). Each substitution is split
into three compound mass segments, (0, 300], (300, 700] and (700, inf), each
carrying linear lower/upper bounds for the ratio between the isotopologue
peak and the monoisotopic peak intensity:

    lower_ratio = lower_slope * mass + lower_intercept
    upper_ratio = upper_slope * mass + upper_intercept

The bound lines are NOT fitted to HMDB compounds. They are approximations
computed from natural isotope abundances and the range of element counts
found in metabolites of a given mass, and are kept wide: they reject
impossible ratios, they do not score patterns. Register a table with fitted
bounds (``register_substitution_matrix``) where exact bounds matter.

Nomenclature: the number of nucleons is given in brackets as a prefix and the
number of atoms as a suffix, so ``[13]C2[37]Cl`` would describe two 13C and
one 37Cl atom.

Rows are sorted by mass difference (required by the grouping functions).
"""

INF = float("inf")

# (name, mass_diff, min_mass, max_mass, left_end, right_end,
#  lower_slope, lower_intercept, upper_slope, upper_intercept)
HMDB_NEUTRAL_ROWS = (
    # 15N
    ("[15]N", 0.997035, 17.026549, 1900.0, 0.0, 300.0, 0.0, 0.003, 0.000125, 0.004),
    ("[15]N", 0.997035, 17.026549, 1900.0, 300.0, 700.0, 0.0, 0.003, 0.00012, 0.006),
    ("[15]N", 0.997035, 17.026549, 1900.0, 700.0, INF, 0.0, 0.003, 0.00011, 0.013),
    # 33S
    ("[33]S", 0.999388, 33.987721, 1800.0, 0.0, 300.0, 0.0, 0.0065, 0.00016, 0.009),
    ("[33]S", 0.999388, 33.987721, 1800.0, 300.0, 700.0, 0.0, 0.0065, 0.00012, 0.021),
    ("[33]S", 0.999388, 33.987721, 1800.0, 700.0, INF, 0.0, 0.0065, 0.0001, 0.035),
    # 13C
    ("[13]C", 1.003355, 16.0313, 2500.0, 0.0, 300.0, 0.00003, 0.008, 0.00085, 0.012),
    ("[13]C", 1.003355, 16.0313, 2500.0, 300.0, 700.0, 0.00005, 0.002, 0.00084, 0.015),
    ("[13]C", 1.003355, 16.0313, 2500.0, 700.0, INF, 0.00006, -0.005, 0.00082, 0.029),
    # 17O
    ("[17]O", 1.004217, 18.010565, 2000.0, 0.0, 300.0, 0.0, 0.0003, 0.000022, 0.0006),
    ("[17]O", 1.004217, 18.010565, 2000.0, 300.0, 700.0, 0.0, 0.0003, 0.000021, 0.0009),
    ("[17]O", 1.004217, 18.010565, 2000.0, 700.0, INF, 0.0, 0.0003, 0.00002, 0.0016),
    # 2H
    ("[2]H", 1.006277, 2.01565, 2500.0, 0.0, 300.0, 0.0, 0.0001, 0.000017, 0.0003),
    ("[2]H", 1.006277, 2.01565, 2500.0, 300.0, 700.0, 0.0, 0.0001, 0.000016, 0.0006),
    ("[2]H", 1.006277, 2.01565, 2500.0, 700.0, INF, 0.0, 0.0001, 0.000016, 0.0006),
    # 34S
    ("[34]S", 1.995796, 33.987721, 1800.0, 0.0, 300.0, 0.0, 0.04, 0.0009, 0.05),
    ("[34]S", 1.995796, 33.987721, 1800.0, 300.0, 700.0, 0.0, 0.04, 0.0007, 0.11),
    ("[34]S", 1.995796, 33.987721, 1800.0, 700.0, INF, 0.0, 0.04, 0.0006, 0.18),
    # 37Cl
    ("[37]Cl", 1.99705, 35.976678, 1500.0, 0.0, 300.0, 0.0, 0.28, 0.009, 0.35),
    ("[37]Cl", 1.99705, 35.976678, 1500.0, 300.0, 700.0, 0.0, 0.28, 0.006, 1.25),
    ("[37]Cl", 1.99705, 35.976678, 1500.0, 700.0, INF, 0.0, 0.28, 0.004, 2.65),
    # 81Br
    ("[81]Br", 1.997953, 79.92616, 1500.0, 0.0, 300.0, 0.0, 0.85, 0.0122, 0.1),
    ("[81]Br", 1.997953, 79.92616, 1500.0, 300.0, 700.0, 0.0, 0.85, 0.008, 1.36),
    ("[81]Br", 1.997953, 79.92616, 1500.0, 700.0, INF, 0.0, 0.85, 0.005, 3.46),
    # 13C + 15N
    ("[13]C[15]N", 2.00039, 27.010899, 1900.0, 0.0, 300.0, 0.0, 0.00003, 0.00004, 0.0005),
    ("[13]C[15]N", 2.00039, 27.010899, 1900.0, 300.0, 700.0, 0.0, 0.00003, 0.000055, -0.004),
    ("[13]C[15]N", 2.00039, 27.010899, 1900.0, 700.0, INF, 0.0, 0.00003, 0.00007, -0.0145),
    # 18O
    ("[18]O", 2.004245, 18.010565, 2000.0, 0.0, 300.0, 0.0, 0.0015, 0.00012, 0.003),
    ("[18]O", 2.004245, 18.010565, 2000.0, 300.0, 700.0, 0.0, 0.0015, 0.000115, 0.0045),
    ("[18]O", 2.004245, 18.010565, 2000.0, 700.0, INF, 0.0, 0.0015, 0.00011, 0.008),
    # 2 x 13C
    ("[13]C2", 2.00671, 26.01565, 2500.0, 0.0, 300.0, 0.0, 0.00003, 0.0001, 0.002),
    ("[13]C2", 2.00671, 26.01565, 2500.0, 300.0, 700.0, 0.000005, 0.0, 0.00035, -0.073),
    ("[13]C2", 2.00671, 26.01565, 2500.0, 700.0, INF, 0.00001, -0.0035, 0.0008, -0.388),
    # 13C + 34S
    ("[13]C[34]S", 2.999151, 48.003371, 1800.0, 0.0, 300.0, 0.0, 0.0003, 0.00022, 0.002),
    ("[13]C[34]S", 2.999151, 48.003371, 1800.0, 300.0, 700.0, 0.0, 0.0003, 0.0003, -0.022),
    ("[13]C[34]S", 2.999151, 48.003371, 1800.0, 700.0, INF, 0.0, 0.0003, 0.0004, -0.092),
    # 13C + 37Cl
    ("[13]C[37]Cl", 3.000405, 49.992328, 1500.0, 0.0, 300.0, 0.0, 0.0025, 0.0015, 0.01),
    ("[13]C[37]Cl", 3.000405, 49.992328, 1500.0, 300.0, 700.0, 0.0, 0.0025, 0.002, -0.14),
    ("[13]C[37]Cl", 3.000405, 49.992328, 1500.0, 700.0, INF, 0.0, 0.0025, 0.002, -0.14),
    # 13C + 18O
    ("[13]C[18]O", 3.0076, 27.994915, 2000.0, 0.0, 300.0, 0.0, 0.00001, 0.000012, 0.0004),
    ("[13]C[18]O", 3.0076, 27.994915, 2000.0, 300.0, 700.0, 0.0, 0.00001, 0.00003, -0.005),
    ("[13]C[18]O", 3.0076, 27.994915, 2000.0, 700.0, INF, 0.0, 0.00001, 0.00005, -0.019),
    # 3 x 13C
    ("[13]C3", 3.010065, 40.0313, 2500.0, 0.0, 300.0, 0.0, 0.0000005, 0.00001, 0.0005),
    ("[13]C3", 3.010065, 40.0313, 2500.0, 300.0, 700.0, 0.0, 0.000001, 0.00008, -0.0205),
    ("[13]C3", 3.010065, 40.0313, 2500.0, 700.0, INF, 0.0, 0.000002, 0.00035, -0.2095),
    # 2 x 37Cl
    ("[37]Cl2", 3.9941, 69.937705, 1500.0, 0.0, 300.0, 0.0, 0.08, 0.006, 0.1),
    ("[37]Cl2", 3.9941, 69.937705, 1500.0, 300.0, 700.0, 0.0, 0.08, 0.006, 0.1),
    ("[37]Cl2", 3.9941, 69.937705, 1500.0, 700.0, INF, 0.0, 0.08, 0.005, 0.8),
    # 2 x 81Br
    ("[81]Br2", 3.995906, 157.836676, 1500.0, 0.0, 300.0, 0.0, 0.8, 0.01, 0.3),
    ("[81]Br2", 3.995906, 157.836676, 1500.0, 300.0, 700.0, 0.0, 0.8, 0.012, -0.3),
    ("[81]Br2", 3.995906, 157.836676, 1500.0, 700.0, INF, 0.0, 0.8, 0.01, 1.1),
    # 4 x 13C
    ("[13]C4", 4.013419, 54.04695, 2500.0, 0.0, 300.0, 0.0, 0.0, 0.0000008, 0.00002),
    ("[13]C4", 4.013419, 54.04695, 2500.0, 300.0, 700.0, 0.0, 0.0, 0.000012, -0.00334),
    ("[13]C4", 4.013419, 54.04695, 2500.0, 700.0, INF, 0.0, 0.0, 0.00012, -0.07894),
)
