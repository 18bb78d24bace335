"""Isotopic substitution tables and the registry of named tables.

Each isotopic substitution (e.g. one 13C for 12C, or 13C + 37Cl) shifts the
compound mass by a fixed mass difference and produces an isotopologue peak
whose intensity, relative to the monoisotopic peak, falls into a mass
dependent range. A substitution is usually described by several rows, one per
compound mass segment ``(left_end, right_end]``, each with its own linear
lower and upper bound for the intensity ratio.

The table is stored column-wise in read-only float64 arrays so the grouping
kernels never look fields up by name.

Examples
--------
>>> table = isotopic_substitution_matrix("HMDB_NEUTRAL")
>>> len(table)
54
>>> table[0].name
'[15]N'
>>> available_substitution_matrices()
['HMDB_NEUTRAL']
"""

import logging
from typing import Callable, Dict, Iterable, Iterator, List, NamedTuple, Sequence, Union

import numpy as np

from ..constants import DEFAULT_SUBSTITUTION_SOURCE

logger = logging.getLogger(__name__)


class SubstitutionRow(NamedTuple):
    """One isotopic substitution on one compound mass segment.

    Attributes
    ----------
    name : str
        Substitution label, e.g. '[13]C2'
    mass_diff : float
        Mass difference to the monoisotopic compound (Da, neutral mass)
    min_mass, max_mass : float
        Mass range of the compounds the substitution was observed for
    left_end, right_end : float
        Compound mass segment ``(left_end, right_end]`` the bounds apply to
    lower_slope, lower_intercept : float
        Lower bound line of the isotopologue/monoisotopic intensity ratio
    upper_slope, upper_intercept : float
        Upper bound line of the intensity ratio
    """
    name: str
    mass_diff: float
    min_mass: float
    max_mass: float
    left_end: float
    right_end: float
    lower_slope: float
    lower_intercept: float
    upper_slope: float
    upper_intercept: float


NUMERIC_FIELDS = SubstitutionRow._fields[1:]

SUBSTITUTION_DTYPE = np.dtype(
    [("name", "U32")] + [(field, "f8") for field in NUMERIC_FIELDS]
)

# Column names used by the R/Bioconductor substitution matrices
COLUMN_ALIASES = {
    "md": "mass_diff",
    "minmass": "min_mass",
    "maxmass": "max_mass",
    "leftend": "left_end",
    "rightend": "right_end",
    "LBslope": "lower_slope",
    "LBint": "lower_intercept",
    "UBslope": "upper_slope",
    "UBint": "upper_intercept",
}


class SubstitutionTable:
    """Ordered, read-only table of isotopic substitution rows.

    Rows have to be sorted by ``mass_diff`` (non-decreasing). This allows
    candidate isotopologue masses to be generated in sorted order, which the
    grouping strategies rely on.

    Parameters
    ----------
    names : sequence of str
        Substitution label per row
    mass_diff, min_mass, max_mass, left_end, right_end,
    lower_slope, lower_intercept, upper_slope, upper_intercept : array-like
        Numeric columns, one value per row
    check : bool, default=True
        Validate ordering and shapes on construction
    """

    def __init__(
        self,
        names: Sequence[str],
        mass_diff,
        min_mass,
        max_mass,
        left_end,
        right_end,
        lower_slope,
        lower_intercept,
        upper_slope,
        upper_intercept,
        check: bool = True,
    ):
        self.names = np.asarray(names, dtype=str)
        self.mass_diff = _read_only(mass_diff)
        self.min_mass = _read_only(min_mass)
        self.max_mass = _read_only(max_mass)
        self.left_end = _read_only(left_end)
        self.right_end = _read_only(right_end)
        self.lower_slope = _read_only(lower_slope)
        self.lower_intercept = _read_only(lower_intercept)
        self.upper_slope = _read_only(upper_slope)
        self.upper_intercept = _read_only(upper_intercept)
        self.names.setflags(write=False)

        if check:
            self.validate()

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence], check: bool = True) -> 'SubstitutionTable':
        """Build a table from row tuples in ``SubstitutionRow`` field order."""
        rows = [SubstitutionRow(*row) for row in rows]
        if not rows:
            return cls.empty()
        columns = list(zip(*rows))
        return cls(columns[0], *columns[1:], check=check)

    @classmethod
    def from_records(cls, records, check: bool = True) -> 'SubstitutionTable':
        """Build a table from a structured array or a table with named columns.

        Accepts numpy structured arrays, dicts of arrays and pandas
        DataFrames. Both the field names of ``SubstitutionRow`` and the
        R-style column names (``md``, ``leftend``, ``LBint``, ...) are
        understood. The ``name`` column is optional.

        Raises
        ------
        ValueError
            If a numeric column is missing
        """
        dtype_names = getattr(getattr(records, "dtype", None), "names", None)
        if dtype_names is not None:
            available = list(dtype_names)
        elif hasattr(records, "columns"):
            available = list(records.columns)
        elif hasattr(records, "keys"):
            available = list(records.keys())
        else:
            raise ValueError(
                "Substitution definitions need named columns "
                "(structured array, dict or DataFrame)"
            )

        columns = {}
        for column in available:
            columns[COLUMN_ALIASES.get(column, column)] = column

        missing = [field for field in NUMERIC_FIELDS if field not in columns]
        if missing:
            raise ValueError(
                f"Substitution definition lacks required columns: {missing}"
            )

        values = [np.asarray(records[columns[field]], dtype=np.float64) for field in NUMERIC_FIELDS]
        if "name" in columns:
            names = [str(name) for name in np.asarray(records[columns["name"]])]
        else:
            names = [""] * len(values[0])

        return cls(names, *values, check=check)

    @classmethod
    def empty(cls) -> 'SubstitutionTable':
        return cls([], *([np.empty(0)] * len(NUMERIC_FIELDS)), check=False)

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.mass_diff)

    def __iter__(self) -> Iterator[SubstitutionRow]:
        for i in range(len(self)):
            yield self.row(i)

    def __getitem__(self, key) -> Union[SubstitutionRow, 'SubstitutionTable']:
        if isinstance(key, (int, np.integer)):
            return self.row(int(key))
        return self.subset(key)

    def __repr__(self) -> str:
        n_subst = len(np.unique(self.names)) if len(self) else 0
        return f"SubstitutionTable({len(self)} rows, {n_subst} substitutions)"

    def row(self, i: int) -> SubstitutionRow:
        """Return row ``i`` as a ``SubstitutionRow``."""
        if i < 0:
            i += len(self)
        if not 0 <= i < len(self):
            raise IndexError(f"Row {i} out of range for table with {len(self)} rows")
        return SubstitutionRow(
            str(self.names[i]),
            *(float(getattr(self, field)[i]) for field in NUMERIC_FIELDS),
        )

    def subset(self, index) -> 'SubstitutionTable':
        """Rows selected by positions, slice or boolean mask, in table order.

        The result is not re-validated: selecting rows in ascending position
        order keeps the ``mass_diff`` ordering.
        """
        return SubstitutionTable(
            self.names[index],
            *(getattr(self, field)[index] for field in NUMERIC_FIELDS),
            check=False,
        )

    def to_records(self) -> np.ndarray:
        """Return the table as a structured array (``SUBSTITUTION_DTYPE``)."""
        records = np.empty(len(self), dtype=SUBSTITUTION_DTYPE)
        records["name"] = self.names
        for field in NUMERIC_FIELDS:
            records[field] = getattr(self, field)
        return records

    @property
    def substitution_names(self) -> List[str]:
        """Unique substitution labels in table order."""
        _, first = np.unique(self.names, return_index=True)
        return [str(self.names[i]) for i in np.sort(first)]

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """Check shapes and ordering of the table.

        Raises
        ------
        ValueError
            If columns differ in length, mass differences are missing or not
            sorted, or a segment has ``left_end > right_end``
        """
        n_rows = len(self.mass_diff)
        lengths = {len(self.names)} | {len(getattr(self, f)) for f in NUMERIC_FIELDS}
        if lengths != {n_rows}:
            raise ValueError(
                f"All substitution columns need the same length, got {sorted(lengths)}"
            )
        if np.isnan(self.mass_diff).any():
            raise ValueError("Substitution mass differences must not be NaN")
        if (np.diff(self.mass_diff) < 0).any():
            raise ValueError(
                "Substitution rows have to be ordered by mass difference (increasing)"
            )
        if (self.left_end > self.right_end).any():
            raise ValueError("Substitution segments need left_end <= right_end")


def _read_only(values) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


def as_substitution_table(subst_definition=None) -> SubstitutionTable:
    """Coerce a substitution definition into a ``SubstitutionTable``.

    Parameters
    ----------
    subst_definition : SubstitutionTable, str, structured array, table or None
        ``None`` selects the default built-in table, a string selects a
        registered table by name, anything else goes through
        ``SubstitutionTable.from_records``.
    """
    if subst_definition is None:
        return isotopic_substitution_matrix(DEFAULT_SUBSTITUTION_SOURCE)
    if isinstance(subst_definition, SubstitutionTable):
        return subst_definition
    if isinstance(subst_definition, str):
        return isotopic_substitution_matrix(subst_definition)
    return SubstitutionTable.from_records(subst_definition)


# =============================================================================
# Registry of Named Tables
# =============================================================================

_LOADERS: Dict[str, Callable[[], SubstitutionTable]] = {}
_CACHE: Dict[str, SubstitutionTable] = {}


def register_substitution_matrix(
    name: str,
    loader: Callable[[], SubstitutionTable],
    overwrite: bool = False,
) -> None:
    """Register a named substitution table.

    Parameters
    ----------
    name : str
        Table name (case-insensitive, stored upper case)
    loader : callable
        Zero-argument function returning a ``SubstitutionTable``; called on
        first request, the result is cached
    overwrite : bool, default=False
        Replace an existing registration

    Raises
    ------
    ValueError
        If the name is already registered and overwrite is False
    """
    key = name.upper()
    if key in _LOADERS and not overwrite:
        raise ValueError(f"Substitution matrix '{name}' is already registered")
    _LOADERS[key] = loader
    _CACHE.pop(key, None)


def available_substitution_matrices() -> List[str]:
    """Names of all registered substitution tables."""
    return sorted(_LOADERS)


def isotopic_substitution_matrix(source: str = DEFAULT_SUBSTITUTION_SOURCE) -> SubstitutionTable:
    """Return a pre-defined substitution table by name.

    Parameters
    ----------
    source : str, default='HMDB_NEUTRAL'
        Name of the table (case-insensitive)

    Returns
    -------
    SubstitutionTable
        The (cached, read-only) table

    Raises
    ------
    ValueError
        If no table with that name is registered

    Examples
    --------
    >>> table = isotopic_substitution_matrix("hmdb_neutral")
    >>> table.substitution_names[:3]
    ['[15]N', '[33]S', '[13]C']
    """
    key = source.upper()
    if key not in _LOADERS:
        raise ValueError(
            f"No substitution matrix '{source}' available. "
            f"Available: {available_substitution_matrices()}"
        )
    if key not in _CACHE:
        table = _LOADERS[key]()
        logger.debug(f"Loaded substitution matrix {key}: {len(table)} rows")
        _CACHE[key] = table
    return _CACHE[key]


def _load_hmdb_neutral() -> SubstitutionTable:
    from .hmdb_neutral import HMDB_NEUTRAL_ROWS
    return SubstitutionTable.from_rows(HMDB_NEUTRAL_ROWS)


register_substitution_matrix("HMDB_NEUTRAL", _load_hmdb_neutral)
