# -*- coding: utf-8 -*-
"""
Dispersion Indices
==================

Cross-sectional inequality measures used for sigma convergence:

- Gini coefficient (relative, rank weighted)
- Range (absolute)
- Coefficient of variation (relative)
- Variance (absolute)

Each index works on the observed values of one year. The series builder
records per-year failures as error markers instead of aborting.
"""

import numpy as np
import pandas as pd
from typing import Dict, List, Optional

from ..data_loader import PanelData
from ..exceptions import DegenerateDistribution, error_marker
from ..logger import get_module_logger

logger = get_module_logger("analysis.dispersion")

SERIES_COLUMNS = ["year", "gini", "range", "cov", "variance", "effective_n", "error"]


def _clean(values) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    return arr[~np.isnan(arr)]


def _require_cross_section(y: np.ndarray, name: str) -> None:
    if len(y) < 2:
        raise DegenerateDistribution(f"{name} needs at least 2 observed areas, got {len(y)}")


def gini(values) -> float:
    """
    Gini coefficient of a cross-section.

    With values sorted ascending y(1) <= ... <= y(n)::

        G = 2 * sum(i * y(i)) / (n^2 * mean(y)) - (n + 1) / n
    """
    y = np.sort(_clean(values))
    _require_cross_section(y, "Gini")
    n = len(y)
    mean = y.mean()
    if mean == 0:
        raise DegenerateDistribution("Gini undefined for a zero cross-sectional mean")
    ranks = np.arange(1, n + 1)
    return float(2.0 * np.sum(ranks * y) / (n ** 2 * mean) - (n + 1) / n)


def value_range(values) -> float:
    """max - min."""
    y = _clean(values)
    _require_cross_section(y, "Range")
    return float(y.max() - y.min())


def variance(values, ddof: int = 1) -> float:
    """Variance (sample by default)."""
    y = _clean(values)
    _require_cross_section(y, "Variance")
    return float(np.var(y, ddof=ddof))


def coefficient_of_variation(values, ddof: int = 1) -> float:
    """Standard deviation over mean (sample standard deviation by default)."""
    y = _clean(values)
    _require_cross_section(y, "CoV")
    mean = y.mean()
    if mean == 0:
        raise DegenerateDistribution("CoV undefined for a zero cross-sectional mean")
    return float(np.std(y, ddof=ddof) / mean)


INDEX_FUNCTIONS = {
    'gini': lambda y, ddof: gini(y),
    'range': lambda y, ddof: value_range(y),
    'cov': coefficient_of_variation,
    'variance': variance,
}


def cross_section_indices(values, ddof: int = 1) -> Dict[str, Optional[float]]:
    """
    All four indices for one cross-section.

    Failing indices are NaN; their messages are joined under ``error``.
    """
    y = _clean(values)
    row: Dict = {'effective_n': len(y), 'error': None}
    errors: List[str] = []
    for name, func in INDEX_FUNCTIONS.items():
        try:
            row[name] = func(y, ddof)
        except DegenerateDistribution as e:
            row[name] = np.nan
            marker = error_marker(e)
            if marker not in errors:
                errors.append(marker)
    if errors:
        row['error'] = "; ".join(errors)
    return row


def dispersion_series(panel: PanelData, ddof: int = 1) -> pd.DataFrame:
    """
    Per-year dispersion indices over the areas observed in that year.

    Returns one row per panel year with columns
    ``year, gini, range, cov, variance, effective_n, error``.
    """
    rows = []
    grouped = dict(tuple(panel.observed.groupby(panel.year_col)[panel.value_col]))
    for year in panel.years:
        values = grouped.get(year, pd.Series(dtype=float)).to_numpy()
        row = cross_section_indices(values, ddof=ddof)
        row['year'] = year
        if row['error']:
            logger.debug(f"Year {year}: {row['error']}")
        rows.append(row)

    series = pd.DataFrame(rows, columns=SERIES_COLUMNS)
    series['effective_n'] = series['effective_n'].astype(int)
    return series
