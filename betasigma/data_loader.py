# -*- coding: utf-8 -*-
"""Panel data ingestion, validation and baseline derivation."""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union
from dataclasses import dataclass

from .config import Config, get_config
from .exceptions import MalformedObservation
from .logger import get_module_logger

logger = get_module_logger("data_loader")

INITIAL_VALUE_COL = "initial_value"
ENTRY_YEAR_COL = "entry_year"


@dataclass(frozen=True, eq=False)
class PanelData:
    """
    Long-format panel of (area, year, value) observations.

    ``value`` may be NaN. After :func:`derive_baselines` the frame also
    carries ``initial_value`` and ``entry_year`` per area.
    """
    long: pd.DataFrame
    area_col: str = "area"
    year_col: str = "year"
    value_col: str = "value"

    @property
    def areas(self) -> List[str]:
        return sorted(self.long[self.area_col].unique().tolist())

    @property
    def years(self) -> List[int]:
        return sorted(int(y) for y in self.long[self.year_col].unique())

    @property
    def n_areas(self) -> int:
        return len(self.areas)

    @property
    def n_years(self) -> int:
        return len(self.years)

    @property
    def has_baselines(self) -> bool:
        return INITIAL_VALUE_COL in self.long.columns

    @property
    def observed(self) -> pd.DataFrame:
        """Rows with a non-missing value."""
        return self.long.dropna(subset=[self.value_col])

    @property
    def wide(self) -> pd.DataFrame:
        """Area × year matrix of values (NaN where unobserved)."""
        return self.long.pivot(index=self.area_col, columns=self.year_col,
                               values=self.value_col)

    def get_year(self, year: int) -> pd.Series:
        """Observed cross-section for one year, indexed by area."""
        obs = self.observed
        return obs.loc[obs[self.year_col] == year].set_index(self.area_col)[self.value_col]

    def get_area(self, area: str) -> pd.Series:
        """Time series of one area, indexed by year."""
        rows = self.long.loc[self.long[self.area_col] == area]
        return rows.set_index(self.year_col)[self.value_col].sort_index()

    def effective_n(self) -> pd.Series:
        """Number of observed areas per year."""
        counts = self.observed.groupby(self.year_col)[self.area_col].nunique()
        return counts.reindex(self.years, fill_value=0).astype(int)

    def to_dataframe(self) -> pd.DataFrame:
        return self.long.copy()


def derive_baselines(panel: PanelData) -> PanelData:
    """
    Attach each area's first observed value as its baseline.

    Scans every area in year order and takes the first non-missing value
    as ``initial_value`` and its year as ``entry_year``. Returns a new
    panel; the input is left untouched. Must run after all missingness in
    the panel is final.
    """
    area_col, year_col, value_col = panel.area_col, panel.year_col, panel.value_col

    df = panel.long.drop(columns=[INITIAL_VALUE_COL, ENTRY_YEAR_COL], errors="ignore")
    df = df.sort_values([area_col, year_col]).reset_index(drop=True)

    first = (df.dropna(subset=[value_col])
               .groupby(area_col, sort=False)[[year_col, value_col]]
               .first()
               .rename(columns={year_col: ENTRY_YEAR_COL, value_col: INITIAL_VALUE_COL}))

    unobserved = set(df[area_col].unique()) - set(first.index)
    if unobserved:
        logger.debug(f"Areas without any observed value: {sorted(unobserved)}")

    df = df.merge(first.reset_index(), on=area_col, how="left")
    df[ENTRY_YEAR_COL] = df[ENTRY_YEAR_COL].astype("Int64")

    return PanelData(long=df, area_col=area_col, year_col=year_col, value_col=value_col)


class PanelDataLoader:
    """Loads and validates panel data from CSV, frames or records."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self._panel_config = self.config.panel

    @property
    def columns(self) -> Tuple[str, str, str]:
        pc = self._panel_config
        return pc.area_col, pc.year_col, pc.value_col

    def load(self, filepath: Union[str, Path]) -> PanelData:
        """Load a long-format panel from CSV."""
        filepath = Path(filepath)
        logger.info(f"Loading panel data from {filepath}")
        df = pd.read_csv(filepath)
        return self.load_from_dataframe(df)

    def load_from_records(self, records: Iterable[Dict]) -> PanelData:
        """Load from an iterable of ``{area, year, value}`` mappings."""
        area_col, year_col, value_col = self.columns
        df = pd.DataFrame(list(records), columns=[area_col, year_col, value_col])
        return self.load_from_dataframe(df)

    def load_from_dataframe(self, df: pd.DataFrame) -> PanelData:
        """
        Validate a long-format DataFrame and wrap it as :class:`PanelData`.

        Raises
        ------
        MalformedObservation
            Missing columns, a record without area or year, a non-integer
            or out-of-range year, a non-numeric value, or a duplicated
            (area, year) pair.
        """
        area_col, year_col, value_col = self.columns
        df = self._validate_structure(df.copy())
        df = df.sort_values([area_col, year_col]).reset_index(drop=True)

        panel = PanelData(long=df[[area_col, year_col, value_col]],
                          area_col=area_col, year_col=year_col, value_col=value_col)

        n_missing = int(df[value_col].isna().sum())
        logger.info(f"✓ Loaded: {panel.n_areas} areas, {panel.n_years} years, "
                    f"{len(df)} rows ({n_missing} missing values)")
        return panel

    def _validate_structure(self, df: pd.DataFrame) -> pd.DataFrame:
        area_col, year_col, value_col = self.columns

        missing = {area_col, year_col, value_col} - set(df.columns)
        if missing:
            raise MalformedObservation(f"Missing required columns: {sorted(missing)}")

        no_key = df[area_col].isna() | df[year_col].isna()
        if no_key.any():
            rows = df.index[no_key].tolist()
            raise MalformedObservation(f"Records without area or year at rows {rows[:10]}")

        years = pd.to_numeric(df[year_col], errors="coerce")
        bad_year = years.isna() | ~np.isfinite(years) | (years != np.floor(years))
        if bad_year.any():
            bad = df.loc[bad_year, year_col].tolist()
            raise MalformedObservation(f"Non-integer years: {bad[:10]}")
        df[year_col] = years.astype(int)

        first, last = self._panel_config.year_range
        out_of_range = (df[year_col] < first) | (df[year_col] > last)
        if out_of_range.any():
            bad = sorted(df.loc[out_of_range, year_col].unique().tolist())
            raise MalformedObservation(f"Years outside [{first}, {last}]: {bad[:10]}")

        values = pd.to_numeric(df[value_col], errors="coerce")
        non_numeric = values.isna() & df[value_col].notna()
        if non_numeric.any():
            bad = df.loc[non_numeric, value_col].tolist()
            raise MalformedObservation(f"Non-numeric values: {bad[:10]}")
        df[value_col] = values.astype(float)

        dups = df.duplicated(subset=[area_col, year_col])
        if dups.any():
            raise MalformedObservation(f"Found {dups.sum()} duplicate area-year combinations")

        n_areas = df[area_col].nunique()
        n_years = df[year_col].nunique()
        if df[value_col].notna().sum() != n_areas * n_years:
            logger.debug(f"Irregular panel: {df[value_col].notna().sum()} observed values, "
                         f"{n_areas * n_years} cells")

        return df


def load_panel_data(filepath: Union[str, Path], config: Optional[Config] = None) -> PanelData:
    """Convenience function to load panel data."""
    return PanelDataLoader(config).load(filepath)
