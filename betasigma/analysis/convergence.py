# -*- coding: utf-8 -*-
"""
Convergence Analysis
====================

Beta and sigma convergence tests for (possibly irregular) panel data.

Beta: annualised growth of each area regressed on its baseline.
Sigma: per-year dispersion indices and their linear trends over time.
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional, Sequence
from dataclasses import dataclass, field

from ..config import Config, ConvergenceConfig, GrowthMethod, DISPERSION_INDICES, get_config
from ..data_loader import PanelData, derive_baselines, INITIAL_VALUE_COL, ENTRY_YEAR_COL
from ..exceptions import ConvergenceError, DegenerateDistribution, InsufficientData, error_marker
from ..logger import get_module_logger, timed_operation
from .dispersion import dispersion_series
from .regression import RegressionResult, fit_ols

logger = get_module_logger("analysis.convergence")


@dataclass
class ConvergenceResult:
    """Result container for convergence analysis."""
    # Beta convergence
    growth: pd.DataFrame                    # One row per area used in the regression
    beta: RegressionResult

    # Sigma convergence
    dispersion: pd.DataFrame                # One row per year
    sigma_trends: Dict[str, RegressionResult]
    sigma_errors: Dict[str, str] = field(default_factory=dict)

    terminal_year: int = 0

    @property
    def beta_classification(self) -> str:
        return self.beta.classification.value

    @property
    def sigma_classification(self) -> Dict[str, str]:
        return {k: v.classification.value for k, v in self.sigma_trends.items()}

    def regressions(self) -> pd.DataFrame:
        """Beta and every sigma trend as one table."""
        rows = [dict(self.beta.to_dict(), test='beta')]
        for name, res in self.sigma_trends.items():
            rows.append(dict(res.to_dict(), test=f'sigma_{name}'))
        cols = ['test', 'slope', 'intercept', 'std_error', 't_stat',
                'p_value', 'r_squared', 'n_obs', 'classification']
        return pd.DataFrame(rows)[cols]

    def summary(self) -> str:
        lines = [
            f"\n{'='*60}",
            "CONVERGENCE ANALYSIS RESULTS",
            f"{'='*60}",
            f"\n{'─'*30}",
            "BETA (β) CONVERGENCE",
            f"{'─'*30}",
            f"Areas in regression: {self.beta.n_obs} (terminal year {self.terminal_year})",
            f"Beta coefficient: {self.beta.slope:.6f}",
            f"Standard error: {self.beta.std_error:.6f}",
            f"t-statistic: {self.beta.t_stat:.4f}",
            f"p-value: {self.beta.p_value:.4f}",
            f"Classification: {self.beta.classification.value}",
            f"\n{'─'*30}",
            "SIGMA (σ) CONVERGENCE",
            f"{'─'*30}",
            f"{'Index':<10} {'Slope':>12} {'t-stat':>9} {'p-value':>9}  Result",
        ]
        for name, res in self.sigma_trends.items():
            lines.append(
                f"{name:<10} {res.slope:>12.6f} {res.t_stat:>9.3f} "
                f"{res.p_value:>9.4f}  {res.classification.value}"
            )
        for name, err in self.sigma_errors.items():
            lines.append(f"{name:<10} {err}")

        degenerate = self.dispersion.loc[self.dispersion['error'].notna(), 'year'].tolist()
        if degenerate:
            lines.append(f"Degenerate years: {degenerate}")
        n_min, n_max = self.dispersion['effective_n'].min(), self.dispersion['effective_n'].max()
        if n_min != n_max:
            lines.append(f"Effective cross-section varies: {n_min}-{n_max} areas")

        lines.append("=" * 60)
        return "\n".join(lines)


class ConvergenceAnalysis:
    """
    Convergence analysis for an area × year panel.

    Tests for:
    - Absolute beta convergence (growth ~ initial value)
    - Sigma convergence (trend of Gini, range, CoV and variance)
    """

    def __init__(self, config: Optional[ConvergenceConfig] = None):
        """
        Parameters
        ----------
        config : ConvergenceConfig, optional
            Significance level, ddof, minimum sizes, growth definition.
            Defaults to the global configuration.
        """
        self.config = config or get_config().convergence

    @classmethod
    def from_config(cls, config: Config) -> 'ConvergenceAnalysis':
        return cls(config.convergence)

    @property
    def significance_level(self) -> float:
        return self.config.significance_level

    # -----------------------------------------------------------------
    # Beta convergence
    # -----------------------------------------------------------------

    def growth_table(self, panel: PanelData,
                     terminal_year: Optional[int] = None) -> pd.DataFrame:
        """
        Annualised growth per area between its entry and the terminal year.

        Columns: area, initial_value, entry_year, terminal_value, horizon,
        growth. Areas unobserved at the terminal year or entering in it
        are dropped.

        Raises
        ------
        DegenerateDistribution
            A growth rate is not finite (zero baseline, or a non-positive
            ratio under the log definition).
        """
        if not panel.has_baselines:
            panel = derive_baselines(panel)

        area_col, year_col, value_col = panel.area_col, panel.year_col, panel.value_col
        terminal_year = terminal_year or self.config.terminal_year or max(panel.years)

        final = panel.observed.loc[panel.observed[year_col] == terminal_year]
        table = pd.DataFrame({
            'area': final[area_col].to_numpy(),
            'initial_value': final[INITIAL_VALUE_COL].astype(float).to_numpy(),
            'entry_year': final[ENTRY_YEAR_COL].astype(float).to_numpy(),
            'terminal_value': final[value_col].astype(float).to_numpy(),
        })

        missing = sorted(set(panel.areas) - set(table['area']))
        if missing:
            logger.debug(f"No value in terminal year {terminal_year} for: {missing}")

        table['horizon'] = terminal_year - table['entry_year']
        late = table['horizon'] <= 0
        if late.any():
            logger.debug(f"Entered in terminal year, excluded: {table.loc[late, 'area'].tolist()}")
        table = table.loc[~late].reset_index(drop=True)

        table['growth'] = self._annualised_growth(
            table['terminal_value'].to_numpy(),
            table['initial_value'].to_numpy(),
            table['horizon'].to_numpy(),
        )

        undefined = ~np.isfinite(table['growth'])
        if undefined.any():
            rows = table.loc[undefined, ['area', 'initial_value', 'terminal_value']]
            raise DegenerateDistribution(
                f"{GrowthMethod(self.config.growth_method).value} growth undefined for "
                f"{rows.to_dict('records')}"
            )
        return table

    def _annualised_growth(self, value: np.ndarray, initial: np.ndarray,
                           horizon: np.ndarray) -> np.ndarray:
        method = GrowthMethod(self.config.growth_method)
        with np.errstate(divide='ignore', invalid='ignore'):
            if method is GrowthMethod.RATIO:
                return (value / initial) / horizon
            if method is GrowthMethod.LOG:
                return np.log(value / initial) / horizon
            return (value - initial) / horizon

    def beta_convergence(self, panel: PanelData,
                         terminal_year: Optional[int] = None) -> RegressionResult:
        """
        Test for absolute beta convergence.

        Model: g_i = α + β * y_{i,0} + ε_i

        Negative significant beta indicates convergence, positive
        significant beta divergence.

        Raises
        ------
        InsufficientData
            Fewer than ``min_areas`` areas with a finite growth rate.
        DegenerateDistribution
            All baselines are identical.
        """
        table = self.growth_table(panel, terminal_year)
        return self._fit_beta(table)

    def _fit_beta(self, table: pd.DataFrame) -> RegressionResult:
        result = fit_ols(
            table['initial_value'], table['growth'],
            significance_level=self.significance_level,
            min_obs=self.config.min_areas,
            label='beta',
        )
        logger.debug(result.summary())
        return result

    # -----------------------------------------------------------------
    # Sigma convergence
    # -----------------------------------------------------------------

    def sigma_convergence(self, panel: PanelData) -> pd.DataFrame:
        """Per-year dispersion indices with ``effective_n`` and error markers."""
        with timed_operation(logger, "dispersion series"):
            return dispersion_series(panel, ddof=self.config.ddof)

    def sigma_trend(self, series: pd.DataFrame, index: str,
                    exclude_degenerate: Optional[bool] = None) -> RegressionResult:
        """
        Linear trend of one dispersion index: ``index ~ year``.

        Years carrying an error marker and no value for ``index`` are
        excluded only when ``exclude_degenerate`` is true; otherwise they
        raise ``DegenerateDistribution``.
        """
        if index not in DISPERSION_INDICES:
            raise ValueError(f"Unknown dispersion index '{index}'; "
                             f"expected one of {list(DISPERSION_INDICES)}")
        if exclude_degenerate is None:
            exclude_degenerate = self.config.exclude_degenerate

        marked = series['error'].notna() & series[index].isna()
        if marked.any():
            years = series.loc[marked, 'year'].tolist()
            if not exclude_degenerate:
                raise DegenerateDistribution(
                    f"{index} undefined in years {years}; pass exclude_degenerate=True to skip them"
                )
            logger.warning(f"{index}: excluding degenerate years {years}")
            series = series.loc[~marked]

        result = fit_ols(
            series['year'], series[index],
            significance_level=self.significance_level,
            min_obs=self.config.min_years,
            label=index,
        )
        logger.debug(result.summary())
        return result

    def sigma_trends(self, series: pd.DataFrame,
                     indices: Optional[Sequence[str]] = None,
                     exclude_degenerate: Optional[bool] = None) -> Dict[str, RegressionResult]:
        """Trend regression for each requested index (default: configured indices)."""
        indices = list(indices or self.config.indices)
        return {
            name: self.sigma_trend(series, name, exclude_degenerate)
            for name in indices
        }

    # -----------------------------------------------------------------
    # Full analysis
    # -----------------------------------------------------------------

    def analyze(self, panel: PanelData,
                terminal_year: Optional[int] = None,
                indices: Optional[Sequence[str]] = None) -> ConvergenceResult:
        """
        Perform beta and sigma convergence analysis.

        Beta errors propagate. A failing sigma trend is recorded in
        ``sigma_errors`` so the remaining indices are still reported.
        """
        if not panel.has_baselines:
            panel = derive_baselines(panel)
        if len(panel.years) < 2:
            raise InsufficientData("Need at least two observed years for convergence analysis")

        terminal_year = terminal_year or self.config.terminal_year or max(panel.years)
        table = self.growth_table(panel, terminal_year)
        beta = self._fit_beta(table)

        series = self.sigma_convergence(panel)
        trends: Dict[str, RegressionResult] = {}
        errors: Dict[str, str] = {}
        for name in list(indices or self.config.indices):
            try:
                trends[name] = self.sigma_trend(series, name)
            except ConvergenceError as e:
                logger.warning(f"Sigma trend for {name} failed: {e}")
                errors[name] = error_marker(e)

        return ConvergenceResult(
            growth=table,
            beta=beta,
            dispersion=series,
            sigma_trends=trends,
            sigma_errors=errors,
            terminal_year=int(terminal_year),
        )


def run_convergence_analysis(panel: PanelData,
                     config: Optional[ConvergenceConfig] = None) -> ConvergenceResult:
    """Convenience function for convergence analysis."""
    analyzer = ConvergenceAnalysis(config)
    return analyzer.analyze(panel)
