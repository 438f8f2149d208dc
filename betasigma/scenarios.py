# -*- coding: utf-8 -*-
"""
Synthetic Scenarios
===================

Ten growth hypotheses for an area × year panel of a life-expectancy-like
metric. Every generator draws from an explicitly passed
``numpy.random.Generator`` so a seed reproduces the panel exactly.

Trajectories are linear in time, ``v_it = b_i + r_i * (t - t_0)``, with
scenario-specific rates ``r_i``, optional missingness and Gaussian
observation noise.
"""

import numpy as np
import pandas as pd
from scipy import stats
from typing import Callable, Dict, Iterable, Optional

from .config import Config, get_config
from .logger import get_module_logger

logger = get_module_logger("scenarios")


SCENARIOS: Dict[str, str] = {
    'stability': "No trend in any area",
    'parallel_growth': "All areas improve at the same rate",
    'good_get_better': "Top areas by baseline grow twice as fast (Matthew effect)",
    'laggards_catch_up': "Bottom areas by baseline grow four times as fast",
    'regression_to_mean': "No trend, large transitory shocks around fixed levels",
    'polarization': "Upper half improves, lower half deteriorates",
    'rank_reversal': "Laggards overtake leaders and end further apart than they started",
    'late_entrants': "Some areas enter the panel late at a lower level",
    'divergent_laggard': "The weakest area stalls while the rest improve",
    'heterogeneous_growth': "Growth rates drawn independently of baseline",
}

# Generated without observation noise unless noise_sd is passed explicitly
NOISE_FREE = frozenset({'stability'})


class ScenarioGenerator:
    """
    Generates long-format scenario panels ``(area, year, value)``.

    Parameters
    ----------
    config : Config, optional
        Panel dimensions and scenario parameters
    rng : numpy.random.Generator, optional
        Random source; defaults to ``default_rng(config.random.seed)``
    """

    def __init__(self,
                 config: Optional[Config] = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config or get_config()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.random.seed)
        self._panel = self.config.panel
        self._params = self.config.scenario

        self._builders: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
            'stability': self._stability,
            'parallel_growth': self._parallel_growth,
            'good_get_better': self._good_get_better,
            'laggards_catch_up': self._laggards_catch_up,
            'regression_to_mean': self._regression_to_mean,
            'polarization': self._polarization,
            'rank_reversal': self._rank_reversal,
            'late_entrants': self._late_entrants,
            'divergent_laggard': self._divergent_laggard,
            'heterogeneous_growth': self._heterogeneous_growth,
        }

    @property
    def elapsed(self) -> np.ndarray:
        """Years since the first panel year, one per column."""
        years = np.asarray(self._panel.years, dtype=float)
        return years - years[0]

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def generate(self,
                 name: str,
                 baselines: Optional[Iterable[float]] = None,
                 noise_sd: Optional[float] = None) -> pd.DataFrame:
        """
        Generate one scenario.

        Parameters
        ----------
        name : str
            Scenario key from :data:`SCENARIOS`
        baselines : iterable of float, optional
            Starting level per area; drawn from the configured normal
            distribution when omitted (see :meth:`_baselines`)
        noise_sd : float, optional
            Observation noise; overrides the configured value (and the
            noise-free default of ``stability``), 0 disables
        """
        if name not in self._builders:
            raise KeyError(f"Unknown scenario '{name}'; available: {list(SCENARIOS)}")

        b = self._baselines(baselines)
        values = self._builders[name](b)

        if noise_sd is None:
            noise_sd = 0.0 if name in NOISE_FREE else self._params.noise_sd
        if noise_sd > 0:
            values = values + self.rng.normal(0.0, noise_sd, values.shape)

        logger.debug(f"Generated scenario '{name}': "
                     f"{np.isfinite(values).sum()} observed cells")
        return self._to_long(values)

    def generate_all(self, names: Optional[Iterable[str]] = None,
                     **kwargs) -> Dict[str, pd.DataFrame]:
        """Generate several scenarios from the same random stream."""
        return {name: self.generate(name, **kwargs) for name in (names or SCENARIOS)}

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _baselines(self, baselines: Optional[Iterable[float]]) -> np.ndarray:
        """
        Starting levels, one per area.

        Stratified draws take the n normal quantiles at (i + 0.5) / n and
        assign them to areas in random order, so every run sees the same
        cross-sectional spread. Otherwise levels are iid normal.
        """
        n = self._panel.n_areas
        p = self._params
        if baselines is None:
            if p.stratified_baselines:
                quantiles = stats.norm.ppf((np.arange(n) + 0.5) / n)
                return p.baseline_mean + p.baseline_sd * self.rng.permutation(quantiles)
            return self.rng.normal(p.baseline_mean, p.baseline_sd, n)
        b = np.asarray(list(baselines), dtype=float)
        if b.shape != (n,):
            raise ValueError(f"Expected {n} baselines, got {b.shape[0]}")
        return b

    def _linear(self, b: np.ndarray, rates: np.ndarray) -> np.ndarray:
        return b[:, None] + rates[:, None] * self.elapsed[None, :]

    def _rates(self, b: np.ndarray, multiplier: float = 1.0) -> np.ndarray:
        return np.full(len(b), self._params.base_rate * multiplier)

    def _top(self, b: np.ndarray) -> np.ndarray:
        return np.argsort(b)[-self._params.n_group:]

    def _bottom(self, b: np.ndarray) -> np.ndarray:
        return np.argsort(b)[:self._params.n_group]

    def _to_long(self, values: np.ndarray) -> pd.DataFrame:
        pc = self._panel
        areas = np.repeat(pc.area_names, len(pc.years))
        years = np.tile(pc.years, pc.n_areas)
        return pd.DataFrame({
            pc.area_col: areas,
            pc.year_col: years,
            pc.value_col: values.ravel(),
        })

    # -----------------------------------------------------------------
    # Scenario builders: baselines -> (n_areas, n_years) value matrix
    # -----------------------------------------------------------------

    def _stability(self, b: np.ndarray) -> np.ndarray:
        return self._linear(b, self._rates(b, 0.0))

    def _parallel_growth(self, b: np.ndarray) -> np.ndarray:
        return self._linear(b, self._rates(b))

    def _good_get_better(self, b: np.ndarray) -> np.ndarray:
        rates = self._rates(b)
        rates[self._top(b)] *= 2.0
        return self._linear(b, rates)

    def _laggards_catch_up(self, b: np.ndarray) -> np.ndarray:
        rates = self._rates(b)
        rates[self._bottom(b)] *= 4.0
        return self._linear(b, rates)

    def _regression_to_mean(self, b: np.ndarray) -> np.ndarray:
        shocks = self.rng.normal(0.0, self._params.baseline_sd, (len(b), len(self.elapsed)))
        return self._linear(b, self._rates(b, 0.0)) + shocks

    def _polarization(self, b: np.ndarray) -> np.ndarray:
        rates = self._rates(b)
        lower = np.argsort(b)[:len(b) // 2]
        rates[lower] = -self._params.base_rate
        return self._linear(b, rates)

    def _rank_reversal(self, b: np.ndarray) -> np.ndarray:
        # Gap to the mean ends at -overshoot times its initial value
        span = max(self.elapsed[-1], 1.0)
        rates = self._rates(b) + (1.0 + self._params.overshoot) * (b.mean() - b) / span
        return self._linear(b, rates)

    def _late_entrants(self, b: np.ndarray) -> np.ndarray:
        k = self._params.n_group
        b = b.copy()
        b[-k:] += self._params.entrant_offset
        values = self._linear(b, self._rates(b))
        before_entry = np.asarray(self._panel.years) < self._params.entry_year
        values[-k:, before_entry] = np.nan
        return values

    def _divergent_laggard(self, b: np.ndarray) -> np.ndarray:
        rates = self._rates(b)
        rates[np.argmin(b)] = 0.0
        return self._linear(b, rates)

    def _heterogeneous_growth(self, b: np.ndarray) -> np.ndarray:
        rates = self.rng.uniform(0.0, 2.0 * self._params.base_rate, len(b))
        return self._linear(b, rates)


def generate_scenario(name: str,
                      seed: Optional[int] = None,
                      config: Optional[Config] = None,
                      **kwargs) -> pd.DataFrame:
    """Convenience function: one scenario from a fresh seeded generator."""
    config = config or get_config()
    rng = np.random.default_rng(config.random.seed if seed is None else seed)
    return ScenarioGenerator(config, rng).generate(name, **kwargs)
