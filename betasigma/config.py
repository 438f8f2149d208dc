# -*- coding: utf-8 -*-
"""Configuration management for the convergence analysis pipeline."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Optional, Tuple
from enum import Enum
import json


class GrowthMethod(Enum):
    """Supported annualised growth definitions for the beta regression."""
    RATIO = "ratio"              # (v / v0) / horizon
    LOG = "log"                  # ln(v / v0) / horizon
    DIFFERENCE = "difference"    # (v - v0) / horizon


DISPERSION_INDICES: Tuple[str, ...] = ("gini", "range", "cov", "variance")


@dataclass
class PathConfig:
    """File and directory paths configuration."""
    base_dir: Path = field(default_factory=lambda: Path.cwd())
    output_name: str = "outputs"

    @property
    def output_dir(self) -> Path:
        return self.base_dir / self.output_name

    @property
    def figures_dir(self) -> Path:
        return self.output_dir / "figures"

    @property
    def reports_dir(self) -> Path:
        return self.output_dir / "reports"

    @property
    def results_dir(self) -> Path:
        return self.output_dir / "results"

    @property
    def logs_dir(self) -> Path:
        return self.output_dir / "logs"

    def ensure_directories(self) -> None:
        """Create all necessary directories."""
        for d in [self.output_dir, self.figures_dir,
                  self.reports_dir, self.results_dir, self.logs_dir]:
            d.mkdir(parents=True, exist_ok=True)


@dataclass
class PanelConfig:
    """Panel data structure configuration."""
    n_areas: int = 10
    years: List[int] = field(default_factory=lambda: list(range(1, 21)))
    area_col: str = "area"
    year_col: str = "year"
    value_col: str = "value"
    area_prefix: str = "A"

    @property
    def n_years(self) -> int:
        return len(self.years)

    @property
    def n_observations(self) -> int:
        return self.n_areas * self.n_years

    @property
    def area_names(self) -> List[str]:
        return [f"{self.area_prefix}{i+1:02d}" for i in range(self.n_areas)]

    @property
    def year_range(self) -> Tuple[int, int]:
        return min(self.years), max(self.years)


@dataclass
class RandomConfig:
    """Random state configuration for reproducibility."""
    seed: int = 42


@dataclass
class ScenarioConfig:
    """
    Synthetic scenario parameters.

    Values are on a life-expectancy-like scale (years of life).
    """
    baseline_mean: float = 75.0
    baseline_sd: float = 3.0
    base_rate: float = 0.1          # Annual gain of a "normal" area
    noise_sd: float = 0.05          # Per-observation noise, 0 disables
    n_group: int = 3                # Size of the fast / slow / entrant group
    entry_year: int = 6             # First observed year of late entrants
    entrant_offset: float = -4.0    # Entrant level relative to the cohort
    overshoot: float = 2.0          # Rank reversal: terminal gap as a multiple of the initial gap
    stratified_baselines: bool = True   # Normal quantiles in shuffled order instead of iid draws


@dataclass
class ConvergenceConfig:
    """Convergence analysis configuration."""
    significance_level: float = 0.05
    ddof: int = 1                   # Sample std / variance
    min_areas: int = 3
    min_years: int = 3
    growth_method: GrowthMethod = GrowthMethod.RATIO
    terminal_year: Optional[int] = None   # None -> last panel year
    exclude_degenerate: bool = False
    indices: List[str] = field(default_factory=lambda: list(DISPERSION_INDICES))


@dataclass
class VisualizationConfig:
    """Visualization configuration."""
    enabled: bool = True
    figsize: tuple = (12, 8)
    dpi: int = 150
    style: str = "seaborn-v0_8-whitegrid"
    palette: str = "tab10"


@dataclass
class Config:
    """Master configuration combining all sub-configurations."""
    paths: PathConfig = field(default_factory=PathConfig)
    panel: PanelConfig = field(default_factory=PanelConfig)
    random: RandomConfig = field(default_factory=RandomConfig)
    scenario: ScenarioConfig = field(default_factory=ScenarioConfig)
    convergence: ConvergenceConfig = field(default_factory=ConvergenceConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)

    @property
    def output_dir(self) -> str:
        """Get output directory path as string."""
        return str(self.paths.output_dir)

    def to_dict(self) -> Dict:
        def _to_dict(obj):
            if hasattr(obj, '__dataclass_fields__'):
                return {k: _to_dict(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, (list, tuple)):
                return [_to_dict(i) for i in obj]
            elif isinstance(obj, dict):
                return {k: _to_dict(v) for k, v in obj.items()}
            return obj
        return _to_dict(self)

    def save(self, filepath: Path) -> None:
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def summary(self) -> str:
        first, last = self.panel.year_range
        return f"""
{'='*70}
CONFIGURATION SUMMARY - Beta / Sigma Convergence Scenarios
{'='*70}

PANEL:
  Areas: {self.panel.n_areas}
  Years: {first}-{last} ({self.panel.n_years} years)
  Total observations: {self.panel.n_observations}

SCENARIOS:
  Seed: {self.random.seed}
  Baseline: N({self.scenario.baseline_mean}, {self.scenario.baseline_sd})
  Base rate: {self.scenario.base_rate}/year
  Noise sd: {self.scenario.noise_sd}

CONVERGENCE:
  Significance level: {self.convergence.significance_level}
  Std/variance ddof: {self.convergence.ddof}
  Growth method: {GrowthMethod(self.convergence.growth_method).value}
  Dispersion indices: {', '.join(self.convergence.indices)}
  Exclude degenerate years: {self.convergence.exclude_degenerate}
{'='*70}
"""


_config: Optional[Config] = None

def get_config() -> Config:
    global _config
    if _config is None:
        _config = Config()
    return _config

def get_default_config() -> Config:
    """Get a fresh default configuration."""
    return Config()

def set_config(config: Config) -> None:
    global _config
    _config = config

def reset_config() -> None:
    global _config
    _config = Config()
