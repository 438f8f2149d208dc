# -*- coding: utf-8 -*-
"""
Output Management for Convergence Scenario Results
===================================================

``OutputManager`` persists scenario artefacts into an organised
directory structure::

    outputs/
    ├── results/   — numerical data  (CSV, JSON)
    ├── figures/   — visualisation charts  (PNG)
    └── reports/   — text report of every scenario
"""

import pandas as pd
from pathlib import Path
from typing import Any, Dict, Mapping
from datetime import datetime
import json

from .analysis.convergence import ConvergenceResult
from .data_loader import PanelData
from .logger import get_module_logger

logger = get_module_logger("output_manager")


class OutputManager:
    """
    Manages structured output to ``results/``, ``figures/``, ``reports/``.
    """

    def __init__(self, base_output_dir: str = 'outputs'):
        self.base_dir = Path(base_output_dir)
        self.results_dir = self.base_dir / 'results'
        self.figures_dir = self.base_dir / 'figures'
        self.reports_dir = self.base_dir / 'reports'
        self._setup_directories()
        self.timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    def _setup_directories(self) -> None:
        for d in [self.results_dir, self.figures_dir, self.reports_dir]:
            d.mkdir(parents=True, exist_ok=True)

    def _csv(self, df: pd.DataFrame, filename: str) -> str:
        path = self.results_dir / filename
        df.to_csv(path, index=False, float_format='%.8g')
        logger.debug(f"Saved: {filename}")
        return str(path)

    # -----------------------------------------------------------------
    # Per-scenario tables
    # -----------------------------------------------------------------

    def save_panel(self, name: str, panel: PanelData) -> str:
        return self._csv(panel.to_dataframe(), f'{name}_panel.csv')

    def save_growth_table(self, name: str, result: ConvergenceResult) -> str:
        return self._csv(result.growth, f'{name}_growth.csv')

    def save_dispersion(self, name: str, result: ConvergenceResult) -> str:
        return self._csv(result.dispersion, f'{name}_dispersion.csv')

    def save_scenario(self, name: str, panel: PanelData,
                      result: ConvergenceResult) -> Dict[str, str]:
        """Panel, growth and dispersion tables of one scenario."""
        return {
            'panel': self.save_panel(name, panel),
            'growth': self.save_growth_table(name, result),
            'dispersion': self.save_dispersion(name, result),
        }

    # -----------------------------------------------------------------
    # Cross-scenario outputs
    # -----------------------------------------------------------------

    def save_regressions(self, results: Mapping[str, ConvergenceResult]) -> str:
        """One row per (scenario, test): beta and each sigma trend."""
        frames = []
        for name, result in results.items():
            df = result.regressions()
            df.insert(0, 'scenario', name)
            frames.append(df)
        table = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame()
        return self._csv(table, 'regressions.csv')

    def save_report(self, results: Mapping[str, ConvergenceResult],
                    errors: Mapping[str, str]) -> str:
        lines = [
            "BETA CONVERGENCE / SIGMA DIVERGENCE SCENARIOS",
            f"Generated: {datetime.now().isoformat(timespec='seconds')}",
        ]
        for name, result in results.items():
            lines.append(f"\n\n### {name}")
            lines.append(result.summary())
        if errors:
            lines.append("\n\nFAILED SCENARIOS")
            for name, err in errors.items():
                lines.append(f"  {name}: {err}")

        path = self.reports_dir / 'report.txt'
        path.write_text("\n".join(lines), encoding='utf-8')
        logger.debug("Saved: report.txt")
        return str(path)

    def save_execution_summary(self, execution_time: float,
                               results: Mapping[str, ConvergenceResult],
                               errors: Mapping[str, str]) -> str:
        summary = {
            'timestamp': datetime.now().isoformat(),
            'execution_time_seconds': round(execution_time, 2),
            'scenarios': {
                name: {
                    'beta': result.beta_classification,
                    'sigma': result.sigma_classification,
                }
                for name, result in results.items()
            },
            'errors': dict(errors),
        }
        path = self.results_dir / 'execution_summary.json'
        with open(path, 'w') as f:
            json.dump(summary, f, indent=2)
        return str(path)

    def save_config_snapshot(self, config: Any) -> str:
        path = self.results_dir / 'config_snapshot.json'
        config.save(path)
        return str(path)


def create_output_manager(output_dir: str = 'outputs') -> OutputManager:
    """Factory function to create an OutputManager."""
    return OutputManager(output_dir)
