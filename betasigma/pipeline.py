# -*- coding: utf-8 -*-
"""
Convergence Scenario Pipeline
=============================

Per scenario:

  Phase 1  Synthesis             (seeded scenario generator)
  Phase 2  Ingestion & baselines (validation, first observed value per area)
  Phase 3  Analysis              (beta regression, dispersion series, trends)
  Phase 4  Visualisation         (trajectories, beta scatter, dispersion)

followed by export of all tables, the regression summary and a text
report.
"""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, Iterable, Optional
from dataclasses import dataclass, field
import time

from .config import Config, get_default_config
from .logger import setup_logger, ProgressLogger, PipelineLogger
from .data_loader import PanelData, PanelDataLoader, derive_baselines
from .exceptions import ConvergenceError, error_marker
from .scenarios import SCENARIOS, ScenarioGenerator
from .analysis import ConvergenceAnalysis, ConvergenceResult
from .visualization import PanelVisualizer
from .output_manager import OutputManager


# =========================================================================
# Result container
# =========================================================================

@dataclass
class ScenarioRun:
    """Panel, analysis and figures of one scenario."""
    name: str
    panel: PanelData
    result: ConvergenceResult
    figures: Dict[str, str] = field(default_factory=dict)


@dataclass
class PipelineResult:
    """Container for all pipeline results."""
    runs: Dict[str, ScenarioRun]
    errors: Dict[str, str]
    execution_time: float = 0.0
    config: Optional[Config] = None

    @property
    def results(self) -> Dict[str, ConvergenceResult]:
        return {name: run.result for name, run in self.runs.items()}

    def classification_table(self) -> pd.DataFrame:
        """Scenario × test classification overview."""
        rows = []
        for name, run in self.runs.items():
            row = {'scenario': name, 'beta': run.result.beta_classification}
            row.update({f'sigma_{k}': v for k, v in run.result.sigma_classification.items()})
            rows.append(row)
        return pd.DataFrame(rows)


# =========================================================================
# Pipeline
# =========================================================================

class ConvergencePipeline:
    """
    Runs the synthetic scenarios through the convergence analysis.
    """

    def __init__(self, config: Optional[Config] = None, console: bool = True):
        self.config = config or get_default_config()
        self.config.paths.ensure_directories()

        debug_file = self.config.paths.logs_dir / 'debug.log'
        self.logger = setup_logger(console=console, debug_file=debug_file)
        self.report = PipelineLogger(self.logger)

        self.loader = PanelDataLoader(self.config)
        self.analyzer = ConvergenceAnalysis.from_config(self.config)
        self.output = OutputManager(self.config.output_dir)

        vis = self.config.visualization
        self.visualizer = PanelVisualizer(
            output_dir=str(self.config.paths.figures_dir),
            style=vis.style,
            figsize=vis.figsize,
            dpi=vis.dpi,
            palette=vis.palette,
        ) if vis.enabled else None

    # -----------------------------------------------------------------
    # Main entry point
    # -----------------------------------------------------------------

    def run(self, scenarios: Optional[Iterable[str]] = None) -> PipelineResult:
        """Execute every requested scenario (default: all ten)."""
        start_time = time.time()
        names = list(scenarios or SCENARIOS)
        unknown = [n for n in names if n not in SCENARIOS]
        if unknown:
            raise KeyError(f"Unknown scenarios: {unknown}")

        self.report.banner("BETA / SIGMA CONVERGENCE SCENARIOS")
        self.logger.debug(self.config.summary())

        rng = np.random.default_rng(self.config.random.seed)
        generator = ScenarioGenerator(self.config, rng)

        runs: Dict[str, ScenarioRun] = {}
        errors: Dict[str, str] = {}
        for name in names:
            with ProgressLogger(self.logger, f"Scenario: {name}") as progress:
                try:
                    runs[name] = self._run_scenario(name, generator, progress)
                except ConvergenceError as e:
                    self.logger.warning(f"Scenario {name} failed: {e}")
                    errors[name] = error_marker(e)

        execution_time = time.time() - start_time

        with ProgressLogger(self.logger, "Saving Results"):
            self._save_all_results(runs, errors, execution_time)

        self.report.banner(f"Completed {len(runs)}/{len(names)} scenarios "
                           f"in {execution_time:.2f}s", char="─")
        self.logger.info(f"Outputs → {self.config.output_dir}")

        return PipelineResult(
            runs=runs,
            errors=errors,
            execution_time=execution_time,
            config=self.config,
        )

    def analyze_file(self, data_path: str, name: Optional[str] = None) -> ScenarioRun:
        """Analyse an external long-format CSV instead of a synthetic scenario."""
        name = name or Path(data_path).stem
        panel = derive_baselines(self.loader.load(data_path))
        result = self.analyzer.analyze(panel)
        self._log_result(result)
        figures = self.visualizer.plot_scenario(name, panel, result) if self.visualizer else {}
        self.output.save_scenario(name, panel, result)
        return ScenarioRun(name=name, panel=panel, result=result, figures=figures)

    # -----------------------------------------------------------------
    # Phases
    # -----------------------------------------------------------------

    def _run_scenario(self, name: str, generator: ScenarioGenerator,
                      progress: ProgressLogger) -> ScenarioRun:
        self.logger.info(f"  {SCENARIOS[name]}")

        raw = generator.generate(name)
        progress.log_step(f"synthesised {len(raw)} rows")

        panel = derive_baselines(self.loader.load_from_dataframe(raw))
        progress.log_step("baselines derived")

        result = self.analyzer.analyze(panel)
        self._log_result(result)

        figures: Dict[str, str] = {}
        if self.visualizer is not None:
            figures = self.visualizer.plot_scenario(name, panel, result)
            progress.log_step(f"{len(figures)} figures")

        return ScenarioRun(name=name, panel=panel, result=result, figures=figures)

    def _log_result(self, result: ConvergenceResult) -> None:
        self.report.regression('beta', result.beta)
        for index, trend in result.sigma_trends.items():
            self.report.regression(index, trend)
        for index, err in result.sigma_errors.items():
            self.report.step(f"{index}: {err}", status="warn")

    def _save_all_results(self, runs: Dict[str, ScenarioRun],
                          errors: Dict[str, str], execution_time: float) -> None:
        results = {name: run.result for name, run in runs.items()}
        for name, run in runs.items():
            self.output.save_scenario(name, run.panel, run.result)
        self.output.save_regressions(results)
        self.output.save_report(results, errors)
        self.output.save_execution_summary(execution_time, results, errors)
        self.output.save_config_snapshot(self.config)
        self.logger.info(f"All results saved to {self.output.base_dir}")


def run_pipeline(config: Optional[Config] = None,
                 scenarios: Optional[Iterable[str]] = None) -> PipelineResult:
    """Run the full pipeline. Returns PipelineResult."""
    pipeline = ConvergencePipeline(config)
    return pipeline.run(scenarios)
