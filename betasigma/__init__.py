# -*- coding: utf-8 -*-
"""
betasigma: Beta-Convergence with Sigma-Divergence
=================================================

Synthetic panel scenarios (10 areas × 20 years of a life-expectancy-like
metric) and the analysis that shows how poorer areas can improve faster
(beta-convergence) while dispersion across areas grows (sigma-divergence).

Package Structure
-----------------
betasigma/
├── config.py           # Dataclass configuration
├── logger.py           # Console / debug-file logging
├── exceptions.py       # InsufficientData, DegenerateDistribution, ...
├── data_loader.py      # PanelData, ingestion, derive_baselines
├── scenarios.py        # Ten seeded growth scenarios
│
├── analysis/
│   ├── regression.py   # OLS with t-test and classification
│   ├── dispersion.py   # Gini, range, CoV, variance per year
│   └── convergence.py  # Beta regression, sigma series and trends
│
├── visualization.py    # Trajectories, beta scatter, dispersion panels
├── output_manager.py   # CSV / JSON / report export
└── pipeline.py         # Scenario → baselines → analysis → figures → export

Quick Start
-----------
>>> from betasigma import PanelDataLoader, derive_baselines, ConvergenceAnalysis
>>> panel = derive_baselines(PanelDataLoader().load('panel.csv'))
>>> result = ConvergenceAnalysis().analyze(panel)
>>> print(result.summary())
"""

from .config import Config, get_default_config, get_config, set_config, reset_config
from .logger import (
    setup_logger,
    get_logger,
    get_module_logger,
    ProgressLogger,
    PipelineLogger,
    LoggerFactory,
    timed_operation,
)
from .exceptions import (
    ConvergenceError,
    InsufficientData,
    DegenerateDistribution,
    MalformedObservation,
)
from .data_loader import PanelData, PanelDataLoader, derive_baselines, load_panel_data
from .scenarios import SCENARIOS, ScenarioGenerator, generate_scenario
from .analysis import (
    Classification,
    RegressionResult,
    ConvergenceAnalysis,
    ConvergenceResult,
    dispersion_series,
)
from .pipeline import ConvergencePipeline, run_pipeline, PipelineResult
from .output_manager import OutputManager, create_output_manager
from .visualization import PanelVisualizer, create_visualizer

__version__ = '1.0.0'

__all__ = [
    # Configuration
    'Config',
    'get_default_config',
    'get_config',
    'set_config',
    'reset_config',

    # Logging
    'setup_logger',
    'get_logger',
    'get_module_logger',
    'ProgressLogger',
    'PipelineLogger',
    'LoggerFactory',
    'timed_operation',

    # Errors
    'ConvergenceError',
    'InsufficientData',
    'DegenerateDistribution',
    'MalformedObservation',

    # Data
    'PanelData',
    'PanelDataLoader',
    'derive_baselines',
    'load_panel_data',

    # Scenarios
    'SCENARIOS',
    'ScenarioGenerator',
    'generate_scenario',

    # Analysis
    'Classification',
    'RegressionResult',
    'ConvergenceAnalysis',
    'ConvergenceResult',
    'dispersion_series',

    # Pipeline
    'ConvergencePipeline',
    'run_pipeline',
    'PipelineResult',

    # Output
    'OutputManager',
    'create_output_manager',

    # Visualization
    'PanelVisualizer',
    'create_visualizer',
]
