# -*- coding: utf-8 -*-
"""
Core unit tests for the beta / sigma convergence package.

Tests cover:
- Configuration management
- Logging helpers and error markers
- Panel ingestion, validation and baseline derivation
- Dispersion indices (Gini, range, CoV, variance)
- OLS regression and classification
- Beta / sigma convergence analysis
- Output management and visualization
"""

import pytest
import numpy as np
import pandas as pd
from pathlib import Path
import json
import sys
import warnings

sys.path.insert(0, str(Path(__file__).parent.parent))

warnings.filterwarnings('ignore')


class TestConfig:
    """Test configuration module."""

    def test_default_config_creation(self):
        from betasigma.config import get_default_config
        config = get_default_config()
        assert config.panel.n_areas == 10
        assert config.panel.n_years == 20
        assert config.panel.n_observations == 200
        assert config.panel.year_range == (1, 20)

    def test_area_names(self, config):
        names = config.panel.area_names
        assert names[0] == 'A01'
        assert names[-1] == 'A10'
        assert len(set(names)) == 10

    def test_convergence_defaults(self, config):
        from betasigma.config import GrowthMethod, DISPERSION_INDICES
        conv = config.convergence
        assert conv.significance_level == 0.05
        assert conv.ddof == 1
        assert conv.growth_method is GrowthMethod.RATIO
        assert conv.exclude_degenerate is False
        assert tuple(conv.indices) == DISPERSION_INDICES

    def test_paths(self, tmp_path):
        from betasigma.config import PathConfig
        paths = PathConfig(base_dir=tmp_path, output_name='run')
        paths.ensure_directories()
        assert paths.output_dir == tmp_path / 'run'
        for d in [paths.figures_dir, paths.reports_dir, paths.results_dir, paths.logs_dir]:
            assert d.is_dir()

    def test_save_to_json(self, config, tmp_path):
        path = tmp_path / 'config.json'
        config.save(path)
        data = json.loads(path.read_text())
        assert data['convergence']['growth_method'] == 'ratio'
        assert data['panel']['years'] == list(range(1, 21))
        assert data['random']['seed'] == 42

    def test_global_config(self):
        from betasigma.config import get_config, set_config, reset_config, Config
        custom = Config()
        custom.random.seed = 7
        set_config(custom)
        try:
            assert get_config().random.seed == 7
        finally:
            reset_config()
        assert get_config().random.seed == 42

    def test_summary_mentions_settings(self, config):
        text = config.summary()
        assert 'CONFIGURATION SUMMARY' in text
        assert 'gini' in text

    def test_summary_with_string_growth_method(self, config):
        config.convergence.growth_method = 'log'
        assert 'Growth method: log' in config.summary()


class TestLogging:
    """Test logging helpers and error markers."""

    def test_module_logger_hierarchy(self):
        from betasigma.logger import get_module_logger
        logger = get_module_logger('analysis.convergence')
        assert logger.name.endswith('.analysis.convergence')

    def test_setup_logger_debug_file(self, tmp_path):
        from betasigma.logger import setup_logger
        debug_file = tmp_path / 'logs' / 'debug.log'
        logger = setup_logger(console=False, debug_file=debug_file)
        logger.debug('written to file')
        for handler in logger.handlers:
            handler.flush()
        assert debug_file.exists()
        assert 'written to file' in debug_file.read_text()

    def test_debug_file_rotates(self, tmp_path):
        import logging.handlers
        from betasigma.logger import LoggerFactory
        debug_file = tmp_path / 'rotating.log'
        logger = LoggerFactory.setup(log_file=debug_file, console=False,
                                     max_bytes=200, backup_count=2)
        handlers = [h for h in logger.handlers
                    if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(handlers) == 1
        for i in range(20):
            logger.info(f'message {i:02d} ' + 'x' * 40)
        handlers[0].flush()
        assert (tmp_path / 'rotating.log.1').exists()
        assert not (tmp_path / 'rotating.log.3').exists()

    def test_timed_operation(self):
        from betasigma.logger import get_logger, timed_operation
        with timed_operation(get_logger(), 'noop'):
            total = sum(range(10))
        assert total == 45

    def test_error_marker(self):
        from betasigma.exceptions import DegenerateDistribution, error_marker
        marker = error_marker(DegenerateDistribution('zero mean'))
        assert marker == 'DegenerateDistribution: zero mean'

    def test_error_hierarchy(self):
        from betasigma.exceptions import (
            ConvergenceError, InsufficientData, DegenerateDistribution, MalformedObservation
        )
        for cls in (InsufficientData, DegenerateDistribution, MalformedObservation):
            assert issubclass(cls, ConvergenceError)
            assert issubclass(cls, ValueError)


class TestDataLoader:
    """Test panel ingestion and validation."""

    def test_load_from_dataframe(self, small_panel):
        assert small_panel.areas == ['A', 'B', 'C', 'D']
        assert small_panel.years == [1, 2, 3, 4, 5]
        assert len(small_panel.long) == 20
        assert len(small_panel.observed) == 18

    def test_load_from_records(self, small_records):
        from betasigma.data_loader import PanelDataLoader
        panel = PanelDataLoader().load_from_records(small_records)
        assert panel.n_areas == 4
        assert panel.n_years == 5

    def test_load_csv(self, small_frame, tmp_path):
        from betasigma.data_loader import load_panel_data
        path = tmp_path / 'panel.csv'
        small_frame.to_csv(path, index=False)
        panel = load_panel_data(path)
        assert panel.n_areas == 4
        assert np.isnan(panel.get_area('D').loc[1])

    def test_panel_views(self, small_panel):
        wide = small_panel.wide
        assert wide.shape == (4, 5)
        assert wide.loc['A', 5] == pytest.approx(72.0)
        year1 = small_panel.get_year(1)
        assert sorted(year1.index) == ['A', 'B', 'C']
        assert small_panel.effective_n().tolist() == [3, 3, 4, 4, 4]

    def test_missing_column(self, small_frame):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.exceptions import MalformedObservation
        with pytest.raises(MalformedObservation, match='columns'):
            PanelDataLoader().load_from_dataframe(small_frame.drop(columns=['value']))

    def test_record_without_area(self, small_records):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.exceptions import MalformedObservation
        records = small_records + [{'year': 3, 'value': 70.0}]
        with pytest.raises(MalformedObservation):
            PanelDataLoader().load_from_records(records)

    def test_record_without_year(self, small_records):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.exceptions import MalformedObservation
        records = small_records + [{'area': 'E', 'year': None, 'value': 70.0}]
        with pytest.raises(MalformedObservation):
            PanelDataLoader().load_from_records(records)

    def test_non_integer_year(self, small_frame):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.exceptions import MalformedObservation
        df = small_frame.astype({'year': float})
        df.loc[0, 'year'] = 1.5
        with pytest.raises(MalformedObservation, match='Non-integer'):
            PanelDataLoader().load_from_dataframe(df)

    def test_infinite_year(self, small_frame):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.exceptions import MalformedObservation
        df = small_frame.astype({'year': float})
        df.loc[0, 'year'] = np.inf
        with pytest.raises(MalformedObservation, match='Non-integer'):
            PanelDataLoader().load_from_dataframe(df)

    def test_year_out_of_range(self, small_frame):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.exceptions import MalformedObservation
        df = small_frame.copy()
        df.loc[0, 'year'] = 25
        with pytest.raises(MalformedObservation, match='outside'):
            PanelDataLoader().load_from_dataframe(df)

    def test_non_numeric_value(self, small_frame):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.exceptions import MalformedObservation
        df = small_frame.astype({'value': object})
        df.loc[3, 'value'] = 'n/a'
        with pytest.raises(MalformedObservation, match='Non-numeric'):
            PanelDataLoader().load_from_dataframe(df)

    def test_duplicate_area_year(self, small_frame):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.exceptions import MalformedObservation
        df = pd.concat([small_frame, small_frame.iloc[[0]]], ignore_index=True)
        with pytest.raises(MalformedObservation, match='duplicate'):
            PanelDataLoader().load_from_dataframe(df)

    def test_derive_baselines(self, small_panel):
        from betasigma.data_loader import derive_baselines
        panel = derive_baselines(small_panel)
        assert panel.has_baselines
        assert not small_panel.has_baselines

        first = panel.long.groupby('area')[['initial_value', 'entry_year']].first()
        assert first.loc['A', 'initial_value'] == pytest.approx(70.0)
        assert first.loc['A', 'entry_year'] == 1
        assert first.loc['D', 'initial_value'] == pytest.approx(68.8)
        assert first.loc['D', 'entry_year'] == 3

    def test_derive_baselines_idempotent(self, small_panel):
        from betasigma.data_loader import derive_baselines
        once = derive_baselines(small_panel)
        twice = derive_baselines(once)
        pd.testing.assert_frame_equal(once.long, twice.long)


class TestDispersion:
    """Test cross-sectional dispersion indices."""

    def test_gini_equal_values(self):
        from betasigma.analysis.dispersion import gini
        assert gini([75.0] * 10) == pytest.approx(0.0, abs=1e-12)

    def test_gini_concentrated(self):
        from betasigma.analysis.dispersion import gini
        # One area holds everything: (n - 1) / n
        assert gini([0.0, 0.0, 0.0, 1.0]) == pytest.approx(0.75)

    def test_gini_known_value(self):
        from betasigma.analysis.dispersion import gini
        assert gini([74.0, 70.0, 72.0]) == pytest.approx(16.0 / 1296.0)

    def test_gini_bounds_and_scale(self):
        from betasigma.analysis.dispersion import gini
        rng = np.random.default_rng(0)
        values = rng.uniform(50, 90, 10)
        g = gini(values)
        assert 0.0 <= g < 1.0
        assert gini(values * 3.0) == pytest.approx(g)

    def test_range_variance_cov(self):
        from betasigma.analysis.dispersion import value_range, variance, coefficient_of_variation
        values = [70.0, 72.0, 74.0]
        assert value_range(values) == pytest.approx(4.0)
        assert variance(values) == pytest.approx(4.0)
        assert variance(values, ddof=0) == pytest.approx(8.0 / 3.0)
        assert coefficient_of_variation(values) == pytest.approx(2.0 / 72.0)

    def test_equal_values_no_spread(self):
        from betasigma.analysis.dispersion import value_range, variance, coefficient_of_variation
        values = [75.0] * 5
        assert value_range(values) == 0
        assert variance(values) == 0
        assert coefficient_of_variation(values) == 0

    def test_nan_values_ignored(self):
        from betasigma.analysis.dispersion import value_range
        assert value_range([70.0, np.nan, 74.0]) == pytest.approx(4.0)

    def test_single_area_degenerate(self):
        from betasigma.analysis.dispersion import gini, value_range, variance
        from betasigma.exceptions import DegenerateDistribution
        for func in (gini, value_range, variance):
            with pytest.raises(DegenerateDistribution):
                func([72.0])

    def test_zero_mean_degenerate(self):
        from betasigma.analysis.dispersion import gini, coefficient_of_variation
        from betasigma.exceptions import DegenerateDistribution
        with pytest.raises(DegenerateDistribution):
            gini([-1.0, 1.0])
        with pytest.raises(DegenerateDistribution):
            coefficient_of_variation([-1.0, 1.0])

    def test_cross_section_markers(self):
        from betasigma.analysis.dispersion import cross_section_indices
        row = cross_section_indices([-1.0, 1.0])
        assert np.isnan(row['gini'])
        assert np.isnan(row['cov'])
        assert row['range'] == pytest.approx(2.0)
        assert row['variance'] == pytest.approx(2.0)
        assert row['effective_n'] == 2
        assert row['error'].startswith('DegenerateDistribution')

    def test_dispersion_series(self, small_panel):
        from betasigma.analysis.dispersion import dispersion_series, SERIES_COLUMNS
        series = dispersion_series(small_panel)
        assert list(series.columns) == SERIES_COLUMNS
        assert series['year'].tolist() == [1, 2, 3, 4, 5]
        assert series['effective_n'].tolist() == [3, 3, 4, 4, 4]
        assert series['error'].isna().all()
        assert series.loc[0, 'range'] == pytest.approx(4.0)

    def test_dispersion_series_marks_degenerate_year(self):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.analysis.dispersion import dispersion_series
        df = pd.DataFrame({
            'area': ['A', 'B', 'A', 'B'],
            'year': [1, 1, 2, 2],
            'value': [70.0, np.nan, 71.0, 73.0],
        })
        series = dispersion_series(PanelDataLoader().load_from_dataframe(df))
        assert series.loc[0, 'effective_n'] == 1
        assert np.isnan(series.loc[0, 'gini'])
        assert 'DegenerateDistribution' in series.loc[0, 'error']
        assert series.loc[1, 'range'] == pytest.approx(2.0)


class TestRegression:
    """Test OLS fitting and classification."""

    def test_exact_line(self):
        from betasigma.analysis.regression import fit_ols, Classification
        x = np.arange(1, 6, dtype=float)
        result = fit_ols(x, 2.0 * x + 1.0)
        assert result.slope == pytest.approx(2.0)
        assert result.intercept == pytest.approx(1.0)
        assert result.p_value < 1e-6
        assert result.classification is Classification.DIVERGE

    def test_sign_symmetry(self):
        from betasigma.analysis.regression import fit_ols, Classification
        rng = np.random.default_rng(3)
        x = np.arange(20, dtype=float)
        y = 0.5 * x + rng.normal(0, 1, 20)
        up = fit_ols(x, y)
        down = fit_ols(x, -y)
        assert down.slope == pytest.approx(-up.slope)
        assert down.p_value == pytest.approx(up.p_value)
        assert up.classification is Classification.DIVERGE
        assert down.classification is Classification.CONVERGE

    def test_matches_scipy(self):
        from scipy import stats
        from betasigma.analysis.regression import fit_ols
        rng = np.random.default_rng(11)
        x = rng.normal(75, 3, 10)
        y = 0.05 - 0.0004 * x + rng.normal(0, 0.001, 10)
        ours = fit_ols(x, y)
        ref = stats.linregress(x, y)
        assert ours.slope == pytest.approx(ref.slope)
        assert ours.std_error == pytest.approx(ref.stderr)
        assert ours.p_value == pytest.approx(ref.pvalue)
        assert ours.r_squared == pytest.approx(ref.rvalue ** 2)

    def test_constant_response(self):
        from betasigma.analysis.regression import fit_ols, Classification
        result = fit_ols([1.0, 2.0, 3.0, 4.0], [5.0] * 4)
        assert result.slope == 0.0
        assert result.p_value == 1.0
        assert result.classification is Classification.NONE

    def test_too_few_points(self):
        from betasigma.analysis.regression import fit_ols
        from betasigma.exceptions import InsufficientData
        with pytest.raises(InsufficientData):
            fit_ols([1.0, 2.0], [3.0, 4.0])
        with pytest.raises(InsufficientData):
            fit_ols([1.0, 2.0, 3.0, 4.0], [1.0, 2.0, 3.0, 4.0], min_obs=5)

    def test_constant_predictor(self):
        from betasigma.analysis.regression import fit_ols
        from betasigma.exceptions import DegenerateDistribution
        with pytest.raises(DegenerateDistribution):
            fit_ols([72.0] * 5, [1.0, 2.0, 3.0, 4.0, 5.0])

    def test_non_finite_points_rejected(self):
        from betasigma.analysis.regression import fit_ols
        from betasigma.exceptions import DegenerateDistribution
        with pytest.raises(DegenerateDistribution, match='2 non-finite'):
            fit_ols([1.0, 2.0, np.nan, 4.0, 5.0], [1.0, 2.0, 3.0, np.inf, 5.5])

    def test_non_finite_points_dropped_on_request(self):
        from betasigma.analysis.regression import fit_ols
        result = fit_ols([1.0, 2.0, np.nan, 4.0, 5.0], [1.0, 2.0, 3.0, np.inf, 5.5],
                         drop_nonfinite=True)
        assert result.n_obs == 3

    def test_classify(self):
        from betasigma.analysis.regression import classify, Classification
        assert classify(-1.0, 0.01, 0.05) is Classification.CONVERGE
        assert classify(1.0, 0.01, 0.05) is Classification.DIVERGE
        assert classify(1.0, 0.05, 0.05) is Classification.NONE
        assert classify(-1.0, 0.2, 0.05) is Classification.NONE


class TestConvergence:
    """Test beta / sigma convergence analysis."""

    def test_growth_table(self, small_panel):
        from betasigma.analysis import ConvergenceAnalysis
        table = ConvergenceAnalysis().growth_table(small_panel).set_index('area')
        assert list(table.index) == ['A', 'B', 'C', 'D']
        assert table.loc['A', 'horizon'] == 4
        assert table.loc['D', 'horizon'] == 2
        assert table.loc['A', 'growth'] == pytest.approx((72.0 / 70.0) / 4)
        assert table.loc['D', 'growth'] == pytest.approx((69.6 / 68.8) / 2)

    def test_growth_methods(self, small_panel):
        from betasigma.analysis import ConvergenceAnalysis
        from betasigma.config import ConvergenceConfig, GrowthMethod
        log_table = ConvergenceAnalysis(
            ConvergenceConfig(growth_method=GrowthMethod.LOG)).growth_table(small_panel)
        diff_table = ConvergenceAnalysis(
            ConvergenceConfig(growth_method=GrowthMethod.DIFFERENCE)).growth_table(small_panel)
        assert log_table.loc[0, 'growth'] == pytest.approx(np.log(72.0 / 70.0) / 4)
        assert diff_table.loc[0, 'growth'] == pytest.approx(0.5)

    def test_zero_baseline_growth_undefined(self, small_frame):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.analysis import ConvergenceAnalysis
        from betasigma.exceptions import DegenerateDistribution
        df = small_frame.copy()
        df.loc[(df['area'] == 'A') & (df['year'] == 1), 'value'] = 0.0
        panel = PanelDataLoader().load_from_dataframe(df)
        with pytest.raises(DegenerateDistribution, match="ratio growth undefined.*'A'"):
            ConvergenceAnalysis().growth_table(panel)
        with pytest.raises(DegenerateDistribution):
            ConvergenceAnalysis().analyze(panel)

    def test_log_growth_sign_change_undefined(self, small_frame):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.analysis import ConvergenceAnalysis
        from betasigma.config import ConvergenceConfig, GrowthMethod
        from betasigma.exceptions import DegenerateDistribution
        df = small_frame.copy()
        df.loc[(df['area'] == 'B') & (df['year'] == 1), 'value'] = -1.0
        panel = PanelDataLoader().load_from_dataframe(df)
        analyzer = ConvergenceAnalysis(ConvergenceConfig(growth_method=GrowthMethod.LOG))
        with pytest.raises(DegenerateDistribution, match='log growth undefined'):
            analyzer.growth_table(panel)
        # The difference definition is defined for any sign
        diff = ConvergenceAnalysis(ConvergenceConfig(growth_method=GrowthMethod.DIFFERENCE))
        assert np.isfinite(diff.growth_table(panel)['growth']).all()

    def test_terminal_year(self, small_panel):
        from betasigma.analysis import ConvergenceAnalysis
        table = ConvergenceAnalysis().growth_table(small_panel, terminal_year=3)
        # D enters in year 3 and has no horizon
        assert table['area'].tolist() == ['A', 'B', 'C']
        assert (table['horizon'] == 2).all()

    def test_analyze_small_panel(self, small_panel):
        from betasigma.analysis import ConvergenceAnalysis
        result = ConvergenceAnalysis().analyze(small_panel)
        assert result.beta.n_obs == 4
        assert result.terminal_year == 5
        assert set(result.sigma_trends) == {'gini', 'range', 'cov', 'variance'}
        assert result.sigma_errors == {}
        assert result.dispersion['effective_n'].tolist() == [3, 3, 4, 4, 4]

    def test_regressions_table(self, small_panel):
        from betasigma.analysis import ConvergenceAnalysis
        table = ConvergenceAnalysis().analyze(small_panel).regressions()
        assert table['test'].tolist() == [
            'beta', 'sigma_gini', 'sigma_range', 'sigma_cov', 'sigma_variance'
        ]
        assert set(table['classification']) <= {'converge', 'diverge', 'none'}

    def test_summary(self, small_panel):
        from betasigma.analysis import ConvergenceAnalysis
        text = ConvergenceAnalysis().analyze(small_panel).summary()
        assert 'BETA' in text
        assert 'SIGMA' in text
        assert 'Effective cross-section varies: 3-4' in text

    def test_unknown_index(self, small_panel):
        from betasigma.analysis import ConvergenceAnalysis
        analyzer = ConvergenceAnalysis()
        series = analyzer.sigma_convergence(small_panel)
        with pytest.raises(ValueError, match='Unknown dispersion index'):
            analyzer.sigma_trend(series, 'theil')

    def test_two_areas_insufficient(self):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.analysis import ConvergenceAnalysis
        from betasigma.exceptions import InsufficientData
        df = pd.DataFrame({
            'area': ['A'] * 4 + ['B'] * 4,
            'year': [1, 2, 3, 4] * 2,
            'value': [70.0, 70.5, 71.0, 71.5, 74.0, 74.2, 74.4, 74.6],
        })
        with pytest.raises(InsufficientData):
            ConvergenceAnalysis().analyze(PanelDataLoader().load_from_dataframe(df))

    def test_identical_baselines_degenerate(self):
        from betasigma.data_loader import PanelDataLoader
        from betasigma.analysis import ConvergenceAnalysis
        from betasigma.exceptions import DegenerateDistribution
        rows = [{'area': a, 'year': t, 'value': 70.0 + r * (t - 1)}
                for a, r in [('A', 0.1), ('B', 0.2), ('C', 0.3)] for t in range(1, 5)]
        panel = PanelDataLoader().load_from_records(rows)
        with pytest.raises(DegenerateDistribution):
            ConvergenceAnalysis().analyze(panel)

    def _panel_with_thin_year(self):
        from betasigma.data_loader import PanelDataLoader
        rows = []
        for area, level, rate in [('A', 70.0, 0.1), ('B', 72.0, 0.3), ('C', 75.0, 0.5)]:
            for year in range(1, 7):
                value = level + rate * (year - 1)
                if area != 'A' and year == 1:
                    value = np.nan
                rows.append({'area': area, 'year': year, 'value': value})
        return PanelDataLoader().load_from_records(rows)

    def test_degenerate_year_recorded(self):
        from betasigma.analysis import ConvergenceAnalysis
        result = ConvergenceAnalysis().analyze(self._panel_with_thin_year())
        assert result.sigma_trends == {}
        assert set(result.sigma_errors) == {'gini', 'range', 'cov', 'variance'}
        assert all(e.startswith('DegenerateDistribution') for e in result.sigma_errors.values())
        assert result.dispersion.loc[0, 'error'] is not None

    def test_degenerate_year_excluded(self):
        from betasigma.analysis import ConvergenceAnalysis
        from betasigma.config import ConvergenceConfig
        analyzer = ConvergenceAnalysis(ConvergenceConfig(exclude_degenerate=True))
        result = analyzer.analyze(self._panel_with_thin_year())
        assert result.sigma_errors == {}
        assert all(trend.n_obs == 5 for trend in result.sigma_trends.values())

    def test_exclude_degenerate_argument(self):
        from betasigma.analysis import ConvergenceAnalysis
        from betasigma.exceptions import DegenerateDistribution
        analyzer = ConvergenceAnalysis()
        series = analyzer.sigma_convergence(self._panel_with_thin_year())
        with pytest.raises(DegenerateDistribution):
            analyzer.sigma_trend(series, 'range')
        trend = analyzer.sigma_trend(series, 'range', exclude_degenerate=True)
        assert trend.n_obs == 5

    def test_run_convergence_analysis(self, small_panel):
        from betasigma.analysis import run_convergence_analysis
        result = run_convergence_analysis(small_panel)
        assert result.beta.label == 'beta'


class TestOutputManager:
    """Test output management."""

    def test_output_manager_initialization(self, tmp_path):
        from betasigma.output_manager import OutputManager
        manager = OutputManager(str(tmp_path / 'out'))
        assert manager.results_dir.exists()
        assert manager.figures_dir.exists()
        assert manager.reports_dir.exists()

    def test_save_scenario_and_reports(self, tmp_path, small_panel):
        from betasigma.output_manager import OutputManager
        from betasigma.analysis import ConvergenceAnalysis
        from betasigma.data_loader import derive_baselines

        panel = derive_baselines(small_panel)
        result = ConvergenceAnalysis().analyze(panel)
        manager = OutputManager(str(tmp_path))

        paths = manager.save_scenario('small', panel, result)
        for path in paths.values():
            assert Path(path).exists()
        dispersion = pd.read_csv(paths['dispersion'])
        assert dispersion['effective_n'].tolist() == [3, 3, 4, 4, 4]

        regressions = pd.read_csv(manager.save_regressions({'small': result}))
        assert regressions['scenario'].unique().tolist() == ['small']
        assert len(regressions) == 5

        report = Path(manager.save_report({'small': result}, {'broken': 'InsufficientData: x'}))
        text = report.read_text(encoding='utf-8')
        assert '### small' in text
        assert 'broken' in text

        summary = json.loads(Path(manager.save_execution_summary(1.0, {'small': result}, {})).read_text())
        assert summary['scenarios']['small']['beta'] in {'converge', 'diverge', 'none'}


class TestVisualization:
    """Test visualization module."""

    def test_visualizer_creation(self, tmp_path):
        from betasigma.visualization import PanelVisualizer
        viz = PanelVisualizer(output_dir=str(tmp_path / 'figures'))
        assert viz.output_dir.exists()

    def test_plot_scenario(self, tmp_path, small_panel):
        from betasigma.visualization import create_visualizer
        from betasigma.analysis import ConvergenceAnalysis
        result = ConvergenceAnalysis().analyze(small_panel)
        viz = create_visualizer(str(tmp_path), dpi=50)
        paths = viz.plot_scenario('small', small_panel, result)
        assert set(paths) == {'trajectories', 'beta', 'dispersion'}
        for path in paths.values():
            assert Path(path).exists()
        assert Path(paths['beta']).name == 'small_beta.png'
