"""
Pytest configuration and fixtures for the convergence scenario tests.
"""
import sys
from pathlib import Path

import pytest
import numpy as np
import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def config():
    """Fresh default configuration."""
    from betasigma.config import get_default_config
    return get_default_config()


@pytest.fixture
def tmp_config(tmp_path):
    """Default configuration writing into a temporary directory, no figures."""
    from betasigma.config import get_default_config
    config = get_default_config()
    config.paths.base_dir = tmp_path
    config.visualization.enabled = False
    return config


@pytest.fixture
def even_baselines():
    """Ten evenly spaced baselines on a life-expectancy scale."""
    return np.linspace(70.0, 80.0, 10)


@pytest.fixture
def wide_baselines():
    """Ten baselines spread widely enough to limit rank crossings."""
    return np.linspace(60.0, 80.0, 10)


@pytest.fixture
def small_records():
    """Four areas × five years, area D unobserved before year 3."""
    rows = []
    levels = {'A': 70.0, 'B': 72.0, 'C': 74.0, 'D': 68.0}
    rates = {'A': 0.5, 'B': 0.3, 'C': 0.1, 'D': 0.4}
    for area, level in levels.items():
        for year in range(1, 6):
            value = level + rates[area] * (year - 1)
            if area == 'D' and year < 3:
                value = np.nan
            rows.append({'area': area, 'year': year, 'value': value})
    return rows


@pytest.fixture
def small_frame(small_records):
    return pd.DataFrame(small_records)


@pytest.fixture
def small_panel(small_frame):
    from betasigma.data_loader import PanelDataLoader
    return PanelDataLoader().load_from_dataframe(small_frame)
