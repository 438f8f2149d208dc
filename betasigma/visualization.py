# -*- coding: utf-8 -*-
"""
Visualization Module
====================

Trajectory, beta-scatter and dispersion-trend figures for one scenario.
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional, Tuple
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

from .analysis.convergence import ConvergenceResult
from .analysis.regression import RegressionResult
from .data_loader import PanelData
from .logger import get_module_logger

logger = get_module_logger("visualization")

INDEX_LABELS = {
    'gini': 'Gini coefficient',
    'range': 'Range',
    'cov': 'Coefficient of variation',
    'variance': 'Variance',
}


class PanelVisualizer:
    """
    Figures for convergence scenarios.
    """

    def __init__(self,
                 output_dir: str = 'outputs/figures',
                 style: str = 'seaborn-v0_8-whitegrid',
                 figsize: Tuple[int, int] = (12, 8),
                 dpi: int = 150,
                 palette: str = 'tab10'):
        """
        Initialize visualizer.

        Parameters
        ----------
        output_dir : str
            Directory for saving figures
        style : str
            Matplotlib style
        figsize : Tuple[int, int]
            Default figure size
        dpi : int
            Figure resolution
        palette : str
            Colormap used for per-area colors
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.figsize = figsize
        self.dpi = dpi
        self.palette = palette

        if style in plt.style.available:
            plt.style.use(style)
        else:
            logger.debug(f"Matplotlib style '{style}' unavailable, using default")
            plt.style.use('default')

        self.colors = {
            'primary': '#2E86AB',
            'secondary': '#A23B72',
            'converge': '#2E7D32',
            'diverge': '#C73E1D',
            'none': '#757575',
        }

    def _area_colors(self, areas) -> Dict[str, tuple]:
        """Stable color per area, by sorted area name."""
        cmap = plt.get_cmap(self.palette)
        return {area: cmap(i % cmap.N) for i, area in enumerate(sorted(areas))}

    def _save(self, fig, save_name: str) -> str:
        save_path = self.output_dir / save_name
        fig.savefig(save_path, dpi=self.dpi, bbox_inches='tight',
                    facecolor='white', edgecolor='none')
        plt.close(fig)
        logger.debug(f"Saved figure {save_path}")
        return str(save_path)

    def plot_trajectories(self,
                          panel: PanelData,
                          title: str = 'Area trajectories',
                          save_name: str = 'trajectories.png') -> str:
        """Value over time, one line per area."""
        fig, ax = plt.subplots(figsize=self.figsize)
        colors = self._area_colors(panel.areas)

        for area in panel.areas:
            series = panel.get_area(area)
            ax.plot(series.index, series.values, 'o-', markersize=3,
                    linewidth=1.5, color=colors[area], label=area)

        ax.set_xlabel('Year', fontsize=11)
        ax.set_ylabel('Value', fontsize=11)
        ax.set_title(title, fontsize=12, fontweight='bold')
        ax.legend(ncol=2, fontsize=8, loc='best')
        ax.grid(True, alpha=0.3)
        return self._save(fig, save_name)

    def plot_beta_convergence(self,
                              growth: pd.DataFrame,
                              beta: RegressionResult,
                              title: str = 'Beta convergence',
                              save_name: str = 'beta_convergence.png') -> str:
        """Growth against initial value with the fitted regression line."""
        fig, ax = plt.subplots(figsize=self.figsize)
        colors = self._area_colors(growth['area'])

        for _, row in growth.iterrows():
            ax.scatter(row['initial_value'], row['growth'], s=60,
                       color=colors[row['area']], zorder=3)
            ax.annotate(row['area'], (row['initial_value'], row['growth']),
                        textcoords='offset points', xytext=(5, 4), fontsize=8)

        x = np.linspace(growth['initial_value'].min(), growth['initial_value'].max(), 50)
        ax.plot(x, beta.intercept + beta.slope * x, '--', linewidth=2,
                color=self.colors[beta.classification.value])

        ax.set_xlabel('Initial value', fontsize=11)
        ax.set_ylabel('Annualised growth', fontsize=11)
        ax.set_title(f"{title}\nβ = {beta.slope:.2e}, p = {beta.p_value:.3f} "
                     f"({beta.classification.value})", fontsize=12, fontweight='bold')
        ax.grid(True, alpha=0.3)
        return self._save(fig, save_name)

    def plot_dispersion(self,
                        dispersion: pd.DataFrame,
                        trends: Optional[Dict[str, RegressionResult]] = None,
                        title: str = 'Sigma convergence',
                        save_name: str = 'dispersion.png') -> str:
        """2×2 panel of the dispersion indices with their trend lines."""
        trends = trends or {}
        fig, axes = plt.subplots(2, 2, figsize=self.figsize, sharex=True)

        for ax, (index, label) in zip(axes.ravel(), INDEX_LABELS.items()):
            ax.plot(dispersion['year'], dispersion[index], 'o-', linewidth=2,
                    markersize=4, color=self.colors['primary'])

            trend = trends.get(index)
            if trend is not None:
                years = dispersion['year'].to_numpy(dtype=float)
                ax.plot(years, trend.intercept + trend.slope * years, '--', linewidth=2,
                        color=self.colors[trend.classification.value],
                        label=f"slope {trend.slope:.2e} (p={trend.p_value:.3f})")
                ax.legend(fontsize=8)

            ax.set_title(label, fontsize=11, fontweight='bold')
            ax.grid(True, alpha=0.3)

        for ax in axes[1]:
            ax.set_xlabel('Year', fontsize=10)

        fig.suptitle(title, fontsize=14, fontweight='bold')
        plt.tight_layout()
        return self._save(fig, save_name)

    def plot_scenario(self,
                      name: str,
                      panel: PanelData,
                      result: ConvergenceResult) -> Dict[str, str]:
        """All figures for one scenario, prefixed with its name."""
        label = name.replace('_', ' ').title()
        return {
            'trajectories': self.plot_trajectories(
                panel, title=f'{label}: trajectories',
                save_name=f'{name}_trajectories.png'),
            'beta': self.plot_beta_convergence(
                result.growth, result.beta, title=f'{label}: beta convergence',
                save_name=f'{name}_beta.png'),
            'dispersion': self.plot_dispersion(
                result.dispersion, result.sigma_trends, title=f'{label}: dispersion',
                save_name=f'{name}_dispersion.png'),
        }


def create_visualizer(output_dir: str = 'outputs/figures', **kwargs) -> PanelVisualizer:
    """Factory function to create a PanelVisualizer."""
    return PanelVisualizer(output_dir=output_dir, **kwargs)
