# -*- coding: utf-8 -*-
"""
Analysis Module
===============

Beta/sigma convergence testing, dispersion indices and the OLS helper
they share.
"""

from .regression import Classification, RegressionResult, classify, fit_ols
from .dispersion import (
    gini, value_range, variance, coefficient_of_variation,
    cross_section_indices, dispersion_series
)
from .convergence import ConvergenceAnalysis, ConvergenceResult, run_convergence_analysis

__all__ = [
    # Regression
    'Classification',
    'RegressionResult',
    'classify',
    'fit_ols',

    # Dispersion
    'gini',
    'value_range',
    'variance',
    'coefficient_of_variation',
    'cross_section_indices',
    'dispersion_series',

    # Convergence
    'ConvergenceAnalysis',
    'ConvergenceResult',
    'run_convergence_analysis',
]
