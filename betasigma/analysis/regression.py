# -*- coding: utf-8 -*-
"""
Simple OLS
==========

Single-regressor least squares with classical standard errors, used for
both the beta regression (growth on baseline) and dispersion trends
(index on year).
"""

import numpy as np
from typing import Dict
from dataclasses import dataclass
from enum import Enum
from scipy import stats

from ..exceptions import DegenerateDistribution, InsufficientData
from ..logger import get_module_logger

logger = get_module_logger("analysis.regression")


class Classification(Enum):
    """Direction of a significant slope."""
    CONVERGE = "converge"
    DIVERGE = "diverge"
    NONE = "none"


@dataclass
class RegressionResult:
    """Result container for ``y ~ a + b x``."""
    slope: float
    intercept: float
    std_error: float
    t_stat: float
    p_value: float
    r_squared: float
    n_obs: int
    classification: Classification
    label: str = ""

    @property
    def significant(self) -> bool:
        return self.classification is not Classification.NONE

    def to_dict(self) -> Dict:
        return {
            'label': self.label,
            'slope': self.slope,
            'intercept': self.intercept,
            'std_error': self.std_error,
            't_stat': self.t_stat,
            'p_value': self.p_value,
            'r_squared': self.r_squared,
            'n_obs': self.n_obs,
            'classification': self.classification.value,
        }

    def summary(self) -> str:
        return (f"{self.label or 'slope'}: {self.slope:+.6f} "
                f"(SE {self.std_error:.6f}, t={self.t_stat:.3f}, "
                f"p={self.p_value:.4f}, n={self.n_obs}) → {self.classification.value}")


def classify(slope: float, p_value: float, significance_level: float) -> Classification:
    """Negative significant slope converges, positive significant diverges."""
    if p_value < significance_level:
        if slope < 0:
            return Classification.CONVERGE
        if slope > 0:
            return Classification.DIVERGE
    return Classification.NONE


def fit_ols(x,
            y,
            significance_level: float = 0.05,
            min_obs: int = 3,
            label: str = "",
            drop_nonfinite: bool = False) -> RegressionResult:
    """
    Fit ``y = a + b x`` by ordinary least squares.

    Two-sided p-value of ``b`` from Student's t with n - 2 degrees of
    freedom. A constant response yields slope 0 and p = 1; an exact fit
    with non-zero slope yields infinite t and p = 0.

    Non-finite (x, y) pairs are an error unless ``drop_nonfinite`` is
    set, in which case they are removed and logged before fitting.

    Raises
    ------
    InsufficientData
        Fewer than ``min_obs`` finite (x, y) pairs.
    DegenerateDistribution
        ``x`` has no variation, or a point is not finite and
        ``drop_nonfinite`` is false.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    mask = np.isfinite(x) & np.isfinite(y)
    if not mask.all():
        n_bad = int((~mask).sum())
        if not drop_nonfinite:
            raise DegenerateDistribution(
                f"{label or 'regression'} has {n_bad} non-finite point(s)"
            )
        logger.debug(f"{label or 'regression'}: dropped {n_bad} non-finite point(s)")
        x, y = x[mask], y[mask]
    n = len(y)
    min_obs = max(min_obs, 3)

    if n < min_obs:
        raise InsufficientData(
            f"{label or 'regression'} needs at least {min_obs} points, got {n}"
        )

    dx = x - x.mean()
    sxx = float(np.sum(dx ** 2))
    if sxx <= np.finfo(float).eps * max(1.0, float(np.sum(x ** 2))):
        raise DegenerateDistribution(
            f"{label or 'regression'} predictor has no variation"
        )

    scale = max(1.0, float(np.max(np.abs(y))))
    if np.ptp(y) <= 1e-12 * scale:
        return RegressionResult(
            slope=0.0, intercept=float(y.mean()), std_error=0.0, t_stat=0.0,
            p_value=1.0, r_squared=0.0, n_obs=n,
            classification=Classification.NONE, label=label,
        )

    dy = y - y.mean()
    slope = float(np.sum(dx * dy) / sxx)
    intercept = float(y.mean() - slope * x.mean())

    residuals = y - (intercept + slope * x)
    df_resid = n - 2
    sse = float(np.sum(residuals ** 2))
    sst = float(np.sum(dy ** 2))
    std_error = float(np.sqrt(sse / df_resid / sxx))
    r_squared = 1.0 - sse / sst

    if std_error > 0:
        t_stat = slope / std_error
        p_value = float(2 * stats.t.sf(abs(t_stat), df_resid))
    elif slope != 0:
        t_stat = float(np.copysign(np.inf, slope))
        p_value = 0.0
    else:
        t_stat, p_value = 0.0, 1.0

    return RegressionResult(
        slope=slope,
        intercept=intercept,
        std_error=std_error,
        t_stat=float(t_stat),
        p_value=p_value,
        r_squared=r_squared,
        n_obs=n,
        classification=classify(slope, p_value, significance_level),
        label=label,
    )
