# -*- coding: utf-8 -*-
"""Errors raised by panel ingestion and convergence analysis."""


class ConvergenceError(ValueError):
    """Base class for all analysis errors."""


class InsufficientData(ConvergenceError):
    """Too few valid points for a regression (areas for beta, years for a trend)."""


class DegenerateDistribution(ConvergenceError):
    """
    A cross-section or predictor on which a statistic is undefined.

    Raised for a zero cross-sectional mean, fewer than two observed areas
    in a year, or a regression predictor without variation.
    """


class MalformedObservation(ConvergenceError):
    """A panel record rejected at ingestion."""


def error_marker(exc: Exception) -> str:
    """Compact ``ClassName: message`` marker stored in per-year results."""
    return f"{type(exc).__name__}: {exc}"
