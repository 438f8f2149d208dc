# -*- coding: utf-8 -*-
"""
Logging for the convergence scenario pipeline.

Console output is plain text at the requested level; an optional rotating
debug file under ``outputs/logs`` receives everything. Modules log through
children of the ``betasigma`` logger (``betasigma.analysis.convergence``,
``betasigma.scenarios``, ...).
"""

import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional, Dict, Any, Union
from dataclasses import dataclass
from contextlib import contextmanager


LOG_NAME = "betasigma"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_DATE_FORMAT = "%H:%M:%S"
MAX_LOG_SIZE = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 3

CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'


# =============================================================================
# Phase timing
# =============================================================================

@dataclass
class PhaseMetrics:
    """Timing record of one pipeline phase."""
    name: str
    start_time: float
    end_time: Optional[float] = None
    status: str = "running"

    @property
    def elapsed(self) -> float:
        return (self.end_time or time.time()) - self.start_time


class ProgressLogger:
    """
    Logs start, completion or failure of a phase with its duration.

    Example:
        with ProgressLogger(logger, "Scenario: stability") as progress:
            progress.log_step("baselines derived")
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.metrics = PhaseMetrics(name=operation, start_time=0.0)

    def __enter__(self) -> 'ProgressLogger':
        self.metrics.start_time = time.time()
        self.logger.info(f"▶ {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.metrics.end_time = time.time()
        elapsed = self.metrics.elapsed
        if exc_type is None:
            self.metrics.status = "completed"
            self.logger.info(f"✓ {self.operation} ({elapsed:.2f}s)")
        else:
            self.metrics.status = "failed"
            self.logger.error(f"✗ {self.operation} failed after {elapsed:.2f}s: "
                              f"{exc_type.__name__}: {exc_val}")
        return False

    def log_step(self, step_name: str, status: str = "done") -> None:
        icons = {"done": "✓", "skip": "⊘", "warn": "⚡", "fail": "✗"}
        self.logger.info(f"  {icons.get(status, '•')} {step_name}")


# =============================================================================
# Logger Factory
# =============================================================================

class LoggerFactory:
    """Configures the ``betasigma`` root logger and hands out children."""

    _loggers: Dict[str, logging.Logger] = {}
    _root_logger: Optional[logging.Logger] = None

    @classmethod
    def setup(cls,
              name: str = LOG_NAME,
              level: Union[int, str] = logging.INFO,
              log_file: Optional[Path] = None,
              console: bool = True,
              console_level: Optional[int] = None,
              max_bytes: int = MAX_LOG_SIZE,
              backup_count: int = BACKUP_COUNT) -> logging.Logger:
        """
        (Re)configure a logger, replacing any handlers it already has.

        Parameters
        ----------
        name : str
            Logger name
        level : int or str
            Logger level
        log_file : Path, optional
            Rotating file that receives DEBUG and above
        console : bool
            Write to stdout
        console_level : int, optional
            Level of the console handler, defaults to ``level``
        """
        if isinstance(level, str):
            level = getattr(logging, level.upper(), logging.INFO)

        logger = logging.getLogger(name)
        logger.setLevel(level)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.propagate = False

        if console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(console_level if console_level is not None else level)
            console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, CONSOLE_DATE_FORMAT))
            logger.addHandler(console_handler)

        if log_file:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DEFAULT_DATE_FORMAT))
            logger.addHandler(file_handler)

        cls._root_logger = logger
        cls._loggers[name] = logger
        return logger

    @classmethod
    def get_logger(cls, name: str = LOG_NAME) -> logging.Logger:
        if name not in cls._loggers:
            cls._loggers[name] = cls.setup(name)
        return cls._loggers[name]

    @classmethod
    def get_module_logger(cls, module_name: str) -> logging.Logger:
        """Child logger for a module, e.g. ``analysis.convergence``."""
        root_name = cls._root_logger.name if cls._root_logger else LOG_NAME
        return logging.getLogger(f"{root_name}.{module_name}")


def setup_logger(name: str = LOG_NAME,
                 level: int = logging.INFO,
                 console: bool = True,
                 debug_file: Optional[Path] = None) -> logging.Logger:
    """Console at ``level``; the optional debug file records everything."""
    return LoggerFactory.setup(
        name=name,
        level=logging.DEBUG,
        log_file=debug_file,
        console=console,
        console_level=level,
    )


def get_logger(name: str = LOG_NAME) -> logging.Logger:
    return LoggerFactory.get_logger(name)


def get_module_logger(module_name: str) -> logging.Logger:
    return LoggerFactory.get_module_logger(module_name)


@contextmanager
def timed_operation(logger: logging.Logger,
                    operation: str,
                    level: int = logging.DEBUG):
    """
    Log how long a block takes.

    Example:
        with timed_operation(logger, "dispersion series"):
            dispersion_series(panel)
    """
    start = time.time()
    logger.log(level, f"{operation} ...")
    try:
        yield
    finally:
        logger.log(level, f"{operation} took {time.time() - start:.3f}s")


class PipelineLogger:
    """Banners and one-line regression results for scenario runs."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def banner(self, title: str, char: str = "═", width: int = 60) -> None:
        self.logger.info(char * width)
        self.logger.info(title.center(width))
        self.logger.info(char * width)

    def regression(self, label: str, result: Any) -> None:
        self.logger.info(
            f"  {label:<10} slope={result.slope:+.6f} "
            f"p={result.p_value:.4f} → {result.classification.value}"
        )

    def step(self, message: str, status: str = "info") -> None:
        icons = {"info": "•", "done": "✓", "skip": "⊘", "warn": "⚡", "error": "✗"}
        self.logger.info(f"  {icons.get(status, '•')} {message}")


__all__ = [
    'setup_logger',
    'get_logger',
    'get_module_logger',
    'LoggerFactory',
    'ProgressLogger',
    'PipelineLogger',
    'timed_operation',
    'LOG_NAME',
]
