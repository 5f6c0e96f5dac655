"""
pma: Performance Monitor Analyzer.

Reads the self-describing, stanza-based output of a system performance
monitor, discovers its classes, metrics and devices, reshapes every data
set onto dense per-device buffers and emits scaled series that plotting
tools can consume directly.

Public API surface:

- ``analyze(inputs, ...)`` -- run the whole analysis over one or more
  input files and return an ``AnalysisResult`` (schema with run-wide
  aggregates, configuration in force, files written).
- ``load_config(path)`` -- read a configuration file on its own.
- ``read_wide_table(path)`` / ``read_series(path)`` -- load outputs back.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from pma._pipeline import AnalysisResult, run_analysis
from pma.config import Parameters, RunConfig, load_config
from pma.reader import read_series, read_wide_table

__all__ = [
    "analyze",
    "AnalysisResult",
    "Parameters",
    "RunConfig",
    "load_config",
    "read_series",
    "read_wide_table",
]

logger = logging.getLogger(__name__)


def analyze(
    inputs: str | Path | Iterable[str | Path],
    config_path: str | Path | None = None,
    single_file: str | Path | None = None,
    multi_dir: str | Path | None = None,
) -> AnalysisResult:
    """Analyze performance monitor output.

    Args:
        inputs: One input path or an ordered list of them.  The first
            readable input defines the schema for the whole run.
        config_path: Optional configuration file (text or ``.yaml``).
        single_file: Optional wide table output (``.parquet`` for Parquet).
        multi_dir: Optional directory for one narrow file per series.

    Returns:
        An ``AnalysisResult``.

    Raises:
        PmaError: On any fatal input, configuration or output error.
    """
    if isinstance(inputs, (str, Path)):
        inputs = [inputs]
    return run_analysis(
        list(inputs),
        config_path=config_path,
        single_file=single_file,
        multi_dir=multi_dir,
    )
