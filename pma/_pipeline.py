"""
Internal run orchestration for pma.

Shared by the public ``pma.analyze()`` and the ``pma`` command line so
both go through the same sequence:

  1. First readable input -> schema (time values, classes, devices).
  2. Configuration -> tunables, timezone, scale factors.
  3. Output emitters opened for the active series.
  4. Every input -> data sets reshaped and emitted one by one.
  5. Clockticks written, emitters closed.

This module is **not** part of the public API.
"""

from __future__ import annotations

import logging
import sys
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, TextIO

import pandas as pd

from pma.clockticks import write_clockticks
from pma.config import RunConfig, apply_timezone, load_config
from pma.export import NarrowFileWriter, WideTableWriter
from pma.model import Schema
from pma.parsers.schema import build_schema
from pma.parsers.stanza import STDIN_NAME, StanzaReader
from pma.reshape import read_data_sets
from pma.summary import build_summary
from pma.transforms.scale import apply_scales

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """What a run read and wrote.

    Attributes:
        schema: Discovered schema with run-wide aggregates; ``None`` when
            no input could be opened.
        config: Configuration in force.
        inputs_read: Inputs that were opened and read.
        inputs_skipped: Inputs that could not be opened.
        data_sets: Data sets reshaped across all inputs.
        last_timestamp: Timestamp of the last data set read.
        unknown_names: Configuration names that matched no series.
        written: Output files written.
        clockticks_points: Points in the clockticks file.
    """

    schema: Schema | None
    config: RunConfig
    inputs_read: list[str] = field(default_factory=list)
    inputs_skipped: list[str] = field(default_factory=list)
    data_sets: int = 0
    last_timestamp: int = 0
    unknown_names: list[str] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
    clockticks_points: int = 0

    @property
    def first_timestamp(self) -> int:
        return self.schema.first_timestamp if self.schema is not None else 0

    @property
    def separator(self) -> str:
        return self.config.parameters.metricdeviceseparator

    def summary(self) -> pd.DataFrame:
        """Run-wide aggregates, see ``pma.summary.build_summary``."""
        if self.schema is None:
            return build_summary(Schema(sample_count=0, interval=0), self.separator)
        return build_summary(self.schema, self.separator)


def _open_input(name: str, stdin: TextIO | None) -> StanzaReader | None:
    if name == STDIN_NAME:
        return StanzaReader(stdin if stdin is not None else sys.stdin, STDIN_NAME)
    try:
        stream = open(name, "r", encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.error("Could not open input file '%s', skipping (%s)", name, exc.strerror or exc)
        return None
    return StanzaReader(stream, name)


class _Run:
    """State of one run between the first input and the last."""

    def __init__(
        self,
        config_path: str | Path | None,
        single_file: str | Path | None,
        multi_dir: str | Path | None,
    ) -> None:
        self.config_path = config_path
        self.single_file = single_file
        self.multi_dir = multi_dir
        self.result = AnalysisResult(schema=None, config=RunConfig())
        self.writers: list[WideTableWriter | NarrowFileWriter] = []
        self.narrow: NarrowFileWriter | None = None

    def start(self, reader: StanzaReader, stack: ExitStack) -> None:
        schema = build_schema(reader)
        config = load_config(self.config_path) if self.config_path is not None else RunConfig()
        parameters = config.parameters
        apply_timezone(parameters)

        separator = parameters.metricdeviceseparator
        self.result.schema = schema
        self.result.config = config
        self.result.unknown_names = apply_scales(
            schema, config.scales, separator, source=config.source
        )

        series = schema.active_series(separator)
        if self.single_file is not None:
            wide = WideTableWriter(self.single_file, schema, series, parameters)
            stack.callback(wide.close)
            self.writers.append(wide)
            self.result.written.append(wide.path)
        if self.multi_dir is not None:
            self.narrow = NarrowFileWriter(self.multi_dir, schema, series, parameters)
            stack.callback(self.narrow.close)
            self.writers.append(self.narrow)
            self.result.written.extend(self.narrow.paths)

    def emit(self, timestamp: int) -> None:
        for writer in self.writers:
            writer.write_cycle(timestamp)

    def finish(self) -> None:
        if self.narrow is None or self.result.schema is None:
            return
        self.result.clockticks_points = write_clockticks(
            self.narrow.clockticks_handle,
            self.result.config.parameters,
            self.result.schema,
            self.result.last_timestamp,
        )


def run_analysis(
    inputs: Iterable[str | Path],
    config_path: str | Path | None = None,
    single_file: str | Path | None = None,
    multi_dir: str | Path | None = None,
    stdin: TextIO | None = None,
) -> AnalysisResult:
    """Read every input in order and emit the requested outputs.

    Args:
        inputs: Input paths; ``"-"`` reads standard input.  Inputs that
            cannot be opened are logged and skipped.
        config_path: Optional configuration file (text or YAML).
        single_file: Optional wide table path.
        multi_dir: Optional narrow-file output directory.
        stdin: Stream used for ``"-"`` instead of ``sys.stdin``.

    Returns:
        An ``AnalysisResult``.

    Raises:
        PmaError: On any fatal input, configuration or output error.
    """
    run = _Run(config_path, single_file, multi_dir)
    result = run.result

    with ExitStack() as stack:
        for item in inputs:
            name = str(item)
            reader = _open_input(name, stdin)
            if reader is None:
                result.inputs_skipped.append(name)
                continue

            with reader:
                logger.info("Processing input file '%s'", name)
                if result.schema is None:
                    run.start(reader, stack)
                data_sets, result.last_timestamp = read_data_sets(
                    reader,
                    result.schema,
                    on_data_set=run.emit,
                    timestamp=result.last_timestamp or None,
                )
            result.data_sets += data_sets
            result.inputs_read.append(name)

        run.finish()

    logger.info(
        "Run complete: %d input(s), %d data set(s), %d output file(s)",
        len(result.inputs_read), result.data_sets, len(result.written),
    )
    return result
