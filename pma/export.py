"""
Output emitters for pma.

Two independent renderers read the same populated model after every data
set (one ``DATE:`` cycle) has been reshaped:

- ``WideTableWriter``: one delimited table, a ``Time`` column plus one
  column per active series.  Samples before a class start row are empty
  fields.  A path ending in ``.parquet`` is written once at close with
  the pyarrow engine instead of being streamed.
- ``NarrowFileWriter``: one file per active series inside an output
  directory, ``<timestamp><delimiter><value>`` per line, samples before
  the class start row omitted.  It also opens the clockticks file, whose
  body is written at the end of the run (``pma.clockticks``).

Row ``r`` of a data set stamped ``T`` is labelled ``T + (r + 1) * interval``
in local time.  Every value is normalized (``pma.transforms.scale``) and
written with one decimal.  Output files are truncated when opened.
"""

from __future__ import annotations

import logging
import os
import re
import time
from contextlib import ExitStack
from pathlib import Path
from typing import TextIO

import numpy as np
import pandas as pd

from pma.config import Parameters
from pma.exceptions import ExportError
from pma.model import Schema, Series
from pma.transforms.scale import normalize

logger = logging.getLogger(__name__)

TIME_COLUMN = "Time"
VALUE_FORMAT = "%.1f"
MULTI_DIR_MODE = 0o755

_EPOCH_DIRECTIVE = re.compile(r"(?<!%)%s")


def format_timestamp(timestamp: int, fmt: str) -> str:
    """strftime in local time; ``%s`` always means epoch seconds."""
    fmt = _EPOCH_DIRECTIVE.sub(str(int(timestamp)), fmt)
    return time.strftime(fmt, time.localtime(timestamp))


def row_timestamps(schema: Schema, timestamp: int) -> list[int]:
    """Timestamps of every sample row of a data set stamped *timestamp*."""
    return [timestamp + (row + 1) * schema.interval for row in range(schema.sample_count)]


def _open_output(path: Path) -> TextIO:
    try:
        return open(path, "w", encoding="utf-8", newline="")
    except OSError as exc:
        raise ExportError(
            f"Could not create/open file '{path}': {exc.strerror or exc}"
        ) from exc


def prepare_directory(directory: str | Path) -> Path:
    """Create the narrow-output directory if needed and check it is writable.

    Raises:
        ExportError: If the path cannot be created, is not a directory, or
            is not writable.
    """
    path = Path(directory)
    if not path.exists():
        try:
            path.mkdir(mode=MULTI_DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise ExportError(
                f"Could not create/open directory '{path}': {exc.strerror or exc}"
            ) from exc
        logger.info("Created output directory %s", path)
    if not path.is_dir() or not os.access(path, os.W_OK):
        raise ExportError(f"'{path}' is not a writable directory")
    return path


# ---------------------------------------------------------------------------
# Wide table
# ---------------------------------------------------------------------------

class WideTableWriter:
    """Single-table emitter: ``Time`` + one column per active series."""

    def __init__(
        self,
        path: str | Path,
        schema: Schema,
        series: list[Series],
        parameters: Parameters,
    ) -> None:
        self.path = Path(path)
        self.schema = schema
        self.series = series
        self.parameters = parameters
        self.columns = [TIME_COLUMN] + [s.name for s in series]
        self.rows_written = 0
        self._parquet = self.path.suffix.lower() == ".parquet"
        self._frames: list[pd.DataFrame] = []
        self._handle: TextIO | None = None

        if not self._parquet:
            self._handle = _open_output(self.path)
            pd.DataFrame(columns=self.columns).to_csv(
                self._handle,
                sep=parameters.singlefiledelimiter,
                index=False,
                lineterminator="\n",
            )
        logger.info(
            "Wide table %s: %d active series (%s)",
            self.path, len(series), "parquet" if self._parquet else "delimited",
        )

    def build_frame(self, timestamp: int) -> pd.DataFrame:
        """Normalized values of the current data set, one row per sample."""
        fmt = self.parameters.singlefiledateformat
        rows = np.arange(self.schema.sample_count)
        data: dict[int, object] = {
            0: [format_timestamp(ts, fmt) for ts in row_timestamps(self.schema, timestamp)]
        }
        for idx, s in enumerate(self.series, start=1):
            column = normalize(s.device.values, s.device.scale, self.parameters.fullscale)
            data[idx] = np.where(rows < s.metric_class.start_row, np.nan, column)
        frame = pd.DataFrame(data)
        frame.columns = self.columns
        return frame

    def write_cycle(self, timestamp: int) -> None:
        frame = self.build_frame(timestamp)
        self.rows_written += len(frame)
        if self._parquet:
            self._frames.append(frame)
            return
        frame.to_csv(
            self._handle,
            sep=self.parameters.singlefiledelimiter,
            header=False,
            index=False,
            float_format=VALUE_FORMAT,
            na_rep="",
            lineterminator="\n",
        )

    def close(self) -> None:
        if self._parquet:
            if self._frames:
                table = pd.concat(self._frames, ignore_index=True)
            else:
                table = pd.DataFrame(columns=self.columns)
            try:
                table.to_parquet(self.path, index=False, engine="pyarrow")
            except Exception as exc:
                raise ExportError(f"Failed to write {self.path.name} as parquet: {exc}") from exc
        elif self._handle is not None:
            self._handle.close()
        logger.info("Wrote %s (%d rows)", self.path, self.rows_written)


# ---------------------------------------------------------------------------
# Narrow files
# ---------------------------------------------------------------------------

def _check_file_names(names: list[str], clockticks: str) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen or name == clockticks:
            raise ExportError(
                f"Two narrow files would both be named '{name}', aborting"
            )
        seen.add(name)


class NarrowFileWriter:
    """Per-series emitter: one ``<timestamp> <value>`` file per active series."""

    def __init__(
        self,
        directory: str | Path,
        schema: Schema,
        series: list[Series],
        parameters: Parameters,
    ) -> None:
        self.directory = prepare_directory(directory)
        self.schema = schema
        self.series = series
        self.parameters = parameters
        self.handles: dict[str, TextIO] = {}
        _check_file_names([s.name for s in series], parameters.clockticksfilename)

        # an open failing part way closes the files opened before it
        with ExitStack() as stack:
            for s in series:
                handle = stack.enter_context(_open_output(self.directory / s.name))
                self.handles[s.name] = handle
                handle.write(parameters.header_line(s.name, s.device.scale) + "\n")

            self.clockticks_path = self.directory / parameters.clockticksfilename
            self.clockticks_handle = stack.enter_context(_open_output(self.clockticks_path))
            stack.pop_all()
        logger.info("Narrow files in %s: %d active series", self.directory, len(series))

    @property
    def paths(self) -> list[Path]:
        return [self.directory / name for name in self.handles] + [self.clockticks_path]

    def write_cycle(self, timestamp: int) -> None:
        fmt = self.parameters.multifiledateformat
        delimiter = self.parameters.multifiledelimiter
        stamps = [format_timestamp(ts, fmt) for ts in row_timestamps(self.schema, timestamp)]
        for s in self.series:
            start = s.metric_class.start_row
            values = normalize(
                s.device.values[start:], s.device.scale, self.parameters.fullscale
            )
            handle = self.handles[s.name]
            for stamp, value in zip(stamps[start:], values):
                handle.write(f"{stamp}{delimiter}{value:.1f}\n")

    def close(self) -> None:
        for handle in self.handles.values():
            handle.close()
        self.clockticks_handle.close()
        logger.info("Closed %d narrow file(s) in %s", len(self.handles) + 1, self.directory)
