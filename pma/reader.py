"""
Read-side helpers for pma outputs.

The counterpart of ``pma.export``: load a wide table back as a DataFrame,
or one narrow series file with its header parsed.  Useful for plotting
and for checking a run without re-parsing the raw monitor data.

- **Parquet** wide tables are read with PyArrow, optionally pruned to a
  subset of columns.
- **Delimited** wide tables are read with pandas; empty fields (samples
  before a class start row) come back as ``NaN``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
import pyarrow.parquet as pq

from pma.export import TIME_COLUMN

logger = logging.getLogger(__name__)

HEADER_SEPARATOR = "|"


@dataclass
class NarrowSeries:
    """A narrow output file loaded back into memory.

    Attributes:
        name: Series name from the header (the raw header line when it
            does not follow the default ``"<name>|<scale>"`` layout).
        scale: Scale factor from the header, ``None`` when not parseable.
        data: Two columns, ``time`` (as written) and ``value``.
    """

    name: str
    scale: float | None
    data: pd.DataFrame


def read_wide_table(
    path: str | Path,
    delimiter: str = ",",
    columns: list[str] | None = None,
) -> pd.DataFrame:
    """Read a wide table written by ``WideTableWriter``.

    Args:
        path: ``.parquet`` file, or a delimited text file.
        delimiter: Field delimiter of a delimited file.
        columns: Optional subset of columns; ``Time`` is always included.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Wide table not found: {path}")
    if columns is not None and TIME_COLUMN not in columns:
        columns = [TIME_COLUMN] + list(columns)

    if path.suffix.lower() == ".parquet":
        df = pq.read_table(path, columns=columns).to_pandas()
    else:
        df = pd.read_csv(path, sep=delimiter, usecols=columns, dtype={TIME_COLUMN: str})
    logger.debug("Read %s: %d rows x %d columns", path, len(df), len(df.columns))
    return df


def _parse_header(line: str) -> tuple[str, float | None]:
    text = line.strip().strip('"')
    name, sep, scale = text.rpartition(HEADER_SEPARATOR)
    if not sep:
        return text, None
    try:
        return name, float(scale)
    except ValueError:
        return text, None


def read_series(path: str | Path, delimiter: str = " ") -> NarrowSeries:
    """Read one narrow file written by ``NarrowFileWriter``.

    The timestamp field must not contain *delimiter*.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        header = f.readline()
    name, scale = _parse_header(header)
    data = pd.read_csv(
        path,
        sep=delimiter,
        skiprows=1,
        header=None,
        names=["time", "value"],
        dtype={"time": str, "value": float},
    )
    logger.debug("Read series %s from %s: %d points", name, path, len(data))
    return NarrowSeries(name=name, scale=scale, data=data)
