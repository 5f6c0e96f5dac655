"""
Clockticks series for pma.

The clockticks narrow file draws a time ruler under the other narrow
series: at every multiple of the finest active level between the start
and the end of the run, it emits a zero point and a negative tick whose
depth grows with the coarseness of the local-time boundary it falls on
(midnight deepest, then noon, ...).

Levels are the ``clockticks_level_<i>`` tunables, coarsest first; the
first non-positive level ends the list.  Every level must divide the
level before it, otherwise no ticks are written at all.
"""

from __future__ import annotations

import logging
import time
from typing import TextIO

from pma.config import Parameters
from pma.export import format_timestamp
from pma.model import Schema

logger = logging.getLogger(__name__)


def resolve_levels(levels: list[int]) -> list[int] | None:
    """Return the active levels, or ``None`` when they cannot be used."""
    active: list[int] = []
    for idx, level in enumerate(levels):
        if level <= 0:
            break
        if active and active[-1] % level != 0:
            logger.error(
                "clockticks_level_%d (%d) is not a divisor of clockticks_level_%d (%d), "
                "no clockticks written",
                idx, level, idx - 1, active[-1],
            )
            return None
        active.append(level)
    if not active:
        logger.error("No valid clockticks levels specified, no clockticks written")
        return None
    return active


def _seconds_of_day(timestamp: int) -> int:
    tm = time.localtime(timestamp)
    return tm.tm_hour * 3600 + tm.tm_min * 60 + tm.tm_sec


def tick_points(
    first_timestamp: int,
    last_timestamp: int,
    span: int,
    levels: list[int],
) -> list[tuple[int, int]]:
    """Compute ``(timestamp, height)`` points of the ruler.

    Args:
        first_timestamp: Timestamp of the first data set.
        last_timestamp: Timestamp of the last data set.
        span: Seconds covered by one data set (count * interval).
        levels: Active levels from ``resolve_levels()``.
    """
    step = levels[-1]
    begin = first_timestamp // step * step
    end = ((last_timestamp + span) // step + 1) * step
    points: list[tuple[int, int]] = []
    for timestamp in range(begin, end + 1, step):
        seconds = _seconds_of_day(timestamp)
        for idx, level in enumerate(levels):
            if seconds % level == 0:
                points.append((timestamp, 0))
                points.append((timestamp, 2 * (idx - len(levels))))
                break
    return points


def write_clockticks(
    handle: TextIO,
    parameters: Parameters,
    schema: Schema,
    last_timestamp: int,
) -> int:
    """Write the clockticks header and body to *handle*.

    Returns:
        Number of points written (0 when the levels were rejected).
    """
    levels = resolve_levels(parameters.clockticks_levels)
    if levels is None:
        return 0

    handle.write(
        parameters.header_line(parameters.clockticksfilename, parameters.fullscale) + "\n"
    )
    points = tick_points(
        schema.first_timestamp,
        last_timestamp,
        schema.sample_count * schema.interval,
        levels,
    )
    fmt = parameters.multifiledateformat
    # always space separated, whatever multifiledelimiter says
    for timestamp, height in points:
        handle.write(f"{format_timestamp(timestamp, fmt)} {height}\n")
    logger.info("Clockticks: %d points, levels %s", len(points), levels)
    return len(points)
