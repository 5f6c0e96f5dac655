"""
Run summary for pma.

The summary is DESCRIPTIVE -- it reports the run-wide aggregates kept on
every metric and device while the data sets were reshaped, whether or not
the series was scaled into an output.

One row per metric, followed (for array classes only) by one row per
device of that metric:

    level   "metric" | "device"
    name    metric name, or <metric><separator><device>
    class   owning class name
    max     largest accepted value (aggregates start at 0.0)
    avg     sum / count, 0.0 when nothing was accepted
    count   number of accepted values
"""

from __future__ import annotations

import logging

import pandas as pd

from pma.model import ClassKind, Schema

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["level", "name", "class", "max", "avg", "count"]

SUMMARY_HEADER = "### Summary Data ################### Max ################# Avg ######### Num"


def _average(total: float, count: int) -> float:
    return total / count if count else 0.0


def build_summary(schema: Schema, separator: str = "_") -> pd.DataFrame:
    """Collect the run-wide aggregates into a DataFrame (``SUMMARY_COLUMNS``)."""
    rows: list[dict] = []
    for metric_class in schema.classes:
        for metric in metric_class.metrics:
            rows.append({
                "level": "metric",
                "name": metric.name,
                "class": metric_class.name,
                "max": metric.max,
                "avg": _average(metric.sum, metric.count),
                "count": metric.count,
            })
            if metric_class.kind is not ClassKind.ARRAY:
                continue
            for device in metric.devices:
                rows.append({
                    "level": "device",
                    "name": f"{metric.name}{separator}{device.name}",
                    "class": metric_class.name,
                    "max": device.max,
                    "avg": _average(device.sum, device.count),
                    "count": device.count,
                })

    df = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    logger.info("Summary built: %d rows", len(df))
    return df


def format_summary(summary: pd.DataFrame) -> str:
    """Render a ``build_summary()`` frame as the fixed-width ``-d`` report."""
    lines = [SUMMARY_HEADER]
    for row in summary.to_dict("records"):
        name, peak, avg, count = row["name"], row["max"], row["avg"], int(row["count"])
        if row["level"] == "metric":
            lines.append(f"# {name:<18}  {peak:18.1f} #  {avg:18.1f} {count:13d}")
        else:
            lines.append(f"## {name:<18} {peak:18.1f} ## {avg:18.1f} {count:13d}")
    return "\n".join(lines)
