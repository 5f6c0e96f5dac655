"""
In-memory model for pma: classes, metrics, devices and the run schema.

The shape of the data is discovered from the input file itself:

- ``MetricClass``: a named group of metrics sharing one row layout
  (``VECTOR``: one line per sample; ``ARRAY``: one line per device per
  sample).
- ``Metric``: a tracked quantity, globally unique by name.
- ``Device``: one instance a metric is measured on.  Vector metrics own
  exactly one synthetic device named ``"None"``.

Ownership is strictly top-down (schema -> classes -> metrics -> devices)
and devices are only appended while discovery runs.  Each device owns a
dense ``numpy`` buffer of exactly ``sample_count`` slots which is
overwritten in place by every data set read afterwards; running
count/max/sum aggregates are kept for the whole run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

import numpy as np

logger = logging.getLogger(__name__)

NO_DEVICE_NAME = "None"
STANZA_TERMINATOR = ":"


class ClassKind(str, Enum):
    """Row layout of a class, keyed by its METADATA type flag."""

    VECTOR = "V"
    ARRAY = "A"


@dataclass
class Device:
    """One concrete instance of a metric (a disk, a CPU core, ...)."""

    name: str
    values: np.ndarray
    count: int = 0
    max: float = 0.0
    sum: float = 0.0
    scale: float = 0.0

    @classmethod
    def allocate(cls, name: str, sample_count: int) -> Device:
        return cls(name=name, values=np.zeros(sample_count, dtype=float))

    def record(self, sample: int, value: float) -> None:
        self.count += 1
        self.max = max(self.max, value)
        self.sum += value
        self.values[sample] = value

    @property
    def is_active(self) -> bool:
        """A zero scale suppresses the series from every output."""
        return self.scale != 0


@dataclass
class Metric:
    """A named quantity and its devices, in first-appearance order."""

    name: str
    devices: list[Device] = field(default_factory=list)
    count: int = 0
    max: float = 0.0
    sum: float = 0.0

    def add_device(self, name: str, sample_count: int) -> Device:
        """Register *name* unless it is already known (first seen wins)."""
        for device in self.devices:
            if device.name == name:
                return device
        device = Device.allocate(name, sample_count)
        self.devices.append(device)
        logger.debug("Metric '%s': registered device '%s'", self.name, name)
        return device

    def record(self, device: Device, sample: int, value: float) -> None:
        """Fold *value* into the metric and device aggregates."""
        self.count += 1
        self.max = max(self.max, value)
        self.sum += value
        device.record(sample, value)


@dataclass
class MetricClass:
    """A class declared in the METADATA stanza.

    Attributes:
        name: Class name; its data stanza marker is ``"<name>:"``.
        kind: ``ClassKind.VECTOR`` or ``ClassKind.ARRAY``.
        start_row: 0-based sample index at which real data begins.
        metrics: Metrics in declaration order.
    """

    name: str
    kind: ClassKind
    start_row: int
    metrics: list[Metric] = field(default_factory=list)

    @property
    def marker(self) -> str:
        return f"{self.name}{STANZA_TERMINATOR}"

    @property
    def device_count(self) -> int:
        """Devices per metric; every metric of a class shares one device list."""
        if not self.metrics:
            return 0
        return len(self.metrics[-1].devices)


@dataclass(frozen=True)
class Series:
    """One emitted column: a (class, metric, device) triple and its output name."""

    name: str
    metric_class: MetricClass
    metric: Metric
    device: Device


@dataclass
class Schema:
    """Snapshot of the discovered data shape.

    Attributes:
        sample_count: Rows per data stanza (from ``TIME_VALUES:``).
        interval: Seconds between rows (from ``TIME_VALUES:``).
        classes: Classes in declaration order.
        first_timestamp: Epoch seconds of the first ``DATE:`` block.
    """

    sample_count: int
    interval: int
    classes: list[MetricClass] = field(default_factory=list)
    first_timestamp: int = 0

    def metrics(self) -> Iterator[Metric]:
        for metric_class in self.classes:
            yield from metric_class.metrics

    def iter_series(self, separator: str) -> Iterator[Series]:
        """Yield every (class, metric, device) in default output column order.

        Vector metrics are named after the metric alone; array metrics
        are named ``<metric><separator><device>``.
        """
        for metric_class in self.classes:
            for metric in metric_class.metrics:
                for device in metric.devices:
                    if metric_class.kind is ClassKind.VECTOR:
                        name = metric.name
                    else:
                        name = f"{metric.name}{separator}{device.name}"
                    yield Series(name, metric_class, metric, device)
                    if metric_class.kind is ClassKind.VECTOR:
                        break

    def active_series(self, separator: str) -> list[Series]:
        return [s for s in self.iter_series(separator) if s.device.is_active]
