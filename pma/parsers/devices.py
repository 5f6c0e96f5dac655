"""
Device registry: discovers device identities from the first data set.

Vector classes carry no real devices; each of their metrics gets one
synthetic ``"None"`` device.  Array classes name a device in the first
field of every data line, and every metric of the class registers the
same device.  Registration is idempotent per metric and keeps
first-appearance order, which is also the order the row reshaper
expects the device rows of every later sample to repeat in.
"""

from __future__ import annotations

import logging

from pma.exceptions import DataFormatError
from pma.model import NO_DEVICE_NAME, ClassKind, MetricClass, Schema
from pma.parsers.stanza import StanzaReader

logger = logging.getLogger(__name__)


def _discover_vector(reader: StanzaReader, metric_class: MetricClass, sample_count: int) -> None:
    num_metrics = len(metric_class.metrics)
    item = reader.read_block_tokens(num_metrics + 1)
    if item is None:
        raise DataFormatError(
            f"{reader.name}: vector class '{metric_class.name}' has no data line"
        )
    line, tokens = item
    if len(tokens) != num_metrics:
        raise DataFormatError(
            f"{reader.name}:{reader.line_number}: bad input line starting "
            f"'{line.strip()}': {num_metrics} vector metrics required, "
            f"found {len(tokens)}, aborting"
        )
    for metric in metric_class.metrics:
        metric.add_device(NO_DEVICE_NAME, sample_count)


def _discover_array(reader: StanzaReader, metric_class: MetricClass, sample_count: int) -> None:
    num_metrics = len(metric_class.metrics)
    while True:
        item = reader.read_block_tokens(num_metrics + 2)
        if item is None:
            break
        line, tokens = item
        if not tokens:
            break
        if len(tokens) != num_metrics + 1:
            raise DataFormatError(
                f"{reader.name}:{reader.line_number}: bad input line starting "
                f"'{line.strip()}': {num_metrics} array metrics required, "
                f"found {len(tokens) - 1}, aborting"
            )
        for metric in metric_class.metrics:
            metric.add_device(tokens[0], sample_count)

    if metric_class.device_count == 0:
        raise DataFormatError(
            f"{reader.name}:{reader.line_number}: array class "
            f"'{metric_class.name}' has no device rows, aborting"
        )


def discover_devices(reader: StanzaReader, schema: Schema) -> None:
    """Register the devices of every class from the next data set.

    Each class stanza is mandatory in the first data set.

    Raises:
        StanzaNotFoundError: If a class stanza is missing.
        DataFormatError: If a data line has the wrong number of fields.
    """
    for metric_class in schema.classes:
        reader.skip_to(metric_class.marker, mandatory=True)
        if metric_class.kind is ClassKind.VECTOR:
            _discover_vector(reader, metric_class, schema.sample_count)
        else:
            _discover_array(reader, metric_class, schema.sample_count)
        logger.info(
            "Class '%s': %d device(s) per metric",
            metric_class.name, metric_class.device_count,
        )
