"""
Array (multi-row) class stanza parser.

One line per device per sample; the first field names the device:

    IO:
    sda 10.0 2.0
    sdb 11.0 3.0
    sda 12.0 2.5
    sdb 13.0 3.5
    ...

Physical line ``r`` maps to sample ``r // d`` and device slot ``r % d``,
where ``d`` is the metric's discovered device count.  The device rows of
every sample must therefore repeat in discovery order; the device name
field is not re-checked against the slot it lands in.
"""

from __future__ import annotations

import logging

from pma.model import MetricClass
from pma.parsers.base import BaseStanzaParser, StanzaResult
from pma.parsers.stanza import StanzaReader

logger = logging.getLogger(__name__)


class ArrayStanzaParser(BaseStanzaParser):
    """Parser for ``ClassKind.ARRAY`` stanzas."""

    def parse(
        self,
        reader: StanzaReader,
        metric_class: MetricClass,
        sample_count: int,
    ) -> StanzaResult:
        num_metrics = len(metric_class.metrics)
        result = StanzaResult(
            rows_read=0,
            rows_expected=sample_count * metric_class.device_count,
        )

        while True:
            item = reader.read_block_tokens(num_metrics + 2)
            if item is None:
                break
            line, tokens = item
            if not tokens:
                break

            row = result.rows_read
            result.rows_read += 1
            values = None
            if len(tokens) == num_metrics + 1:
                values = self._parse_values(tokens[1:])
            if values is None:
                self._bad_line(reader, metric_class, line)
                result.rows_rejected += 1
                continue

            for metric, value in zip(metric_class.metrics, values):
                device_count = len(metric.devices)
                sample = row // device_count
                if sample < metric_class.start_row:
                    # Device counts are shared by the class, so the rest of
                    # the row is before the start row as well.
                    break
                if sample >= sample_count:
                    logger.warning(
                        "%s:%d: array class %s: row %d beyond %d samples, ignored",
                        reader.name, reader.line_number, metric_class.name,
                        row, sample_count,
                    )
                    break
                metric.record(metric.devices[row % device_count], sample, value)

        self._report(reader, metric_class, result)
        return result
