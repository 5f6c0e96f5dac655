"""
Vector (single-row) class stanza parser.

One line per sample, one field per metric:

    CPU:
    1.0 2.0 97.0
    1.5 2.5 96.0
    ...

Line ``r`` of the stanza is sample ``r``.  Samples before the class start
row are placeholders and are not aggregated.
"""

from __future__ import annotations

import logging

from pma.model import MetricClass
from pma.parsers.base import BaseStanzaParser, StanzaResult
from pma.parsers.stanza import StanzaReader

logger = logging.getLogger(__name__)


class VectorStanzaParser(BaseStanzaParser):
    """Parser for ``ClassKind.VECTOR`` stanzas."""

    def parse(
        self,
        reader: StanzaReader,
        metric_class: MetricClass,
        sample_count: int,
    ) -> StanzaResult:
        num_metrics = len(metric_class.metrics)
        result = StanzaResult(rows_read=0, rows_expected=sample_count)

        while True:
            item = reader.read_block_tokens(num_metrics + 1)
            if item is None:
                break
            line, tokens = item
            if not tokens:
                break

            row = result.rows_read
            result.rows_read += 1
            values = self._parse_values(tokens) if len(tokens) == num_metrics else None
            if values is None:
                self._bad_line(reader, metric_class, line)
                result.rows_rejected += 1
                continue
            if row < metric_class.start_row:
                continue
            if row >= sample_count:
                logger.warning(
                    "%s:%d: vector class %s: row %d beyond %d samples, ignored",
                    reader.name, reader.line_number, metric_class.name, row, sample_count,
                )
                continue

            for metric, value in zip(metric_class.metrics, values):
                metric.record(metric.devices[0], row, value)

        self._report(reader, metric_class, result)
        return result
