"""
Base stanza parser ABC for pma.

A stanza parser reshapes one class stanza of one data set -- a flat run of
text lines -- onto the (metric, device, sample) cells of the schema and
folds every accepted value into the running aggregates.  The two
subclasses differ only in how a physical line index maps onto a sample
and a device:

- ``VectorStanzaParser``: line ``r`` is sample ``r`` of the single device.
- ``ArrayStanzaParser``: line ``r`` is sample ``r // d``, device
  ``r % d``, for a class with ``d`` discovered devices.

Contract shared by both:
1. ``parse()`` reads from the current position of a ``StanzaReader``
   until a blank line, a stanza marker, or end of stream.
2. Malformed lines are logged and skipped; they still count as a row.
3. A row-count mismatch at the end of the stanza is logged, not raised.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from pma.model import MetricClass
from pma.parsers.stanza import StanzaReader

logger = logging.getLogger(__name__)


@dataclass
class StanzaResult:
    """Outcome of reshaping one class stanza.

    Attributes:
        rows_read: Physical data lines consumed (malformed ones included).
        rows_expected: Lines a complete stanza would have held.
        rows_rejected: Lines skipped because they were malformed.
    """

    rows_read: int
    rows_expected: int
    rows_rejected: int = 0

    @property
    def complete(self) -> bool:
        return self.rows_read == self.rows_expected


class BaseStanzaParser(ABC):
    """Abstract base class for class-stanza reshapers."""

    @abstractmethod
    def parse(
        self,
        reader: StanzaReader,
        metric_class: MetricClass,
        sample_count: int,
    ) -> StanzaResult:
        """Reshape the stanza under the reader's cursor into *metric_class*.

        Args:
            reader: Positioned just after the ``<classname>:`` marker.
            metric_class: The class whose devices receive the values.
            sample_count: Slots per device value buffer.

        Returns:
            A ``StanzaResult`` describing what was consumed.
        """

    @staticmethod
    def _parse_values(tokens: list[str]) -> list[float] | None:
        """Convert value tokens; ``None`` when any of them is not a number."""
        try:
            return [float(token) for token in tokens]
        except ValueError:
            return None

    @staticmethod
    def _report(reader: StanzaReader, metric_class: MetricClass, result: StanzaResult) -> None:
        if not result.complete:
            logger.warning(
                "%s:%d: %s class %s: expected %d rows, not %d",
                reader.name, reader.line_number, metric_class.kind.name.lower(),
                metric_class.name, result.rows_expected, result.rows_read,
            )

    @staticmethod
    def _bad_line(reader: StanzaReader, metric_class: MetricClass, line: str) -> None:
        logger.warning(
            "%s:%d: %s class %s: bad data starting '%s'",
            reader.name, reader.line_number, metric_class.kind.name.lower(),
            metric_class.name, line.strip(),
        )
