"""
Data-set reshaping for pma.

Every input file is a sequence of data sets.  Each data set starts with a
``DATE:`` block holding its epoch timestamp and is followed by one stanza
per declared class.  ``read_data_sets()`` walks them in order, hands each
class stanza to the parser registered for its ``ClassKind`` and calls back
once the data set has been fully reshaped, so the output emitters can
render it before the next data set overwrites the value buffers.

Design: Strategy Pattern -- ``get_stanza_parser()`` picks the reshaper
from the class row layout.
"""

from __future__ import annotations

import logging
from typing import Callable

from pma.model import ClassKind, Schema
from pma.parsers.array import ArrayStanzaParser
from pma.parsers.base import BaseStanzaParser, StanzaResult
from pma.parsers.stanza import DATE_MARKER, StanzaReader
from pma.parsers.vector import VectorStanzaParser

logger = logging.getLogger(__name__)

_PARSER_MAP: dict[ClassKind, type[BaseStanzaParser]] = {
    ClassKind.VECTOR: VectorStanzaParser,
    ClassKind.ARRAY: ArrayStanzaParser,
}


def get_stanza_parser(kind: ClassKind) -> BaseStanzaParser:
    """Return a parser instance for the class row layout *kind*.

    Raises:
        KeyError: If no parser is registered for *kind*.
    """
    parser_cls = _PARSER_MAP[kind]
    logger.debug("Stanza parser for %s classes: %s", kind.name, parser_cls.__name__)
    return parser_cls()


def _read_timestamp(reader: StanzaReader, previous: int) -> int:
    item = reader.read_block_tokens(2)
    if item is not None:
        tokens = item[1]
        if len(tokens) == 1:
            try:
                return int(tokens[0])
            except ValueError:
                pass
    logger.warning(
        "%s:%d: bad date block, reusing previous timestamp %d",
        reader.name, reader.line_number, previous,
    )
    return previous


def read_data_set(reader: StanzaReader, schema: Schema) -> list[StanzaResult]:
    """Reshape the class stanzas following one ``DATE:`` block.

    A class whose stanza cannot be found before end of stream is logged
    and keeps the values of the previous data set.
    """
    results: list[StanzaResult] = []
    for metric_class in schema.classes:
        if not reader.skip_to(metric_class.marker, mandatory=False):
            logger.warning(
                "%s: stanza '%s' not found, class %s not updated",
                reader.name, metric_class.marker, metric_class.name,
            )
            continue
        parser = get_stanza_parser(metric_class.kind)
        results.append(parser.parse(reader, metric_class, schema.sample_count))
    return results


def read_data_sets(
    reader: StanzaReader,
    schema: Schema,
    on_data_set: Callable[[int], None] | None = None,
    timestamp: int | None = None,
) -> tuple[int, int]:
    """Reshape every data set left in *reader*.

    Args:
        reader: Input positioned anywhere before the next ``DATE:`` marker.
        schema: Discovered schema; its buffers are overwritten per data set.
        on_data_set: Called with the data set timestamp after all of its
            class stanzas have been reshaped.
        timestamp: Timestamp to fall back on when the first ``DATE:`` block
            is unreadable.  Defaults to the schema's first timestamp.

    Returns:
        ``(data_sets_read, last_timestamp)``.
    """
    if timestamp is None:
        timestamp = schema.first_timestamp
    data_sets = 0
    while reader.skip_to(DATE_MARKER, mandatory=False):
        timestamp = _read_timestamp(reader, timestamp)
        read_data_set(reader, schema)
        data_sets += 1
        if on_data_set is not None:
            on_data_set(timestamp)

    logger.info("%s: %d data set(s) read", reader.name, data_sets)
    return data_sets, timestamp
