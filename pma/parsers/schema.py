"""
Schema builder for pma input files.

The first input file of a run describes its own shape:

    TIME_VALUES:
    <count> <interval>

    METADATA:
    <classname> <V|A> <startrow> <metric1> [<metric2> ...]

    DATE:
    <unix-epoch-seconds>

``build_schema()`` reads those stanzas, discovers the devices of every
class from the first data set (see ``pma.parsers.devices``) and rewinds
the stream so the same data can be aggregated afterwards.  The returned
``Schema`` is not resized again once this function returns.
"""

from __future__ import annotations

import logging

from pma.exceptions import SchemaError
from pma.model import ClassKind, Metric, MetricClass, Schema
from pma.parsers.devices import discover_devices
from pma.parsers.stanza import (
    DATE_MARKER,
    METADATA_MARKER,
    TIME_VALUES_MARKER,
    StanzaReader,
)

logger = logging.getLogger(__name__)

NUM_TIME_VALUES = 2
NUM_META_ITEMS = 3  # class name, type flag, start row
MAX_METRICS = 32


def _parse_int(token: str, what: str, reader: StanzaReader) -> int:
    try:
        return int(token)
    except ValueError:
        raise SchemaError(
            f"{reader.name}:{reader.line_number}: bad {what} '{token}', aborting"
        ) from None


def read_time_values(reader: StanzaReader) -> tuple[int, int]:
    """Read the ``TIME_VALUES:`` block and return ``(sample_count, interval)``.

    Raises:
        StanzaNotFoundError: If the stanza is missing.
        SchemaError: If the values line is malformed or absent.
    """
    reader.skip_to(TIME_VALUES_MARKER, mandatory=True)

    values: tuple[int, int] | None = None
    while True:
        item = reader.read_tokens(NUM_TIME_VALUES)
        if item is None:
            break
        line, tokens = item
        if not tokens:
            break
        if len(tokens) != NUM_TIME_VALUES:
            raise SchemaError(
                f"{reader.name}:{reader.line_number}: bad time values "
                f"starting '{line.strip()}', aborting"
            )
        count = _parse_int(tokens[0], "sample count", reader)
        interval = _parse_int(tokens[1], "sample interval", reader)
        values = (count, interval)

    if values is None:
        raise SchemaError(f"{reader.name}: no time values after '{TIME_VALUES_MARKER}'")
    count, interval = values
    if count < 1 or interval < 1:
        raise SchemaError(
            f"{reader.name}: sample count ({count}) and interval ({interval}) "
            "must both be positive"
        )
    logger.info("Time values: %d samples every %d seconds", count, interval)
    return count, interval


def read_metadata(reader: StanzaReader, sample_count: int) -> list[MetricClass]:
    """Read the ``METADATA:`` block into classes and their metrics.

    Each line is ``name type-flag start-row metric...``.  The start row is
    1-based in the file and stored 0-based.  Metric names must be unique
    across every class; the check runs here, before any data stanza is
    read.

    Raises:
        StanzaNotFoundError: If the stanza is missing.
        SchemaError: On a bad type flag, start row or a duplicate name.
    """
    reader.skip_to(METADATA_MARKER, mandatory=True)

    classes: list[MetricClass] = []
    class_names: set[str] = set()
    metric_owner: dict[str, str] = {}

    while True:
        item = reader.read_tokens(NUM_META_ITEMS + MAX_METRICS)
        if item is None:
            break
        tokens = item[1]
        if not tokens:
            break
        if len(tokens) < NUM_META_ITEMS + 1:
            logger.warning(
                "%s:%d: bad class '%s' metadata, ignored",
                reader.name, reader.line_number, tokens[0],
            )
            continue

        name, type_flag, start_token = tokens[:NUM_META_ITEMS]
        # Only the first character of the flag is significant.
        try:
            kind = ClassKind(type_flag[0])
        except ValueError:
            raise SchemaError(
                f"{reader.name}:{reader.line_number}: class '{name}': bad type "
                f"'{type_flag}': must be '{ClassKind.VECTOR.value}' or "
                f"'{ClassKind.ARRAY.value}', aborting"
            ) from None

        start_row = _parse_int(start_token, f"start row for class '{name}'", reader)
        if start_row < 1 or start_row > sample_count:
            raise SchemaError(
                f"{reader.name}:{reader.line_number}: class '{name}': bad start row "
                f"'{start_row}': must be 1 to {sample_count}, aborting"
            )

        if name in class_names:
            raise SchemaError(
                f"{reader.name}:{reader.line_number}: duplicate class '{name}', aborting"
            )
        class_names.add(name)

        metrics: list[Metric] = []
        for metric_name in tokens[NUM_META_ITEMS:]:
            if metric_name in metric_owner:
                raise SchemaError(
                    f"{reader.name}:{reader.line_number}: duplicate metric "
                    f"'{metric_name}' (class '{name}', first declared in class "
                    f"'{metric_owner[metric_name]}'), aborting"
                )
            metric_owner[metric_name] = name
            metrics.append(Metric(metric_name))

        classes.append(MetricClass(name, kind, start_row - 1, metrics))
        logger.debug(
            "Class '%s': kind=%s start_row=%d metrics=%s",
            name, kind.name, start_row - 1, [m.name for m in metrics],
        )

    if not classes:
        logger.warning("%s: no classes declared in '%s'", reader.name, METADATA_MARKER)
    return classes


def read_first_timestamp(reader: StanzaReader) -> int:
    """Read the first ``DATE:`` block; it must hold exactly one timestamp.

    The block ends at a blank line or at the next stanza marker (which is
    pushed back for the device discovery pass).
    """
    reader.skip_to(DATE_MARKER, mandatory=True)

    timestamps: list[int] = []
    while True:
        item = reader.read_block_tokens()
        if item is None:
            break
        line, tokens = item
        if not tokens:
            break
        if len(tokens) != 1:
            logger.warning(
                "%s:%d: date error '%s'", reader.name, reader.line_number, line.strip()
            )
            continue
        timestamps.append(_parse_int(tokens[0], "timestamp", reader))

    if len(timestamps) != 1:
        raise SchemaError(
            f"{reader.name}:{reader.line_number}: first timestamp was set "
            f"{len(timestamps)} times; must be 1, aborting"
        )
    return timestamps[0]


def build_schema(reader: StanzaReader) -> Schema:
    """Build the run schema from the first input file.

    Steps:
      1. ``TIME_VALUES:`` -> sample count and interval.
      2. ``METADATA:`` -> classes and metrics (duplicates rejected).
      3. First ``DATE:`` -> first timestamp.
      4. First data set -> devices per metric.
      5. Rewind the stream (when possible) for the aggregation pass.

    Returns:
        The populated ``Schema``.
    """
    sample_count, interval = read_time_values(reader)
    classes = read_metadata(reader, sample_count)
    schema = Schema(sample_count=sample_count, interval=interval, classes=classes)
    schema.first_timestamp = read_first_timestamp(reader)

    discover_devices(reader, schema)

    if reader.rewind():
        logger.debug("%s: rewound for the aggregation pass", reader.name)
    else:
        logger.info(
            "%s: stream cannot be rewound; its first data set is skipped", reader.name
        )

    logger.info(
        "Schema: %d classes, %d metrics, %d samples x %ds",
        len(schema.classes), sum(1 for _ in schema.metrics()),
        schema.sample_count, schema.interval,
    )
    return schema
