"""
Unit tests for the schema builder (pma.parsers.schema) and the device
registry (pma.parsers.devices).
"""

from __future__ import annotations

import logging

import pytest

from pma.exceptions import DataFormatError, SchemaError, StanzaNotFoundError
from pma.model import NO_DEVICE_NAME, ClassKind
from pma.parsers.schema import (
    build_schema,
    read_first_timestamp,
    read_metadata,
    read_time_values,
)
from tests.conftest import SAMPLE_INPUT, make_reader


# ---------------------------------------------------------------------------
# TIME_VALUES
# ---------------------------------------------------------------------------

class TestTimeValues:

    def test_reads_count_and_interval(self):
        assert read_time_values(make_reader("TIME_VALUES:\n60 5\n\n")) == (60, 5)

    def test_missing_stanza(self):
        with pytest.raises(StanzaNotFoundError):
            read_time_values(make_reader("METADATA:\n"))

    def test_malformed_line(self):
        with pytest.raises(SchemaError, match="bad time values"):
            read_time_values(make_reader("TIME_VALUES:\n60\n"))

    def test_non_numeric(self):
        with pytest.raises(SchemaError, match="sample interval"):
            read_time_values(make_reader("TIME_VALUES:\n60 x\n"))

    def test_no_values(self):
        with pytest.raises(SchemaError, match="no time values"):
            read_time_values(make_reader("TIME_VALUES:\n\n"))


# ---------------------------------------------------------------------------
# METADATA
# ---------------------------------------------------------------------------

class TestMetadata:

    def test_classes_and_metrics(self):
        classes = read_metadata(
            make_reader("METADATA:\nCPU V 1 us sy\nIO Array 3 r w\n\n"), sample_count=5
        )
        assert [c.name for c in classes] == ["CPU", "IO"]
        assert classes[0].kind is ClassKind.VECTOR
        assert classes[1].kind is ClassKind.ARRAY
        assert classes[0].start_row == 0
        assert classes[1].start_row == 2
        assert [m.name for m in classes[1].metrics] == ["r", "w"]

    def test_short_line_ignored_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            classes = read_metadata(
                make_reader("METADATA:\nCPU V 1\nMEM V 1 free\n\n"), sample_count=5
            )
        assert [c.name for c in classes] == ["MEM"]
        assert "bad class 'CPU' metadata" in caplog.text

    def test_bad_type_flag(self):
        with pytest.raises(SchemaError, match="bad type"):
            read_metadata(make_reader("METADATA:\nCPU X 1 us\n"), sample_count=5)

    @pytest.mark.parametrize("start", ["0", "6"])
    def test_start_row_out_of_range(self, start):
        with pytest.raises(SchemaError, match="bad start row"):
            read_metadata(make_reader(f"METADATA:\nCPU V {start} us\n"), sample_count=5)

    def test_duplicate_metric_across_classes(self):
        text = "METADATA:\nCPU V 1 us sy\nIO A 1 r us\n"
        with pytest.raises(SchemaError, match="duplicate metric 'us'"):
            read_metadata(make_reader(text), sample_count=5)

    def test_duplicate_class(self):
        text = "METADATA:\nCPU V 1 us\nCPU V 1 sy\n"
        with pytest.raises(SchemaError, match="duplicate class 'CPU'"):
            read_metadata(make_reader(text), sample_count=5)


# ---------------------------------------------------------------------------
# First DATE block
# ---------------------------------------------------------------------------

class TestFirstTimestamp:

    def test_single_timestamp(self):
        assert read_first_timestamp(make_reader("DATE:\n1234\n\nCPU:\n")) == 1234

    def test_block_ends_at_marker(self):
        reader = make_reader("DATE:\n1234\nCPU:\n1 2\n")
        assert read_first_timestamp(reader) == 1234
        assert reader.skip_to("CPU:")

    def test_two_timestamps_rejected(self):
        with pytest.raises(SchemaError, match="set 2 times"):
            read_first_timestamp(make_reader("DATE:\n1\n2\n\n"))

    def test_no_timestamp_rejected(self):
        with pytest.raises(SchemaError, match="set 0 times"):
            read_first_timestamp(make_reader("DATE:\n\n"))


# ---------------------------------------------------------------------------
# Full schema + device discovery
# ---------------------------------------------------------------------------

class TestBuildSchema:

    def test_sample_schema(self):
        reader = make_reader(SAMPLE_INPUT)
        schema = build_schema(reader)

        assert schema.sample_count == 3
        assert schema.interval == 10
        assert schema.first_timestamp == 1000000
        cpu, io_class = schema.classes
        for metric in cpu.metrics:
            assert [d.name for d in metric.devices] == [NO_DEVICE_NAME]
        for metric in io_class.metrics:
            assert [d.name for d in metric.devices] == ["sda", "sdb"]
            assert all(len(d.values) == 3 for d in metric.devices)
        # Rewound for the aggregation pass
        assert reader.line_number == 0

    def test_aggregates_untouched_by_discovery(self):
        schema = build_schema(make_reader(SAMPLE_INPUT))
        assert all(m.count == 0 for m in schema.metrics())

    def test_missing_class_stanza(self):
        text = "TIME_VALUES:\n1 1\n\nMETADATA:\nCPU V 1 us\n\nDATE:\n5\n\nIO:\n"
        with pytest.raises(StanzaNotFoundError, match="CPU:"):
            build_schema(make_reader(text))

    def test_vector_field_count_mismatch(self):
        text = "TIME_VALUES:\n1 1\n\nMETADATA:\nCPU V 1 us sy\n\nDATE:\n5\n\nCPU:\n1 2 3\n"
        with pytest.raises(DataFormatError, match="2 vector metrics required"):
            build_schema(make_reader(text))

    def test_array_field_count_mismatch(self):
        text = "TIME_VALUES:\n1 1\n\nMETADATA:\nIO A 1 r w\n\nDATE:\n5\n\nIO:\nsda 1\n"
        with pytest.raises(DataFormatError, match="2 array metrics required"):
            build_schema(make_reader(text))

    def test_array_without_devices(self):
        text = "TIME_VALUES:\n1 1\n\nMETADATA:\nIO A 1 r\n\nDATE:\n5\n\nIO:\n\n"
        with pytest.raises(DataFormatError, match="no device rows"):
            build_schema(make_reader(text))
