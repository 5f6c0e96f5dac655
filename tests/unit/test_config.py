"""
Unit tests for config models and file I/O (pma.config).

Tests tunables defaults and conversion, text and YAML configuration
files, scale-line collection, timezone export and the ``-p`` report.
"""

from __future__ import annotations

import os
import time

import pytest

from pma.config import (
    PARAMETER_NAMES,
    Parameters,
    apply_timezone,
    build_config,
    check_parameter_table,
    format_parameter_table,
    load_config,
)
from pma.exceptions import ConfigValidationError


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

class TestParameters:
    """Tests for the tunables model."""

    def test_defaults(self):
        params = Parameters()
        assert params.fullscale == 100.0
        assert params.timezone == ""
        assert params.metricdeviceseparator == "_"
        assert params.singlefiledateformat == "%x %X"
        assert params.singlefiledelimiter == ","
        assert params.multifiledateformat == "%s"
        assert params.multifiledelimiter == " "
        assert params.multifileheaderformat == '"%s|%.1f"'
        assert params.clockticksfilename == "clockticks"
        assert params.clockticks_levels == [86400, 43200, 21600, 3600, 1800, 900, 300, 0]

    def test_lookup_by_configuration_name(self):
        params = Parameters.model_validate({"TZ": "UTC", "clockticks_level_7": "60"})
        assert params.value_of("TZ") == "UTC"
        assert params.clockticks_level_7 == 60

    def test_delimiter_keeps_first_character(self):
        params = Parameters.model_validate({"singlefiledelimiter": "|;"})
        assert params.singlefiledelimiter == "|"

    def test_header_line(self):
        assert Parameters().header_line("cpu_us", 50) == '"cpu_us|50.0"'

    def test_bad_header_format(self):
        params = Parameters.model_validate({"multifileheaderformat": "%d %d"})
        with pytest.raises(ConfigValidationError, match="multifileheaderformat"):
            params.header_line("cpu_us", 50)

    def test_parameter_table_is_consistent(self):
        check_parameter_table()
        assert len(PARAMETER_NAMES) == 17


# ---------------------------------------------------------------------------
# build_config
# ---------------------------------------------------------------------------

class TestBuildConfig:

    def test_tunables_and_scales_split(self):
        config = build_config([
            ("fullscale", "200", 1),
            ("cpu_us", "50", 2),
            ("io_r_sda", "25.5", 3),
        ])
        assert config.parameters.fullscale == 200.0
        assert [(s.name, s.value, s.line) for s in config.scales] == [
            ("cpu_us", "50", 2),
            ("io_r_sda", "25.5", 3),
        ]

    def test_last_tunable_wins(self):
        config = build_config([("fullscale", "200", 1), ("fullscale", "300", 2)])
        assert config.parameters.fullscale == 300.0

    def test_bad_tunable_value_reports_line(self):
        with pytest.raises(ConfigValidationError, match=r"pma.conf:4: .*fullscale"):
            build_config([("fullscale", "lots", 4)], source="pma.conf")

    def test_scale_values_kept_unconverted(self):
        config = build_config([("xgraph_title", "My graph", 2)], source="pma.conf")
        assert [(s.name, s.value, s.line) for s in config.scales] == [
            ("xgraph_title", "My graph", 2),
        ]


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------

class TestLoadConfig:

    def test_text_file(self, tmp_path):
        path = tmp_path / "pma.conf"
        path.write_text(
            "# comment\n"
            "singlefiledelimiter '|'\n"
            "singlefiledateformat '%Y-%m-%d %H:%M'\n"
            "cpu_us 50 # trailing\n"
            "\n"
            "orphan\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.parameters.singlefiledelimiter == "|"
        assert config.parameters.singlefiledateformat == "%Y-%m-%d %H:%M"
        assert [s.name for s in config.scales] == ["cpu_us"]
        assert config.source == str(path)

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "pma.yaml"
        path.write_text("fullscale: 10\ncpu_us: 5\nio_r_sda: 2.5\n", encoding="utf-8")
        config = load_config(path)
        assert config.parameters.fullscale == 10.0
        assert [(s.name, s.value) for s in config.scales] == [("cpu_us", 5.0), ("io_r_sda", 2.5)]

    def test_undecodable_bytes_replaced(self, tmp_path):
        path = tmp_path / "pma.conf"
        path.write_bytes(b"cpu_us 50 # caf\xe9\n")
        config = load_config(path)
        assert [(s.name, s.value) for s in config.scales] == [("cpu_us", "50")]

    def test_undecodable_yaml_bytes_replaced(self, tmp_path):
        path = tmp_path / "pma.yaml"
        path.write_bytes(b"cpu_us: 5 # caf\xe9\n")
        config = load_config(path)
        assert [(s.name, s.value) for s in config.scales] == [("cpu_us", 5)]

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "pma.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="empty"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="Could not open"):
            load_config(tmp_path / "nope.conf")


# ---------------------------------------------------------------------------
# Timezone and report
# ---------------------------------------------------------------------------

class TestTimezoneAndReport:

    def test_apply_timezone(self, monkeypatch):
        monkeypatch.setenv("TZ", "UTC")
        apply_timezone(Parameters.model_validate({"TZ": "EST5EDT"}))
        assert os.environ["TZ"] == "EST5EDT"
        assert time.localtime(0).tm_hour == 19

    def test_empty_timezone_inherits(self, monkeypatch):
        monkeypatch.setenv("TZ", "UTC")
        apply_timezone(Parameters())
        assert os.environ["TZ"] == "UTC"

    def test_parameter_table(self):
        params = Parameters.model_validate({"fullscale": 50})
        report = format_parameter_table(params).splitlines()
        assert report[0].startswith("# Parameter")
        assert len(report) == 2 + len(PARAMETER_NAMES)
        fullscale_row = report[2].split()
        assert fullscale_row[:3] == ["#", "fullscale", "'50.0'"]
        assert fullscale_row[-1] == "'100.0'"
