"""
Unit tests for the read-side helpers (pma.reader).
"""

from __future__ import annotations

import pandas as pd
import pytest

from pma.reader import read_series, read_wide_table


class TestReadWideTable:

    def test_delimited(self, tmp_path):
        path = tmp_path / "all.csv"
        path.write_text("Time,cpu_us,io_r_sda\n1000010,2.0,\n1000020,6.0,11.0\n", encoding="utf-8")
        df = read_wide_table(path)
        assert list(df.columns) == ["Time", "cpu_us", "io_r_sda"]
        assert df["Time"].iloc[0] == "1000010"
        assert pd.isna(df["io_r_sda"].iloc[0])
        assert df["io_r_sda"].iloc[1] == 11.0

    def test_column_subset_keeps_time(self, tmp_path):
        path = tmp_path / "all.csv"
        path.write_text("Time;a;b\n1;1.0;2.0\n", encoding="utf-8")
        df = read_wide_table(path, delimiter=";", columns=["b"])
        assert list(df.columns) == ["Time", "b"]

    def test_parquet(self, tmp_path):
        path = tmp_path / "all.parquet"
        pd.DataFrame({"Time": ["1", "2"], "a": [1.0, None]}).to_parquet(path, index=False)
        df = read_wide_table(path, columns=["a"])
        assert list(df.columns) == ["Time", "a"]
        assert len(df) == 2

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_wide_table(tmp_path / "nope.csv")


class TestReadSeries:

    def test_default_header(self, tmp_path):
        path = tmp_path / "io_r_sda"
        path.write_text('"io_r_sda|100.0"\n1000020 11.0\n1000030 12.0\n', encoding="utf-8")
        series = read_series(path)
        assert series.name == "io_r_sda"
        assert series.scale == 100.0
        assert list(series.data["time"]) == ["1000020", "1000030"]
        assert list(series.data["value"]) == [11.0, 12.0]

    def test_custom_header(self, tmp_path):
        path = tmp_path / "cpu_us"
        path.write_text("cpu_us scaled\n1 2.0\n", encoding="utf-8")
        series = read_series(path)
        assert series.name == "cpu_us scaled"
        assert series.scale is None
        assert len(series.data) == 1
