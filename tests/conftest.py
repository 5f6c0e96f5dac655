"""
Shared test fixtures and sample data for pma tests.

All sample monitor output lives here as module-level constants so the
expected numbers in the unit and integration tests can be checked
against one place.  Timestamps are formatted with ``%s`` and the
timezone is pinned to UTC so results do not depend on the host.
"""

from __future__ import annotations

import io
import time
from pathlib import Path

import pytest

from pma.parsers.stanza import StanzaReader

# ---------------------------------------------------------------------------
# Sample monitor output
# ---------------------------------------------------------------------------
# 3 samples every 10 seconds, two data sets.
#   CPU: vector class, real data from sample 1 (row 0).
#   IO:  array class (sda, sdb), real data from sample 2 (row 1).
SAMPLE_HEADER = """\
TIME_VALUES:
3 10

METADATA:
CPU V 1 cpu_us cpu_sy
IO A 2 io_r io_w

"""

DATA_SET_1 = """\
DATE:
1000000

CPU:
1.0 2.0
3.0 4.0
5.0 6.0

IO:
sda 10.0 20.0
sdb 30.0 40.0
sda 11.0 21.0
sdb 31.0 41.0
sda 12.0 22.0
sdb 32.0 42.0

"""

DATA_SET_2 = """\
DATE:
1000030
CPU:
7.0 8.0
9.0 10.0
11.0 12.0
IO:
sda 13.0 23.0
sdb 33.0 43.0
sda 14.0 24.0
sdb 34.0 44.0
sda 15.0 25.0
sdb 35.0 45.0
"""

SAMPLE_INPUT = SAMPLE_HEADER + DATA_SET_1 + DATA_SET_2

SAMPLE_CONFIG = """\
# scale factors
cpu_us 50
io_r 100          # every io_r device
io_w_sdb 200
singlefiledateformat %s
"""


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (full runs through analyze() and the CLI)",
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def utc(monkeypatch):
    """Pin local time to UTC for every test."""
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def make_reader(text: str, name: str = "sample.pm") -> StanzaReader:
    """Wrap *text* in a rewindable ``StanzaReader``."""
    return StanzaReader(io.StringIO(text), name)


@pytest.fixture
def sample_input(tmp_path) -> Path:
    path = tmp_path / "sample.pm"
    path.write_text(SAMPLE_INPUT, encoding="utf-8")
    return path


@pytest.fixture
def sample_config(tmp_path) -> Path:
    path = tmp_path / "pma.conf"
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path
