"""
Configuration models and file I/O for pma.

The configuration file is a list of ``<name> <value>`` lines (``#``
comments and single quotes allowed, see ``pma.parsers.tokens``).  A name
is either:

- a **tunable** from the fixed set in ``PARAMETER_NAMES`` (full scale,
  timezone, separators, date formats, clockticks levels, ...), or
- a **series name** -- a metric, or ``<metric><separator><device>`` --
  whose value is that series' scale factor.

Files ending in ``.yaml`` / ``.yml`` hold the same names as a YAML
mapping.

Key models:
- Parameters: one typed field per tunable, keyed by its configuration name.
- ScaleSetting: one scale line, kept in file order for last-write-wins
  resolution against the discovered schema (``pma.transforms.scale``).
- RunConfig: Parameters + ordered ScaleSettings.

Key functions:
- load_config(path) -> RunConfig
- check_parameter_table(): self-check of the declared tunables order.
- format_parameter_table(parameters): the ``-p`` report.
- apply_timezone(parameters): export ``TZ`` before timestamps are formatted.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pma.exceptions import ConfigValidationError
from pma.parsers.tokens import QUOTE_CHAR, split_tokens

logger = logging.getLogger(__name__)

NUM_CLOCKTICKS_LEVELS = 8

# Canonical order of the tunables; reports list them in this order.
PARAMETER_NAMES: tuple[str, ...] = (
    "fullscale",
    "TZ",
    "metricdeviceseparator",
    "singlefiledateformat",
    "singlefiledelimiter",
    "multifiledateformat",
    "multifiledelimiter",
    "multifileheaderformat",
    "clockticksfilename",
) + tuple(f"clockticks_level_{i}" for i in range(NUM_CLOCKTICKS_LEVELS))

_YAML_SUFFIXES = {".yaml", ".yml"}


class Parameters(BaseModel):
    """The tunables table.

    Field names (or aliases) are the names used in the configuration file.
    Character-typed tunables keep only the first character of the value.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    fullscale: float = Field(
        100.0, description="Common full-scale value for every active series"
    )
    timezone: str = Field(
        "", alias="TZ", description="Timezone for formatted timestamps ('' = inherit)"
    )
    metricdeviceseparator: str = Field(
        "_", description="Joins metric and device names of array series"
    )
    singlefiledateformat: str = Field("%x %X", description="strftime format, wide table")
    singlefiledelimiter: str = Field(",", description="Field delimiter, wide table")
    multifiledateformat: str = Field("%s", description="strftime format, narrow files")
    multifiledelimiter: str = Field(" ", description="Field delimiter, narrow files")
    multifileheaderformat: str = Field(
        '"%s|%.1f"', description="printf-style header: series name, scale"
    )
    clockticksfilename: str = Field("clockticks", description="Clockticks narrow file name")
    clockticks_level_0: int = 24 * 60 * 60
    clockticks_level_1: int = 12 * 60 * 60
    clockticks_level_2: int = 6 * 60 * 60
    clockticks_level_3: int = 60 * 60
    clockticks_level_4: int = 30 * 60
    clockticks_level_5: int = 15 * 60
    clockticks_level_6: int = 5 * 60
    clockticks_level_7: int = 0

    @field_validator("singlefiledelimiter", "multifiledelimiter", mode="before")
    @classmethod
    def _first_character(cls, value: Any) -> str:
        value = str(value)
        if not value:
            raise ValueError("a delimiter must be at least one character")
        return value[0]

    @property
    def clockticks_levels(self) -> list[int]:
        return [
            getattr(self, f"clockticks_level_{i}") for i in range(NUM_CLOCKTICKS_LEVELS)
        ]

    def value_of(self, name: str) -> Any:
        """Look a tunable up by its configuration name."""
        return getattr(self, _field_for(name))

    def header_line(self, series_name: str, scale: float) -> str:
        """Render ``multifileheaderformat`` for one narrow file."""
        try:
            return self.multifileheaderformat % (series_name, scale)
        except (TypeError, ValueError) as exc:
            raise ConfigValidationError(
                f"multifileheaderformat '{self.multifileheaderformat}' cannot "
                f"format a name and a scale: {exc}"
            ) from exc


class ScaleSetting(BaseModel):
    """A ``<series-name> <scale>`` configuration line.

    ``value`` is kept as read; it is converted to a number only once the
    name has matched a series (``pma.transforms.scale``).
    """

    name: str
    value: Any
    line: int = 0


class RunConfig(BaseModel):
    """Everything read from the configuration file."""

    parameters: Parameters = Field(default_factory=Parameters)
    scales: list[ScaleSetting] = Field(default_factory=list)
    source: str | None = None


def _field_for(name: str) -> str:
    for field_name, info in Parameters.model_fields.items():
        if (info.alias or field_name) == name:
            return field_name
    raise KeyError(name)


def check_parameter_table() -> None:
    """Verify the tunables model matches ``PARAMETER_NAMES`` in order.

    Raises:
        ConfigValidationError: If a tunable is missing, extra or out of
            order, or the clockticks levels are not numbered 0..7.
    """
    declared = tuple(info.alias or name for name, info in Parameters.model_fields.items())
    for idx, (expected, actual) in enumerate(zip(PARAMETER_NAMES, declared)):
        if expected != actual:
            raise ConfigValidationError(
                f"parameter '{actual}': index is {idx}, but '{expected}' must be "
                f"at index {idx}, aborting"
            )
    if len(declared) != len(PARAMETER_NAMES):
        raise ConfigValidationError(
            f"{len(declared)} parameters declared, {len(PARAMETER_NAMES)} expected, aborting"
        )
    levels = [name for name in declared if name.startswith("clockticks_level_")]
    if levels != [f"clockticks_level_{i}" for i in range(NUM_CLOCKTICKS_LEVELS)]:
        raise ConfigValidationError(f"clockticks levels out of order: {levels}, aborting")


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _read_text_entries(path: Path) -> list[tuple[str, Any, int]]:
    entries: list[tuple[str, Any, int]] = []
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line_number, line in enumerate(f, start=1):
            tokens = split_tokens(line, 2)
            if len(tokens) == 2:
                entries.append((tokens[0], tokens[1], line_number))
            elif tokens:
                logger.warning(
                    "%s:%d: bad configuration file line starting '%s'",
                    path, line_number, tokens[0],
                )
    return entries


def _read_yaml_entries(path: Path) -> list[tuple[str, Any, int]]:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"Config file {path} is not valid YAML: {exc}") from exc
    if raw is None:
        raise ConfigValidationError(f"Config file is empty: {path}")
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"Config file {path} must hold a mapping of names to values"
        )
    return [(str(name), value, idx) for idx, (name, value) in enumerate(raw.items(), start=1)]


def build_config(entries: list[tuple[str, Any, int]], source: str | None = None) -> RunConfig:
    """Split configuration entries into tunables and scale settings.

    Tunables are converted to their declared types here; a later entry
    for the same name overrides an earlier one.  Every other name is kept,
    in order and unconverted, as a ``ScaleSetting`` -- whether it names a
    real series is only known once the schema has been discovered.

    Raises:
        ConfigValidationError: If a tunable value cannot be converted.
    """
    check_parameter_table()
    known = set(PARAMETER_NAMES)
    overrides: dict[str, Any] = {}
    override_lines: dict[str, int] = {}
    scales: list[ScaleSetting] = []

    for name, value, line in entries:
        if name in known:
            overrides[name] = value
            override_lines[name] = line
            continue
        scales.append(ScaleSetting(name=name, value=value, line=line))

    try:
        parameters = Parameters.model_validate(overrides)
    except ValidationError as exc:
        error = exc.errors()[0]
        name = str(error["loc"][0]) if error["loc"] else "?"
        raise ConfigValidationError(
            f"{source}:{override_lines.get(name, 0)}: bad value "
            f"'{overrides.get(name)}' for parameter '{name}': {error['msg']}"
        ) from exc

    return RunConfig(parameters=parameters, scales=scales, source=source)


def load_config(path: str | Path) -> RunConfig:
    """Load a configuration file (text or YAML) into a ``RunConfig``.

    Raises:
        ConfigValidationError: If the file cannot be read or a value
            cannot be converted.
    """
    path = Path(path)
    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            entries = _read_yaml_entries(path)
        else:
            entries = _read_text_entries(path)
    except OSError as exc:
        raise ConfigValidationError(
            f"Could not open configuration file '{path}': {exc.strerror or exc}"
        ) from exc

    config = build_config(entries, source=str(path))
    logger.info(
        "Loaded config from %s: %d parameter line(s), %d scale line(s)",
        path, len(entries) - len(config.scales), len(config.scales),
    )
    return config


def apply_timezone(parameters: Parameters) -> None:
    """Export ``TZ`` so local-time formatting follows the configured zone."""
    if parameters.timezone:
        os.environ["TZ"] = parameters.timezone
        time.tzset()
        logger.info("Timezone set to %s", parameters.timezone)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

def _quoted(value: Any) -> str:
    if isinstance(value, float):
        value = f"{value:.1f}"
    return f"{QUOTE_CHAR}{value}{QUOTE_CHAR}"


def format_parameter_table(parameters: Parameters) -> str:
    """Render the active and default value of every tunable."""
    defaults = Parameters()
    lines = [
        f"# {'Parameter':<25} {'Active Value':<25} {'Default Value':<25}",
        "# " + " ".join(["-" * 25] * 3),
    ]
    for name in PARAMETER_NAMES:
        lines.append(
            f"# {name:<25} {_quoted(parameters.value_of(name)):<25} "
            f"# {_quoted(defaults.value_of(name)):<25}"
        )
    return "\n".join(lines)
