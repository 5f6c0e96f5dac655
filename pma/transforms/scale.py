"""
Scale resolver for pma.

A scale factor decides whether a series is emitted at all and how its
values are normalized:

- scale ``0`` (the default): the series is suppressed from every output.
- scale ``s != 0``: every raw value ``v`` is written as ``fullscale / s * v``.

Configured names are matched against the discovered schema:

- a bare metric name applies to every device of that metric;
- ``<metric><separator><device>`` applies to one device of an array
  metric only.

Settings are applied in file order, so the last line naming a device
wins.  Names that match nothing are logged and ignored, whatever their
value; a matched name must carry a number.
"""

from __future__ import annotations

import logging

import numpy as np

from pma.config import ScaleSetting
from pma.exceptions import ConfigValidationError
from pma.model import ClassKind, Device, Schema

logger = logging.getLogger(__name__)


def _scale_value(setting: ScaleSetting, source: str | None) -> float:
    try:
        return float(setting.value)
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(
            f"{source}:{setting.line}: bad scale value '{setting.value}' for '{setting.name}'"
        ) from exc


def _matching_devices(schema: Schema, name: str, separator: str) -> list[Device] | None:
    """Devices named by *name*, or ``None`` when it names no metric or device."""
    matched = False
    devices: list[Device] = []
    for metric_class in schema.classes:
        for metric in metric_class.metrics:
            if name == metric.name:
                devices.extend(metric.devices)
                matched = True
            elif metric_class.kind is ClassKind.ARRAY:
                for device in metric.devices:
                    if name == f"{metric.name}{separator}{device.name}":
                        devices.append(device)
                        matched = True
                        break
    return devices if matched else None


def apply_scales(
    schema: Schema,
    scales: list[ScaleSetting],
    separator: str,
    source: str | None = None,
) -> list[str]:
    """Resolve *scales* onto the devices of *schema*.

    Args:
        schema: Schema with devices already discovered.
        scales: Scale settings in configuration file order.
        separator: The metric/device separator in force.
        source: Configuration file name, used in error messages.

    Returns:
        Names that matched no metric or device (already logged).

    Raises:
        ConfigValidationError: If a name matches a series but its value is
            not a number.
    """
    unknown: list[str] = []
    for setting in scales:
        devices = _matching_devices(schema, setting.name, separator)
        if devices is None:
            logger.warning(
                "Ignoring unknown configuration file parameter '%s' (line %d)",
                setting.name, setting.line,
            )
            unknown.append(setting.name)
            continue
        scale = _scale_value(setting, source)
        for device in devices:
            device.scale = scale
    active = len(schema.active_series(separator))
    logger.info("Scales resolved: %d active series", active)
    return unknown


def normalize(values: np.ndarray, scale: float, fullscale: float) -> np.ndarray:
    """Map raw *values* onto the common full-scale axis."""
    return fullscale / scale * values
