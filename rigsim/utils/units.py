"""Unit conversion utilities for rigsim.

Provides a lightweight unit conversion system built on top of pint,
with convenience functions for the rig's pressure and current quantities.
"""

from __future__ import annotations

from functools import lru_cache

import pint

# Module-level unit registry (singleton)
_ureg = pint.UnitRegistry()

Q_ = _ureg.Quantity


def pressure_to_si(value: float, unit: str) -> float:
    """Convert pressure value to Pascals.

    Args:
        value: Numeric pressure value.
        unit: Source unit string (e.g. "bar", "psi", "MPa").

    Returns:
        Pressure in Pa.
    """
    return Q_(value, unit).to("Pa").magnitude


def pressure_from_si(value_pa: float, unit: str) -> float:
    """Convert pressure from Pascals to target unit."""
    return Q_(value_pa, "Pa").to(unit).magnitude


@lru_cache(maxsize=256)
def convert(value: float, from_unit: str, to_unit: str) -> float:
    """General-purpose unit conversion.

    Args:
        value: Numeric value in *from_unit*.
        from_unit: Source unit string.
        to_unit: Target unit string.

    Returns:
        Converted numeric value.
    """
    return Q_(value, from_unit).to(to_unit).magnitude


def bar_to_mpa(value_bar: float) -> float:
    """Convert a gauge reading in bar to the transmitter's MPa scale."""
    return convert(float(value_bar), "bar", "MPa")


def mpa_to_bar(value_mpa: float) -> float:
    return convert(float(value_mpa), "MPa", "bar")


def current_to_amps(value_ma: float) -> float:
    """Convert a loop current in mA to amperes."""
    return convert(float(value_ma), "mA", "A")


def current_to_milliamps(value_a: float) -> float:
    return convert(float(value_a), "A", "mA")


def convert_pressure(value: float, from_unit: str, to_unit: str) -> float:
    """Convert a pressure between any two pint pressure units."""
    return pressure_from_si(pressure_to_si(value, from_unit), to_unit)
