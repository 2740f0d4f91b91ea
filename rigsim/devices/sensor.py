"""Pressure transmitter: converts line pressure into a 4–20 mA loop signal.

The transmitter sits in both domains. Its pipe inlet reads the air
network; its two wire terminals sit in series in the DC loop, where the
current it passes is the loop current.
"""

from __future__ import annotations

from typing import Any, Mapping

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import Device, DeviceRole, ElectricalNode, PneumaticNode
from rigsim.utils.constants import (
    LOOP_MIN_MA,
    LOOP_OVERRANGE_MA,
    LOOP_SPAN_MA,
    LOOP_UNDERRANGE_MA,
)
from rigsim.utils.units import bar_to_mpa, current_to_amps


def loop_current_ma(pressure_mpa: float, range_max: float, zero_adj: float = 0.0, span_adj: float = 1.0) -> float:
    """Transmitter output current for a given input pressure.

    Args:
        pressure_mpa: Input pressure [MPa].
        range_max: Upper range value [MPa] (maps to 20 mA).
        zero_adj: Zero trim [MPa].
        span_adj: Span trim (multiplier).

    Returns:
        Loop current [mA], clamped to the under/over-range limits.
    """
    measured = (pressure_mpa + zero_adj) * span_adj
    current = (measured / range_max) * LOOP_SPAN_MA + LOOP_MIN_MA
    return min(max(current, LOOP_UNDERRANGE_MA), LOOP_OVERRANGE_MA)


class PressureTransmitter(Device, ElectricalNode, PneumaticNode):
    """Two-wire pressure transmitter.

    Args:
        device_id: Device id (terminal prefix).
        range_max: Upper range value [MPa].
    """

    role = DeviceRole.SENSOR
    terminal_layout = (
        (TerminalKind.ELECTRICAL, "p"),
        (TerminalKind.ELECTRICAL, "n"),
        (TerminalKind.PNEUMATIC, "i"),
    )

    def __init__(self, device_id: str = "pTr", range_max: float = 1.0, name: str = "Pressure transmitter"):
        super().__init__(device_id, name)
        if range_max <= 0:
            raise ValueError(f"range_max must be positive, got {range_max}")
        self.range_max = float(range_max)
        self.input_pressure = 0.0  # MPa
        self.zero_adj = 0.0
        self.span_adj = 1.0
        self.out_current = 0.0  # mA
        self.display = 0.0  # MPa shown on the LCD

    @property
    def positive(self) -> str:
        return self.wire("p")

    @property
    def negative(self) -> str:
        return self.wire("n")

    def get_value(self) -> float:
        """Output current [mA]; 0 while unpowered."""
        return self.out_current

    def set_value(self, pressure_mpa: float) -> None:
        self.input_pressure = float(pressure_mpa)
        self.update()

    def adjust(self, zero: float | None = None, span: float | None = None) -> None:
        """Trim the zero and/or span pots."""
        if zero is not None:
            self.zero_adj = float(zero)
        if span is not None:
            self.span_adj = float(span)
        self.update()

    def operating_current(self, pressures: Mapping[str, float]) -> float:
        """Loop current [A] the transmitter draws at the pressure in *pressures*.

        Pure with respect to device state, so it can run before any
        device has been written in an update cycle.
        """
        pressure_bar = pressures.get(self.inlet_terminal(), 0.0)
        ma = loop_current_ma(bar_to_mpa(pressure_bar), self.range_max, self.zero_adj, self.span_adj)
        return current_to_amps(ma)

    def update(self) -> None:
        if not self.is_powered:
            self.out_current = 0.0
            self.display = 0.0
            return
        self.out_current = loop_current_ma(self.input_pressure, self.range_max, self.zero_adj, self.span_adj)
        self.display = max(0.0, (self.input_pressure + self.zero_adj) * self.span_adj)

    # -- PneumaticNode --

    def inlet_terminal(self) -> str:
        return self.pipe("i")

    def receive_pressure(self, pressure: float) -> None:
        self.set_value(bar_to_mpa(pressure))

    # -- ElectricalNode --

    def apply_circuit(self, result) -> None:
        self.set_power(result.path_complete)

    def snapshot_state(self) -> dict[str, Any]:
        return {"zero_adj": self.zero_adj, "span_adj": self.span_adj}

    def reset(self) -> None:
        self.zero_adj = 0.0
        self.span_adj = 1.0
        self.input_pressure = 0.0
        super().reset()

    def summary(self) -> dict[str, Any]:
        d = super().summary()
        d["input_MPa"] = self.input_pressure
        d["current_mA"] = self.out_current
        return d
