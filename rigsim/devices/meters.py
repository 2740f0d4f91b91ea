"""Measuring instruments: ammeter, multimeter and pressure gauge.

Meters never drive the circuit; they read the finished electrical or
pneumatic solution. The ammeter (and the multimeter on its mA range)
bridges its terminals, standing for negligible internal resistance.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import Device, DeviceRole, ElectricalNode, PneumaticNode
from rigsim.utils.constants import (
    A_TO_MA,
    CONTINUITY_THRESHOLD_OHMS,
    METER_OVERLOAD,
    OPEN_CIRCUIT_OHMS,
    RES_OVERLOAD,
)


class Ammeter(Device, ElectricalNode):
    """Panel milliammeter in series with the loop.

    Args:
        device_id: Device id (terminal prefix).
        full_scale: Needle full scale [mA].
    """

    role = DeviceRole.AMMETER
    terminal_layout = ((TerminalKind.ELECTRICAL, "p"), (TerminalKind.ELECTRICAL, "n"))

    def __init__(self, device_id: str = "aGa", full_scale: float = 20.0, name: str = "Ammeter"):
        super().__init__(device_id, name)
        self.full_scale = float(full_scale)
        self.value = 0.0  # mA

    def get_value(self) -> float:
        """Displayed current [mA]."""
        return self.value

    def set_value(self, current_ma: float) -> None:
        self.value = max(0.0, min(self.full_scale, float(current_ma)))

    def bridge_terminals(self) -> tuple[str, str]:
        return (self.wire("p"), self.wire("n"))

    def apply_circuit(self, result) -> None:
        live = result.in_active_path(self.wire("p"), self.wire("n"))
        self.is_powered = live
        self.set_value(result.loop_current * A_TO_MA if live else 0.0)


class MeterMode(Enum):
    """Multimeter rotary switch positions."""

    OFF = "off"
    DCV = "dcv"
    RES = "res"
    BEEP = "beep"
    MA = "ma"


class Multimeter(Device, ElectricalNode):
    """Handheld multimeter with voltage, resistance, continuity and mA ranges.

    Terminals: ``v`` (V/Ω jack), ``com`` and ``ma`` (current jack).
    """

    role = DeviceRole.MULTIMETER
    terminal_layout = (
        (TerminalKind.ELECTRICAL, "v"),
        (TerminalKind.ELECTRICAL, "com"),
        (TerminalKind.ELECTRICAL, "ma"),
    )

    def __init__(self, device_id: str = "muM", name: str = "Multimeter"):
        super().__init__(device_id, name)
        self.mode = MeterMode.OFF
        self.value = 0.0
        self.beeping = False

    def get_value(self) -> float:
        """Raw reading in the unit of the current mode (V, Ω or mA)."""
        return self.value

    def set_value(self, value: float) -> None:
        self.value = float(value)
        self.update()

    def set_mode(self, mode: MeterMode | str) -> None:
        """Turn the rotary switch.

        Raises:
            ValueError: If *mode* is not a known position.
        """
        self.mode = MeterMode(mode.lower() if isinstance(mode, str) else mode)
        self.value = 0.0
        self.beeping = False

    def probe_terminals(self) -> tuple[str, str]:
        """(hot, common) jack pair used by the current mode."""
        hot = "ma" if self.mode == MeterMode.MA else "v"
        return (self.wire(hot), self.wire("com"))

    def bridge_terminals(self) -> tuple[str, str] | None:
        if self.mode != MeterMode.MA:
            return None
        return (self.wire("ma"), self.wire("com"))

    def apply_circuit(self, result) -> None:
        hot, com = self.probe_terminals()
        self.beeping = False

        if self.mode == MeterMode.OFF:
            self.value = 0.0
        elif self.mode == MeterMode.DCV:
            self.value = result.probe_voltage(hot, com)
        elif self.mode == MeterMode.MA:
            live = result.in_active_path(hot, com)
            self.is_powered = live
            self.value = result.loop_current * A_TO_MA if live else 0.0
        elif self.mode == MeterMode.RES:
            if result.same_cluster(hot, com):
                self.value = 0.0
            elif result.is_across_load(hot, com) and not result.in_active_path(hot, com):
                self.value = result.load_resistance
            else:
                self.value = OPEN_CIRCUIT_OHMS
        elif self.mode == MeterMode.BEEP:
            if result.same_cluster(hot, com):
                self.value = 0.0
                # continuity is only tested on a dead circuit
                self.beeping = not result.source_on
            else:
                self.value = OPEN_CIRCUIT_OHMS
        self.update()

    def update(self) -> None:
        if self.mode == MeterMode.BEEP and self.value >= CONTINUITY_THRESHOLD_OHMS:
            self.beeping = False

    @property
    def display_text(self) -> str:
        """LCD text including auto-ranged unit, e.g. ``"250.0 Ω"`` or ``"OL"``."""
        if self.mode == MeterMode.OFF:
            return ""
        value = self.value
        if self.mode == MeterMode.RES:
            if value >= 1e6:
                value, unit, precision = value / 1e6, "MΩ", 3
            elif value >= 1e3:
                value, unit, precision = value / 1e3, "kΩ", 2
            else:
                unit, precision = "Ω", 1
            if value > RES_OVERLOAD:
                return "OL"
            return f"{value:.{precision}f} {unit}"

        units = {MeterMode.DCV: ("V", 3), MeterMode.BEEP: ("Ω", 1), MeterMode.MA: ("mA", 2)}
        unit, precision = units[self.mode]
        if value > METER_OVERLOAD:
            return "OL"
        return f"{value:.{precision}f} {unit}"

    def snapshot_state(self) -> dict[str, Any]:
        return {"mode": self.mode.value}

    def restore_state(self, state: dict[str, Any]) -> None:
        if state.get("mode") is not None:
            self.set_mode(state["mode"])

    def reset(self) -> None:
        self.set_mode(MeterMode.OFF)
        super().reset()

    def summary(self) -> dict[str, Any]:
        d = super().summary()
        d["mode"] = self.mode.value
        d["display"] = self.display_text
        return d


class PressureGauge(Device, PneumaticNode):
    """Bourdon gauge at the end of a line.

    Args:
        device_id: Device id (terminal prefix).
        max_pressure: Dial full scale [bar].
    """

    role = DeviceRole.GAUGE
    terminal_layout = ((TerminalKind.PNEUMATIC, "i"),)

    def __init__(self, device_id: str = "pGa", max_pressure: float = 10.0, name: str = "Pressure gauge"):
        super().__init__(device_id, name)
        self.min_pressure = 0.0
        self.max_pressure = float(max_pressure)
        self.value = 0.0

    def get_value(self) -> float:
        """Inlet pressure [bar]."""
        return self.value

    def set_value(self, pressure: float) -> None:
        self.value = float(pressure)
        self.is_powered = self.value > 0

    @property
    def needle(self) -> float:
        """Pressure shown by the needle, pinned to the dial range."""
        return max(self.min_pressure, min(self.max_pressure, self.value))

    def inlet_terminal(self) -> str:
        return self.pipe("i")

    def receive_pressure(self, pressure: float) -> None:
        self.set_value(pressure)
