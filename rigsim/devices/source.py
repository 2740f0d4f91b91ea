"""Adjustable DC supply for the rig's current loop."""

from __future__ import annotations

from typing import Any

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import Device, DeviceRole, ElectricalNode


class DCSource(Device, ElectricalNode):
    """Fixed/adjustable DC supply with an on/off switch.

    Args:
        device_id: Device id (terminal prefix).
        voltage: Nominal output voltage [V].
        max_voltage: Upper limit of the voltage knob [V].
    """

    role = DeviceRole.SOURCE
    terminal_layout = ((TerminalKind.ELECTRICAL, "p"), (TerminalKind.ELECTRICAL, "n"))

    def __init__(self, device_id: str = "dcP", voltage: float = 24.0, max_voltage: float = 24.0, name: str = "DC power supply"):
        super().__init__(device_id, name)
        self.max_voltage = float(max_voltage)
        self.voltage = self._clamp(voltage)
        self.is_on = False
        self._default_voltage = self.voltage

    def _clamp(self, voltage: float) -> float:
        return max(0.0, min(self.max_voltage, float(voltage)))

    @property
    def positive(self) -> str:
        return self.wire("p")

    @property
    def negative(self) -> str:
        return self.wire("n")

    def get_value(self) -> float:
        """Output voltage: the setpoint when on, 0 when off."""
        return self.voltage if self.is_on else 0.0

    def set_value(self, is_on: bool, voltage: float | None = None) -> None:
        self.is_on = bool(is_on)
        if voltage is not None:
            self.voltage = self._clamp(voltage)
        self.update()

    def toggle(self) -> None:
        self.set_value(not self.is_on)

    def update(self) -> None:
        self.is_powered = self.is_on

    def snapshot_state(self) -> dict[str, Any]:
        return {"is_on": self.is_on, "voltage": self.voltage}

    def restore_state(self, state: dict[str, Any]) -> None:
        self.set_value(state.get("is_on", self.is_on), state.get("voltage"))

    def reset(self) -> None:
        self.set_value(False, self._default_voltage)
