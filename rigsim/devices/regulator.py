"""Pressure regulator: clamps downstream pressure to a setpoint."""

from __future__ import annotations

from typing import Any

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import Device, DeviceRole, PneumaticNode


class PressureRegulator(Device, PneumaticNode):
    """Pressure-reducing regulator with inlet ``i`` and outlet ``o``.

    Args:
        device_id: Device id (terminal prefix).
        set_pressure: Initial setpoint [bar].
        max_setpoint: Upper limit of the hand wheel [bar].
    """

    role = DeviceRole.REGULATOR
    terminal_layout = ((TerminalKind.PNEUMATIC, "i"), (TerminalKind.PNEUMATIC, "o"))

    def __init__(self, device_id: str = "pRe", set_pressure: float = 0.0, max_setpoint: float = 50.0, name: str = "Pressure regulator"):
        super().__init__(device_id, name)
        self.max_setpoint = float(max_setpoint)
        self.set_pressure = self._clamp(set_pressure)
        self.input_pressure = 0.0
        self.output_pressure = 0.0

    def _clamp(self, value: float) -> float:
        return max(0.0, min(self.max_setpoint, float(value)))

    def get_value(self) -> float:
        """Last output pressure [bar]."""
        return self.output_pressure

    def set_value(self, input_pressure: float) -> None:
        self.input_pressure = float(input_pressure)
        self.update()

    def set_setpoint(self, pressure: float) -> None:
        self.set_pressure = self._clamp(pressure)
        self.update()

    def apply_delta(self, delta: float) -> None:
        """Hand-wheel nudge; one wheel notch (0.01) moves the setpoint 0.05 bar."""
        self.set_setpoint(self.set_pressure + delta * 5.0)

    def update(self) -> None:
        self.output_pressure = min(self.input_pressure, self.set_pressure)
        self.is_powered = self.output_pressure > 0

    @property
    def at_setpoint(self) -> bool:
        return self.output_pressure >= self.set_pressure

    def transfer(self, port_id: str, pressure: float) -> list[tuple[str, float]]:
        if port_id != self.pipe("i"):
            return []
        return [(self.pipe("o"), min(pressure, self.set_pressure))]

    def inlet_terminal(self) -> str:
        return self.pipe("i")

    def receive_pressure(self, pressure: float) -> None:
        self.set_value(pressure)

    def snapshot_state(self) -> dict[str, Any]:
        return {"set_pressure": self.set_pressure}

    def restore_state(self, state: dict[str, Any]) -> None:
        if state.get("set_pressure") is not None:
            self.set_setpoint(state["set_pressure"])

    def reset(self) -> None:
        self.set_pressure = 0.0
        self.input_pressure = 0.0
        super().reset()
