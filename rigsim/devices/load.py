"""Adjustable resistor used as the series load of the current loop."""

from __future__ import annotations

from typing import Any

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import Device, DeviceRole, ElectricalNode


class AdjustableResistor(Device, ElectricalNode):
    """Adjustable series resistor.

    Args:
        device_id: Device id (terminal prefix).
        resistance: Initial resistance [Ω].
        max_resistance: Upper limit [Ω].
        step_fraction: Knob step as a fraction of ``max_resistance``.
    """

    role = DeviceRole.LOAD
    terminal_layout = ((TerminalKind.ELECTRICAL, "p"), (TerminalKind.ELECTRICAL, "n"))

    def __init__(
        self,
        device_id: str = "pRr",
        resistance: float = 250.0,
        max_resistance: float = 500.0,
        step_fraction: float = 0.10,
        name: str = "Adjustable resistor",
    ):
        super().__init__(device_id, name)
        self.max_resistance = float(max_resistance)
        self.step_fraction = step_fraction
        self.resistance = self._clamp(resistance)
        self._default_resistance = self.resistance

    def _clamp(self, value: float) -> float:
        return max(0.0, min(self.max_resistance, float(value)))

    def get_value(self) -> float:
        """Resistance [Ω]."""
        return self.resistance

    def set_value(self, resistance: float) -> None:
        self.resistance = self._clamp(resistance)

    def step(self, up: bool = True) -> float:
        """Turn the knob one step; returns the new resistance."""
        delta = self.max_resistance * self.step_fraction
        self.set_value(self.resistance + (delta if up else -delta))
        return self.resistance

    def snapshot_state(self) -> dict[str, Any]:
        return {"resistance": self.resistance}

    def restore_state(self, state: dict[str, Any]) -> None:
        if state.get("resistance") is not None:
            self.set_value(state["resistance"])

    def reset(self) -> None:
        self.set_value(self._default_resistance)
