"""Compressed-air reservoir: the pressure source of the air network."""

from __future__ import annotations

from typing import Any

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import Device, DeviceRole, PneumaticNode


class AirReservoir(Device, PneumaticNode):
    """Air bottle that depletes while consuming.

    Args:
        device_id: Device id (terminal prefix).
        pressure: Initial pressure [bar].
        volume: Bottle volume [L]; larger bottles drop more slowly.
        max_pressure: Design pressure [bar]; refills are capped here.
    """

    role = DeviceRole.RESERVOIR
    terminal_layout = ((TerminalKind.PNEUMATIC, "o"),)

    def __init__(
        self,
        device_id: str = "caB",
        pressure: float = 50.0,
        volume: float = 50.0,
        max_pressure: float = 100.0,
        name: str = "Air reservoir",
    ):
        super().__init__(device_id, name)
        if volume <= 0:
            raise ValueError(f"volume must be positive, got {volume}")
        self.max_pressure = float(max_pressure)
        self.pressure = min(float(pressure), self.max_pressure)
        self.volume = float(volume)
        self.is_consuming = False
        self.consumption_rate = 0.5  # bar/s at the reference 10 L
        self._initial_pressure = self.pressure

    @property
    def outlet(self) -> str:
        return self.pipe("o")

    def get_value(self) -> float:
        """Bottle pressure [bar]."""
        return self.pressure

    def set_value(self, pressure: float) -> None:
        self.pressure = max(0.0, min(self.max_pressure, float(pressure)))

    def set_consumption(self, active: bool, rate: float = 0.5) -> None:
        """Start or stop drawing air; *rate* weights the consumer size."""
        self.is_consuming = bool(active)
        self.consumption_rate = float(rate)

    def advance(self, dt: float) -> float:
        """Deplete the bottle over *dt* seconds while consuming; returns the drop."""
        if not self.is_consuming or self.pressure <= 0 or dt <= 0:
            return 0.0
        drop = (self.consumption_rate / (self.volume / 10.0)) * dt
        before = self.pressure
        self.pressure = max(0.0, self.pressure - drop)
        return before - self.pressure

    def refill(self, amount: float) -> None:
        self.pressure = min(self.max_pressure, self.pressure + float(amount))

    @property
    def is_low(self) -> bool:
        return self.pressure < 1.5

    def pressure_seeds(self) -> list[tuple[str, float]]:
        return [(self.outlet, self.pressure)]

    def snapshot_state(self) -> dict[str, Any]:
        return {"pressure": self.pressure, "is_consuming": self.is_consuming}

    def reset(self) -> None:
        self.pressure = self._initial_pressure
        self.is_consuming = False
        super().reset()
