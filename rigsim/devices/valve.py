"""Stop valve: binary pass-through gate in the air network."""

from __future__ import annotations

from typing import Any

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import Device, DeviceRole, PneumaticNode


class StopValve(Device, PneumaticNode):
    """Manual stop valve with ports ``i`` and ``o``.

    The body is symmetric: pressure arriving at either port is forwarded
    to the other one while the valve is open.
    """

    role = DeviceRole.VALVE
    terminal_layout = ((TerminalKind.PNEUMATIC, "i"), (TerminalKind.PNEUMATIC, "o"))

    def __init__(self, device_id: str = "stV", is_open: bool = False, name: str = "Stop valve"):
        super().__init__(device_id, name)
        self.is_open = bool(is_open)

    def get_value(self) -> bool:
        return self.is_open

    def set_value(self, is_open: bool) -> None:
        self.is_open = bool(is_open)

    def toggle(self) -> None:
        self.is_open = not self.is_open

    def transfer(self, port_id: str, pressure: float) -> list[tuple[str, float]]:
        if not self.is_open:
            return []
        opposite = {self.pipe("i"): self.pipe("o"), self.pipe("o"): self.pipe("i")}
        out = opposite.get(port_id)
        return [(out, pressure)] if out else []

    def snapshot_state(self) -> dict[str, Any]:
        return {"is_open": self.is_open}

    def reset(self) -> None:
        self.is_open = False
        super().reset()
