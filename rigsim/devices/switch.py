"""Two-terminal switch that bridges its terminals when closed."""

from __future__ import annotations

from typing import Any

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import Device, DeviceRole, ElectricalNode


class Switch(Device, ElectricalNode):
    role = DeviceRole.SWITCH
    terminal_layout = ((TerminalKind.ELECTRICAL, "1"), (TerminalKind.ELECTRICAL, "2"))

    def __init__(self, device_id: str = "swI", is_open: bool = True, name: str = "Switch"):
        super().__init__(device_id, name)
        self.is_open = bool(is_open)

    def get_value(self) -> bool:
        """True when the contacts are closed."""
        return not self.is_open

    def set_value(self, closed: bool) -> None:
        self.is_open = not closed

    def toggle(self) -> None:
        self.is_open = not self.is_open

    def bridge_terminals(self) -> tuple[str, str] | None:
        if self.is_open:
            return None
        return (self.wire("1"), self.wire("2"))

    def snapshot_state(self) -> dict[str, Any]:
        return {"is_open": self.is_open}

    def reset(self) -> None:
        self.is_open = True
        super().reset()
