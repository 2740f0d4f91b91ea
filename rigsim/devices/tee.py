"""Three-port tee splitter."""

from __future__ import annotations

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import Device, DeviceRole, PneumaticNode


class TeeConnector(Device, PneumaticNode):
    role = DeviceRole.TEE
    terminal_layout = (
        (TerminalKind.PNEUMATIC, "l"),
        (TerminalKind.PNEUMATIC, "u"),
        (TerminalKind.PNEUMATIC, "r"),
    )

    def __init__(self, device_id: str = "tCo", name: str = "Tee connector"):
        super().__init__(device_id, name)

    def get_value(self) -> None:
        return None

    def set_value(self, *args) -> None:
        pass

    def transfer(self, port_id: str, pressure: float) -> list[tuple[str, float]]:
        ports = [t.id for t in self.terminals]
        if port_id not in ports:
            return []
        return [(p, pressure) for p in ports if p != port_id]
