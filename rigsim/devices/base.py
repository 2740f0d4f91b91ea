"""Base classes for rig devices.

Defines the common device contract (get/set value, power, update,
snapshot) and the two capability mixins the solvers dispatch on:
``ElectricalNode`` (bridging predicate + circuit readings) and
``PneumaticNode`` (pressure seeds, per-port transforms, inlet readings).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any

from rigsim.core.terminals import Terminal, TerminalKind, terminal_id

if TYPE_CHECKING:
    from rigsim.solver.electrical import ElectricalResult


class DeviceRole(Enum):
    """Closed set of device roles on the rig."""

    SOURCE = "source"
    SENSOR = "sensor"
    LOAD = "load"
    AMMETER = "ammeter"
    MULTIMETER = "multimeter"
    SWITCH = "switch"
    GAUGE = "gauge"
    VALVE = "valve"
    REGULATOR = "regulator"
    TEE = "tee"
    RESERVOIR = "reservoir"


class Device(ABC):
    """Abstract base class for a rig device.

    Subclasses list their terminals in ``terminal_layout`` as
    ``(kind, role)`` pairs; terminal objects are created once per device
    and persist for the session.
    """

    role: DeviceRole
    terminal_layout: tuple[tuple[TerminalKind, str], ...] = ()

    def __init__(self, device_id: str, name: str = "") -> None:
        self.device_id = device_id
        self.name = name or device_id
        self.is_powered = False
        self.internal_open = False
        self._terminals = [Terminal.create(device_id, kind, role) for kind, role in self.terminal_layout]

    @property
    def terminals(self) -> list[Terminal]:
        return list(self._terminals)

    def tid(self, kind: TerminalKind, role: str) -> str:
        """Terminal id of one of this device's terminals."""
        return terminal_id(self.device_id, kind, role)

    def wire(self, role: str) -> str:
        return self.tid(TerminalKind.ELECTRICAL, role)

    def pipe(self, role: str) -> str:
        return self.tid(TerminalKind.PNEUMATIC, role)

    @abstractmethod
    def get_value(self) -> Any:
        """Primary value shown or produced by the device."""
        ...

    @abstractmethod
    def set_value(self, *args: Any) -> None:
        """Set the device's primary input."""
        ...

    def set_power(self, on: bool) -> None:
        """Record whether the device currently carries live current/pressure."""
        self.is_powered = bool(on)
        self.update()

    def update(self) -> None:
        """Refresh derived display values from current inputs."""

    def snapshot_state(self) -> dict[str, Any]:
        """User-adjustable state for undo/redo and session files."""
        return {}

    def restore_state(self, state: dict[str, Any]) -> None:
        for key, value in state.items():
            if value is not None and hasattr(self, key):
                setattr(self, key, value)
        self.update()

    def reset(self) -> None:
        """Return to power-on defaults; terminals and their faults are kept."""
        self.is_powered = False
        self.update()

    def summary(self) -> dict[str, Any]:
        """Return a summary dictionary of the device state."""
        return {
            "id": self.device_id,
            "name": self.name,
            "role": self.role.value,
            "value": self.get_value(),
            "powered": self.is_powered,
        }


class ElectricalNode:
    """Capability: the device takes part in the DC circuit."""

    def bridge_terminals(self) -> tuple[str, str] | None:
        """Pair of own terminals currently joined at zero resistance, if any."""
        return None

    def apply_circuit(self, result: ElectricalResult) -> None:
        """Read derived values out of a finished electrical solve."""


class PneumaticNode:
    """Capability: the device takes part in the air network."""

    def pressure_seeds(self) -> list[tuple[str, float]]:
        """(terminal id, pressure) pairs this device injects as a source."""
        return []

    def transfer(self, port_id: str, pressure: float) -> list[tuple[str, float]]:
        """Pressure leaving other ports when *pressure* arrives at *port_id*."""
        return []

    def inlet_terminal(self) -> str | None:
        """Terminal whose pressure this device displays, if any."""
        return None

    def receive_pressure(self, pressure: float) -> None:
        """Accept the pressure computed at ``inlet_terminal()``."""
