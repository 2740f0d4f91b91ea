"""Simulation state for rigsim.

``SimulationState`` bundles the device set, the terminal registry built
from it, the connection graph and the fault model. It is owned by the
update cycle and passed to each solver call; solvers keep nothing
between calls.
"""

from __future__ import annotations

from typing import Iterable, Iterator, TypeVar

from rigsim.core.connections import ConnectionGraph
from rigsim.core.faults import FaultModel
from rigsim.core.terminals import TerminalRegistry
from rigsim.devices.base import Device, DeviceRole

D = TypeVar("D", bound=Device)


class SimulationState:
    """Devices, terminals, connections and faults of one rig session."""

    def __init__(self, devices: Iterable[Device]) -> None:
        self._devices: dict[str, Device] = {}
        self.registry = TerminalRegistry()
        for device in devices:
            if device.device_id in self._devices:
                raise ValueError(f"Device '{device.device_id}' is already registered")
            self._devices[device.device_id] = device
            for term in device.terminals:
                self.registry.add(term)
        self.graph = ConnectionGraph(self.registry)
        self.faults = FaultModel(self)

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices.values())

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    @property
    def devices(self) -> dict[str, Device]:
        return dict(self._devices)

    def device(self, device_id: str) -> Device:
        """Look up a device by id.

        Raises:
            KeyError: If no such device exists.
        """
        try:
            return self._devices[device_id]
        except KeyError:
            raise KeyError(f"Unknown device: {device_id}") from None

    def with_role(self, role: DeviceRole) -> Device | None:
        """First device with *role*, or None if the rig has none."""
        for device in self._devices.values():
            if device.role == role:
                return device
        return None

    def nodes(self, capability: type[D]) -> list[D]:
        """Devices exposing a capability mixin, in registration order."""
        return [d for d in self._devices.values() if isinstance(d, capability)]

    def reset_devices(self) -> None:
        for device in self._devices.values():
            device.reset()
