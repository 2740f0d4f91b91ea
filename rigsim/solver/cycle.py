"""Update cycle: the orchestrator that recomputes the rig after any change.

One cycle runs the pneumatic pass, then the electrical pass (the
transmitter's loop current depends on the pressure at its inlet), and only
when both have finished writes the derived values into the devices and
notifies listeners (renderer, procedure checks).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from rigsim.core.state import SimulationState
from rigsim.devices.base import ElectricalNode, PneumaticNode
from rigsim.devices.reservoir import AirReservoir
from rigsim.solver.electrical import ElectricalResult, ElectricalSolver
from rigsim.solver.pneumatic import PneumaticResult, PneumaticSolver
from rigsim.utils.constants import A_TO_MA

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Outputs of one completed update cycle."""

    reason: str = ""
    pneumatic: PneumaticResult = field(default_factory=PneumaticResult)
    electrical: ElectricalResult = field(default_factory=ElectricalResult)

    @property
    def pressures(self) -> dict[str, float]:
        return self.pneumatic.pressures

    @property
    def potentials(self) -> dict[str, float]:
        return self.electrical.potentials

    @property
    def path_complete(self) -> bool:
        return self.electrical.path_complete

    @property
    def loop_current(self) -> float:
        return self.electrical.loop_current


Listener = Callable[[CycleResult], None]


class UpdateCycle:
    """Runs both solvers and publishes their results.

    Args:
        state: The rig state this cycle owns.
        rng: Random generator shared by the leak model.
    """

    def __init__(self, state: SimulationState, rng: np.random.Generator | None = None) -> None:
        self.state = state
        self.pneumatic = PneumaticSolver(rng)
        self.electrical = ElectricalSolver()
        self.last: CycleResult | None = None
        self._busy = False
        self._listeners: list[Listener] = []

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def pressures(self) -> dict[str, float]:
        return dict(self.last.pressures) if self.last else {}

    @property
    def potentials(self) -> dict[str, float]:
        return dict(self.last.potentials) if self.last else {}

    @property
    def path_complete(self) -> bool:
        return self.last.path_complete if self.last else False

    @property
    def loop_current(self) -> float:
        return self.last.loop_current if self.last else 0.0

    def add_listener(self, callback: Listener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def run(self, reason: str = "") -> CycleResult | None:
        """Recompute the whole rig.

        A call made while a cycle is already running is dropped, not
        queued; the next tick brings the rig back in step.

        Args:
            reason: Free-text trigger label, kept on the result for logs.

        Returns:
            The new CycleResult, or None if the call was dropped or a
            solver failed (in which case every device keeps its previous
            values).
        """
        if self._busy:
            logger.debug("Cycle already running, dropped trigger '%s'", reason)
            return None

        self._busy = True
        try:
            try:
                pneumatic = self.pneumatic.solve(self.state)
                electrical = self.electrical.solve(self.state, pneumatic.pressures)
            except Exception:
                logger.exception("Update cycle '%s' failed; keeping previous readings", reason)
                return None

            result = CycleResult(reason, pneumatic, electrical)
            self._publish(result)
            self.last = result
            for callback in list(self._listeners):
                callback(result)
            return result
        finally:
            self._busy = False

    def _publish(self, result: CycleResult) -> None:
        for node in self.state.nodes(PneumaticNode):
            inlet = node.inlet_terminal()
            if inlet is not None:
                node.receive_pressure(result.pneumatic.pressure(inlet))
        for node in self.state.nodes(ElectricalNode):
            node.apply_circuit(result.electrical)
        logger.debug(
            "Cycle '%s': loop %s, %.2f mA",
            result.reason,
            "closed" if result.path_complete else "open",
            result.loop_current * A_TO_MA,
        )

    def tick(self, dt: float) -> CycleResult | None:
        """Advance continuous effects by *dt* seconds, then recompute."""
        for reservoir in self.state.nodes(AirReservoir):
            reservoir.advance(dt)
        return self.run("tick")
