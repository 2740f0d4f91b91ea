"""Pressure diffusion through the air network.

Breadth-first propagation seeded at every reservoir outlet. Each pipe
terminal is written once per solve: the first path to reach it wins, and
since connections are scanned in insertion order, so does the tie-break
between competing paths. Device ports transform the arriving pressure
(tee, valve, regulator); end devices (gauge, transmitter) only receive.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

import numpy as np

from rigsim.core.state import SimulationState
from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import PneumaticNode
from rigsim.utils.constants import LEAK_LOSS_MAX, LEAK_LOSS_MIN

logger = logging.getLogger(__name__)


@dataclass
class PneumaticResult:
    """Terminal pressures [bar]; unreached terminals are absent."""

    pressures: dict[str, float] = field(default_factory=dict)

    def pressure(self, term_id: str) -> float:
        return self.pressures.get(term_id, 0.0)

    def reached(self, term_id: str) -> bool:
        return term_id in self.pressures


class PneumaticSolver:
    """Stateless pressure solver.

    Args:
        rng: Random generator for leak attenuation. A fresh loss factor is
            drawn for every leaking arrival.
    """

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()

    def leak_factor(self) -> float:
        """Fraction of pressure surviving a leaking port, in [0.70, 0.80]."""
        return 1.0 - float(self.rng.uniform(LEAK_LOSS_MIN, LEAK_LOSS_MAX))

    def solve(self, state: SimulationState) -> PneumaticResult:
        """Propagate reservoir pressure over the pipe connections.

        Args:
            state: Rig state. Nothing in it is modified.

        Returns:
            PneumaticResult mapping every reached pipe terminal to its pressure.
        """
        registry = state.registry
        pressures: dict[str, float] = {}
        queue: deque[str] = deque()

        def reach(term_id: str, value: float) -> bool:
            if term_id in pressures:
                return False
            pressures[term_id] = value
            return True

        for node in state.nodes(PneumaticNode):
            for term_id, value in node.pressure_seeds():
                if reach(term_id, float(value)):
                    queue.append(term_id)

        pipes = state.graph.of_kind(TerminalKind.PNEUMATIC)
        while queue:
            current = queue.popleft()
            value = pressures[current]
            for conn in pipes:
                if not conn.touches(current):
                    continue
                dest = conn.other(current)
                if dest in pressures:
                    continue
                term = registry.get(dest)
                arriving = value
                if term.faults.leaking:
                    arriving = max(0.0, arriving * self.leak_factor())
                reach(dest, arriving)

                owner = state.device(term.owner_device_id)
                if not isinstance(owner, PneumaticNode):
                    continue
                for out_id, out_value in owner.transfer(dest, arriving):
                    if reach(out_id, out_value):
                        queue.append(out_id)

        return PneumaticResult(pressures)
