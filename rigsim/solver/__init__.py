"""Propagation engine: electrical and pneumatic solvers and the update cycle."""

from rigsim.solver.cycle import CycleResult, UpdateCycle
from rigsim.solver.electrical import ElectricalResult, ElectricalSolver, SolverError, UnionFind
from rigsim.solver.pneumatic import PneumaticResult, PneumaticSolver

__all__ = [
    "CycleResult",
    "ElectricalResult",
    "ElectricalSolver",
    "PneumaticResult",
    "PneumaticSolver",
    "SolverError",
    "UnionFind",
    "UpdateCycle",
]
