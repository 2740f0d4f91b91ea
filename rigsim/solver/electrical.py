"""DC loop solver for rigsim.

Computes terminal potentials for the rig's single current loop:

1. Cluster electrical terminals with a union-find seeded only from wire
   connections (a terminal with no wire has no cluster).
2. Merge the clusters of every device whose bridging predicate holds
   (closed switch, ammeter, multimeter on its mA range). This is a single
   pass: a bridging device only merges clusters that already exist, so
   bridging devices chained without a wire node between them are not
   resolved further.
3. Decide whether source(+) → {sensor, load in series, either order} →
   source(−) forms a closed loop.
4. Inject the source potential and settle the load's voltage drop over a
   fixed number of rounds.

The topology assumed is one source, one series load and one sensor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

import numpy as np

from rigsim.core.state import SimulationState
from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import DeviceRole, ElectricalNode
from rigsim.utils.constants import SETTLEMENT_ROUNDS

logger = logging.getLogger(__name__)


class SolverError(RuntimeError):
    """Raised when the rig lacks a device the solver depends on."""


class UnionFind:
    """Array-backed disjoint-set forest over terminal indices."""

    def __init__(self, n: int) -> None:
        self.parent = np.arange(n, dtype=np.intp)

    def find(self, i: int) -> int:
        parent = self.parent
        while parent[i] != i:
            parent[i] = parent[parent[i]]  # path halving
            i = parent[i]
        return int(i)

    def union(self, i: int, j: int) -> bool:
        ri, rj = self.find(i), self.find(j)
        if ri == rj:
            return False
        self.parent[ri] = rj
        return True


@dataclass
class ElectricalResult:
    """Outcome of one electrical solve.

    ``clusters`` only holds terminals that belong to a cluster; a missing
    entry is the "no cluster" sentinel and forces meter readings to 0.
    """

    potentials: dict[str, float] = field(default_factory=dict)  # V
    clusters: dict[str, int] = field(default_factory=dict)
    path_complete: bool = False
    loop_current: float = 0.0  # A
    source_on: bool = False
    active_clusters: frozenset[int] = frozenset()
    load_terminals: tuple[str, str] | None = None
    load_resistance: float = 0.0  # Ω

    def cluster_of(self, term_id: str) -> int | None:
        return self.clusters.get(term_id)

    def potential(self, term_id: str) -> float:
        return self.potentials.get(term_id, 0.0)

    def same_cluster(self, a: str, b: str) -> bool:
        ca, cb = self.cluster_of(a), self.cluster_of(b)
        return ca is not None and ca == cb

    def probe_voltage(self, hot: str, com: str) -> float:
        """Potential difference between two probe terminals (0 if either floats)."""
        if self.cluster_of(hot) is None or self.cluster_of(com) is None:
            return 0.0
        return self.potential(hot) - self.potential(com)

    def in_active_path(self, a: str, b: str) -> bool:
        """True if both terminals sit on clusters carrying loop current."""
        if not self.path_complete:
            return False
        ca, cb = self.cluster_of(a), self.cluster_of(b)
        return ca is not None and cb is not None and ca in self.active_clusters and cb in self.active_clusters

    def is_across_load(self, a: str, b: str) -> bool:
        """True if the terminals sit exactly on the load's two distinct clusters."""
        if self.load_terminals is None:
            return False
        lp, ln = (self.cluster_of(t) for t in self.load_terminals)
        if lp is None or ln is None or lp == ln:
            return False
        return {self.cluster_of(a), self.cluster_of(b)} == {lp, ln}


class ElectricalSolver:
    """Stateless DC loop solver.

    Args:
        rounds: Voltage-drop settlement rounds.
    """

    def __init__(self, rounds: int = SETTLEMENT_ROUNDS) -> None:
        self.rounds = rounds

    def cluster(self, state: SimulationState) -> dict[str, int]:
        """Cluster index per electrical terminal (steps 1–2).

        Cluster indices are compact and ordered by first appearance in
        the registry.
        """
        registry = state.registry
        uf = UnionFind(len(registry))
        clustered = np.zeros(len(registry), dtype=bool)

        for conn in state.graph.of_kind(TerminalKind.ELECTRICAL):
            i, j = registry.index_of(conn.from_id), registry.index_of(conn.to_id)
            uf.union(i, j)
            clustered[i] = clustered[j] = True

        for node in state.nodes(ElectricalNode):
            pair = node.bridge_terminals()
            if pair is None:
                continue
            i, j = registry.index_of(pair[0]), registry.index_of(pair[1])
            if clustered[i] and clustered[j]:
                uf.union(i, j)

        roots: dict[int, int] = {}
        clusters: dict[str, int] = {}
        for term in registry.of_kind(TerminalKind.ELECTRICAL):
            idx = registry.index_of(term.id)
            if clustered[idx]:
                clusters[term.id] = roots.setdefault(uf.find(idx), len(roots))
        return clusters

    def solve(self, state: SimulationState, pressures: Mapping[str, float] | None = None) -> ElectricalResult:
        """Solve the loop.

        Args:
            state: Rig state (devices, registry, connections, fault flags).
            pressures: Terminal pressures from the pneumatic pass; the
                sensor's loop current is derived from these.

        Returns:
            ElectricalResult with potentials, completeness and loop current.

        Raises:
            SolverError: If the rig has no source, sensor or load.
        """
        pressures = pressures or {}
        source = state.with_role(DeviceRole.SOURCE)
        sensor = state.with_role(DeviceRole.SENSOR)
        load = state.with_role(DeviceRole.LOAD)
        for role, dev in ((DeviceRole.SOURCE, source), (DeviceRole.SENSOR, sensor), (DeviceRole.LOAD, load)):
            if dev is None:
                raise SolverError(f"Rig has no {role.value} device")

        clusters = self.cluster(state)
        members: dict[int, list[str]] = {}
        for tid, cid in clusters.items():
            members.setdefault(cid, []).append(tid)

        potentials = {tid: 0.0 for tid in state.registry.ids(TerminalKind.ELECTRICAL)}
        src_p, src_n = source.wire("p"), source.wire("n")
        sen_p, sen_n = sensor.wire("p"), sensor.wire("n")
        load_p, load_n = load.wire("p"), load.wire("n")

        result = ElectricalResult(
            potentials=potentials,
            clusters=clusters,
            load_terminals=(load_p, load_n),
            load_resistance=load.get_value(),
        )

        if not source.is_on:
            return result
        result.source_on = True

        c = clusters.get
        pos, neg = c(src_p), c(src_n)
        rails = {pos, neg} - {None}

        def set_cluster(tid: str, volts: float, keep_rails: bool = True) -> None:
            cid = c(tid)
            if cid is None:
                potentials[tid] = volts
                return
            if keep_rails and cid in rails:
                return
            for member in members[cid]:
                potentials[member] = volts

        def reaches(tid: str, rail: int | None) -> bool:
            t = c(tid)
            if t is None or rail is None:
                return False
            return t == rail or (t == c(load_p) and c(load_n) == rail) or (t == c(load_n) and c(load_p) == rail)

        def fully_wired(a: str, b: str) -> bool:
            return c(a) is not None and c(b) is not None and c(a) != c(b)

        loop_terms = (src_p, src_n, sen_p, sen_n, load_p, load_n)
        # terminals that carry loop current: the loop devices plus any series bridge on the path
        path = {c(t) for t in loop_terms} - {None}
        carrying = set(loop_terms)
        for node in state.nodes(ElectricalNode):
            pair = node.bridge_terminals()
            if pair is not None:
                carrying.update(t for t in pair if c(t) in path)
        broken = any(state.registry.get(t).faults.broken for t in carrying)
        closes = (
            reaches(sen_p, pos)
            and reaches(sen_n, neg)
            and fully_wired(sen_p, sen_n)
            and fully_wired(load_p, load_n)
        )
        complete = closes and not broken and not sensor.internal_open and not load.internal_open

        v_out = 0.0 if state.registry.get(src_p).faults.broken else source.get_value()
        set_cluster(src_p, v_out, keep_rails=False)
        set_cluster(src_n, 0.0, keep_rails=False)

        if closes and not broken and sensor.internal_open and not load.internal_open:
            # open inside the sensor: no current, so no drop across the load
            for near, far in ((load_p, load_n), (load_n, load_p)):
                if c(near) == pos:
                    set_cluster(far, v_out)
                elif c(near) == neg:
                    set_cluster(far, 0.0)
            logger.debug("Sensor open: standing voltage %.2f V on loop", v_out)

        if complete:
            current = sensor.operating_current(pressures)
            drop = current * load.get_value()
            for _ in range(self.rounds):
                vp, vn = potentials[load_p], potentials[load_n]
                if vp > 0 and vn == 0:
                    set_cluster(load_n, vp - drop)
                elif vn > 0 and vp == 0:
                    set_cluster(load_p, vn - drop)
                # return leg: sensor(−) sits on the load's upper side when the load is at N
                if c(sen_n) in (c(load_p), c(load_n)) and neg in (c(load_p), c(load_n)):
                    set_cluster(sen_n, drop)

            result.path_complete = True
            result.loop_current = current
            result.active_clusters = frozenset(
                cid for cid in (pos, neg, c(sen_p), c(sen_n), c(load_p), c(load_n)) if cid is not None
            )

        return result
