"""Standard training rig: device set, reference wiring and rig-level actions.

The rig pairs a 24 V current loop (supply, load resistor, pressure
transmitter, ammeter) with an air line (reservoir, stop valve, regulator,
tee, gauge) that feeds the transmitter.
"""

from __future__ import annotations

import logging

import numpy as np

from rigsim.core.config import RigConfig
from rigsim.core.connections import Connection, ConnectionKind
from rigsim.core.faults import FaultFamily, FaultRecord
from rigsim.core.state import SimulationState
from rigsim.devices import (
    AdjustableResistor,
    AirReservoir,
    Ammeter,
    DCSource,
    Multimeter,
    PressureGauge,
    PressureRegulator,
    PressureTransmitter,
    StopValve,
    TeeConnector,
)
from rigsim.rig.history import History
from rigsim.solver.cycle import CycleResult, UpdateCycle
from rigsim.utils.units import mpa_to_bar

logger = logging.getLogger(__name__)

WIRE = ConnectionKind.ELECTRICAL
PIPE = ConnectionKind.PNEUMATIC

TRAINING_WIRING: tuple[Connection, ...] = (
    Connection.create("dcP_wire_p", "pRr_wire_p", WIRE),
    Connection.create("pRr_wire_n", "pTr_wire_p", WIRE),
    Connection.create("pTr_wire_n", "aGa_wire_p", WIRE),
    Connection.create("aGa_wire_n", "dcP_wire_n", WIRE),
    Connection.create("caB_pipe_o", "stV_pipe_o", PIPE),
    Connection.create("stV_pipe_i", "pRe_pipe_i", PIPE),
    Connection.create("pRe_pipe_o", "tCo_pipe_l", PIPE),
    Connection.create("tCo_pipe_r", "pGa_pipe_i", PIPE),
    Connection.create("tCo_pipe_u", "pTr_pipe_i", PIPE),
)

FAULT_CANDIDATES: tuple[FaultRecord, ...] = (
    FaultRecord.wire_open("dcP_wire_p"),
    FaultRecord.internal_open("pTr"),
    FaultRecord.leak("pTr_pipe_i"),
    FaultRecord.leak("pGa_pipe_i"),
)

# calibration points as fractions of the transmitter range
FIVE_POINTS = (0.0, 0.25, 0.5, 0.75, 1.0)


class Rig:
    """A built rig: state, update cycle, undo history and RNG.

    Args:
        config: Physical parameters used to build the devices.
        state: Simulation state holding the devices.
    """

    def __init__(self, config: RigConfig, state: SimulationState) -> None:
        self.config = config
        self.state = state
        self.rng = np.random.default_rng(config.seed)
        self.cycle = UpdateCycle(state, self.rng)
        self.history = History(state, on_restore=lambda: self.cycle.run("history"))

    def device(self, device_id: str):
        return self.state.device(device_id)

    @property
    def source(self) -> DCSource:
        return self.state.device("dcP")

    @property
    def sensor(self) -> PressureTransmitter:
        return self.state.device("pTr")

    @property
    def load(self) -> AdjustableResistor:
        return self.state.device("pRr")

    @property
    def ammeter(self) -> Ammeter:
        return self.state.device("aGa")

    @property
    def multimeter(self) -> Multimeter:
        return self.state.device("muM")

    @property
    def reservoir(self) -> AirReservoir:
        return self.state.device("caB")

    @property
    def valve(self) -> StopValve:
        return self.state.device("stV")

    @property
    def regulator(self) -> PressureRegulator:
        return self.state.device("pRe")

    @property
    def gauge(self) -> PressureGauge:
        return self.state.device("pGa")

    def refresh(self, reason: str = "refresh") -> CycleResult | None:
        return self.cycle.run(reason)

    def connect(self, from_id: str, to_id: str, kind: ConnectionKind | str | None = None) -> Connection:
        """Draw a connection, record it for undo and recompute.

        The kind defaults to the kind of *from_id*.

        Raises:
            ConnectionRefused: If the graph refuses the connection.
        """
        if kind is None:
            term = self.state.registry.get(from_id)
            kind = term.kind if term is not None else WIRE
        conn = self.state.graph.add_connection(from_id, to_id, ConnectionKind(kind))
        self.history.record()
        self.cycle.run("connect")
        return conn

    def disconnect(self, from_id: str, to_id: str) -> bool:
        removed = self.state.graph.remove_connection(from_id, to_id)
        if removed:
            self.history.record()
            self.cycle.run("disconnect")
        return removed

    def inject_random_fault(self, family: FaultFamily | str) -> FaultRecord | None:
        record = self.state.faults.inject_random(FaultFamily(family), FAULT_CANDIDATES, self.rng)
        self.cycle.run("fault")
        return record

    def repair(self, terminal_id: str) -> FaultRecord | None:
        """Double-click repair on a terminal; recomputes if anything was fixed."""
        repaired = self.state.faults.repair_terminal(terminal_id)
        if repaired is not None:
            self.cycle.run("repair")
        return repaired

    def is_wired(self) -> bool:
        """True if the connections are exactly the reference wiring."""
        return self.state.graph.matches(TRAINING_WIRING)


def build_training_rig(config: RigConfig | None = None) -> Rig:
    """Create the standard rig with no connections and run a first cycle."""
    config = config or RigConfig()
    devices = [
        DCSource("dcP", voltage=config.source_voltage, max_voltage=config.source_max_voltage),
        PressureTransmitter("pTr", range_max=config.transmitter_range),
        AdjustableResistor("pRr", resistance=config.resistance, max_resistance=config.max_resistance),
        Ammeter("aGa"),
        Multimeter("muM"),
        AirReservoir(
            "caB",
            pressure=config.reservoir_pressure,
            volume=config.reservoir_volume,
            max_pressure=config.reservoir_max_pressure,
        ),
        StopValve("stV"),
        PressureRegulator("pRe", max_setpoint=config.regulator_max),
        TeeConnector("tCo"),
        PressureGauge("pGa", max_pressure=config.gauge_max),
    ]
    rig = Rig(config, SimulationState(devices))
    rig.history.record()
    rig.cycle.run("build")
    return rig


def auto_wire(rig: Rig) -> int:
    """Add every missing reference connection, power up and open the valve.

    Returns:
        Number of connections added.
    """
    graph = rig.state.graph
    added = 0
    for conn in TRAINING_WIRING:
        if graph.find(conn.from_id, conn.to_id) is None:
            graph.add_connection(conn.from_id, conn.to_id, conn.kind)
            added += 1
    rig.source.set_value(True)
    rig.valve.set_value(True)
    rig.history.record()
    rig.cycle.run("auto_wire")
    logger.info("Auto-wired rig (%d connections added)", added)
    return added


def five_point_setpoints(range_mpa: float) -> list[float]:
    """Regulator setpoints [bar] at 0, 25, 50, 75 and 100 % of the range."""
    return [mpa_to_bar(f * range_mpa) for f in FIVE_POINTS]


def step_five(rig: Rig) -> float:
    """Move the regulator to the next five-point setpoint (wrapping around).

    Returns:
        The new setpoint [bar].
    """
    points = five_point_setpoints(rig.sensor.range_max)
    current = rig.regulator.set_pressure
    matches = [i for i, p in enumerate(points) if abs(p - current) < 1e-9]
    nxt = points[(matches[0] + 1) % len(points)] if matches else points[0]
    rig.regulator.set_setpoint(nxt)
    rig.cycle.run("step_five")
    return nxt
