"""Scripted training procedures.

A procedure is a flat list of ``Step`` objects consumed by a single-threaded
``ProcedureRunner``. In demo mode the runner performs every step's action
itself, pausing ``wait`` seconds between steps; in training mode the trainee
acts on the rig and the runner only polls the current step's check.
Cancellation is cooperative: ``stop()`` takes effect between steps.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from rigsim.core.connections import Connection
from rigsim.core.faults import FaultFamily, FaultType
from rigsim.core.terminals import TerminalKind
from rigsim.devices.meters import MeterMode
from rigsim.rig.template import FIVE_POINTS, TRAINING_WIRING, Rig, five_point_setpoints
from rigsim.utils.constants import LOOP_MIN_MA, LOOP_SPAN_MA
from rigsim.utils.units import mpa_to_bar

logger = logging.getLogger(__name__)

CURRENT_TOLERANCE_MA = 0.1
SETPOINT_TOLERANCE_BAR = 0.05


@dataclass
class Step:
    """One instruction of a procedure.

    Args:
        message: Instruction shown to the trainee.
        action: Performs the step (demo mode).
        check: Predicate that is True once the step is done (training mode).
        wait: Pause after the action in demo mode [s].
    """

    message: str
    action: Callable[[], Any]
    check: Callable[[], bool] | None = None
    wait: float = 0.0

    def is_done(self) -> bool:
        return self.check() if self.check is not None else True


class ProcedureRunner:
    """Sequential stepper over a list of steps.

    Args:
        steps: Steps in execution order.
        sleep: Suspension callback used for the explicit waits.
    """

    def __init__(self, steps: Sequence[Step], sleep: Callable[[float], Any] = time.sleep) -> None:
        self.steps = list(steps)
        self._sleep = sleep
        self.index = 0
        self.running = False

    @property
    def current(self) -> Step | None:
        return self.steps[self.index] if self.index < len(self.steps) else None

    @property
    def finished(self) -> bool:
        return self.index >= len(self.steps)

    def step_once(self) -> Step | None:
        """Perform the current step's action and move to the next step."""
        step = self.current
        if step is None:
            return None
        logger.info("Step %d/%d: %s", self.index + 1, len(self.steps), step.message)
        step.action()
        self.index += 1
        return step

    def run_demo(self, on_step: Callable[[int, Step], Any] | None = None) -> int:
        """Perform all remaining steps in order.

        Args:
            on_step: Called with (index, step) after each action, before
                the step's wait.

        Returns:
            Number of steps performed before finishing or being stopped.
        """
        self.running = True
        done = 0
        try:
            while self.running and not self.finished:
                idx = self.index
                step = self.step_once()
                done += 1
                if on_step is not None:
                    on_step(idx, step)
                if step.wait > 0:
                    self._sleep(step.wait)
        finally:
            self.running = False
        return done

    def poll(self) -> bool:
        """Advance past the current step if its check holds (training mode)."""
        step = self.current
        if step is None or not step.is_done():
            return False
        logger.info("Step %d/%d complete", self.index + 1, len(self.steps))
        self.index += 1
        return True

    def stop(self) -> None:
        self.running = False

    def reset(self) -> None:
        self.running = False
        self.index = 0


# --- Shared actions ---


def _ensure(rig: Rig, conn: Connection) -> None:
    if rig.state.graph.find(conn.from_id, conn.to_id) is None:
        rig.connect(conn.from_id, conn.to_id, conn.kind)


def _has(rig: Rig, a: str, b: str) -> bool:
    return rig.state.graph.find(a, b) is not None


def _wire_all(rig: Rig) -> None:
    for conn in TRAINING_WIRING:
        _ensure(rig, conn)


def _set_supply(rig: Rig, on: bool, valve_open: bool | None = None) -> None:
    rig.source.set_value(on)
    if valve_open is not None:
        rig.valve.set_value(valve_open)
    rig.history.record()
    rig.refresh("procedure")


def _set_regulator(rig: Rig, setpoint: float) -> None:
    rig.regulator.set_setpoint(setpoint)
    rig.history.record()
    rig.refresh("procedure")


def _near(value: float, target: float, tol: float) -> bool:
    return abs(value - target) < tol


# --- Procedures ---


def calibration_procedure(rig: Rig, wait: float = 1.0) -> list[Step]:
    """Wire the rig, then check the transmitter at five points of its range."""
    steps = []
    for conn in TRAINING_WIRING:
        kind = "wire" if conn.kind == TerminalKind.ELECTRICAL else "pipe"
        steps.append(
            Step(
                f"Connect {conn.from_id} to {conn.to_id} ({kind})",
                action=lambda c=conn: _ensure(rig, c),
                check=lambda c=conn: _has(rig, c.from_id, c.to_id),
                wait=wait,
            )
        )

    steps.append(
        Step(
            "Switch on the 24 V supply",
            action=lambda: _set_supply(rig, True),
            check=lambda: rig.source.is_on,
            wait=wait,
        )
    )

    setpoints = five_point_setpoints(rig.sensor.range_max)
    for fraction, setpoint in zip(FIVE_POINTS, setpoints):
        expected = LOOP_MIN_MA + fraction * LOOP_SPAN_MA
        if fraction == 0.0:
            message = f"Open the stop valve at 0 bar; the transmitter should pass {expected:.0f} mA"

            def action(sp=setpoint):
                rig.regulator.set_setpoint(sp)
                _set_supply(rig, True, valve_open=True)
        else:
            message = f"Set the regulator to {fraction:g} x range ({setpoint:.2f} bar); expect {expected:.0f} mA"

            def action(sp=setpoint):
                _set_regulator(rig, sp)

        steps.append(
            Step(
                message,
                action=action,
                check=lambda sp=setpoint, ma=expected: (
                    rig.valve.is_open
                    and _near(rig.regulator.set_pressure, sp, SETPOINT_TOLERANCE_BAR)
                    and _near(rig.sensor.get_value(), ma, CURRENT_TOLERANCE_MA)
                ),
                wait=wait,
            )
        )
    return steps


def open_fault_procedure(rig: Rig, wait: float = 1.0) -> list[Step]:
    """Find and repair an open circuit with the multimeter."""
    faults = rig.state.faults

    def inject() -> None:
        rig.inject_random_fault(FaultFamily.OPEN)

    def probe() -> None:
        record = faults.active(FaultFamily.OPEN)
        meter = rig.multimeter
        meter.set_mode(MeterMode.DCV)
        _ensure(rig, Connection.create("muM_wire_com", "dcP_wire_n", TerminalKind.ELECTRICAL))
        _ensure(rig, Connection.create("muM_wire_v", "dcP_wire_p", TerminalKind.ELECTRICAL))
        if record is not None and record.type is FaultType.DEVICE_INTERNAL_OPEN:
            # supply reads fine, move the probes across the transmitter
            rig.disconnect("muM_wire_com", "dcP_wire_n")
            rig.disconnect("muM_wire_v", "dcP_wire_p")
            rig.connect("muM_wire_com", "pTr_wire_n")
            rig.connect("muM_wire_v", "pTr_wire_p")

    def probe_located() -> bool:
        record = faults.active(FaultFamily.OPEN)
        meter = rig.multimeter
        if record is None or not rig.source.is_on or meter.mode != MeterMode.DCV:
            return False
        if record.type is FaultType.WIRE_OPEN:
            on_source = _has(rig, "muM_wire_v", "dcP_wire_p") and _has(rig, "muM_wire_com", "dcP_wire_n")
            return on_source and _near(meter.get_value(), 0.0, 0.5)
        on_sensor = _has(rig, "muM_wire_v", "pTr_wire_p") and _has(rig, "muM_wire_com", "pTr_wire_n")
        return on_sensor and _near(meter.get_value(), rig.source.get_value(), 0.5)

    def repair() -> None:
        rig.source.set_value(False)
        record = faults.active(FaultFamily.OPEN)
        if record is not None:
            if record.type is FaultType.DEVICE_INTERNAL_OPEN:
                faults.repair_device(record.location)
            else:
                faults.repair_terminal(record.location)
        rig.refresh("repair")

    return [
        Step("Wire the loop and the air line", action=lambda: _wire_all(rig), check=rig.is_wired, wait=wait),
        Step(
            "Trigger an open-circuit fault",
            action=inject,
            check=lambda: faults.active(FaultFamily.OPEN) is not None,
            wait=wait,
        ),
        Step(
            "Switch on the supply and open the stop valve; the ammeter reads 0",
            action=lambda: _set_supply(rig, True, valve_open=True),
            check=lambda: rig.source.is_on and rig.valve.is_open and _near(rig.ammeter.get_value(), 0.0, 0.1),
            wait=wait,
        ),
        Step(
            "Close the stop valve",
            action=lambda: _set_supply(rig, True, valve_open=False),
            check=lambda: not rig.valve.is_open,
            wait=wait,
        ),
        Step("Locate the break with the multimeter on DC volts", action=probe, check=probe_located, wait=wait),
        Step(
            "Switch off the supply and repair the break",
            action=repair,
            check=lambda: not rig.source.is_on and faults.active(FaultFamily.OPEN) is None,
            wait=wait,
        ),
        Step(
            "Switch on the supply; with no pressure the loop carries 4 mA",
            action=lambda: _set_supply(rig, True),
            check=lambda: rig.source.is_on and _near(rig.ammeter.get_value(), LOOP_MIN_MA, 0.5),
            wait=wait,
        ),
    ]


def leak_fault_procedure(rig: Rig, wait: float = 1.0) -> list[Step]:
    """Find and repair a leak by comparing the gauge with the transmitter."""
    faults = rig.state.faults
    half_range = mpa_to_bar(0.5 * rig.sensor.range_max)

    def readings_differ(tol: float) -> bool:
        return abs(rig.gauge.get_value() - mpa_to_bar(rig.sensor.display)) > tol

    def repair() -> None:
        record = faults.active(FaultFamily.LEAK)
        if record is not None:
            rig.repair(record.location)

    def no_leaks() -> bool:
        return not any(t.faults.leaking for t in rig.state.registry.of_kind(TerminalKind.PNEUMATIC))

    def restore() -> None:
        rig.regulator.set_setpoint(half_range)
        _set_supply(rig, True, valve_open=True)

    return [
        Step("Wire the loop and the air line", action=lambda: _wire_all(rig), check=rig.is_wired, wait=wait),
        Step(
            "Trigger a leak fault",
            action=lambda: rig.inject_random_fault(FaultFamily.LEAK),
            check=lambda: faults.active(FaultFamily.LEAK) is not None,
            wait=wait,
        ),
        Step(
            "Switch on the supply and open the stop valve; the ammeter reads 4 mA",
            action=lambda: _set_supply(rig, True, valve_open=True),
            check=lambda: rig.source.is_on and rig.valve.is_open and _near(rig.ammeter.get_value(), LOOP_MIN_MA, 0.1),
            wait=wait,
        ),
        Step(
            f"Set the regulator to {half_range:.1f} bar and watch for the leak",
            action=lambda: _set_regulator(rig, half_range),
            check=lambda: _near(rig.regulator.set_pressure, half_range, SETPOINT_TOLERANCE_BAR),
            wait=wait,
        ),
        Step(
            "Compare the gauge with the transmitter to locate the leak",
            action=lambda: rig.refresh("inspect"),
            check=lambda: readings_differ(0.5),
            wait=wait,
        ),
        Step(
            "Switch off the supply and close the stop valve",
            action=lambda: _set_supply(rig, False, valve_open=False),
            check=lambda: not rig.source.is_on and not rig.valve.is_open,
            wait=wait,
        ),
        Step("Repair the leaking fitting", action=repair, check=no_leaks, wait=wait),
        Step(
            "Restore supply and air; the gauge and transmitter agree",
            action=restore,
            check=lambda: (
                rig.source.is_on
                and rig.valve.is_open
                and _near(rig.regulator.set_pressure, half_range, SETPOINT_TOLERANCE_BAR)
                and not readings_differ(0.05)
            ),
            wait=wait,
        ),
    ]


PROCEDURES: dict[str, Callable[[Rig, float], list[Step]]] = {
    "calibration": calibration_procedure,
    "open-fault": open_fault_procedure,
    "leak-fault": leak_fault_procedure,
}
