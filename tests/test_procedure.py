"""Tests for scripted procedures and the five-point stepper."""

import pytest

from rigsim.core.config import RigConfig
from rigsim.core.faults import FaultFamily, FaultRecord
from rigsim.rig.procedure import (
    PROCEDURES,
    ProcedureRunner,
    Step,
    calibration_procedure,
    leak_fault_procedure,
    open_fault_procedure,
)
from rigsim.rig.template import auto_wire, build_training_rig, five_point_setpoints, step_five


def _steps(log, n=3, wait=0.5):
    return [Step(f"step {i}", action=lambda i=i: log.append(i), wait=wait) for i in range(n)]


def _run_all_checked(steps):
    """Run a demo step by step, asserting each check right after its action."""
    runner = ProcedureRunner(steps, sleep=lambda s: None)
    failed = []
    runner.run_demo(on_step=lambda i, s: None if s.is_done() else failed.append(s.message))
    return runner, failed


class TestRunner:
    def test_demo_runs_in_order_with_waits(self):
        log, waits = [], []
        runner = ProcedureRunner(_steps(log), sleep=waits.append)
        assert runner.run_demo() == 3
        assert log == [0, 1, 2]
        assert waits == [0.5, 0.5, 0.5]
        assert runner.finished
        assert not runner.running
        assert runner.current is None

    def test_zero_wait_does_not_sleep(self):
        log, waits = [], []
        ProcedureRunner(_steps(log, wait=0.0), sleep=waits.append).run_demo()
        assert waits == []

    def test_stop_between_steps(self):
        log = []
        runner = ProcedureRunner(_steps(log, n=5), sleep=lambda s: None)
        done = runner.run_demo(on_step=lambda i, s: runner.stop() if i == 1 else None)
        assert done == 2
        assert log == [0, 1]
        assert runner.current.message == "step 2"

    def test_resume_after_stop(self):
        log = []
        runner = ProcedureRunner(_steps(log, n=4), sleep=lambda s: None)
        runner.run_demo(on_step=lambda i, s: runner.stop())
        assert runner.run_demo() == 3
        assert log == [0, 1, 2, 3]

    def test_step_once(self):
        log = []
        runner = ProcedureRunner(_steps(log, n=1))
        assert runner.step_once().message == "step 0"
        assert runner.step_once() is None

    def test_poll_waits_for_check(self):
        flag = {"done": False}
        runner = ProcedureRunner([Step("flip", action=lambda: None, check=lambda: flag["done"])])
        assert not runner.poll()
        assert runner.index == 0
        flag["done"] = True
        assert runner.poll()
        assert runner.finished
        assert not runner.poll()

    def test_step_without_check_is_done(self):
        assert Step("noop", action=lambda: None).is_done()

    def test_reset(self):
        log = []
        runner = ProcedureRunner(_steps(log, n=2), sleep=lambda s: None)
        runner.run_demo()
        runner.reset()
        assert runner.index == 0
        assert not runner.finished


class TestCalibration:
    def test_step_count(self):
        steps = calibration_procedure(build_training_rig(), wait=0.0)
        assert len(steps) == 15

    def test_demo_passes_every_check(self):
        rig = build_training_rig()
        runner, failed = _run_all_checked(calibration_procedure(rig, wait=0.0))
        assert failed == []
        assert runner.finished
        assert rig.is_wired()
        assert rig.sensor.get_value() == pytest.approx(20.0)
        assert rig.ammeter.get_value() == pytest.approx(20.0)

    def test_training_mode_polls_trainee_actions(self):
        rig = build_training_rig()
        steps = calibration_procedure(rig, wait=0.0)
        runner = ProcedureRunner(steps)
        assert not runner.poll()
        rig.connect("dcP_wire_p", "pRr_wire_p")
        assert runner.poll()
        assert runner.index == 1

    def test_wired_by_hand_then_undo(self):
        rig = build_training_rig()
        runner = ProcedureRunner(calibration_procedure(rig, wait=0.0), sleep=lambda s: None)
        runner.step_once()
        assert rig.history.undo()
        assert not runner.steps[0].is_done()


class TestFaultProcedures:
    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_open_fault_demo(self, seed):
        rig = build_training_rig(RigConfig(seed=seed))
        runner, failed = _run_all_checked(open_fault_procedure(rig, wait=0.0))
        assert failed == []
        assert rig.state.faults.active(FaultFamily.OPEN) is None
        assert rig.ammeter.get_value() == pytest.approx(4.0)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_leak_fault_demo(self, seed):
        rig = build_training_rig(RigConfig(seed=seed))
        runner, failed = _run_all_checked(leak_fault_procedure(rig, wait=0.0))
        assert failed == []
        assert rig.state.faults.records == []
        assert rig.gauge.get_value() == pytest.approx(5.0)

    def test_open_fault_probe_moves_to_transmitter(self):
        rig = build_training_rig()
        steps = open_fault_procedure(rig, wait=0.0)
        for step in steps[:4]:
            step.action()
        rig.state.faults.inject(FaultRecord.internal_open("pTr"))
        rig.refresh()
        steps[4].action()
        assert rig.state.graph.find("muM_wire_v", "pTr_wire_p") is not None
        assert rig.state.graph.find("muM_wire_v", "dcP_wire_p") is None
        assert rig.multimeter.get_value() == pytest.approx(24.0)

    def test_registry(self):
        assert set(PROCEDURES) == {"calibration", "open-fault", "leak-fault"}


class TestFivePoint:
    def test_setpoints(self):
        assert five_point_setpoints(1.0) == pytest.approx([0.0, 2.5, 5.0, 7.5, 10.0])
        assert five_point_setpoints(0.6) == pytest.approx([0.0, 1.5, 3.0, 4.5, 6.0])

    def test_step_five_cycles(self):
        rig = build_training_rig()
        auto_wire(rig)
        seen = [step_five(rig) for _ in range(6)]
        assert seen == pytest.approx([2.5, 5.0, 7.5, 10.0, 0.0, 2.5])
        assert rig.ammeter.get_value() == pytest.approx(8.0)

    def test_step_five_from_odd_setpoint(self):
        rig = build_training_rig()
        rig.regulator.set_setpoint(3.3)
        assert step_five(rig) == 0.0

    def test_auto_wire_idempotent(self):
        rig = build_training_rig()
        assert auto_wire(rig) == 9
        assert auto_wire(rig) == 0
        assert rig.is_wired()
        assert rig.source.is_on
        assert rig.valve.is_open
