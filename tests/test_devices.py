"""Tests for the rig device models."""

import pytest

from rigsim.core.state import SimulationState
from rigsim.devices import (
    AdjustableResistor,
    AirReservoir,
    Ammeter,
    DCSource,
    MeterMode,
    Multimeter,
    PressureGauge,
    PressureRegulator,
    PressureTransmitter,
    StopValve,
    Switch,
    TeeConnector,
)
from rigsim.devices.sensor import loop_current_ma


class TestDCSource:
    def test_off_reads_zero(self):
        src = DCSource()
        assert src.get_value() == 0.0
        src.set_value(True)
        assert src.get_value() == pytest.approx(24.0)
        assert src.is_powered

    def test_voltage_clamped(self):
        src = DCSource(max_voltage=24.0)
        src.set_value(True, 30.0)
        assert src.voltage == pytest.approx(24.0)
        src.set_value(True, -5.0)
        assert src.voltage == 0.0

    def test_terminals(self):
        src = DCSource()
        assert [t.id for t in src.terminals] == ["dcP_wire_p", "dcP_wire_n"]
        assert src.positive == "dcP_wire_p"
        assert src.negative == "dcP_wire_n"

    def test_toggle(self):
        src = DCSource()
        src.toggle()
        assert src.is_on
        src.toggle()
        assert not src.is_on
        assert not src.is_powered

    def test_snapshot_restore(self):
        src = DCSource()
        src.set_value(True, 12.0)
        snap = src.snapshot_state()
        src.reset()
        assert not src.is_on
        src.restore_state(snap)
        assert src.is_on
        assert src.voltage == pytest.approx(12.0)


class TestLoopCurrent:
    @pytest.mark.parametrize(
        "pressure, expected",
        [(0.0, 4.0), (0.25, 8.0), (0.5, 12.0), (0.75, 16.0), (1.0, 20.0)],
    )
    def test_four_to_twenty(self, pressure, expected):
        assert loop_current_ma(pressure, 1.0) == pytest.approx(expected)

    def test_clamped(self):
        assert loop_current_ma(2.0, 1.0) == pytest.approx(20.5)
        assert loop_current_ma(-1.0, 1.0) == pytest.approx(3.8)

    def test_zero_and_span_trim(self):
        assert loop_current_ma(0.0, 1.0, zero_adj=0.25) == pytest.approx(8.0)
        assert loop_current_ma(0.5, 1.0, span_adj=0.5) == pytest.approx(8.0)


class TestPressureTransmitter:
    def test_unpowered_reads_zero(self):
        tr = PressureTransmitter()
        tr.set_value(0.5)
        assert tr.get_value() == 0.0

    def test_powered_output(self):
        tr = PressureTransmitter()
        tr.set_power(True)
        tr.set_value(0.5)
        assert tr.get_value() == pytest.approx(12.0)
        assert tr.display == pytest.approx(0.5)

    def test_receive_pressure_in_bar(self):
        tr = PressureTransmitter()
        tr.set_power(True)
        tr.receive_pressure(2.5)
        assert tr.input_pressure == pytest.approx(0.25)
        assert tr.get_value() == pytest.approx(8.0)

    def test_operating_current_is_pure(self):
        tr = PressureTransmitter()
        amps = tr.operating_current({"pTr_pipe_i": 5.0})
        assert amps == pytest.approx(0.012)
        assert tr.input_pressure == 0.0
        assert tr.operating_current({}) == pytest.approx(0.004)

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            PressureTransmitter(range_max=0.0)

    def test_terminals(self):
        tr = PressureTransmitter()
        assert tr.inlet_terminal() == "pTr_pipe_i"
        assert {t.id for t in tr.terminals} == {"pTr_wire_p", "pTr_wire_n", "pTr_pipe_i"}
        assert (tr.positive, tr.negative) == ("pTr_wire_p", "pTr_wire_n")

    def test_adjust_trims_output(self):
        tr = PressureTransmitter()
        tr.set_power(True)
        tr.set_value(0.5)
        tr.adjust(zero=0.25)
        assert tr.get_value() == pytest.approx(16.0)
        tr.adjust(span=0.5)
        assert tr.get_value() == pytest.approx(10.0)
        tr.reset()
        assert (tr.zero_adj, tr.span_adj) == (0.0, 1.0)


class TestAdjustableResistor:
    def test_clamped(self):
        r = AdjustableResistor(max_resistance=500.0)
        r.set_value(800.0)
        assert r.get_value() == pytest.approx(500.0)
        r.set_value(-1.0)
        assert r.get_value() == 0.0

    def test_step(self):
        r = AdjustableResistor(resistance=250.0, max_resistance=500.0)
        assert r.step(up=True) == pytest.approx(300.0)
        assert r.step(up=False) == pytest.approx(250.0)


class TestBridging:
    def test_ammeter_always_bridges(self):
        assert Ammeter().bridge_terminals() == ("aGa_wire_p", "aGa_wire_n")

    def test_switch_bridges_when_closed(self):
        sw = Switch()
        assert sw.bridge_terminals() is None
        sw.set_value(True)
        assert sw.bridge_terminals() == ("swI_wire_1", "swI_wire_2")
        sw.toggle()
        assert sw.bridge_terminals() is None

    def test_multimeter_bridges_only_on_ma(self):
        m = Multimeter()
        for mode in (MeterMode.OFF, MeterMode.DCV, MeterMode.RES, MeterMode.BEEP):
            m.set_mode(mode)
            assert m.bridge_terminals() is None
        m.set_mode("MA")
        assert m.bridge_terminals() == ("muM_wire_ma", "muM_wire_com")


class TestMultimeter:
    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            Multimeter().set_mode("ohms")

    def test_probe_jacks_follow_mode(self):
        m = Multimeter()
        m.set_mode(MeterMode.DCV)
        assert m.probe_terminals() == ("muM_wire_v", "muM_wire_com")
        m.set_mode(MeterMode.MA)
        assert m.probe_terminals() == ("muM_wire_ma", "muM_wire_com")

    def test_display_text(self):
        m = Multimeter()
        assert m.display_text == ""
        m.set_mode(MeterMode.DCV)
        m.set_value(24.0)
        assert m.display_text == "24.000 V"
        m.set_mode(MeterMode.RES)
        m.set_value(250.0)
        assert m.display_text == "250.0 Ω"
        m.set_value(4700.0)
        assert m.display_text == "4.70 kΩ"
        m.set_value(1e10)
        assert m.display_text == "OL"


class TestPneumaticDevices:
    def test_valve_transfer(self):
        v = StopValve()
        assert v.transfer("stV_pipe_o", 50.0) == []
        v.set_value(True)
        assert v.transfer("stV_pipe_o", 50.0) == [("stV_pipe_i", 50.0)]
        assert v.transfer("stV_pipe_i", 50.0) == [("stV_pipe_o", 50.0)]
        v.toggle()
        assert not v.is_open

    def test_regulator_clamps_inlet_only(self):
        reg = PressureRegulator(set_pressure=5.0)
        assert reg.transfer("pRe_pipe_i", 50.0) == [("pRe_pipe_o", 5.0)]
        assert reg.transfer("pRe_pipe_i", 3.0) == [("pRe_pipe_o", 3.0)]
        assert reg.transfer("pRe_pipe_o", 50.0) == []

    def test_regulator_setpoint(self):
        reg = PressureRegulator(max_setpoint=50.0)
        reg.set_setpoint(80.0)
        assert reg.set_pressure == pytest.approx(50.0)
        reg.set_setpoint(1.0)
        reg.apply_delta(0.1)
        assert reg.set_pressure == pytest.approx(1.5)
        reg.receive_pressure(50.0)
        assert reg.get_value() == pytest.approx(1.5)
        assert reg.at_setpoint

    def test_tee_replicates(self):
        tee = TeeConnector()
        out = tee.transfer("tCo_pipe_l", 5.0)
        assert sorted(out) == [("tCo_pipe_r", 5.0), ("tCo_pipe_u", 5.0)]

    def test_gauge_needle(self):
        g = PressureGauge(max_pressure=10.0)
        g.receive_pressure(50.0)
        assert g.get_value() == pytest.approx(50.0)
        assert g.needle == pytest.approx(10.0)
        assert g.is_powered


class TestAirReservoir:
    def test_seed(self):
        res = AirReservoir(pressure=50.0)
        assert res.pressure_seeds() == [("caB_pipe_o", 50.0)]

    def test_depletion(self):
        res = AirReservoir(pressure=50.0, volume=50.0)
        assert res.advance(1.0) == 0.0  # not consuming
        res.set_consumption(True, rate=0.5)
        drop = res.advance(2.0)
        assert drop == pytest.approx(0.5 / 5.0 * 2.0)
        assert res.pressure == pytest.approx(49.8)

    def test_depletion_floors_at_zero(self):
        res = AirReservoir(pressure=0.1, volume=10.0)
        res.set_consumption(True, rate=1.0)
        res.advance(10.0)
        assert res.pressure == 0.0
        assert res.is_low

    def test_refill_capped(self):
        res = AirReservoir(pressure=90.0, max_pressure=100.0)
        res.refill(50.0)
        assert res.pressure == pytest.approx(100.0)

    def test_invalid_volume(self):
        with pytest.raises(ValueError):
            AirReservoir(volume=0.0)


class TestStateReset:
    def test_reset_devices(self):
        state = SimulationState([DCSource(), AdjustableResistor(), StopValve(), PressureRegulator()])
        state.device("dcP").set_value(True)
        state.device("pRr").set_value(400.0)
        state.device("stV").set_value(True)
        state.device("pRe").set_setpoint(8.0)
        state.reset_devices()
        assert not state.device("dcP").is_on
        assert state.device("pRr").get_value() == pytest.approx(250.0)
        assert not state.device("stV").is_open
        assert state.device("pRe").set_pressure == 0.0

    def test_duplicate_device_id(self):
        with pytest.raises(ValueError):
            SimulationState([DCSource(), DCSource()])


class TestSummary:
    def test_base_fields(self):
        d = DCSource().summary()
        assert d["id"] == "dcP"
        assert d["role"] == "source"

    def test_transmitter_and_meter_extras(self):
        tr = PressureTransmitter()
        tr.set_power(True)
        tr.set_value(0.5)
        assert tr.summary()["current_mA"] == pytest.approx(12.0)
        m = Multimeter()
        m.set_mode("dcv")
        assert m.summary()["mode"] == "dcv"
        assert m.summary()["display"] == "0.000 V"
