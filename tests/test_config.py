"""Tests for rig configuration and session persistence."""

import json

import numpy as np
import pytest

from rigsim.core.config import (
    RigConfig,
    SessionMeta,
    SessionState,
    _NumpyEncoder,
    apply_session,
    capture_session,
    load_session_json,
    save_session_json,
)
from rigsim.core.connections import UnknownTerminal
from rigsim.core.faults import FaultRecord
from rigsim.devices import MeterMode
from rigsim.rig.template import auto_wire, build_training_rig


def _configured_rig():
    rig = build_training_rig(RigConfig(resistance=400.0))
    auto_wire(rig)
    rig.regulator.set_setpoint(7.5)
    rig.multimeter.set_mode(MeterMode.DCV)
    rig.state.graph.add_connection("muM_wire_v", "pRr_wire_p", "wire")
    rig.state.graph.add_connection("muM_wire_com", "pRr_wire_n", "wire")
    rig.refresh()
    return rig


class TestRigConfig:
    def test_defaults(self):
        config = RigConfig()
        assert config.source_voltage == 24.0
        assert config.resistance == 250.0
        assert config.reservoir_pressure == 50.0
        assert config.transmitter_range == 1.0
        assert config.seed is None

    def test_meta_touch(self):
        meta = SessionMeta(name="Test")
        meta.touch()
        assert meta.created != ""
        assert meta.modified != ""
        created = meta.created
        meta.touch()
        assert meta.created == created

    def test_config_builds_rig(self):
        rig = build_training_rig(RigConfig(resistance=100.0, gauge_max=16.0, reservoir_pressure=30.0))
        assert rig.load.get_value() == 100.0
        assert rig.gauge.max_pressure == 16.0
        assert rig.reservoir.get_value() == 30.0


class TestJsonPersistence:
    def test_save_and_load(self, tmp_path):
        rig = _configured_rig()
        session = capture_session(rig, name="Bench A")
        path = tmp_path / "session.json"
        save_session_json(session, path)

        loaded = load_session_json(path)
        assert loaded.meta.name == "Bench A"
        assert loaded.meta.modified != ""
        assert loaded.config.resistance == 400.0
        assert len(loaded.connections) == 11
        assert loaded.device_states["pRe"]["set_pressure"] == pytest.approx(7.5)
        assert loaded.device_states["muM"]["mode"] == "dcv"

    def test_json_layout(self, tmp_path):
        session = SessionState(meta=SessionMeta(name="Empty"))
        path = tmp_path / "empty.json"
        save_session_json(session, path)
        with open(path) as f:
            data = json.load(f)
        assert set(data) == {"meta", "config", "connections", "device_states", "faults"}
        assert data["connections"] == []

    def test_numpy_encoder(self):
        data = {"arr": np.array([1.0, 2.0]), "i": np.int64(3), "f": np.float32(0.5), "b": np.bool_(True)}
        decoded = json.loads(json.dumps(data, cls=_NumpyEncoder))
        assert decoded == {"arr": [1.0, 2.0], "i": 3, "f": 0.5, "b": True}

    def test_encoder_rejects_unknown(self):
        with pytest.raises(TypeError):
            json.dumps({"x": object()}, cls=_NumpyEncoder)


class TestApplySession:
    def test_reproduces_readings(self, tmp_path):
        rig = _configured_rig()
        rig.state.faults.inject(FaultRecord.internal_open("pTr"))
        rig.refresh()
        path = tmp_path / "s.json"
        save_session_json(capture_session(rig), path)

        fresh = build_training_rig(RigConfig(resistance=400.0))
        apply_session(fresh, load_session_json(path))
        assert fresh.state.graph.to_list() == rig.state.graph.to_list()
        assert fresh.sensor.internal_open
        assert fresh.multimeter.get_value() == pytest.approx(rig.multimeter.get_value())
        assert fresh.ammeter.get_value() == 0.0
        assert fresh.gauge.get_value() == pytest.approx(7.5)

    def test_apply_twice_is_stable(self):
        rig = _configured_rig()
        session = capture_session(rig)
        fresh = build_training_rig(RigConfig(resistance=400.0))
        apply_session(fresh, session)
        first = (fresh.state.graph.to_list(), fresh.ammeter.get_value(), fresh.cycle.potentials)
        apply_session(fresh, session)
        assert (fresh.state.graph.to_list(), fresh.ammeter.get_value(), fresh.cycle.potentials) == first
        # 7.5 bar on a 1 MPa transmitter
        assert fresh.ammeter.get_value() == pytest.approx(16.0)

    def test_unknown_terminal(self):
        session = SessionState(connections=[{"from": "zzz_wire_p", "to": "dcP_wire_p", "type": "wire"}])
        with pytest.raises(UnknownTerminal):
            apply_session(build_training_rig(), session)
