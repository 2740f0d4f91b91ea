"""Tests for utility modules."""

import pytest

from rigsim.core.config import RigConfig
from rigsim.rig.template import auto_wire, build_training_rig
from rigsim.utils.constants import (
    LEAK_LOSS_MAX,
    LEAK_LOSS_MIN,
    LOOP_MIN_MA,
    LOOP_OVERRANGE_MA,
    LOOP_SPAN_MA,
    SETTLEMENT_ROUNDS,
)
from rigsim.utils.units import (
    bar_to_mpa,
    convert,
    convert_pressure,
    current_to_amps,
    current_to_milliamps,
    mpa_to_bar,
    pressure_from_si,
    pressure_to_si,
)
from rigsim.utils.validation import (
    Severity,
    ValidationResult,
    validate_config,
    validate_positive,
    validate_range,
    validate_wiring,
)


class TestConstants:
    def test_loop_signal(self):
        assert LOOP_MIN_MA + LOOP_SPAN_MA == pytest.approx(20.0)
        assert LOOP_OVERRANGE_MA > LOOP_MIN_MA + LOOP_SPAN_MA

    def test_leak_bounds(self):
        assert 0.0 < LEAK_LOSS_MIN < LEAK_LOSS_MAX < 1.0

    def test_rounds(self):
        assert SETTLEMENT_ROUNDS == 5


class TestUnits:
    def test_bar_mpa(self):
        assert bar_to_mpa(10.0) == pytest.approx(1.0)
        assert mpa_to_bar(0.25) == pytest.approx(2.5)

    def test_current(self):
        assert current_to_amps(12.0) == pytest.approx(0.012)
        assert current_to_milliamps(0.02) == pytest.approx(20.0)

    def test_pressure_si(self):
        assert pressure_to_si(1.0, "bar") == pytest.approx(1e5)
        assert pressure_from_si(1e6, "MPa") == pytest.approx(1.0)

    def test_convert_pressure(self):
        assert convert_pressure(1.0, "bar", "psi") == pytest.approx(14.5038, rel=1e-4)
        assert convert_pressure(100.0, "kPa", "bar") == pytest.approx(1.0)

    def test_convert_generic(self):
        assert convert(250.0, "ohm", "kiloohm") == pytest.approx(0.25)


class TestValidation:
    def test_positive(self):
        result = ValidationResult()
        validate_positive("x", -1.0, result)
        assert not result.is_valid
        assert len(result.errors) == 1

    def test_range_ok(self):
        result = ValidationResult()
        validate_range("x", 5.0, 0.0, 10.0, result)
        assert result.is_valid
        assert result.messages == []

    def test_range_warning(self):
        result = ValidationResult()
        validate_range("x", 15.0, 0.0, 10.0, result, severity=Severity.WARNING)
        assert result.is_valid
        assert result.has_warnings

    def test_merge(self):
        a, b = ValidationResult(), ValidationResult()
        a.info("x", "note")
        b.error("y", "bad")
        a.merge(b)
        assert len(a.infos) == 1
        assert not a.is_valid


class TestValidateConfig:
    def test_defaults_valid(self):
        result = validate_config(RigConfig())
        assert result.is_valid
        assert not result.has_warnings

    def test_resistance_above_max(self):
        result = validate_config(RigConfig(resistance=800.0))
        assert any(m.parameter == "resistance" for m in result.errors)

    def test_high_resistance_warns(self):
        # 2000 Ω at 20.5 mA needs 41 V
        result = validate_config(RigConfig(resistance=2000.0, max_resistance=5000.0))
        assert result.is_valid
        assert any(m.parameter == "resistance" for m in result.warnings)

    def test_bad_range(self):
        assert not validate_config(RigConfig(transmitter_range=0.0)).is_valid

    def test_overfilled_reservoir_warns(self):
        result = validate_config(RigConfig(reservoir_pressure=150.0))
        assert result.is_valid
        assert result.has_warnings


class TestValidateWiring:
    def test_fresh_rig(self):
        result = validate_wiring(build_training_rig().state)
        assert not result.is_valid
        assert {m.parameter for m in result.errors} == {"pTr", "pRr"}
        assert {m.parameter for m in result.warnings} == {"dcP"}
        # every pipe port is open
        assert len(result.infos) == 10

    def test_auto_wired_rig(self):
        rig = build_training_rig()
        auto_wire(rig)
        result = validate_wiring(rig.state)
        assert result.is_valid
        assert not result.has_warnings
        assert result.infos == []

    def test_shorted_load(self):
        rig = build_training_rig()
        auto_wire(rig)
        rig.state.graph.add_connection("pRr_wire_p", "pRr_wire_n", "wire")
        result = validate_wiring(rig.state)
        assert any(m.parameter == "pRr" and "shorted" in m.message for m in result.errors)

    def test_power_off_warns(self):
        rig = build_training_rig()
        auto_wire(rig)
        rig.source.set_value(False)
        result = validate_wiring(rig.state)
        assert result.is_valid
        assert any("switched off" in m.message for m in result.warnings)
