"""Wiring rule checking and input validation for rigsim."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import DeviceRole
from rigsim.solver.electrical import ElectricalSolver
from rigsim.utils.constants import LOOP_OVERRANGE_MA, MA_TO_A

if TYPE_CHECKING:
    from rigsim.core.config import RigConfig
    from rigsim.core.state import SimulationState


class Severity(Enum):
    """Severity level for validation messages."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationMessage:
    """A single validation finding."""

    severity: Severity
    parameter: str
    message: str
    value: Any = None
    limit: Any = None


@dataclass
class ValidationResult:
    """Aggregated validation result."""

    messages: list[ValidationMessage] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(m.severity == Severity.ERROR for m in self.messages)

    @property
    def has_warnings(self) -> bool:
        return any(m.severity == Severity.WARNING for m in self.messages)

    @property
    def errors(self) -> list[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.WARNING]

    @property
    def infos(self) -> list[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.INFO]

    def add(self, severity: Severity, parameter: str, message: str, **kwargs: Any) -> None:
        self.messages.append(
            ValidationMessage(severity=severity, parameter=parameter, message=message, **kwargs)
        )

    def error(self, parameter: str, message: str, **kwargs: Any) -> None:
        self.add(Severity.ERROR, parameter, message, **kwargs)

    def warning(self, parameter: str, message: str, **kwargs: Any) -> None:
        self.add(Severity.WARNING, parameter, message, **kwargs)

    def info(self, parameter: str, message: str, **kwargs: Any) -> None:
        self.add(Severity.INFO, parameter, message, **kwargs)

    def merge(self, other: ValidationResult) -> None:
        self.messages.extend(other.messages)


# --- Common validators ---


def validate_positive(name: str, value: float, result: ValidationResult) -> None:
    """Validate that a value is strictly positive."""
    if value <= 0:
        result.error(name, f"{name} must be positive, got {value}")


def validate_range(
    name: str,
    value: float,
    low: float,
    high: float,
    result: ValidationResult,
    severity: Severity = Severity.ERROR,
) -> None:
    """Validate that a value falls within [low, high]."""
    if value < low or value > high:
        result.add(severity, name, f"{name} = {value} is outside [{low}, {high}]")


def validate_config(config: RigConfig) -> ValidationResult:
    """Check the physical parameters of a rig configuration."""
    result = ValidationResult()
    validate_positive("transmitter_range", config.transmitter_range, result)
    validate_positive("gauge_max", config.gauge_max, result)
    validate_positive("reservoir_volume", config.reservoir_volume, result)
    validate_range("source_voltage", config.source_voltage, 0.0, config.source_max_voltage, result)
    validate_range("resistance", config.resistance, 0.0, config.max_resistance, result)
    validate_range(
        "reservoir_pressure",
        config.reservoir_pressure,
        0.0,
        config.reservoir_max_pressure,
        result,
        severity=Severity.WARNING,
    )
    if config.resistance * LOOP_OVERRANGE_MA * MA_TO_A > config.source_voltage:
        result.warning(
            "resistance",
            f"{config.resistance:.0f} Ω drops more than the supply at 20.5 mA",
            value=config.resistance,
        )
    return result


def validate_wiring(state: SimulationState) -> ValidationResult:
    """Run wiring rule checks on the current connections.

    Errors: sensor or load not fully wired, or a device shorted across its
    own terminals. Warnings: supply off or unwired. Info: every pipe port
    left open.
    """
    result = ValidationResult()
    clusters = ElectricalSolver().cluster(state)

    for role in (DeviceRole.SOURCE, DeviceRole.SENSOR, DeviceRole.LOAD):
        device = state.with_role(role)
        if device is None:
            result.error(role.value, f"Rig has no {role.value}")
            continue
        p, n = clusters.get(device.wire("p")), clusters.get(device.wire("n"))
        severity = Severity.WARNING if role == DeviceRole.SOURCE else Severity.ERROR
        if p is None or n is None:
            loose = [t for t, c in ((device.wire("p"), p), (device.wire("n"), n)) if c is None]
            result.add(severity, device.device_id, f"{device.name} is not fully wired", value=loose)
        elif p == n:
            result.error(device.device_id, f"{device.name} is shorted across its own terminals")

    source = state.with_role(DeviceRole.SOURCE)
    if source is not None and not source.is_on:
        result.warning(source.device_id, f"{source.name} is switched off")

    for term in state.registry.of_kind(TerminalKind.PNEUMATIC):
        if not state.graph.is_connected(term.id):
            result.info(term.id, f"Pipe port {term.id} is open")

    return result
