"""CLI command for building, wiring and reading the training rig."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from rigsim.core.config import RigConfig, capture_session, save_session_json
from rigsim.core.connections import ConnectionRefused
from rigsim.core.faults import FaultRecord
from rigsim.core.terminals import TerminalKind
from rigsim.devices.base import DeviceRole
from rigsim.devices.meters import MeterMode
from rigsim.rig.template import Rig, auto_wire, build_training_rig
from rigsim.utils.units import convert_pressure, current_to_milliamps

FAULTS = {
    "open-source": FaultRecord.wire_open("dcP_wire_p"),
    "open-sensor": FaultRecord.internal_open("pTr"),
    "leak-sensor": FaultRecord.leak("pTr_pipe_i"),
    "leak-gauge": FaultRecord.leak("pGa_pipe_i"),
}

PRESSURE_UNITS = ("bar", "kPa", "MPa", "psi")

_PRESSURE_ROLES = (DeviceRole.GAUGE, DeviceRole.REGULATOR, DeviceRole.RESERVOIR)

_UNITS = {
    DeviceRole.SOURCE: "V",
    DeviceRole.SENSOR: "mA",
    DeviceRole.LOAD: "Ω",
    DeviceRole.AMMETER: "mA",
}


def _format_value(device, pressure_unit: str = "bar") -> tuple[str, str]:
    if device.role == DeviceRole.MULTIMETER:
        return device.display_text or "—", device.mode.value.upper()
    value = device.get_value()
    if value is None:
        return "—", "—"
    if isinstance(value, bool):
        if device.role == DeviceRole.VALVE:
            return ("open" if value else "closed"), "—"
        return ("closed" if value else "open"), "—"
    if device.role in _PRESSURE_ROLES:
        return f"{convert_pressure(value, 'bar', pressure_unit):.2f}", pressure_unit
    return f"{value:.2f}", _UNITS.get(device.role, "—")


def print_readings(console: Console, rig: Rig, pressure_unit: str = "bar") -> None:
    """Print loop status, device readings and terminal maps.

    Pressures are carried in bar and shown in *pressure_unit*.
    """
    cycle = rig.cycle

    loop_table = Table(title="Current Loop")
    loop_table.add_column("Parameter", style="cyan")
    loop_table.add_column("Value", style="green", justify="right")
    loop_table.add_column("Unit", style="dim")
    loop_table.add_row("Path Complete", "yes" if cycle.path_complete else "no", "—")
    loop_table.add_row("Loop Current", f"{current_to_milliamps(cycle.loop_current):.2f}", "mA")
    active = [f"{r.type.value}@{r.location}" for r in rig.state.faults.records]
    loop_table.add_row("Active Faults", ", ".join(active) or "none", "—")
    console.print(loop_table)

    dev_table = Table(title="Device Readings")
    dev_table.add_column("ID", style="cyan")
    dev_table.add_column("Device", style="green")
    dev_table.add_column("Reading", justify="right")
    dev_table.add_column("Unit", style="dim")
    dev_table.add_column("Live", style="yellow")
    for device in rig.state:
        reading, unit = _format_value(device, pressure_unit)
        dev_table.add_row(device.device_id, device.name, reading, unit, "●" if device.is_powered else "")
    console.print(dev_table)

    term_table = Table(title="Terminals")
    term_table.add_column("Terminal", style="cyan")
    term_table.add_column("Value", justify="right")
    term_table.add_column("Unit", style="dim")
    potentials, pressures = cycle.potentials, cycle.pressures
    for term in rig.state.registry:
        if not rig.state.graph.is_connected(term.id):
            continue
        if term.kind == TerminalKind.ELECTRICAL:
            term_table.add_row(term.id, f"{potentials.get(term.id, 0.0):.3f}", "V")
        else:
            pressure = convert_pressure(pressures.get(term.id, 0.0), "bar", pressure_unit)
            term_table.add_row(term.id, f"{pressure:.2f}", pressure_unit)
    console.print(term_table)


@click.command("run")
@click.option("--auto-wire/--no-auto-wire", "wire", default=True, show_default=True, help="Apply the reference wiring.")
@click.option("--power/--no-power", default=True, show_default=True, help="Switch the 24 V supply on.")
@click.option("--valve-open/--valve-closed", default=True, show_default=True, help="Stop valve position.")
@click.option("--set-pressure", type=float, default=5.0, show_default=True, help="Regulator setpoint [bar].")
@click.option("--resistance", type=float, default=None, help="Load resistance [Ω].")
@click.option(
    "--meter-mode",
    type=click.Choice([m.value for m in MeterMode], case_sensitive=False),
    default="off",
    show_default=True,
    help="Multimeter range.",
)
@click.option("--probe", nargs=2, type=str, default=None, help="Terminals for the multimeter probes: HOT COM.")
@click.option("--fault", type=click.Choice(sorted(FAULTS)), default=None, help="Inject a fault.")
@click.option("--seed", type=int, default=None, help="Random seed for leak attenuation.")
@click.option(
    "--pressure-unit",
    type=click.Choice(PRESSURE_UNITS),
    default="bar",
    show_default=True,
    help="Unit for displayed pressures.",
)
@click.option("--output", "-o", type=click.Path(), default=None, help="Save the session (JSON).")
@click.pass_context
def run(
    ctx: click.Context,
    wire: bool,
    power: bool,
    valve_open: bool,
    set_pressure: float,
    resistance: float | None,
    meter_mode: str,
    probe: tuple[str, str] | None,
    fault: str | None,
    seed: int | None,
    pressure_unit: str,
    output: str | None,
) -> None:
    """Build the training rig, apply settings and print every reading."""
    console: Console = ctx.obj.get("console", Console())

    config = RigConfig(seed=seed)
    if resistance is not None:
        config.resistance = resistance
    rig = build_training_rig(config)

    if wire:
        auto_wire(rig)
    rig.source.set_value(power)
    rig.valve.set_value(valve_open)
    rig.regulator.set_setpoint(set_pressure)
    rig.multimeter.set_mode(meter_mode)

    try:
        if probe:
            hot, com = probe
            hot_jack, com_jack = rig.multimeter.probe_terminals()
            rig.state.graph.add_connection(hot_jack, hot, TerminalKind.ELECTRICAL)
            rig.state.graph.add_connection(com_jack, com, TerminalKind.ELECTRICAL)
    except ConnectionRefused as exc:
        raise click.BadParameter(str(exc), param_hint="--probe") from exc

    if fault:
        rig.state.faults.inject(FAULTS[fault])

    if rig.cycle.run("cli") is None:
        raise click.ClickException("Update cycle failed; see log for details")

    console.print("\n[bold]rigsim — Rig Readings[/bold]\n")
    print_readings(console, rig, pressure_unit)

    if output:
        save_session_json(capture_session(rig, name="cli run"), output)
        console.print(f"\n[dim]Saved to {output}[/dim]")
