"""CLI commands for inspecting the rig's devices, terminals and session files."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from rigsim.core.config import load_session_json
from rigsim.rig.template import build_training_rig


@click.group("info")
@click.pass_context
def info(ctx: click.Context) -> None:
    """Inspect the rig and saved sessions."""
    pass


@info.command("devices")
@click.pass_context
def info_devices(ctx: click.Context) -> None:
    """List the devices of the training rig."""
    console: Console = ctx.obj.get("console", Console())
    rig = build_training_rig()
    table = Table(title="Training Rig Devices")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Role", style="yellow")
    table.add_column("Terminals", style="dim")

    for device in rig.state:
        table.add_row(
            device.device_id,
            device.name,
            device.role.value,
            ", ".join(t.id for t in device.terminals),
        )
    console.print(table)


@info.command("terminals")
@click.pass_context
def info_terminals(ctx: click.Context) -> None:
    """List every terminal id with its kind and owner."""
    console: Console = ctx.obj.get("console", Console())
    rig = build_training_rig()
    table = Table(title="Terminals")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Terminal", style="cyan")
    table.add_column("Kind", style="green")
    table.add_column("Device", style="yellow")

    for idx, term in enumerate(rig.state.registry):
        table.add_row(str(idx), term.id, term.kind.tag, term.owner_device_id)
    console.print(table)


@info.command("session")
@click.argument("path", type=click.Path(exists=True))
@click.pass_context
def info_session(ctx: click.Context, path: str) -> None:
    """Display summary of a session file."""
    console: Console = ctx.obj.get("console", Console())
    session = load_session_json(path)

    tree = Tree(f"[bold]{session.meta.name}[/bold]")
    meta = tree.add("[cyan]Metadata[/cyan]")
    meta.add(f"Author: {session.meta.author or '—'}")
    meta.add(f"Version: {session.meta.version}")
    meta.add(f"Modified: {session.meta.modified or '—'}")

    cfg = tree.add("[cyan]Configuration[/cyan]")
    cfg.add(f"Transmitter range: {session.config.transmitter_range} MPa")
    cfg.add(f"Supply: {session.config.source_voltage} V")
    cfg.add(f"Reservoir: {session.config.reservoir_pressure} bar, {session.config.reservoir_volume} L")
    cfg.add(f"Load: {session.config.resistance} Ω")

    conns = tree.add(f"[cyan]Connections ({len(session.connections)})[/cyan]")
    for c in session.connections:
        conns.add(f"{c['from']} ↔ {c['to']} ({c['type']})")

    if session.device_states:
        devs = tree.add("[cyan]Device Settings[/cyan]")
        for device_id, values in session.device_states.items():
            if values:
                devs.add(f"{device_id}: " + ", ".join(f"{k}={v}" for k, v in values.items()))

    if session.faults:
        faults = tree.add("[red]Faults[/red]")
        for f in session.faults:
            faults.add(f"{f['type']} @ {f['location']}")

    console.print(tree)
