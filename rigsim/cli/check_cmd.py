"""CLI command for wiring rule checks."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from rigsim.core.config import apply_session, load_session_json
from rigsim.rig.template import auto_wire, build_training_rig
from rigsim.utils.validation import Severity, validate_config, validate_wiring

_STYLES = {Severity.ERROR: "red", Severity.WARNING: "yellow", Severity.INFO: "dim"}


@click.command("check")
@click.option("--session", "session_path", type=click.Path(exists=True), default=None, help="Session file to check.")
@click.option("--auto-wire", "wire", is_flag=True, help="Check the reference wiring.")
@click.pass_context
def check(ctx: click.Context, session_path: str | None, wire: bool) -> None:
    """Run the wiring rule checks; exits with status 1 on any error."""
    console: Console = ctx.obj.get("console", Console())

    if session_path:
        session = load_session_json(session_path)
        rig = build_training_rig(session.config)
        apply_session(rig, session)
    else:
        rig = build_training_rig()
    if wire:
        auto_wire(rig)

    result = validate_config(rig.config)
    result.merge(validate_wiring(rig.state))

    table = Table(title="Wiring Check")
    table.add_column("Severity")
    table.add_column("Item", style="cyan")
    table.add_column("Finding")
    for msg in result.messages:
        style = _STYLES[msg.severity]
        table.add_row(f"[{style}]{msg.severity.value}[/{style}]", msg.parameter, msg.message)
    console.print(table)

    console.print(
        f"\n{len(result.errors)} error(s), {len(result.warnings)} warning(s), {len(result.infos)} note(s)"
    )
    if not result.is_valid:
        ctx.exit(1)
