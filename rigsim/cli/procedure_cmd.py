"""CLI command for playing back a scripted training procedure."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from rigsim.cli.run_cmd import print_readings
from rigsim.core.config import RigConfig
from rigsim.rig.procedure import PROCEDURES, ProcedureRunner
from rigsim.rig.template import build_training_rig


@click.command("procedure")
@click.argument("name", type=click.Choice(sorted(PROCEDURES)))
@click.option("--wait", type=float, default=0.0, show_default=True, help="Pause between steps [s].")
@click.option("--seed", type=int, default=None, help="Random seed for fault picks and leaks.")
@click.pass_context
def procedure(ctx: click.Context, name: str, wait: float, seed: int | None) -> None:
    """Play back a procedure in demo mode and report each step's check."""
    console: Console = ctx.obj.get("console", Console())
    rig = build_training_rig(RigConfig(seed=seed))
    steps = PROCEDURES[name](rig, wait)
    runner = ProcedureRunner(steps)

    table = Table(title=f"Procedure: {name}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Step", style="cyan")
    table.add_column("Check", justify="center")

    failed = []

    def report(idx: int, step) -> None:
        ok = step.is_done()
        if not ok:
            failed.append(idx)
        table.add_row(str(idx + 1), step.message, "[green]pass[/green]" if ok else "[red]fail[/red]")

    runner.run_demo(on_step=report)

    console.print(table)
    print_readings(console, rig)
    if failed:
        ctx.exit(1)
