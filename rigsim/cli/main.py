"""rigsim command-line interface.

Entry point for the ``rigsim`` CLI tool.
"""

from __future__ import annotations

import logging

import click
from rich.console import Console

from rigsim import __app_name__, __version__

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name=__app_name__)
@click.option("--verbose", "-v", is_flag=True, help="Log solver activity at DEBUG level.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """rigsim — pressure transmitter training rig simulator.

    Builds the 24 V loop and air line of the training rig, wires it,
    injects faults and prints what every instrument reads.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["console"] = console


# Import and register sub-commands
from rigsim.cli.check_cmd import check  # noqa: E402
from rigsim.cli.info_cmd import info  # noqa: E402
from rigsim.cli.procedure_cmd import procedure  # noqa: E402
from rigsim.cli.run_cmd import run  # noqa: E402

cli.add_command(run)
cli.add_command(info)
cli.add_command(check)
cli.add_command(procedure)


def main() -> None:
    """Convenience wrapper for entry-point scripts."""
    cli()
