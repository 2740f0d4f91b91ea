"""rigsim command-line interface package.

Supports ``python -m rigsim.cli`` as an alternative to the ``rigsim`` entry point.
"""

from rigsim.cli.main import cli, main

__all__ = ["cli", "main"]
