"""rigsim — dual-domain training rig simulator.

Simulates a DC current loop and a compressed-air network whose topology
is built at runtime by connecting named terminals.
"""

__app_name__ = "rigsim"
__version__ = "0.1.0"
