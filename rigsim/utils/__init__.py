"""Utility modules for rigsim."""

from rigsim.utils.constants import OPEN_CIRCUIT_OHMS, SETTLEMENT_ROUNDS
from rigsim.utils.units import convert, convert_pressure

__all__ = ["OPEN_CIRCUIT_OHMS", "SETTLEMENT_ROUNDS", "convert", "convert_pressure"]
