"""Rig device models.

Each device owns its terminals and exposes the capability methods its
role needs: electrical bridging/readings, pneumatic seeds/transforms.
"""

from rigsim.devices.base import Device, DeviceRole, ElectricalNode, PneumaticNode
from rigsim.devices.load import AdjustableResistor
from rigsim.devices.meters import Ammeter, MeterMode, Multimeter, PressureGauge
from rigsim.devices.regulator import PressureRegulator
from rigsim.devices.reservoir import AirReservoir
from rigsim.devices.sensor import PressureTransmitter
from rigsim.devices.source import DCSource
from rigsim.devices.switch import Switch
from rigsim.devices.tee import TeeConnector
from rigsim.devices.valve import StopValve

__all__ = [
    "AdjustableResistor",
    "AirReservoir",
    "Ammeter",
    "DCSource",
    "Device",
    "DeviceRole",
    "ElectricalNode",
    "MeterMode",
    "Multimeter",
    "PneumaticNode",
    "PressureGauge",
    "PressureRegulator",
    "PressureTransmitter",
    "StopValve",
    "Switch",
    "TeeConnector",
]
