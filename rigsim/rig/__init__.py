"""Training rig: template, undo history and scripted procedures."""

from rigsim.rig.history import History, Snapshot
from rigsim.rig.template import (
    FAULT_CANDIDATES,
    TRAINING_WIRING,
    Rig,
    auto_wire,
    build_training_rig,
    five_point_setpoints,
    step_five,
)

__all__ = [
    "FAULT_CANDIDATES",
    "TRAINING_WIRING",
    "History",
    "Rig",
    "Snapshot",
    "auto_wire",
    "build_training_rig",
    "five_point_setpoints",
    "step_five",
]
