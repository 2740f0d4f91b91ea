"""Rig configuration and session I/O for rigsim.

Handles saving/loading a rig session in JSON: metadata, the rig
configuration, the connection list, each device's adjustable state and
the active faults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np

from rigsim.core.connections import Connection
from rigsim.core.faults import FaultRecord

if TYPE_CHECKING:
    from rigsim.rig.template import Rig

logger = logging.getLogger(__name__)


# --- Session metadata ---


@dataclass
class SessionMeta:
    """Top-level session metadata."""

    name: str = "Untitled"
    description: str = ""
    author: str = ""
    version: str = "0.1.0"
    created: str = ""
    modified: str = ""

    def touch(self) -> None:
        """Update the modified timestamp."""
        now = datetime.now(timezone.utc).isoformat()
        if not self.created:
            self.created = now
        self.modified = now


@dataclass
class RigConfig:
    """Physical parameters of the training rig."""

    transmitter_range: float = 1.0  # MPa
    gauge_max: float = 10.0  # bar
    source_voltage: float = 24.0  # V
    source_max_voltage: float = 24.0  # V
    reservoir_pressure: float = 50.0  # bar
    reservoir_volume: float = 50.0  # L
    reservoir_max_pressure: float = 100.0  # bar
    resistance: float = 250.0  # Ω
    max_resistance: float = 500.0  # Ω
    regulator_max: float = 50.0  # bar
    seed: int | None = None


@dataclass
class SessionState:
    """Complete rig session.

    This is what gets persisted to disk and re-applied to a freshly built
    rig to reproduce the same wiring, settings and faults.
    """

    meta: SessionMeta = field(default_factory=SessionMeta)
    config: RigConfig = field(default_factory=RigConfig)

    # {"from", "to", "type"} records in insertion order
    connections: list[dict[str, str]] = field(default_factory=list)

    # device id -> snapshot_state()
    device_states: dict[str, dict[str, Any]] = field(default_factory=dict)

    # FaultRecord.to_dict() records
    faults: list[dict[str, str]] = field(default_factory=list)


# --- JSON serialization ---


class _NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, (np.integer,)):
            return int(obj)
        if isinstance(obj, (np.floating,)):
            return float(obj)
        if isinstance(obj, (np.bool_,)):
            return bool(obj)
        return super().default(obj)


def save_session_json(session: SessionState, path: str | Path) -> None:
    """Save a session to a JSON file."""
    path = Path(path)
    session.meta.touch()

    with open(path, "w") as f:
        json.dump(asdict(session), f, indent=2, cls=_NumpyEncoder)

    logger.info("Saved session to %s", path)


def load_session_json(path: str | Path) -> SessionState:
    """Load a session from a JSON file."""
    path = Path(path)
    with open(path) as f:
        data = json.load(f)

    meta = SessionMeta(**data.pop("meta", {}))
    config = RigConfig(**data.pop("config", {}))
    return SessionState(meta=meta, config=config, **data)


# --- Rig <-> session ---


def capture_session(rig: Rig, name: str = "Untitled") -> SessionState:
    """Take the current wiring, device settings and faults of *rig*."""
    state = rig.state
    return SessionState(
        meta=SessionMeta(name=name),
        config=rig.config,
        connections=state.graph.to_list(),
        device_states={d.device_id: d.snapshot_state() for d in state},
        faults=[r.to_dict() for r in state.faults.records],
    )


def apply_session(rig: Rig, session: SessionState) -> None:
    """Restore *session* into *rig* and recompute.

    Applying the same session twice leaves the rig in the same state.

    Raises:
        ConnectionRefused: If a stored connection is malformed.
        KeyError: If a stored device or fault location is unknown.
    """
    state = rig.state
    state.graph.clear()
    for record in session.connections:
        conn = Connection.from_dict(record)
        state.graph.add_connection(conn.from_id, conn.to_id, conn.kind)

    for device_id, values in session.device_states.items():
        state.device(device_id).restore_state(values)

    state.faults.restore([FaultRecord.from_dict(r) for r in session.faults])
    logger.info("Applied session '%s' (%d connections)", session.meta.name, len(session.connections))
    rig.cycle.run("session")
