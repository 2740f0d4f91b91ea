"""Undo/redo history of rig snapshots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from rigsim.core.connections import Connection
from rigsim.core.state import SimulationState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Connection list plus each device's adjustable state."""

    connections: tuple[Connection, ...] = ()
    device_states: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def capture(cls, state: SimulationState) -> Snapshot:
        return cls(
            connections=tuple(state.graph.connections),
            device_states={d.device_id: dict(d.snapshot_state()) for d in state},
        )

    def restore(self, state: SimulationState) -> None:
        state.graph.replace_all(self.connections)
        for device_id, values in self.device_states.items():
            state.device(device_id).restore_state(dict(values))


class History:
    """Linear snapshot history with a cursor.

    Recording after an undo drops the redo branch. The oldest snapshot is
    discarded once ``max_len`` is exceeded.

    Args:
        state: Rig state to capture and restore.
        on_restore: Called after every undo/redo (normally runs a cycle).
        max_len: Maximum number of snapshots kept.
    """

    def __init__(
        self,
        state: SimulationState,
        on_restore: Callable[[], Any] | None = None,
        max_len: int = 100,
    ) -> None:
        if max_len < 1:
            raise ValueError(f"max_len must be at least 1, got {max_len}")
        self._state = state
        self._on_restore = on_restore
        self.max_len = max_len
        self._snapshots: list[Snapshot] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def record(self) -> Snapshot:
        """Capture the current state as the newest snapshot."""
        snap = Snapshot.capture(self._state)
        del self._snapshots[self._cursor + 1 :]
        self._snapshots.append(snap)
        if len(self._snapshots) > self.max_len:
            self._snapshots.pop(0)
        self._cursor = len(self._snapshots) - 1
        return snap

    def undo(self) -> bool:
        if not self.can_undo:
            logger.warning("Nothing to undo")
            return False
        self._cursor -= 1
        self._apply(self._snapshots[self._cursor])
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            logger.warning("Nothing to redo")
            return False
        self._cursor += 1
        self._apply(self._snapshots[self._cursor])
        return True

    def _apply(self, snap: Snapshot) -> None:
        snap.restore(self._state)
        logger.info("Restored snapshot %d/%d", self._cursor + 1, len(self._snapshots))
        if self._on_restore is not None:
            self._on_restore()

    def clear(self) -> None:
        self._snapshots.clear()
        self._cursor = -1
