"""Fault model for rigsim.

Faults come in two families. ``open`` faults break electrical continuity
(an open wire terminal or an internal break inside a device); ``leak``
faults attenuate pressure arriving at a pipe terminal. At most one fault
per family is active at a time; injecting a new one replaces the old.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

from rigsim.core.terminals import TerminalKind

if TYPE_CHECKING:
    from rigsim.core.state import SimulationState

logger = logging.getLogger(__name__)


class FaultFamily(Enum):
    OPEN = "open"
    LEAK = "leak"


class FaultType(Enum):
    """Concrete fault kinds and the family each belongs to."""

    WIRE_OPEN = "wire_open"
    DEVICE_INTERNAL_OPEN = "device_internal_open"
    PNEUMATIC_LEAK = "pneumatic_leak"

    @property
    def family(self) -> FaultFamily:
        return FaultFamily.LEAK if self is FaultType.PNEUMATIC_LEAK else FaultFamily.OPEN


@dataclass(frozen=True)
class FaultRecord:
    """An injected fault and where it sits (terminal id or device id)."""

    type: FaultType
    location: str

    @property
    def family(self) -> FaultFamily:
        return self.type.family

    @classmethod
    def wire_open(cls, terminal_id: str) -> FaultRecord:
        return cls(FaultType.WIRE_OPEN, terminal_id)

    @classmethod
    def internal_open(cls, device_id: str) -> FaultRecord:
        return cls(FaultType.DEVICE_INTERNAL_OPEN, device_id)

    @classmethod
    def leak(cls, terminal_id: str) -> FaultRecord:
        return cls(FaultType.PNEUMATIC_LEAK, terminal_id)

    def to_dict(self) -> dict[str, str]:
        return {"family": self.family.value, "type": self.type.value, "location": self.location}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FaultRecord:
        return cls(FaultType(data["type"]), data["location"])


class FaultModel:
    """Tracks the active fault per family and owns the flag lifecycle.

    Flags live on the terminals and devices themselves (where the solvers
    read them); this class keeps them consistent with the tracked records.
    """

    def __init__(self, state: SimulationState) -> None:
        self._state = state
        self._active: dict[FaultFamily, FaultRecord] = {}

    def active(self, family: FaultFamily) -> FaultRecord | None:
        return self._active.get(family)

    @property
    def records(self) -> list[FaultRecord]:
        return [self._active[f] for f in FaultFamily if f in self._active]

    def _set_flag(self, record: FaultRecord, value: bool) -> None:
        if record.type is FaultType.DEVICE_INTERNAL_OPEN:
            self._state.device(record.location).internal_open = value
            return

        term = self._state.registry.get(record.location)
        if term is None:
            raise KeyError(f"Unknown terminal: {record.location}")
        if record.type is FaultType.WIRE_OPEN:
            if term.kind != TerminalKind.ELECTRICAL:
                raise ValueError(f"Open-wire fault needs a wire terminal, got '{record.location}'")
            term.faults.broken = value
        else:
            if term.kind != TerminalKind.PNEUMATIC:
                raise ValueError(f"Leak fault needs a pipe terminal, got '{record.location}'")
            term.faults.leaking = value

    def inject(self, record: FaultRecord) -> FaultRecord | None:
        """Activate *record*, replacing any active fault of the same family.

        Returns:
            The record that was replaced, if any.

        Raises:
            KeyError: If the location is not a known terminal or device.
            ValueError: If the location's kind does not suit the fault type.
        """
        previous = self._active.get(record.family)
        # validate the new location before touching the old flag
        self._set_flag(record, True)
        if previous is not None and previous != record:
            self._set_flag(previous, False)
        self._active[record.family] = record
        logger.info("Injected %s fault at %s", record.type.value, record.location)
        return previous if previous != record else None

    def inject_random(
        self,
        family: FaultFamily,
        candidates: Sequence[FaultRecord],
        rng: np.random.Generator | None = None,
    ) -> FaultRecord | None:
        """Inject one of *candidates* of *family*, picked uniformly at random."""
        pool = [c for c in candidates if c.family == family]
        if not pool:
            logger.warning("No %s fault candidates available", family.value)
            return None
        rng = rng if rng is not None else np.random.default_rng()
        pick = pool[int(rng.integers(len(pool)))]
        self.inject(pick)
        return pick

    def clear(self, record: FaultRecord) -> None:
        self._set_flag(record, False)
        if self._active.get(record.family) == record:
            del self._active[record.family]

    def clear_all(self) -> None:
        for record in self.records:
            self.clear(record)

    def repair_terminal(self, terminal_id: str) -> FaultRecord | None:
        """Repair interaction on a terminal (the double-click on the rig).

        Clears, in order of precedence, a leak on the terminal, an open
        on the terminal, or an internal break of the terminal's device.

        Returns:
            The record describing what was repaired, or None if nothing was.
        """
        term = self._state.registry.get(terminal_id)
        if term is None:
            return None

        if term.faults.leaking:
            repaired = FaultRecord.leak(terminal_id)
        elif term.faults.broken:
            repaired = FaultRecord.wire_open(terminal_id)
        elif self._state.device(term.owner_device_id).internal_open:
            repaired = FaultRecord.internal_open(term.owner_device_id)
        else:
            return None

        self._set_flag(repaired, False)
        if self._active.get(repaired.family) == repaired:
            del self._active[repaired.family]
        logger.info("Repaired %s fault at %s", repaired.type.value, repaired.location)
        return repaired

    def repair_device(self, device_id: str) -> FaultRecord | None:
        """Repair interaction on a device body: clears its internal break."""
        device = self._state.device(device_id)
        if not device.internal_open:
            return None
        repaired = FaultRecord.internal_open(device_id)
        self.clear(repaired)
        logger.info("Repaired internal break of %s", device_id)
        return repaired

    def restore(self, records: Sequence[FaultRecord]) -> None:
        """Replace all active faults with *records* (session restore)."""
        self.clear_all()
        for record in records:
            self.inject(record)
