"""Terminal model and registry for rigsim.

Every device exposes named terminals whose ids follow the convention
``<deviceId>_<kindTag>_<role>`` (e.g. ``dcP_wire_p``, ``caB_pipe_o``).
The registry resolves each id to a stable integer index once, so the
solvers can work on array-backed structures instead of string lookups.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator


class TerminalKind(Enum):
    """Physical domain of a terminal (doubles as the connection kind tag)."""

    ELECTRICAL = "wire"
    PNEUMATIC = "pipe"

    @property
    def tag(self) -> str:
        return self.value


@dataclass
class FaultFlags:
    """Per-terminal fault flags set by the fault model."""

    broken: bool = False
    leaking: bool = False

    def clear(self) -> None:
        self.broken = False
        self.leaking = False


def terminal_id(device_id: str, kind: TerminalKind, role: str) -> str:
    """Build a terminal id from its parts."""
    return f"{device_id}_{kind.tag}_{role}"


def parse_terminal_id(term_id: str) -> tuple[str, TerminalKind, str]:
    """Split a terminal id into (device id, kind, role).

    Raises:
        ValueError: If the id does not follow ``<deviceId>_<kindTag>_<role>``.
    """
    for kind in TerminalKind:
        marker = f"_{kind.tag}_"
        if marker in term_id:
            device_id, role = term_id.split(marker, 1)
            if device_id and role:
                return device_id, kind, role
    raise ValueError(f"Malformed terminal id: {term_id!r}")


@dataclass
class Terminal:
    """A connection point owned by a device."""

    id: str
    kind: TerminalKind
    role: str
    owner_device_id: str
    faults: FaultFlags = field(default_factory=FaultFlags)

    @classmethod
    def create(cls, device_id: str, kind: TerminalKind, role: str) -> Terminal:
        return cls(
            id=terminal_id(device_id, kind, role),
            kind=kind,
            role=role,
            owner_device_id=device_id,
        )


class TerminalRegistry:
    """Index arena over all terminals of a rig.

    Terminals are registered in device order and keep their index for the
    whole session. Lookups of unknown ids return ``None`` rather than
    raising, since "not registered" is an expected state for callers.
    """

    def __init__(self, terminals: Iterable[Terminal] = ()) -> None:
        self._terminals: list[Terminal] = []
        self._index: dict[str, int] = {}
        for term in terminals:
            self.add(term)

    def add(self, terminal: Terminal) -> int:
        """Register a terminal and return its index.

        Raises:
            ValueError: If a terminal with the same id is already registered.
        """
        if terminal.id in self._index:
            raise ValueError(f"Terminal '{terminal.id}' is already registered")
        idx = len(self._terminals)
        self._terminals.append(terminal)
        self._index[terminal.id] = idx
        return idx

    def __len__(self) -> int:
        return len(self._terminals)

    def __iter__(self) -> Iterator[Terminal]:
        return iter(self._terminals)

    def __contains__(self, term_id: object) -> bool:
        return term_id in self._index

    def index_of(self, term_id: str) -> int | None:
        return self._index.get(term_id)

    def get(self, term_id: str) -> Terminal | None:
        idx = self._index.get(term_id)
        return None if idx is None else self._terminals[idx]

    def at(self, index: int) -> Terminal:
        return self._terminals[index]

    def of_kind(self, kind: TerminalKind) -> list[Terminal]:
        return [t for t in self._terminals if t.kind == kind]

    def owned_by(self, device_id: str) -> list[Terminal]:
        return [t for t in self._terminals if t.owner_device_id == device_id]

    def ids(self, kind: TerminalKind | None = None) -> list[str]:
        return [t.id for t in self._terminals if kind is None or t.kind == kind]
