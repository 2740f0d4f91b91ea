"""Connection graph for rigsim.

Owns the current set of typed edges between terminals. Wires behave as a
bus (a wire terminal may join any number of connections); pipe terminals
take at most one connection each, so branching goes through a tee.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator

from rigsim.core.terminals import TerminalKind, TerminalRegistry

logger = logging.getLogger(__name__)

ConnectionKind = TerminalKind


class ConnectionRefused(ValueError):
    """Base class for malformed connection requests."""

    reason = "refused"

    def __init__(self, message: str, from_id: str = "", to_id: str = "") -> None:
        super().__init__(message)
        self.from_id = from_id
        self.to_id = to_id


class TypeMismatch(ConnectionRefused):
    reason = "type_mismatch"


class DuplicateConnection(ConnectionRefused):
    reason = "duplicate"


class TerminalOccupied(ConnectionRefused):
    reason = "occupied"


class UnknownTerminal(ConnectionRefused):
    reason = "unknown_terminal"


def normalize(a: str, b: str) -> tuple[str, str]:
    """Canonical endpoint order: sorted lexicographically."""
    return (a, b) if a <= b else (b, a)


@dataclass(frozen=True)
class Connection:
    """An unordered, typed edge between two terminals.

    ``from_id`` / ``to_id`` are always stored in normalized order.
    """

    from_id: str
    to_id: str
    kind: ConnectionKind

    @classmethod
    def create(cls, a: str, b: str, kind: ConnectionKind) -> Connection:
        lo, hi = normalize(a, b)
        return cls(from_id=lo, to_id=hi, kind=kind)

    @property
    def key(self) -> tuple[str, str]:
        return (self.from_id, self.to_id)

    def touches(self, term_id: str) -> bool:
        return term_id == self.from_id or term_id == self.to_id

    def other(self, term_id: str) -> str | None:
        """Return the opposite endpoint, or None if *term_id* is not on this edge."""
        if term_id == self.from_id:
            return self.to_id
        if term_id == self.to_id:
            return self.from_id
        return None

    def to_dict(self) -> dict[str, str]:
        return {"from": self.from_id, "to": self.to_id, "type": self.kind.tag}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Connection:
        return cls.create(data["from"], data["to"], ConnectionKind(data["type"]))


class ConnectionGraph:
    """Insertion-ordered set of connections validated against a registry.

    Mutations never trigger a recompute; callers run the update cycle.
    """

    def __init__(self, registry: TerminalRegistry) -> None:
        self._registry = registry
        self._conns: list[Connection] = []

    def __len__(self) -> int:
        return len(self._conns)

    def __iter__(self) -> Iterator[Connection]:
        return iter(self._conns)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return self.find(*pair) is not None

    @property
    def connections(self) -> list[Connection]:
        """Copy of the connection list in insertion order."""
        return list(self._conns)

    def of_kind(self, kind: ConnectionKind) -> list[Connection]:
        return [c for c in self._conns if c.kind == kind]

    def find(self, a: str, b: str) -> Connection | None:
        key = normalize(a, b)
        for conn in self._conns:
            if conn.key == key:
                return conn
        return None

    def touching(self, term_id: str) -> list[Connection]:
        return [c for c in self._conns if c.touches(term_id)]

    def is_connected(self, term_id: str) -> bool:
        return any(c.touches(term_id) for c in self._conns)

    def add_connection(self, from_id: str, to_id: str, kind: ConnectionKind) -> Connection:
        """Add a connection between two terminals.

        Args:
            from_id: First terminal id.
            to_id: Second terminal id.
            kind: Connection kind; must match both terminals' kind.

        Returns:
            The normalized connection that was added.

        Raises:
            UnknownTerminal: If either id is not registered.
            TypeMismatch: If either terminal's kind differs from *kind*,
                or both ids name the same terminal.
            DuplicateConnection: If the unordered pair already exists.
            TerminalOccupied: If *kind* is pipe and either terminal is in use.
        """
        kind = ConnectionKind(kind)
        for tid in (from_id, to_id):
            if tid not in self._registry:
                raise UnknownTerminal(f"Terminal '{tid}' is not registered", from_id, to_id)
        if from_id == to_id:
            raise TypeMismatch(f"Cannot connect '{from_id}' to itself", from_id, to_id)

        for tid in (from_id, to_id):
            term = self._registry.get(tid)
            if term.kind != kind:
                raise TypeMismatch(
                    f"Terminal '{tid}' is {term.kind.tag}, cannot take a {kind.tag} connection",
                    from_id,
                    to_id,
                )

        if self.find(from_id, to_id) is not None:
            raise DuplicateConnection(
                f"Connection {from_id} <-> {to_id} already exists", from_id, to_id
            )

        if kind == ConnectionKind.PNEUMATIC:
            for tid in (from_id, to_id):
                if self.is_connected(tid):
                    raise TerminalOccupied(f"Pipe terminal '{tid}' is already connected", from_id, to_id)

        conn = Connection.create(from_id, to_id, kind)
        self._conns.append(conn)
        logger.debug("Connected %s <-> %s (%s)", conn.from_id, conn.to_id, kind.tag)
        return conn

    def remove_connection(self, from_id: str, to_id: str) -> bool:
        """Remove a connection if present. Returns whether anything was removed."""
        conn = self.find(from_id, to_id)
        if conn is None:
            return False
        self._conns.remove(conn)
        logger.debug("Disconnected %s <-> %s", conn.from_id, conn.to_id)
        return True

    def clear(self) -> None:
        self._conns.clear()

    def replace_all(self, connections: Iterable[Connection]) -> None:
        """Swap in a connection list wholesale (used by snapshot restore).

        The list is trusted to have been produced by this graph earlier.
        """
        self._conns = [Connection.create(c.from_id, c.to_id, c.kind) for c in connections]

    def matches(self, target: Iterable[Connection]) -> bool:
        """True if the current set equals *target* as normalized typed edges."""
        current = {(c.kind, c.key) for c in self._conns}
        wanted = {(c.kind, normalize(c.from_id, c.to_id)) for c in target}
        return current == wanted

    def to_list(self) -> list[dict[str, str]]:
        return [c.to_dict() for c in self._conns]
