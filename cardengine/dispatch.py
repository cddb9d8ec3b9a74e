"""Explicit (phase, move type) → handler tables."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Type

from .errors import InvalidPhase
from .moves import Move

Checker = Callable[[Any, int, Any], None]
Applier = Callable[[Any, int, Any], None]


@dataclass(frozen=True)
class Handler:
    """``check`` raises a ``MoveError``; ``apply`` mutates a working copy of the state."""

    check: Checker
    apply: Applier


class MoveTable:
    """Dispatch table validated against a game's phase enum.

    Every member of ``phases`` must have a row, even if empty (automatic or
    terminal phases accept no moves).
    """

    def __init__(
        self,
        phases: Type[Enum],
        rows: Mapping[Enum, Mapping[Type[Move], Handler]],
        *,
        barrier_phases: Iterable[Enum] = (),
    ) -> None:
        missing = [phase.name for phase in phases if phase not in rows]
        if missing:
            raise TypeError(f"{phases.__name__} phases without a handler row: {', '.join(missing)}")
        foreign = [str(phase) for phase in rows if not isinstance(phase, phases)]
        if foreign:
            raise TypeError(f"Rows for phases outside {phases.__name__}: {', '.join(foreign)}")
        self.phases = phases
        self._rows = {phase: dict(row) for phase, row in rows.items()}
        self.barrier_phases = frozenset(barrier_phases)
        for phase in self.barrier_phases:
            if not self._rows[phase]:
                raise TypeError(f"Barrier phase {phase.name} must accept at least one move.")

    def handler_for(self, phase: Enum, move: Move) -> Handler:
        handler = self._rows[phase].get(type(move))
        if handler is None:
            raise InvalidPhase("invalid_phase", f"'{move.action}' is not allowed during {phase.value}.")
        return handler

    def accepts_moves(self, phase: Enum) -> bool:
        return bool(self._rows[phase])

    def is_barrier(self, phase: Enum) -> bool:
        return phase in self.barrier_phases

    def move_types(self, phase: Enum) -> tuple[Type[Move], ...]:
        return tuple(self._rows[phase])
