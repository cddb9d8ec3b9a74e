"""Structured move errors shared by every game."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    INVALID_PHASE = "invalid_phase"
    NOT_YOUR_TURN = "not_your_turn"
    INVALID_MOVE = "invalid_move"
    RULE_VIOLATION = "rule_violation"
    RESOURCE_EXHAUSTED = "resource_exhausted"


class MoveError(ValueError):
    """Base class for rejected moves.

    ``code`` is a short machine-readable reason such as ``must_follow``.
    """

    kind: ErrorKind = ErrorKind.INVALID_MOVE

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def as_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "code": self.code, "message": self.message}


class InvalidPhase(MoveError):
    """Raised when the move is not accepted by the current phase."""

    kind = ErrorKind.INVALID_PHASE


class NotYourTurn(MoveError):
    """Raised when a seat acts out of turn."""

    kind = ErrorKind.NOT_YOUR_TURN


class InvalidMove(MoveError):
    """Raised for malformed payloads or references to cards the seat does not hold."""

    kind = ErrorKind.INVALID_MOVE


class RuleViolation(MoveError):
    """Raised for well-formed moves that break the game's rules."""

    kind = ErrorKind.RULE_VIOLATION


class ResourceExhausted(MoveError):
    """Raised when a draw cannot be served even after reshuffling."""

    kind = ErrorKind.RESOURCE_EXHAUSTED


@dataclass(frozen=True)
class Verdict:
    """Outcome of ``validate_move``: either ok or carrying the rejection."""

    error: Optional[MoveError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error else None

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


OK = Verdict()
