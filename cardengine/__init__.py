"""Core engine package for the card-game rule engines."""

from .contract import CardGame, EndResult, PlayerInfo, RoundState
from .errors import ErrorKind, InvalidMove, InvalidPhase, MoveError, NotYourTurn, ResourceExhausted, RuleViolation, Verdict
from .registry import GAMES, get_game
from .service import TableService, TableView

__all__ = [
    "CardGame",
    "EndResult",
    "ErrorKind",
    "GAMES",
    "InvalidMove",
    "InvalidPhase",
    "MoveError",
    "NotYourTurn",
    "PlayerInfo",
    "ResourceExhausted",
    "RoundState",
    "RuleViolation",
    "TableService",
    "TableView",
    "Verdict",
    "get_game",
]
