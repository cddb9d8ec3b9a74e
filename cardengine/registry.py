"""Lookup of game engines by name."""

from __future__ import annotations

from typing import Dict, Type

from .contract import CardGame
from .games import BlackjackGame, BridgeGame, CanastaGame, CribbageGame, HeartsGame, PinochleGame

GAMES: Dict[str, Type[CardGame]] = {
    game.name: game
    for game in (BlackjackGame, BridgeGame, CanastaGame, CribbageGame, HeartsGame, PinochleGame)
}


def get_game(name: str) -> CardGame:
    try:
        return GAMES[name.lower()]()
    except KeyError as exc:
        choices = ", ".join(sorted(GAMES))
        raise ValueError(f"Unknown game {name!r}; choose from {choices}.") from exc
