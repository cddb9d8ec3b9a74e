"""Random baseline bot."""

from __future__ import annotations

import random
from typing import Optional

from cardengine.contract import CardGame, RoundState
from cardengine.errors import RuleViolation
from cardengine.moves import Move

from .base import BotStrategy


class RandomBot(BotStrategy):
    name = "Random"

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def choose_move(self, game: CardGame, state: RoundState, seat: int) -> Move:
        legal = game.get_valid_moves(state, seat)
        if not legal:
            raise RuleViolation("no_valid_moves", f"Seat {seat} has nothing to play.")
        return self._rng.choice(legal)
