"""Bot that plays each game's built-in heuristic at a chosen difficulty."""

from __future__ import annotations

from typing import Optional, Union

from cardengine.ai import AIStub, AlwaysOptimalStub, Difficulty, RandomStub, parse_difficulty
from cardengine.contract import CardGame, RoundState
from cardengine.moves import Move

from .base import BotStrategy


class HeuristicBot(BotStrategy):
    name = "Heuristic"

    def __init__(self, difficulty: Union[str, Difficulty] = Difficulty.EXPERT, seed: Optional[int] = None) -> None:
        self.difficulty = parse_difficulty(difficulty)
        self._stub: AIStub = AlwaysOptimalStub() if self.difficulty is Difficulty.EXPERT else RandomStub(seed)

    def choose_move(self, game: CardGame, state: RoundState, seat: int) -> Move:
        return game.ai_move(state, seat, self.difficulty, self._stub)
