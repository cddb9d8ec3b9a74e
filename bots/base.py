"""Common bot strategy interfaces."""

from __future__ import annotations

from cardengine.contract import CardGame, RoundState
from cardengine.moves import Move


class BotStrategy:
    """Base class for bot policies."""

    name: str = "BaseBot"

    def on_round_start(self, game: CardGame, state: RoundState, seat: int) -> None:
        """Optional hook invoked after each deal."""
        return None

    def choose_move(self, game: CardGame, state: RoundState, seat: int) -> Move:
        """Return the move ``seat`` submits. The default is the engine's timeout move."""
        return game.default_move(state, seat)
