"""Convenience service layer for a single table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from random import Random
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .ai import AIStub, Difficulty, RandomStub
from .cards import Card
from .contract import CardGame, EndResult, MovePayload, NOT_ENDED, RoundState
from .errors import Verdict
from .logging_config import log_game_event
from .records import to_record
from .registry import get_game
from .rules_schema import GameSettings, PlayerInput

logger = logging.getLogger(__name__)

# Upper bound on automatic moves in one call; a round never needs this many.
MAX_AI_MOVES = 2000


@dataclass
class TableView:
    game: str
    seat: Optional[int]
    state: dict
    valid_moves: List[dict] = field(default_factory=list)
    ended: bool = False
    reason: Optional[str] = None
    winners: List[int] = field(default_factory=list)


class TableService:
    """Facade around one game and its current state.

    The service holds no locks; callers serialize submissions per table.
    """

    def __init__(
        self,
        game: Union[str, CardGame],
        *,
        difficulty: Union[str, Difficulty] = Difficulty.BEGINNER,
        stub: Optional[AIStub] = None,
    ) -> None:
        self.game = get_game(game) if isinstance(game, str) else game
        self.difficulty = difficulty
        self.stub = stub
        self.state: Optional[RoundState] = None
        self.result: EndResult = NOT_ENDED

    # Table lifecycle ---------------------------------------------------

    def start(
        self,
        players: Iterable[PlayerInput],
        settings: Union[GameSettings, Mapping[str, Any], None] = None,
        *,
        rng: Optional[Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> TableView:
        state = self.game.init_state(players, settings)
        self.state = self.game.deal_or_setup(state, rng=rng, deck=deck)
        self.result = NOT_ENDED
        if self.stub is None:
            self.stub = RandomStub(self.state.settings.seed)
        logger.info("Started %s table with %d seats", self.game.name, self.state.seat_count)
        return self.view()

    def next_round(self, *, rng: Optional[Random] = None, deck: Optional[Sequence[Card]] = None) -> TableView:
        state = self._require_state()
        if self.result.ended:
            raise RuntimeError("The session has already ended.")
        self.state = self.game.deal_or_setup(state, rng=rng, deck=deck)
        return self.view()

    def has_table(self) -> bool:
        return self.state is not None

    # Actions -----------------------------------------------------------

    def validate(self, seat: int, move: MovePayload) -> Verdict:
        return self.game.validate_move(self._require_state(), seat, move)

    def submit(self, seat: int, move: MovePayload) -> TableView:
        """Apply ``move`` for ``seat``; raises the ``MoveError`` when it is rejected."""
        state = self._require_state()
        if self.result.ended:
            raise RuntimeError("The session has already ended.")
        updated = self.game.attempt_move(state, seat, move)
        self.state = self.game.advance_turn(updated)
        self._refresh_result()
        return self.view(seat)

    def timeout(self, seat: int) -> TableView:
        """Play the deterministic default move for a stalled seat."""
        move = self.game.default_move(self._require_state(), seat)
        logger.info("Seat %d timed out in %s; playing %s", seat, self.game.name, move.describe())
        return self.submit(seat, move)

    def pending_ai_seats(self) -> List[int]:
        state = self._require_state()
        if self.result.ended:
            return []
        return [
            seat
            for seat, player in enumerate(state.players)
            if player.is_ai and self.game.get_valid_moves(state, seat)
        ]

    def run_ai_turns(self) -> int:
        """Play AI seats until a human must act or the round stops. Returns moves made."""
        made = 0
        while made < MAX_AI_MOVES:
            seats = self.pending_ai_seats()
            if not seats:
                return made
            seat = seats[0]
            move = self.game.ai_move(self._require_state(), seat, self.difficulty, self.stub)
            self.submit(seat, move)
            made += 1
        raise RuntimeError(f"AI seats made {MAX_AI_MOVES} moves without yielding.")

    # Views -------------------------------------------------------------

    def view(self, seat: Optional[int] = None) -> TableView:
        state = self._require_state()
        moves = self.game.get_valid_moves(state, seat) if seat is not None else []
        return TableView(
            game=self.game.name,
            seat=seat,
            state=self.game.get_public_state(state, seat),
            valid_moves=[move.model_dump() for move in moves],
            ended=self.result.ended,
            reason=self.result.reason,
            winners=list(self.result.winners),
        )

    def record(self) -> dict:
        return to_record(self._require_state())

    def _refresh_result(self) -> None:
        result = self.game.check_end_condition(self._require_state())
        if result.ended and not self.result.ended:
            log_game_event(self.game.name, "session_ended", reason=result.reason, winners=list(result.winners))
        self.result = result

    def _require_state(self) -> RoundState:
        if self.state is None:
            raise RuntimeError("No table in progress.")
        return self.state
