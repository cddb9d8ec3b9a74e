"""The contract every card game implements, plus shared state types."""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from random import Random
from typing import Any, ClassVar, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel

from .ai import AIStub, Difficulty, RandomStub, parse_difficulty
from .cards import Card
from .deck import seeded_rng, shuffle
from .dispatch import Handler, MoveTable
from .errors import OK, InvalidMove, MoveError, NotYourTurn, RuleViolation, Verdict
from .moves import Move, MoveParser
from .rules_schema import GameSettings, PlayerInput, parse_players

logger = logging.getLogger(__name__)

MovePayload = Union[Move, Mapping[str, Any]]


@dataclass
class PlayerInfo:
    name: str
    is_ai: bool = False
    chips: Optional[int] = None


@dataclass
class RoundState:
    """Fields shared by every game's state snapshot."""

    phase: Enum
    current_turn: int
    players: List[PlayerInfo]
    settings: GameSettings
    round_number: int = 1
    deal_count: int = 0

    @property
    def seat_count(self) -> int:
        return len(self.players)

    def next_seat(self, seat: int, step: int = 1) -> int:
        return (seat + step) % self.seat_count

    def all_cards(self) -> List[Card]:
        """Every card the round owns, wherever it currently lies."""
        raise NotImplementedError


@dataclass(frozen=True)
class EndResult:
    ended: bool
    reason: Optional[str] = None
    winners: Tuple[int, ...] = ()


NOT_ENDED = EndResult(ended=False)


class CardGame(ABC):
    """Rule engine for one game.

    Subclasses declare ``table`` (a ``MoveTable`` over their phase enum) and
    ``parser`` (the closed union of their moves), and implement the per-game
    hooks. ``apply_move`` never re-validates: callers that have not already
    checked a move go through ``attempt_move``.
    """

    name: ClassVar[str]
    min_players: ClassVar[int]
    max_players: ClassVar[int]
    settings_model: ClassVar[Type[GameSettings]]
    terminal_phase: ClassVar[Enum]
    table: ClassVar[MoveTable]
    parser: ClassVar[MoveParser]

    # Setup -------------------------------------------------------------

    def init_state(
        self,
        players: Iterable[PlayerInput],
        settings: Union[GameSettings, Mapping[str, Any], None] = None,
    ) -> RoundState:
        specs = parse_players(players, min_players=self.min_players, max_players=self.max_players)
        resolved = self.resolve_settings(settings)
        infos = [PlayerInfo(name=spec.display_name, is_ai=spec.is_ai) for spec in specs]
        state = self._new_state(infos, resolved)
        logger.debug("Initialized %s table with %d seats", self.name, len(infos))
        return state

    def resolve_settings(self, settings: Union[GameSettings, Mapping[str, Any], None]) -> GameSettings:
        if settings is None:
            return self.settings_model()
        if isinstance(settings, self.settings_model):
            return settings
        if isinstance(settings, BaseModel):
            settings = settings.model_dump()
        return self.settings_model.model_validate(dict(settings))

    @abstractmethod
    def _new_state(self, players: List[PlayerInfo], settings: GameSettings) -> RoundState:
        ...

    @abstractmethod
    def deal_or_setup(
        self,
        state: RoundState,
        *,
        rng: Optional[Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> RoundState:
        """Deal a round. ``deck`` is dealt top-first without shuffling."""

    def _next_deal(self, state: RoundState) -> RoundState:
        """Copy of ``state`` ready for a fresh deal, advancing the round after a finished one."""
        if state.deal_count and state.phase is not self.terminal_phase:
            raise RuntimeError(f"Cannot deal while the {self.name} round is in {state.phase.value}.")
        updated = copy.deepcopy(state)
        if updated.deal_count:
            updated.round_number += 1
        updated.deal_count += 1
        return updated

    def _ordered_deck(
        self,
        state: RoundState,
        fresh: Sequence[Card],
        rng: Optional[Random],
        deck: Optional[Sequence[Card]],
    ) -> List[Card]:
        if deck is not None:
            if sorted(card.id for card in deck) != sorted(card.id for card in fresh):
                raise ValueError(f"Preset deck does not match the {self.name} deck.")
            return list(deck)
        return shuffle(fresh, rng or seeded_rng(state.settings.seed, state.deal_count))

    # Moves -------------------------------------------------------------

    def parse_move(self, payload: MovePayload) -> Move:
        return self.parser.parse(payload)

    def validate_move(self, state: RoundState, seat: int, move: MovePayload) -> Verdict:
        try:
            self._check(state, seat, move)
        except MoveError as exc:
            return Verdict(exc)
        return OK

    def apply_move(self, state: RoundState, seat: int, move: MovePayload) -> RoundState:
        """Return the state after ``move``. Precondition: the move validated."""
        parsed = self.parse_move(move)
        handler = self.table.handler_for(state.phase, parsed)
        updated = copy.deepcopy(state)
        handler.apply(updated, seat, parsed)
        return updated

    def attempt_move(self, state: RoundState, seat: int, move: MovePayload) -> RoundState:
        parsed, handler = self._check(state, seat, move)
        updated = copy.deepcopy(state)
        handler.apply(updated, seat, parsed)
        logger.debug("%s seat %d played %s -> phase %s", self.name, seat, parsed.describe(), updated.phase.value)
        return updated

    def _check(self, state: RoundState, seat: int, move: MovePayload) -> Tuple[Move, Handler]:
        if not 0 <= seat < state.seat_count:
            raise InvalidMove("unknown_seat", f"Seat {seat} is not at this table.")
        parsed = self.parse_move(move)
        handler = self.table.handler_for(state.phase, parsed)
        if not self.table.is_barrier(state.phase) and seat not in self.acting_seats(state):
            raise NotYourTurn("not_your_turn", f"It is seat {state.current_turn}'s turn, not seat {seat}'s.")
        handler.check(state, seat, parsed)
        return parsed, handler

    def acting_seats(self, state: RoundState) -> Tuple[int, ...]:
        """Seats allowed to submit in a sequential phase."""
        return (state.current_turn,)

    def is_eligible(self, state: RoundState, seat: int) -> bool:
        """Whether ``seat`` may still act in the current sequential phase."""
        return True

    def advance_turn(self, state: RoundState) -> RoundState:
        """Move ``current_turn`` onto the next eligible seat; no-op if already valid."""
        updated = copy.deepcopy(state)
        if self.table.accepts_moves(updated.phase) and not self.table.is_barrier(updated.phase):
            seat = updated.current_turn
            for _ in range(updated.seat_count):
                if self.is_eligible(updated, seat):
                    updated.current_turn = seat
                    break
                seat = updated.next_seat(seat)
        return updated

    @abstractmethod
    def get_valid_moves(self, state: RoundState, seat: int) -> List[Move]:
        ...

    def default_move(self, state: RoundState, seat: int) -> Move:
        """First valid move; used when a seat times out."""
        moves = self.get_valid_moves(state, seat)
        if not moves:
            raise RuleViolation("no_valid_moves", f"Seat {seat} has nothing to play in {state.phase.value}.")
        return moves[0]

    # AI ----------------------------------------------------------------

    def ai_move(
        self,
        state: RoundState,
        seat: int,
        difficulty: Union[str, Difficulty] = Difficulty.BEGINNER,
        stub: Optional[AIStub] = None,
    ) -> Move:
        level = parse_difficulty(difficulty)
        moves = self.get_valid_moves(state, seat)
        if not moves:
            raise RuleViolation("no_valid_moves", f"Seat {seat} has nothing to play in {state.phase.value}.")
        stub = stub or RandomStub(state.settings.seed)
        if stub.should_play_optimal(level):
            return self.heuristic_move(state, seat, moves)
        return stub.pick_random(moves)

    def heuristic_move(self, state: RoundState, seat: int, moves: List[Move]) -> Move:
        return moves[0]

    # Reads -------------------------------------------------------------

    @abstractmethod
    def get_public_state(self, state: RoundState, viewer: Optional[int]) -> dict:
        """Redacted view for ``viewer`` (``None`` for a spectator)."""

    @abstractmethod
    def check_end_condition(self, state: RoundState) -> EndResult:
        ...

    def all_cards(self, state: RoundState) -> List[Card]:
        return state.all_cards()
