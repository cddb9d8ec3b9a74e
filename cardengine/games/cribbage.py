"""Two-handed cribbage: discard to the crib, peg to 31, then count the show."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from random import Random
from typing import List, Literal, Optional, Sequence

from ..cards import Card, Rank, find_card, pip_value, remove_cards, sort_hand
from ..contract import CardGame, EndResult, PlayerInfo, RoundState
from ..deck import create_deck, deal
from ..dispatch import Handler, MoveTable
from ..endings import first_to_reach
from ..errors import InvalidMove, RuleViolation
from ..logging_config import log_game_event
from ..moves import CardIds, Move, MoveParser, PlayCard
from ..rules_schema import CribbageSettings
from ..scoring import fifteens, hand_breakdown, pairs, peg_points, runs
from ..visibility import base_view, card_list, seat_hands


class CribbagePhase(Enum):
    DISCARD = "discard"
    PEGGING = "pegging"
    ROUND_END = "round_end"


SEATS = 2
HAND_SIZE = 6
CRIB_DISCARD = 2
MAX_COUNT = 31
HIS_HEELS = 2


class DiscardToCrib(Move):
    action: Literal["discard"] = "discard"
    card_ids: CardIds


class Go(Move):
    action: Literal["go"] = "go"


@dataclass
class CribbageState(RoundState):
    hands: List[List[Card]] = field(default_factory=list)
    played: List[List[Card]] = field(default_factory=list)
    crib: List[Card] = field(default_factory=list)
    stock: List[Card] = field(default_factory=list)
    starter: Optional[Card] = None
    dealer: int = 0
    discards_complete: List[bool] = field(default_factory=list)
    count: int = 0
    sequence: List[Card] = field(default_factory=list)
    said_go: List[bool] = field(default_factory=list)
    last_player: Optional[int] = None
    scores: List[int] = field(default_factory=lambda: [0, 0])
    show: dict = field(default_factory=dict)

    def all_cards(self) -> List[Card]:
        cards = [card for hand in self.hands for card in hand]
        cards.extend(card for pile in self.played for card in pile)
        cards.extend(self.crib)
        cards.extend(self.stock)
        if self.starter is not None:
            cards.append(self.starter)
        return cards

    @property
    def pone(self) -> int:
        """The non-dealer."""
        return 1 - self.dealer

    def can_play(self, seat: int) -> bool:
        return any(self.count + pip_value(card) <= MAX_COUNT for card in self.hands[seat])

    def is_out(self, seat: int) -> bool:
        return self.said_go[seat] or not self.hands[seat]


def _peg(state: CribbageState, seat: int, points: int, reason: str) -> None:
    if points:
        state.scores[seat] += points
        log_game_event("cribbage", "pegged", seat=seat, points=points, reason=reason)


def _reset_count(state: CribbageState, leader: int) -> None:
    state.count = 0
    state.sequence = []
    state.said_go = [False] * SEATS
    if not state.hands[leader]:
        leader = 1 - leader
    state.current_turn = leader


def _continue_pegging(state: CribbageState, seat: int) -> None:
    """Pass the turn after ``seat`` acted, closing the count when neither seat can go on."""
    other = 1 - seat
    if not state.is_out(other):
        state.current_turn = other
        return
    if not state.is_out(seat):
        state.current_turn = seat
        return
    if state.count and state.last_player is not None:
        _peg(state, state.last_player, 1, "go")
    if not any(state.hands):
        _count_show(state)
        return
    assert state.last_player is not None
    _reset_count(state, 1 - state.last_player)


def _count_show(state: CribbageState) -> None:
    assert state.starter is not None
    target = state.settings.winning_score
    counts = (
        ("pone", state.pone, state.played[state.pone], False),
        ("dealer", state.dealer, state.played[state.dealer], False),
        ("crib", state.dealer, state.crib, True),
    )
    state.show = {}
    for label, seat, cards, is_crib in counts:
        if max(state.scores) >= target:
            break
        breakdown = hand_breakdown(cards, state.starter, is_crib=is_crib)
        state.show[label] = breakdown
        _peg(state, seat, sum(breakdown.values()), label)
    state.phase = CribbagePhase.ROUND_END
    log_game_event("cribbage", "round_scored", round=state.round_number, scores=state.scores)


# Handlers ---------------------------------------------------------------


def check_discard(state: CribbageState, seat: int, move: DiscardToCrib) -> None:
    if state.discards_complete[seat]:
        raise RuleViolation("already_discarded", "You have already discarded to the crib.")
    if len(move.card_ids) != CRIB_DISCARD or len(set(move.card_ids)) != CRIB_DISCARD:
        raise InvalidMove("wrong_card_count", f"Discard exactly {CRIB_DISCARD} different cards.")
    for card_id in move.card_ids:
        if find_card(state.hands[seat], card_id) is None:
            raise InvalidMove("card_not_in_hand", f"You do not hold {card_id}.")


def apply_discard(state: CribbageState, seat: int, move: DiscardToCrib) -> None:
    state.hands[seat], thrown = remove_cards(state.hands[seat], move.card_ids)
    state.crib.extend(thrown)
    state.discards_complete[seat] = True
    if all(state.discards_complete):
        _cut_starter(state)


def _cut_starter(state: CribbageState) -> None:
    state.starter = state.stock.pop(0)
    if state.starter.rank is Rank.JACK:
        _peg(state, state.dealer, HIS_HEELS, "his_heels")
    state.phase = CribbagePhase.PEGGING
    state.last_player = None
    _reset_count(state, state.pone)


def check_play(state: CribbageState, seat: int, move: PlayCard) -> None:
    card = find_card(state.hands[seat], move.card_id)
    if card is None:
        raise InvalidMove("card_not_in_hand", f"You do not hold {move.card_id}.")
    if state.count + pip_value(card) > MAX_COUNT:
        raise RuleViolation("count_exceeds_31", f"Playing {move.card_id} would take the count past {MAX_COUNT}.")


def apply_play(state: CribbageState, seat: int, move: PlayCard) -> None:
    state.hands[seat], (card,) = remove_cards(state.hands[seat], [move.card_id])
    state.played[seat].append(card)
    state.sequence.append(card)
    state.count += pip_value(card)
    state.last_player = seat
    _peg(state, seat, peg_points(state.sequence, state.count), "play")
    if state.count == MAX_COUNT:
        if not any(state.hands):
            _count_show(state)
            return
        _reset_count(state, 1 - seat)
        return
    _continue_pegging(state, seat)


def check_go(state: CribbageState, seat: int, move: Go) -> None:
    if state.can_play(seat):
        raise RuleViolation("must_play", "You have a card that fits under 31.")


def apply_go(state: CribbageState, seat: int, move: Go) -> None:
    state.said_go[seat] = True
    _continue_pegging(state, seat)


TABLE = MoveTable(
    CribbagePhase,
    {
        CribbagePhase.DISCARD: {DiscardToCrib: Handler(check_discard, apply_discard)},
        CribbagePhase.PEGGING: {
            PlayCard: Handler(check_play, apply_play),
            Go: Handler(check_go, apply_go),
        },
        CribbagePhase.ROUND_END: {},
    },
    barrier_phases=[CribbagePhase.DISCARD],
)


# AI ---------------------------------------------------------------------


def keep_value(cards: Sequence[Card]) -> int:
    """Points a set of cards holds on its own, before the starter."""
    return fifteens(cards) + pairs(cards) + runs(cards)


def choose_discard(state: CribbageState, seat: int) -> DiscardToCrib:
    hand = state.hands[seat]
    own_crib = seat == state.dealer
    best = None
    best_value = None
    for thrown in combinations(hand, CRIB_DISCARD):
        kept = [card for card in hand if card not in thrown]
        crib_value = keep_value(thrown)
        value = keep_value(kept) + (crib_value if own_crib else -crib_value)
        if best_value is None or value > best_value:
            best, best_value = thrown, value
    assert best is not None
    return DiscardToCrib(card_ids=tuple(card.id for card in best))


def choose_peg(state: CribbageState, seat: int) -> Card:
    playable = [card for card in state.hands[seat] if state.count + pip_value(card) <= MAX_COUNT]

    def rating(card: Card) -> tuple:
        count = state.count + pip_value(card)
        points = peg_points(state.sequence + [card], count)
        # Leaving 5 or 21 hands the opponent an easy fifteen or thirty-one.
        return (points, count not in (5, 21), pip_value(card))

    return max(playable, key=rating)


class CribbageGame(CardGame):
    name = "cribbage"
    min_players = SEATS
    max_players = SEATS
    settings_model = CribbageSettings
    terminal_phase = CribbagePhase.ROUND_END
    table = TABLE
    parser = MoveParser(DiscardToCrib, PlayCard, Go)

    def _new_state(self, players: List[PlayerInfo], settings: CribbageSettings) -> CribbageState:
        return CribbageState(
            phase=CribbagePhase.DISCARD,
            current_turn=1,
            players=players,
            settings=settings,
            hands=[[] for _ in players],
            played=[[] for _ in players],
            discards_complete=[False] * SEATS,
            said_go=[False] * SEATS,
        )

    def deal_or_setup(
        self,
        state: CribbageState,
        *,
        rng: Optional[Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> CribbageState:
        updated = self._next_deal(state)
        cards = self._ordered_deck(updated, create_deck(), rng, deck)
        dealt = deal(cards, SEATS, HAND_SIZE)
        updated.hands = [sort_hand(hand) for hand in dealt.hands]
        updated.stock = dealt.remaining
        updated.played = [[] for _ in range(SEATS)]
        updated.crib = []
        updated.starter = None
        updated.dealer = (updated.round_number - 1) % SEATS
        updated.discards_complete = [False] * SEATS
        updated.count = 0
        updated.sequence = []
        updated.said_go = [False] * SEATS
        updated.last_player = None
        updated.show = {}
        updated.phase = CribbagePhase.DISCARD
        updated.current_turn = updated.pone
        log_game_event("cribbage", "round_dealt", round=updated.round_number, dealer=updated.dealer)
        return updated

    def is_eligible(self, state: CribbageState, seat: int) -> bool:
        return not state.is_out(seat)

    def get_valid_moves(self, state: CribbageState, seat: int) -> List[Move]:
        if state.phase is CribbagePhase.DISCARD:
            if state.discards_complete[seat]:
                return []
            ids = [card.id for card in state.hands[seat]]
            return [DiscardToCrib(card_ids=combo) for combo in combinations(ids, CRIB_DISCARD)]
        if state.phase is CribbagePhase.PEGGING and seat == state.current_turn:
            playable = [card for card in state.hands[seat] if state.count + pip_value(card) <= MAX_COUNT]
            if not playable:
                return [Go()]
            return [PlayCard(card_id=card.id) for card in playable]
        return []

    def heuristic_move(self, state: CribbageState, seat: int, moves: List[Move]) -> Move:
        if state.phase is CribbagePhase.DISCARD:
            return choose_discard(state, seat)
        if not state.can_play(seat):
            return Go()
        return PlayCard(card_id=choose_peg(state, seat).id)

    def get_public_state(self, state: CribbageState, viewer: Optional[int]) -> dict:
        view = base_view(state, self.name, viewer)
        at_show = state.phase is CribbagePhase.ROUND_END
        revealed = range(SEATS) if at_show else ()
        view.update(
            hands=seat_hands(state.hands, viewer, revealed),
            played=[card_list(pile) for pile in state.played],
            crib=card_list(state.crib) if at_show else len(state.crib),
            starter=card_list([state.starter])[0] if state.starter is not None else None,
            stock_count=len(state.stock),
            dealer=state.dealer,
            discards=["ready" if done else "selecting" for done in state.discards_complete],
            count=state.count,
            sequence=card_list(state.sequence),
            said_go=list(state.said_go),
            scores=list(state.scores),
            show={label: dict(points) for label, points in state.show.items()},
        )
        return view

    def check_end_condition(self, state: CribbageState) -> EndResult:
        return first_to_reach(state.scores, state.settings.winning_score)
