"""Canasta for two to six seats, in partnerships when four or six play."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from random import Random
from typing import List, Literal, Optional, Sequence

from pydantic import Field

from ..cards import Card, Rank, find_card, remove_cards, sort_hand
from ..contract import CardGame, EndResult, NOT_ENDED, PlayerInfo, RoundState
from ..deck import create_deck, deal, seeded_rng, shuffle
from ..dispatch import Handler, MoveTable
from ..endings import expand_teams, first_to_reach
from ..errors import InvalidMove, RuleViolation
from ..logging_config import log_game_event
from ..melds import check_meld, meld_rank, naturals
from ..moves import CardIds, Move, MoveParser
from ..rules_schema import CanastaSettings
from ..scoring import canasta_card_points, is_red_three, is_wild, meld_card_points, meld_value
from ..visibility import base_view, card_list, pile_summary, seat_hands


class CanastaPhase(Enum):
    DRAW = "draw"
    MELD = "meld"
    DISCARD = "discard"
    HAND_END = "hand_end"


HAND_SIZES = {2: 15, 3: 13}
DEFAULT_HAND_SIZE = 11
RESHUFFLE_SALT = 1_000_000
# Reshuffles allowed per hand before an empty stock ends it.
MAX_RESHUFFLES = 2


class DrawDeck(Move):
    action: Literal["draw_deck"] = "draw_deck"


class DrawPile(Move):
    action: Literal["draw_pile"] = "draw_pile"


class CreateMeld(Move):
    action: Literal["create_meld"] = "create_meld"
    card_ids: CardIds


class AddToMeld(Move):
    action: Literal["add_to_meld"] = "add_to_meld"
    meld_index: int = Field(ge=0)
    card_ids: CardIds


class SkipMeld(Move):
    action: Literal["skip_meld"] = "skip_meld"


class Discard(Move):
    action: Literal["discard"] = "discard"
    card_id: str = Field(min_length=1)


def has_teams(seat_count: int) -> bool:
    return seat_count in (4, 6)


def side_map(seat_count: int) -> List[int]:
    """Side index per seat: seat parity in partnerships, else the seat itself."""
    if has_teams(seat_count):
        return [seat % 2 for seat in range(seat_count)]
    return list(range(seat_count))


@dataclass
class CanastaState(RoundState):
    hands: List[List[Card]] = field(default_factory=list)
    stock: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    melds: List[List[List[Card]]] = field(default_factory=list)
    red_threes: List[List[Card]] = field(default_factory=list)
    side_of: List[int] = field(default_factory=list)
    has_opened: List[bool] = field(default_factory=list)
    dealer: int = 0
    reshuffles: int = 0
    went_out: Optional[int] = None
    end_reason: Optional[str] = None
    hand_scores: List[int] = field(default_factory=list)
    total_scores: List[int] = field(default_factory=list)

    def all_cards(self) -> List[Card]:
        cards = [card for hand in self.hands for card in hand]
        cards.extend(self.stock)
        cards.extend(self.discard_pile)
        cards.extend(card for side in self.melds for meld in side for card in meld)
        cards.extend(card for pile in self.red_threes for card in pile)
        return cards

    @property
    def side_count(self) -> int:
        return len(set(self.side_of))


# Stock and red threes ----------------------------------------------------


def _refill_stock(state: CanastaState) -> bool:
    """Reshuffle all but the top discard into an empty stock."""
    if state.stock:
        return True
    if len(state.discard_pile) < 2 or state.reshuffles >= MAX_RESHUFFLES:
        return False
    state.reshuffles += 1
    rng = seeded_rng(state.settings.seed, RESHUFFLE_SALT + state.deal_count * 100 + state.reshuffles)
    state.stock = shuffle(state.discard_pile[:-1], rng)
    state.discard_pile = state.discard_pile[-1:]
    log_game_event("canasta", "reshuffle", cards=len(state.stock))
    return True


def _draw_into_hand(state: CanastaState, seat: int) -> bool:
    """Draw one card, laying out red threes and replacing them. False if the stock is spent."""
    while True:
        if not _refill_stock(state):
            return False
        card = state.stock.pop(0)
        if is_red_three(card):
            state.red_threes[seat].append(card)
            continue
        state.hands[seat].append(card)
        return True


def _lay_out_red_threes(state: CanastaState, seat: int, *, replace: bool) -> bool:
    threes = [card for card in state.hands[seat] if is_red_three(card)]
    if not threes:
        return True
    state.hands[seat], laid = remove_cards(state.hands[seat], [card.id for card in threes])
    state.red_threes[seat].extend(laid)
    if replace:
        for _ in laid:
            if not _draw_into_hand(state, seat):
                return False
    return True


def pile_blocker(state: CanastaState, seat: int) -> Optional[RuleViolation]:
    if not state.discard_pile:
        return RuleViolation("empty_pile", "The discard pile is empty.")
    top = state.discard_pile[-1]
    if is_wild(top) or top.rank is Rank.THREE:
        return RuleViolation("pile_frozen", "The discard pile cannot be taken on a wildcard or a three.")
    matching = sum(1 for card in naturals(state.hands[seat]) if card.rank is top.rank)
    if matching < 2:
        return RuleViolation("need_natural_pair", f"You need two natural {top.rank.value}s to take the pile.")
    return None


# Handlers ---------------------------------------------------------------


def check_draw_deck(state: CanastaState, seat: int, move: DrawDeck) -> None:
    return None


def apply_draw_deck(state: CanastaState, seat: int, move: DrawDeck) -> None:
    if not _draw_into_hand(state, seat):
        _end_hand(state, None, "stock_exhausted")
        return
    state.hands[seat] = sort_hand(state.hands[seat])
    state.phase = CanastaPhase.MELD


def check_draw_pile(state: CanastaState, seat: int, move: DrawPile) -> None:
    blocker = pile_blocker(state, seat)
    if blocker is not None:
        raise blocker


def apply_draw_pile(state: CanastaState, seat: int, move: DrawPile) -> None:
    taken = len(state.discard_pile)
    state.hands[seat].extend(state.discard_pile)
    state.discard_pile = []
    _lay_out_red_threes(state, seat, replace=False)
    state.hands[seat] = sort_hand(state.hands[seat])
    state.phase = CanastaPhase.MELD
    log_game_event("canasta", "pile_taken", seat=seat, cards=taken)


def _cards_from_hand(state: CanastaState, seat: int, card_ids: Sequence[str]) -> List[Card]:
    if not card_ids:
        raise InvalidMove("no_cards", "Name at least one card.")
    if len(set(card_ids)) != len(card_ids):
        raise InvalidMove("duplicate_cards", "A card can only be named once.")
    cards = []
    for card_id in card_ids:
        card = find_card(state.hands[seat], card_id)
        if card is None:
            raise InvalidMove("card_not_in_hand", f"You do not hold {card_id}.")
        cards.append(card)
    return cards


def check_create_meld(state: CanastaState, seat: int, move: CreateMeld) -> None:
    cards = _cards_from_hand(state, seat, move.card_ids)
    check_meld(cards, wildcard_limit=state.settings.wildcard_limit)
    minimum = state.settings.minimum_meld_score
    if not state.has_opened[state.side_of[seat]] and meld_card_points(cards) < minimum:
        raise RuleViolation("meld_below_minimum", f"Your first meld must be worth at least {minimum} points.")


def apply_create_meld(state: CanastaState, seat: int, move: CreateMeld) -> None:
    side = state.side_of[seat]
    state.hands[seat], cards = remove_cards(state.hands[seat], move.card_ids)
    state.melds[side].append(cards)
    state.has_opened[side] = True
    if not state.hands[seat]:
        _end_hand(state, seat, "went_out")


def check_add_to_meld(state: CanastaState, seat: int, move: AddToMeld) -> None:
    side_melds = state.melds[state.side_of[seat]]
    if move.meld_index >= len(side_melds):
        raise InvalidMove("unknown_meld", f"Your side has no meld {move.meld_index}.")
    cards = _cards_from_hand(state, seat, move.card_ids)
    check_meld(cards, wildcard_limit=state.settings.wildcard_limit, existing=side_melds[move.meld_index])


def apply_add_to_meld(state: CanastaState, seat: int, move: AddToMeld) -> None:
    state.hands[seat], cards = remove_cards(state.hands[seat], move.card_ids)
    state.melds[state.side_of[seat]][move.meld_index].extend(cards)
    if not state.hands[seat]:
        _end_hand(state, seat, "went_out")


def check_skip(state: CanastaState, seat: int, move: SkipMeld) -> None:
    return None


def apply_skip(state: CanastaState, seat: int, move: SkipMeld) -> None:
    state.phase = CanastaPhase.DISCARD


def check_discard(state: CanastaState, seat: int, move: Discard) -> None:
    if find_card(state.hands[seat], move.card_id) is None:
        raise InvalidMove("card_not_in_hand", f"You do not hold {move.card_id}.")


def apply_discard(state: CanastaState, seat: int, move: Discard) -> None:
    state.hands[seat], (card,) = remove_cards(state.hands[seat], [move.card_id])
    state.discard_pile.append(card)
    if not state.hands[seat]:
        _end_hand(state, seat, "went_out")
        return
    state.current_turn = state.next_seat(seat)
    state.phase = CanastaPhase.DRAW
    if not _refill_stock(state):
        _end_hand(state, None, "stock_exhausted")


def _end_hand(state: CanastaState, went_out: Optional[int], reason: str) -> None:
    settings = state.settings
    scores = [0] * state.side_count
    for side, side_melds in enumerate(state.melds):
        scores[side] += sum(meld_value(meld) for meld in side_melds)
    for seat, hand in enumerate(state.hands):
        side = state.side_of[seat]
        scores[side] -= sum(canasta_card_points(card) for card in hand)
        threes = len(state.red_threes[seat]) * settings.red_three_bonus
        scores[side] += threes if state.has_opened[side] else -threes
    if went_out is not None:
        scores[state.side_of[went_out]] += settings.going_out_bonus
    state.hand_scores = scores
    state.total_scores = [total + score for total, score in zip(state.total_scores, scores)]
    state.went_out = went_out
    state.end_reason = reason
    state.phase = CanastaPhase.HAND_END
    log_game_event("canasta", "hand_scored", round=state.round_number, reason=reason, scores=scores)


TABLE = MoveTable(
    CanastaPhase,
    {
        CanastaPhase.DRAW: {
            DrawDeck: Handler(check_draw_deck, apply_draw_deck),
            DrawPile: Handler(check_draw_pile, apply_draw_pile),
        },
        CanastaPhase.MELD: {
            CreateMeld: Handler(check_create_meld, apply_create_meld),
            AddToMeld: Handler(check_add_to_meld, apply_add_to_meld),
            SkipMeld: Handler(check_skip, apply_skip),
        },
        CanastaPhase.DISCARD: {Discard: Handler(check_discard, apply_discard)},
        CanastaPhase.HAND_END: {},
    },
)


# Move generation and AI ---------------------------------------------------


def _passes(checker, state: CanastaState, seat: int, move: Move) -> bool:
    try:
        checker(state, seat, move)
    except RuleViolation:
        return False
    return True


def meld_candidates(state: CanastaState, seat: int) -> List[Move]:
    """New melds of every natural group of three or more, and single-card additions."""
    hand = state.hands[seat]
    moves: List[Move] = []
    groups = Counter(card.rank for card in naturals(hand))
    for rank, count in sorted(groups.items(), key=lambda item: item[0].value):
        if count < 3:
            continue
        ids = tuple(card.id for card in hand if card.rank is rank)
        move = CreateMeld(card_ids=ids)
        if _passes(check_create_meld, state, seat, move):
            moves.append(move)
    for index, meld in enumerate(state.melds[state.side_of[seat]]):
        rank = meld_rank(meld)
        for card in hand:
            if card.rank is rank or is_wild(card):
                move = AddToMeld(meld_index=index, card_ids=(card.id,))
                if _passes(check_add_to_meld, state, seat, move):
                    moves.append(move)
    return moves


def discard_choice(hand: Sequence[Card]) -> Card:
    """Prefer lone, cheap, non-wild cards; black threes block the pile."""
    counts = Counter(card.rank for card in hand)

    def cost(card: Card) -> tuple:
        black_three = card.rank is Rank.THREE and not card.suit.is_red
        return (is_wild(card), not black_three, counts[card.rank], canasta_card_points(card))

    return min(hand, key=cost)


class CanastaGame(CardGame):
    name = "canasta"
    min_players = 2
    max_players = 6
    settings_model = CanastaSettings
    terminal_phase = CanastaPhase.HAND_END
    table = TABLE
    parser = MoveParser(DrawDeck, DrawPile, CreateMeld, AddToMeld, SkipMeld, Discard)

    def _new_state(self, players: List[PlayerInfo], settings: CanastaSettings) -> CanastaState:
        sides = side_map(len(players))
        return CanastaState(
            phase=CanastaPhase.DRAW,
            current_turn=1 % len(players),
            players=players,
            settings=settings,
            hands=[[] for _ in players],
            red_threes=[[] for _ in players],
            side_of=sides,
            melds=[[] for _ in set(sides)],
            has_opened=[False] * len(set(sides)),
            hand_scores=[0] * len(set(sides)),
            total_scores=[0] * len(set(sides)),
        )

    def deal_or_setup(
        self,
        state: CanastaState,
        *,
        rng: Optional[Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> CanastaState:
        updated = self._next_deal(state)
        seats = updated.seat_count
        cards = self._ordered_deck(updated, create_deck("canasta"), rng, deck)
        dealt = deal(cards, seats, HAND_SIZES.get(seats, DEFAULT_HAND_SIZE))
        updated.hands = dealt.hands
        updated.stock = dealt.remaining
        updated.discard_pile = [updated.stock.pop(0)]
        updated.melds = [[] for _ in range(updated.side_count)]
        updated.red_threes = [[] for _ in range(seats)]
        updated.has_opened = [False] * updated.side_count
        updated.hand_scores = [0] * updated.side_count
        updated.reshuffles = 0
        updated.went_out = None
        updated.end_reason = None
        updated.dealer = (updated.round_number - 1) % seats
        updated.current_turn = updated.next_seat(updated.dealer)
        updated.phase = CanastaPhase.DRAW
        for seat in range(seats):
            _lay_out_red_threes(updated, seat, replace=True)
            updated.hands[seat] = sort_hand(updated.hands[seat])
        log_game_event("canasta", "hand_dealt", round=updated.round_number, dealer=updated.dealer)
        return updated

    def get_valid_moves(self, state: CanastaState, seat: int) -> List[Move]:
        if seat != state.current_turn:
            return []
        if state.phase is CanastaPhase.DRAW:
            moves: List[Move] = [DrawDeck()]
            if pile_blocker(state, seat) is None:
                moves.append(DrawPile())
            return moves
        if state.phase is CanastaPhase.MELD:
            return [SkipMeld(), *meld_candidates(state, seat)]
        if state.phase is CanastaPhase.DISCARD:
            return [Discard(card_id=card.id) for card in state.hands[seat]]
        return []

    def heuristic_move(self, state: CanastaState, seat: int, moves: List[Move]) -> Move:
        if state.phase is CanastaPhase.DRAW:
            return DrawPile() if any(isinstance(move, DrawPile) for move in moves) else DrawDeck()
        if state.phase is CanastaPhase.MELD:
            melds = [move for move in moves if not isinstance(move, SkipMeld)]
            # Keep one card back for the discard unless the meld itself goes out.
            for move in melds:
                if len(move.card_ids) < len(state.hands[seat]) or len(state.hands[seat]) == 1:
                    return move
            return SkipMeld()
        return Discard(card_id=discard_choice(state.hands[seat]).id)

    def get_public_state(self, state: CanastaState, viewer: Optional[int]) -> dict:
        view = base_view(state, self.name, viewer)
        view.update(
            hands=seat_hands(state.hands, viewer),
            stock_count=len(state.stock),
            discard_pile=pile_summary(state.discard_pile),
            melds=[[card_list(meld) for meld in side] for side in state.melds],
            red_threes=[card_list(pile) for pile in state.red_threes],
            teams=has_teams(state.seat_count),
            side_of=list(state.side_of),
            has_opened=list(state.has_opened),
            dealer=state.dealer,
            went_out=state.went_out,
            end_reason=state.end_reason,
            hand_scores=list(state.hand_scores),
            total_scores=list(state.total_scores),
        )
        return view

    def check_end_condition(self, state: CanastaState) -> EndResult:
        if state.phase is not CanastaPhase.HAND_END or not state.deal_count:
            return NOT_ENDED
        return expand_teams(first_to_reach(state.total_scores, state.settings.winning_score), state.side_of)
